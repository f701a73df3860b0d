# utils/json_provider.py
from datetime import datetime
from flask.json.provider import DefaultJSONProvider

class CustomJSONProvider(DefaultJSONProvider):
    """Custom JSON provider that formats datetimes as unix seconds"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return int(obj.timestamp())
        return super().default(obj)
