# wsgi.py
# gunicorn -c gunicorn.conf.py wsgi:app
from app import create_production_app

app = create_production_app()
