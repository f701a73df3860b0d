"""
Object Storage Service - Backblaze B2 native API

Handles:
- Account authorization (b2_authorize_account) and bucket id lookup
- Uploads via b2_get_upload_url + upload URL
- Time-limited download URLs via b2_get_download_authorization

Authorization state is cached on the instance and refreshed once when B2
answers 401 (expired token). Upload URLs are refreshed once on 401/503,
as B2 recommends.
"""

import logging
from urllib.parse import quote

import requests

from errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = 'https://api.backblazeb2.com'
API_TIMEOUT = 10
UPLOAD_TIMEOUT = 60
DEFAULT_SIGNED_URL_TTL = 3600


class StorageError(UpstreamUnavailable):
    """Raised when B2 is unreachable or rejects a request"""
    def __init__(self, message, status_code=None):
        super().__init__(message, storage_status=status_code)
        self.storage_status = status_code


class StorageService:
    """Backblaze B2 client: put bytes under a key, sign retrieval URLs"""

    def __init__(self, account_id, application_key, bucket_name,
                 api_base=DEFAULT_API_BASE, session=None):
        """
        Args:
            account_id: B2 application key id (the long id from the console)
            application_key: B2 application key
            bucket_name: Target bucket
            api_base: Authorization endpoint base URL
            session: Optional requests.Session (for connection reuse/tests)
        """
        self.account_id = account_id
        self.application_key = application_key
        self.bucket_name = bucket_name
        self.api_base = api_base.rstrip('/')
        self.session = session or requests.Session()

        self.auth_token = None
        self.api_url = None
        self.download_url = None
        self.short_account_id = None
        self.bucket_id = None
        self.upload_url = None
        self.upload_auth_token = None

    # ========================================================================
    # AUTHORIZATION
    # ========================================================================

    def authenticate(self):
        """Authorize the account and cache API/download URLs"""
        if not self.account_id or not self.application_key:
            raise StorageError('Storage credentials are not configured')

        response = self._send(
            'GET', f"{self.api_base}/b2api/v2/b2_authorize_account",
            auth=(self.account_id, self.application_key),
            timeout=API_TIMEOUT,
        )
        if response.status_code != 200:
            raise StorageError(f"failed to authorize account: {response.text}", response.status_code)

        data = response.json()
        self.auth_token = data['authorizationToken']
        self.api_url = data['apiUrl']
        self.download_url = data['downloadUrl']
        self.short_account_id = data['accountId']
        self.bucket_id = None
        self.upload_url = None
        self.upload_auth_token = None
        logger.info(f"B2 authorized. API URL: {self.api_url}")

    def _ensure_authorized(self):
        if not self.auth_token or not self.api_url or not self.short_account_id:
            self.authenticate()

    def _api_call(self, endpoint, body):
        """POST to a b2api endpoint, re-authorizing once on 401"""
        self._ensure_authorized()
        for attempt in range(2):
            response = self._send(
                'POST', f"{self.api_url}/b2api/v2/{endpoint}",
                json=body,
                headers={'Authorization': self.auth_token},
                timeout=API_TIMEOUT,
            )
            if response.status_code == 401 and attempt == 0:
                logger.info(f"B2 token rejected on {endpoint}, re-authorizing")
                self.authenticate()
                if 'bucketId' in body:
                    body = dict(body, bucketId=self.get_bucket_id())
                continue
            if response.status_code != 200:
                raise StorageError(f"{endpoint} failed: {response.text}", response.status_code)
            return response.json()

    def get_bucket_id(self):
        if self.bucket_id:
            return self.bucket_id

        self._ensure_authorized()
        data = self._api_call('b2_list_buckets', {'accountId': self.short_account_id})
        for bucket in data.get('buckets', []):
            if bucket.get('bucketName') == self.bucket_name:
                self.bucket_id = bucket['bucketId']
                logger.info(f"Found bucket: {self.bucket_name} with ID: {self.bucket_id}")
                return self.bucket_id

        raise StorageError(f"bucket not found: {self.bucket_name}")

    # ========================================================================
    # UPLOAD
    # ========================================================================

    def _refresh_upload_url(self):
        data = self._api_call('b2_get_upload_url', {'bucketId': self.get_bucket_id()})
        self.upload_url = data['uploadUrl']
        self.upload_auth_token = data['authorizationToken']
        logger.debug(f"Got upload URL: {self.upload_url}")

    def put_object(self, key, data):
        """
        Store bytes under a key

        Args:
            key: Object key (file name)
            data: Bytes to upload

        Returns:
            Public locator: {downloadUrl}/file/{bucket}/{key}
        """
        self._ensure_authorized()
        if not self.upload_url or not self.upload_auth_token:
            self._refresh_upload_url()

        logger.info(f"Uploading file: {key}, size: {len(data)} bytes")
        for attempt in range(2):
            response = self._send(
                'POST', self.upload_url,
                data=data,
                headers={
                    'Authorization': self.upload_auth_token,
                    'X-Bz-File-Name': quote(key),
                    'Content-Type': 'b2/x-auto',
                    'X-Bz-Content-Sha1': 'do_not_verify',
                    'Content-Length': str(len(data)),
                },
                timeout=UPLOAD_TIMEOUT,
            )
            if response.status_code in (401, 503) and attempt == 0:
                logger.info(f"Upload URL rejected ({response.status_code}), requesting a new one")
                self._refresh_upload_url()
                continue
            if response.status_code != 200:
                raise StorageError(f"upload failed: {response.text}", response.status_code)
            break

        return f"{self.download_url}/file/{self.bucket_name}/{key}"

    # ========================================================================
    # SIGNED DOWNLOADS
    # ========================================================================

    def get_signed_url(self, key, ttl_seconds=DEFAULT_SIGNED_URL_TTL):
        """
        Produce a time-limited download URL for one object

        Args:
            key: Object key
            ttl_seconds: Validity window

        Returns:
            {downloadUrl}/file/{bucket}/{key}?Authorization={token}
        """
        self._ensure_authorized()
        data = self._api_call('b2_get_download_authorization', {
            'bucketId': self.get_bucket_id(),
            'fileNamePrefix': key,
            'validDurationInSeconds': int(ttl_seconds),
        })
        signed_url = (
            f"{self.download_url}/file/{self.bucket_name}/{quote(key)}"
            f"?Authorization={quote(data['authorizationToken'], safe='')}"
        )
        logger.info(f"Generated signed URL for {key} (valid {ttl_seconds}s)")
        return signed_url

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _send(self, method, url, **kwargs):
        try:
            return self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"B2 request to {url} failed: {e}")
            raise StorageError(f"storage unreachable: {e}") from e
