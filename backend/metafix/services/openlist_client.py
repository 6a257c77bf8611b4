"""
OpenListClient - Integration with the OpenList (AList) file-hosting API

This module wraps the path-based storage API used to read and write the
metainfo.json sidecar that maps media folders to TMDB entries.

Features:
    - Token authentication (token sent raw in the Authorization header)
    - Transparent re-login on HTTP 401 when username/password are configured
    - Directory listing, file lookup, upload (overwrite), delete
    - Advisory directory-cache refresh after uploads
    - Plain download of direct (raw_url) links

Retry Policy:
    Every authenticated request goes through _request_with_auth(). A 401 on
    the first attempt triggers at most MAX_AUTH_RETRIES re-login + reissue
    cycles, and only when static credentials exist. A client built from a
    bare token surfaces the 401 immediately.

Usage Example:
    client = OpenListClient(
        base_url="https://pan.example.com",
        token="openlist-xxxxxxxx",
        username="admin",
        password="secret"
    )

    info = await client.get_file("/media/metainfo.json")
    content = await client.download(info['data']['raw_url'])
    await client.upload_file("/media/metainfo.json", content)

API Reference: https://docs.oplist.org/guide/api/fs.html
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from metafix.config import Config
from .exceptions import AuthError, RemoteError

logger = logging.getLogger(__name__)

# Re-login + reissue cycles allowed per logical operation
MAX_AUTH_RETRIES = 1

# Characters left untouched by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Direct links are often served by third-party drives that reject bare clients
DOWNLOAD_HEADERS = {
    'User-Agent': (
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
        '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    ),
    'Accept': '*/*',
    'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
}


def parent_dir(path: str) -> str:
    """Return the directory part of a storage path ('/' for top-level files)."""
    return path[:path.rfind('/')] or '/'


def base_name(path: str) -> str:
    """Return the last component of a storage path."""
    return path[path.rfind('/') + 1:]


def encode_file_path(path: str) -> str:
    """Percent-encode a path for the File-Path header, like encodeURIComponent."""
    return quote(path, safe=_URI_COMPONENT_SAFE)


class OpenListClient:
    """
    Client for the OpenList storage API.

    Attributes:
        base_url: OpenList instance URL (e.g., https://pan.example.com)
        token: Current API token; replaced in place after a successful re-login
        username: Optional account name used to refresh an expired token
        password: Optional password used to refresh an expired token
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.username = username or None
        self.password = password or None
        self.timeout = timeout if timeout is not None else Config.OPENLIST_TIMEOUT
        self._transport = transport
        self._token_lock = asyncio.Lock()
        logger.debug(f"OpenListClient initialized for: {self.base_url}")

    def __repr__(self) -> str:
        masked = f"***{self.token[-4:]}" if self.token else None
        return f"OpenListClient(base_url='{self.base_url}', token='{masked}', username={self.username!r})"

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _get_headers(self, token: str) -> Dict[str, str]:
        return {
            'Authorization': token,  # no "Bearer" prefix
            'Content-Type': 'application/json',
        }

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @classmethod
    async def login(
        cls,
        base_url: str,
        username: str,
        password: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> str:
        """
        Exchange username/password for an API token.

        Args:
            base_url: OpenList instance URL
            username: Account name
            password: Account password

        Returns:
            Fresh API token

        Raises:
            AuthError: If the request fails or the response carries no token
        """
        url = f"{base_url.rstrip('/')}/api/auth/login"
        try:
            async with httpx.AsyncClient(
                timeout=timeout if timeout is not None else Config.OPENLIST_TIMEOUT,
                transport=transport,
            ) as client:
                response = await client.post(
                    url,
                    json={'username': username, 'password': password},
                    headers={'Content-Type': 'application/json'},
                )
        except httpx.HTTPError as e:
            raise AuthError(f"OpenList login request failed: {e}") from e

        if not response.is_success:
            raise AuthError("OpenList login failed", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError("OpenList login failed: invalid JSON response") from e

        if not isinstance(data, dict):
            raise AuthError("OpenList login failed: unexpected response", response_data=data)

        payload = data.get('data')
        token = payload.get('token') if isinstance(payload, dict) else None
        if data.get('code') != 200 or not token:
            raise AuthError("OpenList login failed: no token in response", response_data=data)

        return token

    async def _refresh_token(self, stale_token: str) -> bool:
        """
        Replace the stored token by logging in again.

        Concurrent callers that hit 401 with the same stale token share one
        login: whoever enters the lock second finds the token already
        replaced and reuses it.

        Returns:
            True if a usable new token is stored, False otherwise
        """
        if not self.has_credentials:
            return False

        async with self._token_lock:
            if self.token != stale_token:
                logger.debug("OpenList token already refreshed by a concurrent request")
                return True

            logger.info("OpenList token may have expired, logging in again with stored credentials")
            try:
                self.token = await self.login(
                    self.base_url,
                    self.username,
                    self.password,
                    timeout=self.timeout,
                    transport=self._transport,
                )
            except AuthError as e:
                logger.error(f"OpenList token refresh failed: {e}")
                return False

        logger.info("OpenList token refreshed")
        return True

    async def _request_with_auth(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Issue an authenticated request, re-logging in once on HTTP 401.

        The final response is returned whatever its status; callers decide
        how to interpret it.

        Raises:
            RemoteError: On transport failure (no status code)
        """
        url = f"{self.base_url}{endpoint}"
        retries = 0

        try:
            async with self._http_client() as client:
                while True:
                    token = self.token
                    request_headers = {**self._get_headers(token), **(headers or {})}
                    response = await client.request(
                        method,
                        url,
                        json=json,
                        content=content,
                        headers=request_headers,
                    )

                    if response.status_code != 401 or retries >= MAX_AUTH_RETRIES:
                        return response
                    if not self.has_credentials:
                        return response

                    retries += 1
                    if not await self._refresh_token(token):
                        return response
                    logger.debug(f"Retrying {method} {endpoint} with refreshed token")

        except httpx.HTTPError as e:
            raise RemoteError(f"OpenList request to {endpoint} failed: {e}") from e

    @staticmethod
    def _json_body(response: httpx.Response, endpoint: str) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"OpenList returned invalid JSON for {endpoint}",
                status_code=response.status_code,
                response_data=response.text,
            ) from e

    # ------------------------------------------------------------------
    # File system operations
    # ------------------------------------------------------------------

    async def list_directory(
        self,
        path: str,
        page: int = 1,
        per_page: int = 100,
        refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        List a directory.

        Returns:
            Raw response: {code, message, data: {content, total, readme, write}}

        Raises:
            RemoteError: On non-2xx status
        """
        response = await self._request_with_auth('POST', '/api/fs/list', json={
            'path': path,
            'password': '',
            'refresh': refresh,
            'page': page,
            'per_page': per_page,
        })

        if not response.is_success:
            raise RemoteError("OpenList API error", status_code=response.status_code)

        return self._json_body(response, '/api/fs/list')

    async def get_file(self, path: str) -> Dict[str, Any]:
        """
        Resolve a path to its file descriptor.

        OpenList answers HTTP 200 even for missing objects; check the
        envelope's 'code' and data.raw_url.

        Returns:
            Raw response: {code, message, data: {name, size, is_dir, raw_url, ...}}

        Raises:
            RemoteError: On non-2xx status
        """
        response = await self._request_with_auth('POST', '/api/fs/get', json={
            'path': path,
            'password': '',
        })

        if not response.is_success:
            raise RemoteError("OpenList API error", status_code=response.status_code)

        return self._json_body(response, '/api/fs/get')

    async def upload_file(self, path: str, content: str) -> None:
        """
        Create or overwrite a text file, then refresh its directory cache.

        Args:
            path: Destination path on the storage
            content: File content, sent as UTF-8 text

        Raises:
            RemoteError: On non-2xx status (message includes the response body)
        """
        response = await self._request_with_auth(
            'PUT',
            '/api/fs/put',
            content=content.encode('utf-8'),
            headers={
                'Content-Type': 'text/plain; charset=utf-8',
                'File-Path': encode_file_path(path),
                'As-Task': 'false',
            },
        )

        if not response.is_success:
            error_text = response.text
            raise RemoteError(
                f"OpenList upload failed: {response.status_code} - {error_text}",
                status_code=response.status_code,
                response_data=error_text,
            )

        logger.debug(f"Uploaded {len(content)} characters to {path}")
        await self.refresh_directory(parent_dir(path))

    async def refresh_directory(self, path: str) -> None:
        """
        Ask OpenList to drop its cached listing of a directory.

        Advisory only: failures are logged and never raised.
        """
        try:
            response = await self._request_with_auth('POST', '/api/fs/list', json={
                'path': path,
                'password': '',
                'refresh': True,
                'page': 1,
                'per_page': 1,
            })
            if not response.is_success:
                logger.warning(f"Directory cache refresh failed for {path}: HTTP {response.status_code}")
        except Exception as e:
            logger.warning(f"Directory cache refresh failed for {path}: {type(e).__name__}: {e}")

    async def delete_file(self, path: str) -> None:
        """
        Remove a single file.

        Raises:
            RemoteError: On non-2xx status
        """
        response = await self._request_with_auth('POST', '/api/fs/remove', json={
            'names': [base_name(path)],
            'dir': parent_dir(path),
        })

        if not response.is_success:
            raise RemoteError("OpenList delete failed", status_code=response.status_code)

        logger.info(f"Deleted {path} from OpenList")

    async def download(self, raw_url: str) -> str:
        """
        Download a direct link returned in data.raw_url.

        The request is unauthenticated: raw links are pre-signed.

        Returns:
            Response body decoded as UTF-8, without a leading byte-order mark

        Raises:
            RemoteError: On non-2xx status or transport failure
        """
        try:
            async with self._http_client() as client:
                response = await client.get(raw_url, headers=DOWNLOAD_HEADERS, follow_redirects=True)
        except httpx.HTTPError as e:
            raise RemoteError(f"Download failed: {e}") from e

        if not response.is_success:
            raise RemoteError("Download failed", status_code=response.status_code)

        return response.content.decode('utf-8-sig', errors='replace')
