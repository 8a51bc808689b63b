import base64
import logging
from typing import Optional

import requests

log = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_ITEM_ID = "33aa4076-dadd-4e4b-aa36-187a55943921"
DEFAULT_SHARE_URL = "https://1drv.ms/x/c/664d2a3caa281035/EXZAqjPd2ktOqjYYelWUOSEBB2Qj5IeQMkacTX3XNCOOhg?e=ZtiEvd"
DEFAULT_WORKSHEET = "Sheet1"
DEFAULT_TIMEOUT = 30


class FetchError(Exception):
    """A Graph call failed. needs_reauth is set when the token was rejected."""

    def __init__(self, message: str, status: Optional[int] = None, needs_reauth: bool = False):
        super().__init__(message)
        self.status = status
        self.needs_reauth = needs_reauth


def encode_sharing_url(url: str) -> str:
    """Encode a sharing link into the u!{id} form of the /shares endpoint."""
    encoded = base64.b64encode(url.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=").replace("+", "-").replace("/", "_")


class GraphWorkbookStorage:
    def __init__(
        self,
        item_id: str = DEFAULT_ITEM_ID,
        share_url: str = DEFAULT_SHARE_URL,
        worksheet: str = DEFAULT_WORKSHEET,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.item_id = item_id
        self.share_url = share_url
        self.worksheet = worksheet
        self.timeout = timeout

    @property
    def primary_url(self) -> str:
        return f"{GRAPH_BASE_URL}/me/drive/items/{self.item_id}/workbook/worksheets('{self.worksheet}')/usedRange"

    @property
    def fallback_url(self) -> str:
        share_id = encode_sharing_url(self.share_url)
        return f"{GRAPH_BASE_URL}/shares/u!{share_id}/driveItem/workbook/worksheets('{self.worksheet}')/usedRange"

    def _get(self, url: str, token: str) -> requests.Response:
        headers = {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}
        try:
            return requests.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"❌ Network error while requesting Graph used range: {e}")
            raise FetchError(f"Network error: {e}") from e

    def get_used_range(self, token: str) -> dict:
        """Used range of the worksheet; tries the drive item first, then the shared link."""
        resp = self._get(self.primary_url, token)
        if resp.ok:
            return self._payload(resp)

        log.info(f"⚠️ Primary workbook request failed ({resp.status_code}), trying shared link")
        fallback = self._get(self.fallback_url, token)
        if not fallback.ok:
            log.error(f"❌ Shared workbook request failed: {fallback.status_code}")
            raise FetchError(
                f"HTTP {fallback.status_code}",
                status=fallback.status_code,
                needs_reauth=fallback.status_code == 401,
            )
        return self._payload(fallback)

    @staticmethod
    def _payload(resp: requests.Response) -> dict:
        try:
            return resp.json()
        except ValueError as e:
            log.error(f"❌ Graph returned a non-JSON body ({resp.status_code}): {e}")
            raise FetchError(f"Invalid response body: {e}", status=resp.status_code) from e
