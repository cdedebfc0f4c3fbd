"""
Farcaster Hub / Neynar collectors

只負責抓取原始 JSON；payload 形狀的處理交給 processing.adapters。
Retry / backoff 由 urllib3 Retry 在 session 層處理，失敗時拋出 SourceUnavailableError。
"""

from typing import Any, Dict, Optional
import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cast_analytics.config import CastAnalyticsConfig, HTTPConfig
from cast_analytics.errors import ConfigurationError, SourceUnavailableError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


def build_session(http: HTTPConfig) -> requests.Session:
    """
    建立帶 retry 的 requests.Session

    Args:
        http: HTTP 設定

    Returns:
        requests.Session
    """
    session = requests.Session()
    session.headers.update({"accept": "application/json"})

    retry = Retry(
        total=http.max_retries,
        connect=http.max_retries,
        read=http.max_retries,
        backoff_factor=http.backoff_factor,
        status_forcelist=RETRYABLE_STATUS_CODES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class _JSONClient:
    """共用的 GET + JSON 解析"""

    source = "http"
    auth_header = "api_key"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        http: HTTPConfig,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = http.timeout_seconds
        self.session = session or build_session(http)

    def _auth_headers(self) -> Dict[str, str]:
        return {self.auth_header: self.api_key}

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        if not self.api_key:
            raise ConfigurationError(f"[{self.source}] API key missing in env")

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._auth_headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"[{self.source}] Request failed url={url} error={e}")
            raise SourceUnavailableError(f"{self.source}: request failed: {e}") from e

        if response.status_code >= 400:
            body = response.text.strip()
            body = body[:400] + ("..." if len(body) > 400 else "")
            logger.error(f"[{self.source}] HTTP {response.status_code} url={url} body={body}")
            raise SourceUnavailableError(
                f"{self.source}: HTTP {response.status_code} calling {url}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError(f"{self.source}: response was not valid JSON") from e

    def close(self):
        self.session.close()


class HubClient(_JSONClient):
    """Farcaster Hub HTTP API (castsByFid)"""

    source = "hub"
    auth_header = "api_key"

    def get_recent_posts(self, fid: int, page_size: int = 50) -> Any:
        """
        GET /castsByFid (新到舊)

        Args:
            fid: Farcaster ID
            page_size: 筆數

        Returns:
            原始 payload (形狀不固定)
        """
        logger.info(f"Fetching casts from Hub: fid={fid}, pageSize={page_size}")
        return self._get_json(
            "castsByFid",
            {"fid": fid, "pageSize": page_size, "reverse": "true"}
        )


class NeynarClient(_JSONClient):
    """Neynar v2 API (user profile, user casts)"""

    source = "neynar"
    auth_header = "x-api-key"

    def get_user(self, fid: int) -> Any:
        """GET /user/bulk?fids=<fid>"""
        logger.info(f"Fetching user from Neynar: fid={fid}")
        return self._get_json("user/bulk", {"fids": str(fid)})

    def get_user_casts(self, fid: int, limit: int = 50) -> Any:
        """
        GET /user/casts (含 reactions / replies 計數)

        部分方案會回傳 402，屬於預期的 SourceUnavailableError。
        """
        logger.info(f"Fetching user casts from Neynar: fid={fid}, limit={limit}")
        return self._get_json("user/casts", {"fid": fid, "limit": limit})


def build_hub_client(config: CastAnalyticsConfig, session: Optional[requests.Session] = None) -> HubClient:
    api_key = config.get_hub_api_key()
    if not api_key:
        logger.warning(f"[hub] {config.hub.api_key_env} is missing, Hub calls will fail until it is set")
    return HubClient(config.hub.base_url, api_key, config.http, session=session)


def build_neynar_client(config: CastAnalyticsConfig, session: Optional[requests.Session] = None) -> NeynarClient:
    api_key = config.get_neynar_api_key()
    if not api_key:
        logger.warning(f"[neynar] {config.neynar.api_key_env} is missing, Neynar calls will fail until it is set")
    return NeynarClient(config.neynar.base_url, api_key, config.http, session=session)
