"""
Tests for Hub / Neynar HTTP collectors
"""

import pytest
import requests
from unittest.mock import MagicMock

from cast_analytics.config import CastAnalyticsConfig, HTTPConfig
from cast_analytics.errors import ConfigurationError, SourceUnavailableError
from cast_analytics.collectors.hub import HubClient, NeynarClient, build_hub_client, build_session


def mock_session(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    """Helper: requests.Session mock"""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    session = MagicMock()
    session.get.return_value = response
    return session


def test_hub_casts_by_fid_request():
    """castsByFid：query 參數與 api_key header"""
    session = mock_session(payload={"messages": []})
    client = HubClient("https://hub.example/v1/", "secret", HTTPConfig(), session=session)

    payload = client.get_recent_posts(774643, page_size=25)

    assert payload == {"messages": []}
    args, kwargs = session.get.call_args
    assert args[0] == "https://hub.example/v1/castsByFid"
    assert kwargs["params"] == {"fid": 774643, "pageSize": 25, "reverse": "true"}
    assert kwargs["headers"] == {"api_key": "secret"}
    assert kwargs["timeout"] == 20.0


def test_neynar_user_request():
    """user/bulk：fids 參數與 x-api-key header"""
    session = mock_session(payload={"users": []})
    client = NeynarClient("https://api.example/v2/farcaster", "secret", HTTPConfig(), session=session)

    client.get_user(99)

    args, kwargs = session.get.call_args
    assert args[0] == "https://api.example/v2/farcaster/user/bulk"
    assert kwargs["params"] == {"fids": "99"}
    assert kwargs["headers"] == {"x-api-key": "secret"}


def test_neynar_user_casts_request():
    session = mock_session(payload={"casts": []})
    client = NeynarClient("https://api.example/v2/farcaster", "secret", HTTPConfig(), session=session)

    client.get_user_casts(99, limit=10)

    args, kwargs = session.get.call_args
    assert args[0] == "https://api.example/v2/farcaster/user/casts"
    assert kwargs["params"] == {"fid": 99, "limit": 10}


@pytest.mark.parametrize("status_code", [400, 401, 402, 404, 500, 503])
def test_http_error_status_raises(status_code):
    """status >= 400 -> SourceUnavailableError"""
    session = mock_session(status_code=status_code, text="nope")
    client = HubClient("https://hub.example/v1", "secret", HTTPConfig(), session=session)

    with pytest.raises(SourceUnavailableError) as exc_info:
        client.get_recent_posts(1)

    assert str(status_code) in str(exc_info.value)


def test_transport_error_raises():
    """連線失敗 -> SourceUnavailableError"""
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("connection refused")
    client = HubClient("https://hub.example/v1", "secret", HTTPConfig(), session=session)

    with pytest.raises(SourceUnavailableError):
        client.get_recent_posts(1)


def test_invalid_json_raises():
    session = mock_session()
    session.get.return_value.json.side_effect = ValueError("Expecting value")
    client = HubClient("https://hub.example/v1", "secret", HTTPConfig(), session=session)

    with pytest.raises(SourceUnavailableError):
        client.get_recent_posts(1)


def test_missing_api_key_raises_before_request():
    """沒有 API key -> ConfigurationError，不發出請求"""
    session = mock_session()
    client = HubClient("https://hub.example/v1", None, HTTPConfig(), session=session)

    with pytest.raises(ConfigurationError):
        client.get_recent_posts(1)
    session.get.assert_not_called()


def test_build_hub_client_reads_env(monkeypatch):
    """API key 從設定指定的環境變數讀取"""
    monkeypatch.setenv("TEST_HUB_KEY", "from-env")
    config = CastAnalyticsConfig(hub={"api_key_env": "TEST_HUB_KEY", "base_url": "https://hub.example/v1"})

    client = build_hub_client(config, session=mock_session())

    assert client.api_key == "from-env"
    assert client.base_url == "https://hub.example/v1"


def test_build_session_mounts_retry_adapter():
    """session 層的 urllib3 Retry"""
    session = build_session(HTTPConfig(max_retries=2, backoff_factor=0.1))

    adapter = session.get_adapter("https://hub.example/v1")
    assert adapter.max_retries.total == 2
    assert 503 in adapter.max_retries.status_forcelist
    session.close()


def test_close_closes_session():
    session = mock_session()
    client = HubClient("https://hub.example/v1", "secret", HTTPConfig(), session=session)

    client.close()

    session.close.assert_called_once()
