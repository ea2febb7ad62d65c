from unittest.mock import MagicMock, patch

import pytest
import requests

from emailcrawler.config import CrawlConfig
from emailcrawler.errors import FetchError
from emailcrawler.fetcher import PageFetcher, fetch_bytes


def _response(status: int = 200, content: bytes = b"<html></html>", ctype: str = "text/html") -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.content = content
    r.headers = {"Content-Type": ctype}
    return r


@patch("emailcrawler.fetcher.requests.get")
def test_fetch_returns_body(mock_get) -> None:
    mock_get.return_value = _response(content=b"hello")
    fetcher = PageFetcher(timeout=3, user_agent="test-agent")
    assert fetcher.fetch("http://site.com/") == b"hello"
    kwargs = mock_get.call_args.kwargs
    assert kwargs["timeout"] == 3
    assert kwargs["headers"] == {"User-Agent": "test-agent"}
    assert kwargs["proxies"] is None


@patch("emailcrawler.fetcher.requests.get")
def test_non_2xx_is_fetch_error(mock_get) -> None:
    mock_get.return_value = _response(status=503)
    with pytest.raises(FetchError) as info:
        PageFetcher().fetch("http://site.com/")
    assert info.value.status == 503


@patch("emailcrawler.fetcher.time.sleep")
@patch("emailcrawler.fetcher.requests.get")
def test_retries_then_fetch_error(mock_get, mock_sleep) -> None:
    mock_get.side_effect = requests.Timeout("slow")
    with pytest.raises(FetchError) as info:
        PageFetcher(retries=2, backoff_seconds=1.0).fetch("http://site.com/")
    assert info.value.reason == "Timeout"
    assert mock_get.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]


@patch("emailcrawler.fetcher.time.sleep")
@patch("emailcrawler.fetcher.requests.get")
def test_retry_recovers(mock_get, mock_sleep) -> None:
    mock_get.side_effect = [requests.ConnectionError("reset"), _response(ctype="Text/HTML; charset=utf-8")]
    status, content, ctype = fetch_bytes("http://site.com/", retries=1, backoff_seconds=0)
    assert status == 200
    assert ctype == "text/html; charset=utf-8"


@patch("emailcrawler.fetcher.requests.get")
def test_from_config_uses_proxy(mock_get) -> None:
    mock_get.return_value = _response()
    cfg = CrawlConfig(proxy_host="10.0.0.1", proxy_port=3128)
    PageFetcher.from_config(cfg).fetch("http://site.com/")
    assert mock_get.call_args.kwargs["proxies"] == {"http": "http://10.0.0.1:3128", "https": "http://10.0.0.1:3128"}
