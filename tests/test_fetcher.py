"""Tests for WebFetcher."""

from unittest.mock import Mock, patch

import pytest
import requests

from image_crawler.crawler.fetcher import FetchError, FetchResult, WebFetcher


def make_response(status_code=200, content=b"<html></html>", headers=None):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.headers = headers or {'Content-Type': 'text/html'}
    return response


class TestWebFetcher:
    """Test cases for WebFetcher."""

    @pytest.fixture
    def fetcher(self):
        fetcher = WebFetcher(user_agent="TestAgent/1.0", request_timeout=5)
        yield fetcher
        fetcher.close()

    def test_successful_fetch(self, fetcher):
        with patch.object(fetcher.session, 'get', return_value=make_response(content=b"body")) as get:
            result = fetcher.fetch("https://example.com/")

        get.assert_called_once_with("https://example.com/", timeout=5)
        assert result.ok
        assert result.status_code == 200
        assert result.content == b"body"
        assert fetcher.get_stats()['successful_requests'] == 1
        assert fetcher.get_stats()['total_bytes_downloaded'] == 4

    def test_sets_user_agent(self, fetcher):
        assert fetcher.session.headers['User-Agent'] == "TestAgent/1.0"

    def test_non_2xx_passed_through_by_default(self, fetcher):
        with patch.object(fetcher.session, 'get', return_value=make_response(404, b"missing")):
            result = fetcher.fetch("https://example.com/missing")

        assert result.ok
        assert result.status_code == 404
        assert result.content == b"missing"

    def test_non_2xx_fails_when_configured(self):
        fetcher = WebFetcher(fail_on_http_error=True)

        with patch.object(fetcher.session, 'get', return_value=make_response(500, b"oops")):
            result = fetcher.fetch("https://example.com/broken")

        assert not result.ok
        assert result.error == "HTTP 500"
        assert result.content is None
        assert fetcher.get_stats()['failed_requests'] == 1

    def test_timeout_is_reported(self, fetcher):
        with patch.object(fetcher.session, 'get', side_effect=requests.exceptions.Timeout()):
            result = fetcher.fetch("https://slow.example.com/")

        assert not result.ok
        assert "timeout" in result.error.lower()
        assert result.status_code == 0
        assert fetcher.get_stats()['failed_requests'] == 1

    def test_connection_error_is_reported(self, fetcher):
        error = requests.exceptions.ConnectionError("DNS failure")
        with patch.object(fetcher.session, 'get', side_effect=error):
            result = fetcher.fetch("https://nowhere.invalid/")

        assert not result.ok
        assert "DNS failure" in result.error

    def test_invalid_url_is_reported(self, fetcher):
        result = fetcher.fetch("not a url")

        assert not result.ok
        assert result.content is None

    def test_never_retries(self, fetcher):
        with patch.object(fetcher.session, 'get', side_effect=requests.exceptions.ConnectionError()) as get:
            fetcher.fetch("https://example.com/")

        assert get.call_count == 1

    def test_reset_stats(self, fetcher):
        with patch.object(fetcher.session, 'get', return_value=make_response()):
            fetcher.fetch("https://example.com/")

        fetcher.reset_stats()

        assert set(fetcher.get_stats().values()) == {0}

    def test_context_manager_closes_session(self):
        with patch.object(requests.Session, 'close') as close:
            with WebFetcher():
                pass

        close.assert_called_once()


class TestFetchResult:
    """Test cases for FetchResult."""

    def test_raise_for_error(self):
        result = FetchResult(url="https://example.com/", status_code=0, error="Request timeout")

        with pytest.raises(FetchError) as excinfo:
            result.raise_for_error()

        assert excinfo.value.url == "https://example.com/"
        assert excinfo.value.reason == "Request timeout"

    def test_raise_for_error_on_success_is_noop(self):
        FetchResult(url="https://example.com/", status_code=200, content=b"").raise_for_error()
