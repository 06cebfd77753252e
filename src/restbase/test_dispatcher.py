"""Tests for the invalidation request dispatcher."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from restbase.services.dispatcher import (
    HttpTransport,
    InvalidationRequest,
    RequestDispatcher,
    TransportResponse,
    get_dispatcher,
)


def make_response(status_code):
    response = MagicMock()
    response.status_code = status_code
    return response


class TestInvalidationRequest:
    """Tests for InvalidationRequest.no_cache."""

    def test_always_sets_no_cache(self):
        request = InvalidationRequest.no_cache("http://cache/x", **{"X-Restbase-Mode": "files"})

        assert request.method == "GET"
        assert request.headers == {"X-Restbase-Mode": "files", "Cache-control": "no-cache"}


class TestHttpTransport:
    """Tests for HttpTransport.run_multi."""

    def test_empty_batch(self):
        transport = HttpTransport(timeout=5, session=MagicMock())

        assert transport.run_multi([]) == []

    def test_success_passes_headers_and_timeout(self):
        session = MagicMock()
        session.request.return_value = make_response(200)
        transport = HttpTransport(timeout=5, session=session)

        results = transport.run_multi([InvalidationRequest.no_cache("http://cache/a")])

        assert results == [TransportResponse(status=200)]
        session.request.assert_called_once_with(
            "GET", "http://cache/a", headers={"Cache-control": "no-cache"}, timeout=5
        )

    def test_non_2xx_is_an_error(self):
        session = MagicMock()
        session.request.return_value = make_response(503)
        transport = HttpTransport(timeout=5, session=session)

        [result] = transport.run_multi([InvalidationRequest.no_cache("http://cache/a")])

        assert result.status == 503
        assert "HTTP 503" in result.error

    def test_connection_error_is_captured(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        transport = HttpTransport(timeout=5, session=session)

        [result] = transport.run_multi([InvalidationRequest.no_cache("http://cache/a")])

        assert result.status is None
        assert "ConnectionError" in result.error

    def test_results_keep_request_order(self):
        session = MagicMock()
        session.request.side_effect = lambda method, url, **kwargs: make_response(404 if url.endswith("b") else 200)
        transport = HttpTransport(timeout=5, session=session)
        batch = [InvalidationRequest.no_cache(f"http://cache/{name}") for name in "abc"]

        results = transport.run_multi(batch)

        assert [r.status for r in results] == [200, 404, 200]


class TestRequestDispatcher:
    """Tests for RequestDispatcher.dispatch."""

    def test_empty_batch_succeeds(self):
        transport = MagicMock()
        dispatcher = RequestDispatcher(transport)

        result = dispatcher.dispatch([])

        assert result.ok is True
        assert result.error is None
        transport.run_multi.assert_not_called()

    def test_all_succeed(self):
        transport = MagicMock()
        transport.run_multi.return_value = [TransportResponse(status=200)] * 3
        dispatcher = RequestDispatcher(transport)
        batch = [InvalidationRequest.no_cache(f"http://cache/{i}") for i in range(3)]

        result = dispatcher.dispatch(batch)

        assert result.ok is True
        assert result.count == 3
        transport.run_multi.assert_called_once_with(batch, max_workers=3)

    @pytest.mark.parametrize("others_fail", [False, True])
    def test_second_of_three_failing_reports_its_error(self, others_fail):
        other = TransportResponse(error="HTTP 500 other") if others_fail else TransportResponse(status=200)
        transport = MagicMock()
        transport.run_multi.return_value = [
            TransportResponse(status=200),
            TransportResponse(error="HTTP 502 for GET http://cache/1"),
            other,
        ]
        dispatcher = RequestDispatcher(transport)
        batch = [InvalidationRequest.no_cache(f"http://cache/{i}") for i in range(3)]

        result = dispatcher.dispatch(batch)

        assert result.ok is False
        assert result.error == "HTTP 502 for GET http://cache/1"


def test_get_dispatcher_reuses_session():
    with patch("restbase.services.dispatcher._dispatcher", None):
        dispatcher = get_dispatcher()
        assert get_dispatcher() is dispatcher

    assert isinstance(dispatcher.transport.session, requests.Session)
