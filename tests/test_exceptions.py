"""
Tests for the exception hierarchy.
"""

import pytest

from hookfetch.exceptions import (
    ConfigurationError,
    HookfetchError,
    HttpStatusError,
    InterceptorError,
    RequestCancelledError,
    TransportError,
)
from hookfetch.http.messages import Request, Response


class TestHierarchy:
    """Verify all exceptions inherit from HookfetchError."""

    @pytest.mark.parametrize(
        "exc_class",
        [
            ConfigurationError,
            TransportError,
            InterceptorError,
            HttpStatusError,
            RequestCancelledError,
        ],
    )
    def test_inherits_from_hookfetch_error(self, exc_class):
        assert issubclass(exc_class, HookfetchError)

    def test_cancellation_is_not_transport_error(self):
        assert not issubclass(RequestCancelledError, TransportError)


class TestExceptionMessages:
    """Test exception constructors and details."""

    def test_hookfetch_error(self):
        e = HookfetchError("boom", details={"key": "val"})
        assert str(e) == "boom"
        assert e.message == "boom"
        assert e.details == {"key": "val"}

    def test_transport_error(self):
        cause = OSError("connection reset")
        request = Request("https://x.test/a", method="post")
        e = TransportError("send failed", request=request, cause=cause)
        assert e.request is request
        assert e.__cause__ is cause
        assert e.details == {"url": "https://x.test/a", "method": "POST"}

    def test_transport_error_without_request(self):
        e = TransportError("send failed")
        assert e.request is None
        assert e.details == {}

    def test_interceptor_error(self):
        e = InterceptorError("auth", "request", "expected Request, got NoneType")
        assert str(e) == "Interceptor 'auth' request hook: expected Request, got NoneType"
        assert e.interceptor_name == "auth"
        assert e.hook == "request"

    def test_http_status_error(self):
        response = Response(503, status_text="Service Unavailable", url="https://x.test")
        e = HttpStatusError(response)
        assert str(e) == "HTTP 503 Service Unavailable"
        assert e.status == 503
        assert e.response is response
        assert e.details["url"] == "https://x.test"

    def test_http_status_error_without_text(self):
        assert str(HttpStatusError(Response(418))) == "HTTP 418"

    def test_request_cancelled_error(self):
        request = Request("https://x.test")
        e = RequestCancelledError(request=request)
        assert str(e) == "Request was cancelled"
        assert e.request is request

    def test_catchable_with_base(self):
        """All exceptions can be caught with HookfetchError."""
        with pytest.raises(HookfetchError):
            raise ConfigurationError("bad config")

        with pytest.raises(HookfetchError):
            raise HttpStatusError(Response(500))
