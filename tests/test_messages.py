"""
Tests for Request, Response, RequestInit and abort primitives.
"""

import asyncio

import pytest

from hookfetch.exceptions import ConfigurationError, RequestCancelledError
from hookfetch.http import AbortController, AbortSignal, abortable_sleep, run_abortable
from hookfetch.http.messages import Request, RequestInit, Response, merge_headers


class TestRequest:
    """Tests for the Request value."""

    def test_defaults(self):
        """Test a bare request is a GET with no headers or body."""
        req = Request("https://example.com")
        assert req.method == "GET"
        assert len(req.headers) == 0
        assert req.body is None
        assert req.signal is None
        assert req.extensions == {}

    def test_method_is_uppercased(self):
        req = Request("https://example.com", method="post")
        assert req.method == "POST"

    def test_headers_case_insensitive(self):
        """Test header lookup ignores case."""
        req = Request("https://example.com", headers={"Content-Type": "text/plain"})
        assert req.headers["content-type"] == "text/plain"

    def test_headers_multivalue(self):
        """Test a header name may carry several values."""
        req = Request("https://example.com", headers=[("Accept", "text/html"), ("Accept", "application/json")])
        assert req.headers.getall("accept") == ["text/html", "application/json"]

    def test_with_header_does_not_mutate(self):
        """Test with_header returns a new request and leaves the original alone."""
        req = Request("https://example.com")
        authed = req.with_header("Authorization", "Bearer abc")
        assert authed.headers["authorization"] == "Bearer abc"
        assert "Authorization" not in req.headers

    def test_with_header_replaces_all_values(self):
        req = Request("https://example.com", headers=[("X-A", "1"), ("x-a", "2")])
        assert req.with_header("X-A", "3").headers.getall("X-A") == ["3"]

    def test_add_and_remove_header(self):
        req = Request("https://example.com", headers={"X-A": "1"}).add_header("X-A", "2")
        assert req.headers.getall("x-a") == ["1", "2"]
        assert "X-A" not in req.without_header("x-a").headers

    def test_headers_are_read_only(self):
        req = Request("https://example.com")
        with pytest.raises(TypeError):
            req.headers["X-A"] = "1"  # type: ignore[index]

    def test_frozen(self):
        req = Request("https://example.com")
        with pytest.raises(AttributeError):
            req.url = "https://other.example.com"  # type: ignore[misc]

    def test_clone_is_independent(self):
        """Test clone copies headers and the extensions mapping."""
        req = Request("https://example.com", headers={"X-A": "1"}, extensions={"k": 1})
        clone = req.clone()
        assert clone == req
        assert clone is not req
        clone.extensions["k"] = 2
        assert req.extensions["k"] == 1

    def test_with_extensions(self):
        req = Request("https://example.com").with_extensions(trace_id="t1")
        assert req.extensions == {"trace_id": "t1"}

    def test_from_init(self):
        """Test building from a RequestInit uses only the fields that are set."""
        req = Request.from_init(
            "https://example.com",
            RequestInit(method="PUT", headers={"X-A": "1"}, body=b"data", credentials="include"),
        )
        assert req.method == "PUT"
        assert req.headers["X-A"] == "1"
        assert req.body == b"data"
        assert req.credentials == "include"
        assert req.mode is None


class TestResponse:
    """Tests for the Response value."""

    @pytest.mark.parametrize("status,ok", [(199, False), (200, True), (204, True), (299, True), (300, False), (503, False)])
    def test_ok_range(self, status, ok):
        """Test ok covers exactly the 2xx range."""
        assert Response(status).ok is ok

    def test_replace(self):
        res = Response(200, body=b"a")
        assert res.replace(status=201).status == 201
        assert res.status == 200


class TestRequestInit:
    """Tests for RequestInit merging."""

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="Unknown request option"):
            RequestInit.from_mapping({"methdo": "GET"})

    def test_coerce(self):
        init = RequestInit(method="GET")
        assert RequestInit.coerce(init) is init
        assert RequestInit.coerce(None) == RequestInit()
        assert RequestInit.coerce({"cache": "no-store"}).cache == "no-store"

    def test_merged_over_prefers_set_fields(self):
        base = RequestInit(method="GET", credentials="same-origin", headers={"Accept": "text/html"})
        merged = RequestInit(method="POST", headers={"X-A": "1"}).merged_over(base)
        assert merged.method == "POST"
        assert merged.credentials == "same-origin"
        assert merged.headers["Accept"] == "text/html"
        assert merged.headers["X-A"] == "1"

    def test_merge_headers_override_replaces_name(self):
        merged = merge_headers({"Accept": "text/html", "X-A": "1"}, {"accept": "application/json"})
        assert merged.getall("Accept") == ["application/json"]
        assert merged["X-A"] == "1"


class TestAbort:
    """Tests for AbortController and abortable waits."""

    def test_abort_sets_reason_once(self):
        controller = AbortController()
        assert controller.signal.aborted is False
        controller.abort("first")
        controller.abort("second")
        assert controller.signal.aborted is True
        assert controller.signal.reason == "first"

    def test_throw_if_aborted(self):
        controller = AbortController()
        controller.signal.throw_if_aborted()
        controller.abort("stop")
        with pytest.raises(RequestCancelledError, match="stop"):
            controller.signal.throw_if_aborted()

    @pytest.mark.asyncio
    async def test_abortable_sleep_completes(self):
        """Test the sleep returns normally when nothing aborts it."""
        controller = AbortController()
        await abortable_sleep(1, controller.signal)

    @pytest.mark.asyncio
    async def test_abortable_sleep_cancelled(self):
        """Test aborting during the wait raises RequestCancelledError promptly."""
        controller = AbortController()
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, controller.abort, "user cancelled")

        start = loop.time()
        with pytest.raises(RequestCancelledError):
            await abortable_sleep(10_000, controller.signal)
        assert loop.time() - start < 5

    @pytest.mark.asyncio
    async def test_run_abortable_pre_aborted_never_starts(self):
        """Test a pre-aborted signal cancels without running the awaitable."""
        controller = AbortController()
        controller.abort()
        started = False

        async def work():
            nonlocal started
            started = True

        with pytest.raises(RequestCancelledError):
            await run_abortable(work(), controller.signal)
        assert started is False

    @pytest.mark.asyncio
    async def test_timeout_signal(self):
        """Test AbortSignal.timeout aborts itself after the delay."""
        signal = AbortSignal.timeout(10)
        await asyncio.wait_for(signal.wait(), timeout=5)
        assert signal.aborted
