"""
Request and response values.

Both are frozen dataclasses: interceptors that want a different request or
response build a new one with replace()/with_header() and return it.
Headers are case-insensitive ordered multimaps (multidict.CIMultiDictProxy).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Union

from multidict import CIMultiDict, CIMultiDictProxy

from hookfetch.exceptions import ConfigurationError
from hookfetch.http.abort import AbortSignal

HeadersInput = Union[Mapping[str, str], Iterable[tuple[str, str]], None]

# Transport options passed through untouched
TRANSPORT_OPTIONS = ("mode", "credentials", "cache", "redirect", "referrer", "integrity")


def make_headers(headers: HeadersInput = None) -> CIMultiDictProxy[str]:
    """Build a read-only case-insensitive header multimap."""
    if isinstance(headers, CIMultiDictProxy):
        return headers
    return CIMultiDictProxy(CIMultiDict(headers or ()))


def merge_headers(base: HeadersInput, override: HeadersInput) -> CIMultiDictProxy[str]:
    """
    Merge two header sets.

    Every value of a name present in override replaces that name in base;
    names only present in base are kept.
    """
    merged = CIMultiDict(base or ())
    override_md = CIMultiDict(override or ())
    for name in set(override_md.keys()):
        merged.popall(name, None)
    merged.extend(override_md)
    return CIMultiDictProxy(merged)


@dataclass(frozen=True)
class Request:
    """
    An HTTP request flowing through the interceptor chain.

    Examples:
        >>> req = Request("https://api.example.com/users", headers={"Accept": "application/json"})
        >>> authed = req.with_header("Authorization", "Bearer abc")
        >>> req.headers.get("authorization") is None
        True
    """

    url: str
    method: str = "GET"
    headers: CIMultiDictProxy[str] = field(default_factory=make_headers)
    body: Any = None
    mode: str | None = None
    credentials: str | None = None
    cache: str | None = None
    redirect: str | None = None
    referrer: str | None = None
    integrity: str | None = None
    signal: AbortSignal | None = None
    # Per-request scratch space for interceptors (e.g. retry bookkeeping)
    extensions: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", make_headers(self.headers))

    @classmethod
    def from_init(cls, url: str, init: RequestInit | None = None) -> "Request":
        """Create a request from a URL and an optional RequestInit."""
        if init is None:
            return cls(url)
        return cls(url, **init.as_kwargs())

    def replace(self, **changes: Any) -> "Request":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def clone(self) -> "Request":
        """Return an independent copy (headers and extensions mapping copied)."""
        return dataclasses.replace(
            self,
            headers=CIMultiDictProxy(CIMultiDict(self.headers)),
            extensions=dict(self.extensions),
        )

    def with_header(self, name: str, value: str) -> "Request":
        """Return a copy with every value of name replaced by value."""
        headers = CIMultiDict(self.headers)
        headers[name] = value
        return self.replace(headers=CIMultiDictProxy(headers))

    def add_header(self, name: str, value: str) -> "Request":
        """Return a copy with value appended to name."""
        headers = CIMultiDict(self.headers)
        headers.add(name, value)
        return self.replace(headers=CIMultiDictProxy(headers))

    def without_header(self, name: str) -> "Request":
        headers = CIMultiDict(self.headers)
        headers.popall(name, None)
        return self.replace(headers=CIMultiDictProxy(headers))

    def with_extensions(self, **items: Any) -> "Request":
        """Return a copy whose extensions include items."""
        return self.replace(extensions={**self.extensions, **items})

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"


@dataclass(frozen=True)
class Response:
    """An HTTP response, from the transport or synthesized by an interceptor."""

    status: int
    headers: CIMultiDictProxy[str] = field(default_factory=make_headers)
    body: Any = None
    status_text: str = ""
    url: str | None = None
    request: Request | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", make_headers(self.headers))

    @property
    def ok(self) -> bool:
        """True for statuses in the 2xx success range."""
        return 200 <= self.status <= 299

    def replace(self, **changes: Any) -> "Response":
        return dataclasses.replace(self, **changes)

    def clone(self) -> "Response":
        return dataclasses.replace(self, headers=CIMultiDictProxy(CIMultiDict(self.headers)))

    def __repr__(self) -> str:
        return f"<Response [{self.status}]>"


@dataclass
class RequestInit:
    """
    Optional request fields, used as client defaults or per-call overrides.

    A field left as None is unset and does not override anything.
    """

    method: str | None = None
    headers: HeadersInput = None
    body: Any = None
    mode: str | None = None
    credentials: str | None = None
    cache: str | None = None
    redirect: str | None = None
    referrer: str | None = None
    integrity: str | None = None
    signal: AbortSignal | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RequestInit":
        """Build from a plain mapping, rejecting unknown keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown request option(s): {', '.join(sorted(unknown))}",
                details={"unknown": sorted(unknown)},
            )
        return cls(**dict(data))

    @classmethod
    def coerce(cls, value: "RequestInit | Mapping[str, Any] | None") -> "RequestInit":
        if isinstance(value, RequestInit):
            return value
        return cls.from_mapping(value)

    def merged_over(self, base: "RequestInit") -> "RequestInit":
        """
        Layer this init over base.

        Set fields win; headers are merged so that base headers survive unless
        this init sets the same name.
        """
        merged = {}
        for f in fields(self):
            if f.name == "headers":
                continue
            value = getattr(self, f.name)
            merged[f.name] = value if value is not None else getattr(base, f.name)
        merged["headers"] = merge_headers(base.headers, self.headers)
        return RequestInit(**merged)

    def as_kwargs(self) -> dict[str, Any]:
        """Request constructor kwargs for the fields that are set."""
        kwargs = {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
        if "headers" in kwargs:
            kwargs["headers"] = make_headers(kwargs["headers"])
        return kwargs
