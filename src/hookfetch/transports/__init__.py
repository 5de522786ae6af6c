"""
Transport adapters implementing transport(request) -> Response.
"""

from hookfetch.transports.aiohttp_transport import AiohttpTransport

__all__ = ["AiohttpTransport"]
