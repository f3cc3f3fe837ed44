"""
Response - the value route handlers return.

Handlers may also return a plain ``str`` (text) or ``dict``/``list``
(JSON); :meth:`Response.coerce` turns those into responses.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from .faults import Fault


logger = logging.getLogger("wirebind.response")


def _json_default_serializer(o):
    """Default JSON serializer for non-standard types."""
    if isinstance(o, (set, tuple)):
        return list(o)
    if hasattr(o, "isoformat"):
        return o.isoformat()
    return str(o)


class Response:
    """
    HTTP response value.

    Header names are stored lower-cased.
    """

    def __init__(
        self,
        content: bytes | str | Mapping | list = b"",
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        media_type: Optional[str] = None,
        *,
        encoding: str = "utf-8",
    ):
        self.status = status
        self.encoding = encoding
        self._content = content

        self._headers: Dict[str, str] = {}
        if headers:
            for key, value in headers.items():
                self._headers[key.lower()] = value

        if media_type:
            self._headers["content-type"] = media_type
        elif "content-type" not in self._headers:
            self._headers["content-type"] = self._detect_media_type(content)

    @property
    def headers(self) -> Dict[str, str]:
        return self._headers

    @property
    def body(self) -> bytes:
        return self._encode_body(self._content)

    def _detect_media_type(self, content: Any) -> str:
        if isinstance(content, (dict, list)):
            return "application/json; charset=utf-8"
        if isinstance(content, str):
            return "text/plain; charset=utf-8"
        return "application/octet-stream"

    # ========================================================================
    # Factory Methods
    # ========================================================================

    @classmethod
    def json(cls, obj: Any, status: int = 200, *, headers: Optional[Mapping[str, str]] = None) -> "Response":
        content = json.dumps(obj, default=_json_default_serializer)
        return cls(
            content=content,
            status=status,
            headers=headers,
            media_type="application/json; charset=utf-8",
        )

    @classmethod
    def text(cls, content: str, status: int = 200, **kwargs) -> "Response":
        return cls(content=content, status=status, media_type="text/plain; charset=utf-8", **kwargs)

    @classmethod
    def html(cls, content: str, status: int = 200, **kwargs) -> "Response":
        return cls(content=content, status=status, media_type="text/html; charset=utf-8", **kwargs)

    @classmethod
    def from_fault(cls, fault: Fault, status: int = 500) -> "Response":
        return cls.json({"error": fault.to_dict()}, status=status)

    @classmethod
    def coerce(cls, value: Any) -> "Response":
        """Turn a handler's return value into a Response."""
        if isinstance(value, Response):
            return value
        if value is None:
            response = cls(b"", status=204)
            response.headers.pop("content-type", None)
            return response
        if isinstance(value, (dict, list)):
            return cls.json(value)
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, bytes):
            return cls(value)
        raise TypeError(f"Handler returned unsupported value of type {type(value).__name__}")

    # ========================================================================
    # Headers
    # ========================================================================

    def set_header(self, name: str, value: str) -> None:
        self._headers[name.lower()] = value

    def setdefault_header(self, name: str, value: str) -> None:
        self._headers.setdefault(name.lower(), value)

    def json_body(self) -> Any:
        """Decode a JSON body (mostly for tests)."""
        return json.loads(self.body.decode(self.encoding))

    # ========================================================================
    # ASGI
    # ========================================================================

    async def send_asgi(self, send: Callable[[dict], Awaitable[None]]) -> None:
        body = self.body
        self._headers.setdefault("content-length", str(len(body)))
        await send({
            "type": "http.response.start",
            "status": self.status,
            "headers": self._prepare_headers(),
        })
        await send({"type": "http.response.body", "body": body})

    def _prepare_headers(self) -> List[tuple]:
        return [
            (name.encode("latin1"), value.encode("latin1"))
            for name, value in self._headers.items()
        ]

    def _encode_body(self, content: Any) -> bytes:
        if isinstance(content, bytes):
            return content
        if isinstance(content, str):
            return content.encode(self.encoding)
        if isinstance(content, (dict, list)):
            return json.dumps(content, default=_json_default_serializer).encode(self.encoding)
        return str(content).encode(self.encoding)

    def __repr__(self) -> str:
        return f"<Response status={self.status} content-type={self._headers.get('content-type')!r}>"


# ============================================================================
# Convenience Response Factories
# ============================================================================

def NotFound(message: str = "Not Found") -> Response:
    """404 Not Found response."""
    return Response.json({"error": message}, status=404)


def MethodNotAllowed(allowed: List[str]) -> Response:
    """405 Method Not Allowed response."""
    return Response.json(
        {"error": "Method Not Allowed"},
        status=405,
        headers={"allow": ", ".join(sorted(allowed))},
    )


def ServerError(message: str = "Internal Server Error") -> Response:
    """500 Internal Server Error response."""
    return Response.json({"error": message}, status=500)
