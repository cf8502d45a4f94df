"""HTTP responses sent over ASGI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

if TYPE_CHECKING:
    from collections.abc import Mapping

    from billfold._types import Send


class Response:
    """A plain HTTP response with a bytes body."""

    __slots__ = ("body", "headers", "media_type", "status_code")

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        media_type: str = "text/plain; charset=utf-8",
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.media_type = media_type
        self.headers: dict[str, str] = dict(headers or {})

    def set_headers(self, headers: Mapping[str, str]) -> None:
        """Set (overwriting) each header in *headers*."""
        lowered = {name.lower() for name in headers}
        self.headers = {k: v for k, v in self.headers.items() if k.lower() not in lowered}
        self.headers.update(headers)

    def _raw_headers(self) -> list[tuple[bytes, bytes]]:
        raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in self.headers.items()]
        if self.body or self.status_code not in (204, 304):
            raw.append((b"content-type", self.media_type.encode("latin-1")))
            raw.append((b"content-length", str(len(self.body)).encode("latin-1")))
        return raw

    async def send(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self._raw_headers(),
            }
        )
        await send({"type": "http.response.body", "body": self.body})

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code})"


class JSONResponse(Response):
    """A response whose body is *content* encoded as JSON.

    Pydantic models (and lists of them) are dumped in JSON mode first.
    """

    __slots__ = ()

    def __init__(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        body = json.dumps(_jsonable(content), separators=(",", ":")).encode("utf-8")
        super().__init__(body, status_code, headers, media_type="application/json")


def _jsonable(content: Any) -> Any:
    if isinstance(content, BaseModel):
        return content.model_dump(mode="json")
    if isinstance(content, list | tuple):
        return [_jsonable(item) for item in content]
    if isinstance(content, dict):
        return {key: _jsonable(value) for key, value in content.items()}
    return content
