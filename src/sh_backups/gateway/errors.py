"""Decoding of backend error bodies.

The backend reports failures as ``{"detail": ...}`` where ``detail`` is
either a plain string or a list of validation items. Anything else is kept
as raw text.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, TypeAdapter, ValidationError


class DetailItem(BaseModel):
    """One validation problem reported by the backend."""

    type: str = ""
    loc: list[str | int] = []
    msg: str = ""
    input: Any = None

    def render(self) -> str:
        location = "->".join(str(part) for part in self.loc)
        return f"Type: {self.type}, Location: {location}, Message: {self.msg}"


class SimpleDetail(BaseModel):
    kind: Literal["simple"] = "simple"
    message: str

    def render(self) -> str:
        return self.message


class StructuredDetail(BaseModel):
    kind: Literal["structured"] = "structured"
    items: list[DetailItem]

    def render(self) -> str:
        return "; ".join(item.render() for item in self.items)


class RawDetail(BaseModel):
    kind: Literal["raw"] = "raw"
    text: str

    def render(self) -> str:
        return f"Unrecognized error body: {self.text}"


ErrorDetail = SimpleDetail | StructuredDetail | RawDetail

_items_adapter = TypeAdapter(list[DetailItem])


def decode_error_detail(body: bytes | str) -> ErrorDetail:
    """Decode an error body, trying the string shape, then the list shape."""
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        payload = json.loads(text)
    except ValueError:
        return RawDetail(text=text)

    if not isinstance(payload, dict) or "detail" not in payload:
        return RawDetail(text=text)

    detail = payload["detail"]
    if isinstance(detail, str):
        return SimpleDetail(message=detail)
    try:
        return StructuredDetail(items=_items_adapter.validate_python(detail))
    except ValidationError:
        return RawDetail(text=json.dumps(detail))


def format_error_body(status: int | str, body: bytes | str) -> str:
    """Return a one-line description of a failed response."""
    return f"HTTP Error {status}: {decode_error_detail(body).render()}"
