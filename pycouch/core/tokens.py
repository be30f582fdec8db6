"""Opaque continuation tokens for view pagination.

A token is compact JSON wrapped in unpadded URL-safe base64::

    {"s_k": <start key>, "s_k_d_i": "<doc id>",
     "c": {"c_k": <anchor key>, "c_k_d_i": "<anchor doc id>"},
     "a": "n" | "p"}

``s_k``/``s_k_d_i`` is where a NEXT read starts. ``c`` is the first row of the
page that issued the token, which is where a PREVIOUS read starts.
"""

from __future__ import annotations

import base64
import binascii
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pycouch.utils.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class PageAction(str, Enum):
    NEXT = "n"
    PREVIOUS = "p"


# Code builds cursors by field name; decode_token accepts the wire names only.
_TOKEN_CONFIG = ConfigDict(
    frozen=True,
    validate_by_name=True,
    validate_by_alias=True,
    extra="forbid",
)


def _as_json_key(value: Any) -> Any:
    """Store tuples as lists, the shape a key has after a JSON round trip."""
    if isinstance(value, (list, tuple)):
        return [_as_json_key(v) for v in value]
    if isinstance(value, dict):
        return {k: _as_json_key(v) for k, v in value.items()}
    return value


class PageAnchor(BaseModel):
    """Key and document id of the first row of a page."""

    model_config = _TOKEN_CONFIG

    key: Any = Field(alias="c_k")
    doc_id: str = Field(alias="c_k_d_i")

    @field_validator("key", mode="before")
    @classmethod
    def _normalize_key(cls, value: Any) -> Any:
        return _as_json_key(value)


class PageCursor(BaseModel):
    """Decoded state of a continuation token."""

    model_config = _TOKEN_CONFIG

    action: PageAction = Field(alias="a")
    target_start_key: Any = Field(alias="s_k")
    target_start_key_doc_id: str = Field(alias="s_k_d_i")
    anchor: PageAnchor = Field(alias="c")

    @field_validator("target_start_key", mode="before")
    @classmethod
    def _normalize_key(cls, value: Any) -> Any:
        return _as_json_key(value)

    @property
    def anchor_start_key(self) -> Any:
        return self.anchor.key

    @property
    def anchor_start_key_doc_id(self) -> str:
        return self.anchor.doc_id


def encode_token(cursor: PageCursor) -> str:
    """Serialize a cursor into an opaque, URL-safe token."""
    raw = cursor.model_dump_json(by_alias=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_token(token: str) -> PageCursor:
    """Decode a token produced by :func:`encode_token`.

    Args:
        token: Token string, with or without base64 padding

    Returns:
        The decoded cursor

    Raises:
        InvalidTokenError: If the token is not base64, not JSON, or not a cursor
            keyed by the wire field names
    """
    if not isinstance(token, str):
        raise InvalidTokenError(f"Token must be a string, got {type(token).__name__}")
    if not token:
        raise InvalidTokenError("Empty token provided")

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    except (UnicodeEncodeError, binascii.Error) as e:
        logger.debug("Rejected token with invalid base64: %s", e)
        raise InvalidTokenError(f"Invalid token encoding: {e}") from e

    try:
        cursor = PageCursor.model_validate_json(raw, by_alias=True, by_name=False)
    except ValidationError as e:
        logger.debug("Rejected token with invalid payload: %s", e)
        raise InvalidTokenError(f"Invalid token format: {e}") from e

    logger.debug("Paging token decoded: %r", cursor)
    return cursor
