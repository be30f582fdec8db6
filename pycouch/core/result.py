"""Models for the JSON body of CouchDB view responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pycouch.utils.types import DocumentData


class Row(BaseModel):
    """A single row of a view result.

    Reduce rows carry no ``id``; map rows always do.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str | None = None
    key: Any = None
    value: Any = None
    doc: DocumentData | None = None


class ViewQueryResult(BaseModel):
    """Parsed body of a ``_view`` or ``_all_docs`` response.

    ``rows`` is required: every view body has it, reduce results included, so
    a body without it is not a view response. ``offset`` is the position of
    ``rows[0]`` within the whole view, counted in the direction the view was
    read.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    rows: list[Row]
    total_rows: int = 0
    offset: int = 0
    update_seq: Any = None

    @field_validator("total_rows", "offset", mode="before")
    @classmethod
    def _null_as_zero(cls, value: Any) -> Any:
        # CouchDB sends null offsets for multi-key requests
        return 0 if value is None else value


def row_item(row: Row, document_class: type | None = None, include_docs: bool = True) -> Any:
    """Extract the caller-facing item from a row.

    The row's document is used when docs were requested and present,
    otherwise its value. Dict items are validated into ``document_class``.
    """
    item = row.doc if include_docs and row.doc is not None else row.value
    if document_class is not None and isinstance(item, dict):
        return document_class.model_validate(item)
    return item
