from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from pycouch.core.view import View

from pydantic import BaseModel, Field

from pycouch.utils.settings import SettingsResolver

# Global registry mapping class name -> Document subclass
_document_registry: dict[str, type[Document]] = {}


class Document(BaseModel):
    """Base document class for CouchDB models.

    Rows fetched with ``include_docs`` are validated into subclasses. Fields
    not declared on the model are kept, since CouchDB documents are schemaless.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    id: str | None = Field(default=None, alias="_id")
    rev: str | None = Field(default=None, alias="_rev")

    # Set by __init_subclass__
    _connection_alias: ClassVar[str] = "default"
    _design: ClassVar[str | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)

        cls._connection_alias = SettingsResolver.get_connection_alias(cls)
        cls._design = SettingsResolver.get_design(cls)

        _document_registry[cls.__name__] = cls

    @classmethod
    def view(cls, view_id: str) -> "View[Any]":
        """Return a View whose items are validated into this class.

        Args:
            view_id: ``"design/view"``, ``"_all_docs"``, or a bare view name
                when ``Settings.design`` is set

        Returns:
            View for this document type
        """
        from pycouch.core.view import View

        return View(
            SettingsResolver.resolve_view_id(cls, view_id),
            cls,
            alias=cls._connection_alias,
        )

