"""Settings resolution utilities for Document configuration."""

from __future__ import annotations


class SettingsResolver:
    """Resolves document settings from inner Settings class."""

    @staticmethod
    def get_connection_alias(cls: type) -> str:
        """Get connection alias from Settings or default.

        Args:
            cls: Document class

        Returns:
            Connection alias name
        """
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "connection_alias"):
            return settings.connection_alias
        return "default"

    @staticmethod
    def get_design(cls: type) -> str | None:
        """Get the default design document name from Settings.

        Args:
            cls: Document class

        Returns:
            Design document name without the ``_design/`` prefix, or None
        """
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "design"):
            design = settings.design
            return design.removeprefix("_design/") if design else None
        return None

    @staticmethod
    def resolve_view_id(cls: type, view_id: str) -> str:
        """Qualify a short view name with the document's default design.

        ``"by_name"`` becomes ``"<design>/by_name"`` when a design is
        configured. Qualified ids and special views pass through.
        """
        if "/" in view_id or view_id.startswith("_"):
            return view_id
        design = SettingsResolver.get_design(cls)
        if design is None:
            return view_id
        return f"{design}/{view_id}"
