"""Settings resolution utilities for projection targets."""

from __future__ import annotations

DEFAULT_ID_FIELD = "id"


class SettingsResolver:
    """Resolves target settings from an inner Settings class.

    Example::

        class UserSummary(BaseModel):
            key: int
            name: str

            class Settings:
                id_field = "key"
                trace_name = "user_summary"
    """

    @staticmethod
    def get_id_field(cls: type) -> str:
        """Get the identifier field used by find_by_id.

        Args:
            cls: Target class

        Returns:
            Field name, ``"id"`` unless overridden
        """
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "id_field"):
            return settings.id_field
        return DEFAULT_ID_FIELD

    @staticmethod
    def get_trace_name(cls: type) -> str:
        """Get the label reported for this target in trace events.

        Args:
            cls: Target class

        Returns:
            Configured trace name or the class name
        """
        settings = getattr(cls, "Settings", None)
        if settings and hasattr(settings, "trace_name"):
            return settings.trace_name
        return cls.__name__
