class MapifyError(Exception):
    """Base exception for all Mapify errors."""


class FilterError(MapifyError, ValueError):
    """Raised when a filter or ordering cannot be applied to a target."""


class FilterSyntaxError(FilterError):
    """Raised when a textual filter or ordering cannot be parsed."""

    def __init__(self, message: str, text: str = "", position: int | None = None) -> None:
        super().__init__(message)
        self.text = text
        self.position = position


class UnknownFieldError(FilterError):
    """Raised when an expression references a field the target does not have."""


class FilterValueError(FilterError):
    """Raised when a literal cannot be converted to the field's type."""


class UnsupportedExpression(MapifyError, TypeError):
    """Raised when a source cannot translate an expression into a query."""


class QuerySetError(MapifyError):
    """Raised when a QuerySet is used in an invalid state."""


class MultipleDocumentsFound(MapifyError):
    """Raised when a single document was expected but multiple were found."""
