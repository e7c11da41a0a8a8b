"""Domain exceptions for the catalog data layer.

These map to consistent HTTP responses when handled by the global exception handler.
"""


class CatalogError(Exception):
    """Base exception for catalog domain errors."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail or message


class MalformedRecordError(CatalogError):
    """Raised when a source record lacks a structurally required field."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        field: str | None = None,
        record: dict | None = None,
    ) -> None:
        super().__init__(message, status_code=502)
        self.source = source
        self.field = field
        self.record = record


class DataSourceUnavailableError(CatalogError):
    """Raised when the active source could not produce a catalog snapshot."""

    def __init__(
        self,
        message: str,
        *,
        source: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, status_code=503)
        self.source = source
        self.cause = cause


class InvalidQueryError(CatalogError, ValueError):
    """Raised when a query or configuration argument is invalid."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, status_code=400, detail=detail or message)


class ResourceNotFoundError(CatalogError):
    """Raised when a requested resource does not exist."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, status_code=404, detail=detail or message)
