"""Custom exceptions for the ORM generator."""

from __future__ import annotations

from pathlib import Path


class OrmGenError(Exception):
    """Base exception for generation errors."""

    def __init__(self, message: str, database: str | None = None) -> None:
        self.database = database
        full_message = f"{message}" if not database else f"[{database}] {message}"
        super().__init__(full_message)


class ConfigurationError(OrmGenError):
    """Raised when a required configuration value is missing or malformed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        database: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Config '{field}': {message}"
        super().__init__(message, database)


class TransportError(OrmGenError):
    """Raised when a remote metadata call fails or returns an unusable shape."""

    def __init__(
        self,
        message: str,
        database: str | None = None,
        query: str | None = None,
    ) -> None:
        self.query = query
        if query:
            message = f"{message} (query: {query})"
        super().__init__(message, database)


class FilesystemError(OrmGenError):
    """Raised when a directory or file operation fails."""

    def __init__(self, message: str, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"{message}: {path}")


class MalformedFunctionSignature(OrmGenError):
    """Raised when a function's parameter list does not split into name:type pairs."""

    def __init__(
        self,
        function_name: str,
        parameters: str,
        database: str | None = None,
    ) -> None:
        self.function_name = function_name
        self.parameters = parameters
        super().__init__(
            f"Cannot parse parameters '{parameters}' of function '{function_name}'",
            database,
        )
