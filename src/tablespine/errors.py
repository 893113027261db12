"""
Structured error types for tablespine.

Every failure the data-access layer can surface is a typed subclass of
:class:`TableSpineError`.  Errors carry a category, a retryable flag, a
structured context and the chained underlying exception, so callers can
decide what to do without parsing messages.

Manifesto:
    - **Typed Error Hierarchy:** Resolution, discovery, schema and
      transaction failures are distinct types
    - **Explicit Retry Semantics:** Only connection-level failures are
      retryable; configuration errors never are
    - **Error Chaining:** Driver and import errors are preserved as ``cause``

Architecture:
    ::

        TableSpineError
        ├── TransientError
        │   └── DatabaseConnectionError
        ├── ConfigError
        │   ├── MissingConfigError
        │   │   └── MissingProviderKeyError
        │   ├── InvalidConfigError
        │   ├── ProviderNotFoundError
        │   ├── ProviderReturnedInvalidError
        │   ├── HandleTypeMismatchError
        │   ├── CallerResolutionError
        │   ├── UnknownTableError
        │   └── BackendConstructionError
        ├── ValidationError
        │   └── SchemaError
        │       └── IncompatibleSchemasError
        ├── StorageError
        │   └── ScanIOError
        └── DatabaseError
            ├── QueryError
            └── TransactionError
                ├── TransactionStartError
                └── TransactionCommitError

Guardrails:
    ❌ DON'T: Raise bare ``ValueError`` / ``RuntimeError`` from library code
    ✅ DO: Use the matching subclass and pass ``cause=``

    ❌ DON'T: Log an error and continue
    ✅ DO: Let it propagate to the caller (or the dump future)

Tags:
    error-handling, exception-hierarchy, tablespine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for classification and logging."""

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    STORAGE = "STORAGE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields end up in :meth:`to_dict`; anything that does not
    have a dedicated field goes into ``metadata``.
    """

    provider: str | None = None
    section: str | None = None
    host: str | None = None
    table: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("provider", "section", "host", "table"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.metadata)
        return result


class TableSpineError(Exception):
    """
    Base class for all tablespine errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Examples:
        >>> error = TableSpineError("boom", cause=KeyError("x"))
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["cause"]
        "'x'"
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TableSpineError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(TableSpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """A backend connection could not be established."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# CONFIGURATION / RESOLUTION ERRORS
# =============================================================================


class ConfigError(TableSpineError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None, **kwargs: Any):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}", **kwargs)


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None, **kwargs: Any):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}", **kwargs)


class MissingProviderKeyError(MissingConfigError):
    """A configuration section has no ``provider`` value."""

    def __init__(self, section: str, available: Iterable[str] = ()):
        self.section = section
        self.available = sorted(available)
        message = f"Please add a 'provider' value in '{section}' section"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__("provider", message, context=ErrorContext(section=section))


class ProviderNotFoundError(ConfigError):
    """No provider is registered under the requested name."""

    def __init__(self, name: str):
        self.provider_name = name
        super().__init__(
            f"Provider '{name}' not found",
            context=ErrorContext(provider=name),
        )


class ProviderReturnedInvalidError(ConfigError):
    """A provider returned ``None`` or something that is not a database handle."""

    def __init__(self, name: str, result: Any = None):
        self.provider_name = name
        self.result = result
        what = "null" if result is None else f"a {type(result).__name__}"
        super().__init__(
            f"Provider '{name}' returned {what}",
            context=ErrorContext(provider=name),
        )


class HandleTypeMismatchError(ConfigError):
    """The handle a provider produced is not of the type the caller asked for."""

    def __init__(self, name: str, expected: type, actual: type):
        self.provider_name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Provider '{name}' produced {actual.__name__}, "
            f"which is not a {expected.__name__}",
            context=ErrorContext(provider=name),
        )


class CallerResolutionError(ConfigError):
    """The calling host could not be determined."""


class UnknownTableError(ConfigError):
    """A configured table name could not be resolved to a record type."""

    def __init__(self, table_name: str, reason: str | None = None, **kwargs: Any):
        self.table_name = table_name
        message = f"Unknown table '{table_name}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, context=ErrorContext(table=table_name), **kwargs)


class BackendConstructionError(ConfigError):
    """A provider failed to construct its database handle."""


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(TableSpineError):
    """Data validation error.  Never retryable."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False


class SchemaError(ValidationError):
    """A record type or table set is not usable as declared."""


class IncompatibleSchemasError(SchemaError):
    """The destination of a dump does not manage every source table."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(
            "Destination database does not contain all tables to be dumped: "
            + ", ".join(self.missing)
        )


# =============================================================================
# STORAGE / DATABASE ERRORS
# =============================================================================


class StorageError(TableSpineError):
    """Storage-related error (disk, archives, file system)."""

    default_category = ErrorCategory.STORAGE


class ScanIOError(StorageError):
    """Enumerating the code root for table types failed."""


class DatabaseError(TableSpineError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE


class QueryError(DatabaseError):
    """A select or insert failed in the backend."""


class TransactionError(DatabaseError):
    """Transaction misuse or a backend transaction failure."""


class TransactionStartError(TransactionError):
    """A transaction could not be begun."""


class TransactionCommitError(TransactionError):
    """
    A transaction could not be committed.

    When raised by a dump the destination state is backend-defined: no
    two-phase commit spans the source and the destination.
    """


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TableSpineError",
    "TransientError",
    "DatabaseConnectionError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "MissingProviderKeyError",
    "ProviderNotFoundError",
    "ProviderReturnedInvalidError",
    "HandleTypeMismatchError",
    "CallerResolutionError",
    "UnknownTableError",
    "BackendConstructionError",
    "ValidationError",
    "SchemaError",
    "IncompatibleSchemasError",
    "StorageError",
    "ScanIOError",
    "DatabaseError",
    "QueryError",
    "TransactionError",
    "TransactionStartError",
    "TransactionCommitError",
]
