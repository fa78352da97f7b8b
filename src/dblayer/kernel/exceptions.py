"""Unified exception hierarchy for dblayer.

All library exceptions inherit from DBLayerException, so callers can catch
one type for every storage failure or a specific subclass for targeted
handling. No exception here is considered transient: retry policy belongs
to the caller.

Categories:
- StoreConnectionError: backing store unreachable while building a layer
- EncodingError / DecodingError: document <-> payload conversion failures
- BackendOperationError: statement or RPC failure inside the backing store
- UnknownTableError, QueryStateError, ConfigurationError: caller misuse
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class DBLayerException(Exception):
    """Base exception for all dblayer errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "DECODING").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Store Exceptions
# =============================================================================


class StoreConnectionError(DBLayerException):
    """Backing store could not be reached or the layer could not be built."""

    default_code = "CONNECTION"


class BackendOperationError(DBLayerException):
    """A statement or RPC failed inside the backing store.

    The original driver exception is chained as ``__cause__`` and kept on
    :attr:`cause` so callers can inspect it without unwrapping.
    """

    default_code = "BACKEND"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.cause = cause


class DocumentConflictError(BackendOperationError):
    """Insert targeted a key that already exists."""

    default_code = "CONFLICT"


# =============================================================================
# Codec Exceptions
# =============================================================================


class EncodingError(DBLayerException):
    """Document could not be serialized to its canonical form."""

    default_code = "ENCODING"


class DecodingError(DBLayerException):
    """Stored payload could not be decoded by the table's decoder."""

    default_code = "DECODING"


# =============================================================================
# Usage Exceptions
# =============================================================================


class UnknownTableError(DBLayerException):
    """Operation named a table that was not declared at construction."""

    default_code = "UNKNOWN_TABLE"


class QueryStateError(DBLayerException):
    """Query was executed or deleted more than once."""

    default_code = "QUERY_STATE"


class ConfigurationError(DBLayerException):
    """Configuration is missing or names an unsupported option."""

    default_code = "CONFIGURATION"
