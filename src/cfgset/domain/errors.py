"""Setter error taxonomy.

Every failure that aborts a setter operation is a :class:`SetterError`
subclass carrying a stable ``code``. The service layer converts them into
``ServiceError`` payloads; none of them is retried.
"""

from __future__ import annotations

from typing import Any, ClassVar


class SetterError(Exception):
    """Base class for all setter failures."""

    code: ClassVar[str] = "SETTER_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class FieldNotFoundError(SetterError):
    """No document contains the requested field."""

    code = "FIELD_NOT_FOUND"


class AmbiguousFieldError(SetterError):
    """A value search matched more than one distinct field path."""

    code = "AMBIGUOUS_FIELD"


class FieldPathRequiredError(SetterError):
    """Collection setters must name their field explicitly."""

    code = "FIELD_PATH_REQUIRED"


class FieldTypeMismatchError(SetterError):
    """The matched node does not hold the declared kind of value."""

    code = "FIELD_TYPE_MISMATCH"


class InconsistentValuesError(SetterError):
    """Matched occurrences disagree on their value."""

    code = "INCONSISTENT_VALUES"


class NameCollisionError(SetterError):
    """The setter name is already taken by a substitution."""

    code = "NAME_COLLISION"


class MalformedInputError(SetterError):
    """An input file could not be read, or a document, fragment, or field path could not be parsed."""

    code = "MALFORMED_INPUT"


class RegistryNotFoundError(SetterError):
    """The registry document does not exist."""

    code = "REGISTRY_NOT_FOUND"


class WriteFailedError(SetterError):
    """Persisting staged changes failed (already-written files were restored)."""

    code = "WRITE_FAILED"
