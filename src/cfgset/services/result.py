"""ServiceResult and ServiceError — what every cfgset service hands back.

Services never let a :class:`SetterError` escape; they convert it with
:meth:`ServiceResult.failure`. The CLI renders the result, and ``--json``
dumps it as-is, so the payload shapes below are the machine-readable
output of each command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, TypedDict

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from cfgset.domain.errors import SetterError

ErrorCode = Literal[
    "FIELD_NOT_FOUND",
    "AMBIGUOUS_FIELD",
    "FIELD_PATH_REQUIRED",
    "FIELD_TYPE_MISMATCH",
    "INCONSISTENT_VALUES",
    "NAME_COLLISION",
    "MALFORMED_INPUT",
    "REGISTRY_NOT_FOUND",
    "WRITE_FAILED",
]


class FieldRef(TypedDict):
    """One marked field: its file, document index, and concrete path."""

    source: str
    document: int
    path: str


class SetterData(TypedDict, total=False):
    """``data`` of a successful ``create_setter``.

    Exactly one of ``value`` / ``list_values`` is present. ``replaced``
    appears only when an existing setter of the same name was overwritten.
    """

    name: str
    key: str
    registry: str
    fields: list[FieldRef]
    files: list[str]
    value: str
    list_values: list[str]
    replaced: bool


class ServiceError(BaseModel):
    """Error payload: a stable code, a message, and the error's context."""

    model_config = {"frozen": True}

    code: ErrorCode
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: SetterError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail)


class ServiceResult(BaseModel):
    """Return type of every service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"create_setter"``).
        data: Payload on success, e.g. :class:`SetterData`.
        warnings: Non-fatal notes, such as a replaced setter or marker.
        error: Set when ``ok`` is False.
        meta: Verbose-mode extras; ``meta["telemetry"]`` is the span tree.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, op: str, exc: SetterError, warnings: list[str] | None = None
    ) -> ServiceResult:
        """A failed result for *op* carrying *exc* and any warnings gathered so far."""
        return cls(
            ok=False,
            op=op,
            warnings=list(warnings or []),
            error=ServiceError.from_exception(exc),
        )

    @property
    def telemetry(self) -> dict[str, Any] | None:
        """The span tree recorded in verbose mode, if any."""
        if self.meta is None:
            return None
        return self.meta.get("telemetry")
