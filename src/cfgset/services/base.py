"""BaseService — shared foundation for cfgset services.

Every service receives a :class:`Workspace` at construction time and
reports failures as ``ServiceResult(ok=False)`` rather than raising.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cfgset.services.result import ServiceResult

if TYPE_CHECKING:
    from cfgset.domain.errors import SetterError
    from cfgset.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class SetterService(BaseService):
            def create_setter(self, ...) -> ServiceResult:
                try:
                    ...
                except SetterError as exc:
                    return self._failure("create_setter", exc)
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _failure(self, op: str, exc: SetterError, warnings: list[str] | None = None) -> ServiceResult:
        """Convert a domain error into a failed ServiceResult."""
        logger.info("%s failed: [%s] %s", op, exc.code, exc.message)
        return ServiceResult.failure(op, exc, warnings)
