"""
Error code system.

FeedboardError is the base exception for all structured errors.
Raise it (or one of the subclasses below) with an error code from the
registry, and the error middleware will produce a structured JSON response.

Usage:
    from feedboard.core.errors import StorageOperationError
    raise StorageOperationError(detail="insert into feedback failed: ...")
"""

from __future__ import annotations

import re
from typing import Dict, List, Set

CODE_PATTERN = re.compile(r"^FBK-[A-Z]{2,6}-\d{3}$")


class FeedboardError(Exception):
    """Structured application error tied to the error registry.

    Args:
        code: Registry error code, e.g. "FBK-DB-003".
        detail: Internal-only detail message (never exposed to users).
        context: Arbitrary key-value context for structured logging.
    """

    default_code: str = "FBK-SYS-001"

    def __init__(
        self,
        code: str | None = None,
        detail: str | None = None,
        context: dict | None = None,
    ) -> None:
        code = code or self.default_code
        if not CODE_PATTERN.match(code):
            raise ValueError(f"Invalid error code format: {code!r}")
        self.code = code
        self.detail = detail
        self.context = context or {}
        super().__init__(f"{code}: {detail}" if detail else code)


class ValidationError(FeedboardError):
    """Input failed schema validation. Carries per-field messages."""

    default_code = "FBK-VAL-001"

    def __init__(
        self,
        fields: List[Dict[str, str]],
        detail: str | None = None,
        context: dict | None = None,
    ) -> None:
        self.fields = fields
        super().__init__(
            detail=detail or "; ".join(f"{f['field']}: {f['message']}" for f in fields),
            context=context,
        )


class ConflictError(FeedboardError):
    """A unique key already exists."""

    default_code = "FBK-DB-001"


class NotFoundError(FeedboardError):
    """A lookup by key found nothing."""

    default_code = "FBK-API-001"


class StorageUnavailableError(FeedboardError):
    """The relational store could not be reached at startup."""

    default_code = "FBK-DB-002"


class StorageOperationError(FeedboardError):
    """The backing store failed while serving a request."""

    default_code = "FBK-DB-003"


def raised_codes() -> Set[str]:
    """Default codes of FeedboardError and every subclass."""
    codes: Set[str] = set()
    pending = [FeedboardError]
    while pending:
        cls = pending.pop()
        codes.add(cls.default_code)
        pending.extend(cls.__subclasses__())
    return codes
