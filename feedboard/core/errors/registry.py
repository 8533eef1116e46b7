"""
Error catalogue backed by registry.yaml.

Each entry maps an ``FBK-<DOMAIN>-<NNN>`` code to the HTTP status and the
user-safe wording the API returns for it. Loading fails fast when an entry
is malformed or when an exception class raises a code the catalogue lacks.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from feedboard.core.errors import CODE_PATTERN, raised_codes

logger = logging.getLogger(__name__)

DEFAULT_PATH = os.path.join(os.path.dirname(__file__), "registry.yaml")

DOMAINS = ("API", "VAL", "DB", "SYS")
SEVERITIES = ("DEBUG", "INFO", "WARN", "ERROR", "CRITICAL")


class RegistryValidationError(Exception):
    """registry.yaml is malformed or incomplete."""


@dataclass(frozen=True)
class ErrorEntry:
    code: str
    domain: str
    title: str
    severity: str
    retryable: bool
    user_action_required: bool
    http_status: int
    safe_message: str
    remediation: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], position: int) -> "ErrorEntry":
        required = {f.name for f in fields(cls)}
        missing = sorted(required - set(raw))
        if missing:
            raise RegistryValidationError(
                f"entry {position} ({raw.get('code', '?')}): missing {', '.join(missing)}"
            )

        code = raw["code"]
        if not CODE_PATTERN.match(code):
            raise RegistryValidationError(f"entry {position}: bad code {code!r}")
        if raw["domain"] != code.split("-")[1] or raw["domain"] not in DOMAINS:
            raise RegistryValidationError(f"{code}: domain {raw['domain']!r} does not fit the code")
        if raw["severity"] not in SEVERITIES:
            raise RegistryValidationError(f"{code}: unknown severity {raw['severity']!r}")
        if not 400 <= int(raw["http_status"]) <= 599:
            raise RegistryValidationError(f"{code}: http_status must be an error status")

        return cls(
            code=code,
            domain=raw["domain"],
            title=raw["title"],
            severity=raw["severity"],
            retryable=bool(raw["retryable"]),
            user_action_required=bool(raw["user_action_required"]),
            http_status=int(raw["http_status"]),
            safe_message=raw["safe_message"],
            remediation=list(raw["remediation"] or []),
        )


class ErrorRegistry:
    """Code → ErrorEntry lookup used by the API error handlers."""

    def __init__(self) -> None:
        self._entries: Dict[str, ErrorEntry] = {}

    def load(self, path: str = DEFAULT_PATH, required: Iterable[str] | None = None) -> None:
        """Parse *path* and replace the current entries.

        ``required`` defaults to every code the FeedboardError hierarchy can
        raise; any of them missing from the file is a RegistryValidationError.
        """
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        raw_entries = data.get("errors")
        if not isinstance(raw_entries, list):
            raise RegistryValidationError("'errors' must be a list")

        entries: Dict[str, ErrorEntry] = {}
        for position, raw in enumerate(raw_entries):
            entry = ErrorEntry.from_mapping(raw, position)
            if entry.code in entries:
                raise RegistryValidationError(f"Duplicate code: {entry.code}")
            entries[entry.code] = entry

        unregistered = sorted(set(raised_codes() if required is None else required) - set(entries))
        if unregistered:
            raise RegistryValidationError(f"codes raised but not registered: {', '.join(unregistered)}")

        self._entries = entries
        logger.info("error_registry_loaded", extra={"count": len(entries), "path": path})

    def get(self, code: str) -> ErrorEntry | None:
        return self._entries.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# Loaded at startup, or lazily by the error handlers
error_registry = ErrorRegistry()
