"""Typed evaluation error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import ClassVar


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    MANIFEST = "E_MANIFEST"
    LOCKFILE = "E_LOCKFILE"
    INVALID_PATTERN = "E_INVALID_PATTERN"
    EMPTY_SELECTION = "E_EMPTY_SELECTION"
    UNRESOLVED_DEPENDENCY = "E_UNRESOLVED_DEPENDENCY"
    MISSING_ARTIFACT = "E_MISSING_ARTIFACT"


class PlanError(Exception):
    """Evaluation failure carrying a code, an optional hint and string context.

    Subclasses only pick their ``error_code``. Context is mutable so callers
    further up (the builder, the matrix evaluator) can attach the platform
    and package an error belongs to without re-wrapping it.
    """

    error_code: ClassVar[ErrorCode] = ErrorCode.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = self.error_code.value
        self.hint = hint
        self.context: dict[str, str] = dict(context or {})

    def __str__(self) -> str:
        lines = [self.message]
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        lines.extend(f"  {key}: {value}" for key, value in self.context.items() if value)
        return "\n".join(lines)

    @property
    def platform(self) -> str | None:
        return self.context.get("platform")

    def with_context(self, **extra: str) -> PlanError:
        """Attach context keys in place, keeping keys that are already set."""
        for key, value in extra.items():
            self.context.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(PlanError):
    error_code = ErrorCode.VALIDATION


class ManifestError(PlanError):
    error_code = ErrorCode.MANIFEST


class LockfileError(PlanError):
    error_code = ErrorCode.LOCKFILE


class InvalidPatternError(PlanError):
    error_code = ErrorCode.INVALID_PATTERN


class EmptySelectionError(PlanError):
    error_code = ErrorCode.EMPTY_SELECTION


class UnresolvedDependencyError(PlanError):
    error_code = ErrorCode.UNRESOLVED_DEPENDENCY

    @property
    def dependency(self) -> str | None:
        return self.context.get("dependency")


class MissingArtifactError(PlanError):
    error_code = ErrorCode.MISSING_ARTIFACT

    @property
    def artifact(self) -> str | None:
        return self.context.get("artifact")


__all__ = [
    "EmptySelectionError",
    "ErrorCode",
    "InvalidPatternError",
    "LockfileError",
    "ManifestError",
    "MissingArtifactError",
    "PlanError",
    "UnresolvedDependencyError",
    "ValidationError",
]
