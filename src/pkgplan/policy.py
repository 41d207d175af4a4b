"""Evaluation policy configuration and validation helpers."""

from __future__ import annotations

from dataclasses import dataclass

from pkgplan.errors import ValidationError

DEFAULT_FORMATTER = "nixpkgs-fmt"


@dataclass(frozen=True, slots=True)
class EvaluationPolicy:
    fail_fast: bool = False
    max_workers: int = 1
    formatter: str = DEFAULT_FORMATTER


def ensure_valid_policy(policy: EvaluationPolicy) -> EvaluationPolicy:
    if policy.max_workers < 1:
        raise ValidationError(
            "Policy max_workers must be at least 1.",
            hint="Use max_workers=1 for sequential evaluation.",
            context={"max_workers": str(policy.max_workers)},
        )
    if not policy.formatter:
        raise ValidationError("Policy formatter must name a package.")
    return policy


__all__ = ["DEFAULT_FORMATTER", "EvaluationPolicy", "ensure_valid_policy"]
