"""Supported target platforms and platform-conditional linkage rules."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from pkgplan.errors import ValidationError
from pkgplan.models import Arch, OsFamily, PlatformId

if TYPE_CHECKING:
    from pkgplan.collection import PlatformPackageCollection

SUPPORTED_PLATFORMS: tuple[PlatformId, ...] = (
    "aarch64-darwin",
    "aarch64-linux",
    "x86_64-darwin",
    "x86_64-linux",
)


def ensure_supported(platform: str) -> PlatformId:
    if platform not in SUPPORTED_PLATFORMS:
        raise ValidationError(
            f"Unsupported platform `{platform}`.",
            hint=f"Use one of: {', '.join(SUPPORTED_PLATFORMS)}.",
            context={"platform": platform},
        )
    return cast(PlatformId, platform)


def parse_platform(platform: PlatformId) -> tuple[Arch, OsFamily]:
    ensure_supported(platform)
    arch, _, os_family = platform.partition("-")
    return cast(Arch, arch), cast(OsFamily, os_family)


def is_darwin(platform: PlatformId) -> bool:
    return parse_platform(platform)[1] == "darwin"


@dataclass(frozen=True, slots=True)
class LinkageRule:
    """Extra link-time dependencies for every platform the predicate accepts."""

    name: str
    applies: Callable[[PlatformId], bool]
    dependencies: tuple[str, ...]


# Adding a platform or changing a condition only touches this table.
LINKAGE_RULES: tuple[LinkageRule, ...] = (
    LinkageRule(
        name="darwin-security-framework",
        applies=is_darwin,
        dependencies=("darwin.apple_sdk.frameworks.Security",),
    ),
)


def extra_link_requirements(
    platform: PlatformId,
    rules: tuple[LinkageRule, ...] = LINKAGE_RULES,
) -> tuple[str, ...]:
    ensure_supported(platform)
    names: list[str] = []
    for rule in rules:
        if rule.applies(platform):
            names.extend(name for name in rule.dependencies if name not in names)
    return tuple(names)


@dataclass(frozen=True, slots=True)
class PlatformMatrix:
    """The fixed platform enumeration plus a per-platform collection supplier."""

    collection_for: Callable[[PlatformId], PlatformPackageCollection]
    platforms: tuple[PlatformId, ...] = SUPPORTED_PLATFORMS

    def __post_init__(self) -> None:
        ensure_platform_set(self.platforms)

    def collections(self) -> dict[PlatformId, PlatformPackageCollection]:
        return {platform: self.collection_for(platform) for platform in self.platforms}


def ensure_platform_set(platforms: tuple[PlatformId, ...]) -> None:
    """Require *platforms* to be exactly the supported enumeration."""
    for platform in platforms:
        ensure_supported(platform)
    duplicates = sorted({p for p in platforms if platforms.count(p) > 1})
    if duplicates:
        raise ValidationError(
            "Platform list contains duplicates.",
            context={"duplicates": ", ".join(duplicates)},
        )
    missing = [p for p in SUPPORTED_PLATFORMS if p not in platforms]
    if missing:
        raise ValidationError(
            "Platform list must cover every supported platform.",
            hint="Evaluate a single platform with MatrixEvaluator.evaluate_platform().",
            context={"missing": ", ".join(missing)},
        )


__all__ = [
    "LINKAGE_RULES",
    "LinkageRule",
    "PlatformMatrix",
    "SUPPORTED_PLATFORMS",
    "ensure_platform_set",
    "ensure_supported",
    "extra_link_requirements",
    "is_darwin",
    "parse_platform",
]
