import pytest

from pkgplan.errors import ValidationError
from pkgplan.platforms import (
    LINKAGE_RULES,
    SUPPORTED_PLATFORMS,
    LinkageRule,
    ensure_platform_set,
    ensure_supported,
    extra_link_requirements,
    is_darwin,
    parse_platform,
)


def test_supported_platforms_are_fixed() -> None:
    assert SUPPORTED_PLATFORMS == (
        "aarch64-darwin",
        "aarch64-linux",
        "x86_64-darwin",
        "x86_64-linux",
    )


@pytest.mark.parametrize(
    ("platform", "expected"),
    [
        ("aarch64-darwin", ("aarch64", "darwin")),
        ("x86_64-linux", ("x86_64", "linux")),
    ],
)
def test_parse_platform(platform: str, expected: tuple[str, str]) -> None:
    assert parse_platform(platform) == expected


@pytest.mark.parametrize("platform", ["", "x86_64-windows", "riscv64-linux"])
def test_unsupported_platform_is_rejected(platform: str) -> None:
    with pytest.raises(ValidationError):
        ensure_supported(platform)


@pytest.mark.parametrize("platform", SUPPORTED_PLATFORMS)
def test_security_framework_only_on_darwin(platform: str) -> None:
    expected = ("darwin.apple_sdk.frameworks.Security",) if is_darwin(platform) else ()

    assert extra_link_requirements(platform) == expected


def test_linkage_rules_extend_without_touching_builder() -> None:
    rules = LINKAGE_RULES + (
        LinkageRule(
            name="linux-openssl",
            applies=lambda platform: platform.endswith("-linux"),
            dependencies=("openssl",),
        ),
    )

    assert extra_link_requirements("aarch64-linux", rules) == ("openssl",)
    assert extra_link_requirements("x86_64-darwin", rules) == (
        "darwin.apple_sdk.frameworks.Security",
    )


@pytest.mark.parametrize(
    "platforms",
    [
        SUPPORTED_PLATFORMS[:3],
        SUPPORTED_PLATFORMS + ("x86_64-linux",),
        SUPPORTED_PLATFORMS[:3] + ("i686-linux",),
    ],
)
def test_platform_set_must_be_exact(platforms: tuple[str, ...]) -> None:
    with pytest.raises(ValidationError):
        ensure_platform_set(platforms)
