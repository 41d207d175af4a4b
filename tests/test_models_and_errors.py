import pytest

from pkgplan.errors import (
    EmptySelectionError,
    ErrorCode,
    InvalidPatternError,
    LockfileError,
    ManifestError,
    MissingArtifactError,
    UnresolvedDependencyError,
    ValidationError,
)
from pkgplan.models import Artifact, InstallShellCompletions, PackageMetadata, WrapProgram


def test_error_codes_are_stable_and_machine_readable() -> None:
    errors = [
        ValidationError("bad input"),
        ManifestError("bad manifest"),
        LockfileError("no lock"),
        InvalidPatternError("bad pattern"),
        EmptySelectionError("nothing selected"),
        UnresolvedDependencyError("missing dependency"),
        MissingArtifactError("missing artifact"),
    ]
    assert [error.code for error in errors] == [
        ErrorCode.VALIDATION.value,
        ErrorCode.MANIFEST.value,
        ErrorCode.LOCKFILE.value,
        ErrorCode.INVALID_PATTERN.value,
        ErrorCode.EMPTY_SELECTION.value,
        ErrorCode.UNRESOLVED_DEPENDENCY.value,
        ErrorCode.MISSING_ARTIFACT.value,
    ]


def test_error_string_includes_hint_and_context() -> None:
    error = UnresolvedDependencyError(
        "Dependency `hgTool` is not available.",
        hint="Provide it.",
        context={"platform": "x86_64-linux", "dependency": "hgTool"},
    )

    text = str(error)
    assert "Hint: Provide it." in text
    assert "platform: x86_64-linux" in text
    assert error.to_dict()["context"] == {"platform": "x86_64-linux", "dependency": "hgTool"}
    assert error.to_dict()["message"] == "Dependency `hgTool` is not available."


def test_with_context_keeps_existing_keys() -> None:
    error = MissingArtifactError("gone", context={"platform": "aarch64-linux"})

    error.with_context(platform="x86_64-linux", package="nurl")

    assert error.platform == "aarch64-linux"
    assert error.context["package"] == "nurl"


def test_artifact_bin_dir() -> None:
    assert Artifact(name="git", path="/nix/store/abc-git").bin_dir == "/nix/store/abc-git/bin"


def test_wrap_program_prefixes_and_falls_back() -> None:
    wrap = WrapProgram(executable="bin/nurl", prefix=("/a/bin", "/b/bin"))

    assert wrap.apply("/usr/bin") == "/a/bin:/b/bin:/usr/bin"
    assert wrap.apply(None) == "/a/bin:/b/bin"
    assert WrapProgram(executable="bin/nurl", prefix=()).apply("/usr/bin") == "/usr/bin"


def test_completion_paths_must_be_distinct() -> None:
    with pytest.raises(ValidationError):
        InstallShellCompletions(bash="a/x", fish="a/x", zsh="a/_x")

    completions = InstallShellCompletions(bash="a/x.bash", fish="a/x.fish", zsh="a/_x")
    assert completions.path_for("zsh") == "a/_x"


def test_metadata_is_immutable() -> None:
    metadata = PackageMetadata(name="nurl", version="1.0.0")

    with pytest.raises(AttributeError):
        metadata.version = "2.0.0"  # type: ignore[misc]
