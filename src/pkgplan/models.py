"""Core typed dataclasses shared by selectors, builders and the evaluator."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any, ClassVar, Literal

from pkgplan.errors import ValidationError

PlatformId = Literal["aarch64-darwin", "aarch64-linux", "x86_64-darwin", "x86_64-linux"]
Arch = Literal["x86_64", "aarch64"]
OsFamily = Literal["linux", "darwin"]
ShellFamily = Literal["bash", "fish", "zsh"]

# Bin directory of a resolved runtime artifact.
ExecutablePath = str


@dataclass(frozen=True, slots=True)
class PackageMetadata:
    name: str
    version: str
    description: str = ""
    license: str = ""
    maintainers: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "license": self.license,
            "maintainers": list(self.maintainers),
        }


@dataclass(frozen=True, slots=True)
class Artifact:
    """A package-store entry as handed out by a platform collection."""

    name: str
    path: str

    @property
    def bin_dir(self) -> ExecutablePath:
        return f"{self.path}/bin"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "path": self.path}


@dataclass(frozen=True, slots=True)
class WrapProgram:
    """Wrap an installed executable so a lookup variable gets extra entries in front."""

    kind: ClassVar[str] = "wrap-program"

    executable: str
    prefix: tuple[ExecutablePath, ...]
    variable: str = "PATH"
    separator: str = ":"

    def apply(self, inherited: str | None) -> str:
        """Return the value the wrapped program sees for ``variable``.

        The resolved entries always come first; the inherited value is kept
        behind them so system-level lookup still works as a fallback.
        """
        prefix = self.separator.join(self.prefix)
        if not inherited:
            return prefix
        if not prefix:
            return inherited
        return f"{prefix}{self.separator}{inherited}"

    def render(self) -> str:
        joined = self.separator.join(self.prefix)
        return (
            f"wrapProgram $out/{self.executable} "
            f"--prefix {self.variable} {self.separator} {shlex.quote(joined)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "executable": self.executable,
            "variable": self.variable,
            "separator": self.separator,
            "prefix": list(self.prefix),
        }


@dataclass(frozen=True, slots=True)
class InstallManPage:
    kind: ClassVar[str] = "install-man-page"

    path: str

    @property
    def artifacts(self) -> tuple[str, ...]:
        return (self.path,)

    def render(self) -> str:
        return f"installManPage {shlex.quote(self.path)}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "path": self.path}


@dataclass(frozen=True, slots=True)
class InstallShellCompletions:
    kind: ClassVar[str] = "install-shell-completions"

    bash: str
    fish: str
    zsh: str

    def __post_init__(self) -> None:
        if len(set(self.artifacts)) != len(self.artifacts):
            raise ValidationError(
                "Shell completion artifacts must come from distinct paths.",
                context={"bash": self.bash, "fish": self.fish, "zsh": self.zsh},
            )

    @property
    def artifacts(self) -> tuple[str, ...]:
        return (self.bash, self.fish, self.zsh)

    def path_for(self, shell: ShellFamily) -> str:
        return {"bash": self.bash, "fish": self.fish, "zsh": self.zsh}[shell]

    def render(self) -> str:
        return (
            f"installShellCompletion --bash {shlex.quote(self.bash)} "
            f"--fish {shlex.quote(self.fish)} --zsh {shlex.quote(self.zsh)}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "bash": self.bash, "fish": self.fish, "zsh": self.zsh}


PostInstallStep = WrapProgram | InstallManPage | InstallShellCompletions


@dataclass(frozen=True, slots=True)
class DevShell:
    """Development shell descriptor; exposes run-time tools only."""

    platform: PlatformId
    packages: tuple[Artifact, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "packages": [artifact.to_dict() for artifact in self.packages],
        }


__all__ = [
    "Arch",
    "Artifact",
    "DevShell",
    "ExecutablePath",
    "InstallManPage",
    "InstallShellCompletions",
    "OsFamily",
    "PackageMetadata",
    "PlatformId",
    "PostInstallStep",
    "ShellFamily",
    "WrapProgram",
]
