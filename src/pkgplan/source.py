"""Pattern-filtered source trees.

A :class:`SourceTree` is a read-only view over a directory: only files whose
root-relative POSIX path fully matches one of the inclusion patterns are
visible. Nothing is copied at selection time; :meth:`SourceTree.materialize`
exists for executors that need a real directory.
"""

from __future__ import annotations

import hashlib
import re
import shutil
import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pkgplan.errors import EmptySelectionError, InvalidPatternError, ValidationError
from pkgplan.observability import StructuredLogger


class UnusedPatternWarning(UserWarning):
    """Warning raised when an inclusion pattern selects no file."""


@dataclass(frozen=True, slots=True)
class SourceTree:
    root: Path
    patterns: tuple[str, ...]
    files: tuple[str, ...]

    def contains(self, relative: str) -> bool:
        return relative in self.files

    def path_of(self, relative: str) -> Path:
        if relative not in self.files:
            raise ValidationError(
                "Path is not part of the selected source tree.",
                hint="Add an inclusion pattern that matches this path.",
                context={"path": relative, "root": str(self.root)},
            )
        return self.root / relative

    def digest(self) -> str:
        """Content digest over the selected names and bytes, in sorted order."""
        hasher = hashlib.sha256()
        for relative in self.files:
            hasher.update(relative.encode("utf-8"))
            hasher.update(b"\0")
            hasher.update(hashlib.sha256((self.root / relative).read_bytes()).digest())
        return hasher.hexdigest()

    def materialize(self, dest: str | Path) -> Path:
        target_root = Path(dest)
        for relative in self.files:
            target = target_root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(self.root / relative, target)
        return target_root

    def to_dict(self) -> dict[str, object]:
        # Checkout location is not exported.
        return {
            "patterns": list(self.patterns),
            "files": list(self.files),
        }


def compile_patterns(patterns: Sequence[str]) -> tuple[re.Pattern[str], ...]:
    if isinstance(patterns, str):
        raise ValidationError(
            "Inclusion patterns must be a sequence of patterns, not a single string.",
            hint="Wrap a single pattern in a list or tuple.",
            context={"operation": "select_source", "patterns": patterns},
        )
    if not patterns:
        raise ValidationError(
            "Source selection requires at least one inclusion pattern.",
            context={"operation": "select_source"},
        )
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise InvalidPatternError(
                f"Inclusion pattern `{pattern}` does not compile.",
                hint="Patterns are regular expressions matched against root-relative paths.",
                context={"operation": "select_source", "pattern": pattern, "reason": str(exc)},
            ) from exc
    return tuple(compiled)


def select_source(
    root: str | Path,
    patterns: Sequence[str],
    *,
    logger: StructuredLogger | None = None,
) -> SourceTree:
    """Filter *root* down to the files matching at least one of *patterns*."""
    compiled = compile_patterns(patterns)
    root_path = Path(root)
    if not root_path.is_dir():
        raise ValidationError(
            "Source root is not a directory.",
            context={"operation": "select_source", "root": str(root_path)},
        )

    hits = [0] * len(compiled)
    selected: list[str] = []
    for relative in _walk_files(root_path):
        matched = False
        for index, regex in enumerate(compiled):
            if regex.fullmatch(relative):
                hits[index] += 1
                matched = True
        if matched:
            selected.append(relative)

    if not selected:
        raise EmptySelectionError(
            "Source selection matched no files.",
            hint="Check the inclusion patterns against the package layout.",
            context={
                "operation": "select_source",
                "root": str(root_path),
                "patterns": ", ".join(patterns),
            },
        )

    for pattern, count in zip(patterns, hits, strict=True):
        if count == 0:
            warnings.warn(
                f"Inclusion pattern `{pattern}` did not select any file.",
                UnusedPatternWarning,
                stacklevel=2,
            )

    tree = SourceTree(root=root_path, patterns=tuple(patterns), files=tuple(sorted(selected)))
    if logger is not None:
        logger.log(
            operation="select_source",
            platform=None,
            component="source",
            message=f"selected {len(tree.files)} files",
            extra={"root": str(root_path), "patterns": list(tree.patterns)},
        )
    return tree


def _walk_files(root: Path) -> Iterable[str]:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path.relative_to(root).as_posix()
