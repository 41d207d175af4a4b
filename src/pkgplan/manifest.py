"""Package manifest loading.

Accepts either a flat table::

    name = "nurl"
    version = "0.3.13"
    maintainers = ["figsoda"]

or a Cargo manifest, where the fields live under ``[package]``. Cargo has no
maintainer field, so ``license`` and ``maintainers`` may also be given in
``[package.metadata.pkgplan]``, which takes precedence.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pkgplan.errors import ManifestError
from pkgplan.models import PackageMetadata

DEFAULT_MANIFEST = "Cargo.toml"


def load_manifest(path: str | Path) -> PackageMetadata:
    manifest_path = Path(path)
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ManifestError(
            "Manifest does not exist.",
            context={"path": str(manifest_path)},
        ) from exc
    return parse_manifest(raw, source=str(manifest_path))


def parse_manifest(raw: str, *, source: str = "<string>") -> PackageMetadata:
    try:
        payload = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(
            "Invalid manifest TOML.",
            hint=str(exc),
            context={"path": source},
        ) from exc

    table: Mapping[str, Any] = payload
    overrides: Mapping[str, Any] = {}
    package = payload.get("package")
    if package is not None:
        if not isinstance(package, dict):
            raise ManifestError("Invalid manifest `package` table.", context={"path": source})
        table = package
        metadata = package.get("metadata", {})
        if isinstance(metadata, dict) and isinstance(metadata.get("pkgplan"), dict):
            overrides = metadata["pkgplan"]

    def text(key: str, *, required: bool) -> str:
        value = overrides.get(key, table.get(key))
        if value is None and not required:
            return ""
        if not isinstance(value, str) or (required and not value):
            raise ManifestError(
                f"Invalid manifest `{key}` value.",
                hint="Inherited workspace fields are not supported; set the value explicitly.",
                context={"path": source, "field": key},
            )
        return value

    return PackageMetadata(
        name=text("name", required=True),
        version=text("version", required=True),
        description=text("description", required=False),
        license=text("license", required=False),
        maintainers=_maintainers(overrides.get("maintainers", table.get("maintainers")), source),
    )


def _maintainers(value: Any, source: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ManifestError(
            "Invalid manifest `maintainers` value.",
            hint="Use a list of non-empty strings.",
            context={"path": source, "field": "maintainers"},
        )
    return tuple(value)


__all__ = ["DEFAULT_MANIFEST", "load_manifest", "parse_manifest"]
