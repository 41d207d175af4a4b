import json
from pathlib import Path

import cbor2
import pytest

from pkgplan.cli import main
from pkgplan.platforms import SUPPORTED_PLATFORMS
from pkgplan.project import Project


def _write_store(path: Path, project: Project, *, drop: tuple[str, str] | None = None) -> Path:
    store = project.synthetic_store()
    payload = {}
    for platform in SUPPORTED_PLATFORMS:
        collection = store.collection_for(platform)
        payload[platform] = {
            name: artifact.path
            for name, artifact in collection.entries.items()
            if (platform, name) != drop
        }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_platforms_command_lists_supported(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["platforms"]) == 0

    assert capsys.readouterr().out.split() == list(SUPPORTED_PLATFORMS)


def test_show_emits_every_platform(
    package_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["show", "--root", str(package_root)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert sorted(payload) == sorted(SUPPORTED_PLATFORMS)
    darwin = payload["aarch64-darwin"]["packages"]["default"]
    assert [item["name"] for item in darwin["build_inputs"]] == [
        "darwin.apple_sdk.frameworks.Security"
    ]
    assert payload["x86_64-linux"]["packages"]["default"]["build_inputs"] == []


def test_show_single_platform_as_cbor(tmp_path: Path, package_root: Path) -> None:
    output = tmp_path / "plan.cbor"

    code = main(
        [
            "show",
            "--root",
            str(package_root),
            "--platform",
            "x86_64-darwin",
            "--format",
            "cbor",
            "--output",
            str(output),
        ]
    )

    assert code == 0
    decoded = cbor2.loads(output.read_bytes())
    assert decoded["platform"] == "x86_64-darwin"
    assert decoded["devShells"]["default"]["platform"] == "x86_64-darwin"


def test_show_reports_isolated_failure(
    tmp_path: Path,
    package_root: Path,
    project: Project,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store = _write_store(tmp_path / "store.json", project, drop=("aarch64-linux", "mercurial"))
    log = tmp_path / "evaluate.jsonl"

    code = main(["show", "--root", str(package_root), "--store", str(store), "--log", str(log)])

    captured = capsys.readouterr()
    assert code == 1
    payload = json.loads(captured.out)
    assert payload["aarch64-linux"]["error"]["code"] == "E_UNRESOLVED_DEPENDENCY"
    assert "packages" in payload["x86_64-linux"]
    assert "aarch64-linux" in captured.err
    assert log.exists()


def test_show_fail_fast_exits_with_error(
    tmp_path: Path,
    package_root: Path,
    project: Project,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store = _write_store(tmp_path / "store.json", project, drop=("x86_64-darwin", "gitMinimal"))

    code = main(["show", "--root", str(package_root), "--store", str(store), "--fail-fast"])

    assert code == 2
    err = capsys.readouterr().err
    assert "E_UNRESOLVED_DEPENDENCY" in err
    assert "gitMinimal" in err


def test_show_rejects_unknown_platform(
    package_root: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["show", "--root", str(package_root), "--platform", "riscv64-linux"]) == 2
    assert "E_VALIDATION" in capsys.readouterr().err
