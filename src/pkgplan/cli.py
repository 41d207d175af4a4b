"""Command line entry point.

Usage:
    pkgplan platforms
    pkgplan show --root . [--platform x86_64-linux] [--store store.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import cbor2

from pkgplan.collection import PackageStore, StaticPackageStore
from pkgplan.errors import PlanError
from pkgplan.platforms import SUPPORTED_PLATFORMS, ensure_supported
from pkgplan.policy import EvaluationPolicy
from pkgplan.project import Project


def cmd_platforms(args: argparse.Namespace) -> int:
    for platform in SUPPORTED_PLATFORMS:
        print(platform)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    policy = EvaluationPolicy(fail_fast=args.fail_fast, max_workers=args.jobs)
    project = Project.load(args.root, manifest=args.manifest, policy=policy)
    store: PackageStore = (
        StaticPackageStore.from_json(args.store) if args.store else project.synthetic_store()
    )

    ok: bool
    payload: dict[str, Any]
    if args.platform:
        platform = ensure_supported(args.platform)
        outputs = project.evaluator().evaluate_platform(platform, store.collection_for(platform))
        payload = outputs.to_dict()
        ok = outputs.ok
        if outputs.formatter_error is not None:
            print(f"{platform}: {outputs.formatter_error.message}", file=sys.stderr)
    else:
        matrix = project.matrix(store)
        payload = matrix.to_dict()
        ok = matrix.ok
        for platform, error in (matrix.failures | matrix.formatter_failures).items():
            print(f"{platform}: {error.message}", file=sys.stderr)

    _emit(payload, fmt=args.format, output=args.output)
    if args.log:
        project.logger.to_json_lines(args.log)
    return 0 if ok else 1


def _emit(payload: dict[str, Any], *, fmt: str, output: str | None) -> None:
    if fmt == "cbor":
        encoded = cbor2.dumps(payload, canonical=True)
        if output:
            Path(output).write_bytes(encoded)
        else:
            sys.stdout.buffer.write(encoded)
        return
    text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
    if output:
        Path(output).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pkgplan", description="Per-platform build plan evaluator")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("platforms", help="List supported platform identifiers")

    show_p = sub.add_parser("show", help="Evaluate build plans for the package at --root")
    show_p.add_argument("--root", default=".", help="Package root directory")
    show_p.add_argument("--manifest", default="Cargo.toml", help="Manifest path relative to root")
    show_p.add_argument("--platform", help="Evaluate a single platform")
    show_p.add_argument("--store", help="JSON file mapping platforms to {name: store path}")
    show_p.add_argument("--format", choices=("json", "cbor"), default="json")
    show_p.add_argument("--output", help="Write output to this file instead of stdout")
    show_p.add_argument("--fail-fast", action="store_true", help="Stop at the first failure")
    show_p.add_argument("--jobs", type=int, default=1, help="Platforms evaluated in parallel")
    show_p.add_argument("--log", help="Write structured log records as JSON lines")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "platforms":
            return cmd_platforms(args)
        return cmd_show(args)
    except PlanError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return 2
