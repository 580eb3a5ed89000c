#!/usr/bin/env python3
"""Validate GitHub Actions workflow files against the schemastore JSON Schema.

The validator only understands JSON, so workflows are converted first:

    emojibot-lint-workflows convert .github/workflows
    emojibot-lint-workflows validate .github/workflows

Exit codes: 0 all documents valid, 1 at least one schema violation,
2 the schema or a document could not be loaded.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import yaml
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from emojibot.utils.log import get_logger

_LOGGER = get_logger(__name__)

DEFAULT_SCHEMA_URL = "https://json.schemastore.org/github-workflow"
SCHEMA_FETCH_TIMEOUT = 30.0
YAML_SUFFIXES = (".yml", ".yaml")
DESCRIPTION = "Validate GitHub Actions workflow files against the schemastore JSON Schema."


class SchemaLoadError(RuntimeError):
    """The workflow schema could not be fetched, read or parsed."""


class DocumentError(ValueError):
    """A workflow document could not be read or decoded."""


@dataclass(frozen=True)
class ValidationReport:
    path: Path
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_schema(source: str = DEFAULT_SCHEMA_URL, *, client: httpx.Client | None = None) -> dict:
    """Load the schema from a URL (via httpx) or a local file path."""
    if _is_url(source):
        try:
            if client is None:
                with httpx.Client(timeout=SCHEMA_FETCH_TIMEOUT, follow_redirects=True) as c:
                    resp = c.get(source)
            else:
                resp = client.get(source)
            resp.raise_for_status()
            schema = resp.json()
        except httpx.HTTPError as e:
            raise SchemaLoadError(f"Failed to fetch schema {source}: {e}") from e
        except ValueError as e:
            raise SchemaLoadError(f"Schema at {source} is not JSON: {e}") from e
    else:
        path = Path(source)
        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise SchemaLoadError(f"Failed to read schema {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"Invalid JSON in schema {path}: {e}") from e

    if not isinstance(schema, dict):
        raise SchemaLoadError(f"Schema from {source} is not a JSON object")
    return schema


def build_validator(schema: dict) -> Any:
    cls = validator_for(schema)
    try:
        cls.check_schema(schema)
    except SchemaError as e:
        raise SchemaLoadError(f"Schema is not a valid JSON Schema: {e.message}") from e
    return cls(schema)


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DocumentError(f"Failed to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON in {path}: {e}") from e


def _describe(error: Any) -> str:
    location = "/".join(str(p) for p in error.absolute_path) or "(root)"
    return f"{location}: {error.message}"


def validate_document(validator: Any, document: object) -> list[str]:
    errors = sorted(validator.iter_errors(document), key=lambda e: list(map(str, e.absolute_path)))
    return [_describe(e) for e in errors]


def iter_files(root: Path, suffixes: tuple[str, ...]) -> Iterator[Path]:
    """Yield matching files under ``root`` in sorted order (hidden dirs included)."""
    if not root.exists():
        raise DocumentError(f"No such file or directory: {root}")
    if root.is_file():
        if root.suffix in suffixes:
            yield root
        return
    for path in sorted(root.rglob("*")):
        if path.is_file() and path.suffix in suffixes:
            yield path


def validate_tree(root: Path, validator: Any) -> list[ValidationReport]:
    reports: list[ValidationReport] = []
    for path in iter_files(root, (".json",)):
        report = ValidationReport(path=path, errors=validate_document(validator, _load_json(path)))
        if report.valid:
            _LOGGER.info("%s is valid", path)
        else:
            _LOGGER.info("%s is not valid. see errors:", path)
        reports.append(report)
    return reports


def _normalize_workflow(data: object) -> object:
    # YAML 1.1 reads the bare `on:` trigger key as boolean True.
    if isinstance(data, dict):
        return {("on" if k is True else k): v for k, v in data.items()}
    return data


def yaml_to_json(path: Path) -> Path:
    """Convert one workflow YAML file to a sibling ``.json`` file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DocumentError(f"Failed to read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise DocumentError(f"Invalid YAML in {path}: {e}") from e

    target = path.with_suffix(".json")
    payload = json.dumps(_normalize_workflow(data), indent=2, default=str)
    target.write_text(payload + "\n", encoding="utf-8")
    _LOGGER.debug("converted %s -> %s", path, target)
    return target


def convert_tree(root: Path) -> list[Path]:
    return [yaml_to_json(p) for p in iter_files(root, YAML_SUFFIXES)]


def _cmd_validate(args: argparse.Namespace) -> int:
    try:
        validator = build_validator(load_schema(args.schema))
        reports = validate_tree(args.root, validator)
    except (SchemaLoadError, DocumentError) as e:
        _LOGGER.error("error: %s", e)
        return 2

    invalid = [r for r in reports if not r.valid]
    if args.json:
        payload = {
            "status": "FAIL" if invalid else "PASS",
            "files": [
                {"path": str(r.path), "valid": r.valid, "errors": r.errors} for r in reports
            ],
        }
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        for report in invalid:
            print(f"{report.path}:")
            for desc in report.errors:
                print(f"- {desc}")
    return 1 if invalid else 0


def _cmd_convert(args: argparse.Namespace) -> int:
    try:
        written = convert_tree(args.root)
    except DocumentError as e:
        _LOGGER.error("error: %s", e)
        return 2
    _LOGGER.info("converted %d workflow file(s)", len(written))
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="emojibot-lint-workflows", description=DESCRIPTION)
    sub = p.add_subparsers(dest="command", required=True)

    v = sub.add_parser("validate", help="Validate *.json workflows against the schema")
    v.add_argument("root", nargs="?", type=Path, default=Path("."))
    v.add_argument("--schema", default=DEFAULT_SCHEMA_URL, help="Schema URL or local path")
    v.add_argument("--json", action="store_true", help="Print machine-readable JSON result")
    v.set_defaults(func=_cmd_validate)

    c = sub.add_parser("convert", help="Convert *.yml/*.yaml workflows to sibling *.json")
    c.add_argument("root", nargs="?", type=Path, default=Path("."))
    c.set_defaults(func=_cmd_convert)

    args = p.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
