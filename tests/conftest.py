from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def _clean_fail_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FAIL_HEALTHCHECK", raising=False)


@pytest.fixture()
def workflow_schema() -> dict[str, Any]:
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["on", "jobs"],
        "properties": {
            "name": {"type": "string"},
            "on": {},
            "jobs": {
                "type": "object",
                "additionalProperties": {
                    "type": "object",
                    "required": ["runs-on"],
                },
            },
        },
    }


@pytest.fixture()
def schema_file(tmp_path: Path, workflow_schema: dict[str, Any]) -> Path:
    path = tmp_path / "github-workflow.json"
    path.write_text(json.dumps(workflow_schema), encoding="utf-8")
    return path


@pytest.fixture()
def workflows_dir(tmp_path: Path) -> Path:
    path = tmp_path / "repo" / ".github" / "workflows"
    path.mkdir(parents=True)
    return path
