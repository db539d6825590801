"""Tests for the typer command-line entry point."""

import json
from pathlib import Path

from typer.testing import CliRunner

from creator_digest.cli import app

runner = CliRunner()


def _export(tmp_path: Path) -> Path:
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "records": [
                    {
                        "id": "f1",
                        "sourceCategory": "syndicated-feed",
                        "creatorId": "creator-1",
                        "title": "Weekly notes",
                        "canonicalUrl": "https://blog.example.com/notes",
                        "publishedAt": "2026-02-03T08:00:00Z",
                        "engagementScore": 12,
                        "relevanceScore": 80,
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_run_command_writes_digest(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        ["run", "-i", str(export), "-o", str(out), "--now", "2026-02-03T12:00:00Z", "--no-log-file"],
    )

    assert result.exit_code == 0, result.output
    digest = json.loads((out / "export" / "digest.json").read_text(encoding="utf-8"))
    assert [item["id"] for item in digest["sections"][0]["items"]] == ["f1"]
    assert not (out / "export" / "run.jsonl").exists()


def test_overrides_reach_the_pipeline(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)
    out = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "run", "-i", str(export), "-o", str(out),
            "--now", "2026-02-03T12:00:00Z",
            "--relevance-threshold", "90",
            "--no-log-file",
        ],
    )

    assert result.exit_code == 0, result.output
    digest = json.loads((out / "export" / "digest.json").read_text(encoding="utf-8"))
    assert digest["sections"][0]["items"] == []


def test_invalid_reference_time_exits_with_code_2(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)

    result = runner.invoke(app, ["run", "-i", str(export), "-o", str(tmp_path / "out"), "--now", "soon"])

    assert result.exit_code == 2
    assert not (tmp_path / "out").exists()


def test_negative_word_budget_exits_with_code_2(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)

    result = runner.invoke(
        app, ["run", "-i", str(export), "-o", str(tmp_path / "out"), "--word-budget", "-1"]
    )

    assert result.exit_code == 2


def test_invalid_config_file_exits_with_code_2(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)
    config = tmp_path / "config.yaml"
    config.write_text("sections:\n  - name: s\n    total_limit: -1\n", encoding="utf-8")

    result = runner.invoke(
        app, ["run", "-i", str(export), "-o", str(tmp_path / "out"), "-c", str(config)]
    )

    assert result.exit_code == 2
    assert not (tmp_path / "out").exists()


def test_unknown_config_key_exits_with_code_2(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    export = _export(tmp_path)
    config = tmp_path / "config.yaml"
    config.write_text("assembly:\n  word_limit: 10\n", encoding="utf-8")

    result = runner.invoke(
        app, ["run", "-i", str(export), "-o", str(tmp_path / "out"), "-c", str(config)]
    )

    assert result.exit_code == 2
