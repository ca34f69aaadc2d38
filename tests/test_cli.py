"""
CLI Tests

Runs cli.main() with patched argv and checks exit codes and output.
"""

import json
import sys

import pytest

import cli
from packages.delve.state.rng import Random


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["delve", *argv])
    return cli.main()


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    for name in ("DELVE_SEED", "DELVE_TOTAL_LEVELS", "DELVE_PLAYER_CLASS", "DELVE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestGenerate:

    def test_text(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "generate", "--seed", "abc", "--levels", "5") == 0
        out = capsys.readouterr().out
        assert "Seed: abc" in out
        assert "Connectivity: OK" in out

    def test_json(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "generate", "--seed", "abc", "--levels", "4", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["seed"] == "abc"
        assert data["issues"] == []
        assert len(data["layers"]) == 4

    def test_bad_levels(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "generate", "--seed", "abc", "--levels", "2") == 1
        assert "at least 3 levels" in capsys.readouterr().err


class TestRng:

    def test_json_matches_generator(self, monkeypatch, capsys):
        assert run_cli(monkeypatch, "rng", "--seed", "abc", "--count", "5", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        rng = Random("abc")
        assert data["next"] == [rng.next() for _ in range(5)]
        assert all(1 <= v <= 100 for v in data["next_int_1_100"])


class TestReport:

    def test_writes_html(self, monkeypatch, capsys, tmp_path):
        output = tmp_path / "report.html"
        assert run_cli(monkeypatch, "report", "--seed", "abc", "--levels", "4", "-o", str(output)) == 0
        assert "Dungeon for seed abc" in output.read_text()


class TestPlay:

    def test_step_limit_is_unfinished(self, monkeypatch, capsys, tmp_path):
        save = tmp_path / "run.json"
        code = run_cli(
            monkeypatch, "play", "--seed", "abc", "--levels", "4",
            "--max-steps", "1", "--save", str(save), "--json",
        )
        assert code == 2
        stats = json.loads(capsys.readouterr().out)
        assert stats["seed"] == "abc"
        assert save.exists()

    def test_missing_save(self, monkeypatch, capsys, tmp_path):
        assert run_cli(monkeypatch, "play", "--load", str(tmp_path / "nope.json")) == 1


def test_no_command_prints_help(monkeypatch, capsys):
    assert run_cli(monkeypatch) == 1
    assert "usage" in capsys.readouterr().out.lower()
