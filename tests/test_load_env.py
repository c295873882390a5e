import os
from pathlib import Path

import pytest

import run


def _parse_env_file(env_path: Path, *, override: bool = False) -> None:
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip()
        if override or key not in os.environ:
            os.environ[key] = val


def test_load_env_is_optional_and_does_not_override_env(tmp_path: Path, monkeypatch):
    env_path = tmp_path / ".env"
    env_path.write_text("GEOAPIFY_API_KEY=from-dotenv\n", encoding="utf-8")

    called = {}

    def fake_load_dotenv(*, dotenv_path, override=False):
        called["dotenv_path"] = Path(dotenv_path).resolve()
        _parse_env_file(Path(dotenv_path), override=bool(override))
        return True

    monkeypatch.setattr(run, "_load_dotenv", fake_load_dotenv)
    monkeypatch.setenv("GEOAPIFY_API_KEY", "from-env")

    run.load_env(root_dir=tmp_path)

    assert called["dotenv_path"] == env_path.resolve()
    assert os.environ.get("GEOAPIFY_API_KEY") == "from-env"


def test_load_env_missing_file_is_noop(tmp_path: Path, monkeypatch):
    def fail_load_dotenv(**kwargs):
        raise AssertionError("load_dotenv should not be called")

    monkeypatch.setattr(run, "_load_dotenv", fail_load_dotenv)
    run.load_env(root_dir=tmp_path)


def test_preflight_reports_missing_keys(monkeypatch, capsys):
    monkeypatch.setenv("GEOAPIFY_API_KEY", "x")
    monkeypatch.delenv("TRIPADVISOR_API_KEY", raising=False)

    assert run.run_preflight() == 1
    out = " ".join(capsys.readouterr().out.split())
    assert "GEOAPIFY_API_KEY: OK" in out
    assert "TRIPADVISOR_API_KEY: MISSING" in out


def test_parse_args_defaults():
    args = run.parse_args(["meetup", "--from", "A", "--to", "B"])
    assert args.mode == "meetup"
    assert args.origin == "A"
    assert args.destination == "B"
    assert args.category == "catering.restaurant"
    assert args.format == "table"


def test_help_mentions_route_coverage_limit(capsys):
    with pytest.raises(SystemExit):
        run.parse_args(["--help"])
    out = " ".join(capsys.readouterr().out.split())
    assert "halfway point" in out
    assert "does not cover the whole route" in out
