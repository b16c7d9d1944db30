# Tests for the server entry point (python -m strongbox)

import json

import pytest

import strongbox.api.main as api_main
from strongbox.__main__ import main

SECRET_ENV = ("JWT_SECRET", "CRYPTO_KEY", "STRONGBOX_CONFIG", "SERVER_PORT", "STORAGE_BACKEND")


@pytest.fixture(autouse=True)
def _clean_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in SECRET_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))


def test_missing_secrets_exit_code(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2
    assert "JWT_SECRET" in capsys.readouterr().err


def test_starts_server_with_cli_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "entry-point-secret-at-least-32-bytes")
    monkeypatch.setenv("CRYPTO_KEY", "entry-point-key")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")

    started = []

    def fake_start(config, audit_logger=None):
        started.append(config)

    monkeypatch.setattr(api_main, "start_api_server", fake_start)

    main(["--host", "0.0.0.0", "--port", "9999"])

    assert len(started) == 1
    assert started[0].host == "0.0.0.0"
    assert started[0].port == 9999

    log_files = list((tmp_path / "logs").glob("audit_*.log"))
    assert len(log_files) == 1
    events = [json.loads(line)["event_type"] for line in log_files[0].read_text().splitlines() if line]
    assert events == ["system.start", "system.stop"]


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert "Strongbox v" in capsys.readouterr().out
