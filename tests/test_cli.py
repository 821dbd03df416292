import json
import logging

import pytest

from tavola.cli import main, setup_logger


@pytest.mark.parametrize(
    "service, env, level",
    [
        ("menu", "local", logging.DEBUG),
        ("menu", "dev", logging.DEBUG),
        ("menu", "prod", logging.INFO),
        ("order", "local", logging.DEBUG),
        ("order", "production", logging.INFO),
        ("order", "staging", logging.INFO),
        ("notify", "local", logging.DEBUG),
        ("notify", "prod", logging.INFO),
        ("notify", "other", logging.INFO),
    ],
)
def test_setup_logger_levels(service, env, level):
    assert setup_logger(service, env).level == level


def test_menu_unknown_env_rejected():
    with pytest.raises(ValueError):
        setup_logger("menu", "staging")


def test_order_logger_writes_json_with_service(capsys):
    log = setup_logger("order", "production")
    log.info("hello", extra={"port": 50051})
    line = capsys.readouterr().out.strip().splitlines()[-1]
    data = json.loads(line)
    assert data["msg"] == "hello"
    assert data["level"] == "INFO"
    assert data["service"] == "order"
    assert data["port"] == 50051


def test_local_logger_adds_source(capsys):
    log = setup_logger("menu", "local")
    log.debug("debugging")
    data = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert data["msg"] == "debugging"
    assert "source" in data


def test_prod_logger_drops_debug(capsys):
    log = setup_logger("menu", "prod")
    log.debug("hidden")
    assert "hidden" not in capsys.readouterr().out


def test_notify_local_logger_writes_text(capsys):
    log = setup_logger("notify", "local")
    log.debug("ping")
    out = capsys.readouterr().out
    assert "level=DEBUG" in out
    assert "msg=ping" in out


def test_main_without_config_fails(monkeypatch, capsys):
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    assert main(["menu"]) == 1
    assert "config path is empty" in capsys.readouterr().err


def test_main_missing_config_file_fails(tmp_path, capsys):
    missing = tmp_path / "absent.yaml"
    assert main(["order", "--config", str(missing)]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_main_bad_environment_fails(tmp_path, capsys):
    path = tmp_path / "menu.yaml"
    path.write_text("env: staging\n", encoding="utf-8")
    assert main(["menu", "--config", str(path)]) == 1
    assert "staging" in capsys.readouterr().err


def test_main_unknown_service():
    with pytest.raises(SystemExit) as info:
        main(["kitchen"])
    assert info.value.code == 2