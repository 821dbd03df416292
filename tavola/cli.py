"""Command that starts one of the services: menu, order or notify."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import signal
import sys
import threading
from datetime import datetime
from typing import Any

from tavola.config import ConfigError, load_menu_config, load_notify_config, load_order_config
from tavola.health import HealthApp

_LOADERS = {
    "menu": load_menu_config,
    "order": load_order_config,
    "notify": load_notify_config,
}

_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


def _level(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelname, record.levelname)


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created).astimezone().isoformat()


class _JSONFormatter(logging.Formatter):
    def __init__(self, add_source: bool = False) -> None:
        super().__init__()
        self.add_source = add_source

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {"time": _timestamp(record), "level": _level(record)}
        if self.add_source:
            data["source"] = {
                "function": record.funcName,
                "file": record.pathname,
                "line": record.lineno,
            }
        data["msg"] = record.getMessage()
        data.update(_extras(record))
        if record.exc_info:
            data["error"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str, ensure_ascii=False)


def _quote(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    if not text or any(c in text for c in ' ="\n'):
        return json.dumps(text)
    return text


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        parts = {"time": _timestamp(record), "level": _level(record), "msg": record.getMessage()}
        parts.update(_extras(record))
        line = " ".join(f"{key}={_quote(value)}" for key, value in parts.items())
        if record.exc_info:
            line += " error=" + _quote(self.formatException(record.exc_info))
        return line


class _Bind(logging.Filter):
    def __init__(self, **attributes: Any) -> None:
        super().__init__()
        self.attributes = attributes

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.attributes.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _choose(service: str, env: str) -> tuple[int, logging.Formatter]:
    if service == "menu":
        if env == "local":
            return logging.DEBUG, _JSONFormatter(add_source=True)
        if env == "dev":
            return logging.DEBUG, _JSONFormatter()
        if env == "prod":
            return logging.INFO, _JSONFormatter()
        raise ValueError(f"unknown environment {env!r}")
    if service == "order":
        if env == "local":
            return logging.DEBUG, _JSONFormatter(add_source=True)
        if env == "dev":
            return logging.DEBUG, _JSONFormatter()
        return logging.INFO, _JSONFormatter()
    if service == "notify":
        if env == "local":
            return logging.DEBUG, _TextFormatter()
        return logging.INFO, _JSONFormatter()
    raise ValueError(f"unknown service {service!r}")


def setup_logger(service: str, env: str) -> logging.Logger:
    """Logger writing to standard output in the format and level the environment asks for."""
    level, formatter = _choose(service, env)
    logger = logging.getLogger(f"tavola.{service}")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    if service == "order":
        handler.addFilter(_Bind(service="order"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def _wait_for_shutdown() -> None:
    stop = threading.Event()
    signals = (signal.SIGTERM, signal.SIGINT)
    previous = {sig: signal.signal(sig, lambda *_: stop.set()) for sig in signals}
    try:
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def main(argv: list[str] | None = None) -> int:
    """Start a service and run it until SIGTERM or SIGINT."""
    parser = argparse.ArgumentParser(prog="tavola", description="Run a restaurant service.")
    parser.add_argument("service", choices=sorted(_LOADERS))
    parser.add_argument("-config", "--config", default="", help="path to config file")
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    config_args = ["--config", args.config] if args.config else []
    try:
        cfg = _LOADERS[args.service](config_args)
        log = setup_logger(args.service, cfg.env)
    except (ConfigError, ValueError) as exc:
        print(f"tavola: {exc}", file=sys.stderr)
        return 1

    log.debug("started with config", extra={"config": dataclasses.asdict(cfg)})

    health = None
    if args.service == "order":
        health = HealthApp([], cfg.grpc_server.address, cfg.grpc_server.port + 1)
        health.start()

    _wait_for_shutdown()

    if health is not None:
        health.stop()
    log.info("Gracefully stopped")
    return 0