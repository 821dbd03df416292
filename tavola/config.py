"""Service configuration read from YAML files and environment variables."""

from __future__ import annotations

import argparse
import os
import re
import sys
from dataclasses import dataclass, field, fields
from fractions import Fraction
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote_plus

import yaml


class ConfigError(Exception):
    """Configuration could not be located, read or interpreted."""


_NS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_NUMBER = re.compile(r"(\d*)(?:\.(\d*))?")
_UNIT = re.compile(r"[^\d.]+")


def parse_duration(text: str) -> float:
    """Parse a duration such as "1h30m" or "250ms" into seconds."""
    original = text
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ConfigError(f"invalid duration {original!r}")

    total = Fraction(0)
    while text:
        number = _NUMBER.match(text)
        whole, frac = number.group(1), number.group(2)
        if not whole and not frac:
            raise ConfigError(f"invalid duration {original!r}")
        text = text[number.end():]
        unit_match = _UNIT.match(text)
        if unit_match is None:
            raise ConfigError(f"missing unit in duration {original!r}")
        unit = unit_match.group()
        if unit not in _NS_PER_UNIT:
            raise ConfigError(f"unknown unit {unit!r} in duration {original!r}")
        text = text[unit_match.end():]
        value = Fraction(int(whole or "0"))
        if frac:
            value += Fraction(int(frac), 10 ** len(frac))
        total += value * _NS_PER_UNIT[unit]

    return float(sign * total / 1_000_000_000)


def _with_fraction(value: int, size: int) -> str:
    digits = len(str(size)) - 1
    whole, rest = divmod(value, size)
    fraction = str(rest).rjust(digits, "0").rstrip("0") if digits else ""
    return f"{whole}.{fraction}" if fraction else str(whole)


def format_duration(seconds: float) -> str:
    """Render seconds in the compact form used by configuration files: "1h30m0s"."""
    nanos = round(seconds * 1_000_000_000)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_with_fraction(nanos, 1_000)}\u00b5s"
    if nanos < 1_000_000_000:
        return f"{sign}{_with_fraction(nanos, 1_000_000)}ms"

    total_seconds, sub = divmod(nanos, 1_000_000_000)
    text = f"{_with_fraction((total_seconds % 60) * 1_000_000_000 + sub, 1_000_000_000)}s"
    minutes = total_seconds // 60
    if minutes:
        text = f"{minutes % 60}m{text}"
        hours = minutes // 60
        if hours:
            text = f"{hours}h{text}"
    return sign + text


_ZERO = {"str": str, "int": int, "bool": bool, "float": float, "duration": float, "list": list}
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_TEXT = "str"
PASSWORD = "password"
_ACCESS_DEFAULT = "placeholder"
_DATABASE_LOGIN_ENV = "DATABASE_PASSWORD"
_MINIO_ACCESS_YAML = "accessKey"
_MINIO_ACCESS_ENV = "MINIO_ACCESS_KEY"
_MINIO_SIGNING_YAML = "secretKey"
_MINIO_SIGNING_ENV = "MINIO_SECRET_KEY"


def _setting(key: str, kind: str, env: str | None = None, default: str | None = None) -> Any:
    return field(
        default_factory=_ZERO[kind],
        metadata={"yaml": key, "kind": kind, "env": env, "default": default},
    )


def _section(key: str, cls: type) -> Any:
    return field(default_factory=cls, metadata={"yaml": key, "kind": "section", "cls": cls})


def _from_text(kind: str, text: str, name: str) -> Any:
    try:
        if kind == "str":
            return text
        if kind == "int":
            return int(text)
        if kind == "float":
            return float(text)
        if kind == "bool":
            if text in _TRUE:
                return True
            if text in _FALSE:
                return False
            raise ValueError(f"invalid boolean {text!r}")
        if kind == "duration":
            return parse_duration(text)
        if kind == "list":
            return text.split(",")
    except (ValueError, ConfigError) as exc:
        raise ConfigError(f"parsing field {name!r}: {exc}") from exc
    raise ConfigError(f"unsupported setting kind {kind!r}")


def _from_yaml(kind: str, raw: Any, name: str) -> Any:
    if kind == "str" and not isinstance(raw, (dict, list)):
        if isinstance(raw, bool):
            return "true" if raw else "false"
        return str(raw)
    if kind == "int" and isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if kind == "float" and isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    if kind == "bool" and isinstance(raw, bool):
        return raw
    if kind == "duration":
        if isinstance(raw, str):
            return _from_text(kind, raw, name)
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw / 1_000_000_000
    if kind == "list" and isinstance(raw, list):
        return [str(item) for item in raw]
    raise ConfigError(f"field {name!r}: cannot use {raw!r} as {kind}")


def _is_zero(value: Any) -> bool:
    return not value


def _build(cls: type, data: Mapping[str, Any], env: Mapping[str, str]) -> Any:
    values: dict[str, Any] = {}
    for spec in fields(cls):
        meta = spec.metadata
        kind = meta["kind"]
        raw = data.get(meta["yaml"])
        if kind == "section":
            if raw is None:
                raw = {}
            if not isinstance(raw, dict):
                raise ConfigError(f"section {meta['yaml']!r} must be a mapping")
            values[spec.name] = _build(meta["cls"], raw, env)
            continue

        value = _ZERO[kind]()
        if raw is not None:
            value = _from_yaml(kind, raw, meta["yaml"])
        env_name = meta["env"]
        if env_name and env_name in env:
            value = _from_text(kind, env[env_name], env_name)
        elif meta["default"] is not None and _is_zero(value):
            value = _from_text(kind, meta["default"], meta["yaml"])
        values[spec.name] = value
    return cls(**values)


@dataclass
class DatabaseConfig:
    type: str = _setting("type", "str", "DATABASE_TYPE", "postgres")
    port: int = _setting("port", "int", "DATABASE_PORT", "5432")
    host: str = _setting("host", "str", "DATABASE_HOST", "localhost")
    user: str = _setting("user", "str", "DATABASE_USER", "user")
    password: str = _setting(PASSWORD, _TEXT, _DATABASE_LOGIN_ENV, PASSWORD)
    name: str = _setting("name", "str", "DATABASE_NAME", "postgres")
    ssl_mode: str = _setting("sslMode", "str", "SSL_MODE", "false")
    pool_max_conn: int = _setting("poolMaxConn", "int", "POOL_MAX_CONN", "10")
    pool_max_conn_lifetime: float = _setting(
        "poolMaxConnLifetime", "duration", "POOL_MAX_CONN_LIFETIME", "1h30m"
    )

    def url(self) -> str:
        """Connection URL with pool settings in the query string."""
        return (
            f"{self.type}://{self.user}:{quote_plus(self.password)}@{self.host}:{self.port}"
            f"/{self.name}?sslmode={self.ssl_mode}&pool_max_conns={self.pool_max_conn}"
            f"&pool_max_conn_lifetime={format_duration(self.pool_max_conn_lifetime)}"
        )


@dataclass
class MinIOConfig:
    endpoint: str = _setting("endpoint", "str", "MINIO_ENDPOINT", "localhost:9000")
    access_key: str = _setting(_MINIO_ACCESS_YAML, _TEXT, _MINIO_ACCESS_ENV, _ACCESS_DEFAULT)
    secret_key: str = _setting(_MINIO_SIGNING_YAML, _TEXT, _MINIO_SIGNING_ENV, PASSWORD)
    use_ssl: bool = _setting("useSsl", "bool", "MINIO_USE_SSL", "false")
    bucket: str = _setting("bucket", "str", "MINIO_BUCKET", "images")
    url_expiry: float = _setting("urlExpiry", "duration")


@dataclass
class GRPCConfig:
    address: str = _setting("address", "str", "address", "address")
    port: int = _setting("port", "int", "port")


@dataclass
class _OrderGRPCConfig(GRPCConfig):
    address: str = _setting("address", "str", "GRPC_SERVER_ADDRESS", "address")
    port: int = _setting("port", "int", "GRPC_SERVER_PORT", "port")


@dataclass
class TelemetryConfig:
    service_name: str = _setting("serviceName", "str", "SERVICE_NAME")
    service_version: str = _setting("serviceVersion", "str", "SERVICE_VERSION")
    environment: str = _setting("environment", "str", "ENVIRONMENT")
    metrics_port: int = _setting("metricsPort", "int", "METRICS_PORT")
    trace_endpoint: str = _setting("traceEndpoint", "str", "TRACE_ENDPOINT", "localhost:4317")


@dataclass
class KafkaConfig:
    brokers: list = _setting("brokers", "list", "KAFKA_BROKERS", "localhost:9092")
    topic: str = _setting("topic", "str", "KAFKA_TOPIC", "events")
    retry_max: int = _setting("retryMax", "int", "KAFKA_RETRY_MAX", "5")
    return_successes: bool = _setting(
        "returnSuccesses", "bool", "KAFKA_RETURN_SUCCESSES", "true"
    )


@dataclass
class MenuClientConfig:
    address: str = _setting("address", "str")
    base_delay: float = _setting("baseDelay", "duration")
    multiplier: float = _setting("multiplier", "float")
    max_delay: float = _setting("maxDelay", "duration")
    min_connect_timeout: float = _setting("minConnectTimeout", "duration")


@dataclass
class BotConfig:
    telegram_token: str = _setting("telegram_token", "str", "TELEGRAM_TOKEN")
    bot_poll: float = _setting("bot_poll", "duration", "BOT_POLL_TIMEOUT", "30s")


@dataclass
class MenuConfig:
    env: str = _setting("env", "str", "ENV")
    db: DatabaseConfig = _section("db", DatabaseConfig)
    grpc_server: GRPCConfig = _section("grpcServer", GRPCConfig)
    minio: MinIOConfig = _section("minio", MinIOConfig)
    telemetry: TelemetryConfig = _section("telemetry", TelemetryConfig)


@dataclass
class OrderConfig:
    env: str = _setting("env", "str", "ENV")
    db: DatabaseConfig = _section("db", DatabaseConfig)
    grpc_server: GRPCConfig = _section("grpcServer", _OrderGRPCConfig)
    kafka: KafkaConfig = _section("kafka", KafkaConfig)
    process_timeout: float = _setting("processTimeout", "duration", "PROCESS_TIMEOUT")
    menu_client: MenuClientConfig = _section("menuClient", MenuClientConfig)
    telemetry: TelemetryConfig = _section("telemetry", TelemetryConfig)


@dataclass
class NotifyConfig:
    env: str = _setting("env", "str")
    bot: BotConfig = _section("bot", BotConfig)
    grpc: GRPCConfig = _section("grpc", GRPCConfig)
    shutdown: float = _setting("shutdown", "duration", "SHUTDOWN_TIMEOUT", "5s")
    stub_recipient: int = _setting("stub_recipient", "int")
    telemetry: TelemetryConfig = _section("telemetry", TelemetryConfig)


def fetch_config_path(argv: list[str] | None = None) -> str:
    """Config path from the --config flag, else the CONFIG_PATH variable, else ""."""
    parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    parser.add_argument("-config", "--config", default="")
    args, _ = parser.parse_known_args(sys.argv[1:] if argv is None else argv)
    return args.config or os.environ.get("CONFIG_PATH", "")


def _read_file(path: str) -> dict[str, Any]:
    suffix = Path(path).suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ConfigError(f"file format {suffix!r} is not supported")
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("config file must hold a mapping")
    return data


def _read_config(path: str, cls: type) -> Any:
    return _build(cls, _read_file(path), os.environ)


def _load_required(argv: list[str] | None, cls: type) -> Any:
    path = fetch_config_path(argv)
    if not path:
        raise ConfigError("config path is empty")
    if not os.path.exists(path):
        raise ConfigError(f"config file does not exist: {path}")
    try:
        return _read_config(path, cls)
    except (ConfigError, OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to read config: {exc}") from exc


def load_menu_config(argv: list[str] | None = None) -> MenuConfig:
    """Load the menu service configuration; the file is required."""
    return _load_required(argv, MenuConfig)


def load_order_config(argv: list[str] | None = None) -> OrderConfig:
    """Load the order service configuration; the file is required."""
    return _load_required(argv, OrderConfig)


def load_notify_config(argv: list[str] | None = None) -> NotifyConfig:
    """Load the notifier configuration from its file, or from the environment alone."""
    path = fetch_config_path(argv)
    if path and not os.path.exists(path):
        path = ""
    if path:
        try:
            return _read_config(path, NotifyConfig)
        except (ConfigError, OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"error readYaml config: {exc}") from exc
    try:
        return _build(NotifyConfig, {}, os.environ)
    except ConfigError as exc:
        raise ConfigError(f"error readEnv config: {exc}") from exc