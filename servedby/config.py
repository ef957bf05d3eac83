# servedby/config.py
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from servedby.errors import ConfigError

DEFAULT_LISTEN = ":5678"


def _truthy(raw: str | None, default: bool = False) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    text: str
    listen: str = DEFAULT_LISTEN

    # Outbound lookups share one explicit timeout (seconds)
    lookup_timeout_secs: float = 2.0

    # Collaborator endpoints, read from the same env vars their own clients use
    metadata_host: str = "169.254.169.254"
    consul_addr: str = "http://127.0.0.1:8500"
    consul_token: str = ""
    consul_verify: bool = True
    nomad_addr: str = "http://127.0.0.1:4646"
    nomad_token: str = ""
    nomad_region: str = ""
    nomad_verify: bool = True

    log_level: str = "INFO"
    metrics_enabled: bool = False


def _consul_addr(env: Mapping[str, str]) -> str:
    addr = env.get("CONSUL_HTTP_ADDR", "").strip() or "127.0.0.1:8500"
    if "://" in addr:
        return addr.rstrip("/")
    scheme = "https" if _truthy(env.get("CONSUL_HTTP_SSL")) else "http"
    return f"{scheme}://{addr}"


def load_settings(
    listen: str = DEFAULT_LISTEN,
    text: str = "",
    env: Mapping[str, str] | None = None,
) -> Settings:
    """
    Build the process Settings from CLI values plus the environment.

    Raises ConfigError when `text` is empty or a numeric env value is malformed.
    """
    if env is None:
        env = os.environ
    if not text:
        raise ConfigError("Missing -text option!")

    raw_timeout = env.get("SERVEDBY_LOOKUP_TIMEOUT_SECS", "2")
    try:
        timeout = float(raw_timeout)
    except ValueError as e:
        raise ConfigError(f"invalid SERVEDBY_LOOKUP_TIMEOUT_SECS: {raw_timeout!r}") from e
    if timeout <= 0:
        raise ConfigError("SERVEDBY_LOOKUP_TIMEOUT_SECS must be positive")

    return Settings(
        text=text,
        listen=listen or DEFAULT_LISTEN,
        lookup_timeout_secs=timeout,
        metadata_host=env.get("GCE_METADATA_HOST", "").strip() or "169.254.169.254",
        consul_addr=_consul_addr(env),
        consul_token=env.get("CONSUL_HTTP_TOKEN", ""),
        consul_verify=_truthy(env.get("CONSUL_HTTP_SSL_VERIFY"), default=True),
        nomad_addr=(env.get("NOMAD_ADDR", "").strip() or "http://127.0.0.1:4646").rstrip("/"),
        nomad_token=env.get("NOMAD_TOKEN", ""),
        nomad_region=env.get("NOMAD_REGION", ""),
        nomad_verify=not _truthy(env.get("NOMAD_SKIP_VERIFY")),
        log_level=(env.get("LOG_LEVEL", "").strip() or "INFO").upper(),
        metrics_enabled=env.get("SERVEDBY_METRICS", "0") == "1",
    )
