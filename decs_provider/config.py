from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

# Фиксированные потолки: per-call настройки не предусмотрены.
READ_TIMEOUT_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class Settings:
    # API
    controller_url: str | None = None
    jwt: str | None = None
    user: str | None = None
    password: str | None = None

    # Transport
    tls_skip_verify: bool = False
    ca_file: str | None = None
    retries: int = 0
    retry_backoff_seconds: float = 0.5

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"

    # Resolution
    match_policy: str = "first_match"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_int(v: str | None) -> int | None:
    if v is None:
        return None
    try:
        return int(v)
    except ValueError as exc:
        raise ValueError(f"Invalid integer env value: {v}") from exc


def _parse_float(v: str | None) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except ValueError as exc:
        raise ValueError(f"Invalid float env value: {v}") from exc


def _parse_bool(v: str | None) -> bool | None:
    if v is None:
        return None
    vv = v.lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean env value: {v}")


_ENV_VARS = {
    "controller_url": ("DECS_CONTROLLER_URL", None),
    "jwt": ("DECS_JWT", None),
    "user": ("DECS_USER", None),
    "password": ("DECS_PASSWORD", None),
    "tls_skip_verify": ("DECS_TLS_SKIP_VERIFY", _parse_bool),
    "ca_file": ("DECS_CA_FILE", None),
    "retries": ("DECS_RETRIES", _parse_int),
    "retry_backoff_seconds": ("DECS_RETRY_BACKOFF_SECONDS", _parse_float),
    "log_dir": ("DECS_LOG_DIR", None),
    "log_level": ("DECS_LOG_LEVEL", None),
    "match_policy": ("DECS_MATCH_POLICY", None),
}


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    merged = {key: cfg.get(key, getattr(defaults, key)) for key in _ENV_VARS}

    # 2) env
    env_raw = {key: _env_get(name) for key, (name, _parser) in _ENV_VARS.items()}
    if any(v is not None for v in env_raw.values()):
        sources.append("env")

    for key, (_name, parser) in _ENV_VARS.items():
        raw = env_raw[key]
        if raw is None:
            continue
        merged[key] = parser(raw) if parser else raw

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        if k not in merged:
            raise ValueError(f"Unknown setting: {k}")
        merged[k] = v

    settings = Settings(
        controller_url=merged["controller_url"],
        jwt=merged["jwt"],
        user=merged["user"],
        password=merged["password"],
        tls_skip_verify=bool(merged["tls_skip_verify"]),
        ca_file=merged["ca_file"],
        retries=int(merged["retries"]),
        retry_backoff_seconds=float(merged["retry_backoff_seconds"]),
        log_dir=str(merged["log_dir"]),
        log_level=str(merged["log_level"]),
        match_policy=str(merged["match_policy"]),
    )

    return LoadedSettings(settings=settings, sources_used=sources)
