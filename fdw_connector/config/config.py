from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import yaml


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"

    # Scan
    batch_size: int | None = None
    max_pages: int | None = None

    # Transport
    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False

    # Опции коннектора (только из config-файла)
    options: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_NAMES = {
    "log_level": "FDW_LOG_LEVEL",
    "log_dir": "FDW_LOG_DIR",
    "batch_size": "FDW_BATCH_SIZE",
    "max_pages": "FDW_MAX_PAGES",
    "timeout_seconds": "FDW_TIMEOUT_SECONDS",
    "retries": "FDW_RETRIES",
    "retry_backoff_seconds": "FDW_RETRY_BACKOFF_SECONDS",
    "tls_skip_verify": "FDW_TLS_SKIP_VERIFY",
}


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


def parse_int(v: str | None) -> int | None:
    if v is None:
        return None
    return int(v)


def parse_float(v: str | None) -> float | None:
    if v is None:
        return None
    return float(v)


def parse_bool(v: str | None) -> bool | None:
    if v is None:
        return None
    vv = v.lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean value: {v}")


def _to_bool(v: object) -> bool:
    # В YAML флаг может прийти строкой ("false")
    if isinstance(v, str):
        return bool(parse_bool(v.strip()))
    return bool(v)


_ENV_PARSERS = {
    "batch_size": parse_int,
    "max_pages": parse_int,
    "timeout_seconds": parse_float,
    "retries": parse_int,
    "retry_backoff_seconds": parse_float,
    "tls_skip_verify": parse_bool,
}


def _options_from_config(cfg: dict) -> dict[str, str]:
    raw = cfg.get("options") or {}
    if not isinstance(raw, dict):
        raise ValueError("config key `options` must be a mapping")
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def loadSettings(
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

    merged = {
        name: cfg.get(name, getattr(defaults, name))
        for name in ENV_NAMES
    }

    # 2) env
    env = {name: _env_get(env_name) for name, env_name in ENV_NAMES.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for name, value in env.items():
        if value is None:
            continue
        parser = _ENV_PARSERS.get(name)
        merged[name] = parser(value) if parser else value

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    settings = Settings(
        log_level=str(merged["log_level"]),
        log_dir=str(merged["log_dir"]),
        batch_size=merged["batch_size"],
        max_pages=merged["max_pages"],
        timeout_seconds=float(merged["timeout_seconds"]),
        retries=int(merged["retries"]),
        retry_backoff_seconds=float(merged["retry_backoff_seconds"]),
        tls_skip_verify=_to_bool(merged["tls_skip_verify"]),
        options=_options_from_config(cfg),
    )

    if settings.batch_size is not None and settings.batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    if settings.max_pages is not None and settings.max_pages < 1:
        raise ValueError("max_pages must be >= 1")

    return LoadedSettings(settings=settings, sources_used=sources)
