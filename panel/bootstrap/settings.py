from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

APP_DIR_NAME = "PanelOperaciones"

DEFAULT_SETTLE_DELAY_MS = 2000
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_CONNECTIVITY_INTERVAL_MS = 5000
DEFAULT_CONNECTIVITY_HOST = "8.8.8.8"
DEFAULT_CONNECTIVITY_PORT = 53
DEFAULT_CONNECTIVITY_TIMEOUT_S = 3.0
DEFAULT_ROLE = "admin"
DEFAULT_LOG_MAX_BYTES = 1_048_576

_TRUTHY = {"1", "true", "yes", "si", "sí", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: Path | None = None
    settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    connectivity_interval_ms: int = DEFAULT_CONNECTIVITY_INTERVAL_MS
    connectivity_host: str = DEFAULT_CONNECTIVITY_HOST
    connectivity_port: int = DEFAULT_CONNECTIVITY_PORT
    connectivity_timeout_s: float = DEFAULT_CONNECTIVITY_TIMEOUT_S
    retain_failed: bool = False
    role: str = DEFAULT_ROLE
    log_max_bytes: int = DEFAULT_LOG_MAX_BYTES


def project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def resolve_log_dir() -> Path:
    candidates: list[Path] = []
    env_dir = os.environ.get("PANEL_LOG_DIR")
    if env_dir:
        candidates.append(Path(env_dir))
    candidates.append(project_root() / "logs")
    candidates.append(Path(tempfile.gettempdir()) / APP_DIR_NAME / "logs")

    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            test_file = candidate / "_write_test.tmp"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink(missing_ok=True)
            return candidate
        except OSError:
            continue

    fallback = project_root()
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        return default
    return value if value >= minimum else default


def _env_float(name: str, default: float) -> float:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in _TRUTHY


def load_settings() -> Settings:
    db_path_env = os.getenv("PANEL_DB_PATH", "").strip()
    return Settings(
        db_path=Path(db_path_env) if db_path_env else None,
        settle_delay_ms=_env_int("PANEL_SETTLE_DELAY_MS", DEFAULT_SETTLE_DELAY_MS),
        history_limit=_env_int("PANEL_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT, minimum=1),
        connectivity_interval_ms=_env_int(
            "PANEL_CONNECTIVITY_INTERVAL_MS", DEFAULT_CONNECTIVITY_INTERVAL_MS, minimum=100
        ),
        connectivity_host=os.getenv("PANEL_CONNECTIVITY_HOST", DEFAULT_CONNECTIVITY_HOST).strip()
        or DEFAULT_CONNECTIVITY_HOST,
        connectivity_port=_env_int("PANEL_CONNECTIVITY_PORT", DEFAULT_CONNECTIVITY_PORT, minimum=1),
        connectivity_timeout_s=_env_float("PANEL_CONNECTIVITY_TIMEOUT_S", DEFAULT_CONNECTIVITY_TIMEOUT_S),
        retain_failed=_env_bool("PANEL_RETAIN_FAILED", False),
        role=os.getenv("PANEL_ROLE", DEFAULT_ROLE).strip().lower() or DEFAULT_ROLE,
        log_max_bytes=_env_int("PANEL_LOG_MAX_BYTES", DEFAULT_LOG_MAX_BYTES, minimum=1024),
    )
