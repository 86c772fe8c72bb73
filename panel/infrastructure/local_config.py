from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path

from panel.bootstrap.settings import APP_DIR_NAME
from panel.domain.models import BackendConfig

logger = logging.getLogger(__name__)


def resolve_appdata_dir() -> Path:
    env_dir = os.environ.get("LOCALAPPDATA")
    if env_dir:
        base_dir = Path(env_dir)
    else:
        base_dir = Path.home() / ".local" / "share"
    return base_dir / APP_DIR_NAME


class BackendConfigStore:
    """config.json con la URL del backend, la API key y el id de dispositivo."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = base_dir or resolve_appdata_dir()
        self._config_path = self._base_dir / "config.json"

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(self) -> BackendConfig | None:
        if not self._config_path.exists():
            return None
        try:
            payload = json.loads(self._config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("No se pudo leer config.json: %s", exc)
            return None
        if not isinstance(payload, dict):
            logger.warning("config.json no contiene un objeto; se ignora")
            return None
        backend_url = str(payload.get("backend_url", "")).strip().rstrip("/")
        api_key = str(payload.get("api_key", "")).strip()
        device_id = str(payload.get("device_id", "")).strip()
        if not device_id:
            device_id = self._generate_device_id()
            payload["device_id"] = device_id
            self._write_payload(payload)
        if not backend_url and not api_key:
            return None
        return BackendConfig(backend_url=backend_url, api_key=api_key, device_id=device_id)

    def save(self, config: BackendConfig) -> BackendConfig:
        payload = {
            "backend_url": config.backend_url.strip().rstrip("/"),
            "api_key": config.api_key.strip(),
            "device_id": config.device_id or self._generate_device_id(),
        }
        self._write_payload(payload)
        return BackendConfig(**payload)

    def _write_payload(self, payload: dict[str, str]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    @staticmethod
    def _generate_device_id() -> str:
        return str(uuid.uuid4())
