from __future__ import annotations

import logging
from typing import Any

import requests

from panel.core.errors import ExternalServiceError, TransientExternalError
from panel.domain.models import BackendConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0
_TRANSIENT_STATUS = {408, 425, 429, 500, 502, 503, 504}

TABLE_BY_MODULE: dict[str, str] = {
    "tickets": "tickets",
    "technical_resources": "technical_resources",
    "technicians": "technicians",
    "villas": "client_villas",
}


def classify_http_error(status_code: int, text: str) -> ExternalServiceError:
    detail = (text or "").strip()[:300]
    if status_code in _TRANSIENT_STATUS:
        return TransientExternalError(
            f"Backend no disponible temporalmente (HTTP {status_code}). {detail}".strip(),
            status_code=status_code,
        )
    if status_code in {401, 403}:
        return ExternalServiceError(f"Sin permisos en el backend (HTTP {status_code}).", status_code=status_code)
    if status_code == 404:
        return ExternalServiceError("Recurso no encontrado en el backend.", status_code=status_code)
    return ExternalServiceError(f"Error del backend (HTTP {status_code}). {detail}".strip(), status_code=status_code)


class RestEntityGateway:
    """CRUD de una tabla del backend vía su API REST (estilo PostgREST)."""

    def __init__(
        self,
        config: BackendConfig,
        table: str,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._config = config
        self._table = table
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds

    @property
    def table(self) -> str:
        return self._table

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        rows = self._request("POST", json=data)
        return rows[0] if rows else dict(data)

    def update(self, entity_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        rows = self._request("PATCH", params={"id": f"eq.{entity_id}"}, json=updates)
        return rows[0] if rows else {"id": entity_id, **updates}

    def delete(self, entity_id: str) -> None:
        self._request("DELETE", params={"id": f"eq.{entity_id}"})

    def _url(self) -> str:
        return f"{self._config.backend_url}/rest/v1/{self._table}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._config.api_key,
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _request(self, method: str, **kwargs: Any) -> list[dict[str, Any]]:
        try:
            response = self._session.request(
                method,
                self._url(),
                headers=self._headers(),
                timeout=self._timeout_seconds,
                **kwargs,
            )
        except requests.exceptions.RequestException as exc:
            raise TransientExternalError(f"Sin respuesta del backend: {exc}") from exc

        if response.status_code >= 400:
            raise classify_http_error(response.status_code, response.text)
        if not response.content:
            return []
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Respuesta no JSON del backend para %s %s", method, self._table)
            return []
        if isinstance(payload, list):
            return [row for row in payload if isinstance(row, dict)]
        if isinstance(payload, dict):
            return [payload]
        return []


def build_rest_gateways(
    config: BackendConfig,
    *,
    session: requests.Session | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, RestEntityGateway]:
    shared_session = session or requests.Session()
    return {
        module: RestEntityGateway(config, table, session=shared_session, timeout_seconds=timeout_seconds)
        for module, table in TABLE_BY_MODULE.items()
    }
