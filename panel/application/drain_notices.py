from __future__ import annotations

from dataclasses import dataclass

from panel.domain.sync_models import DrainResult, SyncAction, SyncTrigger


@dataclass(frozen=True)
class SyncNotice:
    severity: str
    message: str


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def build_drain_notices(result: DrainResult) -> list[SyncNotice]:
    """Mensajes de aviso (toasts) al terminar un drenaje."""

    entry = result.entry
    tipo = "manual" if entry.trigger is SyncTrigger.MANUAL else "automática"
    notices: list[SyncNotice] = []
    if entry.success_count > 0:
        notices.append(
            SyncNotice(
                "success",
                f"Sincronización {tipo} completada: {entry.success_count} "
                f"{_plural(entry.success_count, 'elemento', 'elementos')}",
            )
        )
    if entry.error_count > 0:
        notices.append(
            SyncNotice(
                "error",
                f"Error sincronizando {entry.error_count} "
                f"{_plural(entry.error_count, 'elemento', 'elementos')}",
            )
        )
    return notices


def offline_saved_notice(action: SyncAction) -> SyncNotice:
    labels = {
        SyncAction.CREATE: "Creación",
        SyncAction.UPDATE: "Actualización",
        SyncAction.DELETE: "Eliminación",
    }
    return SyncNotice("info", f"{labels[action]} guardada localmente - Se sincronizará automáticamente")
