from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from panel.domain.sync_models import SyncHistoryEntry, SyncTrigger


@dataclass(frozen=True)
class FilaHistorialSync:
    entry_id: str
    fecha: str
    resumen: str
    con_errores: bool
    detalles: tuple[str, ...]


def formatear_fecha(timestamp: str) -> str:
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def _resumen(entry: SyncHistoryEntry) -> str:
    partes = [f"{entry.total_items} total"]
    if entry.success_count > 0:
        partes.append(f"{entry.success_count} ok")
    if entry.error_count > 0:
        partes.append(f"{entry.error_count} con error")
    origen = "manual" if entry.trigger is SyncTrigger.MANUAL else "automática"
    return f"{' · '.join(partes)} ({origen})"


def construir_filas_historial(entries: Iterable[SyncHistoryEntry]) -> list[FilaHistorialSync]:
    return [
        FilaHistorialSync(
            entry_id=entry.id,
            fecha=formatear_fecha(entry.timestamp),
            resumen=_resumen(entry),
            con_errores=entry.has_errors,
            detalles=entry.details,
        )
        for entry in entries
    ]
