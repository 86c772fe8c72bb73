from __future__ import annotations

from dataclasses import dataclass

from panel.application.drain_notices import SyncNotice

REASON_SYNC_INICIADA = "sync_iniciada"
REASON_SYNC_SIN_CONEXION = "sync_sin_conexion"
REASON_SYNC_COLA_VACIA = "sync_cola_vacia"
REASON_SYNC_EN_PROGRESO = "sync_en_progreso"
REASON_SYNC_NO_CONFIGURADO = "sync_no_configurado"


@dataclass(frozen=True)
class EstadoIndicadorSyncEntrada:
    """Señales necesarias para pintar el indicador flotante de sincronización."""

    online: bool
    sincronizando: bool
    pendientes: int
    historial: int
    configurado: bool = True


@dataclass(frozen=True)
class DecisionIndicadorSync:
    visible: bool
    badge_text: str
    badge_variant: str
    force_sync_enabled: bool
    force_sync_text: str
    detalle: tuple[str, ...]
    reason_code: str


def _plural(total: int, singular: str, plural: str) -> str:
    return singular if total == 1 else plural


def _texto_badge(entrada: EstadoIndicadorSyncEntrada) -> str:
    if entrada.sincronizando:
        return "Sincronizando..."
    if entrada.online:
        return f"{entrada.pendientes} {_plural(entrada.pendientes, 'pendiente', 'pendientes')}"
    return f"{entrada.pendientes} offline"


def _variante_badge(entrada: EstadoIndicadorSyncEntrada) -> str:
    if not entrada.online:
        return "destructive"
    return "default" if entrada.sincronizando else "outline"


def razon_sync_manual(entrada: EstadoIndicadorSyncEntrada) -> str:
    """Decide si un "Forzar Sync" puede arrancar; el orden fija la precedencia."""

    if not entrada.configurado:
        return REASON_SYNC_NO_CONFIGURADO
    if not entrada.online:
        return REASON_SYNC_SIN_CONEXION
    if entrada.pendientes == 0:
        return REASON_SYNC_COLA_VACIA
    if entrada.sincronizando:
        return REASON_SYNC_EN_PROGRESO
    return REASON_SYNC_INICIADA


def _detalle(entrada: EstadoIndicadorSyncEntrada) -> tuple[str, ...]:
    lineas: list[str] = []
    if entrada.pendientes > 0:
        lineas.append(
            f"{entrada.pendientes} {_plural(entrada.pendientes, 'elemento', 'elementos')} en cola"
        )
    if entrada.historial > 0:
        lineas.append(
            f"{entrada.historial} "
            f"{_plural(entrada.historial, 'sincronización', 'sincronizaciones')} en historial"
        )
    lineas.append("Conectado" if entrada.online else "Sin conexión")
    return tuple(lineas)


def decidir_estado_indicador_sync(entrada: EstadoIndicadorSyncEntrada) -> DecisionIndicadorSync:
    reason_code = razon_sync_manual(entrada)
    return DecisionIndicadorSync(
        visible=entrada.pendientes > 0 or entrada.historial > 0,
        badge_text=_texto_badge(entrada),
        badge_variant=_variante_badge(entrada),
        force_sync_enabled=reason_code == REASON_SYNC_INICIADA,
        force_sync_text="Sincronizando..." if entrada.sincronizando else "Forzar Sync",
        detalle=_detalle(entrada),
        reason_code=reason_code,
    )


_AVISOS_SYNC_MANUAL: dict[str, SyncNotice] = {
    REASON_SYNC_INICIADA: SyncNotice("info", "Iniciando sincronización manual..."),
    REASON_SYNC_SIN_CONEXION: SyncNotice("error", "No hay conexión a internet para sincronizar"),
    REASON_SYNC_COLA_VACIA: SyncNotice("info", "No hay elementos pendientes para sincronizar"),
    REASON_SYNC_EN_PROGRESO: SyncNotice("info", "Ya hay una sincronización en curso"),
    REASON_SYNC_NO_CONFIGURADO: SyncNotice("warning", "Falta configurar el backend para sincronizar"),
}


def aviso_sync_manual(reason_code: str) -> SyncNotice | None:
    return _AVISOS_SYNC_MANUAL.get(reason_code)
