"""Catálogo estático de módulos del panel.

Datos puros: ningún componente lo muta en tiempo de ejecución. El orden de
declaración es el orden por defecto con el que se inicializa cada rol.
"""
from __future__ import annotations

from typing import Iterable

from panel.core.errors import ValidationError
from panel.domain.models import Module, Role

_TODOS = frozenset({Role.ADMIN.value, Role.MANAGER.value, Role.TECHNICIAN.value})
_GESTION = frozenset({Role.ADMIN.value, Role.MANAGER.value})
_ADMIN = frozenset({Role.ADMIN.value})


DASHBOARD_MODULES: tuple[Module, ...] = (
    Module("crm", "CRM", "Gestión integral de relaciones con clientes y leads", _GESTION, stats="1,234", badge="12"),
    Module("sales", "Ventas", "Control de ventas, cotizaciones y facturación", _GESTION, stats="₡2.5M"),
    Module("tasks", "Lista de Tareas", "Gestión de tareas con recordatorios automáticos", _TODOS, stats="23 pendientes", badge="3"),
    Module("finances", "Finanzas Generales", "Panel de control financiero administrativo", _ADMIN, stats="$2.1M ganancia"),
    Module("tickets", "Sistema de Tickets", "Gestión de incidencias y soporte técnico", _TODOS, stats="47 abiertos", badge="5"),
    Module("evidences", "Evidencias", "Gestión y almacenamiento de evidencias fotográficas", _TODOS, stats="324 archivos"),
    Module("inventory", "Inventario", "Control de stock, productos y almacenes", _GESTION, stats="2,156"),
    Module("projects", "Proyectos", "Planificación y seguimiento de proyectos", _GESTION, stats="12 activos"),
    Module("accounting", "Contabilidad", "Gestión financiera y contable completa", _ADMIN, stats="₡15.2M"),
    Module("reports", "Reportes y KPIs", "Análisis de datos y métricas de negocio", _GESTION, stats="24 reportes"),
    Module("contacts", "Contactos", "Gestión de contactos y agenda", _GESTION),
    Module("users", "Gestión de Usuarios", "Administración de usuarios y permisos", _ADMIN, stats="89 usuarios"),
    Module("settings", "Configuración", "Ajustes del sistema", _TODOS),
    Module("support", "Soporte", "Centro de ayuda y documentación", _TODOS),
)

SIDEBAR_MODULES: tuple[Module, ...] = (
    Module("dashboard", "Dashboard", "Vista general", _TODOS),
    Module("crm", "CRM", "Relaciones con clientes", _GESTION),
    Module("sales", "Ventas", "Ventas y cotizaciones", _GESTION),
    Module("customers", "Clientes", "Clientes y villas", _GESTION),
    Module("tasks", "Tareas", "Tareas y recordatorios", _TODOS),
    Module("finances", "Finanzas Generales", "Finanzas", _ADMIN),
    Module("inventory", "Inventario", "Stock y almacenes", _GESTION),
    Module("tickets", "Tickets", "Incidencias y soporte", _TODOS),
    Module("evidences", "Evidencias", "Evidencias fotográficas", _TODOS),
    Module("projects", "Proyectos", "Seguimiento de proyectos", _GESTION),
    Module("accounting", "Contabilidad", "Contabilidad", _ADMIN),
    Module("reports", "Reportes", "Reportes y KPIs", _GESTION),
    Module("users", "Usuarios", "Usuarios y permisos", _ADMIN),
    Module("settings", "Configuración", "Ajustes del sistema", _ADMIN),
)

_CATALOGS: dict[str, tuple[Module, ...]] = {
    "dashboard": DASHBOARD_MODULES,
    "sidebar": SIDEBAR_MODULES,
}


def catalog_for(name: str) -> tuple[Module, ...]:
    try:
        return _CATALOGS[name]
    except KeyError as exc:
        raise ValidationError(f"Catálogo de módulos desconocido: {name}") from exc


def visible_modules(registry: Iterable[Module], role: str) -> list[Module]:
    return [module for module in registry if module.visible_for(role)]
