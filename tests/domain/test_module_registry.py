from __future__ import annotations

import pytest

from panel.core.errors import ValidationError
from panel.domain.models import ALL_ROLES, Module
from panel.domain.module_registry import (
    DASHBOARD_MODULES,
    SIDEBAR_MODULES,
    catalog_for,
    visible_modules,
)


@pytest.mark.parametrize("registry", [DASHBOARD_MODULES, SIDEBAR_MODULES])
def test_ids_unicos_y_roles_validos(registry) -> None:
    ids = [module.id for module in registry]

    assert len(ids) == len(set(ids))
    for module in registry:
        assert module.allowed_roles
        assert module.allowed_roles <= ALL_ROLES


def test_admin_ve_todo_el_dashboard() -> None:
    assert visible_modules(DASHBOARD_MODULES, "admin") == list(DASHBOARD_MODULES)


def test_tecnico_solo_ve_modulos_operativos() -> None:
    ids = [module.id for module in visible_modules(DASHBOARD_MODULES, "technician")]

    assert ids == ["tasks", "tickets", "evidences", "settings", "support"]


def test_manager_no_ve_modulos_de_admin() -> None:
    ids = {module.id for module in visible_modules(DASHBOARD_MODULES, "manager")}

    assert ids.isdisjoint({"finances", "accounting", "users"})
    assert {"crm", "sales", "tickets"} <= ids


def test_rol_desconocido_no_ve_nada() -> None:
    assert visible_modules(DASHBOARD_MODULES, "invitado") == []


def test_sidebar_empieza_por_dashboard() -> None:
    assert SIDEBAR_MODULES[0].id == "dashboard"


def test_catalog_for() -> None:
    assert catalog_for("dashboard") is DASHBOARD_MODULES
    assert catalog_for("sidebar") is SIDEBAR_MODULES
    with pytest.raises(ValidationError):
        catalog_for("otro")


def test_module_es_inmutable() -> None:
    module = Module("x", "X", "desc", frozenset({"admin"}))

    with pytest.raises(AttributeError):
        module.title = "Y"  # type: ignore[misc]
