import pytest

from ordering.services.permission_service import PermissionService
from ordering.utils import role_permissions


def test_generate_permissions_from_pages():
    permissions = {p["name"]: p for p in PermissionService(None).generate_permissions()}
    users_view = permissions["users.view"]
    assert users_view["display_name"] == "Ver Usuarios"
    assert users_view["description"] == "Ver Gestión de usuarios del sistema"
    assert users_view["group"] == "users"
    assert "menu.products.create" in permissions
    assert "home.view" in permissions


def test_unknown_action_gets_generic_description():
    pages = {"reports": {"display_name": "Reportes", "description": "reportes de ventas", "actions": ["view", "export"]}}
    permissions = {p["name"]: p for p in PermissionService(None, pages=pages).generate_permissions()}
    assert set(permissions) == {"reports.view", "reports.export"}
    assert permissions["reports.export"]["display_name"] == "Export Reportes"
    assert permissions["reports.export"]["description"] == "Permiso de export en reportes de ventas"


def test_pages_configuration_and_group_names():
    service = PermissionService(None)
    config = service.get_pages_configuration()
    assert config["orders"]["permissions"] == [f"orders.{a}" for a in config["orders"]["actions"]]
    assert service.get_group_display_name("orders") == "Órdenes"
    assert service.get_group_display_name("menu") == "Menú"
    assert service.get_group_display_name("some-new_group") == "Some New Group"


def test_role_defaults():
    available = ["users.view", "users.edit", "menu.products.view", "menu.products.create", "orders.edit"]
    assert role_permissions.default_permissions_for_role("admin", available) == set(available)
    assert role_permissions.default_permissions_for_role("viewer", available) == {"users.view", "menu.products.view"}
    manager = role_permissions.default_permissions_for_role("manager", available)
    assert {"menu.products.view", "menu.products.create", "orders.edit"} <= manager
    assert "users.edit" not in manager
    assert role_permissions.default_permissions_for_role("restaurant", available) == {"orders.edit"}


def test_validate_role_rejects_unknown():
    with pytest.raises(ValueError):
        role_permissions.validate_role("chef")


def test_protected_permissions():
    assert role_permissions.is_protected_permission("profile.view")
    assert not role_permissions.is_protected_permission("users.view")
