"""
Admin panel pages and their permitted actions.

Permissions are generated from this table as ``{page}.{action}``; edit it to
add a page and run the permission sync to materialize the new rows.
"""
from typing import Dict, List, TypedDict


class PageConfig(TypedDict):
    display_name: str
    description: str
    actions: List[str]


CRUD_ACTIONS = ["view", "create", "edit", "delete"]

ACTION_LABELS: Dict[str, str] = {
    "view": "Ver",
    "create": "Crear",
    "edit": "Editar",
    "delete": "Eliminar",
}

PAGES: Dict[str, PageConfig] = {
    "home": {
        "display_name": "Inicio",
        "description": "Página principal después del login",
        "actions": ["view"],
    },
    "dashboard": {
        "display_name": "Dashboard",
        "description": "Panel principal del sistema",
        "actions": ["view"],
    },
    "users": {
        "display_name": "Usuarios",
        "description": "Gestión de usuarios del sistema",
        "actions": CRUD_ACTIONS,
    },
    "roles": {
        "display_name": "Roles y Permisos",
        "description": "Gestión de roles y permisos del sistema",
        "actions": CRUD_ACTIONS,
    },
    "customers": {
        "display_name": "Clientes",
        "description": "Gestión de clientes del sistema",
        "actions": CRUD_ACTIONS,
    },
    "customer-types": {
        "display_name": "Tipos de Cliente",
        "description": "Gestión de tipos de cliente",
        "actions": CRUD_ACTIONS,
    },
    "restaurants": {
        "display_name": "Restaurantes",
        "description": "Gestión de restaurantes y sucursales",
        "actions": CRUD_ACTIONS,
    },
    "menu.categories": {
        "display_name": "Categorías",
        "description": "Categorías del menú",
        "actions": CRUD_ACTIONS,
    },
    "menu.products": {
        "display_name": "Productos",
        "description": "Productos del menú",
        "actions": CRUD_ACTIONS,
    },
    "menu.sections": {
        "display_name": "Secciones",
        "description": "Secciones de opciones de productos",
        "actions": CRUD_ACTIONS,
    },
    "menu.combos": {
        "display_name": "Combos",
        "description": "Combos del menú",
        "actions": CRUD_ACTIONS,
    },
    "menu.promotions": {
        "display_name": "Promociones",
        "description": "Promociones del menú",
        "actions": CRUD_ACTIONS,
    },
    "orders": {
        "display_name": "Órdenes",
        "description": "Gestión de órdenes",
        "actions": ["view", "edit"],
    },
    "drivers": {
        "display_name": "Motoristas",
        "description": "Gestión de motoristas",
        "actions": CRUD_ACTIONS,
    },
    "notifications": {
        "display_name": "Notificaciones",
        "description": "Notificaciones push a clientes",
        "actions": ["view", "create"],
    },
    "activity": {
        "display_name": "Actividad",
        "description": "Logs de actividad del sistema",
        "actions": ["view"],
    },
    "settings": {
        "display_name": "Configuración",
        "description": "Configuración de perfil y puntos",
        "actions": ["view", "edit"],
    },
}

GROUP_DISPLAY_NAMES: Dict[str, str] = {
    "menu": "Menú",
}
