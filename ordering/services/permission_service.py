"""
Staff permission catalogue generated from :mod:`ordering.utils.pages`.

Every page action becomes a ``page.action`` permission row. Syncing upserts
the rows, optionally removes obsolete ones (``profile.*`` is never removed),
makes sure the system roles exist and grants the admin role everything.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.utils import pages as pages_config
from ordering.utils.role_permissions import (
    ROLE_ADMIN,
    SYSTEM_ROLES,
    default_permissions_for_role,
    is_protected_permission,
)

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, db: Session, pages: Optional[Dict[str, pages_config.PageConfig]] = None):
        self.db = db
        self.pages = pages if pages is not None else pages_config.PAGES

    @staticmethod
    def _description(action: str, page_description: str) -> str:
        label = pages_config.ACTION_LABELS.get(action)
        if label is None:
            return f"Permiso de {action} en {page_description}"
        return f"{label} {page_description}"

    def generate_permissions(self) -> List[Dict[str, str]]:
        permissions = []
        for page_name, config in self.pages.items():
            for action in config["actions"]:
                label = pages_config.ACTION_LABELS.get(action, action.title())
                permissions.append({
                    "name": f"{page_name}.{action}",
                    "display_name": f"{label} {config['display_name']}",
                    "description": self._description(action, config["description"]),
                    "group": page_name,
                })
        return permissions

    def sync_permissions(self, remove_obsolete: bool = False) -> Dict[str, int]:
        logger.info("Syncing permissions (remove_obsolete=%s)", remove_obsolete)
        discovered = self.generate_permissions()
        existing = {p.name: p for p in self.db.query(models.Permission).all()}
        created = updated = deleted = 0

        for data in discovered:
            permission = existing.get(data["name"])
            if permission is None:
                permission = models.Permission(**data)
                self.db.add(permission)
                existing[data["name"]] = permission
                created += 1
            else:
                permission.display_name = data["display_name"]
                permission.description = data["description"]
                permission.group = data["group"]
                updated += 1

        if remove_obsolete:
            names = {d["name"] for d in discovered}
            for name, permission in list(existing.items()):
                if name in names or is_protected_permission(name):
                    continue
                self.db.delete(permission)
                del existing[name]
                deleted += 1

        self.db.flush()
        self._sync_system_roles(existing)
        self.db.commit()

        result = {"created": created, "updated": updated, "deleted": deleted, "total": len(discovered)}
        logger.info("Permission sync finished: %s", result)
        return result

    def _sync_system_roles(self, permissions: Dict[str, models.Permission]) -> None:
        """Create missing system roles with their defaults; admin always gets everything."""
        for role_name in sorted(SYSTEM_ROLES):
            role = self.db.query(models.Role).filter(models.Role.name == role_name).first()
            is_new = role is None
            if is_new:
                role = models.Role(name=role_name, description=f"Rol {role_name}", is_system=True)
                self.db.add(role)
                self.db.flush()
            if role_name != ROLE_ADMIN and not is_new:
                continue
            granted = default_permissions_for_role(role_name, permissions.keys())
            current = {rp.permission_id for rp in role.role_permissions}
            for name in sorted(granted):
                permission = permissions[name]
                if permission.id not in current:
                    role.role_permissions.append(models.RolePermission(permission_id=permission.id))

    def get_pages_configuration(self) -> Dict[str, Dict[str, Any]]:
        return {
            page_name: {
                "name": page_name,
                "display_name": config["display_name"],
                "description": config["description"],
                "group": page_name,
                "actions": list(config["actions"]),
                "permissions": [f"{page_name}.{action}" for action in config["actions"]],
            }
            for page_name, config in self.pages.items()
        }

    def get_group_display_name(self, group: str) -> str:
        if group in self.pages:
            return self.pages[group]["display_name"]
        if group in pages_config.GROUP_DISPLAY_NAMES:
            return pages_config.GROUP_DISPLAY_NAMES[group]
        return group.replace("-", " ").replace("_", " ").title()
