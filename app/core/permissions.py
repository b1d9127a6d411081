"""
Role / space permission matrix.

Every portal role belongs to exactly one space, and each role gets a fixed
set of actions per resource type. Anything not listed is denied.
"""
from typing import Dict, List

from app.models.membership import UserRole, Space


ROLES_BY_SPACE: Dict[str, List[str]] = {
    Space.INTERNAL.value: [UserRole.ADMIN.value, UserRole.SALES.value, UserRole.DELIVERY.value, UserRole.FINANCE.value],
    Space.CLIENT.value: [UserRole.CLIENT_ADMIN.value, UserRole.CLIENT_MEMBER.value],
    Space.VENDOR.value: [UserRole.VENDOR.value],
}

INTERNAL_ROLES = ROLES_BY_SPACE[Space.INTERNAL.value]
CLIENT_ROLES = ROLES_BY_SPACE[Space.CLIENT.value]

RESOURCES = ("project", "task", "deliverable", "account", "vendor", "deal", "invitation")
ACTIONS = ("view", "create", "update", "delete", "upload", "assign")


def _crud(view=False, create=False, update=False, delete=False, **extra) -> Dict[str, bool]:
    perms = {"view": view, "create": create, "update": update, "delete": delete}
    perms.update(extra)
    return perms


_NONE = _crud()
_READ = _crud(view=True)
_ALL = _crud(True, True, True, True)

PERMISSIONS_MATRIX: Dict[str, Dict[str, Dict[str, bool]]] = {
    # Full access to everything
    UserRole.ADMIN.value: {
        "project": _ALL,
        "task": _crud(True, True, True, True, assign=True),
        "deliverable": _crud(True, True, True, True, upload=True),
        "account": _ALL,
        "vendor": _ALL,
        "deal": _ALL,
        "invitation": _ALL,
    },
    # Full CRM access, limited project management
    UserRole.SALES.value: {
        "project": _crud(True, True, True, False),
        "task": _crud(True, True, True, False, assign=True),
        "deliverable": _READ,
        "account": _crud(True, True, True, False),
        "vendor": _crud(True, True, True, False),
        "deal": _ALL,
        "invitation": _READ,
    },
    # Project and task management
    UserRole.DELIVERY.value: {
        "project": _crud(True, True, True, False),
        "task": _crud(True, True, True, True, assign=True),
        "deliverable": _crud(True, True, True, True, upload=True),
        "account": _READ,
        "vendor": _READ,
        "deal": _READ,
        "invitation": _READ,
    },
    UserRole.FINANCE.value: {
        "project": _READ,
        "task": _READ,
        "deliverable": _READ,
        "account": _READ,
        "vendor": _READ,
        "deal": _READ,
        "invitation": _NONE,
    },
    UserRole.CLIENT_ADMIN.value: {
        "project": _READ,
        "task": _crud(True, True, True, True),
        "deliverable": _READ,
        "account": _READ,
        "vendor": _NONE,
        "deal": _NONE,
        "invitation": _NONE,
    },
    UserRole.CLIENT_MEMBER.value: {
        "project": _READ,
        "task": _READ,
        "deliverable": _READ,
        "account": _READ,
        "vendor": _NONE,
        "deal": _NONE,
        "invitation": _NONE,
    },
    # Updates task status and uploads deliverables
    UserRole.VENDOR.value: {
        "project": _READ,
        "task": _crud(view=True, update=True),
        "deliverable": _crud(True, True, True, False, upload=True),
        "account": _NONE,
        "vendor": _NONE,
        "deal": _NONE,
        "invitation": _NONE,
    },
}


def roles_for_space(space: str) -> List[str]:
    """Roles that may be granted inside a space; unknown spaces get none."""
    return list(ROLES_BY_SPACE.get(space, []))


def is_role_allowed_in_space(role: str, space: str) -> bool:
    return role in ROLES_BY_SPACE.get(space, [])


def has_permission(role: str, resource: str, action: str) -> bool:
    return bool(PERMISSIONS_MATRIX.get(role, {}).get(resource, {}).get(action, False))


def get_role_permissions(role: str) -> Dict[str, Dict[str, bool]]:
    return PERMISSIONS_MATRIX.get(role, {})
