import pytest

from app.api.deps import require_permission
from app.core.permissions import (
    ROLES_BY_SPACE,
    PERMISSIONS_MATRIX,
    RESOURCES,
    ACTIONS,
    roles_for_space,
    is_role_allowed_in_space,
    has_permission,
)


def test_roles_by_space_are_fixed():
    assert roles_for_space("internal") == ["admin", "sales", "delivery", "finance"]
    assert roles_for_space("client") == ["client_admin", "client_member"]
    assert roles_for_space("vendor") == ["vendor"]
    assert roles_for_space("partner") == []


def test_every_role_lives_in_exactly_one_space():
    seen = [role for roles in ROLES_BY_SPACE.values() for role in roles]
    assert len(seen) == len(set(seen))
    assert set(seen) == set(PERMISSIONS_MATRIX)


@pytest.mark.parametrize("role,space", [
    ("admin", "client"),
    ("client_admin", "internal"),
    ("vendor", "client"),
    ("client_member", "vendor"),
])
def test_cross_space_roles_are_rejected(role, space):
    assert not is_role_allowed_in_space(role, space)


def test_matrix_covers_every_resource():
    for role, resources in PERMISSIONS_MATRIX.items():
        assert set(resources) == set(RESOURCES), role


def test_has_permission_lookups():
    assert has_permission("admin", "invitation", "create")
    assert not has_permission("sales", "invitation", "create")
    assert has_permission("vendor", "deliverable", "upload")
    assert not has_permission("vendor", "deliverable", "delete")
    assert not has_permission("client_member", "deliverable", "create")
    assert not has_permission("unknown", "project", "view")
    assert not has_permission("admin", "unknown", "view")


def test_matrix_only_uses_known_actions():
    for role, resources in PERMISSIONS_MATRIX.items():
        for resource, actions in resources.items():
            assert set(actions) <= set(ACTIONS), (role, resource)


def test_task_assignment_is_internal():
    assert has_permission("delivery", "task", "assign")
    assert not has_permission("client_admin", "task", "assign")
    assert not has_permission("vendor", "task", "assign")


def test_deal_pipeline_is_internal_only():
    assert has_permission("sales", "deal", "delete")
    assert has_permission("finance", "deal", "view")
    assert not has_permission("finance", "deal", "update")
    for role in ("client_admin", "client_member", "vendor"):
        assert not has_permission(role, "deal", "view")


def test_require_permission_rejects_unknown_names():
    with pytest.raises(ValueError):
        require_permission("quote", "view")
    with pytest.raises(ValueError):
        require_permission("project", "archive")
