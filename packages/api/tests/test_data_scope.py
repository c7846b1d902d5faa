# This project was developed with assistance from AI tools.
"""Unit tests for data scope construction (core.auth.build_data_scope).

Admins see their whole agency; consultants see only their assigned cases.
"""

from db.enums import UserRole

from src.core.auth import build_data_scope


def test_admin_scope_whole_organization():
    scope = build_data_scope(UserRole.ADMIN, 1, 7)
    assert scope.organization_id == 7
    assert scope.consultant_id is None


def test_consultant_scope_assigned_cases():
    scope = build_data_scope(UserRole.CONSULTANT, 42, 7)
    assert scope.organization_id == 7
    assert scope.consultant_id == 42
