# This project was developed with assistance from AI tools.
"""SQLAdmin view configuration."""

from db import User

from src.admin import UserAdmin
from src.main import app


def test_user_view_never_shows_password_hash():
    assert User.hashed_password not in UserAdmin.column_list
    assert User.hashed_password in UserAdmin.form_excluded_columns


def test_admin_is_mounted():
    assert any(getattr(route, "path", None) == "/admin" for route in app.routes)
