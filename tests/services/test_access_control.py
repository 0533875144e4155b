"""Tests for the allow-list gate."""

from telepath.services.access_control import AccessControl


class TestAccessControl:
    def test_empty_list_allows_everyone(self, caplog):
        access = AccessControl()
        assert access.is_allowed(1)
        assert access.is_allowed(999)
        assert "open to all users" in caplog.text

    def test_restricted(self):
        access = AccessControl([1, 2])
        assert access.is_allowed(1)
        assert not access.is_allowed(3)

    def test_add_and_remove(self):
        access = AccessControl([1])
        access.add(5)
        assert access.list_users() == [1, 5]
        assert access.remove(5) is True
        assert access.remove(5) is False
        assert not access.is_allowed(5)

    def test_unauthorized_message(self):
        assert "Access Denied" in AccessControl([1]).unauthorized_message
