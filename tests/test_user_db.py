"""Tests for stoa.data.db — UserDB."""


class TestUserDB:
    def test_add_user_defaults(self, user_db):
        user = user_db.add_user(12345, "Marcus")
        assert user.telegram_user_id == 12345
        assert user.signed_in is True
        assert user.tier == "free"
        assert user.notifications_enabled is True
        assert user.created_at

    def test_get_missing_user(self, user_db):
        assert user_db.get_user(999) is None

    def test_add_existing_user_signs_back_in(self, user_db):
        user_db.add_user(12345, "Marcus")
        user_db.set_tier(12345, "premium")
        user_db.set_signed_in(12345, False)
        user = user_db.add_user(12345, "Marcus Aurelius")
        assert user.signed_in is True
        assert user.tier == "premium"
        assert user_db.get_user(12345).display_name == "Marcus Aurelius"

    def test_set_notifications(self, user_db):
        user_db.add_user(12345, "Marcus")
        user_db.set_notifications(12345, False)
        assert user_db.get_user(12345).notifications_enabled is False

    def test_list_and_delete(self, user_db):
        user_db.add_user(1, "A")
        user_db.add_user(2, "B")
        assert {u.telegram_user_id for u in user_db.list_users()} == {1, 2}
        assert user_db.delete_user(1) is True
        assert user_db.delete_user(1) is False
        assert user_db.get_user(1) is None
