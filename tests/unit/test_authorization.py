"""Unit tests for role claim parsing."""

from api.middleware.authorization import token_roles


class TestTokenRoles:
    def test_list_claim(self):
        assert token_roles({"roles": ["Editor", "Admin"]}) == {"Editor", "Admin"}

    def test_string_claim_is_one_role(self):
        roles = token_roles({"roles": "NotAdmin"})

        assert roles == {"NotAdmin"}
        assert "Admin" not in roles

    def test_other_shapes_grant_nothing(self):
        assert token_roles({"roles": {"Admin": True}}) == frozenset()
        assert token_roles({"roles": None}) == frozenset()
        assert token_roles({}) == frozenset()

    def test_non_string_items_ignored(self):
        assert token_roles({"roles": ["Admin", 1, None]}) == {"Admin"}
