"""
Tests for the role hierarchy.

Covers:
  - ADMIN outranks every role
  - GUEST is below every other role
  - Sibling roles do not outrank each other
  - Parsing of role names
"""

from __future__ import annotations

import pytest

from registry_guardian.primitives.common import Role
from registry_guardian.primitives.errors import UnknownRoleError
from registry_guardian.systems.authorization.roles import meets_minimum, parse_role, rank, roles_ascending

_SIBLINGS = (Role.COLLECTOR, Role.INVESTOR, Role.CURATOR)


class TestHierarchy:
    @pytest.mark.parametrize("minimum", list(Role))
    def test_admin_meets_every_minimum(self, minimum: Role):
        assert meets_minimum(Role.ADMIN, minimum) is True

    @pytest.mark.parametrize("minimum", [r for r in Role if r != Role.GUEST])
    def test_guest_fails_every_other_minimum(self, minimum: Role):
        assert meets_minimum(Role.GUEST, minimum) is False

    def test_every_role_meets_itself(self):
        for role in Role:
            assert meets_minimum(role, role)

    def test_siblings_outrank_trainer(self):
        for role in _SIBLINGS:
            assert meets_minimum(role, Role.TRAINER)
            assert not meets_minimum(Role.TRAINER, role)

    def test_siblings_share_a_rank(self):
        assert len({rank(r) for r in _SIBLINGS}) == 1

    def test_siblings_do_not_reach_admin(self):
        for role in _SIBLINGS:
            assert not meets_minimum(role, Role.ADMIN)

    def test_ascending_order_starts_at_guest_and_ends_at_admin(self):
        order = roles_ascending()
        assert order[0] == Role.GUEST
        assert order[-1] == Role.ADMIN
        assert set(order) == set(Role)


class TestParseRole:
    def test_accepts_enum(self):
        assert parse_role(Role.CURATOR) is Role.CURATOR

    def test_case_insensitive(self):
        assert parse_role("trainer") == Role.TRAINER
        assert parse_role(" Admin ") == Role.ADMIN

    def test_unknown_role_raises(self):
        with pytest.raises(UnknownRoleError):
            parse_role("SUPERUSER")

    def test_unknown_role_in_comparison_raises(self):
        with pytest.raises(UnknownRoleError):
            meets_minimum("nobody", Role.GUEST)
