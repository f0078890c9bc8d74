"""Tests for AuthorizationGuard."""

from __future__ import annotations

import pytest

from abilities import AccessDenied, AuthorizationGuard, AuthorizationNotPerformed
from tests.conftest import Project, ProjectAbility


class TestAuthorizationGuard:
    """Test request-scoped authorization tracking."""

    def test_starts_unperformed(self, guard: AuthorizationGuard):
        """Test that a new guard is unperformed."""
        assert guard.performed is False
        with pytest.raises(AuthorizationNotPerformed):
            guard.verify()

    def test_authorize_marks_scope(self, guard: AuthorizationGuard, alice_project: Project):
        """Test that authorize marks the scope."""
        decision = guard.authorize("update", alice_project)

        assert decision.allowed is True
        assert guard.performed is True
        guard.verify()

    def test_denied_authorize_still_marks_scope(
        self, guard: AuthorizationGuard, bob_project: Project
    ):
        """Test that a denied authorize still marks the scope."""
        with pytest.raises(AccessDenied):
            guard.authorize("update", bob_project, message="Not yours")

        assert guard.performed is True
        guard.verify()

    def test_queries_do_not_mark_scope(self, guard: AuthorizationGuard, bob_project: Project):
        """Test that can and cannot do not mark the scope."""
        assert guard.can("read", bob_project) is True
        assert guard.cannot("update", bob_project) is True
        assert guard.performed is False

    def test_skip_authorization_check(self, guard: AuthorizationGuard):
        """Test skipping the authorization check."""
        guard.skip_authorization_check()
        assert guard.performed is True
        guard.verify()

    def test_unless_condition(self, alice_ability: ProjectAbility):
        """Test the unless callable."""
        public_page = {"public": True}
        guard = AuthorizationGuard(alice_ability, unless=lambda: public_page["public"])
        guard.verify()

        public_page["public"] = False
        with pytest.raises(AuthorizationNotPerformed):
            guard.verify()

    def test_condition(self, alice_ability: ProjectAbility):
        """Test that verify only enforces when condition holds."""
        request = {"path": "/public"}
        guard = AuthorizationGuard(
            alice_ability, condition=lambda: request["path"].startswith("/admin")
        )
        guard.verify()

        request["path"] = "/admin/projects"
        with pytest.raises(AuthorizationNotPerformed):
            guard.verify()

    def test_condition_and_unless(self, alice_ability: ProjectAbility):
        """Test condition combined with unless."""
        guard = AuthorizationGuard(
            alice_ability, condition=lambda: True, unless=lambda: True
        )
        guard.verify()

        guard = AuthorizationGuard(
            alice_ability, condition=lambda: True, unless=lambda: False
        )
        with pytest.raises(AuthorizationNotPerformed):
            guard.verify()

    def test_keywords_named_like_parameters(
        self, guard: AuthorizationGuard, alice_project: Project
    ):
        """Test keyword arguments named action and subject through the guard."""
        assert guard.can("read", alice_project, subject="z") is True
        assert guard.cannot("destroy", alice_project, action="peek") is True
        guard.authorize("read", alice_project, subject="z")
        assert guard.performed is True

    def test_reset(self, guard: AuthorizationGuard):
        """Test resetting the guard."""
        guard.skip_authorization_check()
        guard.reset()

        assert guard.performed is False
        with pytest.raises(AuthorizationNotPerformed):
            guard.verify()

    def test_error_message(self, guard: AuthorizationGuard):
        """Test the AuthorizationNotPerformed message."""
        with pytest.raises(AuthorizationNotPerformed, match="did not authorize a resource"):
            guard.verify()


class TestAuthorizationGuardContextManager:
    """Test the guard as a context manager."""

    def test_verifies_on_exit(self, alice_ability: ProjectAbility):
        """Test verification on context exit."""
        with pytest.raises(AuthorizationNotPerformed):
            with AuthorizationGuard(alice_ability):
                pass

    def test_passes_when_authorized(self, alice_ability: ProjectAbility, alice_project: Project):
        """Test a context that authorizes."""
        with AuthorizationGuard(alice_ability) as guard:
            guard.authorize("read", alice_project)
        assert guard.performed is True

    def test_inner_error_takes_priority(self, alice_ability: ProjectAbility):
        """Test that an inner error skips verification."""
        with pytest.raises(KeyError):
            with AuthorizationGuard(alice_ability):
                raise KeyError("project not found")

    def test_access_denied_propagates(self, alice_ability: ProjectAbility, bob_project: Project):
        """Test that AccessDenied propagates from the context."""
        with pytest.raises(AccessDenied):
            with AuthorizationGuard(alice_ability) as guard:
                guard.authorize("destroy", bob_project)
