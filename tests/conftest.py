"""
Pytest fixtures for abilities tests.

Provides the sample domain model (users, projects, comments) and the
abilities built on it that are shared across test modules.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from abilities import ALL, MANAGE, Ability, AuthorizationGuard
from abilities.rules import RuleRegistry


# ============================================================================
# Sample Domain Model
# ============================================================================


@dataclass
class User:
    name: str
    admin: bool = False
    banned: bool = False


@dataclass
class Project:
    title: str
    owner: User | None = None
    archived: bool = False


@dataclass
class Comment:
    body: str
    author: User | None = None


class ProjectAbility(Ability):
    """Ability used across tests: admins manage everything, users own projects."""

    def define_rules(self, user: User) -> None:
        if user.admin:
            self.grant(MANAGE, ALL)
            return

        self.grant("read", Project)
        self.grant("update", Project, lambda project: project.owner == user)
        self.grant("create", Comment)
        self.grant(
            ["update", "destroy"],
            Comment,
            lambda comment: comment.author == user,
        )
        self.grant("read", "stats")


# ============================================================================
# User Fixtures
# ============================================================================


@pytest.fixture
def alice() -> User:
    """Create a regular user."""
    return User(name="alice")


@pytest.fixture
def bob() -> User:
    """Create a second regular user."""
    return User(name="bob")


@pytest.fixture
def admin() -> User:
    """Create an admin user."""
    return User(name="root", admin=True)


# ============================================================================
# Subject Fixtures
# ============================================================================


@pytest.fixture
def alice_project(alice: User) -> Project:
    """Create a project owned by alice."""
    return Project(title="Alice's project", owner=alice)


@pytest.fixture
def bob_project(bob: User) -> Project:
    """Create a project owned by bob."""
    return Project(title="Bob's project", owner=bob)


# ============================================================================
# Ability Fixtures
# ============================================================================


@pytest.fixture
def ability(alice: User) -> Ability:
    """Create an empty Ability for alice."""
    return Ability(alice)


@pytest.fixture
def alice_ability(alice: User) -> ProjectAbility:
    """Create the project ability for alice."""
    return ProjectAbility(alice)


@pytest.fixture
def admin_ability(admin: User) -> ProjectAbility:
    """Create the project ability for an admin."""
    return ProjectAbility(admin)


@pytest.fixture
def guard(alice_ability: ProjectAbility) -> AuthorizationGuard:
    """Create a guard around alice's ability."""
    return AuthorizationGuard(alice_ability)


@pytest.fixture
def rule_registry() -> RuleRegistry:
    """Create a fresh rule registry."""
    return RuleRegistry()
