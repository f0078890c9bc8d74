"""
abilities: in-process authorization rules for Python applications.

An Ability collects, per principal, which actions are allowed on which
subject types, optionally gated by predicates evaluated against the
concrete subject. It answers permission queries and enforces them by
raising AccessDenied.

Basic Usage:
    >>> from abilities import ALL, MANAGE, Ability, AccessDenied
    >>>
    >>> class UserAbility(Ability):
    ...     def define_rules(self, user):
    ...         if user.admin:
    ...             self.allow_anything()
    ...         self.grant("read", ALL)
    ...         self.grant(MANAGE, Project, lambda project: project.owner == user)
    >>>
    >>> ability = UserAbility(current_user)
    >>> ability.can("read", Comment)
    True
    >>> ability.cannot("destroy", someone_elses_project)
    True
    >>>
    >>> try:
    ...     ability.authorize("destroy", someone_elses_project)
    ... except AccessDenied as e:
    ...     print(e.message)
"""

__version__ = "0.1.0"

from abilities.ability import Ability
from abilities.decorators import authorize
from abilities.exceptions import (
    AbilityError,
    AccessDenied,
    AuthorizationNotPerformed,
    ConfigurationError,
)
from abilities.guard import AuthorizationGuard
from abilities.rules import NULL_RULE, NullRule, Rule, RuleRegistry
from abilities.types import (
    ALL,
    ALLOW,
    MANAGE,
    Allow,
    Decision,
    Instance,
    Predicate,
    TypeKey,
    subject_ref,
)

__all__ = [
    # Version
    "__version__",
    # Main class
    "Ability",
    "AuthorizationGuard",
    # Rules
    "Rule",
    "NullRule",
    "NULL_RULE",
    "RuleRegistry",
    # Core types
    "ALL",
    "MANAGE",
    "ALLOW",
    "Allow",
    "Predicate",
    "Decision",
    "TypeKey",
    "Instance",
    "subject_ref",
    # Exceptions
    "AbilityError",
    "AccessDenied",
    "AuthorizationNotPerformed",
    "ConfigurationError",
    # Decorators
    "authorize",
]
