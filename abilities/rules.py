"""
Rules and the per-ability rule registry.

A Rule stores, for one subject type, the clause registered for each
action. The RuleRegistry maps subject-type keys to rules: the write
path (``rule_for``) creates rules on demand, the read path
(``lookup_rule``) never does and falls back to the NULL_RULE.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from abilities.exceptions import ConfigurationError
from abilities.types import (
    MANAGE,
    Clause,
    Instance,
    clause_from,
    describe_key,
    subject_ref,
)

logger = logging.getLogger(__name__)


class Rule:
    """
    Actions allowed on one subject type.

    Holds at most one clause per action. Registering an action again
    replaces its clause. A clause registered under the wildcard action
    ``MANAGE`` governs every action on the subject type and takes
    precedence over specific actions, whichever was registered first.

    Example:
        >>> rule = Rule()
        >>> rule.add_clause("read", None)
        >>> rule.add_clause("update", lambda project, user: project.owner == user)
        >>> rule.is_authorized("read", project)
        True
        >>> rule.is_authorized("update", project, someone_else)
        False
    """

    def __init__(self) -> None:
        self._clauses: dict[str, Clause] = {}

    def add_clause(self, action: str, predicate: Callable[..., Any] | None = None) -> None:
        """
        Register or overwrite the clause for an action.

        Args:
            action: The action key, or MANAGE for every action.
            predicate: Condition evaluated against the subject instance,
                or None for an unconditional grant.
        """
        clause = clause_from(predicate)
        if action in self._clauses:
            logger.debug(f"Overwriting clause for action '{action}'")
        self._clauses[action] = clause

    def clause_for(self, action: str) -> Clause | None:
        """Return the clause governing an action, or None if there is none."""
        if MANAGE in self._clauses:
            return self._clauses[MANAGE]
        return self._clauses.get(action)

    def matched_action(self, action: str) -> str | None:
        """Return the action key whose clause governs the given action."""
        if MANAGE in self._clauses:
            return MANAGE
        if action in self._clauses:
            return action
        return None

    def is_authorized(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        """
        Decide whether an action is allowed on a subject instance.

        Extra positional and keyword arguments are passed to a predicate
        after the subject. Predicate errors propagate.
        """
        clause = self.clause_for(action)
        if clause is None:
            return False
        return clause.evaluate(subject, *args, **kwargs)

    @property
    def actions(self) -> list[str]:
        """Sorted list of actions with a registered clause."""
        return sorted(self._clauses)

    def __contains__(self, action: object) -> bool:
        return action in self._clauses

    def __len__(self) -> int:
        return len(self._clauses)

    def __repr__(self) -> str:
        return f"Rule(actions={self.actions!r})"


class NullRule:
    """
    Rule returned when nothing is registered for a subject.

    Denies everything, so callers never need a None check.
    """

    def clause_for(self, action: str) -> None:
        return None

    def matched_action(self, action: str) -> None:
        return None

    def is_authorized(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        return False

    @property
    def actions(self) -> list[str]:
        return []

    def __contains__(self, action: object) -> bool:
        return False

    def __repr__(self) -> str:
        return "NULL_RULE"


NULL_RULE = NullRule()


class RuleRegistry:
    """
    Registry mapping subject-type keys to rules.

    Keys are classes, symbolic names, or the wildcard ``ALL``. Each
    Ability owns exactly one registry; it is not shared between
    principals and does no locking.

    Example:
        >>> registry = RuleRegistry()
        >>> registry.rule_for(Project).add_clause("read", None)
        >>> registry.lookup_rule(project).is_authorized("read", project)
        True
        >>> registry.lookup_rule(Comment) is NULL_RULE
        True
    """

    def __init__(self) -> None:
        self._rules: dict[Any, Rule] = {}

    def rule_for(self, subject: Any) -> Rule:
        """
        Get or create the rule for a subject type.

        Args:
            subject: A class, a symbolic name, ALL, or a TypeKey.

        Returns:
            The Rule stored under that key.

        Raises:
            ConfigurationError: If an object instance is passed instead
                of a type key.
        """
        ref = subject_ref(subject)
        if isinstance(ref, Instance):
            raise ConfigurationError(
                config_key="subject",
                expected="a class, a symbolic name or ALL",
                received=f"{type(ref.value).__name__} instance",
            )
        key = ref.lookup_key
        rule = self._rules.get(key)
        if rule is None:
            rule = Rule()
            self._rules[key] = rule
            logger.debug(f"Created rule for subject '{describe_key(key)}'")
        return rule

    def lookup_rule(self, subject: Any) -> Rule | NullRule:
        """
        Find the rule for a subject without creating one.

        Type keys are looked up directly; instances are looked up by
        their runtime type.

        Returns:
            The registered Rule, or NULL_RULE when there is none.
        """
        return self._rules.get(subject_ref(subject).lookup_key, NULL_RULE)

    def has_rule(self, subject: Any) -> bool:
        """Check if a rule is registered for a subject type."""
        return subject_ref(subject).lookup_key in self._rules

    def subjects(self) -> list[Any]:
        """List registered subject keys in registration order."""
        return list(self._rules)

    def clear(self) -> None:
        """Remove every rule."""
        self._rules.clear()
        logger.debug("Cleared all rules")

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        keys = ", ".join(describe_key(key) for key in self._rules)
        return f"RuleRegistry([{keys}])"
