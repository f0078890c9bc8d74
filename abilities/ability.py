"""
The Ability class: a principal's permission set.

An Ability is built once per principal (typically once per request),
collects the rules that principal is granted, and answers "can this
principal perform this action on this subject?".

Quick Start:
    >>> from abilities import ALL, MANAGE, Ability
    >>>
    >>> class UserAbility(Ability):
    ...     def define_rules(self, user):
    ...         if user.admin:
    ...             self.grant(MANAGE, ALL)
    ...             return
    ...         self.grant("read", Project)
    ...         self.grant("update", Project, lambda project: project.owner == user)
    >>>
    >>> ability = UserAbility(current_user)
    >>> ability.can("update", project)
    True
    >>> ability.authorize("destroy", project)
    Traceback (most recent call last):
    ...
    abilities.exceptions.AccessDenied: You are not authorized to access this resource.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from abilities.exceptions import AccessDenied, ConfigurationError
from abilities.rules import NullRule, Rule, RuleRegistry
from abilities.types import (
    ALL,
    Decision,
    Instance,
    Predicate,
    SubjectRef,
    TypeKey,
    clause_from,
    describe_key,
    describe_subject,
    subject_ref,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# How a predicate clause answers a check made against a type key,
# where there is no instance to hand to the predicate.
TYPE_PREDICATE_MODES = ("allow", "deny", "evaluate")


def _as_list(value: Any, name: str) -> list[Any]:
    """Normalize a single key or a collection of keys into a list."""
    if isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        items = [value]
    if not items:
        raise ConfigurationError(
            config_key=name,
            expected=f"at least one {name}",
            received=value,
        )
    return items


class Ability:
    """
    Permission set for one principal.

    Rules are registered with ``grant`` (or the ``rule`` decorator),
    usually from ``define_rules`` when the Ability is constructed. They
    are queried with ``can``/``cannot``, explained with ``check``, and
    enforced with ``authorize``.

    Resolution for ``can(action, subject)``:
        1. If ``allow_anything()`` was called, allow.
        2. Resolve the subject to its registry key: classes, names and
           ALL are used directly, instances by their runtime type.
        3. The first clause found governs, in this order: the subject's
           MANAGE clause, the subject's clause for the action, the ALL
           subject's MANAGE clause, the ALL subject's clause for the
           action. No clause means deny.
        4. An unconditional clause allows. A predicate clause is called
           with the subject instance and the extra arguments.

    Attributes:
        principal: The identity the rules are evaluated for. Opaque to
            the Ability; predicates usually capture it in a closure.
        config: Configuration dictionary passed during initialization.

    Configuration:
        - allow_anything: Start with every check allowed. Defaults to False.
        - type_predicates: How a predicate clause answers a check made
            against a class or name instead of an instance: "allow"
            (default, some instance may qualify), "deny", or "evaluate"
            (call the predicate with the type key itself).
        - log_decisions: Log every decision at DEBUG. Defaults to False.
    """

    def __init__(self, principal: Any = None, config: dict[str, Any] | None = None) -> None:
        """
        Initialize the Ability and define its rules.

        Args:
            principal: The identity to evaluate rules for.
            config: Ability configuration options.

        Raises:
            ConfigurationError: If a configuration value is invalid.
        """
        self.principal = principal
        self.config = config or {}
        self._registry = RuleRegistry()

        self._allow_anything = bool(self.get_config("allow_anything", False))
        self._log_decisions = bool(self.get_config("log_decisions", False))
        self._type_predicates = self.get_config("type_predicates", "allow")
        if self._type_predicates not in TYPE_PREDICATE_MODES:
            raise ConfigurationError(
                config_key="type_predicates",
                expected=f"one of: {', '.join(repr(m) for m in TYPE_PREDICATE_MODES)}",
                received=self._type_predicates,
            )

        self.define_rules(principal)

    def define_rules(self, principal: Any) -> None:
        """
        Declare the rules for a principal.

        Called once from ``__init__``. Subclasses override this; the
        default defines nothing, so every check is denied.
        """

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self.config.get(key, default)

    @property
    def registry(self) -> RuleRegistry:
        """The rule registry owned by this Ability."""
        return self._registry

    @property
    def allows_anything(self) -> bool:
        """Whether ``allow_anything()`` short-circuits every check."""
        return self._allow_anything

    # ==================== Registration ====================

    def grant(
        self,
        action: str | list[str] | tuple[str, ...],
        subject: Any,
        predicate: Callable[..., Any] | None = None,
    ) -> None:
        """
        Allow an action on a subject type.

        Args:
            action: Action name, MANAGE for any action, or a list of them.
            subject: Class, symbolic name, ALL for any subject, or a list
                of them.
            predicate: Optional condition ``fn(subject, *args, **kwargs)``.
                Without one the grant is unconditional.

        Raises:
            ConfigurationError: On an empty or non-string action, an
                instance in place of a subject type, or a non-callable
                predicate.

        Example:
            >>> ability.grant("read", Article)
            >>> ability.grant(["update", "destroy"], Article,
            ...               lambda article: article.author == user)
            >>> ability.grant("read", "stats")
        """
        actions = _as_list(action, "action")
        for name in actions:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(
                    config_key="action",
                    expected="a non-empty action name",
                    received=name,
                )

        # A failed grant leaves the registry untouched.
        clause_from(predicate)
        refs = [subject_ref(target) for target in _as_list(subject, "subject")]
        for ref in refs:
            if isinstance(ref, Instance):
                raise ConfigurationError(
                    config_key="subject",
                    expected="a class, a symbolic name or ALL",
                    received=f"{type(ref.value).__name__} instance",
                )

        for ref in refs:
            rule = self._registry.rule_for(ref)
            for name in actions:
                rule.add_clause(name, predicate)
                logger.debug(
                    f"Granted '{name}' on '{describe_key(ref.lookup_key)}'"
                    + (" with condition" if predicate is not None else "")
                )

    def rule(self, action: str | list[str], subject: Any) -> Callable[[F], F]:
        """
        Decorator form of ``grant`` for conditional rules.

        Example:
            >>> @ability.rule("update", Project)
            ... def owns_project(project):
            ...     return project.owner == user
        """
        def decorator(fn: F) -> F:
            self.grant(action, subject, fn)
            return fn
        return decorator

    def allow_anything(self) -> None:
        """
        Allow every action on every subject from now on.

        Rules granted before or after this call no longer matter.
        """
        self._allow_anything = True
        logger.debug("Ability now allows anything")

    # ==================== Queries ====================

    def can(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        """
        Check if the principal may perform an action on a subject.

        Extra arguments are passed to a predicate after the subject.
        Errors raised by a predicate propagate unchanged.

        Example:
            >>> ability.can("destroy", project)
            >>> ability.can("create", Project)
            >>> ability.can("create", Project, request.remote_addr)
        """
        return self.check(action, subject, *args, **kwargs).allowed

    def cannot(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        """Logical complement of ``can``."""
        return not self.can(action, subject, *args, **kwargs)

    def check(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> Decision:
        """
        Check authorization and return a detailed Decision.

        Unlike ``can()``, the result explains which rule governed the
        decision.

        Example:
            >>> decision = ability.check("update", project)
            >>> decision.matched_action
            'manage'
        """
        ref = subject_ref(subject)
        if self._allow_anything:
            decision = Decision.allow(
                action,
                subject_key=ref.lookup_key,
                reason="Ability allows anything",
            )
        else:
            decision = self._resolve(action, ref, args, kwargs)

        if self._log_decisions:
            logger.debug(
                f"{'Allowed' if decision.allowed else 'Denied'} '{action}' on "
                f"'{describe_key(ref.lookup_key)}': {decision.reason}"
            )
        return decision

    def authorize(
        self,
        action: str,
        subject: Any,
        /,
        *args: Any,
        message: str | None = None,
        **kwargs: Any,
    ) -> Decision:
        """
        Check authorization and raise if denied.

        Args:
            action: The action to perform.
            subject: The subject instance, class or name.
            *args: Extra arguments for predicates.
            message: Optional message for the AccessDenied error. Not
                passed to predicates.
            **kwargs: Extra keyword arguments for predicates.

        Returns:
            The Decision if authorized.

        Raises:
            AccessDenied: If the action is not allowed.

        Example:
            >>> ability.authorize("read", article,
            ...                   message=f"Not authorized to read {article.name}")
        """
        decision = self.check(action, subject, *args, **kwargs)
        if not decision.allowed:
            logger.info(
                f"Access denied: '{action}' on '{describe_key(decision.subject_key)}'"
            )
            ref = subject_ref(subject)
            raise AccessDenied(
                message,
                action=action,
                subject=ref.value if isinstance(ref, Instance) else ref.key,
                subject_name=describe_subject(ref),
            )
        return decision

    # ==================== Resolution ====================

    def _candidates(self, ref: SubjectRef) -> Iterator[tuple[Any, Rule | NullRule]]:
        """Yield (subject key, rule) pairs in precedence order."""
        key = ref.lookup_key
        yield key, self._registry.lookup_rule(ref)
        if not (isinstance(ref, TypeKey) and key == ALL):
            yield ALL, self._registry.lookup_rule(ALL)

    def _resolve(
        self,
        action: str,
        ref: SubjectRef,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Decision:
        key = ref.lookup_key
        for matched_subject, rule in self._candidates(ref):
            matched_action = rule.matched_action(action)
            if matched_action is None:
                continue

            clause = rule.clause_for(action)
            where = f"'{matched_action}' on '{describe_key(matched_subject)}'"
            if isinstance(clause, Predicate):
                if isinstance(ref, Instance):
                    allowed = rule.is_authorized(action, ref.value, *args, **kwargs)
                    reason = f"Condition {clause.name} for {where} returned {allowed}"
                else:
                    allowed = self._evaluate_for_type(rule, action, ref, args, kwargs)
                    reason = (
                        f"Condition {clause.name} for {where} on a type check "
                        f"({self._type_predicates}) returned {allowed}"
                    )
            else:
                allowed = True
                reason = f"Granted {where}"

            return Decision(
                allowed=allowed,
                action=action,
                subject_key=key,
                matched_subject=matched_subject,
                matched_action=matched_action,
                reason=reason,
            )

        return Decision.deny(
            action,
            subject_key=key,
            reason=f"No rule allows '{action}' on '{describe_key(key)}'",
        )

    def _evaluate_for_type(
        self,
        rule: Rule | NullRule,
        action: str,
        ref: TypeKey,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> bool:
        if self._type_predicates == "allow":
            return True
        if self._type_predicates == "deny":
            return False
        return rule.is_authorized(action, ref.key, *args, **kwargs)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(subjects={len(self._registry)}, "
            f"allow_anything={self._allow_anything})"
        )
