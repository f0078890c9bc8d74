"""
Core type definitions for abilities.

This module defines the reserved wildcard tokens, the subject reference
union used to turn "a class or an instance" into a registry key, the
clause types stored in a rule, and the Decision returned by checks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from abilities.exceptions import ConfigurationError

# Reserved action key matching any action.
MANAGE = "manage"

# Reserved subject key matching any subject type.
ALL = "all"


@dataclass(frozen=True)
class TypeKey:
    """
    Reference to a subject type rather than a concrete object.

    The key is either a class, a symbolic name (``"stats"``), or the
    wildcard ``ALL``. Checks made against a TypeKey answer questions
    like "can this user create projects at all?".
    """
    key: Any

    @property
    def lookup_key(self) -> Any:
        return self.key


@dataclass(frozen=True)
class Instance:
    """
    Reference to a concrete subject object.

    Rules are looked up by the object's runtime type, and predicates
    receive the object itself. Wrap a value explicitly to force instance
    semantics for values that would otherwise be read as a type key,
    e.g. ``Instance("a plain string")``.
    """
    value: Any

    @property
    def lookup_key(self) -> Any:
        return type(self.value)


SubjectRef = Union[TypeKey, Instance]


def subject_ref(subject: Any) -> SubjectRef:
    """
    Resolve a subject into a TypeKey or an Instance.

    Classes and strings are type keys; any other value is an instance.
    Existing references are returned unchanged.

    Example:
        >>> subject_ref(Project)
        TypeKey(key=<class 'Project'>)
        >>> subject_ref(project).lookup_key is Project
        True
    """
    if isinstance(subject, (TypeKey, Instance)):
        return subject
    if isinstance(subject, (type, str)):
        return TypeKey(subject)
    return Instance(subject)


@dataclass(frozen=True)
class Allow:
    """Unconditional grant."""

    def evaluate(self, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        return True


@dataclass(frozen=True)
class Predicate:
    """
    Conditional grant backed by a caller-supplied function.

    The function receives the subject followed by any extra arguments
    given at check time, and its result is coerced to bool. Exceptions
    raised by the function propagate to the caller untouched.

    Example:
        >>> clause = Predicate(lambda project, user: project.owner == user)
        >>> clause.evaluate(project, current_user)
        True
    """
    fn: Callable[..., Any]

    def evaluate(self, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        return bool(self.fn(subject, *args, **kwargs))

    @property
    def name(self) -> str:
        return getattr(self.fn, "__qualname__", repr(self.fn))


Clause = Union[Allow, Predicate]

ALLOW = Allow()


def clause_from(predicate: Callable[..., Any] | None) -> Clause:
    """
    Build a clause from an optional predicate.

    Raises:
        ConfigurationError: If the predicate is neither None nor callable.
    """
    if predicate is None:
        return ALLOW
    if not callable(predicate):
        raise ConfigurationError(
            config_key="predicate",
            expected="a callable or None",
            received=predicate,
        )
    return Predicate(predicate)


def describe_key(key: Any) -> str:
    """Human-readable form of a subject key."""
    if isinstance(key, type):
        return key.__name__
    return str(key)


def describe_subject(subject: Any) -> str:
    """
    Human-readable form of a subject for error details.

    Type keys render as their name, instances as ``"<Type> instance"``,
    whether or not they arrive wrapped in a TypeKey or Instance.
    """
    ref = subject_ref(subject)
    if isinstance(ref, Instance):
        return f"{type(ref.value).__name__} instance"
    return describe_key(ref.key)


@dataclass(frozen=True)
class Decision:
    """
    Result of an authorization check.

    Captures whether the action was allowed, which rule governed the
    decision, and a human-readable reason. Truthiness follows
    ``allowed`` so a Decision can be used directly in conditionals.

    Attributes:
        allowed: Whether the action is authorized.
        action: The action that was checked.
        subject_key: The registry key the subject resolved to.
        matched_subject: Subject key of the governing rule, if any.
        matched_action: Action key of the governing clause, if any.
        reason: Explanation of the decision.

    Example:
        >>> decision = ability.check("update", project)
        >>> if not decision:
        ...     print(f"Denied: {decision.reason}")
    """
    allowed: bool
    action: str
    subject_key: Any = None
    matched_subject: Any = None
    matched_action: str | None = None
    reason: str | None = None

    @classmethod
    def allow(
        cls,
        action: str,
        subject_key: Any = None,
        matched_subject: Any = None,
        matched_action: str | None = None,
        reason: str | None = None,
    ) -> Decision:
        """Create an allowed decision."""
        return cls(
            allowed=True,
            action=action,
            subject_key=subject_key,
            matched_subject=matched_subject,
            matched_action=matched_action,
            reason=reason,
        )

    @classmethod
    def deny(
        cls,
        action: str,
        subject_key: Any = None,
        matched_subject: Any = None,
        matched_action: str | None = None,
        reason: str | None = None,
    ) -> Decision:
        """Create a denied decision."""
        return cls(
            allowed=False,
            action=action,
            subject_key=subject_key,
            matched_subject=matched_subject,
            matched_action=matched_action,
            reason=reason,
        )

    def __bool__(self) -> bool:
        return self.allowed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "allowed": self.allowed,
            "action": self.action,
            "subject_key": describe_key(self.subject_key) if self.subject_key is not None else None,
            "matched_subject": (
                describe_key(self.matched_subject) if self.matched_subject is not None else None
            ),
            "matched_action": self.matched_action,
            "reason": self.reason,
        }
