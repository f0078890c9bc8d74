"""
Custom exceptions for abilities.

This module defines the exception hierarchy for the package. Ordinary
"denied" outcomes are plain booleans returned by ``Ability.can``; the
exceptions here are reserved for enforcement (``Ability.authorize``),
for request scopes that never checked authorization, and for invalid
configuration.
"""

from __future__ import annotations

from typing import Any


class AbilityError(Exception):
    """
    Base exception for all abilities errors.

    Catch this at the edge of a request to handle every failure the
    package signals: a denied ``authorize``, a handler that forgot to
    authorize, or an Ability whose rules were declared incorrectly.
    Errors raised inside predicates are not wrapped and never arrive
    as an AbilityError.

    Attributes:
        message: Human-readable error description.
        details: Structured context (action, subject, offending config
            key) for logs; kept out of the user-facing message where
            the subclass says so.

    Example:
        >>> try:
        ...     with AuthorizationGuard(ability) as guard:
        ...         handle_request(guard)
        ... except AbilityError as e:
        ...     logger.warning(f"Request rejected: {e.to_dict()}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class AccessDenied(AbilityError):
    """
    Raised when the principal is not allowed to perform an action.

    Raised by ``Ability.authorize`` (and everything built on it) when the
    decision is negative. Callers are expected to catch it at the edge of
    the request and turn it into a user-visible rejection, such as a
    redirect or a 403 response.

    Attributes:
        action: The action that was attempted (e.g., "update").
        subject: The subject the action was attempted on: the instance,
            class or symbolic name, unwrapped from any TypeKey/Instance.

    Example:
        >>> try:
        ...     ability.authorize("read", article, message="Not your article")
        ... except AccessDenied as e:
        ...     return redirect("/", alert=e.message)
    """

    default_message = "You are not authorized to access this resource."

    def __init__(
        self,
        message: str | None = None,
        action: str | None = None,
        subject: Any = None,
        subject_name: str | None = None,
    ) -> None:
        self.action = action
        self.subject = subject

        details: dict[str, Any] = {}
        if action is not None:
            details["action"] = action
        if subject_name is not None:
            details["subject"] = subject_name
        elif subject is not None:
            from abilities.types import describe_subject

            details["subject"] = describe_subject(subject)
        super().__init__(message or self.default_message, details)

    def __str__(self) -> str:
        # The message is shown to end users; details stay in to_dict().
        return self.message


class AuthorizationNotPerformed(AbilityError):
    """
    Raised when a request scope completes without authorizing anything.

    ``AuthorizationGuard.verify`` raises this when neither ``authorize`` nor
    ``skip_authorization_check`` was called during the scope. It signals a
    programming error in the request handler, not a denied user.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or (
                "This action failed the authorization check because it did not "
                "authorize a resource. Call skip_authorization_check() to bypass "
                "this check."
            )
        )


class ConfigurationError(AbilityError):
    """
    Raised when an Ability, a rule or a decorator is declared incorrectly.

    Raised eagerly, while rules are being declared, so mistakes surface
    when the Ability is built rather than on the first denied request:
    an unknown ``type_predicates`` mode, an empty or non-string action,
    an object instance where a subject type is expected, a predicate
    that is not callable, or an ``authorize`` decorator pointing at a
    parameter the function does not have.

    Attributes:
        config_key: The config key or argument name that was wrong
            (e.g., "type_predicates", "action", "subject", "predicate").
        expected: What was expected for it.
        received: What was actually provided.

    Example:
        >>> ability.grant("read", project)
        Traceback (most recent call last):
        ...
        abilities.exceptions.ConfigurationError: Configuration error for 'subject': ...
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)
