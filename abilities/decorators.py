"""
Decorators for abilities.

This module provides a standalone ``authorize`` decorator that enforces
an Ability check before a function body runs. The Ability (or an
AuthorizationGuard) is passed explicitly as an argument of the decorated
function; nothing is looked up from global state.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from abilities.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def authorize(
    action: str,
    subject: Any = None,
    *,
    subject_param: str | None = None,
    ability_param: str = "ability",
    message: str | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to protect a function with an authorization check.

    Works with both sync and async functions. The check runs before the
    function body; on denial AccessDenied is raised and the body never
    runs.

    Args:
        action: The action being performed (e.g., "update").
        subject: Fixed subject to check against, typically a class or
            a symbolic name.
        subject_param: Name of the parameter holding the subject, for
            checks against the instance the function receives.
        ability_param: Name of the parameter holding the Ability or
            AuthorizationGuard.
        message: Optional message for the AccessDenied error.

    Returns:
        A decorator function.

    Raises:
        ConfigurationError: At decoration time if no subject is given or
            a named parameter does not exist; at call time if the
            ability argument is missing.

    Example:
        >>> @authorize("update", subject_param="project")
        ... def rename_project(project, name, ability):
        ...     project.name = name
        >>>
        >>> @authorize("create", Project)
        ... async def create_project(data, ability):
        ...     return await Project.create(**data)
    """
    if subject is None and subject_param is None:
        raise ConfigurationError(
            config_key="subject",
            expected="a subject or a subject_param",
        )

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        signature = inspect.signature(func)
        for param in (ability_param, subject_param):
            if param is not None and param not in signature.parameters:
                raise ConfigurationError(
                    config_key=param,
                    expected=f"a parameter of {func.__qualname__}",
                )

        def enforce(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            bound = signature.bind_partial(*args, **kwargs)
            bound.apply_defaults()

            ability = bound.arguments.get(ability_param)
            if ability is None:
                raise ConfigurationError(
                    config_key=ability_param,
                    expected=f"an Ability passed to {func.__qualname__}",
                )

            target = bound.arguments.get(subject_param) if subject_param else subject
            logger.debug(f"Authorizing '{action}' before calling {func.__qualname__}")
            ability.authorize(action, target, message=message)

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                enforce(args, kwargs)
                return await func(*args, **kwargs)
            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            enforce(args, kwargs)
            return func(*args, **kwargs)
        return sync_wrapper

    return decorator
