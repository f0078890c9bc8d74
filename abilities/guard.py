"""
Request-scoped authorization tracking.

AuthorizationGuard wraps an Ability for the duration of one request (or
job, or command) and records whether authorization was enforced. At the
end of the scope, ``verify()`` raises AuthorizationNotPerformed if the
handler never called ``authorize`` and did not explicitly skip the check.
This catches handlers that forget to authorize at all.

Example:
    >>> with AuthorizationGuard(UserAbility(current_user)) as guard:
    ...     article = load_article(article_id)
    ...     guard.authorize("read", article)
    ...     return render(article)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

from abilities.ability import Ability
from abilities.exceptions import AuthorizationNotPerformed
from abilities.types import Decision

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """
    Tracks whether a scope performed authorization.

    Only ``authorize`` and ``skip_authorization_check`` mark the scope;
    ``can``/``cannot`` are plain queries and do not count. The mark is
    set before the decision is made, so a denied ``authorize`` still
    counts as authorization having been performed.

    Attributes:
        ability: The Ability used for every check in the scope.

    Example:
        >>> guard = AuthorizationGuard(
        ...     ability,
        ...     condition=lambda: request.path.startswith("/admin"),
        ...     unless=lambda: is_health_check,
        ... )
        >>> guard.skip_authorization_check()
        >>> guard.verify()
    """

    def __init__(
        self,
        ability: Ability,
        condition: Callable[[], bool] | None = None,
        unless: Callable[[], bool] | None = None,
    ) -> None:
        """
        Initialize the guard.

        Args:
            ability: The Ability for this scope's principal.
            condition: Optional callable; ``verify`` only enforces the
                check when it returns True.
            unless: Optional callable; when it returns True, ``verify``
                passes even if nothing was authorized.
        """
        self.ability = ability
        self._condition = condition
        self._unless = unless
        self._performed = False

    @property
    def performed(self) -> bool:
        """Whether authorization was performed or skipped in this scope."""
        return self._performed

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
        Mark the scope as authorized and enforce the check.

        Raises:
            AccessDenied: If the ability denies the action.
        """
        self._performed = True
        return self.ability.authorize(action, subject, *args, message=message, **kwargs)

    def can(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        return self.ability.can(action, subject, *args, **kwargs)

    def cannot(self, action: str, subject: Any, /, *args: Any, **kwargs: Any) -> bool:
        return self.ability.cannot(action, subject, *args, **kwargs)

    def skip_authorization_check(self) -> None:
        """Mark the scope as not needing authorization."""
        self._performed = True
        logger.debug("Authorization check skipped for this scope")

    def reset(self) -> None:
        """Clear the mark, e.g. when reusing the guard for another request."""
        self._performed = False

    def verify(self) -> None:
        """
        Ensure the scope performed authorization.

        Raises:
            AuthorizationNotPerformed: If neither ``authorize`` nor
                ``skip_authorization_check`` was called, ``condition``
                (if given) holds and ``unless`` (if given) does not.
        """
        if self._performed:
            return
        if self._condition is not None and not self._condition():
            return
        if self._unless is not None and self._unless():
            return
        raise AuthorizationNotPerformed()

    def __enter__(self) -> AuthorizationGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        # An error already escaping the scope takes priority.
        if exc_type is None:
            self.verify()
