"""
Folio Auth — acting principal and impersonation.

The acting principal is the impersonated one when set, otherwise the
logged-in user. SYSTEM is the virtual principal allowed to do anything;
internal writes (identifier persistence) run as SYSTEM.
"""

import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)

SYSTEM = "system"

# role → allowed actions; "*" allows everything
DEFAULT_PERMISSIONS = {
    "admin": ["*"],
}


class PermissionDenied(PermissionError):
    pass


class Auth:
    def __init__(self, app, permissions: Optional[dict] = None):
        self.app = app
        self.permissions = permissions if permissions is not None else DEFAULT_PERMISSIONS
        self._user = None
        self._impersonation = None

    def login(self, user) -> None:
        self._user = self._principal(user)

    def logout(self) -> None:
        self._user = None

    def user(self):
        """Acting principal: impersonated first, then logged in."""
        if self._impersonation is not None:
            return self._impersonation
        return self._user

    def current_user_from_impersonation(self):
        return self._impersonation

    def impersonate(self, who: Union[str, "User", None] = None):  # noqa: F821
        """Switch (or with None, drop) the impersonated principal."""
        self._impersonation = self._principal(who)
        return self._impersonation

    def _principal(self, who):
        if who is None or who == SYSTEM or not isinstance(who, str):
            return who
        user = self.app.user(who)
        if user is None:
            raise LookupError(f"Unknown user: {who}")
        return user

    def permits(self, action: str, model=None) -> bool:
        actor = self.user()
        if actor == SYSTEM:
            return True
        if actor is None:
            return False
        allowed = self.permissions.get(actor.role, [])
        return "*" in allowed or action in allowed

    def check(self, action: str, model=None) -> None:
        if not self.permits(action, model):
            actor = self.user()
            name = actor if isinstance(actor, str) or actor is None else actor.id
            logger.warning("denied %s on %r for %s", action, model, name)
            raise PermissionDenied(f"{name or 'anonymous'} may not {action} {model!r}")
