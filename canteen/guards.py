"""Route guards and the auto-redirect policy.

Guards are plain functions of the session state so the same decision backs
both the HTML pages (redirects) and the JSON API (401/403).
"""
from enum import Enum
from typing import NamedTuple, Optional

from .roles import Role, RoleSnapshot

SIGN_IN_PATH = "/auth"
HOME_PATH = "/"
LEGACY_PREFIX = "/customer"


class Guard(str, Enum):
    PROTECTED = "protected"
    CUSTOMER = "customer"
    OWNER = "owner"
    DELIVERY = "delivery"


class Decision(NamedTuple):
    action: str  # "loading", "redirect" or "render"
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.action == "render"


LOADING = Decision("loading")
RENDER = Decision("render")


def check_access(guard: Guard, session, role: Optional[RoleSnapshot], loading: bool = False) -> Decision:
    if loading or (session is not None and role is None):
        return LOADING

    if guard is Guard.CUSTOMER:
        # the cart is open to guests; sign-in is only checked at checkout
        if role and role.role is not Role.CUSTOMER:
            return Decision("redirect", role.dashboard)
        return RENDER

    if session is None:
        return Decision("redirect", SIGN_IN_PATH)
    if guard is Guard.OWNER and not role.is_owner:
        return Decision("redirect", HOME_PATH)
    if guard is Guard.DELIVERY and not role.is_delivery_partner:
        return Decision("redirect", HOME_PATH)
    return RENDER


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def auto_redirect(path: str, role: Optional[RoleSnapshot]) -> Optional[str]:
    """Where a signed-in user landing on ``path`` should be sent, if anywhere.

    Only legacy ``/customer`` paths move; each role goes to its own
    dashboard, none of which is a legacy path.
    """
    if role is None or not _under(path, LEGACY_PREFIX):
        return None
    return role.dashboard
