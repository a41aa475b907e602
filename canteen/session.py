"""Session and role store.

One ``SessionStore`` is built per request (or per test) and handed to
whatever needs to know who is signed in. It owns the auth session and the
resolved role snapshot, and tells subscribers when either changes.
"""
import logging
from enum import Enum
from typing import Callable, List, NamedTuple, Optional

import jwt
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .auth import create_access_token, decode_access_token, verify_password
from .errors import AuthError
from .roles import RoleSnapshot, resolve_role

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    ROLE_REFRESHED = "ROLE_REFRESHED"


class AuthSession(NamedTuple):
    user_id: int
    email: str
    access_token: str


Listener = Callable[[AuthEvent, "SessionStore"], None]


class SessionStore:
    def __init__(self, db: Session, owner_emails=None):
        self.db = db
        # None means "use canteen.config"
        self.owner_emails = owner_emails
        self.session: Optional[AuthSession] = None
        self.role: Optional[RoleSnapshot] = None
        # true until the first session check or sign-in has finished
        self.loading = True
        self._listeners: List[Listener] = []

    @property
    def user_id(self) -> Optional[int]:
        return self.session.user_id if self.session else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_up(self, user: schemas.UserCreate) -> AuthSession:
        db_user = crud.create_user(self.db, user)
        logger.info("Registered %s", db_user.email)
        return self._start(db_user, AuthEvent.SIGNED_IN)

    def sign_in(self, email: str, password: str) -> AuthSession:
        user = crud.get_user_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthError("invalid credentials")
        return self._start(user, AuthEvent.SIGNED_IN)

    def restore(self, token: Optional[str]) -> Optional[AuthSession]:
        """Pick up an existing session from a token, as on page load."""
        user = None
        if token:
            try:
                claims = decode_access_token(token)
                user = self.db.get(models.User, int(claims["sub"]))
            except (jwt.PyJWTError, KeyError, ValueError) as exc:
                logger.info("Ignoring unusable session token: %s", exc)
        if user is None:
            self._set(None, AuthEvent.INITIAL_SESSION)
            return None
        return self._start(user, AuthEvent.INITIAL_SESSION, token=token)

    def sign_out(self) -> None:
        self._set(None, AuthEvent.SIGNED_OUT)

    def refresh_role(self) -> Optional[RoleSnapshot]:
        if not self.session:
            return None
        self.role = resolve_role(self.db, self.session.user_id, self.session.email, self.owner_emails)
        self._notify(AuthEvent.ROLE_REFRESHED)
        return self.role

    def _start(self, user: models.User, event: AuthEvent, token: Optional[str] = None) -> AuthSession:
        session = AuthSession(
            user_id=user.id,
            email=user.email,
            access_token=token or create_access_token(user.id, user.email),
        )
        self._set(session, event)
        return session

    def _set(self, session: Optional[AuthSession], event: AuthEvent) -> None:
        self.session = session
        self.role = resolve_role(self.db, session.user_id, session.email, self.owner_emails) if session else None
        self.loading = False
        self._notify(event)

    def _notify(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self)
