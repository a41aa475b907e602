"""Runtime configuration for the app (toggleable during tests/runtime)."""
import os
from typing import Iterable, NamedTuple, Tuple


class ConfigState(NamedTuple):
    # emails that are owners regardless of what user_roles says
    owner_emails: Tuple[str, ...]


def _normalize(emails: Iterable[str]) -> Tuple[str, ...]:
    return tuple(sorted({e.strip().lower() for e in emails if e and e.strip()}))


state = ConfigState(owner_emails=_normalize(os.getenv("OWNER_EMAILS", "").split(",")))


def set_owner_emails(emails: Iterable[str]):
    global state
    state = ConfigState(owner_emails=_normalize(emails))


def get_owner_emails() -> Tuple[str, ...]:
    return state.owner_emails


def is_owner_email(email: str | None) -> bool:
    if not email:
        return False
    return email.strip().lower() in state.owner_emails
