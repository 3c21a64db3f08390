# fitsaga_admin/core/guard.py
from dataclasses import dataclass
from typing import Literal, Optional

from fitsaga_admin.schemas.auth import Session

GuardAction = Literal["allow", "wait", "redirect"]


@dataclass(frozen=True)
class GuardDecision:
    action: GuardAction
    target: Optional[str] = None


ALLOW = GuardDecision("allow")
WAIT = GuardDecision("wait")


def can_enter(session: Session, sign_in_path: str = "/auth/login") -> GuardDecision:
    """
    Decide whether a protected (admin) view may render for `session`.

    Never redirects while the session is loading; the caller shows a neutral
    waiting state instead. Holds no state, so every call re-evaluates.
    """
    if session.is_loading:
        return WAIT
    if session.is_admin:
        return ALLOW
    return GuardDecision("redirect", sign_in_path)
