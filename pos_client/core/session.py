"""Terminal sessions and the shared checkout guard"""

import logging
import uuid
from datetime import datetime
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum

from ..models import HeldTransaction
from ..services.cart_store import CartStore
from ..services.errors import CheckoutInProgressError, InvalidTransitionError
from ..services.pricing import validate_discount

logger = logging.getLogger(__name__)


class CheckoutKind(str, Enum):
    """Which checkout flow currently owns the cart"""
    NONE = "none"
    CASH = "cash"
    HOLD = "hold"
    GCASH = "gcash"


class CheckoutGuard:
    """Lets at most one checkout flow work on a cart at a time"""

    def __init__(self):
        self.active = CheckoutKind.NONE

    @property
    def busy(self) -> bool:
        return self.active != CheckoutKind.NONE

    def acquire(self, kind: CheckoutKind) -> None:
        if self.active == kind:
            return
        if self.busy:
            raise CheckoutInProgressError(
                f"A {self.active.value} checkout is already in progress"
            )
        self.active = kind

    def release(self, kind: CheckoutKind) -> None:
        if self.active == kind:
            self.active = CheckoutKind.NONE


@dataclass
class ResumeMarker:
    """Set when a held transaction is reopened into the cart"""
    hold_id: int
    menu_item_name: str = ""
    held: Optional[HeldTransaction] = None


@dataclass
class TerminalSession:
    """Checkout context of one operator terminal"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    cart: CartStore = field(default_factory=CartStore)
    discount_percent: int = 0
    resume_marker: Optional[ResumeMarker] = None
    guard: CheckoutGuard = field(default_factory=CheckoutGuard)

    def ensure_not_resumed(self, action: str) -> None:
        """Only cash can settle a resumed hold, and its cart is fixed"""
        if self.resume_marker is not None:
            raise InvalidTransitionError(
                f"Hold #{self.resume_marker.hold_id} was resumed; {action} is not available. "
                "Pay it with cash or clear the cart."
            )

    def set_discount(self, discount_percent: int) -> None:
        self.discount_percent = validate_discount(discount_percent)
        self.touch()

    def reset_after_checkout(self) -> None:
        """Clear cart, discount and resume marker after a successful checkout"""
        self.cart.clear()
        self.discount_percent = 0
        self.resume_marker = None
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()


class SessionManager:
    """Manages terminal sessions"""

    def __init__(self):
        self.sessions: dict[str, TerminalSession] = {}

    def create_session(self) -> TerminalSession:
        """Create a new session"""
        now = datetime.utcnow()
        session = TerminalSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        self.sessions[session.session_id] = session
        logger.info(f"Terminal session {session.session_id} created")
        return session

    def get_session(self, session_id: str) -> Optional[TerminalSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> TerminalSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            return self.sessions[session_id]
        return self.create_session()

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove idle sessions older than max_age_hours"""
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if not session.guard.busy
            and (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        return len(old_sessions)


# Singleton instance
session_manager = SessionManager()
