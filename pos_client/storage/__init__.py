# Terminal-side storage

from .local_store import LocalStore, HoldMirror, PendingPaymentStore

__all__ = [
    "LocalStore",
    "HoldMirror",
    "PendingPaymentStore",
]
