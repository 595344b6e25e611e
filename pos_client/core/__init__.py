# Core modules

from .config import settings
from .session import SessionManager, TerminalSession, session_manager

__all__ = ["settings", "SessionManager", "TerminalSession", "session_manager"]
