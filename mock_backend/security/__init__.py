# Mock Backend Security

from .auth import CashierClaims, issue_token, require_cashier

__all__ = ["CashierClaims", "issue_token", "require_cashier"]
