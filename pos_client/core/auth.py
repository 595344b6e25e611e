"""Operator identity from the bearer credential"""

from dataclasses import dataclass
from typing import Optional

import jwt

# Claim names issued by the backend's token service
CASHIER_CLAIM = "cashierId"
BRANCH_CLAIM = "branchId"
ROLE_CLAIM = "role"


@dataclass(frozen=True)
class OperatorIdentity:
    cashier_id: str
    branch_id: Optional[int] = None
    role: str = "Cashier"


def decode_operator(token: str) -> OperatorIdentity:
    """
    Read operator and branch claims from a JWT.

    The signature is not verified here; the backend verifies it on every
    request. Raises ``jwt.DecodeError`` for malformed tokens.
    """
    claims = jwt.decode(token, options={"verify_signature": False})

    branch_id = claims.get(BRANCH_CLAIM)
    return OperatorIdentity(
        cashier_id=str(claims.get(CASHIER_CLAIM) or claims.get("sub") or ""),
        branch_id=int(branch_id) if branch_id not in (None, "") else None,
        role=claims.get(ROLE_CLAIM, "Cashier"),
    )
