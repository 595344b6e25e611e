"""
Bearer Token Verification

Every backend request carries a JWT issued to the signed-in operator.
The token names the cashier and the branch the sale is booked to.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings

logger = logging.getLogger(__name__)

ALLOWED_ROLES = {"Cashier", "Staff", "Admin"}

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CashierClaims:
    cashier_id: str
    branch_id: int
    role: str = "Cashier"


def issue_token(
    cashier_id: str,
    branch_id: int,
    role: str = "Cashier",
    expires_in: Optional[timedelta] = None,
) -> str:
    """Issue a development bearer token"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": cashier_id,
        "cashierId": cashier_id,
        "branchId": branch_id,
        "role": role,
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.token_ttl_minutes)),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> CashierClaims:
    """Decode and verify a bearer token, raising HTTPException on failure"""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    cashier_id = claims.get("cashierId") or claims.get("sub")
    branch_id = claims.get("branchId")
    if not cashier_id or branch_id is None:
        raise HTTPException(status_code=401, detail="Token is missing cashier claims")

    role = claims.get("role", "Cashier")
    if role not in ALLOWED_ROLES:
        raise HTTPException(status_code=403, detail=f"Role {role} may not use the till")

    return CashierClaims(cashier_id=str(cashier_id), branch_id=int(branch_id), role=role)


async def require_cashier(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CashierClaims:
    """FastAPI dependency: the operator behind the request"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return verify_token(credentials.credentials)
