from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from commission_engine.core.roles import PlatformRole
from commission_engine.core.security import bearer_scheme, decode_access_token


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == PlatformRole.ADMIN.value


async def get_current_principal(
    creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Principal:
    payload = decode_access_token(creds.credentials)
    role = str(payload.get("role") or PlatformRole.AFFILIATE.value).strip().upper()
    return Principal(user_id=str(payload["sub"]), role=role)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "admin_required", "message": "Insufficient role: ADMIN required"},
        )
    return principal


async def require_self_or_admin(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Affiliates may read their own data; admins may read anyone's."""
    if principal.is_admin or principal.user_id == user_id:
        return principal
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": "forbidden", "message": "You can only access your own affiliate data."},
    )
