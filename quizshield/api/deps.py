from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ..core.errors import NotAuthorized
from .schemas import Requester


def get_requester(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header("student"),
) -> Requester:
    """
    Identity of the caller, as forwarded by the authentication layer
    in front of this service.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing requester identity",
        )
    return Requester(id=x_user_id, role=(x_user_role or "student").lower())


def get_reviewer(requester: Requester = Depends(get_requester)) -> Requester:
    if requester.role == "student":
        raise NotAuthorized("Only reviewers can change attempt state")
    return requester
