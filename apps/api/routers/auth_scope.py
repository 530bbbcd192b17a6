"""Authentication dependencies for end-user identity on the write path."""

from typing import Optional

from fastapi import Depends, Header

from routers.dependencies import get_identity_resolver
from routers.errors import InternalServerError, Unauthorized
from services.errors import UsersServiceError
from services.users import IdentityResolver, User


async def get_optional_user(
    authorization: Optional[str] = Header(default=None),
    users: IdentityResolver = Depends(get_identity_resolver),
) -> Optional[User]:
    """Resolve the caller from the raw `Authorization` header.

    No header means an anonymous caller. A header that the user directory
    does not recognise is rejected rather than treated as anonymous.
    A directory failure becomes `InternalServerError`.
    """
    if authorization is None:
        return None

    try:
        user = await users.fetch_user(authorization)
    except UsersServiceError as exc:
        raise InternalServerError() from exc
    if user is None:
        raise Unauthorized()
    return user
