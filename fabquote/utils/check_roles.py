from fastapi import Depends

from fabquote.core.exceptions import AuthorizationError
from fabquote.core.identity import Principal
from fabquote.utils.get_user import get_current_principal


async def require_staff(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_staff:
        raise AuthorizationError("Permission denied")
    return principal
