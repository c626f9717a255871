# fabquote/core/identity.py

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    staff = "staff"
    customer = "customer"


@dataclass(frozen=True)
class Principal:
    """
    The caller of an engine operation.

    Resolved once at the identity boundary (see fabquote.utils.get_user) and
    passed explicitly into every service call. Services check `role`, never
    the email address.
    """

    user_id: str
    role: Role
    email: str | None = None
    display_name: str | None = None
    email_confirmed: bool = False

    @property
    def is_staff(self) -> bool:
        return self.role == Role.staff

    def owns(self, owner_id: str) -> bool:
        return self.user_id == owner_id

    @property
    def label(self) -> str:
        return self.email or self.user_id
