from typing import Optional

from pydantic import BaseModel

from ..users.models import UserRole


class SessionUser(BaseModel):
    """The caller, as described by the identity provider's session token."""
    user_id: str
    role: UserRole
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER
