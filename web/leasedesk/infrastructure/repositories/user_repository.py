from typing import Optional, Dict, Any
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core import BaseRepository
from leasedesk.models import User, _utcnow
from leasedesk.roles import Role, to_role_str


class UserRepository(BaseRepository[User]):
    """Identity directory: account lookup, provisioning and role assignment"""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        query = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(self, *, obj_in: Dict[str, Any]) -> User:
        """Create a user; emails are stored lower-cased so the unique index is case-insensitive"""
        data = dict(obj_in)
        data["email"] = data["email"].strip().lower()
        if "role" in data:
            data["role"] = to_role_str(data["role"])
        return await super().create(obj_in=data)

    async def get_role(self, user_id: int) -> Optional[str]:
        """Return the role name of *user_id*, or None when the user does not exist"""
        query = select(User.role).where(User.id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def set_role(self, user_id: int, role: "Role | str") -> Optional[User]:
        """Assign *role* to the user"""
        user = await self.get(user_id)
        if not user:
            return None

        user.role = to_role_str(role)
        user.updated_at = _utcnow()
        await self.session.flush()
        return user
