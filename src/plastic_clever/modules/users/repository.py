"""
User Repository

Database operations for user accounts and the activity log.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.users.models import User, UserActivityLog, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.TEACHER,
        preferred_language: str = "en",
    ) -> User:
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            preferred_language=preferred_language,
            is_active=True,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> User | None:
        result = await db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Case-insensitive lookup by email."""
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_many(db: AsyncSession, user_ids: list[str]) -> list[User]:
        if not user_ids:
            return []
        result = await db.execute(select(User).where(User.id.in_(user_ids)))
        return list(result.scalars().all())

    @staticmethod
    async def get_many_by_emails(db: AsyncSession, emails: list[str]) -> list[User]:
        if not emails:
            return []
        lowered = [email.lower() for email in emails]
        result = await db.execute(select(User).where(func.lower(User.email).in_(lowered)))
        return list(result.scalars().all())

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        result = await db.execute(
            select(func.count()).select_from(User).where(func.lower(User.email) == email.lower())
        )
        return (result.scalar() or 0) > 0

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        role: UserRole | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[User], int]:
        """
        List users with optional role and name/email search.

        Returns:
            Tuple of (users, total matching count)
        """
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        total = await db.execute(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(User.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total.scalar() or 0

    @staticmethod
    async def get_by_role(db: AsyncSession, role: UserRole, active_only: bool = True) -> list[User]:
        query = select(User).where(User.role == role)
        if active_only:
            query = query.where(User.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_admins(db: AsyncSession) -> list[User]:
        return await UserRepository.get_by_role(db, UserRole.ADMIN)

    @staticmethod
    async def get_all_teachers(db: AsyncSession) -> list[User]:
        return await UserRepository.get_by_role(db, UserRole.TEACHER)

    @staticmethod
    async def get_created_since(db: AsyncSession, since: datetime) -> list[User]:
        result = await db.execute(
            select(User).where(User.created_at >= since).order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(User))
        return result.scalar() or 0

    @staticmethod
    async def touch_last_login(db: AsyncSession, user: User) -> None:
        user.last_login_at = datetime.now(UTC)
        await db.commit()

    @staticmethod
    async def delete(db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(delete(User).where(User.id == str(user_id)))
        await db.commit()
        return (result.rowcount or 0) > 0


class ActivityLogRepository:
    """Read access to the user activity log for admins."""

    @staticmethod
    async def list_logs(
        db: AsyncSession,
        *,
        user_id: str | None = None,
        action_type: str | None = None,
        days: int | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[UserActivityLog], int]:
        query = select(UserActivityLog)
        if user_id:
            query = query.where(UserActivityLog.user_id == user_id)
        if action_type:
            query = query.where(UserActivityLog.action_type == action_type)
        if days:
            query = query.where(
                UserActivityLog.created_at >= datetime.now(UTC) - timedelta(days=days)
            )

        total = await db.execute(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(UserActivityLog.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total.scalar() or 0
