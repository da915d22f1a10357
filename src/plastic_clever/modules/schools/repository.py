"""
School Repository

Database operations for schools and school memberships.
"""

import logging
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.schools.models import School, SchoolRole, SchoolUser, SchoolType

logger = logging.getLogger(__name__)

MAP_SCHOOL_LIMIT = 1000


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def create(db: AsyncSession, **fields: Any) -> School:
        """
        Create a school. Progression fields take their column defaults
        (inspire stage, round 1, nothing completed).
        """
        school = School(**fields)
        db.add(school)
        await db.flush()
        await db.refresh(school)

        logger.info(f"Created school: {school.id} - {school.name}")
        return school

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str) -> School | None:
        result = await db.execute(select(School).where(School.id == str(school_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_many(db: AsyncSession, school_ids: list[str]) -> list[School]:
        if not school_ids:
            return []
        result = await db.execute(select(School).where(School.id.in_(school_ids)))
        return list(result.scalars().all())

    @staticmethod
    async def list_schools(
        db: AsyncSession,
        *,
        country: str | None = None,
        school_type: SchoolType | None = None,
        stage: str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[School], int]:
        """
        List schools with filters, newest first.

        Returns:
            Tuple of (schools, total matching count)
        """
        query = select(School)
        if country:
            query = query.where(School.country == country)
        if school_type is not None:
            query = query.where(School.school_type == school_type)
        if stage:
            query = query.where(School.current_stage == stage)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(School.name.ilike(pattern), School.address.ilike(pattern)))

        total = await db.execute(select(func.count()).select_from(query.subquery()))
        result = await db.execute(
            query.order_by(School.created_at.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total.scalar() or 0

    @staticmethod
    async def get_map_schools(db: AsyncSession, country: str | None = None) -> list[School]:
        """Schools that opted into the public map and have coordinates."""
        query = select(School).where(
            School.show_on_map.is_(True),
            School.latitude.is_not(None),
            School.longitude.is_not(None),
        )
        if country:
            query = query.where(School.country == country)
        result = await db.execute(query.limit(MAP_SCHOOL_LIMIT))
        return list(result.scalars().all())

    @staticmethod
    async def update(db: AsyncSession, school: School, **fields: Any) -> School:
        for name, value in fields.items():
            setattr(school, name, value)
        await db.commit()
        await db.refresh(school)
        return school

    @staticmethod
    async def delete(db: AsyncSession, school_id: str) -> bool:
        result = await db.execute(delete(School).where(School.id == str(school_id)))
        await db.commit()
        return (result.rowcount or 0) > 0

    @staticmethod
    async def get_platform_stats(db: AsyncSession) -> dict[str, int]:
        """Totals for the public stats banner."""
        result = await db.execute(
            select(
                func.count(School.id),
                func.count(School.id).filter(School.award_completed.is_(True)),
                func.count(func.distinct(School.country)),
                func.coalesce(func.sum(School.student_count), 0),
            )
        )
        total_schools, completed_awards, countries, total_students = result.one()
        return {
            "total_schools": total_schools or 0,
            "completed_awards": completed_awards or 0,
            "countries": countries or 0,
            "total_students": int(total_students or 0),
        }

    # ============================================
    # Memberships
    # ============================================

    @staticmethod
    async def get_membership(db: AsyncSession, school_id: str, user_id: str) -> SchoolUser | None:
        result = await db.execute(
            select(SchoolUser).where(
                SchoolUser.school_id == str(school_id),
                SchoolUser.user_id == str(user_id),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_memberships(db: AsyncSession, user_id: str) -> list[SchoolUser]:
        """A user's memberships, oldest first (the first is the user's primary school)."""
        result = await db.execute(
            select(SchoolUser)
            .where(SchoolUser.user_id == str(user_id))
            .order_by(SchoolUser.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_members(db: AsyncSession, school_id: str) -> list[SchoolUser]:
        result = await db.execute(
            select(SchoolUser)
            .where(SchoolUser.school_id == str(school_id))
            .order_by(SchoolUser.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_member_user_ids(db: AsyncSession, school_ids: list[str]) -> list[str]:
        if not school_ids:
            return []
        result = await db.execute(
            select(func.distinct(SchoolUser.user_id)).where(SchoolUser.school_id.in_(school_ids))
        )
        return [str(user_id) for user_id in result.scalars().all()]

    @staticmethod
    async def add_member(
        db: AsyncSession,
        *,
        school_id: str,
        user_id: str,
        role: SchoolRole = SchoolRole.TEACHER,
        is_verified: bool = True,
    ) -> SchoolUser:
        membership = SchoolUser(
            school_id=str(school_id),
            user_id=str(user_id),
            role=role,
            is_verified=is_verified,
        )
        db.add(membership)
        await db.flush()
        logger.info(f"Added user {user_id} to school {school_id} as {role.value}")
        return membership

    @staticmethod
    async def remove_member(db: AsyncSession, school_id: str, user_id: str) -> bool:
        result = await db.execute(
            delete(SchoolUser).where(
                SchoolUser.school_id == str(school_id),
                SchoolUser.user_id == str(user_id),
            )
        )
        await db.commit()
        return (result.rowcount or 0) > 0
