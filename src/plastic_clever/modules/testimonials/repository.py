"""
Testimonial Repository

Database operations for landing-page testimonials.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.testimonials.models import Testimonial


async def create(db: AsyncSession, **fields: Any) -> Testimonial:
    testimonial = Testimonial(**fields)
    db.add(testimonial)
    await db.commit()
    await db.refresh(testimonial)
    return testimonial


async def get_by_id(db: AsyncSession, testimonial_id: str) -> Testimonial | None:
    result = await db.execute(select(Testimonial).where(Testimonial.id == str(testimonial_id)))
    return result.scalar_one_or_none()


async def list_testimonials(db: AsyncSession, active_only: bool = False) -> list[Testimonial]:
    """Testimonials in display order, newest first within the same position."""
    query = select(Testimonial)
    if active_only:
        query = query.where(Testimonial.is_active.is_(True))
    result = await db.execute(
        query.order_by(Testimonial.display_order, Testimonial.created_at.desc())
    )
    return list(result.scalars().all())


async def update(db: AsyncSession, testimonial: Testimonial, **fields: Any) -> Testimonial:
    for name, value in fields.items():
        setattr(testimonial, name, value)
    await db.commit()
    await db.refresh(testimonial)
    return testimonial


async def delete(db: AsyncSession, testimonial: Testimonial) -> None:
    await db.delete(testimonial)
    await db.commit()
