"""
Testimonial Service

The public landing page shows active testimonials only; admins manage the
full list.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.shared import NotFoundError
from plastic_clever.modules.testimonials import repository
from plastic_clever.modules.testimonials.models import Testimonial
from plastic_clever.modules.testimonials.schemas import TestimonialCreate, TestimonialUpdate

logger = logging.getLogger(__name__)


async def list_active(db: AsyncSession) -> list[Testimonial]:
    return await repository.list_testimonials(db, active_only=True)


async def list_all(db: AsyncSession) -> list[Testimonial]:
    return await repository.list_testimonials(db)


async def get_testimonial_or_404(db: AsyncSession, testimonial_id: str) -> Testimonial:
    testimonial = await repository.get_by_id(db, testimonial_id)
    if testimonial is None:
        raise NotFoundError("Testimonial", testimonial_id)
    return testimonial


async def create_testimonial(db: AsyncSession, data: TestimonialCreate) -> Testimonial:
    fields = data.model_dump()
    if fields["rating"] is None:
        # Unrated testimonials display as five stars
        fields["rating"] = 5
    testimonial = await repository.create(db, **fields)
    logger.info(f"Testimonial {testimonial.id} created for {testimonial.author_name}")
    return testimonial


async def update_testimonial(
    db: AsyncSession,
    testimonial_id: str,
    data: TestimonialUpdate,
) -> Testimonial:
    testimonial = await get_testimonial_or_404(db, testimonial_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return testimonial
    return await repository.update(db, testimonial, **updates)


async def delete_testimonial(db: AsyncSession, testimonial_id: str) -> None:
    testimonial = await get_testimonial_or_404(db, testimonial_id)
    await repository.delete(db, testimonial)
    logger.info(f"Testimonial {testimonial_id} deleted")
