"""
Testimonials Router

Endpoints:
- GET /testimonials - Active testimonials for the landing page (public)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.database import get_db
from plastic_clever.modules.testimonials import service
from plastic_clever.modules.testimonials.schemas import TestimonialResponse

router = APIRouter()


@router.get("", response_model=list[TestimonialResponse], summary="Active testimonials")
async def list_testimonials(db: AsyncSession = Depends(get_db)) -> list[TestimonialResponse]:
    return [TestimonialResponse.model_validate(t) for t in await service.list_active(db)]
