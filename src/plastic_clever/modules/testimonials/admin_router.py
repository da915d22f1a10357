"""
Testimonials Admin Router

Endpoints:
- GET /admin/testimonials - All testimonials, inactive included
- POST /admin/testimonials - Create
- PATCH /admin/testimonials/{id} - Update
- DELETE /admin/testimonials/{id} - Delete
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin_or_partner
from plastic_clever.core.database import get_db
from plastic_clever.modules.testimonials import service
from plastic_clever.modules.testimonials.schemas import (
    TestimonialCreate,
    TestimonialResponse,
    TestimonialUpdate,
)

router = APIRouter()


@router.get("", response_model=list[TestimonialResponse], summary="List testimonials")
async def list_testimonials(
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> list[TestimonialResponse]:
    return [TestimonialResponse.model_validate(t) for t in await service.list_all(db)]


@router.post(
    "",
    response_model=TestimonialResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create testimonial",
)
async def create_testimonial(
    data: TestimonialCreate,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> TestimonialResponse:
    return TestimonialResponse.model_validate(await service.create_testimonial(db, data))


@router.patch(
    "/{testimonial_id}",
    response_model=TestimonialResponse,
    summary="Update testimonial",
)
async def update_testimonial(
    testimonial_id: str,
    data: TestimonialUpdate,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> TestimonialResponse:
    testimonial = await service.update_testimonial(db, testimonial_id, data)
    return TestimonialResponse.model_validate(testimonial)


@router.delete("/{testimonial_id}", summary="Delete testimonial")
async def delete_testimonial(
    testimonial_id: str,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> dict[str, str]:
    await service.delete_testimonial(db, testimonial_id)
    return {"message": "Testimonial deleted successfully"}
