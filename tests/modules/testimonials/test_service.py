"""
Unit tests for the testimonial service.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from plastic_clever.modules.shared import NotFoundError
from plastic_clever.modules.testimonials import schemas
from plastic_clever.modules.testimonials.service import (
    create_testimonial,
    delete_testimonial,
    list_active,
    list_all,
    update_testimonial,
)

SERVICE = "plastic_clever.modules.testimonials.service"


def make_testimonial(**overrides):
    fields = {
        "quote": "Our pupils cut lunchbox plastic by half.",
        "author_name": "Rhian Jones",
        "author_role": "Head Teacher",
        "school_name": "Hill Primary",
    }
    fields.update(overrides)
    return schemas.TestimonialCreate(**fields)


class TestTestimonials:
    """Tests for the testimonial service."""

    @pytest.mark.asyncio
    async def test_public_list_is_active_only(self, mock_db):
        """The landing page asks the repository for active testimonials."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_testimonials = AsyncMock(return_value=[])
            await list_active(mock_db)

        mock_repo.list_testimonials.assert_awaited_once_with(mock_db, active_only=True)

    @pytest.mark.asyncio
    async def test_admin_list_includes_inactive(self, mock_db):
        """Admins see every testimonial."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_testimonials = AsyncMock(return_value=[])
            await list_all(mock_db)

        mock_repo.list_testimonials.assert_awaited_once_with(mock_db)

    @pytest.mark.asyncio
    async def test_missing_rating_defaults_to_five(self, mock_db):
        """An unrated testimonial is stored with five stars."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(
                side_effect=lambda db, **fields: SimpleNamespace(id="t-1", **fields)
            )
            created = await create_testimonial(mock_db, make_testimonial())

        assert created.rating == 5
        assert created.is_active is True
        assert created.display_order == 0

    @pytest.mark.asyncio
    async def test_explicit_rating_is_kept(self, mock_db):
        """A given rating is stored as sent."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(
                side_effect=lambda db, **fields: SimpleNamespace(id="t-1", **fields)
            )
            created = await create_testimonial(mock_db, make_testimonial(rating=3))

        assert created.rating == 3

    def test_rating_outside_one_to_five_is_rejected(self):
        """Ratings are validated to the 1-5 range."""
        with pytest.raises(ValidationError):
            make_testimonial(rating=6)
        with pytest.raises(ValidationError):
            make_testimonial(rating=0)

    @pytest.mark.asyncio
    async def test_update_can_deactivate(self, mock_db):
        """Setting is_active to false is applied."""
        testimonial = SimpleNamespace(id="t-1", is_active=True)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=testimonial)
            mock_repo.update = AsyncMock(return_value=testimonial)

            await update_testimonial(mock_db, "t-1", schemas.TestimonialUpdate(is_active=False))

        mock_repo.update.assert_awaited_once_with(mock_db, testimonial, is_active=False)

    @pytest.mark.asyncio
    async def test_delete_missing_testimonial(self, mock_db):
        """Deleting an unknown testimonial is a 404."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            mock_repo.delete = AsyncMock()

            with pytest.raises(NotFoundError) as exc_info:
                await delete_testimonial(mock_db, "missing")

        assert exc_info.value.error_code == "TESTIMONIAL_NOT_FOUND"
        mock_repo.delete.assert_not_called()
