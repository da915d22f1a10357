"""
Unit tests for the evidence requirement service.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from plastic_clever.modules.evidence_requirements.schemas import (
    EvidenceRequirementCreate,
    EvidenceRequirementUpdate,
)
from plastic_clever.modules.evidence_requirements.service import (
    RequirementInUseError,
    create_requirement,
    delete_requirement,
    get_requirement_or_404,
    update_requirement,
)
from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.shared import NotFoundError

SERVICE = "plastic_clever.modules.evidence_requirements.service"


def make_requirement():
    return SimpleNamespace(
        id="req-1",
        stage=ProgramStage.INSPIRE,
        title="Hold an assembly",
        description="Share what you learned",
        order_index=1,
    )


class TestRequirementCrud:
    """Tests for creating, updating and fetching requirements."""

    @pytest.mark.asyncio
    async def test_missing_requirement(self, mock_db):
        """An unknown id is a 404 with a requirement-specific code."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            with pytest.raises(NotFoundError) as exc_info:
                await get_requirement_or_404(mock_db, "missing")

        assert exc_info.value.error_code == "EVIDENCE_REQUIREMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_create_passes_every_field(self, mock_db):
        """Creation stores the stage, title, description and position."""
        data = EvidenceRequirementCreate(
            stage=ProgramStage.ACT, title="Run a campaign", description="Tell us", order_index=3
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(return_value=make_requirement())
            await create_requirement(mock_db, data)

        mock_repo.create.assert_awaited_once_with(
            mock_db,
            stage=ProgramStage.ACT,
            title="Run a campaign",
            description="Tell us",
            order_index=3,
        )

    @pytest.mark.asyncio
    async def test_update_applies_only_sent_fields(self, mock_db):
        """Fields left out of the update are untouched."""
        requirement = make_requirement()
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=requirement)
            mock_repo.update = AsyncMock(return_value=requirement)

            await update_requirement(
                mock_db, "req-1", EvidenceRequirementUpdate(title="Hold two assemblies")
            )

        mock_repo.update.assert_awaited_once_with(
            mock_db, requirement, title="Hold two assemblies"
        )

    @pytest.mark.asyncio
    async def test_empty_update_is_a_no_op(self, mock_db):
        """An empty body returns the requirement without writing."""
        requirement = make_requirement()
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=requirement)
            mock_repo.update = AsyncMock()

            result = await update_requirement(mock_db, "req-1", EvidenceRequirementUpdate())

        assert result is requirement
        mock_repo.update.assert_not_called()


class TestDeleteRequirement:
    """Tests for delete_requirement."""

    @pytest.mark.asyncio
    async def test_linked_requirement_cannot_be_deleted(self, mock_db):
        """Deletion is refused with 409 and the linked count."""
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=make_requirement())
            mock_repo.count_linked_evidence = AsyncMock(return_value=4)
            mock_repo.delete = AsyncMock()

            with pytest.raises(RequirementInUseError) as exc_info:
                await delete_requirement(mock_db, "req-1")

        assert exc_info.value.status_code == 409
        assert exc_info.value.to_dict()["errors"] == [{"linked_evidence_count": 4}]
        mock_repo.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_unlinked_requirement_is_deleted(self, mock_db):
        """A requirement nothing points at is removed."""
        requirement = make_requirement()
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=requirement)
            mock_repo.count_linked_evidence = AsyncMock(return_value=0)
            mock_repo.delete = AsyncMock()

            await delete_requirement(mock_db, "req-1")

        mock_repo.delete.assert_awaited_once_with(mock_db, requirement)
