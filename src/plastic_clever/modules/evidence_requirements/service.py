"""
Evidence Requirement Service

Anyone may read the checklist; only admins change it. A requirement that
evidence already points at cannot be deleted.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.evidence_requirements import repository
from plastic_clever.modules.evidence_requirements.models import EvidenceRequirement
from plastic_clever.modules.evidence_requirements.schemas import (
    EvidenceRequirementCreate,
    EvidenceRequirementUpdate,
)
from plastic_clever.modules.shared import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


class RequirementInUseError(ServiceError):
    """Raised when deleting a requirement that evidence is linked to (HTTP 409)."""

    def __init__(self, linked_count: int):
        super().__init__(
            message="Cannot delete evidence requirement with linked evidence submissions",
            error_code="REQUIREMENT_IN_USE",
            status_code=409,
            errors=[{"linked_evidence_count": linked_count}],
        )
        self.linked_count = linked_count


async def list_requirements(
    db: AsyncSession,
    stage: str | None = None,
) -> list[EvidenceRequirement]:
    return await repository.list_requirements(db, stage=stage)


async def get_requirement_or_404(db: AsyncSession, requirement_id: str) -> EvidenceRequirement:
    requirement = await repository.get_by_id(db, requirement_id)
    if requirement is None:
        raise NotFoundError("Evidence requirement", requirement_id)
    return requirement


async def create_requirement(
    db: AsyncSession,
    data: EvidenceRequirementCreate,
) -> EvidenceRequirement:
    requirement = await repository.create(db, **data.model_dump())
    logger.info(
        f"Evidence requirement {requirement.id} created for stage {requirement.stage.value}"
    )
    return requirement


async def update_requirement(
    db: AsyncSession,
    requirement_id: str,
    data: EvidenceRequirementUpdate,
) -> EvidenceRequirement:
    requirement = await get_requirement_or_404(db, requirement_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return requirement
    return await repository.update(db, requirement, **updates)


async def delete_requirement(db: AsyncSession, requirement_id: str) -> None:
    """
    Raises:
        NotFoundError: If the requirement does not exist
        RequirementInUseError: If any evidence is linked to it
    """
    requirement = await get_requirement_or_404(db, requirement_id)
    linked = await repository.count_linked_evidence(db, requirement.id)
    if linked:
        logger.warning(
            f"Refusing to delete evidence requirement {requirement_id}: {linked} linked"
        )
        raise RequirementInUseError(linked)
    await repository.delete(db, requirement)
    logger.info(f"Evidence requirement {requirement_id} deleted")
