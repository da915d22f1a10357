"""
Evidence Requirements Router

Endpoints:
- GET /evidence-requirements - Checklist, optionally for one stage (public)
- GET /evidence-requirements/{id} - One requirement (public)
- POST /evidence-requirements - Create (admin)
- PATCH /evidence-requirements/{id} - Update (admin)
- DELETE /evidence-requirements/{id} - Delete unless evidence is linked (admin)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin
from plastic_clever.core.database import get_db
from plastic_clever.modules.evidence_requirements import service
from plastic_clever.modules.evidence_requirements.schemas import (
    EvidenceRequirementCreate,
    EvidenceRequirementResponse,
    EvidenceRequirementUpdate,
)
from plastic_clever.modules.schools.models import ProgramStage

router = APIRouter()


@router.get(
    "",
    response_model=list[EvidenceRequirementResponse],
    summary="List evidence requirements",
)
async def list_requirements(
    stage: ProgramStage | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[EvidenceRequirementResponse]:
    requirements = await service.list_requirements(db, stage=stage.value if stage else None)
    return [EvidenceRequirementResponse.model_validate(r) for r in requirements]


@router.get(
    "/{requirement_id}",
    response_model=EvidenceRequirementResponse,
    summary="Get evidence requirement",
)
async def get_requirement(
    requirement_id: str,
    db: AsyncSession = Depends(get_db),
) -> EvidenceRequirementResponse:
    requirement = await service.get_requirement_or_404(db, requirement_id)
    return EvidenceRequirementResponse.model_validate(requirement)


@router.post(
    "",
    response_model=EvidenceRequirementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create evidence requirement",
)
async def create_requirement(
    data: EvidenceRequirementCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> EvidenceRequirementResponse:
    requirement = await service.create_requirement(db, data)
    return EvidenceRequirementResponse.model_validate(requirement)


@router.patch(
    "/{requirement_id}",
    response_model=EvidenceRequirementResponse,
    summary="Update evidence requirement",
)
async def update_requirement(
    requirement_id: str,
    data: EvidenceRequirementUpdate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> EvidenceRequirementResponse:
    requirement = await service.update_requirement(db, requirement_id, data)
    return EvidenceRequirementResponse.model_validate(requirement)


@router.delete("/{requirement_id}", summary="Delete evidence requirement")
async def delete_requirement(
    requirement_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> dict[str, str]:
    await service.delete_requirement(db, requirement_id)
    return {"message": "Evidence requirement deleted successfully"}
