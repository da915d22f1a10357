"""
Evidence Router

Endpoints:
- POST /evidence - Submit evidence for a stage
- GET /evidence - List a school's evidence
- GET /evidence/{id} - Get evidence (approved evidence is public)
- DELETE /evidence/{id} - Delete pending evidence
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_current_user, get_optional_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.evidence import service
from plastic_clever.modules.evidence.models import EvidenceStatus, EvidenceVisibility
from plastic_clever.modules.evidence.schemas import EvidenceCreate, EvidenceResponse
from plastic_clever.modules.schools.models import ProgramStage

router = APIRouter()


@router.post(
    "",
    response_model=EvidenceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit evidence",
)
async def submit_evidence(
    data: EvidenceCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> EvidenceResponse:
    """
    Submit evidence for a programme stage.

    Teachers can only submit to unlocked stages of their own school. Admin
    and partner uploads skip the stage lock; admin uploads are approved
    immediately.
    """
    evidence = await service.submit_evidence(db, user, data, request)
    return EvidenceResponse.model_validate(evidence)


@router.get("", response_model=list[EvidenceResponse], summary="List evidence")
async def list_evidence(
    school_id: str | None = Query(None),
    evidence_status: EvidenceStatus | None = Query(None, alias="status"),
    visibility: EvidenceVisibility | None = Query(None),
    stage: ProgramStage | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[EvidenceResponse]:
    items = await service.list_evidence(
        db,
        user,
        school_id=school_id,
        status=evidence_status,
        visibility=visibility,
        stage=stage.value if stage else None,
    )
    return [EvidenceResponse.model_validate(evidence) for evidence in items]


@router.get("/{evidence_id}", response_model=EvidenceResponse, summary="Get evidence")
async def get_evidence(
    evidence_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> EvidenceResponse:
    return EvidenceResponse.model_validate(await service.get_evidence(db, user, evidence_id))


@router.delete("/{evidence_id}", summary="Delete pending evidence")
async def delete_evidence(
    evidence_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, str]:
    await service.delete_evidence(db, user, evidence_id, request)
    return {"message": "Evidence deleted successfully"}
