"""
Audits Router

Endpoints:
- POST /audits - Create or update the school's draft audit
- GET /audits/school/{school_id} - A school's audits
- GET /audits/{id} - Get an audit
- POST /audits/{id}/submit - Submit a draft audit for review
- GET /reduction-promises/school/{school_id} - A school's promises
- GET /reduction-promises/audit/{audit_id} - Promises made from an audit
- POST /reduction-promises - Make a promise
- PATCH /reduction-promises/{id} - Update a promise
- DELETE /reduction-promises/{id} - Delete a promise
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_current_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.audits import service
from plastic_clever.modules.audits.schemas import (
    AuditResponseSchema,
    AuditSaveRequest,
    PromiseCreate,
    PromiseResponse,
    PromiseUpdate,
)

audits_router = APIRouter()
promises_router = APIRouter()


@audits_router.post("", response_model=AuditResponseSchema, summary="Save draft audit")
async def save_audit(
    data: AuditSaveRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditResponseSchema:
    return AuditResponseSchema.model_validate(await service.save_draft(db, user, data))


@audits_router.get(
    "/school/{school_id}",
    response_model=list[AuditResponseSchema],
    summary="School audits",
)
async def get_school_audits(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[AuditResponseSchema]:
    audits = await service.get_school_audits(db, user, school_id)
    return [AuditResponseSchema.model_validate(audit) for audit in audits]


@audits_router.get("/{audit_id}", response_model=AuditResponseSchema, summary="Get audit")
async def get_audit(
    audit_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditResponseSchema:
    return AuditResponseSchema.model_validate(await service.get_audit(db, user, audit_id))


@audits_router.post(
    "/{audit_id}/submit",
    response_model=AuditResponseSchema,
    summary="Submit audit",
)
async def submit_audit(
    audit_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditResponseSchema:
    audit = await service.submit_audit(db, user, audit_id, request)
    return AuditResponseSchema.model_validate(audit)


@promises_router.get(
    "/school/{school_id}",
    response_model=list[PromiseResponse],
    summary="School reduction promises",
)
async def get_school_promises(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PromiseResponse]:
    promises = await service.get_school_promises(db, user, school_id)
    return [PromiseResponse.model_validate(promise) for promise in promises]


@promises_router.get(
    "/audit/{audit_id}",
    response_model=list[PromiseResponse],
    summary="Audit reduction promises",
)
async def get_audit_promises(
    audit_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PromiseResponse]:
    promises = await service.get_audit_promises(db, user, audit_id)
    return [PromiseResponse.model_validate(promise) for promise in promises]


@promises_router.post(
    "",
    response_model=PromiseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Make a reduction promise",
)
async def create_promise(
    data: PromiseCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PromiseResponse:
    """
    Promise to cut one plastic item from a baseline to a target. The first
    promise after an approved audit completes the Investigate stage.
    """
    promise = await service.create_promise(db, user, data, request)
    return PromiseResponse.model_validate(promise)


@promises_router.patch("/{promise_id}", response_model=PromiseResponse, summary="Update promise")
async def update_promise(
    promise_id: str,
    data: PromiseUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PromiseResponse:
    promise = await service.update_promise(db, user, promise_id, data)
    return PromiseResponse.model_validate(promise)


@promises_router.delete("/{promise_id}", summary="Delete promise")
async def delete_promise(
    promise_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, str]:
    await service.delete_promise(db, user, promise_id)
    return {"message": "Reduction promise deleted"}
