"""
Schools Router

Public and teacher-facing school endpoints.

Public (cached):
- GET /stats - Platform statistics
- GET /countries - Country list for registration forms
- GET /schools/map - Schools shown on the world map
- GET /landing/global-movement - Landing page counters

Public:
- GET /schools - Search schools (join-school flow)

Authenticated:
- POST /schools/register - Register a school
- GET /dashboard - Caller's school dashboard
- GET /schools/{id} - School details (members and admins)
- GET /schools/{id}/team - School team
- PUT /schools/{id}/teachers/{user_id}/role - Change a teacher's school role
- DELETE /schools/{id}/teachers/{user_id} - Remove a teacher
- POST /schools/{id}/start-round - Start the next programme round
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_current_user
from plastic_clever.core.database import get_db
from plastic_clever.core.rate_limit import RATE_LIMIT_REGISTER, client_ip, enforce_rate_limit
from plastic_clever.modules.schools import service
from plastic_clever.modules.schools.models import SchoolType
from plastic_clever.modules.schools.schemas import (
    DashboardResponse,
    SchoolListResponse,
    SchoolRegisterRequest,
    SchoolResponse,
    StartRoundResponse,
    TeamMember,
    UpdateTeacherRoleRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats", summary="Platform statistics")
async def get_stats(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await service.get_platform_stats(db)


@router.get("/countries", summary="Country list")
async def get_countries() -> list[str]:
    return await service.get_countries()


@router.get("/landing/global-movement", summary="Landing page counters")
async def get_global_movement(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await service.get_global_movement(db)


@router.get("/schools/map", summary="Schools for the world map")
async def get_map_schools(
    country: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    return await service.get_map_schools(db, country=country)


@router.get("/schools", response_model=SchoolListResponse, summary="Search schools")
async def list_schools(
    country: str | None = Query(None, max_length=100),
    school_type: SchoolType | None = Query(None, alias="type"),
    search: str | None = Query(None, min_length=1, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    result = await service.list_schools(
        db,
        country=country,
        school_type=school_type,
        search=search,
        skip=skip,
        limit=limit,
    )
    return SchoolListResponse(
        schools=[SchoolResponse.model_validate(school) for school in result["schools"]],
        total=result["total"],
        skip=skip,
        limit=limit,
    )


@router.post(
    "/schools/register",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a school",
)
async def register_school(
    data: SchoolRegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SchoolResponse:
    """
    Register a new school. The caller becomes its verified head teacher and
    the school starts round 1 at the Inspire stage.
    """
    await enforce_rate_limit(f"school_register:{client_ip(request)}", *RATE_LIMIT_REGISTER)
    school = await service.register_school(db, user, data, request)
    logger.info(f"User {user.id} registered school {school.id}")
    return SchoolResponse.model_validate(school)


@router.get("/dashboard", response_model=DashboardResponse, summary="School dashboard")
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DashboardResponse:
    return await service.get_dashboard(db, user)


@router.get("/schools/{school_id}", response_model=SchoolResponse, summary="Get school")
async def get_school(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SchoolResponse:
    return SchoolResponse.model_validate(await service.get_school(db, user, school_id))


@router.get("/schools/{school_id}/team", response_model=list[TeamMember], summary="School team")
async def get_team(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[TeamMember]:
    return await service.get_team(db, user, school_id)


@router.put("/schools/{school_id}/teachers/{teacher_id}/role", summary="Change teacher role")
async def update_teacher_role(
    school_id: str,
    teacher_id: str,
    data: UpdateTeacherRoleRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, str]:
    membership = await service.update_teacher_role(db, user, school_id, teacher_id, data.role)
    return {"message": "Teacher role updated", "role": membership.role.value}


@router.delete("/schools/{school_id}/teachers/{teacher_id}", summary="Remove teacher")
async def remove_teacher(
    school_id: str,
    teacher_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> dict[str, str]:
    await service.remove_teacher(db, user, school_id, teacher_id)
    return {"message": "Teacher removed from school"}


@router.post(
    "/schools/{school_id}/start-round",
    response_model=StartRoundResponse,
    summary="Start a new round",
)
async def start_round(
    school_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StartRoundResponse:
    """
    Start the next programme round. Only allowed once the school's award for
    the current round is complete; stage flags reset and the school returns
    to Inspire.
    """
    school = await service.start_round(db, user, school_id, request)
    return StartRoundResponse(
        message=f"Round {school.current_round} started",
        school=SchoolResponse.model_validate(school),
    )
