"""
Users Admin Router

Endpoints:
- GET /admin/users - List users (role, search, pagination)
- PATCH /admin/users/{id} - Update a user; role changes are admin only
- DELETE /admin/users/{id} - Delete a user (admin only, never yourself)
- GET /admin/teachers/emails - All teacher email addresses
- GET /admin/stats - Review queue and platform counters
- GET /admin/activity-logs - User activity log
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin, require_admin_or_partner
from plastic_clever.core.database import get_db
from plastic_clever.modules.users import service
from plastic_clever.modules.users.models import UserRole
from plastic_clever.modules.users.schemas import (
    ActivityLogEntry,
    ActivityLogList,
    AdminStats,
    AdminUserResponse,
    TeacherEmails,
    UserListResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    role: UserRole | None = Query(None),
    search: str | None = Query(None, min_length=1, max_length=100),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_admin_or_partner),
) -> UserListResponse:
    result = await service.list_users(db, role=role, search=search, skip=skip, limit=limit)
    return UserListResponse(
        users=[AdminUserResponse.model_validate(user) for user in result["users"]],
        total=result["total"],
        skip=skip,
        limit=limit,
    )


@router.patch("/users/{user_id}", response_model=AdminUserResponse, summary="Update user")
async def update_user(
    user_id: str,
    data: UserUpdateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_admin_or_partner),
) -> AdminUserResponse:
    user = await service.update_user(db, actor, user_id, data, request)
    return AdminUserResponse.model_validate(user)


@router.delete("/users/{user_id}", summary="Delete user")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> dict[str, str]:
    await service.delete_user(db, admin, user_id)
    return {"message": "User deleted successfully"}


@router.get("/teachers/emails", response_model=TeacherEmails, summary="Teacher emails")
async def get_teacher_emails(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> TeacherEmails:
    emails = await service.get_teacher_emails(db)
    return TeacherEmails(emails=emails, count=len(emails))


@router.get("/stats", response_model=AdminStats, summary="Admin dashboard counters")
async def get_admin_stats(
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_admin_or_partner),
) -> AdminStats:
    return await service.get_admin_stats(db)


@router.get("/activity-logs", response_model=ActivityLogList, summary="Activity log")
async def list_activity_logs(
    user_id: str | None = Query(None),
    action_type: str | None = Query(None, max_length=50),
    days: int | None = Query(None, ge=1, le=365),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> ActivityLogList:
    result = await service.list_activity_logs(
        db,
        user_id=user_id,
        action_type=action_type,
        days=days,
        skip=skip,
        limit=limit,
    )
    return ActivityLogList(
        logs=[ActivityLogEntry.model_validate(entry) for entry in result["logs"]],
        total=result["total"],
        skip=skip,
        limit=limit,
    )
