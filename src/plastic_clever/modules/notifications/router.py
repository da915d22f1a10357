"""
Bulk Email Admin Router

Endpoints:
- POST /admin/bulk-email/preview - Render a campaign without sending it
- POST /admin/bulk-email/test - Send a campaign to one address
- POST /admin/send-bulk-email - Send a campaign to the selected recipients
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin
from plastic_clever.core.database import get_db
from plastic_clever.core.rate_limit import (
    RATE_LIMIT_BULK_EMAIL,
    RATE_LIMIT_TEST_EMAIL,
    enforce_rate_limit,
)
from plastic_clever.modules.notifications import service
from plastic_clever.modules.notifications.schemas import (
    BulkEmailRequest,
    BulkEmailResult,
    EmailContentRequest,
    EmailPreview,
    EmailTestRequest,
    EmailTestResult,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bulk-email/preview", response_model=EmailPreview)
async def preview_bulk_email(
    data: EmailContentRequest,
    admin: CurrentUser = Depends(require_admin),
) -> EmailPreview:
    return service.preview_email(data)


@router.post("/bulk-email/test", response_model=EmailTestResult)
async def send_test_email(
    data: EmailTestRequest,
    admin: CurrentUser = Depends(require_admin),
) -> EmailTestResult:
    await enforce_rate_limit(f"test_email:{admin.id}", *RATE_LIMIT_TEST_EMAIL)
    return await service.send_test_email(data)


@router.post("/send-bulk-email", response_model=BulkEmailResult)
async def send_bulk_email(
    data: BulkEmailRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> BulkEmailResult:
    """
    Send a campaign, translated per recipient language.

    Raises:
        HTTPException 400: No recipients matched
        HTTPException 429: Too many campaign sends
    """
    await enforce_rate_limit(f"bulk_email:{admin.id}", *RATE_LIMIT_BULK_EMAIL)
    return await service.send_bulk(db, admin, data, request)
