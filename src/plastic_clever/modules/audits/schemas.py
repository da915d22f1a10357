"""Audit and reduction promise schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from plastic_clever.modules.audits.models import AuditStatus, PromiseStatus, TimeframeUnit


class AuditSaveRequest(BaseModel):
    """Draft audit answers. Omitted sections keep their saved value."""

    school_id: str
    part1_data: dict[str, Any] | None = None
    part2_data: dict[str, Any] | None = None
    part3_data: dict[str, Any] | None = None
    part4_data: dict[str, Any] | None = None


class AuditResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    submitted_by: str | None
    status: AuditStatus
    round_number: int
    part1_data: dict[str, Any] | None
    part2_data: dict[str, Any] | None
    part3_data: dict[str, Any] | None
    part4_data: dict[str, Any] | None
    results_data: dict[str, Any] | None
    total_plastic_items: int
    submitted_at: datetime | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    created_at: datetime
    updated_at: datetime


class AuditReviewRequest(BaseModel):
    approved: bool
    review_notes: str | None = Field(None, max_length=2000)


class PromiseCreate(BaseModel):
    school_id: str
    audit_id: str | None = None
    plastic_item_type: str = Field(..., min_length=1, max_length=100)
    plastic_item_label: str = Field(..., min_length=1, max_length=200)
    baseline_quantity: int = Field(..., gt=0)
    target_quantity: int = Field(..., ge=0)
    timeframe_unit: TimeframeUnit = TimeframeUnit.MONTH
    notes: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_target_below_baseline(self) -> "PromiseCreate":
        if self.target_quantity >= self.baseline_quantity:
            raise ValueError("Target quantity must be less than baseline quantity")
        return self


class PromiseUpdate(BaseModel):
    plastic_item_label: str | None = Field(None, min_length=1, max_length=200)
    baseline_quantity: int | None = Field(None, gt=0)
    target_quantity: int | None = Field(None, ge=0)
    timeframe_unit: TimeframeUnit | None = None
    notes: str | None = Field(None, max_length=2000)
    status: PromiseStatus | None = None


class PromiseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    audit_id: str | None
    round_number: int
    plastic_item_type: str
    plastic_item_label: str
    baseline_quantity: int
    target_quantity: int
    reduction_amount: int
    timeframe_unit: TimeframeUnit
    notes: str | None
    status: PromiseStatus
    created_by: str | None
    created_at: datetime


class ItemTypeMetric(BaseModel):
    plastic_item_type: str
    count: int
    total_reduction: int


class PromiseMetrics(BaseModel):
    total_promises: int
    total_reduction_amount: int
    item_type_breakdown: list[ItemTypeMetric]
