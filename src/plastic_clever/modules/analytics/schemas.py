"""Analytics response schemas."""

from pydantic import BaseModel


class AnalyticsOverview(BaseModel):
    total_schools: int
    total_users: int
    total_evidence: int
    completed_awards: int
    pending_evidence: int
    average_progress: int
    students_impacted: int
    countries_reached: int


class StageCount(BaseModel):
    stage: str
    count: int


class RangeCount(BaseModel):
    range: str
    count: int


class CompletionRate(BaseModel):
    metric: str
    rate: float


class MonthCount(BaseModel):
    month: str
    count: int


class CountryCount(BaseModel):
    country: str
    count: int
    students: int


class SchoolProgressAnalytics(BaseModel):
    stage_distribution: list[StageCount]
    progress_ranges: list[RangeCount]
    completion_rates: list[CompletionRate]
    monthly_registrations: list[MonthCount]
    schools_by_country: list[CountryCount]


class SubmissionTrend(BaseModel):
    month: str
    submissions: int
    approvals: int
    rejections: int


class StageBreakdown(BaseModel):
    stage: str
    total: int
    approved: int
    pending: int
    rejected: int


class TopSubmitter(BaseModel):
    school_name: str
    submissions: int
    approval_rate: float


class EvidenceAnalytics(BaseModel):
    submission_trends: list[SubmissionTrend]
    stage_breakdown: list[StageBreakdown]
    review_turnaround: list[RangeCount]
    top_submitters: list[TopSubmitter]
