# This project was developed with assistance from AI tools.
"""Dashboard statistics schemas."""

from db.enums import CaseStatus
from pydantic import BaseModel


class MonthlyTrendPoint(BaseModel):
    month: str
    created: int
    completed: int


class StatisticsOverview(BaseModel):
    total_cases: int
    active_cases: int
    completed_cases: int
    pending_review: int
    status_distribution: dict[str, int]
    visa_type_distribution: dict[str, int]
    monthly_trend: list[MonthlyTrendPoint]


class TrendDataset(BaseModel):
    label: str
    data: list[int]


class CaseTrend(BaseModel):
    labels: list[str]
    datasets: list[TrendDataset]


class StatusBucket(BaseModel):
    status: CaseStatus
    label: str
    count: int
    percentage: float


class VisaTypeBucket(BaseModel):
    visa_type: str
    count: int
    percentage: float
