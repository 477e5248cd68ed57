"""DepositLens — Report Output Models (Versioned)."""

from datetime import datetime, timezone
from typing import Optional, List
from pydantic import BaseModel
from sqlmodel import SQLModel, Field


# ─────────────────────────────────────────────
# DATABASE MODEL — Stores versioned conversion reports
# ─────────────────────────────────────────────


class ReportResult(SQLModel, table=True):
    """Versioned report output stored in DB."""

    __tablename__ = "report_results"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    schema_version: str = Field(description="e.g. 1.0.0")
    result_json: str = Field(description="Full ConversionReport as JSON")


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS — Dashboard rows
# Column names match what the dashboard workbook reads.
# ─────────────────────────────────────────────


class AgeGroupConversion(BaseModel):
    """Deposit conversion for one age bracket."""

    age_group: str
    total_customers: int
    deposits: int
    conversion_rate: float


class ContactConversion(BaseModel):
    """Deposit conversion for one contact channel."""

    contact: Optional[str] = None
    total_contacts: int
    successful_deposits: int
    success_rate: float


class JobConversion(BaseModel):
    """Deposit conversion for one occupation."""

    job: Optional[str] = None
    total_customers: int
    deposits: int
    conversion_rate: float


class MaritalDeposits(BaseModel):
    """Positive deposits for one marital status (count only, no rate)."""

    marital: Optional[str] = None
    deposit: int


class MonthConversion(BaseModel):
    """Deposit conversion for one contact month."""

    month: Optional[str] = None
    total_campaigns: int
    successful_campaigns: int
    conversion_rate_percent: float


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS — Pipeline output
# ─────────────────────────────────────────────


class NormalizationSummary(BaseModel):
    """Row counts produced by one normalization run."""

    raw_events: int = 0
    customers: int = 0
    campaigns: int = 0
    outcomes: int = 0
    dropped_events: int = 0
    relink_strategy: str = ""


class ConversionReport(BaseModel):
    """The five dashboard result sets."""

    schema_version: str = "1.0.0"
    generated_at: str = ""
    age_label_mode: str = "corrected"
    by_age_group: List[AgeGroupConversion] = []
    by_contact: List[ContactConversion] = []
    by_job: List[JobConversion] = []
    by_marital: List[MaritalDeposits] = []
    by_month: List[MonthConversion] = []


class PipelineRunOutput(BaseModel):
    """Everything a pipeline run produced."""

    summary: NormalizationSummary
    report: ConversionReport
    report_id: Optional[int] = None
