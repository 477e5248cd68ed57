"""DepositLens — Raw Data Models (Immutable)."""

from typing import Optional
from sqlmodel import SQLModel, Field


class RawEvent(SQLModel, table=True):
    """One historical marketing contact, exactly as loaded from the source file.

    Never modify this data — it's the source of truth every derived table
    is rebuilt from. `id` is the synthetic event id assigned in file order.
    """

    __tablename__ = "bank_marketing_raw"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Customer attributes
    age: Optional[int] = None
    job: Optional[str] = None
    marital: Optional[str] = None
    education: Optional[str] = None
    has_default: Optional[str] = Field(default=None, description="CSV: default")
    balance: Optional[int] = None
    housing: Optional[str] = None
    loan: Optional[str] = None

    # Campaign attributes
    contact_channel: Optional[str] = Field(default=None, description="CSV: contact")
    day: Optional[int] = None
    month: Optional[str] = None
    call_duration: Optional[int] = Field(default=None, description="CSV: duration")
    campaign_count: Optional[int] = Field(default=None, description="CSV: campaign")
    days_since_prev: Optional[int] = Field(default=None, description="CSV: pdays")
    previous_count: Optional[int] = Field(default=None, description="CSV: previous")
    prev_outcome: Optional[str] = Field(default=None, description="CSV: poutcome")

    # Outcome
    deposit_result: Optional[str] = Field(default=None, description="CSV: deposit")
