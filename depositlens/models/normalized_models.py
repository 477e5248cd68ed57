"""DepositLens — Normalized Models (customers, campaigns, outcomes).

Derived once from `bank_marketing_raw`. Surrogate keys are assigned by the
normalizer, never by the database, so a rebuild from the same raw data
reproduces the same ids.
"""

from typing import Optional
from sqlmodel import SQLModel, Field


class Customer(SQLModel, table=True):
    """Deduplicated demographic profile.

    Two contacts sharing all eight attributes collapse into one customer,
    even if they were different people.
    """

    __tablename__ = "customers"

    customer_id: int = Field(
        primary_key=True, sa_column_kwargs={"autoincrement": False}
    )
    age: Optional[int] = None
    job: Optional[str] = None
    marital: Optional[str] = None
    education: Optional[str] = None
    has_default: Optional[str] = None
    balance: Optional[int] = None
    housing: Optional[str] = None
    loan: Optional[str] = None


class CampaignTouch(SQLModel, table=True):
    """Deduplicated interaction profile (one row per distinct contact setup)."""

    __tablename__ = "campaigns"

    campaign_id: int = Field(
        primary_key=True, sa_column_kwargs={"autoincrement": False}
    )
    contact_channel: Optional[str] = None
    day: Optional[int] = None
    month: Optional[str] = None
    call_duration: Optional[int] = None
    campaign_count: Optional[int] = None
    days_since_prev: Optional[int] = None
    previous_count: Optional[int] = None
    prev_outcome: Optional[str] = None


class Outcome(SQLModel, table=True):
    """Fact row: which customer, which campaign touch, and the deposit result."""

    __tablename__ = "outcomes"

    outcome_id: int = Field(
        primary_key=True, sa_column_kwargs={"autoincrement": False}
    )
    deposit_result: Optional[str] = Field(default=None, index=True)
    customer_id: int = Field(foreign_key="customers.customer_id", index=True)
    campaign_id: int = Field(foreign_key="campaigns.campaign_id", index=True)
    event_id: int = Field(foreign_key="bank_marketing_raw.id", unique=True)
