"""DepositLens — Conversion Engine.

Computes the dashboard breakdowns from the normalized tables:
deposit conversion by age group, contact channel, job and month, plus
positive deposits by marital status.

Rate = round(100.0 * deposits / total, 2). Rows are sorted by rate
descending; ties fall back to the segment label ascending (NULL last).
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from sqlalchemy import case, func
from sqlmodel import Session, select

from depositlens.config import settings
from depositlens.models.analysis_models import (
    AgeGroupConversion,
    ContactConversion,
    JobConversion,
    MaritalDeposits,
    MonthConversion,
)
from depositlens.models.normalized_models import CampaignTouch, Customer, Outcome
from depositlens.core.logging import get_logger

logger = get_logger("analyzer.conversion")

POSITIVE_DEPOSIT = "yes"

# (upper bound inclusive, label); anything above the last bound is "60+"
AGE_BRACKETS = [
    (29, "under 30"),
    (39, "30-39"),
    (49, "40-49"),
    (59, "50-59"),
]
OLDEST_BRACKET = "60+"

# The original dashboard query labeled the 40-49 bucket "30-49"
LEGACY_AGE_LABELS = {"40-49": "30-49"}

AGE_LABEL_MODES = ("corrected", "legacy")


class SegmentConversion(NamedTuple):
    """One grouped row before it is shaped into a dashboard model."""

    segment: Any
    total: int
    deposits: int
    rate: float


def conversion_rate(deposits: int, total: int) -> float:
    """Percentage of positive deposits, 2 decimals. Empty groups rate 0.0."""
    if total <= 0:
        return 0.0
    return round(100.0 * deposits / total, 2)


def age_bracket(age: Optional[int], age_label_mode: str = "corrected") -> str:
    """Bucket an age. A NULL age lands in the oldest bucket (the SQL CASE ELSE)."""
    label = OLDEST_BRACKET
    if age is not None:
        for upper, bracket in AGE_BRACKETS:
            if age <= upper:
                label = bracket
                break
    if age_label_mode == "legacy":
        return LEGACY_AGE_LABELS.get(label, label)
    return label


def _sorted_by_rate(rows: Iterable[SegmentConversion]) -> List[SegmentConversion]:
    return sorted(
        rows,
        key=lambda r: (
            -r.rate,
            r.segment is None,
            "" if r.segment is None else str(r.segment),
        ),
    )


def _deposit_counts(
    session: Session, column: Any, dimension: Any, join_on: Any
) -> list:
    """SQL group-by: (value, total, deposits) per distinct value of `column`."""
    deposits = func.sum(case((Outcome.deposit_result == POSITIVE_DEPOSIT, 1), else_=0))
    return session.exec(
        select(column, func.count(), deposits)
        .select_from(Outcome)
        .join(dimension, join_on)
        .group_by(column)
    ).all()


def _breakdown(
    rows: Iterable,
    label: Callable[[Any], Any] = lambda v: v,
) -> List[SegmentConversion]:
    """Fold grouped counts under `label` and compute rates."""
    totals: Dict[Any, int] = defaultdict(int)
    hits: Dict[Any, int] = defaultdict(int)
    for value, total, deposits in rows:
        key = label(value)
        totals[key] += int(total or 0)
        hits[key] += int(deposits or 0)

    return _sorted_by_rate(
        SegmentConversion(
            key, totals[key], hits[key], conversion_rate(hits[key], totals[key])
        )
        for key in totals
    )


def _customer_counts(session: Session, column: Any) -> list:
    return _deposit_counts(
        session, column, Customer, Customer.customer_id == Outcome.customer_id
    )


def _campaign_counts(session: Session, column: Any) -> list:
    return _deposit_counts(
        session, column, CampaignTouch, CampaignTouch.campaign_id == Outcome.campaign_id
    )


# ─────────────────────────────────────────────
# DASHBOARD BREAKDOWNS
# ─────────────────────────────────────────────


def conversion_by_age_group(
    session: Session, age_label_mode: Optional[str] = None
) -> List[AgeGroupConversion]:
    """Which age group is most likely to open a deposit."""
    mode = age_label_mode or settings.age_label_mode
    if mode not in AGE_LABEL_MODES:
        raise ValueError(
            f"Unknown age label mode {mode!r}; expected one of {AGE_LABEL_MODES}"
        )

    rows = _breakdown(
        _customer_counts(session, Customer.age),
        label=lambda age: age_bracket(age, mode),
    )
    logger.info(f"Computed {len(rows)} age-group rows ({mode} labels)")
    return [
        AgeGroupConversion(
            age_group=r.segment,
            total_customers=r.total,
            deposits=r.deposits,
            conversion_rate=r.rate,
        )
        for r in rows
    ]


def conversion_by_contact(session: Session) -> List[ContactConversion]:
    """Which contact channel converts best."""
    rows = _breakdown(_campaign_counts(session, CampaignTouch.contact_channel))
    logger.info(f"Computed {len(rows)} contact-channel rows")
    return [
        ContactConversion(
            contact=r.segment,
            total_contacts=r.total,
            successful_deposits=r.deposits,
            success_rate=r.rate,
        )
        for r in rows
    ]


def conversion_by_job(session: Session) -> List[JobConversion]:
    """Which occupation converts best."""
    rows = _breakdown(_customer_counts(session, Customer.job))
    logger.info(f"Computed {len(rows)} job rows")
    return [
        JobConversion(
            job=r.segment,
            total_customers=r.total,
            deposits=r.deposits,
            conversion_rate=r.rate,
        )
        for r in rows
    ]


def conversion_by_month(session: Session) -> List[MonthConversion]:
    """Which contact month converts best."""
    rows = _breakdown(_campaign_counts(session, CampaignTouch.month))
    logger.info(f"Computed {len(rows)} month rows")
    return [
        MonthConversion(
            month=r.segment,
            total_campaigns=r.total,
            successful_campaigns=r.deposits,
            conversion_rate_percent=r.rate,
        )
        for r in rows
    ]


def deposits_by_marital(session: Session) -> List[MaritalDeposits]:
    """Positive deposits per marital status, most first. Count only, no rate."""
    rows = session.exec(
        select(Customer.marital, func.count())
        .select_from(Outcome)
        .join(Customer, Customer.customer_id == Outcome.customer_id)
        .where(Outcome.deposit_result == POSITIVE_DEPOSIT)
        .group_by(Customer.marital)
    ).all()

    ordered = sorted(rows, key=lambda r: (-r[1], r[0] is None, r[0] or ""))
    logger.info(f"Computed {len(ordered)} marital rows")
    return [MaritalDeposits(marital=m, deposit=int(n)) for m, n in ordered]
