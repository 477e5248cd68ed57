"""DepositLens — Normalizer (dedup + surrogate keys).

Splits `bank_marketing_raw` into distinct customer profiles and distinct
campaign touches. Distinct tuples are sorted ascending on every attribute
(NULLs last) before numbering, so keys are dense (1..N) and a rebuild from
the same raw data reproduces them exactly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import delete, func
from sqlmodel import Session, select

from depositlens.core.errors import DerivedTablesNotEmptyError
from depositlens.core.field_registry import CAMPAIGN_FIELDS, CUSTOMER_FIELDS
from depositlens.core.logging import get_logger
from depositlens.models.normalized_models import CampaignTouch, Customer, Outcome
from depositlens.models.raw_models import RawEvent

logger = get_logger("normalizer")

AttributeTuple = Tuple[Any, ...]

# Children first so foreign keys never dangle mid-reset
DERIVED_MODELS = (Outcome, CampaignTouch, Customer)


@dataclass
class DerivedTables:
    """Normalizer output: both dimensions plus each event's assigned keys."""

    customers: List[Customer] = field(default_factory=list)
    campaigns: List[CampaignTouch] = field(default_factory=list)
    customer_by_event: Dict[int, int] = field(default_factory=dict)
    campaign_by_event: Dict[int, int] = field(default_factory=dict)


def attribute_tuple(row: Any, fields: Sequence[str]) -> AttributeTuple:
    """Project a row onto the given attribute names."""
    return tuple(getattr(row, f) for f in fields)


def _sort_key(values: AttributeTuple) -> tuple:
    # (is_null, value) per column puts NULLs after every real value
    return tuple((v is None, v) for v in values)


def assign_surrogate_keys(
    tuples: Sequence[AttributeTuple],
) -> Dict[AttributeTuple, int]:
    """Collapse duplicates and number the distinct tuples 1..N in sorted order."""
    distinct = sorted(set(tuples), key=_sort_key)
    return {t: key for key, t in enumerate(distinct, start=1)}


def normalize(events: Sequence[RawEvent]) -> DerivedTables:
    """Derive Customer and CampaignTouch rows from raw events.

    An empty input yields empty outputs.
    """
    customer_tuples = {e.id: attribute_tuple(e, CUSTOMER_FIELDS) for e in events}
    campaign_tuples = {e.id: attribute_tuple(e, CAMPAIGN_FIELDS) for e in events}

    customer_keys = assign_surrogate_keys(list(customer_tuples.values()))
    campaign_keys = assign_surrogate_keys(list(campaign_tuples.values()))

    derived = DerivedTables(
        customers=[
            Customer(customer_id=key, **dict(zip(CUSTOMER_FIELDS, t)))
            for t, key in customer_keys.items()
        ],
        campaigns=[
            CampaignTouch(campaign_id=key, **dict(zip(CAMPAIGN_FIELDS, t)))
            for t, key in campaign_keys.items()
        ],
        customer_by_event={
            eid: customer_keys[t] for eid, t in customer_tuples.items()
        },
        campaign_by_event={
            eid: campaign_keys[t] for eid, t in campaign_tuples.items()
        },
    )

    logger.info(
        f"Normalized {len(events)} raw events into {len(derived.customers)} customers "
        f"and {len(derived.campaigns)} campaigns",
        extra={"row_count": len(events)},
    )
    return derived


# ─────────────────────────────────────────────
# DERIVED TABLE STATE
# ─────────────────────────────────────────────


def derived_counts(session: Session) -> Dict[str, int]:
    """Row count of each derived table."""
    return {
        model.__tablename__: session.exec(select(func.count()).select_from(model)).one()
        for model in DERIVED_MODELS
    }


def ensure_derived_empty(session: Session) -> None:
    """Refuse to rebuild on top of existing derived rows."""
    counts = derived_counts(session)
    if any(counts.values()):
        raise DerivedTablesNotEmptyError(counts)


def reset_derived_tables(session: Session) -> Dict[str, int]:
    """Clear outcomes, campaigns and customers. Raw events are untouched."""
    counts = derived_counts(session)
    conn = session.connection()
    for model in DERIVED_MODELS:
        conn.execute(delete(model.__table__))
    # Deleted rows must not linger in the identity map under reusable keys
    session.expunge_all()
    logger.info(
        f"Reset derived tables: {counts}",
        extra={"row_count": sum(counts.values())},
    )
    return counts


def load_events(session: Session) -> List[RawEvent]:
    """All raw events in event-id order."""
    return list(session.exec(select(RawEvent).order_by(RawEvent.id)).all())
