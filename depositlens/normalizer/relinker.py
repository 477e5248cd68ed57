"""DepositLens — Relinker (builds the outcomes fact table).

Two strategies:

- ``event_id``: each raw event's customer and campaign keys were recorded
  by the normalizer, so the outcome carries them directly. Nothing is lost,
  NULL attributes included.
- ``rejoin``: matches every raw event back to a customer and a campaign on
  all eight attributes with SQL equality semantics. A NULL in any join
  column never matches, so that event is dropped; the drop count is logged.
"""

from typing import Dict, List, Sequence, Tuple

from depositlens.core.field_registry import CAMPAIGN_FIELDS, CUSTOMER_FIELDS
from depositlens.core.logging import get_logger
from depositlens.models.normalized_models import Outcome
from depositlens.models.raw_models import RawEvent
from depositlens.normalizer.normalizer import (
    AttributeTuple,
    DerivedTables,
    attribute_tuple,
)

logger = get_logger("normalizer.relinker")

RELINK_STRATEGIES = ("event_id", "rejoin")


def _equality_index(
    rows: Sequence, key_attr: str, fields: Sequence[str]
) -> Dict[AttributeTuple, int]:
    """Index rows by attribute tuple, leaving out tuples SQL equality can't match."""
    index: Dict[AttributeTuple, int] = {}
    for row in rows:
        values = attribute_tuple(row, fields)
        if any(v is None for v in values):
            continue
        index[values] = getattr(row, key_attr)
    return index


def _links_by_event_id(
    events: Sequence[RawEvent], derived: DerivedTables
) -> List[Tuple[RawEvent, int | None, int | None]]:
    return [
        (e, derived.customer_by_event.get(e.id), derived.campaign_by_event.get(e.id))
        for e in events
    ]


def _links_by_rejoin(
    events: Sequence[RawEvent], derived: DerivedTables
) -> List[Tuple[RawEvent, int | None, int | None]]:
    customer_index = _equality_index(derived.customers, "customer_id", CUSTOMER_FIELDS)
    campaign_index = _equality_index(derived.campaigns, "campaign_id", CAMPAIGN_FIELDS)
    return [
        (
            e,
            customer_index.get(attribute_tuple(e, CUSTOMER_FIELDS)),
            campaign_index.get(attribute_tuple(e, CAMPAIGN_FIELDS)),
        )
        for e in events
    ]


def relink(
    events: Sequence[RawEvent],
    derived: DerivedTables,
    strategy: str = "event_id",
) -> Tuple[List[Outcome], int]:
    """Emit one Outcome per raw event that resolves both references.

    Returns the outcomes (ids 1..M in event order) and the number of events
    dropped because a reference could not be resolved.
    """
    if strategy == "event_id":
        links = _links_by_event_id(events, derived)
    elif strategy == "rejoin":
        links = _links_by_rejoin(events, derived)
    else:
        raise ValueError(
            f"Unknown relink strategy {strategy!r}; expected one of {RELINK_STRATEGIES}"
        )

    outcomes: List[Outcome] = []
    dropped = 0
    for event, customer_id, campaign_id in sorted(links, key=lambda x: x[0].id):
        if customer_id is None or campaign_id is None:
            dropped += 1
            continue
        outcomes.append(
            Outcome(
                outcome_id=len(outcomes) + 1,
                deposit_result=event.deposit_result,
                customer_id=customer_id,
                campaign_id=campaign_id,
                event_id=event.id,
            )
        )

    if dropped:
        logger.warning(
            f"Relink ({strategy}) dropped {dropped} of {len(events)} raw events "
            "with unresolved customer or campaign references",
            extra={"dropped_rows": dropped, "table": Outcome.__tablename__},
        )
    logger.info(
        f"Built {len(outcomes)} outcomes via {strategy}",
        extra={"row_count": len(outcomes), "table": Outcome.__tablename__},
    )
    return outcomes, dropped
