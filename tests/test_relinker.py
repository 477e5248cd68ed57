import logging

import pytest

from conftest import make_event
from depositlens.normalizer.normalizer import load_events, normalize
from depositlens.normalizer.relinker import relink


@pytest.fixture
def events(session, seed):
    seed(
        [
            make_event(age=25, deposit_result="no"),
            make_event(age=25, deposit_result="yes", day=9),
            make_event(age=60, month="oct"),
        ]
    )
    return load_events(session)


@pytest.mark.parametrize("strategy", ["event_id", "rejoin"])
def test_every_event_yields_one_outcome_without_nulls(events, strategy):
    derived = normalize(events)

    outcomes, dropped = relink(events, derived, strategy)

    assert dropped == 0
    assert len(outcomes) == len(events)
    assert [o.outcome_id for o in outcomes] == [1, 2, 3]
    assert [o.event_id for o in outcomes] == [e.id for e in events]


@pytest.mark.parametrize("strategy", ["event_id", "rejoin"])
def test_references_resolve_to_matching_rows(events, strategy):
    derived = normalize(events)
    customers = {c.customer_id: c for c in derived.customers}
    campaigns = {c.campaign_id: c for c in derived.campaigns}

    outcomes, _ = relink(events, derived, strategy)

    by_id = {e.id: e for e in events}
    for outcome in outcomes:
        event = by_id[outcome.event_id]
        assert customers[outcome.customer_id].age == event.age
        assert campaigns[outcome.campaign_id].day == event.day
        assert outcome.deposit_result == event.deposit_result


def test_rejoin_drops_events_with_null_join_columns(session, seed, caplog):
    seed([make_event(), make_event(education=None), make_event(prev_outcome=None)])
    events = load_events(session)
    derived = normalize(events)

    with caplog.at_level(logging.WARNING, logger="depositlens.normalizer.relinker"):
        outcomes, dropped = relink(events, derived, "rejoin")

    assert dropped == 2
    assert [o.event_id for o in outcomes] == [1]
    assert "dropped 2 of 3" in caplog.text


def test_event_id_keeps_events_with_nulls(session, seed):
    seed([make_event(), make_event(education=None), make_event(prev_outcome=None)])
    events = load_events(session)

    outcomes, dropped = relink(events, normalize(events), "event_id")

    assert dropped == 0
    assert len(outcomes) == 3


def test_unknown_strategy_is_rejected(events):
    with pytest.raises(ValueError, match="Unknown relink strategy"):
        relink(events, normalize(events), "fuzzy")
