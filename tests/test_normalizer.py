import pytest
from sqlmodel import select

from conftest import make_event
from depositlens.core.errors import DerivedTablesNotEmptyError
from depositlens.models.normalized_models import CampaignTouch, Customer, Outcome
from depositlens.analyzer.pipeline import build_derived_tables
from depositlens.normalizer.normalizer import (
    assign_surrogate_keys,
    derived_counts,
    ensure_derived_empty,
    load_events,
    normalize,
    reset_derived_tables,
)


def test_empty_input_yields_empty_outputs():
    derived = normalize([])

    assert derived.customers == []
    assert derived.campaigns == []


def test_keys_are_dense_and_follow_sorted_order():
    keys = assign_surrogate_keys([("b", 2), ("a", 9), ("b", 2), ("a", 1)])

    assert keys == {("a", 1): 1, ("a", 9): 2, ("b", 2): 3}


def test_nulls_sort_after_values():
    keys = assign_surrogate_keys([(None, 1), (5, 1), (3, None), (3, 1)])

    assert list(keys) == [(3, 1), (3, None), (5, 1), (None, 1)]
    assert sorted(keys.values()) == [1, 2, 3, 4]


def test_identical_demographics_collapse_to_one_customer(session, seed):
    seed(
        [
            make_event(day=1),
            make_event(day=2),
            make_event(age=29, day=3),
        ]
    )

    derived = normalize(load_events(session))

    assert len(derived.customers) == 2
    assert len(derived.campaigns) == 3
    assert derived.customer_by_event[1] == derived.customer_by_event[2]
    assert derived.customer_by_event[3] != derived.customer_by_event[1]
    # age 29 sorts first
    assert derived.customer_by_event[3] == 1


def test_rebuild_after_reset_is_identical(session, seed):
    seed([make_event(age=a, month=m) for a, m in [(50, "jun"), (22, "may"), (50, "jun"), (38, "jan")]])
    build_derived_tables(session)
    session.commit()

    def snapshot():
        customers = [(c.customer_id, c.age) for c in session.exec(select(Customer).order_by(Customer.customer_id))]
        campaigns = [(c.campaign_id, c.month) for c in session.exec(select(CampaignTouch).order_by(CampaignTouch.campaign_id))]
        outcomes = [
            (o.outcome_id, o.customer_id, o.campaign_id, o.event_id)
            for o in session.exec(select(Outcome).order_by(Outcome.outcome_id))
        ]
        return customers, campaigns, outcomes

    first = snapshot()
    reset_derived_tables(session)
    session.commit()
    assert derived_counts(session) == {"outcomes": 0, "campaigns": 0, "customers": 0}

    build_derived_tables(session)
    session.commit()

    assert snapshot() == first


def test_rebuild_without_reset_fails(session, seed):
    seed([make_event()])
    build_derived_tables(session)
    session.commit()

    with pytest.raises(DerivedTablesNotEmptyError) as excinfo:
        ensure_derived_empty(session)

    assert excinfo.value.counts == {"outcomes": 1, "campaigns": 1, "customers": 1}
    assert "reset" in str(excinfo.value)
