"""Tests for the in-memory audit trail."""

from datetime import timedelta
from uuid import uuid4

import pytest

from emma.audit import DEFAULT_CAPACITY, AuditTrail
from emma.relevance.models import utc_now
from tests.factories import ResultFactory


def result_for(contact_id, action_type="congrats_email", checked_at=None, action_id="a"):
    return ResultFactory.create(
        action_id=action_id,
        checked_at=checked_at,
        context_data={"contactId": str(contact_id), "actionType": action_type},
    )


class TestAuditTrail:
    def test_default_capacity(self) -> None:
        assert AuditTrail().capacity == DEFAULT_CAPACITY == 10_000

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            AuditTrail(capacity=0)

    @pytest.mark.slow
    def test_evicts_oldest(self) -> None:
        trail = AuditTrail()
        contact = uuid4()
        for i in range(10_050):
            trail.record(result_for(contact, action_id=str(i)))

        entries = trail.snapshot()

        assert len(trail) == 10_000
        assert entries[0].action_id == "50"
        assert entries[-1].action_id == "10049"

    def test_query_newest_first(self) -> None:
        trail = AuditTrail(capacity=10)
        contact = uuid4()
        base = utc_now()
        for i in range(3):
            trail.record(result_for(contact, checked_at=base + timedelta(minutes=i), action_id=str(i)))

        assert [r.action_id for r in trail.query()] == ["2", "1", "0"]

    def test_query_orders_by_checked_at(self) -> None:
        trail = AuditTrail(capacity=10)
        contact = uuid4()
        base = utc_now()
        trail.record(result_for(contact, checked_at=base + timedelta(minutes=5), action_id="late"))
        trail.record(result_for(contact, checked_at=base, action_id="early"))

        assert [r.action_id for r in trail.query()] == ["late", "early"]

    def test_filters_combine(self) -> None:
        trail = AuditTrail(capacity=10)
        alice, bob = uuid4(), uuid4()
        base = utc_now()
        trail.record(result_for(alice, "congrats_email", base - timedelta(days=2), "old"))
        trail.record(result_for(alice, "congrats_email", base, "match"))
        trail.record(result_for(alice, "market_update", base, "other-type"))
        trail.record(result_for(bob, "congrats_email", base, "other-contact"))

        results = trail.query(
            contact_id=alice,
            start_date=base - timedelta(days=1),
            end_date=base,
            action_type="Congrats_Email",
        )

        assert [r.action_id for r in results] == ["match"]

    def test_contact_filter_accepts_string(self) -> None:
        trail = AuditTrail(capacity=10)
        contact = uuid4()
        trail.record(result_for(contact))

        assert len(trail.query(contact_id=str(contact))) == 1
        assert trail.query(contact_id=uuid4()) == []

    def test_date_bounds_are_inclusive(self) -> None:
        trail = AuditTrail(capacity=10)
        moment = utc_now()
        trail.record(result_for(uuid4(), checked_at=moment))

        assert len(trail.query(start_date=moment, end_date=moment)) == 1

    def test_naive_date_bounds_treated_as_utc(self) -> None:
        trail = AuditTrail(capacity=10)
        moment = utc_now()
        trail.record(result_for(uuid4(), checked_at=moment))
        naive = moment.replace(tzinfo=None)

        assert len(trail.query(start_date=naive - timedelta(minutes=1), end_date=naive)) == 1
        assert trail.query(start_date=naive + timedelta(minutes=1)) == []

    def test_query_returns_copy(self) -> None:
        trail = AuditTrail(capacity=10)
        trail.record(result_for(uuid4()))

        trail.query().clear()

        assert len(trail) == 1

    def test_clear(self) -> None:
        trail = AuditTrail(capacity=10)
        trail.record(result_for(uuid4()))

        trail.clear()

        assert len(trail) == 0
        assert trail.query() == []
