"""Integration tests for daily record persistence"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from minibus_ledger.domain.models import StandardInput
from minibus_ledger.domain.settlement import settle
from minibus_ledger.infrastructure.database.repositories import DailyRecordRepository


def test_stored_residual_reconciles_rounded_shares(db, fleet, rates):
    """Half-cent shares round up on both sides; the stored residual carries the cent"""
    even_split = replace(rates, operator_share_percent=Decimal("50"), driver_share_percent=Decimal("50"))
    entry = StandardInput(date=date(2024, 11, 18), gross_collection=Decimal("6000.01"))
    result = settle(entry, even_split)
    assert result.net_residual == 0

    repo = DailyRecordRepository(db)
    stored = repo.create_record(fleet["buses"][0].id, fleet["drivers"][0].id, entry, result)
    db.commit()
    db.refresh(stored)

    assert stored.driver_share == Decimal("800.01")
    assert stored.operator_share == Decimal("5200.01")
    assert stored.net_residual == Decimal("-0.01")
    assert (
        stored.gross_collection
        - stored.driver_share
        - stored.operator_share
        - stored.diesel_cost
        - stored.cooperative_contribution
        - stored.other_expenses
        == stored.net_residual
    )


def test_snapshot_carries_expense_fields(db, fleet, rates):
    entry = StandardInput(
        date=date(2024, 11, 19),
        gross_collection=Decimal("6300"),
        diesel_cost=Decimal("2277"),
        cooperative_contribution=Decimal("1852"),
        other_expenses=Decimal("75"),
    )
    repo = DailyRecordRepository(db)
    repo.create_record(fleet["buses"][0].id, fleet["drivers"][0].id, entry, settle(entry, rates))
    db.commit()

    [snapshot] = repo.snapshots()

    assert snapshot.bus_label == "MB-01"
    assert snapshot.cooperative_contribution == Decimal("1852")
    assert snapshot.other_expenses == Decimal("75")
    assert snapshot.excess_collection == Decimal("300")
