"""Data access layer for fleet ledger entities"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from minibus_ledger.domain.exceptions import DuplicateRecordError
from minibus_ledger.domain.models import (
    BelowMinimumInput,
    DailyRecordSnapshot,
    DailySettlementInput,
    DailySettlementResult,
)
from minibus_ledger.infrastructure.database.models import Bus, DailyRecord, Driver, Route, Setting
from minibus_ledger.utils.money import ZERO, quantize_cents


def _amount(value) -> Decimal:
    return Decimal(value) if value is not None else ZERO


def to_snapshot(record: DailyRecord) -> DailyRecordSnapshot:
    """Reduce a persisted record to what the reports read"""
    return DailyRecordSnapshot(
        date=record.date,
        bus_identifier=str(record.bus_id),
        driver_identifier=str(record.driver_id),
        driver_display_name=record.driver.name if record.driver else "",
        gross_collection=_amount(record.gross_collection),
        diesel_cost=_amount(record.diesel_cost),
        diesel_liters=_amount(record.diesel_liters),
        odometer_start=_amount(record.odometer_start),
        odometer_end=_amount(record.odometer_end),
        bus_label=record.bus.bus_number if record.bus else "",
        driver_share=_amount(record.driver_share),
        operator_share=_amount(record.operator_share),
        trip_count=record.trip_count or 0,
        passenger_count=record.passenger_count or 0,
        cooperative_contribution=_amount(record.cooperative_contribution),
        other_expenses=_amount(record.other_expenses),
        excess_collection=_amount(record.excess_collection),
    )


class DailyRecordRepository:
    """Repository for daily records"""

    def __init__(self, db: Session):
        self.db = db

    def create_record(
        self,
        bus_id: uuid.UUID,
        driver_id: uuid.UUID,
        entry: DailySettlementInput,
        result: DailySettlementResult,
        **details,
    ) -> DailyRecord:
        """
        Persist an entry and its settlement.

        Raises:
            DuplicateRecordError: the bus already has a record for this date
        """
        db_record = DailyRecord(bus_id=bus_id, driver_id=driver_id)
        self._apply(db_record, entry, result, details)
        self.db.add(db_record)
        self._flush()
        return db_record

    def update_record(
        self,
        db_record: DailyRecord,
        bus_id: uuid.UUID,
        driver_id: uuid.UUID,
        entry: DailySettlementInput,
        result: DailySettlementResult,
        **details,
    ) -> DailyRecord:
        """Overwrite an entry with re-settled values"""
        db_record.bus_id = bus_id
        db_record.driver_id = driver_id
        self._apply(db_record, entry, result, details)
        self._flush()
        return db_record

    def get_record(self, record_id: uuid.UUID) -> Optional[DailyRecord]:
        return (
            self.db.query(DailyRecord)
            .options(joinedload(DailyRecord.bus), joinedload(DailyRecord.driver))
            .filter(DailyRecord.id == record_id)
            .first()
        )

    def list_records(
        self,
        bus_id: Optional[uuid.UUID] = None,
        driver_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[DailyRecord]:
        """Fetch records matching the filters, most recent first"""
        query = self.db.query(DailyRecord).options(
            joinedload(DailyRecord.bus), joinedload(DailyRecord.driver)
        )
        if bus_id is not None:
            query = query.filter(DailyRecord.bus_id == bus_id)
        if driver_id is not None:
            query = query.filter(DailyRecord.driver_id == driver_id)
        if start_date is not None:
            query = query.filter(DailyRecord.date >= start_date)
        if end_date is not None:
            query = query.filter(DailyRecord.date <= end_date)

        query = query.order_by(DailyRecord.date.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def delete_record(self, db_record: DailyRecord) -> None:
        self.db.delete(db_record)
        self.db.flush()

    def snapshots(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        bus_id: Optional[uuid.UUID] = None,
    ) -> List[DailyRecordSnapshot]:
        """Materialize a date-bounded window of records for reporting"""
        records = self.list_records(bus_id=bus_id, start_date=start_date, end_date=end_date)
        return [to_snapshot(r) for r in records]

    def _apply(
        self,
        db_record: DailyRecord,
        entry: DailySettlementInput,
        result: DailySettlementResult,
        details: Dict[str, object],
    ) -> None:
        db_record.date = entry.date
        db_record.gross_collection = quantize_cents(entry.gross_collection)
        db_record.diesel_cost = quantize_cents(entry.diesel_cost)
        db_record.cooperative_contribution = quantize_cents(entry.cooperative_contribution)
        db_record.other_expenses = quantize_cents(entry.other_expenses)
        db_record.manual_driver_share = (
            quantize_cents(entry.manual_driver_share) if isinstance(entry, BelowMinimumInput) else None
        )

        db_record.diesel_liters = details.get("diesel_liters", ZERO)
        db_record.odometer_start = details.get("odometer_start", ZERO)
        db_record.odometer_end = details.get("odometer_end", ZERO)
        db_record.trip_count = details.get("trip_count", 0)
        db_record.passenger_count = details.get("passenger_count", 0)
        db_record.notes = details.get("notes")

        db_record.settlement_branch = result.branch
        db_record.minimum_collection = quantize_cents(result.minimum_collection)
        db_record.excess_collection = quantize_cents(result.excess_collection)
        db_record.driver_share = quantize_cents(result.driver_share)
        db_record.operator_share = quantize_cents(result.operator_share)
        # Residual of the stored amounts, so a cent lost to rounding shows up here
        db_record.net_residual = (
            db_record.gross_collection
            - db_record.driver_share
            - db_record.operator_share
            - db_record.diesel_cost
            - db_record.cooperative_contribution
            - db_record.other_expenses
        )

    def _flush(self) -> None:
        # The (bus_id, date) unique constraint serializes entries for the same bus-day
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateRecordError("A record for this bus on this date already exists") from e


class BusRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_bus(self, bus_id: uuid.UUID) -> Optional[Bus]:
        return self.db.query(Bus).filter(Bus.id == bus_id).first()


class DriverRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_driver(self, driver_id: uuid.UUID) -> Optional[Driver]:
        return self.db.query(Driver).filter(Driver.id == driver_id).first()


class RouteRepository:
    """Repository for routes and their rate overrides"""

    def __init__(self, db: Session):
        self.db = db

    def get_route(self, route_id: uuid.UUID) -> Optional[Route]:
        return self.db.query(Route).filter(Route.id == route_id).first()

    def with_share_override(self) -> List[Route]:
        """Routes that override at least one of the two share percentages"""
        return (
            self.db.query(Route)
            .filter(or_(Route.operator_share_percent.isnot(None), Route.driver_share_percent.isnot(None)))
            .order_by(Route.name)
            .all()
        )

    def update_rates(self, route: Route, overrides: Dict[str, object]) -> Route:
        """Set rate override columns; a None value clears the override"""
        for column, value in overrides.items():
            setattr(route, column, value)
        self.db.flush()
        return route


class SettingRepository:
    """Repository for global key/value settings"""

    def __init__(self, db: Session):
        self.db = db

    def as_dict(self) -> Dict[str, str]:
        return {s.key: s.value for s in self.db.query(Setting).all()}

    def upsert_many(self, values: Iterable[tuple]) -> List[Setting]:
        """Insert or update (key, value, description) triples"""
        saved = []
        for key, value, description in values:
            setting = self.db.get(Setting, key)
            if setting is None:
                setting = Setting(key=key, value=str(value), description=description)
                self.db.add(setting)
            else:
                setting.value = str(value)
                if description is not None:
                    setting.description = description
            saved.append(setting)
        self.db.flush()
        return saved
