"""/v1/daily-records - daily entry, settlement and record maintenance"""

import time
import uuid
import logging
from datetime import date
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from minibus_ledger.api.dependencies import get_configuration_provider, get_request_id
from minibus_ledger.api.v1.schemas import DailyRecordListResponse, DailyRecordRequest, DailyRecordResponse
from minibus_ledger.config import settings
from minibus_ledger.domain.exceptions import ConfigurationMissingError, DuplicateRecordError, InvalidInputError
from minibus_ledger.domain.models import DailySettlementInput, DailySettlementResult
from minibus_ledger.domain.settlement import build_settlement_input, settle
from minibus_ledger.infrastructure.configuration import ConfigurationProvider
from minibus_ledger.infrastructure.database.models import Bus, DailyRecord, Driver
from minibus_ledger.infrastructure.database.repositories import (
    BusRepository,
    DailyRecordRepository,
    DriverRepository,
)
from minibus_ledger.infrastructure.database.session import get_db
from minibus_ledger.infrastructure.observability.logging import log_settlement
from minibus_ledger.infrastructure.observability.metrics import record_settlement

router = APIRouter()


def to_response(record: DailyRecord) -> DailyRecordResponse:
    return DailyRecordResponse(
        id=str(record.id),
        date=record.date,
        bus_id=str(record.bus_id),
        bus_number=record.bus.bus_number if record.bus else None,
        driver_id=str(record.driver_id),
        driver_name=record.driver.name if record.driver else None,
        gross_collection=record.gross_collection,
        diesel_cost=record.diesel_cost,
        diesel_liters=record.diesel_liters,
        odometer_start=record.odometer_start,
        odometer_end=record.odometer_end,
        cooperative_contribution=record.cooperative_contribution,
        other_expenses=record.other_expenses,
        manual_driver_share=record.manual_driver_share,
        trip_count=record.trip_count,
        passenger_count=record.passenger_count,
        notes=record.notes,
        settlement_branch=record.settlement_branch,
        minimum_collection=record.minimum_collection,
        excess_collection=record.excess_collection,
        driver_share=record.driver_share,
        operator_share=record.operator_share,
        net_residual=record.net_residual,
    )


def parse_record_id(record_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(record_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid record ID format")


def invalid_input_detail(error: InvalidInputError) -> dict:
    return {"field": error.field, "message": str(error)}


def load_bus_and_driver(db: Session, body: DailyRecordRequest) -> Tuple[Bus, Driver]:
    bus = BusRepository(db).get_bus(body.bus_id)
    driver = DriverRepository(db).get_driver(body.driver_id)
    if not bus or not driver:
        raise HTTPException(status_code=404, detail="Bus or driver not found")
    return bus, driver


def settle_entry(
    body: DailyRecordRequest, bus: Bus, provider: ConfigurationProvider
) -> Tuple[DailySettlementInput, DailySettlementResult]:
    """Resolve the bus's route rates and run the entry through the settlement engine"""
    rates = provider.resolve(bus.route_id)
    entry = build_settlement_input(
        body.date,
        rates,
        gross_collection=body.gross_collection,
        diesel_cost=body.diesel_cost,
        cooperative_contribution=body.cooperative_contribution,
        other_expenses=body.other_expenses,
        manual_driver_share=body.manual_driver_share,
    )
    return entry, settle(entry, rates)


def entry_details(body: DailyRecordRequest) -> dict:
    return {
        "diesel_liters": body.diesel_liters,
        "odometer_start": body.odometer_start,
        "odometer_end": body.odometer_end,
        "trip_count": body.trip_count,
        "passenger_count": body.passenger_count,
        "notes": body.notes or None,
    }


@router.post("/daily-records", response_model=DailyRecordResponse, status_code=201)
def create_daily_record(
    body: DailyRecordRequest,
    request: Request,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """
    Record one bus-day and settle it.

    Flow:
    1. Verify bus and driver exist
    2. Resolve effective rates for the bus's route
    3. Build the settlement input (manual driver share only below minimum)
    4. Settle and persist entry + shares
    """
    start_time = time.time()
    request_id = get_request_id(request)

    bus, driver = load_bus_and_driver(db, body)

    try:
        entry, result = settle_entry(body, bus, provider)
        db_record = DailyRecordRepository(db).create_record(
            bus.id, driver.id, entry, result, **entry_details(body)
        )
        db.commit()
        db.refresh(db_record)

    except InvalidInputError as e:
        db.rollback()
        logging.warning(f"Invalid daily record: {e}", extra={"request_id": request_id, "field": e.field})
        raise HTTPException(status_code=422, detail=invalid_input_detail(e))

    except DuplicateRecordError as e:
        db.rollback()
        logging.warning(f"Duplicate daily record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except ConfigurationMissingError as e:
        db.rollback()
        logging.error(f"Rate configuration missing: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")

    duration_ms = (time.time() - start_time) * 1000
    record_settlement(result)
    log_settlement(request_id, str(db_record.id), result, duration_ms)

    return to_response(db_record)


@router.get("/daily-records", response_model=DailyRecordListResponse)
def list_daily_records(
    bus_id: Optional[uuid.UUID] = Query(None),
    driver_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(settings.daily_records_page_size, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """List records, most recent first"""
    records = DailyRecordRepository(db).list_records(
        bus_id=bus_id,
        driver_id=driver_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    return DailyRecordListResponse(records=[to_response(r) for r in records])


@router.get("/daily-records/{record_id}", response_model=DailyRecordResponse)
def get_daily_record(record_id: str, db: Session = Depends(get_db)):
    record = DailyRecordRepository(db).get_record(parse_record_id(record_id))
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return to_response(record)


@router.put("/daily-records/{record_id}", response_model=DailyRecordResponse)
def update_daily_record(
    record_id: str,
    body: DailyRecordRequest,
    request: Request,
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """Replace an entry and re-settle it with the rates in force now"""
    start_time = time.time()
    request_id = get_request_id(request)

    repo = DailyRecordRepository(db)
    db_record = repo.get_record(parse_record_id(record_id))
    if not db_record:
        raise HTTPException(status_code=404, detail="Record not found")

    bus, driver = load_bus_and_driver(db, body)

    try:
        entry, result = settle_entry(body, bus, provider)
        repo.update_record(db_record, bus.id, driver.id, entry, result, **entry_details(body))
        db.commit()
        db.refresh(db_record)

    except InvalidInputError as e:
        db.rollback()
        logging.warning(f"Invalid daily record: {e}", extra={"request_id": request_id, "field": e.field})
        raise HTTPException(status_code=422, detail=invalid_input_detail(e))

    except DuplicateRecordError as e:
        db.rollback()
        logging.warning(f"Duplicate daily record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except ConfigurationMissingError as e:
        db.rollback()
        logging.error(f"Rate configuration missing: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")

    duration_ms = (time.time() - start_time) * 1000
    record_settlement(result)
    log_settlement(request_id, str(db_record.id), result, duration_ms)

    return to_response(db_record)


@router.delete("/daily-records/{record_id}")
def delete_daily_record(record_id: str, db: Session = Depends(get_db)):
    repo = DailyRecordRepository(db)
    record = repo.get_record(parse_record_id(record_id))
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")

    repo.delete_record(record)
    db.commit()
    return {"deleted": True, "id": record_id}
