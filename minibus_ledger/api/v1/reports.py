"""GET /v1/reports/* - anomaly detection and fleet performance reports"""

import time
import uuid
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from minibus_ledger.api.dependencies import get_configuration_provider, get_request_id
from minibus_ledger.api.v1.schemas import (
    AnomalyReportResponse,
    AnomalySummarySchema,
    BusDieselSchema,
    BusPerformanceResponse,
    BusPerformanceSchema,
    DailyDieselSchema,
    DayAnalysisResponse,
    DayAnalysisSchema,
    DieselConsumptionResponse,
    DriverPerformanceResponse,
    DriverPerformanceSchema,
    DriverSummarySchema,
    FleetSummaryResponse,
    RecordAnalysisSchema,
    TopBusesSchema,
    WeekdaySchema,
    WorstDaySchema,
)
from minibus_ledger.config import settings
from minibus_ledger.domain.anomaly import analyze
from minibus_ledger.domain.exceptions import ConfigurationMissingError
from minibus_ledger.domain.models import AnomalyReport
from minibus_ledger.domain.reports import (
    BusPerformance,
    bus_performance,
    day_of_week_analysis,
    diesel_consumption,
    driver_performance,
    fleet_summary,
)
from minibus_ledger.infrastructure.configuration import ConfigurationProvider
from minibus_ledger.infrastructure.database.repositories import DailyRecordRepository
from minibus_ledger.infrastructure.database.session import get_db
from minibus_ledger.infrastructure.observability.logging import log_anomaly_report
from minibus_ledger.infrastructure.observability.metrics import (
    anomaly_report_duration_histogram,
    record_anomaly_report,
)

router = APIRouter()


def check_window(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")


def anomaly_response(report: AnomalyReport) -> AnomalyReportResponse:
    return AnomalyReportResponse(
        daily_analysis=[
            DayAnalysisSchema(
                date=day.date,
                is_sunday=day.is_sunday,
                minimum_collection=day.minimum_collection,
                fleet_avg_collection=day.fleet_avg_collection,
                fleet_avg_diesel_cost=day.fleet_avg_diesel_cost,
                fleet_avg_diesel_ratio=float(day.fleet_avg_diesel_ratio),
                bus_count=day.bus_count,
                is_slow_day=day.is_slow_day,
                records=[
                    RecordAnalysisSchema(
                        bus_id=r.bus_identifier,
                        bus_number=r.bus_label,
                        driver_id=r.driver_identifier,
                        driver_name=r.driver_name,
                        collection=r.collection,
                        diesel_cost=r.diesel_cost,
                        diesel_ratio=float(r.diesel_ratio),
                        deviation_percent=float(r.deviation_percent),
                        is_below_minimum=r.is_below_minimum,
                        is_suspicious=r.is_suspicious,
                        km_per_liter=float(r.km_per_liter) if r.km_per_liter is not None else None,
                    )
                    for r in day.records
                ],
            )
            for day in report.daily_analysis
        ],
        driver_summary=[
            DriverSummarySchema(
                driver_id=d.driver_identifier,
                driver_name=d.driver_name,
                total_days=d.total_days,
                below_minimum_count=d.below_minimum_count,
                suspicious_days_count=d.suspicious_days_count,
                avg_deviation=float(d.avg_deviation),
                avg_diesel_ratio=float(d.avg_diesel_ratio),
                qualifies_for_suspension=d.qualifies_for_suspension,
                worst_days=[
                    WorstDaySchema(
                        date=w.date,
                        collection=w.collection,
                        fleet_avg=w.fleet_avg,
                        deviation=float(w.deviation),
                    )
                    for w in d.worst_days
                ],
            )
            for d in report.driver_summary
        ],
        summary=AnomalySummarySchema(
            total_records=report.summary.total_records,
            below_minimum_records=report.summary.below_minimum_records,
            suspicious_records=report.summary.suspicious_records,
            drivers_at_risk=report.summary.drivers_at_risk,
            suspension_threshold=report.summary.suspension_threshold,
        ),
    )


@router.get("/reports/anomaly-detection", response_model=AnomalyReportResponse)
def get_anomaly_report(
    request: Request,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    provider: ConfigurationProvider = Depends(get_configuration_provider),
):
    """
    Fleet anomaly report over a date window (both bounds optional).

    Uses global rates only; route overrides do not apply here.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    check_window(start_date, end_date)

    try:
        rates = provider.resolve()
    except ConfigurationMissingError as e:
        logging.error(f"Rate configuration missing: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Rate configuration is incomplete")

    with anomaly_report_duration_histogram.time():
        snapshots = DailyRecordRepository(db).snapshots(start_date, end_date)
        report = analyze(snapshots, rates, include_zero_collection=settings.anomaly_include_zero_collection)

    record_anomaly_report(report.summary)
    log_anomaly_report(request_id, report.summary, (time.time() - start_time) * 1000)

    return anomaly_response(report)


@router.get("/reports/day-analysis", response_model=DayAnalysisResponse)
def get_day_analysis(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Collection and cost averages by weekday"""
    check_window(start_date, end_date)
    report = day_of_week_analysis(DailyRecordRepository(db).snapshots(start_date, end_date))

    return DayAnalysisResponse(
        days=[
            WeekdaySchema(
                day_of_week=d.day_of_week,
                day_name=d.day_name,
                total_records=d.total_records,
                total_collection=d.total_collection,
                average_collection=d.average_collection,
                total_trips=d.total_trips,
                average_trips=float(d.average_trips),
                total_passengers=d.total_passengers,
                average_passengers=float(d.average_passengers),
                total_diesel_cost=d.total_diesel_cost,
                average_diesel_cost=d.average_diesel_cost,
                total_driver_share=d.total_driver_share,
                total_operator_share=d.total_operator_share,
            )
            for d in report.days
        ],
        best_day=report.best_day.day_name if report.best_day else None,
        best_day_average=report.best_day.average_collection if report.best_day else 0,
        worst_day=report.worst_day.day_name if report.worst_day else None,
        worst_day_average=report.worst_day.average_collection if report.worst_day else 0,
        total_records=report.total_records,
    )


@router.get("/reports/driver-performance", response_model=DriverPerformanceResponse)
def get_driver_performance(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Drivers ranked by total collection"""
    check_window(start_date, end_date)
    ranked = driver_performance(DailyRecordRepository(db).snapshots(start_date, end_date))

    return DriverPerformanceResponse(
        drivers=[
            DriverPerformanceSchema(
                rank=p.rank,
                driver_id=p.driver_identifier,
                driver_name=p.driver_name,
                total_days=p.total_days,
                total_collection=p.total_collection,
                average_collection=p.average_collection,
                total_driver_share=p.total_driver_share,
                average_driver_share=p.average_driver_share,
                total_trips=p.total_trips,
                average_trips_per_day=float(p.average_trips_per_day),
                total_passengers=p.total_passengers,
                average_passengers_per_day=float(p.average_passengers_per_day),
                total_diesel_liters=p.total_diesel_liters,
                total_diesel_cost=p.total_diesel_cost,
                collection_per_trip=p.collection_per_trip,
            )
            for p in ranked
        ]
    )


@router.get("/reports/diesel-consumption", response_model=DieselConsumptionResponse)
def get_diesel_consumption(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    bus_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
):
    """Diesel liters, cost and efficiency per bus and per day"""
    check_window(start_date, end_date)
    report = diesel_consumption(DailyRecordRepository(db).snapshots(start_date, end_date, bus_id=bus_id))

    return DieselConsumptionResponse(
        by_bus=[
            BusDieselSchema(
                bus_id=b.bus_identifier,
                bus_number=b.bus_label,
                total_records=b.total_records,
                total_liters=b.total_liters,
                total_cost=b.total_cost,
                total_collection=b.total_collection,
                total_distance=b.total_distance,
                km_per_liter=float(b.km_per_liter),
                cost_per_km=b.cost_per_km,
                average_liters_per_day=b.average_liters_per_day,
                average_cost_per_day=b.average_cost_per_day,
                diesel_cost_percentage=float(b.diesel_cost_percentage),
            )
            for b in report.by_bus
        ],
        daily=[
            DailyDieselSchema(date=d.date, total_liters=d.total_liters, total_cost=d.total_cost)
            for d in report.daily
        ],
        total_liters=report.total_liters,
        total_cost=report.total_cost,
        total_distance=report.total_distance,
        total_records=report.total_records,
        overall_km_per_liter=float(report.overall_km_per_liter),
        average_cost_per_liter=report.average_cost_per_liter,
        buses_without_fuel=report.buses_without_fuel,
    )


def bus_schema(perf: BusPerformance) -> BusPerformanceSchema:
    return BusPerformanceSchema(
        rank=perf.rank,
        bus_id=perf.bus_identifier,
        bus_number=perf.bus_label,
        total_days=perf.total_days,
        total_collection=perf.total_collection,
        average_collection=perf.average_collection,
        total_operator_share=perf.total_operator_share,
        total_driver_share=perf.total_driver_share,
        total_trips=perf.total_trips,
        average_trips_per_day=float(perf.average_trips_per_day),
        total_passengers=perf.total_passengers,
        average_passengers_per_day=float(perf.average_passengers_per_day),
        total_diesel_liters=perf.total_diesel_liters,
        total_diesel_cost=perf.total_diesel_cost,
        total_distance=perf.total_distance,
        km_per_liter=float(perf.km_per_liter),
        total_expenses=perf.total_expenses,
        net_income=perf.net_income,
        profit_margin=float(perf.profit_margin),
        collection_per_km=perf.collection_per_km,
    )


@router.get("/reports/bus-performance", response_model=BusPerformanceResponse)
def get_bus_performance(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Buses ranked by total collection, with top-five lists"""
    check_window(start_date, end_date)
    report = bus_performance(DailyRecordRepository(db).snapshots(start_date, end_date))

    return BusPerformanceResponse(
        buses=[bus_schema(b) for b in report.buses],
        top_performers=TopBusesSchema(
            by_collection=[bus_schema(b) for b in report.top_by_collection],
            by_efficiency=[bus_schema(b) for b in report.top_by_efficiency],
            by_profit=[bus_schema(b) for b in report.top_by_profit],
        ),
    )


@router.get("/reports/summary", response_model=FleetSummaryResponse)
def get_fleet_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    bus_id: Optional[uuid.UUID] = Query(None),
    db: Session = Depends(get_db),
):
    check_window(start_date, end_date)
    summary = fleet_summary(DailyRecordRepository(db).snapshots(start_date, end_date, bus_id=bus_id))

    return FleetSummaryResponse(
        start_date=start_date,
        end_date=end_date,
        record_count=summary.record_count,
        bus_count=summary.bus_count,
        driver_count=summary.driver_count,
        total_collection=summary.total_collection,
        average_collection=summary.average_collection,
        excess_total=summary.excess_total,
        diesel_cost=summary.diesel_cost,
        average_diesel_cost=summary.average_diesel_cost,
        diesel_liters=summary.diesel_liters,
        cooperative_contribution=summary.cooperative_contribution,
        other_expenses=summary.other_expenses,
        total_expenses=summary.total_expenses,
        operator_share=summary.operator_share,
        driver_share=summary.driver_share,
        total_shares=summary.total_shares,
        net_income=summary.net_income,
    )
