"""Fleet anomaly analysis - per-day fleet statistics and per-driver suspension risk"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from minibus_ledger.domain.models import (
    AnomalyReport,
    AnomalySummary,
    DailyRecordSnapshot,
    DriverDay,
    DriverRiskSummary,
    FleetDayStatistics,
    RateConfiguration,
    RecordAnalysis,
)
from minibus_ledger.domain.settlement import minimum_collection_for
from minibus_ledger.utils.date_utils import is_sunday, to_calendar_date
from minibus_ledger.utils.money import HUNDRED, ZERO

# A record is suspicious only when it is more than 20% under the fleet average
# AND its diesel/collection ratio is over 1.2x the fleet's
SUSPICIOUS_DEVIATION_PERCENT = Decimal("-20")
SUSPICIOUS_DIESEL_RATIO_FACTOR = Decimal("1.2")
WORST_DAYS_LIMIT = 3


def _mean(values: List[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values) if values else ZERO


def diesel_ratio(record: DailyRecordSnapshot) -> Optional[Decimal]:
    """Diesel cost over collection; undefined (None) when nothing was collected"""
    if record.gross_collection > ZERO:
        return record.diesel_cost / record.gross_collection
    return None


def km_per_liter(record: DailyRecordSnapshot) -> Optional[Decimal]:
    """Fuel efficiency, or None when odometer or liters were not recorded"""
    if record.odometer_end > record.odometer_start and record.diesel_liters > ZERO:
        return (record.odometer_end - record.odometer_start) / record.diesel_liters
    return None


def group_by_day(records: Iterable[DailyRecordSnapshot]) -> Dict[date, List[DailyRecordSnapshot]]:
    """Group records by calendar date, most recent day first"""
    groups: Dict[date, List[DailyRecordSnapshot]] = defaultdict(list)
    for record in records:
        groups[to_calendar_date(record.date)].append(record)
    return {day: groups[day] for day in sorted(groups, reverse=True) if groups[day]}


def analyze_day(
    day: date,
    records: List[DailyRecordSnapshot],
    rates: RateConfiguration,
    include_zero_collection: bool = True,
) -> FleetDayStatistics:
    """
    Compute fleet statistics for one day and judge each record against them.

    A slow day (fleet average under the minimum) flags nobody as suspicious:
    a collective shortfall says nothing about an individual driver.
    """
    minimum = minimum_collection_for(day, rates)

    # Records that feed the fleet averages
    averaged = records if include_zero_collection else [r for r in records if r.gross_collection > ZERO]

    fleet_avg_collection = _mean([r.gross_collection for r in averaged])
    fleet_avg_diesel_cost = _mean([r.diesel_cost for r in averaged])
    ratios = [ratio for ratio in (diesel_ratio(r) for r in averaged) if ratio is not None]
    fleet_avg_diesel_ratio = _mean(ratios)

    is_slow_day = fleet_avg_collection < minimum
    ratio_ceiling = fleet_avg_diesel_ratio * SUSPICIOUS_DIESEL_RATIO_FACTOR

    analyses = []
    for record in records:
        ratio = diesel_ratio(record)

        if fleet_avg_collection > ZERO:
            deviation = (record.gross_collection - fleet_avg_collection) / fleet_avg_collection * HUNDRED
        else:
            deviation = ZERO

        is_suspicious = (
            not is_slow_day
            and deviation < SUSPICIOUS_DEVIATION_PERCENT
            and ratio is not None
            and ratio > ratio_ceiling
        )

        analyses.append(
            RecordAnalysis(
                bus_identifier=record.bus_identifier,
                bus_label=record.bus_label,
                driver_identifier=record.driver_identifier,
                driver_name=record.driver_display_name,
                collection=record.gross_collection,
                diesel_cost=record.diesel_cost,
                diesel_ratio=ratio if ratio is not None else ZERO,
                deviation_percent=deviation,
                is_below_minimum=record.gross_collection < minimum,
                is_suspicious=is_suspicious,
                km_per_liter=km_per_liter(record),
            )
        )

    # Worst performers first
    analyses.sort(key=lambda a: a.collection)

    return FleetDayStatistics(
        date=day,
        is_sunday=is_sunday(day),
        minimum_collection=minimum,
        fleet_avg_collection=fleet_avg_collection,
        fleet_avg_diesel_cost=fleet_avg_diesel_cost,
        fleet_avg_diesel_ratio=fleet_avg_diesel_ratio,
        bus_count=len(records),
        is_slow_day=is_slow_day,
        records=analyses,
    )


def summarize_drivers(days: List[FleetDayStatistics], suspension_threshold: int) -> List[DriverRiskSummary]:
    """Roll each driver's day results up into a risk summary, worst offenders first"""
    names: Dict[str, str] = {}
    history: Dict[str, List[DriverDay]] = defaultdict(list)

    for day in days:
        for record in day.records:
            names.setdefault(record.driver_identifier, record.driver_name)
            history[record.driver_identifier].append(
                DriverDay(
                    date=day.date,
                    collection=record.collection,
                    fleet_avg=day.fleet_avg_collection,
                    deviation=record.deviation_percent,
                    is_below_minimum=record.is_below_minimum,
                    is_suspicious=record.is_suspicious,
                    diesel_ratio=record.diesel_ratio,
                )
            )

    summaries = []
    for driver_id, driver_days in history.items():
        below_minimum_count = sum(1 for d in driver_days if d.is_below_minimum)

        summaries.append(
            DriverRiskSummary(
                driver_identifier=driver_id,
                driver_name=names[driver_id],
                total_days=len(driver_days),
                below_minimum_count=below_minimum_count,
                suspicious_days_count=sum(1 for d in driver_days if d.is_suspicious),
                avg_deviation=_mean([d.deviation for d in driver_days]),
                avg_diesel_ratio=_mean([d.diesel_ratio for d in driver_days]),
                qualifies_for_suspension=below_minimum_count >= suspension_threshold,
                worst_days=sorted(driver_days, key=lambda d: d.deviation)[:WORST_DAYS_LIMIT],
            )
        )

    summaries.sort(key=lambda s: s.below_minimum_count, reverse=True)
    return summaries


def analyze(
    records: Iterable[DailyRecordSnapshot],
    rates: RateConfiguration,
    include_zero_collection: bool = True,
) -> AnomalyReport:
    """
    Main entry point: fleet-wide anomaly report for a window of daily records.

    Pass 1 groups records by calendar day and computes fleet statistics.
    Pass 2 rolls the day results up per driver.

    ``include_zero_collection=False`` leaves zero-collection records out of
    the fleet averages; they are still listed and counted.

    An empty window yields an empty report.
    """
    records = list(records)

    days = [
        analyze_day(day, day_records, rates, include_zero_collection)
        for day, day_records in group_by_day(records).items()
    ]
    drivers = summarize_drivers(days, rates.suspension_threshold)

    all_analyses = [r for day in days for r in day.records]

    return AnomalyReport(
        daily_analysis=days,
        driver_summary=drivers,
        summary=AnomalySummary(
            total_records=len(records),
            below_minimum_records=sum(1 for r in all_analyses if r.is_below_minimum),
            suspicious_records=sum(1 for r in all_analyses if r.is_suspicious),
            drivers_at_risk=sum(1 for d in drivers if d.qualifies_for_suspension),
            suspension_threshold=rates.suspension_threshold,
        ),
    )
