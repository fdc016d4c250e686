"""Fleet performance reports: weekday trends, driver and bus ranking, diesel consumption, window summary"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from minibus_ledger.domain.models import DailyRecordSnapshot
from minibus_ledger.utils.date_utils import WEEKDAY_NAMES, to_calendar_date
from minibus_ledger.utils.money import HUNDRED, ZERO


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    return numerator / denominator if denominator else ZERO


@dataclass
class WeekdayStats:
    day_of_week: int  # 0 = Monday ... 6 = Sunday
    day_name: str
    total_records: int = 0
    total_collection: Decimal = ZERO
    total_trips: int = 0
    total_passengers: int = 0
    total_diesel_cost: Decimal = ZERO
    total_driver_share: Decimal = ZERO
    total_operator_share: Decimal = ZERO

    @property
    def average_collection(self) -> Decimal:
        return _ratio(self.total_collection, Decimal(self.total_records))

    @property
    def average_trips(self) -> Decimal:
        return _ratio(Decimal(self.total_trips), Decimal(self.total_records))

    @property
    def average_passengers(self) -> Decimal:
        return _ratio(Decimal(self.total_passengers), Decimal(self.total_records))

    @property
    def average_diesel_cost(self) -> Decimal:
        return _ratio(self.total_diesel_cost, Decimal(self.total_records))


@dataclass
class DayOfWeekReport:
    days: List[WeekdayStats]
    best_day: Optional[WeekdayStats]
    worst_day: Optional[WeekdayStats]
    total_records: int


def day_of_week_analysis(records: Iterable[DailyRecordSnapshot]) -> DayOfWeekReport:
    """
    Aggregate collection, trips and costs by weekday, Monday first.

    Best and worst days are picked by average collection among weekdays
    that have records; both are None when there are no records.
    """
    days = [WeekdayStats(day_of_week=i, day_name=name) for i, name in enumerate(WEEKDAY_NAMES)]
    count = 0

    for record in records:
        stats = days[to_calendar_date(record.date).weekday()]
        stats.total_records += 1
        stats.total_collection += record.gross_collection
        stats.total_trips += record.trip_count
        stats.total_passengers += record.passenger_count
        stats.total_diesel_cost += record.diesel_cost
        stats.total_driver_share += record.driver_share
        stats.total_operator_share += record.operator_share
        count += 1

    if count == 0:
        return DayOfWeekReport(days=days, best_day=None, worst_day=None, total_records=0)

    ranked = sorted((d for d in days if d.total_records), key=lambda d: d.average_collection, reverse=True)
    return DayOfWeekReport(days=days, best_day=ranked[0], worst_day=ranked[-1], total_records=count)


@dataclass
class DriverPerformance:
    driver_identifier: str
    driver_name: str
    total_days: int = 0
    total_collection: Decimal = ZERO
    total_driver_share: Decimal = ZERO
    total_trips: int = 0
    total_passengers: int = 0
    total_diesel_liters: Decimal = ZERO
    total_diesel_cost: Decimal = ZERO
    rank: int = 0

    @property
    def average_collection(self) -> Decimal:
        return _ratio(self.total_collection, Decimal(self.total_days))

    @property
    def average_driver_share(self) -> Decimal:
        return _ratio(self.total_driver_share, Decimal(self.total_days))

    @property
    def average_trips_per_day(self) -> Decimal:
        return _ratio(Decimal(self.total_trips), Decimal(self.total_days))

    @property
    def average_passengers_per_day(self) -> Decimal:
        return _ratio(Decimal(self.total_passengers), Decimal(self.total_days))

    @property
    def collection_per_trip(self) -> Decimal:
        return _ratio(self.total_collection, Decimal(self.total_trips))


def driver_performance(records: Iterable[DailyRecordSnapshot]) -> List[DriverPerformance]:
    """Per-driver totals ranked by total collection, best first (rank 1)"""
    drivers: Dict[str, DriverPerformance] = {}

    for record in records:
        perf = drivers.get(record.driver_identifier)
        if perf is None:
            perf = drivers[record.driver_identifier] = DriverPerformance(
                driver_identifier=record.driver_identifier,
                driver_name=record.driver_display_name,
            )
        perf.total_days += 1
        perf.total_collection += record.gross_collection
        perf.total_driver_share += record.driver_share
        perf.total_trips += record.trip_count
        perf.total_passengers += record.passenger_count
        perf.total_diesel_liters += record.diesel_liters
        perf.total_diesel_cost += record.diesel_cost

    ranked = sorted(drivers.values(), key=lambda p: p.total_collection, reverse=True)
    for position, perf in enumerate(ranked, start=1):
        perf.rank = position
    return ranked


TOP_PERFORMERS_LIMIT = 5


@dataclass
class BusPerformance:
    bus_identifier: str
    bus_label: str
    total_days: int = 0
    total_collection: Decimal = ZERO
    total_operator_share: Decimal = ZERO
    total_driver_share: Decimal = ZERO
    total_trips: int = 0
    total_passengers: int = 0
    total_diesel_liters: Decimal = ZERO
    total_diesel_cost: Decimal = ZERO
    total_cooperative_contribution: Decimal = ZERO
    total_other_expenses: Decimal = ZERO
    total_distance: Decimal = ZERO
    rank: int = 0

    @property
    def average_collection(self) -> Decimal:
        return _ratio(self.total_collection, Decimal(self.total_days))

    @property
    def average_trips_per_day(self) -> Decimal:
        return _ratio(Decimal(self.total_trips), Decimal(self.total_days))

    @property
    def average_passengers_per_day(self) -> Decimal:
        return _ratio(Decimal(self.total_passengers), Decimal(self.total_days))

    @property
    def km_per_liter(self) -> Decimal:
        return _ratio(self.total_distance, self.total_diesel_liters)

    @property
    def total_expenses(self) -> Decimal:
        return self.total_diesel_cost + self.total_cooperative_contribution + self.total_other_expenses

    @property
    def net_income(self) -> Decimal:
        """Collection left after expenses and both shares"""
        return self.total_collection - self.total_expenses - self.total_operator_share - self.total_driver_share

    @property
    def profit_margin(self) -> Decimal:
        return _ratio(self.net_income, self.total_collection) * HUNDRED

    @property
    def collection_per_km(self) -> Decimal:
        return _ratio(self.total_collection, self.total_distance)


@dataclass
class BusPerformanceReport:
    buses: List[BusPerformance]
    top_by_collection: List[BusPerformance]
    top_by_efficiency: List[BusPerformance]
    top_by_profit: List[BusPerformance]


def bus_performance(records: Iterable[DailyRecordSnapshot]) -> BusPerformanceReport:
    """
    Per-bus totals ranked by total collection, best first (rank 1).

    Also returns the top five buses by collection, by fuel efficiency
    (buses with no measured km/L are left out) and by net income.
    """
    buses: Dict[str, BusPerformance] = {}

    for record in records:
        perf = buses.get(record.bus_identifier)
        if perf is None:
            perf = buses[record.bus_identifier] = BusPerformance(
                bus_identifier=record.bus_identifier,
                bus_label=record.bus_label,
            )
        perf.total_days += 1
        perf.total_collection += record.gross_collection
        perf.total_operator_share += record.operator_share
        perf.total_driver_share += record.driver_share
        perf.total_trips += record.trip_count
        perf.total_passengers += record.passenger_count
        perf.total_diesel_liters += record.diesel_liters
        perf.total_diesel_cost += record.diesel_cost
        perf.total_cooperative_contribution += record.cooperative_contribution
        perf.total_other_expenses += record.other_expenses
        if record.odometer_end > record.odometer_start:
            perf.total_distance += record.odometer_end - record.odometer_start

    ranked = sorted(buses.values(), key=lambda b: (-b.total_collection, b.bus_label))
    for position, perf in enumerate(ranked, start=1):
        perf.rank = position

    return BusPerformanceReport(
        buses=ranked,
        top_by_collection=ranked[:TOP_PERFORMERS_LIMIT],
        top_by_efficiency=sorted(
            (b for b in ranked if b.km_per_liter > ZERO), key=lambda b: b.km_per_liter, reverse=True
        )[:TOP_PERFORMERS_LIMIT],
        top_by_profit=sorted(ranked, key=lambda b: b.net_income, reverse=True)[:TOP_PERFORMERS_LIMIT],
    )


@dataclass
class FleetSummary:
    """Window-wide totals for the dashboard header"""

    record_count: int = 0
    bus_count: int = 0
    driver_count: int = 0
    total_collection: Decimal = ZERO
    excess_total: Decimal = ZERO
    diesel_cost: Decimal = ZERO
    diesel_liters: Decimal = ZERO
    cooperative_contribution: Decimal = ZERO
    other_expenses: Decimal = ZERO
    operator_share: Decimal = ZERO
    driver_share: Decimal = ZERO

    @property
    def average_collection(self) -> Decimal:
        return _ratio(self.total_collection, Decimal(self.record_count))

    @property
    def average_diesel_cost(self) -> Decimal:
        return _ratio(self.diesel_cost, Decimal(self.record_count))

    @property
    def total_expenses(self) -> Decimal:
        return self.diesel_cost + self.cooperative_contribution + self.other_expenses

    @property
    def total_shares(self) -> Decimal:
        return self.operator_share + self.driver_share

    @property
    def net_income(self) -> Decimal:
        return self.total_collection - self.total_expenses - self.total_shares


def fleet_summary(records: Iterable[DailyRecordSnapshot]) -> FleetSummary:
    """Sum collections, expenses and shares over a window of records"""
    summary = FleetSummary()
    buses = set()
    drivers = set()

    for record in records:
        summary.record_count += 1
        summary.total_collection += record.gross_collection
        summary.excess_total += record.excess_collection
        summary.diesel_cost += record.diesel_cost
        summary.diesel_liters += record.diesel_liters
        summary.cooperative_contribution += record.cooperative_contribution
        summary.other_expenses += record.other_expenses
        summary.operator_share += record.operator_share
        summary.driver_share += record.driver_share
        buses.add(record.bus_identifier)
        drivers.add(record.driver_identifier)

    summary.bus_count = len(buses)
    summary.driver_count = len(drivers)
    return summary


@dataclass
class BusDieselStats:
    bus_identifier: str
    bus_label: str
    total_records: int = 0
    total_liters: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_collection: Decimal = ZERO
    total_distance: Decimal = ZERO

    @property
    def km_per_liter(self) -> Decimal:
        return _ratio(self.total_distance, self.total_liters)

    @property
    def cost_per_km(self) -> Decimal:
        return _ratio(self.total_cost, self.total_distance)

    @property
    def average_liters_per_day(self) -> Decimal:
        return _ratio(self.total_liters, Decimal(self.total_records))

    @property
    def average_cost_per_day(self) -> Decimal:
        return _ratio(self.total_cost, Decimal(self.total_records))

    @property
    def diesel_cost_percentage(self) -> Decimal:
        return _ratio(self.total_cost, self.total_collection) * HUNDRED


@dataclass
class DailyDieselTotal:
    date: date
    total_liters: Decimal = ZERO
    total_cost: Decimal = ZERO


@dataclass
class DieselConsumptionReport:
    by_bus: List[BusDieselStats]
    daily: List[DailyDieselTotal]
    total_liters: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_distance: Decimal = ZERO
    total_records: int = 0
    overall_km_per_liter: Decimal = ZERO
    average_cost_per_liter: Decimal = ZERO
    buses_without_fuel: List[str] = field(default_factory=list)


def diesel_consumption(records: Iterable[DailyRecordSnapshot]) -> DieselConsumptionReport:
    """
    Diesel usage per bus and per day.

    Distance only counts records whose odometer moved forward.
    """
    buses: Dict[str, BusDieselStats] = {}
    daily: Dict[date, DailyDieselTotal] = {}

    for record in records:
        stats = buses.get(record.bus_identifier)
        if stats is None:
            stats = buses[record.bus_identifier] = BusDieselStats(
                bus_identifier=record.bus_identifier,
                bus_label=record.bus_label,
            )
        stats.total_records += 1
        stats.total_liters += record.diesel_liters
        stats.total_cost += record.diesel_cost
        stats.total_collection += record.gross_collection
        if record.odometer_end > record.odometer_start:
            stats.total_distance += record.odometer_end - record.odometer_start

        day = to_calendar_date(record.date)
        total = daily.setdefault(day, DailyDieselTotal(date=day))
        total.total_liters += record.diesel_liters
        total.total_cost += record.diesel_cost

    by_bus = sorted(buses.values(), key=lambda b: b.bus_label)
    total_liters = sum((b.total_liters for b in by_bus), ZERO)
    total_cost = sum((b.total_cost for b in by_bus), ZERO)
    total_distance = sum((b.total_distance for b in by_bus), ZERO)

    return DieselConsumptionReport(
        by_bus=by_bus,
        daily=[daily[day] for day in sorted(daily)],
        total_liters=total_liters,
        total_cost=total_cost,
        total_distance=total_distance,
        total_records=sum(b.total_records for b in by_bus),
        overall_km_per_liter=_ratio(total_distance, total_liters),
        average_cost_per_liter=_ratio(total_cost, total_liters),
        buses_without_fuel=[b.bus_label for b in by_bus if b.total_liters == ZERO],
    )
