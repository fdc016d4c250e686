"""Unit tests for weekday, driver and diesel reports"""

from datetime import date
from decimal import Decimal
from minibus_ledger.domain.models import DailyRecordSnapshot
from minibus_ledger.domain.reports import (
    bus_performance,
    day_of_week_analysis,
    diesel_consumption,
    driver_performance,
    fleet_summary,
)

MONDAY = date(2024, 11, 18)
SATURDAY = date(2024, 11, 23)
SUNDAY = date(2024, 11, 24)


def record(day, bus, driver, gross, **kwargs) -> DailyRecordSnapshot:
    return DailyRecordSnapshot(
        date=day,
        bus_identifier=bus,
        driver_identifier=driver,
        driver_display_name=driver.title(),
        gross_collection=Decimal(gross),
        bus_label=bus.upper(),
        **kwargs,
    )


def test_day_of_week_best_and_worst():
    records = [
        record(MONDAY, "mb-01", "juan", "7000", trip_count=10, passenger_count=200),
        record(MONDAY, "mb-02", "pedro", "5000", trip_count=8, passenger_count=150),
        record(SATURDAY, "mb-01", "juan", "9000", trip_count=12),
        record(SUNDAY, "mb-01", "juan", "3000"),
    ]

    report = day_of_week_analysis(records)

    assert [d.day_name for d in report.days][0] == "Monday"
    assert len(report.days) == 7
    monday = report.days[0]
    assert monday.total_records == 2
    assert monday.average_collection == Decimal("6000")
    assert monday.average_trips == Decimal("9")
    assert monday.average_passengers == Decimal("175")
    assert report.best_day.day_name == "Saturday"
    assert report.worst_day.day_name == "Sunday"
    assert report.total_records == 4


def test_day_of_week_empty():
    report = day_of_week_analysis([])

    assert report.best_day is None
    assert report.worst_day is None
    assert all(d.average_collection == 0 for d in report.days)


def test_driver_performance_ranking():
    records = [
        record(MONDAY, "mb-01", "juan", "7000", trip_count=10, driver_share=Decimal("1200")),
        record(SATURDAY, "mb-01", "juan", "6000", trip_count=10, driver_share=Decimal("800")),
        record(MONDAY, "mb-02", "pedro", "9000", trip_count=0),
    ]

    ranked = driver_performance(records)

    assert [(p.rank, p.driver_identifier) for p in ranked] == [(1, "juan"), (2, "pedro")]
    juan = ranked[0]
    assert juan.total_days == 2
    assert juan.total_collection == Decimal("13000")
    assert juan.average_driver_share == Decimal("1000")
    assert juan.collection_per_trip == Decimal("650")
    assert ranked[1].collection_per_trip == 0


def test_diesel_consumption_per_bus_and_day():
    records = [
        record(
            MONDAY,
            "mb-02",
            "pedro",
            "8000",
            diesel_cost=Decimal("2000"),
            diesel_liters=Decimal("40"),
            odometer_start=Decimal("1000"),
            odometer_end=Decimal("1200"),
        ),
        record(
            MONDAY,
            "mb-01",
            "juan",
            "6000",
            diesel_cost=Decimal("1000"),
            diesel_liters=Decimal("20"),
            odometer_start=Decimal("500"),
            odometer_end=Decimal("500"),
        ),
        record(SUNDAY, "mb-03", "jose", "5000"),
    ]

    report = diesel_consumption(records)

    assert [b.bus_label for b in report.by_bus] == ["MB-01", "MB-02", "MB-03"]
    mb02 = report.by_bus[1]
    assert mb02.km_per_liter == Decimal("5")
    assert mb02.cost_per_km == Decimal("10")
    assert mb02.diesel_cost_percentage == Decimal("25")
    assert report.by_bus[0].total_distance == 0
    assert [d.date for d in report.daily] == [MONDAY, SUNDAY]
    assert report.daily[0].total_liters == Decimal("60")
    assert report.total_cost == Decimal("3000")
    assert report.average_cost_per_liter == Decimal("50")
    assert report.buses_without_fuel == ["MB-03"]


def test_bus_performance_ranking_and_profit():
    records = [
        record(
            MONDAY,
            "mb-01",
            "juan",
            "6300",
            diesel_cost=Decimal("2277"),
            cooperative_contribution=Decimal("1852"),
            driver_share=Decimal("920"),
            operator_share=Decimal("1251"),
            diesel_liters=Decimal("45"),
            odometer_start=Decimal("1000"),
            odometer_end=Decimal("1180"),
            trip_count=9,
        ),
        record(
            SATURDAY,
            "mb-01",
            "juan",
            "7000",
            diesel_cost=Decimal("2000"),
            other_expenses=Decimal("150"),
            driver_share=Decimal("1200"),
            operator_share=Decimal("3800"),
            trip_count=11,
        ),
        record(MONDAY, "mb-02", "pedro", "9000", operator_share=Decimal("8000"), driver_share=Decimal("1500")),
    ]

    report = bus_performance(records)

    assert [(b.rank, b.bus_label) for b in report.buses] == [(1, "MB-01"), (2, "MB-02")]
    mb01 = report.buses[0]
    assert mb01.total_days == 2
    assert mb01.total_collection == Decimal("13300")
    assert mb01.total_expenses == Decimal("6279")
    assert mb01.net_income == Decimal("-150")
    assert mb01.km_per_liter == Decimal("4")
    assert mb01.average_trips_per_day == Decimal("10")
    assert report.buses[1].net_income == Decimal("-500")
    assert [b.bus_label for b in report.top_by_efficiency] == ["MB-01"]
    assert [b.bus_label for b in report.top_by_profit] == ["MB-01", "MB-02"]


def test_bus_performance_top_lists_capped_at_five():
    records = [record(MONDAY, f"mb-{i:02d}", "juan", str(6000 + i * 100)) for i in range(7)]

    report = bus_performance(records)

    assert len(report.buses) == 7
    assert len(report.top_by_collection) == 5
    assert report.top_by_collection[0].bus_label == "MB-06"
    assert report.top_by_efficiency == []


def test_fleet_summary_totals():
    records = [
        record(
            MONDAY,
            "mb-01",
            "juan",
            "6300",
            diesel_cost=Decimal("2277"),
            cooperative_contribution=Decimal("1852"),
            driver_share=Decimal("920"),
            operator_share=Decimal("1251"),
            excess_collection=Decimal("300"),
        ),
        record(
            MONDAY,
            "mb-02",
            "pedro",
            "5000",
            diesel_cost=Decimal("2203"),
            cooperative_contribution=Decimal("1852"),
            driver_share=Decimal("600"),
            operator_share=Decimal("345"),
        ),
        record(SUNDAY, "mb-01", "pedro", "5700", other_expenses=Decimal("100")),
    ]

    summary = fleet_summary(records)

    assert summary.record_count == 3
    assert summary.bus_count == 2
    assert summary.driver_count == 2
    assert summary.total_collection == Decimal("17000")
    assert summary.excess_total == Decimal("300")
    assert summary.cooperative_contribution == Decimal("3704")
    assert summary.total_expenses == Decimal("8284")
    assert summary.total_shares == Decimal("3116")
    assert summary.net_income == Decimal("5600")
    assert round(summary.average_diesel_cost, 2) == Decimal("1493.33")


def test_fleet_summary_empty():
    summary = fleet_summary([])

    assert summary.record_count == 0
    assert summary.average_collection == 0
    assert summary.net_income == 0
