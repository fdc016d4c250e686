"""Domain models - pure Python dataclasses representing fleet bookkeeping values"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

ZERO = Decimal("0")

BRANCH_STANDARD = "standard"
BRANCH_BELOW_MINIMUM = "below_minimum"


@dataclass(frozen=True)
class RateConfiguration:
    """Effective rates for one route, resolved before any computation"""

    weekday_minimum: Decimal
    sunday_minimum: Decimal
    driver_base_pay: Decimal
    operator_share_percent: Decimal
    driver_share_percent: Decimal
    suspension_threshold: int
    default_cooperative_contribution: Decimal = ZERO


@dataclass(frozen=True)
class StandardInput:
    """One day's raw entry when no manual driver share is supplied"""

    date: date
    gross_collection: Decimal
    diesel_cost: Decimal = ZERO
    cooperative_contribution: Decimal = ZERO
    other_expenses: Decimal = ZERO


@dataclass(frozen=True)
class BelowMinimumInput(StandardInput):
    """Entry carrying the operator-decided driver share for a below-minimum day"""

    manual_driver_share: Decimal = field(kw_only=True)


DailySettlementInput = Union[StandardInput, BelowMinimumInput]


@dataclass(frozen=True)
class DailySettlementResult:
    """Output of the settlement formula"""

    branch: str  # "standard" or "below_minimum"
    minimum_collection: Decimal
    excess_collection: Decimal
    driver_share: Decimal
    operator_share: Decimal
    net_residual: Decimal

    @property
    def is_below_minimum(self) -> bool:
        return self.branch == BRANCH_BELOW_MINIMUM


@dataclass(frozen=True)
class DailyRecordSnapshot:
    """A persisted daily record reduced to what reporting reads"""

    date: date
    bus_identifier: str
    driver_identifier: str
    driver_display_name: str
    gross_collection: Decimal
    diesel_cost: Decimal = ZERO
    diesel_liters: Decimal = ZERO
    odometer_start: Decimal = ZERO
    odometer_end: Decimal = ZERO
    # Only the supplemental fleet reports read these
    bus_label: str = ""
    driver_share: Decimal = ZERO
    operator_share: Decimal = ZERO
    trip_count: int = 0
    passenger_count: int = 0
    cooperative_contribution: Decimal = ZERO
    other_expenses: Decimal = ZERO
    excess_collection: Decimal = ZERO


@dataclass
class RecordAnalysis:
    """One record judged against its day's fleet statistics"""

    bus_identifier: str
    bus_label: str
    driver_identifier: str
    driver_name: str
    collection: Decimal
    diesel_cost: Decimal
    diesel_ratio: Decimal  # 0 when collection is 0
    deviation_percent: Decimal
    is_below_minimum: bool
    is_suspicious: bool
    km_per_liter: Optional[Decimal]


@dataclass
class FleetDayStatistics:
    """Fleet-wide statistics for one calendar day"""

    date: date
    is_sunday: bool
    minimum_collection: Decimal
    fleet_avg_collection: Decimal
    fleet_avg_diesel_cost: Decimal
    fleet_avg_diesel_ratio: Decimal
    bus_count: int
    is_slow_day: bool
    records: List[RecordAnalysis] = field(default_factory=list)


@dataclass
class DriverDay:
    """A driver's result on one day, kept for the per-driver rollup"""

    date: date
    collection: Decimal
    fleet_avg: Decimal
    deviation: Decimal
    is_below_minimum: bool
    is_suspicious: bool
    diesel_ratio: Decimal


@dataclass
class DriverRiskSummary:
    """Per-driver risk rollup across the analysis window"""

    driver_identifier: str
    driver_name: str
    total_days: int
    below_minimum_count: int
    suspicious_days_count: int
    avg_deviation: Decimal
    avg_diesel_ratio: Decimal
    qualifies_for_suspension: bool
    worst_days: List[DriverDay]


@dataclass
class AnomalySummary:
    total_records: int
    below_minimum_records: int
    suspicious_records: int
    drivers_at_risk: int
    suspension_threshold: int


@dataclass
class AnomalyReport:
    """Output of fleet anomaly analysis"""

    daily_analysis: List[FleetDayStatistics]
    driver_summary: List[DriverRiskSummary]
    summary: AnomalySummary
