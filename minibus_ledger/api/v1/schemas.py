"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, UUID4

NonNegativeAmount = Annotated[Decimal, Field(ge=0)]


class SettlementFields(BaseModel):
    """Amounts shared by daily-record entry and settlement preview"""

    date: date
    gross_collection: NonNegativeAmount = Decimal("0")
    diesel_cost: NonNegativeAmount = Decimal("0")
    cooperative_contribution: Optional[Decimal] = Field(
        default=None, ge=0, description="Defaults to the route's amount on weekdays, 0 on Sundays"
    )
    other_expenses: NonNegativeAmount = Decimal("0")
    manual_driver_share: Optional[Decimal] = Field(
        default=None, description="Required when collection is below the day's minimum; ignored otherwise"
    )


class DailyRecordRequest(SettlementFields):
    """Request body for POST/PUT /v1/daily-records"""

    bus_id: UUID4
    driver_id: UUID4
    diesel_liters: NonNegativeAmount = Decimal("0")
    odometer_start: NonNegativeAmount = Decimal("0")
    odometer_end: NonNegativeAmount = Decimal("0")
    trip_count: int = Field(default=0, ge=0)
    passenger_count: int = Field(default=0, ge=0)
    notes: Optional[str] = None


class SettlementPreviewRequest(SettlementFields):
    """Request body for POST /v1/settlement/preview"""

    route_id: Optional[UUID4] = Field(default=None, description="Omit to use global rates")


class SettlementResponse(BaseModel):
    branch: str
    requires_manual_driver_share: bool
    minimum_collection: Decimal
    excess_collection: Decimal
    driver_share: Decimal
    operator_share: Decimal
    net_residual: Decimal


class DailyRecordResponse(BaseModel):
    id: str
    date: date
    bus_id: str
    bus_number: Optional[str] = None
    driver_id: str
    driver_name: Optional[str] = None
    gross_collection: Decimal
    diesel_cost: Decimal
    diesel_liters: Decimal
    odometer_start: Decimal
    odometer_end: Decimal
    cooperative_contribution: Decimal
    other_expenses: Decimal
    manual_driver_share: Optional[Decimal] = None
    trip_count: int
    passenger_count: int
    notes: Optional[str] = None
    settlement_branch: str
    minimum_collection: Decimal
    excess_collection: Decimal
    driver_share: Decimal
    operator_share: Decimal
    net_residual: Decimal


class DailyRecordListResponse(BaseModel):
    records: List[DailyRecordResponse]


# Anomaly detection


class RecordAnalysisSchema(BaseModel):
    bus_id: str
    bus_number: str
    driver_id: str
    driver_name: str
    collection: Decimal
    diesel_cost: Decimal
    diesel_ratio: float
    deviation_percent: float
    is_below_minimum: bool
    is_suspicious: bool
    km_per_liter: Optional[float] = None


class DayAnalysisSchema(BaseModel):
    date: date
    is_sunday: bool
    minimum_collection: Decimal
    fleet_avg_collection: Decimal
    fleet_avg_diesel_cost: Decimal
    fleet_avg_diesel_ratio: float
    bus_count: int
    is_slow_day: bool
    records: List[RecordAnalysisSchema]


class WorstDaySchema(BaseModel):
    date: date
    collection: Decimal
    fleet_avg: Decimal
    deviation: float


class DriverSummarySchema(BaseModel):
    driver_id: str
    driver_name: str
    total_days: int
    below_minimum_count: int
    suspicious_days_count: int
    avg_deviation: float
    avg_diesel_ratio: float
    qualifies_for_suspension: bool
    worst_days: List[WorstDaySchema]


class AnomalySummarySchema(BaseModel):
    total_records: int
    below_minimum_records: int
    suspicious_records: int
    drivers_at_risk: int
    suspension_threshold: int


class AnomalyReportResponse(BaseModel):
    daily_analysis: List[DayAnalysisSchema]
    driver_summary: List[DriverSummarySchema]
    summary: AnomalySummarySchema


# Fleet reports


class WeekdaySchema(BaseModel):
    day_of_week: int
    day_name: str
    total_records: int
    total_collection: Decimal
    average_collection: Decimal
    total_trips: int
    average_trips: float
    total_passengers: int
    average_passengers: float
    total_diesel_cost: Decimal
    average_diesel_cost: Decimal
    total_driver_share: Decimal
    total_operator_share: Decimal


class DayAnalysisResponse(BaseModel):
    days: List[WeekdaySchema]
    best_day: Optional[str] = None
    best_day_average: Decimal = Decimal("0")
    worst_day: Optional[str] = None
    worst_day_average: Decimal = Decimal("0")
    total_records: int


class DriverPerformanceSchema(BaseModel):
    rank: int
    driver_id: str
    driver_name: str
    total_days: int
    total_collection: Decimal
    average_collection: Decimal
    total_driver_share: Decimal
    average_driver_share: Decimal
    total_trips: int
    average_trips_per_day: float
    total_passengers: int
    average_passengers_per_day: float
    total_diesel_liters: Decimal
    total_diesel_cost: Decimal
    collection_per_trip: Decimal


class DriverPerformanceResponse(BaseModel):
    drivers: List[DriverPerformanceSchema]


class BusDieselSchema(BaseModel):
    bus_id: str
    bus_number: str
    total_records: int
    total_liters: Decimal
    total_cost: Decimal
    total_collection: Decimal
    total_distance: Decimal
    km_per_liter: float
    cost_per_km: Decimal
    average_liters_per_day: Decimal
    average_cost_per_day: Decimal
    diesel_cost_percentage: float


class DailyDieselSchema(BaseModel):
    date: date
    total_liters: Decimal
    total_cost: Decimal


class DieselConsumptionResponse(BaseModel):
    by_bus: List[BusDieselSchema]
    daily: List[DailyDieselSchema]
    total_liters: Decimal
    total_cost: Decimal
    total_distance: Decimal
    total_records: int
    overall_km_per_liter: float
    average_cost_per_liter: Decimal
    buses_without_fuel: List[str] = Field(default_factory=list, description="Bus numbers with no diesel recorded")


class BusPerformanceSchema(BaseModel):
    rank: int
    bus_id: str
    bus_number: str
    total_days: int
    total_collection: Decimal
    average_collection: Decimal
    total_operator_share: Decimal
    total_driver_share: Decimal
    total_trips: int
    average_trips_per_day: float
    total_passengers: int
    average_passengers_per_day: float
    total_diesel_liters: Decimal
    total_diesel_cost: Decimal
    total_distance: Decimal
    km_per_liter: float
    total_expenses: Decimal
    net_income: Decimal
    profit_margin: float
    collection_per_km: Decimal


class TopBusesSchema(BaseModel):
    by_collection: List[BusPerformanceSchema]
    by_efficiency: List[BusPerformanceSchema]
    by_profit: List[BusPerformanceSchema]


class BusPerformanceResponse(BaseModel):
    buses: List[BusPerformanceSchema]
    top_performers: TopBusesSchema


class FleetSummaryResponse(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    record_count: int
    bus_count: int
    driver_count: int
    total_collection: Decimal
    average_collection: Decimal
    excess_total: Decimal
    diesel_cost: Decimal
    average_diesel_cost: Decimal
    diesel_liters: Decimal
    cooperative_contribution: Decimal
    other_expenses: Decimal
    total_expenses: Decimal
    operator_share: Decimal
    driver_share: Decimal
    total_shares: Decimal
    net_income: Decimal


# Settings


class RateSettingsSchema(BaseModel):
    """Effective rates as shown to the settings screens"""

    weekday_minimum_collection: Decimal
    sunday_minimum_collection: Decimal
    driver_base_pay: Decimal
    operator_share_percent: Decimal
    driver_share_percent: Decimal
    default_coop_contribution: Decimal
    suspension_threshold: int


class RateSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value"""

    weekday_minimum_collection: Optional[Decimal] = Field(default=None, ge=0)
    sunday_minimum_collection: Optional[Decimal] = Field(default=None, ge=0)
    driver_base_pay: Optional[Decimal] = Field(default=None, ge=0)
    operator_share_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    driver_share_percent: Optional[Decimal] = Field(default=None, ge=0, le=100)
    default_coop_contribution: Optional[Decimal] = Field(default=None, ge=0)
    suspension_threshold: Optional[int] = Field(default=None, ge=1)


class RouteRatesUpdate(RateSettingsUpdate):
    """Route overrides; names listed in `clear` fall back to the global value"""

    clear: List[str] = Field(default_factory=list)


class RouteRatesResponse(BaseModel):
    route_id: str
    route_name: str
    effective: RateSettingsSchema
    overrides: dict
