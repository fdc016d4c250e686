"""SQLAlchemy ORM models for the fleet ledger"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

Money = Numeric(12, 2)
Percent = Numeric(5, 2)


class Route(Base):
    """Jeepney/minibus route; non-null rate columns override the global settings"""

    __tablename__ = "route"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    operator_share_percent = Column(Percent, nullable=True)
    driver_share_percent = Column(Percent, nullable=True)
    weekday_minimum_collection = Column(Money, nullable=True)
    sunday_minimum_collection = Column(Money, nullable=True)
    default_coop_contribution = Column(Money, nullable=True)
    driver_base_pay = Column(Money, nullable=True)
    suspension_threshold = Column(Integer, nullable=True)

    buses = relationship("Bus", back_populates="route")
    drivers = relationship("Driver", back_populates="route")


class Bus(Base):
    __tablename__ = "bus"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bus_number = Column(Text, nullable=False, unique=True)
    plate_number = Column(Text, nullable=True)
    route_id = Column(Uuid, ForeignKey("route.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    route = relationship("Route", back_populates="buses")
    daily_records = relationship("DailyRecord", back_populates="bus", cascade="all, delete-orphan")


class Driver(Base):
    __tablename__ = "driver"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    route_id = Column(Uuid, ForeignKey("route.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    route = relationship("Route", back_populates="drivers")
    daily_records = relationship("DailyRecord", back_populates="driver")


class DailyRecord(Base):
    """One bus's day: raw entry plus the settlement computed from it"""

    __tablename__ = "daily_record"
    __table_args__ = (UniqueConstraint("bus_id", "date", name="uq_daily_record_bus_date"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    bus_id = Column(Uuid, ForeignKey("bus.id", ondelete="CASCADE"), nullable=False)
    driver_id = Column(Uuid, ForeignKey("driver.id"), nullable=False, index=True)

    # Entry
    gross_collection = Column(Money, nullable=False, default=0)
    diesel_cost = Column(Money, nullable=False, default=0)
    diesel_liters = Column(Numeric(10, 2), nullable=False, default=0)
    odometer_start = Column(Numeric(12, 1), nullable=False, default=0)
    odometer_end = Column(Numeric(12, 1), nullable=False, default=0)
    cooperative_contribution = Column(Money, nullable=False, default=0)
    other_expenses = Column(Money, nullable=False, default=0)
    trip_count = Column(Integer, nullable=False, default=0)
    passenger_count = Column(Integer, nullable=False, default=0)
    manual_driver_share = Column(Money, nullable=True)
    notes = Column(Text, nullable=True)

    # Settlement
    settlement_branch = Column(Text, nullable=False)
    minimum_collection = Column(Money, nullable=False)
    excess_collection = Column(Money, nullable=False)
    driver_share = Column(Money, nullable=False)
    operator_share = Column(Money, nullable=False)
    net_residual = Column(Money, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    bus = relationship("Bus", back_populates="daily_records")
    driver = relationship("Driver", back_populates="daily_records")


class Setting(Base):
    """Global key/value setting, stored as text"""

    __tablename__ = "setting"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
