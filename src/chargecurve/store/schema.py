"""Table definitions for sessions and curve samples."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
)

metadata = MetaData()

charge = Table(
    "charge",
    metadata,
    Column("charge_id", String(64), primary_key=True),
    Column("vehicle_id", String(64), nullable=False),
    Column("location_id", String(64), nullable=False),
    Column("start_level", Integer, nullable=True),
    Column("target_level", Integer, nullable=True),
    Column("end_level", Integer, nullable=True),
    Column("estimate_minutes", Float, nullable=True),
    Index("ix_charge_vehicle_location", "vehicle_id", "location_id"),
)

# Samples are linked to their session by charge_id only. Sessions are removed
# by the vehicle/location lifecycle outside this package; samples left behind
# are collected by the orphan sweeper.
charge_curve = Table(
    "charge_curve",
    metadata,
    Column("vehicle_id", String(64), nullable=False),
    Column("level", Integer, nullable=False),
    Column("charge_id", String(64), nullable=False),
    Column("duration", Float, nullable=False),
    Column("outside_deci_temperature", Integer, nullable=True),
    Column("energy_used", Float, nullable=True),
    Column("energy_added", Float, nullable=True),
    PrimaryKeyConstraint("vehicle_id", "level", "charge_id", name="pk_charge_curve"),
    CheckConstraint("level >= 0 AND level <= 100", name="ck_charge_curve_level"),
    CheckConstraint("duration >= 0", name="ck_charge_curve_duration"),
    Index("ix_charge_curve_charge", "charge_id"),
)

SAMPLE_KEY_COLUMNS = ("vehicle_id", "level", "charge_id")
