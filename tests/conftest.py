# tests/conftest.py
"""Shared fixtures: a throwaway SQLite database seeded with two subsidiaries."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.database import create_tables
from app.models import (
    Subsidiary, UserProfile, UserSubsidiaryPermission, Vehicle, Driver, VehicleDocument,
    FuelLog, MaintenanceLog, MaintenancePartUsed, OdometerReading, FuelTank, Budget, Vendor, FuelPurchase,
)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'fleet.db'}", connect_args={"check_same_thread": False})
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    """
    Two active subsidiaries (Alpha=1, Beta=2) plus an inactive one (3).
    Fuel/maintenance/odometer rows in both overlap in time but have disjoint ids.
    Users: 1 super-admin, 2 full on Alpha + read-only on Beta, 3 no grants, 4 fuel-only on Alpha.
    """
    db.add_all([
        Subsidiary(id=1, subsidiary_name="Alpha Builders", subsidiary_code="ALP", business_type="construction"),
        Subsidiary(id=2, subsidiary_name="Beta Hotels", subsidiary_code="BET", business_type="hospitality"),
        Subsidiary(id=3, subsidiary_name="Closed Co", subsidiary_code="CLO", is_active=False),
    ])
    db.add_all([
        UserProfile(id=1, full_name="Root", email="root@example.com", is_super_admin=True),
        UserProfile(id=2, full_name="Asha", email="asha@example.com", default_subsidiary_id=2),
        UserProfile(id=3, full_name="Nobody", email="nobody@example.com"),
        UserProfile(id=4, full_name="Fuel Clerk", email="fuel@example.com"),
    ])
    db.add_all([
        UserSubsidiaryPermission(user_id=2, subsidiary_id=1, permission_level="full_access"),
        UserSubsidiaryPermission(user_id=2, subsidiary_id=2, permission_level="read_only_access"),
        UserSubsidiaryPermission(user_id=4, subsidiary_id=1, permission_level="fuel_only_access"),
    ])
    db.add_all([
        Vehicle(id=10, vehicle_number="ALP-001", make="Tata", model="Ace", subsidiary_id=1,
                insurance_expiry=date(2026, 10, 25)),
        Vehicle(id=11, vehicle_number="ALP-002", make="Ashok", model="Dost", subsidiary_id=1),
        Vehicle(id=20, vehicle_number="BET-001", make="Force", model="Traveller", subsidiary_id=2),
    ])
    db.add_all([
        Driver(id=100, name="Ravi", license_expiry=date(2026, 10, 18), subsidiary_id=1),
        Driver(id=200, name="Meena", license_expiry=date(2027, 6, 1), subsidiary_id=2),
    ])
    db.add(VehicleDocument(id=500, vehicle_id=20, document_name="Permit", document_type="permit",
                           expiry_date=date(2026, 10, 29), subsidiary_id=2))
    db.add_all([
        FuelLog(id=1000, date=date(2026, 9, 1), vehicle_id=10, driver_id=100, fuel_volume=40,
                total_cost=4000, km_driven=400, fuel_type="diesel", subsidiary_id=1),
        FuelLog(id=1001, date=date(2026, 10, 1), vehicle_id=11, fuel_volume=30,
                total_cost=3000, km_driven=270, fuel_type="diesel", subsidiary_id=1),
        FuelLog(id=2000, date=date(2026, 9, 15), vehicle_id=20, driver_id=200, fuel_volume=50,
                total_cost=5200, km_driven=600, fuel_type="petrol", subsidiary_id=2),
        FuelLog(id=2001, date=date(2026, 10, 5), vehicle_id=20, fuel_volume=0,
                total_cost=0, km_driven=0, subsidiary_id=2),
    ])
    job = MaintenanceLog(id=3000, maintenance_date=date(2026, 9, 20), vehicle_id=10,
                         maintenance_type="scheduled", total_cost=2500, labor_cost=1000, subsidiary_id=1)
    job.parts_used = [MaintenancePartUsed(id=1, part_name="Oil Filter", quantity=1, total_cost=500),
                      MaintenancePartUsed(id=2, part_name="Brake Pad", quantity=2, total_cost=1000)]
    db.add_all([
        job,
        MaintenanceLog(id=4000, maintenance_date=date(2026, 9, 25), vehicle_id=20, vendor_id=60,
                       maintenance_type="breakdown", total_cost=1800, labor_cost=1800, subsidiary_id=2),
    ])
    db.add_all([
        OdometerReading(id=1, reading_date=date(2026, 9, 1), vehicle_id=10, odometer_reading=10000, subsidiary_id=1),
        OdometerReading(id=2, reading_date=date(2026, 10, 1), vehicle_id=10, odometer_reading=10670, subsidiary_id=1),
        OdometerReading(id=3, reading_date=date(2026, 9, 1), vehicle_id=20, odometer_reading=5000, subsidiary_id=2),
        OdometerReading(id=4, reading_date=date(2026, 10, 1), vehicle_id=20, odometer_reading=5600, subsidiary_id=2),
    ])
    db.add_all([
        FuelTank(id=1, fuel_type="diesel", current_volume=40, capacity=1000, low_threshold=200, subsidiary_id=1),
        FuelTank(id=2, fuel_type="petrol", current_volume=900, capacity=1000, low_threshold=200, subsidiary_id=2),
    ])
    db.add_all([
        Budget(id=1, category="fuel", period_start=date(2026, 9, 1), period_end=date(2026, 9, 30),
               budgeted_amount=5000, actual_amount=4000, subsidiary_id=1),
        Budget(id=2, category="maintenance", period_start=date(2026, 9, 1), period_end=date(2026, 9, 30),
               budgeted_amount=1500, actual_amount=1800, subsidiary_id=2),
    ])
    db.add_all([
        Vendor(id=50, name="Alpha Fuels", category="fuel", subsidiary_id=1),
        Vendor(id=60, name="Beta Motors", category="maintenance", subsidiary_id=2),
    ])
    db.add(FuelPurchase(id=1, vendor_id=50, purchase_date=date(2026, 10, 10), quantity=500,
                        total_cost=48000, subsidiary_id=1))
    db.commit()
    return db
