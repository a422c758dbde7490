"""Shared fixtures: every store-backed test runs against both backends."""

import pytest

from myventi import RecordStore, VentiConfig, create_context


@pytest.fixture(params=["sqlite", "memory"])
def engine(request):
    return request.param


@pytest.fixture
def store(engine, tmp_path):
    store = RecordStore(db_path=str(tmp_path / "venti.db"), engine=engine).init()
    yield store
    store.close()


@pytest.fixture
def ctx(engine, tmp_path):
    config = VentiConfig(db_path=str(tmp_path / "venti.db"), engine=engine, region="US")
    context = create_context(config)
    yield context
    context.close()


def vehicle_form(**overrides):
    form = {"name": "Daily", "year": 2020, "make": "Toyota", "model": "Camry", "type": "gas"}
    form.update(overrides)
    return form


def fuel_form(vehicle_id, **overrides):
    form = {
        "vehicle_id": vehicle_id,
        "date": "2024-01-10",
        "amount": 40.0,
        "quantity": 10.0,
        "price_per_unit": 4.0,
        "mileage": 1000,
    }
    form.update(overrides)
    return form


def service_form(vehicle_id, **overrides):
    form = {
        "vehicle_id": vehicle_id,
        "date": "2024-01-15",
        "type": "Oil Change",
        "description": "Synthetic oil and filter",
        "cost": 75.5,
        "mileage": 1200,
    }
    form.update(overrides)
    return form


@pytest.fixture
def car(ctx):
    return ctx.vehicles.create(vehicle_form())


@pytest.fixture
def ev(ctx):
    return ctx.vehicles.create(vehicle_form(name="Leaf", make="Nissan", model="Leaf", type="electric"))
