import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["DEBUG"] = "true"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["AUTO_CREATE_TABLES"] = "false"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import rentledger.models  # noqa: F401
from rentledger.main import app
from rentledger.database import Base, get_session
from rentledger.auth.jwt import auth_service
from rentledger.models import (
	Person, Capability, Building, Flat, Meter, MeterType, MeterReadingUpdate,
	AdditionalCost, Distribution, Frequency,
)
from rentledger.services.errors import InvoiceRenderingError
from rentledger.services.invoice_renderer import get_invoice_renderer

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeRenderer:
	"""Stands in for WeasyPrint; records what it rendered."""

	def __init__(self):
		self.fail = False
		self.rendered = []

	def render(self, invoice, flat, building) -> bytes:
		if self.fail:
			raise InvoiceRenderingError("Invoice PDF rendering failed: boom")
		self.rendered.append(invoice.id)
		return b"%PDF-fake"


@pytest.fixture
async def engine():
	"""Fresh in-memory database per test"""
	engine = create_async_engine(
		TEST_DATABASE_URL,
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
	)

	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)

	yield engine

	await engine.dispose()


@pytest.fixture
def session_factory(engine):
	return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
	"""Session used by fixtures to seed data"""
	async with session_factory() as session:
		yield session


@pytest.fixture
def fake_renderer() -> FakeRenderer:
	return FakeRenderer()


@pytest.fixture
async def client(session_factory, fake_renderer) -> AsyncGenerator[AsyncClient, None]:
	"""Test client; every request gets its own session, like in production"""

	async def override_get_session():
		async with session_factory() as session:
			try:
				yield session
				await session.commit()
			except Exception:
				await session.rollback()
				raise

	app.dependency_overrides[get_session] = override_get_session
	app.dependency_overrides[get_invoice_renderer] = lambda: fake_renderer

	async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
		yield client

	app.dependency_overrides.clear()


async def _person(db_session, email, first_name, last_name, capabilities, password="testpass123") -> Person:
	person = Person(
		email=email,
		hashed_password=auth_service.hash_password(password),
		first_name=first_name,
		last_name=last_name,
		phone_number="+49 30 1234567",
		capabilities=capabilities,
		is_active=True,
	)
	db_session.add(person)
	await db_session.commit()
	return person


@pytest.fixture
async def landlord(db_session: AsyncSession) -> Person:
	return await _person(db_session, "landlord@example.com", "Lena", "Lord", [Capability.LANDLORD.value])


@pytest.fixture
async def tenant(db_session: AsyncSession) -> Person:
	return await _person(db_session, "tenant@example.com", "Tim", "Tenant", [Capability.TENANT.value])


@pytest.fixture
async def stranger(db_session: AsyncSession) -> Person:
	return await _person(db_session, "stranger@example.com", "Sam", "Stranger", [])


def token_for(person: Person) -> str:
	return auth_service.create_access_token({"sub": str(person.id)})


@pytest.fixture
def landlord_headers(landlord: Person) -> dict:
	return {"Authorization": f"Bearer {token_for(landlord)}"}


@pytest.fixture
def tenant_headers(tenant: Person) -> dict:
	return {"Authorization": f"Bearer {token_for(tenant)}"}


@pytest.fixture
def stranger_headers(stranger: Person) -> dict:
	return {"Authorization": f"Bearer {token_for(stranger)}"}


@pytest.fixture
async def rented_building(db_session: AsyncSession, landlord: Person, tenant: Person) -> Building:
	"""One building, one rented flat (100 m², 2 residents, 300 cold rent), one GAS meter
	read at 1000 and 2000 within the last year, one monthly operating cost of 25 split by flat."""
	now = datetime.now(timezone.utc)

	building = Building(landlord_id=landlord.id)
	building.set_address("Hauptstraße 1", "10115", "Berlin", "Berlin", "Germany")

	flat = Flat(
		location="1st floor left",
		rooms=3,
		square_meter=100,
		residents=2,
		cold_rent=300.0,
		warm_rent=450.0,
		tenant_id=tenant.id,
	)
	meter = Meter(meter_number="GAS-001", type=MeterType.GAS, reading=2000, cost_per_unit=0.48, base_cost=12.50)
	meter.reading_updates = [
		MeterReadingUpdate(reading=1000, recorded_at=now - timedelta(days=330)),
		MeterReadingUpdate(reading=2000, recorded_at=now - timedelta(days=30), recorded_by_id=tenant.id),
	]
	flat.meters = [meter]
	flat.addition_costs = [
		AdditionalCost(name="Garage", amount=40.0, distribution=None, frequency=Frequency.MONTHLY),
	]
	building.flats = [flat]
	building.operating_costs = [
		AdditionalCost(name="Cleaning", amount=25.0, distribution=Distribution.BY_FLAT, frequency=Frequency.MONTHLY),
	]

	db_session.add(building)
	await db_session.commit()
	return building
