"""
Test configuration for pytest

SQLite has no schemas, so the administrative connection and the tenant
connector are replaced by fakes that keep one in-memory SQLite database per
tenant schema. The global store is a shared in-memory SQLite database.
"""

import os

# Test environment variables, set before the application is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["EMAIL_BACKEND"] = "console"

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Dict, List, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from honeycert.core.config import Settings, get_settings
from honeycert.core.database import get_session
from honeycert.core.dates import utc_now
from honeycert.core.dependencies import (
    get_mail_transport,
    get_schema_manager,
    get_sms_sender,
    get_structure_applier,
    get_tenant_db,
)
from honeycert.core.exceptions import NamespaceExistsError, StructureApplicationError
from honeycert.main import app
from honeycert.models import AdminOTP, OTPPurpose, TenantSQLModel
from honeycert.services.provisioning import TenantProvisioner


def _memory_engine() -> AsyncEngine:
    return create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class FakeTenantDatabase:
    """One in-memory SQLite database per tenant schema"""

    def __init__(self):
        self.engines: Dict[str, AsyncEngine] = {}

    def attach(self, schema_name: str) -> None:
        self.engines[schema_name] = _memory_engine()

    async def detach(self, schema_name: str) -> None:
        engine = self.engines.pop(schema_name, None)
        if engine is not None:
            await engine.dispose()

    @asynccontextmanager
    async def session(self, schema_name: str):
        if schema_name not in self.engines:
            raise LookupError(f"schema {schema_name} does not exist")
        async with AsyncSession(self.engines[schema_name], expire_on_commit=False) as session:
            yield session


class FakeSchemaManager:
    def __init__(self, tenant_db: FakeTenantDatabase, fail_drop: bool = False):
        self.tenant_db = tenant_db
        self.fail_drop = fail_drop
        self.schemas = set()
        self.dropped: List[str] = []

    async def exists(self, schema_name: str) -> bool:
        return schema_name in self.schemas

    async def create(self, schema_name: str) -> None:
        if schema_name in self.schemas:
            raise NamespaceExistsError(schema_name)
        self.schemas.add(schema_name)
        self.tenant_db.attach(schema_name)

    async def drop(self, schema_name: str) -> None:
        if self.fail_drop:
            raise RuntimeError("administrative connection lost")
        self.schemas.discard(schema_name)
        self.dropped.append(schema_name)
        await self.tenant_db.detach(schema_name)

    async def list_schemas(self) -> List[str]:
        return sorted(self.schemas)


class FakeStructureApplier:
    def __init__(self, tenant_db: FakeTenantDatabase, fail: bool = False, create_tables: bool = True):
        self.tenant_db = tenant_db
        self.fail = fail
        self.create_tables = create_tables
        self.applied: List[str] = []

    async def apply(self, schema_name: str) -> None:
        if self.fail:
            raise StructureApplicationError("exit code 1: relation already exists")
        if self.create_tables:
            async with self.tenant_db.engines[schema_name].begin() as conn:
                await conn.run_sync(TenantSQLModel.metadata.create_all)
        self.applied.append(schema_name)


class RecordingMailTransport:
    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.sent: List[dict] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "html": html})
        return self.result


class RecordingSmsSender:
    def __init__(self, result: bool = True):
        self.result = result
        self.sent: List[dict] = []

    async def send(self, phone_number: str, message: str) -> bool:
        self.sent.append({"to": phone_number, "message": message})
        return self.result


@pytest.fixture
async def engine():
    """Clean global store for each test"""
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def tenant_db():
    tenant_db = FakeTenantDatabase()
    yield tenant_db
    for schema_name in list(tenant_db.engines):
        await tenant_db.detach(schema_name)


@pytest.fixture
def schema_manager(tenant_db):
    return FakeSchemaManager(tenant_db)


@pytest.fixture
def structure_applier(tenant_db):
    return FakeStructureApplier(tenant_db)


@pytest.fixture
def mail_transport():
    return RecordingMailTransport()


@pytest.fixture
def sms_sender():
    return RecordingSmsSender()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def provisioner(session, schema_manager, structure_applier, tenant_db, mail_transport, settings):
    return TenantProvisioner(
        session=session,
        schema_manager=schema_manager,
        structure_applier=structure_applier,
        tenant_db=tenant_db,
        mail_transport=mail_transport,
        settings=settings,
    )


@pytest.fixture
async def client(session_maker, schema_manager, structure_applier, tenant_db, mail_transport, sms_sender):
    """HTTP client against the app with every collaborator replaced"""

    async def override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_schema_manager] = lambda: schema_manager
    app.dependency_overrides[get_structure_applier] = lambda: structure_applier
    app.dependency_overrides[get_tenant_db] = lambda: tenant_db
    app.dependency_overrides[get_mail_transport] = lambda: mail_transport
    app.dependency_overrides[get_sms_sender] = lambda: sms_sender

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def override_settings():
    """Swap the settings seen by request handlers"""

    def apply(**values) -> Settings:
        custom = Settings(**values)
        app.dependency_overrides[get_settings] = lambda: custom
        return custom

    return apply


@pytest.fixture
def verified_phone(session_maker):
    """Store a used phone code, as left behind by a successful /api/otp/verify"""

    async def create(phone: str = "+15551234567", minutes_ago: int = 1) -> AdminOTP:
        issued = utc_now() - timedelta(minutes=minutes_ago)
        code = AdminOTP(
            identifier=phone,
            type=OTPPurpose.PHONE.value,
            otp="123456",
            expires_at=issued + timedelta(minutes=5),
            used_at=issued + timedelta(seconds=30),
            created_at=issued,
        )
        async with session_maker() as session:
            session.add(code)
            await session.commit()
            await session.refresh(code)
        return code

    return create


def email_registration(**overrides) -> dict:
    payload = {
        "firstname": "Ada",
        "lastname": "Lovelace",
        "email": "ada@example.com",
        "password": "correct-horse",
        "role": "admin",
    }
    payload.update(overrides)
    return payload


def phone_registration(**overrides) -> dict:
    payload = {
        "firstname": "Grace",
        "lastname": "Hopper",
        "phonenumber": "+15551234567",
        "password": "correct-horse",
        "role": "admin",
        "phoneVerified": True,
    }
    payload.update(overrides)
    return payload
