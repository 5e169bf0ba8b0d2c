"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "testing"
os.environ.pop("SMTP_HOST", None)

from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from parrotflow.auth.models import User
from parrotflow.auth.security import token_manager
from parrotflow.automations.dependencies import get_email_sender
from parrotflow.automations.models import (
    Automation,
    AutomationConnection,
    AutomationNode,
    TriggerType,
)
from parrotflow.database import Base
from parrotflow.database_deps import get_db
from parrotflow.executor import WorkflowConnectionSpec, WorkflowNodeSpec
from parrotflow.integrations import EmailResult
from parrotflow.main import app


@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine):
    """Create test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


class FakeEmailSender:
    """Records outgoing emails instead of delivering them."""

    def __init__(self, result: Optional[EmailResult] = None):
        self.result = result or EmailResult(success=True)
        self.invoices: List[Any] = []
        self.invitations: List[Any] = []

    async def send_invoice_email(self, payload):
        self.invoices.append(payload)
        return self.result

    async def send_invitation_email(self, payload):
        self.invitations.append(payload)
        return self.result


class FakeTaskCreator:
    """Returns canned tasks and records what it was asked to create."""

    def __init__(self, task: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.task = task
        self.error = error
        self.calls: List[Any] = []

    async def create_task(self, task_fields, user_id):
        self.calls.append((task_fields, user_id))
        if self.error is not None:
            raise self.error
        if self.task is None:
            return None
        return {**task_fields, **self.task}


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def task_creator():
    return FakeTaskCreator(task={"id": "task-1"})


@pytest_asyncio.fixture
async def test_app(test_session, email_sender):
    """Create test FastAPI app with overridden dependencies."""

    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create async test client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def owner(test_session):
    """Persisted automation owner."""
    user = User(id=str(uuid4()), email="owner@example.com", full_name="Owner", company_id="space-1")
    test_session.add(user)
    await test_session.commit()
    return user


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer header for ``user``."""
    token = token_manager.create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


async def create_automation(
    session: AsyncSession,
    user: User,
    nodes: List[Dict[str, Any]],
    connections: Optional[List[Dict[str, Any]]] = None,
    **overrides: Any,
) -> Automation:
    """Persist an automation graph built from plain dicts."""
    fields = {
        "name": "Test Automation",
        "user_id": user.id,
        "space_id": user.company_id,
        "trigger_type": TriggerType.MANUAL.value,
        "trigger_config": {},
    }
    fields.update(overrides)

    automation = Automation(id=str(uuid4()), **fields)
    automation.nodes = [AutomationNode(**node) for node in nodes]
    automation.connections = [
        AutomationConnection(**{"order_index": index, **conn})
        for index, conn in enumerate(connections or [])
    ]
    session.add(automation)
    await session.commit()
    return automation


# Graph builders for executor tests
def node(node_id: str, order_index: int = 0, node_type: str = "action",
         node_subtype: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> WorkflowNodeSpec:
    return WorkflowNodeSpec(
        id=node_id,
        node_type=node_type,
        node_subtype=node_subtype,
        order_index=order_index,
        config=config or {},
    )


def trigger(node_id: str = "trigger", order_index: int = 0) -> WorkflowNodeSpec:
    return node(node_id, order_index=order_index, node_type="trigger")


def connection(source: str, target: str, condition_type: Optional[str] = None,
               condition_config: Any = None) -> WorkflowConnectionSpec:
    return WorkflowConnectionSpec(
        source_node_id=source,
        target_node_id=target,
        condition_type=condition_type,
        condition_config=condition_config,
    )
