"""Tests for the automation HTTP API."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import auth_headers, create_automation
from parrotflow.auth.models import User
from parrotflow.automations.dependencies import get_workflow_executor
from parrotflow.automations.models import AutomationExecution, TriggerType
from parrotflow.automations.service import AutomationService
from parrotflow.integrations.models import Task, TaskActivity

EXECUTE_URL = "/api/automations/execute"
GENERATE_URL = "/api/automations/webhooks/generate"


def task_graph(prefix="n"):
    """Trigger feeding a create_task node; node ids are unique per prefix."""
    return {
        "nodes": [
            {"id": f"{prefix}-trigger", "node_type": "trigger", "order_index": 0},
            {
                "id": f"{prefix}-task",
                "node_type": "action",
                "node_subtype": "create_task",
                "order_index": 1,
                "config": {"priority": "high"},
            },
        ],
        "connections": [{"source_node_id": f"{prefix}-trigger", "target_node_id": f"{prefix}-task"}],
    }


@pytest_asyncio.fixture
async def automation(test_session, owner):
    return await create_automation(test_session, owner, **task_graph())


async def make_user(session, role="user", company_id="space-2"):
    user = User(id=str(uuid4()), email=f"{uuid4().hex}@example.com", role=role, company_id=company_id)
    session.add(user)
    await session.commit()
    return user


async def executions_for(session, automation_id):
    result = await session.execute(
        select(AutomationExecution)
        .where(AutomationExecution.automation_id == automation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().all()


def failing_executor(error):
    executor = MagicMock()
    executor.execute_workflow = AsyncMock(side_effect=error)
    return executor


@pytest.mark.integration
class TestExecuteAutomation:
    """POST /api/automations/execute"""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, async_client, automation):
        response = await async_client.post(EXECUTE_URL, json={"automationId": automation.id})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self, async_client, automation):
        response = await async_client.post(
            EXECUTE_URL,
            json={"automationId": automation.id},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_requires_automation_id(self, async_client, owner):
        response = await async_client.post(EXECUTE_URL, json={}, headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Automation ID is required"}

    @pytest.mark.asyncio
    async def test_missing_body(self, async_client, owner):
        response = await async_client.post(EXECUTE_URL, headers=auth_headers(owner))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_automation(self, async_client, owner):
        response = await async_client.post(
            EXECUTE_URL, json={"automationId": str(uuid4())}, headers=auth_headers(owner)
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Automation not found or not active"}

    @pytest.mark.asyncio
    async def test_inactive_automation(self, async_client, test_session, owner):
        inactive = await create_automation(test_session, owner, is_active=False, **task_graph("i"))

        response = await async_client.post(
            EXECUTE_URL, json={"automationId": inactive.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_outsider_is_denied(self, async_client, test_session, automation):
        outsider = await make_user(test_session)

        response = await async_client.post(
            EXECUTE_URL, json={"automationId": automation.id}, headers=auth_headers(outsider)
        )

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Access denied"}
        assert await executions_for(test_session, automation.id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role,company_id", [("admin", "space-2"), ("system_admin", None), ("user", "space-1")])
    async def test_admins_and_space_members_may_run(self, async_client, test_session, automation, role, company_id):
        member = await make_user(test_session, role=role, company_id=company_id)

        response = await async_client.post(
            EXECUTE_URL, json={"automationId": automation.id}, headers=auth_headers(member)
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_successful_run(self, async_client, test_session, owner, automation):
        response = await async_client.post(
            EXECUTE_URL,
            json={"automationId": automation.id, "triggerData": {"title": "Onboard client"}},
            headers=auth_headers(owner),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["executionId"]
        assert body["result"]["success"] is True

        results = body["result"]["results"]
        assert [r["nodeId"] for r in results] == ["n-trigger", "n-task"]
        assert results[0]["output"] == {"success": True, "data": {"title": "Onboard client"}}
        task_output = results[1]["output"]
        assert task_output["success"] is True
        assert task_output["task"]["priority"] == "high"
        assert task_output["task"]["project_id"] == "space-1"
        assert task_output["task"]["created_by"] == owner.id

        task = await test_session.get(Task, task_output["taskId"])
        assert task is not None
        activities = (await test_session.execute(select(TaskActivity))).scalars().all()
        assert [a.action for a in activities] == ["created"]

        [execution] = await executions_for(test_session, automation.id)
        assert execution.id == body["executionId"]
        assert execution.status == "completed"
        assert execution.trigger_data == {"title": "Onboard client"}
        assert execution.completed_at is not None
        assert execution.execution_time_ms >= 0
        assert execution.error_message is None
        assert execution.execution_data["result"] == body["result"]
        assert [n["id"] for n in execution.execution_data["nodes"]] == ["n-trigger", "n-task"]

        await test_session.refresh(automation)
        assert automation.run_count == 1
        assert automation.success_count == 1
        assert automation.failure_count == 0
        assert automation.last_run_at is not None

    @pytest.mark.asyncio
    async def test_missing_trigger_data_defaults_to_empty_object(self, async_client, test_session, owner, automation):
        response = await async_client.post(
            EXECUTE_URL, json={"automationId": automation.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        [execution] = await executions_for(test_session, automation.id)
        assert execution.trigger_data == {}

    @pytest.mark.asyncio
    async def test_array_trigger_data_is_kept(self, async_client, test_session, owner, automation):
        response = await async_client.post(
            EXECUTE_URL, json={"automationId": automation.id, "triggerData": []}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["result"]["results"][0]["output"] == {"success": True, "data": []}
        [execution] = await executions_for(test_session, automation.id)
        assert execution.trigger_data == []

    @pytest.mark.asyncio
    async def test_anonymous_request_with_numeric_id(self, async_client):
        response = await async_client.post(EXECUTE_URL, json={"automationId": 42})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_numeric_automation_id_is_looked_up_as_text(self, async_client, owner):
        response = await async_client.post(EXECUTE_URL, json={"automationId": 42}, headers=auth_headers(owner))

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Automation not found or not active"}

    @pytest.mark.asyncio
    async def test_non_object_body_has_no_automation_id(self, async_client, owner):
        response = await async_client.post(EXECUTE_URL, json=["x"], headers=auth_headers(owner))

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Automation ID is required"}

    @pytest.mark.asyncio
    async def test_malformed_json_is_a_server_error(self, async_client, owner):
        response = await async_client.post(
            EXECUTE_URL,
            content="{not json",
            headers={**auth_headers(owner), "Content-Type": "application/json"},
        )

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"]
        assert set(body) == {"success", "error"}

    @pytest.mark.asyncio
    async def test_anonymous_malformed_json_is_unauthorized(self, async_client):
        response = await async_client.post(
            EXECUTE_URL, content="{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_graph_without_trigger_is_recorded_as_failed(self, async_client, test_session, owner):
        no_trigger = await create_automation(
            test_session,
            owner,
            nodes=[{"id": "only-action", "node_type": "action", "order_index": 0}],
        )

        response = await async_client.post(
            EXECUTE_URL, json={"automationId": no_trigger.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["result"] == {"success": False, "error": "No trigger node found"}

        [execution] = await executions_for(test_session, no_trigger.id)
        assert execution.status == "failed"
        assert execution.error_message == "No trigger node found"

        await test_session.refresh(no_trigger)
        assert no_trigger.run_count == 1
        assert no_trigger.failure_count == 1
        assert no_trigger.success_count == 0

    @pytest.mark.asyncio
    async def test_executor_exception_finalises_record(self, async_client, test_app, test_session, owner, automation):
        test_app.dependency_overrides[get_workflow_executor] = lambda: failing_executor(RuntimeError("boom"))

        response = await async_client.post(
            EXECUTE_URL, json={"automationId": automation.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "boom"}

        [execution] = await executions_for(test_session, automation.id)
        assert execution.status == "failed"
        assert execution.error_message == "boom"
        assert execution.completed_at is not None

        await test_session.refresh(automation)
        assert automation.run_count == 1
        assert automation.failure_count == 1

    @pytest.mark.asyncio
    async def test_execution_record_failure(self, async_client, test_session, owner, automation):
        error = OperationalError("INSERT", {}, Exception("database is locked"))

        with patch.object(test_session, "commit", new=AsyncMock(side_effect=error)):
            response = await async_client.post(
                EXECUTE_URL, json={"automationId": automation.id}, headers=auth_headers(owner)
            )

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to create execution record"}


@pytest.mark.integration
class TestAutomationLoading:
    """Graph loading order."""

    @pytest.mark.asyncio
    async def test_equal_order_index_is_broken_by_id(self, test_session, owner):
        automation = await create_automation(
            test_session,
            owner,
            nodes=[
                {"id": "o-trigger", "node_type": "trigger", "order_index": 0},
                {"id": "o-b", "node_type": "action", "order_index": 1},
                {"id": "o-a", "node_type": "action", "order_index": 1},
            ],
            connections=[
                {"id": "c-2", "source_node_id": "o-trigger", "target_node_id": "o-b", "order_index": 0},
                {"id": "c-3", "source_node_id": "o-a", "target_node_id": "o-b", "order_index": 0},
                {"id": "c-1", "source_node_id": "o-trigger", "target_node_id": "o-a", "order_index": 0},
            ],
        )
        test_session.expunge_all()

        loaded = await AutomationService(test_session).get_active_automation(automation.id)

        assert [n.id for n in loaded.nodes] == ["o-trigger", "o-a", "o-b"]
        assert [c.id for c in loaded.connections] == ["c-1", "c-2", "c-3"]


@pytest.mark.integration
class TestWebhookRoutes:
    """Inbound webhooks and webhook URL generation."""

    @pytest_asyncio.fixture
    async def webhook_automation(self, test_session, owner):
        return await create_automation(
            test_session,
            owner,
            trigger_type=TriggerType.WEBHOOK.value,
            trigger_config={"webhook_token": "tok-123"},
            **task_graph("w"),
        )

    @pytest.mark.asyncio
    async def test_generate_returns_existing_token(self, async_client, owner, webhook_automation):
        response = await async_client.post(
            GENERATE_URL, json={"automationId": webhook_automation.id}, headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "url": "http://test/api/automations/webhook/tok-123",
            "token": "tok-123",
        }

    @pytest.mark.asyncio
    async def test_generate_creates_and_stores_token(self, async_client, test_session, owner):
        fresh = await create_automation(
            test_session, owner, trigger_type=TriggerType.WEBHOOK.value, **task_graph("f")
        )

        first = await async_client.post(GENERATE_URL, json={"automationId": fresh.id}, headers=auth_headers(owner))
        second = await async_client.post(GENERATE_URL, json={"automationId": fresh.id}, headers=auth_headers(owner))

        token = first.json()["token"]
        assert token
        assert second.json()["token"] == token
        assert first.json()["url"].endswith(f"/api/automations/webhook/{token}")

        await test_session.refresh(fresh)
        assert fresh.trigger_config["webhook_token"] == token

    @pytest.mark.asyncio
    async def test_generate_validation(self, async_client, test_session, owner, automation, webhook_automation):
        stranger = await make_user(test_session, role="admin")

        unauthenticated = await async_client.post(GENERATE_URL, json={"automationId": webhook_automation.id})
        missing_id = await async_client.post(GENERATE_URL, json={}, headers=auth_headers(owner))
        not_owner = await async_client.post(
            GENERATE_URL, json={"automationId": webhook_automation.id}, headers=auth_headers(stranger)
        )
        wrong_trigger = await async_client.post(
            GENERATE_URL, json={"automationId": automation.id}, headers=auth_headers(owner)
        )

        assert unauthenticated.status_code == 401
        assert missing_id.status_code == 400
        assert not_owner.status_code == 404
        assert not_owner.json()["error"] == "Automation not found"
        assert wrong_trigger.status_code == 400
        assert wrong_trigger.json()["error"] == "Automation must have webhook trigger type"

    @pytest.mark.asyncio
    async def test_generate_rejects_malformed_body(self, async_client, owner):
        response = await async_client.post(
            GENERATE_URL,
            content="{not json",
            headers={**auth_headers(owner), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert set(body) == {"success", "error"}

    @pytest.mark.asyncio
    async def test_generate_accepts_numeric_id(self, async_client, owner):
        response = await async_client.post(GENERATE_URL, json={"automationId": 7}, headers=auth_headers(owner))

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Automation not found"}

    @pytest.mark.asyncio
    async def test_json_webhook_runs_automation(self, async_client, test_session, owner, webhook_automation):
        response = await async_client.post(
            "/api/automations/webhook/tok-123", json={"title": "From webhook"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Webhook received and automation triggered"

        [execution] = await executions_for(test_session, webhook_automation.id)
        assert execution.id == body["executionId"]
        assert execution.status == "completed"
        assert execution.trigger_data["title"] == "From webhook"
        assert execution.trigger_data["_webhook"]["method"] == "POST"
        assert execution.trigger_data["_webhook"]["received_at"]

        task_output = execution.execution_data["result"]["results"][1]["output"]
        assert task_output["task"]["title"] == "New Task"
        assert task_output["task"]["created_by"] == owner.id

    @pytest.mark.asyncio
    async def test_text_webhook_keeps_raw_body(self, async_client, test_session, webhook_automation):
        response = await async_client.post(
            "/api/automations/webhook/tok-123",
            content="ping",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 200
        [execution] = await executions_for(test_session, webhook_automation.id)
        assert execution.trigger_data["raw"] == "ping"
        assert execution.trigger_data["headers"]["content-type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_empty_webhook_body(self, async_client, test_session, webhook_automation):
        response = await async_client.post("/api/automations/webhook/tok-123")

        assert response.status_code == 200
        [execution] = await executions_for(test_session, webhook_automation.id)
        assert set(execution.trigger_data) == {"_webhook"}

    @pytest.mark.asyncio
    async def test_unknown_or_inactive_webhook(self, async_client, test_session, webhook_automation):
        unknown = await async_client.post("/api/automations/webhook/nope", json={})

        webhook_automation.is_active = False
        await test_session.commit()
        inactive = await async_client.post("/api/automations/webhook/tok-123", json={})

        for response in (unknown, inactive):
            assert response.status_code == 404
            assert response.json() == {"success": False, "error": "Webhook not found or automation inactive"}

    @pytest.mark.asyncio
    async def test_webhook_failure_is_generic(self, async_client, test_app, webhook_automation):
        test_app.dependency_overrides[get_workflow_executor] = lambda: failing_executor(RuntimeError("boom"))

        response = await async_client.post("/api/automations/webhook/tok-123", json={})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Webhook processing failed"}
