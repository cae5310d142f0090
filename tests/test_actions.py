"""Tests for the HR action dispatcher and its degrade-on-failure policy."""

import asyncio
import json
from datetime import date

import httpx
import pytest

from hr_assistant.actions import (
    ActionContext,
    ActionOutcome,
    ActionRequest,
    is_actionable,
)
from hr_assistant.actions.dispatcher import leave_window, payslip_period, search_query
from hr_assistant.actions.formatters import format_currency, month_name
from hr_assistant.nlp import EntityExtractor

from tests.conftest import EMPLOYEE, NOW, TENANT, make_dispatcher

CONTEXT = ActionContext(tenant_id=TENANT, employee_id=EMPLOYEE, token="secret-token")


class FakeHRServices:
    """Answers HR service calls from a path -> payload table and records requests."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = self.routes.get(request.url.path)
        if payload is None:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json={"data": payload})


# ===========================
# Allowlist
# ===========================

def test_actionable_allowlist():
    assert is_actionable("leave.check_balance")
    assert is_actionable("employee.search")
    assert not is_actionable("payroll.tax")
    assert not is_actionable("greeting")


# ===========================
# Degrade-on-failure
# ===========================

@pytest.mark.asyncio
async def test_balance_with_service_down_is_synthetic_success(down_dispatcher):
    result = await down_dispatcher.dispatch(
        ActionRequest(intent="leave.check_balance"), CONTEXT
    )

    assert result.is_success
    assert result.outcome == ActionOutcome.SYNTHETIC
    assert result.data["annual"] == {"total": 21, "used": 5, "remaining": 16}
    assert result.message.startswith("Here's your leave balance:")
    assert "16 days remaining" in result.message
    assert result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("intent", sorted([
    "leave.check_balance",
    "leave.apply",
    "leave.status",
    "attendance.check_in",
    "attendance.check_out",
    "attendance.status",
    "payroll.salary",
    "payroll.payslip",
    "employee.profile",
    "employee.search",
]))
async def test_every_action_degrades_to_synthetic(down_dispatcher, intent):
    result = await down_dispatcher.dispatch(
        ActionRequest(intent=intent, utterance="find employee Ada"), CONTEXT
    )

    assert result.is_success
    assert result.is_synthetic
    assert result.message
    text = result.message.lower()
    for wording in ("couldn't", "right now", "try again", "unavailable", "error", "fail"):
        assert wording not in text


@pytest.mark.asyncio
async def test_degraded_search_reads_as_empty_result(down_dispatcher):
    result = await down_dispatcher.dispatch(
        ActionRequest(intent="employee.search", utterance="find employee named Priya"), CONTEXT
    )

    assert result.is_synthetic
    assert result.data == []
    assert result.message == 'No employees found matching "Priya". Please try a different search term.'


@pytest.mark.asyncio
async def test_slow_service_times_out_to_synthetic(settings, clock):
    async def slow(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={"data": {}})

    settings.action_timeout_seconds = 0.05
    dispatcher = make_dispatcher(settings, httpx.MockTransport(slow), clock)

    result = await dispatcher.dispatch(ActionRequest(intent="payroll.salary"), CONTEXT)

    assert result.outcome == ActionOutcome.SYNTHETIC
    assert result.data["netSalary"] == 57000
    assert "$57,000.00" in result.message


@pytest.mark.asyncio
async def test_unknown_action_is_unsupported(down_dispatcher):
    result = await down_dispatcher.dispatch(ActionRequest(intent="payroll.tax"), CONTEXT)

    assert result.outcome == ActionOutcome.UNSUPPORTED
    assert not result.is_success


# ===========================
# Live calls
# ===========================

@pytest.mark.asyncio
async def test_live_balance_is_formatted_and_forwards_token(settings, clock):
    services = FakeHRServices({
        f"/{TENANT}/employees/{EMPLOYEE}/balance": {
            "annual": {"total": 20, "used": 2, "remaining": 18},
        },
    })
    dispatcher = make_dispatcher(settings, httpx.MockTransport(services), clock)

    result = await dispatcher.dispatch(ActionRequest(intent="leave.check_balance"), CONTEXT)

    assert result.outcome == ActionOutcome.LIVE
    assert result.error is None
    assert "**annual**: 18 days remaining (2 used of 20)" in result.message
    request = services.requests[0]
    assert request.headers["authorization"] == "Bearer secret-token"
    assert request.url.host == "localhost"
    assert request.url.port == 3005


@pytest.mark.asyncio
async def test_live_apply_leave_sends_derived_dates(settings, clock):
    services = FakeHRServices({f"/{TENANT}/leaves": {"id": "LV-1", "status": "pending"}})
    dispatcher = make_dispatcher(settings, httpx.MockTransport(services), clock)
    utterance = "apply for sick leave tomorrow for 3 days"
    entities = EntityExtractor().extract(utterance, today=NOW.date())

    result = await dispatcher.dispatch(
        ActionRequest(intent="leave.apply", entities=entities, utterance=utterance), CONTEXT
    )

    assert result.outcome == ActionOutcome.LIVE
    body = json.loads(services.requests[0].content)
    assert body == {
        "employeeId": EMPLOYEE,
        "leaveType": "sick",
        "startDate": "2026-10-20",
        "endDate": "2026-10-22",
        "reason": utterance,
    }
    assert "submitted successfully" in result.message


@pytest.mark.asyncio
async def test_live_pending_leaves_empty(settings, clock):
    services = FakeHRServices({f"/{TENANT}/employees/{EMPLOYEE}/leaves": []})
    dispatcher = make_dispatcher(settings, httpx.MockTransport(services), clock)

    result = await dispatcher.dispatch(ActionRequest(intent="leave.status"), CONTEXT)

    assert result.outcome == ActionOutcome.LIVE
    assert result.message == "You have no pending leave requests."
    assert services.requests[0].url.params["status"] == "pending"


@pytest.mark.asyncio
async def test_live_payslip_queries_requested_month(settings, clock):
    services = FakeHRServices({f"/{TENANT}/employees/{EMPLOYEE}/payslip": {"net": 4200}})
    dispatcher = make_dispatcher(settings, httpx.MockTransport(services), clock)

    result = await dispatcher.dispatch(
        ActionRequest(
            intent="payroll.payslip",
            entities={"month": "March", "number": "2025"},
        ),
        CONTEXT,
    )

    assert result.outcome == ActionOutcome.LIVE
    params = services.requests[0].url.params
    assert (params["month"], params["year"]) == ("3", "2025")
    assert "March 2025" in result.message


@pytest.mark.asyncio
async def test_live_employee_search(settings, clock):
    services = FakeHRServices({
        f"/{TENANT}/employees/search": [
            {
                "firstName": "Ada",
                "lastName": "Lovelace",
                "designation": "Engineer",
                "department": "R&D",
                "email": "ada@example.com",
            },
        ],
    })
    dispatcher = make_dispatcher(settings, httpx.MockTransport(services), clock)

    result = await dispatcher.dispatch(
        ActionRequest(intent="employee.search", utterance="Find employee Ada Lovelace?"),
        CONTEXT,
    )

    assert result.outcome == ActionOutcome.LIVE
    assert services.requests[0].url.params["q"] == "Ada Lovelace"
    assert result.message.startswith("Found 1 employee(s):")
    assert result.metadata["query"] == "Ada Lovelace"


# ===========================
# Parameter derivation
# ===========================

def test_leave_window_counts_start_day():
    start = date(2026, 10, 20)

    assert leave_window({"parsed_date": start}) == (start, start)
    assert leave_window({"parsed_date": start, "duration": "2 weeks"})[1] == date(2026, 11, 2)
    assert leave_window({"parsed_date": "2026-10-20", "duration": "1 day"}) == (start, start)
    assert leave_window({}) == (None, None)


def test_payslip_period_defaults_to_current_month():
    assert payslip_period({}, NOW.date()) == (10, 2026)
    assert payslip_period({"month": ["jan", "feb"], "number": ["5", "2024"]}, NOW.date()) == (1, 2024)


@pytest.mark.parametrize(
    "utterance, expected",
    [
        ("find employee John Smith", "John Smith"),
        ("who is Jane Doe?", "Jane Doe"),
        ("Search for a colleague named Priya", "Priya"),
        ("Maria", "Maria"),
    ],
)
def test_search_query(utterance, expected):
    assert search_query(utterance) == expected


def test_formatting_helpers():
    assert format_currency(50000) == "$50,000.00"
    assert month_name(12) == "December"
    assert month_name(13) == ""
