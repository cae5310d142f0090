"""
HR action dispatcher.

Maps each actionable intent to one collaborator call, with a synthetic
stand-in for when the collaborator is down.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from hr_assistant.config import Settings, get_settings
from hr_assistant.nlp.patterns import MONTH_INDEX

from . import formatters
from .base import ActionContext, ActionRegistry, ActionRequest, ActionResult
from .client import HRServicesClient

logger = logging.getLogger(__name__)

ACTIONABLE_INTENTS = frozenset({
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
})

DEFAULT_LEAVE_TYPE = "annual"

_DURATION = re.compile(r"(\d+)\s*(day|week|hour)", re.IGNORECASE)
_YEAR = re.compile(r"^(19|20)\d{2}$")
_SEARCH_QUERY = re.compile(
    r"(?:find|search for|search|look up|who is|contact)\s+"
    r"(?:an?\s+)?(?:employee|colleague)?\s*(?:named\s+)?(.+)",
    re.IGNORECASE,
)


def is_actionable(intent: str) -> bool:
    """Whether an intent may be dispatched to a collaborator service."""
    return intent in ACTIONABLE_INTENTS


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


def leave_window(entities: dict[str, Any]) -> tuple[Optional[date], Optional[date]]:
    """
    Derive the start and end of a leave request.
    
    The end date counts the start day itself, so "3 days" from Monday
    ends on Wednesday. Without a duration the leave is a single day.
    
    Args:
        entities: Entities and carried-over slots for the turn
        
    Returns:
        Tuple of (start, end); both None when no date was mentioned
    """
    start = _as_date(entities.get("parsed_date"))
    if start is None:
        return None, None
    
    duration = _first(entities.get("duration"))
    match = _DURATION.search(duration) if isinstance(duration, str) else None
    if not match:
        return start, start
    
    amount = int(match.group(1))
    unit = match.group(2).lower()
    if unit == "week":
        days = amount * 7
    elif unit == "day":
        days = amount
    else:
        days = 1
    return start, start + timedelta(days=max(days, 1) - 1)


def payslip_period(entities: dict[str, Any], today: date) -> tuple[int, int]:
    """Month and year for a payslip request, defaulting to the current month."""
    month = today.month
    year = today.year
    
    mentioned = _first(entities.get("month"))
    if isinstance(mentioned, str):
        month = MONTH_INDEX.get(mentioned.lower(), month)
    
    numbers = entities.get("number") or []
    if not isinstance(numbers, list):
        numbers = [numbers]
    for number in numbers:
        if isinstance(number, str) and _YEAR.match(number):
            year = int(number)
            break
    
    return month, year


def search_query(utterance: str) -> str:
    """Pull the person being looked up out of a directory request."""
    match = _SEARCH_QUERY.search(utterance)
    query = match.group(1) if match else utterance
    return query.strip().rstrip("?.!").strip()


class HRActionDispatcher(ActionRegistry):
    """
    Dispatcher for leave, attendance, payroll and employee actions.
    
    Provides actions for:
    - Leave balance, leave requests and pending leave status
    - Attendance check-in, check-out and today's record
    - Salary summary and monthly payslips
    - Employee profile and directory search
    """
    
    def __init__(
        self,
        client: Optional[HRServicesClient] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the dispatcher.
        
        Args:
            client: HR services client, created from settings when omitted
            settings: Application settings
            clock: Returns the current local time (injectable for tests)
        """
        self.settings = settings or get_settings()
        self.client = client or HRServicesClient(self.settings)
        self.clock = clock or datetime.now
        super().__init__(timeout=self.settings.action_timeout_seconds)
    
    def _register_actions(self) -> None:
        """Register all HR actions."""
        
        self.register_action(
            name="leave.check_balance",
            description="Leave balance per leave type",
            live=self._leave_balance,
            synthetic=self._leave_balance_synthetic,
        )
        
        self.register_action(
            name="leave.apply",
            description="Submit a leave request for the derived date range",
            live=self._apply_leave,
            synthetic=self._apply_leave_synthetic,
        )
        
        self.register_action(
            name="leave.status",
            description="Leave requests awaiting approval",
            live=self._leave_status,
            synthetic=self._leave_status_synthetic,
        )
        
        self.register_action(
            name="attendance.check_in",
            description="Record a check-in",
            live=self._check_in,
            synthetic=self._check_in_synthetic,
        )
        
        self.register_action(
            name="attendance.check_out",
            description="Record a check-out",
            live=self._check_out,
            synthetic=self._check_out_synthetic,
        )
        
        self.register_action(
            name="attendance.status",
            description="Today's attendance record",
            live=self._attendance_status,
            synthetic=self._attendance_status_synthetic,
        )
        
        self.register_action(
            name="payroll.salary",
            description="Salary summary",
            live=self._salary,
            synthetic=self._salary_synthetic,
        )
        
        self.register_action(
            name="payroll.payslip",
            description="Payslip for a month",
            live=self._payslip,
            synthetic=self._payslip_synthetic,
        )
        
        self.register_action(
            name="employee.profile",
            description="The employee's own profile",
            live=self._profile,
            synthetic=self._profile_synthetic,
        )
        
        self.register_action(
            name="employee.search",
            description="Search the employee directory",
            live=self._search,
            synthetic=self._search_synthetic,
        )
    
    # =========================================================================
    # Leave
    # =========================================================================
    
    async def _leave_balance(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        balance = await self.client.get_leave_balance(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=balance, message=formatters.format_leave_balance(balance))
    
    def _leave_balance_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        balance = {
            "annual": {"total": 21, "used": 5, "remaining": 16},
            "sick": {"total": 12, "used": 2, "remaining": 10},
            "casual": {"total": 7, "used": 3, "remaining": 4},
        }
        return ActionResult.synthetic(data=balance, message=formatters.format_leave_balance(balance))
    
    def _leave_params(self, request: ActionRequest) -> dict[str, Optional[str]]:
        start, end = leave_window(request.entities)
        leave_type = _first(request.entities.get("leave_type"))
        return {
            "leave_type": leave_type.lower() if leave_type else DEFAULT_LEAVE_TYPE,
            "start_date": start.isoformat() if start else None,
            "end_date": end.isoformat() if end else None,
            "reason": request.utterance or None,
        }
    
    async def _apply_leave(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        params = self._leave_params(request)
        
        logger.info(
            f"Submitting {params['leave_type']} leave for {context.employee_id}: "
            f"{params['start_date']} to {params['end_date']}"
        )
        
        submitted = await self.client.apply_leave(
            context.tenant_id,
            context.employee_id,
            headers=context.headers,
            **params,
        )
        return ActionResult.live(
            data=submitted,
            message=formatters.format_leave_submitted(
                params["leave_type"], params["start_date"], params["end_date"]
            ),
        )
    
    def _apply_leave_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        params = self._leave_params(request)
        data = {
            "leaveType": params["leave_type"],
            "startDate": params["start_date"],
            "endDate": params["end_date"],
            "status": "pending",
        }
        return ActionResult.synthetic(
            data=data,
            message=formatters.format_leave_submitted(
                params["leave_type"], params["start_date"], params["end_date"]
            ),
        )
    
    async def _leave_status(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        leaves = await self.client.get_pending_leaves(
            context.tenant_id, context.employee_id, headers=context.headers
        ) or []
        return ActionResult.live(data=leaves, message=formatters.format_pending_leaves(leaves))
    
    def _leave_status_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        return ActionResult.synthetic(
            data=[], message="You have no pending leave requests at the moment."
        )
    
    # =========================================================================
    # Attendance
    # =========================================================================
    
    async def _check_in(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        record = await self.client.check_in(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=record, message=formatters.format_check_in(self.clock()))
    
    def _check_in_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        now = self.clock()
        return ActionResult.synthetic(
            data={"checkInTime": now.isoformat()},
            message=formatters.format_check_in(now),
        )
    
    async def _check_out(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        record = await self.client.check_out(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=record, message=formatters.format_check_out(self.clock()))
    
    def _check_out_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        now = self.clock()
        return ActionResult.synthetic(
            data={"checkOutTime": now.isoformat()},
            message=formatters.format_check_out(now),
        )
    
    async def _attendance_status(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        attendance = await self.client.get_today_attendance(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=attendance, message=formatters.format_attendance(attendance))
    
    def _attendance_status_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        attendance = {"status": "present", "checkIn": "09:00 AM", "workingHours": "In progress"}
        return ActionResult.synthetic(
            data=attendance,
            message=formatters.format_attendance(attendance, day=self.clock()),
        )
    
    # =========================================================================
    # Payroll
    # =========================================================================
    
    async def _salary(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        salary = await self.client.get_salary(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=salary, message=formatters.format_salary(salary))
    
    def _salary_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        salary = {
            "basic": 50000,
            "allowances": 15000,
            "deductions": 8000,
            "netSalary": 57000,
        }
        return ActionResult.synthetic(data=salary, message=formatters.format_salary(salary))
    
    async def _payslip(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        month, year = payslip_period(request.entities, self.clock().date())
        payslip = await self.client.get_payslip(
            context.tenant_id, context.employee_id, month, year, headers=context.headers
        )
        return ActionResult.live(data=payslip, message=formatters.format_payslip_ready(month, year))
    
    def _payslip_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        month, year = payslip_period(request.entities, self.clock().date())
        return ActionResult.synthetic(
            data={"month": month, "year": year},
            message=formatters.format_payslip_ready(month, year),
        )
    
    # =========================================================================
    # Employee
    # =========================================================================
    
    async def _profile(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        profile = await self.client.get_profile(
            context.tenant_id, context.employee_id, headers=context.headers
        )
        return ActionResult.live(data=profile, message=formatters.format_profile(profile))
    
    def _profile_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        profile = {
            "employeeId": context.employee_id,
            "department": "Engineering",
            "designation": "Software Engineer",
            "reportingTo": "John Manager",
            "dateOfJoining": "2023-01-15",
        }
        message = (
            "👤 **Your Profile**\n\n"
            f"**Employee ID**: {context.employee_id}\n"
            "**Department**: Engineering\n"
            "**Designation**: Software Engineer\n"
            "**Reporting To**: John Manager\n"
            "**Date of Joining**: Jan 15, 2023\n\n"
            "Would you like to update any information?"
        )
        return ActionResult.synthetic(data=profile, message=message)
    
    async def _search(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        query = search_query(request.utterance)
        employees = await self.client.search_employees(
            context.tenant_id, query, headers=context.headers
        ) or []
        return ActionResult.live(
            data=employees,
            message=formatters.format_employee_matches(query, employees),
            query=query,
        )
    
    def _search_synthetic(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        query = search_query(request.utterance)
        return ActionResult.synthetic(
            data=[],
            message=formatters.format_employee_matches(query, []),
            query=query,
        )
