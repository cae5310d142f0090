"""
Async client for the HR collaborator services.

Wraps the leave, attendance, payroll and employee services behind one
httpx client. Every call is tenant scoped and bounded by the configured
action timeout; nothing is retried here.
"""

import logging
from typing import Any, Optional

import httpx

from hr_assistant.config import Settings, get_settings

logger = logging.getLogger(__name__)


class HRServicesClient:
    """
    Client for the leave, attendance, payroll and employee services.
    
    Each service answers with a ``{"data": ...}`` envelope; methods
    return the unwrapped ``data`` value.
    """
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client with settings.
        
        Args:
            settings: Application settings, defaults to the cached settings
            transport: Optional httpx transport (used to fake services in tests)
        """
        self.settings = settings or get_settings()
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None
    
    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json; charset=utf-8",
                },
                timeout=self.settings.action_timeout_seconds,
                transport=self._transport,
            )
        return self._http_client
    
    async def close(self):
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
    
    async def _request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        client = self._get_http_client()
        
        logger.debug(f"HR service {method}: {url} with params: {params}")
        
        response = await client.request(
            method, url, headers=headers, params=params, json=json
        )
        response.raise_for_status()
        
        return response.json().get("data")
    
    # =========================================================================
    # Leave Service
    # =========================================================================
    
    async def get_leave_balance(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Leave balance per leave type."""
        url = f"{self.settings.leave_service_url}/{tenant_id}/employees/{employee_id}/balance"
        return await self._request("GET", url, headers=headers)
    
    async def apply_leave(
        self,
        tenant_id: str,
        employee_id: str,
        leave_type: Optional[str],
        start_date: Optional[str],
        end_date: Optional[str],
        reason: Optional[str],
        headers: Optional[dict] = None,
    ) -> Any:
        """Submit a leave request."""
        url = f"{self.settings.leave_service_url}/{tenant_id}/leaves"
        return await self._request(
            "POST",
            url,
            headers=headers,
            json={
                "employeeId": employee_id,
                "leaveType": leave_type,
                "startDate": start_date,
                "endDate": end_date,
                "reason": reason,
            },
        )
    
    async def get_pending_leaves(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Leave requests still waiting for approval."""
        url = f"{self.settings.leave_service_url}/{tenant_id}/employees/{employee_id}/leaves"
        return await self._request("GET", url, headers=headers, params={"status": "pending"})
    
    # =========================================================================
    # Attendance Service
    # =========================================================================
    
    async def check_in(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Record a check-in."""
        url = f"{self.settings.attendance_service_url}/{tenant_id}/attendance/check-in"
        return await self._request("POST", url, headers=headers, json={"employeeId": employee_id})
    
    async def check_out(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Record a check-out."""
        url = f"{self.settings.attendance_service_url}/{tenant_id}/attendance/check-out"
        return await self._request("POST", url, headers=headers, json={"employeeId": employee_id})
    
    async def get_today_attendance(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Today's attendance record."""
        url = (
            f"{self.settings.attendance_service_url}/{tenant_id}"
            f"/employees/{employee_id}/attendance/today"
        )
        return await self._request("GET", url, headers=headers)
    
    # =========================================================================
    # Payroll Service
    # =========================================================================
    
    async def get_salary(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Current salary breakdown."""
        url = f"{self.settings.payroll_service_url}/{tenant_id}/employees/{employee_id}/salary"
        return await self._request("GET", url, headers=headers)
    
    async def get_payslip(
        self,
        tenant_id: str,
        employee_id: str,
        month: int,
        year: int,
        headers: Optional[dict] = None,
    ) -> Any:
        """Payslip for one month."""
        url = f"{self.settings.payroll_service_url}/{tenant_id}/employees/{employee_id}/payslip"
        return await self._request(
            "GET", url, headers=headers, params={"month": month, "year": year}
        )
    
    # =========================================================================
    # Employee Service
    # =========================================================================
    
    async def get_profile(
        self, tenant_id: str, employee_id: str, headers: Optional[dict] = None
    ) -> Any:
        """Employee profile."""
        url = f"{self.settings.employee_service_url}/{tenant_id}/employees/{employee_id}"
        return await self._request("GET", url, headers=headers)
    
    async def search_employees(
        self, tenant_id: str, query: str, headers: Optional[dict] = None
    ) -> Any:
        """Search the employee directory."""
        url = f"{self.settings.employee_service_url}/{tenant_id}/employees/search"
        return await self._request("GET", url, headers=headers, params={"q": query})
