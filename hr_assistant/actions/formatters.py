"""
User-facing text for action results.
"""

from datetime import datetime
from typing import Any, Optional

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def month_name(month: int) -> str:
    """Month name for a 1-based month number, empty when out of range."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""


def format_currency(amount: Optional[float]) -> str:
    """Format an amount as US dollars (``$50,000.00``)."""
    if amount is None:
        return "N/A"
    return f"${amount:,.2f}"


def format_leave_balance(balance: Optional[dict[str, Any]]) -> str:
    if not balance:
        return "Unable to fetch leave balance."
    
    lines = [
        f"**{leave_type}**: {data.get('remaining')} days remaining "
        f"({data.get('used')} used of {data.get('total')})"
        for leave_type, data in balance.items()
    ]
    return "Here's your leave balance:\n\n" + "\n".join(lines)


def format_leave_submitted(leave_type: Optional[str], start: Optional[str], end: Optional[str]) -> str:
    return (
        "Your leave request has been submitted successfully! 🎉\n\n"
        f"**Leave Type**: {leave_type or 'annual'}\n"
        f"**From**: {start or 'Not specified'}\n"
        f"**To**: {end or 'Not specified'}\n\n"
        "Your manager will be notified for approval."
    )


def format_pending_leaves(leaves: Optional[list[dict[str, Any]]]) -> str:
    if not leaves:
        return "You have no pending leave requests."
    
    lines = [
        f"• {leave.get('leaveType')}: {leave.get('startDate')} to "
        f"{leave.get('endDate')} - **{leave.get('status')}**"
        for leave in leaves
    ]
    return "Your pending leave requests:\n\n" + "\n".join(lines)


def format_check_in(now: datetime) -> str:
    return (
        "✅ Check-in recorded successfully!\n\n"
        f"**Time**: {now.strftime('%I:%M %p')}\n"
        f"**Date**: {now.strftime('%Y-%m-%d')}\n\n"
        "Have a productive day!"
    )


def format_check_out(now: datetime) -> str:
    return (
        "✅ Check-out recorded successfully!\n\n"
        f"**Time**: {now.strftime('%I:%M %p')}\n"
        f"**Date**: {now.strftime('%Y-%m-%d')}\n\n"
        "Great work today! See you tomorrow! 👋"
    )


def format_attendance(attendance: Optional[dict[str, Any]], day: Optional[datetime] = None) -> str:
    if not attendance:
        return "No attendance record found for today."
    
    heading = "📊 **Today's Attendance**"
    if day is not None:
        heading += f" ({day.strftime('%Y-%m-%d')})"
    
    return (
        f"{heading}\n\n"
        f"**Status**: {attendance.get('status', 'Unknown')}\n"
        f"**Check-in**: {attendance.get('checkIn') or 'Not recorded'}\n"
        f"**Check-out**: {attendance.get('checkOut') or 'Not recorded'}\n"
        f"**Working Hours**: {attendance.get('workingHours') or 'In progress'}"
    )


def format_salary(salary: Optional[dict[str, Any]]) -> str:
    if not salary:
        return "Unable to fetch salary details."
    
    return (
        "💰 **Salary Details**\n\n"
        f"**Basic**: {format_currency(salary.get('basic'))}\n"
        f"**Allowances**: {format_currency(salary.get('allowances'))}\n"
        f"**Deductions**: {format_currency(salary.get('deductions'))}\n"
        "**─────────────**\n"
        f"**Net Salary**: {format_currency(salary.get('netSalary'))}"
    )


def format_payslip_ready(month: int, year: int) -> str:
    return (
        f"📄 Your payslip for {month_name(month)} {year} is ready.\n\n"
        "Would you like me to:\n"
        "• Show the details here\n"
        "• Email it to you\n"
        "• Download as PDF"
    )


def format_profile(profile: Optional[dict[str, Any]]) -> str:
    if not profile:
        return "Unable to fetch profile details."
    
    name = f"{profile.get('firstName', '')} {profile.get('lastName', '')}".strip()
    return (
        "👤 **Your Profile**\n\n"
        f"**Name**: {name or 'N/A'}\n"
        f"**Employee ID**: {profile.get('employeeId', 'N/A')}\n"
        f"**Department**: {profile.get('department', 'N/A')}\n"
        f"**Designation**: {profile.get('designation', 'N/A')}\n"
        f"**Email**: {profile.get('email', 'N/A')}\n"
        f"**Phone**: {profile.get('phone') or 'Not provided'}"
    )


def format_employee_matches(query: str, employees: Optional[list[dict[str, Any]]], limit: int = 5) -> str:
    """
    Format directory search hits.
    
    Args:
        query: The search term as the user typed it
        employees: Matching employee records
        limit: Maximum number of records to list
        
    Returns:
        Markdown text listing up to ``limit`` matches
    """
    if not employees:
        return f'No employees found matching "{query}". Please try a different search term.'
    
    entries = [
        f"• **{e.get('firstName', '')} {e.get('lastName', '')}**\n"
        f"  {e.get('designation', 'N/A')} | {e.get('department', 'N/A')}\n"
        f"  📧 {e.get('email', 'N/A')}"
        for e in employees[:limit]
    ]
    return f"Found {len(employees)} employee(s):\n\n" + "\n\n".join(entries)
