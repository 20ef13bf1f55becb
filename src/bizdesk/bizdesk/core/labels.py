from __future__ import annotations

from enum import Enum
from typing import Union

from .enums import (
    BillingFrequency,
    CostCategory,
    Department,
    DeveloperRole,
    LeaveStatus,
    LeaveType,
    PolicyCategory,
    ProjectStatus,
    ProjectType,
    RevenueType,
    UserPosition,
    WorkType,
)

# Keyed by enum class first: several enums share raw values ("backend", "other").
_LABELS: dict[type, dict[str, str]] = {
    WorkType: {
        "backend": "Backend Development",
        "frontend_web": "Frontend Web",
        "frontend_mobile": "Frontend Mobile",
        "ui_design": "UI/UX Design",
        "deployment": "Deployment",
        "testing": "Testing",
        "documentation": "Documentation",
        "meetings": "Meetings",
        "other": "Other",
    },
    ProjectStatus: {
        "planning": "Planning",
        "in_progress": "In Progress",
        "on_hold": "On Hold",
        "completed": "Completed",
        "cancelled": "Cancelled",
    },
    CostCategory: {
        "backend": "Backend Development",
        "frontend_web": "Frontend Web",
        "frontend_mobile": "Frontend Mobile",
        "ui_design": "UI/UX Design",
        "deployment": "Deployment",
        "other": "Other",
    },
    ProjectType: {
        "one_time": "One-time Project",
        "retainer": "Monthly Retainer",
        "hourly": "Hourly Project",
    },
    BillingFrequency: {
        "monthly": "Monthly",
        "quarterly": "Quarterly",
        "yearly": "Yearly",
    },
    RevenueType: {
        "fixed": "Fixed Amount (Regardless of Hours)",
        "hours_based": "Based on Hours Worked",
    },
    DeveloperRole: {
        "frontend_mobile": "Frontend Developer (Mobile)",
        "frontend_web": "Frontend Developer (Web)",
        "backend": "Backend Developer",
        "ui_designer": "UI Designer",
        "team_lead": "Team Lead",
    },
    UserPosition: {
        "frontend_mobile_developer": "Frontend Developer (Mobile)",
        "frontend_web_developer": "Frontend Developer (Web)",
        "backend_developer": "Backend Developer",
        "ui_designer": "UI Designer",
        "team_lead": "Team Lead",
        "project_manager": "Project Manager",
        "other": "Other",
    },
    Department: {
        "management": "Management",
        "mobile": "Mobile Development",
        "web": "Web Development",
        "backend": "Backend Development",
        "ui": "UI/UX Design",
        "graphic_designing": "Graphic Designing",
    },
    LeaveType: {
        "sick": "Sick Leave",
        "casual": "Casual Leave",
        "annual": "Annual Leave",
    },
    LeaveStatus: {
        "pending": "Pending",
        "approved": "Approved",
        "rejected": "Rejected",
        "cancelled": "Cancelled",
    },
    PolicyCategory: {
        "employment": "Employment",
        "leave": "Leave",
        "remote-work": "Remote Work",
        "equipment": "Equipment",
        "compensation": "Compensation",
        "other": "Other",
    },
}


def label_for(value: Union[Enum, str, None]) -> str:
    """Human readable label; unknown values are returned as-is."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return _LABELS.get(type(value), {}).get(value.value, str(value.value))
    return str(value)
