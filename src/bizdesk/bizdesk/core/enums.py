from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for authorization."""

    ADMIN = "admin"
    USER = "user"


class Department(str, Enum):
    MANAGEMENT = "management"
    MOBILE = "mobile"
    WEB = "web"
    BACKEND = "backend"
    UI = "ui"
    GRAPHIC_DESIGNING = "graphic_designing"


class UserPosition(str, Enum):
    FRONTEND_MOBILE_DEV = "frontend_mobile_developer"
    FRONTEND_WEB_DEV = "frontend_web_developer"
    BACKEND_DEV = "backend_developer"
    UI_DESIGNER = "ui_designer"
    TEAM_LEAD = "team_lead"
    PROJECT_MANAGER = "project_manager"
    OTHER = "other"


class DeveloperRole(str, Enum):
    """Slots a user can be assigned to on a project."""

    FRONTEND_MOBILE = "frontend_mobile"
    FRONTEND_WEB = "frontend_web"
    BACKEND = "backend"
    UI_DESIGNER = "ui_designer"
    TEAM_LEAD = "team_lead"


class CostCategory(str, Enum):
    BACKEND = "backend"
    FRONTEND_WEB = "frontend_web"
    FRONTEND_MOBILE = "frontend_mobile"
    UI_DESIGN = "ui_design"
    DEPLOYMENT = "deployment"
    OTHER = "other"


class WorkType(str, Enum):
    BACKEND = "backend"
    FRONTEND_WEB = "frontend_web"
    FRONTEND_MOBILE = "frontend_mobile"
    UI_DESIGN = "ui_design"
    DEPLOYMENT = "deployment"
    TESTING = "testing"
    DOCUMENTATION = "documentation"
    MEETINGS = "meetings"
    OTHER = "other"


class ProjectType(str, Enum):
    ONE_TIME = "one_time"
    RETAINER = "retainer"
    HOURLY = "hourly"


class BillingFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RevenueType(str, Enum):
    """Whether a project earns a flat amount or an amount per logged hour."""

    FIXED = "fixed"
    HOURS_BASED = "hours_based"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LeaveType(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    ANNUAL = "annual"


class LeaveStatus(str, Enum):
    """Leave approval workflow states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PolicyCategory(str, Enum):
    EMPLOYMENT = "employment"
    LEAVE = "leave"
    REMOTE_WORK = "remote-work"
    EQUIPMENT = "equipment"
    COMPENSATION = "compensation"
    OTHER = "other"
