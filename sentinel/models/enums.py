"""Enums for model fields."""

from enum import Enum


class Role(str, Enum):
    """Organizational role of a user inside a tenant."""

    EMPLOYEE = "employee"
    HR_USER = "hr_user"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"
    SYSTEM_ADMIN = "system_admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "Role") -> bool:
        """Check if this role ranks at or above another."""
        return self.rank >= other.rank


_ROLE_RANK = {
    Role.EMPLOYEE: 0,
    Role.HR_USER: 0,
    Role.SUPERVISOR: 1,
    Role.ADMIN: 2,
    Role.SYSTEM_ADMIN: 3,
}


class WorkflowStatus(str, Enum):
    """Business-process state of an item."""

    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    DONE_PENDING_SUPERVISOR = "done_pending_supervisor"
    RETURNED = "returned"
    ESCALATED_TO_MANAGER = "escalated_to_manager"
    FINISHED = "finished"

    @property
    def label(self) -> str:
        return WORKFLOW_STATUS_LABELS[self]

    @property
    def is_terminal(self) -> bool:
        return self == WorkflowStatus.FINISHED


WORKFLOW_STATUS_LABELS = {
    WorkflowStatus.NEW: "New",
    WorkflowStatus.ACKNOWLEDGED: "Acknowledged",
    WorkflowStatus.IN_PROGRESS: "In progress",
    WorkflowStatus.DONE_PENDING_SUPERVISOR: "Awaiting supervisor",
    WorkflowStatus.RETURNED: "Returned",
    WorkflowStatus.ESCALATED_TO_MANAGER: "Escalated to manager",
    WorkflowStatus.FINISHED: "Finished",
}


class EscalationStatus(str, Enum):
    """State of an escalation log."""

    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    EXPIRED = "expired"

    @property
    def is_active(self) -> bool:
        """Active logs keep climbing the ladder when their deadline passes."""
        return self in (EscalationStatus.PENDING, EscalationStatus.ESCALATED)

    @property
    def is_closed(self) -> bool:
        return self in (EscalationStatus.RESOLVED, EscalationStatus.EXPIRED)


# 0 is the original recipient; higher levels are higher authority
ESCALATION_LEVEL_LABELS = {
    0: "Employee",
    1: "Supervisor",
    2: "Department manager",
    3: "General manager",
    4: "HR",
}

MAX_ESCALATION_LEVEL = max(ESCALATION_LEVEL_LABELS)


def escalation_level_label(level: int) -> str:
    return ESCALATION_LEVEL_LABELS.get(level, f"Level {level}")


class NotificationChannel(str, Enum):
    """Delivery channels for reminders and escalations."""

    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    EMAIL = "email"
    IN_APP = "in_app"


class TemplateChannel(str, Enum):
    """Channel a message template applies to; ``all`` matches every channel."""

    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    EMAIL = "email"
    IN_APP = "in_app"
    ALL = "all"


class TemplateType(str, Enum):
    REMINDER = "reminder"
    ESCALATION = "escalation"


class DeliveryStatus(str, Enum):
    """Outcome of a single notification delivery."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class FieldType(str, Enum):
    """Value type of a dynamic field definition."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class InAppNotificationType(str, Enum):
    REMINDER = "reminder"
    ESCALATION = "escalation"
    WORKFLOW = "workflow"
