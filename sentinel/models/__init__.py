"""SQLAlchemy models."""

from sentinel.models.category import Category
from sentinel.models.department import Department
from sentinel.models.dynamic_field import DynamicFieldDefinition
from sentinel.models.escalation import EscalationLog, EscalationRule, OrganizationalHierarchy
from sentinel.models.in_app_notification import InAppNotification
from sentinel.models.item import Item
from sentinel.models.item_status_log import ItemStatusLog
from sentinel.models.message_template import MessageTemplate
from sentinel.models.notification_log import NotificationLog
from sentinel.models.recipient import Recipient, item_recipients
from sentinel.models.reminder_rule import ReminderRule
from sentinel.models.tenant import Tenant
from sentinel.models.user import User

__all__ = [
    "Tenant",
    "User",
    "Department",
    "Category",
    "Item",
    "ItemStatusLog",
    "Recipient",
    "item_recipients",
    "ReminderRule",
    "EscalationLog",
    "EscalationRule",
    "OrganizationalHierarchy",
    "MessageTemplate",
    "DynamicFieldDefinition",
    "NotificationLog",
    "InAppNotification",
]
