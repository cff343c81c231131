"""Pydantic schemas for API requests and responses."""

from sentinel.schemas.auth import AuthResponse, UserCreate, UserLogin, UserRegister, UserResponse
from sentinel.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    DepartmentCreate,
    DepartmentResponse,
)
from sentinel.schemas.item import (
    ItemCreate,
    ItemResponse,
    ItemUpdate,
    WorkflowActionRequest,
)
from sentinel.schemas.recipient import RecipientCreate, RecipientResponse, RecipientUpdate
from sentinel.schemas.reminder_rule import (
    ReminderRuleCreate,
    ReminderRuleResponse,
    ReminderRuleUpdate,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserCreate",
    "UserResponse",
    "AuthResponse",
    "DepartmentCreate",
    "DepartmentResponse",
    "CategoryCreate",
    "CategoryResponse",
    "ItemCreate",
    "ItemUpdate",
    "ItemResponse",
    "WorkflowActionRequest",
    "RecipientCreate",
    "RecipientUpdate",
    "RecipientResponse",
    "ReminderRuleCreate",
    "ReminderRuleUpdate",
    "ReminderRuleResponse",
]
