"""Initial schema: tenants, items, reminders and escalation ladder

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-03-01

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Values match the Python enum string values
ENUMS = {
    "userrole": ("employee", "hr_user", "supervisor", "admin", "system_admin"),
    "workflowstatus": (
        "new",
        "acknowledged",
        "in_progress",
        "done_pending_supervisor",
        "returned",
        "escalated_to_manager",
        "finished",
    ),
    "escalationstatus": ("pending", "acknowledged", "escalated", "resolved", "expired"),
    "notificationchannel": ("whatsapp", "telegram", "email", "in_app"),
    "templatechannel": ("whatsapp", "telegram", "email", "in_app", "all"),
    "templatetype": ("reminder", "escalation"),
    "deliverystatus": ("pending", "sent", "failed"),
    "fieldtype": ("text", "number", "date", "select"),
    "inappnotificationtype": ("reminder", "escalation", "workflow"),
}


def enum_column(name: str) -> postgresql.ENUM:
    # Types are created once up front; tables only reference them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    ]


def tenant_column() -> sa.Column:
    return sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False, index=True)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )

    op.create_table(
        "departments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=True),
        *timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("role", enum_column("userrole"), nullable=False, server_default="employee"),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("telegram_chat_id", sa.String(64), nullable=True),
        sa.Column("department_id", sa.Uuid(), sa.ForeignKey("departments.id"), nullable=True),
        *timestamps(),
    )

    op.create_table(
        "reminder_rules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("days_before", sa.JSON(), nullable=False),
        sa.Column("channels", sa.JSON(), nullable=False),
        sa.Column("target_entity_type", sa.String(50), nullable=False, server_default="item"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=True),
        sa.Column("reminder_rule_id", sa.Uuid(), sa.ForeignKey("reminder_rules.id"), nullable=True),
        *timestamps(),
    )

    op.create_table(
        "recipients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("whatsapp_number", sa.String(32), nullable=True),
        sa.Column("telegram_chat_id", sa.String(64), nullable=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True, index=True),
        sa.Column("allow_whatsapp", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_telegram", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_email", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("allow_in_app", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )

    op.create_table(
        "items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("ref_number", sa.String(100), nullable=True, index=True),
        sa.Column("expiry_date", sa.Date(), nullable=False, index=True),
        sa.Column("expiry_time", sa.Time(), nullable=True),
        sa.Column(
            "workflow_status",
            enum_column("workflowstatus"),
            nullable=False,
            server_default="new",
            index=True,
        ),
        sa.Column("department_id", sa.Uuid(), sa.ForeignKey("departments.id"), nullable=True, index=True),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id"), nullable=True, index=True),
        sa.Column("responsible_person", sa.String(255), nullable=True),
        sa.Column("responsible_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True, index=True),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reminder_rule_id", sa.Uuid(), sa.ForeignKey("reminder_rules.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("dynamic_fields", sa.JSON(), nullable=True),
        sa.Column("completion_description", sa.Text(), nullable=True),
        sa.Column("completion_attachment_url", sa.String(1000), nullable=True),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )

    op.create_table(
        "item_recipients",
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "recipient_id", sa.Uuid(), sa.ForeignKey("recipients.id", ondelete="CASCADE"), primary_key=True
        ),
    )

    op.create_table(
        "item_status_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id"), nullable=False, index=True),
        sa.Column("old_status", enum_column("workflowstatus"), nullable=True),
        sa.Column("new_status", enum_column("workflowstatus"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("channel", sa.String(20), nullable=False, server_default="web"),
        sa.Column("changed_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "changed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )

    op.create_table(
        "notification_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id"), nullable=False, index=True),
        sa.Column("recipient_id", sa.Uuid(), sa.ForeignKey("recipients.id"), nullable=False, index=True),
        sa.Column("channel", enum_column("notificationchannel"), nullable=False),
        sa.Column("reminder_day", sa.Integer(), nullable=False),
        sa.Column("sent_on", sa.Date(), nullable=False, index=True),
        sa.Column("status", enum_column("deliverystatus"), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("provider_message_id", sa.String(255), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "item_id",
            "recipient_id",
            "channel",
            "reminder_day",
            "sent_on",
            name="uq_notification_log_delivery",
        ),
    )

    op.create_table(
        "escalation_rules",
        sa.Column("id", sa.Uuid(), primary_key=True),
        # NULL tenant = global default rule
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=True, index=True),
        sa.Column("escalation_level", sa.Integer(), nullable=False, index=True),
        sa.Column("delay_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("recipient_role", sa.String(50), nullable=True),
        sa.Column("notification_channels", sa.JSON(), nullable=False),
        sa.Column("message_template", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )

    op.create_table(
        "escalation_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id"), nullable=False, index=True),
        sa.Column("escalation_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "status",
            enum_column("escalationstatus"),
            nullable=False,
            server_default="pending",
            index=True,
        ),
        sa.Column("original_recipient_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "current_recipient_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False, index=True
        ),
        sa.Column("previous_recipient_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("next_escalation_at", sa.DateTime(timezone=True), nullable=True, index=True),
        sa.Column("escalated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("escalation_reason", sa.Text(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        "organizational_hierarchy",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("supervisor_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("manager_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("director_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("department_id", sa.Uuid(), sa.ForeignKey("departments.id"), nullable=True),
        *timestamps(),
        sa.UniqueConstraint("tenant_id", "employee_id", name="uq_hierarchy_employee"),
    )

    op.create_table(
        "message_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("channel", enum_column("templatechannel"), nullable=False, server_default="all"),
        sa.Column(
            "template_type", enum_column("templatetype"), nullable=False, server_default="reminder"
        ),
        sa.Column("escalation_level", sa.Integer(), nullable=True),
        sa.Column("template_text", sa.Text(), nullable=False),
        sa.Column("required_fields", sa.JSON(), nullable=False),
        sa.Column("optional_fields", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )

    op.create_table(
        "dynamic_field_definitions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("department_id", sa.Uuid(), sa.ForeignKey("departments.id"), nullable=True, index=True),
        sa.Column("category_id", sa.Uuid(), sa.ForeignKey("categories.id"), nullable=True, index=True),
        sa.Column("field_key", sa.String(100), nullable=False),
        sa.Column("field_label", sa.String(255), nullable=False),
        sa.Column("field_type", enum_column("fieldtype"), nullable=False, server_default="text"),
        sa.Column("field_options", sa.JSON(), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *timestamps(),
    )

    op.create_table(
        "in_app_notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        tenant_column(),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("item_id", sa.Uuid(), sa.ForeignKey("items.id"), nullable=True),
        sa.Column("escalation_id", sa.Uuid(), sa.ForeignKey("escalation_log.id"), nullable=True),
        sa.Column("notification_type", enum_column("inappnotificationtype"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False, server_default="normal"),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )


def downgrade() -> None:
    for table in (
        "in_app_notifications",
        "dynamic_field_definitions",
        "message_templates",
        "organizational_hierarchy",
        "escalation_log",
        "escalation_rules",
        "notification_log",
        "item_status_log",
        "item_recipients",
        "items",
        "recipients",
        "categories",
        "reminder_rules",
        "users",
        "departments",
        "tenants",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        sa.Enum(name=name).drop(bind, checkfirst=True)
