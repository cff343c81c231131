"""API endpoint tests."""

import uuid
from datetime import UTC, date, datetime, timedelta

from sentinel.models import EscalationLog, EscalationRule, InAppNotification
from sentinel.models.enums import EscalationStatus, InAppNotificationType


def create_item(client, headers, **fields):
    payload = {"title": "Municipal license", "ref_number": "LIC-001",
               "expiry_date": (date.today() + timedelta(days=30)).isoformat()}
    payload.update(fields)
    response = client.post("/api/v1/items", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def workflow(client, headers, item_id, action, **fields):
    return client.post(
        f"/api/v1/items/{item_id}/workflow", headers=headers, json={"action": action, **fields}
    )


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_organization(client):
    """Registration creates the tenant and its first admin."""
    response = client.post(
        "/api/v1/auth/register",
        json={"tenant_name": "Beta Co", "email": "owner@example.com",
              "password": "password123", "name": "Owner"},
    )
    assert response.status_code == 201
    data = response.json()
    assert "access_token" in data
    assert data["user"]["role"] == "admin"
    assert data["user"]["tenant_id"]


def test_register_duplicate_email(client, auth_headers):
    """Test registration with duplicate email fails."""
    response = client.post(
        "/api/v1/auth/register",
        json={"tenant_name": "Other", "email": auth_headers.email, "password": "password123"},
    )
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"]


def test_login(client, auth_headers):
    """Test user login."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "testpass123"}
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


def test_login_wrong_password(client, auth_headers):
    """Test login with wrong password."""
    response = client.post(
        "/api/v1/auth/login", json={"email": auth_headers.email, "password": "wrongpass"}
    )
    assert response.status_code == 401


def test_get_current_user(client, auth_headers):
    """Test getting current user info."""
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == auth_headers.email


def test_unauthorized_access(client):
    """Test that endpoints require authentication."""
    response = client.get("/api/v1/items")
    assert response.status_code == 401


class TestUsers:
    def test_admin_creates_and_lists_users(self, client, auth_headers, make_user):
        make_user("supervisor")
        response = client.get("/api/v1/users?role=supervisor", headers=auth_headers)
        assert response.status_code == 200
        assert [u["role"] for u in response.json()] == ["supervisor"]

    def test_employee_cannot_manage_users(self, client, make_user):
        employee = make_user("employee")
        response = client.get("/api/v1/users", headers=employee)
        assert response.status_code == 403
        assert response.json()["kind"] == "permission_denied"

    def test_admin_cannot_create_system_admin(self, client, auth_headers):
        response = client.post(
            "/api/v1/users",
            headers=auth_headers,
            json={"email": "root@example.com", "password": "testpass123", "role": "system_admin"},
        )
        assert response.status_code == 403


class TestItems:
    def test_create_item_starts_new_with_version(self, client, auth_headers):
        item = create_item(client, auth_headers)
        assert item["workflow_status"] == "new"
        assert item["version"] == 1
        assert item["created_by_id"] == auth_headers.user_id

    def test_category_rule_applies_by_default(self, client, auth_headers):
        rule = client.post(
            "/api/v1/reminder-rules", headers=auth_headers, json={"name": "Licenses"}
        ).json()
        category = client.post(
            "/api/v1/categories", headers=auth_headers,
            json={"name": "Licenses", "reminder_rule_id": rule["id"]},
        ).json()

        item = create_item(client, auth_headers, category_id=category["id"])

        assert item["reminder_rule_id"] == rule["id"]

    def test_list_filters(self, client, auth_headers, make_user):
        employee = make_user("employee")
        create_item(client, auth_headers, title="Lease contract", responsible_user_id=employee.user_id)
        create_item(client, auth_headers, title="Fire permit",
                    expiry_date=(date.today() + timedelta(days=200)).isoformat())

        mine = client.get("/api/v1/items?mine=true", headers=employee).json()
        assert [i["title"] for i in mine] == ["Lease contract"]

        soon = client.get("/api/v1/items?expiring_within_days=60", headers=auth_headers).json()
        assert [i["title"] for i in soon] == ["Lease contract"]

        found = client.get("/api/v1/items?q=permit", headers=auth_headers).json()
        assert [i["title"] for i in found] == ["Fire permit"]

    def test_update_with_stale_version_conflicts(self, client, auth_headers):
        item = create_item(client, auth_headers)

        response = client.patch(
            f"/api/v1/items/{item['id']}", headers=auth_headers,
            json={"notes": "Renewal filed", "expected_version": 1},
        )
        assert response.status_code == 200
        assert response.json()["version"] == 2

        stale = client.patch(
            f"/api/v1/items/{item['id']}", headers=auth_headers,
            json={"notes": "Overwrite", "expected_version": 1},
        )
        assert stale.status_code == 409
        assert stale.json()["kind"] == "concurrent_modification"

    def test_null_for_required_field_is_rejected(self, client, auth_headers):
        item = create_item(client, auth_headers)

        for field in ("title", "expiry_date"):
            response = client.patch(
                f"/api/v1/items/{item['id']}", headers=auth_headers, json={field: None}
            )
            assert response.status_code == 422

        cleared = client.patch(
            f"/api/v1/items/{item['id']}", headers=auth_headers, json={"ref_number": None}
        )
        assert cleared.status_code == 200
        assert cleared.json()["title"] == "Municipal license"
        assert cleared.json()["ref_number"] is None

    def test_soft_delete_hides_item(self, client, auth_headers):
        item = create_item(client, auth_headers)
        assert client.delete(f"/api/v1/items/{item['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/v1/items/{item['id']}", headers=auth_headers).status_code == 404
        assert client.get("/api/v1/items", headers=auth_headers).json() == []

    def test_other_tenant_cannot_see_item(self, client, auth_headers):
        item = create_item(client, auth_headers)
        other = client.post(
            "/api/v1/auth/register",
            json={"tenant_name": "Rival", "email": "rival@example.com", "password": "password123"},
        ).json()
        headers = {"Authorization": f"Bearer {other['access_token']}"}
        assert client.get(f"/api/v1/items/{item['id']}", headers=headers).status_code == 404

    def test_stats(self, client, auth_headers):
        create_item(client, auth_headers, expiry_date=(date.today() - timedelta(days=2)).isoformat())
        create_item(client, auth_headers)
        stats = client.get("/api/v1/items/stats", headers=auth_headers).json()
        assert stats["total"] == 2
        assert stats["by_status"]["new"] == 2
        assert stats["expired"] == 1
        assert stats["expiring_30_days"] == 1


class TestWorkflowApi:
    def test_full_cycle(self, client, auth_headers, make_user):
        employee = make_user("employee")
        supervisor = make_user("supervisor")
        item = create_item(client, auth_headers, responsible_user_id=employee.user_id)
        item_id = item["id"]

        actions = client.get(f"/api/v1/items/{item_id}/actions", headers=employee).json()
        assert [a["action"] for a in actions] == ["acknowledge"]

        assert workflow(client, employee, item_id, "acknowledge").json()["workflow_status"] == "acknowledged"
        assert workflow(client, employee, item_id, "start").json()["workflow_status"] == "in_progress"

        no_proof = workflow(client, employee, item_id, "done")
        assert no_proof.status_code == 409
        assert no_proof.json()["kind"] == "completion_proof_missing"

        done = workflow(client, employee, item_id, "done", completion_description="Renewed at MOC")
        assert done.json()["workflow_status"] == "done_pending_supervisor"
        assert done.json()["completed_by_id"] == employee.user_id

        denied = workflow(client, employee, item_id, "approve")
        assert denied.status_code == 403
        assert denied.json()["kind"] == "permission_denied"

        no_reason = workflow(client, supervisor, item_id, "return")
        assert no_reason.status_code == 409
        assert no_reason.json()["kind"] == "reason_required"

        finished = client.post(
            f"/api/v1/items/{item_id}/workflow", headers=supervisor,
            json={"target_status": "finished"},
        )
        assert finished.status_code == 200
        assert finished.json()["workflow_status"] == "finished"
        assert finished.json()["finished_at"] is not None

        timeline = client.get(f"/api/v1/items/{item_id}/timeline", headers=auth_headers).json()
        assert sorted(entry["new_status"] for entry in timeline) == sorted(
            ["new", "acknowledged", "in_progress", "done_pending_supervisor", "finished"]
        )

        locked = workflow(client, auth_headers, item_id, "return", reason="Too late")
        assert locked.status_code == 409
        assert locked.json()["kind"] == "invalid_transition"

    def test_employee_not_responsible_is_denied(self, client, auth_headers, make_user):
        item = create_item(client, auth_headers)
        stranger = make_user("employee")
        response = workflow(client, stranger, item["id"], "acknowledge")
        assert response.status_code == 403

    def test_return_notifies_responsible_user(self, client, auth_headers, make_user):
        employee = make_user("employee")
        item = create_item(client, auth_headers, responsible_user_id=employee.user_id)
        for action in ("acknowledge", "start"):
            workflow(client, employee, item["id"], action)
        workflow(client, employee, item["id"], "done", completion_attachment_url="https://files/x.pdf")

        returned = workflow(client, auth_headers, item["id"], "return", reason="Wrong scan")
        assert returned.json()["workflow_status"] == "returned"

        notifications = client.get("/api/v1/notifications", headers=employee).json()
        assert len(notifications) == 1
        assert "Wrong scan" in notifications[0]["message"]
        assert notifications[0]["notification_type"] == "workflow"

    def test_stale_expected_version_conflicts(self, client, auth_headers):
        item = create_item(client, auth_headers)
        assert workflow(client, auth_headers, item["id"], "acknowledge", expected_version=1).status_code == 200

        stale = workflow(client, auth_headers, item["id"], "start", expected_version=1)

        assert stale.status_code == 409
        assert stale.json()["kind"] == "concurrent_modification"
        current = client.get(f"/api/v1/items/{item['id']}", headers=auth_headers).json()
        assert current["workflow_status"] == "acknowledged"
        assert current["version"] == 2

    def test_missing_action_is_rejected(self, client, auth_headers):
        item = create_item(client, auth_headers)
        response = client.post(
            f"/api/v1/items/{item['id']}/workflow", headers=auth_headers, json={"reason": "x"}
        )
        assert response.status_code == 422


class TestReminderPreview:
    def test_preview_lists_due_reminders(self, client, auth_headers, make_user):
        employee = make_user("employee")
        rule = client.post(
            "/api/v1/reminder-rules", headers=auth_headers,
            json={"name": "Weekly", "days_before": [7, 7, 1], "channels": ["telegram", "in_app"]},
        ).json()
        assert rule["days_before"] == [7, 1]
        recipient = client.post(
            "/api/v1/recipients", headers=auth_headers,
            json={"name": "Sara", "telegram_chat_id": "555", "user_id": employee.user_id},
        ).json()
        expiry = date(2026, 5, 8)
        item = create_item(client, auth_headers, expiry_date=expiry.isoformat(),
                           reminder_rule_id=rule["id"], recipient_ids=[recipient["id"]])

        preview = client.get(
            f"/api/v1/items/{item['id']}/reminder-preview?on=2026-05-01", headers=auth_headers
        ).json()

        assert preview["is_due"] is True
        assert preview["days_left"] == 7
        assert [r["channel"] for r in preview["reminders"]] == ["telegram", "in_app"]
        assert preview["reminders"][1]["address"] == employee.user_id

        quiet = client.get(
            f"/api/v1/items/{item['id']}/reminder-preview?on=2026-05-02", headers=auth_headers
        ).json()
        assert quiet["is_due"] is False
        assert quiet["reminders"] == []

    def test_rule_in_use_cannot_be_deleted(self, client, auth_headers):
        rule = client.post("/api/v1/reminder-rules", headers=auth_headers, json={"name": "R"}).json()
        create_item(client, auth_headers, reminder_rule_id=rule["id"])
        response = client.delete(f"/api/v1/reminder-rules/{rule['id']}", headers=auth_headers)
        assert response.status_code == 409

    def test_negative_days_rejected(self, client, auth_headers):
        response = client.post(
            "/api/v1/reminder-rules", headers=auth_headers, json={"name": "R", "days_before": [-1]}
        )
        assert response.status_code == 422


class TestTemplates:
    def test_required_field_must_appear_in_text(self, client, auth_headers):
        response = client.post(
            "/api/v1/message-templates", headers=auth_headers,
            json={"name": "T", "template_text": "{{title}}", "required_fields": ["expiry_date"]},
        )
        assert response.status_code == 422

    def test_edit_bumps_version_and_preview(self, client, auth_headers):
        template = client.post(
            "/api/v1/message-templates", headers=auth_headers,
            json={"name": "Reminder", "template_text": "{{title}} due {{expiry_date}}",
                  "required_fields": ["title"]},
        ).json()
        assert template["version"] == 1

        updated = client.patch(
            f"/api/v1/message-templates/{template['id']}", headers=auth_headers,
            json={"template_text": "{{title}} ({{ref_number}}) due {{expiry_date}}"},
        ).json()
        assert updated["version"] == 2

        item = create_item(client, auth_headers, expiry_date="2026-06-30")
        preview = client.post(
            f"/api/v1/message-templates/{template['id']}/preview", headers=auth_headers,
            json={"item_id": item["id"]},
        ).json()
        assert preview["rendered"] == "Municipal license (LIC-001) due 2026-06-30"
        assert preview["placeholders"] == ["title", "ref_number", "expiry_date"]
        assert preview["missing_fields"] == []

    def test_preview_reports_missing_fields(self, client, auth_headers):
        template = client.post(
            "/api/v1/message-templates", headers=auth_headers,
            json={"name": "Strict", "template_text": "{{title}} #{{license_number}}",
                  "required_fields": ["license_number"]},
        ).json()
        preview = client.post(
            f"/api/v1/message-templates/{template['id']}/preview", headers=auth_headers,
            json={"sample_data": {"title": "Lease"}},
        ).json()
        assert preview["rendered"] == "Lease #-"
        assert preview["missing_fields"] == ["license_number"]

    def test_duplicate(self, client, auth_headers):
        template = client.post(
            "/api/v1/message-templates", headers=auth_headers,
            json={"name": "Base", "template_text": "{{title}}", "is_default": True},
        ).json()
        copy = client.post(
            f"/api/v1/message-templates/{template['id']}/duplicate", headers=auth_headers
        ).json()
        assert copy["name"] == "Base (copy)"
        assert copy["is_default"] is False
        assert copy["id"] != template["id"]


class TestDynamicFields:
    def test_required_field_enforced_on_items(self, client, auth_headers):
        field = client.post(
            "/api/v1/dynamic-fields", headers=auth_headers,
            json={"field_key": "license_number", "field_label": "License number", "is_required": True},
        )
        assert field.status_code == 201

        missing = client.post(
            "/api/v1/items", headers=auth_headers,
            json={"title": "Shop license", "expiry_date": "2026-09-01"},
        )
        assert missing.status_code == 422
        assert missing.json()["kind"] == "dynamic_field_invalid"
        assert missing.json()["errors"] == {"license_number": "is required"}

        item = create_item(client, auth_headers, dynamic_fields={"license_number": " BR-1 "})
        assert item["dynamic_fields"] == {"license_number": "BR-1"}

    def test_duplicate_key_in_scope_conflicts(self, client, auth_headers):
        payload = {"field_key": "branch", "field_label": "Branch"}
        assert client.post("/api/v1/dynamic-fields", headers=auth_headers, json=payload).status_code == 201
        assert client.post("/api/v1/dynamic-fields", headers=auth_headers, json=payload).status_code == 409

    def test_select_needs_options(self, client, auth_headers):
        response = client.post(
            "/api/v1/dynamic-fields", headers=auth_headers,
            json={"field_key": "authority", "field_label": "Authority", "field_type": "select"},
        )
        assert response.status_code == 422


class TestEscalationsApi:
    def open_log(self, db, item, employee_id, next_at):
        log = EscalationLog(
            tenant_id=uuid.UUID(item["tenant_id"]),
            item_id=uuid.UUID(item["id"]),
            escalation_level=0,
            status=EscalationStatus.PENDING,
            original_recipient_id=uuid.UUID(employee_id),
            current_recipient_id=uuid.UUID(employee_id),
            sent_at=datetime.now(UTC) - timedelta(hours=30),
            next_escalation_at=next_at,
        )
        db.add(log)
        db.commit()
        return log

    def setup_ladder(self, client, auth_headers, make_user):
        employee = make_user("employee")
        supervisor = make_user("supervisor")
        for level, hours in ((0, 24), (1, 48)):
            response = client.post(
                "/api/v1/escalations/rules", headers=auth_headers,
                json={"escalation_level": level, "delay_hours": hours},
            )
            assert response.status_code == 201
        hierarchy = client.put(
            "/api/v1/escalations/hierarchy", headers=auth_headers,
            json={"employee_id": employee.user_id, "supervisor_id": supervisor.user_id},
        )
        assert hierarchy.status_code == 200
        item = create_item(client, auth_headers, responsible_user_id=employee.user_id)
        item["tenant_id"] = auth_headers.tenant_id
        return employee, supervisor, item

    def test_status_preview_projects_next_level(self, client, db, auth_headers, make_user):
        employee, supervisor, item = self.setup_ladder(client, auth_headers, make_user)
        log = self.open_log(db, item, employee.user_id, datetime.now(UTC) - timedelta(hours=1))

        preview = client.get(f"/api/v1/escalations/{log.id}/status", headers=employee).json()

        assert preview["level"] == 0
        assert preview["level_label"] == "Employee"
        assert preview["time_remaining_seconds"] == 0
        assert preview["would_escalate"] is True
        assert preview["projected_level"] == 1
        assert preview["projected_recipient_id"] == supervisor.user_id

        # Preview does not move the log
        assert client.get(f"/api/v1/escalations/{log.id}", headers=employee).json()["escalation_level"] == 0

    def test_acknowledge_by_recipient_only(self, client, db, auth_headers, make_user):
        employee, _, item = self.setup_ladder(client, auth_headers, make_user)
        log = self.open_log(db, item, employee.user_id, datetime.now(UTC) + timedelta(hours=5))
        stranger = make_user("employee")

        assert client.post(f"/api/v1/escalations/{log.id}/acknowledge", headers=stranger).status_code == 403

        response = client.post(f"/api/v1/escalations/{log.id}/acknowledge", headers=employee)
        assert response.status_code == 200
        assert response.json()["status"] == "acknowledged"

        again = client.post(f"/api/v1/escalations/{log.id}/acknowledge", headers=employee)
        assert again.status_code == 409

    def test_employees_only_see_their_escalations(self, client, db, auth_headers, make_user):
        employee, _, item = self.setup_ladder(client, auth_headers, make_user)
        self.open_log(db, item, employee.user_id, datetime.now(UTC) + timedelta(hours=5))
        stranger = make_user("employee")

        assert len(client.get("/api/v1/escalations", headers=employee).json()) == 1
        assert client.get("/api/v1/escalations", headers=stranger).json() == []
        assert len(client.get("/api/v1/escalations?status=pending", headers=auth_headers).json()) == 1

    def test_employee_cannot_fetch_others_escalation(self, client, db, auth_headers, make_user):
        employee, supervisor, item = self.setup_ladder(client, auth_headers, make_user)
        log = self.open_log(db, item, employee.user_id, datetime.now(UTC) + timedelta(hours=5))
        stranger = make_user("employee")

        assert client.get(f"/api/v1/escalations/{log.id}", headers=stranger).status_code == 404
        assert client.get(f"/api/v1/escalations/{log.id}/status", headers=stranger).status_code == 404
        assert client.get(f"/api/v1/escalations/{log.id}", headers=employee).status_code == 200
        assert client.get(f"/api/v1/escalations/{log.id}", headers=supervisor).status_code == 200

    def test_resolve_and_stats(self, client, db, auth_headers, make_user):
        employee, supervisor, item = self.setup_ladder(client, auth_headers, make_user)
        log = self.open_log(db, item, employee.user_id, datetime.now(UTC) - timedelta(hours=1))

        stats = client.get("/api/v1/escalations/stats", headers=supervisor).json()
        assert stats["total"] == 1
        assert stats["overdue"] == 1
        assert stats["by_level"] == {"0": 1}

        resolved = client.post(
            f"/api/v1/escalations/{log.id}/resolve", headers=supervisor, json={"notes": "Renewed"}
        )
        assert resolved.status_code == 200
        assert resolved.json()["status"] == "resolved"
        assert resolved.json()["resolution_notes"] == "Renewed"

        assert client.get("/api/v1/escalations/stats", headers=employee).status_code == 403

    def test_global_rules_need_system_admin(self, client, db, auth_headers):
        rule = EscalationRule(tenant_id=None, escalation_level=0, delay_hours=24)
        db.add(rule)
        db.commit()

        listed = client.get("/api/v1/escalations/rules", headers=auth_headers).json()
        assert [r["tenant_id"] for r in listed] == [None]

        response = client.patch(
            f"/api/v1/escalations/rules/{rule.id}", headers=auth_headers, json={"delay_hours": 1}
        )
        assert response.status_code == 403


class TestNotifications:
    def add_notification(self, db, headers, title):
        notification = InAppNotification(
            tenant_id=uuid.UUID(headers.tenant_id),
            user_id=uuid.UUID(headers.user_id),
            notification_type=InAppNotificationType.REMINDER,
            title=title,
            message=f"{title} expires soon",
        )
        db.add(notification)
        db.commit()
        return notification

    def test_read_flow(self, client, db, auth_headers):
        first = self.add_notification(db, auth_headers, "Lease")
        self.add_notification(db, auth_headers, "Permit")

        assert client.get("/api/v1/notifications/unread-count", headers=auth_headers).json() == {"unread": 2}

        read = client.post(f"/api/v1/notifications/{first.id}/read", headers=auth_headers)
        assert read.json()["is_read"] is True

        unread = client.get("/api/v1/notifications?unread_only=true", headers=auth_headers).json()
        assert [n["title"] for n in unread] == ["Permit"]

        assert client.post("/api/v1/notifications/read-all", headers=auth_headers).json() == {"updated": 1}

    def test_other_users_notifications_are_hidden(self, client, db, auth_headers, make_user):
        notification = self.add_notification(db, auth_headers, "Lease")
        employee = make_user("employee")
        assert client.get("/api/v1/notifications", headers=employee).json() == []
        assert client.post(
            f"/api/v1/notifications/{notification.id}/read", headers=employee
        ).status_code == 404
