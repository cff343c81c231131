"""Tests for the escalation ladder."""

import uuid
from datetime import UTC, date, datetime, timedelta

import pytest

from sentinel.exceptions import InvalidTransition, PermissionDenied
from sentinel.models import EscalationLog, EscalationRule, Item, OrganizationalHierarchy
from sentinel.models.enums import EscalationStatus, Role
from sentinel.services.clock import ActorContext
from sentinel.services.escalation import (
    acknowledge,
    apply_outcome,
    compute_level,
    holders_for,
    resolve,
    select_rule,
    start_escalation,
)

TENANT = uuid.uuid4()
EMPLOYEE = uuid.uuid4()
SUPERVISOR = uuid.uuid4()
MANAGER = uuid.uuid4()
DIRECTOR = uuid.uuid4()
HR = uuid.uuid4()
T0 = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)

HOLDERS = {1: SUPERVISOR, 2: MANAGER, 3: DIRECTOR, 4: HR}


def rule(level, delay_hours=24, sort_order=0, tenant_id=TENANT, is_active=True) -> EscalationRule:
    return EscalationRule(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        escalation_level=level,
        delay_hours=delay_hours,
        sort_order=sort_order,
        is_active=is_active,
        notification_channels=["in_app"],
    )


FULL_LADDER = [rule(0, 24), rule(1, 48), rule(2, 72), rule(3, 24), rule(4, 24)]


def make_log(level=0, status=EscalationStatus.PENDING, next_at=T0 + timedelta(hours=24),
             recipient=EMPLOYEE) -> EscalationLog:
    return EscalationLog(
        id=uuid.uuid4(),
        tenant_id=TENANT,
        item_id=uuid.uuid4(),
        escalation_level=level,
        status=status,
        original_recipient_id=EMPLOYEE,
        current_recipient_id=recipient,
        sent_at=T0,
        next_escalation_at=next_at,
    )


class TestComputeLevel:
    def test_before_deadline_nothing_changes(self):
        log = make_log()
        outcome = compute_level(log, FULL_LADDER, T0 + timedelta(hours=23), HOLDERS)
        assert not outcome.changed
        assert outcome.level == 0
        assert outcome.time_remaining == timedelta(hours=1)

    def test_climbs_to_supervisor_at_deadline(self):
        log = make_log()
        now = T0 + timedelta(hours=24)
        outcome = compute_level(log, FULL_LADDER, now, HOLDERS)
        assert outcome.escalated
        assert outcome.level == 1
        assert outcome.status == EscalationStatus.ESCALATED
        assert outcome.recipient_id == SUPERVISOR
        assert outcome.previous_recipient_id == EMPLOYEE
        assert outcome.next_escalation_at == now + timedelta(hours=48)

    def test_pure_and_idempotent(self):
        log = make_log()
        now = T0 + timedelta(hours=30)
        first = compute_level(log, FULL_LADDER, now, HOLDERS)
        second = compute_level(log, FULL_LADDER, now, HOLDERS)
        assert first == second
        assert log.escalation_level == 0
        assert log.status == EscalationStatus.PENDING

    def test_one_level_per_evaluation(self):
        log = make_log()
        outcome = compute_level(log, FULL_LADDER, T0 + timedelta(days=30), HOLDERS)
        assert outcome.level == 1

    def test_frozen_statuses_do_not_move(self):
        for status in (EscalationStatus.ACKNOWLEDGED, EscalationStatus.RESOLVED, EscalationStatus.EXPIRED):
            log = make_log(status=status)
            outcome = compute_level(log, FULL_LADDER, T0 + timedelta(days=5), HOLDERS)
            assert not outcome.changed
            assert outcome.status == status

    def test_missing_rule_expires_without_climbing(self):
        log = make_log(level=1, status=EscalationStatus.ESCALATED, recipient=SUPERVISOR)
        rules = [rule(0), rule(1)]
        outcome = compute_level(log, rules, T0 + timedelta(days=2), HOLDERS)
        assert outcome.changed
        assert outcome.status == EscalationStatus.EXPIRED
        assert outcome.level == 1
        assert outcome.reason.startswith("escalation_rule_gap")

    def test_missing_holder_expires(self):
        log = make_log()
        holders = {1: None, 2: MANAGER, 3: DIRECTOR, 4: HR}
        outcome = compute_level(log, FULL_LADDER, T0 + timedelta(days=2), holders)
        assert outcome.status == EscalationStatus.EXPIRED
        assert outcome.level == 0
        assert "Supervisor" in outcome.reason

    def test_single_level_one_rule_still_escalates(self):
        log = make_log()
        rules = [rule(0), rule(1, delay_hours=12)]
        outcome = compute_level(log, rules, T0 + timedelta(hours=24), HOLDERS)
        assert outcome.level == 1
        assert outcome.next_escalation_at == T0 + timedelta(hours=36)

    @pytest.mark.parametrize(
        "rules",
        [[], [rule(1, delay_hours=4)], [rule(0, is_active=False), rule(1), rule(2)]],
        ids=["empty", "level_one_only", "level_zero_inactive"],
    )
    def test_no_level_zero_rule_leaves_log_pending(self, rules):
        log = make_log(next_at=T0 - timedelta(hours=1))
        outcome = compute_level(log, rules, T0, HOLDERS)
        assert not outcome.changed
        assert outcome.level == 0
        assert outcome.status == EscalationStatus.PENDING
        assert outcome.recipient_id == EMPLOYEE

    def test_naive_deadline_is_treated_as_utc(self):
        log = make_log(next_at=datetime(2026, 3, 2, 8, 0))
        outcome = compute_level(log, FULL_LADDER, datetime(2026, 3, 2, 8, 0, tzinfo=UTC), HOLDERS)
        assert outcome.escalated


class TestSelectRule:
    def test_lowest_sort_order_wins(self):
        a = rule(1, delay_hours=10, sort_order=2)
        b = rule(1, delay_hours=20, sort_order=1)
        assert select_rule([a, b], 1) is b

    def test_tenant_rule_beats_global_on_tie(self):
        global_rule = rule(1, tenant_id=None)
        tenant_rule = rule(1)
        assert select_rule([global_rule, tenant_rule], 1) is tenant_rule

    def test_inactive_rules_ignored(self):
        assert select_rule([rule(1, is_active=False)], 1) is None


class TestApplyOutcome:
    def test_writes_outcome_back(self):
        log = make_log()
        now = T0 + timedelta(hours=24)
        apply_outcome(log, compute_level(log, FULL_LADDER, now, HOLDERS), now)
        assert log.escalation_level == 1
        assert log.current_recipient_id == SUPERVISOR
        assert log.previous_recipient_id == EMPLOYEE
        assert log.escalated_at == now

    def test_full_climb_reaches_hr_then_expires(self):
        log = make_log()
        now = T0
        seen = []
        for _ in range(6):
            now = log.next_escalation_at or now
            apply_outcome(log, compute_level(log, FULL_LADDER, now, HOLDERS), now)
            seen.append((log.escalation_level, log.status))
        assert [level for level, _ in seen[:4]] == [1, 2, 3, 4]
        assert log.current_recipient_id == HR
        assert log.status == EscalationStatus.EXPIRED


class TestHolders:
    def test_maps_hierarchy_levels(self):
        hierarchy = OrganizationalHierarchy(
            employee_id=EMPLOYEE, supervisor_id=SUPERVISOR, manager_id=MANAGER, director_id=None
        )
        assert holders_for(hierarchy, HR) == {1: SUPERVISOR, 2: MANAGER, 3: None, 4: HR}

    def test_no_hierarchy(self):
        assert holders_for(None) == {1: None, 2: None, 3: None, 4: None}


class TestStartEscalation:
    def item(self):
        return Item(id=uuid.uuid4(), tenant_id=TENANT, title="Lease", expiry_date=date(2026, 4, 1))

    def test_opens_log_at_level_zero(self):
        log = start_escalation(self.item(), EMPLOYEE, FULL_LADDER, T0)
        assert log.escalation_level == 0
        assert log.status == EscalationStatus.PENDING
        assert log.next_escalation_at == T0 + timedelta(hours=24)

    def test_no_level_zero_rule_means_no_escalation(self):
        assert start_escalation(self.item(), EMPLOYEE, [rule(1), rule(2)], T0) is None

    def test_active_log_is_kept(self):
        existing = make_log(level=2, status=EscalationStatus.ESCALATED, recipient=MANAGER)
        assert start_escalation(self.item(), EMPLOYEE, FULL_LADDER, T0, existing) is existing
        assert existing.escalation_level == 2

    def test_acknowledged_log_restarts(self):
        existing = make_log(level=1, status=EscalationStatus.ACKNOWLEDGED, recipient=SUPERVISOR)
        log = start_escalation(self.item(), EMPLOYEE, FULL_LADDER, T0, existing)
        assert log is existing
        assert log.escalation_level == 0
        assert log.status == EscalationStatus.PENDING
        assert log.current_recipient_id == EMPLOYEE


class TestAcknowledgeResolve:
    def test_recipient_acknowledges(self):
        log = make_log(level=1, status=EscalationStatus.ESCALATED, recipient=SUPERVISOR)
        acknowledge(log, ActorContext(TENANT, SUPERVISOR, Role.EMPLOYEE), T0)
        assert log.status == EscalationStatus.ACKNOWLEDGED
        assert log.acknowledged_by_id == SUPERVISOR

    def test_stranger_cannot_acknowledge(self):
        log = make_log()
        with pytest.raises(PermissionDenied):
            acknowledge(log, ActorContext(TENANT, uuid.uuid4(), Role.EMPLOYEE), T0)

    def test_acknowledged_log_cannot_be_acknowledged_again(self):
        log = make_log(status=EscalationStatus.ACKNOWLEDGED)
        with pytest.raises(InvalidTransition):
            acknowledge(log, ActorContext(TENANT, EMPLOYEE, Role.EMPLOYEE), T0)

    def test_resolve_closes_for_good(self):
        log = make_log()
        resolve(log, ActorContext(TENANT, uuid.uuid4(), Role.SUPERVISOR), T0, notes="Renewed")
        assert log.status == EscalationStatus.RESOLVED
        assert log.next_escalation_at is None
        with pytest.raises(InvalidTransition):
            resolve(log, ActorContext(TENANT, EMPLOYEE, Role.EMPLOYEE), T0)
