"""Domain errors.

Each error carries a machine-readable ``kind`` for logs and sweep results and a
short ``user_message`` that the API returns to clients.
"""


class SentinelError(Exception):
    """Base class for errors raised by the workflow, escalation and dispatch core."""

    kind = "error"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, **context):
        self.user_message = message or self.default_message
        self.context = context
        super().__init__(self.user_message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.user_message, **self.context}


class InvalidTransition(SentinelError):
    """The requested workflow edge does not exist from the current status."""

    kind = "invalid_transition"
    default_message = "This action is not available for the item's current status."


class ReasonRequired(InvalidTransition):
    kind = "reason_required"
    default_message = "A reason is required for this action."


class CompletionProofMissing(InvalidTransition):
    kind = "completion_proof_missing"
    default_message = "Add a completion description or an attachment before marking the item done."


class PermissionDenied(SentinelError):
    kind = "permission_denied"
    default_message = "You are not allowed to perform this action."


class ConcurrentModification(SentinelError):
    kind = "concurrent_modification"
    default_message = "The item was changed by someone else. Reload and try again."


class TemplateFieldMissing(SentinelError):
    """A required placeholder had no value at render time."""

    kind = "template_field_missing"
    default_message = "The message template is missing required information."

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = list(fields)
        super().__init__(
            message or f"Missing required template fields: {', '.join(self.fields)}",
            fields=self.fields,
        )


class EscalationRuleGap(SentinelError):
    """No escalation rule exists for the level an escalation needs next.

    Never propagated out of the ladder: the log degrades to ``expired``.
    """

    kind = "escalation_rule_gap"
    default_message = "No escalation rule is configured for the next level."


class DynamicFieldInvalid(SentinelError):
    kind = "dynamic_field_invalid"
    default_message = "One or more custom fields are invalid."

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        details = "; ".join(f"{key}: {msg}" for key, msg in sorted(self.errors.items()))
        super().__init__(f"Invalid custom fields: {details}", errors=self.errors)
