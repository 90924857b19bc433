# barbershop/core/errors.py
"""
Domain errors raised by the scheduling and commission core.

Every error is client-facing and recoverable: it carries an HTTP status,
a stable machine code and a ``context`` dict (conflicting appointment id,
current status, quota...) so callers can react without parsing messages.
"""


class SchedulingError(Exception):
    status_code = 400
    code = "scheduling_error"

    def __init__(self, detail: str, **context):
        super().__init__(detail)
        self.detail = detail
        self.context = context


class SlotUnavailable(SchedulingError):
    status_code = 409
    code = "slot_unavailable"


class InvalidTransition(SchedulingError):
    status_code = 409
    code = "invalid_transition"


class SubscriptionLimitExceeded(SchedulingError):
    status_code = 409
    code = "subscription_limit_exceeded"


class OriginalLineItemImmutable(SchedulingError):
    status_code = 409
    code = "original_line_item_immutable"


class InvalidRange(SchedulingError):
    status_code = 422
    code = "invalid_range"


class DistributionInputInvalid(SchedulingError):
    status_code = 422
    code = "distribution_input_invalid"


class NotFound(SchedulingError):
    status_code = 404
    code = "not_found"
