"""Exceptions raised by the memorial services."""


class MemorialError(Exception):
    """Base class for memorial service errors."""


class MemorialNotFound(MemorialError):
    def __init__(self, memorial_id):
        super().__init__(f"Memorial {memorial_id} not found")
        self.memorial_id = memorial_id


class MemorialPermissionError(MemorialError):
    """The acting user does not own the memorial."""


class InvalidPlan(MemorialError):
    def __init__(self, plan):
        super().__init__(f"Invalid or non-purchasable plan: {plan!r}")
        self.plan = plan


class PaymentError(MemorialError):
    """Base class for payment gateway problems."""


class PaymentConfigurationError(PaymentError):
    """The payment gateway is not configured (missing secret key)."""


class PaymentGatewayError(PaymentError):
    """The payment gateway could not be reached or returned garbage."""


class PaymentNotVerified(PaymentError):
    def __init__(self, reference, message=None):
        super().__init__(message or f"Payment {reference} could not be verified")
        self.reference = reference
        self.message = message


class UpgradeApplicationFailure(MemorialError):
    """A verified payment could not be applied to the memorial.

    Money has changed hands at this point; the transaction is flagged for
    manual reconciliation.
    """

    def __init__(self, reference, memorial_id, cause=None):
        super().__init__(
            f"Verified payment {reference} could not be applied to memorial {memorial_id}")
        self.reference = reference
        self.memorial_id = memorial_id
        self.cause = cause


class AIDraftingError(Exception):
    """The generative-AI service failed; ``str(e)`` is safe to show to users."""
