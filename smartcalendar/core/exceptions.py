class SmartCalendarError(Exception):
    """Base class for application errors."""


class EmailDeliveryError(SmartCalendarError):
    """Raised when an outbound email could not be handed to the SMTP server."""

    def __init__(self, to_email: str, reason: str):
        super().__init__(f"Email to {to_email} failed: {reason}")
        self.to_email = to_email
        self.reason = reason
