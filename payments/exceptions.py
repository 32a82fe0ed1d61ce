class PaymentError(Exception):
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message


class ValidationError(PaymentError):
    """Missing or malformed client input."""
    status_code = 400


class ConfigurationError(PaymentError):
    """Required server-side setting is absent."""


class GatewayError(PaymentError):
    """Daraja rejected the call or could not be reached; `details` holds the upstream body."""


class CallbackParseError(PaymentError):
    """Callback payload does not have the stkCallback shape."""
