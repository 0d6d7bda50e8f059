"""Error taxonomy for the accounts service.

Every error carries an HTTP status and a message key. The key is looked up in
the request locale's catalog by the exception handler in ``main.py``.
"""


class AccountsError(Exception):
    """Base class for errors rendered as ``{path, timestamp, message}``."""

    status_code: int = 500
    message_key: str = "internal_error"

    def __init__(self, message_key: str | None = None) -> None:
        if message_key is not None:
            self.message_key = message_key
        super().__init__(self.message_key)


class ValidationFailed(AccountsError):
    """One or more fields broke a rule. ``errors`` maps field -> message key."""

    status_code = 400
    message_key = "validation_failure"

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__()
        self.errors = errors


class AuthenticationFailed(AccountsError):
    status_code = 401
    message_key = "authentication_failure"


class ForbiddenError(AccountsError):
    status_code = 403
    message_key = "unauthorized_user_update"


class NotFoundError(AccountsError):
    status_code = 404
    message_key = "user_not_found"


class InvalidTokenError(AccountsError):
    status_code = 400
    message_key = "account_activation_failure"


class EmailDeliveryError(AccountsError):
    status_code = 502
    message_key = "email_failure"


class MailTransportError(Exception):
    """Raised by the mail adapter when a message could not be handed to the SMTP server."""
