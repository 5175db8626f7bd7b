"""Sign-in flow.

Authentication itself is provided by an external collaborator; this
module only validates the form and reports the outcome to the user.
"""

from dataclasses import dataclass
from typing import Protocol

import structlog

from storefront.notifications import Alert, Notifier

logger = structlog.get_logger()

MISSING_FIELDS_MESSAGE = "Please fill all the fields"


@dataclass(frozen=True)
class LoginResult:
    """Outcome reported by the authenticator."""

    success: bool
    message: str = ""


class Authenticator(Protocol):
    """External authentication capability."""

    async def login(self, email: str, password: str) -> LoginResult: ...


class SignInFlow:
    """Drives the sign-in form."""

    def __init__(self, authenticator: Authenticator, notifier: Notifier) -> None:
        self.authenticator = authenticator
        self.notifier = notifier
        self.loading = False

    async def sign_in(self, email: str, password: str) -> LoginResult:
        """Validate the form and log in.

        Args:
            email: Email address as typed.
            password: Password as typed.

        Returns:
            The login outcome; failures have already been shown to the user.
        """
        if not email.strip() or not password:
            self.notifier.notify(Alert(title="Sign In", message=MISSING_FIELDS_MESSAGE))
            return LoginResult(success=False, message=MISSING_FIELDS_MESSAGE)

        self.loading = True
        try:
            result = await self.authenticator.login(email.strip(), password)
        except Exception as e:
            logger.exception("Login failed unexpectedly")
            result = LoginResult(success=False, message=f"Sign in failed: {e}")
        finally:
            self.loading = False

        logger.info("Sign in attempted", success=result.success)
        if not result.success:
            self.notifier.notify(Alert(title="Sign In", message=result.message))
        return result
