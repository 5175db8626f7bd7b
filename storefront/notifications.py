"""User-facing notifications.

Alerts are modal messages with a single acknowledgment action. The
screen layer only depends on the ``Notifier`` protocol; the renderer
decides how an alert is shown.
"""

import sys
from dataclasses import dataclass
from typing import Protocol, TextIO

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class Alert:
    """A modal message shown to the user."""

    title: str
    message: str
    actions: tuple[str, ...] = ("OK",)


NO_INTERNET = Alert(
    title="No Internet",
    message="Please check your internet connection and try again.",
)
CART_ADD_FAILED = Alert(title="Error", message="Failed to add item to cart.")


def added_to_cart(name: str) -> Alert:
    return Alert(title="Added to Cart", message=f"{name} added to cart.")


class Notifier(Protocol):
    """Anything that can present an alert."""

    def notify(self, alert: Alert) -> None: ...


class LoggingNotifier:
    """Notifier that records alerts as log events."""

    def notify(self, alert: Alert) -> None:
        logger.info("Alert", title=alert.title, message=alert.message)


class ConsoleNotifier:
    """Notifier that prints alerts to a terminal stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stderr

    def notify(self, alert: Alert) -> None:
        actions = " / ".join(alert.actions)
        print(f"[{alert.title}] {alert.message} ({actions})", file=self.stream)
