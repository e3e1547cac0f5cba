"""
Notification switch.

Desktop notification backends are not bundled; notifications are emitted
on the ``task_guard.notifications`` logger so any handler can render them.
"""

import logging
from typing import Optional

from task_guard import constants


logger = logging.getLogger(__name__)
notification_logger = logging.getLogger("task_guard.notifications")


def notifications_allowed(notify_option: bool, env_value: Optional[str] = None) -> bool:
    """
    Decide whether notifications should be on.

    A TASK_GUARD_NOTIFY value of "false" disables notifications regardless
    of the option.
    """
    if env_value is None:
        env_value = constants.TASK_GUARD_NOTIFY
    if env_value.strip().lower() == "false":
        return False
    return bool(notify_option)


class Notifier:
    """Turns notifications on and off and sends them."""

    def __init__(self):
        self._enabled = False

    def turn_on(self) -> None:
        self._enabled = True
        logger.debug("Notifications turned on")

    def turn_off(self) -> None:
        self._enabled = False
        logger.debug("Notifications turned off")

    def enabled(self) -> bool:
        return self._enabled

    def configure(self, notify_option: bool) -> None:
        if notifications_allowed(notify_option):
            self.turn_on()
        else:
            self.turn_off()

    def notify(self, message: str, title: str = "task-guard", image: str = "success") -> bool:
        """
        Send a notification.

        Args:
            message: Notification body
            title: Notification title
            image: One of "success", "pending", "failed"

        Returns:
            True if the notification was sent
        """
        if not self._enabled:
            return False

        level = logging.ERROR if image == "failed" else logging.INFO
        notification_logger.log(level, "[%s] %s", title, message, extra={"image": image})
        return True
