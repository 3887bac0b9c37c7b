import logging

from . import config

logger = logging.getLogger(__name__)


class SessionCounters:
    """
    Counts confirmed pushes towards the next mouth-to-mouth break.

    The count rolls over at ``interval`` whether or not the reminder is
    enabled, so re-enabling it mid-session does not fire immediately.
    """

    def __init__(
        self,
        interval: int = config.MOUTH_TO_MOUTH_INTERVAL,
        mouth_to_mouth: bool = config.MOUTH_TO_MOUTH_ENABLED
    ):
        if interval <= 0:
            raise ValueError("interval must be a positive number of pushes")
        self.interval = interval
        self.mouth_to_mouth = mouth_to_mouth
        self.push_count = 0
        self.reminders = 0

    def on_confirmed_push(self) -> bool:
        """Count one push. Returns True when a mouth-to-mouth break is due."""
        self.push_count += 1
        if self.push_count < self.interval:
            return False

        self.push_count = 0
        if not self.mouth_to_mouth:
            return False
        self.reminders += 1
        logger.info("Mouth-to-mouth due after %d pushes", self.interval)
        return True

    def pushes_until_reminder(self) -> int:
        return max(0, self.interval - self.push_count)

    def reset(self):
        self.push_count = 0
        self.reminders = 0
