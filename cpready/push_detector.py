from . import config

STATE_IDLE = "IDLE"
STATE_PUSH_ACTIVE = "PUSH_ACTIVE"


class PushDetector:
    """Two-state push detector: enter above threshold, leave below zero."""

    def __init__(self, threshold=config.ACCELERATION_THRESHOLD):
        self.threshold = threshold

        self.state = STATE_IDLE
        self.push_events = 0
        self.last_push_t = None

    @property
    def is_push_active(self):
        return self.state == STATE_PUSH_ACTIVE

    def update(self, magnitude, t):
        """Feed one magnitude reading. Returns True when a push starts."""
        if self.state == STATE_IDLE:
            if magnitude > self.threshold:
                self.state = STATE_PUSH_ACTIVE
                self.push_events += 1
                self.last_push_t = t
                return True

        elif self.state == STATE_PUSH_ACTIVE:
            # released once the chest comes back up
            if magnitude < 0:
                self.state = STATE_IDLE

        return False

    def reset(self):
        self.state = STATE_IDLE
        self.push_events = 0
        self.last_push_t = None
