"""Tests for push/release detection."""

from cpready.push_detector import PushDetector, STATE_IDLE, STATE_PUSH_ACTIVE


def feed(detector, magnitudes, dt=0.033):
    return [detector.update(m, i * dt) for i, m in enumerate(magnitudes)]


class TestPushDetector:

    def test_push_release_push(self):
        detector = PushDetector()
        events = [
            detector.update(3.0, 0.0),
            detector.update(-1.0, 0.05),
            detector.update(3.0, 0.12),
        ]
        assert events == [True, False, True]
        assert detector.push_events == 2
        assert detector.last_push_t == 0.12

    def test_no_second_event_without_release(self):
        detector = PushDetector()
        events = feed(detector, [3.0, 5.0, 3.0, 1.0, 0.5, 0.0, 2.5, -0.1, 3.0])
        assert [i for i, e in enumerate(events) if e] == [0, 8]

    def test_threshold_is_strict(self):
        detector = PushDetector(threshold=2.0)
        assert detector.update(2.0, 0.0) is False
        assert detector.state == STATE_IDLE
        assert detector.update(2.0001, 0.1) is True
        assert detector.state == STATE_PUSH_ACTIVE

    def test_zero_does_not_release(self):
        detector = PushDetector()
        detector.update(3.0, 0.0)
        detector.update(0.0, 0.1)
        assert detector.is_push_active
        detector.update(-0.01, 0.2)
        assert not detector.is_push_active

    def test_negative_while_idle_is_ignored(self):
        detector = PushDetector()
        assert feed(detector, [-5.0, -1.0, 1.9]) == [False, False, False]
        assert detector.push_events == 0

    def test_reset(self):
        detector = PushDetector()
        detector.update(3.0, 0.0)
        detector.reset()
        assert detector.state == STATE_IDLE
        assert detector.push_events == 0
        assert detector.last_push_t is None
