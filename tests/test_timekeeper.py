import time
from datetime import timedelta

import pytest

from apavs.timekeeper import Elapsing, ElapsingStateError, ElapsingStatus


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def test_elapsing():
    clock = FakeClock()
    elapse = Elapsing(clock)
    clock.sleep(0.051)

    d1 = elapse.report()
    assert d1 > timedelta(milliseconds=50)

    elapse.pause()
    clock.sleep(0.05)
    elapse.resume()
    d2 = elapse.report()
    assert d2 < timedelta(milliseconds=1)


def test_reset():
    clock = FakeClock()
    elapse = Elapsing(clock)
    clock.sleep(0.05)

    elapse.reset()
    d1 = elapse.report()
    assert d1 < timedelta(milliseconds=1)


def test_carryon():
    clock = FakeClock()
    elapse = Elapsing(clock)
    clock.sleep(0.01)
    elapse.pause()

    clock.sleep(0.01)
    elapse.resume()
    d1 = elapse.report()
    assert d1 < timedelta(milliseconds=20)
    assert d1 >= timedelta(milliseconds=10) - timedelta(microseconds=1)


def test_real_clock_measures_sleep():
    elapse = Elapsing()
    time.sleep(0.05)
    assert elapse.report() >= timedelta(milliseconds=40)


def test_report_while_paused_is_zero():
    clock = FakeClock()
    elapse = Elapsing(clock)
    elapse.pause()
    clock.sleep(5)
    assert elapse.report() == timedelta(0)
    assert elapse.status is ElapsingStatus.PAUSE


def test_pause_twice_raises():
    elapse = Elapsing(FakeClock())
    elapse.pause()
    with pytest.raises(ElapsingStateError):
        elapse.pause()


def test_resume_when_running_raises():
    elapse = Elapsing(FakeClock())
    with pytest.raises(ElapsingStateError):
        elapse.resume()


def test_report_restarts_interval():
    clock = FakeClock()
    elapse = Elapsing(clock)
    clock.sleep(2)
    first = elapse.report()
    clock.sleep(3)
    second = elapse.report()
    assert first == timedelta(seconds=2)
    assert second == timedelta(seconds=3)