import pytest
from fakes import FakeSleep

from mydo.timer import FocusTimer, TimerDurations, TimerMode, format_clock, run_timer


def _timer(work: int = 3, brk: int = 2) -> FocusTimer:
    return FocusTimer(TimerDurations(work_seconds=work, break_seconds=brk))


def test_initial_state_is_paused_work():
    timer = _timer()
    assert timer.mode == TimerMode.WORK
    assert timer.seconds_remaining == 3
    assert timer.running is False
    assert timer.bound_task_id is None


def test_paused_timer_does_not_advance():
    timer = _timer()
    assert timer.tick() is False
    assert timer.seconds_remaining == 3


def test_last_second_flips_phase_in_same_tick():
    timer = FocusTimer(TimerDurations(work_seconds=60, break_seconds=300))
    timer.seconds_remaining = 1
    timer.start()

    assert timer.tick() is True
    assert timer.mode == TimerMode.BREAK
    assert timer.seconds_remaining == 300
    assert timer.running is True


def test_cycles_back_to_work():
    timer = _timer(work=2, brk=1)
    timer.start()

    timer.tick()
    timer.tick()
    assert timer.mode == TimerMode.BREAK
    timer.tick()
    assert timer.mode == TimerMode.WORK
    assert timer.seconds_remaining == 2


def test_reset_keeps_binding_and_durations():
    timer = _timer()
    timer.bind("task-1")
    timer.configure(10, 4)
    timer.start()
    timer.tick()

    timer.reset()

    assert timer.mode == TimerMode.WORK
    assert timer.seconds_remaining == 10
    assert timer.running is False
    assert timer.bound_task_id == "task-1"
    assert timer.durations == TimerDurations(work_seconds=10, break_seconds=4)


def test_configure_does_not_touch_current_phase():
    timer = _timer(work=5)
    timer.configure(100, 50)
    assert timer.seconds_remaining == 5

    with pytest.raises(ValueError):
        timer.configure(0, 5)


def test_toggle_and_bind():
    timer = _timer()
    assert timer.toggle() is True
    timer.pause()
    assert timer.running is False
    timer.bind("abc")
    timer.bind(None)
    assert timer.bound_task_id is None


def test_format_clock_pads_and_does_not_cap_minutes():
    assert format_clock(0) == "00:00"
    assert format_clock(65) == "01:05"
    assert format_clock(25 * 60) == "25:00"
    assert format_clock(90 * 60 + 7) == "90:07"


def test_display_reports_state():
    timer = _timer(work=75)
    timer.bind("t1")
    shown = timer.display()
    assert shown.clock == "01:15"
    assert shown.mode == TimerMode.WORK
    assert shown.running is False
    assert shown.bound_task_id == "t1"


def test_run_timer_uses_injected_sleep():
    timer = _timer(work=2, brk=5)
    sleep = FakeSleep()
    switches = []
    timer.start()

    delivered = run_timer(timer, sleep=sleep, on_tick=lambda t, switched: switches.append(switched), max_ticks=3)

    assert delivered == 3
    assert sleep.calls == [1.0, 1.0, 1.0]
    assert switches == [False, True, False]
    assert timer.mode == TimerMode.BREAK
    assert timer.seconds_remaining == 4


def test_run_timer_stops_when_paused():
    timer = _timer(work=10)
    timer.start()

    def pause_after_first(current, switched):
        current.pause()

    assert run_timer(timer, sleep=FakeSleep(), on_tick=pause_after_first) == 1
    assert timer.seconds_remaining == 9
