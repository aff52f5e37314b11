from backend.rate_limit import FixedIntervalGate


def test_first_call_never_waits():
    slept = []
    gate = FixedIntervalGate(0.2, sleep=slept.append, clock=lambda: 0.0)

    assert gate.wait() == 0.0
    assert slept == []


def test_waits_remaining_interval_since_release():
    now = [10.0]
    slept = []
    gate = FixedIntervalGate(0.2, sleep=slept.append, clock=lambda: now[0])

    with gate.slot():
        pass

    now[0] = 10.05
    waited = gate.wait()

    assert abs(waited - 0.15) < 1e-9
    assert gate.waits == 1
    assert len(slept) == 1


def test_no_wait_when_interval_already_elapsed():
    now = [0.0]
    slept = []
    gate = FixedIntervalGate(0.1, sleep=slept.append, clock=lambda: now[0])
    gate.release()

    now[0] = 1.0
    assert gate.wait() == 0.0
    assert slept == []


def test_slot_releases_even_on_error():
    now = [0.0]
    slept = []
    gate = FixedIntervalGate(0.5, sleep=slept.append, clock=lambda: now[0])

    try:
        with gate.slot():
            raise RuntimeError("upstream down")
    except RuntimeError:
        pass

    with gate.slot():
        pass
    assert slept == [0.5]


def test_zero_interval_gate():
    gate = FixedIntervalGate(0.0)
    gate.release()
    assert gate.interval_s == 0.0
    assert gate.wait() == 0.0
    assert FixedIntervalGate(-3).interval_s == 0.0
