from neuronet.ml import EventBus, ModelTrained, OutcomeRecorded


def outcome_event() -> OutcomeRecorded:
    return OutcomeRecorded(opportunity_id="opp-1", outcome="success", actual_return=0.1)


def test_emit_reaches_subscribers_of_that_type_only() -> None:
    bus = EventBus()
    received = []
    trained = []
    bus.subscribe(OutcomeRecorded, received.append)
    bus.subscribe(ModelTrained, trained.append)

    event = outcome_event()
    bus.emit(event)

    assert received == [event]
    assert trained == []
    assert bus.listener_count(OutcomeRecorded) == 1


def test_failing_listener_is_isolated() -> None:
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe(OutcomeRecorded, broken)
    bus.subscribe(OutcomeRecorded, received.append)
    bus.emit(outcome_event())

    assert len(received) == 1
    assert bus.error_count == 1


def test_unsubscribe() -> None:
    bus = EventBus()
    received = []
    bus.subscribe(OutcomeRecorded, received.append)
    bus.unsubscribe(OutcomeRecorded, received.append)
    bus.emit(outcome_event())
    assert received == []
    assert bus.listener_count(OutcomeRecorded) == 0


def test_unsubscribe_unknown_listener_is_noop() -> None:
    bus = EventBus()
    bus.unsubscribe(OutcomeRecorded, print)
    assert bus.error_count == 0


def test_unsubscribe_during_emit_does_not_skip_others() -> None:
    bus = EventBus()
    calls = []

    def once(event):
        calls.append("once")
        bus.unsubscribe(OutcomeRecorded, once)

    bus.subscribe(OutcomeRecorded, once)
    bus.subscribe(OutcomeRecorded, lambda event: calls.append("always"))

    bus.emit(outcome_event())
    bus.emit(outcome_event())

    assert calls == ["once", "always", "always"]
