import logging

from baristas.events import EventHook


def test_handlers_run_in_subscription_order():
    hook = EventHook("demo")
    calls = []

    hook.subscribe(lambda p: calls.append(("first", p)))
    hook.subscribe(lambda p: calls.append(("second", p)))

    assert hook.emit("latte") == 0
    assert calls == [("first", "latte"), ("second", "latte")]


def test_failing_handler_does_not_stop_the_others(caplog):
    hook = EventHook("critical_change")
    calls = []

    def good(payload):
        calls.append("good")

    def buggy(payload):
        raise RuntimeError("I am a buggy plugin!")

    def good_too(payload):
        calls.append("good_too")

    for handler in (good, buggy, good_too):
        hook.subscribe(handler)

    with caplog.at_level(logging.ERROR, logger="baristas.events"):
        failures = hook.emit("update")

    assert failures == 1
    assert calls == ["good", "good_too"]
    assert "buggy" in caplog.text
    assert "I am a buggy plugin!" in caplog.text


def test_subscribe_works_as_decorator():
    hook = EventHook("demo")

    @hook.subscribe
    def handler(payload):
        return payload

    assert handler("x") == "x"
    assert len(hook) == 1


def test_unsubscribe():
    hook = EventHook("demo")
    calls = []
    hook.subscribe(calls.append)

    assert hook.unsubscribe(calls.append) is True
    assert hook.unsubscribe(calls.append) is False

    hook.emit("ignored")
    assert calls == []


def test_emit_without_subscribers():
    assert EventHook("empty").emit(object()) == 0
