"""Tests for the action dispatcher."""

import pytest

from pycyclet import ActionDispatcher, ActionError, create_store, default_dispatcher, exec_action


def test_exec_passes_positional_args_to_handlers(dispatcher):
    received = []
    dispatcher.register("add", lambda x, y: received.append((x, y)))

    dispatcher.exec("add", 1, 2)

    assert received == [(1, 2)]


def test_exec_unknown_action_is_silent(dispatcher):
    dispatcher.exec("never-registered", "payload")
    assert not dispatcher.has_handlers("never-registered")


def test_exec_runs_every_handler_before_returning(dispatcher):
    calls = []
    dispatcher.register("go", lambda: calls.append("one"))
    dispatcher.register("go", lambda: calls.append("two"))

    dispatcher.exec("go")

    assert sorted(calls) == ["one", "two"]


def test_registration_can_be_removed(dispatcher):
    calls = []
    subscription = dispatcher.register("go", lambda: calls.append(1))

    subscription.remove()
    subscription.remove()
    dispatcher.exec("go")

    assert calls == []
    assert dispatcher.handler_count("go") == 0


def test_nested_exec_runs_immediately(dispatcher):
    calls = []

    def outer():
        calls.append("outer:start")
        dispatcher.exec("inner")
        calls.append("outer:end")

    dispatcher.register("outer", outer)
    dispatcher.register("inner", lambda: calls.append("inner"))
    dispatcher.exec("outer")

    assert calls == ["outer:start", "inner", "outer:end"]


def test_handler_exception_propagates_to_exec_caller(dispatcher):
    def failing():
        raise ValueError("bad payload")

    dispatcher.register("fail", failing)

    with pytest.raises(ValueError, match="bad payload"):
        dispatcher.exec("fail")


@pytest.mark.parametrize("name", ["", None, 42])
def test_invalid_action_names_are_rejected(dispatcher, name):
    with pytest.raises(ActionError):
        dispatcher.exec(name)
    with pytest.raises(ActionError):
        dispatcher.register(name, lambda: None)


def test_stores_on_separate_dispatchers_are_isolated():
    first = ActionDispatcher()
    second = ActionDispatcher()
    a = create_store({"$bump": lambda self: self.set({"n": 1})}, dispatcher=first)
    b = create_store({"$bump": lambda self: self.set({"n": 2})}, dispatcher=second)

    first.exec("bump")

    assert a.get("n") == 1
    assert b.get("n") is None


def test_exec_action_uses_default_dispatcher():
    store = create_store({"$rename": lambda self, name: self.set({"name": name})})

    exec_action("rename", "cyclet")

    assert store.dispatcher is default_dispatcher
    assert store.get("name") == "cyclet"


def test_function_middleware_wraps_exec(dispatcher):
    seen = []

    def recorder(d):
        assert d is dispatcher

        def middleware(next_exec):
            def exec_fn(action):
                seen.append(action.type)
                next_exec(action)
            return exec_fn
        return middleware

    dispatcher.apply_middleware(recorder)
    dispatcher.register("go", lambda: seen.append("handler"))
    dispatcher.exec("go")

    assert seen == ["go", "handler"]
