"""Tests for the view binding adapters."""

import pytest

from pycyclet import StoreConnection, bind_many, bind_single, create_store, shallow_equal


class FakeView:
    def __init__(self):
        self.updates = 0
        self.custom = 0

    def force_update(self):
        self.updates += 1

    def on_store_change(self):
        self.custom += 1


@pytest.fixture
def counter(dispatcher):
    return create_store(
        {
            "init": lambda self: self.set({"count": 0}),
            "$increment": lambda self, n=1: self.set({"count": self.get("count") + n}),
        },
        dispatcher=dispatcher,
    )


@pytest.fixture
def user(dispatcher):
    return create_store(
        {"$login": lambda self, name: self.set({"name": name})},
        dispatcher=dispatcher,
    )


def test_bind_single_refreshes_view_until_detached(counter, dispatcher):
    binding = bind_single(counter)
    view = FakeView()

    binding.on_attach(view)
    dispatcher.exec("increment")
    assert view.updates == 1

    binding.on_detach(view)
    dispatcher.exec("increment")
    assert view.updates == 1
    assert counter.listener_count() == 0


def test_bind_single_uses_named_method(counter):
    on_attach, on_detach = bind_single(counter, "on_store_change")
    view = FakeView()

    on_attach(view)
    counter.set({"count": 5})
    on_detach(view)
    on_detach(view)

    assert view.custom == 1
    assert view.updates == 0


def test_bind_single_tracks_views_separately(counter):
    binding = bind_single(counter)
    first, second = FakeView(), FakeView()

    binding.on_attach(first)
    binding.on_attach(second)
    binding.on_detach(first)
    counter.notify_listeners()

    assert first.updates == 0
    assert second.updates == 1


def test_shallow_equal():
    shared = {"nested": True}
    assert shallow_equal({"a": 1, "b": shared}, {"a": 1, "b": shared})
    assert not shallow_equal({"a": 1}, {"a": 1, "b": 2})
    assert not shallow_equal({"a": 1}, {"a": 2})
    assert not shallow_equal({"a": 1}, {"b": 1})
    assert shallow_equal({}, {})


def make_connection(counter, user):
    calls = []

    def derive_state(props):
        calls.append(dict(props))
        return {
            "count": counter.get("count"),
            "greeting": f"{props.get('prefix', 'hi')} {user.get('name')}",
        }

    def component(**props):
        return props

    Connected = bind_many(component, [counter, user], derive_state)
    return Connected, calls


def test_bind_many_builds_a_connection_class(counter, user):
    Connected, calls = make_connection(counter, user)
    connection = Connected({"prefix": "hello"})

    assert issubclass(Connected, StoreConnection)
    assert calls == [{"prefix": "hello"}]
    assert connection.state == {"count": 0, "greeting": "hello None"}
    assert connection.render() == {"prefix": "hello", "count": 0, "greeting": "hello None"}


def test_bind_many_recomputes_when_any_store_changes(counter, user, dispatcher):
    Connected, calls = make_connection(counter, user)
    connection = Connected({"prefix": "hey"})
    connection.attach()

    dispatcher.exec("increment", 2)
    dispatcher.exec("login", "ada")

    assert len(calls) == 3
    assert connection.state == {"count": 2, "greeting": "hey ada"}
    assert connection.rendered == {"prefix": "hey", "count": 2, "greeting": "hey ada"}


def test_bind_many_skips_recompute_for_shallow_equal_props(counter, user):
    Connected, calls = make_connection(counter, user)
    connection = Connected({"prefix": "hi"})
    baseline = len(calls)

    for _ in range(3):
        connection.receive_props({"prefix": "hi"})
    assert len(calls) == baseline

    connection.receive_props({"prefix": "yo"})
    assert len(calls) == baseline + 1
    connection.receive_props({"prefix": "hello"})
    assert len(calls) == baseline + 2
    assert connection.state["greeting"] == "hello None"
    assert connection.derive_count == len(calls)


def test_bind_many_detach_unsubscribes_from_every_store(counter, user, dispatcher):
    Connected, calls = make_connection(counter, user)
    connection = Connected({})
    connection.attach()
    connection.detach()

    dispatcher.exec("increment")
    dispatcher.exec("login", "grace")

    assert len(calls) == 1
    assert counter.listener_count() == 0
    assert user.listener_count() == 0
    assert not connection.attached


def test_separate_connections_do_not_share_subscriptions(counter, user):
    Connected, calls = make_connection(counter, user)
    first = Connected({})
    second = Connected({})
    first.attach()
    second.attach()

    first.detach()
    counter.set({"count": 10})

    assert first.state["count"] == 0
    assert second.state["count"] == 10
