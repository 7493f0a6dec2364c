# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import Mock

import pytest

from octopod_lib.core.error import (
    AlreadyClosedError,
    BackendError,
    OctopodError,
    TransportError,
)
from octopod_lib.core.repeater import Repeater


class FakeConnection:
    def __init__(self, name, error=None):
        self.name = name
        self.error = error
        self.closed = False

    def close(self, *args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        self.closed = True


def _close(connection, *args, **kwargs):
    connection.close(*args, **kwargs)


def test_repeater_closes_every_connection():
    connections = [FakeConnection("a"), FakeConnection("b")]

    repeater = Repeater(connections, _close)
    repeater.run()

    assert all(connection.closed for connection in connections)
    assert repeater.encountered_errors == {}
    assert repeater.current_iteration == 1


def test_repeater_accepts_generator():
    connections = [FakeConnection("a"), FakeConnection("b"), FakeConnection("c")]

    repeater = Repeater((c for c in connections if c.name != "b"), _close)
    repeater.run()
    # items are materialized, so a second run visits them again
    repeater.run()

    assert [c.name for c in repeater.items] == ["a", "c"]
    assert not connections[1].closed


def test_repeater_continues_after_handled_failure():
    failure = TransportError("ssh: connection refused", "gridengine")
    connections = [FakeConnection("a"), FakeConnection("b", failure), FakeConnection("c")]
    handler = Mock()

    repeater = Repeater(connections, _close)
    repeater.onException(OctopodError, handler)
    repeater.run()

    assert connections[0].closed and connections[2].closed
    handler.assert_called_once_with(failure, repeater)
    assert repeater.encountered_errors == {1: failure}


def test_repeater_parent_handler_catches_subclasses():
    connections = [
        FakeConnection("a", AlreadyClosedError("already closed")),
        FakeConnection("b", BackendError("qdel refused")),
    ]
    seen = []

    repeater = Repeater(connections, _close)
    repeater.onException(OctopodError, lambda e, _: seen.append(type(e)))
    repeater.run()

    assert seen == [AlreadyClosedError, BackendError]
    assert set(repeater.encountered_errors) == {0, 1}


def test_repeater_most_specific_handler_wins():
    connections = [
        FakeConnection("a", AlreadyClosedError("already closed")),
        FakeConnection("b", BackendError("qdel refused")),
    ]
    generic = Mock()
    closed = Mock()

    repeater = Repeater(connections, _close)
    # registration order must not matter
    repeater.onException(OctopodError, generic)
    repeater.onException(AlreadyClosedError, closed)
    repeater.run()

    closed.assert_called_once()
    generic.assert_called_once()
    assert isinstance(generic.call_args.args[0], BackendError)


def test_repeater_handler_sees_current_iteration():
    connections = [FakeConnection("a"), FakeConnection("b", RuntimeError("boom"))]
    iterations = []

    repeater = Repeater(connections, _close)
    repeater.onException(RuntimeError, lambda _, r: iterations.append(r.current_iteration))
    repeater.run()

    assert iterations == [1]


def test_repeater_unhandled_exception_stops_iteration():
    connections = [
        FakeConnection("a", KeyError("boom")),
        FakeConnection("b"),
    ]

    repeater = Repeater(connections, _close)
    repeater.onException(OctopodError, Mock())

    with pytest.raises(KeyError, match="boom"):
        repeater.run()

    assert not connections[1].closed
    assert repeater.encountered_errors == {}


def test_repeater_failing_handler_propagates():
    connections = [FakeConnection("a", BackendError("qdel refused"))]

    def handler(exception, repeater):
        raise RuntimeError("handler failed") from exception

    repeater = Repeater(connections, _close)
    repeater.onException(BackendError, handler)

    with pytest.raises(RuntimeError, match="handler failed"):
        repeater.run()

    assert 0 in repeater.encountered_errors


def test_repeater_forwards_args_and_kwargs():
    connection = FakeConnection("a")

    Repeater([connection], _close, 5, force=True).run()

    assert connection.args == (5,)
    assert connection.kwargs == {"force": True}


def test_repeater_without_items_does_nothing():
    func = Mock()

    repeater = Repeater([], func)
    repeater.run()

    func.assert_not_called()
    assert repeater.current_iteration == 0
