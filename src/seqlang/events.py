"""Interpreter events and the broadcast stream that carries them.

A run emits `Started`, then any number of `Output`/`Error`, then exactly one
terminal event (`Completed` or `Cancelled`).
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import AsyncIterator, Deque, List, Optional, Union

from typing_extensions import TypeAlias

from .utils import default_replay_size


@dataclass(frozen=True)
class Started:
    pass

@dataclass(frozen=True)
class Output:
    message: str

@dataclass(frozen=True)
class Error:
    message: str

@dataclass(frozen=True)
class Completed:
    pass

@dataclass(frozen=True)
class Cancelled:
    pass

InterpreterEvent: TypeAlias = Union[Started, Output, Error, Completed, Cancelled]

TERMINAL_EVENTS = (Completed, Cancelled)


def is_terminal(event: InterpreterEvent) -> bool:
    return isinstance(event, TERMINAL_EVENTS)


_CLOSED = object()


class EventSubscription:
    """One consumer's view of an EventStream, iterated with `async for`."""

    def __init__(self, stream: EventStream, backlog: List[InterpreterEvent]):
        self._stream = stream
        self._queue: asyncio.Queue = asyncio.Queue()
        for event in backlog:
            self._queue.put_nowait(event)

    def _push(self, item: object) -> None:
        self._queue.put_nowait(item)

    def drain(self) -> List[InterpreterEvent]:
        """Return every event already delivered, without waiting."""
        events: List[InterpreterEvent] = []

        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                break
            events.append(item)

        return events

    def close(self) -> None:
        self._stream._unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[InterpreterEvent]:
        return self

    async def __anext__(self) -> InterpreterEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class EventStream:
    """Ordered, append-only, multi-consumer broadcast with a bounded replay.

    A subscriber attaching late first receives the last `replay` events.
    """

    def __init__(self, replay: Optional[int] = None):
        size = default_replay_size() if replay is None else replay
        self._replay: Deque[InterpreterEvent] = deque(maxlen=max(0, size))
        self._subscribers: List[EventSubscription] = []
        self._closed = False

    def subscribe(self, replay: bool = True) -> EventSubscription:
        backlog = list(self._replay) if replay else []
        sub = EventSubscription(self, backlog)

        if self._closed:
            sub._push(_CLOSED)
        else:
            self._subscribers.append(sub)

        return sub

    def _unsubscribe(self, sub: EventSubscription) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)
            sub._push(_CLOSED)

    async def emit(self, event: InterpreterEvent) -> None:
        if self._closed:
            raise RuntimeError("emit on a closed event stream")

        self._replay.append(event)

        for sub in list(self._subscribers):
            sub._push(event)

    def replay_snapshot(self) -> List[InterpreterEvent]:
        return list(self._replay)

    def close(self) -> None:
        self._closed = True

        for sub in self._subscribers:
            sub._push(_CLOSED)

        self._subscribers.clear()
