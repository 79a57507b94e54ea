"""Ordered, replayable progress stream for a single file."""

import threading
from collections.abc import Iterator
from dataclasses import replace

from intake.progress.models import ProgressEvent


class ProgressChannel:
    """Collects events from one producer and serves them to any number of readers.

    Percentages never decrease: an event reporting less than the last published
    percentage is raised to it. Iterating replays the history and then blocks
    for new events until the channel is closed.
    """

    def __init__(self) -> None:
        self._events: list[ProgressEvent] = []
        self._closed = False
        self._condition = threading.Condition()

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    def publish(self, event: ProgressEvent) -> ProgressEvent | None:
        """Append ``event``; events arriving after ``close`` are dropped."""
        with self._condition:
            if self._closed:
                return None
            if self._events and event.percentage < self._events[-1].percentage:
                event = replace(event, percentage=self._events[-1].percentage)
            self._events.append(event)
            self._condition.notify_all()
        return event

    def close(self) -> None:
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def snapshot(self) -> list[ProgressEvent]:
        with self._condition:
            return list(self._events)

    def latest(self) -> ProgressEvent | None:
        with self._condition:
            return self._events[-1] if self._events else None

    def __iter__(self) -> Iterator[ProgressEvent]:
        index = 0
        while True:
            with self._condition:
                while index >= len(self._events) and not self._closed:
                    self._condition.wait()
                if index >= len(self._events):
                    return
                event = self._events[index]
            index += 1
            yield event
