# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

from astracursors.event_observers.events import ObservableEvent, ObservableEventType


class Observer(ABC):
    """
    An observer that can be attached to a cursor to follow its activity.

    Users can subclass Observer and provide their implementation of the
    `receive` method. The observer is passed explicitly to each cursor
    (or to the `find` method creating it) and travels along to the cursors
    derived from it: there is no process-wide registration.

    This class offers factory static methods for common use-cases:
    `from_event_list` and `from_event_dict`.
    """

    @abstractmethod
    def receive(
        self,
        event: ObservableEvent,
        sender: Any = None,
    ) -> None:
        """Receive an event.

        Args:
            event: the event being dispatched to the observer.
            sender: the object directly responsible for generating the event.
        """
        ...

    @staticmethod
    def from_event_list(
        event_list: list[ObservableEvent],
        *,
        event_types: Iterable[ObservableEventType] | None = None,
    ) -> Observer:
        """
        Create an Observer object wrapping a caller-provided list.

        The resulting observer will simply append the events it receives into
        the list.

        Args:
            event_list: the list where the caller will find the received events.
            event_types: if provided, only events of these types are kept.
        """

        return _ObserverFromCallback(
            lambda event: event_list.append(event),
            event_types=event_types,
        )

    @staticmethod
    def from_event_dict(
        event_dict: dict[ObservableEventType, list[ObservableEvent]],
        *,
        event_types: Iterable[ObservableEventType] | None = None,
    ) -> Observer:
        """
        Create an Observer object wrapping a caller-provided dictionary.

        The resulting observer will append the events it receives into
        the dictionary, grouped by event type. Dict values are lists of events.

        Args:
            event_dict: the dict where the caller will find the received events.
            event_types: if provided, only events of these types are kept.
        """

        def _append_to_dict(event: ObservableEvent) -> None:
            event_dict.setdefault(event.event_type, []).append(event)

        return _ObserverFromCallback(_append_to_dict, event_types=event_types)


class _ObserverFromCallback(Observer):
    def __init__(
        self,
        callback: Callable[[ObservableEvent], None],
        *,
        event_types: Iterable[ObservableEventType] | None,
    ) -> None:
        self.callback = callback
        self.event_types = (
            set(ObservableEventType.__members__.values())
            if event_types is None
            else set(event_types)
        )

    def receive(
        self,
        event: ObservableEvent,
        sender: Any = None,
    ) -> None:
        if event.event_type in self.event_types:
            self.callback(event)
