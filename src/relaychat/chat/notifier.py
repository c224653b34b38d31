"""Transcript change notification.

Hides how consumers are told the transcript changed:
- a single replaceable callback slot (last writer wins)
- any number of additional subscribed listeners
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class ChangeNotifier:
    """Calls every registered listener, without arguments, on notify()."""

    def __init__(self) -> None:
        self._slot: Listener | None = None
        self._listeners: list[Listener] = []

    @property
    def slot(self) -> Listener | None:
        return self._slot

    @slot.setter
    def slot(self, listener: Listener | None) -> None:
        self._slot = listener

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Add a listener. Returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        targets = [self._slot] if self._slot is not None else []
        targets.extend(self._listeners)
        for listener in targets:
            try:
                listener()
            except Exception:
                logger.exception("Transcript listener %r failed", listener)
