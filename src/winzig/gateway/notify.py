"""Change notification for resource addresses."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from ..core.types import ResourceAddress

Observer = Callable[[ResourceAddress], None]


@dataclass(frozen=True)
class Registration:
    """Handle returned by ChangeNotifier.register."""

    key: int
    address: ResourceAddress
    descendants: bool


class ChangeNotifier:
    """Registry of observers keyed by resource address.

    An observer registered for ``content://ns/notes`` with ``descendants``
    set also hears about ``content://ns/notes/7``. Conversely a change to a
    table address reaches observers of every row in that table.

    Notification runs synchronously on the caller's thread. Observer errors
    are logged and never reach the code that reported the change.
    """

    def __init__(self):
        self._observers: dict[int, tuple[Registration, Observer]] = {}
        self._keys = itertools.count(1)

    def register(self, address: ResourceAddress, observer: Observer, descendants: bool = True) -> Registration:
        """Start delivering changes of ``address`` to ``observer``.

        Args:
            address: Address to observe.
            observer: Called with the changed address.
            descendants: Also observe addresses below ``address``.

        Returns:
            Handle for ``unregister``.
        """
        registration = Registration(next(self._keys), address, descendants)
        self._observers[registration.key] = (registration, observer)
        return registration

    def unregister(self, registration: Registration) -> None:
        self._observers.pop(registration.key, None)

    def __len__(self) -> int:
        return len(self._observers)

    def notify_change(self, address: ResourceAddress) -> int:
        """Deliver a change of ``address`` to all matching observers.

        Returns:
            Number of observers called.
        """
        called = 0
        for registration, observer in list(self._observers.values()):
            if not self._matches(registration, address):
                continue
            called += 1
            try:
                observer(address)
            except Exception:
                logger.exception(f"Observer for {registration.address} failed on change of {address}")
        logger.debug(f"Change notified: {address}, observers={called}")
        return called

    @staticmethod
    def _matches(registration: Registration, changed: ResourceAddress) -> bool:
        observed = registration.address
        if observed == changed:
            return True
        # a change of a whole table (or database) concerns every row below it
        if changed.is_ancestor_of(observed):
            return True
        return registration.descendants and observed.is_ancestor_of(changed)
