"""
Change Notification for FsGuard.

A plain subscriber list. Subscribing returns a Subscription whose disposal
stops delivery immediately, including for a dispatch already in progress.
"""

from typing import Callable, Generic, Optional, TypeVar

from rich.console import Console

console = Console(stderr=True)

T = TypeVar("T")


class Subscription:
    """Handle returned by Emitter.subscribe."""

    def __init__(self, callback: Callable, owner: Optional["Emitter"] = None):
        self.callback = callback
        self._owner = owner
        self.disposed = False

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._owner is not None:
            self._owner._remove(self)
            self._owner = None

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()


class Emitter(Generic[T]):
    """
    Synchronous event emitter.

    Subscribers are invoked in registration order. A subscriber that raises
    is reported to ``on_error`` (when given) and never stops delivery to the
    ones after it.
    """

    def __init__(self, on_error: Optional[Callable[[BaseException], None]] = None):
        self._subscriptions: list[Subscription] = []
        self._on_error = on_error
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """
        Register a callback.

        Args:
            callback: Called with each fired value

        Returns:
            Subscription handle; dispose it to stop delivery
        """
        if self._disposed:
            subscription = Subscription(callback)
            subscription.disposed = True
            return subscription

        subscription = Subscription(callback, owner=self)
        self._subscriptions.append(subscription)
        return subscription

    def fire(self, value: T) -> int:
        """
        Deliver a value to every live subscriber.

        Returns:
            Number of subscribers that were invoked
        """
        delivered = 0
        # Subscribers may subscribe or dispose while we iterate
        for subscription in list(self._subscriptions):
            if subscription.disposed:
                continue
            delivered += 1
            try:
                subscription.callback(value)
            except Exception as e:
                console.print(f"[red]Subscriber error: {e}[/red]")
                if self._on_error is not None:
                    self._on_error(e)
        return delivered

    def dispose(self) -> None:
        """Drop every subscription; later fires reach nobody."""
        self._disposed = True
        for subscription in list(self._subscriptions):
            subscription.disposed = True
            subscription._owner = None
        self._subscriptions.clear()

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
