"""
Published state for Scaler models.

Models expose plain attributes for their published state (is_level, progress,
elapsed time, ...) and commit changes through ObservableModel._commit(), which
notifies observers after each mutation in commit order.
"""

import structlog
from typing import Any, Callable, List

Observer = Callable[[Any, str, Any, Any], None]

class ObservableModel:
    """
    Base class for models whose state is observed by views or tests.

    Observers are called as observer(model, field, old_value, new_value).
    Assignments that do not change the value do not notify.
    """

    def __init__(self):
        self._observers: List[Observer] = []

    def observe(self, observer: Observer) -> Callable[[], None]:
        """
        Register an observer.

        Returns:
            A function that removes the observer again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _commit(self, **changes: Any) -> None:
        """Apply attribute changes in keyword order, notifying after each one."""
        for field, value in changes.items():
            old = getattr(self, field, None)
            if old == value and type(old) is type(value):
                continue
            setattr(self, field, value)
            for observer in list(self._observers):
                try:
                    observer(self, field, old, value)
                except Exception as e:
                    structlog.get_logger(component=type(self).__name__).error(
                        "Observer failed", field=field, error=str(e))
