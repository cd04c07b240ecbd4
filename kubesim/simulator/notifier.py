from typing import Callable, List

from kubesim.utils.logger import get_logger

logger = get_logger(__name__)

Callback = Callable[[], None]


class ChangeNotifier:
    """
    Observer list invoked synchronously after every successful mutation.
    """

    def __init__(self):
        self._callbacks: List[Callback] = []

    def subscribe(self, callback: Callback) -> Callable[[], None]:
        """Register a callback. Returns a function that removes it again."""
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self):
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception as error:
                # An observer must not break the command that triggered it
                logger.warning("State change observer %r failed: %s", callback, error)
                logger.debug("Observer failure details", exc_info=True)

    def __len__(self):
        return len(self._callbacks)
