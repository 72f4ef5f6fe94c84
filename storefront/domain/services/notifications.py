import logging
import time
from typing import Callable, Dict, List, Protocol, Tuple

logger = logging.getLogger(__name__)

LEVEL_SUCCESS = "success"
LEVEL_ERROR = "error"
LEVEL_INFO = "info"

# Same (level, message) inside this window is shown once
DEDUPE_WINDOW_S = 2.0


class Notifier(Protocol):
    def notify(self, message: str, level: str = LEVEL_SUCCESS) -> bool: ...


class _Deduper:
    def __init__(self, window_s: float = DEDUPE_WINDOW_S, clock: Callable[[], float] = time.monotonic):
        self.window_s = window_s
        self.clock = clock
        self._last: Dict[Tuple[str, str], float] = {}

    def allow(self, level: str, message: str) -> bool:
        now = self.clock()
        key = (level, message)
        last = self._last.get(key)
        if last is not None and now - last < self.window_s:
            return False
        self._last[key] = now
        return True


class RecordingNotifier(_Deduper):
    """Collects messages so the API can hand them back with the response."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.messages: List[Dict[str, str]] = []

    def notify(self, message: str, level: str = LEVEL_SUCCESS) -> bool:
        if not self.allow(level, message):
            return False
        self.messages.append({"level": level, "message": message})
        logger.debug("notify level=%s message=%s", level, message)
        return True
