import logging
import threading
from enum import Enum

logger = logging.getLogger(__name__)


class LifecyclePhase(str, Enum):
    STARTING = "STARTING"
    READY = "READY"
    FAILED = "FAILED"


class AppLifecycle:
    """Database readiness for the running app, kept on ``app.state.lifecycle``.

    The server accepts connections immediately; API routes answer 503 until the
    database has been initialised, and keep doing so if initialisation failed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._phase = LifecyclePhase.STARTING
        self.error: str | None = None

    @property
    def phase(self) -> LifecyclePhase:
        return self._phase

    @property
    def ready(self) -> bool:
        return self._phase == LifecyclePhase.READY

    @property
    def failed(self) -> bool:
        return self._phase == LifecyclePhase.FAILED

    def mark_ready(self) -> None:
        with self._lock:
            self._phase = LifecyclePhase.READY
            self.error = None
        logger.info("Database ready.")

    def mark_failed(self, error: Exception) -> None:
        with self._lock:
            self._phase = LifecyclePhase.FAILED
            self.error = str(error)
        logger.error("Database init failed: %s", error)

    def unavailable_message(self) -> str:
        if self.failed:
            return "Database unavailable. Check database configuration and redeploy."
        return "Service starting. Please retry shortly."
