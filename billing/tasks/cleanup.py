import logging
import threading

from celery import shared_task
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Background thread that purges expired soft-deleted items on a timer.

    Constructed and owned by whoever starts the app; call :meth:`stop` on
    shutdown. The thread waits on an event so stop takes effect at once.
    """

    def __init__(self, app, interval=None):
        self.app = app
        self.interval = interval or app.config["ITEM_CLEANUP_INTERVAL_SEC"]
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="item-cleanup-sweeper", daemon=True
        )
        self._thread.start()
        logger.info("Cleanup sweeper started (every %ss)", self.interval)
        return self

    def stop(self, timeout=5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Cleanup sweeper stopped")

    def run_once(self):
        from billing.cache import invalidate_items
        from billing.services.items import purge_expired_items
        from models import db

        with self.app.app_context():
            try:
                purged = purge_expired_items()
            finally:
                db.session.remove()
            if purged:
                invalidate_items(self.app)
            return purged

    def _run(self):
        while not self._stop.wait(self.interval):
            try:
                self.run_once()
            except Exception as exc:
                # loop keeps running; next tick retries
                logger.error("Cleanup sweep failed: %s", exc, exc_info=True)


@shared_task(bind=True, ignore_result=True)
def purge_expired_items_task(self) -> int:
    """Celery beat entry point for the hourly sweep."""
    from billing import create_app

    app = current_app._get_current_object() if has_app_context() else create_app()
    return CleanupSweeper(app).run_once()
