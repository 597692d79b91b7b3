"""
APScheduler-based scheduler for generating movements from templates.

Runs one generation pass immediately at start and then every
``interval_hours``. Passes never overlap, and stopping waits for a pass in
progress to finish.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from app.schemas.recurring import GenerationReport
from app.services import generation_service
from app.services.movements_service import create_movement

logger = logging.getLogger(__name__)


class TemplateScheduler:
    """Background trigger for recurring movement generation."""

    JOB_ID = "generate_recurring_movements"

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_hours: float = 12,
        ledger: generation_service.Ledger = create_movement,
    ) -> None:
        self._session_factory = session_factory
        self._interval_hours = interval_hours
        self._ledger = ledger
        self._scheduler: Optional[BackgroundScheduler] = None
        self._state_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        with self._state_lock:
            if self._scheduler is not None:
                logger.info("template scheduler already started; ignoring duplicate start")
                return

            scheduler = BackgroundScheduler()
            scheduler.add_job(
                self.run_pass,
                trigger=IntervalTrigger(hours=self._interval_hours),
                id=self.JOB_ID,
                next_run_time=datetime.now(),  # catch up on downtime right away
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=3600,
            )
            scheduler.start()
            self._scheduler = scheduler

        logger.info("template scheduler started (runs every %s hours)", self._interval_hours)

    def stop(self) -> None:
        with self._state_lock:
            scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return
        scheduler.shutdown(wait=True)
        logger.info("template scheduler stopped")

    def run_pass(self) -> Optional[GenerationReport]:
        """Run one generation pass in its own session. Never raises."""
        db = self._session_factory()
        try:
            return generation_service.process_pending_templates(db, datetime.now(), self._ledger)
        except Exception:
            logger.exception("failed to process pending templates")
            return None
        finally:
            db.close()
