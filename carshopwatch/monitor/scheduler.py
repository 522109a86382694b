"""Background scheduler that runs detection sweeps on a fixed cadence."""

import logging
import threading
from typing import Optional

from apscheduler.job import Job
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from carshopwatch.models.constants import DEFAULT_MONITOR_INTERVAL_SECONDS
from carshopwatch.monitor.detection import ActivityDetector

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "user_activity_sweep"


class MonitorHandle:
    """Owned handle for one run of a scheduler.
    
    Wraps the APScheduler instance and sweep job created by `start()`. A handle
    only controls the run that created it; after a restart, stopping an old
    handle leaves the new run alone.
    """
    
    def __init__(self, owner: "MonitorScheduler", background: BackgroundScheduler, job: Job):
        self._owner = owner
        self.background = background
        self.job = job
    
    @property
    def is_running(self) -> bool:
        return self.background.running
    
    def stop(self) -> None:
        self._owner._stop_run(self)


class MonitorScheduler:
    """Runs `detector.try_run_sweep()` every `interval_seconds` on an APScheduler job.
    
    The job runs with `max_instances=1` and `coalesce=True`, so a tick that
    fires while the previous one is still running is skipped, not queued.
    Sweeps started outside the scheduler (synthetic injection) are covered by
    the detector's own guard. A tick that raises is logged and later ticks
    still fire. Stopping does not interrupt a sweep that is already running.
    """
    
    def __init__(self, detector: ActivityDetector, interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.detector = detector
        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()
        self._handle: Optional[MonitorHandle] = None
    
    @property
    def is_running(self) -> bool:
        return self._handle is not None
    
    def start(self) -> MonitorHandle:
        """Start ticking. Returns the existing handle if already running."""
        with self._lock:
            if self._handle is not None:
                logger.info("User monitor is already running")
                return self._handle
            
            background = BackgroundScheduler(
                job_defaults={
                    "coalesce": True,
                    "max_instances": 1,
                },
                timezone="UTC",
            )
            job = background.add_job(
                self._tick,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=SWEEP_JOB_ID,
                name="Analyze User Activity",
                max_instances=1,
                coalesce=True,
            )
            background.start()
            self._handle = MonitorHandle(self, background, job)
            logger.info(f"User activity monitoring started (interval {self.interval_seconds}s)")
            return self._handle
    
    def stop(self) -> None:
        """Stop future ticks. No-op if not running."""
        self._stop_run(None)
    
    def _stop_run(self, handle: Optional[MonitorHandle]) -> None:
        with self._lock:
            if self._handle is None or (handle is not None and handle is not self._handle):
                logger.info("User monitor is not running")
                return
            self._handle.background.shutdown(wait=False)
            self._handle = None
            logger.info("User activity monitoring stopped")
    
    def _tick(self) -> None:
        try:
            self.detector.try_run_sweep()
        except Exception:
            logger.exception("Error in user activity analysis")
