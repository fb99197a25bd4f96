"""
SLA External Service Integrations
==================================

External services for SLA tracking:
- YAML policy file loader with watchdog hot reload
- APScheduler for background SLA rechecks
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import ValidationError
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from portal.core import ConfigurationException
from portal.shared.infrastructure.logging import get_logger
from portal.sla.application import ISLAPolicyProvider
from portal.sla.domain import SLAPolicy

logger = get_logger(__name__)


class PolicyFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA policy file changes."""

    def __init__(self, policy_manager: "SLAPolicyManager", policy_path: Path):
        self.policy_manager = policy_manager
        self.policy_path = policy_path
        super().__init__()

    def _matches(self, event) -> bool:
        return not event.is_directory and Path(event.src_path).resolve() == self.policy_path.resolve()

    def on_modified(self, event):
        """Handle file modification event."""
        if self._matches(event):
            logger.info(f"Policy file changed: {event.src_path}")
            self.policy_manager.reload()

    def on_created(self, event):
        """Editors that save by rename show up as a create."""
        if self._matches(event):
            logger.info(f"Policy file replaced: {event.src_path}")
            self.policy_manager.reload()


class SLAPolicyManager(ISLAPolicyProvider):
    """
    Thread-safe SLA policy manager with hot-reload support.

    Uses watchdog to monitor file changes and reload the risk thresholds
    without restarting the service. A broken file at startup is fatal;
    a broken file during hot reload is logged and the last good policy
    stays in effect.
    """

    def __init__(self):
        self._policy: Optional[SLAPolicy] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLAPolicy:
        """
        Initial policy load.

        Raises:
            ConfigurationException: file exists but cannot be parsed or validated
        """
        self._path = Path(path)
        policy = self._load_from_file(self._path)
        with self._lock:
            self._policy = policy
        logger.info(
            "SLA policy loaded",
            extra={
                "path": str(self._path),
                "moderate_gap_percent": policy.moderate_gap_percent,
                "severe_gap_percent": policy.severe_gap_percent
            }
        )
        return policy

    def _load_from_file(self, path: Path) -> SLAPolicy:
        """Load and parse YAML policy file."""
        if not path.exists():
            logger.warning(f"SLA policy file not found: {path}, using defaults")
            return SLAPolicy()

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationException(
                f"Cannot read SLA policy file: {path}",
                details={"path": str(path), "error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"SLA policy file must contain a mapping: {path}",
                details={"path": str(path)}
            )

        try:
            return SLAPolicy(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid SLA policy in {path}",
                details={"path": str(path), "errors": e.errors(include_url=False, include_context=False)}
            ) from e

    def reload(self) -> bool:
        """Reload policy from file, keeping the current one on failure."""
        if self._path is None:
            return False

        try:
            new_policy = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error(
                f"Failed to reload SLA policy: {e.message}",
                extra={"details": e.details}
            )
            return False

        with self._lock:
            self._policy = new_policy
        logger.info("SLA policy reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the policy file for changes.

        Skips watching if:
        - File doesn't exist (defaults are in effect)
        - Running in an environment where inotify doesn't work
        """
        if self._path is None:
            raise RuntimeError("Policy not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                f"Policy file doesn't exist, skipping file watch: {self._path}. "
                "Using default SLA policy."
            )
            return

        try:
            self._observer = Observer()
            handler = PolicyFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.resolve().parent),
                recursive=False
            )
            self._observer.start()
            logger.info(f"Started watching policy file: {self._path}")
        except OSError as e:
            # File watching not supported (e.g., in Docker containers)
            logger.warning(
                f"File watching not available, using static policy: {e}"
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the policy file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def policy(self) -> SLAPolicy:
        """Get current policy."""
        with self._lock:
            if self._policy is None:
                raise RuntimeError("SLA policy not loaded")
            return self._policy

    def get_policy(self) -> SLAPolicy:
        return self.policy


class SLAScheduler:
    """
    Wrapper for APScheduler for background SLA rechecks.

    Manages the lifecycle of the scheduler and jobs.
    """

    def __init__(self, interval_seconds: int = 3600):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="sla_evaluation",
            name="SLA Recheck Job",
            misfire_grace_time=60,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "SLA scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=True)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running
