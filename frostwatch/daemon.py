"""Monitoring daemon: runs the poll, morning summary and cache sweep jobs.

Each job has its own timer. Due jobs are handed to a small thread pool, so
jobs may overlap with each other but a job never overlaps with itself.

Usage:
    python -m frostwatch daemon --config frostwatch.yaml
    python -m frostwatch daemon --stop
    python -m frostwatch daemon --status
"""

import json
import logging
import logging.handlers
import os
import signal
import sys
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from pathlib import Path

from frostwatch.models.common import utc_now
from frostwatch.pipeline.poll_pipeline import PollPipeline
from frostwatch.pipeline.runtime import Runtime
from frostwatch.pipeline.summary_pipeline import MorningSummaryPipeline

logger = logging.getLogger(__name__)

PID_DIR = Path("data")
PID_FILE = PID_DIR / "daemon.pid"
STATE_FILE = PID_DIR / "daemon_state.json"
LOG_DIR = Path("logs")
LOG_FILE_BYTES = 5 * 1024 * 1024
LOG_FILE_COUNT = 10
STOP_GRACE_SECONDS = 60


@dataclass
class ScheduledJob:
    name: str
    action: Callable[[], object]
    next_run: datetime
    reschedule: Callable[[datetime], datetime]
    runs: int = 0
    failures: int = 0
    future: Future | None = None

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_run and (self.future is None or self.future.done())


def every(interval: timedelta) -> Callable[[datetime], datetime]:
    def _next(now: datetime) -> datetime:
        return now + interval
    return _next


def daily_at(hour: int, tz: tzinfo) -> Callable[[datetime], datetime]:
    """Next occurrence of hour:00 local time strictly after `now`."""
    def _next(now: datetime) -> datetime:
        local = now.astimezone(tz)
        candidate = local.replace(hour=hour, minute=0, second=0, microsecond=0)
        if candidate <= local:
            candidate = candidate + timedelta(days=1)
        return candidate.astimezone(UTC)
    return _next


class FrostDaemon:
    """Runs the scheduled jobs with signal handling and a PID file."""

    def __init__(self, runtime: Runtime, clock: Callable[[], datetime] = utc_now):
        self.rt = runtime
        self._clock = clock
        self._running = False
        self._started_at: str | None = None
        self._executor: ThreadPoolExecutor | None = None
        self.jobs = self._build_jobs()

    def _build_jobs(self) -> list[ScheduledJob]:
        ops = self.rt.config.ops
        now = self._clock()
        summary_at = daily_at(ops.morning_summary_hour, self.rt.config.monitor.tzinfo)
        sweep_every = every(timedelta(minutes=self.rt.config.cache.sweep_interval_minutes))
        return [
            # Poll once right away, then on the interval
            ScheduledJob(
                name="poll",
                action=lambda: PollPipeline(self.rt).run(),
                next_run=now,
                reschedule=every(timedelta(minutes=ops.poll_interval_minutes)),
            ),
            ScheduledJob(
                name="morning_summary",
                action=lambda: MorningSummaryPipeline(self.rt).run(),
                next_run=summary_at(now),
                reschedule=summary_at,
            ),
            ScheduledJob(
                name="cache_sweep",
                action=self.rt.cache.sweep,
                next_run=sweep_every(now),
                reschedule=sweep_every,
            ),
        ]

    def start(self) -> None:
        """Start the daemon loop."""
        self._check_not_already_running()
        self._write_pid()
        self._setup_signals()
        self._setup_file_log()
        self._running = True
        self._started_at = datetime.now(UTC).isoformat()
        self._executor = ThreadPoolExecutor(
            max_workers=len(self.jobs), thread_name_prefix="job"
        )

        logger.info(
            "Daemon started — poll every %dm, summary at %02d:00 %s, pid=%d",
            self.rt.config.ops.poll_interval_minutes,
            self.rt.config.ops.morning_summary_hour,
            self.rt.config.monitor.timezone,
            os.getpid(),
        )
        print(f"🔄 Frost daemon started (pid {os.getpid()})")
        print(f"   Logs: {LOG_DIR}/")
        print("   Stop: python -m frostwatch daemon --stop")

        try:
            self._loop()
        except KeyboardInterrupt:
            logger.info("Daemon interrupted by keyboard")
        finally:
            self._cleanup()

    def _loop(self) -> None:
        """Dispatch due jobs; sleep in 1-second increments so signals are seen."""
        while self._running:
            self.dispatch_due()
            self._save_state()
            time.sleep(1)

    def dispatch_due(self) -> list[str]:
        """Submit every due job to the pool. Returns the names submitted."""
        assert self._executor is not None
        now = self._clock()
        submitted = []
        for job in self.jobs:
            if not job.is_due(now):
                continue
            job.next_run = job.reschedule(now)
            job.future = self._executor.submit(self._run_job, job)
            submitted.append(job.name)
        return submitted

    def _run_job(self, job: ScheduledJob) -> None:
        job.runs += 1
        logger.info("=== %s #%d starting ===", job.name, job.runs)
        try:
            job.action()
        except Exception:
            job.failures += 1
            logger.exception("%s #%d crashed", job.name, job.runs)
        else:
            logger.info(
                "%s #%d done, next run %s", job.name, job.runs, job.next_run.isoformat()
            )

    def _setup_file_log(self) -> None:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / "frostwatch.log",
            maxBytes=LOG_FILE_BYTES,
            backupCount=LOG_FILE_COUNT,
        )
        handler.setLevel(logging.INFO)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s")
        )
        logging.getLogger().addHandler(handler)

    def _setup_signals(self) -> None:
        def _request_stop(signum: int, frame: object) -> None:
            name = signal.Signals(signum).name
            logger.info("%s received, stopping after running jobs finish", name)
            print(f"\n⏹️  {name}: waiting for running jobs...")
            self._running = False

        for sig in (signal.SIGTERM, signal.SIGINT):
            signal.signal(sig, _request_stop)

    def _check_not_already_running(self) -> None:
        pid = read_pid()
        if pid is None:
            PID_FILE.unlink(missing_ok=True)
            return
        alive = pid_alive(pid)
        if alive is False:
            logger.info("Removing stale PID file for pid %d", pid)
            PID_FILE.unlink(missing_ok=True)
            return
        if alive is None:
            print(f"❌ A daemon may be running as pid {pid} (not permitted to check)")
        else:
            print(f"❌ Daemon already running (pid {pid}); stop it with:")
            print("   python -m frostwatch daemon --stop")
        sys.exit(1)

    def _write_pid(self) -> None:
        PID_DIR.mkdir(parents=True, exist_ok=True)
        PID_FILE.write_text(f"{os.getpid()}\n")

    def _save_state(self) -> None:
        """Write job counters to the state file read by `daemon --status`."""
        jobs = {
            job.name: {
                "runs": job.runs,
                "failures": job.failures,
                "next_run": job.next_run.isoformat(),
            }
            for job in self.jobs
        }
        state = {
            "pid": os.getpid(),
            "started_at": self._started_at,
            "last_update": datetime.now(UTC).isoformat(),
            "cache_entries": len(self.rt.cache),
            "jobs": jobs,
        }
        PID_DIR.mkdir(parents=True, exist_ok=True)
        STATE_FILE.write_text(json.dumps(state, indent=2))

    def _cleanup(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        PID_FILE.unlink(missing_ok=True)
        self._save_state()
        runs = sum(j.runs for j in self.jobs)
        failures = sum(j.failures for j in self.jobs)
        logger.info("Daemon stopped after %d job runs, %d failed", runs, failures)
        print(f"⏹️  Daemon stopped: {runs} job runs, {failures} failed")


def read_pid() -> int | None:
    """PID from the PID file, or None if it is missing or unreadable."""
    try:
        return int(PID_FILE.read_text().strip())
    except (FileNotFoundError, ValueError):
        return None


def pid_alive(pid: int) -> bool | None:
    """True/False if the process exists; None if we may not signal it."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return None
    return True


def stop_daemon(grace_seconds: int = STOP_GRACE_SECONDS) -> int:
    """SIGTERM the running daemon, escalating to SIGKILL after the grace period."""
    if not PID_FILE.exists():
        print("No daemon running (no PID file)")
        return 1
    pid = read_pid()
    if pid is None:
        print("PID file is unreadable, removing it")
        PID_FILE.unlink(missing_ok=True)
        return 1
    if pid_alive(pid) is False:
        print(f"No process with pid {pid}, removing stale files")
        PID_FILE.unlink(missing_ok=True)
        STATE_FILE.unlink(missing_ok=True)
        return 0

    print(f"Sending SIGTERM to daemon (pid {pid})...")
    os.kill(pid, signal.SIGTERM)
    deadline = time.monotonic() + grace_seconds
    while time.monotonic() < deadline:
        time.sleep(1)
        if pid_alive(pid) is False:
            print("✅ Daemon stopped")
            PID_FILE.unlink(missing_ok=True)
            return 0

    print(f"⚠️  Daemon still running after {grace_seconds}s, sending SIGKILL")
    os.kill(pid, signal.SIGKILL)
    PID_FILE.unlink(missing_ok=True)
    return 0


def daemon_status() -> int:
    """Print the last saved daemon state."""
    if not STATE_FILE.exists():
        print("No daemon state found")
        return 1

    state = json.loads(STATE_FILE.read_text())
    pid = state.get("pid")
    running = isinstance(pid, int) and pid_alive(pid) is True

    print(f"{'🟢' if running else '🔴'} Daemon {'running' if running else 'stopped'}")
    print(f"  PID: {pid if pid is not None else '?'}")
    print(f"  Started: {state.get('started_at') or '?'}")
    print(f"  Updated: {state.get('last_update') or '?'}")
    print(f"  Cache entries: {state.get('cache_entries', 0)}")
    for name, job in state.get("jobs", {}).items():
        print(
            f"  {name}: {job.get('runs', 0)} runs, {job.get('failures', 0)} failed, "
            f"next {job.get('next_run', '?')}"
        )
    return 0
