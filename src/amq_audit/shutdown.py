"""Process termination on fatal audit failures.

An audit trail must not silently lose events. When the broker cannot be
reached or an event cannot be committed, the host process stops.

Two policies are provided for QueueAuditHandler's ``on_fatal`` callback:

- terminate_process: default for embedded use. Reports the failure on
  stderr, writes a crash breadcrumb and calls os._exit() with the
  failure's exit code. os._exit() is used because the failure is raised
  inside a logging call deep in the host's stack, where SystemExit would
  be caught or swallowed by logging's own error handling.
- raise_fatal: re-raises the failure so it bubbles to a run loop that
  maps it to an exit status (used by the CLI).
"""

from __future__ import annotations

__all__ = [
    "raise_fatal",
    "terminate_process",
]

import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

from platformdirs import user_log_dir

from amq_audit.constants import APP_NAME, CRASH_BREADCRUMB_FILENAME
from amq_audit.exceptions import FatalAuditFailure
from amq_audit.telemetry.system.system_logger import get_system_logger


def _write_crash_breadcrumb(log_dir: Path, failure: FatalAuditFailure) -> Path:
    """Write breadcrumb file with failure details.

    Location: <log_dir>/.last_crash
    Format:
        <timestamp>
        failure_type: <type>
        exit_code: <code>
        reason: <reason>

    Args:
        log_dir: Directory for the breadcrumb file.
        failure: The fatal failure.

    Returns:
        Path of the breadcrumb file.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass  # If we can't create dir, try writing anyway

    crash_file = log_dir / CRASH_BREADCRUMB_FILENAME
    timestamp = datetime.now(timezone.utc).isoformat()
    crash_file.write_text(
        f"{timestamp}\n"
        f"failure_type: {failure.failure_type}\n"
        f"exit_code: {failure.exit_code}\n"
        f"reason: {failure}\n",
        encoding="utf-8",
    )
    return crash_file


def terminate_process(failure: FatalAuditFailure, log_dir: Path | None = None) -> NoReturn:
    """Report a fatal failure and exit immediately.

    Every reporting step is best effort: the process exits with
    ``failure.exit_code`` even if stderr or the log directory are unusable.

    Args:
        failure: The fatal failure.
        log_dir: Directory for the crash breadcrumb. Defaults to the
            platform log directory.
    """
    # 1. Log to system logger (best effort - may share the failing resource)
    try:
        get_system_logger().critical(
            {
                "event": "fatal_audit_failure",
                "failure_type": failure.failure_type,
                "exit_code": failure.exit_code,
                "reason": str(failure),
                "message": f"Auditing stopped, terminating process: {failure}",
            }
        )
    except Exception:
        pass  # Best effort

    # 2. Write breadcrumb file
    try:
        _write_crash_breadcrumb(log_dir or Path(user_log_dir(APP_NAME)), failure)
    except Exception:
        pass  # Best effort

    # 3. Print diagnostic with traceback to stderr
    try:
        traceback.print_exception(type(failure), failure, failure.__traceback__, file=sys.stderr)
        print(
            f"CRITICAL: {APP_NAME} terminating - {failure.failure_type}\n"
            f"  Reason: {failure}\n"
            f"  Exit code: {failure.exit_code}",
            file=sys.stderr,
            flush=True,
        )
    except Exception:
        pass  # Best effort

    os._exit(failure.exit_code)


def raise_fatal(failure: FatalAuditFailure) -> NoReturn:
    """Re-raise a fatal failure to the caller's run loop.

    Args:
        failure: The fatal failure.

    Raises:
        FatalAuditFailure: Always, the given failure.
    """
    raise failure
