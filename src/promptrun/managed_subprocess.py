import os
import signal
import subprocess
import sys
import threading
from typing import List, Optional


class ManagedSubprocess:
    """Context manager that shuts a child process down cleanly on Ctrl+C.

    The child must be started with start_new_session=True so the whole
    process group can be signalled.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        label: str,
        threads: Optional[List[threading.Thread]] = None,
        terminate_timeout: float = 5.0,
    ):
        self.process = process
        self.label = label
        self.threads = threads or []
        self.terminate_timeout = terminate_timeout
        self.interrupted = False

    def __enter__(self) -> "ManagedSubprocess":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is KeyboardInterrupt:
            self._terminate()
            return True
        return False

    def _signal_group(self, signum):
        try:
            os.killpg(self.process.pid, signum)
        except ProcessLookupError:
            pass

    def _terminate(self) -> None:
        print(f"\nInterrupted. Stopping {self.label}...", file=sys.stderr)
        self._signal_group(signal.SIGTERM)
        try:
            self.process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            self._signal_group(signal.SIGKILL)
            self.process.wait()
        for thread in self.threads:
            thread.join(timeout=self.terminate_timeout)
        self.interrupted = True
