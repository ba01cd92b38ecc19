"""
NuGet restore execution.

Runs ``<invocation> restore <solution>`` as a child process. Its output goes
straight to our stdout/stderr, which is the build log the user reads.
"""

import logging
import subprocess
import time
from pathlib import Path
from typing import Callable, List, Union

from restorekit.core.exceptions import ExecutionError
from restorekit.core.retry import RESTORE_RETRY_POLICY, RetryPolicy, retry
from restorekit.nuget.tool import ToolInvocation, format_command

logger = logging.getLogger(__name__)


class RestoreAttemptError(Exception):
    """A single restore attempt failed."""

    pass


class RestoreRunner:
    """
    Run NuGet restore with bounded retry.

    Example:
        >>> runner = RestoreRunner()
        >>> runner.restore(ToolInvocation(("nuget",)), Path("App.sln"))
        ['nuget', 'restore', 'App.sln']
    """

    def __init__(
        self,
        policy: RetryPolicy = RESTORE_RETRY_POLICY,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.policy = policy
        self._run = run
        self._sleep = sleep

    def restore(
        self, invocation: ToolInvocation, solution_path: Union[str, Path]
    ) -> List[str]:
        """
        Restore packages of solution_path.

        Args:
            invocation: NuGet invocation prefix
            solution_path: Solution or project file

        Returns:
            The argument vector that succeeded

        Raises:
            ExecutionError: If every attempt failed to start or exited non-zero
        """
        cmd = invocation.command_for(solution_path)
        logger.info(f"$ {format_command(cmd)}")

        try:
            retry(self.policy, lambda attempt: self._run_once(cmd), sleep=self._sleep)
        except RestoreAttemptError as e:
            raise ExecutionError(cmd, str(e)) from e

        return cmd

    def _run_once(self, cmd: List[str]) -> None:
        try:
            result = self._run(cmd)
        except OSError as e:
            raise RestoreAttemptError(f"failed to start: {e}") from e

        if result.returncode != 0:
            raise RestoreAttemptError(f"exit status {result.returncode}")
