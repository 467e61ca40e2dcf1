"""External command steps for verification and the main workload"""
import logging
import shlex
import signal
import subprocess
import threading
import time
from typing import Callable, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)

FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def run_forwarding_signals(argv, cwd=None, env=None, check=False) -> subprocess.CompletedProcess:
    """
    subprocess.run replacement that passes SIGTERM and SIGINT on to the child.

    The workload runs as a child of stackgate, so a container stop signal
    reaches stackgate first. Handlers are only installed from the main thread;
    elsewhere this behaves like subprocess.run.
    """
    if threading.current_thread() is not threading.main_thread():
        return subprocess.run(argv, cwd=cwd, env=env, check=check)

    child = None
    pending = []

    def forward(signum, frame):
        if child is None:
            pending.append(signum)
            return
        logger.info(f"Forwarding signal {signum} to pid {child.pid}")
        child.send_signal(signum)

    previous = {signum: signal.signal(signum, forward) for signum in FORWARDED_SIGNALS}
    try:
        child = subprocess.Popen(argv, cwd=cwd, env=env)
        for signum in pending:
            child.send_signal(signum)
        returncode = child.wait()
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    if check and returncode:
        raise subprocess.CalledProcessError(returncode, argv)
    return subprocess.CompletedProcess(argv, returncode)


class CommandStep:
    """
    A single external command, run without a shell.

    Calling the step runs the command once and returns its exit code. A
    command killed by a signal reports 128 + the signal number, as sh does.
    """

    def __init__(
        self,
        name: str,
        command: Union[str, Sequence[str]],
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        runner: Callable[..., subprocess.CompletedProcess] = run_forwarding_signals,
    ):
        """
        Initialize command step.

        Args:
            name: Step name used in logs
            command: Shell-style command string or argv list
            cwd: Working directory
            env: Environment; None inherits the current one
            runner: subprocess.run compatible callable
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            raise ValueError(f"{name}: command is empty")

        self.name = name
        self.argv = argv
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.runner = runner

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)

    def __call__(self) -> int:
        logger.info(
            f"Running {self.name}: {self.command_line}",
            extra={'component': self.name}
        )
        started = time.monotonic()
        completed = self.runner(self.argv, cwd=self.cwd, env=self.env, check=False)
        elapsed = time.monotonic() - started

        returncode = completed.returncode
        if returncode < 0:
            returncode = 128 - returncode

        logger.info(
            f"{self.name} finished with exit code {returncode} in {elapsed:.1f}s",
            extra={'component': self.name}
        )
        return returncode

    def __repr__(self):
        return f"<CommandStep(name={self.name}, argv={self.argv})>"
