"""
Supervisor Module.

Keeps exactly one worker process alive per shard, respawns crashed workers
and shuts all of them down on SIGTERM/SIGINT.
"""

import multiprocessing
import signal
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from multiprocessing import connection
from multiprocessing.context import BaseContext
from multiprocessing.process import BaseProcess
from typing import Any

from loguru import logger

from harvester.exceptions import ConfigError
from harvester.jobs.worker import run_worker
from harvester.modules.shards import ShardConfig

supervisor_log = logger.bind(module="Supervisor")

WorkerTarget = Callable[[ShardConfig, Any], None]


def get_fork_context() -> BaseContext:
    """
    Fork start method context.

    Raises:
        ConfigError: Platform cannot fork
    """
    if "fork" not in multiprocessing.get_all_start_methods():
        raise ConfigError("Process forking is not available on this platform")
    return multiprocessing.get_context("fork")


def describe_exit(exitcode: int | None) -> str:
    """
    Human-readable exit status of a reaped worker.

    Examples:
        >>> describe_exit(0)
        'exited with code 0'
        >>> describe_exit(-9)
        'killed by signal SIGKILL'
    """
    if exitcode is None:
        return "exited with unknown status"
    if exitcode >= 0:
        return f"exited with code {exitcode}"
    try:
        return f"killed by signal {signal.Signals(-exitcode).name}"
    except ValueError:
        return f"killed by signal {-exitcode}"


@dataclass
class WorkerHandle:
    """Live worker process of one shard."""

    shard: ShardConfig
    process: BaseProcess
    stop_event: Any

    @property
    def pid(self) -> int | None:
        return self.process.pid


class Supervisor:
    """
    Process supervisor for shard workers.

    Signal handlers only set flags; reaping and respawning happen in
    ``poll()`` on the main loop. Each worker gets its own stop event, so a
    signal delivered to one worker never affects its siblings.
    """

    def __init__(
        self,
        shards: Sequence[ShardConfig],
        target: WorkerTarget = run_worker,
        respawn_delay: float = 5.0,
        shutdown_timeout: float = 10.0,
        poll_interval: float = 0.5,
        mp_context: BaseContext | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the supervisor.

        Args:
            shards: Shards to run, one worker each
            target: Worker process target, called as ``target(shard, stop_event)``
            respawn_delay: Seconds between a worker exit and its respawn
            shutdown_timeout: Seconds to wait for workers before SIGKILL
            poll_interval: Main loop tick in seconds
            mp_context: Multiprocessing context (fork by default)
            clock: Monotonic clock
        """
        self._shards = list(shards)
        self._target = target
        self._respawn_delay = respawn_delay
        self._shutdown_timeout = shutdown_timeout
        self._poll_interval = poll_interval
        self._ctx = mp_context or get_fork_context()
        self._clock = clock
        self._workers: dict[tuple[int, int], WorkerHandle] = {}
        self._pending: dict[tuple[int, int], tuple[ShardConfig, float]] = {}
        self._stopping = False
        self._child_exited = False

    # ============================================
    # State
    # ============================================

    @property
    def stopping(self) -> bool:
        return self._stopping

    @property
    def workers(self) -> list[WorkerHandle]:
        return list(self._workers.values())

    @property
    def live_shards(self) -> set[tuple[int, int]]:
        """Keys of shards that currently have a worker process."""
        return set(self._workers)

    @property
    def pending_shards(self) -> set[tuple[int, int]]:
        """Keys of shards waiting to be respawned."""
        return set(self._pending)

    def request_stop(self) -> None:
        """Begin shutdown on the next main loop tick."""
        self._stopping = True

    # ============================================
    # Signals
    # ============================================

    def _handle_stop_signal(self, signum, frame) -> None:
        self._stopping = True

    def _handle_child_signal(self, signum, frame) -> None:
        self._child_exited = True

    def install_signal_handlers(self) -> None:
        """Install SIGTERM/SIGINT/SIGCHLD handlers (main thread only)."""
        signal.signal(signal.SIGTERM, self._handle_stop_signal)
        signal.signal(signal.SIGINT, self._handle_stop_signal)
        signal.signal(signal.SIGCHLD, self._handle_child_signal)

    # ============================================
    # Spawning and Reaping
    # ============================================

    def spawn(self, shard: ShardConfig) -> WorkerHandle | None:
        """
        Start a worker process for ``shard``.

        A failed start is scheduled for another attempt after the respawn
        delay.

        Returns:
            WorkerHandle, or None if the process could not be started
        """
        stop_event = self._ctx.Event()
        process = self._ctx.Process(
            target=self._target,
            args=(shard, stop_event),
            name=shard.name,
        )
        try:
            process.start()
        except OSError as e:
            supervisor_log.error(f"Failed to spawn worker {shard.name}: {e}")
            self._schedule_respawn(shard)
            return None

        handle = WorkerHandle(shard=shard, process=process, stop_event=stop_event)
        self._workers[shard.key] = handle
        supervisor_log.info(f"Started worker {shard.name} (PID {process.pid})")
        return handle

    def start(self) -> None:
        """Spawn one worker per shard."""
        for shard in self._shards:
            self.spawn(shard)
        supervisor_log.info(f"Supervisor running {len(self._workers)} workers")

    def _schedule_respawn(self, shard: ShardConfig) -> None:
        if self._stopping:
            return
        self._pending[shard.key] = (shard, self._clock() + self._respawn_delay)

    def reap(self) -> list[WorkerHandle]:
        """
        Collect exited workers without blocking.

        Returns:
            Handles of the workers that exited
        """
        self._child_exited = False
        exited = []
        for key, handle in list(self._workers.items()):
            # is_alive() waits on the child without blocking
            if handle.process.is_alive():
                continue
            del self._workers[key]
            exited.append(handle)
            exitcode = handle.process.exitcode
            message = f"Worker {handle.shard.name} (PID {handle.pid}) {describe_exit(exitcode)}"
            if exitcode is not None and exitcode < 0 and not self._stopping:
                supervisor_log.error(message)
            else:
                supervisor_log.warning(message)
            handle.process.close()
            self._schedule_respawn(handle.shard)
        return exited

    def respawn_due(self) -> list[WorkerHandle]:
        """Spawn workers whose respawn delay has elapsed."""
        if self._stopping:
            return []
        now = self._clock()
        spawned = []
        for key, (shard, due) in list(self._pending.items()):
            if due > now:
                continue
            del self._pending[key]
            supervisor_log.info(f"Respawning worker {shard.name}")
            handle = self.spawn(shard)
            if handle is not None:
                spawned.append(handle)
        return spawned

    def poll(self) -> None:
        """One main loop tick: reap exited workers, respawn due ones."""
        self.reap()
        self.respawn_due()

    # ============================================
    # Main Loop
    # ============================================

    def _wait_for_exit(self, timeout: float) -> None:
        """Sleep until a worker exits or ``timeout`` elapses."""
        if self._child_exited:
            return
        sentinels = [handle.process.sentinel for handle in self._workers.values()]
        if sentinels:
            connection.wait(sentinels, timeout=timeout)
        else:
            time.sleep(timeout)

    def run(self) -> int:
        """
        Spawn all workers and supervise them until stopped.

        Returns:
            Process exit code
        """
        self.start()
        while not self._stopping:
            self.poll()
            self._wait_for_exit(self._poll_interval)
        supervisor_log.info("Shutdown requested, stopping workers")
        self.shutdown()
        return 0

    def shutdown(self) -> None:
        """
        Stop all workers.

        Sends SIGTERM, waits up to ``shutdown_timeout`` seconds, then SIGKILLs
        the rest. Every worker is reaped before returning.
        """
        self._stopping = True
        self._pending.clear()

        for handle in self._workers.values():
            handle.stop_event.set()
            if handle.process.is_alive():
                handle.process.terminate()

        deadline = self._clock() + self._shutdown_timeout
        while self._workers and self._clock() < deadline:
            self.reap()
            if self._workers:
                time.sleep(0.1)

        for handle in list(self._workers.values()):
            supervisor_log.warning(
                f"Worker {handle.shard.name} (PID {handle.pid}) did not stop, killing"
            )
            handle.process.kill()
            handle.process.join()
        self.reap()
        supervisor_log.info("All workers stopped")
