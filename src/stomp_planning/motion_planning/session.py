"""Define a single-use planning session that runs the optimizer under a watchdog.

Cancellation is cooperative: when the time budget elapses, the watchdog asks the optimizer to
stop at its next checkpoint. An optimizer that never checks for cancellation will run to
completion regardless of the budget.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from stomp_planning.io.logging import log_debug, log_error, log_info
from stomp_planning.parallelism.watchdog import Watchdog

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.motion_planning.interfaces import Optimizer


class SessionState(Enum):
    """The lifecycle states of a planning session."""

    IDLE = 0
    RUNNING = 1
    SUCCEEDED = 2
    FAILED = 3
    CANCELLED = 4

    @property
    def terminal(self) -> bool:
        """Check whether the state is final."""
        return self in (SessionState.SUCCEEDED, SessionState.FAILED, SessionState.CANCELLED)


@dataclass(frozen=True)
class OptimizationProblem:
    """Input to the optimizer: either a seed trajectory or a start/goal pair (never both)."""

    seed: NDArray[np.float64] | None = None
    start: JointVector | None = None
    goal: JointVector | None = None

    def __post_init__(self) -> None:
        """Verify that exactly one form of input was provided."""
        has_seed = self.seed is not None
        has_endpoints = self.start is not None and self.goal is not None
        if has_seed == has_endpoints:
            raise ValueError("Provide either a seed trajectory or both a start and a goal.")

    @classmethod
    def from_seed(cls, seed: NDArray[np.float64]) -> OptimizationProblem:
        """Construct a problem optimizing from a seed trajectory."""
        return cls(seed=seed)

    @classmethod
    def from_endpoints(cls, start: JointVector, goal: JointVector) -> OptimizationProblem:
        """Construct a problem optimizing between a start and a goal configuration."""
        return cls(start=start, goal=goal)

    @property
    def seeded(self) -> bool:
        """Check whether the problem optimizes from a seed trajectory."""
        return self.seed is not None


@dataclass(frozen=True)
class SessionResult:
    """The final state of a planning session and the optimizer's output (if any)."""

    state: SessionState
    parameters: NDArray[np.float64] | None
    elapsed_s: float
    cancel_requested: bool
    message: str = ""


class CancellablePlanningSession:
    """Runs one optimization attempt, cancelling it cooperatively if its time budget elapses."""

    def __init__(self, optimizer: Optimizer, watchdog_interval_s: float = 0.05) -> None:
        """Initialize an idle session.

        :param optimizer: Optimizer invoked by the session
        :param watchdog_interval_s: Duration (seconds) between watchdog polls (defaults to 0.05)
        """
        self.optimizer = optimizer
        self.watchdog_interval_s = watchdog_interval_s

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._cancel_requested = threading.Event()
        self._watchdog: Watchdog | None = None
        self._failed_cancels = 0

    @property
    def state(self) -> SessionState:
        """Retrieve the current lifecycle state of the session."""
        with self._lock:
            return self._state

    @property
    def cancel_requested(self) -> bool:
        """Check whether cancellation has been requested."""
        return self._cancel_requested.is_set()

    @property
    def watchdog(self) -> Watchdog | None:
        """Retrieve the session's watchdog (None until the session has started)."""
        return self._watchdog

    def run(self, problem: OptimizationProblem, time_budget_s: float) -> SessionResult:
        """Run the optimizer on the given problem under a watchdog enforcing the time budget.

        :param problem: Seed trajectory or start/goal pair to optimize
        :param time_budget_s: Wall-clock budget (seconds) after which cancellation is requested
        :return: Final state of the session and the optimizer's output (if any)
        :raises RuntimeError: If the session has already been run
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise RuntimeError(f"A planning session is single-use (state: {self._state.name}).")
            self._state = SessionState.RUNNING

        watchdog = Watchdog(
            budget_s=time_budget_s,
            on_expiry=self._on_budget_expired,
            interval_s=self.watchdog_interval_s,
            name="planning-watchdog",
        )
        self._watchdog = watchdog

        start_time_s = time.monotonic()
        watchdog.start()
        parameters = None
        message = ""
        try:
            if problem.seeded:
                parameters = self.optimizer.solve_seeded(problem.seed)
            else:
                parameters = self.optimizer.solve(problem.start, problem.goal)
        except Exception as exc:  # noqa: BLE001
            message = f"Optimizer raised {type(exc).__name__}: {exc}"
            log_error(f"STOMP {message}")
        finally:
            watchdog.stop()  # Stopped before the result is inspected
        elapsed_s = time.monotonic() - start_time_s

        cancelled = self._cancel_requested.is_set()
        if parameters is not None:
            final_state = SessionState.SUCCEEDED
        elif cancelled:
            final_state = SessionState.CANCELLED
            message = message or f"Optimization was cancelled after {elapsed_s:.3f} s"
        else:
            final_state = SessionState.FAILED
            message = message or "Optimizer failed to find a trajectory"

        with self._lock:
            self._state = final_state

        return SessionResult(final_state, parameters, elapsed_s, cancelled, message)

    def cancel(self) -> bool:
        """Request that the running optimization stop at its next safe checkpoint.

        :return: True if the optimizer acknowledged the request (or nothing is running)
        """
        with self._lock:
            if self._state is not SessionState.RUNNING:
                return True

        self._cancel_requested.set()
        if not self.optimizer.cancel():
            with self._lock:
                self._failed_cancels += 1
                first_failure = self._failed_cancels == 1
            if first_failure:
                log_error("STOMP Failed to interrupt the optimizer")
            else:
                log_debug(f"STOMP optimizer ignored {self._failed_cancels} cancellation requests")
            return False

        return True

    def _on_budget_expired(self) -> bool:
        """Handle the watchdog's expiry by requesting cancellation."""
        if not self._cancel_requested.is_set():
            budget_s = self._watchdog.budget_s if self._watchdog else 0.0
            log_error(f"STOMP exceeded allowed time of {budget_s:.3f} s, terminating")

        acknowledged = self.cancel()
        if acknowledged:
            log_info("STOMP optimizer acknowledged cancellation")
        return acknowledged
