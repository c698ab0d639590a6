"""The state of a COBYLA optimization run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

import numpy as np

from cobyla_adapter.config.constants import DEFAULT_CONSTRAINT_TOLERANCE
from cobyla_adapter.config.utils import immutable_array
from cobyla_adapter.enums import FailStatus, Phase, SuccessStatus
from cobyla_adapter.exceptions import (
    EvaluationError,
    NoEvaluationError,
    StateFinishedError,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

_CONVERGED: Final = {
    SuccessStatus.SUCCESS,
    SuccessStatus.STOPVAL_REACHED,
    SuccessStatus.FTOL_REACHED,
    SuccessStatus.XTOL_REACHED,
}


class CobylaState:
    """The iteration record of a COBYLA run.

    The state holds the current and the best parameter vectors and cost
    vectors, the iteration counter, evaluation counters, and, once the run has
    ended, its termination status. The first element of a cost vector is the
    objective value, the remaining elements are constraint values that are
    feasible when non-negative.

    Only feasible candidates can become the best result, and a candidate
    replaces the best result only if its objective value is not larger. Hence
    the best objective value never increases during a run. Between candidates
    with equal objective values, the most recent one is preferred.

    The executor settings (`max_iters`, `max_time`, `iprint`) are stored in
    the state before a run, so solvers can read them.
    """

    def __init__(
        self,
        initial_params: ArrayLike,
        *,
        constraint_tolerance: float = DEFAULT_CONSTRAINT_TOLERANCE,
    ) -> None:
        """Initialize the state.

        Args:
            initial_params:       The initial parameter vector.
            constraint_tolerance: Slack used to test constraints for feasibility.
        """
        self.param: NDArray[np.float64] = immutable_array(
            initial_params, dtype=np.float64
        )
        if self.param.ndim != 1:
            msg = "the initial parameters must be a vector"
            raise ValueError(msg)
        self.prev_param: NDArray[np.float64] | None = None
        self.cost: NDArray[np.float64] | None = None
        self.prev_cost: NDArray[np.float64] | None = None
        self.iter = 0
        self.last_best_iter = 0
        self.constraint_tolerance = constraint_tolerance
        self.max_iters: int | None = None
        self.max_time: float | None = None
        self.iprint = 0
        self.counts: dict[str, int] = {}
        self.time: float | None = None

        self._best_param: NDArray[np.float64] | None = None
        self._best_cost: NDArray[np.float64] | None = None
        self._prev_best_cost: NDArray[np.float64] | None = None
        self._status: SuccessStatus | FailStatus | None = None
        self._phase = Phase.UNINITIALIZED

    @property
    def dimension(self) -> int:
        """The number of parameters."""
        return self.param.size

    @property
    def status(self) -> SuccessStatus | FailStatus | None:
        """The termination status, `None` while the run is in progress."""
        return self._status

    @property
    def phase(self) -> Phase:
        """The current phase of the run."""
        return self._phase

    @property
    def terminated(self) -> bool:
        """Whether a termination status has been attached."""
        return self._status is not None

    @property
    def best_param(self) -> NDArray[np.float64]:
        """The best feasible parameter vector found so far.

        Raises:
            NoEvaluationError: If no feasible candidate was recorded.
        """
        if self._best_param is None:
            msg = "no feasible evaluation yet"
            raise NoEvaluationError(msg)
        return self._best_param

    @property
    def best_cost_vector(self) -> NDArray[np.float64]:
        """The cost vector of the best feasible candidate.

        Raises:
            NoEvaluationError: If no feasible candidate was recorded.
        """
        if self._best_cost is None:
            msg = "no feasible evaluation yet"
            raise NoEvaluationError(msg)
        return self._best_cost

    @property
    def best_cost(self) -> float:
        """The objective value of the best feasible candidate.

        Raises:
            NoEvaluationError: If no feasible candidate was recorded.
        """
        return float(self.best_cost_vector[0])

    @property
    def best_constraints(self) -> NDArray[np.float64]:
        """The constraint values of the best feasible candidate.

        Raises:
            NoEvaluationError: If no feasible candidate was recorded.
        """
        return self.best_cost_vector[1:]

    @property
    def prev_best_cost(self) -> float | None:
        """The best objective value before the last improvement, if any."""
        return None if self._prev_best_cost is None else float(self._prev_best_cost[0])

    def has_best(self) -> bool:
        """Whether a feasible candidate has been recorded.

        Returns:
            `True` if the best parameters and cost are available.
        """
        return self._best_param is not None

    def is_best(self) -> bool:
        """Whether the last update produced a new best candidate.

        Returns:
            `True` if the last iteration improved the best result.
        """
        return self.iter > 0 and self.last_best_iter == self.iter

    def is_feasible(self, cost: NDArray[np.float64]) -> bool:
        """Test whether a cost vector satisfies all constraints.

        Args:
            cost: The cost vector, objective first.

        Returns:
            `True` if all constraint values are at least `-constraint_tolerance`.
        """
        return bool(np.all(cost[1:] >= -self.constraint_tolerance))

    def begin(self) -> None:
        """Mark the start of a solve step.

        Raises:
            StateFinishedError: If the state is already finished.
        """
        if self.terminated:
            msg = "cannot start a solve step on a finished state"
            raise StateFinishedError(msg)
        self._phase = Phase.RUNNING

    def update(self, params: ArrayLike, cost: ArrayLike) -> bool:
        """Record a new candidate and advance the iteration counter.

        The candidate becomes the current one. It also becomes the best
        candidate if it is feasible and its objective value does not exceed
        the best objective value found so far.

        Args:
            params: The parameter vector of the candidate.
            cost:   The cost vector of the candidate, objective first.

        Returns:
            `True` if the candidate became the new best.

        Raises:
            StateFinishedError: If the state is already finished.
            EvaluationError:    If the vectors have inconsistent sizes.
        """
        if self.terminated:
            msg = "cannot update a finished state"
            raise StateFinishedError(msg)
        params = immutable_array(params, dtype=np.float64)
        cost = immutable_array(cost, dtype=np.float64)
        if params.shape != self.param.shape:
            msg = f"parameter vector has shape {params.shape}, expected {self.param.shape}"
            raise EvaluationError(msg)
        if cost.ndim != 1 or cost.size == 0:
            msg = "the cost must be a non-empty vector"
            raise EvaluationError(msg)
        if self.cost is not None and cost.shape != self.cost.shape:
            msg = f"cost vector has shape {cost.shape}, expected {self.cost.shape}"
            raise EvaluationError(msg)

        self.prev_param, self.param = self.param, params
        self.prev_cost, self.cost = self.cost, cost
        self.iter += 1

        if (
            self.is_feasible(cost)
            and not np.isnan(cost[0])
            and (self._best_cost is None or cost[0] <= self._best_cost[0])
        ):
            self._prev_best_cost = self._best_cost
            self._best_param = params
            self._best_cost = cost
            self.last_best_iter = self.iter
            return True
        return False

    def finish(self, status: SuccessStatus | FailStatus) -> None:
        """Attach the termination status.

        The status can only be set once, the phase of the state changes to the
        terminal phase corresponding to the status.

        Args:
            status: The termination status.

        Raises:
            StateFinishedError: If the state is already finished.
        """
        if self._status is not None:
            msg = f"state already finished with status {self._status.name}"
            raise StateFinishedError(msg)
        self._status = status
        if isinstance(status, FailStatus):
            self._phase = Phase.FAILED
        elif status in _CONVERGED:
            self._phase = Phase.CONVERGED
        else:
            self._phase = Phase.EXHAUSTED

    def increment_count(self, name: str, value: int = 1) -> None:
        """Increment an evaluation counter.

        Args:
            name:  The name of the counter.
            value: The increment.
        """
        self.counts[name] = self.counts.get(name, 0) + value

    def __repr__(self) -> str:
        """Return a short description of the state."""
        best = self.best_cost if self.has_best() else None
        status = None if self._status is None else self._status.name
        return (
            f"{self.__class__.__name__}(iter={self.iter}, best_cost={best}, "
            f"phase={self._phase.name}, status={status})"
        )
