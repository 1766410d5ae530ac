# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Restarts of an inner strategy with increasing population size (IPOP), with
the population size bound of Liao and Stuetzle and the step size decay of
Loshchilov, Schoenauer and Sebag (NIPOP).

References
----------
Auger, Anne, and Nikolaus Hansen. "A restart CMA evolution strategy with increasing population size."
2005 IEEE Congress on Evolutionary Computation. Vol. 2. IEEE, 2005.

Loshchilov, Ilya, Marc Schoenauer, and Michele Sebag. "Alternative restart strategies for CMA-ES."
International Conference on Parallel Problem Solving from Nature. Springer, 2012.

Liao, Tianjun, and Thomas Stuetzle. "Bounding the population size of IPOP-CMA-ES on the noiseless BBOB testbed."
Proceedings of the 15th annual conference companion on Genetic and evolutionary computation. ACM, 2013.
"""

import sys
import math
import numbers
import logging
import warnings
import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools
from restartcma.common import errors
from . import base
from . import callbacks


logger = logging.getLogger(__name__)

# scale-relative factor of the stagnation test
RELATIVE_EPS = 2.0 * float(np.finfo(np.float64).eps)
# population limit sentinel for the 10 * D * D bound
ADAPTIVE = "adaptive"
BUDGET = "budget"
STAGNATION = "stagnation"


def minimum_popsize(dimension: int) -> int:
    """Default population size of CMA-ES, 4 + floor(3 ln(D))"""
    return 4 + int(math.floor(3.0 * math.log(dimension)))


def restart_budget(dimension: int, popsize: int) -> int:
    """Evaluation budget of one restart, before capping with the remaining global budget"""
    return int(math.floor((100.0 + 50.0 * (dimension + 3) ** 2 / math.sqrt(popsize)) * popsize))


def _is_positive_integer(value: tp.Any) -> bool:
    """Whether the value is a finite strictly positive integral number (booleans excluded)"""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and int(value) == value and value > 0


class SearchState:
    """Mutable state of a restart optimization, created at the beginning
    of :code:`IPOP.optimize` and updated once per restart.

    Parameters
    ----------
    guess: np.ndarray
        the initial guess, also the center of the perturbed start points
    sigma: float
        the initial step size
    max_popsize: int
        population size which triggers a reset to the minimum population size
    """

    def __init__(self, guess: np.ndarray, sigma: float, max_popsize: int) -> None:
        self.guess = guess
        self.min_popsize = minimum_popsize(guess.size)
        self.max_popsize = max_popsize
        self.popsize = self.min_popsize
        self.sigma = sigma
        self.budget = 0
        self.num_evaluations = 0
        self.num_restarts = 0
        # result of the last restart
        self.x = guess
        self.loss = float("nan")
        # best point and loss, and best loss before the last improvement
        self.x_best = guess
        self.best_loss = float("inf")
        self.previous_best_loss: tp.Optional[float] = None
        self.stop_reason: tp.Optional[str] = None

    @property
    def dimension(self) -> int:
        return self.guess.size

    @property
    def done(self) -> bool:
        return self.stop_reason is not None

    def record(self) -> base.RestartRecord:
        return base.RestartRecord(
            restart=self.num_restarts - 1,
            num_evaluations=self.num_evaluations,
            budget=self.budget,
            popsize=self.popsize,
            sigma=self.sigma,
            loss=self.loss,
            best_loss=self.best_loss,
        )


class IPOP(base.GradientFreeOptimizer):
    """Restarts an inner strategy with increasing population size and decreasing step size,
    until the global evaluation budget is spent or the best loss stagnates.

    Each restart doubles the population size, or resets it to its minimal value
    :code:`4 + floor(3 ln(D))` when the doubled size reaches the population limit.
    The step size is divided by :code:`step_size_decay` (floored at 1% of the initial step size),
    and the start point is the initial guess perturbed by Gaussian noise of standard deviation
    :code:`initial_step_size` (the first run starts at the initial guess).

    Parameters
    ----------
    tolerance: float
        absolute tolerance of the stagnation test on the best loss across restarts
    inner_tolerance: float
        tolerance forwarded to each inner strategy
    initial_step_size: float
        initial step size, also the scale of the start point perturbations
    max_evaluations: int
        maximum number of evaluations overall. Each restart is provided with the remaining budget at most,
        but runs are never interrupted, so the budget can be overrun by as much as an inner strategy overruns its own.
    population_limit: int, "adaptive" or None
        population size triggering a reset to the minimal population size. "adaptive" uses 10 * D * D,
        None never resets.
    step_size_decay: float
        divisor of the step size at each restart
    strategy: StrategyFactory
        creates the inner strategy from :code:`(tolerance, popsize, sigma, max_evaluations)`
        (defaults to active CMA-ES)
    random_state: int, np.random.RandomState or any object with a :code:`randn` method
        source of the Gaussian perturbations of the start points
    relative_eps: float
        factor of the scale-relative part of the stagnation tolerance
    verbose: bool
        whether to print one line per restart
    """

    def __init__(
        self,
        tolerance: float,
        inner_tolerance: float,
        initial_step_size: float,
        max_evaluations: int,
        *,
        population_limit: tp.Optional[tp.Union[int, str]] = ADAPTIVE,
        step_size_decay: float = 1.6,
        strategy: tp.Optional[base.StrategyFactory] = None,
        random_state: tp.Optional[tp.Union[int, tp.GaussianSource]] = None,
        relative_eps: float = RELATIVE_EPS,
        verbose: bool = False,
    ) -> None:
        super().__init__(tolerance)
        if not inner_tolerance > 0:
            raise errors.ConfigurationError(f"inner_tolerance must be strictly positive (got {inner_tolerance})")
        if not 0 < initial_step_size < float("inf"):
            raise errors.ConfigurationError(f"initial_step_size must be strictly positive and finite (got {initial_step_size})")
        if not _is_positive_integer(max_evaluations):
            raise errors.ConfigurationError(f"max_evaluations must be a strictly positive integer (got {max_evaluations})")
        if not 0 < step_size_decay < float("inf"):
            raise errors.ConfigurationError(f"step_size_decay must be strictly positive and finite (got {step_size_decay})")
        if not 0 <= relative_eps < float("inf"):
            raise errors.ConfigurationError(f"relative_eps must be non-negative and finite (got {relative_eps})")
        if population_limit is not None and population_limit != ADAPTIVE:
            if not _is_positive_integer(population_limit):
                raise errors.ConfigurationError(
                    f'population_limit must be a strictly positive integer, "{ADAPTIVE}" or None (got {population_limit!r})'
                )
        if step_size_decay < 1:
            warnings.warn(
                f"step_size_decay={step_size_decay} < 1 makes the step size increase at each restart",
                errors.InefficientSettingsWarning,
            )
        self.inner_tolerance = float(inner_tolerance)
        self.initial_step_size = float(initial_step_size)
        self.max_evaluations = int(max_evaluations)
        self.population_limit = population_limit
        self.step_size_decay = float(step_size_decay)
        self.relative_eps = float(relative_eps)
        if strategy is None:
            from .cmaes import ParametrizedCMA

            strategy = ParametrizedCMA(active=True)
        self.strategy = strategy
        if random_state is None or isinstance(random_state, (int, np.integer)):
            random_state = np.random.RandomState(random_state)
        self.random_state: tp.GaussianSource = random_state
        self._callbacks: tp.Dict[str, tp.List[tp.Any]] = {}
        if verbose:
            self.register_callback("restart", callbacks.RestartPrinter())
        self.state: tp.Optional[SearchState] = None
        self.history: tp.List[base.RestartRecord] = []

    @property
    def stop_reason(self) -> tp.Optional[str]:
        """str or None: why the last optimization stopped ("budget" or "stagnation")"""
        return None if self.state is None else self.state.stop_reason

    def register_callback(self, name: str, callback: tp.Callable[["IPOP", base.RestartRecord], None]) -> None:
        """Add a callback method called after each restart (including the first run),
        with the optimizer and a :code:`RestartRecord`. This can be useful for custom logging.

        Parameters
        ----------
        name: str
            name of the event to register the callback for (only "restart" is available)
        callback: callable
            a callable taking the optimizer and the record
        """
        assert name == "restart", f'Only "restart" events can have callbacks (not {name})'
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def max_popsize(self, dimension: int) -> int:
        """Population size which triggers a reset to the minimum population size"""
        if self.population_limit is None:
            return sys.maxsize
        if self.population_limit == ADAPTIVE:
            return 10 * dimension * dimension
        return int(self.population_limit)

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        guess = tools.as_vector(guess)
        if not guess.size:
            raise errors.RestartCMAValueError("guess must have at least one coordinate")
        state = SearchState(guess, self.initial_step_size, self.max_popsize(guess.size))
        if state.max_popsize <= 2 * state.min_popsize:
            warnings.warn(
                f"Population limit {state.max_popsize} forbids any population growth "
                f"from the minimum population size {state.min_popsize}",
                errors.InefficientSettingsWarning,
            )
        self.state = state
        self.history = []
        self._initialize(objective, state)
        while not state.done:
            if state.num_evaluations >= self.max_evaluations:
                state.stop_reason = BUDGET
                break
            self._iterate(objective, state)
            if self._stagnates(state):
                state.stop_reason = STAGNATION
        logger.info(
            "%s stopped on %s after %s restarts and %s evaluations, with best loss %s",
            self.name,
            state.stop_reason,
            state.num_restarts,
            state.num_evaluations,
            state.best_loss,
        )
        return state.x_best.copy()

    def _initialize(self, objective: tp.Objective, state: SearchState) -> None:
        state.budget = min(restart_budget(state.dimension, state.popsize), self.max_evaluations)
        self._run(objective, state, state.guess.copy())
        state.x_best = state.x
        state.best_loss = state.loss
        state.previous_best_loss = None
        self._report(state)

    def _iterate(self, objective: tp.Objective, state: SearchState) -> None:
        state.popsize *= 2
        if state.popsize >= state.max_popsize:
            state.popsize = state.min_popsize
        state.sigma = max(state.sigma / self.step_size_decay, 0.01 * self.initial_step_size)
        remaining = self.max_evaluations - state.num_evaluations
        state.budget = min(restart_budget(state.dimension, state.popsize), remaining)
        # perturbation scale is the initial step size, not the decayed one
        start = state.guess + self.initial_step_size * np.asarray(self.random_state.randn(state.dimension))
        self._run(objective, state, start)
        if state.loss < state.best_loss:
            state.previous_best_loss = state.best_loss
            state.x_best = state.x
            state.best_loss = state.loss
        self._report(state)

    def _run(self, objective: tp.Objective, state: SearchState, start: np.ndarray) -> None:
        """Runs the inner strategy once and evaluates the point it returns"""
        logger.debug(
            "%s restart %s: popsize=%s, sigma=%s, budget=%s",
            self.name,
            state.num_restarts,
            state.popsize,
            state.sigma,
            state.budget,
        )
        strategy = self.strategy(self.inner_tolerance, state.popsize, state.sigma, state.budget)
        x = np.array(strategy.optimize(objective, start), dtype=np.float64)
        if x.shape != state.guess.shape:
            raise errors.DimensionMismatchError(
                f"Strategy {strategy!r} returned a point of shape {x.shape} for a guess of shape {state.guess.shape}"
            )
        state.x = x
        state.loss = float(objective(x))
        state.num_evaluations += strategy.num_evaluations + 1
        state.num_restarts += 1
        self._num_evaluations = state.num_evaluations
        if not np.isfinite(state.loss):
            warnings.warn(f"Restart {state.num_restarts - 1} returned loss {state.loss}", errors.BadLossWarning)

    def _stagnates(self, state: SearchState) -> bool:
        """Compares the loss of the last restart to the best loss before the last improvement.
        The test is skipped when both are identical (or the latter undefined).
        """
        previous = state.previous_best_loss
        if previous is None or state.loss == previous:
            return False
        scale_tol = self.relative_eps * 0.5 * abs(state.loss + previous)
        return abs(state.loss - previous) <= self.tolerance + scale_tol

    def _report(self, state: SearchState) -> None:
        record = state.record()
        self.history.append(record)
        for callback in self._callbacks.get("restart", []):
            callback(self, record)

    def __repr__(self) -> str:
        return (
            f"Instance of {self.name}(max_evaluations={self.max_evaluations}, "
            f"initial_step_size={self.initial_step_size}, strategy={self.strategy!r})"
        )
