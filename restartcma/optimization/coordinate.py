# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools
from restartcma.common import errors
from . import base
from .univariate import FibonacciSearch


class CoordinateDescent(base.GradientFreeOptimizer):
    """Cyclic coordinate search: each sweep runs a Fibonacci line search on
    [x_i - step, x_i + step] for every coordinate i, and keeps the move if it improves.
    The step is multiplied by :code:`shrink` after any sweep improving the loss by less than the tolerance,
    and the search stops once the step is below the tolerance or the budget is spent.

    Parameters
    ----------
    tolerance: float
        tolerance on the loss improvement of a sweep, and on the line searches
    sigma: float
        initial step
    max_evaluations: int
        maximum number of evaluations
    popsize: optional int
        unused, accepted for compatibility with the strategy contract
    shrink: float
        factor applied to the step after unsuccessful sweeps, in (0, 1)
    """

    def __init__(
        self,
        tolerance: float,
        sigma: float = 1.0,
        max_evaluations: int = 1000,
        popsize: tp.Optional[int] = None,  # pylint: disable=unused-argument
        shrink: float = 0.5,
    ) -> None:
        super().__init__(tolerance)
        if not sigma > 0:
            raise errors.ConfigurationError(f"sigma must be strictly positive (got {sigma})")
        if not 0 < shrink < 1:
            raise errors.ConfigurationError(f"shrink must be in (0, 1) (got {shrink})")
        self.sigma = float(sigma)
        self.max_evaluations = int(max_evaluations)
        self.shrink = shrink

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        x = tools.as_vector(guess)
        func = base.EvaluationCounter(objective)
        loss = func(x)
        step = self.sigma
        exhausted = False
        while step >= self.tolerance and not exhausted:
            sweep_start = loss
            for i in range(x.size):
                # keep one evaluation to check the line search output
                remaining = self.max_evaluations - func.num_calls - 1
                if remaining < 1:
                    exhausted = True
                    break
                line_search = FibonacciSearch(self.tolerance, max_evaluations=remaining)
                t = line_search.optimize(lambda t, i=i: func(self._moved(x, i, t)), x[i] - step, x[i] + step)
                if np.isnan(t):
                    exhausted = True
                    break
                candidate = self._moved(x, i, t)
                candidate_loss = func(candidate)
                if candidate_loss < loss:
                    x, loss = candidate, candidate_loss
            if sweep_start - loss < self.tolerance:
                step *= self.shrink
        self._num_evaluations = func.num_calls
        return x

    @staticmethod
    def _moved(x: np.ndarray, index: int, value: float) -> np.ndarray:
        y = x.copy()
        y[index] = value
        return y


class CoordinateDescentStrategy(base.ConfiguredStrategy):
    """Coordinate descent as an inner strategy of restart optimizers.
    The step size is used as initial line search radius, and the population size is ignored.

    Parameters
    ----------
    shrink: float
        factor applied to the step after unsuccessful sweeps
    """

    # pylint: disable=unused-argument
    def __init__(self, *, shrink: float = 0.5) -> None:
        super().__init__(CoordinateDescent, locals())


CoordinateDescentStrategy().set_name("CoordinateDescent", register=True)
