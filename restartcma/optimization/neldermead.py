# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import warnings
import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools
from restartcma.common import errors
from . import base


class _Simplex:
    """Vertices of a simplex and their losses"""

    def __init__(self, func: base.EvaluationCounter, start: np.ndarray, steps: np.ndarray) -> None:
        dim = start.size
        self.points = np.tile(start, (dim + 1, 1))
        self.points[:dim] += np.diag(steps)
        self.losses = np.array([func(x) for x in self.points])

    @property
    def ilo(self) -> int:
        return int(np.argmin(self.losses))

    @property
    def ihi(self) -> int:
        return int(np.argmax(self.losses))

    def replace(self, index: int, point: np.ndarray, loss: float) -> None:
        self.points[index] = point
        self.losses[index] = loss


class NelderMead(base.GradientFreeOptimizer):
    """Nelder-Mead simplex search, with restarts whenever the simplex converges
    to a point which is not a local minimum along the coordinate axes.

    Parameters
    ----------
    tolerance: float
        convergence is reached when the sum of squared deviations of the vertex
        losses is below :code:`tolerance ** 2 * dimension`
    sigma: float
        length of the edges of the initial simplex along each axis
    max_evaluations: int
        maximum number of evaluations
    popsize: optional int
        unused, accepted for compatibility with the strategy contract
    check_every: int
        number of iterations between two convergence tests
    adaptive: bool
        whether to use dimension-dependent coefficients (Gao and Han, 2012)
        instead of the standard ones (contraction 0.5, expansion 2, shrinkage 0.5)

    Note
    ----
    Based on Algorithm AS 47 (O'Neill, 1971) as revised by R. Hill and A. Miller.
    When the budget is exhausted before convergence, the best vertex is returned,
    :code:`converged` is set to False and a :code:`BudgetExhaustedWarning` is emitted.
    """

    _FACTORIAL_STEP = 0.001

    def __init__(
        self,
        tolerance: float,
        sigma: float = 1.0,
        max_evaluations: int = 1000,
        popsize: tp.Optional[int] = None,  # pylint: disable=unused-argument
        check_every: int = 10,
        adaptive: bool = True,
    ) -> None:
        super().__init__(tolerance)
        if not sigma > 0:
            raise errors.ConfigurationError(f"sigma must be strictly positive (got {sigma})")
        if check_every < 1:
            raise errors.ConfigurationError(f"check_every must be at least 1 (got {check_every})")
        self.sigma = float(sigma)
        self.max_evaluations = int(max_evaluations)
        self.check_every = int(check_every)
        self.adaptive = adaptive
        self.converged = False

    def _coefficients(self, dim: int) -> tp.Tuple[float, float, float, float]:
        """reflection, expansion, contraction and shrinkage coefficients"""
        if self.adaptive:
            return 1.0, 1.0 + 2.0 / dim, 0.75 - 0.5 / dim, 1.0 - 1.0 / dim
        return 1.0, 2.0, 0.5, 0.5

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        start = tools.as_vector(guess)
        func = base.EvaluationCounter(objective)
        self.converged = False
        steps = np.full(start.size, self.sigma)
        scale = 1.0
        try:
            while True:
                simplex = _Simplex(func, start, scale * steps)
                if not self._run(func, simplex):
                    warnings.warn(
                        f"{self.name} exhausted its budget of {self.max_evaluations} evaluations before converging",
                        errors.BudgetExhaustedWarning,
                    )
                    return simplex.points[simplex.ilo].copy()
                xmin = simplex.points[simplex.ilo].copy()
                probe = self._factorial_test(func, xmin, simplex.losses[simplex.ilo], steps)
                if probe is None:
                    self.converged = True
                    return xmin
                # not a local minimum, restart from the improving probe with a small simplex
                start = probe
                scale = self._FACTORIAL_STEP
        finally:
            self._num_evaluations = func.num_calls

    def _run(self, func: base.EvaluationCounter, simplex: _Simplex) -> bool:
        """Iterates on the simplex until convergence (returns True) or budget exhaustion (returns False)"""
        dim = simplex.points.shape[1]
        rcoeff, ecoeff, ccoeff, scoeff = self._coefficients(dim)
        rq = self.tolerance ** 2 * dim
        countdown = self.check_every
        while func.num_calls < self.max_evaluations:
            ilo, ihi = simplex.ilo, simplex.ihi
            worst = simplex.points[ihi]
            centroid = (simplex.points.sum(axis=0) - worst) / dim
            # reflection through the centroid
            pstar = centroid + rcoeff * (centroid - worst)
            ystar = func(pstar)
            if ystar < simplex.losses[ilo]:
                # successful reflection, so try an expansion
                p2star = centroid + ecoeff * (pstar - centroid)
                y2star = func(p2star)
                if ystar < y2star:
                    simplex.replace(ihi, pstar, ystar)
                else:
                    simplex.replace(ihi, p2star, y2star)
            else:
                num_better = int(np.sum(ystar < simplex.losses))
                if num_better > 1:
                    simplex.replace(ihi, pstar, ystar)
                elif not num_better:
                    # contraction on the worst vertex side of the centroid
                    p2star = centroid + ccoeff * (worst - centroid)
                    y2star = func(p2star)
                    if simplex.losses[ihi] < y2star:
                        # shrink the whole simplex towards the best vertex
                        best = simplex.points[ilo].copy()
                        for j in range(dim + 1):
                            if j != ilo:
                                point = best + scoeff * (simplex.points[j] - best)
                                simplex.replace(j, point, func(point))
                        continue
                    simplex.replace(ihi, p2star, y2star)
                else:
                    # contraction on the reflection side of the centroid
                    p2star = centroid + ccoeff * (pstar - centroid)
                    y2star = func(p2star)
                    if y2star <= ystar:
                        simplex.replace(ihi, p2star, y2star)
                    else:
                        simplex.replace(ihi, pstar, ystar)
            countdown -= 1
            if countdown > 0:
                continue
            countdown = self.check_every
            losses = simplex.losses
            if np.sum((losses - np.mean(losses)) ** 2) <= rq:
                return True
        return False

    def _factorial_test(
        self, func: base.EvaluationCounter, xmin: np.ndarray, ymin: float, steps: np.ndarray
    ) -> tp.Optional[np.ndarray]:
        """Probes both sides of xmin along each axis, and returns the first improving probe if any"""
        for i, step in enumerate(steps):
            for sign in (1.0, -1.0):
                probe = xmin.copy()
                probe[i] += sign * self._FACTORIAL_STEP * step
                if func(probe) < ymin:
                    return probe
        return None


class NelderMeadStrategy(base.ConfiguredStrategy):
    """Nelder-Mead simplex search as an inner strategy of restart optimizers.
    The step size is used as the size of the initial simplex, and the population size is ignored.

    Parameters
    ----------
    check_every: int
        number of iterations between two convergence tests
    adaptive: bool
        whether to use dimension-dependent coefficients
    """

    # pylint: disable=unused-argument
    def __init__(self, *, check_every: int = 10, adaptive: bool = True) -> None:
        super().__init__(NelderMead, locals())


NelderMeadStrategy().set_name("NelderMead", register=True)
