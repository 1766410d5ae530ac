# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Derivative-free minimization of functions of one real variable on an interval.
"""

import math
import bisect
import restartcma.common.typing as tp
from restartcma.common import errors


class UnivariateOptimizer:
    """Base class for interval searches.

    Parameters
    ----------
    tolerance: float
        absolute tolerance on the location of the minimum
    relative_tolerance: float
        tolerance relative to the magnitude of the location of the minimum
    max_evaluations: int
        maximum number of function evaluations
    """

    def __init__(self, tolerance: float, relative_tolerance: float = 0.0, max_evaluations: int = 1000) -> None:
        if not tolerance > 0:
            raise errors.ConfigurationError(f"tolerance must be strictly positive (got {tolerance})")
        if relative_tolerance < 0:
            raise errors.ConfigurationError(f"relative_tolerance must be non-negative (got {relative_tolerance})")
        if max_evaluations < 1:
            raise errors.ConfigurationError(f"max_evaluations must be at least 1 (got {max_evaluations})")
        self.tolerance = float(tolerance)
        self.relative_tolerance = float(relative_tolerance)
        self.max_evaluations = int(max_evaluations)
        self._num_evaluations = 0

    @property
    def num_evaluations(self) -> int:
        """int: number of function evaluations performed during the last optimization"""
        return self._num_evaluations

    def optimize(self, func: tp.UnivariateObjective, a: float, b: float) -> float:
        """Returns an approximate minimizer of func on [a, b],
        or NaN if the budget was exhausted before convergence.
        """
        raise NotImplementedError


class FibonacciSearch(UnivariateOptimizer):
    """Fibonacci section search for unimodal functions.
    The number of steps is the smallest n such that 1 / F(n) is below tolerance / (b - a),
    so that the final bracket is of the order of the tolerance.
    """

    def optimize(self, func: tp.UnivariateObjective, a: float, b: float) -> float:
        self._num_evaluations = 0
        # smallest n such that 1 / F(n) < tolerance / (b - a)
        adjusted_tol = self.tolerance / abs(b - a) if b != a else float("inf")
        fib1, fib2 = 1.0, 1.0
        n = 2
        while 1.0 / fib2 >= adjusted_tol:
            fib1, fib2 = fib2, fib1 + fib2
            n += 1
        sqrt5 = math.sqrt(5.0)
        golden = (sqrt5 - 1.0) / 2.0
        ratio = (1.0 - sqrt5) / (1.0 + sqrt5)

        def section(steps: int) -> float:
            p1 = ratio ** steps
            return golden * (1.0 - p1) / (1.0 - p1 * ratio)

        # x1 and x4 bound the bracket (in any order), x3 is the interior point closest to x4
        alpha = section(n)
        x1, x4 = float(a), float(b)
        x3 = alpha * x4 + (1.0 - alpha) * x1
        f3 = self._evaluate(func, x3)
        for i in range(1, n):
            if i == n - 1:
                x2 = 0.01 * x1 + 0.99 * x3
            else:
                x2 = alpha * x1 + (1.0 - alpha) * x4
            f2 = self._evaluate(func, x2)
            if f2 < f3:
                x4, x3, f3 = x3, x2, f2
            else:
                x1, x4 = x4, x2
            alpha = section(n - i)
            mid = 0.5 * (x1 + x4)
            if abs(x4 - x1) <= self.relative_tolerance * abs(mid) + self.tolerance:
                break
            if self._num_evaluations >= self.max_evaluations:
                return float("nan")
        return 0.5 * (x1 + x4)

    def _evaluate(self, func: tp.UnivariateObjective, x: float) -> float:
        self._num_evaluations += 1
        return float(func(x))


class CalvinSearch(UnivariateOptimizer):
    """Adaptive global search on an interval, with convergence rate guarantees under the Wiener measure.
    The interval is rescaled to [0, 1] and the sub-interval to split is the one maximizing
    (t_i - t_{i-1}) / ((f_{i-1} - min + g(tau)) * (f_i - min + g(tau))) with g(tau) = sqrt(-lambda * tau * log(tau))
    and tau the smallest gap. The search stops when tau falls below the tolerance (expressed
    in the rescaled [0, 1] domain).

    Reference
    ---------
    Calvin, James. "An adaptive univariate global optimization algorithm and its convergence rate
    under the Wiener measure." Informatica 22.4 (2011): 471-488.
    """

    def __init__(self, tolerance: float, max_evaluations: int = 1000, lambda_: float = 16.0) -> None:
        super().__init__(tolerance, relative_tolerance=0.0, max_evaluations=max_evaluations)
        if not lambda_ > 0:
            raise errors.ConfigurationError(f"lambda_ must be strictly positive (got {lambda_})")
        self.lambda_ = float(lambda_)

    def optimize(self, func: tp.UnivariateObjective, a: float, b: float) -> float:
        self._num_evaluations = 0

        def rescaled(t: float) -> float:
            self._num_evaluations += 1
            return float(func(a + t * (b - a)))

        t = [0.0, 0.5, 1.0]
        f = [rescaled(x) for x in t]
        tau = 0.5
        gtau = self._gap_function(tau)
        fmin = min(f)
        while self._num_evaluations < self.max_evaluations:
            # find out which interval to split
            rhos = [(t[i] - t[i - 1]) / ((f[i - 1] - fmin + gtau) * (f[i] - fmin + gtau)) for i in range(1, len(t))]
            imax = 1 + max(range(len(rhos)), key=rhos.__getitem__)
            left, right = t[imax - 1], t[imax]
            tmid = 0.5 * (left + right)
            fmid = rescaled(tmid)
            index = bisect.bisect_left(t, tmid)
            t.insert(index, tmid)
            f.insert(index, fmid)
            tau = min(tau, tmid - left, right - tmid)
            gtau = self._gap_function(tau)
            fmin = min(fmin, fmid)
            if tau <= self.tolerance:
                best = min(range(len(f)), key=f.__getitem__)
                return a + t[best] * (b - a)
        return float("nan")

    def _gap_function(self, tau: float) -> float:
        return math.sqrt(-self.lambda_ * tau * math.log(tau))
