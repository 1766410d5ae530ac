# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Deterministic stand-ins for the inner strategy and the Gaussian source of restart optimizers.
They make the restart logic testable independently of any actual optimization algorithm.
"""

import itertools
import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools


class StrategyCall(tp.NamedTuple):
    """Settings of one strategy creation, and start point of its run"""

    tolerance: float
    popsize: int
    sigma: float
    max_evaluations: int
    start: tp.Optional[np.ndarray]


class SequenceGaussian:
    """Gaussian source cycling over a fixed sequence of deviates

    Parameters
    ----------
    deviates: sequence of float
        the values returned, in order, then repeated
    """

    def __init__(self, deviates: tp.Sequence[float] = (0.5, -1.0, 0.25, 2.0, -0.75)) -> None:
        assert deviates, "At least one deviate is required"
        self._deviates = itertools.cycle([float(d) for d in deviates])
        self.num_draws = 0

    def randn(self, *shape: int) -> np.ndarray:
        size = int(np.prod(shape)) if shape else 1
        self.num_draws += size
        values = np.array([next(self._deviates) for _ in range(size)])
        return values.reshape(shape) if shape else values[0]


class _FakeStrategy:
    def __init__(self, factory: "FakeStrategyFactory", index: int) -> None:
        self._factory = factory
        self._index = index
        self._num_evaluations = 0

    @property
    def num_evaluations(self) -> int:
        return self._num_evaluations

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:  # pylint: disable=unused-argument
        start = tools.as_vector(guess)
        call = self._factory.calls[self._index]
        self._factory.calls[self._index] = call._replace(start=start)
        self._num_evaluations = self._factory.evaluations(call.max_evaluations)
        points = self._factory.points
        if points is None:
            return start
        return np.array(points[min(self._index, len(points) - 1)], dtype=np.float64)


class FakeStrategyFactory:
    """Strategy factory recording the settings of the strategies it creates.
    The strategies do not evaluate the objective: they return either their start point or scripted points,
    and report a scripted number of evaluations.

    Parameters
    ----------
    points: optional sequence of array-like
        points returned by the successive runs (the last one is repeated), or None for returning the start point
    num_evaluations: int or None
        evaluations reported by each run, None for reporting the budget of the run
    overrun: int
        evaluations reported in excess of the above
    """

    def __init__(
        self,
        points: tp.Optional[tp.Sequence[tp.ArrayLike]] = None,
        num_evaluations: tp.Optional[int] = None,
        overrun: int = 0,
    ) -> None:
        self.points = points
        self.num_evaluations = num_evaluations
        self.overrun = overrun
        self.calls: tp.List[StrategyCall] = []

    def evaluations(self, max_evaluations: int) -> int:
        base = max_evaluations if self.num_evaluations is None else self.num_evaluations
        return base + self.overrun

    def __call__(self, tolerance: float, popsize: int, sigma: float, max_evaluations: int) -> _FakeStrategy:
        self.calls.append(StrategyCall(tolerance, popsize, sigma, max_evaluations, None))
        return _FakeStrategy(self, len(self.calls) - 1)

    @property
    def popsizes(self) -> tp.List[int]:
        return [c.popsize for c in self.calls]

    @property
    def sigmas(self) -> tp.List[float]:
        return [c.sigma for c in self.calls]

    @property
    def budgets(self) -> tp.List[int]:
        return [c.max_evaluations for c in self.calls]
