# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools
from restartcma.common import errors
from . import base


logger = logging.getLogger(__name__)


class _CMA(base.GradientFreeOptimizer):
    """One run of CMA-ES with a fixed population size, until one of the
    stopping criteria of the wrapped implementation is met (including the evaluation budget).
    """

    def __init__(
        self,
        tolerance: float,
        popsize: int,
        sigma: float,
        max_evaluations: int,
        config: tp.Optional["ParametrizedCMA"] = None,
    ) -> None:
        super().__init__(tolerance)
        if popsize < 2:
            raise errors.ConfigurationError(f"popsize must be at least 2 (got {popsize})")
        if not sigma > 0:
            raise errors.ConfigurationError(f"sigma must be strictly positive (got {sigma})")
        self.popsize = int(popsize)
        self.sigma = float(sigma)
        self.max_evaluations = int(max_evaluations)
        self._config = ParametrizedCMA() if config is None else config
        self.stop_conditions: tp.Dict[str, tp.Any] = {}

    @property
    def _rng(self) -> np.random.RandomState:
        """np.random.RandomState: random state of the configuration, shared by all its runs"""
        return self._config.random_state

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        import cma  # import inline in order to avoid matplotlib initialization warning

        x0 = tools.as_vector(guess)
        func = base.EvaluationCounter(objective)
        inopts = dict(
            popsize=self.popsize,
            maxfevals=self.max_evaluations,
            tolfun=self.tolerance,
            randn=self._rng.randn,
            CMA_active=self._config.active,
            CMA_diagonal=self._config.diagonal,
            CMA_elitist=self._config.elitist,
            verbose=-9,
            seed=np.nan,
        )
        inopts.update(self._config.inopts if self._config.inopts is not None else {})
        es = cma.CMAEvolutionStrategy(x0, self.sigma, inopts=inopts)
        try:
            while not es.stop():
                candidates = es.ask()
                es.tell(candidates, [func(x) for x in candidates])
        finally:
            self._num_evaluations = func.num_calls
        self.stop_conditions = dict(es.stop())
        logger.debug("%s stopped after %s evaluations: %s", self.name, func.num_calls, self.stop_conditions)
        xbest: tp.Optional[np.ndarray] = es.result.xbest
        return x0 if xbest is None else np.array(xbest, dtype=np.float64)


class ParametrizedCMA(base.ConfiguredStrategy):
    """CMA-ES inner strategy,
    This evolution strategy uses Gaussian sampling, iteratively modified
    for searching in the best directions.
    This strategy wraps an external implementation: https://github.com/CMA-ES/pycma

    Parameters
    ----------
    active: bool
        whether to use active covariance matrix adaptation (negative updates from the worst samples)
    diagonal: bool
        use the diagonal (separable) version of CMA (advised in big dimension)
    elitist: bool
        whether we switch to elitist mode, i.e. mode + instead of comma,
        i.e. mode in which we always keep the best point in the population.
    seed: optional int
        seed of the random state shared by all the runs created by this instance
    inopts: optional dict
        use this to override any inopts parameter of the wrapped CMA optimizer
        (see https://github.com/CMA-ES/pycma)
    """

    # pylint: disable=unused-argument
    def __init__(
        self,
        *,
        active: bool = True,
        diagonal: bool = False,
        elitist: bool = False,
        seed: tp.Optional[int] = None,
        inopts: tp.Optional[tp.Dict[str, tp.Any]] = None,
    ) -> None:
        super().__init__(_CMA, locals(), as_config=True)
        self.active = active
        self.diagonal = diagonal
        self.elitist = elitist
        self.seed = seed
        self.inopts = inopts
        self.random_state = np.random.RandomState(seed)


ParametrizedCMA().set_name("aCMA", register=True)
ParametrizedCMA(active=False).set_name("CMA", register=True)
ParametrizedCMA(diagonal=True).set_name("DiagonalCMA", register=True)
