# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import restartcma.common.typing as tp
from restartcma.common import errors
from . import base
from .base import registry as registry
from .base import strategies as strategies
from . import restart
from .restart import IPOP as IPOP

# register the inner strategies
from .cmaes import ParametrizedCMA as ParametrizedCMA
from .neldermead import NelderMeadStrategy as NelderMeadStrategy
from .coordinate import CoordinateDescentStrategy as CoordinateDescentStrategy


class ParametrizedIPOP(base._Configured):
    """Restart optimizer with increasing population size, with configurable inner strategy
    and population control.

    Parameters
    ----------
    strategy: str or StrategyFactory
        inner strategy, or name of a registered one (see :code:`strategies`)
    population_limit: int, "adaptive" or None
        population size triggering a reset to the minimal population size.
        "adaptive" uses 10 * D * D, None never resets.
    step_size_decay: float
        divisor of the step size at each restart
    """

    # pylint: disable=unused-argument
    def __init__(
        self,
        *,
        strategy: tp.Union[str, base.StrategyFactory] = "aCMA",
        population_limit: tp.Optional[tp.Union[int, str]] = restart.ADAPTIVE,
        step_size_decay: float = 1.6,
    ) -> None:
        super().__init__(locals())
        if isinstance(strategy, str) and strategy not in strategies:
            raise errors.ConfigurationError(f'Unknown strategy "{strategy}" (available: {sorted(strategies)})')
        self.strategy = strategy
        self.population_limit = population_limit
        self.step_size_decay = step_size_decay

    def __call__(
        self,
        max_evaluations: int,
        initial_step_size: float = 1.0,
        tolerance: float = 1e-12,
        inner_tolerance: float = 1e-12,
        *,
        random_state: tp.Optional[tp.Union[int, tp.GaussianSource]] = None,
        verbose: bool = False,
    ) -> IPOP:
        """Creates a restart optimizer

        Parameters
        ----------
        max_evaluations: int
            maximum number of evaluations overall
        initial_step_size: float
            initial step size, also the scale of the start point perturbations
        tolerance: float
            absolute tolerance of the stagnation test across restarts
        inner_tolerance: float
            tolerance forwarded to each inner strategy
        random_state: int or Gaussian source
            source of the Gaussian perturbations of the start points
        verbose: bool
            whether to print one line per restart
        """
        strategy = strategies[self.strategy] if isinstance(self.strategy, str) else self.strategy
        optimizer = IPOP(
            tolerance,
            inner_tolerance,
            initial_step_size,
            max_evaluations,
            population_limit=self.population_limit,
            step_size_decay=self.step_size_decay,
            strategy=strategy,
            random_state=random_state,
            verbose=verbose,
        )
        optimizer.name = self.name
        return optimizer


NIPOPaCMA = ParametrizedIPOP(population_limit=None).set_name("NIPOPaCMA", register=True)
IPOPaCMA = ParametrizedIPOP().set_name("IPOPaCMA", register=True)
IPOPCMA = ParametrizedIPOP(strategy="CMA").set_name("IPOPCMA", register=True)
IPOPNelderMead = ParametrizedIPOP(strategy="NelderMead").set_name("IPOPNelderMead", register=True)
IPOPCoordinateDescent = ParametrizedIPOP(strategy="CoordinateDescent").set_name(
    "IPOPCoordinateDescent", register=True
)
