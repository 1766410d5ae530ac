# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import restartcma.common.typing as tp
from restartcma.common import tools
from restartcma.common import errors
from restartcma.common.decorators import Registry


class Strategy(tp.Protocol):
    """Contract of an inner strategy run: one bounded optimization from a start point.
    The evaluation budget is a soft bound, the true count is reported through
    :code:`num_evaluations`.
    """

    # pylint: disable=pointless-statement, unused-argument

    @property
    def num_evaluations(self) -> int:
        ...

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        ...


class StrategyFactory(tp.Protocol):
    """Creates a strategy from (tolerance, popsize, sigma, max_evaluations)"""

    # pylint: disable=pointless-statement, unused-argument

    def __call__(self, tolerance: float, popsize: int, sigma: float, max_evaluations: int) -> Strategy:
        ...


# configured strategy factories, usable as inner strategies of restart optimizers
strategies: Registry[StrategyFactory] = Registry()
# configured restart optimizers
registry: Registry[tp.Any] = Registry()


class RestartRecord(tp.NamedTuple):
    """Summary of one restart, as provided to restart callbacks"""

    restart: int
    num_evaluations: int
    budget: int
    popsize: int
    sigma: float
    loss: float
    best_loss: float


class EvaluationCounter:
    """Wraps an objective function and counts its calls.
    Values are converted to float.
    """

    def __init__(self, objective: tp.Objective) -> None:
        self._objective = objective
        self.num_calls = 0

    def __call__(self, x: np.ndarray) -> float:
        self.num_calls += 1
        return float(self._objective(x))


class GradientFreeOptimizer:
    """Base class for optimizers of functions of a real vector which do not use
    derivatives. Subclasses implement :code:`optimize(objective, guess)` which returns
    the point found, and keep :code:`_num_evaluations` up to date.

    Any such optimizer with a :code:`(tolerance, popsize, sigma, max_evaluations)`
    constructor can be used as an inner strategy of a restart optimizer.

    Parameters
    ----------
    tolerance: float
        absolute tolerance used by the stopping criterion of the optimizer
    """

    def __init__(self, tolerance: float) -> None:
        if not tolerance > 0:
            raise errors.ConfigurationError(f"tolerance must be strictly positive (got {tolerance})")
        self.tolerance = float(tolerance)
        self.name = self.__class__.__name__  # printed name in repr
        self._num_evaluations = 0

    @property
    def num_evaluations(self) -> int:
        """int: number of objective evaluations performed during the last optimization"""
        return self._num_evaluations

    def optimize(self, objective: tp.Objective, guess: tp.ArrayLike) -> np.ndarray:
        """Minimizes the objective starting from the guess

        Parameters
        ----------
        objective: callable
            function of a 1-dimensional np.ndarray returning a float
        guess: array-like
            starting point of the search, its length defines the dimension

        Returns
        -------
        np.ndarray
            the point found
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"Instance of {self.name}(tolerance={self.tolerance})"


class _Configured:
    """Common behavior of objects creating optimizers from a configuration:
    a default repr showing the non-default settings, naming and registration.
    """

    _registry: Registry[tp.Any] = registry

    def __init__(self, config: tp.Dict[str, tp.Any]) -> None:
        config.pop("self", None)  # self comes from "locals()"
        config.pop("__class__", None)  # self comes from "locals()"
        self._config = config  # keep all, to avoid weird behavior at mismatch between optim and configoptim
        diff = tools.different_from_defaults(instance=self, instance_dict=config, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        self.name = f"{self.__class__.__name__}({params})"

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> tp.Any:
        """Set a new representation for the instance, and optionally register it under this name"""
        self.name = name
        if register:
            self._registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            if self._config == other._config:
                return True
        return False


class ConfiguredStrategy(_Configured):
    """Creates inner strategies with configuration, following the
    :code:`factory(tolerance, popsize, sigma, max_evaluations)` contract.

    Parameters
    ----------
    StrategyClass: type
        class of the optimizer to configure
    config: dict
        dictionnary of all the configurations
    as_config: bool
        whether to provide all config as kwargs to the strategy instantiation (default),
        or through a config kwarg referencing self (if True, see ParametrizedCMA for an example)

    Note
    ----
    This provides a default repr which can be bypassed through set_name
    """

    _registry = strategies

    def __init__(
        self, StrategyClass: tp.Type[GradientFreeOptimizer], config: tp.Dict[str, tp.Any], as_config: bool = False
    ) -> None:
        self._StrategyClass = StrategyClass
        self._as_config = as_config
        super().__init__(config)
        if not as_config:
            # try instantiating for init checks
            # if as_config: check can be done before setting attributes
            self(tolerance=1e-8, popsize=4, sigma=1.0, max_evaluations=100)

    def __call__(self, tolerance: float, popsize: int, sigma: float, max_evaluations: int) -> GradientFreeOptimizer:
        """Creates a strategy

        Parameters
        ----------
        tolerance: float
            tolerance of the stopping criterion of the strategy
        popsize: int
            population size (number of samples per iteration), ignored by non-population strategies
        sigma: float
            initial step size of the search
        max_evaluations: int
            evaluation budget of the run (soft bound)
        """
        config = dict(config=self) if self._as_config else self._config
        run = self._StrategyClass(  # type: ignore
            tolerance=tolerance, popsize=popsize, sigma=sigma, max_evaluations=max_evaluations, **config
        )
        run.name = self.name
        return run
