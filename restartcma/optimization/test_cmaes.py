# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from restartcma.common import errors
from restartcma.common import testing
from restartcma.functions import corefuncs
from . import base
from . import cmaes


@testing.parametrized(
    active=("aCMA",),
    standard=("CMA",),
    diagonal=("DiagonalCMA",),
)
def test_registered_cma(name: str) -> None:
    strategy = base.strategies[name](1e-11, 6, 0.5, 3000)
    assert strategy.name == name
    func = testing.CountingFunction(corefuncs.sphere)
    output = strategy.optimize(func, [1.0, 1.0])
    assert corefuncs.sphere(output) < 1e-8
    assert strategy.num_evaluations == func.count
    assert strategy.stop_conditions


def test_cma_determinism() -> None:
    outputs = []
    evaluations = []
    for _ in range(2):
        strategy = cmaes.ParametrizedCMA(seed=3)(1e-9, 8, 1.0, 1000)
        outputs.append(strategy.optimize(corefuncs.rosenbrock, [0.0, 0.0, 0.0]))
        evaluations.append(strategy.num_evaluations)
    np.testing.assert_array_equal(outputs[0], outputs[1])
    assert evaluations[0] == evaluations[1]


@testing.parametrized(
    small=(25, 10),
    exact=(30, 10),
    large_population=(30, 24),
)
def test_cma_budget(budget: int, popsize: int) -> None:
    strategy = cmaes.ParametrizedCMA(seed=12)(1e-30, popsize, 1.0, budget)
    strategy.optimize(corefuncs.rosenbrock, [0.0, 0.0])
    # the budget is a soft bound, runs complete their last generation
    assert budget <= strategy.num_evaluations <= budget + popsize
    assert "maxfevals" in strategy.stop_conditions


def test_cma_inopts() -> None:
    factory = cmaes.ParametrizedCMA(seed=12, inopts={"maxiter": 2})
    assert repr(factory) == "ParametrizedCMA(inopts={'maxiter': 2}, seed=12)"
    strategy = factory(1e-11, 7, 1.0, 1000)
    strategy.optimize(corefuncs.sphere, [1.0, 2.0])
    assert strategy.num_evaluations == 14


def test_cma_shared_random_state() -> None:
    factory = cmaes.ParametrizedCMA(seed=5)
    first = factory(1e-8, 6, 1.0, 60).optimize(corefuncs.sphere, [1.0, 1.0])
    second = factory(1e-8, 6, 1.0, 60).optimize(corefuncs.sphere, [1.0, 1.0])
    # runs of a same configuration draw from its random state in turn
    assert np.any(first != second)


@testing.parametrized(
    popsize=(1, 1.0),
    sigma=(4, 0.0),
)
def test_cma_configuration_errors(popsize: int, sigma: float) -> None:
    with pytest.raises(errors.ConfigurationError):
        cmaes.ParametrizedCMA()(1e-8, popsize, sigma, 100)
