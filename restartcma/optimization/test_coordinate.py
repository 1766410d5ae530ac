# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from restartcma.common import errors
from restartcma.common import testing
from restartcma.functions import corefuncs
from . import coordinate


def test_coordinate_descent() -> None:
    optimizer = coordinate.CoordinateDescent(1e-8, sigma=1.0, max_evaluations=10000)
    func = testing.CountingFunction(corefuncs.sphere)
    output = optimizer.optimize(func, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(output, np.zeros(3), atol=1e-5)
    assert optimizer.num_evaluations == func.count
    assert optimizer.num_evaluations <= 10000


def test_coordinate_descent_shifted() -> None:
    func = corefuncs.ShiftedFunction("ellipsoid", [0.5, -0.25])
    optimizer = coordinate.CoordinateDescent(1e-8, sigma=0.5, max_evaluations=5000)
    output = optimizer.optimize(func, [0.0, 0.0])
    np.testing.assert_allclose(output, [0.5, -0.25], atol=1e-5)


@testing.parametrized(
    tiny=(3,),
    small=(50,),
    medium=(100,),
)
def test_coordinate_descent_budget(budget: int) -> None:
    optimizer = coordinate.CoordinateDescent(1e-8, max_evaluations=budget)
    guess = np.array([1.0, -2.0])
    output = optimizer.optimize(corefuncs.sphere, guess)
    assert optimizer.num_evaluations <= budget
    assert corefuncs.sphere(output) <= corefuncs.sphere(guess)


def test_strategy() -> None:
    strategy = coordinate.CoordinateDescentStrategy(shrink=0.1)(1e-6, 20, 0.25, 100)
    assert isinstance(strategy, coordinate.CoordinateDescent)
    assert strategy.shrink == 0.1
    assert strategy.sigma == 0.25
    assert strategy.max_evaluations == 100


@testing.parametrized(
    zero=(0.0,),
    one=(1.0,),
)
def test_shrink_error(shrink: float) -> None:
    with pytest.raises(errors.ConfigurationError):
        coordinate.CoordinateDescent(1e-8, shrink=shrink)


def test_coordinate_descent_single_evaluation_line_search() -> None:
    # the first line search gets a budget of 1: it runs out (2 evaluations) and returns NaN,
    # so the reserved evaluation checking its output is never used
    func = testing.CountingFunction(corefuncs.sphere)
    optimizer = coordinate.CoordinateDescent(1e-8, max_evaluations=3)
    output = optimizer.optimize(func, [1.0, -2.0])
    assert optimizer.num_evaluations == func.count == 3
    np.testing.assert_array_equal(output, [1.0, -2.0])
