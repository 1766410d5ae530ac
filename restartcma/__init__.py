# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .optimization import optimizerlib as optimizers
from .optimization import callbacks as callbacks
from .optimization.restart import IPOP as IPOP
from .optimization.univariate import FibonacciSearch as FibonacciSearch
from .optimization.univariate import CalvinSearch as CalvinSearch


__all__ = ["optimizers", "callbacks", "errors", "typing", "IPOP", "FibonacciSearch", "CalvinSearch"]


__version__ = "0.1.0"
