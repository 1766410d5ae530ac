# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .base import GradientFreeOptimizer  # abstract class, for type checking
from .restart import IPOP
from . import optimizerlib
from .optimizerlib import registry
from .optimizerlib import strategies
