# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class RestartCMAError(Exception):
    """Base class for error raised by restartcma"""


class RestartCMAWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class RestartCMARuntimeError(RuntimeError, RestartCMAError):
    """Runtime error raised by restartcma"""


class RestartCMAValueError(ValueError, RestartCMAError):
    """Value error raised by restartcma"""


class ConfigurationError(RestartCMAValueError):
    """Invalid optimizer or strategy setting, raised at construction time"""


class DimensionMismatchError(RestartCMARuntimeError):
    """An inner strategy returned a point whose dimension differs from the guess"""


# warnings


class RestartCMARuntimeWarning(RuntimeWarning, RestartCMAWarning):
    """Runtime warning raised by restartcma"""


class InefficientSettingsWarning(RestartCMARuntimeWarning):
    """Optimization settings are not optimal for the optimizer"""


class BadLossWarning(RestartCMARuntimeWarning):
    """Provided loss is unhelpful (NaN or infinite)"""


class BudgetExhaustedWarning(RestartCMARuntimeWarning):
    """An optimizer ran out of evaluations before converging"""
