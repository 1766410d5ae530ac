# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Callbacks to register on restart optimizers with
:code:`optimizer.register_callback("restart", callback)`.
They are called after each restart with the optimizer and a :code:`RestartRecord`.
"""

import json
import logging
import datetime
import warnings
from pathlib import Path
import restartcma.common.typing as tp
from . import base

global_logger = logging.getLogger(__name__)

_COLUMNS = ("Run", "Budget", "MaxBudget", "Pop", "Sigma", "F", "BestF")

# -------------------------------------------------------------------------------------


def _row(record: base.RestartRecord) -> tp.Tuple[tp.Any, ...]:
    return (
        record.restart + 1,
        record.num_evaluations,
        record.budget,
        record.popsize,
        record.sigma,
        record.loss,
        record.best_loss,
    )


class RestartPrinter:
    """Printer to register as callback in a restart optimizer, for printing
    one tab-separated line per restart (after a header line at the first restart).

    Parameters
    ----------
    print_fn: callable
        function used for printing lines (defaults to print)
    """

    def __init__(self, print_fn: tp.Callable[[str], tp.Any] = print) -> None:
        self._print = print_fn

    def __call__(self, optimizer: base.GradientFreeOptimizer, record: base.RestartRecord) -> None:
        if not record.restart:
            self._print("\t".join(_COLUMNS))
        self._print("\t".join(str(x) for x in _row(record)))


# -------------------------------------------------------------------------------------


class RestartLogger:
    """Logger to register as callback in a restart optimizer, for logging
    the outcome of each restart.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    """

    def __init__(self, *, logger: logging.Logger = global_logger, log_level: int = logging.INFO) -> None:
        self._logger = logger
        self._log_level = log_level

    def __call__(self, optimizer: base.GradientFreeOptimizer, record: base.RestartRecord) -> None:
        self._logger.log(
            self._log_level,
            "%s restart %s: popsize=%s, sigma=%s, budget=%s, loss=%s, best loss=%s after %s evaluations",
            optimizer.name,
            record.restart,
            record.popsize,
            record.sigma,
            record.budget,
            record.loss,
            record.best_loss,
            record.num_evaluations,
        )


# -------------------------------------------------------------------------------------


class RestartHistoryLogger:
    """Logs restart information into a file during optimization,
    one json dict per line.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to
    append: bool
        whether to append the file (otherwise it replaces it)

    Example
    -------

    .. code-block:: python

        logger = RestartHistoryLogger(filepath)
        optimizer.register_callback("restart", logger)
        optimizer.optimize(func, guess)
        list_of_dict_of_data = logger.load()
    """

    def __init__(self, filepath: tp.PathLike, append: bool = True) -> None:
        self._session = datetime.datetime.now().strftime("%y-%m-%d %H:%M:%S")
        self._filepath = Path(filepath)
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    def __call__(self, optimizer: base.GradientFreeOptimizer, record: base.RestartRecord) -> None:
        data: tp.Dict[str, tp.Any] = {"#optimizer": optimizer.name, "#session": self._session}
        data.update({name: float(val) if isinstance(val, float) else val for name, val in record._asdict().items()})
        try:  # avoid bugging as much as possible
            with self._filepath.open("a") as f:
                f.write(json.dumps(data) + "\n")
        except Exception as e:  # pylint: disable=broad-except
            warnings.warn(f"Failing to json data: {e}")

    def load(self) -> tp.List[tp.Dict[str, tp.Any]]:
        """Loads data from the log file"""
        data: tp.List[tp.Dict[str, tp.Any]] = []
        if self._filepath.exists():
            with self._filepath.open("r") as f:
                for line in f.readlines():
                    data.append(json.loads(line))
        return data
