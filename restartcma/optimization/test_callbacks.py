# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
from pathlib import Path
import numpy as np
import restartcma.common.typing as tp
from restartcma.functions import corefuncs
from . import callbacks
from . import restart
from . import fakes


def _optimizer(**kwargs: tp.Any) -> restart.IPOP:
    factory = fakes.FakeStrategyFactory(num_evaluations=10)
    return restart.IPOP(1e-8, 1e-10, 1.0, 33, strategy=factory, random_state=fakes.SequenceGaussian(), **kwargs)


def test_restart_printer() -> None:
    lines: tp.List[str] = []
    optimizer = _optimizer()
    optimizer.register_callback("restart", callbacks.RestartPrinter(lines.append))
    optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    assert len(lines) == 4
    assert lines[0] == "Run\tBudget\tMaxBudget\tPop\tSigma\tF\tBestF"
    assert lines[1] == "1\t11\t33\t6\t1.0\t0.0\t0.0"
    assert [line.split("\t")[0] for line in lines[1:]] == ["1", "2", "3"]
    assert lines[2].split("\t")[3] == "12"


def test_verbose(capsys: tp.Any) -> None:
    optimizer = _optimizer(verbose=True)
    optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("Run\tBudget")
    assert len(out) == 4
    optimizer.remove_all_callbacks()
    optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    assert not capsys.readouterr().out


def test_restart_logger(caplog: tp.Any) -> None:
    logger = logging.getLogger("restartcma_test")
    optimizer = _optimizer()
    optimizer.register_callback("restart", callbacks.RestartLogger(logger=logger, log_level=logging.WARNING))
    with caplog.at_level(logging.WARNING, logger="restartcma_test"):
        optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    messages = [r.getMessage() for r in caplog.records if r.name == "restartcma_test"]
    assert len(messages) == 3
    assert messages[0].startswith("IPOP restart 0: popsize=6, sigma=1.0, budget=33")


def test_restart_history_logger(tmp_path: Path) -> None:
    filepath = tmp_path / "logs" / "restarts.txt"
    history = callbacks.RestartHistoryLogger(filepath)
    optimizer = _optimizer()
    optimizer.register_callback("restart", history)
    optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    data = history.load()
    assert len(data) == 3
    assert data[0]["#optimizer"] == "IPOP"
    assert [d["restart"] for d in data] == [0, 1, 2]
    assert [d["popsize"] for d in data] == [6, 12, 24]
    np.testing.assert_almost_equal([d["best_loss"] for d in data], [r.best_loss for r in optimizer.history])
    # appending, then replacing
    optimizer.optimize(corefuncs.sphere, [0.0, 0.0])
    assert len(history.load()) == 6
    assert not callbacks.RestartHistoryLogger(filepath, append=False).load()


def test_history_logger_empty(tmp_path: Path) -> None:
    assert not callbacks.RestartHistoryLogger(tmp_path / "nothing.txt").load()
