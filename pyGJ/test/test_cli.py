import argparse
import logging
from types import SimpleNamespace

import numpy as np
import pytest

from context import utilities as u
from context import GJ as gj
from context import cli
from context import config
from context import rowset
from threadcomm import run_workers, Shared


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    root.handlers = [h for h in root.handlers if not getattr(h, "_gj_handler", False)]
    root.setLevel(level)


def _args(**kw):
    base = dict(n=4, seed=None, max_number=1000, degenerate=False, root=0, print_limit=8, log_level=None)
    base.update(kw)
    return argparse.Namespace(**base)


def test_config_from_args_reads_env_level(monkeypatch):
    monkeypatch.setenv("GJ_LOG_LEVEL", "debug")
    assert config.GJConfig.from_args(_args()).log_level == logging.DEBUG
    assert config.GJConfig.from_args(_args(log_level="WARNING")).log_level == logging.WARNING
    monkeypatch.delenv("GJ_LOG_LEVEL")
    assert config.GJConfig.from_args(_args()).log_level == logging.INFO


def test_config_rejects_bad_values():
    with pytest.raises(ValueError):
        config.GJConfig(n=0).validate()
    with pytest.raises(ValueError):
        config.GJConfig(n=3, max_number=0).validate()


def test_parse_level():
    assert u.parse_level("10") == 10
    assert u.parse_level("nonsense") == logging.INFO
    assert u.parse_level(None, logging.ERROR) == logging.ERROR


def test_setup_logging_quiets_other_workers():
    assert u.setup_logging(0, "DEBUG").level == logging.DEBUG
    assert u.setup_logging(2, "DEBUG").level == logging.WARNING
    assert u.setup_logging(2, logging.INFO, quiet_nonroot=False).level == logging.INFO
    assert sum(getattr(h, "_gj_handler", False) for h in logging.getLogger().handlers) == 1


def test_run_returns_solution_on_root():
    x = cli.run(config.GJConfig(n=6, seed=4))
    if x is not None:
        A, b = gj.create_system(6, seed=4)
        assert u.allclose(x, gj.lu_reference(A, b))


def test_main_exit_status():
    assert cli.main(["5", "--seed", "1", "--log-level", "INFO"]) == 0
    assert cli.main(["5", "--seed", "1", "--degenerate"]) == 1


def test_main_rejects_bad_arguments():
    with pytest.raises(SystemExit):
        cli.main(["0"])


def test_setup_logging_follows_the_root():
    assert u.setup_logging(2, logging.INFO, root=2).level == logging.INFO
    assert u.setup_logging(0, logging.INFO, root=2).level == logging.WARNING


def test_main_with_another_root():
    results, errors = run_workers(3, lambda comm: cli.main(["4", "--seed", "3", "--root", "2"], comm))
    assert errors == [None] * 3
    assert results == [0] * 3


def test_error_on_the_root_aborts_every_worker(monkeypatch):
    def no_memory(*args, **kwargs):
        raise MemoryError()

    monkeypatch.setattr(gj, "create_system", no_memory)
    shared = Shared(3, 30)
    results, errors = run_workers(3, lambda comm: cli.main(["6"], comm), shared=shared)
    assert errors == [None] * 3
    assert results == [1] * 3
    assert (0, 1) in shared.aborted


def test_allocation_failure_on_one_worker_aborts(monkeypatch):
    # n = 4 on 3 workers: only the last one holds a block of 2 rows
    def empty(shape, dtype=None):
        if shape == (2, 4):
            raise MemoryError()
        return np.empty(shape, dtype=dtype)

    monkeypatch.setattr(rowset, "np", SimpleNamespace(empty=empty, full=np.full, float64=np.float64, int64=np.int64))
    shared = Shared(3, 30)
    results, errors = run_workers(3, lambda comm: cli.main(["4"], comm), shared=shared)
    assert errors == [None] * 3
    assert results == [1] * 3
    assert (2, 1) in shared.aborted
