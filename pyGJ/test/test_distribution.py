'''
Row partitioning, scatter and gather of the augmented system.
The MPI.COMM_WORLD tests can also be launched on several workers:
mpirun -np 4 python3 -m pytest pyGJ/test/test_distribution.py
'''

from types import SimpleNamespace

import numpy as np
import pytest
from mpi4py import MPI

from context import distribution as dist
from context import GJ as gj
from context import worker
from threadcomm import run_workers


@pytest.mark.parametrize("P", range(1, 9))
def test_block_sizes_are_balanced(P):
    for n in range(1, 60):
        sizes = dist.block_sizes(n, P)
        assert len(sizes) == P
        assert sum(sizes) == n
        assert max(sizes) - min(sizes) <= 1


def test_block_sizes_put_smaller_blocks_first():
    assert dist.block_sizes(10, 4) == [2, 2, 3, 3]
    assert dist.block_sizes(3, 5) == [0, 0, 1, 1, 1]
    assert dist.block_sizes(7, 1) == [7]


def test_counts_displs():
    counts, displs = dist.counts_displs(10, 4, 10)
    assert counts == [20, 20, 30, 30]
    assert displs == [0, 20, 40, 70]
    counts, displs = dist.counts_displs(10, 4)
    assert counts == [2, 2, 3, 3]
    assert displs == [0, 2, 4, 7]


def _round_trip(comm, n, A, b):
    ctx = worker.WorkerContext.create(comm, n)
    rs = dist.distribute(ctx, A if ctx.is_root else None, b if ctx.is_root else None)
    assert len(rs) == dist.block_sizes(n, ctx.size)[ctx.rank]
    assert not rs.assigned().any()
    return dist.gather(ctx, rs), rs.offset


@pytest.mark.parametrize("P,n", [(1, 5), (2, 5), (3, 7), (4, 4), (5, 3)])
def test_round_trip_is_bitwise(P, n):
    A, b = gj.create_system(n, seed=n + P)
    A += np.random.default_rng(0).random((n, n))   # non-integer values too
    results, errors = run_workers(P, lambda comm: _round_trip(comm, n, A, b))
    assert errors == [None] * P

    (resA, resb), _ = results[0]
    assert np.array_equal(resA, A)
    assert np.array_equal(resb, b)
    for r in range(1, P):
        assert results[r][0] == (None, None)
    offsets = [off for _, off in results]
    assert offsets == dist.counts_displs(n, P)[1]


def test_round_trip_comm_world():
    comm = MPI.COMM_WORLD
    n = 9
    A, b = gj.create_system(n, seed=42)
    (resA, resb), _ = _round_trip(comm, n, A, b)
    if comm.Get_rank() == 0:
        assert np.array_equal(resA, A)
        assert np.array_equal(resb, b)
    else:
        assert resA is None and resb is None


@pytest.mark.parametrize("shape_A,shape_b", [((3, 4), (3,)), ((3, 3), (2,))])
def test_root_shape_mismatch_fails_on_every_worker(shape_A, shape_b):
    A, b = np.ones(shape_A), np.ones(shape_b)

    def target(comm):
        ctx = worker.WorkerContext.create(comm, 3)
        return dist.distribute(ctx, A, b)

    results, errors = run_workers(3, target)
    assert all(isinstance(e, gj.ArgumentMismatchError) for e in errors)


def test_gather_reports_allocation_failure(monkeypatch):
    def no_memory(*args, **kwargs):
        raise MemoryError()

    ctx = worker.WorkerContext.create(MPI.COMM_SELF, 3)
    A, b = gj.create_system(3, seed=1)
    rs = dist.distribute(ctx, A, b)
    monkeypatch.setattr(dist, "np", SimpleNamespace(empty=no_memory, float64=np.float64))
    with pytest.raises(gj.AllocationFailureError) as exc:
        dist.gather(ctx, rs)
    assert isinstance(exc.value.__cause__, MemoryError)
