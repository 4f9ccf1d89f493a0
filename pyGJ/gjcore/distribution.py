import logging

import numpy as np
from mpi4py import MPI

from .GJ import AllocationFailureError, ArgumentMismatchError
from .rowset import LocalRowSet


logger = logging.getLogger(__name__)


def block_sizes(n: int, workers: int):
    """Number of rows of every worker: remaining rows split among remaining workers."""
    sizes = []
    rest = n
    for r in range(workers):
        k = rest // (workers - r)
        sizes.append(k)
        rest -= k
    return sizes


def counts_displs(n: int, workers: int, width=1):
    """Element counts and displacements of the blocks, for rows of `width` elements."""
    counts = [k * width for k in block_sizes(n, workers)]
    displs = [0] * workers
    for r in range(1, workers):
        displs[r] = displs[r-1] + counts[r-1]
    return counts, displs


def distribute(ctx, A, b):
    """Scatters the rows of the augmented system to the workers.

    Parameters
    ----------
    ctx : WorkerContext
    A : np.ndarray
        n x n coefficient matrix, only read on the root (may be None elsewhere)
    b : np.ndarray
        right-hand side of length n, only read on the root (may be None elsewhere)

    Returns
    -------
    rowset : LocalRowSet
        the contiguous block owned by the calling worker, every row UNASSIGNED
    """
    n = ctx.n
    mcounts, mdispls = counts_displs(n, ctx.size, n)
    vcounts, vdispls = counts_displs(n, ctx.size, 1)
    k = vcounts[ctx.rank]
    rowset = LocalRowSet(n, k, offset=vdispls[ctx.rank], owner=ctx.rank)

    bad = None
    if ctx.is_root:
        A = np.ascontiguousarray(A, dtype=np.float64)
        b = np.ascontiguousarray(b, dtype=np.float64)
        if A.shape != (n, n) or b.shape != (n,):
            bad = "root holds a system of shapes %s, %s, expected (%d, %d), (%d,)" % (A.shape, b.shape, n, n, n)
    # collective: every worker learns whether the root can scatter
    bad = ctx.comm.bcast(bad, root=ctx.root)
    if bad is not None:
        raise ArgumentMismatchError(bad)

    if ctx.is_root:
        ctx.comm.Scatterv([A, mcounts, mdispls, MPI.DOUBLE], [rowset.rows, MPI.DOUBLE], root=ctx.root)
        ctx.comm.Scatterv([b, vcounts, vdispls, MPI.DOUBLE], [rowset.vec, MPI.DOUBLE], root=ctx.root)
    else:
        ctx.comm.Scatterv(None, [rowset.rows, MPI.DOUBLE], root=ctx.root)
        ctx.comm.Scatterv(None, [rowset.vec, MPI.DOUBLE], root=ctx.root)

    logger.debug("P%d owns rows [%d, %d)", ctx.rank, rowset.offset, rowset.offset + k)
    return rowset


def gather(ctx, rowset):
    """Collects the blocks of all workers at the root, at the offsets they were scattered from.

    Returns
    -------
    A, b : np.ndarray, np.ndarray
        the n x n matrix and the right-hand side in scatter order on the root;
        None, None on the other workers
    """
    n = ctx.n
    mcounts, mdispls = counts_displs(n, ctx.size, n)
    vcounts, vdispls = counts_displs(n, ctx.size, 1)

    if ctx.is_root:
        try:
            A = np.empty((n, n), dtype=np.float64)
            b = np.empty(n, dtype=np.float64)
        except MemoryError as exc:
            raise AllocationFailureError("P%d: cannot allocate the %d x %d result" % (ctx.rank, n, n)) from exc
        ctx.comm.Gatherv([rowset.rows, MPI.DOUBLE], [A, mcounts, mdispls, MPI.DOUBLE], root=ctx.root)
        ctx.comm.Gatherv([rowset.vec, MPI.DOUBLE], [b, vcounts, vdispls, MPI.DOUBLE], root=ctx.root)
        return A, b

    ctx.comm.Gatherv([rowset.rows, MPI.DOUBLE], None, root=ctx.root)
    ctx.comm.Gatherv([rowset.vec, MPI.DOUBLE], None, root=ctx.root)
    return None, None
