import logging

import numpy as np
from mpi4py import MPI

from . import distribution as dist
from . import pivot as pv
from .GJ import GJException, SingularColumnError


logger = logging.getLogger(__name__)


def forward_step(ctx, rowset, i: int, pivot_row: np.ndarray):
    """One forward round: agree on the pivot of column i, broadcast it, eliminate column i.

    Parameters
    ----------
    ctx : WorkerContext
    rowset : LocalRowSet
        rows of the calling worker, updated in place
    i : int
        the column eliminated in this round
    pivot_row : np.ndarray
        buffer of n+1 float64, overwritten with the normalized pivot row and its right-hand side

    Returns
    -------
    pivot : PivotChoice
        the agreed (magnitude, owner rank)
    """
    n = ctx.n
    mag, pos = pv.forward_candidate(rowset, i)
    pivot = pv.agree(ctx, mag)
    if pivot.value == 0.0:
        # identical on every worker, so all of them stop here
        raise SingularColumnError(i)

    if ctx.rank == pivot.rank:
        div = rowset.rows[pos, i]
        rowset.assign(pos, i)
        rowset.rows[pos] /= div
        rowset.vec[pos] /= div
        pivot_row[:n] = rowset.rows[pos]
        pivot_row[n] = rowset.vec[pos]

    ctx.comm.Bcast([pivot_row, MPI.DOUBLE], root=pivot.rank)

    mask = rowset.unassigned()
    if mask.any():
        mult = rowset.rows[mask, i]
        rowset.rows[mask] -= mult[:, None] * pivot_row[None, :n]
        rowset.vec[mask] -= mult * pivot_row[n]
    return pivot


def reverse_step(ctx, rowset, i: int, pivot_elem: np.ndarray):
    """One reverse round: the row pivoted for column i becomes final, its
    right-hand side is broadcast and column i is cleared from the rows still
    awaiting back-substitution.

    `pivot_elem` is a one-element float64 buffer.
    """
    rnd, pos = pv.reverse_candidate(rowset)
    pivot = pv.agree(ctx, rnd)
    if pivot.value != i:
        raise SingularColumnError(i)

    if ctx.rank == pivot.rank:
        rowset.release(pos)
        pivot_elem[0] = rowset.vec[pos]

    ctx.comm.Bcast([pivot_elem, MPI.DOUBLE], root=pivot.rank)

    mask = rowset.assigned()
    if mask.any():
        mult = rowset.rows[mask, i].copy()
        rowset.rows[mask, i] = 0.0
        rowset.vec[mask] -= mult * pivot_elem[0]
    return pivot


def forward_pass(ctx, rowset):
    pivot_row = np.empty(ctx.n + 1, dtype=np.float64)
    for i in range(ctx.n):
        pivot = forward_step(ctx, rowset, i, pivot_row)
        logger.debug("forward column %d: pivot |%g| on P%d", i, pivot.value, pivot.rank)


def reverse_pass(ctx, rowset):
    pivot_elem = np.empty(1, dtype=np.float64)
    for i in range(ctx.n-1, -1, -1):
        pivot = reverse_step(ctx, rowset, i, pivot_elem)
        logger.debug("reverse column %d: final row on P%d", i, pivot.rank)


def eliminate(ctx, rowset):
    """Distributed Gauss-Jordan elimination of the rows of all workers.

    Runs exactly n forward rounds, a barrier, then exactly n reverse rounds.
    Every worker must call it. On return every local row is final
    (UNASSIGNED) and the distributed system is fully reduced.
    """
    t = MPI.Wtime()
    forward_pass(ctx, rowset)
    ctx.comm.Barrier()
    if ctx.is_root:
        logger.info("forward elimination completed: time (sec) %.5f", MPI.Wtime() - t)
        t = MPI.Wtime()
    reverse_pass(ctx, rowset)
    if ctx.is_root:
        logger.info("back substitution completed: time (sec) %.5f", MPI.Wtime() - t)
    if rowset.assigned().any():
        raise GJException("P%d: rows left in a pivot round after the reverse pass" % ctx.rank)
    return rowset


def solve(ctx, A, b):
    """Distributes A|b, reduces it cooperatively and gathers it back.

    Parameters
    ----------
    ctx : WorkerContext
    A : np.ndarray
        the n x n matrix, only read on the root
    b : np.ndarray
        the right-hand side, only read on the root

    Returns
    -------
    A, b : np.ndarray, np.ndarray
        on the root: the reduced matrix and right-hand side in scatter order
        (use GJ.recover to obtain the solution); None, None elsewhere
    """
    t = MPI.Wtime()
    rowset = dist.distribute(ctx, A, b)
    if ctx.is_root:
        logger.info("data distribution completed: time (sec) %.5f", MPI.Wtime() - t)
    eliminate(ctx, rowset)
    resA, resb = dist.gather(ctx, rowset)
    if ctx.is_root:
        logger.info("Gauss-Jordan elimination (MPI): n %d, procs %d, time (sec) %.5f", ctx.n, ctx.size, MPI.Wtime() - t)
    return resA, resb
