import logging

import numpy as np
import sympy as sy
from scipy.linalg import lu_factor
from scipy.linalg import lu_solve

from . import utilities as u


logger = logging.getLogger(__name__)

UNASSIGNED = -1


class GJException(Exception):
    pass

class SingularColumnError(GJException):
    def __init__(self, column):
        super().__init__("singular or near-singular system: no pivot for column %d" % column)
        self.column = column

class ArgumentMismatchError(GJException):
    def __init__(self, msg, values=None):
        super().__init__(msg)
        self.values = values

class AllocationFailureError(GJException):
    pass


def _is_exact(A):
    A = np.asarray(A)
    return A.dtype == object and A.size > 0 and isinstance(A.flat[0], sy.Rational)


def create_system(n: int, max_number=1000, seed=None, degenerate=False):
    """Builds a random n x n system with integer-valued entries in [0, max_number).

    Parameters
    ----------
    n : int
        dimension of the system
    max_number : int
        exclusive upper bound of the entries
    seed : int, optional
        seed of the random generator, for reproducible systems
    degenerate : bool
        if True, row n-2 (row 0 when n == 1) and its right-hand side are zeroed,
        which makes the system singular

    Returns
    -------
    A : np.ndarray
        the n x n coefficient matrix (float64, row-major)
    b : np.ndarray
        the right-hand side of length n
    """
    rng = np.random.default_rng(seed)
    A = rng.integers(0, max_number, size=(n, n)).astype(np.float64)
    b = rng.integers(0, max_number, size=n).astype(np.float64)
    if degenerate:
        z = n-2 if n > 1 else 0
        A[z, :] = 0.0
        b[z] = 0.0
    return A, b


def reduce(A : np.ndarray, b : np.ndarray, overwrite=True):
    """Sequential Gauss-Jordan elimination with partial pivoting.

    Performs the same operations, in the same order, as the distributed
    elimination run on a single worker: a forward pass that picks for every
    column the unassigned row of largest magnitude, normalizes it and
    eliminates the column from the other unassigned rows, then a reverse pass
    that back-substitutes the right-hand sides in reverse pivot order.
    Rows are NOT reordered.

    Parameters
    ----------
    A : np.ndarray
        the n x n matrix. It can be a matrix of sy.Rational (exact arithmetic, mainly used for testing);
        any other input is worked on as float64.
    b : np.ndarray
        the right-hand side
    overwrite : boolean, optional
        By default float64 A and b are destroyed, if set to False copies are taken and operated on.
        Input of another dtype is never modified.

    Returns
    -------
    A : np.ndarray
        the reduced matrix: exactly one 1 per column, zeros elsewhere
    b : np.ndarray
        the reduced right-hand side, b[j] is the solution component of the column whose 1 lies in row j
    """
    if _is_exact(A):
        A = A if overwrite else A.copy()
        b = b if overwrite else b.copy()
    elif overwrite:
        # integer input would truncate the divisions below
        A = np.asarray(A, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
    else:
        A = np.array(A, dtype=np.float64)
        b = np.array(b, dtype=np.float64)
    n, _ = A.shape
    pivot_iter = np.full(n, UNASSIGNED, dtype=np.int64)
    zero = sy.Rational(0) if _is_exact(A) else 0.0

    for i in range(n):
        best = 0
        p = UNASSIGNED
        for j in range(n):
            if best < abs(A[j][i]) and pivot_iter[j] == UNASSIGNED:
                best = abs(A[j][i])
                p = j
        if best == 0:
            raise SingularColumnError(i)
        div = A[p][i]
        pivot_iter[p] = i
        A[p] = A[p] / div
        b[p] = b[p] / div
        for j in range(n):
            if pivot_iter[j] == UNASSIGNED:
                mult = A[j][i]
                A[j] = A[j] - mult * A[p]
                b[j] = b[j] - mult * b[p]
        logger.debug("forward column %d: pivot row %d", i, p)

    for i in range(n-1, -1, -1):
        p = int(np.argmax(pivot_iter))
        pivot_iter[p] = UNASSIGNED
        elem = b[p]
        for j in range(n):
            if pivot_iter[j] != UNASSIGNED:
                mult = A[j][i]
                A[j][i] = zero
                b[j] = b[j] - mult * elem
    return A, b


def recover(A : np.ndarray, b : np.ndarray):
    """Recovers the solution, in column order, from a fully reduced system.

    Parameters
    ----------
    A : np.ndarray
        reduced n x n matrix whose rows are in any order
    b : np.ndarray
        reduced right-hand side, same row order as A

    Returns
    -------
    x : np.ndarray
        the solution vector
    perm : np.ndarray
        perm[j] is the row of A holding the 1 of column j
    """
    n, _ = A.shape
    perm = np.empty(n, dtype=np.int64)
    for j in range(n):
        rows = [i for i in range(n) if A[i][j] == 1]
        if len(rows) != 1:
            raise GJException("column %d has %d unit entries, the system is not reduced" % (j, len(rows)))
        perm[j] = rows[0]
    x = b[perm].copy()
    return x, perm


def solve(A : np.ndarray, b : np.ndarray, overwrite=False):
    A, b = reduce(A, b, overwrite)
    x, _ = recover(A, b)
    return x


def max_delta(A : np.ndarray, x : np.ndarray, b : np.ndarray):
    """Largest absolute component of the residual A x - b."""
    return float(np.max(np.abs(np.dot(A, x) - b)))


def lu_reference(A : np.ndarray, b : np.ndarray):
    LU, piv = lu_factor(A, overwrite_a=False)
    return lu_solve((LU, piv), b, overwrite_b=False)


def show_system(title, A, b):
    if _is_exact(A):
        logger.info("%s:\n%s", title, u.stringmat(A, b))
    else:
        logger.info("%s:\n%s", title, u.stringmat_compressed(A, b))
