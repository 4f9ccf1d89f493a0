import numpy as np

from .GJ import AllocationFailureError, UNASSIGNED


class LocalRowSet:
    """The block of rows owned by one worker.

    Holds the (k, n) coefficient block, the k right-hand sides and one
    pivot-round marker per row: UNASSIGNED, or the column the row was chosen
    as pivot for during the forward pass. Rows are addressed by their local
    index j in [0, k); the global index of row j is offset + j.
    """

    def __init__(self, n: int, k: int, offset=0, owner=0):
        try:
            self.rows = np.empty((k, n), dtype=np.float64)
            self.vec = np.empty(k, dtype=np.float64)
            self.pivot_iter = np.full(k, UNASSIGNED, dtype=np.int64)
        except MemoryError as exc:
            raise AllocationFailureError("P%d: cannot allocate a block of %d x %d rows" % (owner, k, n)) from exc
        self.n = n
        self.offset = offset
        self.owner = owner

    def __len__(self):
        return self.rows.shape[0]

    def marker(self, j):
        return int(self.pivot_iter[j])

    def assign(self, j, i):
        self.pivot_iter[j] = i

    def release(self, j):
        self.pivot_iter[j] = UNASSIGNED

    def is_assigned(self, j):
        return self.pivot_iter[j] != UNASSIGNED

    def unassigned(self):
        return self.pivot_iter == UNASSIGNED

    def assigned(self):
        return self.pivot_iter != UNASSIGNED
