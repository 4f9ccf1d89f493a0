import logging

from .GJ import ArgumentMismatchError


logger = logging.getLogger(__name__)


class WorkerContext:
    """Identity of one worker within the fixed set of cooperating processes.

    Created once at startup by `create` and passed to every distributed
    operation.
    """

    def __init__(self, comm, n: int, root=0):
        self.comm = comm
        self.rank = comm.Get_rank()
        self.size = comm.Get_size()
        self.n = n
        self.root = root

    @property
    def is_root(self):
        return self.rank == self.root

    @classmethod
    def create(cls, comm, n: int, workers=None, root=0):
        """Builds the context after checking that all workers agree on n and on the worker count.

        Parameters
        ----------
        comm : MPI.Comm
            the communicator of the cooperating workers
        n : int
            dimension of the system as known by the calling worker
        workers : int, optional
            worker count as expected by the calling worker; the communicator size if None
        root : int
            rank of the coordinating worker

        Returns
        -------
        ctx : WorkerContext

        Raises
        ------
        ArgumentMismatchError
            on every worker, if any worker disagrees with the others
        """
        size = comm.Get_size()
        workers = size if workers is None else workers
        # collective: every worker must reach it, whatever its local values
        values = comm.allgather((n, workers, root))
        if len(set(values)) != 1:
            raise ArgumentMismatchError("workers disagree on (n, workers, root): %s" % (values,), values)
        if workers != size:
            raise ArgumentMismatchError("expected %d workers, communicator has %d" % (workers, size), values)
        if n < 1:
            raise ArgumentMismatchError("matrix dimension must be positive, got %d" % n, values)
        if not 0 <= root < size:
            raise ArgumentMismatchError("root rank %d outside [0, %d)" % (root, size), values)
        ctx = cls(comm, n, root)
        logger.debug("P%d of %d ready, n=%d", ctx.rank, ctx.size, n)
        return ctx
