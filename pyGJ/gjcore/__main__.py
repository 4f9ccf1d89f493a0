'''
Solves a random dense system A x = b with the distributed Gauss-Jordan elimination.
Launch this as follows:
mpirun -np 4 python3 -m mpi4py -m gjcore 100
'''

import argparse
import logging
import sys

from mpi4py import MPI

from . import GJ as gj
from . import GJPar as gjpar
from .config import GJConfig
from .utilities import setup_logging
from .worker import WorkerContext


logger = logging.getLogger("gjcore")


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="gjcore", description="Distributed Gauss-Jordan solver of a random dense system.")
    parser.add_argument("n", type=int, help="Dimension of the system.")
    parser.add_argument("--seed", type=int, default=None, help="Seed of the random system.")
    parser.add_argument("--max-number", type=int, default=1000, help="Entries are drawn from [0, MAX_NUMBER).")
    parser.add_argument("--degenerate", action="store_true", help="Zero row n-2 to get a singular system.")
    parser.add_argument("--root", type=int, default=0, help="Rank of the coordinating worker.")
    parser.add_argument("--print-limit", type=int, default=8, help="Print systems smaller than this.")
    parser.add_argument("--log-level", default=None, help="Log level (default: GJ_LOG_LEVEL or INFO).")
    return parser, parser.parse_args(argv)


def run(cfg: GJConfig, comm=MPI.COMM_WORLD):
    """Generates, solves and checks one system. Returns the solution on the root, None elsewhere."""
    ctx = WorkerContext.create(comm, cfg.n, root=cfg.root)
    show = cfg.n < cfg.print_limit

    if ctx.is_root:
        A, b = gj.create_system(cfg.n, cfg.max_number, cfg.seed, cfg.degenerate)
        if show:
            gj.show_system("Source matrix", A, b)
    else:
        A = b = None

    resA, resb = gjpar.solve(ctx, A, b)
    if not ctx.is_root:
        return None

    x, perm = gj.recover(resA, resb)
    if show:
        gj.show_system("Output matrix", resA[perm], resb[perm])
    logger.info("x = %s", x)
    logger.info("Max delta = %2.14f", gj.max_delta(A, x, b))
    logger.info("Max deviation from LU solution = %2.14f", float(abs(x - gj.lu_reference(A, b)).max()))
    return x


def main(argv=None, comm=None):
    parser, args = _parse_args(argv)
    try:
        cfg = GJConfig.from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    comm = MPI.COMM_WORLD if comm is None else comm
    setup_logging(comm.Get_rank(), cfg.log_level, root=cfg.root)
    try:
        run(cfg, comm)
    except gj.AllocationFailureError as exc:
        # raised on one worker only: the others would wait forever in the next collective
        logger.error("%s", exc)
        comm.Abort(1)
        return 1
    except gj.GJException as exc:
        if comm.Get_rank() == cfg.root:
            logger.error("%s", exc)
        return 1
    except Exception:
        # fail-stop: any other error may be local to this worker
        logger.exception("P%d failed, aborting all workers", comm.Get_rank())
        comm.Abort(1)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
