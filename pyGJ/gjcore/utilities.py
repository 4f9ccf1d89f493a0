import logging
import os

import numpy as np


def format__1(digits, num):
        if digits < len(str(num)):
            raise ValueError("digits<len(str(num))")
        return ' '*(digits-len(str(num))) + str(num)

def format__2(digits, num):
        if digits < len("{0:.4f}".format(num)):
            raise ValueError("digits<len(str(num))")
        return ' '*(digits-len("{0:.4f}".format(num))) + "{0:.4f}".format(num)


def stringmat(arr, rhs=None): #string of a 2d numpy array, rhs (if any) after a tab
    items = list(np.ravel(arr)) + ([] if rhs is None else list(np.ravel(rhs)))
    max_chars = max([len(str(item)) for item in items]) #the maximum number of chars required to display any item
    s = ''
    for i, row in enumerate(arr):
        s += '[%s]' % (' '.join(format__1(max_chars, x) for x in row))
        if rhs is not None:
            s += '\t%s' % format__1(max_chars, rhs[i])
        s += '\n'
    return s

def stringmat_compressed(arr, rhs=None): #same as stringmat, 4 decimal digits
    items = list(np.ravel(arr)) + ([] if rhs is None else list(np.ravel(rhs)))
    max_chars = max([len("{0:.4f}".format(item)) for item in items])
    s = ''
    for i, row in enumerate(arr):
        s += '[%s]' % (' '.join(format__2(max_chars, x) for x in row))
        if rhs is not None:
            s += '\t%s' % format__2(max_chars, rhs[i])
        s += '\n'
    return s


allclose = lambda a, b: np.allclose(a, b, rtol=1e-9, atol=1e-9)


class _RankFilter(logging.Filter):
    """Stamps every record with the MPI rank of the emitting worker."""

    def __init__(self, rank):
        super().__init__()
        self.rank = rank

    def filter(self, record):
        record.rank = self.rank
        return True


def parse_level(value, default_level=logging.INFO):
    if value is None:
        return default_level
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    if text.isdigit():
        return int(text)
    resolved = logging.getLevelName(text)
    if isinstance(resolved, int):
        return resolved
    return default_level


def get_log_level_from_env(default="INFO"):
    """Resolve the log level from GJ_LOG_LEVEL (name or number), else `default`."""
    return parse_level(os.environ.get("GJ_LOG_LEVEL") or default)


def setup_logging(rank: int, level=logging.INFO, quiet_nonroot=True, root=0):
    """Configure the root logger for one worker.

    Parameters
    ----------
    rank : int
        rank of the calling worker, printed in front of every message
    level : int or str
        log level of the coordinating worker
    quiet_nonroot : bool
        if True, workers other than `root` only report warnings and errors
    root : int
        rank of the coordinating worker
    """
    level = parse_level(level)
    if quiet_nonroot and rank != root:
        level = max(int(level), logging.WARNING)

    logroot = logging.getLogger()
    for h in list(logroot.handlers):
        if getattr(h, "_gj_handler", False):
            logroot.removeHandler(h)
    handler = logging.StreamHandler()
    handler._gj_handler = True
    handler.addFilter(_RankFilter(rank))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [P%(rank)d %(name)s] %(message)s"))
    logroot.addHandler(handler)
    logroot.setLevel(level)
    return logroot
