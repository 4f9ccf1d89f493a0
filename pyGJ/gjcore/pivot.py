from collections import namedtuple

import numpy as np

from .GJ import UNASSIGNED


PivotChoice = namedtuple("PivotChoice", ["value", "rank"])


def forward_candidate(rowset, i: int):
    """Local pivot candidate for column i.

    Returns (magnitude, local row) of the first unassigned row with the
    largest |a[j, i]|, or (0.0, UNASSIGNED) if every unassigned entry of the
    column is zero.
    """
    if len(rowset) == 0:
        return 0.0, UNASSIGNED
    mags = np.abs(rowset.rows[:, i])
    mags[rowset.assigned()] = -1.0
    j = int(np.argmax(mags))
    if mags[j] <= 0.0:
        return 0.0, UNASSIGNED
    return float(mags[j]), j


def reverse_candidate(rowset):
    """Local row with the latest pivot round: (round, local row), (UNASSIGNED, UNASSIGNED) if none."""
    if len(rowset) == 0:
        return UNASSIGNED, UNASSIGNED
    j = int(np.argmax(rowset.pivot_iter))
    if not rowset.is_assigned(j):
        return UNASSIGNED, UNASSIGNED
    return rowset.marker(j), j


def maxloc(choices):
    """Largest value among the PivotChoice list, the lowest rank winning exact ties."""
    best = None
    for c in choices:
        if best is None or c.value > best.value or (c.value == best.value and c.rank < best.rank):
            best = c
    return best


def agree(ctx, value):
    """Distributed maximum-with-location: every worker gets the same PivotChoice.

    Collective over ctx.comm.
    """
    choices = ctx.comm.allgather(PivotChoice(value, ctx.rank))
    return maxloc([PivotChoice(*c) for c in choices])
