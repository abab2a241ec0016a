"""
Normalization of the per-order storage of a MOC.

A MOC keeps one `~hpxmoc.interval_set.IntervalSet` of pixel ranges per
order. It is normalized (or consistent) when:

* no stored cell has a stored ancestor or descendant,
* no four sibling cells are stored together (they are replaced by their
  parent),
* every stored cell lies within the ``[min_order, max_order]`` limit window,
* the ranges of each order are sorted and merged.

All the functions of this module go through the depth-29 form of the MOC:
the stored cells are first projected onto order 29 and merged there, then
the union is cut back into the largest possible cells. Ancestors absorb
their descendants and complete groups of siblings collapse into their
parent in the process.
"""
import numpy as np

from . import utils
from .healpix import HPX_MAX_ORDER
from .interval_set import IntervalSet

__license__ = "BSD 3-Clause License"


def empty_levels():
    return [IntervalSet() for _ in range(HPX_MAX_ORDER + 1)]


def levels_to_depth29(levels):
    """
    Merge per-order pixel ranges into one IntervalSet at order 29.

    Parameters
    ----------
    levels : list of `~hpxmoc.interval_set.IntervalSet`
        Pixel ranges indexed by their order. The ranges do not need to be
        merged.

    Returns
    -------
    ranges : `~hpxmoc.interval_set.IntervalSet`
        The union of all the cells, at order 29.
    """
    ranges = [utils.to_depth29(order, level.raw_intervals)
              for order, level in enumerate(levels) if not level.empty()]
    if not ranges:
        return IntervalSet()
    return IntervalSet(np.concatenate(ranges))


def decompose(ranges, min_order=0, max_order=HPX_MAX_ORDER):
    """
    Cut depth-29 ranges into the largest HEALPix cells.

    Cells coarser than ``min_order`` are replaced by their descendants at
    ``min_order``. Ranges finer than ``max_order`` are first widened to the
    ``max_order`` cells containing them, which may increase the covered area.

    Parameters
    ----------
    ranges : `~hpxmoc.interval_set.IntervalSet`
        Ranges of order 29 cells.
    min_order, max_order : int
        The limit window of the result.

    Returns
    -------
    levels : list of `~hpxmoc.interval_set.IntervalSet`
        Merged pixel ranges indexed by their order.
    """
    levels = empty_levels()
    remaining = ranges.degrade(max_order) if max_order < HPX_MAX_ORDER else ranges.copy().merge()

    for order in range(min_order, max_order + 1):
        if remaining.empty():
            break

        s = utils.shift(order)
        ofs = (np.uint64(1) << s) - np.uint64(1)
        itvs = remaining.intervals
        # cells of this order fully covered by the remaining ranges
        first = (itvs[:, 0] + ofs) >> s
        last = itvs[:, 1] >> s
        keep = first < last
        if not keep.any():
            continue

        cells = np.column_stack((first[keep], last[keep]))
        levels[order] = IntervalSet(cells)
        remaining = remaining.difference(IntervalSet(cells << s))

    return levels


def normalize(levels, min_order=0, max_order=HPX_MAX_ORDER):
    """Return the normalized form of ``levels`` within the given limit window."""
    return decompose(levels_to_depth29(levels), min_order, max_order)
