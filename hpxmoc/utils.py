import numpy as np

from .healpix import HPX_MAX_ORDER

__license__ = "BSD 3-Clause License"

# first NUNIQ number of each order: 4 * 4^order
_UNIQ_OFFSETS = np.uint64(4) << (np.uint64(2) * np.arange(HPX_MAX_ORDER + 1, dtype=np.uint64))


def uniq2orderipix(uniq):
    """
    convert a HEALPix pixel coded as a NUNIQ number
    to a (norder, ipix) tuple

    ``uniq`` must be greater or equal to 4. The orders are found by
    bisection over the NUNIQ offsets so that no float rounding occurs
    for the deepest orders.
    """
    uniq = np.asarray(uniq, dtype=np.uint64)
    order = np.searchsorted(_UNIQ_OFFSETS, uniq, side='right') - 1
    order = np.clip(order, 0, HPX_MAX_ORDER).astype(np.uint8)
    ipix = uniq - _UNIQ_OFFSETS[order]

    return order, ipix.astype(np.uint64)


def orderipix2uniq(order, ipix):
    """
    convert (norder, ipix) HEALPix cells to NUNIQ numbers
    """
    order = np.asarray(order, dtype=np.uint64)
    ipix = np.asarray(ipix, dtype=np.uint64)
    return (np.uint64(4) << (np.uint64(2) * order)) + ipix


def shift(order):
    """Bit shift between ``order`` and the deepest HEALPix order."""
    return np.uint64(2 * (HPX_MAX_ORDER - int(order)))


def to_depth29(order, ranges):
    """
    Express [start, end) pixel ranges of ``order`` at order 29.

    Parameters
    ----------
    order : int
        Order of the pixels.
    ranges : `~numpy.ndarray`
        N x 2 uint64 array of pixel ranges.

    Returns
    -------
    ranges : `~numpy.ndarray`
        The same ranges, each bound multiplied by 4^(29 - order).
    """
    return np.asarray(ranges, dtype=np.uint64) << shift(order)


def from_depth29(order, ranges):
    """
    Pixels of ``order`` overlapping depth-29 [start, end) ranges.

    The start bounds are rounded down and the end bounds rounded up so that
    the returned ranges cover ``ranges`` entirely.
    """
    ranges = np.asarray(ranges, dtype=np.uint64)
    s = shift(order)
    ofs = (np.uint64(1) << s) - np.uint64(1)
    res = np.empty_like(ranges)
    res[:, 0] = ranges[:, 0] >> s
    res[:, 1] = (ranges[:, 1] + ofs) >> s
    return res
