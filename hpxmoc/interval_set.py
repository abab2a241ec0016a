import operator

import numpy as np

from . import utils

__license__ = "BSD 3-Clause License"


class IntervalSet:
    """Sorted list of non overlapping [start, end) unsigned integer intervals.

    A MOC stores one IntervalSet per order, the intervals being ranges of
    HEALPix NESTED pixel numbers of that order. Because of the NESTED
    numbering, a HEALPix cell (order, ipix) is also the interval
    [ipix*4^(29-order), (ipix+1)*4^(29-order)) of cells of order 29, 29 being
    the maximum order of HEALPix cells one can encode in a 64 bit signed
    integer. The whole MOC can thus be expressed by a single IntervalSet at
    order 29, which is the form used for the set operations. See the
    `MOC IVOA standard paper <http://www.ivoa.net/documents/MOC/>`__ for more
    explanations about the NESTED numbering scheme.

    Intervals are kept merged: no two intervals overlap or touch. An
    IntervalSet created with ``make_consistent=False`` keeps its intervals as
    given until `merge` is called; the set operations always work on a merged
    copy.
    """
    HPX_MAX_ORDER = np.uint8(utils.HPX_MAX_ORDER)
    # number of cells at order 29: 12 * 4^29
    HPX_UPPER = np.uint64(12) << np.uint64(58)

    def __init__(self, intervals=None, make_consistent=True):
        """
        IntervalSet constructor.

        The merging step of the overlapping intervals is done here.

        Parameters
        ----------
        intervals : `~numpy.ndarray`, optional
            a N x 2 numpy array representing the set of intervals.
        make_consistent : bool, optional
            True by default. Merge the overlapping and adjacent intervals.
        """
        intervals = np.zeros((0, 2), dtype=np.uint64) if intervals is None else np.asarray(intervals)
        if intervals.size == 0:
            intervals = intervals.reshape((0, 2))

        if intervals.ndim != 2 or intervals.shape[1] != 2:
            raise ValueError(f"intervals must be a N x 2 array, got shape {intervals.shape}")

        if intervals.dtype != np.uint64:
            intervals = intervals.astype(np.uint64)
        self._intervals = intervals
        self._merged = False

        if make_consistent:
            self.merge()

    @classmethod
    def from_uniq(cls, uniq):
        """
        Create a depth-29 IntervalSet from NUNIQ numbers.

        Parameters
        ----------
        uniq : `~numpy.ndarray`
            The NUNIQ numbers of HEALPix cells.
        """
        uniq = np.asarray(uniq, dtype=np.uint64)
        if uniq.size == 0:
            return cls()

        order, ipix = utils.uniq2orderipix(uniq)
        s = np.uint64(2) * (np.uint64(cls.HPX_MAX_ORDER) - order.astype(np.uint64))
        intervals = np.column_stack((ipix << s, (ipix + np.uint64(1)) << s))
        return cls(intervals)

    @classmethod
    def from_values(cls, values):
        """Create an IntervalSet holding the given integers."""
        values = np.asarray(values, dtype=np.uint64).ravel()
        return cls(np.column_stack((values, values + np.uint64(1))))

    def merge(self):
        """Sort the intervals and merge those overlapping or touching each other."""
        if self._merged:
            return self

        itvs = self._intervals
        itvs = itvs[itvs[:, 0] < itvs[:, 1]]
        if itvs.shape[0] > 0:
            itvs = itvs[np.argsort(itvs[:, 0], kind='stable')]
            ends = np.maximum.accumulate(itvs[:, 1])

            # a new interval begins where the start is past every previous end
            new_run = np.empty(itvs.shape[0], dtype=bool)
            new_run[0] = True
            new_run[1:] = itvs[1:, 0] > ends[:-1]

            first = np.flatnonzero(new_run)
            last = np.append(first[1:] - 1, itvs.shape[0] - 1)
            itvs = np.column_stack((itvs[first, 0], ends[last]))

        self._intervals = itvs.reshape((-1, 2))
        self._merged = True
        return self

    @property
    def is_merged(self):
        return self._merged

    def _merged_intervals(self):
        if self._merged:
            return self._intervals
        return self.copy().merge()._intervals

    def copy(self):
        """
        Deepcopy of self.

        Returns
        -------
        interval : `IntervalSet`
            a copy of self
        """
        res = IntervalSet.__new__(IntervalSet)
        res._intervals = self._intervals.copy()
        res._merged = self._merged
        return res

    def __repr__(self):
        return "{0}".format(self._merged_intervals())

    def __eq__(self, another_is):
        """
        Equality operator override

        Parameters
        ----------
        another_is : `IntervalSet`
            IntervalSet object at the right of the equal operator

        Returns
        -------
        is_equal : bool
            boolean telling if self and ``another_is`` are equal or not.
        """
        if not isinstance(another_is, IntervalSet):
            return NotImplemented
        a = self._merged_intervals()
        b = another_is._merged_intervals()
        return a.shape == b.shape and bool(np.all(a == b))

    __hash__ = None

    def __len__(self):
        return self._intervals.shape[0]

    @property
    def intervals(self):
        """The N x 2 array of intervals, merged."""
        return self._merged_intervals()

    @property
    def raw_intervals(self):
        """The N x 2 array of intervals, as stored."""
        return self._intervals

    def empty(self):
        """
        Return True if the set is empty
        i.e. contains no intervals.
        """
        return self._intervals.shape[0] == 0

    def n_values(self):
        """Number of integers covered by the set."""
        itvs = self._merged_intervals()
        return int(np.sum(itvs[:, 1] - itvs[:, 0], dtype=np.uint64))

    def concatenate(self, intervals):
        """
        Append intervals to the set without merging them.

        Returns
        -------
        interval : `IntervalSet`
            a new, possibly unmerged, IntervalSet.
        """
        intervals = np.asarray(intervals, dtype=np.uint64).reshape((-1, 2))
        return IntervalSet(np.concatenate((self._intervals, intervals)), make_consistent=False)

    @staticmethod
    def _combine(a, b, op):
        # Every bound splits the line into elementary segments. A segment
        # belongs to a set when an odd number of its bounds lie before it.
        bounds = np.unique(np.concatenate((a.ravel(), b.ravel())))
        if bounds.size < 2:
            return IntervalSet()

        probes = bounds[:-1]
        in_a = np.searchsorted(a.ravel(), probes, side='right') % 2 == 1
        in_b = np.searchsorted(b.ravel(), probes, side='right') % 2 == 1
        keep = op(in_a, in_b)

        return IntervalSet(np.column_stack((bounds[:-1][keep], bounds[1:][keep])))

    def union(self, another_is):
        """
        Union between self and ``another_is``.

        Parameters
        ----------
        another_is : `IntervalSet`
            an IntervalSet object.

        Returns
        -------
        interval : `IntervalSet`
            the union of self with ``another_is``.
        """
        return IntervalSet(np.concatenate((self._intervals, another_is._intervals)))

    def intersection(self, another_is):
        """
        Intersection between self and ``another_is``.

        Parameters
        ----------
        another_is : `IntervalSet`
            an IntervalSet object.

        Returns
        -------
        interval : `IntervalSet`
            the intersection of self with ``another_is``.
        """
        return self._combine(self._merged_intervals(), another_is._merged_intervals(), operator.and_)

    def difference(self, another_is):
        """
        Difference between self and ``another_is``.

        Parameters
        ----------
        another_is : `IntervalSet`
            an IntervalSet object.

        Returns
        -------
        interval : `IntervalSet`
            the values of self not in ``another_is``.
        """
        return self._combine(self._merged_intervals(), another_is._merged_intervals(),
                             lambda x, y: x & ~y)

    def symmetric_difference(self, another_is):
        """Values lying in exactly one of self and ``another_is``."""
        return self._combine(self._merged_intervals(), another_is._merged_intervals(), operator.xor)

    def complement(self, upper=None):
        """
        Complement of self in [0, ``upper``).

        ``upper`` defaults to the number of HEALPix cells at order 29.
        """
        upper = self.HPX_UPPER if upper is None else np.uint64(upper)
        return IntervalSet(np.array([[0, upper]], dtype=np.uint64)).difference(self)

    def contains(self, values):
        """
        Tell which values belong to the set.

        Parameters
        ----------
        values : int or `~numpy.ndarray`
            integers to look for.

        Returns
        -------
        result : bool or `~numpy.ndarray`
            a boolean mask with the shape of ``values``.
        """
        flat = self._merged_intervals().ravel()
        res = np.searchsorted(flat, np.asarray(values, dtype=np.uint64), side='right') % 2 == 1
        return bool(res) if res.ndim == 0 else res

    def intersects_range(self, start, end):
        """Return True if one interval overlaps [``start``, ``end``)."""
        itvs = self._merged_intervals()
        idx = np.searchsorted(itvs[:, 0], np.uint64(end), side='left')
        return bool(idx > 0 and itvs[idx - 1, 1] > np.uint64(start))

    def intersects(self, another_is):
        """Return True if self and ``another_is`` share at least one value."""
        return not self.intersection(another_is).empty()

    def degrade(self, order):
        """
        Round the depth-29 intervals of self to the cells of ``order``.

        Each interval is widened to the smallest union of ``order`` cells
        containing it.
        """
        ranges = utils.from_depth29(order, self._merged_intervals())
        return IntervalSet(utils.to_depth29(order, ranges))

    def values(self):
        """
        All the integers covered by the set, in ascending order.

        Returns
        -------
        values : `~numpy.ndarray`
            a uint64 array.
        """
        itvs = self._merged_intervals()
        lengths = (itvs[:, 1] - itvs[:, 0]).astype(np.int64)
        total = int(lengths.sum())
        if total == 0:
            return np.zeros(0, dtype=np.uint64)

        offsets = np.arange(total, dtype=np.int64) - np.repeat(np.cumsum(lengths) - lengths, lengths)
        return np.repeat(itvs[:, 0], lengths) + offsets.astype(np.uint64)
