import warnings
from collections import namedtuple

import numpy as np

from . import consistency, healpix, parser, utils
from .errors import InconsistentMocError, OrderOutOfRange, CoordSysMismatchError
from .healpix import HPX_MAX_ORDER
from .interval_set import IntervalSet
from .serializer import IO

__license__ = "BSD 3-Clause License"

DEFAULT_COORDSYS = 'C'
# cells printed by `MOC.to_debug_string`
DEBUG_MAX_CELLS = 80


class Cell(namedtuple('Cell', ['order', 'npix'])):
    """A HEALPix cell, written ``order/npix``."""
    __slots__ = ()

    def __str__(self):
        return f"{self.order}/{self.npix}"


class MOC(IO):
    """
    Multi-order spatial coverage class.

    A MOC describes the coverage of an arbitrary region on the unit sphere.
    A MOC corresponds to a list of `HEALPix <https://healpix.sourceforge.io/>`__
    cells at different depths, stored as one sorted list of pixel ranges per
    order (0 to 29).

    The MOC is kept normalized after each addition: a cell whose ancestor is
    present is dropped, and four sibling cells are replaced by their parent.
    Cells finer than ``max_limit_order`` are replaced by their ancestor of
    that order, cells coarser than ``min_limit_order`` by their descendants of
    that order.

    When the consistency check is switched off with `set_check_consistency`,
    cells are stored as given until `check_and_fix` is called. The set
    operations and the queries refuse to work on such an unchecked MOC and
    raise `~hpxmoc.errors.InconsistentMocError`.

    Parameters
    ----------
    cells : str, dict or `MOC`, optional
        Initial content, see `add`.
    min_limit_order, max_limit_order : int, optional
        The limit window of the orders of the stored cells. [0, 29] by default.
    coordsys : str, optional
        Reference frame, using the HEALPix convention: 'C' for equatorial (default),
        'G' for galactic, 'E' for ecliptic. It is only used as metadata.

    Examples
    --------
    >>> from hpxmoc import MOC
    >>> moc = MOC("3/1,3-4,9 4/30-31")
    >>> print(moc)
    { "3":[1,3,4,9], "4":[30,31] }
    """

    def __init__(self, cells=None, min_limit_order=0, max_limit_order=HPX_MAX_ORDER,
                 coordsys=DEFAULT_COORDSYS):
        self._check_limits(min_limit_order, max_limit_order)
        self._min_limit_order = int(min_limit_order)
        self._max_limit_order = int(max_limit_order)
        self._coordsys = coordsys
        self._levels = consistency.empty_levels()
        self._check_consistency = True
        self._consistent = True
        self._current_order = None

        if cells is not None:
            self.add(cells)

    @staticmethod
    def _check_limits(min_order, max_order):
        for order in (min_order, max_order):
            if isinstance(order, bool) or not isinstance(order, (int, np.integer)) \
                    or not 0 <= order <= HPX_MAX_ORDER:
                raise OrderOutOfRange(f"Limit order {order!r} exceeds HEALPix possibility "
                                      f"[0, {HPX_MAX_ORDER}]")
        if min_order > max_order:
            raise OrderOutOfRange(f"Min limit order {min_order} greater than max limit order {max_order}")

    @classmethod
    def _from_depth29(cls, ranges, coordsys=DEFAULT_COORDSYS, min_limit_order=0,
                      max_limit_order=HPX_MAX_ORDER):
        moc = cls(min_limit_order=min_limit_order, max_limit_order=max_limit_order, coordsys=coordsys)
        moc._levels = consistency.decompose(ranges, min_limit_order, max_limit_order)
        return moc

    def _result(self, ranges):
        return self._from_depth29(ranges, coordsys=self._coordsys,
                                  min_limit_order=self._min_limit_order,
                                  max_limit_order=self._max_limit_order)

    def _depth29(self):
        return consistency.levels_to_depth29(self._levels)

    def _normalized_levels(self):
        if self._consistent:
            return self._levels
        return consistency.normalize(self._levels, self._min_limit_order, self._max_limit_order)

    def _require_consistent(self):
        if not self._consistent:
            raise InconsistentMocError("The MOC has been filled without consistency check. "
                                       "Call check_and_fix() before using it.")

    def _check_operand(self, moc):
        if not isinstance(moc, MOC):
            raise TypeError(f"Cannot combine a MOC with a {type(moc).__name__}")
        moc._require_consistent()
        if moc.coordsys != self._coordsys:
            raise CoordSysMismatchError(f"Cannot combine a MOC in coordinate system '{self._coordsys}' "
                                        f"with a MOC in '{moc.coordsys}'")

    # ------------------------------------------------------------------ creation

    @classmethod
    def from_json(cls, json_moc):
        """
        Creates a MOC from a dictionary of HEALPix cell arrays indexed by their depth.

        Parameters
        ----------
        json_moc : dict(str : [int])
            A dictionary of HEALPix cell arrays indexed by their depth.

        Returns
        -------
        moc : `~hpxmoc.moc.MOC`
            the MOC.
        """
        return cls(json_moc)

    @classmethod
    def from_str(cls, value):
        """
        Create a MOC from a str.

        Both the ASCII syntax of the MOC IVOA recommendation and the JSON syntax
        are accepted, see `add`. The ``COORDSYS=`` directive of the line based
        MOC files sets the coordinate system of the MOC.

        Examples
        --------
        >>> from hpxmoc import MOC
        >>> moc = MOC.from_str("2/2-25 28 29 4/0 6/")
        """
        parsed = parser.parse(value)
        moc = cls(coordsys=parsed.coordsys or DEFAULT_COORDSYS)
        moc._insert(parsed)
        moc._current_order = parsed.current_order
        return moc

    @classmethod
    def from_cells(cls, orders, ipix, coordsys=DEFAULT_COORDSYS):
        """
        Creates a MOC from HEALPix cells given as two arrays.

        Parameters
        ----------
        orders : `~numpy.ndarray`
            The order of each cell.
        ipix : `~numpy.ndarray`
            The NESTED pixel number of each cell.
        """
        orders = np.atleast_1d(np.asarray(orders))
        ipix = np.atleast_1d(np.asarray(ipix))
        if orders.shape != ipix.shape:
            raise ValueError("orders and ipix must have the same shape")

        ranges = []
        for order in np.unique(orders):
            order = healpix.validate_order(order)
            pix = ipix[orders == order]
            if pix.min() < 0 or pix.max() >= healpix.npix(order):
                raise ValueError(f"pixel numbers must lie in [0, {healpix.npix(order)}) at order {order}")
            pix = pix.astype(np.uint64)
            ranges.append(utils.to_depth29(order, np.column_stack((pix, pix + np.uint64(1)))))

        if not ranges:
            return cls(coordsys=coordsys)
        return cls._from_depth29(IntervalSet(np.concatenate(ranges)), coordsys=coordsys)

    @classmethod
    def from_uniq(cls, uniq, coordsys=DEFAULT_COORDSYS):
        """Creates a MOC from NUNIQ numbers."""
        uniq = np.atleast_1d(np.asarray(uniq))
        if uniq.size and (uniq.min() < 4 or uniq.max() >= (16 << (2 * HPX_MAX_ORDER))):
            raise ValueError("NUNIQ numbers must lie in [4, 16 * 4^29)")
        return cls._from_depth29(IntervalSet.from_uniq(uniq), coordsys=coordsys)

    @classmethod
    def from_cone(cls, ra, dec, radius, order, coordsys=DEFAULT_COORDSYS):
        """
        Creates a MOC from a cone.

        Parameters
        ----------
        ra, dec : float
            Center of the cone, in degrees.
        radius : float or `~astropy.coordinates.Angle`
            Radius of the cone, in degrees when given as a float.
        order : int
            Order of the cells overlapping the cone.
        """
        ipix = healpix.query_disc(order, ra, dec, radius)
        return cls.from_cells(np.full(ipix.shape, order), ipix, coordsys=coordsys)

    # ------------------------------------------------------------------ mutation

    def _parse(self, cells):
        if isinstance(cells, dict):
            return parser.parse_mapping(cells, self._current_order)
        if isinstance(cells, str):
            return parser.parse(cells, self._current_order)
        raise TypeError(f"Cannot read MOC cells from a {type(cells).__name__}")

    def _insert(self, cells):
        cells = list(cells)
        if not cells:
            return

        if self._check_consistency:
            ranges = np.concatenate([utils.to_depth29(order, r) for order, r in cells])
            depth29 = self._depth29().union(IntervalSet(ranges))
            self._levels = consistency.decompose(depth29, self._min_limit_order, self._max_limit_order)
        else:
            for order, r in cells:
                self._levels[order] = self._levels[order].concatenate(r)
            self._consistent = False

    def add(self, cells):
        """
        Add cells to the MOC.

        Parameters
        ----------
        cells : str, dict or `MOC`
            The cells to add, either:

            * a string using the ASCII syntax ``"3/10 4/12-15 18 22"``. Pixels may be
              separated by spaces, commas or semicolons, and ``:`` can replace ``/``.
              Pixels given before any order belong to the last order read by a
              previous call.
            * a string using the JSON syntax ``{"3":[1,3,4,9], "4":[30,31]}``,
            * a dictionary of pixel lists indexed by their order,
            * another MOC.

        The addition is all or nothing: when the cells cannot be read, the MOC
        is left untouched.

        Raises
        ------
        ParseError
            If the string is malformed.
        OrderOutOfRange
            If an order lies outside [0, 29].
        """
        if isinstance(cells, MOC):
            return self.add_moc(cells)

        parsed = self._parse(cells)
        self._insert(parsed)
        self._current_order = parsed.current_order
        if parsed.coordsys is not None:
            self._coordsys = parsed.coordsys
        return self

    def insert_cell(self, order, npix):
        """
        Add one HEALPix cell.

        Raises
        ------
        InvalidOrder
            If ``order`` lies outside [0, 29].
        ValueError
            If ``npix`` is not a pixel of ``order``.
        """
        order = healpix.validate_order(order)
        if not 0 <= npix < healpix.npix(order):
            raise ValueError(f"pixel {npix} is out of range at order {order}")
        self._insert([(order, np.array([[npix, npix + 1]], dtype=np.uint64))])
        return self

    def add_moc(self, moc):
        """Add all the cells of another MOC."""
        self._insert((order, level.raw_intervals) for order, level in enumerate(moc._levels)
                     if not level.empty())
        return self

    def add_position(self, ra, dec):
        """
        Add the cell of the MOC max order containing a position.

        Returns
        -------
        added : bool
            False if the MOC is empty and has thus no max order.
        """
        order = self.max_order
        if order == -1:
            return False
        self.insert_cell(order, healpix.ang2pix(order, ra, dec))
        return True

    def delete_cell(self, order, npix):
        """
        Remove a stored cell.

        Only a cell stored as is can be removed: removing the child of a
        stored cell does nothing.

        Returns
        -------
        deleted : bool
            True if the cell was stored.
        """
        order = healpix.validate_order(order)
        level = self._levels[order]
        if level.empty() or not self._is_pixel(order, npix) or not level.contains(npix):
            return False
        self._levels[order] = level.difference(IntervalSet(np.array([[npix, npix + 1]], dtype=np.uint64)))
        return True

    def delete(self, cells):
        """
        Remove stored cells given with the syntax of `add`.

        As for `delete_cell`, only the cells stored as is are removed.
        """
        parsed = self._parse(cells)
        for order, ranges in parsed:
            if not self._levels[order].empty():
                self._levels[order] = self._levels[order].difference(IntervalSet(ranges))
        self._current_order = parsed.current_order
        return self

    def delete_descendants(self, order, npix):
        """
        Remove the stored descendants of a cell.

        Returns
        -------
        deleted : bool
            True if at least one descendant has been removed.
        """
        order = healpix.validate_order(order)
        npix = int(npix)
        deleted = False
        for o in range(order + 1, HPX_MAX_ORDER + 1):
            level = self._levels[o]
            if level.empty():
                continue
            s = 2 * (o - order)
            descendants = IntervalSet(np.array([[npix << s, (npix + 1) << s]], dtype=np.uint64))
            if level.intersects(descendants):
                self._levels[o] = level.difference(descendants)
                deleted = True
        return deleted

    def clear(self):
        """Remove all the cells, keeping the limit orders and the coordinate system."""
        self._levels = consistency.empty_levels()
        self._consistent = True
        self._current_order = None

    def sort(self):
        """Sort and merge the pixel ranges of each order."""
        for level in self._levels:
            level.merge()

    @property
    def is_sorted(self):
        return all(level.is_merged for level in self._levels)

    # ------------------------------------------------------------------ consistency

    def check_and_fix(self):
        """
        Normalize the MOC.

        Redundant cells are removed, groups of four sibling cells are
        replaced by their parent and the cells are brought within the limit
        orders. Calling it on a normalized MOC does nothing.
        """
        if self._consistent:
            return self
        self._levels = consistency.normalize(self._levels, self._min_limit_order, self._max_limit_order)
        self._consistent = True
        return self

    def set_check_consistency(self, flag):
        """
        Switch the consistency check on or off.

        On by default. When off, added cells are stored as is, which is faster
        for the creation of large MOCs. Switching it on normalizes the MOC.
        """
        self._check_consistency = bool(flag)
        if self._check_consistency:
            self.check_and_fix()

    @property
    def check_consistency(self):
        return self._check_consistency

    @check_consistency.setter
    def check_consistency(self, flag):
        self.set_check_consistency(flag)

    @property
    def is_consistent(self):
        """False if cells have been added without consistency check since the last `check_and_fix`."""
        return self._consistent

    def set_min_limit_order(self, order):
        """
        Set the coarsest order of the stored cells.

        The cells coarser than ``order`` are replaced by their descendants of
        that order. The consistency check is switched on.

        Raises
        ------
        OrderOutOfRange
            If ``order`` lies outside [0, 29] or is greater than the max limit order.
        """
        if order == self._min_limit_order:
            return
        self._check_limits(order, self._max_limit_order)
        self._min_limit_order = int(order)
        self._consistent = False
        self.set_check_consistency(True)

    def set_max_limit_order(self, order):
        """
        Set the finest order of the stored cells.

        The cells finer than ``order`` are replaced by their ancestor of that
        order, which may increase the covered area. The consistency check is
        switched on.

        Raises
        ------
        OrderOutOfRange
            If ``order`` lies outside [0, 29] or is lower than the min limit order.
        """
        if order == self._max_limit_order:
            return
        self._check_limits(self._min_limit_order, order)
        self._max_limit_order = int(order)
        self._consistent = False
        self.set_check_consistency(True)

    def set_limit_order(self, min_order, max_order=None):
        """
        Set both limit orders, see `set_min_limit_order` and `set_max_limit_order`.

        Called with a single order, it only sets the max limit order. This
        form is deprecated.
        """
        if max_order is None:
            warnings.warn('set_limit_order(order) is deprecated. Use set_max_limit_order(order) instead!',
                          DeprecationWarning, stacklevel=2)
            self.set_max_limit_order(min_order)
            return

        self._check_limits(min_order, max_order)
        if (min_order, max_order) == (self._min_limit_order, self._max_limit_order):
            return
        self._min_limit_order = int(min_order)
        self._max_limit_order = int(max_order)
        self._consistent = False
        self.set_check_consistency(True)

    @property
    def min_limit_order(self):
        return self._min_limit_order

    @property
    def max_limit_order(self):
        return self._max_limit_order

    def degrade_to_order(self, new_order):
        """
        Degrades the MOC instance to a new, less precise, MOC.

        The maximum depth (i.e. the depth of the smallest cells that can be found in the MOC) of the
        degraded MOC is set to ``new_order``.

        Parameters
        ----------
        new_order : int
            Maximum depth of the output degraded MOC.

        Returns
        -------
        moc : `~hpxmoc.moc.MOC`
            The degraded MOC.
        """
        moc = self.copy()
        moc.set_limit_order(min(self._min_limit_order, new_order), new_order)
        return moc

    # ------------------------------------------------------------------ properties

    @property
    def coordsys(self):
        """Reference frame: 'C' (equatorial), 'G' (galactic) or 'E' (ecliptic)."""
        return self._coordsys

    @coordsys.setter
    def coordsys(self, value):
        self._coordsys = value

    @property
    def max_order(self):
        """Deepest order holding a cell, -1 for an empty MOC."""
        for order in range(HPX_MAX_ORDER, -1, -1):
            if not self._levels[order].empty():
                return order
        return -1

    def empty(self):
        """
        Checks whether the MOC is empty.

        A MOC is empty when it contains no HEALPix cells.
        """
        return all(level.empty() for level in self._levels)

    def cell_count_at(self, order):
        """Number of cells stored at ``order``."""
        return self._levels[healpix.validate_order(order)].n_values()

    @property
    def cell_count(self):
        """Number of stored cells, all orders together."""
        return sum(level.n_values() for level in self._levels)

    def __len__(self):
        return self.cell_count

    def __bool__(self):
        return not self.empty()

    @property
    def size(self):
        """Number of cells of the max order covered by the MOC."""
        order = self.max_order
        if order == -1:
            return 0
        return self._depth29().n_values() >> (2 * (HPX_MAX_ORDER - order))

    @property
    def coverage(self):
        """Fraction of the sky covered by the MOC, between 0 and 1."""
        order = self.max_order
        if order == -1:
            return 0.0
        return self.size / float(healpix.npix(order))

    sky_fraction = coverage

    @property
    def angular_resolution(self):
        """
        Size of the cells of the max order, in degrees.

        Raises
        ------
        ValueError
            If the MOC is empty.
        """
        order = self.max_order
        if order == -1:
            raise ValueError("An empty MOC has no angular resolution")
        return healpix.pixel_resolution(order)

    @property
    def uniq(self):
        """NUNIQ numbers of the cells, sorted by order then pixel number."""
        uniq = [utils.orderipix2uniq(order, level.values())
                for order, level in enumerate(self._normalized_levels()) if not level.empty()]
        if not uniq:
            return np.zeros(0, dtype=np.uint64)
        return np.concatenate(uniq)

    def to_depth29_ranges(self):
        """The coverage of the MOC as [start, end) ranges of order 29 cells."""
        return self._depth29()

    # ------------------------------------------------------------------ iteration

    def __iter__(self):
        """Cells of the MOC, sorted by order then pixel number."""
        for order, level in enumerate(self._levels):
            if level.empty():
                continue
            for npix in level.values():
                yield Cell(order, int(npix))

    def pixel_iterator(self):
        """
        Pixel numbers of the max order covering the MOC, in ascending order.

        The pixels are generated range by range, so iterating over a MOC
        covering a large area at a deep order does not expand it in memory.
        """
        order = self.max_order
        if order == -1:
            return
        for start, end in utils.from_depth29(order, self._depth29().intervals):
            yield from range(int(start), int(end))

    def __contains__(self, cell):
        order, npix = cell
        return self.is_in(order, npix)

    # ------------------------------------------------------------------ copy, comparison

    def copy(self):
        """Deep copy of the MOC, including its limit orders and consistency state."""
        moc = type(self)(min_limit_order=self._min_limit_order, max_limit_order=self._max_limit_order,
                         coordsys=self._coordsys)
        moc._levels = [level.copy() for level in self._levels]
        moc._check_consistency = self._check_consistency
        moc._consistent = self._consistent
        moc._current_order = self._current_order
        return moc

    clone = copy

    def __eq__(self, another_moc):
        """
        Two MOCs are equal when they hold the same cells, once normalized, in the same coordinate system.
        """
        if not isinstance(another_moc, MOC):
            raise TypeError('The object to compare with is not a MOC: {0}'.format(type(another_moc)))
        if self._coordsys != another_moc.coordsys:
            return False
        return all(a == b for a, b in zip(self._normalized_levels(), another_moc._normalized_levels()))

    __hash__ = None

    def __str__(self):
        return self.to_string(format="json")

    def __repr__(self):
        return (f"<{type(self).__name__} max_order={self.max_order} cells={self.cell_count} "
                f"coordsys={self._coordsys}>")

    def to_debug_string(self):
        """
        Summary of the MOC followed by its first cells.

        Returns
        -------
        result : str
            ``"maxOrder=4 [0..29] size=6 coverage=0.22% sorted consistent"`` then,
            on a second line, at most 80 cells.
        """
        coverage = int(self.coverage * 10000) / 100.
        res = [f"maxOrder={self.max_order} [{self._min_limit_order}..{self._max_limit_order}] "
               f"size={self.cell_count} coverage={coverage}%"
               + (" sorted" if self.is_sorted else "")
               + (" consistent" if self._consistent else "")
               + "\n"]

        current = -1
        for i, cell in enumerate(self):
            if i == DEBUG_MAX_CELLS:
                res.append("...")
                break
            res.append(f" {cell.order}/{cell.npix}" if cell.order != current else f",{cell.npix}")
            current = cell.order
        return "".join(res)

    # ------------------------------------------------------------------ set operations

    def union(self, *mocs):
        """
        Union between the MOC instance and other MOCs.

        Parameters
        ----------
        mocs : `MOC`
            The MOCs used for performing the union with self.

        Returns
        -------
        result : `MOC`
            The resulting MOC, using the limit orders of self.

        Raises
        ------
        InconsistentMocError
            If one of the MOCs has not been normalized.
        CoordSysMismatchError
            If the MOCs do not share the same coordinate system.
        """
        self._require_consistent()
        ranges = self._depth29()
        for moc in mocs:
            self._check_operand(moc)
            ranges = ranges.union(moc._depth29())
        return self._result(ranges)

    def intersection(self, *mocs):
        """
        Intersection between the MOC instance and other MOCs.

        Parameters
        ----------
        mocs : `MOC`
            The MOCs used for performing the intersection with self.

        Returns
        -------
        result : `MOC`
            The resulting MOC, using the limit orders of self.
        """
        self._require_consistent()
        ranges = self._depth29()
        for moc in mocs:
            self._check_operand(moc)
            ranges = ranges.intersection(moc._depth29())
        return self._result(ranges)

    def subtraction(self, another_moc):
        """
        The cells of self not covered by ``another_moc``.

        Returns
        -------
        result : `MOC`
            The resulting MOC, using the limit orders of self.
        """
        self._require_consistent()
        self._check_operand(another_moc)
        return self._result(self._depth29().difference(another_moc._depth29()))

    def difference(self, another_moc):
        """
        The union of both MOCs minus their intersection.

        Unlike `subtraction`, the result does not depend on the order of the
        operands.
        """
        self._require_consistent()
        self._check_operand(another_moc)
        return self._result(self._depth29().symmetric_difference(another_moc._depth29()))

    def complement(self):
        """
        The part of the sky not covered by the MOC.

        Returns
        -------
        result : `MOC`
            The resulting MOC, using the limit orders of self.
        """
        self._require_consistent()
        return self._result(self._depth29().complement())

    def __add__(self, moc):
        return self.union(moc)

    def __or__(self, moc):
        return self.union(moc)

    def __and__(self, moc):
        return self.intersection(moc)

    def __sub__(self, moc):
        return self.subtraction(moc)

    def __xor__(self, moc):
        return self.difference(moc)

    def __invert__(self):
        return self.complement()

    def intersects(self, another_moc):
        """Return True if the two MOCs overlap."""
        self._require_consistent()
        self._check_operand(another_moc)
        return self._depth29().intersects(another_moc._depth29())

    # ------------------------------------------------------------------ hierarchy queries

    @staticmethod
    def _is_pixel(order, npix):
        return 0 <= npix < healpix.npix(order)

    def is_in(self, order, npix):
        """True if the cell, or one of its ancestors, is stored in the MOC."""
        self._require_consistent()
        order = healpix.validate_order(order)
        if not self._is_pixel(order, npix):
            return False
        level = self._levels[order]
        return (not level.empty() and level.contains(npix)) or self.is_descendant(order, npix)

    def is_ascendant(self, order, npix):
        """True if the cell is an ancestor of a stored cell."""
        self._require_consistent()
        order = healpix.validate_order(order)
        if not self._is_pixel(order, npix):
            return False
        npix = int(npix)
        for o in range(order + 1, self.max_order + 1):
            level = self._levels[o]
            s = 2 * (o - order)
            if not level.empty() and level.intersects_range(npix << s, (npix + 1) << s):
                return True
        return False

    def is_descendant(self, order, npix):
        """True if the cell is a descendant of a stored cell."""
        self._require_consistent()
        order = healpix.validate_order(order)
        if not self._is_pixel(order, npix):
            return False
        pix = int(npix)
        for o in range(order - 1, self._min_limit_order - 1, -1):
            pix >>= 2
            level = self._levels[o]
            if not level.empty() and level.contains(pix):
                return True
        return False

    def is_intersecting(self, order, npix):
        """True if the cell overlaps the MOC: it is stored, or has a stored ancestor or descendant."""
        return self.is_in(order, npix) or self.is_ascendant(order, npix)

    def is_in_tree(self, order, npix=None):
        """
        .. deprecated::
            Use `is_intersecting` or `intersects` instead.
        """
        warnings.warn('This method is deprecated. Use is_intersecting() or intersects() instead!',
                      DeprecationWarning, stacklevel=2)
        if isinstance(order, MOC):
            return self.intersects(order)
        return self.is_intersecting(order, npix)

    # ------------------------------------------------------------------ spatial queries

    def contains(self, ra, dec, include_neighbours=False):
        """
        Tell which positions lie in the MOC.

        Parameters
        ----------
        ra, dec : float, `~numpy.ndarray` or `~astropy.units.Quantity`
            Positions in degrees, in the coordinate system of the MOC.
        include_neighbours : bool, optional
            Also accept the positions lying in a cell of the max order touching
            the MOC. False by default.

        Returns
        -------
        result : bool or `~numpy.ndarray`
            A boolean for scalar coordinates, a boolean mask otherwise.
        """
        self._require_consistent()
        scalar = np.ndim(ra) == 0 and np.ndim(dec) == 0
        order = self.max_order
        if order == -1:
            return False if scalar else np.zeros(np.broadcast(np.asarray(ra), np.asarray(dec)).shape, dtype=bool)

        ipix = np.atleast_1d(np.asarray(healpix.ang2pix(order, ra, dec), dtype=np.uint64))
        s = utils.shift(order)
        ranges = self._depth29()
        mask = np.atleast_1d(ranges.contains(ipix << s))

        if include_neighbours:
            for i in np.flatnonzero(~mask):
                neighbours = np.array(sorted(healpix.neighbours(order, int(ipix[i]))), dtype=np.uint64)
                mask[i] = bool(np.any(ranges.contains(neighbours << s)))

        return bool(mask[0]) if scalar else mask

    def query_disc(self, ra, dec, radius):
        """
        The part of the MOC overlapping a cone.

        The cone is approximated by the cells of the max order of the MOC
        overlapping it.

        Parameters
        ----------
        ra, dec : float
            Center of the cone, in degrees.
        radius : float or `~astropy.coordinates.Angle`
            Radius of the cone, in degrees when given as a float.

        Returns
        -------
        result : `MOC`
            The intersection of the MOC with the cone.
        """
        self._require_consistent()
        order = self.max_order
        if order == -1:
            return self._result(IntervalSet())
        ipix = healpix.query_disc(order, ra, dec, radius)
        cone = IntervalSet(utils.to_depth29(order, np.column_stack((ipix, ipix + np.uint64(1)))))
        return self._result(self._depth29().intersection(cone))

    def query_cell(self, order, npix):
        """The part of the MOC lying in the cell (``order``, ``npix``)."""
        self._require_consistent()
        order = healpix.validate_order(order)
        if not self._is_pixel(order, npix):
            raise ValueError(f"pixel {npix} is out of range at order {order}")
        cell = IntervalSet(utils.to_depth29(order, np.array([[npix, npix + 1]], dtype=np.uint64)))
        return self._result(self._depth29().intersection(cell))
