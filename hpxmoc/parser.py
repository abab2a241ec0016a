"""
Parsing of the textual MOC formats.

Two syntaxes are understood:

* the ASCII syntax of the MOC IVOA recommendation, ``"3/1 3-4 9 4/30-31"``,
  extended with the separators of the older MOC files (``,`` and ``;``) and
  with ``:`` as an alternative order separator (``"5:65"``). Pixel numbers
  given before any order are attached to the current order, i.e. the last
  order met by a previous parsing.
* the JSON syntax ``{"3": [1, 3, 4, 9], "4": [30, 31]}``.

Lines starting with ``#`` are comments. The line based MOC files may also
hold ``COORDSYS=``, ``ORDER=``, ``NSIDE=`` and ``ORDERING=`` directives.
"""
import json
import re

import numpy as np
from lark import Lark, Transformer
from lark.exceptions import LarkError

from . import healpix
from .errors import ParseError, OrderOutOfRange
from .interval_set import IntervalSet

__license__ = "BSD 3-Clause License"

_GRAMMAR = r"""
    start: _item*
    _item: order | range | pix
    order: INT ("/" | ":")
    range: INT "-" INT
    pix: INT

    %import common.INT
    %ignore /[\s,;]+/
"""

_DIRECTIVE = re.compile(r'^(COORDSYS|ORDERING|ORDER|NSIDE)\s*=\s*(\S*)\s*$', re.IGNORECASE)

# Initialized by the first call to `parse`
_LARK_PARSER = None


class _TokensToItems(Transformer):
    def start(self, items):
        return items

    def order(self, items):
        return ('order', int(items[0]))

    def range(self, items):
        return ('range', int(items[0]), int(items[1]))

    def pix(self, items):
        return ('pix', int(items[0]))


def _parser():
    global _LARK_PARSER
    if _LARK_PARSER is None:
        _LARK_PARSER = Lark(_GRAMMAR, start='start', parser='lalr')
    return _LARK_PARSER


class ParseResult:
    """
    Cells read from a text.

    Attributes
    ----------
    current_order : int or None
        The last order met, used to continue the parsing of a following text.
    coordsys : str or None
        The coordinate system given by a ``COORDSYS=`` directive.
    """

    def __init__(self, current_order=None):
        self.current_order = current_order
        self.coordsys = None
        self.ring = False
        self._ranges = {}
        self._pixels = {}

    def set_order(self, order):
        if order < 0 or order > healpix.HPX_MAX_ORDER:
            raise OrderOutOfRange(f"HEALPix order {order} is out of range [0, {healpix.HPX_MAX_ORDER}]")
        self.current_order = order
        self._ranges.setdefault(order, [])

    def add_range(self, first, last):
        """Add the pixels [first, last] of the current order."""
        order = self.current_order
        if order is None:
            raise ParseError(f"pixel {first} is not preceded by an order")
        if first > last:
            raise ParseError(f"invalid pixel range {first}-{last}")
        if last >= healpix.npix(order):
            raise ParseError(f"pixel {last} is out of range at order {order} "
                             f"(must be lower than {healpix.npix(order)})")
        self._ranges.setdefault(order, []).append((first, last + 1))

    def add_pixels(self, pixels):
        """Add an array of pixels of the current order."""
        order = self.current_order
        if pixels.size and pixels.max() >= healpix.npix(order):
            raise ParseError(f"pixel {pixels.max()} is out of range at order {order} "
                             f"(must be lower than {healpix.npix(order)})")
        self._pixels.setdefault(order, []).append(pixels)

    @property
    def orders(self):
        return sorted(self._ranges)

    def ranges(self, order):
        """
        Pixel ranges read for ``order``.

        Returns
        -------
        ranges : `~numpy.ndarray`
            N x 2 array of NESTED [start, end) pixel ranges, not merged.
        """
        ranges = np.array(self._ranges.get(order, []), dtype=np.uint64).reshape((-1, 2))
        for pixels in self._pixels.get(order, []):
            ranges = np.concatenate((ranges, np.column_stack((pixels, pixels + np.uint64(1)))))
        if self.ring and ranges.shape[0]:
            ring = IntervalSet(ranges, make_consistent=False).values()
            nested = np.sort(np.atleast_1d(healpix.ring2nest(order, ring)))
            ranges = IntervalSet.from_values(nested).intervals
        return ranges

    def __iter__(self):
        for order in self.orders:
            ranges = self.ranges(order)
            if ranges.shape[0]:
                yield order, ranges


def _apply_directive(result, key, value):
    key = key.upper()
    try:
        if key == 'COORDSYS':
            result.coordsys = value
        elif key == 'ORDER':
            result.set_order(int(value))
        elif key == 'NSIDE':
            result.set_order(healpix.order_of_nside(int(value)))
        elif value.upper() == 'RING':
            result.ring = True
        elif value.upper() != 'NESTED':
            raise ParseError(f"unknown ordering {value!r}")
    except ValueError as err:
        if isinstance(err, (ParseError, OrderOutOfRange)):
            raise
        raise ParseError(f"invalid {key} directive: {value!r}") from err


def _parse_tokens(result, line):
    try:
        items = _TokensToItems().transform(_parser().parse(line))
    except LarkError as err:
        raise ParseError(f"Could not parse {line!r}: {err}") from err

    for item in items:
        if item[0] == 'order':
            result.set_order(item[1])
        elif item[0] == 'range':
            result.add_range(item[1], item[2])
        else:
            result.add_range(item[1], item[1])


def _read_mapping(result, moc):
    if not isinstance(moc, dict):
        raise ParseError("a JSON MOC must be an object mapping orders to pixel lists")

    orders = {}
    for key, pixels in moc.items():
        order = str(key).strip()
        if not order.isdigit():
            raise ParseError(f"invalid order {key!r} in the JSON MOC")
        try:
            pixels = np.asarray(pixels)
        except ValueError as err:
            raise ParseError(f"the pixels of order {key} must be a list of integers") from err
        if pixels.ndim > 1:
            raise ParseError(f"the pixels of order {key} must be a flat list of integers")
        pixels = pixels.ravel()
        if pixels.size and pixels.dtype.kind not in 'iu':
            raise ParseError(f"the pixels of order {key} must be a list of integers")
        orders[int(order)] = pixels

    for order in sorted(orders):
        result.set_order(order)
        pixels = orders[order]
        if pixels.size == 0:
            continue
        if pixels.min() < 0:
            raise ParseError(f"negative pixel number {pixels.min()} at order {order}")
        result.add_pixels(pixels.astype(np.uint64))


def _parse_json(result, text):
    try:
        moc = json.loads(text)
    except json.JSONDecodeError as err:
        raise ParseError(f"Could not parse the JSON MOC: {err}") from err
    _read_mapping(result, moc)


def parse_mapping(moc, current_order=None):
    """
    Read a MOC given as a dictionary of pixel lists indexed by their order.

    The orders may be given as integers or as strings.

    Returns
    -------
    result : `ParseResult`
        The cells read.
    """
    result = ParseResult(current_order)
    _read_mapping(result, moc)
    return result


def parse(text, current_order=None):
    """
    Parse a MOC given as text.

    Parameters
    ----------
    text : str
        The MOC, in the ASCII or the JSON syntax.
    current_order : int, optional
        Order of the pixels given before any explicit order.

    Returns
    -------
    result : `ParseResult`
        The cells read.

    Raises
    ------
    ParseError
        If ``text`` is malformed.
    OrderOutOfRange
        If an order lies outside [0, 29].
    """
    result = ParseResult(current_order)
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line and not line.startswith('#')]
    body = [line for line in lines if _DIRECTIVE.match(line) is None]

    if body and body[0].startswith('{'):
        for line in lines:
            directive = _DIRECTIVE.match(line)
            if directive is not None:
                _apply_directive(result, *directive.groups())
        _parse_json(result, '\n'.join(body))
        return result

    for line in lines:
        directive = _DIRECTIVE.match(line)
        if directive is not None:
            _apply_directive(result, *directive.groups())
        else:
            _parse_tokens(result, line)

    return result
