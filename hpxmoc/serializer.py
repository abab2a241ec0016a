import warnings
from pathlib import Path

import numpy as np
from astropy.io import fits

from . import consistency, utils
from .errors import MalformedBinaryError
from .healpix import HPX_MAX_ORDER
from .interval_set import IntervalSet

__license__ = "BSD 3-Clause License"

FORMATS = ('fits', 'json', 'ascii', 'basic')
ORDERINGS = ('NUNIQ', 'RANGE')

# the JSON output goes one order per line above this number of cells
JSON_MAX_WORD = 20
JSON_LINE_WIDTH = 80
# pixels per line of the basic format
BASIC_LINE_SIZE = 10

SIGNATURE = 'HPXMOC'
# first NUNIQ number past order 29
_UNIQ_UPPER = 16 << (2 * HPX_MAX_ORDER)


def _check_format(format):
    if format not in FORMATS:
        raise ValueError(f"'format' should be one of {FORMATS}, got {format!r}")


def _json_string(levels, fold=0):
    cells = [(order, level.values()) for order, level in enumerate(levels) if not level.empty()]
    if not cells:
        return "{ }"

    n_cells = sum(ipix.size for _, ipix in cells)
    multiline = fold > 0 or n_cells > JSON_MAX_WORD
    width = fold if fold > 0 else JSON_LINE_WIDTH

    res = ["{"]
    size_line = 0
    for i, (order, ipix) in enumerate(cells):
        if i > 0:
            res.append("],")
        if multiline:
            res.append("\n")
            size_line = 0
        else:
            res.append(" ")

        word = f'"{order}":[{ipix[0]}'
        res.append(word)
        size_line += len(word)
        for p in ipix[1:]:
            word = str(p)
            if multiline and size_line + len(word) > width:
                res.append(",\n ")
                size_line = 3
            else:
                res.append(",")
                size_line += 1
            res.append(word)
            size_line += len(word)

    res.append("]\n}" if multiline else "] }")
    return "".join(res)


def _ascii_string(levels, fold=0):
    words = []
    for order, level in enumerate(levels):
        if level.empty():
            continue
        for k, (start, end) in enumerate(level.intervals):
            cells = f"{start}" if end - start == 1 else f"{start}-{end - np.uint64(1)}"
            words.append(f"{order}/{cells}" if k == 0 else cells)

    if fold <= 0:
        return " ".join(words)

    lines = []
    line = ""
    for word in words:
        if line and len(line) + len(word) + 1 > fold:
            lines.append(line)
            line = " " + word
        else:
            line = f"{line} {word}" if line else word
    lines.append(line)
    return "\n".join(lines)


def _basic_string(levels, coordsys):
    lines = ["#" + SIGNATURE, f"COORDSYS={coordsys}"]
    for order, level in enumerate(levels):
        if level.empty():
            continue
        lines.append("")
        lines.append(f"ORDER={order}")
        ipix = level.values()
        for i in range(0, ipix.size, BASIC_LINE_SIZE):
            lines.append(" ".join(str(p) for p in ipix[i:i + BASIC_LINE_SIZE]))
    return "\n".join(lines)


def _compress(uniq, order):
    # Runs of consecutive values of one order are written as their first
    # value followed by their negated last value. Runs of two values are
    # written as is.
    uniq = uniq.astype(np.int64)
    if uniq.size == 0:
        return uniq

    breaks = np.flatnonzero((np.diff(uniq) != 1) | (np.diff(order.astype(np.int64)) != 0)) + 1
    res = []
    for run in np.split(uniq, breaks):
        res.append(run[0])
        if run.size == 2:
            res.append(run[1])
        elif run.size > 2:
            res.append(-run[-1])
    return np.array(res, dtype=np.int64)


def _uncompress(values):
    values = np.asarray(values, dtype=np.int64)
    negative = values < 0
    if not negative.any():
        return values.astype(np.uint64)

    idx = np.flatnonzero(negative)
    if idx[0] == 0 or negative[idx - 1].any():
        raise MalformedBinaryError("a negative value of a compressed MOC must follow a positive one")

    first = values[idx - 1] + 1
    last = -values[idx]
    if np.any(last < first):
        raise MalformedBinaryError("invalid range in a compressed MOC")

    singles = values[~negative]
    runs = IntervalSet(np.column_stack((first, last + 1)), make_consistent=False)
    return np.concatenate((singles.astype(np.uint64), runs.values()))


def _to_hdulist(moc, ordering='NUNIQ', compressed=False, fits_keywords=None):
    ordering = ordering.upper()
    if ordering not in ORDERINGS:
        raise ValueError(f"'ordering' should be one of {ORDERINGS}, got {ordering!r}")

    levels = moc._normalized_levels()
    max_order = max((order for order, level in enumerate(levels) if not level.empty()), default=0)

    if ordering == 'NUNIQ':
        orders = np.concatenate([np.full(level.n_values(), order, dtype=np.uint8)
                                 for order, level in enumerate(levels)] + [np.zeros(0, dtype=np.uint8)])
        uniq = np.concatenate([utils.orderipix2uniq(order, level.values())
                               for order, level in enumerate(levels)] + [np.zeros(0, dtype=np.uint64)])
        data = _compress(uniq, orders) if compressed else uniq.astype(np.int64)
        fmt = '1K' if max_order >= 14 else '1J'
        data = data.astype(np.int64 if fmt == '1K' else np.int32)
        column = fits.Column(name='UNIQ', format=fmt, array=data)
    else:
        if compressed:
            raise ValueError("Only the NUNIQ ordering can be compressed")
        ranges = consistency.levels_to_depth29(levels).intervals
        column = fits.Column(name='RANGE', format='2K', array=ranges.astype(np.int64))

    hdu = fits.BinTableHDU.from_columns([column])
    hdu.header['PIXTYPE'] = ('HEALPIX', 'HEALPix magic code')
    hdu.header['ORDERING'] = (ordering, 'Coding method of the cells')
    hdu.header['COORDSYS'] = (moc.coordsys, 'Reference frame')
    hdu.header['MOCDIM'] = ('SPACE', 'Physical dimension')
    hdu.header['MOCORDER'] = (max_order, 'MOC resolution (best order)')
    hdu.header[SIGNATURE] = (max_order, 'MOC resolution (best order)')
    hdu.header['MOCCOMPR'] = (bool(compressed), 'Runs of cells written as first, -last')
    hdu.header['MOCVERS'] = ('2.0', 'MOC version')
    hdu.header['MOCTOOL'] = ('hpxmoc', 'Name of the MOC generator')
    if fits_keywords:
        for key in fits_keywords:
            hdu.header[key] = fits_keywords[key]

    return fits.HDUList([fits.PrimaryHDU(), hdu])


def _check_max_order(header, max_order):
    declared = header.get('MOCORDER', header.get(SIGNATURE))
    if declared is None:
        return
    if not isinstance(declared, (int, np.integer)) or not 0 <= declared <= HPX_MAX_ORDER:
        raise MalformedBinaryError(f"invalid MOCORDER value {declared!r}")
    if max_order > declared:
        raise MalformedBinaryError(f"cells of order {max_order} found in a MOC of order {declared}")


def _from_hdulist(hdulist):
    """
    Read the depth-29 coverage of the first binary table of ``hdulist``.

    Returns
    -------
    (ranges, coordsys) : (`~hpxmoc.interval_set.IntervalSet`, str)
    """
    hdu = next((hdu for hdu in hdulist if isinstance(hdu, fits.BinTableHDU)), None)
    if hdu is None:
        raise MalformedBinaryError("No binary table found in the FITS file")

    header = hdu.header
    coordsys = header.get('COORDSYS')
    if coordsys is None:
        warnings.warn("No COORDSYS keyword found in the FITS header, assuming galactic coordinates ('G')",
                      UserWarning, stacklevel=3)
        coordsys = 'G'

    if hdu.data is None or len(hdu.columns) == 0:
        return IntervalSet(), coordsys

    column = hdu.data.field(0)
    if column.dtype.kind not in 'iu':
        raise MalformedBinaryError(f"MOC cells must be stored as integers, got column type {column.dtype}")

    ordering = str(header.get('ORDERING', 'NUNIQ')).upper()
    if ordering == 'NUNIQ':
        uniq = _uncompress(np.asarray(column).ravel())
        if uniq.size == 0:
            return IntervalSet(), coordsys
        if np.any(uniq < np.uint64(4)):
            raise MalformedBinaryError("NUNIQ numbers must be greater or equal to 4")
        if np.any(uniq >= np.uint64(_UNIQ_UPPER)):
            raise MalformedBinaryError(f"NUNIQ number {uniq.max()} is beyond order {HPX_MAX_ORDER}")
        order, _ = utils.uniq2orderipix(uniq)
        _check_max_order(header, int(order.max()))
        return IntervalSet.from_uniq(uniq), coordsys

    if ordering in ('RANGE', 'RANGE29'):
        ranges = np.asarray(column, dtype=np.int64).reshape((-1, 2))
        if np.any(ranges < 0) or np.any(ranges[:, 0] >= ranges[:, 1]):
            raise MalformedBinaryError("invalid [start, end) range in the MOC")
        ranges = ranges.astype(np.uint64)
        if ranges.size and ranges.max() > IntervalSet.HPX_UPPER:
            raise MalformedBinaryError("range beyond the last HEALPix cell of order 29")

        declared = header.get('MOCORDER')
        if declared is not None:
            _check_max_order(header, 0)
            step = np.uint64(1) << utils.shift(declared)
            if np.any(ranges % step != 0):
                raise MalformedBinaryError(f"range bounds are not aligned on cells of order {declared}")
        return IntervalSet(ranges), coordsys

    raise MalformedBinaryError(f"Unknown ORDERING {ordering!r}")


class IO:
    """Input and outputs for MOCs."""

    def serialize(self, format="fits", ordering="NUNIQ", compressed=False, fits_keywords=None):
        """
        Serialize the MOC into a specific format.

        Parameters
        ----------
        format : str
            'fits' by default. The other possible choices are 'json', 'ascii' and 'basic'.
        ordering : str, optional
            'NUNIQ' (default) or 'RANGE'. Only used for the FITS format.
        compressed : bool, optional
            Write the runs of consecutive NUNIQ cells as ranges. Only used for the FITS format.
        fits_keywords : dict, optional
            Additional keywords added to the FITS header.

        Returns
        -------
        result : `astropy.io.fits.HDUList`, dict or str
            The HDU list for FITS, a dictionary of pixel lists indexed by their order for JSON,
            and the text of the MOC otherwise.
        """
        _check_format(format)

        if format == "fits":
            return _to_hdulist(self, ordering=ordering, compressed=compressed, fits_keywords=fits_keywords)
        if format == "json":
            return {str(order): level.values().tolist()
                    for order, level in enumerate(self._normalized_levels()) if not level.empty()}
        return self.to_string(format=format)

    def to_string(self, format="json", fold=0):
        """
        Write the MOC into a string.

        The JSON layout is the historical one: ``{ "3":[1,3,4,9], "4":[30,31] }``.
        Above 20 cells, or when ``fold`` is given, each order starts a new line
        and the lines are folded at 80 characters (or ``fold``).

        Parameters
        ----------
        format : str
            'json' (default), 'ascii' for the IVOA syntax ``3/1 3-4 9 4/30-31``, or 'basic'
            for the line based syntax of the early MOC files.
        fold : int
            If > 0, the maximum line width of the 'json' and 'ascii' outputs.
        """
        levels = self._normalized_levels()
        if format == "json":
            return _json_string(levels, fold)
        if format == "ascii":
            return _ascii_string(levels, fold)
        if format == "basic":
            return _basic_string(levels, self.coordsys)
        raise ValueError(f"'format' should be one of ('json', 'ascii', 'basic'), got {format!r}")

    def save(self, path, format="fits", overwrite=False, ordering="NUNIQ", compressed=False,
             fold=0, fits_keywords=None):
        """
        Write the MOC to a file.

        Parameters
        ----------
        path : str or `pathlib.Path`
            The path to the file to save the MOC in.
        format : str, optional
            One of 'fits' (default), 'json', 'ascii' or 'basic'.
        overwrite : bool, optional
            If the file already exists and you want to overwrite it, then set the ``overwrite`` keyword.
            Default to False.
        ordering : str, optional
            FITS only: 'NUNIQ' (default) or 'RANGE'.
        compressed : bool, optional
            FITS only: write the runs of consecutive NUNIQ cells as ranges.
        fold : int, optional
            'json' and 'ascii' only: maximum line width.
        fits_keywords : dict, optional
            FITS only: additional keywords of the binary table header.
        """
        _check_format(format)
        path = Path(path)
        if path.is_file() and not overwrite:
            raise OSError(f"File '{path}' already exists! Set ``overwrite`` to "
                          "True if you want to replace it.")

        if format == "fits":
            hdulist = _to_hdulist(self, ordering=ordering, compressed=compressed, fits_keywords=fits_keywords)
            hdulist.writeto(path, overwrite=overwrite)
            return

        if format in ("json", "ascii"):
            text = "\n".join(("#" + SIGNATURE, f"COORDSYS={self.coordsys}",
                               self.to_string(format=format, fold=fold)))
        else:
            text = self.to_string(format="basic")

        with open(path, "w") as f_out:
            f_out.write(text + "\n")

    def write(self, path, format="fits", overwrite=False, **kwargs):
        """
        Write the MOC to a file.

        .. deprecated::
            Use `save` instead.
        """
        warnings.warn('This method is deprecated. Use MOC.save(path, "fits") instead!',
                      DeprecationWarning, stacklevel=2)
        self.save(path, format=format, overwrite=overwrite, **kwargs)

    @classmethod
    def load(cls, path, format="fits"):
        """
        Load a MOC from a file.

        Parameters
        ----------
        path : str or `pathlib.Path`
            The path to the file to load the MOC from.
        format : str, optional
            One of 'fits' (default), 'json', 'ascii' or 'basic'. The three text
            formats are read by the same parser.

        Returns
        -------
        moc : `~hpxmoc.moc.MOC`
            The MOC read, normalized.

        Raises
        ------
        MalformedBinaryError
            If the FITS content does not describe a valid MOC.
        ParseError
            If the text content cannot be parsed.
        """
        _check_format(format)
        if format == "fits":
            with fits.open(path) as hdulist:
                return cls.from_fits_hdulist(hdulist)

        with open(path) as f_in:
            return cls.from_str(f_in.read())

    @classmethod
    def from_fits_hdulist(cls, hdulist):
        """Create a MOC from the first binary table of an `~astropy.io.fits.HDUList`."""
        ranges, coordsys = _from_hdulist(hdulist)
        return cls._from_depth29(ranges, coordsys=coordsys)
