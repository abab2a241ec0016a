"""
HEALPix helpers used by the MOC classes.

Positions are converted with `cdshealpix` for the NESTED scheme (the one MOCs
are written in) and with `astropy_healpix` for the RING scheme and the
conversions between both numberings.
"""
import enum

import numpy as np
from astropy import units as u
from astropy.coordinates import Angle, Longitude, Latitude, angular_separation

import cdshealpix
import astropy_healpix
from astropy_healpix.core import nested_to_ring, ring_to_nested

from .errors import InvalidOrder

__license__ = "BSD 3-Clause License"

HPX_MAX_ORDER = 29


class Scheme(enum.Enum):
    """HEALPix pixel numbering schemes."""
    NESTED = 'nested'
    RING = 'ring'


def validate_order(order):
    """
    Check that ``order`` is a valid HEALPix order.

    Raises
    ------
    InvalidOrder
        If ``order`` is not an integer in [0, 29].
    """
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        raise InvalidOrder(f"HEALPix order must be an integer, got {order!r}")
    if order < 0 or order > HPX_MAX_ORDER:
        raise InvalidOrder(f"HEALPix order {order} is out of range [0, {HPX_MAX_ORDER}]")
    return int(order)


def nside(order):
    return 1 << validate_order(order)


def npix(order):
    """Number of pixels covering the sky at ``order``: 12 * 4^order."""
    return 12 << (2 * validate_order(order))


def order_of_nside(nside_value):
    """
    Order matching a HEALPix nside.

    Raises
    ------
    InvalidOrder
        If ``nside_value`` is not a power of two or its order exceeds 29.
    """
    nside_value = int(nside_value)
    if nside_value <= 0 or nside_value & (nside_value - 1):
        raise InvalidOrder(f"nside {nside_value} is not a power of two")
    return validate_order(nside_value.bit_length() - 1)


def _check_ipix(order, ipix):
    ipix = np.asarray(ipix)
    if ipix.size and (np.any(ipix < 0) or np.any(ipix >= npix(order))):
        raise ValueError(f"pixel numbers must lie in [0, {npix(order)}) at order {order}")
    return ipix.astype(np.uint64)


def _to_lonlat(ra, dec):
    ra = ra if isinstance(ra, Longitude) else Longitude(ra, unit=u.deg)
    dec = dec if isinstance(dec, Latitude) else Latitude(dec, unit=u.deg)
    return ra, dec


def ang2pix(order, ra, dec, scheme=Scheme.NESTED):
    """
    Pixel containing a sky position.

    Parameters
    ----------
    order : int
        HEALPix order of the pixel.
    ra, dec : float, `~numpy.ndarray` or `~astropy.units.Quantity`
        Position in degrees. The right ascension is wrapped into [0, 360), the
        declination must lie in [-90, 90].
    scheme : `Scheme`, optional
        Numbering scheme of the returned pixel. NESTED by default.

    Returns
    -------
    ipix : int or `~numpy.ndarray`
        The pixel number(s). A scalar is returned for scalar coordinates.
    """
    order = validate_order(order)
    scalar = np.ndim(ra) == 0 and np.ndim(dec) == 0
    ra, dec = _to_lonlat(np.atleast_1d(ra), np.atleast_1d(dec))
    ra, dec = np.broadcast_arrays(ra, dec, subok=True)

    if Scheme(scheme) is Scheme.NESTED:
        ipix = cdshealpix.lonlat_to_healpix(Longitude(ra), Latitude(dec), order)
    else:
        ipix = astropy_healpix.HEALPix(nside=1 << order, order='ring').lonlat_to_healpix(ra, dec)

    ipix = np.asarray(ipix, dtype=np.uint64)
    return int(ipix[0]) if scalar else ipix


def pix2ang(order, ipix, scheme=Scheme.NESTED):
    """
    Center of a pixel.

    Returns
    -------
    (ra, dec) : tuple of float or of `~numpy.ndarray`
        The center of the pixel(s), in degrees.
    """
    order = validate_order(order)
    scalar = np.ndim(ipix) == 0
    ipix = _check_ipix(order, np.atleast_1d(ipix))

    if Scheme(scheme) is Scheme.NESTED:
        lon, lat = cdshealpix.healpix_to_lonlat(ipix, order)
    else:
        lon, lat = astropy_healpix.HEALPix(nside=1 << order, order='ring').healpix_to_lonlat(ipix.astype(np.int64))

    ra = np.asarray(lon.to_value(u.deg), dtype=np.float64)
    dec = np.asarray(lat.to_value(u.deg), dtype=np.float64)
    if scalar:
        return float(ra[0]), float(dec[0])
    return ra, dec


def neighbours(order, ipix, scheme=Scheme.NESTED):
    """
    Pixels sharing an edge or a corner with ``ipix``.

    The pixel itself is not part of the result. Some pixels have only 7
    neighbours; the missing one is dropped.

    Returns
    -------
    neighbours : set of int
    """
    order = validate_order(order)
    ipix = _check_ipix(order, np.atleast_1d(ipix))

    if Scheme(scheme) is Scheme.NESTED:
        neigh = np.asarray(cdshealpix.neighbours(ipix, order), dtype=np.int64)
        # column 4 holds the pixel itself
        neigh = np.delete(neigh, 4, axis=1)
    else:
        neigh = np.asarray(astropy_healpix.neighbours(ipix.astype(np.int64), 1 << order, order='ring'),
                           dtype=np.int64).T

    return {int(p) for p in neigh.ravel() if p >= 0}


def nest2ring(order, ipix):
    """Convert NESTED pixel numbers into RING ones."""
    order = validate_order(order)
    scalar = np.ndim(ipix) == 0
    ipix = _check_ipix(order, np.atleast_1d(ipix))
    ring = np.asarray(nested_to_ring(ipix.astype(np.int64), 1 << order), dtype=np.uint64)
    return int(ring[0]) if scalar else ring


def ring2nest(order, ipix):
    """Convert RING pixel numbers into NESTED ones."""
    order = validate_order(order)
    scalar = np.ndim(ipix) == 0
    ipix = _check_ipix(order, np.atleast_1d(ipix))
    nested = np.asarray(ring_to_nested(ipix.astype(np.int64), 1 << order), dtype=np.uint64)
    return int(nested[0]) if scalar else nested


def parent(order, ipix, delta=1):
    """
    Ancestor of a NESTED pixel ``delta`` orders above.

    Raises
    ------
    InvalidOrder
        If the ancestor order would be negative.
    """
    validate_order(validate_order(order) - delta)
    return int(ipix) >> (2 * delta)


def children(order, ipix):
    """The four NESTED children of ``ipix``, at ``order + 1``."""
    validate_order(validate_order(order) + 1)
    first = int(ipix) << 2
    return [first + i for i in range(4)]


def query_disc(order, ra, dec, radius, inclusive=True):
    """
    NESTED pixels at ``order`` overlapping a cone.

    Parameters
    ----------
    order : int
        Order of the returned pixels.
    ra, dec : float
        Center of the cone, in degrees.
    radius : float or `~astropy.coordinates.Angle`
        Radius of the cone, in degrees when given as a float.
    inclusive : bool, optional
        True by default: every pixel overlapping the cone is returned. When False,
        only the pixels whose center lies in the cone are kept.

    Returns
    -------
    ipix : `~numpy.ndarray`
        The sorted pixel numbers.
    """
    order = validate_order(order)
    lon, lat = _to_lonlat(ra, dec)
    radius = radius if isinstance(radius, Angle) else Angle(radius, unit=u.deg)
    ipix, _, _ = cdshealpix.cone_search(lon, lat, radius, order, flat=True)
    ipix = np.unique(np.asarray(ipix, dtype=np.uint64))

    if not inclusive and ipix.size:
        center_lon, center_lat = cdshealpix.healpix_to_lonlat(ipix, order)
        ipix = ipix[angular_separation(lon, lat, center_lon, center_lat) <= radius]
    return ipix


def pixel_area(order):
    """Area of one pixel at ``order``, in square degrees."""
    area = astropy_healpix.nside_to_pixel_area(nside(order))
    return float(area.to_value(u.deg ** 2))


def pixel_resolution(order):
    """Angular size of one pixel at ``order`` (square root of its area), in degrees."""
    return float(np.sqrt(pixel_area(order)))
