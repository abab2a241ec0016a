# Licensed under a 3-clause BSD style license - see LICENSE
"""
hpxmoc is a Python library allowing the creation and manipulation of HEALPix MOCs (Multi-Order Coverage maps). MOC is an `IVOA standard <http://ivoa.net/documents/MOC/>` enabling description of arbitrary sky regions. Based on the HEALPix sky tessellation, it maps regions on the sky into hierarchically grouped predefined cells.\nMOCs can be read from and written to the ASCII, JSON and FITS serializations of the standard.
"""

from .moc import MOC, Cell
from .interval_set import IntervalSet
from .healpix import Scheme
from .errors import (MocError, ParseError, OrderOutOfRange, InvalidOrder, InconsistentMocError,
                     MalformedBinaryError, CoordSysMismatchError)
from .version import __version__
