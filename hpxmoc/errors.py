__license__ = "BSD 3-Clause License"


class MocError(Exception):
    """Base class of all the errors raised by hpxmoc."""


class ParseError(MocError, ValueError):
    """A MOC given as text could not be parsed."""


class OrderOutOfRange(MocError, ValueError):
    """An order lies outside [0, 29] or outside the limit orders of a MOC."""


class InvalidOrder(OrderOutOfRange):
    """An order given to a HEALPix function lies outside [0, 29]."""


class InconsistentMocError(MocError):
    """An operation needing a normalized MOC was called on a MOC left unchecked."""


class MalformedBinaryError(MocError, ValueError):
    """A FITS payload is corrupt or contradicts its own header."""


class CoordSysMismatchError(MocError):
    """Two MOCs expressed in different coordinate systems were combined."""
