import pytest
import numpy as np
from .. import utils


@pytest.mark.parametrize("order, ipix, uniq", [
    (0, 0, 4),
    (0, 11, 15),
    (1, 0, 16),
    (3, 100, 356),
    (29, 0, 4 * 4**29),
    (29, 12 * 4**29 - 1, 16 * 4**29 - 1),
])
def test_uniq(order, ipix, uniq):
    assert utils.orderipix2uniq(order, ipix) == np.uint64(uniq)
    o, p = utils.uniq2orderipix(np.array([uniq], dtype=np.uint64))
    assert o[0] == order
    assert p[0] == np.uint64(ipix)


def test_uniq_deep_orders_are_exact():
    # float based log2 would misplace these numbers
    uniq = np.array([4 * 4**28 + 12 * 4**28 - 1, 4 * 4**29, 4 * 4**29 + 1], dtype=np.uint64)
    order, ipix = utils.uniq2orderipix(uniq)
    assert (order == np.array([28, 29, 29])).all()
    assert (ipix == np.array([12 * 4**28 - 1, 0, 1], dtype=np.uint64)).all()


def test_depth29_conversions():
    ranges = np.array([[1, 3]], dtype=np.uint64)
    at29 = utils.to_depth29(28, ranges)
    assert (at29 == np.array([[4, 12]], dtype=np.uint64)).all()
    assert (utils.from_depth29(28, at29) == ranges).all()
    # partial cells are widened
    assert (utils.from_depth29(28, np.array([[5, 9]], dtype=np.uint64)) ==
            np.array([[1, 3]], dtype=np.uint64)).all()


def test_shift():
    assert utils.shift(29) == np.uint64(0)
    assert utils.shift(0) == np.uint64(58)
