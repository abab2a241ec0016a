import pytest

import numpy as np

from ..moc import MOC
from ..errors import CoordSysMismatchError, InconsistentMocError


@pytest.fixture()
def mocs():
    moc1 = MOC("3/1,3-4,9 4/30-31")
    moc2 = MOC("4/23 3/3 10 4/23-28;4/29 5/65")
    return dict(moc1=moc1, moc2=moc2)


def test_fixtures(mocs):
    assert str(mocs['moc1']) == '{ "3":[1,3,4,9], "4":[30,31] }'
    assert str(mocs['moc2']) == '{ "3":[3,6,10], "4":[23,28,29], "5":[65] }'
    assert str(mocs['moc2'].clone()) == '{ "3":[3,6,10], "4":[23,28,29], "5":[65] }'


def test_intersection(mocs):
    expected = '{ "3":[3], "5":[65] }'
    assert str(mocs['moc2'].intersection(mocs['moc1'])) == expected
    assert str(mocs['moc1'].intersection(mocs['moc2'])) == expected
    assert str(mocs['moc1'] & mocs['moc2']) == expected


def test_union(mocs):
    expected = '{ "3":[1,3,4,6,7,9,10], "4":[23] }'
    assert str(mocs['moc2'].union(mocs['moc1'])) == expected
    assert str(mocs['moc1'].union(mocs['moc2'])) == expected
    assert str(mocs['moc1'] | mocs['moc2']) == expected
    assert str(mocs['moc1'] + mocs['moc2']) == expected


def test_subtraction(mocs):
    assert str(mocs['moc1'].subtraction(mocs['moc2'])) == \
        '{ "3":[1,9], "4":[17,18,19,30,31], "5":[64,66,67] }'
    assert str(mocs['moc1'] - mocs['moc2']) == \
        '{ "3":[1,9], "4":[17,18,19,30,31], "5":[64,66,67] }'
    assert str(mocs['moc2'].subtraction(mocs['moc1'])) == '{ "3":[6,10], "4":[23,28,29] }'


def test_difference(mocs):
    expected = '{ "3":[1,6,7,9,10], "4":[17,18,19,23], "5":[64,66,67] }'
    assert str(mocs['moc1'].difference(mocs['moc2'])) == expected
    assert str(mocs['moc2'].difference(mocs['moc1'])) == expected
    assert str(mocs['moc1'] ^ mocs['moc2']) == expected


def random_moc(rng, size):
    orders = rng.integers(0, 8, size)
    ipix = (rng.random(size) * 12 * 4 ** orders).astype(np.int64)
    return MOC.from_cells(orders, ipix)


@pytest.mark.parametrize("seed", range(10))
def test_commutativity(seed):
    rng = np.random.default_rng(seed)
    a = random_moc(rng, 50)
    b = random_moc(rng, 80)
    assert a.union(b) == b.union(a)
    assert a.intersection(b) == b.intersection(a)
    assert a.difference(b) == b.difference(a)
    assert a.difference(b) == a.union(b).subtraction(a.intersection(b))


def test_operands_are_untouched(mocs):
    mocs['moc1'].union(mocs['moc2'])
    mocs['moc1'].subtraction(mocs['moc2'])
    assert str(mocs['moc1']) == '{ "3":[1,3,4,9], "4":[30,31] }'
    assert str(mocs['moc2']) == '{ "3":[3,6,10], "4":[23,28,29], "5":[65] }'


def test_multiple_operands():
    a, b, c = MOC("1/0"), MOC("1/1"), MOC("1/2-3")
    assert a.union(b, c) == MOC("0/0")
    assert MOC("0/0").intersection(MOC("1/0-1"), MOC("1/1-2")) == MOC("1/1")
    assert a.union() == a


def test_complement():
    moc = MOC("0/2-11 1/1-3")
    assert str(moc.complement()) == '{ "0":[1], "1":[0] }'
    assert ~moc == moc.complement()
    assert moc.complement().complement() == moc
    assert MOC().complement() == MOC("0/0-11")


def test_empty_operands(mocs):
    empty = MOC()
    assert mocs['moc1'].union(empty) == mocs['moc1']
    assert mocs['moc1'].intersection(empty).empty()
    assert mocs['moc1'].subtraction(empty) == mocs['moc1']
    assert empty.subtraction(mocs['moc1']).empty()


def test_result_keeps_limit_orders():
    a = MOC("3/1", max_limit_order=3)
    res = a.union(MOC("5/1000"))
    assert res.max_limit_order == 3
    assert str(res) == '{ "3":[1,62] }'


def test_intersects(mocs):
    assert mocs['moc1'].intersects(mocs['moc2'])
    assert not MOC("0/1").intersects(MOC("0/2"))
    assert MOC("0/1").intersects(MOC("1/5"))


def test_coordsys_mismatch(mocs):
    galactic = MOC("3/1", coordsys='G')
    with pytest.raises(CoordSysMismatchError, match="'G'"):
        mocs['moc1'].union(galactic)
    with pytest.raises(CoordSysMismatchError):
        mocs['moc1'].difference(galactic)
    with pytest.raises(TypeError):
        mocs['moc1'].union("3/1")


def test_inconsistent_operand(mocs):
    dirty = MOC()
    dirty.set_check_consistency(False)
    dirty.add("3/1 4/4")
    for op in (mocs['moc1'].union, mocs['moc1'].intersection, mocs['moc1'].subtraction,
               mocs['moc1'].difference, mocs['moc1'].intersects):
        with pytest.raises(InconsistentMocError):
            op(dirty)
    with pytest.raises(InconsistentMocError):
        dirty.complement()
    dirty.check_and_fix()
    assert mocs['moc1'].union(dirty) == mocs['moc1']
