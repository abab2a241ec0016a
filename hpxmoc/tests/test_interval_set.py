import pytest
import numpy as np
from ..interval_set import IntervalSet


@pytest.fixture()
def isets():
    a = IntervalSet(np.array([[49, 73], [53, 54], [33, 63], [65, 80],
        [51, 80], [100, 126], [38, 68], [61, 72],
        [74, 102], [27, 43]], dtype=np.uint64))
    b = IntervalSet(np.array([[17, 26], [17, 41], [12, 31], [32, 61],
        [68, 90], [77, 105], [18, 27], [12, 35],
        [9, 37], [87, 97]], dtype=np.uint64))
    return dict(a=a, b=b)


def test_interval_set_consistency(isets):
    assert isets['a'] == IntervalSet(np.array([[27, 126]], dtype=np.uint64))
    assert isets['b'] == IntervalSet(np.array([[9, 61], [68, 105]], dtype=np.uint64))


def test_interval_set_lazy_merge():
    itv = IntervalSet(np.array([[4, 8], [0, 4], [10, 12]], dtype=np.uint64), make_consistent=False)
    assert not itv.is_merged
    assert len(itv) == 3
    assert (itv.intervals == np.array([[0, 8], [10, 12]], dtype=np.uint64)).all()
    # reading the merged view does not modify the stored intervals
    assert len(itv) == 3
    assert itv.merge() is itv
    assert itv.is_merged
    assert len(itv) == 2


def test_interval_set_bad_shape():
    with pytest.raises(ValueError):
        IntervalSet(np.array([1, 2, 3], dtype=np.uint64))


def test_interval_set_union(isets):
    assert isets['a'].union(isets['b']) == IntervalSet(np.array([[9, 126]], dtype=np.uint64))
    assert isets['a'].union(IntervalSet()) == IntervalSet(np.array([[27, 126]], dtype=np.uint64))
    assert IntervalSet().union(isets['a']) == IntervalSet(np.array([[27, 126]], dtype=np.uint64))


def test_interval_set_intersection(isets):
    assert isets['a'].intersection(isets['b']) == IntervalSet(np.array([[27, 61], [68, 105]], dtype=np.uint64))
    assert isets['a'].intersection(IntervalSet()) == IntervalSet()
    assert IntervalSet().intersection(isets['a']) == IntervalSet()


def test_interval_set_difference(isets):
    assert isets['a'].difference(isets['b']) == IntervalSet(np.array([[61, 68], [105, 126]], dtype=np.uint64))
    assert isets['b'].difference(isets['a']) == IntervalSet(np.array([[9, 27]], dtype=np.uint64))
    assert IntervalSet().difference(isets['a']) == IntervalSet()
    assert isets['a'].difference(IntervalSet()) == isets['a']


def test_interval_set_symmetric_difference(isets):
    assert isets['a'].symmetric_difference(isets['b']) == \
        IntervalSet(np.array([[9, 27], [61, 68], [105, 126]], dtype=np.uint64))
    assert isets['b'].symmetric_difference(isets['a']) == isets['a'].symmetric_difference(isets['b'])
    assert isets['a'].symmetric_difference(isets['a']) == IntervalSet()


def test_interval_set_complement():
    assert IntervalSet().complement() == IntervalSet(np.array([[0, 12*4**29]], dtype=np.uint64))
    assert IntervalSet().complement().complement() == IntervalSet()
    assert IntervalSet(np.array([[1, 2], [6, 8], [5, 6]], dtype=np.uint64)).complement() == \
        IntervalSet(np.array([[0, 1], [2, 5], [8, 12*4**29]], dtype=np.uint64))
    assert IntervalSet(np.array([[2, 5]], dtype=np.uint64)).complement(upper=10) == \
        IntervalSet(np.array([[0, 2], [5, 10]], dtype=np.uint64))


@pytest.fixture()
def isets2():
    nested1 = IntervalSet(np.array([[0, 1]], dtype=np.uint64))
    nuniq1 = np.array([4*4**29], dtype=np.uint64)
    nested2 = IntervalSet(np.array([[7, 76]], dtype=np.uint64))
    nuniq2 = np.array([1 + 4*4**27, 2 + 4*4**27, 3 + 4*4**27,
                      2 + 4*4**28, 3 + 4*4**28,
                      16 + 4*4**28, 17 + 4*4**28, 18 + 4*4**28,
                      7 + 4*4**29], dtype=np.uint64)
    return {
        'nest1': nested1,
        'uniq1': nuniq1,
        'nest2': nested2,
        'uniq2': nuniq2,
    }


def test_from_uniq(isets2):
    assert IntervalSet.from_uniq(isets2['uniq1']) == isets2['nest1']
    assert IntervalSet.from_uniq(isets2['uniq2']) == isets2['nest2']
    # empty nuniq interval set
    assert IntervalSet.from_uniq(np.array([], dtype=np.uint64)) == IntervalSet()


def test_from_values():
    assert IntervalSet.from_values([5, 1, 2, 3, 9]) == \
        IntervalSet(np.array([[1, 4], [5, 6], [9, 10]], dtype=np.uint64))


def test_repr_interval_set(isets):
    assert repr(isets['a']) == "[[ 27 126]]"
    assert repr(isets['b']) == "[[  9  61]\n" \
                               " [ 68 105]]"


def test_contains(isets):
    assert isets['b'].contains(9)
    assert not isets['b'].contains(61)
    assert not isets['b'].contains(8)
    mask = isets['b'].contains(np.array([9, 60, 61, 67, 68, 104, 105], dtype=np.uint64))
    assert (mask == np.array([True, True, False, False, True, True, False])).all()
    assert not IntervalSet().contains(0)


def test_intersects(isets):
    assert isets['b'].intersects_range(60, 62)
    assert not isets['b'].intersects_range(61, 68)
    assert isets['b'].intersects_range(0, 10)
    assert not IntervalSet().intersects_range(0, 10)
    assert isets['a'].intersects(isets['b'])
    assert not isets['a'].intersects(IntervalSet(np.array([[0, 27]], dtype=np.uint64)))


def test_values_and_count():
    itv = IntervalSet(np.array([[2, 5], [8, 9]], dtype=np.uint64))
    assert (itv.values() == np.array([2, 3, 4, 8], dtype=np.uint64)).all()
    assert itv.n_values() == 4
    assert IntervalSet().values().size == 0
    assert IntervalSet().n_values() == 0


def test_degrade():
    # order 28 cell 1 is [4, 8) at order 29
    itv = IntervalSet(np.array([[5, 6], [17, 18]], dtype=np.uint64))
    assert itv.degrade(28) == IntervalSet(np.array([[4, 8], [16, 20]], dtype=np.uint64))


def test_concatenate_keeps_raw_intervals():
    itv = IntervalSet(np.array([[0, 4]], dtype=np.uint64)).concatenate(np.array([[2, 6]], dtype=np.uint64))
    assert not itv.is_merged
    assert len(itv) == 2
    assert itv == IntervalSet(np.array([[0, 6]], dtype=np.uint64))


def test_copy_is_independent(isets):
    c = isets['b'].copy()
    assert c == isets['b']
    c.raw_intervals[0, 0] = 0
    assert isets['b'].intervals[0, 0] == np.uint64(9)
