import pytest

import numpy as np

from .. import parser
from ..errors import ParseError, OrderOutOfRange


def ranges(result):
    return {order: r.tolist() for order, r in result}


def test_parse_ascii():
    result = parser.parse("3/1,3-4;9 4:30-31")
    assert ranges(result) == {3: [[1, 2], [3, 5], [9, 10]], 4: [[30, 32]]}
    assert result.current_order == 4
    assert result.coordsys is None


def test_parse_continues_current_order():
    result = parser.parse("5 6", current_order=2)
    assert ranges(result) == {2: [[5, 6], [6, 7]]}


def test_parse_json():
    result = parser.parse('{ "3":[1,3,4,9],\n "4":[30,31] }')
    assert result.orders == [3, 4]
    assert result.ranges(4).tolist() == [[30, 31], [31, 32]]


def test_parse_directives():
    result = parser.parse("#HPXMOC\ncoordsys=E\nORDER=2\n1 2\nNSIDE=8\n7")
    assert result.coordsys == 'E'
    assert ranges(result) == {2: [[1, 2], [2, 3]], 3: [[7, 8]]}


def test_parse_empty_order():
    result = parser.parse("3/ 4/1")
    assert result.orders == [3, 4]
    assert ranges(result) == {4: [[1, 2]]}


def test_parse_mapping():
    result = parser.parse_mapping({4: np.array([30, 31]), '3': [1]})
    assert ranges(result) == {3: [[1, 2]], 4: [[30, 31], [31, 32]]}
    with pytest.raises(ParseError):
        parser.parse_mapping([1, 2])
    with pytest.raises(ParseError, match="flat list"):
        parser.parse_mapping({"3": [[1, 2]]})
    with pytest.raises(ParseError):
        parser.parse_mapping({"3": [[1], [2, 3]]})
    with pytest.raises(ParseError):
        parser.parse('{ "3":[[1,2]] }')


@pytest.mark.parametrize("text, error", [
    ("1 2", ParseError),
    ("3/1 x", ParseError),
    ("NSIDE=3\n1", OrderOutOfRange),
    ("ORDER=x\n1", ParseError),
    ("3/768", ParseError),
    ("45/1", OrderOutOfRange),
])
def test_parse_errors(text, error):
    with pytest.raises(error):
        parser.parse(text)
