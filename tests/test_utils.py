"""
Tests for the color helpers.
"""

from sketchpad.utils import class_colors, is_hex_color, lighten_hex, palette


def test_palette_is_distinct_hex():
    colors = palette(6)
    assert len(colors) == 6
    assert len(set(colors)) == 6
    assert all(is_hex_color(c) for c in colors)


def test_palette_empty():
    assert palette(0) == []


def test_class_colors_wraps_around():
    mapping = class_colors({1: 0, 2: 1, 3: 2}, ['#000000', '#ffffff'])
    assert mapping == {1: '#000000', 2: '#ffffff', 3: '#000000'}
    assert class_colors({1: 0}, []) == {}


def test_lighten_hex():
    assert lighten_hex('#000000', 0.5) == '#7f7f7f'
    assert lighten_hex('#ffffff', 0.35) == '#ffffff'


def test_is_hex_color():
    assert is_hex_color('#0077ff')
    assert not is_hex_color('0077ff')
    assert not is_hex_color('#0077fg')
    assert not is_hex_color(None)
