"""Tests for affine transforms and transform parsing."""

import math

import pytest

from mapsplit.utils.affine import (
    IDENTITY,
    Affine,
    fmt_number,
    parse_transform,
    rotate,
    scale,
    skew_x,
    transform_apply,
    transform_compose,
    transform_inverse,
    translate,
)


def _close(a: complex, b: complex, tol: float = 1e-9) -> bool:
    return abs(a - b) < tol


def test_identity_is_neutral():
    t = Affine(2, 0.5, -1, 3, 7, -4)
    assert transform_compose(IDENTITY, t) == t
    assert transform_compose(t, IDENTITY) == t


def test_compose_applies_child_first():
    # Scale then translate: (1, 1) -> (2, 2) -> (12, 2)
    t = transform_compose(translate(10, 0), scale(2))
    assert _close(transform_apply(t, 1 + 1j), 12 + 2j)
    # Translate then scale: (1, 1) -> (11, 1) -> (22, 2)
    u = transform_compose(scale(2), translate(10, 0))
    assert _close(transform_apply(u, 1 + 1j), 22 + 2j)


def test_compose_is_associative():
    a, b, c = rotate(30), translate(5, -2), Affine(1, 0.2, 0.3, 1.5, 0, 1)
    left = transform_compose(transform_compose(a, b), c)
    right = transform_compose(a, transform_compose(b, c))
    for x, y in zip(left.as_tuple(), right.as_tuple()):
        assert x == pytest.approx(y)


def test_translation_is_exact():
    t = translate(0.1, 0.2)
    assert transform_apply(t, 0.7 + 0.3j) == complex(0.7 + 0.1, 0.3 + 0.2)
    assert transform_apply(IDENTITY, 1.25 - 3j) == 1.25 - 3j


def test_rotate_about_centre():
    t = rotate(90, 10, 10)
    assert _close(transform_apply(t, 20 + 10j), 10 + 20j)
    assert _close(transform_apply(t, 10 + 10j), 10 + 10j)


def test_skew():
    t = skew_x(45)
    assert _close(transform_apply(t, 0 + 10j), 10 + 10j)


def test_inverse_round_trips():
    t = transform_compose(rotate(33, 4, 5), Affine(2, 0.1, 0.4, 3, 8, -9))
    inv = transform_inverse(t)
    assert inv is not None
    p = 3.5 - 7j
    assert _close(transform_apply(inv, transform_apply(t, p)), p)


def test_inverse_of_singular_is_none():
    assert transform_inverse(scale(0, 1)) is None
    assert transform_inverse(Affine(1, 2, 2, 4, 0, 0)) is None


class TestParseTransform:
    def test_empty(self):
        assert parse_transform(None) == IDENTITY
        assert parse_transform("  ") == IDENTITY

    def test_translate_single_argument(self):
        assert parse_transform("translate(5)") == translate(5, 0)

    def test_list_composes_left_to_right(self):
        t = parse_transform("translate(10,0) scale(2)")
        assert _close(transform_apply(t, 1 + 1j), 12 + 2j)

    def test_matrix(self):
        assert parse_transform("matrix(1 0 0 1 3 4)") == translate(3, 4)

    def test_rotate_with_centre(self):
        t = parse_transform("rotate(180 50 50)")
        assert _close(transform_apply(t, 0j), 100 + 100j)

    def test_exponents_and_signs(self):
        t = parse_transform("translate(-1e1,+2.5E-1)")
        assert t == translate(-10, 0.25)

    @pytest.mark.parametrize("text", [
        "translate(1 2 3)",
        "rotate(1 2)",
        "spin(4)",
        "translate(1) garbage",
        "scale(a)",
        "matrix(1 0 0 1)",
    ])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            parse_transform(text)


def test_to_svg():
    assert translate(3, -4).to_svg() == "translate(3 -4)"
    assert scale(2).to_svg() == "matrix(2 0 0 2 0 0)"


def test_fmt_number():
    assert fmt_number(-0.0) == "0"
    assert fmt_number(1.5) == "1.5"
    assert fmt_number(100.0) == "100"
    assert fmt_number(math.pi) == "3.14159265359"
