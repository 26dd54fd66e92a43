"""2D affine transforms. No engine imports.

An ``Affine`` is the SVG ``matrix(a b c d e f)``:

    | a c e |
    | b d f |
    | 0 0 1 |

Points are complex numbers (x + yj), the convention svgpathtools uses.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Affine:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @property
    def is_identity(self) -> bool:
        return self == IDENTITY

    @property
    def is_translation(self) -> bool:
        return self.a == 1.0 and self.b == 0.0 and self.c == 0.0 and self.d == 1.0

    @property
    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in self.as_tuple())

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def to_svg(self) -> str:
        if self.is_translation:
            return f"translate({fmt_number(self.e)} {fmt_number(self.f)})"
        return "matrix(" + " ".join(fmt_number(v) for v in self.as_tuple()) + ")"


IDENTITY = Affine()


def translate(tx: float, ty: float = 0.0) -> Affine:
    return Affine(e=tx, f=ty)


def scale(sx: float, sy: float | None = None) -> Affine:
    return Affine(a=sx, d=sx if sy is None else sy)


def rotate(degrees: float, cx: float = 0.0, cy: float = 0.0) -> Affine:
    rad = math.radians(degrees)
    cos, sin = math.cos(rad), math.sin(rad)
    rot = Affine(a=cos, b=sin, c=-sin, d=cos)
    if cx == 0.0 and cy == 0.0:
        return rot
    return transform_compose(transform_compose(translate(cx, cy), rot), translate(-cx, -cy))


def skew_x(degrees: float) -> Affine:
    return Affine(c=math.tan(math.radians(degrees)))


def skew_y(degrees: float) -> Affine:
    return Affine(b=math.tan(math.radians(degrees)))


def transform_compose(parent: Affine, child: Affine) -> Affine:
    """Return ``parent · child``: the child is applied first, then the parent."""
    if child.is_identity:
        return parent
    if parent.is_identity:
        return child
    return Affine(
        a=parent.a * child.a + parent.c * child.b,
        b=parent.b * child.a + parent.d * child.b,
        c=parent.a * child.c + parent.c * child.d,
        d=parent.b * child.c + parent.d * child.d,
        e=parent.a * child.e + parent.c * child.f + parent.e,
        f=parent.b * child.e + parent.d * child.f + parent.f,
    )


def transform_apply(t: Affine, point: complex) -> complex:
    """Apply ``t`` to a point. Identity and translations are exact."""
    x, y = point.real, point.imag
    if t.is_translation:
        return complex(x + t.e, y + t.f)
    return complex(t.a * x + t.c * y + t.e, t.b * x + t.d * y + t.f)


def transform_apply_array(t: Affine, points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Apply ``t`` to an Nx2 array of (x, y)."""
    if len(points) == 0:
        return points
    x = points[:, 0]
    y = points[:, 1]
    return np.column_stack((t.a * x + t.c * y + t.e, t.b * x + t.d * y + t.f))


def transform_inverse(t: Affine) -> Affine | None:
    """Inverse of ``t``, or None if it is singular."""
    if t.is_translation:
        return translate(-t.e, -t.f)
    det = t.determinant
    if det == 0.0 or not math.isfinite(det):
        return None
    a = t.d / det
    b = -t.b / det
    c = -t.c / det
    d = t.a / det
    return Affine(a=a, b=b, c=c, d=d, e=-(a * t.e + c * t.f), f=-(b * t.e + d * t.f))


# ── SVG transform attribute parsing ─────────────────────────────────────

_TRANSFORM_RE = re.compile(r"([a-zA-Z]+)\s*\(([^)]*)\)")
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_ARITY = {
    "matrix": (6,),
    "translate": (1, 2),
    "scale": (1, 2),
    "rotate": (1, 3),
    "skewX": (1,),
    "skewY": (1,),
}


def parse_transform(text: str | None) -> Affine:
    """Parse an SVG transform list such as ``"translate(10 5) rotate(45)"``.

    Raises ValueError on unknown functions, wrong arity or trailing garbage.
    """
    if text is None or not text.strip():
        return IDENTITY

    result = IDENTITY
    pos = 0
    for match in _TRANSFORM_RE.finditer(text):
        gap = text[pos:match.start()]
        if gap.strip(" \t\r\n,"):
            raise ValueError(f"Unexpected text in transform: {gap.strip()!r}")
        pos = match.end()

        name = match.group(1)
        args_text = match.group(2)
        args = [float(n) for n in _NUMBER_RE.findall(args_text)]
        leftover = _NUMBER_RE.sub("", args_text)
        if leftover.strip(" \t\r\n,"):
            raise ValueError(f"Bad arguments to {name}: {args_text!r}")
        if name not in _ARITY:
            raise ValueError(f"Unknown transform function: {name}")
        if len(args) not in _ARITY[name]:
            raise ValueError(f"Wrong number of arguments to {name}: {args_text!r}")

        result = transform_compose(result, _build(name, args))

    if text[pos:].strip(" \t\r\n,"):
        raise ValueError(f"Unexpected text in transform: {text[pos:].strip()!r}")
    return result


def _build(name: str, args: list[float]) -> Affine:
    if name == "matrix":
        return Affine(*args)
    if name == "translate":
        return translate(args[0], args[1] if len(args) > 1 else 0.0)
    if name == "scale":
        return scale(args[0], args[1] if len(args) > 1 else None)
    if name == "rotate":
        if len(args) == 3:
            return rotate(args[0], args[1], args[2])
        return rotate(args[0])
    if name == "skewX":
        return skew_x(args[0])
    return skew_y(args[0])


def fmt_number(value: float) -> str:
    text = f"{value:.12g}"
    return "0" if text == "-0" else text
