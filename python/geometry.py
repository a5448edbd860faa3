"""
Vector math utilities and ray value types shared by the tracer.
Vectors are plain (x, y, z) float tuples.
"""
import math
from typing import NamedTuple, Tuple

Vec3 = Tuple[float, float, float]

ZERO: Vec3 = (0.0, 0.0, 0.0)


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])

def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])

def mul(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)

def hadamard(a: Vec3, b: Vec3) -> Vec3:
    """Component-wise product, used to filter a colour through another."""
    return (a[0] * b[0], a[1] * b[1], a[2] * b[2])

def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]

def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )

def length(v: Vec3) -> float:
    return math.sqrt(dot(v, v))

def norm(v: Vec3) -> Vec3:
    """Unit vector along v, or the zero vector when v has no usable length."""
    l = length(v)
    if l < 1e-8:
        return ZERO
    return mul(v, 1.0 / l)

def reflect(rd: Vec3, n: Vec3) -> Vec3:
    """Reflect ray direction rd off surface with normal n."""
    return sub(rd, mul(n, 2.0 * dot(rd, n)))

def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


class Ray(NamedTuple):
    origin: Vec3
    # Not necessarily unit length
    direction: Vec3

    def at(self, t: float) -> Vec3:
        return add(self.origin, mul(self.direction, t))


class Intersection(NamedTuple):
    t: float
    pos: Vec3
    # Unit outward normal at pos
    normal: Vec3
