"""
Small 3D vector toolkit used by the layout and the interaction controller.

Vectors are plain (x, y, z) float tuples. The up axis is +Z, so the ground
plane is XY.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

Vec3 = Tuple[float, float, float]

EPS = 1e-9
ORIGIN: Vec3 = (0.0, 0.0, 0.0)
UP: Vec3 = (0.0, 0.0, 1.0)
X_AXIS: Vec3 = (1.0, 0.0, 0.0)


def v_add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def v_sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def v_scale(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)


def v_dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def v_cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def v_len(a: Vec3) -> float:
    return math.sqrt(v_dot(a, a))


def v_norm(a: Vec3) -> Vec3:
    """Unit vector along a; the zero vector stays zero."""
    length = v_len(a)
    if length < EPS:
        return ORIGIN
    return v_scale(a, 1.0 / length)


def v_lerp(a: Vec3, b: Vec3, t: float) -> Vec3:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t, a[2] + (b[2] - a[2]) * t)


def v_mid(a: Vec3, b: Vec3) -> Vec3:
    return v_lerp(a, b, 0.5)


def ground_perpendicular(direction: Vec3) -> Vec3:
    """
    Unit vector in the ground plane perpendicular to direction.

    Vertical directions have no ground-plane perpendicular; +X is used instead
    so callers always get a usable axis.
    """
    perp = v_norm(v_cross(direction, UP))
    if perp == ORIGIN:
        return X_AXIS
    return perp


def quadratic_bezier(p0: Vec3, control: Vec3, p2: Vec3, t: float) -> Vec3:
    u = 1.0 - t
    return (
        u * u * p0[0] + 2 * u * t * control[0] + t * t * p2[0],
        u * u * p0[1] + 2 * u * t * control[1] + t * t * p2[1],
        u * u * p0[2] + 2 * u * t * control[2] + t * t * p2[2],
    )


@dataclass(frozen=True)
class Ray:
    """A half-line from origin along direction (direction need not be unit length)."""
    origin: Vec3
    direction: Vec3

    @property
    def unit_direction(self) -> Vec3:
        return v_norm(self.direction)

    def at(self, t: float) -> Vec3:
        return v_add(self.origin, v_scale(self.unit_direction, t))


def ray_sphere_intersection(ray: Ray, center: Vec3, radius: float) -> Optional[float]:
    """Distance along the ray to the first hit on the sphere, or None."""
    d = ray.unit_direction
    if d == ORIGIN:
        return None
    oc = v_sub(ray.origin, center)
    b = v_dot(oc, d)
    c = v_dot(oc, oc) - radius * radius
    disc = b * b - c
    if disc < 0:
        return None
    root = math.sqrt(disc)
    t = -b - root
    if t < 0:
        t = -b + root
    if t < 0:
        return None
    return t


def ray_segment_distance(ray: Ray, p: Vec3, q: Vec3) -> Tuple[float, float]:
    """
    Closest approach between the ray and the segment p-q.

    Returns (distance, t) where t is the distance along the ray of the
    closest point.
    """
    d1 = ray.unit_direction
    d2 = v_sub(q, p)
    r = v_sub(ray.origin, p)
    e = v_dot(d2, d2)
    f = v_dot(d2, r)

    if e <= EPS:
        # Degenerate segment: closest point on the ray to p
        t = max(0.0, -v_dot(d1, r))
        return v_len(v_sub(ray.at(t), p)), t

    c = v_dot(d1, r)
    b = v_dot(d1, d2)
    denom = e - b * b
    t = max(0.0, (b * f - c * e) / denom) if denom > EPS else 0.0
    s = (b * t + f) / e
    if s < 0.0:
        s = 0.0
        t = max(0.0, -c)
    elif s > 1.0:
        s = 1.0
        t = max(0.0, b - c)

    closest_on_segment = v_add(p, v_scale(d2, s))
    return v_len(v_sub(ray.at(t), closest_on_segment)), t


def ray_polyline_distance(ray: Ray, points: Sequence[Vec3]) -> Tuple[float, float]:
    """Closest approach between the ray and any segment of the polyline."""
    best = (math.inf, math.inf)
    for p, q in zip(points, points[1:]):
        hit = ray_segment_distance(ray, p, q)
        if hit[0] < best[0]:
            best = hit
    return best


def ray_horizontal_plane(ray: Ray, height: float) -> Optional[Vec3]:
    """Point where the ray crosses the plane z == height, or None if it never does."""
    d = ray.unit_direction
    if abs(d[2]) < EPS:
        return None
    t = (height - ray.origin[2]) / d[2]
    if t < 0:
        return None
    x, y, _ = ray.at(t)
    return (x, y, height)


def camera_ray(position: Vec3, look_at: Vec3, up: Vec3, fov_degrees: float,
               aspect: float, ndc_x: float, ndc_y: float) -> Ray:
    """
    Ray through normalized device coordinates (-1..1, y up) of a perspective camera.
    """
    forward = v_norm(v_sub(look_at, position))
    right = v_norm(v_cross(forward, up))
    if right == ORIGIN:
        right = ground_perpendicular(forward)
    true_up = v_cross(right, forward)
    half_height = math.tan(math.radians(fov_degrees) / 2.0)
    direction = v_add(
        forward,
        v_add(
            v_scale(right, ndc_x * half_height * aspect),
            v_scale(true_up, ndc_y * half_height),
        ),
    )
    return Ray(position, v_norm(direction))
