"""
Primary ray generation: maps pixel coordinates to rays through the screen.
"""
from typing import Tuple

from geometry import Ray, Vec3, add, cross, length, mul, norm
from scene import Camera, SceneError


def camera_basis(camera: Camera, world_up: Vec3) -> Tuple[Vec3, Vec3, Vec3]:
    """Return (u, v, w): view direction, screen right, screen up.

    The basis is undefined when the view direction is parallel to world_up,
    so that case raises SceneError instead of yielding a zero basis.
    """
    u = norm(camera.direction)
    v = cross(u, world_up)
    if length(v) < 1e-8:
        raise SceneError(
            f"Camera direction {camera.direction} is zero or parallel to world up {world_up}")
    w = cross(v, u)
    return u, v, w

def ray_for_pixel(camera: Camera, x: int, y: int, world_up: Vec3) -> Ray:
    u, v, w = camera_basis(camera, world_up)
    return _ray_from_basis(camera, x, y, u, v, w)

def _ray_from_basis(camera: Camera, x: int, y: int, u: Vec3, v: Vec3, w: Vec3) -> Ray:
    # Centre of screen is origin, row 0 is the top
    x_screen = ((x - camera.screen_columns // 2) / camera.screen_columns
                * camera.screen_width * 0.5)
    y_screen = ((y - camera.screen_rows // 2) / camera.screen_rows
                * camera.screen_height * -0.5)
    direction = add(add(mul(u, camera.screen_distance), mul(v, x_screen)), mul(w, y_screen))
    return Ray(origin=camera.position, direction=direction)


class RayGenerator:
    """Camera with its basis computed once, for per-pixel use in a render."""

    def __init__(self, camera: Camera, world_up: Vec3):
        self.camera = camera
        self.u, self.v, self.w = camera_basis(camera, world_up)

    def ray_for_pixel(self, x: int, y: int) -> Ray:
        return _ray_from_basis(self.camera, x, y, self.u, self.v, self.w)
