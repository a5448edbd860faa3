"""
CPU Ray Tracer for spheres and planes with point lights.
Blinn-Phong shading with hard shadows and recursive mirror reflections
up to max_bounces.
"""
import logging
import math
import multiprocessing
import time
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from camera import RayGenerator
from geometry import (
    Intersection, Ray, Vec3, add, clamp01, dot, hadamard, mul, norm, reflect, sub,
)
from scene import Material, Plane, Scene, Shape, Sphere, read_scene

logger = logging.getLogger(__name__)

Pixel = Tuple[int, int, int]

# Ray intersection functions
def _admissible(t: float, min_distance: float) -> bool:
    # Primary rays (min_distance 0) also accept a hit exactly at the origin
    if min_distance <= 0.0:
        return t >= min_distance
    return t > min_distance

def ray_sphere(ray: Ray, centre: Vec3, radius: float,
               min_distance: float) -> Tuple[Optional[float], Optional[Vec3]]:
    """Ray-sphere intersection.

    Returns the smallest root of |o + t*d - c|^2 = r^2 beyond min_distance,
    with the outward normal there, or (None, None).
    """
    a = dot(ray.direction, ray.direction)
    if a == 0.0:
        return None, None
    oc = sub(ray.origin, centre)
    b = 2.0 * dot(ray.direction, oc)
    c = dot(oc, oc) - radius * radius
    disc = b * b - 4 * a * c

    if disc < 0:
        return None, None

    sdisc = math.sqrt(disc)
    t0 = (-b - sdisc) / (2 * a)
    t1 = (-b + sdisc) / (2 * a)

    candidates = [t for t in (t0, t1) if _admissible(t, min_distance)]
    if not candidates:
        return None, None

    t = min(candidates)
    n = norm(sub(ray.at(t), centre))
    return t, n

def ray_plane(ray: Ray, point: Vec3, normal: Vec3,
              min_distance: float) -> Tuple[Optional[float], Optional[Vec3]]:
    """Ray-plane intersection. The stored normal is returned unflipped."""
    denom = dot(normal, ray.direction)
    if denom == 0.0:
        return None, None

    t = dot(normal, sub(point, ray.origin)) / denom
    if not _admissible(t, min_distance):
        return None, None

    return t, normal

_INTERSECTORS: Dict[type, Callable[..., Tuple[Optional[float], Optional[Vec3]]]] = {
    Sphere: lambda ray, s, d: ray_sphere(ray, s.centre, s.radius, d),
    Plane: lambda ray, p, d: ray_plane(ray, p.point, p.normal, d),
}

def intersect_shape(shape: Shape, ray: Ray, min_distance: float) -> Optional[Intersection]:
    try:
        intersector = _INTERSECTORS[type(shape)]
    except KeyError:
        raise TypeError(f"Unsupported shape {type(shape).__name__}") from None
    t, n = intersector(ray, shape, min_distance)
    if t is None:
        return None
    return Intersection(t=t, pos=ray.at(t), normal=n)

def channel_to_byte(value: float) -> int:
    """Display-encode one linear channel to 0-255."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return 255 if value > 0 else 0
    return max(0, min(255, round(value * 255)))


class RayTracer:
    """Recursive ray tracer over an immutable Scene."""

    def __init__(self, scene: Scene):
        self.scene = scene
        self.settings = scene.render
        self.rays = RayGenerator(scene.camera, scene.render.world_up)

    def intersect(self, ray: Ray, min_distance: float) -> Optional[Tuple[Intersection, Material]]:
        """Nearest hit over all objects; the earlier object wins an exact tie."""
        nearest = None
        for obj in self.scene.objects:
            hit = intersect_shape(obj.shape, ray, min_distance)
            if hit is not None and (nearest is None or hit.t < nearest[0].t):
                nearest = (hit, obj.material)
        return nearest

    def shade(self, ray: Ray, hit: Intersection, material: Material) -> Vec3:
        """Local (non-reflective) colour at a hit: ambient plus unshadowed lights."""
        colour = mul(hadamard(self.scene.ambient_light, material.colour), material.k_ambient)
        view_dir = norm(sub(ray.origin, hit.pos))

        for light in self.scene.lights:
            ldir = norm(sub(light.pos, hit.pos))

            # Shadow ray: any hit along it blocks the light entirely
            shadow_ray = Ray(origin=hit.pos, direction=ldir)
            if self.intersect(shadow_ray, self.settings.shadow_epsilon) is not None:
                continue

            diffuse = mul(hadamard(light.colour, material.colour),
                          material.k_diffuse * clamp01(dot(hit.normal, ldir)))

            half_vec = norm(add(ldir, view_dir))
            spec = clamp01(dot(half_vec, hit.normal)) ** material.shine
            specular = mul(light.colour, material.k_specular * spec)

            colour = add(colour, add(diffuse, specular))

        return colour

    def trace(self, ray: Ray, min_distance: float = 0.0, depth: int = 0) -> Vec3:
        """
        Colour seen along a ray, including mirror reflections.

        Args:
            ray: Ray to follow
            min_distance: Hits at or before this ray parameter are ignored
            depth: Number of reflections already taken by this ray's path
        """
        nearest = self.intersect(ray, min_distance)
        if nearest is None:
            return self.scene.background

        hit, material = nearest
        colour = self.shade(ray, hit, material)

        # Past max_bounces the reflected contribution is simply dropped
        if material.k_reflect != 0 and depth < self.settings.max_bounces:
            reflected = Ray(origin=hit.pos, direction=norm(reflect(ray.direction, hit.normal)))
            reflected_colour = self.trace(reflected, self.settings.reflection_epsilon, depth + 1)
            colour = add(colour, mul(reflected_colour, material.k_reflect))

        return colour

    def pixel_colour(self, x: int, y: int) -> Vec3:
        return self.trace(self.rays.ray_for_pixel(x, y))


# Per-process tracer, set once by the pool initializer
_worker_tracer: Optional[RayTracer] = None

def _init_worker(scene: Scene) -> None:
    global _worker_tracer
    _worker_tracer = RayTracer(scene)

def _render_worker_row(y: int) -> List[Pixel]:
    return _render_row(_worker_tracer, y)

def _render_row(tracer: RayTracer, y: int) -> List[Pixel]:
    row = []
    for x in range(tracer.scene.camera.screen_columns):
        r, g, b = tracer.pixel_colour(x, y)
        row.append((channel_to_byte(r), channel_to_byte(g), channel_to_byte(b)))
    return row

def render_pixels(scene: Scene, processes: Optional[int] = None) -> List[List[Pixel]]:
    """
    Render every pixel of the scene's camera grid.

    Rows are distributed over a process pool unless processes is 1. Each
    pixel depends only on the scene, so the output does not depend on the
    number of processes.

    Returns:
        pixels[row][column] as 8-bit (r, g, b), row 0 at the top
    """
    # Built here too so a bad camera fails before any worker starts
    tracer = RayTracer(scene)
    W = scene.camera.screen_columns
    H = scene.camera.screen_rows

    logger.info("Rendering %dx%d image with %d max bounces...",
                W, H, scene.render.max_bounces)
    start = time.time()
    pixels: List[List[Pixel]] = []

    if processes == 1:
        for y in range(H):
            pixels.append(_render_row(tracer, y))
            _log_progress(len(pixels), H)
    else:
        # The scene is sent to each worker once, not with every row
        with multiprocessing.Pool(processes=processes, initializer=_init_worker,
                                  initargs=(scene,)) as pool:
            for row in pool.imap(_render_worker_row, range(H)):
                pixels.append(row)
                _log_progress(len(pixels), H)

    elapsed = time.time() - start
    logger.info("%d pixels in %.2f seconds", W * H, elapsed)
    return pixels

def _log_progress(done: int, total: int) -> None:
    if done % 50 == 0:
        logger.info("Progress: %d/%d (%d%%)", done, total, 100 * done // total)

def save_image(pixels: List[List[Pixel]], output_path: str) -> None:
    H = len(pixels)
    W = len(pixels[0]) if pixels else 0
    img = Image.new("RGB", (W, H))
    img.putdata([p for row in pixels for p in row])
    img.save(output_path)

def render(scene: Scene, output_path: str = "render.png",
           processes: Optional[int] = None) -> None:
    """Main rendering function."""
    save_image(render_pixels(scene, processes), output_path)


if __name__ == "__main__":
    import os
    import sys
    from datetime import datetime

    logging.basicConfig(level=logging.INFO)

    # Scene path from the command line, else scene.json in parent directory or current directory
    if len(sys.argv) > 1:
        scene_path = sys.argv[1]
    else:
        scene_path = "../scene.json" if os.path.exists("../scene.json") else "scene.json"
    scene = read_scene(scene_path)

    renders_dir = os.path.join(os.path.dirname(os.path.abspath(scene_path)), "renders")
    os.makedirs(renders_dir, exist_ok=True)

    # Create filename with timestamp and scene info
    cam = scene.camera
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = (f"render_{timestamp}_b{scene.render.max_bounces}_o{len(scene.objects)}"
                f"_l{len(scene.lights)}_{cam.screen_columns}x{cam.screen_rows}.png")
    output_path = os.path.join(renders_dir, filename)

    render(scene, output_path)
    print(f"Saved {output_path}")
