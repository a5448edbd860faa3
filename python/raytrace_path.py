"""
Ray Path Visualization - Follow one camera ray through its mirror bounces
and draw the path over a render of the scene.
"""
import logging
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw

from geometry import Ray, Vec3, add, dot, length, mul, norm, reflect, sub
from raytrace_cpu import RayTracer, render_pixels
from scene import Scene, read_scene

logger = logging.getLogger(__name__)


class RayPath:
    """Represents a traced ray path with segments and energy."""
    def __init__(self):
        self.segments: List[Tuple[Vec3, Vec3, float]] = []
        # Each segment: (start_pos, end_pos, energy)
        self.energy_history: List[float] = []  # Energy at each bounce

    def add_segment(self, start: Vec3, end: Vec3, energy: float):
        self.segments.append((start, end, energy))
        self.energy_history.append(energy)

def trace_ray_path(scene: Scene, ray: Ray, miss_length: float = 100.0) -> RayPath:
    """
    Trace a ray through the scene and record its complete path.

    Uses the same hit and reflection rules as RayTracer.trace. Energy is the
    product of the reflectivities seen so far, i.e. the weight this segment's
    colour carries in the final pixel.

    Args:
        scene: Scene to trace through
        ray: Starting ray, normally a primary camera ray
        miss_length: Length of the segment drawn for a ray that hits nothing

    Returns:
        RayPath object with all segments
    """
    tracer = RayTracer(scene)
    settings = scene.render
    path = RayPath()
    energy = 1.0
    min_distance = 0.0
    bounce = 0

    # Add initial point
    path.energy_history.append(energy)

    while True:
        nearest = tracer.intersect(ray, min_distance)
        if nearest is None:
            # Ray escaped
            path.add_segment(ray.origin, add(ray.origin, mul(norm(ray.direction), miss_length)),
                             energy)
            break

        hit, material = nearest
        path.add_segment(ray.origin, hit.pos, energy)

        if material.k_reflect == 0 or bounce >= settings.max_bounces:
            break

        energy *= material.k_reflect
        ray = Ray(origin=hit.pos, direction=norm(reflect(ray.direction, hit.normal)))
        min_distance = settings.reflection_epsilon
        bounce += 1

    return path

def project_point(tracer: RayTracer, p3d: Vec3) -> Optional[Tuple[float, float]]:
    """Project a 3D point to pixel coordinates, or None if behind the camera."""
    cam = tracer.scene.camera
    rays = tracer.rays
    to_point = sub(p3d, cam.position)
    proj_dist = dot(to_point, rays.u)

    if proj_dist < 0.1:  # Behind camera
        return None

    # u, v, w are orthogonal and |w| == |v|
    scale = cam.screen_distance / proj_dist / dot(rays.v, rays.v)
    x_screen = dot(to_point, rays.v) * scale
    y_screen = dot(to_point, rays.w) * scale

    px = x_screen / (cam.screen_width * 0.5) * cam.screen_columns + cam.screen_columns // 2
    py = y_screen / (cam.screen_height * -0.5) * cam.screen_rows + cam.screen_rows // 2
    return (px, py)

def _segment_colour(energy: float) -> Tuple[int, int, int]:
    # Bright yellow-white when high, fading to red/orange
    if energy > 0.7:
        return (255, 255, 200)
    elif energy > 0.4:
        return (255, 200, 100)
    elif energy > 0.2:
        return (255, 150, 50)
    return (200, 100, 50)

def render_with_ray_path(scene: Scene, x: int, y: int,
                         output_path: str = "render_path.png",
                         processes: Optional[int] = None) -> RayPath:
    """
    Render scene with the path of the camera ray through pixel (x, y) drawn on top.
    """
    tracer = RayTracer(scene)
    cam = scene.camera
    W, H = cam.screen_columns, cam.screen_rows

    ray_path = trace_ray_path(scene, tracer.rays.ray_for_pixel(x, y))
    logger.info("Ray path traced: %d segments, final energy: %.3f",
                len(ray_path.segments), ray_path.energy_history[-1])

    pixels = render_pixels(scene, processes)
    img = Image.new("RGB", (W, H))
    img.putdata([p for row in pixels for p in row])
    draw = ImageDraw.Draw(img)

    for i, (start, end, energy) in enumerate(ray_path.segments):
        start_2d = project_point(tracer, start)
        end_2d = project_point(tracer, end)
        if start_2d is None or end_2d is None:
            continue

        color = _segment_colour(energy)
        width = max(1, int(energy * 3))
        draw.line([start_2d, end_2d], fill=color, width=width)

        # Mark each bounce point
        if i < len(ray_path.segments) - 1:
            draw.ellipse([end_2d[0] - 2, end_2d[1] - 2, end_2d[0] + 2, end_2d[1] + 2],
                         fill=color, outline=color)

    # Highlight light source positions
    for light in scene.lights:
        light_2d = project_point(tracer, light.pos)
        if light_2d:
            for radius in [6, 4]:
                draw.ellipse([light_2d[0] - radius, light_2d[1] - radius,
                              light_2d[0] + radius, light_2d[1] + radius],
                             fill=(255, 255, 200), outline=(255, 255, 150))

    img.save(output_path)
    return ray_path


if __name__ == "__main__":
    import os
    import sys
    from datetime import datetime

    logging.basicConfig(level=logging.INFO)

    scene_path = sys.argv[1] if len(sys.argv) > 1 else (
        "../scene.json" if os.path.exists("../scene.json") else "scene.json")
    scene = read_scene(scene_path)

    renders_dir = os.path.join(os.path.dirname(os.path.abspath(scene_path)), "renders")
    os.makedirs(renders_dir, exist_ok=True)

    # Default to the ray through the centre of the image
    cam = scene.camera
    px = int(sys.argv[2]) if len(sys.argv) > 3 else cam.screen_columns // 2
    py = int(sys.argv[3]) if len(sys.argv) > 3 else cam.screen_rows // 2

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_path = os.path.join(renders_dir, f"raypath_{timestamp}_{px}x{py}.png")

    path = render_with_ray_path(scene, px, py, output_path)
    print(f"Saved ray path visualization: {output_path} ({len(path.segments)} segments, "
          f"length {sum(length(sub(e, s)) for s, e, _ in path.segments):.2f})")
