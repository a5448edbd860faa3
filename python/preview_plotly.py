"""
Interactive 3D preview of the scene using Plotly.
Helps verify geometry before rendering.
"""
import logging
import math

import plotly.graph_objects as go

from geometry import Vec3, add, cross, mul, norm
from scene import Plane, Scene, Sphere, read_scene

logger = logging.getLogger(__name__)


def _rgb(colour: Vec3) -> str:
    r, g, b = (max(0, min(255, round(c * 255))) for c in colour)
    return f'rgb({r}, {g}, {b})'

def _sphere_mesh(sphere: Sphere, steps: int = 16):
    """Latitude/longitude grid over the sphere surface."""
    xs, ys, zs = [], [], []
    for i in range(steps + 1):
        theta = math.pi * i / steps
        row_x, row_y, row_z = [], [], []
        for j in range(steps + 1):
            phi = 2.0 * math.pi * j / steps
            row_x.append(sphere.centre[0] + sphere.radius * math.sin(theta) * math.cos(phi))
            row_y.append(sphere.centre[1] + sphere.radius * math.sin(theta) * math.sin(phi))
            row_z.append(sphere.centre[2] + sphere.radius * math.cos(theta))
        xs.append(row_x)
        ys.append(row_y)
        zs.append(row_z)
    return xs, ys, zs

def _plane_patch(plane: Plane, size: float):
    """Corners of a square patch of the plane centred on its anchor point."""
    n = norm(plane.normal)
    # Any vector not parallel to n gives a tangent
    helper = (1.0, 0.0, 0.0) if abs(n[0]) < 0.9 else (0.0, 1.0, 0.0)
    t1 = norm(cross(n, helper))
    t2 = cross(n, t1)
    half = size / 2
    return [
        add(plane.point, add(mul(t1, sx * half), mul(t2, sy * half)))
        for sx, sy in ((-1, -1), (1, -1), (1, 1), (-1, 1))
    ]

def create_scene_preview(scene: Scene, plane_size: float = 10.0):
    """Create interactive 3D plot of scene."""
    fig = go.Figure()

    for i, obj in enumerate(scene.objects):
        colour = _rgb(obj.material.colour)
        shape = obj.shape
        if isinstance(shape, Sphere):
            xs, ys, zs = _sphere_mesh(shape)
            fig.add_trace(go.Surface(
                x=xs, y=ys, z=zs,
                colorscale=[[0, colour], [1, colour]],
                showscale=False,
                opacity=0.8,
                name=f'Sphere {i+1}'
            ))
        elif isinstance(shape, Plane):
            corners = _plane_patch(shape, plane_size)
            fig.add_trace(go.Mesh3d(
                x=[c[0] for c in corners],
                y=[c[1] for c in corners],
                z=[c[2] for c in corners],
                i=[0, 0], j=[1, 2], k=[2, 3],
                color=colour,
                opacity=0.5,
                name=f'Plane {i+1}'
            ))
        else:
            logger.warning("No preview for shape %s", type(shape).__name__)

    # Lights
    for i, light in enumerate(scene.lights):
        fig.add_trace(go.Scatter3d(
            x=[light.pos[0]],
            y=[light.pos[1]],
            z=[light.pos[2]],
            mode='markers',
            marker=dict(size=10, color=_rgb(norm(light.colour)), symbol='circle'),
            name=f'Light {i+1}'
        ))

    # Camera
    cam = scene.camera
    cam_pos = cam.position
    look_at = add(cam_pos, mul(norm(cam.direction), max(cam.screen_distance, 1.0)))

    fig.add_trace(go.Scatter3d(
        x=[cam_pos[0]],
        y=[cam_pos[1]],
        z=[cam_pos[2]],
        mode='markers',
        marker=dict(size=10, color='red', symbol='diamond'),
        name='Camera'
    ))

    # Camera look direction
    fig.add_trace(go.Scatter3d(
        x=[cam_pos[0], look_at[0]],
        y=[cam_pos[1], look_at[1]],
        z=[cam_pos[2], look_at[2]],
        mode='lines',
        line=dict(color='red', width=3, dash='dash'),
        name='Camera Look'
    ))

    fig.update_layout(
        title="Scene Preview (Interactive 3D)",
        scene=dict(
            xaxis_title="X",
            yaxis_title="Y",
            zaxis_title="Z",
            aspectmode='data'
        ),
        width=1000,
        height=800
    )

    return fig

if __name__ == "__main__":
    import sys

    scene = read_scene(sys.argv[1] if len(sys.argv) > 1 else "../scene.json")
    fig = create_scene_preview(scene)
    fig.show()
