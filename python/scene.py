"""Scene model, plus loading and validation from scene.json"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from geometry import Vec3, ZERO, cross, length, norm


class SceneError(ValueError):
    """Raised when a scene description is malformed."""


@dataclass(frozen=True)
class Material:
    colour: Vec3
    k_ambient: float
    k_diffuse: float
    k_specular: float
    shine: float
    k_reflect: float = 0.0


@dataclass(frozen=True)
class Sphere:
    centre: Vec3
    radius: float


@dataclass(frozen=True)
class Plane:
    point: Vec3
    normal: Vec3

    def __post_init__(self):
        # Stored unit length; the hit normal is this vector as-is
        object.__setattr__(self, "normal", norm(self.normal))


Shape = Union[Sphere, Plane]


@dataclass(frozen=True)
class SceneObject:
    shape: Shape
    material: Material


@dataclass(frozen=True)
class LightSource:
    colour: Vec3
    pos: Vec3


@dataclass(frozen=True)
class Camera:
    position: Vec3
    direction: Vec3
    screen_distance: float
    screen_width: float
    screen_height: float
    screen_columns: int
    screen_rows: int


@dataclass(frozen=True)
class RenderSettings:
    """Tunables for a render.

    shadow_epsilon and reflection_epsilon are the minimum ray distances used
    for shadow and reflection rays respectively, to keep a ray that starts on
    a surface from hitting that same surface again.
    """
    max_bounces: int = 10
    shadow_epsilon: float = 0.1
    reflection_epsilon: float = 1e-4
    world_up: Vec3 = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Scene:
    camera: Camera
    ambient_light: Vec3
    lights: Tuple[LightSource, ...]
    objects: Tuple[SceneObject, ...]
    background: Vec3 = ZERO
    render: RenderSettings = RenderSettings()


def load_scene(json_path: str = "scene.json") -> Dict[str, Any]:
    """Load scene configuration from JSON file."""
    with open(json_path, 'r') as f:
        return json.load(f)

def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise SceneError(f"{where} must have '{key}'")
    return data[key]

def _vec(value: Any, where: str) -> Vec3:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SceneError(f"{where} must be a list of 3 numbers, got {value!r}")
    try:
        return (float(value[0]), float(value[1]), float(value[2]))
    except (TypeError, ValueError) as e:
        raise SceneError(f"{where} must be a list of 3 numbers, got {value!r}") from e

def _number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SceneError(f"{where} must be a number, got {value!r}")
    return float(value)

def _count(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SceneError(f"{where} must be a positive integer, got {value!r}")
    return value

def validate_scene(scene: Dict[str, Any]) -> None:
    """Structural validation of a scene document.

    Only checks that required sections exist with the right shape; value
    conversion errors are reported by scene_from_dict.
    """
    if not isinstance(scene, dict):
        raise SceneError("Scene must be a JSON object")
    cam = _require(scene, "camera", "Scene")
    _require(scene, "ambientLight", "Scene")
    lights = _require(scene, "lights", "Scene")
    objects = _require(scene, "objects", "Scene")

    for key in ("position", "direction", "screenDistance", "screenWidth",
                "screenHeight", "screenColumns", "screenRows"):
        _require(cam, key, "Camera")

    if not isinstance(lights, list):
        raise SceneError("Scene 'lights' must be a list")
    for i, light in enumerate(lights):
        _require(light, "colour", f"Light {i}")
        _require(light, "pos", f"Light {i}")

    if not isinstance(objects, list):
        raise SceneError("Scene 'objects' must be a list")
    for i, obj in enumerate(objects):
        material = _require(obj, "material", f"Object {i}")
        shape = _require(obj, "shape", f"Object {i}")
        for key in ("colour", "kAmbient", "kDiffuse", "kSpecular", "shine"):
            _require(material, key, f"Object {i} material")
        _require(shape, "type", f"Object {i} shape")

    render = scene.get("render", {})
    if not isinstance(render, dict):
        raise SceneError("Scene 'render' must be an object")

def _material(data: Dict[str, Any], where: str) -> Material:
    shine = _number(data["shine"], f"{where} shine")
    if shine < 0:
        raise SceneError(f"{where} shine must be non-negative, got {shine}")
    return Material(
        colour=_vec(data["colour"], f"{where} colour"),
        k_ambient=_number(data["kAmbient"], f"{where} kAmbient"),
        k_diffuse=_number(data["kDiffuse"], f"{where} kDiffuse"),
        k_specular=_number(data["kSpecular"], f"{where} kSpecular"),
        shine=shine,
        k_reflect=_number(data.get("kReflect", 0.0), f"{where} kReflect"),
    )

def _shape(data: Dict[str, Any], where: str) -> Shape:
    kind = data["type"]
    if kind == "Sphere":
        radius = _number(_require(data, "radius", where), f"{where} radius")
        if radius <= 0:
            raise SceneError(f"{where} radius must be positive, got {radius}")
        return Sphere(centre=_vec(_require(data, "centre", where), f"{where} centre"),
                      radius=radius)
    if kind == "Plane":
        normal = _vec(_require(data, "normal", where), f"{where} normal")
        if length(normal) < 1e-8:
            raise SceneError(f"{where} normal must be non-zero")
        return Plane(point=_vec(_require(data, "point", where), f"{where} point"),
                     normal=normal)
    raise SceneError(f"{where} has unknown type {kind!r}")

def _camera(data: Dict[str, Any]) -> Camera:
    return Camera(
        position=_vec(data["position"], "Camera position"),
        direction=_vec(data["direction"], "Camera direction"),
        screen_distance=_number(data["screenDistance"], "Camera screenDistance"),
        screen_width=_number(data["screenWidth"], "Camera screenWidth"),
        screen_height=_number(data["screenHeight"], "Camera screenHeight"),
        screen_columns=_count(data["screenColumns"], "Camera screenColumns"),
        screen_rows=_count(data["screenRows"], "Camera screenRows"),
    )

def _render_settings(data: Dict[str, Any]) -> RenderSettings:
    defaults = RenderSettings()
    max_bounces = data.get("maxBounces", defaults.max_bounces)
    if isinstance(max_bounces, bool) or not isinstance(max_bounces, int) or max_bounces < 0:
        raise SceneError(f"Render maxBounces must be a non-negative integer, got {max_bounces!r}")
    return RenderSettings(
        max_bounces=max_bounces,
        shadow_epsilon=_number(data.get("shadowEpsilon", defaults.shadow_epsilon),
                               "Render shadowEpsilon"),
        reflection_epsilon=_number(data.get("reflectionEpsilon", defaults.reflection_epsilon),
                                   "Render reflectionEpsilon"),
        world_up=_vec(data.get("worldUp", defaults.world_up), "Render worldUp"),
    )

def scene_from_dict(scene: Dict[str, Any]) -> Scene:
    """Validate a scene document and build the immutable scene model."""
    validate_scene(scene)
    camera = _camera(scene["camera"])
    render = _render_settings(scene.get("render", {}))

    # Same check the camera basis makes, reported at load time
    if length(cross(norm(camera.direction), render.world_up)) < 1e-8:
        raise SceneError("Camera direction must be non-zero and not parallel to worldUp")

    lights = tuple(
        LightSource(colour=_vec(light["colour"], f"Light {i} colour"),
                    pos=_vec(light["pos"], f"Light {i} pos"))
        for i, light in enumerate(scene["lights"])
    )
    objects = tuple(
        SceneObject(shape=_shape(obj["shape"], f"Object {i} shape"),
                    material=_material(obj["material"], f"Object {i} material"))
        for i, obj in enumerate(scene["objects"])
    )
    return Scene(
        camera=camera,
        ambient_light=_vec(scene["ambientLight"], "Scene ambientLight"),
        lights=lights,
        objects=objects,
        background=_vec(scene.get("backgroundColour", ZERO), "Scene backgroundColour"),
        render=render,
    )

def read_scene(json_path: str = "scene.json") -> Scene:
    """Load, validate and build a scene from a JSON file."""
    return scene_from_dict(load_scene(json_path))
