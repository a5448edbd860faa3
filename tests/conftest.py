import pytest

from scene import (
    Camera, LightSource, Material, Plane, RenderSettings, Scene, SceneObject, Sphere,
)

WHITE = (1.0, 1.0, 1.0)


def matte(colour=WHITE, k_ambient=0.1, k_diffuse=0.9, k_specular=0.0, shine=1.0, k_reflect=0.0):
    return Material(colour=colour, k_ambient=k_ambient, k_diffuse=k_diffuse,
                    k_specular=k_specular, shine=shine, k_reflect=k_reflect)

def mirror(k_ambient=0.0, k_reflect=1.0):
    return Material(colour=WHITE, k_ambient=k_ambient, k_diffuse=0.0,
                    k_specular=0.0, shine=1.0, k_reflect=k_reflect)

def make_scene(objects=(), lights=(), ambient=(0.1, 0.1, 0.1), background=(0.0, 0.0, 0.0),
               camera=None, **settings):
    if camera is None:
        camera = Camera(position=(0.0, 5.0, 0.0), direction=(0.0, -1.0, 0.0),
                        screen_distance=1.0, screen_width=1.0, screen_height=1.0,
                        screen_columns=21, screen_rows=21)
    return Scene(camera=camera, ambient_light=ambient, lights=tuple(lights),
                 objects=tuple(objects), background=background,
                 render=RenderSettings(**settings))


@pytest.fixture
def unit_sphere_scene():
    """Unit sphere at the origin seen along -y, lit from the camera position."""
    return make_scene(
        objects=[SceneObject(Sphere((0.0, 0.0, 0.0), 1.0), matte(k_ambient=1.0, k_diffuse=0.9))],
        lights=[LightSource(colour=WHITE, pos=(0.0, 5.0, 0.0))],
    )

@pytest.fixture
def facing_mirrors_scene():
    """Two parallel perfect mirrors at z=0 and z=2 facing each other."""
    return make_scene(
        objects=[
            SceneObject(Plane((0.0, 0.0, 0.0), (0.0, 0.0, 1.0)), mirror(k_ambient=0.1)),
            SceneObject(Plane((0.0, 0.0, 2.0), (0.0, 0.0, -1.0)), mirror(k_ambient=0.1)),
        ],
        ambient=WHITE,
    )

@pytest.fixture
def scene_dict():
    return {
        "camera": {
            "position": [0, -5, 0],
            "direction": [0, 1, 0],
            "screenDistance": 1,
            "screenWidth": 1,
            "screenHeight": 1,
            "screenColumns": 8,
            "screenRows": 6,
        },
        "ambientLight": [0.1, 0.1, 0.1],
        "lights": [{"colour": [1, 1, 1], "pos": [0, -5, 5]}],
        "objects": [
            {
                "material": {"colour": [1, 0, 0], "kAmbient": 0.2, "kDiffuse": 0.8,
                             "kSpecular": 0.5, "shine": 20},
                "shape": {"type": "Sphere", "centre": [0, 0, 0], "radius": 1},
            },
            {
                "material": {"colour": [0.5, 0.5, 0.5], "kAmbient": 0.2, "kDiffuse": 0.8,
                             "kSpecular": 0, "shine": 1, "kReflect": 0.4},
                "shape": {"type": "Plane", "point": [0, 0, -1], "normal": [0, 0, 2]},
            },
        ],
    }
