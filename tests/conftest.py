"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear device-side scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the fields are allocated after Taichi is initialized
    from whitted.core.renderer import clear_render_target
    from whitted.core.shading import set_background
    from whitted.materials.material import clear_materials
    from whitted.scene.intersection import clear_scene
    from whitted.scene.manager import release_device_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        release_device_scene()
        clear_render_target()
        set_background((0.0, 0.0, 0.0))

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def default_world():
    """The two-sphere reference world with one light and no camera."""
    from whitted.scene.presets import create_default_world

    return create_default_world()
