"""Materials module for Phong surfaces and procedural patterns.

Components:
    material: Material configuration, device-side storage and lookup
    pattern: Stripe and 3D checker patterns evaluated in pattern space

Importing this package allocates the material storage fields, so do it
after Taichi is initialized.
"""

from .material import (
    MAX_MATERIALS,
    Material,
    SurfaceMaterial,
    add_material,
    clear_materials,
    get_material_count,
    get_surface_material,
    material_color_at,
)
from .pattern import Pattern, PatternType, checker_at, pattern_at, stripe_at

__all__ = [
    "Material",
    "SurfaceMaterial",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_surface_material",
    "material_color_at",
    "Pattern",
    "PatternType",
    "stripe_at",
    "checker_at",
    "pattern_at",
]
