"""Whitted-style recursive ray tracer built on Taichi.

This package renders still images of declarative 3D scenes by tracing one
primary ray per pixel and following specular reflection and refraction up
to a bounded depth, with Phong local shading and hard shadows.

Subpackages:
    core: Linear algebra, transforms, rays, shading and the render entry point
    geometry: Sphere and plane primitives behind a closed shape variant
    materials: Phong materials and procedural patterns
    scene: Scene assembly, GPU-side storage and intersection queries
    camera: Look-at pinhole camera with per-pixel ray generation
    preview: Image export helpers (clamping and file output)
"""

__version__ = "0.1.0"
