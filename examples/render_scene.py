#!/usr/bin/env python3
"""Render a scene with the Whitted ray tracer.

Renders one of the built-in scenes, or an entity list stored as JSON, and
saves the result as an image.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene NAME        Built-in scene: showcase or default (default: showcase)
    --scene-json PATH   Entity list in JSON; overrides --scene
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 400)
    --depth DEPTH       Reflection/refraction bounces (default: 5)
    --output OUTPUT     Output file path (default: render.png)
    --quiet             Only log warnings and errors

Example:
    python examples/render_scene.py --width 200 --height 200 --output glass.png
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene with the Whitted ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=("showcase", "default"),
        default="showcase",
        help="Built-in scene to render (default: showcase)",
    )
    parser.add_argument(
        "--scene-json",
        type=Path,
        default=None,
        help="JSON file holding a scene entity list",
    )
    parser.add_argument("--width", type=int, default=400, help="Image width (default: 400)")
    parser.add_argument("--height", type=int, default=400, help="Image height (default: 400)")
    parser.add_argument("--depth", type=int, default=5, help="Bounce limit (default: 5)")
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args()


def build_scene(args: argparse.Namespace):
    """Create the scene selected on the command line."""
    # Lazy imports to allow Taichi initialization first
    from whitted.scene.manager import SceneManager
    from whitted.scene.presets import create_default_world, create_showcase_scene, default_camera

    if args.scene_json is not None:
        entities = json.loads(args.scene_json.read_text())
        for entity in entities:
            if entity.get("add") == "camera":
                entity["width"] = args.width
                entity["height"] = args.height
        return SceneManager.from_entities(entities)

    if args.scene == "default":
        return create_default_world(default_camera(args.width, args.height))

    return create_showcase_scene(args.width, args.height)


def render_to_file(args: argparse.Namespace) -> Path:
    """Render the selected scene and save it.

    Returns:
        Path to the saved image file.
    """
    from whitted.core.renderer import RenderSettings, render
    from whitted.preview.export import save_image

    scene = build_scene(args)
    settings = RenderSettings(max_depth=args.depth)

    image = render(scene, settings)

    output_file = Path(args.output)
    save_image(image, output_file)
    logger.info("Saved to: %s", output_file.absolute())
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
    except RuntimeError:
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")

    from whitted.errors import ConfigurationError

    try:
        render_to_file(args)
        return 0
    except (ConfigurationError, OSError, json.JSONDecodeError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
