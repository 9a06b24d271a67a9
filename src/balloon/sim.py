import argparse
import logging
import sys

import moderngl
import pygame

from balloon.config import ConfigError, SimConfig, load_config
from balloon.core import initialize_from_config
from balloon.log import setup_logging
from balloon.renderer import Renderer, Viewport
from balloon.rupture import fire_projectile, handle_click
from balloon.solver import step
from balloon.state import SimulationState

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive 2D water balloon simulation")
    parser.add_argument("--config", help="JSON file overriding the default parameters")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-file", help="Also write the log to this file")
    return parser.parse_args(argv)


def print_controls(config: SimConfig, state: SimulationState) -> None:
    print("\n" + "=" * 60)
    print("WATER BALLOON")
    print("=" * 60)
    print("Mouse:")
    print("  Left Click      - Poke the balloon (bursts it on a hit)")
    print("  Right Click     - Fire a projectile at the cursor")
    print("\nSimulation:")
    print("  Space           - Pause/Resume physics")
    print("  R               - Reset balloon")
    print("  W               - Cycle modes (Particles/Springs/Both)")
    print("  Esc             - Quit")
    print("=" * 60)
    print("\nInitial Parameters:")
    print(f"  Particles: {state.num_particles}")
    print(f"  Springs:   {state.num_springs}")
    print(f"  Stiffness: {config.stiffness:.2f}")
    print(f"  Damping:   {config.damping:.2f}")
    print(f"  Substeps:  {config.substeps}")
    print()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level.upper(), args.log_file)

    try:
        config = load_config(args.config) if args.config else SimConfig()
    except (OSError, ConfigError) as exc:
        logger.error("Could not load config: %s", exc)
        sys.exit(2)

    logger.debug("Config: %s", config.to_dict())

    # 1. Setup Data (Balloon)
    state = initialize_from_config(config)

    # 2. Initialize Pygame with OpenGL
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((config.width, config.height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption("Water Balloon")
    ctx = moderngl.create_context()

    viewport = Viewport(
        config.width,
        config.height,
        config.view_height,
        center_x=config.center[0],
        bottom=config.ground_height - 0.5,
    )
    renderer = Renderer(ctx, state, viewport)

    print_controls(config, state)

    running = True
    paused = False

    while running:
        dt = clock.tick(config.fps) / 1000.0

        # Handle Events (delivered between ticks)
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False

                elif event.key == pygame.K_SPACE:
                    paused = not paused
                    logger.info("Physics %s", "paused" if paused else "resumed")

                elif event.key == pygame.K_w:
                    logger.info("Render mode: %s", renderer.cycle_render_mode())

                elif event.key == pygame.K_r:
                    state = initialize_from_config(config)
                    logger.info("Simulation reset")

            elif event.type == pygame.MOUSEBUTTONDOWN:
                point = viewport.screen_to_world(event.pos)
                if event.button == 1:
                    handle_click(state, point)
                elif event.button == 3:
                    fire_projectile(state, point)

        if not paused:
            step(state, dt)

        renderer.draw(state, clock.get_fps(), paused)

    # Cleanup
    logger.info("Shutting down after %d steps (%.1fs simulated)", state.steps, state.time)
    pygame.quit()


if __name__ == "__main__":
    main()
