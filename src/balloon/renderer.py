# renderer.py
from dataclasses import dataclass
import logging
from pathlib import Path

import moderngl
import numpy as np
import pygame

from balloon.state import SimulationState, active_spring_pairs, position_array
from balloon.types import POINT, PROJ

logger = logging.getLogger(__name__)

MAX_PROJECTILES = 64
RENDER_MODES = ["Particles", "Springs", "Particles+Springs"]

WATER = (0.4, 0.7, 1.0, 0.9)
SPRING = (0.55, 0.75, 1.0, 0.35)
PROJECTILE = (1.0, 0.2, 0.2, 1.0)
GROUND = (0.35, 0.4, 0.55, 1.0)

# ------------------------
# Matrix helpers
# ------------------------


def orthographic(left: float, right: float, bottom: float, top: float) -> PROJ:
    return np.array(
        [
            [2.0 / (right - left), 0.0, 0.0, -(right + left) / (right - left)],
            [0.0, 2.0 / (top - bottom), 0.0, -(top + bottom) / (top - bottom)],
            [0.0, 0.0, -1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float32,
    ).T


# ------------------------
# Viewport
# ------------------------


@dataclass
class Viewport:
    """Maps world meters (y up) to window pixels (y down) and back."""

    width: int
    height: int
    view_height: float
    center_x: float = 0.0
    bottom: float = -0.5

    @property
    def scale(self) -> float:
        return self.height / self.view_height  # pixels per meter

    @property
    def extent(self) -> tuple[float, float, float, float]:
        half_w = self.width / (2.0 * self.scale)
        return (
            self.center_x - half_w,
            self.center_x + half_w,
            self.bottom,
            self.bottom + self.view_height,
        )

    def world_to_screen(self, point: POINT) -> POINT:
        x, y = point
        return (
            self.width / 2.0 + (x - self.center_x) * self.scale,
            self.height - (y - self.bottom) * self.scale,
        )

    def screen_to_world(self, pixel: tuple[float, float]) -> POINT:
        px, py = pixel
        return (
            self.center_x + (px - self.width / 2.0) / self.scale,
            self.bottom + (self.height - py) / self.scale,
        )

    def projection(self) -> PROJ:
        return orthographic(*self.extent)


# ------------------------
# Renderer
# ------------------------


class Renderer:
    def __init__(self, ctx: moderngl.Context, state: SimulationState, viewport: Viewport) -> None:
        self.ctx = ctx
        self.ctx.enable(moderngl.PROGRAM_POINT_SIZE | moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA

        self.viewport = viewport
        self.render_mode = 0

        pygame.font.init()
        self.font = pygame.font.SysFont("monospace", 18)

        base = Path(__file__).parent / "shaders"

        # 2D program (particles, springs, ground, projectiles)
        self.prog = self.ctx.program(
            vertex_shader=(base / "point.vert").read_text(),
            fragment_shader=(base / "point.frag").read_text(),
        )

        # UI program
        self.ui_prog = self.ctx.program(
            vertex_shader=(base / "ui.vert").read_text(),
            fragment_shader=(base / "ui.frag").read_text(),
        )
        self.ui_vbo = self.ctx.buffer(reserve=4 * 4 * 4)
        self.ui_vao = self.ctx.vertex_array(
            self.ui_prog,
            [(self.ui_vbo, "2f 2f", "in_pos", "in_uv")],
        )
        self.ui_texture: moderngl.Texture | None = None

        left, right, _, _ = viewport.extent
        ground = np.array([left, state.ground_height, right, state.ground_height], dtype="f4")
        self.ground_vbo = self.ctx.buffer(ground.tobytes())
        self.ground_vao = self.ctx.vertex_array(self.prog, [(self.ground_vbo, "2f", "in_position")])

        self.projectile_vbo = self.ctx.buffer(reserve=MAX_PROJECTILES * 2 * 4, dynamic=True)
        self.projectile_vao = self.ctx.vertex_array(
            self.prog, [(self.projectile_vbo, "2f", "in_position")]
        )

        self.vbo: moderngl.Buffer | None = None
        self.point_vao: moderngl.VertexArray | None = None
        self.spring_vao: moderngl.VertexArray | None = None
        self.spring_ibo: moderngl.Buffer | None = None
        self._bind_state(state)

    def _bind_state(self, state: SimulationState) -> None:
        """(Re)create the particle and spring buffers for a new state."""
        for obj in (self.point_vao, self.spring_vao, self.spring_ibo, self.vbo):
            if obj is not None:
                obj.release()
        self.spring_vao = None
        self.spring_ibo = None
        self._spring_count = -1
        self._bound_state = state

        self.vbo = self.ctx.buffer(reserve=max(state.num_particles, 1) * 2 * 4, dynamic=True)
        self.point_vao = self.ctx.vertex_array(self.prog, [(self.vbo, "2f", "in_position")])
        logger.info("Renderer bound to %d particles", state.num_particles)

    def _refresh_springs(self, state: SimulationState) -> None:
        pairs = active_spring_pairs(state)
        if len(pairs) == self._spring_count:
            return

        for obj in (self.spring_vao, self.spring_ibo):
            if obj is not None:
                obj.release()
        self.spring_vao = None
        self.spring_ibo = None
        self._spring_count = len(pairs)
        if self._spring_count == 0:
            return

        self.spring_ibo = self.ctx.buffer(pairs.astype("i4").ravel().tobytes())
        self.spring_vao = self.ctx.vertex_array(
            self.prog, [(self.vbo, "2f", "in_position")], self.spring_ibo
        )

    def cycle_render_mode(self) -> str:
        self.render_mode = (self.render_mode + 1) % len(RENDER_MODES)
        return RENDER_MODES[self.render_mode]

    # ------------------------
    # Draw
    # ------------------------

    def draw(self, state: SimulationState, fps: float, paused: bool = False) -> None:
        if state is not self._bound_state:
            self._bind_state(state)

        self.ctx.clear(0.0, 0.0, 0.0, 1.0)
        self.prog["u_proj"].write(self.viewport.projection().tobytes())  # type: ignore

        self.vbo.write(position_array(state).astype("f4").tobytes())  # type: ignore

        self._draw_lines(self.ground_vao, GROUND)

        mode = RENDER_MODES[self.render_mode]
        if "Springs" in mode:
            self._refresh_springs(state)
            if self.spring_vao is not None:
                self._draw_lines(self.spring_vao, SPRING)

        if "Particles" in mode:
            self._draw_points(self.point_vao, WATER, state.config.particle_radius, state.num_particles)

        live = state.projectiles[:MAX_PROJECTILES]
        if live:
            data = np.array([p.position for p in live], dtype="f4")
            self.projectile_vbo.write(data.tobytes())
            self._draw_points(self.projectile_vao, PROJECTILE, live[0].radius, len(live))

        self._draw_ui_overlay(state, fps, mode, paused)
        pygame.display.flip()

    def _draw_points(self, vao: moderngl.VertexArray, color: tuple, radius: float, count: int) -> None:
        self.prog["u_color"].value = color  # type: ignore
        self.prog["u_round"].value = True  # type: ignore
        self.prog["u_point_size"].value = max(2.0, 2.0 * radius * self.viewport.scale)  # type: ignore
        vao.render(mode=moderngl.POINTS, vertices=count)

    def _draw_lines(self, vao: moderngl.VertexArray, color: tuple) -> None:
        self.prog["u_color"].value = color  # type: ignore
        self.prog["u_round"].value = False  # type: ignore
        vao.render(mode=moderngl.LINES)

    # ------------------------
    # UI Overlay
    # ------------------------

    def _surface_to_texture(self, surface: pygame.Surface) -> moderngl.Texture:
        surface = pygame.transform.flip(surface, False, True)
        data = pygame.image.tobytes(surface, "RGBA", False)

        tex = self.ctx.texture(surface.get_size(), 4, data)
        tex.filter = (moderngl.NEAREST, moderngl.NEAREST)
        tex.swizzle = "RGBA"
        return tex

    def _draw_ui_overlay(self, state: SimulationState, fps: float, mode: str, paused: bool) -> None:
        lines = [
            f"FPS: {fps:.1f}{'  [PAUSED]' if paused else ''}",
            f"Phase: {state.phase.value}",
            f"Particles: {state.num_particles}",
            f"Springs: {int((~state.broken).sum())}/{state.num_springs}",
            f"Mode: {mode}",
        ]

        line_h = self.font.get_height()
        w = max(self.font.size(line)[0] for line in lines)
        h = line_h * len(lines)

        surface = pygame.Surface((w, h), pygame.SRCALPHA)

        y = 0
        for line in lines:
            surface.blit(self.font.render(line, True, (220, 220, 220)), (0, y))
            y += line_h

        if self.ui_texture:
            self.ui_texture.release()
        self.ui_texture = self._surface_to_texture(surface)
        self.ui_texture.use(0)

        # --- Compute top-left quad ---
        margin = 10
        width, height = self.viewport.width, self.viewport.height
        x0 = -1.0 + 2.0 * margin / width
        y0 = 1.0 - 2.0 * margin / height
        x1 = x0 + 2.0 * w / width
        y1 = y0 - 2.0 * h / height

        quad = np.array(
            [x0, y0, 0.0, 1.0, x0, y1, 0.0, 0.0, x1, y0, 1.0, 1.0, x1, y1, 1.0, 0.0],
            dtype="f4",
        )

        self.ui_vbo.write(quad.tobytes())
        self.ui_prog["u_texture"] = 0
        self.ui_vao.render(mode=moderngl.TRIANGLE_STRIP)
