import numpy as np
import pytest

from balloon.renderer import Viewport, orthographic


@pytest.fixture
def viewport():
    return Viewport(1000, 800, 6.0, center_x=0.0, bottom=-0.5)


def test_scale_is_pixels_per_meter(viewport):
    assert viewport.scale == pytest.approx(800 / 6.0)


def test_screen_round_trip(viewport):
    for point in [(0.0, 0.0), (1.25, 2.5), (-3.0, 4.0)]:
        back = viewport.screen_to_world(viewport.world_to_screen(point))
        assert back == pytest.approx(point)


def test_y_axis_is_flipped(viewport):
    # Ground sits half a meter above the bottom edge
    _, sy = viewport.world_to_screen((0.0, 0.0))
    assert sy == pytest.approx(800 - 0.5 * viewport.scale)
    assert viewport.screen_to_world((500, 0)) == pytest.approx((0.0, 5.5))


def test_projection_maps_extent_to_clip_space(viewport):
    left, right, bottom, top = viewport.extent
    m = viewport.projection().T  # stored column-major

    np.testing.assert_allclose(m @ [left, bottom, 0.0, 1.0], [-1.0, -1.0, 0.0, 1.0], atol=1e-6)
    np.testing.assert_allclose(m @ [right, top, 0.0, 1.0], [1.0, 1.0, 0.0, 1.0], atol=1e-6)


def test_orthographic_is_float32():
    assert orthographic(-1.0, 1.0, -1.0, 1.0).dtype == np.float32
