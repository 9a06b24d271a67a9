import numpy as np
import numpy.typing as npt

from balloon.models import Particle, Spring, Vector2

INDEX = npt.NDArray[np.int32]
VEC2 = npt.NDArray[np.float64]
MASK = npt.NDArray[np.bool_]
PROJ = npt.NDArray[np.float32]
GEN_BALLOON = tuple[list[Particle], list[Spring]]
POINT = tuple[float, float]
POINT_LIKE = POINT | Vector2
