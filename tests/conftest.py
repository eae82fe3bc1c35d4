import numpy as np
import pytest

from tval3d import ParallelBeamProjector


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def phantom():
    """Two small blocks near the rotation axis of an 8 x 8 x 2 volume."""
    volume = np.zeros((8, 8, 2))
    volume[2:5, 2:5, 0] = 1.0
    volume[3:5, 3:5, 1] = 2.0
    return volume


@pytest.fixture
def angles():
    return np.linspace(0, 180, 36, endpoint=False)


@pytest.fixture
def projector(angles):
    return ParallelBeamProjector(8, angles, 2)
