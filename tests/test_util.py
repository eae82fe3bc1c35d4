import numpy as np
import pytest

from tval3d.util import cube, cylinder, relative_error, sphere


def test_sphere():
    volume = sphere((7, 7, 7), 2)
    assert volume[3, 3, 3] == 1
    assert volume[3, 3, 5] == 1
    assert volume[3, 3, 6] == 0
    assert volume[0, 0, 0] == 0


def test_cylinder_runs_along_depth():
    volume = cylinder((9, 9, 4), 3)
    for depth in range(1, 4):
        np.testing.assert_array_equal(volume[:, :, depth], volume[:, :, 0])
    assert volume[4, 4, 0] == 1
    assert volume[0, 4, 0] == 0


def test_cube():
    volume = cube((6, 6, 6), (1, 2, 3), 2, value=3.0)
    assert volume.sum() == pytest.approx(8 * 3.0)
    assert volume[1, 2, 3] == 3.0
    assert volume[3, 2, 3] == 0


def test_relative_error():
    reference = np.ones((2, 2, 2))
    assert relative_error(reference, reference) == 0
    assert relative_error(1.1 * reference, reference) == pytest.approx(0.1)
