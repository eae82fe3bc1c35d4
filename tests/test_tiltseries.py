import numpy as np
import imageio.v2 as imageio
import pytest

from tval3d import TiltSeries, reconstruct_tilt_series, radon_length
from tval3d.util import relative_error


@pytest.fixture
def tilt_series(rng):
    return TiltSeries(rng.random((4, 6, 3)), [-30.0, 0.0, 30.0])


def measured_tilt_series(projector, phantom, angles):
    """Tilt series whose padded sinograms equal the projector output."""
    sinograms = projector.sinogram(phantom)
    top = (radon_length(8) - 1) // 2 - (8 - 1) // 2
    measurements = np.transpose(sinograms[top:top + 8], (2, 0, 1))
    return TiltSeries(measurements, angles)


def test_zero_series():
    tilt_series = TiltSeries(5, np.arange(4))
    assert tilt_series.dimensions == (5, 5, 4)
    assert tilt_series.num_angles == 4
    assert np.all(tilt_series.measurements == 0)


def test_image_count_must_match_angles():
    with pytest.raises(ValueError):
        TiltSeries(np.zeros((4, 4, 3)), [0.0, 1.0])
    with pytest.raises(ValueError):
        TiltSeries(np.zeros(4), [0.0])


def test_face_slices(tilt_series):
    assert tilt_series.face_slice('h', 1).shape == (6, 3)
    assert tilt_series.face_slice('Vertical', 2).shape == (4, 3)
    np.testing.assert_array_equal(tilt_series.face_slice('ang', 0),
                                  tilt_series.measurements[:, :, 0])
    np.testing.assert_array_equal(tilt_series.sinogram(2),
                                  tilt_series.measurements[2])
    with pytest.raises(ValueError):
        tilt_series.face_slice('diagonal', 0)


def test_at_angle(tilt_series):
    np.testing.assert_array_equal(tilt_series.at_angle(30.0),
                                  tilt_series.measurements[:, :, 2])
    with pytest.raises(ValueError, match='15.0000'):
        tilt_series.at_angle(15.0)


def test_normalize_and_reset(tilt_series):
    raw = tilt_series.measurements.copy()
    tilt_series.normalize()
    assert tilt_series.measurements.min() == 0
    assert tilt_series.measurements.max() == 1
    assert tilt_series.max_measure == 1

    tilt_series.reset()
    np.testing.assert_array_equal(tilt_series.measurements, raw)
    assert tilt_series.max_measure == raw.max()


def test_normalize_constant_series():
    with pytest.raises(ValueError):
        TiltSeries(3, [0.0]).normalize()


def test_resize(tilt_series):
    tilt_series.resize(8, 12)
    assert tilt_series.dimensions == (8, 12, 3)
    assert tilt_series.target_lines == list(range(8))
    assert tilt_series.raw_measurements.shape == (4, 6, 3)


def test_padded_sinogram(tilt_series):
    padded = tilt_series.padded_sinogram(1)
    assert padded.shape == (radon_length(6), 3)

    top = (radon_length(6) - 1) // 2 - (6 - 1) // 2
    np.testing.assert_array_equal(padded[top:top + 6],
                                  tilt_series.sinogram(1))
    assert np.all(padded[:top] == 0)
    assert np.all(padded[top + 6:] == 0)


def test_backproject(projector, phantom, angles):
    tilt_series = measured_tilt_series(projector, phantom, angles)
    np.testing.assert_allclose(
        tilt_series.backproject(),
        projector.backproject(projector.sinogram(phantom)))


def test_reconstruct_tilt_series(projector, phantom, angles):
    tilt_series = measured_tilt_series(projector, phantom, angles)
    volume, out = reconstruct_tilt_series(
        tilt_series, opts={'maxit': 300, 'cg_maxit': 20, 'tol': 1e-8})

    assert volume.shape == (8, 8, 2)
    assert relative_error(volume, phantom) < 0.05


def test_reconstruct_selected_lines(projector, phantom, angles):
    tilt_series = measured_tilt_series(projector, phantom, angles)
    volume, _ = reconstruct_tilt_series(tilt_series, lines=[1],
                                        opts={'maxit': 3})
    assert volume.shape == (8, 8, 1)
    with pytest.raises(ValueError):
        reconstruct_tilt_series(tilt_series, lines=[])


def test_from_files(tmp_path, rng):
    frames = [(rng.random((6, 7)) * 255).astype(np.uint8) for _ in range(5)]
    measurement_file = str(tmp_path / 'series.tif')
    angle_file = str(tmp_path / 'angles.txt')
    imageio.mimwrite(measurement_file, frames)
    np.savetxt(angle_file, np.linspace(-60, 60, 5))

    tilt_series = TiltSeries.from_files(measurement_file, angle_file)
    assert tilt_series.dimensions == (6, 7, 5)
    assert tilt_series.max_measure == 255
    assert tilt_series.min_measure == 0
    np.testing.assert_array_equal(tilt_series.measurements[:, :, 3], frames[3])

    tilt_series.normalize()
    tilt_series.reload_data()
    np.testing.assert_array_equal(tilt_series.measurements[:, :, 0], frames[0])


def test_missing_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        TiltSeries.from_files(str(tmp_path / 'none.tif'),
                              str(tmp_path / 'none.txt'))


def test_reload_without_files(tilt_series):
    with pytest.raises(ValueError):
        tilt_series.reload_data()
