"""Container for tilt series measurements."""
import numbers
import os
import imageio.v2 as imageio
import numpy as np
import scipy.ndimage
from tval3d.projectors import ParallelBeamProjector, radon_length


SLICE_KINDS = {
    'h': 0, 'horz': 0, 'horizontal': 0,
    'v': 1, 'vert': 1, 'vertical': 1,
    'a': 2, 'ang': 2, 'angle': 2,
}


def read_tilt_series(measurement_file, angle_file):
    """Read a multi-page image stack and its tilt angles (degrees).

    :returns: (measurements of shape (rows, cols, n_angles), angles)
    """
    for path in (measurement_file, angle_file):
        if not os.path.isfile(path):
            raise FileNotFoundError(
                "Specified tilt series file <%s> does not exist." % path)

    angles = np.atleast_1d(np.loadtxt(angle_file, dtype=float)).ravel()
    images = imageio.mimread(measurement_file, memtest=False)
    # some readers return the whole stack as one (pages, rows, cols) array
    if (len(images) == 1 and images[0].ndim == 3
            and images[0].shape[-1] not in (3, 4)):
        images = list(images[0])
    if len(images) < angles.size:
        raise ValueError("%s holds %d images but %s lists %d angles"
                         % (measurement_file, len(images), angle_file,
                            angles.size))

    stack = []
    for image in images[:angles.size]:
        image = np.asarray(image)
        # color images are averaged to gray values
        if image.ndim == 3:
            image = image.mean(axis=-1)
        stack.append(image)
    measurements = np.stack(stack, axis=-1)

    if np.issubdtype(measurements.dtype, np.integer):
        max_measure = np.iinfo(measurements.dtype).max
    else:
        max_measure = measurements.max()
    return measurements.astype(float), angles, max_measure


class TiltSeries:
    """Projection images of a sample at known tilt angles.

    Measurements are stored as (rows, cols, n_angles). Line ``k`` of every
    image together forms the sinogram of slice ``k`` of the volume.

    TiltSeries(measurements, angles)
    TiltSeries(side_length, angles)      # all-zero square images
    TiltSeries.from_files(measurement_file, angle_file)
    """

    def __init__(self, measurements, angles):
        angles = np.atleast_1d(np.asarray(angles, dtype=float)).ravel()
        if isinstance(measurements, numbers.Integral):
            raw_measurements = np.zeros((measurements, measurements,
                                         angles.size))
        else:
            raw_measurements = np.asarray(measurements, dtype=float)
            if raw_measurements.ndim == 2 and angles.size == 1:
                raw_measurements = raw_measurements[:, :, np.newaxis]
        if raw_measurements.ndim != 3:
            raise ValueError("measurements must have shape (rows, cols, "
                             "angles), got %s" % (raw_measurements.shape,))
        if raw_measurements.shape[2] != angles.size:
            raise ValueError("%d images given for %d tilt angles"
                             % (raw_measurements.shape[2], angles.size))

        self.measurement_file = None
        self.angle_file = None
        self.raw_measurements = raw_measurements
        self.tilt_angles = angles
        self.reset()

    @classmethod
    def from_files(cls, measurement_file, angle_file):
        """Load the tilt series from an image stack and an angle file."""
        measurements, angles, max_measure = read_tilt_series(measurement_file,
                                                             angle_file)
        tilt_series = cls(measurements, angles)
        tilt_series.measurement_file = measurement_file
        tilt_series.angle_file = angle_file
        tilt_series.max_measure = max_measure
        tilt_series.min_measure = 0
        return tilt_series

    @property
    def num_angles(self):
        return self.tilt_angles.size

    @property
    def dimensions(self):
        return self.measurements.shape

    def reload_data(self):
        """Re-read measurements and angles from the files on disk."""
        if self.measurement_file is None or self.angle_file is None:
            raise ValueError("Cannot reload tilt series from disk if file "
                             "locations are not specified.")
        measurements, angles, max_measure = read_tilt_series(
            self.measurement_file, self.angle_file)
        self.raw_measurements = measurements
        self.tilt_angles = angles
        self.reset()
        self.max_measure = max_measure
        self.min_measure = 0

    def reset(self):
        """Undo all modifications of the measurements."""
        self.measurements = self.raw_measurements.copy()
        self.max_measure = self.measurements.max()
        self.min_measure = self.measurements.min()
        self.target_lines = list(range(self.dimensions[0]))

    def resize(self, rows, cols, order=3):
        """Resize every image to rows x cols (spline interpolation)."""
        zoom = (rows / self.dimensions[0], cols / self.dimensions[1], 1)
        self.measurements = scipy.ndimage.zoom(self.measurements, zoom,
                                               order=order)
        self.target_lines = list(range(self.dimensions[0]))

    def normalize(self):
        """Scale the measurements to the range [0, 1]."""
        max_measure = self.measurements.max()
        min_measure = self.measurements.min()
        if max_measure == min_measure:
            raise ValueError("cannot normalize constant measurements")
        self.measurements = ((self.measurements - min_measure)
                             / (max_measure - min_measure))
        self.max_measure = 1
        self.min_measure = 0

    def face_slice(self, kind, index):
        """Slice through the measurements.

        kind 'h' gives (cols, angles), 'v' gives (rows, angles) and
        'a' gives the (rows, cols) image at one angle index.
        """
        try:
            axis = SLICE_KINDS[kind.lower()]
        except KeyError:
            raise ValueError("unknown slice type %r" % kind) from None
        return np.take(self.measurements, index, axis=axis)

    def at_angle(self, angle):
        """Return the image measured at a tilt angle (degrees)."""
        found = np.flatnonzero(np.abs(self.tilt_angles - angle) < 1e-8)
        if not found.size:
            raise ValueError("No measurement in tilt series at angle "
                             "<%0.4f deg>" % angle)
        return self.measurements[:, :, found[0]]

    def sinogram(self, line):
        """Sinogram of one line, shape (cols, angles)."""
        return self.face_slice('h', line)

    def padded_sinogram(self, line):
        """Sinogram zero padded to the detector length of the projector.

        The tilt axis (column ``(cols - 1) // 2``) lands on the central
        detector bin of :class:`ParallelBeamProjector`.
        """
        sinogram = self.sinogram(line)
        line_measurements = sinogram.shape[0]
        padded_measurements = radon_length(line_measurements)

        top_pad = (padded_measurements - 1) // 2 - (line_measurements - 1) // 2
        bottom_pad = padded_measurements - line_measurements - top_pad
        return np.pad(sinogram, ((top_pad, bottom_pad), (0, 0)))

    def backproject(self, projector=None):
        """Unfiltered back projection of all target lines.

        :returns: Volume of shape (cols, cols, len(target_lines)).
        """
        sinograms = np.stack([self.padded_sinogram(line)
                              for line in self.target_lines], axis=-1)
        if projector is None:
            projector = ParallelBeamProjector(self.dimensions[1],
                                              self.tilt_angles,
                                              len(self.target_lines))
        return projector.backproject(sinograms)
