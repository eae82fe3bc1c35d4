"""Parallel beam projector for slice-wise tomography."""
import numpy as np
import scipy.sparse
import scipy.sparse.linalg


def radon_length(n_pixels):
    """Number of detector bins a Radon transform of an n x n image has.

    Matches the padding convention of MATLAB's ``radon``, so sinograms
    padded with :meth:`TiltSeries.padded_sinogram` line up with the
    projector output.
    """
    size = np.array([n_pixels, n_pixels])
    center = np.floor((size - 1) / 2)
    r_last = int(np.ceil(np.linalg.norm(size - center - 1)))
    return 2 * r_last + 3


def system_matrix(n_pixels, angles):
    """Sparse pixel-driven projection matrix of an n x n image.

    Every pixel center is projected onto the detector and its value is split
    linearly between the two nearest bins. Rows are ordered
    ``detector_bin * n_angles + angle_index``, columns follow ``image.ravel()``.

    :n_pixels: Side length of the (square) image.
    :angles: Projection angles in degrees.
    :returns: scipy.sparse.csr_matrix of shape
              (radon_length(n_pixels) * n_angles, n_pixels ** 2)
    """
    angles = np.deg2rad(np.atleast_1d(np.asarray(angles, dtype=float)))
    n_angles = angles.size
    n_bins = radon_length(n_pixels)

    row_points, col_points = np.meshgrid(np.arange(n_pixels),
                                         np.arange(n_pixels),
                                         indexing='ij')
    center = (n_pixels - 1) // 2
    x_points = (col_points - center).ravel()
    y_points = (center - row_points).ravel()

    positions = (np.outer(np.cos(angles), x_points)
                 + np.outer(np.sin(angles), y_points)
                 + (n_bins - 1) / 2)
    lower = np.floor(positions).astype(int)
    weight = positions - lower

    angle_index = np.broadcast_to(np.arange(n_angles)[:, None], positions.shape)
    pixel_index = np.broadcast_to(np.arange(n_pixels ** 2)[None, :],
                                  positions.shape)

    rows = np.concatenate(((lower * n_angles + angle_index).ravel(),
                           ((lower + 1) * n_angles + angle_index).ravel()))
    cols = np.concatenate((pixel_index.ravel(), pixel_index.ravel()))
    vals = np.concatenate(((1 - weight).ravel(), weight.ravel()))

    return scipy.sparse.csr_matrix((vals, (rows, cols)),
                                   shape=(n_bins * n_angles, n_pixels ** 2))


class ParallelBeamProjector(scipy.sparse.linalg.LinearOperator):
    """Parallel beam forward projector for a stack of square slices.

    The volume has shape (n, n, slice_count); every depth slice is
    projected on its own. Measurements are laid out as
    (detector bins, angles, slice_count).
    """

    def __init__(self, n_pixels, angles, slice_count=1):
        self.n_pixels = int(n_pixels)
        self.angles = np.atleast_1d(np.asarray(angles, dtype=float))
        self.slice_count = int(slice_count)
        self.detector_count = radon_length(self.n_pixels)

        self.vshape = (self.n_pixels, self.n_pixels, self.slice_count)
        self.pshape = (self.detector_count, self.angles.size, self.slice_count)
        self.matrix = system_matrix(self.n_pixels, self.angles)

        super().__init__(np.float64, (int(np.prod(self.pshape)),
                                      int(np.prod(self.vshape))))

    def _matvec(self, input_vec):
        """Forward projection."""
        volume = np.asarray(input_vec).reshape(self.n_pixels ** 2,
                                               self.slice_count)
        return (self.matrix @ volume).ravel()

    def _rmatvec(self, input_vec):
        """Unfiltered back projection."""
        sinograms = np.asarray(input_vec).reshape(self.matrix.shape[0],
                                                  self.slice_count)
        return (self.matrix.T @ sinograms).ravel()

    def sinogram(self, volume):
        """Project a volume and return the measurements shaped as pshape."""
        volume = np.asarray(volume, dtype=float)
        if volume.size != self.shape[1]:
            raise ValueError("volume of shape %s does not fit projector "
                             "volume shape %s" % (volume.shape, self.vshape))
        return self.matvec(volume.ravel()).reshape(self.pshape)

    def backproject(self, sinograms):
        """Back project measurements and return a volume shaped as vshape."""
        sinograms = np.asarray(sinograms, dtype=float)
        if sinograms.size != self.shape[0]:
            raise ValueError("measurements of shape %s do not fit projector "
                             "measurement shape %s"
                             % (sinograms.shape, self.pshape))
        return self.rmatvec(sinograms.ravel()).reshape(self.vshape)
