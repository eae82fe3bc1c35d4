"""Finite difference operators with circular boundaries."""
import numpy as np
import scipy.sparse.linalg


def _check_volume(volume, name='U'):
    volume = np.asarray(volume)
    if volume.ndim != 3:
        raise ValueError("%s must be a 3-D volume, got shape %s"
                         % (name, volume.shape))
    return volume


def forward_difference(volume):
    """Compute (Dux, Duy, Duz) of a (row, column, depth) volume.

    Each component holds ``U[i + 1] - U[i]`` along its axis, the last index
    wraps around to ``U[0] - U[-1]``. Dux runs along the columns, Duy along
    the rows and Duz along the depth.
    """
    volume = _check_volume(volume)

    grad_x = -volume
    grad_x[:, :-1, :] += volume[:, 1:, :]
    grad_x[:, -1, :] += volume[:, 0, :]
    grad_y = -volume
    grad_y[:-1, :, :] += volume[1:, :, :]
    grad_y[-1, :, :] += volume[0, :, :]
    grad_z = -volume
    grad_z[:, :, :-1] += volume[:, :, 1:]
    grad_z[:, :, -1] += volume[:, :, 0]
    return grad_x, grad_y, grad_z


def adjoint_difference(grad_x, grad_y, grad_z):
    """Apply the adjoint of :func:`forward_difference`.

    Returns the flattened (C order) volume ``Dx' X + Dy' Y + Dz' Z``.
    """
    grad_x = _check_volume(grad_x, 'X')
    grad_y = _check_volume(grad_y, 'Y')
    grad_z = _check_volume(grad_z, 'Z')
    if not grad_x.shape == grad_y.shape == grad_z.shape:
        raise ValueError("gradient components differ in shape: %s, %s, %s"
                         % (grad_x.shape, grad_y.shape, grad_z.shape))

    vol_x = -grad_x
    vol_x[:, 1:, :] += grad_x[:, :-1, :]
    vol_x[:, 0, :] += grad_x[:, -1, :]
    vol_y = -grad_y
    vol_y[1:, :, :] += grad_y[:-1, :, :]
    vol_y[0, :, :] += grad_y[-1, :, :]
    vol_z = -grad_z
    vol_z[:, :, 1:] += grad_z[:, :, :-1]
    vol_z[:, :, 0] += grad_z[:, :, -1]

    return (vol_x + vol_y + vol_z).ravel()


def define_difference_operators():
    """Return the pair (D, Dt) used by the TV solver."""
    return forward_difference, adjoint_difference


class OpTV3D(scipy.sparse.linalg.LinearOperator):
    """Total variation gradient as a stacked linear operator."""

    def __init__(self, row_count, col_count, slice_count):
        """Initialize TV operator."""
        self.row_count = row_count
        self.col_count = col_count
        self.slice_count = slice_count

        matrix_row_count = row_count * col_count * slice_count
        super().__init__(np.float64, (3 * matrix_row_count, matrix_row_count))

        self.input_size = (row_count, col_count, slice_count)
        self.transpose_optv3d = OpTVTranspose(self)

    def _transpose(self):
        return self.transpose_optv3d

    def _adjoint(self):
        return self.transpose_optv3d

    def _matvec(self, input_vec):
        """Forward product."""
        volume = np.asarray(input_vec).reshape(self.input_size)
        grad_x, grad_y, grad_z = forward_difference(volume)
        return np.concatenate((grad_x.ravel(), grad_y.ravel(), grad_z.ravel()))

    def _rmatvec(self, input_vec):
        """Backward product."""
        input_vec = np.asarray(input_vec).ravel()
        size = self.shape[1]
        grad_x = input_vec[:size].reshape(self.input_size)
        grad_y = input_vec[size:2 * size].reshape(self.input_size)
        grad_z = input_vec[2 * size:].reshape(self.input_size)
        return adjoint_difference(grad_x, grad_y, grad_z)


class OpTVTranspose(scipy.sparse.linalg.LinearOperator):
    """Object that provides the transpose operator ".T" of an OpTV3D object."""

    def __init__(self, parent):
        self.parent = parent
        super().__init__(parent.dtype, (parent.shape[1], parent.shape[0]))

    def _transpose(self):
        return self.parent

    def _adjoint(self):
        return self.parent

    def _matvec(self, input_vec):
        return self.parent._rmatvec(input_vec)

    def _rmatvec(self, input_vec):
        return self.parent._matvec(input_vec)
