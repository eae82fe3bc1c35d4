"""
Reconstruction algorithm wrapper.
"""
import numpy as np
from . import projectors, solvers
from .options import parse_options


def tval3d(A, b, p, q, r, opts=None):
    """Reconstruct a p x q x r volume from measurements b = A u.

    The model is picked from ``opts['TVL2']``:

    1) TV model (default):  min sum ||D_i u||   s.t. Au = b
    2) TV/L2 model:         min sum ||D_i u|| + mu/2 ||Au - b||_2^2

    :A: Forward operator with matvec (apply) and rmatvec (adjoint).
    :b: Measurements, any shape with A.shape[0] entries.
    :opts: Option dict, see :mod:`tval3d.options`.
    :returns: (U, out), U of shape (p, q, r) and the SolverOutput.
    """
    options = parse_options(opts)
    variant = solvers.Variant.from_options(options)
    algorithm = solvers.TVAL3(A, b, (p, q, r), options, variant=variant)
    return algorithm.run()


def reconstruct_tilt_series(tilt_series, projector=None, opts=None,
                            lines=None):
    """Reconstruct the slices of a tilt series.

    Every selected line of the tilt series gives one depth slice of the
    volume. Without a projector a :class:`ParallelBeamProjector` matching
    the tilt angles is created.
    """
    if lines is None:
        lines = tilt_series.target_lines
    lines = list(lines)
    if not lines:
        raise ValueError("no lines selected for reconstruction")

    sinograms = np.stack([tilt_series.padded_sinogram(line)
                          for line in lines], axis=-1)
    n_pixels = tilt_series.dimensions[1]
    if projector is None:
        projector = projectors.ParallelBeamProjector(
            n_pixels, tilt_series.tilt_angles, len(lines))

    return tval3d(projector, sinograms, n_pixels, n_pixels, len(lines), opts)
