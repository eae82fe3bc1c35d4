"""TV regularized tomographic reconstruction."""
from .operators import (OpTV3D, adjoint_difference, define_difference_operators,
                        forward_difference)
from .options import Options, parse_options
from .projectors import ParallelBeamProjector, radon_length
from .reconstruct import reconstruct_tilt_series, tval3d
from .solvers import (TVAL3, NumericalError, SolverOutput, Variant,
                      power_method, shrink)
from .tiltseries import TiltSeries
