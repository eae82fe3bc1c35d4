"""
Augmented Lagrangian TV minimization (TVAL3).

Two models share one alternating minimization loop:

1) TV model:        min sum ||D_i u||   s.t. Au = b
2) TV/L2 model:     min sum ||D_i u|| + mu/2 ||Au - b||_2^2

The gradient of u is split off into an auxiliary variable W (D u = W) that
is handled by shrinkage, u itself is updated by a few conjugate gradient
steps on the normal equations.
"""
import enum
import time
import numpy as np
import scipy.sparse
import scipy.sparse.linalg
from tval3d import operators, util
from tval3d.options import Options


class NumericalError(ArithmeticError):
    """A NaN or Inf appeared during the iterations."""


def check_finite(array, step):
    """Raise NumericalError if array holds NaN or Inf values."""
    if not np.all(np.isfinite(array)):
        raise NumericalError("non-finite values encountered in the %s step"
                             % step)
    return array


def power_method(A_matrix, max_iter=10, show=False, seed=0):
    """Compute the largest singular value of A."""
    rng = np.random.default_rng(seed)
    x_vec = rng.random((A_matrix.shape[1],))
    x_vec = x_vec / np.linalg.norm(x_vec)
    y_vec = A_matrix.matvec(x_vec)
    L = np.linalg.norm(y_vec)

    for iter_count in range(max_iter):
        x_vec = A_matrix.rmatvec(y_vec)
        x_norm = np.linalg.norm(x_vec)
        if x_norm == 0:
            return 0.0
        x_vec = x_vec / x_norm
        y_vec = A_matrix.matvec(x_vec)
        L = np.linalg.norm(y_vec)
        if show:
            print("%d singular value: %f" % (iter_count, L))
    return L


def scale_operator(A, factor):
    """Return factor * A as a LinearOperator."""
    return scipy.sparse.linalg.LinearOperator(
        A.shape,
        matvec=lambda x_vec: factor * A.matvec(x_vec),
        rmatvec=lambda y_vec: factor * A.rmatvec(y_vec),
        dtype=float)


def shrink(grad_x, grad_y, grad_z, threshold, isotropic=True):
    """Soft thresholding of a gradient field.

    Isotropic shrinkage scales the gradient vector of every voxel by
    ``max(|v| - threshold, 0) / |v|``, anisotropic shrinkage thresholds each
    component separately. Voxels with a vanishing gradient map to zero.
    """
    if threshold < 0:
        raise ValueError("shrinkage threshold must be non-negative, got %r"
                         % (threshold,))

    if isotropic:
        magnitude = np.sqrt(grad_x ** 2 + grad_y ** 2 + grad_z ** 2)
        scale = np.zeros_like(magnitude)
        np.divide(np.maximum(magnitude - threshold, 0), magnitude,
                  out=scale, where=magnitude > np.finfo(magnitude.dtype).tiny)
        return grad_x * scale, grad_y * scale, grad_z * scale

    return tuple(np.sign(grad) * np.maximum(np.abs(grad) - threshold, 0)
                 for grad in (grad_x, grad_y, grad_z))


def tv_norm(grad_x, grad_y, grad_z, isotropic=True):
    """Total variation of a gradient field."""
    if isotropic:
        return np.sqrt(grad_x ** 2 + grad_y ** 2 + grad_z ** 2).sum()
    return np.abs(grad_x).sum() + np.abs(grad_y).sum() + np.abs(grad_z).sum()


def relative_change(new, old):
    """||new - old|| / ||old||, or ||new|| when old vanishes."""
    old_norm = np.linalg.norm(old)
    if old_norm < np.finfo(float).eps:
        return np.linalg.norm(new)
    return np.linalg.norm(new - old) / old_norm


class EqualityFidelity:
    """Data constraint Au = b, enforced with a multiplier delta."""

    def data_rhs(self, A, rhs, state):
        return A.rmatvec(state.mu * rhs - state.delta)

    def lagrangian_term(self, residual, state):
        return (np.dot(state.delta, residual)
                + state.mu / 2 * np.dot(residual, residual))

    def update_multiplier(self, residual, state):
        state.delta = state.delta + state.mu * residual


class PenaltyFidelity:
    """Quadratic data term mu/2 ||Au - b||^2, no multiplier."""

    def data_rhs(self, A, rhs, state):
        return A.rmatvec(state.mu * rhs)

    def lagrangian_term(self, residual, state):
        return state.mu / 2 * np.dot(residual, residual)

    def update_multiplier(self, residual, state):
        pass


class Variant(enum.Enum):
    """Reconstruction model."""

    TV_EQUALITY = 'tv'
    TV_L2 = 'tvl2'

    @classmethod
    def from_options(cls, options):
        return cls.TV_L2 if options.TVL2 else cls.TV_EQUALITY

    def fidelity(self):
        if self is Variant.TV_L2:
            return PenaltyFidelity()
        return EqualityFidelity()


class IterationState:
    """Everything that changes from one iteration to the next."""

    def __init__(self, volume, beta, mu, measurement_count):
        self.U = volume
        self.W = tuple(np.zeros_like(volume) for _ in range(3))
        self.sigma = tuple(np.zeros_like(volume) for _ in range(3))
        self.delta = np.zeros((measurement_count,))
        self.beta = beta
        self.mu = mu
        self.Au = None


class SolverOutput:
    """Diagnostics of a TVAL3 run."""

    def __init__(self, variant):
        self.variant = variant
        self.iterations = 0
        self.inner_iterations = 0
        self.converged = False
        self.reason = None
        self.relchg = []
        self.lagrangian = []
        self.residual = []
        self.tv = []
        self.final_residual = None
        self.mu = None
        self.beta = None
        self.a_scale = 1.0
        self.b_scale = 1.0
        self.elapsed = 0.0

    def as_dict(self):
        return dict(vars(self))

    def __repr__(self):
        return ('SolverOutput(variant=%s, iterations=%d, converged=%s, '
                'final_residual=%s)' % (self.variant.name, self.iterations,
                                        self.converged, self.final_residual))


class TVAL3:
    """TV minimization by the augmented Lagrangian method."""

    def __init__(self, A, rhs, volume_shape, options=None, variant=None):
        if isinstance(A, np.ndarray) or scipy.sparse.issparse(A):
            A = scipy.sparse.linalg.aslinearoperator(A)
        for attribute in ('shape', 'matvec', 'rmatvec'):
            if not hasattr(A, attribute):
                raise ValueError("forward operator lacks '%s'; pass a "
                                 "scipy LinearOperator, a matrix or an object "
                                 "with shape, matvec and rmatvec" % attribute)

        self.options = Options.from_dict(options)
        if variant is None:
            variant = Variant.from_options(self.options)
        self.variant = variant
        self.fidelity = variant.fidelity()

        self.volume_shape = tuple(int(dim) for dim in volume_shape)
        if len(self.volume_shape) != 3 or min(self.volume_shape) < 1:
            raise ValueError("volume shape must be three positive sizes, "
                             "got %s" % (volume_shape,))
        voxel_count = int(np.prod(self.volume_shape))

        if len(A.shape) != 2 or A.shape[1] != voxel_count:
            raise ValueError("forward operator of shape %s does not accept a "
                             "%s volume (%d voxels)"
                             % (A.shape, self.volume_shape, voxel_count))

        rhs = np.asarray(rhs, dtype=float).ravel()
        if rhs.size != A.shape[0]:
            raise ValueError("measurement vector has %d entries, forward "
                             "operator produces %d" % (rhs.size, A.shape[0]))
        if not np.all(np.isfinite(rhs)):
            raise ValueError("measurement vector contains NaN or Inf values")

        init = self.options.init
        if isinstance(init, np.ndarray) and init.size != voxel_count:
            raise ValueError("initial volume of shape %s does not match %s"
                             % (init.shape, self.volume_shape))

        self.A = A
        self.rhs = rhs

    def run(self):
        """Run the algorithm and return (U, out)."""
        opts = self.options
        D, Dt = operators.define_difference_operators()
        out = SolverOutput(self.variant)
        start_time = time.time()

        A = self.A
        rhs = self.rhs
        if opts.scale_A:
            a_scale = power_method(A, 15, show=opts.disp)
            if not np.isfinite(a_scale) or a_scale <= 0:
                raise ValueError("cannot scale forward operator: estimated "
                                 "norm is %r" % (a_scale,))
            A = scale_operator(A, 1.0 / a_scale)
            rhs = rhs / a_scale
            out.a_scale = a_scale
        if opts.scale_b:
            b_max = np.max(np.abs(rhs))
            if b_max > 0:
                rhs = rhs / b_max
                out.b_scale = b_max
        # TV/L2 solves TV(U) + mu/2 ||AU - b||^2 in the caller's units
        if self.variant is Variant.TV_L2:
            mu_factor = out.a_scale ** 2 * out.b_scale
        else:
            mu_factor = 1.0
        mu_target = opts.mu * mu_factor

        state = IterationState(self._initial_volume(A, rhs, out.b_scale),
                               opts.beta0, opts.mu0 * mu_factor, rhs.size)
        state.Au = A.matvec(state.U.ravel())
        rhs_norm = max(np.linalg.norm(rhs), np.finfo(float).tiny)
        gradient = D(state.U)

        if opts.disp:
            print("Iter\trelchg\t\trel-residual\tTV\t\tbeta\t\tmu")
            print("==================================================="
                  "=================================")
        if opts.show:
            imager = util.RealtimeImager(self.get_slice(state.U))

        try:
            for iter_count in range(opts.maxit):
                u_outer = state.U.copy()
                lagrangian = []

                for _ in range(opts.maxin):
                    u_inner = state.U
                    state.W = check_finite(
                        shrink(*(grad + sigma / state.beta
                                 for grad, sigma in zip(gradient,
                                                        state.sigma)),
                               1 / state.beta, isotropic=opts.isotropic),
                        'shrinkage')
                    self._update_volume(A, rhs, state, D, Dt)
                    gradient = D(state.U)
                    lagrangian.append(self._lagrangian(rhs, state, gradient))
                    out.inner_iterations += 1
                    if relative_change(state.U, u_inner) < opts.tol_inn:
                        break

                state.sigma = tuple(
                    sigma + state.beta * (grad - aux)
                    for sigma, grad, aux in zip(state.sigma, gradient,
                                                state.W))
                residual = state.Au - rhs
                self.fidelity.update_multiplier(residual, state)
                check_finite(state.sigma, 'multiplier update')
                check_finite(state.delta, 'multiplier update')

                relchg = relative_change(state.U, u_outer)
                out.iterations = iter_count + 1
                out.relchg.append(relchg)
                out.lagrangian.append(lagrangian)
                out.residual.append(np.linalg.norm(residual) / rhs_norm)
                out.tv.append(tv_norm(*gradient, isotropic=opts.isotropic))

                if opts.disp:
                    print('%d\t%e\t%e\t%e\t%e\t%e' % (
                        iter_count, relchg, out.residual[-1], out.tv[-1],
                        state.beta, state.mu / mu_factor))
                if opts.show:
                    imager.update(self.get_slice(state.U))

                continuation_done = (state.beta >= opts.beta
                                     and state.mu >= mu_target)
                if relchg < opts.tol and continuation_done:
                    out.converged = True
                    break

                state.beta = min(state.beta * opts.rate_ctn, opts.beta)
                state.mu = min(state.mu * opts.rate_ctn, mu_target)
        finally:
            if opts.show:
                imager.close()

        if out.converged:
            out.reason = 'converged'
        else:
            out.reason = 'max iterations reached'
        out.final_residual = (np.linalg.norm(state.Au - rhs) / rhs_norm)
        out.mu = state.mu / mu_factor
        out.beta = state.beta
        out.elapsed = time.time() - start_time

        if opts.disp:
            print("%s after %d iterations" % (out.reason.capitalize(),
                                              out.iterations))
        return state.U.reshape(self.volume_shape) * out.b_scale, out

    def _initial_volume(self, A, rhs, b_scale):
        init = self.options.init
        if isinstance(init, np.ndarray):
            volume = np.asarray(init, dtype=float).reshape(self.volume_shape)
            return volume / b_scale
        if init == 'backprojection':
            return check_finite(A.rmatvec(rhs), 'initialization').reshape(
                self.volume_shape).astype(float)
        return np.zeros(self.volume_shape)

    def _update_volume(self, A, rhs, state, D, Dt):
        """A few CG steps on (beta D'D + mu A'A) u = D'(beta W - sigma) + A'(.)."""
        beta, mu = state.beta, state.mu
        shape = self.volume_shape

        def normal_matvec(u_vec):
            volume = np.asarray(u_vec).reshape(shape)
            return (beta * Dt(*D(volume))
                    + mu * A.rmatvec(A.matvec(volume.ravel())))

        voxel_count = int(np.prod(shape))
        normal_operator = scipy.sparse.linalg.LinearOperator(
            (voxel_count, voxel_count), matvec=normal_matvec, dtype=float)
        normal_rhs = (Dt(*(beta * aux - sigma
                           for aux, sigma in zip(state.W, state.sigma)))
                      + self.fidelity.data_rhs(A, rhs, state))

        u_vec, _ = scipy.sparse.linalg.cg(normal_operator, normal_rhs,
                                          x0=state.U.ravel(), rtol=1e-12,
                                          atol=0.0,
                                          maxiter=self.options.cg_maxit)
        if self.options.nonneg:
            u_vec = np.maximum(u_vec, 0)
        check_finite(u_vec, 'U-update')

        state.U = u_vec.reshape(shape)
        state.Au = A.matvec(u_vec)

    def _lagrangian(self, rhs, state, gradient):
        """Augmented Lagrangian at the current iterate."""
        value = tv_norm(*state.W, isotropic=self.options.isotropic)
        for grad, aux, sigma in zip(gradient, state.W, state.sigma):
            diff = grad - aux
            value += np.vdot(sigma, diff) + state.beta / 2 * np.vdot(diff, diff)
        return value + self.fidelity.lagrangian_term(state.Au - rhs, state)

    def get_slice(self, volume):
        """Middle depth slice of a volume."""
        return volume[:, :, volume.shape[2] // 2]
