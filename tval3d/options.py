"""Options for the TVAL3 reconstruction."""
import numbers
import numpy as np


DEFAULTS = {
    'TVL2': False,
    'mu': 2.0 ** 8,
    'beta': 2.0 ** 5,
    'mu0': None,
    'beta0': None,
    'rate_ctn': 2.0,
    'tol': 1e-6,
    'tol_inn': 1e-3,
    'maxit': 300,
    'maxin': 10,
    'cg_maxit': 10,
    'TVnorm': 2,
    'nonneg': False,
    'init': 'zeros',
    'scale_A': True,
    'scale_b': True,
    'disp': False,
    'show': False,
}

INIT_MODES = ('zeros', 'backprojection')


def _is_bool(value):
    return isinstance(value, (bool, np.bool_))


def _is_integer(value):
    return (isinstance(value, numbers.Integral)
            and not isinstance(value, (bool, np.bool_)))


def _is_real(value):
    return (isinstance(value, numbers.Real)
            and not isinstance(value, (bool, np.bool_)))


class Options:
    """Validated solver options.

    Every key of ``DEFAULTS`` becomes an attribute. Keys that are not
    recognized are ignored, so option dictionaries written for a newer
    version still work.
    """

    def __init__(self, **kwargs):
        values = dict(DEFAULTS)
        values.update((key, value) for key, value in kwargs.items()
                      if key in DEFAULTS)
        if values['mu0'] is None:
            values['mu0'] = values['mu']
        if values['beta0'] is None:
            values['beta0'] = values['beta']

        for key, value in values.items():
            setattr(self, key, value)
        self.validate()

    @classmethod
    def from_dict(cls, opts):
        """Build options from None, a dict or another Options object."""
        if opts is None:
            return cls()
        if isinstance(opts, Options):
            return cls(**opts.as_dict())
        if not isinstance(opts, dict):
            raise ValueError("opts must be a dict or Options, got %s"
                             % type(opts).__name__)
        return cls(**opts)

    def as_dict(self):
        return {key: getattr(self, key) for key in DEFAULTS}

    def validate(self):
        """Raise ValueError on malformed values."""
        for key in ('TVL2', 'nonneg', 'scale_A', 'scale_b', 'disp', 'show'):
            if not _is_bool(getattr(self, key)):
                raise ValueError("option %s must be a bool, got %r"
                                 % (key, getattr(self, key)))

        for key in ('mu', 'beta', 'mu0', 'beta0', 'tol', 'tol_inn'):
            value = getattr(self, key)
            if not _is_real(value) or not np.isfinite(value) or value <= 0:
                raise ValueError("option %s must be a positive number, got %r"
                                 % (key, value))

        if self.mu0 > self.mu:
            raise ValueError("mu0 (%g) must not exceed mu (%g)"
                             % (self.mu0, self.mu))
        if self.beta0 > self.beta:
            raise ValueError("beta0 (%g) must not exceed beta (%g)"
                             % (self.beta0, self.beta))

        if (not _is_real(self.rate_ctn) or not np.isfinite(self.rate_ctn)
                or self.rate_ctn < 1):
            raise ValueError("option rate_ctn must be >= 1, got %r"
                             % (self.rate_ctn,))
        if self.rate_ctn == 1 and (self.mu0 < self.mu or self.beta0 < self.beta):
            raise ValueError("option rate_ctn must exceed 1 when mu0 or beta0 "
                             "start below their targets")

        for key in ('maxit', 'maxin', 'cg_maxit'):
            value = getattr(self, key)
            if not _is_integer(value) or value < 1:
                raise ValueError("option %s must be a positive integer, got %r"
                                 % (key, value))

        if self.TVnorm not in (1, 2) or _is_bool(self.TVnorm):
            raise ValueError("option TVnorm must be 1 or 2, got %r"
                             % (self.TVnorm,))

        if isinstance(self.init, str):
            if self.init not in INIT_MODES:
                raise ValueError("option init must be one of %s or an array, "
                                 "got %r" % (INIT_MODES, self.init))
        elif not isinstance(self.init, np.ndarray):
            raise ValueError("option init must be one of %s or an array, "
                             "got %s" % (INIT_MODES, type(self.init).__name__))

    @property
    def isotropic(self):
        return self.TVnorm == 2

    def __repr__(self):
        items = ', '.join('%s=%r' % (key, getattr(self, key))
                          for key in DEFAULTS if key != 'init')
        return 'Options(%s)' % items


def parse_options(opts):
    """Shortcut for :meth:`Options.from_dict`."""
    return Options.from_dict(opts)
