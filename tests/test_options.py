import numpy as np
import pytest

from tval3d.options import DEFAULTS, Options, parse_options


def test_defaults():
    options = parse_options(None)
    assert options.TVL2 is False
    assert options.mu == DEFAULTS['mu']
    assert options.beta == DEFAULTS['beta']
    assert options.mu0 == options.mu
    assert options.beta0 == options.beta
    assert options.isotropic


def test_unknown_keys_are_ignored():
    options = parse_options({'maxit': 5, 'not_an_option': object()})
    assert options.maxit == 5
    assert not hasattr(options, 'not_an_option')


def test_continuation_start_values():
    options = parse_options({'mu': 64.0, 'mu0': 4.0, 'beta0': 1.0})
    assert options.mu0 == 4.0
    assert options.beta0 == 1.0


def test_copy_from_options():
    options = Options(TVL2=True, TVnorm=1)
    copy = parse_options(options)
    assert copy is not options
    assert copy.TVL2 and not copy.isotropic


def test_numpy_bool_accepted():
    assert parse_options({'TVL2': np.bool_(True)}).TVL2


@pytest.mark.parametrize('opts', [
    {'TVL2': 1},
    {'TVL2': 'yes'},
    {'nonneg': None},
    {'beta': -1.0},
    {'mu': 0},
    {'tol': float('nan')},
    {'mu0': 1e6},
    {'beta0': 2.0 ** 10},
    {'rate_ctn': 0.5},
    {'rate_ctn': 1, 'mu0': 1.0},
    {'maxit': 0},
    {'cg_maxit': 2.5},
    {'TVnorm': 3},
    {'init': 'random'},
    {'init': [0, 1]},
])
def test_malformed_options(opts):
    with pytest.raises(ValueError):
        parse_options(opts)


def test_rejects_non_mappings():
    with pytest.raises(ValueError):
        parse_options([('TVL2', True)])
