import numpy as np
import pytest
import scipy.sparse.linalg

from tval3d.solvers import (EqualityFidelity, NumericalError,
                            PenaltyFidelity, Variant, check_finite,
                            power_method, relative_change, shrink, tv_norm)
from tval3d.options import parse_options


@pytest.mark.parametrize('isotropic', [True, False])
def test_shrink_with_zero_threshold_is_identity(rng, isotropic):
    field = [rng.standard_normal((3, 4, 5)) for _ in range(3)]
    for shrunk, original in zip(shrink(*field, 0.0, isotropic=isotropic),
                                field):
        np.testing.assert_allclose(shrunk, original, rtol=1e-14)


@pytest.mark.parametrize('isotropic', [True, False])
@pytest.mark.parametrize('threshold', [1e12, np.inf])
def test_shrink_with_huge_threshold_is_zero(rng, isotropic, threshold):
    field = [rng.standard_normal((3, 4, 5)) for _ in range(3)]
    for shrunk in shrink(*field, threshold, isotropic=isotropic):
        assert np.all(shrunk == 0)


def test_isotropic_shrink_scales_magnitude():
    field = [np.full((1, 1, 1), value) for value in (3.0, 4.0, 0.0)]
    grad_x, grad_y, grad_z = shrink(*field, 1.0)
    assert grad_x.item() == pytest.approx(2.4)
    assert grad_y.item() == pytest.approx(3.2)
    assert grad_z.item() == 0


def test_anisotropic_shrink_is_componentwise():
    field = [np.array([[[value]]]) for value in (3.0, -0.5, -2.0)]
    grad_x, grad_y, grad_z = shrink(*field, 1.0, isotropic=False)
    assert grad_x.item() == pytest.approx(2.0)
    assert grad_y.item() == 0
    assert grad_z.item() == pytest.approx(-1.0)


def test_shrink_of_zero_field_is_finite():
    field = [np.zeros((2, 2, 2)) for _ in range(3)]
    with np.errstate(all='raise'):
        result = shrink(*field, 0.5)
    for shrunk in result:
        assert np.all(shrunk == 0)


def test_shrink_rejects_negative_threshold():
    field = [np.zeros((2, 2, 2)) for _ in range(3)]
    with pytest.raises(ValueError):
        shrink(*field, -1.0)


def test_tv_norm():
    field = [np.full((1, 1, 2), value) for value in (3.0, 4.0, 0.0)]
    assert tv_norm(*field) == pytest.approx(10.0)
    assert tv_norm(*field, isotropic=False) == pytest.approx(14.0)


def test_power_method():
    matrix = scipy.sparse.linalg.aslinearoperator(np.diag([1.0, 2.0, 3.0]))
    assert power_method(matrix, 50) == pytest.approx(3.0, rel=1e-6)


def test_relative_change():
    assert relative_change(np.zeros(3), np.zeros(3)) == 0
    assert relative_change(np.array([1.0, 1.0]),
                           np.array([1.0, 0.0])) == pytest.approx(1.0)
    # from a zero start the change is measured absolutely
    assert relative_change(np.array([3.0, 4.0]),
                           np.zeros(2)) == pytest.approx(5.0)


def test_check_finite_names_step():
    with pytest.raises(NumericalError, match='shrinkage'):
        check_finite(np.array([1.0, np.nan]), 'shrinkage')
    with pytest.raises(ArithmeticError):
        check_finite((np.zeros(2), np.array([np.inf, 0.0])), 'U-update')
    values = np.ones(3)
    assert check_finite(values, 'U-update') is values


def test_variant_selection():
    assert Variant.from_options(parse_options(None)) is Variant.TV_EQUALITY
    assert Variant.from_options(
        parse_options({'TVL2': True})) is Variant.TV_L2
    assert isinstance(Variant.TV_L2.fidelity(), PenaltyFidelity)
    assert isinstance(Variant.TV_EQUALITY.fidelity(), EqualityFidelity)
