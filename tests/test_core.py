"""
Unit tests for simulation parameters and dataset containers
"""

import pytest
import numpy as np
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from bayes_simfit.core import (
    LinearRegressionParams, LinearRegressionData, CJSParams,
    CaptureHistories, first_capture
)


@pytest.fixture
def small_histories():
    """Three individuals, four occasions."""
    return np.array([
        [1, 0, 1, 0],
        [0, 1, 1, 1],
        [1, 0, 0, 0],
    ])


class TestLinearRegressionParams:
    """Test regression parameter validation and defaults."""

    def test_default_covariate(self):
        params = LinearRegressionParams(n=5)
        np.testing.assert_array_equal(params.x, [1.0, 2.0, 3.0, 4.0, 5.0])

    def test_sigma_from_precision(self):
        params = LinearRegressionParams(tau=25.0)
        assert params.sigma == pytest.approx(0.2)

    def test_true_values(self):
        params = LinearRegressionParams(alpha=2.0, beta=-1.0, tau=4.0, n=10)
        truth = params.true_values()
        assert truth == {'alpha': 2.0, 'beta': -1.0, 'tau': 4.0, 'sigma': 0.5}

    def test_explicit_covariate(self):
        x = np.linspace(0, 1, 7)
        params = LinearRegressionParams(n=7, x=x)
        np.testing.assert_allclose(params.x, x)

    @pytest.mark.parametrize("kwargs", [
        {'n': 1},
        {'tau': 0.0},
        {'tau': -3.0},
        {'n': 4, 'x': np.arange(5)},
    ])
    def test_invalid_params_rejected(self, kwargs):
        with pytest.raises(ValueError):
            LinearRegressionParams(**kwargs)

    def test_params_are_immutable(self):
        params = LinearRegressionParams()
        with pytest.raises(AttributeError):
            params.alpha = 3.0


class TestLinearRegressionData:

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            LinearRegressionData(x=np.arange(3), y=np.arange(4))

    def test_n(self):
        data = LinearRegressionData(x=np.arange(6), y=np.zeros(6))
        assert data.n == 6


class TestCJSParams:
    """Test capture-recapture parameter validation."""

    def test_scalar_marked_broadcast(self):
        params = CJSParams(n_occasions=5, marked=10)
        assert params.marked == (10, 10, 10, 10)
        assert params.n_individuals == 40

    def test_first_capture_design(self):
        params = CJSParams(n_occasions=4, marked=[2, 0, 1])
        np.testing.assert_array_equal(params.first_capture(), [0, 0, 2])

    @pytest.mark.parametrize("kwargs", [
        {'phi': 1.2},
        {'p': -0.1},
        {'n_occasions': 1},
        {'n_occasions': 4, 'marked': [1, 2]},
        {'n_occasions': 3, 'marked': [0, 0]},
        {'n_occasions': 3, 'marked': [-1, 2]},
    ])
    def test_invalid_params_rejected(self, kwargs):
        with pytest.raises(ValueError):
            CJSParams(**kwargs)

    def test_true_values(self):
        assert CJSParams(phi=0.7, p=0.4).true_values() == {'phi': 0.7, 'p': 0.4}


class TestCaptureHistories:
    """Test capture-history derived views."""

    def test_first_capture(self, small_histories):
        np.testing.assert_array_equal(first_capture(small_histories), [0, 1, 0])

    def test_first_capture_requires_detection(self):
        with pytest.raises(ValueError):
            first_capture(np.array([[0, 0, 0], [1, 0, 0]]))

    def test_first_inferred(self, small_histories):
        ch = CaptureHistories(small_histories)
        np.testing.assert_array_equal(ch.first, [0, 1, 0])
        assert ch.n_individuals == 3
        assert ch.n_occasions == 4

    def test_inconsistent_first_rejected(self, small_histories):
        with pytest.raises(ValueError):
            CaptureHistories(small_histories, first=np.array([0, 0, 0]))

    def test_non_binary_rejected(self):
        with pytest.raises(ValueError):
            CaptureHistories(np.array([[1, 2], [1, 0]]))

    def test_last_capture(self, small_histories):
        ch = CaptureHistories(small_histories)
        np.testing.assert_array_equal(ch.last_capture(), [2, 3, 0])

    def test_known_state(self, small_histories):
        ch = CaptureHistories(small_histories)
        expected = np.array([
            [1, 1, 1, 0],
            [0, 1, 1, 1],
            [1, 0, 0, 0],
        ])
        np.testing.assert_array_equal(ch.known_state(), expected)

    def test_m_array(self, small_histories):
        ch = CaptureHistories(small_histories)
        expected = np.array([
            [0, 1, 0, 1],
            [0, 1, 0, 0],
            [0, 0, 1, 1],
        ])
        np.testing.assert_array_equal(ch.m_array(), expected)

    def test_m_array_accounts_for_every_release(self, small_histories):
        """Each detection before the last occasion is one release."""
        ch = CaptureHistories(small_histories)
        releases = small_histories[:, :-1].sum()
        assert ch.m_array().sum() == releases

    def test_summary(self, small_histories):
        alive = np.array([
            [1, 1, 1, 0],
            [0, 1, 1, 1],
            [1, 1, 0, 0],
        ])
        summary = CaptureHistories(small_histories, alive=alive).summary()
        assert summary['individuals'] == 3
        assert summary['detections'] == 6
        assert summary['recaptured'] == 2
        assert summary['alive_at_end'] == 1
