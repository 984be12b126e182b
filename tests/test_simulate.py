"""
Unit tests for data simulation mode
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), 'src'))

from bayes_simfit.core import LinearRegressionParams, CJSParams, CaptureHistories

try:
    from bayes_simfit.models import build_linear_regression_model
    from bayes_simfit.simulate import (
        simulate_dataset, simulate_linear_regression, simulate_cjs, prior_predictive
    )
    import pymc as pm  # noqa: F401
    PYMC_AVAILABLE = True
except ImportError:
    PYMC_AVAILABLE = False


@pytest.mark.skipif(not PYMC_AVAILABLE, reason="PyMC not installed")
class TestSimulateDataset:
    """Test the generic fixed-parameter draw."""

    @pytest.fixture
    def model(self):
        return build_linear_regression_model(np.arange(1.0, 11.0))

    def test_draw_targets(self, model):
        out = simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0},
                               targets=['y'], random_seed=1)
        assert set(out) == {'y'}
        assert out['y'].shape == (10,)

    def test_seed_reproducible(self, model):
        fixed = {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0}
        a = simulate_dataset(model, fixed, targets=['y'], random_seed=7)
        b = simulate_dataset(model, fixed, targets=['y'], random_seed=7)
        c = simulate_dataset(model, fixed, targets=['y'], random_seed=8)
        np.testing.assert_array_equal(a['y'], b['y'])
        assert not np.array_equal(a['y'], c['y'])

    def test_under_determined_model_rejected(self, model):
        with pytest.raises(ValueError, match="under-determined"):
            simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0}, targets=['y'])

    def test_parameter_requested_as_output_rejected(self, model):
        # tau depends on no fixed value, so drawing it means sampling its prior
        with pytest.raises(ValueError, match="under-determined.*tau"):
            simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0},
                             targets=['y'], latent=['tau'])

    def test_every_parameter_as_output_rejected(self, model):
        with pytest.raises(ValueError, match="under-determined"):
            simulate_dataset(model, {}, targets=['y'], latent=['alpha', 'beta', 'tau'])

    def test_missing_pymc_raises_import_error(self, model, monkeypatch):
        import bayes_simfit.models as models
        monkeypatch.setattr(models, 'PYMC_AVAILABLE', False)
        with pytest.raises(ImportError, match="PyMC required"):
            simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0}, targets=['y'])

    def test_unknown_fixed_value_rejected(self, model):
        with pytest.raises(ValueError, match="not in the model"):
            simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0, 'gamma': 2.0},
                             targets=['y'])

    def test_unknown_target_rejected(self, model):
        with pytest.raises(ValueError, match="not in the model"):
            simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0}, targets=['w'])

    def test_deterministic_output(self, model):
        out = simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 4.0},
                               targets=['y'], latent=['sigma'], random_seed=1)
        assert float(out['sigma']) == pytest.approx(0.5)

    def test_original_model_untouched(self, model):
        simulate_dataset(model, {'alpha': 0.0, 'beta': 1.0, 'tau': 1.0}, targets=['y'])
        assert {rv.name for rv in model.free_RVs} == {'alpha', 'beta', 'tau', 'y'}


@pytest.mark.skipif(not PYMC_AVAILABLE, reason="PyMC not installed")
class TestSimulateLinearRegression:

    def test_dataset_shape(self):
        params = LinearRegressionParams(n=25)
        data = simulate_linear_regression(params, random_seed=3)
        assert data.n == 25
        np.testing.assert_array_equal(data.x, params.x)

    def test_residual_scale_matches_sigma(self):
        params = LinearRegressionParams(alpha=1.0, beta=2.0, tau=4.0, n=4000,
                                        x=np.linspace(-1, 1, 4000))
        data = simulate_linear_regression(params, random_seed=11)
        residuals = data.y - (params.alpha + params.beta * data.x)
        assert abs(residuals.mean()) < 0.05
        assert np.std(residuals) == pytest.approx(params.sigma, rel=0.05)


@pytest.mark.skipif(not PYMC_AVAILABLE, reason="PyMC not installed")
class TestSimulateCJS:
    """Test simulated capture histories obey the state-space structure."""

    @pytest.fixture
    def histories(self):
        return simulate_cjs(CJSParams(phi=0.7, p=0.5, n_occasions=6, marked=30), random_seed=5)

    def test_shape(self, histories):
        assert isinstance(histories, CaptureHistories)
        assert histories.histories.shape == (150, 6)
        assert histories.alive.shape == (150, 6)

    def test_marked_at_first_occasion(self, histories):
        N = histories.n_individuals
        assert np.all(histories.histories[np.arange(N), histories.first] == 1)
        assert np.all(histories.alive[np.arange(N), histories.first] == 1)

    def test_nothing_before_marking(self, histories):
        before = np.arange(6)[None, :] < histories.first[:, None]
        assert histories.histories[before].sum() == 0
        assert histories.alive[before].sum() == 0

    def test_detected_only_when_alive(self, histories):
        assert np.all(histories.histories <= histories.alive)

    def test_death_is_permanent(self, histories):
        steps = np.diff(histories.alive, axis=1)
        after_first = np.arange(1, 6)[None, :] > histories.first[:, None]
        assert np.all(steps[after_first] <= 0)

    def test_small_release(self):
        ch = simulate_cjs(CJSParams(phi=0.8, p=0.6, n_occasions=4, marked=3), random_seed=0)
        assert ch.histories.shape == (9, 4)
        np.testing.assert_array_equal(ch.first, np.repeat([0, 1, 2], 3))

    def test_perfect_survival_and_detection(self):
        ch = simulate_cjs(CJSParams(phi=1.0, p=1.0, n_occasions=4, marked=3), random_seed=0)
        expected = (np.arange(4)[None, :] >= ch.first[:, None]).astype(int)
        np.testing.assert_array_equal(ch.histories, expected)

    def test_zero_survival(self):
        ch = simulate_cjs(CJSParams(phi=0.0, p=1.0, n_occasions=4, marked=3), random_seed=0)
        assert np.all(ch.histories.sum(axis=1) == 1)

    def test_survival_rate(self):
        params = CJSParams(phi=0.8, p=0.5, n_occasions=5, marked=500)
        ch = simulate_cjs(params, random_seed=21)
        after_first = np.arange(1, 5)[None, :] > ch.first[:, None]
        was_alive = ch.alive[:, :-1] == 1
        at_risk = after_first & was_alive
        survived = ch.alive[:, 1:][at_risk]
        assert survived.mean() == pytest.approx(0.8, abs=0.03)

    def test_recapture_rate(self):
        params = CJSParams(phi=0.9, p=0.4, n_occasions=5, marked=500)
        ch = simulate_cjs(params, random_seed=22)
        after_first = np.arange(5)[None, :] > ch.first[:, None]
        alive_after = after_first & (ch.alive == 1)
        assert ch.histories[alive_after].mean() == pytest.approx(0.4, abs=0.03)


@pytest.mark.skipif(not PYMC_AVAILABLE, reason="PyMC not installed")
def test_prior_predictive():
    model = build_linear_regression_model(np.arange(4.0))
    idata = prior_predictive(model, draws=20, random_seed=0)
    assert idata.prior['alpha'].shape == (1, 20)
    assert idata.prior['y'].shape == (1, 20, 4)
