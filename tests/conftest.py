"""
Pytest configuration and fixtures for reproducible testing.

This file provides centralized test configuration including:
- Random seed management for reproducibility
- Non-interactive matplotlib backend
- Small MCMC configurations shared by the sampling tests
"""
import pytest
import numpy as np

try:
    import matplotlib
    matplotlib.use('Agg')
except ImportError:
    pass  # Plotting tests skip themselves


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: runs MCMC sampling")


@pytest.fixture(scope="session", autouse=True)
def set_random_seeds():
    """Set the global NumPy seed once per session for reproducibility."""
    np.random.seed(42)
    yield


@pytest.fixture(scope="function")
def reset_seeds():
    """Reset the global NumPy seed before a test for isolation."""
    np.random.seed(42)
    yield


@pytest.fixture
def fast_config():
    """Tiny MCMC settings: enough draws for summaries, fast to run."""
    from bayes_simfit.bayesian import SamplerConfig
    return SamplerConfig(
        n_chains=2,
        n_draws=300,
        n_tune=300,
        cores=1,
        progressbar=False,
        random_seed=123,
    )
