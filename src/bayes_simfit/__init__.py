"""
bayes-simfit - Simulate data from Bayesian models, then refit them

Fix known parameter values, draw a synthetic dataset from a PyMC model in
"data simulation" mode, and recover those values by MCMC on the same
model. Covers a linear regression and a Cormack-Jolly-Seber
capture-recapture model.
"""

__version__ = "0.1.0"

# Simulation inputs and datasets
from .core import (
    LinearRegressionParams,
    LinearRegressionData,
    CJSParams,
    CaptureHistories,
    first_capture,
)

# Models and simulation (PyMC is optional at import time)
from .models import (
    PYMC_AVAILABLE,
    PriorSpec,
    build_linear_regression_model,
    build_cjs_model,
    describe_model,
)
from .simulate import (
    simulate_dataset,
    simulate_linear_regression,
    simulate_cjs,
    prior_predictive,
)

# Inference
from .bayesian import PosteriorFitter, SamplerConfig

# Workflows
from .recovery import (
    RecoveryResult,
    run_linear_regression_recovery,
    run_cjs_recovery,
    recovery_study,
    summarize_study,
    least_squares_estimates,
)

__all__ = [
    "LinearRegressionParams",
    "LinearRegressionData",
    "CJSParams",
    "CaptureHistories",
    "first_capture",
    "PYMC_AVAILABLE",
    "PriorSpec",
    "build_linear_regression_model",
    "build_cjs_model",
    "describe_model",
    "simulate_dataset",
    "simulate_linear_regression",
    "simulate_cjs",
    "prior_predictive",
    "PosteriorFitter",
    "SamplerConfig",
    "RecoveryResult",
    "run_linear_regression_recovery",
    "run_cjs_recovery",
    "recovery_study",
    "summarize_study",
    "least_squares_estimates",
]
