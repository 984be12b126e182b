"""
bayes-simfit — PyMC Model Definitions
=====================================
Generative models shared by the simulation and the fitting steps.

Each builder returns one PyMC model. Left without observations, the
likelihood nodes are ordinary random variables and the model can be run
forwards (see simulate.py) once its parameters are fixed. Given
observations, the same model is sampled by MCMC (see bayesian.py).

Linear regression:
    alpha ~ prior, beta ~ prior, tau ~ prior
    y[i] ~ Normal(alpha + beta * x[i], tau)          (tau = precision)

Cormack-Jolly-Seber (state-space formulation):
    phi ~ prior, p ~ prior
    z[i, f_i] = 1
    z[i, t]   ~ Bernoulli(phi * z[i, t-1])           t > f_i
    y[i, t]   ~ Bernoulli(p * z[i, t])               t > f_i

License: MIT
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass
import warnings

try:
    import pymc as pm
    import pytensor.tensor as pt
    from pytensor.graph import ancestors
    import arviz as az
    from pymc.printing import str_for_model
    PYMC_AVAILABLE = True
except ImportError:
    PYMC_AVAILABLE = False
    pm = None
    pt = None
    ancestors = None
    az = None
    str_for_model = None
    warnings.warn("[WARNING] PyMC not installed. Install with: pip install pymc arviz")


def require_pymc():
    """Raise ImportError unless the PyMC stack is importable."""
    if not PYMC_AVAILABLE:
        raise ImportError("PyMC required. Install with: pip install pymc arviz")


# Monitored parameters per model
LINEAR_PARAMETERS = ['alpha', 'beta', 'tau', 'sigma']
CJS_PARAMETERS = ['phi', 'p']


# ═══════════════════════════════════════════════════════════════
# Prior specifications
# ═══════════════════════════════════════════════════════════════

@dataclass
class PriorSpec:
    """Specification for a single parameter prior distribution."""
    name: str
    distribution: str  # 'normal', 'uniform', 'halfnormal', 'beta', 'gamma'
    params: Dict       # Distribution parameters (e.g., {'mu': 0, 'sigma': 100})


VALID_DISTRIBUTIONS = ('normal', 'uniform', 'halfnormal', 'beta', 'gamma')


def get_linear_priors() -> List[PriorSpec]:
    """Vague priors for the regression coefficients and precision."""
    return [
        PriorSpec(name='alpha', distribution='normal', params={'mu': 0.0, 'sigma': 100.0}),
        PriorSpec(name='beta', distribution='normal', params={'mu': 0.0, 'sigma': 100.0}),
        PriorSpec(name='tau', distribution='gamma', params={'alpha': 0.01, 'beta': 0.01}),
    ]


def get_cjs_priors() -> List[PriorSpec]:
    """Flat priors on survival and recapture probabilities."""
    return [
        PriorSpec(name='phi', distribution='uniform', params={'lower': 0.0, 'upper': 1.0}),
        PriorSpec(name='p', distribution='uniform', params={'lower': 0.0, 'upper': 1.0}),
    ]


def make_prior(spec: PriorSpec):
    """Create the PyMC random variable for a prior inside the active model."""
    if spec.distribution == 'normal':
        return pm.Normal(spec.name, mu=spec.params['mu'], sigma=spec.params['sigma'])
    elif spec.distribution == 'uniform':
        return pm.Uniform(spec.name, lower=spec.params['lower'], upper=spec.params['upper'])
    elif spec.distribution == 'halfnormal':
        return pm.HalfNormal(spec.name, sigma=spec.params['sigma'])
    elif spec.distribution == 'beta':
        return pm.Beta(spec.name, alpha=spec.params['alpha'], beta=spec.params['beta'])
    elif spec.distribution == 'gamma':
        return pm.Gamma(spec.name, alpha=spec.params['alpha'], beta=spec.params['beta'])
    raise ValueError(f"Unknown distribution: {spec.distribution}")


def _resolve_priors(names: List[str],
                    priors: Optional[List[PriorSpec]],
                    defaults: List[PriorSpec]) -> Dict[str, PriorSpec]:
    """Merge user priors over the defaults, keyed by parameter name."""
    resolved = {p.name: p for p in defaults}
    for spec in priors or []:
        if spec.name not in names:
            raise ValueError(f"Prior given for unknown parameter '{spec.name}' (expected one of {names})")
        resolved[spec.name] = spec
    return resolved


# ═══════════════════════════════════════════════════════════════
# Linear regression
# ═══════════════════════════════════════════════════════════════

def build_linear_regression_model(x: np.ndarray,
                                  y: Optional[np.ndarray] = None,
                                  priors: Optional[List[PriorSpec]] = None) -> 'pm.Model':
    """Build the linear regression model.

    Args:
        x: [N] covariate values
        y: [N] responses, or None to leave y unobserved (simulation)
        priors: Overrides for the default priors, matched by name

    Returns:
        PyMC model with free parameters alpha, beta, tau and
        deterministic sigma = 1 / sqrt(tau)
    """
    require_pymc()
    x = np.asarray(x, dtype=np.float64)
    if y is not None:
        y = np.asarray(y, dtype=np.float64)
        if y.shape != x.shape:
            raise ValueError(f"x and y shape mismatch: {x.shape} vs {y.shape}")

    specs = _resolve_priors(['alpha', 'beta', 'tau'], priors, get_linear_priors())

    with pm.Model(coords={'obs': np.arange(len(x))}) as model:
        alpha = make_prior(specs['alpha'])
        beta = make_prior(specs['beta'])
        tau = make_prior(specs['tau'])
        pm.Deterministic('sigma', 1.0 / pm.math.sqrt(tau))

        mu = alpha + beta * x
        pm.Normal('y', mu=mu, tau=tau, observed=y, dims='obs')

    return model


# ═══════════════════════════════════════════════════════════════
# Cormack-Jolly-Seber
# ═══════════════════════════════════════════════════════════════

def state_name(t: int) -> str:
    """Name of the latent alive-state vector for occasion t."""
    return f'z_{t}'


def observation_index(first: np.ndarray, n_occasions: int):
    """Row/column indices of the modelled detections (occasions after marking)."""
    occasions = np.arange(n_occasions)
    return np.nonzero(occasions[None, :] > first[:, None])


def build_cjs_model(first: np.ndarray,
                    n_occasions: int,
                    histories: Optional[np.ndarray] = None,
                    priors: Optional[List[PriorSpec]] = None) -> 'pm.Model':
    """Build the CJS state-space model.

    One latent Bernoulli vector z_t per occasion holds the alive state of
    every individual. Before marking an individual's state is fixed at 0
    (probability 0), at marking it is 1 (probability 1). z_0 involves no
    survival step and is a deterministic node. Detections are modelled
    only after marking and are flattened into a single node 'y' following
    observation_index().

    Args:
        first: [N] first-capture occasion per individual (0-based)
        n_occasions: Number of capture occasions T
        histories: [N, T] observed 0/1 matrix, or None for simulation
        priors: Overrides for the default priors on phi and p

    Returns:
        PyMC model. With histories given, latent states start from the
        known state (alive from marking onwards) so the initial point has
        finite log-probability. Without histories the model carries no
        initial values, as pm.do cannot copy a model that has them.
    """
    require_pymc()
    first = np.asarray(first, dtype=np.int64)
    if first.ndim != 1 or len(first) == 0:
        raise ValueError("first must be a non-empty 1D array")
    if np.any(first < 0) or np.any(first >= n_occasions):
        raise ValueError(f"first-capture occasions must lie in [0, {n_occasions - 1}]")

    rows, cols = observation_index(first, n_occasions)
    observed = None
    if histories is not None:
        histories = np.asarray(histories, dtype=np.int64)
        if histories.shape != (len(first), n_occasions):
            raise ValueError(
                f"histories must have shape ({len(first)}, {n_occasions}), got {histories.shape}"
            )
        observed = histories[rows, cols]

    occasions = np.arange(n_occasions)
    z_init = (occasions[None, :] >= first[:, None]).astype(np.int64)

    specs = _resolve_priors(CJS_PARAMETERS, priors, get_cjs_priors())

    with pm.Model(coords={'individual': np.arange(len(first))}) as model:
        phi = make_prior(specs['phi'])
        p = make_prior(specs['p'])

        z_prev = pm.Deterministic(state_name(0), pt.as_tensor_variable(z_init[:, 0]),
                                  dims='individual')
        states = [z_prev]
        for t in range(1, n_occasions):
            prob = pt.switch(first > t, 0.0,
                             pt.switch(first == t, 1.0, phi * z_prev))
            initval = z_init[:, t] if observed is not None else None
            z_t = pm.Bernoulli(state_name(t), p=prob, initval=initval, dims='individual')
            states.append(z_t)
            z_prev = z_t

        z = pt.stack(states, axis=1)
        pm.Bernoulli('y', p=p * z[rows, cols], observed=observed)

    return model


def describe_model(model: 'pm.Model') -> str:
    """Plain-text listing of the model's variables and distributions."""
    return str_for_model(model)
