"""
bayes-simfit — Data Simulation Mode
===================================
Draws one synthetic dataset from a model whose parameters are fixed.

The model used here is the very same one later fitted by MCMC. Fixing its
parameters (a do-intervention that replaces each prior with a constant)
turns it into a purely generative program: a single forward draw of the
likelihood nodes is one dataset consistent with the model's sampling
statements.

Every free random variable must be either fixed or one of the requested
outputs, and every free output must depend on at least one fixed value.
A model with a free parameter left over (or passed off as an output) is
under-determined and is rejected rather than silently drawing that
parameter from its prior.

Usage:
    from bayes_simfit.core import LinearRegressionParams, CJSParams
    from bayes_simfit.simulate import simulate_linear_regression, simulate_cjs

    data = simulate_linear_regression(LinearRegressionParams(n=50), random_seed=1)
    ch = simulate_cjs(CJSParams(phi=0.8, p=0.6), random_seed=1)
    print(ch.m_array())

License: MIT
"""

import numpy as np
from typing import Dict, Optional, Sequence, List

from .core import (
    LinearRegressionParams, LinearRegressionData, CJSParams, CaptureHistories
)
from .models import (
    pm, ancestors, require_pymc, PriorSpec, build_linear_regression_model, build_cjs_model,
    observation_index, state_name
)


# ═══════════════════════════════════════════════════════════════
# Generic simulation step
# ═══════════════════════════════════════════════════════════════

def simulate_dataset(model: 'pm.Model',
                     fixed_values: Dict[str, float],
                     targets: Sequence[str],
                     latent: Sequence[str] = (),
                     random_seed: Optional[int] = None,
                     verbose: bool = False) -> Dict[str, np.ndarray]:
    """Draw one joint sample of `targets` (and `latent`) with parameters fixed.

    Args:
        model: PyMC model with its likelihood nodes left unobserved
        fixed_values: Parameter name -> value; must cover every free
            random variable that is not an output
        targets: Names of the simulated data nodes
        latent: Names of latent nodes to draw jointly (e.g. true states)
        random_seed: Seed for this draw (PyMC's own RNG state if None)

    Returns:
        Dict mapping each output name to its drawn array
    """
    require_pymc()
    outputs = list(targets) + list(latent)

    unknown = [name for name in fixed_values if name not in model.named_vars]
    if unknown:
        raise ValueError(f"Fixed values given for variables not in the model: {unknown}")

    missing = [name for name in outputs if name not in model.named_vars]
    if missing:
        raise ValueError(f"Requested outputs not in the model: {missing}")

    unresolved = [rv.name for rv in model.free_RVs
                  if rv.name not in fixed_values and rv.name not in outputs]

    # A free output that depends on no fixed value is a parameter drawn
    # from its prior, not simulated data
    fixed_vars = {model[name] for name in fixed_values}
    free_names = {rv.name for rv in model.free_RVs}
    for name in outputs:
        if name in free_names and name not in fixed_values:
            if not fixed_vars.intersection(ancestors([model[name]])):
                unresolved.append(name)

    if unresolved:
        raise ValueError(
            f"Model is under-determined: no fixed value for {unresolved}. "
            f"Every parameter must be supplied to simulate data."
        )

    interventions = {
        name: np.asarray(value, dtype=model[name].dtype)
        for name, value in fixed_values.items()
    }
    sim_model = pm.do(model, interventions)

    if verbose:
        print(f"[Simulate] Fixed: {fixed_values}")
        print(f"[Simulate] Drawing {list(targets)} + {len(latent)} latent (seed={random_seed})")

    draws = pm.draw([sim_model[name] for name in outputs], random_seed=random_seed)
    return {name: np.asarray(value) for name, value in zip(outputs, draws)}


def prior_predictive(model: 'pm.Model',
                     draws: int = 500,
                     random_seed: Optional[int] = None):
    """Prior predictive draws, for checking what the priors imply about data.

    Returns:
        arviz.InferenceData with 'prior' and 'prior_predictive' groups
    """
    require_pymc()
    return pm.sample_prior_predictive(draws=draws, model=model, random_seed=random_seed)


# ═══════════════════════════════════════════════════════════════
# Model-specific simulators
# ═══════════════════════════════════════════════════════════════

def simulate_linear_regression(params: Optional[LinearRegressionParams] = None,
                               random_seed: Optional[int] = None,
                               priors: Optional[List[PriorSpec]] = None,
                               verbose: bool = False) -> LinearRegressionData:
    """Simulate y given fixed intercept, slope and precision."""
    params = params or LinearRegressionParams()
    model = build_linear_regression_model(params.x, y=None, priors=priors)

    draws = simulate_dataset(
        model,
        fixed_values={'alpha': params.alpha, 'beta': params.beta, 'tau': params.tau},
        targets=['y'],
        random_seed=random_seed,
        verbose=verbose,
    )

    data = LinearRegressionData(x=params.x, y=draws['y'])
    if verbose:
        print(f"[Simulate] Linear regression: n={data.n}, "
              f"y range {data.y.min():.3f} - {data.y.max():.3f}")
    return data


def simulate_cjs(params: Optional[CJSParams] = None,
                 random_seed: Optional[int] = None,
                 priors: Optional[List[PriorSpec]] = None,
                 verbose: bool = False) -> CaptureHistories:
    """Simulate CJS capture histories given fixed survival and recapture.

    The latent alive states are drawn together with the detections and
    returned in `alive`, so the true population trajectory is available.
    """
    params = params or CJSParams()
    first = params.first_capture()
    T = params.n_occasions
    N = len(first)

    model = build_cjs_model(first, T, histories=None, priors=priors)
    states = [state_name(t) for t in range(T)]

    draws = simulate_dataset(
        model,
        fixed_values={'phi': params.phi, 'p': params.p},
        targets=['y'],
        latent=states,
        random_seed=random_seed,
        verbose=verbose,
    )

    # Reshape flat detections back into the individuals × occasions matrix
    histories = np.zeros((N, T), dtype=np.int64)
    histories[np.arange(N), first] = 1
    rows, cols = observation_index(first, T)
    histories[rows, cols] = draws['y']
    alive = np.stack([draws[name] for name in states], axis=1).astype(np.int64)

    ch = CaptureHistories(histories=histories, first=first, alive=alive)
    if verbose:
        print(f"[Simulate] CJS: {ch.summary()}")
    return ch
