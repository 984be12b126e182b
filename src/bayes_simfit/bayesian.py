"""
bayes-simfit — Posterior Inference
==================================
Fits a model to (simulated) data via MCMC and summarizes the posterior.

Key Features:
- Configurable chains, draws, burn-in (tuning) and thinning
- Posterior summaries with credible intervals (HDI)
- R-hat / effective sample size reporting
- Trace and density plots for visual convergence checks
- Comparison of posterior summaries against known true values

Mathematical Framework:
    Bayes' Theorem: P(θ|D) ∝ P(D|θ) × P(θ)

    When D was simulated from the model at θ*, a well-behaved fit puts
    θ* inside the credible interval and the posterior concentrates on θ*
    as the amount of data grows.

Usage:
    from bayes_simfit.models import build_linear_regression_model
    from bayes_simfit.bayesian import PosteriorFitter, SamplerConfig

    model = build_linear_regression_model(data.x, data.y)
    fitter = PosteriorFitter(SamplerConfig(n_chains=2, n_draws=1000))
    trace = fitter.fit(model, var_names=['alpha', 'beta', 'sigma'])
    print(fitter.compare_with_truth({'alpha': 0.5, 'beta': 1.0, 'sigma': 0.1}))

License: MIT
"""

import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass
import warnings

from .models import pm, az, require_pymc

try:
    import matplotlib.pyplot as plt
    import seaborn as sns
    PLOTTING_AVAILABLE = True
    sns.set_style('whitegrid')
except ImportError:
    PLOTTING_AVAILABLE = False


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════

VALID_SAMPLERS = ('NUTS', 'Metropolis', 'Slice', 'auto')


@dataclass
class SamplerConfig:
    """Configuration for MCMC inference."""
    n_chains: int = 4              # Number of MCMC chains
    n_draws: int = 2000            # Samples per chain (post-burn-in)
    n_tune: int = 1000             # Burn-in / tuning steps
    thin: int = 1                  # Keep every `thin`-th draw
    target_accept: float = 0.9     # Target acceptance rate (NUTS)
    sampler: str = 'NUTS'          # Continuous sampler: 'NUTS', 'Metropolis', 'Slice', 'auto'

    # Computational
    cores: int = 1                 # Parallel processes for chains
    progressbar: bool = False      # Show progress bar
    random_seed: Optional[int] = 42

    # Diagnostics
    check_convergence: bool = True  # Report R-hat and ESS after sampling
    rhat_threshold: float = 1.01    # R-hat convergence threshold
    credible_interval: float = 0.95

    def __post_init__(self):
        if self.n_chains < 1 or self.n_draws < 1 or self.n_tune < 0:
            raise ValueError("n_chains and n_draws must be >= 1 and n_tune >= 0")
        if self.thin < 1:
            raise ValueError(f"thin must be >= 1, got {self.thin}")
        if self.sampler not in VALID_SAMPLERS:
            raise ValueError(f"Unknown sampler '{self.sampler}' (expected one of {VALID_SAMPLERS})")
        if not 0.0 < self.target_accept < 1.0:
            raise ValueError(f"target_accept must be in (0, 1), got {self.target_accept}")
        if not 0.0 < self.credible_interval < 1.0:
            raise ValueError(f"credible_interval must be in (0, 1), got {self.credible_interval}")

    @property
    def kept_draws(self) -> int:
        """Draws per chain remaining after thinning."""
        return len(range(0, self.n_draws, self.thin))


# ═══════════════════════════════════════════════════════════════
# Posterior fitter — Main Class
# ═══════════════════════════════════════════════════════════════

class PosteriorFitter:
    """MCMC fitting and posterior summaries for a PyMC model.

    The fitter is model-agnostic: it receives a built model (priors +
    observed likelihood) and the names of the parameters to monitor. Any
    error raised by the sampler propagates to the caller unchanged.
    """

    def __init__(self,
                 config: Optional[SamplerConfig] = None,
                 verbose: bool = True):
        """
        Args:
            config: MCMC configuration (defaults if None)
            verbose: Print progress and diagnostics
        """
        require_pymc()

        self.config = config or SamplerConfig()
        self.verbose = verbose

        # Populated by fit()
        self.model = None
        self.trace = None
        self.var_names = None

        if self.verbose:
            print(f"[Bayesian] Sampler: {self.config.sampler}, Chains: {self.config.n_chains}")

    def _make_step(self):
        """Step method for the continuous parameters (inside model context).

        Discrete latent variables are left for PyMC to assign (Gibbs).
        """
        continuous = self.model.continuous_value_vars
        if self.config.sampler == 'auto' or not continuous:
            return None
        if self.config.sampler == 'NUTS':
            return pm.NUTS(vars=continuous, target_accept=self.config.target_accept)
        elif self.config.sampler == 'Metropolis':
            return pm.Metropolis(vars=continuous)
        return pm.Slice(vars=continuous)

    def fit(self,
            model: 'pm.Model',
            var_names: Optional[List[str]] = None) -> 'az.InferenceData':
        """Run MCMC on `model`.

        Args:
            model: PyMC model with observed data attached
            var_names: Parameters to monitor (default: all free scalar RVs)

        Returns:
            arviz.InferenceData, thinned per config
        """
        self.model = model
        if var_names is None:
            var_names = [rv.name for rv in model.free_RVs if rv.ndim == 0]
        self.var_names = list(var_names)

        missing = [name for name in self.var_names if name not in model.named_vars]
        if missing:
            raise ValueError(f"Monitored variables not in the model: {missing}")

        with model:
            if self.verbose:
                print(f"[Bayesian] Starting MCMC sampling...")
                print(f"  Monitoring: {self.var_names}")
                print(f"  Chains: {self.config.n_chains}")
                print(f"  Draws per chain: {self.config.n_draws} (thin {self.config.thin})")
                print(f"  Tuning steps: {self.config.n_tune}")

            trace = pm.sample(
                draws=self.config.n_draws,
                tune=self.config.n_tune,
                chains=self.config.n_chains,
                step=self._make_step(),
                cores=self.config.cores,
                progressbar=self.config.progressbar,
                random_seed=self.config.random_seed,
                return_inferencedata=True,
            )

        if self.config.thin > 1:
            trace = trace.sel(draw=slice(None, None, self.config.thin))
        self.trace = trace

        if self.config.check_convergence:
            self.check_convergence(trace)

        if self.verbose:
            print("[Bayesian] Sampling complete!")
        return trace

    def _resolve(self, trace, var_names):
        trace = trace if trace is not None else self.trace
        if trace is None:
            raise ValueError("No trace available. Run fit() first.")
        var_names = var_names if var_names is not None else self.var_names
        if var_names is None:
            var_names = list(trace.posterior.data_vars)
        return trace, list(var_names)

    def check_convergence(self,
                          trace: Optional['az.InferenceData'] = None,
                          var_names: Optional[List[str]] = None) -> Dict:
        """R-hat and effective sample size per monitored parameter.

        Purely informative: a parameter above the R-hat threshold triggers
        a warning, never an error. R-hat needs at least two chains and is
        reported as NaN otherwise.
        """
        trace, var_names = self._resolve(trace, var_names)
        n_chains = trace.posterior.sizes['chain']
        total_samples = n_chains * trace.posterior.sizes['draw']

        ess = az.ess(trace, var_names=var_names)
        if n_chains > 1:
            rhat = az.rhat(trace, var_names=var_names)
        else:
            rhat = None

        if self.verbose:
            print("\n[Bayesian] Convergence Diagnostics:")

        diagnostics = {}
        for var in var_names:
            rhat_val = float(rhat[var].max()) if rhat is not None else float('nan')
            ess_val = float(ess[var].min())
            ess_ratio = ess_val / total_samples
            converged = bool(rhat_val < self.config.rhat_threshold) if rhat is not None else None

            diagnostics[var] = {'rhat': rhat_val, 'ess': ess_val, 'converged': converged}

            if self.verbose:
                status = "✓" if converged else ("?" if converged is None else "✗ WARNING")
                print(f"    {var}: R-hat {rhat_val:.4f} {status}, "
                      f"ESS {ess_val:.0f} ({ess_ratio:.1%} of {total_samples})")

            if converged is False:
                warnings.warn(f"R-hat for '{var}' is {rhat_val:.3f} "
                              f"(threshold {self.config.rhat_threshold}); inspect the trace plot")
            if ess_ratio < 0.1:
                warnings.warn(f"Low effective sample size for '{var}': {ess_val:.0f}")

        return diagnostics

    def summarize_posterior(self,
                            trace: Optional['az.InferenceData'] = None,
                            var_names: Optional[List[str]] = None,
                            credible_interval: Optional[float] = None) -> Dict:
        """Generate summary statistics from posterior.

        Args:
            trace: InferenceData (uses self.trace if None)
            var_names: Parameters to summarize (monitored ones if None)
            credible_interval: HDI width (config default if None)

        Returns:
            Dict with mean, median, std, CI bounds, R-hat, ESS per parameter
        """
        trace, var_names = self._resolve(trace, var_names)
        ci = credible_interval if credible_interval is not None else self.config.credible_interval

        az_summary = az.summary(
            trace,
            var_names=var_names,
            hdi_prob=ci,
            round_to='none',
            stat_funcs={'median': np.median},
        )
        hdi_cols = [c for c in az_summary.columns if c.startswith('hdi_')]
        lower_col, upper_col = hdi_cols[0], hdi_cols[1]

        summary = {}
        for var_name in az_summary.index:
            row = az_summary.loc[var_name]
            summary[var_name] = {
                'mean': float(row['mean']),
                'median': float(row['median']),
                'std': float(row['sd']),
                'ci_lower': float(row[lower_col]),
                'ci_upper': float(row[upper_col]),
                'rhat': float(row['r_hat']) if 'r_hat' in az_summary.columns else None,
                'ess': float(row['ess_bulk']) if 'ess_bulk' in az_summary.columns else None,
            }

        return summary

    def compare_with_truth(self,
                           true_values: Dict[str, float],
                           trace: Optional['az.InferenceData'] = None,
                           credible_interval: Optional[float] = None) -> Dict:
        """Check whether the known parameter values are recovered.

        Only parameters present in both `true_values` and the posterior
        are compared.
        """
        trace, _ = self._resolve(trace, None)
        names = [name for name in true_values if name in trace.posterior.data_vars]
        if not names:
            raise ValueError(f"None of {list(true_values)} are in the posterior")

        summary = self.summarize_posterior(trace, var_names=names,
                                           credible_interval=credible_interval)
        comparison = {}

        for name in names:
            true_val = float(true_values[name])
            stats = summary[name]
            in_ci = stats['ci_lower'] <= true_val <= stats['ci_upper']

            comparison[name] = {
                'true': true_val,
                'mean': stats['mean'],
                'ci': (stats['ci_lower'], stats['ci_upper']),
                'in_ci': in_ci,
                'error': stats['mean'] - true_val,
            }

        return comparison

    def print_comparison(self, comparison: Dict):
        """Tabular print of compare_with_truth() output."""
        print(f"\n{'Parameter':<12} {'True':>12} {'Mean':>12} {'CI':>25} {'In CI?':>8}")
        print("-" * 73)
        for name, row in comparison.items():
            ci_low, ci_high = row['ci']
            print(f"{name:<12} {row['true']:>12.4f} {row['mean']:>12.4f} "
                  f"[{ci_low:>10.4f}, {ci_high:>10.4f}] {'✓' if row['in_ci'] else '✗':>8}")

    def plot_posterior(self,
                       trace: Optional['az.InferenceData'] = None,
                       var_names: Optional[List[str]] = None,
                       true_values: Optional[Dict[str, float]] = None,
                       save_path: Optional[str] = None,
                       show: bool = True):
        """Generate posterior visualization plots.

        Creates:
        1. Trace plots (chains over iterations), for visual convergence checks
        2. Posterior density plots, with true values marked if given

        Returns:
            (trace_axes, posterior_axes), or None without matplotlib
        """
        if not PLOTTING_AVAILABLE:
            print("[Warning] Matplotlib/Seaborn not available for plotting")
            return None

        trace, var_names = self._resolve(trace, var_names)

        # 1. Trace plot
        lines = None
        if true_values:
            lines = [(name, {}, [val]) for name, val in true_values.items() if name in var_names]
        ax_trace = az.plot_trace(trace, var_names=var_names, compact=True, lines=lines)
        plt.tight_layout()
        if save_path:
            plt.savefig(f"{save_path}_trace.png", dpi=150, bbox_inches='tight')
        if show:
            plt.show()

        # 2. Posterior density
        ref_val = None
        if true_values:
            ref_val = {name: [{'ref_val': val}] for name, val in true_values.items() if name in var_names}
        ax_post = az.plot_posterior(trace, var_names=var_names,
                                    hdi_prob=self.config.credible_interval, ref_val=ref_val)
        plt.tight_layout()
        if save_path:
            plt.savefig(f"{save_path}_posterior.png", dpi=150, bbox_inches='tight')
        if show:
            plt.show()

        return ax_trace, ax_post
