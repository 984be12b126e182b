"""
bayes-simfit — Simulation Parameters & Datasets
===============================================
Immutable inputs to the generative step and the datasets it produces.

Two models are covered:
  1. Linear regression:     y_i ~ Normal(alpha + beta * x_i, precision tau)
  2. Cormack-Jolly-Seber:   z[i,t] ~ Bernoulli(phi * z[i,t-1])
                            y[i,t] ~ Bernoulli(p * z[i,t])

Capture histories are stored as an individuals × occasions 0/1 matrix,
with the occasion of first capture (marking) kept alongside.

License: MIT
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Dict, Sequence, Union


# ═══════════════════════════════════════════════════════════════
# Linear regression
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LinearRegressionParams:
    """Fixed values for simulating a linear regression dataset.

    Note tau is a precision (1 / variance), as in the classic BUGS
    parameterisation; sigma is derived.
    """
    alpha: float = 0.5     # Intercept
    beta: float = 1.0      # Slope
    tau: float = 100.0     # Residual precision (sigma = 0.1)
    n: int = 100           # Sample size
    x: Optional[np.ndarray] = field(default=None, compare=False)

    def __post_init__(self):
        if self.n < 2:
            raise ValueError(f"Sample size must be at least 2, got {self.n}")
        if not self.tau > 0:
            raise ValueError(f"Precision tau must be positive, got {self.tau}")
        if self.x is None:
            object.__setattr__(self, 'x', np.arange(1, self.n + 1, dtype=np.float64))
        else:
            x = np.asarray(self.x, dtype=np.float64)
            if x.shape != (self.n,):
                raise ValueError(f"Covariate x must have shape ({self.n},), got {x.shape}")
            object.__setattr__(self, 'x', x)

    @property
    def sigma(self) -> float:
        return float(1.0 / np.sqrt(self.tau))

    def true_values(self) -> Dict[str, float]:
        return {
            'alpha': float(self.alpha),
            'beta': float(self.beta),
            'tau': float(self.tau),
            'sigma': self.sigma,
        }


@dataclass
class LinearRegressionData:
    """Observed (or simulated) regression data."""
    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.shape != self.y.shape or self.x.ndim != 1:
            raise ValueError(f"x and y must be 1D and equal length, got {self.x.shape} and {self.y.shape}")

    @property
    def n(self) -> int:
        return len(self.y)


# ═══════════════════════════════════════════════════════════════
# Cormack-Jolly-Seber capture-recapture
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CJSParams:
    """Fixed values for simulating CJS capture histories.

    `marked` is the number of newly marked individuals released at each of
    the first n_occasions - 1 occasions. Individuals marked on the last
    occasion carry no information about survival, so none are released there.
    """
    phi: float = 0.8                     # Apparent survival between occasions
    p: float = 0.6                       # Recapture probability
    n_occasions: int = 10
    marked: Union[int, Sequence[int]] = 50

    def __post_init__(self):
        if not 0.0 <= self.phi <= 1.0:
            raise ValueError(f"Survival phi must be in [0, 1], got {self.phi}")
        if not 0.0 <= self.p <= 1.0:
            raise ValueError(f"Recapture p must be in [0, 1], got {self.p}")
        if self.n_occasions < 2:
            raise ValueError(f"Need at least 2 occasions, got {self.n_occasions}")

        marked = np.asarray(self.marked, dtype=int)
        if marked.ndim == 0:
            marked = np.full(self.n_occasions - 1, int(marked))
        if marked.shape != (self.n_occasions - 1,):
            raise ValueError(
                f"marked must be a scalar or have {self.n_occasions - 1} entries, got {marked.shape}"
            )
        if np.any(marked < 0) or marked.sum() == 0:
            raise ValueError("marked must be non-negative with at least one marked individual")
        object.__setattr__(self, 'marked', tuple(int(m) for m in marked))

    @property
    def n_individuals(self) -> int:
        return int(sum(self.marked))

    def first_capture(self) -> np.ndarray:
        """Occasion (0-based) at which each individual is marked."""
        return np.repeat(np.arange(self.n_occasions - 1), self.marked)

    def true_values(self) -> Dict[str, float]:
        return {'phi': float(self.phi), 'p': float(self.p)}


def first_capture(histories: np.ndarray) -> np.ndarray:
    """First occasion with a detection, per row of a capture-history matrix."""
    histories = np.asarray(histories)
    if np.any(histories.sum(axis=1) == 0):
        raise ValueError("Every capture history needs at least one detection")
    return np.argmax(histories > 0, axis=1)


@dataclass
class CaptureHistories:
    """Individuals × occasions detection matrix.

    Attributes:
        histories: [N, T] 0/1 matrix, 1 = detected on that occasion
        first: [N] first-capture occasion (0-based)
        alive: [N, T] true latent alive states (simulation only)
    """
    histories: np.ndarray
    first: Optional[np.ndarray] = None
    alive: Optional[np.ndarray] = None

    def __post_init__(self):
        self.histories = np.asarray(self.histories, dtype=np.int64)
        if self.histories.ndim != 2:
            raise ValueError(f"Capture histories must be 2D [individuals, occasions], got {self.histories.shape}")
        if not np.isin(self.histories, (0, 1)).all():
            raise ValueError("Capture histories must contain only 0 and 1")

        computed = first_capture(self.histories)
        if self.first is None:
            self.first = computed
        else:
            self.first = np.asarray(self.first, dtype=np.int64)
            if not np.array_equal(self.first, computed):
                raise ValueError("first does not match the first detection in each history")

    @property
    def n_individuals(self) -> int:
        return self.histories.shape[0]

    @property
    def n_occasions(self) -> int:
        return self.histories.shape[1]

    def last_capture(self) -> np.ndarray:
        T = self.n_occasions
        return T - 1 - np.argmax(self.histories[:, ::-1] > 0, axis=1)

    def known_state(self) -> np.ndarray:
        """1 where an individual is certainly alive (first to last capture)."""
        occasions = np.arange(self.n_occasions)
        last = self.last_capture()
        return ((occasions >= self.first[:, None]) & (occasions <= last[:, None])).astype(np.int64)

    def m_array(self) -> np.ndarray:
        """Standard CJS m-array.

        Row t counts individuals released at occasion t, split by the
        occasion of their next recapture (columns 0..T-2 for occasions
        1..T-1); the last column holds those never seen again.

        Returns:
            [T-1, T] integer array
        """
        T = self.n_occasions
        marr = np.zeros((T - 1, T), dtype=np.int64)

        for history in self.histories:
            seen = np.flatnonzero(history)
            for release, recapture in zip(seen[:-1], seen[1:]):
                marr[release, recapture - 1] += 1
            if seen[-1] < T - 1:
                marr[seen[-1], T - 1] += 1

        return marr

    def summary(self) -> Dict[str, float]:
        """Quick descriptive numbers for printing."""
        recaptured = (self.histories.sum(axis=1) > 1).sum()
        out = {
            'individuals': int(self.n_individuals),
            'occasions': int(self.n_occasions),
            'detections': int(self.histories.sum()),
            'recaptured': int(recaptured),
        }
        if self.alive is not None:
            out['alive_at_end'] = int(self.alive[:, -1].sum())
        return out
