"""
Sobol Sequence Generator

Deterministic low-discrepancy sampling of a box, used to seed multistart
local solves and to probe index sets in the inner maximizations.
"""

import warnings
import numpy as np
from typing import List, Tuple
from scipy.stats import qmc


class SobolGenerator:
    """
    Scrambled Sobol generator scaled to a box.

    All sequences are reproducible given the same seed.
    """

    def __init__(self, dimension: int, bounds: List[Tuple[float, float]], seed: int = 42):
        """
        Initialize Sobol generator.

        Args:
            dimension: Number of dimensions
            bounds: List of (lower, upper) bounds for each dimension
            seed: Seed for scrambling
        """
        self.dimension = dimension
        self.bounds = bounds
        self.lb = np.array([b[0] for b in bounds], dtype=np.float64)
        self.ub = np.array([b[1] for b in bounds], dtype=np.float64)
        self.seed = seed
        self._engine = qmc.Sobol(d=dimension, scramble=True, seed=seed)

    def samples(self, n_points: int) -> np.ndarray:
        """
        Next n_points of the sequence as an (n_points, dimension) array.

        Counts that are not powers of two are allowed; scipy's balance
        warning is silenced for them.
        """
        if n_points <= 0:
            return np.zeros((0, self.dimension))
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            unit = self._engine.random(n_points)
        return self.lb + unit * (self.ub - self.lb)
