from typing import Optional, Tuple

import numpy as np


class DRNG:
    """Deterministic Random Number Generator wrapper."""

    def __init__(self, seed: Optional[int] = None):
        self.g = np.random.Generator(np.random.PCG64(seed))

    def uniform(self, a: float, b: float) -> float:
        """Return a random float in [a, b)."""
        return float(self.g.uniform(a, b))

    def point_in(self, width: float, height: float, margin: float) -> Tuple[float, float]:
        """Return a random point at least `margin` away from every arena edge."""
        return (self.uniform(margin, width - margin), self.uniform(margin, height - margin))
