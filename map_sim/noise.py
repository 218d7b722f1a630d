from __future__ import annotations

from typing import Optional
import random
import threading


class NoiseModel:
    """Zero-mean Gaussian sampler shared by every robot of a simulation.

    The generator is owned by whoever builds the simulation and injected into
    each robot. Draws are serialized with a lock, but reproducibility across
    runs still depends on a fixed call order (linear before angular noise,
    robots in index order).
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self._lock = threading.Lock()

    @classmethod
    def from_seed(cls, seed: Optional[int]) -> "NoiseModel":
        return cls(random.Random(seed))

    def sample(self, stddev: float) -> float:
        """Draw one perturbation; exactly 0.0 when ``stddev`` is zero."""
        if stddev == 0.0:
            return 0.0
        with self._lock:
            return self.rng.gauss(0.0, stddev)
