#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Explicit seeded random source shared by the splitter and the trainers.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import zlib
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class RandomSource:
    """
    Seeded source of randomness for one analysis run.

    Each call to :meth:`generator` returns a fresh ``numpy`` generator so
    that stages never share mutable RNG state; :meth:`random_state` is the
    integer handed to scikit-learn estimators.

    Example::

        source = RandomSource(seed=42)
        rng = source.generator()
        forest = RandomForestClassifier(random_state=source.random_state())
    """
    seed: int = 42

    def __post_init__(self):
        if not isinstance(self.seed, (int, np.integer)) or isinstance(self.seed, bool):
            raise TypeError(f"seed must be an integer, got {self.seed!r}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    def generator(self) -> np.random.Generator:
        """Fresh ``numpy.random.Generator`` seeded from this source."""
        return np.random.default_rng(self.seed)

    def random_state(self) -> int:
        """Integer seed for scikit-learn ``random_state`` parameters."""
        return int(self.seed)

    def derive(self, stream: str) -> "RandomSource":
        """Independent child source for a named stream (e.g. one gene pool)."""
        entropy = [int(self.seed), zlib.crc32(stream.encode('utf-8'))]
        child_seed = np.random.SeedSequence(entropy).generate_state(1)[0]
        return RandomSource(seed=int(child_seed))


__all__ = ['RandomSource']

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
