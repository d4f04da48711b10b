"""
Tests for the core.ledger module.

This module tests the entropy source (determinism, streams and replay),
the kinetic energy helper and statistics derivation.
"""

import math
import os
import sys
import unittest

import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from particlebox.core.catalog import instantiate
from particlebox.core.ledger import (
    KINETIC_ENERGY_MAX,
    EntropySource,
    Ledger,
    kinetic_energy,
)
from particlebox.core.types import ParticleType


class TestEntropySource(unittest.TestCase):
    """Tests for EntropySource."""

    def test_same_seed_same_sequence(self):
        """Two sources with one seed produce identical draws."""
        a = EntropySource(7)
        b = EntropySource(7)
        self.assertEqual(
            [a.sample_uniform("x") for _ in range(5)],
            [b.sample_uniform("x") for _ in range(5)],
        )

    def test_different_seed_differs(self):
        """Different seeds produce different draws."""
        a = EntropySource(1)
        b = EntropySource(2)
        self.assertNotEqual(
            [a.sample_uniform("x") for _ in range(5)],
            [b.sample_uniform("x") for _ in range(5)],
        )

    def test_streams_are_independent(self):
        """Draws on one checkpoint do not shift another checkpoint."""
        a = EntropySource(3)
        b = EntropySource(3)
        for _ in range(10):
            a.sample_uniform("thermal")
        self.assertEqual(a.sample_uniform("decay"), b.sample_uniform("decay"))

    def test_range(self):
        """Samples stay within their requested interval."""
        src = EntropySource(5)
        for _ in range(200):
            u = src.uniform("r", -2.0, 3.0)
            self.assertGreaterEqual(u, -2.0)
            self.assertLess(u, 3.0)
            n = src.integers("i", 2, 5)
            self.assertIn(n, (2, 3, 4))

    def test_replay(self):
        """Rewinding a replay-mode source returns the recorded samples."""
        src = EntropySource(11, replay_mode=True)
        first = [src.sample_uniform("a"), src.sample_uniform("b"), src.sample_uniform("a")]
        self.assertEqual(len(src.replay_log), 3)
        self.assertEqual([r.checkpoint_id for r in src.replay_log], ["a", "b", "a"])
        src.rewind()
        again = [src.sample_uniform("a"), src.sample_uniform("b"), src.sample_uniform("a")]
        self.assertEqual(first, again)

    def test_no_log_without_replay(self):
        """Samples are not recorded unless replay mode is on."""
        src = EntropySource(11)
        src.sample_uniform("a")
        self.assertEqual(src.replay_log, [])


class TestKineticEnergy(unittest.TestCase):
    """Tests for kinetic_energy."""

    def test_formula(self):
        self.assertEqual(kinetic_energy(2.0, 3.0, 4.0), 25.0)

    def test_massless(self):
        """Massless particles carry no kinetic energy."""
        self.assertEqual(kinetic_energy(0.0, 1e8, 1e8), 0.0)

    def test_overflow_clamped(self):
        """Overflowing energies are clamped to a finite maximum."""
        self.assertEqual(kinetic_energy(1e300, 1e200, 0.0), KINETIC_ENERGY_MAX)


class TestLedger(unittest.TestCase):
    """Tests for Ledger statistics."""

    def test_entropy_uniform_energies(self):
        """Equal energies give r=1 for every particle."""
        e = Ledger.entropy(np.array([2.0, 2.0, 2.0]))
        self.assertAlmostEqual(e, -3.0 * math.log(1.0 + 1e-10))

    def test_entropy_formula(self):
        """Entropy follows sum(-r*ln(r+eps)) with r relative to the mean."""
        energies = np.array([1.0, 3.0])
        r = energies / 2.0
        expected = float(np.sum(-r * np.log(r + 1e-10)))
        self.assertAlmostEqual(Ledger.entropy(energies), expected)

    def test_entropy_no_energy(self):
        """A population with zero energy has zero entropy."""
        self.assertEqual(Ledger.entropy(np.zeros(4)), 0.0)
        self.assertEqual(Ledger.entropy(np.zeros(0)), 0.0)

    def test_empty_stats(self):
        """Stats of an empty population are all zero."""
        stats = Ledger().compute_stats([], temperature=300.0, system_age=0.0)
        self.assertEqual(stats.particle_count, 0)
        self.assertEqual(stats.total_energy, 0.0)
        self.assertEqual(stats.max_speed, 0.0)
        self.assertEqual(stats.collisions_per_sec, 0.0)
        self.assertEqual(stats.temperature, 300.0)

    def test_stats(self):
        """Speeds, energy split and collision rate are derived correctly."""
        a = instantiate(ParticleType.DARKMATTER, 0.0, 0.0, 3.0, 4.0)
        b = instantiate(ParticleType.DARKMATTER, 0.0, 0.0, 0.0, 1.0)
        # b carries inherited energy beyond its motion
        b.energy += 1.0
        ledger = Ledger()
        ledger.record_collisions(6)
        stats = ledger.compute_stats([a, b], temperature=10.0, system_age=2.0)
        self.assertEqual(stats.particle_count, 2)
        self.assertAlmostEqual(stats.avg_speed, 3.0)
        self.assertAlmostEqual(stats.max_speed, 5.0)
        self.assertAlmostEqual(stats.total_energy, a.energy + b.energy)
        self.assertAlmostEqual(stats.kinetic_energy, 0.5 * a.mass * 26.0)
        self.assertAlmostEqual(stats.potential_energy, 1.0)
        self.assertEqual(stats.total_collisions, 6)
        self.assertAlmostEqual(stats.collisions_per_sec, 3.0)

    def test_reset(self):
        ledger = Ledger()
        ledger.record_collisions(3)
        ledger.reset()
        self.assertEqual(ledger.total_collisions, 0)


if __name__ == "__main__":
    unittest.main()
