"""
Tests for the core.catalog module.

This module tests the per-type constants table, particle instantiation
and the id sequence.
"""

import math
import os
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from particlebox.core.catalog import CATALOG, IdSequence, constants_for, instantiate
from particlebox.core.types import ParticleType


class TestConstantsFor(unittest.TestCase):
    """Tests for constants_for."""

    def test_total_over_enum(self):
        """Every particle type has a catalog entry."""
        for ptype in ParticleType:
            self.assertIs(constants_for(ptype), CATALOG[ptype])

    def test_accepts_type_name(self):
        """String names resolve to the same record as the enum member."""
        self.assertIs(constants_for("quark"), constants_for(ParticleType.QUARK))

    def test_unknown_name_rejected(self):
        """Unknown names are rejected at the boundary."""
        with self.assertRaises(ValueError):
            constants_for("graviton")

    def test_known_values(self):
        """Spot check catalog constants."""
        photon = constants_for(ParticleType.PHOTON)
        self.assertEqual(photon.mass, 0.0)
        self.assertTrue(math.isinf(photon.lifespan))
        self.assertEqual(photon.trail_length, 8)
        quark = constants_for(ParticleType.QUARK)
        self.assertAlmostEqual(quark.charge, 2.0 / 3.0)
        self.assertEqual(quark.lifespan, 1e-24)
        self.assertEqual(constants_for(ParticleType.ELECTRON).charge, -1.0)


class TestInstantiate(unittest.TestCase):
    """Tests for instantiate."""

    def test_fresh_particle(self):
        """A new particle copies type constants and starts at age zero."""
        ids = IdSequence("t")
        p = instantiate(ParticleType.ELECTRON, 10.0, 20.0, 3.0, 4.0, ids=ids)
        c = constants_for(ParticleType.ELECTRON)
        self.assertEqual(p.id, "t1")
        self.assertEqual((p.x, p.y, p.vx, p.vy), (10.0, 20.0, 3.0, 4.0))
        self.assertEqual(p.mass, c.mass)
        self.assertEqual(p.charge, c.charge)
        self.assertEqual(p.size, c.size)
        self.assertEqual(p.age, 0.0)
        self.assertEqual(p.lifespan, c.lifespan)
        self.assertEqual(len(p.trail), 0)
        self.assertEqual(p.trail.maxlen, c.trail_length)

    def test_energy(self):
        """Energy is 0.5*m*v^2 at creation."""
        p = instantiate("darkmatter", 0.0, 0.0, 3.0, 4.0)
        self.assertEqual(p.energy, 0.5 * p.mass * 25.0)

    def test_rest_defaults(self):
        """Velocity defaults to zero."""
        p = instantiate(ParticleType.BOSON, 1.0, 2.0)
        self.assertEqual((p.vx, p.vy, p.energy), (0.0, 0.0, 0.0))

    def test_unique_ids(self):
        """Ids from one sequence never repeat."""
        ids = IdSequence()
        made = {instantiate(ParticleType.PHOTON, 0.0, 0.0, ids=ids).id for _ in range(100)}
        self.assertEqual(len(made), 100)


class TestParticleCopy(unittest.TestCase):
    """Tests for Particle.copy and to_dict."""

    def test_copy_detaches_trail(self):
        """Mutating a copy leaves the original untouched."""
        p = instantiate(ParticleType.NEUTRINO, 1.0, 1.0)
        c = p.copy()
        c.x = 99.0
        c.trail.append(None)
        self.assertEqual(p.x, 1.0)
        self.assertEqual(len(p.trail), 0)
        self.assertEqual(c.trail.maxlen, p.trail.maxlen)

    def test_to_dict(self):
        """Export view carries position, velocity and physical state."""
        p = instantiate(ParticleType.ELECTRON, 1.0, 2.0, 3.0, 4.0)
        d = p.to_dict()
        self.assertEqual(d["type"], "electron")
        self.assertEqual(d["position"], {"x": 1.0, "y": 2.0})
        self.assertEqual(d["velocity"], {"x": 3.0, "y": 4.0})
        self.assertEqual(d["charge"], -1.0)


if __name__ == "__main__":
    unittest.main()
