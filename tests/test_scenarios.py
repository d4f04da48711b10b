"""
Tests for the scenarios.presets module.
"""

import os
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from particlebox.core.config import SimulationConfig
from particlebox.core.engine import Engine
from particlebox.core.types import ParticleType
from particlebox.scenarios import (
    ADD_GRAVITY_WELL,
    SCENARIO_PRESETS,
    create_custom_scenario,
    get_scenario_preset,
    load_scenario,
    scenario_names,
)


class TestPresetTable(unittest.TestCase):
    """Tests for the preset catalogue."""

    def test_names(self):
        self.assertEqual(
            scenario_names(),
            ["bigbang", "blackhole", "accelerator", "galaxy", "quantum_foam", "neutron_star"],
        )

    def test_lookup(self):
        preset = get_scenario_preset("galaxy")
        self.assertEqual(preset.name, "Galaxy Formation")
        self.assertFalse(preset.config.collision_detection)
        self.assertEqual(len(preset.setup_actions), 3)
        self.assertTrue(all(a.kind == ADD_GRAVITY_WELL for a in preset.setup_actions))
        self.assertIsNone(get_scenario_preset("wormhole"))

    def test_preset_names_match_keys(self):
        for key, preset in SCENARIO_PRESETS.items():
            self.assertEqual(preset.config.preset, key)

    def test_custom_scenario_copies_config(self):
        cfg = SimulationConfig(temperature=10.0)
        custom = create_custom_scenario("Mine", "hand tuned", cfg)
        self.assertEqual(custom.config, cfg)
        self.assertIsNot(custom.config, cfg)
        self.assertEqual(custom.setup_actions, [])


class TestLoadScenario(unittest.TestCase):
    """Tests for applying presets to an engine."""

    def setUp(self):
        self.engine = Engine(SimulationConfig(particle_count={"photon": 3}))

    def test_bigbang(self):
        """Loading resets the population and runs the setup actions."""
        self.engine.add_gravity_well(1.0, 1.0)
        load_scenario(self.engine, "bigbang")
        cfg = self.engine.cfg
        self.assertEqual(cfg.preset, "bigbang")
        self.assertEqual(cfg.temperature, 15000)
        counts = self.engine.get_particle_count_by_type()
        self.assertEqual(counts[ParticleType.PHOTON], 1000)
        self.assertEqual(counts[ParticleType.NEUTRINO], 800)
        self.assertEqual(sum(counts.values()), 2500)
        wells = self.engine.get_gravity_wells()
        self.assertEqual(len(wells), 1)
        self.assertEqual((wells[0].x, wells[0].y, wells[0].strength), (960, 540, -5000))

    def test_accelerator_bursts(self):
        load_scenario(self.engine, "accelerator")
        counts = self.engine.get_particle_count_by_type()
        self.assertEqual(counts[ParticleType.ELECTRON], 600)
        self.assertEqual(self.engine.get_gravity_wells(), [])
        near_left = [
            p for p in self.engine.get_particles()
            if p.type is ParticleType.ELECTRON
            and abs(p.x - 200) <= 25 and abs(p.y - 540) <= 25 and p.speed == 0.0
        ]
        self.assertGreaterEqual(len(near_left), 50)

    def test_keeps_field_geometry(self):
        self.engine.update_config(field_width=800, base_seed=7)
        load_scenario(self.engine, "quantum_foam")
        self.assertEqual(self.engine.cfg.field_width, 800)
        self.assertEqual(self.engine.cfg.base_seed, 7)
        self.assertEqual(self.engine.cfg.em_force, 4.0)

    def test_unknown_name(self):
        with self.assertRaises(KeyError):
            load_scenario(self.engine, "wormhole")
        self.assertEqual(len(self.engine.get_particles()), 3)


if __name__ == "__main__":
    unittest.main()
