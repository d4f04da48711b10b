"""
Scenario presets for the particle sandbox.

A preset bundles a full ``SimulationConfig`` with an ordered list of
setup actions (gravity wells to place, particle bursts to inject).
``load_scenario`` applies one to an engine the same way the control
surface does: config update, reset, then the setup actions in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from ..core.config import SimulationConfig
from ..core.engine import Engine

logger = logging.getLogger(__name__)

ADD_GRAVITY_WELL = "add_gravity_well"
ADD_PARTICLE_BURST = "add_particle_burst"


@dataclass(frozen=True)
class SetupAction:
    kind: str
    params: Dict[str, object]


@dataclass
class ScenarioPreset:
    name: str
    description: str
    config: SimulationConfig
    setup_actions: List[SetupAction] = field(default_factory=list)


def _well(x: float, y: float, strength: float) -> SetupAction:
    return SetupAction(ADD_GRAVITY_WELL, {"x": x, "y": y, "strength": strength})


def _burst(x: float, y: float, ptype: str, count: int) -> SetupAction:
    return SetupAction(ADD_PARTICLE_BURST, {"x": x, "y": y, "type": ptype, "count": count})


SCENARIO_PRESETS: Dict[str, ScenarioPreset] = {
    "bigbang": ScenarioPreset(
        name="Big Bang",
        description="Universal expansion from a singularity",
        config=SimulationConfig(
            gravity_strength=0.1,
            em_force=2.0,
            temperature=15000,
            collision_detection=True,
            energy_conservation=True,
            particle_count={
                "photon": 1000, "electron": 200, "quark": 150,
                "boson": 50, "darkmatter": 300, "neutrino": 800,
            },
            preset="bigbang",
        ),
        setup_actions=[_well(960, 540, -5000)],  # repulsive centre
    ),
    "blackhole": ScenarioPreset(
        name="Black Hole",
        description="Gravitational collapse and event horizon",
        config=SimulationConfig(
            gravity_strength=3.0,
            em_force=0.5,
            temperature=2000,
            collision_detection=True,
            energy_conservation=False,
            particle_count={
                "photon": 300, "electron": 100, "quark": 50,
                "boson": 20, "darkmatter": 500, "neutrino": 200,
            },
            preset="blackhole",
        ),
        setup_actions=[_well(960, 540, 15000)],
    ),
    "accelerator": ScenarioPreset(
        name="Particle Accelerator",
        description="High-energy particle collisions",
        config=SimulationConfig(
            gravity_strength=0.1,
            em_force=3.0,
            temperature=50000,
            collision_detection=True,
            energy_conservation=True,
            particle_count={
                "photon": 100, "electron": 500, "quark": 300,
                "boson": 100, "darkmatter": 50, "neutrino": 150,
            },
            preset="accelerator",
        ),
        setup_actions=[
            _burst(200, 540, "electron", 50),
            _burst(1720, 540, "electron", 50),
        ],
    ),
    "galaxy": ScenarioPreset(
        name="Galaxy Formation",
        description="Cosmic structure formation over time",
        config=SimulationConfig(
            gravity_strength=1.5,
            em_force=0.3,
            temperature=3000,
            collision_detection=False,
            energy_conservation=True,
            particle_count={
                "photon": 400, "electron": 150, "quark": 100,
                "boson": 30, "darkmatter": 800, "neutrino": 500,
            },
            preset="galaxy",
        ),
        setup_actions=[
            _well(480, 270, 8000),
            _well(1440, 270, 6000),
            _well(960, 810, 7000),
        ],
    ),
    "quantum_foam": ScenarioPreset(
        name="Quantum Foam",
        description="Virtual particle creation and annihilation",
        config=SimulationConfig(
            gravity_strength=0.05,
            em_force=4.0,
            temperature=100000,
            collision_detection=True,
            energy_conservation=False,
            particle_count={
                "photon": 2000, "electron": 300, "quark": 500,
                "boson": 200, "darkmatter": 100, "neutrino": 1000,
            },
            preset="quantum_foam",
        ),
    ),
    "neutron_star": ScenarioPreset(
        name="Neutron Star",
        description="Ultra-dense matter under extreme gravity",
        config=SimulationConfig(
            gravity_strength=5.0,
            em_force=1.0,
            temperature=1000000,
            collision_detection=True,
            energy_conservation=True,
            particle_count={
                "photon": 200, "electron": 800, "quark": 1000,
                "boson": 50, "darkmatter": 200, "neutrino": 1500,
            },
            preset="neutron_star",
        ),
        setup_actions=[_well(960, 540, 25000)],
    ),
}


def get_scenario_preset(name: str) -> Optional[ScenarioPreset]:
    return SCENARIO_PRESETS.get(name)


def scenario_names() -> List[str]:
    return list(SCENARIO_PRESETS)


def create_custom_scenario(name: str, description: str, config: SimulationConfig) -> ScenarioPreset:
    return ScenarioPreset(name=name, description=description, config=replace(config))


def preset_changes(preset: ScenarioPreset) -> Dict[str, object]:
    """Config fields a preset defines, as keyword changes for ``update_config``.

    Only the physics tunables, the initial population and the preset name
    are taken; field geometry and seeds stay as the engine has them.
    """
    cfg = preset.config
    return {
        "gravity_strength": cfg.gravity_strength,
        "em_force": cfg.em_force,
        "temperature": cfg.temperature,
        "collision_detection": cfg.collision_detection,
        "energy_conservation": cfg.energy_conservation,
        "particle_count": dict(cfg.particle_count),
        "preset": cfg.preset,
    }


def load_scenario(engine: Engine, name: str) -> ScenarioPreset:
    """Apply preset ``name`` to ``engine``.

    Raises ``KeyError`` for an unknown preset name.
    """
    preset = SCENARIO_PRESETS[name]
    engine.update_config(preset_changes(preset))
    engine.reset()
    for action in preset.setup_actions:
        p = action.params
        if action.kind == ADD_GRAVITY_WELL:
            engine.add_gravity_well(p["x"], p["y"], p["strength"])
        elif action.kind == ADD_PARTICLE_BURST:
            engine.add_particles(p["type"], p["count"], p["x"], p["y"])
    logger.info("loaded scenario %r with %d setup actions", name, len(preset.setup_actions))
    return preset
