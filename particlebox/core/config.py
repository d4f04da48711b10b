"""
Simulation configuration definitions.

``SimulationConfig`` is the snapshot of tunables the engine reads at the
start of every step. Fields carry explicit defaults so that a sandbox can
be created without supplying every value. The control surface never
mutates a config in place: ``merged`` returns a new instance and the
engine swaps it in wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

from .types import ParticleType


def default_particle_count() -> Dict[ParticleType, int]:
    return {
        ParticleType.PHOTON: 342,
        ParticleType.ELECTRON: 186,
        ParticleType.QUARK: 98,
        ParticleType.BOSON: 73,
        ParticleType.DARKMATTER: 548,
        ParticleType.NEUTRINO: 1394,
    }


def particle_count_map(counts: Dict) -> Dict[ParticleType, int]:
    """Normalise a per-type count mapping keyed by names or enum members."""
    return {ParticleType(k): int(v) for k, v in counts.items()}


@dataclass
class SimulationConfig:
    """Top level configuration for a sandbox run."""

    # Force multipliers
    gravity_strength: float = 0.75
    em_force: float = 1.2

    # Thermal bath in Kelvin; drives the jitter term
    temperature: float = 2847.0

    # Toggles
    collision_detection: bool = True
    energy_conservation: bool = False  # reported only, dynamics ignore it

    # Initial population used by initialize/reset
    particle_count: Dict[ParticleType, int] = field(default_factory=default_particle_count)
    preset: Optional[str] = None

    # Field bounds in simulation units; particles wrap at the edges
    field_width: float = 1920.0
    field_height: float = 1080.0

    # Spatial grid cell size for collision lookup
    cell_size: float = 50.0

    # Gravity well defaults
    well_radius: float = 200.0
    default_well_strength: float = 1000.0

    # Scatter parameters
    initial_speed_max: float = 1e5
    burst_jitter: float = 50.0  # full width; particles land within +/- half

    # Random seeds
    base_seed: int = 42
    entropy_mode: bool = False  # if True, inject run salt for fuzziness
    replay_mode: bool = False   # if True, record entropy draws for exact replay

    def __post_init__(self) -> None:
        self.particle_count = particle_count_map(self.particle_count)

    def merged(self, **changes) -> "SimulationConfig":
        """Return a new config with ``changes`` applied.

        Unknown field names raise ``TypeError``.
        """
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Return a dict representation of the configuration.

        Particle types are emitted by name so the result is JSON friendly.
        """
        d = self.__dict__.copy()
        d["particle_count"] = {t.value: n for t, n in self.particle_count.items()}
        return d
