"""
Common value types shared by the particlebox core.

The simulation state is deliberately plain: particles and gravity wells
are mutable dataclasses owned by the ``Engine``, while trail samples and
statistics are immutable snapshots. Anything handed to a caller outside
the engine is a copy (see ``Particle.copy``).
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Deque, Dict


class ParticleType(str, Enum):
    """Closed set of particle species known to the catalog."""

    PHOTON = "photon"
    ELECTRON = "electron"
    QUARK = "quark"
    BOSON = "boson"
    DARKMATTER = "darkmatter"
    NEUTRINO = "neutrino"


@dataclass(frozen=True)
class TrailPoint:
    """One past position of a particle with its rendering opacity."""
    x: float
    y: float
    opacity: float


@dataclass
class Particle:
    """Mutable simulation entity.

    ``charge`` starts as the catalog value for ``type`` but may diverge
    once reactions produce the particle. ``energy`` is recomputed from the
    velocity on every force update; reaction products carry the energy of
    their parents until their first update. ``trail`` is most recent
    first and is bounded by the type's trail length.
    """
    id: str
    type: ParticleType
    x: float
    y: float
    vx: float
    vy: float
    mass: float
    charge: float
    energy: float
    age: float
    lifespan: float
    size: float
    color: str
    trail: Deque[TrailPoint] = field(default_factory=deque)

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    def is_finite(self) -> bool:
        """Return True if the position is a real point on the plane."""
        return math.isfinite(self.x) and math.isfinite(self.y)

    def copy(self) -> "Particle":
        """Return a detached copy, including its own trail buffer."""
        return replace(self, trail=deque(self.trail, maxlen=self.trail.maxlen))

    def to_dict(self) -> dict:
        """Export view of the particle used by snapshot consumers."""
        return {
            "id": self.id,
            "type": self.type.value,
            "position": {"x": self.x, "y": self.y},
            "velocity": {"x": self.vx, "y": self.vy},
            "mass": self.mass,
            "charge": self.charge,
            "energy": self.energy,
            "age": self.age,
        }


@dataclass
class GravityWell:
    """Point attractor (positive strength) or repeller (negative)."""
    id: str
    x: float
    y: float
    strength: float
    radius: float
    active: bool = True

    def copy(self) -> "GravityWell":
        return replace(self)


@dataclass(frozen=True)
class SimulationStats:
    """Read-only statistics snapshot computed by the ``Ledger``.

    Attributes:
        particle_count: Number of live particles.
        total_energy: Sum of the energy carried by every particle.
        kinetic_energy: Sum of ``0.5*m*v^2`` over the live set.
        potential_energy: ``total_energy - kinetic_energy``; non-zero only
            while reaction products still carry inherited energy.
        temperature: Configured temperature in Kelvin.
        entropy: Relative energy dispersion ``sum(-r*ln(r+eps))``.
        total_collisions: Colliding pairs resolved since the last reset.
        collisions_per_sec: ``total_collisions`` over ``system_age``.
        avg_speed: Mean particle speed.
        max_speed: Largest particle speed.
        system_age: Wall-clock seconds since the last (re)initialisation.
    """
    particle_count: int
    total_energy: float
    kinetic_energy: float
    potential_energy: float
    temperature: float
    entropy: float
    total_collisions: int
    collisions_per_sec: float
    avg_speed: float
    max_speed: float
    system_age: float

    def to_dict(self) -> Dict[str, float]:
        return self.__dict__.copy()
