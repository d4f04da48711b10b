"""
Particle catalog: static per-type physical constants.

Each ``ParticleType`` maps to a frozen ``ParticleConstants`` record.
Masses are in kilograms, charges in elementary-charge units and
lifespans in seconds (``math.inf`` for stable species). The catalog is
pure data; ``instantiate`` is the only constructor the rest of the
package uses to stamp new particles.
"""

from __future__ import annotations

import itertools
import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional, Union

from .types import Particle, ParticleType


@dataclass(frozen=True)
class ParticleConstants:
    mass: float
    charge: float
    color: str
    size: float
    max_speed: float
    lifespan: float
    trail_length: int
    glow: float


CATALOG: Dict[ParticleType, ParticleConstants] = {
    ParticleType.PHOTON: ParticleConstants(
        mass=0.0, charge=0.0, color="#10FF10", size=2.0,
        max_speed=299792458.0, lifespan=math.inf, trail_length=8, glow=0.8,
    ),
    ParticleType.ELECTRON: ParticleConstants(
        mass=9.109e-31, charge=-1.0, color="#8B5CF6", size=3.0,
        max_speed=2e8, lifespan=math.inf, trail_length=6, glow=0.6,
    ),
    ParticleType.QUARK: ParticleConstants(
        mass=2.3e-30, charge=2.0 / 3.0, color="#00FFFF", size=2.5,
        max_speed=1.5e8, lifespan=1e-24, trail_length=4, glow=0.7,
    ),
    ParticleType.BOSON: ParticleConstants(
        mass=1.25e-25, charge=0.0, color="#FF6B35", size=4.0,
        max_speed=1e8, lifespan=1e-22, trail_length=5, glow=0.9,
    ),
    ParticleType.DARKMATTER: ParticleConstants(
        mass=5e-27, charge=0.0, color="#888888", size=1.5,
        max_speed=5e7, lifespan=math.inf, trail_length=3, glow=0.3,
    ),
    ParticleType.NEUTRINO: ParticleConstants(
        mass=2e-36, charge=0.0, color="#FFE66D", size=1.0,
        max_speed=2.9e8, lifespan=math.inf, trail_length=10, glow=0.4,
    ),
}


class IdSequence:
    """Monotonic identifier generator.

    Ids are ``prefix`` followed by a counter, so two engines fed the same
    operations hand out the same ids.
    """

    def __init__(self, prefix: str = "p"):
        self.prefix = prefix
        self._counter = itertools.count(1)

    def next(self) -> str:
        return f"{self.prefix}{next(self._counter)}"


DEFAULT_IDS = IdSequence()


def constants_for(ptype: Union[ParticleType, str]) -> ParticleConstants:
    """Return the catalog record for ``ptype``.

    String names are accepted; an unknown name raises ``ValueError``.
    """
    return CATALOG[ParticleType(ptype)]


def instantiate(
    ptype: Union[ParticleType, str],
    x: float,
    y: float,
    vx: float = 0.0,
    vy: float = 0.0,
    ids: Optional[IdSequence] = None,
) -> Particle:
    """Stamp a fresh particle of ``ptype`` with zero age and an empty trail."""
    ptype = ParticleType(ptype)
    c = CATALOG[ptype]
    ids = ids if ids is not None else DEFAULT_IDS
    return Particle(
        id=ids.next(),
        type=ptype,
        x=x,
        y=y,
        vx=vx,
        vy=vy,
        mass=c.mass,
        charge=c.charge,
        energy=0.5 * c.mass * (vx * vx + vy * vy),
        age=0.0,
        lifespan=c.lifespan,
        size=c.size,
        color=c.color,
        trail=deque(maxlen=c.trail_length),
    )
