"""
particlebox: real-time 2D particle-physics sandbox kernel.

This package contains the simulation kernel for a sandbox in which
typed particles interact through gravity, electromagnetism, placed
gravity wells and thermal noise, and collide to bounce, fuse, decay or
annihilate. Rendering, user controls and export live outside the
package; they drive the ``Engine`` and read back copies of its state.

The subpackages are:

``particlebox.core``       Core kernel components: configuration, common
                           types, the particle catalog, the force
                           calculator, the collision resolver, the
                           ledger and the engine that drives them.
``particlebox.scenarios``  Preset configurations and the helper that
                           loads them into an engine.

Please see the individual modules for further documentation.
"""

from .core.config import SimulationConfig
from .core.engine import Engine, EngineState
from .core.ledger import EntropySource
from .core.types import GravityWell, Particle, ParticleType, SimulationStats

__all__ = [
    "core",
    "scenarios",
    "Engine",
    "EngineState",
    "EntropySource",
    "GravityWell",
    "Particle",
    "ParticleType",
    "SimulationConfig",
    "SimulationStats",
]
