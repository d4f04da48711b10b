"""
Ledger subsystem responsible for energy bookkeeping, run statistics and
reproducible randomness.

This module provides the kinetic energy helper shared by the force
calculator, the ``Ledger`` that accumulates collision counts and derives
``SimulationStats`` snapshots, and the ``EntropySource`` through which
every random draw of the sandbox is channelled (initial scatter, thermal
jitter, decay products). Draws are split into independent streams keyed
by a checkpoint id so that, for example, toggling thermal noise does not
perturb the sequence of decay outcomes.

The entropy source uses blake2s for stable stream seed derivation,
ensuring deterministic behavior across Python interpreter sessions and
versions.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Dict

import numpy as np

from .types import Particle, SimulationStats

# Numerical stability constants
# These limits are chosen to be well within float64 range (~1e308) while
# leaving headroom for intermediate calculations.

#: Mass at or below which a particle is treated as massless
MASS_EPSILON = 1e-40

#: Maximum kinetic energy result
KINETIC_ENERGY_MAX = 1e100

#: Offset inside the entropy logarithm so zero-energy particles contribute 0
ENTROPY_EPSILON = 1e-10


def kinetic_energy(mass: float, vx: float, vy: float) -> float:
    """Return ``0.5*m*v^2`` for a particle.

    Massless particles carry no kinetic energy. Overflowing results are
    clamped to a large finite value so that statistics stay finite until
    the offending particle is culled.
    """
    if mass <= MASS_EPSILON:
        return 0.0
    result = 0.5 * mass * (vx * vx + vy * vy)
    if not math.isfinite(result) or result > KINETIC_ENERGY_MAX:
        return KINETIC_ENERGY_MAX
    return result


@dataclass
class EntropyRecord:
    """Record of a single entropy sample for replay support.

    Attributes:
        checkpoint_id: Stream the sample was drawn from (e.g. "thermal").
        draw: Index of the sample within its stream.
        value: The sampled value in [0, 1).
    """
    checkpoint_id: str
    draw: int
    value: float


class EntropySource:
    """Centralised source of pseudorandomness with replay support.

    Each checkpoint id owns a numpy ``Generator`` whose seed is derived
    from the base seed, the run salt and the checkpoint id. Two sources
    built with the same base seed therefore produce identical sequences
    for every stream.

    Attributes:
        base_seed: The base seed for deterministic generation.
        entropy_mode: If True, adds run-specific salt for variation.
        replay_mode: If True, records samples for later replay.
        run_salt: Random salt added when entropy_mode is True.
        replay_log: List of recorded samples when replay_mode is True.
        replay_cursor: Current position in replay_log during replay.
    """

    def __init__(self, base_seed: int, entropy_mode: bool = False, replay_mode: bool = False):
        self.base_seed = base_seed
        self.entropy_mode = entropy_mode
        self.replay_mode = replay_mode
        self.run_salt: int = int(np.random.default_rng().integers(0, 2**31 - 1)) if entropy_mode else 0
        self.replay_log: list[EntropyRecord] = []
        self.replay_cursor: int = 0
        self._streams: Dict[str, np.random.Generator] = {}
        self._draws: Dict[str, int] = {}

    def _derive_seed(self, checkpoint_id: str) -> int:
        """Derive a deterministic 64-bit stream seed using blake2s."""
        h = hashlib.blake2s(digest_size=8)
        # Convert to Python int to ensure to_bytes works for numpy types
        h.update(int(self.base_seed).to_bytes(8, byteorder='big', signed=True))
        h.update(int(self.run_salt).to_bytes(8, byteorder='big', signed=False))
        h.update(checkpoint_id.encode('utf-8'))
        return int.from_bytes(h.digest(), byteorder='big', signed=False)

    def _stream(self, checkpoint_id: str) -> np.random.Generator:
        rng = self._streams.get(checkpoint_id)
        if rng is None:
            rng = np.random.default_rng(self._derive_seed(checkpoint_id))
            self._streams[checkpoint_id] = rng
        return rng

    def sample_uniform(self, checkpoint_id: str) -> float:
        """Return a uniform random sample in [0, 1).

        When ``replay_mode`` is enabled and the replay log still holds
        unread samples, those are returned instead of generating new ones;
        otherwise the new sample is appended to the log.
        """
        if self.replay_mode and self.replay_cursor < len(self.replay_log):
            rec = self.replay_log[self.replay_cursor]
            self.replay_cursor += 1
            return rec.value

        u = float(self._stream(checkpoint_id).random())
        draw = self._draws.get(checkpoint_id, 0)
        self._draws[checkpoint_id] = draw + 1

        if self.replay_mode:
            self.replay_log.append(EntropyRecord(checkpoint_id, draw, u))
            self.replay_cursor = len(self.replay_log)
        return u

    def uniform(self, checkpoint_id: str, low: float = 0.0, high: float = 1.0) -> float:
        """Return a uniform sample in [low, high)."""
        return low + (high - low) * self.sample_uniform(checkpoint_id)

    def integers(self, checkpoint_id: str, low: int, high: int) -> int:
        """Return a uniform integer in [low, high)."""
        n = high - low
        return low + min(int(self.sample_uniform(checkpoint_id) * n), n - 1)

    def rewind(self) -> None:
        """Restart replay from the first recorded sample."""
        self.replay_cursor = 0


class Ledger:
    """Accumulate run counters and derive statistics snapshots."""

    def __init__(self):
        self.total_collisions = 0

    def record_collisions(self, count: int) -> None:
        self.total_collisions += count

    def reset(self) -> None:
        self.total_collisions = 0

    @staticmethod
    def entropy(energies: np.ndarray) -> float:
        """Relative energy dispersion ``sum(-r*ln(r+eps))``.

        ``r`` is each particle's energy relative to the mean. A population
        with no energy has zero entropy.
        """
        if energies.size == 0:
            return 0.0
        mean = float(energies.mean())
        if not math.isfinite(mean) or mean <= 0.0:
            return 0.0
        r = energies / mean
        return float(np.sum(-r * np.log(r + ENTROPY_EPSILON)))

    def compute_stats(self, particles: list[Particle], temperature: float, system_age: float) -> SimulationStats:
        """Build a ``SimulationStats`` snapshot from the live particle set.

        Total energy is the bookkeeping sum of per-particle energies;
        kinetic energy is recomputed from velocities. The difference is
        reported as potential energy and is only non-zero while reaction
        products still carry energy inherited from their parents.
        """
        n = len(particles)
        rate = self.total_collisions / system_age if system_age > 0 else 0.0
        if n == 0:
            return SimulationStats(
                particle_count=0,
                total_energy=0.0,
                kinetic_energy=0.0,
                potential_energy=0.0,
                temperature=temperature,
                entropy=0.0,
                total_collisions=self.total_collisions,
                collisions_per_sec=rate,
                avg_speed=0.0,
                max_speed=0.0,
                system_age=system_age,
            )
        energies = np.fromiter((p.energy for p in particles), dtype=np.float64, count=n)
        kinetic = np.fromiter(
            (kinetic_energy(p.mass, p.vx, p.vy) for p in particles), dtype=np.float64, count=n
        )
        speeds = np.fromiter((p.speed for p in particles), dtype=np.float64, count=n)
        total = float(energies.sum())
        kin = float(kinetic.sum())
        return SimulationStats(
            particle_count=n,
            total_energy=total,
            kinetic_energy=kin,
            potential_energy=total - kin,
            temperature=temperature,
            entropy=self.entropy(energies),
            total_collisions=self.total_collisions,
            collisions_per_sec=rate,
            avg_speed=float(speeds.mean()),
            max_speed=float(speeds.max()),
            system_age=system_age,
        )
