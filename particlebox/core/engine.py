"""
Simulation engine: owns the particle population and gravity wells and
drives the per-tick step.

One call to ``Engine.step`` performs, in order:

1. force integration of every particle (``forces.update_particle``);
2. trail update;
3. a collision pass over the whole population, applied as one batch;
4. boundary wrap (toroidal field);
5. culling of expired and non-finite particles.

The engine is single-threaded and synchronous. Every accessor returns
copies so that callers can never mutate engine-owned state. While the
engine is paused, ``step`` only records the timestamp; configuration
changes, additions, removals and gravity-well edits remain available.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import asdict
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Union

from .catalog import IdSequence, constants_for, instantiate
from .collisions import CollisionBatch, CollisionResolver
from .config import SimulationConfig
from .forces import ParticleArena, update_particle
from .ledger import EntropySource, Ledger
from .types import GravityWell, Particle, ParticleType, SimulationStats, TrailPoint

logger = logging.getLogger(__name__)

#: Config fields the entropy source is built from
SEED_FIELDS = ("base_seed", "entropy_mode", "replay_mode")


class EngineState(Enum):
    RUNNING = "running"
    PAUSED = "paused"


class Engine:
    """Particle sandbox kernel.

    Args:
        config: Initial configuration; defaults to ``SimulationConfig()``.
        entropy: Random source for every stochastic decision. When omitted
            one is built from the config's seed fields.
        clock: Wall-clock function in seconds used for ``system_age``.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        entropy: Optional[EntropySource] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cfg = config if config is not None else SimulationConfig()
        if entropy is None:
            entropy = EntropySource(self.cfg.base_seed, self.cfg.entropy_mode, self.cfg.replay_mode)
        self.entropy = entropy
        self.clock = clock
        self.ids = IdSequence("p")
        self.well_ids = IdSequence("w")
        self.ledger = Ledger()
        self.resolver = CollisionResolver(self.entropy, self.ids, self.cfg.cell_size)
        self.state = EngineState.RUNNING
        self._particles: List[Particle] = []
        self._wells: List[GravityWell] = []
        self._last_timestamp_ms = 0.0
        self._start_time = self.clock()
        self.initialize(self.cfg)

    # ------------------------------------------------------------------
    # Population management

    def _scatter(self, ptype: ParticleType) -> Particle:
        """Create a particle at a uniform random point with a random heading."""
        cfg = self.cfg
        x = self.entropy.uniform("scatter", 0.0, cfg.field_width)
        y = self.entropy.uniform("scatter", 0.0, cfg.field_height)
        angle = self.entropy.uniform("scatter", 0.0, 2.0 * math.pi)
        speed = self.entropy.uniform("scatter", 0.0, cfg.initial_speed_max)
        return instantiate(ptype, x, y, math.cos(angle) * speed, math.sin(angle) * speed, ids=self.ids)

    def initialize(self, config: Optional[SimulationConfig] = None) -> None:
        """(Re)populate the sandbox from ``config.particle_count``.

        Gravity wells and collision counters are cleared and the system
        age clock restarts.
        """
        if config is not None:
            self.cfg = config
        self._particles = []
        self._wells = []
        self.ledger.reset()
        self._start_time = self.clock()
        for ptype, count in self.cfg.particle_count.items():
            for _ in range(count):
                self._particles.append(self._scatter(ptype))
        logger.debug("initialised %d particles (preset=%s)", len(self._particles), self.cfg.preset)

    def reset(self) -> None:
        self.initialize()

    def clear(self) -> None:
        """Remove every particle and gravity well without repopulating."""
        self._particles = []
        self._wells = []
        self.ledger.reset()

    def _reseed(self) -> None:
        cfg = self.cfg
        self.entropy = EntropySource(cfg.base_seed, cfg.entropy_mode, cfg.replay_mode)
        self.resolver.entropy = self.entropy
        logger.debug("entropy source rebuilt (seed=%d)", cfg.base_seed)

    def update_config(self, partial: Optional[Mapping] = None, **changes) -> SimulationConfig:
        """Merge ``partial`` and ``changes`` into a new live config.

        The new config takes effect on the next step. Changing any of the
        seed fields replaces the entropy source, so the next draw starts
        the new seed's streams from the beginning.
        """
        merged = dict(partial or {})
        merged.update(changes)
        old = self.cfg
        self.cfg = old.merged(**merged)
        if any(getattr(old, f) != getattr(self.cfg, f) for f in SEED_FIELDS):
            self._reseed()
        logger.debug("config updated: %s", sorted(merged))
        return self.cfg

    def add_particles(
        self,
        ptype: Union[ParticleType, str],
        count: int,
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> List[Particle]:
        """Add ``count`` particles and return copies of them.

        With a location the particles start at rest within
        ``burst_jitter / 2`` of ``(x, y)`` on each axis; otherwise they are
        scattered across the whole field.
        """
        ptype = ParticleType(ptype)
        created = []
        for _ in range(count):
            if x is not None and y is not None:
                jitter = self.cfg.burst_jitter
                px = x + (self.entropy.sample_uniform("burst") - 0.5) * jitter
                py = y + (self.entropy.sample_uniform("burst") - 0.5) * jitter
                p = instantiate(ptype, px, py, ids=self.ids)
            else:
                p = self._scatter(ptype)
            created.append(p)
        self._particles.extend(created)
        return [p.copy() for p in created]

    def remove_particles_in_area(self, x: float, y: float, radius: float) -> int:
        """Destroy every particle whose centre lies within ``radius``.

        Particles at a non-finite position have no distance and are removed
        as well.
        """
        before = len(self._particles)
        self._particles = [
            p for p in self._particles if math.hypot(p.x - x, p.y - y) > radius
        ]
        return before - len(self._particles)

    # ------------------------------------------------------------------
    # Gravity wells

    def add_gravity_well(self, x: float, y: float, strength: Optional[float] = None) -> GravityWell:
        if strength is None:
            strength = self.cfg.default_well_strength
        well = GravityWell(
            id=self.well_ids.next(), x=x, y=y, strength=strength, radius=self.cfg.well_radius
        )
        self._wells.append(well)
        return well.copy()

    def update_gravity_well(self, well_id: str, x: float, y: float) -> None:
        """Move a well; unknown ids are ignored."""
        for well in self._wells:
            if well.id == well_id:
                well.x = x
                well.y = y
                return

    def remove_gravity_well(self, well_id: str) -> None:
        self._wells = [w for w in self._wells if w.id != well_id]

    # ------------------------------------------------------------------
    # Running state

    def pause(self) -> None:
        self.state = EngineState.PAUSED

    def resume(self) -> None:
        self.state = EngineState.RUNNING

    @property
    def is_running(self) -> bool:
        return self.state is EngineState.RUNNING

    # ------------------------------------------------------------------
    # Stepping

    @staticmethod
    def _update_trail(p: Particle) -> None:
        """Push the current position onto the trail and refresh opacities."""
        n = constants_for(p.type).trail_length
        p.trail.appendleft(TrailPoint(p.x, p.y, 1.0))
        p.trail = deque(
            (TrailPoint(t.x, t.y, 1.0 - i / n) for i, t in enumerate(p.trail)), maxlen=n
        )

    def _apply_batch(self, batch: CollisionBatch) -> None:
        if batch.removed_ids:
            self._particles = [p for p in self._particles if p.id not in batch.removed_ids]
        self._particles.extend(batch.added)

    def _wrap_boundaries(self) -> None:
        w, h = self.cfg.field_width, self.cfg.field_height
        for p in self._particles:
            if p.x < 0:
                p.x = w
            elif p.x > w:
                p.x = 0.0
            if p.y < 0:
                p.y = h
            elif p.y > h:
                p.y = 0.0

    def step(self, timestamp_ms: float) -> None:
        """Advance the simulation to ``timestamp_ms`` (milliseconds)."""
        delta_ms = timestamp_ms - self._last_timestamp_ms
        if delta_ms <= 0:
            return
        self._last_timestamp_ms = timestamp_ms
        if self.state is EngineState.PAUSED:
            return

        dt = delta_ms / 1000.0
        cfg = self.cfg
        arena = ParticleArena(self._particles)
        for i, p in enumerate(self._particles):
            update_particle(arena, i, self._wells, cfg, dt, self.entropy)
            self._update_trail(p)

        if cfg.collision_detection:
            self.resolver.grid.cell_size = cfg.cell_size
            batch = self.resolver.process(self._particles)
            self.ledger.record_collisions(batch.collisions)
            self._apply_batch(batch)

        self._wrap_boundaries()

        before = len(self._particles)
        self._particles = [p for p in self._particles if p.age < p.lifespan and p.is_finite()]
        culled = before - len(self._particles)
        if culled:
            logger.debug("culled %d expired or non-finite particles", culled)

    # ------------------------------------------------------------------
    # Queries

    def get_stats(self) -> SimulationStats:
        return self.ledger.compute_stats(
            self._particles, self.cfg.temperature, self.clock() - self._start_time
        )

    def get_particles(self) -> List[Particle]:
        return [p.copy() for p in self._particles]

    def get_gravity_wells(self) -> List[GravityWell]:
        return [w.copy() for w in self._wells]

    def get_particle_count_by_type(self) -> Dict[ParticleType, int]:
        counts = {t: 0 for t in ParticleType}
        for p in self._particles:
            counts[p.type] += 1
        return counts

    def snapshot(self) -> dict:
        """Point-in-time export view: particles, wells and statistics."""
        return {
            "particles": [p.to_dict() for p in self._particles],
            "gravity_wells": [asdict(w) for w in self._wells],
            "statistics": self.get_stats().to_dict(),
        }
