"""
Force calculator: pairwise and field forces plus single-particle
integration.

The pair functions work on two particles and serve single lookups. The
per-step pass goes through ``ParticleArena``, which keeps positions,
masses and charges in numpy arrays and sums the pairwise forces on one
row in a single vectorised sweep. ``update_particle`` advances one row in
place by ``dt`` seconds and writes its new position back to the arena.

Forces are returned as ``(fx, fy)`` tuples in newtons. Numerical hazards
are handled with explicit guards instead of exceptions so that a step
never aborts mid-frame:

- separations below ``DISTANCE_FLOOR`` (or non-finite) contribute nothing;
- massless particles are never divided by their mass;
- a velocity at or beyond light speed has no finite Lorentz factor and is
  turned into NaN, which the engine culls as a non-finite particle.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

import numpy as np

from .config import SimulationConfig
from .ledger import MASS_EPSILON, EntropySource, kinetic_energy
from .types import GravityWell, Particle

G = 6.67430e-11        # gravitational constant
K_COULOMB = 8.9875e9   # Coulomb's constant
C = 299792458.0        # speed of light
K_BOLTZMANN = 1.380649e-23

DISTANCE_FLOOR = 1e-10
WELL_MIN_DISTANCE = 1.0
THERMAL_DAMPING = 0.1
RELATIVISTIC_THRESHOLD = 0.1  # fraction of C above which the clamp applies

Force = Tuple[float, float]

_ZERO: Force = (0.0, 0.0)


def _separation(p: Particle, x: float, y: float) -> Tuple[float, float, float]:
    dx = x - p.x
    dy = y - p.y
    return dx, dy, math.sqrt(dx * dx + dy * dy)


def gravitational_force(p: Particle, q: Particle) -> Force:
    """Newtonian attraction of ``p`` toward ``q``."""
    dx, dy, d = _separation(p, q.x, q.y)
    if not d >= DISTANCE_FLOOR or not math.isfinite(d):
        return _ZERO
    f = G * p.mass * q.mass / (d * d)
    return f * dx / d, f * dy / d


def electromagnetic_force(p: Particle, q: Particle) -> Force:
    """Coulomb force on ``p`` from ``q``; like charges repel."""
    if p.charge == 0 or q.charge == 0:
        return _ZERO
    dx, dy, d = _separation(p, q.x, q.y)
    if not d >= DISTANCE_FLOOR or not math.isfinite(d):
        return _ZERO
    f = K_COULOMB * p.charge * q.charge / (d * d)
    return -f * dx / d, -f * dy / d


def gravity_well_force(p: Particle, well: GravityWell) -> Force:
    """Pull of ``well`` on ``p``; negative strength pushes away.

    Wells act only inside their radius and not closer than
    ``WELL_MIN_DISTANCE``.
    """
    if not well.active:
        return _ZERO
    dx, dy, d = _separation(p, well.x, well.y)
    if not WELL_MIN_DISTANCE <= d <= well.radius:
        return _ZERO
    f = well.strength * p.mass / (d * d)
    return f * dx / d, f * dy / d


def thermal_velocity(mass: float, temperature: float) -> float:
    """Characteristic thermal speed ``sqrt(2*k_B*T/m)``; 0 when massless."""
    if mass <= MASS_EPSILON or temperature <= 0:
        return 0.0
    return math.sqrt(2.0 * K_BOLTZMANN * temperature / mass)


def lorentz_clamp(vx: float, vy: float) -> Tuple[float, float]:
    """Damp velocities above ``RELATIVISTIC_THRESHOLD * C``.

    Both components are divided by the Lorentz factor computed from the
    pre-clamp speed. This is a stabilising heuristic, not relativistic
    mechanics.
    """
    speed = math.sqrt(vx * vx + vy * vy)
    if not speed > C * RELATIVISTIC_THRESHOLD:
        return vx, vy
    beta_sq = (speed * speed) / (C * C)
    if beta_sq >= 1.0:
        return math.nan, math.nan
    gamma = 1.0 / math.sqrt(1.0 - beta_sq)
    return vx / gamma, vy / gamma


class ParticleArena:
    """Contiguous position, mass and charge arrays for one force pass.

    Row ``i`` mirrors ``particles[i]``. Positions are written back with
    ``move`` as soon as a particle is integrated, so later rows see the
    updated position exactly as a nested loop over the live objects would.
    Masses and charges are fixed for the duration of the pass.
    """

    def __init__(self, particles: Sequence[Particle]):
        n = len(particles)
        self.particles = particles
        self.x = np.fromiter((p.x for p in particles), dtype=np.float64, count=n)
        self.y = np.fromiter((p.y for p in particles), dtype=np.float64, count=n)
        self.mass = np.fromiter((p.mass for p in particles), dtype=np.float64, count=n)
        self.charge = np.fromiter((p.charge for p in particles), dtype=np.float64, count=n)

    def __len__(self) -> int:
        return len(self.particles)

    def move(self, i: int, x: float, y: float) -> None:
        self.x[i] = x
        self.y[i] = y

    def pair_force(self, i: int, gravity_strength: float, em_force: float) -> Force:
        """Scaled gravity plus Coulomb force on row ``i`` from every other row.

        Rows closer than ``DISTANCE_FLOOR``, rows at a non-finite position
        and row ``i`` itself contribute nothing.
        """
        dx = self.x - self.x[i]
        dy = self.y - self.y[i]
        d2 = dx * dx + dy * dy
        ok = (d2 >= DISTANCE_FLOOR * DISTANCE_FLOOR) & (d2 < np.inf)
        ok[i] = False
        if not ok.any():
            return _ZERO
        d2 = d2[ok]
        # gravity pulls along +d, like charges push along -d
        coef = (
            (G * gravity_strength * self.mass[i]) * self.mass[ok]
            - (K_COULOMB * em_force * self.charge[i]) * self.charge[ok]
        ) / (d2 * np.sqrt(d2))
        return float(coef @ dx[ok]), float(coef @ dy[ok])


def net_force(
    arena: ParticleArena,
    i: int,
    wells: Iterable[GravityWell],
    config: SimulationConfig,
    entropy: EntropySource,
) -> Force:
    """Sum every force acting on ``arena.particles[i]``, thermal jitter included."""
    p = arena.particles[i]
    fx, fy = arena.pair_force(i, config.gravity_strength, config.em_force)

    for well in wells:
        wx, wy = gravity_well_force(p, well)
        fx += wx
        fy += wy

    v_th = thermal_velocity(p.mass, config.temperature)
    fx += (entropy.sample_uniform("thermal") - 0.5) * v_th * THERMAL_DAMPING
    fy += (entropy.sample_uniform("thermal") - 0.5) * v_th * THERMAL_DAMPING
    return fx, fy


def update_particle(
    arena: ParticleArena,
    i: int,
    wells: Iterable[GravityWell],
    config: SimulationConfig,
    dt: float,
    entropy: EntropySource,
) -> None:
    """Advance ``arena.particles[i]`` by ``dt`` seconds in place.

    Velocity is integrated from the net force before the position
    (semi-implicit Euler). Massless particles coast: no force can change
    their velocity. Energy and age are updated last.
    """
    p = arena.particles[i]
    fx, fy = net_force(arena, i, wells, config, entropy)

    if p.mass > MASS_EPSILON:
        p.vx += fx / p.mass * dt
        p.vy += fy / p.mass * dt

    p.vx, p.vy = lorentz_clamp(p.vx, p.vy)

    p.x += p.vx * dt
    p.y += p.vy * dt
    arena.move(i, p.x, p.y)

    p.energy = kinetic_energy(p.mass, p.vx, p.vy)
    p.age += dt
