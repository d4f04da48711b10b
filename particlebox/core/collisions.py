"""
Collision resolver: spatial partitioning, pair detection and reaction
outcomes.

Every collision pass rebuilds a uniform grid keyed by integer cell
coordinates and looks for partners only in the 3x3 neighbourhood of each
particle, which keeps detection roughly linear in the particle count.
Each unordered pair is resolved at most once per pass. Reactions are
chosen by a fixed, priority-ordered rule table:

1. annihilation (exactly opposite non-zero charges);
2. fusion (allowed type pair);
3. decay (either partner past 80% of its lifespan);
4. elastic bounce (fallback).

The resolver never changes population membership itself. ``process``
returns a ``CollisionBatch`` of removals and products that the engine
applies after the scan. Elastic bounces do update the two particles'
velocities and positions in place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from .catalog import DEFAULT_IDS, IdSequence, instantiate
from .ledger import MASS_EPSILON, EntropySource
from .types import Particle, ParticleType

logger = logging.getLogger(__name__)

CELL_SIZE = 50.0

#: Unordered type pairs that fuse into a boson
FUSION_RULES: FrozenSet[FrozenSet[ParticleType]] = frozenset({
    frozenset({ParticleType.QUARK}),
    frozenset({ParticleType.ELECTRON, ParticleType.BOSON}),
})

MASS_DEFECT = 0.95
DECAY_AGE_FRACTION = 0.8
DECAY_MIN_PRODUCTS = 2
DECAY_MAX_PRODUCTS = 4
DECAY_MAX_SPEED = 1e6
SEPARATION_FLOOR = 1e-10

Cell = Tuple[int, int]


class Reaction(Enum):
    ANNIHILATION = "annihilation"
    FUSION = "fusion"
    DECAY = "decay"
    ELASTIC = "elastic"


@dataclass
class CollisionOutcome:
    reaction: Reaction
    products: List[Particle] = field(default_factory=list)

    @property
    def consumes(self) -> bool:
        """True if both colliding particles are destroyed."""
        return self.reaction is not Reaction.ELASTIC


@dataclass
class CollisionBatch:
    """Result of one collision pass, applied atomically by the engine."""
    collisions: int = 0
    removed_ids: Set[str] = field(default_factory=set)
    added: List[Particle] = field(default_factory=list)
    reactions: Dict[Reaction, int] = field(default_factory=lambda: {r: 0 for r in Reaction})


class SpatialGrid:
    """Uniform bucket grid for neighbour lookup.

    The grid is rebuilt from scratch on every pass. Particles with a
    non-finite position cannot be bucketed and are left out; they are
    culled by the engine at the end of the step.
    """

    def __init__(self, cell_size: float = CELL_SIZE):
        self.cell_size = cell_size
        self.cells: Dict[Cell, List[Particle]] = {}

    def cell_of(self, p: Particle) -> Cell:
        return math.floor(p.x / self.cell_size), math.floor(p.y / self.cell_size)

    def rebuild(self, particles: List[Particle]) -> None:
        self.cells.clear()
        for p in particles:
            if not p.is_finite():
                continue
            self.cells.setdefault(self.cell_of(p), []).append(p)

    def neighbours(self, p: Particle) -> List[Particle]:
        """All particles in the 3x3 cell block around ``p``, minus ``p``."""
        if not p.is_finite():
            return []
        ci, cj = self.cell_of(p)
        nearby: List[Particle] = []
        for di in (-1, 0, 1):
            for dj in (-1, 0, 1):
                bucket = self.cells.get((ci + di, cj + dj))
                if bucket:
                    nearby.extend(q for q in bucket if q.id != p.id)
        return nearby


def check_collision(a: Particle, b: Particle) -> bool:
    """Two particles touch when their centers are closer than their mean size."""
    dx = a.x - b.x
    dy = a.y - b.y
    return math.sqrt(dx * dx + dy * dy) < (a.size + b.size) / 2.0


def pair_key(a: Particle, b: Particle) -> Tuple[str, str]:
    return (a.id, b.id) if a.id <= b.id else (b.id, a.id)


def can_annihilate(a: Particle, b: Particle) -> bool:
    return a.charge != 0 and b.charge != 0 and a.charge == -b.charge


def can_fuse(a: Particle, b: Particle) -> bool:
    return frozenset({a.type, b.type}) in FUSION_RULES


def can_decay(a: Particle, b: Particle) -> bool:
    return a.age > a.lifespan * DECAY_AGE_FRACTION or b.age > b.lifespan * DECAY_AGE_FRACTION


#: Priority-ordered rule table; the first matching predicate wins
REACTION_RULES: Tuple[Tuple[Reaction, Callable[[Particle, Particle], bool]], ...] = (
    (Reaction.ANNIHILATION, can_annihilate),
    (Reaction.FUSION, can_fuse),
    (Reaction.DECAY, can_decay),
)


def classify(a: Particle, b: Particle) -> Reaction:
    for reaction, matches in REACTION_RULES:
        if matches(a, b):
            return reaction
    return Reaction.ELASTIC


class CollisionResolver:
    """Detect and resolve all pairwise collisions of a population."""

    def __init__(self, entropy: EntropySource, ids: Optional[IdSequence] = None, cell_size: float = CELL_SIZE):
        self.entropy = entropy
        self.ids = ids if ids is not None else DEFAULT_IDS
        self.grid = SpatialGrid(cell_size)

    # ------------------------------------------------------------------
    # Reaction outcomes

    def fusion_product(self, a: Particle, b: Particle) -> Particle:
        """Merge ``a`` and ``b`` into one boson.

        Momentum is conserved; the product sits at the centre of mass and
        keeps ``MASS_DEFECT`` of the combined mass. Charge and energy add.
        """
        total_mass = a.mass + b.mass
        if total_mass > MASS_EPSILON:
            x = (a.mass * a.x + b.mass * b.x) / total_mass
            y = (a.mass * a.y + b.mass * b.y) / total_mass
            vx = (a.mass * a.vx + b.mass * b.vx) / total_mass
            vy = (a.mass * a.vy + b.mass * b.vy) / total_mass
        else:
            x = (a.x + b.x) / 2.0
            y = (a.y + b.y) / 2.0
            vx = (a.vx + b.vx) / 2.0
            vy = (a.vy + b.vy) / 2.0
        product = instantiate(ParticleType.BOSON, x, y, vx, vy, ids=self.ids)
        product.mass = total_mass * MASS_DEFECT
        product.charge = a.charge + b.charge
        product.energy = a.energy + b.energy
        return product

    def decay_products(self, a: Particle, b: Particle) -> List[Particle]:
        """Emit 2-4 photons from ``a``'s position, evenly spread in angle."""
        n = self.entropy.integers("decay", DECAY_MIN_PRODUCTS, DECAY_MAX_PRODUCTS + 1)
        share = (a.energy + b.energy) / n
        products = []
        for i in range(n):
            angle = 2.0 * math.pi * i / n
            speed = self.entropy.uniform("decay", 0.0, DECAY_MAX_SPEED)
            photon = instantiate(
                ParticleType.PHOTON, a.x, a.y,
                math.cos(angle) * speed, math.sin(angle) * speed,
                ids=self.ids,
            )
            photon.charge = 0.0
            photon.energy = share
            products.append(photon)
        return products

    @staticmethod
    def elastic_bounce(a: Particle, b: Particle) -> None:
        """1D elastic collision along each axis, then remove the overlap."""
        m1, m2 = a.mass, b.mass
        total = m1 + m2
        if total > MASS_EPSILON:
            v1x, v1y, v2x, v2y = a.vx, a.vy, b.vx, b.vy
            a.vx = ((m1 - m2) * v1x + 2 * m2 * v2x) / total
            a.vy = ((m1 - m2) * v1y + 2 * m2 * v2y) / total
            b.vx = ((m2 - m1) * v2x + 2 * m1 * v1x) / total
            b.vy = ((m2 - m1) * v2y + 2 * m1 * v1y) / total
        else:
            # two massless particles behave as equal masses
            a.vx, b.vx = b.vx, a.vx
            a.vy, b.vy = b.vy, a.vy

        dx = a.x - b.x
        dy = a.y - b.y
        d = math.sqrt(dx * dx + dy * dy)
        overlap = (a.size + b.size) / 2.0 - d
        if overlap > 0 and d > SEPARATION_FLOOR:
            sx = dx / d * overlap * 0.5
            sy = dy / d * overlap * 0.5
            a.x += sx
            a.y += sy
            b.x -= sx
            b.y -= sy

    def handle_collision(self, a: Particle, b: Particle) -> CollisionOutcome:
        reaction = classify(a, b)
        if reaction is Reaction.ANNIHILATION:
            return CollisionOutcome(reaction)
        if reaction is Reaction.FUSION:
            return CollisionOutcome(reaction, [self.fusion_product(a, b)])
        if reaction is Reaction.DECAY:
            return CollisionOutcome(reaction, self.decay_products(a, b))
        self.elastic_bounce(a, b)
        return CollisionOutcome(reaction)

    # ------------------------------------------------------------------
    # Pass over a population

    def process(self, particles: List[Particle]) -> CollisionBatch:
        """Resolve every colliding pair in ``particles`` once.

        A particle consumed by a reaction takes no further part in the
        pass, so it can neither be destroyed twice nor seed two products.
        """
        self.grid.rebuild(particles)
        batch = CollisionBatch()
        seen: Set[Tuple[str, str]] = set()

        for p in particles:
            if p.id in batch.removed_ids:
                continue
            for other in self.grid.neighbours(p):
                if other.id in batch.removed_ids:
                    continue
                key = pair_key(p, other)
                if key in seen:
                    continue
                if not check_collision(p, other):
                    continue
                seen.add(key)
                batch.collisions += 1

                outcome = self.handle_collision(p, other)
                batch.reactions[outcome.reaction] += 1
                if outcome.consumes:
                    batch.removed_ids.add(p.id)
                    batch.removed_ids.add(other.id)
                    batch.added.extend(outcome.products)
                    break

        if batch.collisions:
            logger.debug(
                "collision pass: %d collisions, %d removed, %d created, %s",
                batch.collisions, len(batch.removed_ids), len(batch.added),
                {r.value: n for r, n in batch.reactions.items() if n},
            )
        return batch
