"""
Force-directed 2D layout for the bills knowledge graph.

One call to step() is one discrete simulation tick:

  1. pairwise inverse-square repulsion (with a distance floor)
  2. edge attraction toward a target link distance
  3. a weak pull toward the surface centre
  4. damped, speed-limited integration clamped to the surface

The simulation never declares convergence; it is meant to be ticked once
per rendered frame for as long as the graph is on screen. Pinned nodes
are never moved here, only by an explicit drag in the session layer.

Exports:
    - Bounds
    - repulsion_force
    - initialize_positions
    - step
    - simulate
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..model import Graph
from ..presets import LayoutConfig, DEFAULT_LAYOUT


# ============================================================================ #
# Surface bounds
# ============================================================================ #

@dataclass(frozen=True)
class Bounds:
    width: float
    height: float

    def __post_init__(self) -> None:
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"Bounds must be positive, got {self.width}x{self.height}")

    @property
    def center(self) -> Tuple[float, float]:
        return self.width / 2.0, self.height / 2.0

    def limits(self, margin: float) -> Tuple[float, float, float, float]:
        """(x_lo, x_hi, y_lo, y_hi) after applying the margin."""
        mx = min(margin, self.width / 2.0)
        my = min(margin, self.height / 2.0)
        return mx, self.width - mx, my, self.height - my

    def clamp(self, x: float, y: float, margin: float = 0.0) -> Tuple[float, float]:
        x_lo, x_hi, y_lo, y_hi = self.limits(margin)
        return float(min(max(x, x_lo), x_hi)), float(min(max(y, y_lo), y_hi))


# ============================================================================ #
# Forces
# ============================================================================ #

def _repulsion_magnitude(distance, config: LayoutConfig):
    # inverse square, floored at min_distance; works on scalars and arrays
    d = np.maximum(distance, config.min_distance)
    return config.repulsion / (d * d)


def repulsion_force(distance: float, config: LayoutConfig = DEFAULT_LAYOUT) -> float:
    """Magnitude of the repulsion between two nodes ``distance`` apart."""
    return float(_repulsion_magnitude(float(distance), config))


def _repulsion(pos: np.ndarray, config: LayoutConfig) -> np.ndarray:
    n = pos.shape[0]
    delta = pos[:, None, :] - pos[None, :, :]        # i - j pushes i away from j
    dist = np.hypot(delta[..., 0], delta[..., 1])

    # Coincident nodes get a deterministic, antisymmetric separation axis
    coincident = dist < 1e-9
    np.fill_diagonal(coincident, False)
    if coincident.any():
        ii, jj = np.nonzero(coincident)
        lo, hi = np.minimum(ii, jj), np.maximum(ii, jj)
        angle = lo * 2.399963 + hi * 0.618034
        sign = np.where(ii < jj, 1.0, -1.0)
        delta[ii, jj, 0] = sign * np.cos(angle)
        delta[ii, jj, 1] = sign * np.sin(angle)
        dist[ii, jj] = 1.0

    np.fill_diagonal(dist, 1.0)
    unit = delta / dist[..., None]
    mag = _repulsion_magnitude(dist, config)
    mag[np.arange(n), np.arange(n)] = 0.0
    return (unit * mag[..., None]).sum(axis=1)


def _attraction(
    graph: Graph,
    pos: np.ndarray,
    pinned: np.ndarray,
    config: LayoutConfig,
) -> np.ndarray:
    force = np.zeros_like(pos)
    if not graph.edges:
        return force

    src = np.array([graph.index_of(e.source) for e in graph.edges], dtype=int)
    dst = np.array([graph.index_of(e.target) for e in graph.edges], dtype=int)

    d_vec = pos[dst] - pos[src]
    d = np.hypot(d_vec[:, 0], d_vec[:, 1])
    valid = (d > 1e-9) & ~(pinned[src] & pinned[dst])
    if not valid.any():
        return force

    d_vec, d, src, dst = d_vec[valid], d[valid], src[valid], dst[valid]
    pull = (d - config.link_distance) * config.link_strength
    push = d_vec / d[:, None] * pull[:, None]

    np.add.at(force, src, push)
    np.add.at(force, dst, -push)
    return force


# ============================================================================ #
# Public API
# ============================================================================ #

def initialize_positions(
    graph: Graph,
    bounds: Bounds,
    config: LayoutConfig = DEFAULT_LAYOUT,
    rng: Optional[np.random.Generator] = None,
) -> Graph:
    """
    Return a copy of ``graph`` with every node placed uniformly at random
    inside the central ``initial_spread`` fraction of the surface, at
    rest and unpinned.
    """
    rng = rng if rng is not None else np.random.default_rng(config.seed)
    g = graph.copy()

    cx, cy = bounds.center
    hw = bounds.width * config.initial_spread / 2.0
    hh = bounds.height * config.initial_spread / 2.0

    for node in g.nodes:
        node.x = float(rng.uniform(cx - hw, cx + hw))
        node.y = float(rng.uniform(cy - hh, cy + hh))
        node.vx = 0.0
        node.vy = 0.0
        node.pinned = False
    return g


def step(
    graph: Graph,
    bounds: Bounds,
    config: LayoutConfig = DEFAULT_LAYOUT,
    dt: float = 1.0,
) -> Graph:
    """
    Advance the simulation by one tick and return the updated graph.

    The input graph is left untouched.
    """
    g = graph.copy()
    if g.is_empty:
        return g

    pos = np.array([[n.x, n.y] for n in g.nodes], dtype=float)
    vel = np.array([[n.vx, n.vy] for n in g.nodes], dtype=float)
    pinned = np.array([n.pinned for n in g.nodes], dtype=bool)

    force = _repulsion(pos, config)
    force += _attraction(g, pos, pinned, config)

    cx, cy = bounds.center
    force += (np.array([cx, cy]) - pos) * config.center_strength

    vel = (vel + force * dt) * config.damping
    speed = np.hypot(vel[:, 0], vel[:, 1])
    too_fast = speed > config.max_velocity
    if too_fast.any():
        vel[too_fast] *= (config.max_velocity / speed[too_fast])[:, None]
    vel[pinned] = 0.0

    new_pos = pos + vel * dt
    x_lo, x_hi, y_lo, y_hi = bounds.limits(config.margin)
    new_pos[:, 0] = np.clip(new_pos[:, 0], x_lo, x_hi)
    new_pos[:, 1] = np.clip(new_pos[:, 1], y_lo, y_hi)

    for i, node in enumerate(g.nodes):
        if node.pinned:
            node.vx = node.vy = 0.0
            continue
        node.x, node.y = float(new_pos[i, 0]), float(new_pos[i, 1])
        node.vx, node.vy = float(vel[i, 0]), float(vel[i, 1])
    return g


def simulate(
    graph: Graph,
    bounds: Bounds,
    steps: int,
    config: LayoutConfig = DEFAULT_LAYOUT,
    dt: float = 1.0,
) -> Graph:
    """Run ``steps`` ticks back to back."""
    for _ in range(max(0, int(steps))):
        graph = step(graph, bounds, config, dt)
    return graph


__all__ = [
    "Bounds",
    "repulsion_force",
    "initialize_positions",
    "step",
    "simulate",
]
