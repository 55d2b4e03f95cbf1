from .force2d import (
    Bounds,
    repulsion_force,
    initialize_positions,
    step,
    simulate,
)

__all__ = [
    "Bounds",
    "repulsion_force",
    "initialize_positions",
    "step",
    "simulate",
]
