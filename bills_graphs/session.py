"""
Interactive layout session.

A LayoutSession is the explicit simulation context owned by whatever
renders the graph (an HTTP client polling frames, a WebSocket stream, a
PNG snapshot). It holds the current Graph and surface Bounds, applies
pointer interaction, and advances the physics one step per frame.

State machine

    uninitialized -> running <-> paused
          \\            \\         /
           +------------> disposed

The session enters ``running`` as soon as it has at least one node and a
known surface size. Loading a new graph discards the previous one and its
simulation state entirely.

Drag semantics: a dragged node is pinned when the drag starts and stays
pinned after release until it is explicitly unpinned with toggle_pin().
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import numpy as np

from .layout.force2d import Bounds, initialize_positions, step
from .model import Graph
from .presets import LayoutConfig, DEFAULT_LAYOUT

logger = logging.getLogger(__name__)


class LayoutState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    PAUSED = "paused"
    DISPOSED = "disposed"


class SessionDisposed(RuntimeError):
    """Raised when a disposed session is used."""


class SessionBusy(RuntimeError):
    """Raised when a second frame loop is started on the same session."""


# ============================================================================ #
# Frames
# ============================================================================ #

@dataclass
class Frame:
    state: LayoutState
    tick: int
    width: float
    height: float
    nodes: List[Dict[str, Any]] = field(default_factory=list)
    edges: List[Dict[str, Any]] = field(default_factory=list)
    highlighted: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "tick": self.tick,
            "width": self.width,
            "height": self.height,
            "highlighted": self.highlighted,
            "nodes": self.nodes,
            "edges": self.edges,
        }


FrameCallback = Callable[[Frame], Union[None, Awaitable[None]]]


def _running_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


# ============================================================================ #
# Session
# ============================================================================ #

class LayoutSession:

    def __init__(
        self,
        graph: Optional[Graph] = None,
        bounds: Optional[Bounds] = None,
        config: LayoutConfig = DEFAULT_LAYOUT,
    ):
        self.config = config
        self.graph: Graph = Graph()
        self.bounds: Optional[Bounds] = bounds
        self.state = LayoutState.UNINITIALIZED
        self.tick_count = 0
        self.hovered: Optional[str] = None
        self.dragging: Optional[str] = None
        self._rng = np.random.default_rng(config.seed)
        self._task: Optional[asyncio.Task] = None

        if graph is not None:
            self.load(graph)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def disposed(self) -> bool:
        return self.state is LayoutState.DISPOSED

    @property
    def streaming(self) -> bool:
        """True while a frame loop owns this session."""
        return self._task is not None and not self._task.done()

    def _check_alive(self) -> None:
        if self.disposed:
            raise SessionDisposed("layout session has been disposed")

    def load(self, graph: Graph) -> None:
        """Replace the graph wholesale and restart the layout."""
        self._check_alive()
        self.graph = graph.copy()
        self.hovered = None
        self.dragging = None
        self.tick_count = 0
        self.state = LayoutState.UNINITIALIZED
        self._maybe_start()

    def resize(self, bounds: Bounds) -> None:
        """
        Set the surface size. Positions are re-seeded only when the
        session has not started yet; a running layout is clamped into
        the new bounds.
        """
        self._check_alive()
        self.bounds = bounds
        if self.state is LayoutState.UNINITIALIZED:
            self._maybe_start()
            return
        for node in self.graph.nodes:
            node.x, node.y = bounds.clamp(node.x, node.y, self.config.margin)

    def _maybe_start(self) -> None:
        if self.bounds is None or self.graph.is_empty:
            return
        self.graph = initialize_positions(self.graph, self.bounds, self.config, self._rng)
        self.state = LayoutState.RUNNING
        logger.debug("layout started with %d nodes", len(self.graph))

    def pause(self) -> None:
        self._check_alive()
        if self.state is LayoutState.RUNNING:
            self.state = LayoutState.PAUSED

    def resume(self) -> None:
        self._check_alive()
        if self.state is LayoutState.PAUSED:
            self.state = LayoutState.RUNNING

    def dispose(self) -> None:
        """Stop the frame loop and release the graph. Idempotent."""
        if self.disposed:
            return
        # From inside the loop's own callback the loop simply ends at the
        # next frame check.
        task = self._task
        if task is not None and not task.done() and task is not _running_task():
            task.cancel()
        self._task = None
        self.graph = Graph()
        self.hovered = None
        self.dragging = None
        self.state = LayoutState.DISPOSED

    # ------------------------------------------------------------------ #
    # Simulation
    # ------------------------------------------------------------------ #

    def tick(self, dt: float = 1.0) -> bool:
        """
        Advance one simulation step. Returns False when nothing ran
        (not started, paused or disposed).
        """
        if self.state is not LayoutState.RUNNING or self.bounds is None:
            return False
        self.graph = step(self.graph, self.bounds, self.config, dt)
        self.tick_count += 1
        return True

    def advance(self, steps: int, dt: float = 1.0) -> int:
        ran = 0
        for _ in range(max(0, int(steps))):
            if not self.tick(dt):
                break
            ran += 1
        return ran

    # ------------------------------------------------------------------ #
    # Interaction
    # ------------------------------------------------------------------ #

    def hover(self, node_id: Optional[str]) -> None:
        """Highlight a node (or clear with None). No effect on physics."""
        self._check_alive()
        if node_id is not None and node_id not in self.graph:
            raise KeyError(f"Unknown node: {node_id!r}")
        self.hovered = node_id

    def toggle_pin(self, node_id: str) -> bool:
        """Double-click: flip the pinned flag. Returns the new value."""
        self._check_alive()
        node = self.graph.node(node_id)
        node.pinned = not node.pinned
        node.vx = node.vy = 0.0
        return node.pinned

    def drag_start(self, node_id: str) -> None:
        self._check_alive()
        node = self.graph.node(node_id)
        node.pinned = True
        node.vx = node.vy = 0.0
        self.dragging = node_id

    def drag_move(self, x: float, y: float) -> None:
        self._check_alive()
        if self.dragging is None:
            return
        node = self.graph.node(self.dragging)
        if self.bounds is not None:
            x, y = self.bounds.clamp(x, y)
        node.x, node.y = float(x), float(y)
        node.vx = node.vy = 0.0

    def drag_end(self) -> None:
        self._check_alive()
        self.dragging = None

    # ------------------------------------------------------------------ #
    # Frames
    # ------------------------------------------------------------------ #

    @property
    def highlighted(self) -> Optional[str]:
        return self.dragging or self.hovered

    def frame(self) -> Frame:
        width = self.bounds.width if self.bounds else 0.0
        height = self.bounds.height if self.bounds else 0.0
        frame = Frame(
            state=self.state,
            tick=self.tick_count,
            width=width,
            height=height,
            highlighted=self.highlighted,
        )
        if self.state in (LayoutState.UNINITIALIZED, LayoutState.DISPOSED):
            return frame

        focus = self.highlighted
        linked = set(self.graph.neighbors(focus)) if focus else set()
        for n in self.graph.nodes:
            frame.nodes.append({
                "id": n.id,
                "label": n.label,
                "type": n.category.value,
                "x": n.x,
                "y": n.y,
                "pinned": n.pinned,
                "highlighted": n.id == focus or n.id in linked,
            })
        for e in self.graph.edges:
            d = e.to_dict()
            d["highlighted"] = focus is not None and focus in (e.source, e.target)
            frame.edges.append(d)
        return frame

    # ------------------------------------------------------------------ #
    # Frame loop
    # ------------------------------------------------------------------ #

    async def run(
        self,
        on_frame: FrameCallback,
        fps: float = 60.0,
        max_frames: Optional[int] = None,
        dt: float = 1.0,
    ) -> int:
        """
        Cooperative frame loop: one tick and one on_frame() call per
        frame until the session is disposed, the task is cancelled or
        max_frames have been produced. Paused sessions keep emitting
        their frozen frame.

        Only one loop may drive a session at a time; a second concurrent
        run() raises SessionBusy.
        """
        self._check_alive()
        if self.streaming and self._task is not asyncio.current_task():
            raise SessionBusy("layout session already has a running frame loop")
        self._task = asyncio.current_task()
        interval = 1.0 / fps if fps > 0 else 0.0
        frames = 0
        try:
            while not self.disposed:
                if max_frames is not None and frames >= max_frames:
                    break
                self.tick(dt)
                result = on_frame(self.frame())
                if inspect.isawaitable(result):
                    await result
                frames += 1
                await asyncio.sleep(interval)
        finally:
            if self._task is asyncio.current_task():
                self._task = None
        return frames


# ============================================================================ #
# Registry
# ============================================================================ #

class SessionRegistry:
    """In-memory map of session id -> LayoutSession."""

    def __init__(self) -> None:
        self._sessions: Dict[str, LayoutSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        graph: Optional[Graph] = None,
        bounds: Optional[Bounds] = None,
        config: LayoutConfig = DEFAULT_LAYOUT,
    ) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = LayoutSession(graph, bounds, config)
        return session_id

    def get(self, session_id: str) -> LayoutSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown layout session: {session_id!r}") from None

    def dispose(self, session_id: str) -> None:
        self.get(session_id).dispose()
        del self._sessions[session_id]

    def dispose_all(self) -> None:
        for session in self._sessions.values():
            session.dispose()
        self._sessions.clear()


__all__ = [
    "LayoutState",
    "SessionDisposed",
    "SessionBusy",
    "Frame",
    "LayoutSession",
    "SessionRegistry",
]
