"""
Layout session state machine and interaction tests.
"""

import asyncio

import pytest

from bills_graphs.ingest import demo_graph
from bills_graphs.layout import Bounds
from bills_graphs.model import Graph
from bills_graphs.presets import LayoutConfig
from bills_graphs.session import (
    LayoutSession,
    LayoutState,
    SessionBusy,
    SessionDisposed,
    SessionRegistry,
)

BOUNDS = Bounds(800, 600)
CONFIG = LayoutConfig(seed=7)


@pytest.fixture
def session():
    return LayoutSession(demo_graph(), BOUNDS, CONFIG)


class TestLifecycle:

    def test_needs_nodes_and_bounds(self):
        s = LayoutSession(config=CONFIG)
        assert s.state is LayoutState.UNINITIALIZED

        s.load(Graph())
        s.resize(BOUNDS)
        assert s.state is LayoutState.UNINITIALIZED
        assert s.frame().nodes == []

        s.load(demo_graph())
        assert s.state is LayoutState.RUNNING

    def test_graph_without_bounds_waits(self):
        s = LayoutSession(demo_graph(), config=CONFIG)
        assert s.state is LayoutState.UNINITIALIZED
        assert not s.tick()
        s.resize(BOUNDS)
        assert s.state is LayoutState.RUNNING

    def test_pause_freezes_positions(self, session):
        session.advance(5)
        session.pause()
        before = [n.position for n in session.graph.nodes]
        assert session.advance(10) == 0
        assert [n.position for n in session.graph.nodes] == before

        session.resume()
        assert session.state is LayoutState.RUNNING
        assert session.advance(3) == 3
        assert session.tick_count == 8

    def test_load_replaces_graph(self, session):
        session.advance(5)
        session.hover("Bill1919")
        session.load(Graph.build([], []))
        assert session.state is LayoutState.UNINITIALIZED
        assert session.tick_count == 0
        assert session.highlighted is None

    def test_dispose_is_final_and_idempotent(self, session):
        session.dispose()
        session.dispose()
        assert session.state is LayoutState.DISPOSED
        assert not session.tick()
        assert session.frame().nodes == []
        with pytest.raises(SessionDisposed):
            session.hover(None)


class TestInteraction:

    def test_hover_highlights_neighbourhood(self, session):
        session.hover("Bill1919")
        frame = session.frame()
        lit = {n["id"] for n in frame.nodes if n["highlighted"]}
        assert lit == {"Bill1919", "Education", "Commons", "2nd_reading"}
        assert all(e["highlighted"] == (e["source"] == "Bill1919") for e in frame.edges)

        session.hover(None)
        assert not any(n["highlighted"] for n in session.frame().nodes)

    def test_hover_unknown_node(self, session):
        with pytest.raises(KeyError):
            session.hover("nope")

    def test_drag_pins_and_clamps(self, session):
        session.drag_start("Bill2862")
        session.drag_move(2000, -50)
        node = session.graph.node("Bill2862")
        assert node.pinned
        assert (node.x, node.y) == (800.0, 0.0)

        session.drag_move(300, 200)
        session.drag_end()
        session.advance(20)
        node = session.graph.node("Bill2862")
        assert node.pinned
        assert node.position == (300.0, 200.0)

    def test_toggle_pin(self, session):
        assert session.toggle_pin("Education") is True
        assert session.toggle_pin("Education") is False
        with pytest.raises(KeyError):
            session.toggle_pin("nope")


class TestFrameLoop:

    def test_run_stops_after_max_frames(self, session):
        frames = []
        ran = asyncio.run(session.run(frames.append, fps=0, max_frames=4))
        assert ran == 4
        assert [f.tick for f in frames] == [1, 2, 3, 4]

    def test_async_callback_and_dispose_stops_loop(self, session):
        seen = []

        async def on_frame(frame):
            seen.append(frame.tick)
            if len(seen) == 3:
                session.dispose()

        ran = asyncio.run(session.run(on_frame, fps=0, max_frames=100))
        assert ran == 3
        assert session.state is LayoutState.DISPOSED

    def test_second_concurrent_run_is_rejected(self, session):
        async def main():
            first = asyncio.create_task(session.run(lambda f: None, fps=0))
            await asyncio.sleep(0)
            assert session.streaming

            with pytest.raises(SessionBusy):
                await session.run(lambda f: None, fps=0, max_frames=5)
            owner = session._task

            session.dispose()
            await asyncio.gather(first, return_exceptions=True)
            return owner is first

        assert asyncio.run(main())
        assert not session.streaming

    def test_one_tick_per_frame_with_a_rejected_loop(self, session):
        async def main():
            first = asyncio.create_task(session.run(lambda f: None, fps=0, max_frames=6))
            await asyncio.sleep(0)
            with pytest.raises(SessionBusy):
                await session.run(lambda f: None, fps=0)
            return await first

        assert asyncio.run(main()) == 6
        assert session.tick_count == 6

    def test_run_again_after_loop_ends(self, session):
        async def main():
            await session.run(lambda f: None, fps=0, max_frames=2)
            assert not session.streaming
            return await session.run(lambda f: None, fps=0, max_frames=2)

        assert asyncio.run(main()) == 2
        assert session.tick_count == 4


class TestRegistry:

    def test_create_get_dispose(self):
        reg = SessionRegistry()
        sid = reg.create(demo_graph(), BOUNDS)
        assert reg.get(sid).state is LayoutState.RUNNING
        assert len(reg) == 1

        reg.dispose(sid)
        assert len(reg) == 0
        with pytest.raises(KeyError):
            reg.get(sid)
