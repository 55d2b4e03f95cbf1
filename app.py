from __future__ import annotations

"""
UK Bills Dashboard Backend API

Serves the dashboard statistics, the bills explorer, the reasoning
passthrough and interactive knowledge-graph layout sessions:

    - bills_db.apis.stats_api      dashboard series
    - bills_db.apis.graph_api      graph sources
    - bills_graphs.session         layout sessions (HTTP + WebSocket)
    - bills_reasoning.client       local reasoning service
"""

import asyncio
import json
import math
import time
import traceback
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, Dict, Optional

from fastapi import (
    APIRouter, Depends, FastAPI, File, HTTPException, Query, UploadFile, WebSocket,
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.websockets import WebSocketDisconnect, WebSocketState

from api_models import DragMove, DragStart, HoverRequest, ResizeRequest, SessionCreate
from bills_db.apis import stats_api
from bills_db.apis.graph_api import GraphRequest, load_graph_source
from bills_db.core import BillsDB, create_bills_db
from bills_graphs import (
    DEFAULT_LAYOUT,
    Bounds,
    LayoutSession,
    SessionBusy,
    SessionDisposed,
    SessionRegistry,
    approval_time_chart,
    category_counts,
    compute_graph_stats,
    draw_frame,
    load_graph_file,
    rejections_chart,
)
from bills_reasoning import client as reasoning_client

# ============================================================================
# Database
# ============================================================================

_db: Optional[BillsDB] = None


def get_db() -> BillsDB:
    """Lazily construct the process-wide BillsDB from the environment."""
    global _db
    if _db is None:
        try:
            _db = create_bills_db(init_schema=True)
        except Exception as exc:
            _log("[app] Failed to initialise BillsDB",
                 error=str(exc), traceback=traceback.format_exc())
            raise
    return _db


# ============================================================================
# Layout sessions
# ============================================================================

sessions = SessionRegistry()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    _log("[app] shutdown", open_sessions=len(sessions))
    sessions.dispose_all()


# ============================================================================
# FastAPI App Setup
# ============================================================================

app = FastAPI(
    title="UK Bills Dashboard API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "*",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# Helpers
# ============================================================================

def _log(msg: str, **extra: Any) -> None:
    """
    Centralised structured logging.
    """
    try:
        print(json.dumps({"msg": msg, **extra}, ensure_ascii=False))
    except Exception:
        # Last-ditch fallback - never let logging crash the app
        print(f"{msg} {extra}")


def _json_safe(v: Any) -> Any:
    """
    Make values JSON safe by:

        - converting NaN/inf floats to None
        - recursing into dicts/lists
    """
    if isinstance(v, float):
        return v if math.isfinite(v) else None
    if isinstance(v, dict):
        return {k: _json_safe(x) for k, x in v.items()}
    if isinstance(v, list):
        return [_json_safe(x) for x in v]
    return v


def _png(data: bytes) -> Response:
    return Response(content=data, media_type="image/png")


def _session(session_id: str) -> LayoutSession:
    try:
        return sessions.get(session_id)
    except KeyError:
        raise HTTPException(404, f"Layout session {session_id} not found")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    _log("[http] request", method=request.method, path=request.url.path)
    try:
        resp = await call_next(request)
    except Exception as exc:
        _log("[http] error", error=str(exc), traceback=traceback.format_exc())
        raise
    _log(
        "[http] response",
        path=request.url.path,
        duration_ms=int((time.time() - start) * 1000),
        status_code=getattr(resp, "status_code", None),
    )
    return resp

# ============================================================================
# Router
# ============================================================================

router = APIRouter(prefix="/api/v1")


@router.get("/health")
async def health():
    return {"status": "ok", "time": time.time(), "sessions": len(sessions)}

# ============================================================================
# Dashboard statistics
# ============================================================================

@router.get("/dashboard")
async def api_dashboard(db: BillsDB = Depends(get_db)):
    widgets = await run_in_threadpool(stats_api.build_dashboard, db)
    return _json_safe({name: w.to_dict() for name, w in widgets.items()})


@router.get("/stats/summary")
async def api_summary(db: BillsDB = Depends(get_db)):
    try:
        return await run_in_threadpool(stats_api.fetch_summary_stats, db)
    except Exception as exc:
        _log("[api] summary failed", error=str(exc))
        raise HTTPException(500, f"Summary stats failed: {exc}")


@router.get("/stats/rejections")
async def api_rejections(db: BillsDB = Depends(get_db)):
    try:
        return await run_in_threadpool(stats_api.fetch_rejections_by_policy_area, db)
    except Exception as exc:
        _log("[api] rejections failed", error=str(exc))
        raise HTTPException(500, f"Rejections query failed: {exc}")


@router.get("/stats/approval_times")
async def api_approval_times(db: BillsDB = Depends(get_db)):
    try:
        return await run_in_threadpool(stats_api.fetch_approval_time_by_policy_area, db)
    except Exception as exc:
        _log("[api] approval_times failed", error=str(exc))
        raise HTTPException(500, f"Approval times query failed: {exc}")


@router.get("/charts/rejections.png")
async def api_rejections_chart(db: BillsDB = Depends(get_db)):
    try:
        rows = await run_in_threadpool(stats_api.fetch_rejections_by_policy_area, db)
        return _png(await run_in_threadpool(rejections_chart, rows))
    except Exception as exc:
        _log("[api] rejections chart failed", error=str(exc))
        raise HTTPException(500, f"Rejections chart failed: {exc}")


@router.get("/charts/approval_times.png")
async def api_approval_times_chart(db: BillsDB = Depends(get_db)):
    try:
        rows = await run_in_threadpool(stats_api.fetch_approval_time_by_policy_area, db)
        return _png(await run_in_threadpool(approval_time_chart, rows))
    except Exception as exc:
        _log("[api] approval chart failed", error=str(exc))
        raise HTTPException(500, f"Approval time chart failed: {exc}")

# ============================================================================
# Bills explorer
# ============================================================================

@router.get("/bills")
async def api_bills(
    q: Optional[str] = Query(None),
    policy_area: Optional[str] = Query(None),
    limit: int = Query(25, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: BillsDB = Depends(get_db),
):
    try:
        return await run_in_threadpool(
            stats_api.search_bills, db, q, policy_area, limit, offset
        )
    except Exception as exc:
        _log("[api] bills search failed", error=str(exc))
        raise HTTPException(500, f"Bills query failed: {exc}")


@router.get("/bills/all")
async def api_all_bills(db: BillsDB = Depends(get_db)):
    try:
        return await run_in_threadpool(stats_api.fetch_bills, db)
    except Exception as exc:
        _log("[api] bills listing failed", error=str(exc))
        raise HTTPException(500, f"Bills listing failed: {exc}")


@router.get("/bills/count")
async def api_bills_count(
    q: Optional[str] = Query(None),
    policy_area: Optional[str] = Query(None),
    is_act: Optional[bool] = Query(None),
    status: Optional[str] = Query(None),
    current_house: Optional[str] = Query(None),
    originating_house: Optional[str] = Query(None),
    db: BillsDB = Depends(get_db),
):
    filters = {
        "policy_area": policy_area,
        "is_act": is_act,
        "status": status,
        "current_house": current_house,
        "originating_house": originating_house,
    }
    try:
        n = await run_in_threadpool(lambda: db.count_bills(search=q, **filters))
    except Exception as exc:
        _log("[api] bills count failed", error=str(exc))
        raise HTTPException(500, f"Bills count failed: {exc}")
    return {"count": n}


@router.get("/bills/status_table")
async def api_status_table(
    limit: int = Query(10, ge=1, le=500),
    db: BillsDB = Depends(get_db),
):
    try:
        return await run_in_threadpool(stats_api.fetch_bill_status_table, db, limit)
    except Exception as exc:
        _log("[api] status table failed", error=str(exc))
        raise HTTPException(500, f"Status table failed: {exc}")

# ============================================================================
# Reasoning
# ============================================================================

@router.get("/reasoning")
async def api_reasoning(question: str = Query("")):
    if not question.strip():
        raise HTTPException(400, "Question must not be empty.")

    _log("[api] reasoning", question=question[:200])
    try:
        answer = await run_in_threadpool(reasoning_client.ask, question)
    except reasoning_client.ReasoningTimeout as exc:
        _log("[api] reasoning timeout", error=str(exc))
        return JSONResponse(status_code=504, content={"error": "timeout"})
    except reasoning_client.ReasoningError as exc:
        _log("[api] reasoning failed", error=str(exc))
        raise HTTPException(502, f"Reasoning service failed: {exc}")
    return answer.to_dict()

# ============================================================================
# Graph layout sessions
# ============================================================================

def _session_created(session_id: str, result) -> Dict[str, Any]:
    session = sessions.get(session_id)
    return _json_safe({
        "session_id": session_id,
        "state": session.state.value,
        "stats": compute_graph_stats(result.graph).to_dict(),
        "categories": category_counts(result.graph),
        "diagnostics": result.diagnostics(),
    })


@router.post("/graph/sessions")
async def api_create_session(body: SessionCreate, db: BillsDB = Depends(get_db)):
    req = GraphRequest(source=body.source, include_act_flag=body.include_act_flag)
    try:
        result = await run_in_threadpool(load_graph_source, db, req)
    except ValueError as exc:
        raise HTTPException(400, str(exc))
    except Exception as exc:
        _log("[api] graph source failed", source=body.source, error=str(exc))
        raise HTTPException(500, f"Graph source failed: {exc}")

    config = replace(DEFAULT_LAYOUT, seed=body.seed)
    session_id = sessions.create(result.graph, Bounds(body.width, body.height), config)
    _log("[api] graph session created", session_id=session_id,
         source=body.source, nodes=len(result.graph))
    return _session_created(session_id, result)


@router.post("/graph/sessions/upload")
async def api_upload_session(
    file: UploadFile = File(...),
    width: float = Query(800.0, gt=0),
    height: float = Query(600.0, gt=0),
):
    data = await file.read()
    result = load_graph_file(data, name=file.filename or "")
    if result.has_warnings:
        _log("[api] graph upload diagnostics",
             filename=file.filename, skipped=len(result.skipped))

    session_id = sessions.create(result.graph, Bounds(width, height))
    _log("[api] graph session created", session_id=session_id,
         source="upload", nodes=len(result.graph))
    return _session_created(session_id, result)


@router.get("/graph/sessions/{session_id}/frame")
async def api_frame(session_id: str, steps: int = Query(1, ge=0, le=1000)):
    session = _session(session_id)
    session.advance(steps)
    return _json_safe(session.frame().to_dict())


@router.post("/graph/sessions/{session_id}/pause")
async def api_pause(session_id: str):
    session = _session(session_id)
    session.pause()
    return {"state": session.state.value}


@router.post("/graph/sessions/{session_id}/resume")
async def api_resume(session_id: str):
    session = _session(session_id)
    session.resume()
    return {"state": session.state.value}


@router.post("/graph/sessions/{session_id}/resize")
async def api_resize(session_id: str, body: ResizeRequest):
    session = _session(session_id)
    session.resize(Bounds(body.width, body.height))
    return {"state": session.state.value}


@router.post("/graph/sessions/{session_id}/hover")
async def api_hover(session_id: str, body: HoverRequest):
    session = _session(session_id)
    try:
        session.hover(body.node_id)
    except KeyError:
        raise HTTPException(404, f"Node {body.node_id} not found")
    return {"highlighted": session.highlighted}


@router.post("/graph/sessions/{session_id}/nodes/{node_id}/pin")
async def api_toggle_pin(session_id: str, node_id: str):
    session = _session(session_id)
    try:
        pinned = session.toggle_pin(node_id)
    except KeyError:
        raise HTTPException(404, f"Node {node_id} not found")
    return {"node_id": node_id, "pinned": pinned}


@router.post("/graph/sessions/{session_id}/drag/start")
async def api_drag_start(session_id: str, body: DragStart):
    session = _session(session_id)
    try:
        session.drag_start(body.node_id)
    except KeyError:
        raise HTTPException(404, f"Node {body.node_id} not found")
    return {"dragging": session.dragging}


@router.post("/graph/sessions/{session_id}/drag/move")
async def api_drag_move(session_id: str, body: DragMove):
    session = _session(session_id)
    session.drag_move(body.x, body.y)
    node = session.graph.get(session.dragging) if session.dragging else None
    return {
        "dragging": session.dragging,
        "x": node.x if node else None,
        "y": node.y if node else None,
    }


@router.post("/graph/sessions/{session_id}/drag/end")
async def api_drag_end(session_id: str):
    session = _session(session_id)
    session.drag_end()
    return {"dragging": None}


@router.get("/graph/sessions/{session_id}/render.png")
async def api_render(session_id: str):
    session = _session(session_id)
    if session.bounds is None:
        raise HTTPException(409, "Layout session has no surface size yet")
    try:
        data = await run_in_threadpool(
            draw_frame, session.graph, session.bounds, highlighted=session.highlighted
        )
    except Exception as exc:
        _log("[api] render failed", session_id=session_id, error=str(exc))
        raise HTTPException(500, f"Render failed: {exc}")
    return _png(data)


@router.delete("/graph/sessions/{session_id}")
async def api_dispose(session_id: str):
    _session(session_id)
    sessions.dispose(session_id)
    _log("[api] graph session disposed", session_id=session_id)
    return {"status": "disposed", "session_id": session_id}


@router.websocket("/graph/sessions/{session_id}/stream")
async def api_stream(
    websocket: WebSocket,
    session_id: str,
    fps: float = 30.0,
    max_frames: Optional[int] = None,
):
    """
    Push one frame per tick until the client disconnects, the session is
    disposed or max_frames have been sent.
    """
    try:
        session = sessions.get(session_id)
    except KeyError:
        await websocket.close(code=4404)
        return

    if session.streaming:
        _log("[ws] stream rejected", session_id=session_id, reason="busy")
        await websocket.close(code=4409)
        return

    await websocket.accept()

    async def send(frame) -> None:
        await websocket.send_json(_json_safe(frame.to_dict()))

    task = asyncio.create_task(session.run(send, fps=fps, max_frames=max_frames))
    try:
        await asyncio.wait({task})
    finally:
        if not task.done():
            task.cancel()

    if task.cancelled():
        _log("[ws] stream stopped", session_id=session_id, reason="disposed")
    else:
        exc = task.exception()
        if isinstance(exc, WebSocketDisconnect):
            _log("[ws] client disconnected", session_id=session_id)
            return
        if isinstance(exc, SessionDisposed):
            _log("[ws] stream stopped", session_id=session_id, reason="disposed")
        elif isinstance(exc, SessionBusy):
            _log("[ws] stream rejected", session_id=session_id, reason="busy")
            await websocket.close(code=4409)
            return
        elif exc is not None:
            _log("[ws] stream failed", session_id=session_id, error=str(exc))
        else:
            _log("[ws] stream complete", session_id=session_id, frames=task.result())

    if websocket.client_state == WebSocketState.CONNECTED:
        await websocket.close()

# ============================================================================
# Register routes
# ============================================================================

app.include_router(router)

# ============================================================================
# Entrypoint
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
