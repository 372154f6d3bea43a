from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health(request: Request) -> dict[str, object]:
    runtime = request.app.state.runtime
    ws_stats = await runtime.get_ws_stats()
    ws_summary = {
        "activeConnections": ws_stats["stats"].get("activeConnections", 0),
        "peakConnections": ws_stats["stats"].get("peakConnections", 0),
    }
    return {
        "ok": True,
        "activeRooms": runtime.active_rooms_count,
        "websocket": ws_summary,
    }


@router.get("/api/ws-stats")
async def websocket_stats(request: Request) -> dict[str, object]:
    return await request.app.state.runtime.get_ws_stats()
