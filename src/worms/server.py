from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from .config import SimConfig
from .rng import DeterministicRng
from .scene import Scene
from .snapshot import collect_metrics, scene_snapshot

logger = logging.getLogger("worms.server")


class SimulationController:
    """Owns the scene and ticks it on a timer; controls mirror reset / step / continue."""

    def __init__(self, config: SimConfig):
        self.config = config
        self.scene: Optional[Scene] = None
        self.running = False
        self.tick = 0
        self.resets = 0
        self.width = config.width
        self.height = config.height
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._tick_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self.scene is None:
            await self.reset()
        if self._tick_task is None:
            self._tick_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self._new_scene()
        await self._broadcast_snapshot()

    async def step(self) -> None:
        """Pause the timer and advance exactly one tick, creating a scene if there is none."""
        self.running = False
        async with self._lock:
            if self.scene is None:
                self._new_scene()
            else:
                self.scene.execute()
                self.tick += 1
        await self._broadcast_snapshot()

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        if self.scene is not None:
            self.scene.resize(width, height)

    def snapshot(self) -> Optional[Dict[str, Any]]:
        if self.scene is None:
            return None
        return scene_snapshot(self.scene, self.tick)

    def _new_scene(self) -> None:
        config = self.config
        seed = config.seed + self.resets
        self.resets += 1
        scene = Scene(
            self.width,
            self.height,
            config.scene,
            config.n_worms,
            config.n_rewards,
            rng=DeterministicRng(seed),
        )
        for _ in range(config.warmup_ticks):
            scene.execute()
        self.scene = scene
        self.tick = 0
        logger.info("new scene with seed %d (%d warm-up ticks)", seed, config.warmup_ticks)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.interval_ms / 1000.0)
            if not self.running or self.scene is None:
                continue
            async with self._lock:
                self.scene.execute()
                self.tick += 1
            await self._broadcast_snapshot()

    async def _broadcast_snapshot(self) -> None:
        if not self.clients:
            return
        snapshot = self.snapshot()
        if snapshot is None:
            return
        payload = json.dumps({"type": "snapshot", "payload": snapshot})
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)


app = FastAPI(title="Worms Simulation")
controller = SimulationController(SimConfig.read_default())


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    scene = controller.scene
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "interval_ms": controller.config.interval_ms,
            "metrics": asdict(collect_metrics(scene, controller.tick)) if scene is not None else None,
        }
    )


@app.get("/api/snapshot")
async def snapshot() -> JSONResponse:
    return JSONResponse(controller.snapshot())


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/step")
async def step_simulation() -> JSONResponse:
    await controller.step()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/resize")
async def resize(payload: dict) -> JSONResponse:
    width = max(0.0, float(payload.get("width", controller.width)))
    height = max(0.0, float(payload.get("height", controller.height)))
    controller.resize(width, height)
    return JSONResponse({"width": controller.width, "height": controller.height})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    await controller._broadcast_snapshot()
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        controller.clients.discard(websocket)


__all__ = ["app", "controller"]
