from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any, AsyncIterator, Deque, Dict, Optional, Protocol

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..sim.core.config import SimulationConfig
from ..sim.core.simulator import Simulator
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

MAX_TIME_SCALE = 5.0
# Failures raised by a send on a socket the peer already closed.
_SEND_ERRORS = (WebSocketDisconnect, RuntimeError, ConnectionError)


class SnapshotSink(Protocol):
    async def send_text(self, data: str) -> None: ...


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    """
    Runs one simulator against its own clock and fans snapshots out to viewers.

    Simulation time only moves while running, scaled by ``time_scale``; the simulator
    decides through ``advance`` whether enough of it has passed for the next tick.
    Snapshots stay queued until a viewer acknowledges them so a slow client can catch up.
    """

    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.sim = Simulator(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.time_scale = 1.0
        self.clock = 0.0
        self._clients: Dict[SnapshotSink, int] = {}
        self._queue: Deque[QueuedSnapshot] = deque()
        self._sim_lock = asyncio.Lock()
        self._loop_task: Optional[asyncio.Task] = None

    @property
    def tick(self) -> int:
        return self.sim.tick

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def queued_ticks(self) -> list[int]:
        return [item.tick for item in self._queue]

    def set_time_scale(self, value: float) -> float:
        if not 0.0 < value <= MAX_TIME_SCALE:
            raise ValueError(f"time scale must be within (0, {MAX_TIME_SCALE}] (got {value})")
        self.time_scale = value
        return value

    # lifecycle

    def start(self) -> None:
        self.running = True
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run())
            self._loop_task.add_done_callback(self._on_loop_done)

    def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        task = self._loop_task
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def reset(self) -> None:
        async with self._sim_lock:
            self.sim.reset()
            self.clock = 0.0
        self._queue.clear()
        for client in self._clients:
            self._clients[client] = -1
        await self.broadcast()

    async def step_once(self) -> TickMetrics:
        """Force one tick regardless of the clock; used for single-stepping a paused run."""

        async with self._sim_lock:
            self.clock += self.config.step_delay
            return self.sim.step(self.clock)

    async def _advance(self, elapsed: float) -> Optional[TickMetrics]:
        async with self._sim_lock:
            self.clock += elapsed * self.time_scale
            return self.sim.advance(self.clock)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last_wall = loop.time()
        while True:
            await asyncio.sleep(self.config.step_delay)
            now = loop.time()
            elapsed, last_wall = now - last_wall, now
            if not self.running:
                continue
            metrics = await self._advance(elapsed)
            if metrics is not None and metrics.tick % self.broadcast_interval == 0:
                await self.broadcast()

    def _on_loop_done(self, task: asyncio.Task) -> None:
        self._loop_task = None
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.running = False
            logger.error("simulation loop stopped at tick %d", self.tick, exc_info=error)

    # viewers

    def register(self, client: SnapshotSink) -> None:
        if client in self._clients:
            return
        self._clients[client] = -1
        logger.info("viewer connected, %d total", len(self._clients))

    def unregister(self, client: SnapshotSink) -> None:
        if self._clients.pop(client, None) is not None:
            logger.info("viewer left, %d total", len(self._clients))

    def acknowledge(self, tick: int) -> None:
        while self._queue and self._queue[0].tick <= tick:
            self._queue.popleft()

    def serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.sim.snapshot()
        body: Dict[str, Any] = {
            "tick": snapshot.tick,
            "time": snapshot.time,
            "metrics": asdict(snapshot.metrics),
            "agents": snapshot.agents,
            "segments": snapshot.segments,
            "brightness": snapshot.brightness,
            "fitness": snapshot.fitness,
            "metadata": asdict(snapshot.metadata),
        }
        message = {"type": "snapshot", "tick": snapshot.tick, "payload": body}
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(message))

    async def catch_up(self, client: SnapshotSink) -> None:
        last_sent = self._clients.get(client, -1)
        for item in [item for item in self._queue if item.tick > last_sent]:
            await client.send_text(item.payload)
            last_sent = item.tick
            if client in self._clients:
                self._clients[client] = last_sent

    async def broadcast(self) -> None:
        self._queue.append(self.serialize_snapshot())
        for client in list(self._clients):
            if client not in self._clients:
                continue
            try:
                await self.catch_up(client)
            except _SEND_ERRORS as exc:
                logger.info("dropping viewer after failed send: %s", exc)
                self.unregister(client)


controller = SimulationController(SimulationConfig())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Hex Trail Simulation", lifespan=lifespan)


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.sim.metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "time": controller.clock,
            "time_scale": controller.time_scale,
            "population": len(controller.sim.agents),
            "viewers": controller.client_count,
            "metrics": None if metrics is None else asdict(metrics),
            "fitness": controller.sim.fitness.export(),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    try:
        scale = controller.set_time_scale(float(payload.get("multiplier", 1.0)))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return JSONResponse({"multiplier": scale})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.register(websocket)
    try:
        await controller.catch_up(websocket)
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue
            if message.get("type") == "ack" and isinstance(message.get("tick"), int):
                controller.acknowledge(message["tick"])
    except WebSocketDisconnect:
        pass
    finally:
        controller.unregister(websocket)


__all__ = ["app", "controller", "SimulationController"]
