from __future__ import annotations

import asyncio
import contextlib
import json
import os
from dataclasses import asdict
from typing import Dict, Optional, Set

import structlog
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from programs import PROGRAM_REGISTRY, get_program
from simulation import Building, Simulation
from simulation.log_config import configure_logging

logger = structlog.get_logger(__name__)


class ProgramSelection(BaseModel):
    name: str
    options: Dict[str, object] = {}


class SpawnBatchRequest(BaseModel):
    origin: int = Field(ge=0)
    count: int = Field(default=5, ge=1, le=500)
    destination: Optional[int] = Field(default=None, ge=0)


class SimulationManager:
    def __init__(
        self,
        num_floors: int = 8,
        elevator_count: int = 3,
        tick_interval: float = 0.25,
        program_name: str = "collective",
        spawn_rate: float = 0.5,
    ) -> None:
        self.num_floors = num_floors
        self.elevator_count = elevator_count
        self.tick_interval = tick_interval
        self.spawn_rate = spawn_rate
        self.program_name = program_name
        self.simulation = self._build(program_name, {})
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_env(cls) -> "SimulationManager":
        return cls(
            num_floors=int(os.getenv("LIFTSAGA_FLOORS", "8")),
            elevator_count=int(os.getenv("LIFTSAGA_ELEVATORS", "3")),
            tick_interval=float(os.getenv("LIFTSAGA_TICK_INTERVAL", "0.25")),
            program_name=os.getenv("LIFTSAGA_PROGRAM", "collective"),
            spawn_rate=float(os.getenv("LIFTSAGA_SPAWN_RATE", "0.5")),
        )

    def _build(self, program_name: str, options: Dict[str, object]) -> Simulation:
        program = get_program(program_name, **options)
        building = Building.create(num_floors=self.num_floors, elevator_count=self.elevator_count)
        simulation = Simulation(
            building=building,
            program=program,
            spawn_rate=self.spawn_rate,
            max_substep=1.0 / 60,
            metrics_hook_interval=1,
        )
        simulation.start()
        return simulation

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            async with self._lock:
                self.simulation.step(self.tick_interval)
                payload = self.current_state()
            await self.broadcast(payload)
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        metrics = asdict(self.simulation.metrics_snapshot())
        return {
            "time": self.simulation.current_time,
            "building": self.simulation.building.snapshot(),
            "metrics": metrics,
            "program": self.program_name,
        }

    async def set_program(self, name: str, options: Dict[str, object]) -> dict:
        async with self._lock:
            # Listeners of the old program stay attached to its elevators, so start over.
            self.simulation = self._build(name, options)
            self.program_name = name.lower()
            logger.info("program_selected", program=self.program_name)
            return self.current_state()

    async def spawn_batch(self, origin: int, count: int, destination: Optional[int]) -> dict:
        async with self._lock:
            spawned = self.simulation.spawn_passenger_batch(origin, count, destination)
            state = self.current_state()
            state["spawned"] = spawned
            return state


manager = SimulationManager.from_env()
app = FastAPI(title="liftsaga Simulation API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(os.getenv("LIFTSAGA_LOG_LEVEL", "INFO"))
    await manager.start()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await manager.stop()


@app.get("/state")
async def get_state() -> dict:
    return manager.current_state()


@app.get("/programs")
async def list_programs() -> dict:
    return {"programs": sorted(PROGRAM_REGISTRY), "active": manager.program_name}


@app.post("/program")
async def set_program(selection: ProgramSelection) -> dict:
    try:
        return await manager.set_program(selection.name, selection.options)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.post("/passengers/spawn")
async def spawn_batch(request: SpawnBatchRequest) -> dict:
    try:
        return await manager.spawn_batch(request.origin, request.count, request.destination)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@app.websocket("/ws/stream")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await manager.register(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
