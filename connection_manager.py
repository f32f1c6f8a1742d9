# Filename: connection_manager.py

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import websockets

from models import ConnectionState, SourceConnection

logger = logging.getLogger("ConnectionManager")

FrameHandler = Callable[[str, Union[str, bytes]], Awaitable[None]]


class ConnectionManager:
    """
    Keeps one websocket per source alive for the lifetime of the process.

    Each source runs in its own supervised task:
    connect -> subscribe -> read until failure -> wait reconnect_delay -> retry.
    Reconnection is unconditional and never backs off.
    """

    def __init__(self, on_frame: FrameHandler, proxy_url: Optional[str] = None, connector=None):
        self.on_frame = on_frame
        self.proxy_url = proxy_url
        self.connector = connector or websockets.connect
        self.connections: Dict[str, SourceConnection] = {}
        self._sockets: Dict[str, Any] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._shutdown = asyncio.Event()

    def connect(self, source: SourceConnection) -> asyncio.Task:
        """Start the supervised connection task for a source and return immediately."""
        self.connections[source.name] = source
        task = asyncio.create_task(self._supervise(source), name=f"ws-{source.name}")
        self._tasks[source.name] = task
        return task

    async def _supervise(self, source: SourceConnection):
        while not self._shutdown.is_set():
            source.state = ConnectionState.CONNECTING if source.attempts == 0 else ConnectionState.RECONNECTING
            source.attempts += 1
            try:
                await self._run_connection(source)
                logger.info(f"🔌 [{source.label}] Connection closed")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"❌ [{source.label}] Connection error: {e}")
            finally:
                source.state = ConnectionState.CLOSED
                self._sockets.pop(source.name, None)

            if self._shutdown.is_set():
                break
            logger.info(f"[{source.label}] Reconnecting in {source.reconnect_delay:g}s...")
            await self._wait_for_shutdown(source.reconnect_delay)

    async def _run_connection(self, source: SourceConnection):
        kwargs = {"ping_interval": None}
        if self.proxy_url:
            kwargs["proxy"] = self.proxy_url

        async with self.connector(source.url, **kwargs) as ws:
            self._sockets[source.name] = ws
            source.state = ConnectionState.OPEN
            logger.info(f"✅ [{source.label}] Connected to {source.url}")

            for request in source.subscribe_requests:
                await ws.send(json.dumps(request))
                logger.info(f"  📡 [{source.label}] Sent {request.get('method')}")

            heartbeat = asyncio.create_task(self._heartbeat(source, ws), name=f"ping-{source.name}")
            try:
                async for raw_msg in ws:
                    if self._shutdown.is_set():
                        break
                    try:
                        await self.on_frame(source.name, raw_msg)
                    except Exception as e:
                        logger.error(f"[{source.label}] Frame handler failed: {e}")
            finally:
                heartbeat.cancel()
                await asyncio.gather(heartbeat, return_exceptions=True)

    async def _heartbeat(self, source: SourceConnection, ws):
        while True:
            await asyncio.sleep(source.heartbeat_interval)
            if source.state is not ConnectionState.OPEN:
                continue
            try:
                await ws.ping()
            except Exception as e:
                logger.debug(f"[{source.label}] Ping failed: {e}")

    async def _wait_for_shutdown(self, timeout: float):
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def states(self) -> Dict[str, ConnectionState]:
        return {name: source.state for name, source in self.connections.items()}

    async def close_all(self):
        """Stop reconnecting, close every open socket and wait for the supervisors to exit."""
        logger.info("Closing all connections...")
        self._shutdown.set()

        sockets: List[Any] = list(self._sockets.values())
        for ws in sockets:
            try:
                await ws.close()
            except Exception as e:
                logger.debug(f"Error while closing socket: {e}")

        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
