"""In-process registry of live WebSocket clients.

Board and game updates are public, so sockets may connect anonymously. A
socket opened with a bearer token is additionally bound to its wallet, which
is what allows personal notifications to reach it.
"""

import json
import time
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()

VALID_CHANNELS = {"board", "notifications", "game"}


@dataclass
class SocketClient:
    websocket: WebSocket
    wallet_address: str | None = None
    channels: set[str] = field(default_factory=set)
    opened_at: float = field(default_factory=time.monotonic)
    delivered: int = 0


class ConnectionManager:
    """Channel and wallet indexes over the open sockets of this process.

    Only touched from the event loop, so no locking.
    """

    def __init__(self) -> None:
        self._clients: dict[str, SocketClient] = {}
        self._by_channel: dict[str, set[str]] = defaultdict(set)
        self._by_wallet: dict[str, set[str]] = defaultdict(set)

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket, conn_id: str, wallet_address: str | None = None) -> None:
        await websocket.accept()
        self._clients[conn_id] = SocketClient(websocket=websocket, wallet_address=wallet_address)
        if wallet_address:
            self._by_wallet[wallet_address].add(conn_id)
        logger.info("ws_connected", conn_id=conn_id, wallet_address=wallet_address, open=len(self._clients))

    async def disconnect(self, conn_id: str) -> None:
        """Forget a socket and every index entry pointing at it. Unknown ids are ignored."""
        client = self._clients.pop(conn_id, None)
        if client is None:
            return

        for channel in client.channels:
            self._by_channel[channel].discard(conn_id)

        wallet = client.wallet_address
        if wallet:
            self._by_wallet[wallet].discard(conn_id)
            if not self._by_wallet[wallet]:
                del self._by_wallet[wallet]

        logger.info(
            "ws_disconnected",
            conn_id=conn_id,
            wallet_address=wallet,
            delivered=client.delivered,
            seconds_open=round(time.monotonic() - client.opened_at, 1),
        )

    async def subscribe(self, conn_id: str, channel: str) -> bool:
        """Returns False for an unknown socket or channel."""
        client = self._clients.get(conn_id)
        if client is None or channel not in VALID_CHANNELS:
            return False
        client.channels.add(channel)
        self._by_channel[channel].add(conn_id)
        return True

    async def unsubscribe(self, conn_id: str, channel: str) -> bool:
        client = self._clients.get(conn_id)
        if client is None:
            return False
        client.channels.discard(channel)
        self._by_channel[channel].discard(conn_id)
        return True

    async def _deliver(self, conn_ids: Iterable[str], channel: str, message: dict) -> int:
        """Send one frame to each id; sockets that fail to take it are dropped."""
        frame = json.dumps({"channel": channel, "data": message}, default=str)
        delivered = 0
        dead: list[str] = []
        for conn_id in conn_ids:
            client = self._clients.get(conn_id)
            if client is None:
                continue
            try:
                await client.websocket.send_text(frame)
            except Exception:
                dead.append(conn_id)
                continue
            client.delivered += 1
            delivered += 1

        for conn_id in dead:
            await self.disconnect(conn_id)
        return delivered

    async def broadcast_to_channel(self, channel: str, message: dict) -> int:
        """Deliver to every subscriber of ``channel``. Returns the delivery count."""
        return await self._deliver(list(self._by_channel.get(channel, ())), channel, message)

    async def send_to_wallet(self, wallet_address: str, channel: str, message: dict) -> int:
        """Deliver to the sockets of ``wallet_address`` subscribed to ``channel``."""
        targets = [
            conn_id
            for conn_id in self._by_wallet.get(wallet_address, ())
            if channel in self._clients[conn_id].channels
        ]
        return await self._deliver(targets, channel, message)

    def get_stats(self) -> dict:
        return {
            "total_connections": len(self._clients),
            "unique_wallets": len(self._by_wallet),
            "channels": {name: len(ids) for name, ids in self._by_channel.items() if ids},
        }


manager = ConnectionManager()
