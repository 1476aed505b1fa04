"""WebSocket client for live pool transaction notifications."""

import asyncio
import json
import logging
from typing import Awaitable, Callable

import websockets
from websockets.asyncio.client import ClientConnection

from ..alerting.monitor import now_ms
from ..pools import PoolTransaction, TxType

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1e9
MIN_AMOUNT_SOL = 0.001

# Log substrings checked in order; the first log line that matches decides
TX_TYPE_MARKERS: tuple[tuple[tuple[str, ...], TxType], ...] = (
    (("AddLiquidity", "Deposit"), "add"),
    (("RemoveLiquidity", "Withdraw"), "remove"),
    (("Swap",), "swap"),
)

TransactionCallback = Callable[[str, PoolTransaction], Awaitable[None]]


def _classify_logs(logs: list) -> TxType:
    for line in logs:
        if not isinstance(line, str):
            continue
        for markers, tx_type in TX_TYPE_MARKERS:
            if any(marker in line for marker in markers):
                return tx_type
    return "swap"


def _amount_from_balances(meta: dict) -> str:
    pre = meta.get("preBalances") or []
    post = meta.get("postBalances") or []
    if not pre or not post:
        return "0"
    try:
        diff = abs(float(post[0]) - float(pre[0])) / LAMPORTS_PER_SOL
    except (TypeError, ValueError):
        return "0"
    if diff > MIN_AMOUNT_SOL:
        return f"{diff:.4f}"
    return "0"


def parse_transaction(tx: dict, now: int | None = None) -> PoolTransaction | None:
    """Parse a raw transaction (``getTransaction`` shape) into a PoolTransaction."""
    if not isinstance(tx, dict):
        return None

    signatures = (tx.get("transaction") or {}).get("signatures") or []
    if not signatures:
        return None

    meta = tx.get("meta") or {}
    block_time = tx.get("blockTime")
    if block_time:
        timestamp = int(block_time) * 1000
    else:
        timestamp = now_ms() if now is None else now

    return PoolTransaction(
        signature=signatures[0],
        type=_classify_logs(meta.get("logMessages") or []),
        amount=_amount_from_balances(meta),
        timestamp=timestamp,
    )


def parse_transaction_message(
    message: dict,
    default_address: str | None = None,
    now: int | None = None,
) -> tuple[str, PoolTransaction] | None:
    """
    Parse a ``transaction`` push into ``(pool_address, transaction)``.

    Returns None for other message types or payloads without a signature.
    The pool address comes from the message, then ``default_address``.
    """
    if message.get("type") not in ("transaction", "transaction_notification"):
        return None

    data = message.get("data") or {}
    address = message.get("address") or data.get("address") or default_address
    if not address:
        return None

    try:
        tx = parse_transaction(data.get("transaction"), now=now)
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Unparseable transaction message: {e}")
        return None

    if tx is None:
        return None
    return address, tx


class TransactionStreamClient:
    """Client for the pool transaction WebSocket relay."""

    RECONNECT_DELAY = 5  # seconds
    MAX_SEEN_SIGNATURES = 200

    def __init__(
        self,
        url: str,
        on_transaction: TransactionCallback | None = None,
        on_connect: Callable[[], Awaitable[None]] | None = None,
        on_disconnect: Callable[[], Awaitable[None]] | None = None,
    ):
        self.url = url
        self.on_transaction = on_transaction
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self._ws: ClientConnection | None = None
        self._running = False
        self._subscriptions: set[str] = set()
        self._seen_signatures: dict[str, None] = {}

    @property
    def subscriptions(self) -> set[str]:
        return set(self._subscriptions)

    async def connect(self):
        """Connect to the relay and keep listening, reconnecting on failure."""
        self._running = True

        while self._running:
            try:
                logger.info(f"Connecting to {self.url}...")

                async with websockets.connect(self.url) as ws:
                    self._ws = ws
                    logger.info("Connected to transaction stream")

                    if self.on_connect:
                        await self.on_connect()

                    # Restore subscriptions after a reconnect
                    for address in list(self._subscriptions):
                        await self._send({"type": "subscribe", "address": address})

                    await self._listen()

            except websockets.ConnectionClosed as e:
                logger.warning(f"WebSocket connection closed: {e}")
            except Exception as e:
                logger.error(f"WebSocket error: {e}")
            finally:
                if self.on_disconnect:
                    await self.on_disconnect()
                self._ws = None

            if self._running:
                logger.info(f"Reconnecting in {self.RECONNECT_DELAY} seconds...")
                await asyncio.sleep(self.RECONNECT_DELAY)

    async def disconnect(self):
        """Stop the reconnect loop and close the socket."""
        self._running = False
        if self._ws:
            await self._ws.close()

    async def subscribe(self, address: str):
        """Start receiving transactions for a pool address."""
        if not address or address in self._subscriptions:
            return
        self._subscriptions.add(address)
        await self._send({"type": "subscribe", "address": address})

    async def unsubscribe(self, address: str):
        """Stop receiving transactions for a pool address."""
        if address not in self._subscriptions:
            return
        self._subscriptions.discard(address)
        await self._send({"type": "unsubscribe", "address": address})

    async def _send(self, payload: dict):
        if not self._ws:
            return
        try:
            await self._ws.send(json.dumps(payload))
        except websockets.ConnectionClosed as e:
            logger.debug(f"Send failed, connection closed: {e}")

    async def _listen(self):
        """Listen for incoming messages."""
        if not self._ws:
            return

        async for message in self._ws:
            await self._handle_message(message)

    async def _handle_message(self, raw_message: str | bytes):
        """Parse and handle an incoming message."""
        try:
            data = json.loads(raw_message)
        except json.JSONDecodeError:
            logger.debug(f"Non-JSON message: {raw_message[:100]!r}")
            return

        if not isinstance(data, dict):
            return

        msg_type = data.get("type")
        if msg_type == "connected":
            logger.info(f"Relay using {data.get('mode', 'standard')} mode")
            return
        if msg_type == "subscribed":
            logger.debug(f"Subscribed to {data.get('address')}")
            return

        default_address = None
        if len(self._subscriptions) == 1:
            default_address = next(iter(self._subscriptions))

        parsed = parse_transaction_message(data, default_address=default_address)
        if parsed is None:
            return

        address, tx = parsed
        if not self._remember(tx.signature):
            return

        if self.on_transaction:
            try:
                await self.on_transaction(address, tx)
            except Exception as e:
                logger.error(f"Error handling transaction {tx.signature}: {e}", exc_info=True)

    def _remember(self, signature: str) -> bool:
        """Record a signature. Returns False if it was already seen."""
        if signature in self._seen_signatures:
            return False
        self._seen_signatures[signature] = None
        if len(self._seen_signatures) > self.MAX_SEEN_SIGNATURES:
            # Keep the most recent half
            keep = list(self._seen_signatures)[-(self.MAX_SEEN_SIGNATURES // 2) :]
            self._seen_signatures = dict.fromkeys(keep)
        return True
