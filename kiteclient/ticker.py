"""Streaming market feed over a WebSocket connection, delivered through callbacks."""

from __future__ import annotations

import json
import logging
import struct
import threading
import time
from typing import Any, Callable, Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import websocket

from .orders import Order
from .packet import Mode, parse_binary

TEXT_MESSAGE = 1
BINARY_MESSAGE = 2
CLOSE_MESSAGE = 8
PING_MESSAGE = 9
PONG_MESSAGE = 10

DEFAULT_URL = "wss://ws.kite.trade"
DEFAULT_RECONNECT_MAX_ATTEMPTS = 300
RECONNECT_MIN_DELAY = 5.0
DEFAULT_RECONNECT_MAX_DELAY = 60.0
DEFAULT_CONNECT_TIMEOUT = 7.0
CONNECTION_CHECK_INTERVAL = 2.0
DATA_TIMEOUT_INTERVAL = 5.0

_MESSAGE_ERROR = "error"
_MESSAGE_ORDER = "order"
_STATUS_NORMAL = 1000
_STATUS_NO_STATUS = 1005

logger = logging.getLogger(__name__)

Connector = Callable[[str, float], Any]


def _default_connect(url: str, timeout: float) -> Any:
    """Open a WebSocket; the timeout applies to the handshake only."""
    conn = websocket.create_connection(url, timeout=timeout)
    conn.settimeout(None)
    return conn


def _close_payload(data: Any) -> tuple[int, str]:
    if isinstance(data, str):
        data = data.encode()
    data = bytes(data or b"")
    if len(data) < 2:
        return _STATUS_NO_STATUS, ""
    (code,) = struct.unpack(">H", data[:2])
    return code, data[2:].decode("utf-8", errors="replace")


class Ticker:
    """A market feed client that reconnects automatically and reports through callbacks.

    Callbacks are plain attributes: on_connect(), on_error(exc),
    on_close(code, reason), on_message(message_type, data),
    on_reconnect(attempt, delay_seconds), on_no_reconnect(attempt),
    on_tick(tick) and on_order_update(order).
    """

    def __init__(
        self,
        api_key: str,
        access_token: str,
        root_url: str = DEFAULT_URL,
        connect: Connector | None = None,
    ) -> None:
        self.api_key = api_key
        self.access_token = access_token
        self.root_url = root_url
        self.auto_reconnect = True
        self.reconnect_max_retries = DEFAULT_RECONNECT_MAX_ATTEMPTS
        self.connect_timeout = DEFAULT_CONNECT_TIMEOUT
        self.connection_check_interval = CONNECTION_CHECK_INTERVAL
        self.data_timeout = DATA_TIMEOUT_INTERVAL
        self.conn: Any = None

        self.on_connect: Callable[[], Any] | None = None
        self.on_error: Callable[[BaseException], Any] | None = None
        self.on_close: Callable[[int, str], Any] | None = None
        self.on_message: Callable[[int, bytes], Any] | None = None
        self.on_reconnect: Callable[[int, float], Any] | None = None
        self.on_no_reconnect: Callable[[int], Any] | None = None
        self.on_tick: Callable[[Any], Any] | None = None
        self.on_order_update: Callable[[Order], Any] | None = None

        self._connect = connect or _default_connect
        self._reconnect_max_delay = DEFAULT_RECONNECT_MAX_DELAY
        self._attempt = 0
        self._last_ping = time.monotonic()
        self._stop = threading.Event()
        self.subscriptions: dict[int, Mode | None] = {}

    @property
    def reconnect_max_delay(self) -> float:
        """Longest wait between reconnect attempts, in seconds."""
        return self._reconnect_max_delay

    @reconnect_max_delay.setter
    def reconnect_max_delay(self, value: float) -> None:
        if value < RECONNECT_MIN_DELAY:
            raise ValueError(
                f"reconnect max delay can't be less than {RECONNECT_MIN_DELAY * 1000:f}ms"
            )
        self._reconnect_max_delay = value

    @staticmethod
    def _call(callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is not None:
            callback(*args)

    def _emit_error(self, exc: BaseException) -> None:
        self._call(self.on_error, exc)

    def _feed_url(self) -> str:
        parts = urlsplit(self.root_url)
        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        query["api_key"] = self.api_key
        query["access_token"] = self.access_token
        return urlunsplit(parts._replace(query=urlencode(sorted(query.items()))))

    def _close_connection(self) -> None:
        if self.conn is not None:
            try:
                self.conn.close()
            except Exception:  # noqa: BLE001 - closing a dead socket may fail
                pass

    def serve(self) -> None:
        """Connect and process the feed until stopped; blocks the calling thread."""
        self._stop.clear()
        try:
            while not self._stop.is_set():
                if self._attempt > self.reconnect_max_retries:
                    self._call(self.on_no_reconnect, self._attempt)
                    return

                if self._attempt > 0:
                    delay = float(min(2**self._attempt, self._reconnect_max_delay))
                    self._call(self.on_reconnect, self._attempt, delay)
                    if self._stop.wait(delay):
                        return
                    self._close_connection()

                try:
                    conn = self._connect(self._feed_url(), self.connect_timeout)
                except Exception as exc:  # noqa: BLE001 - any dial failure is reported
                    self._emit_error(exc)
                    if self.auto_reconnect:
                        self._attempt += 1
                        continue
                    return

                self.conn = conn
                self._call(self.on_connect)

                if self._attempt > 0:
                    try:
                        self.resubscribe()
                    except Exception as exc:  # noqa: BLE001
                        self._emit_error(exc)

                self._attempt = 0
                self._last_ping = time.monotonic()

                workers = [
                    threading.Thread(target=self._read_messages, args=(conn,), daemon=True)
                ]
                if self.auto_reconnect:
                    workers.append(
                        threading.Thread(
                            target=self._check_connection, args=(conn,), daemon=True
                        )
                    )
                for worker in workers:
                    worker.start()
                for worker in workers:
                    worker.join()
        finally:
            self._close_connection()

    def stop(self) -> None:
        """Stop serving and release the connection."""
        self._stop.set()
        self._close_connection()

    def close(self) -> None:
        """Ask the server to close the connection gracefully."""
        if self.conn is None:
            raise RuntimeError("ticker is not connected")
        self.conn.send_close(status=_STATUS_NORMAL, reason=b"")

    def _check_connection(self, conn: Any) -> None:
        while not self._stop.wait(self.connection_check_interval):
            if time.monotonic() - self._last_ping > self.data_timeout:
                try:
                    conn.close()
                except Exception:  # noqa: BLE001
                    pass
                self._attempt += 1
                return

    def _read_messages(self, conn: Any) -> None:
        while not self._stop.is_set():
            try:
                opcode, data = conn.recv_data()
            except Exception as exc:  # noqa: BLE001 - any read failure ends the loop
                if not self._stop.is_set():
                    self._emit_error(RuntimeError(f"Error reading data: {exc}"))
                return

            self._last_ping = time.monotonic()

            if opcode == CLOSE_MESSAGE:
                self._call(self.on_close, *_close_payload(data))
                return

            self._call(self.on_message, opcode, data)

            if opcode == BINARY_MESSAGE:
                try:
                    ticks = parse_binary(data)
                except (ValueError, struct.error) as exc:
                    self._emit_error(RuntimeError(f"Error parsing data received: {exc}"))
                    ticks = []
                for tick in ticks:
                    self._call(self.on_tick, tick)
            elif opcode == TEXT_MESSAGE:
                self._process_text(data)

    def _process_text(self, data: Any) -> None:
        try:
            message = json.loads(data)
        except ValueError:
            return
        if not isinstance(message, dict):
            return

        kind = message.get("type")
        if kind == _MESSAGE_ERROR:
            self._emit_error(RuntimeError(str(message.get("data"))))
        elif kind == _MESSAGE_ORDER:
            payload = message.get("data")
            if not isinstance(payload, dict):
                return
            try:
                order = Order.from_dict(payload)
            except (ValueError, TypeError):
                return
            self._call(self.on_order_update, order)

    def _send(self, kind: str, value: Any) -> None:
        payload = json.dumps({"a": kind, "v": value}, separators=(",", ":"))
        if self.conn is None:
            raise RuntimeError("ticker is not connected")
        self.conn.send(payload)

    def subscribe(self, tokens: Iterable[int]) -> None:
        """Subscribe to ticks of the given instrument tokens."""
        tokens = [int(token) for token in tokens]
        if not tokens:
            return
        for token in tokens:
            self.subscriptions[token] = None
        self._send("subscribe", tokens)

    def unsubscribe(self, tokens: Iterable[int]) -> None:
        """Stop receiving ticks of the given instrument tokens."""
        tokens = [int(token) for token in tokens]
        if not tokens:
            return
        for token in tokens:
            self.subscriptions.pop(token, None)
        self._send("unsubscribe", tokens)

    def set_mode(self, mode: Mode | str, tokens: Iterable[int]) -> None:
        """Change the feed mode of the given instrument tokens."""
        mode = Mode(mode)
        tokens = [int(token) for token in tokens]
        if not tokens:
            return
        for token in tokens:
            self.subscriptions[token] = mode
        self._send("mode", [mode.value, tokens])

    def resubscribe(self) -> None:
        """Send the stored subscriptions and modes again."""
        tokens = list(self.subscriptions)
        by_mode: dict[Mode, list[int]] = {Mode.FULL: [], Mode.QUOTE: [], Mode.LTP: []}
        for token, mode in self.subscriptions.items():
            if mode is not None:
                by_mode[mode].append(token)

        logger.debug("Subscribing again: %s", tokens)

        if tokens:
            self.subscribe(tokens)
        for mode, mode_tokens in by_mode.items():
            if mode_tokens:
                self.set_mode(mode, mode_tokens)