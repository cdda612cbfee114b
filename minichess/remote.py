"""
Async client for the arbiter's HTTP API.

Each method is one request/response exchange. Nothing is retried and nothing
is cached; the caller decides what to do with failures.
"""

import logging
from typing import Any, Iterable, Optional

import httpx

from minichess.board_state import BoardSnapshot, Square

_log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class RemoteError(Exception):
    """Base class for arbiter communication failures."""


class TransportError(RemoteError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MoveRejected(RemoteError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ParseError(RemoteError):
    pass


def _parse_board(payload: Any) -> BoardSnapshot:
    try:
        return BoardSnapshot.from_payload(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"malformed board payload: {exc}") from exc


def _parse_squares(names: Iterable[Any]) -> frozenset[Square]:
    try:
        return frozenset(Square.parse(name) for name in names)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"malformed square list: {exc}") from exc


def _error_reason(response: httpx.Response) -> str:
    try:
        reason = response.json().get("error")
    except (ValueError, AttributeError):
        reason = None
    return str(reason) if reason else f"move failed (HTTP {response.status_code})"


class RemoteGameClient:
    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        timeout: float = DEFAULT_TIMEOUT,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        # A borrowed client is left open on close(); an owned one is not.
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "RemoteGameClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method} {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _check_status(response: httpx.Response) -> None:
        if not response.is_success:
            request = response.request
            raise TransportError(
                f"{request.method} {request.url.path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"response is not JSON: {exc}") from exc

    async def get_board(self) -> BoardSnapshot:
        response = await self._send("GET", "/api/board")
        self._check_status(response)
        return _parse_board(self._json(response))

    async def get_legal_moves(self, square: Square) -> frozenset[Square]:
        """Destinations for the piece on ``square``; empty on any failure."""
        try:
            response = await self._send("GET", "/api/moves", params={"from": square.name})
            self._check_status(response)
            payload = self._json(response)
            if not isinstance(payload, dict):
                raise ParseError("moves payload is not an object")
            return _parse_squares(payload.get("moves") or [])
        except RemoteError as exc:
            _log.warning("legal moves for %s unavailable: %s", square, exc)
            return frozenset()

    async def make_move(self, src: Square, dst: Square) -> BoardSnapshot:
        response = await self._send("POST", "/api/move", json={"from": src.name, "to": dst.name})
        if not response.is_success:
            raise MoveRejected(_error_reason(response))
        return _parse_board(self._json(response))

    async def get_move_list(self) -> tuple[str, ...]:
        try:
            response = await self._send("GET", "/api/move-list")
            self._check_status(response)
            payload = self._json(response)
            if not isinstance(payload, list):
                raise ParseError("move list is not an array")
            return tuple(str(move) for move in payload)
        except RemoteError as exc:
            _log.warning("move list unavailable: %s", exc)
            return ()

    async def reset_game(self) -> None:
        response = await self._send("POST", "/api/reset")
        self._check_status(response)
