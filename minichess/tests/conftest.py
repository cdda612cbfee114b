import asyncio

import pytest
from fastapi.testclient import TestClient

from minichess.board_state import BoardSnapshot, Square
from minichess.controller import BoardView
from minichess.game_state import ChessGame
from minichess.remote import MoveRejected
from minichess.server import app, game


@pytest.fixture
def client() -> TestClient:
    game.reset()
    return TestClient(app)


def start_snapshot() -> BoardSnapshot:
    return BoardSnapshot.from_payload(ChessGame().state_payload())


def snapshot_after(*moves: tuple[str, str]) -> BoardSnapshot:
    g = ChessGame()
    for src, dst in moves:
        g.make_move(src, dst)
    return BoardSnapshot.from_payload(g.state_payload())


class RecordingView(BoardView):
    def __init__(self) -> None:
        self.boards = []
        self.move_lists = []
        self.turns = []
        self.busy_changes = []
        self.alerts = []
        self.notes = []
        self.confirm_visible = False

    @property
    def last_board(self):
        return self.boards[-1]

    def render_board(self, commands) -> None:
        self.boards.append(commands)

    def render_moves(self, rows) -> None:
        self.move_lists.append(rows)

    def show_turn(self, side_to_move, in_check) -> None:
        self.turns.append((side_to_move, in_check))

    def set_busy(self, busy) -> None:
        self.busy_changes.append(busy)

    def show_confirm(self) -> None:
        self.confirm_visible = True

    def hide_confirm(self) -> None:
        self.confirm_visible = False

    def alert(self, message) -> None:
        self.alerts.append(message)

    def notify(self, message) -> None:
        self.notes.append(message)


class FakeArbiter:
    """
    Stands in for RemoteGameClient. Responses are queued up front; calls to
    a method listed in ``hold`` wait until ``release`` lets them through, so
    tests can choose the order in which responses arrive.
    """

    def __init__(self, board: BoardSnapshot | None = None) -> None:
        self.board = board or start_snapshot()
        self.legal = {}
        self.moves_after = {}
        self.move_list: tuple[str, ...] = ()
        self.reject_reason = None
        self.reset_error = None
        self.board_error = None
        self.calls = []
        self.gates = {}

    def hold(self, key) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[key] = gate
        return gate

    async def _wait(self, key) -> None:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()

    async def get_board(self) -> BoardSnapshot:
        self.calls.append(("get_board",))
        await self._wait("get_board")
        if self.board_error:
            raise self.board_error
        return self.board

    async def get_legal_moves(self, square: Square) -> frozenset:
        self.calls.append(("get_legal_moves", square.name))
        await self._wait(("get_legal_moves", square.name))
        return frozenset(Square.parse(name) for name in self.legal.get(square.name, ()))

    async def make_move(self, src: Square, dst: Square) -> BoardSnapshot:
        self.calls.append(("make_move", src.name, dst.name))
        await self._wait("make_move")
        if self.reject_reason:
            raise MoveRejected(self.reject_reason)
        self.board = self.moves_after[(src.name, dst.name)]
        return self.board

    async def get_move_list(self) -> tuple[str, ...]:
        self.calls.append(("get_move_list",))
        await self._wait("get_move_list")
        return self.move_list

    async def reset_game(self) -> None:
        self.calls.append(("reset_game",))
        if self.reset_error:
            raise self.reset_error
        self.board = start_snapshot()
        self.move_list = ()


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)
