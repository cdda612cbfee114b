"""
Selection state machine and render orchestration.

The controller is the only writer of its BoardState. Every network call is an
await point, so other gestures can run while a request is outstanding; each
response is checked against the generation it was issued under and dropped
when something newer has happened in the meantime.
"""

import abc
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from minichess.board_state import BoardState, Color, Square
from minichess.remote import MoveRejected, RemoteError, RemoteGameClient
from minichess.rendering import MoveRow, RenderCommands, move_rows, render_board

_log = logging.getLogger(__name__)


class BoardView(abc.ABC):
    """Presentation surface driven by BoardController."""

    @abc.abstractmethod
    def render_board(self, commands: RenderCommands) -> None:
        ...

    @abc.abstractmethod
    def render_moves(self, rows: list[MoveRow]) -> None:
        """Replace the move list and scroll to the newest row."""

    @abc.abstractmethod
    def show_turn(self, side_to_move: Color, in_check: bool) -> None:
        ...

    @abc.abstractmethod
    def set_busy(self, busy: bool) -> None:
        ...

    @abc.abstractmethod
    def show_confirm(self) -> None:
        ...

    @abc.abstractmethod
    def hide_confirm(self) -> None:
        ...

    @abc.abstractmethod
    def alert(self, message: str) -> None:
        """Show a failure the user has to acknowledge."""

    def notify(self, message: str) -> None:
        _log.info(message)


class BoardController:
    def __init__(
        self,
        client: RemoteGameClient,
        view: BoardView,
        state: Optional[BoardState] = None,
    ) -> None:
        self.client = client
        self.view = view
        self.state = state or BoardState()
        self.confirm_open = False
        self._busy_depth = 0
        self._reset_pending = False
        # board generation of the outstanding move submission, if any
        self._pending_move: Optional[int] = None

    @contextmanager
    def _busy(self) -> Iterator[None]:
        self._busy_depth += 1
        if self._busy_depth == 1:
            self.view.set_busy(True)
        try:
            yield
        finally:
            self._busy_depth -= 1
            if self._busy_depth == 0:
                self.view.set_busy(False)

    @property
    def busy(self) -> bool:
        return self._busy_depth > 0

    @property
    def _move_pending(self) -> bool:
        # A move made stale by a newer board request no longer blocks clicks
        return self._pending_move is not None and self._pending_move == self.state.board_generation

    # ---- Rendering ----
    def render(self) -> None:
        state = self.state
        self.view.render_board(
            render_board(
                state.board,
                is_flipped=state.is_flipped,
                selected=state.selected_square,
                legal_moves=state.legal_moves,
            )
        )

    def _render_all(self) -> None:
        self.render()
        self.view.show_turn(self.state.side_to_move, self.state.in_check)
        self.view.render_moves(move_rows(self.state.move_history))

    # ---- Loading ----
    async def load(self) -> bool:
        """Fetch the board and move list; False if the board could not be loaded."""
        generation = self.state.begin_board_request()
        with self._busy():
            try:
                snapshot = await self.client.get_board()
            except RemoteError as exc:
                _log.error("loading board failed: %s", exc)
                self.view.alert(f"Could not load the board: {exc}")
                return False

            if not self.state.apply_board(generation, snapshot):
                _log.debug("discarding stale board (generation %d)", generation)
                return True
            self.render()
            self.view.show_turn(snapshot.side_to_move, snapshot.in_check)
            await self.refresh_move_list()
        return True

    async def refresh_move_list(self) -> None:
        generation = self.state.begin_history_request()
        with self._busy():
            moves = await self.client.get_move_list()
        if not self.state.apply_move_history(generation, moves):
            _log.debug("discarding stale move list (generation %d)", generation)
            return
        self.view.render_moves(move_rows(moves))

    # ---- Gestures ----
    async def on_square_activated(self, square: Square) -> None:
        state = self.state
        if self._move_pending:
            _log.debug("ignoring %s while a move is being submitted", square)
            return

        if square == state.selected_square:
            state.clear_selection()
            self.render()
            return

        if state.selected_square is not None and square in state.legal_moves:
            await self._submit_move(state.selected_square, square)
            return

        piece = state.board.piece_at(square)
        if piece is not None and piece.color is state.side_to_move:
            await self._select(square)
            return

        if state.selected_square is not None:
            state.clear_selection()
            self.render()

    async def _select(self, square: Square) -> None:
        generation = self.state.select(square)
        self.render()
        with self._busy():
            moves = await self.client.get_legal_moves(square)
        if not self.state.apply_legal_moves(generation, moves):
            _log.debug("discarding stale legal moves for %s", square)
            return
        self.render()

    async def _submit_move(self, src: Square, dst: Square) -> None:
        # The selection goes back to Idle whether or not the arbiter accepts the move.
        self.state.clear_selection()
        generation = self.state.begin_board_request()
        self._pending_move = generation
        self.render()
        try:
            with self._busy():
                snapshot = await self.client.make_move(src, dst)
        except MoveRejected as exc:
            _log.error("move %s-%s rejected: %s", src, dst, exc.reason)
            self.view.alert(exc.reason)
            return
        except RemoteError as exc:
            _log.error("move %s-%s failed: %s", src, dst, exc)
            self.view.alert(f"Could not make the move: {exc}")
            return
        finally:
            if self._pending_move == generation:
                self._pending_move = None

        if not self.state.apply_board(generation, snapshot):
            _log.debug("discarding stale move result %s-%s", src, dst)
            return
        self.render()
        self.view.show_turn(snapshot.side_to_move, snapshot.in_check)
        await self.refresh_move_list()

    def on_new_game_requested(self) -> None:
        self.confirm_open = True
        self.view.show_confirm()

    async def on_new_game_confirmed(self) -> None:
        if not self.confirm_open or self._reset_pending:
            return
        self._reset_pending = True
        try:
            with self._busy():
                try:
                    await self.client.reset_game()
                except RemoteError as exc:
                    _log.error("starting a new game failed: %s", exc)
                    self.view.alert(f"Could not start a new game: {exc}")
                    return

                self.state.reset()
                self._render_all()
                await self.load()
        finally:
            self._reset_pending = False
        self._hide_confirm()
        self.view.notify("New game started")

    def on_flip_requested(self) -> None:
        self.state.toggle_flip()
        self.render()

    def on_cancel_requested(self) -> None:
        self._hide_confirm()
        if self.state.selected_square is not None:
            self.state.clear_selection()
            self.render()

    def _hide_confirm(self) -> None:
        if self.confirm_open:
            self.confirm_open = False
            self.view.hide_confirm()
