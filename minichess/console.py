import argparse
import asyncio
import logging
import sys
from typing import AsyncIterator, Optional, TextIO

from minichess.board_state import Color, PieceType, Square
from minichess.config import LOG_LEVELS, Settings
from minichess.controller import BoardController, BoardView
from minichess.remote import RemoteGameClient
from minichess.rendering import MoveRow, RenderCommands, SquareView

GLYPHS = {
    PieceType.PAWN: {Color.WHITE: "♙", Color.BLACK: "♟"},
    PieceType.ROOK: {Color.WHITE: "♖", Color.BLACK: "♜"},
    PieceType.KNIGHT: {Color.WHITE: "♘", Color.BLACK: "♞"},
    PieceType.BISHOP: {Color.WHITE: "♗", Color.BLACK: "♝"},
    PieceType.QUEEN: {Color.WHITE: "♕", Color.BLACK: "♛"},
    PieceType.KING: {Color.WHITE: "♔", Color.BLACK: "♚"},
}

HELP = "commands: <square> (e.g. e2) | new | yes | no | flip | esc | quit"


def cell_text(view: SquareView) -> str:
    glyph = GLYPHS[view.piece.type][view.piece.color] if view.piece else ("." if view.light else ":")
    if view.selected:
        return f"[{glyph}]"
    if view.in_check:
        return f"!{glyph}!"
    if view.legal_capture:
        return f"({glyph})"
    if view.legal_move:
        return " * "
    return f" {glyph} "


def board_text(commands: RenderCommands) -> str:
    lines = []
    files = []
    for row in commands.rows:
        rank_label = row[0].rank_label or " "
        lines.append(f"{rank_label} " + "".join(cell_text(view) for view in row))
        files = [view.file_label or " " for view in row]
    lines.append("  " + "".join(f" {label} " for label in files))
    return "\n".join(lines)


class ConsoleView(BoardView):
    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = out or sys.stdout
        self.busy = False
        self.confirm_visible = False

    def _print(self, text: str) -> None:
        print(text, file=self.out, flush=True)

    def render_board(self, commands: RenderCommands) -> None:
        self._print(board_text(commands))

    def render_moves(self, rows: list[MoveRow]) -> None:
        # Only the newest rows fit on screen; the last one is always shown
        for row in rows[-5:]:
            self._print(f"{row.number:>3}. {row.white:<8} {row.black}")

    def show_turn(self, side_to_move: Color, in_check: bool) -> None:
        suffix = " (check)" if in_check else ""
        self._print(f"{side_to_move.value.lower()} to move{suffix}")

    def set_busy(self, busy: bool) -> None:
        if busy and not self.busy:
            self._print("waiting for the arbiter...")
        self.busy = busy

    def show_confirm(self) -> None:
        self.confirm_visible = True
        self._print("Start a new game? (yes/no)")

    def hide_confirm(self) -> None:
        self.confirm_visible = False

    def prompt(self) -> str:
        if self.confirm_visible:
            return "new game? (yes/no) > "
        if self.busy:
            return "(waiting) > "
        return "> "

    def alert(self, message: str) -> None:
        self._print(f"!! {message}")

    def notify(self, message: str) -> None:
        self._print(message)

    def say(self, message: str) -> None:
        self._print(message)


async def stdin_lines(view: ConsoleView) -> AsyncIterator[str]:
    while True:
        try:
            line = await asyncio.to_thread(input, view.prompt())
        except EOFError:
            return
        yield line


async def run(controller: BoardController, view: ConsoleView, lines: AsyncIterator[str]) -> None:
    """Feed input lines to the controller until quit or end of input.

    Square activations and confirmations run as separate tasks, so the user can
    keep clicking while a request is outstanding.
    """
    pending: set[asyncio.Task] = set()

    def spawn(coro) -> None:
        task = asyncio.create_task(coro)
        pending.add(task)
        task.add_done_callback(pending.discard)

    async for raw in lines:
        command = raw.strip().lower()
        if not command:
            continue
        if command in ("quit", "exit"):
            break
        if command == "help":
            view.say(HELP)
        elif command == "new":
            controller.on_new_game_requested()
        elif command in ("yes", "y"):
            spawn(controller.on_new_game_confirmed())
        elif command in ("no", "n", "esc"):
            controller.on_cancel_requested()
        elif command == "flip":
            controller.on_flip_requested()
        else:
            try:
                square = Square.parse(command)
            except ValueError:
                view.say(f"unknown command {raw.strip()!r}; {HELP}")
                continue
            spawn(controller.on_square_activated(square))

    if pending:
        await asyncio.gather(*pending)


async def play(settings: Settings) -> None:
    async with RemoteGameClient(settings.arbiter_url, timeout=settings.timeout) as client:
        view = ConsoleView()
        controller = BoardController(client, view)
        view.say(HELP)
        await controller.load()
        await run(controller, view, stdin_lines(view))


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="minichess", description="Play against a MiniChess arbiter.")
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        ap.error(str(exc))
    ap.add_argument("--url", default=settings.arbiter_url, help="arbiter base URL")
    ap.add_argument("--timeout", type=float, default=settings.timeout, help="per-request timeout in seconds")
    ap.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=settings.log_level)
    args = ap.parse_args(argv)

    if args.timeout <= 0:
        ap.error("--timeout must be positive")

    logging.basicConfig(level=args.log_level)
    settings = Settings(arbiter_url=args.url.rstrip("/"), timeout=args.timeout, log_level=args.log_level)
    try:
        asyncio.run(play(settings))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
