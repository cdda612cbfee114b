from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

FILES = "abcdefgh"
BOARD_SIZE = 8


class Color(str, Enum):
    WHITE = "WHITE"
    BLACK = "BLACK"


class PieceType(str, Enum):
    KING = "KING"
    QUEEN = "QUEEN"
    ROOK = "ROOK"
    BISHOP = "BISHOP"
    KNIGHT = "KNIGHT"
    PAWN = "PAWN"


# ---- Coordinate mapping ----
def square_name(file_index: int, rank_index: int) -> str:
    if not (0 <= file_index < BOARD_SIZE and 0 <= rank_index < BOARD_SIZE):
        raise ValueError(f"square index out of range: ({file_index}, {rank_index})")
    return f"{chr(ord('a') + file_index)}{rank_index + 1}"


def file_from_name(name: str) -> int:
    return Square.parse(name).file


def rank_from_name(name: str) -> int:
    return Square.parse(name).rank


@dataclass(frozen=True, order=True)
class Square:
    """One of the 64 board squares; file 0..7 is a..h, rank 0..7 is 1..8."""

    file: int
    rank: int

    def __post_init__(self) -> None:
        if not (0 <= self.file < BOARD_SIZE and 0 <= self.rank < BOARD_SIZE):
            raise ValueError(f"square index out of range: ({self.file}, {self.rank})")

    @classmethod
    def parse(cls, name: str) -> "Square":
        if not isinstance(name, str) or len(name) != 2:
            raise ValueError(f"not a square name: {name!r}")
        file_index = ord(name[0]) - ord("a")
        try:
            rank_index = int(name[1:]) - 1
        except ValueError:
            raise ValueError(f"not a square name: {name!r}") from None
        return cls(file_index, rank_index)

    @property
    def name(self) -> str:
        return square_name(self.file, self.rank)

    def __str__(self) -> str:
        return self.name


def all_squares() -> Iterator[Square]:
    for rank in range(BOARD_SIZE):
        for file in range(BOARD_SIZE):
            yield Square(file, rank)


@dataclass(frozen=True)
class Piece:
    color: Color
    type: PieceType

    @property
    def key(self) -> str:
        """Icon table key, e.g. ``WHITE_KING``."""
        return f"{self.color.value}_{self.type.value}"


Grid = tuple[tuple[Optional[Piece], ...], ...]


def empty_grid() -> Grid:
    return tuple(tuple(None for _ in range(BOARD_SIZE)) for _ in range(BOARD_SIZE))


@dataclass(frozen=True)
class BoardSnapshot:
    """
    Authoritative board as sent by the arbiter.

    ``cells`` is indexed ``[rank][file]`` with ``cells[0][0]`` being a1,
    whatever way round the board is displayed.
    """

    cells: Grid = field(default_factory=empty_grid)
    side_to_move: Color = Color.WHITE
    in_check: bool = False
    white_in_check: bool = False
    black_in_check: bool = False

    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.cells[square.rank][square.file]

    def king_in_check(self, square: Square) -> bool:
        piece = self.piece_at(square)
        if piece is None or piece.type is not PieceType.KING:
            return False
        if piece.color is Color.WHITE:
            return self.white_in_check
        return self.black_in_check

    @classmethod
    def from_payload(cls, payload: Any) -> "BoardSnapshot":
        """
        Build a snapshot from the ``/api/board`` JSON body.
        Raises ValueError (or KeyError/TypeError) on anything malformed.
        """
        rows = payload["cells"]
        if not isinstance(rows, list) or len(rows) != BOARD_SIZE:
            raise ValueError("cells must be an 8x8 grid")

        cells = []
        for row in rows:
            if not isinstance(row, list) or len(row) != BOARD_SIZE:
                raise ValueError("cells must be an 8x8 grid")
            cells.append(
                tuple(
                    None if cell is None else Piece(Color(cell["color"]), PieceType(cell["type"]))
                    for cell in row
                )
            )

        return cls(
            cells=tuple(cells),
            side_to_move=Color(payload["sideToMove"]),
            in_check=bool(payload.get("inCheck", False)),
            white_in_check=bool(payload.get("whiteInCheck", False)),
            black_in_check=bool(payload.get("blackInCheck", False)),
        )


# Simple class that owns the session's view state; only the controller mutates it
class BoardState:
    def __init__(self) -> None:
        self.selection_generation = 0
        self.board_generation = 0
        self.history_generation = 0
        self.is_flipped = False
        self._clear()

    def _clear(self) -> None:
        self.selected_square: Optional[Square] = None
        self.legal_moves: frozenset[Square] = frozenset()
        self.board = BoardSnapshot()
        self.move_history: tuple[str, ...] = ()

    def reset(self) -> None:
        """Back to an empty selection, WHITE to move, no checks, no history.

        Every counter moves on, so anything issued before the reset is stale.
        """
        self._clear()
        self.selection_generation += 1
        self.board_generation += 1
        self.history_generation += 1

    # ---- Authoritative fields mirror the last adopted snapshot ----
    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    @property
    def in_check(self) -> bool:
        return self.board.in_check

    @property
    def white_in_check(self) -> bool:
        return self.board.white_in_check

    @property
    def black_in_check(self) -> bool:
        return self.board.black_in_check

    # ---- Selection ----
    def select(self, square: Square) -> int:
        """Select a piece of the side to move and return the new selection generation."""
        piece = self.board.piece_at(square)
        if piece is None or piece.color is not self.side_to_move:
            raise ValueError(f"cannot select {square}: no {self.side_to_move.value} piece there")
        self.selected_square = square
        self.legal_moves = frozenset()
        self.selection_generation += 1
        return self.selection_generation

    def clear_selection(self) -> int:
        self.selected_square = None
        self.legal_moves = frozenset()
        self.selection_generation += 1
        return self.selection_generation

    def apply_legal_moves(self, generation: int, moves: frozenset[Square]) -> bool:
        """Adopt legal moves for the current selection; False if the response is stale."""
        if generation != self.selection_generation or self.selected_square is None:
            return False
        self.legal_moves = frozenset(moves)
        return True

    # ---- Board ----
    def begin_board_request(self) -> int:
        self.board_generation += 1
        return self.board_generation

    def apply_board(self, generation: int, snapshot: BoardSnapshot) -> bool:
        if generation != self.board_generation:
            return False
        self.board = snapshot
        return True

    # ---- Move history ----
    def begin_history_request(self) -> int:
        self.history_generation += 1
        return self.history_generation

    def apply_move_history(self, generation: int, moves: tuple[str, ...]) -> bool:
        if generation != self.history_generation:
            return False
        self.move_history = tuple(moves)
        return True

    def toggle_flip(self) -> bool:
        self.is_flipped = not self.is_flipped
        return self.is_flipped
