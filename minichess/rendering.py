from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from minichess.board_state import BOARD_SIZE, BoardSnapshot, Piece, Square

ICON_DIR = "/images/piece/cburnett"

PIECE_ICONS = {
    "WHITE_KING": f"{ICON_DIR}/wK.svg",
    "WHITE_QUEEN": f"{ICON_DIR}/wQ.svg",
    "WHITE_ROOK": f"{ICON_DIR}/wR.svg",
    "WHITE_BISHOP": f"{ICON_DIR}/wB.svg",
    "WHITE_KNIGHT": f"{ICON_DIR}/wN.svg",
    "WHITE_PAWN": f"{ICON_DIR}/wP.svg",
    "BLACK_KING": f"{ICON_DIR}/bK.svg",
    "BLACK_QUEEN": f"{ICON_DIR}/bQ.svg",
    "BLACK_ROOK": f"{ICON_DIR}/bR.svg",
    "BLACK_BISHOP": f"{ICON_DIR}/bB.svg",
    "BLACK_KNIGHT": f"{ICON_DIR}/bN.svg",
    "BLACK_PAWN": f"{ICON_DIR}/bP.svg",
}


@dataclass(frozen=True)
class SquareView:
    square: Square
    light: bool
    piece: Optional[Piece] = None
    icon: Optional[str] = None
    selected: bool = False
    legal_move: bool = False
    legal_capture: bool = False
    in_check: bool = False
    file_label: Optional[str] = None
    rank_label: Optional[str] = None


@dataclass(frozen=True)
class RenderCommands:
    """Display rows, top row first, each listed left to right."""

    rows: tuple[tuple[SquareView, ...], ...]

    def __iter__(self):
        for row in self.rows:
            yield from row

    def at(self, square: Square) -> SquareView:
        for view in self:
            if view.square == square:
                return view
        raise KeyError(square)


@dataclass(frozen=True)
class MoveRow:
    number: int
    white: str
    black: str


def display_order(is_flipped: bool) -> tuple[list[int], list[int]]:
    """(rank indices top to bottom, file indices left to right)."""
    ranks = list(range(BOARD_SIZE))
    files = list(range(BOARD_SIZE))
    if is_flipped:
        files.reverse()
    else:
        ranks.reverse()
    return ranks, files


def render_board(
    snapshot: BoardSnapshot,
    is_flipped: bool = False,
    selected: Optional[Square] = None,
    legal_moves: Iterable[Square] = (),
) -> RenderCommands:
    targets = frozenset(legal_moves)
    oriented_ranks, oriented_files = display_order(is_flipped)

    rows = []
    for r_idx, rank in enumerate(oriented_ranks):
        row = []
        for f_idx, file in enumerate(oriented_files):
            sq = Square(file, rank)
            piece = snapshot.piece_at(sq)
            row.append(
                SquareView(
                    square=sq,
                    # a1 is dark whichever way up the board is
                    light=(file + rank) % 2 == 1,
                    piece=piece,
                    icon=PIECE_ICONS.get(piece.key) if piece else None,
                    selected=sq == selected,
                    legal_move=sq in targets and piece is None,
                    legal_capture=sq in targets and piece is not None,
                    in_check=snapshot.king_in_check(sq),
                    file_label=sq.name[0] if r_idx == BOARD_SIZE - 1 else None,
                    rank_label=sq.name[1] if f_idx == 0 else None,
                )
            )
        rows.append(tuple(row))
    return RenderCommands(rows=tuple(rows))


def move_rows(moves: Sequence[str]) -> list[MoveRow]:
    """Pair a flat move list into numbered (white, black) rows."""
    return [
        MoveRow(
            number=i // 2 + 1,
            white=moves[i],
            black=moves[i + 1] if i + 1 < len(moves) else "",
        )
        for i in range(0, len(moves), 2)
    ]
