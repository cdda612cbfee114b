import chess

COLOR_NAMES = {chess.WHITE: "WHITE", chess.BLACK: "BLACK"}
PIECE_NAMES = {
    chess.KING: "KING",
    chess.QUEEN: "QUEEN",
    chess.ROOK: "ROOK",
    chess.BISHOP: "BISHOP",
    chess.KNIGHT: "KNIGHT",
    chess.PAWN: "PAWN",
}


class MoveError(ValueError):
    """A move request the arbiter refuses; the message goes back to the client."""


def parse_square(name: str | None) -> int:
    if name is None or len(name) != 2:
        raise MoveError("a square must be exactly 2 characters")
    if not "a" <= name[0] <= "h":
        raise MoveError("file must be between 'a' and 'h'")
    if not "1" <= name[1] <= "8":
        raise MoveError("rank must be between '1' and '8'")
    return chess.parse_square(name)


# Simple class that owns all chess game state and rules
class ChessGame:
    def __init__(self) -> None:
        self.board = chess.Board()
        self.moves: list[str] = []

    def reset(self) -> None:
        """Reset the game to the initial position."""
        self.board = chess.Board()
        self.moves = []

    def legal_targets(self, src: str) -> list[str]:
        """Destination squares of the legal moves starting on ``src``, in board order."""
        from_sq = parse_square(src)
        targets = {mv.to_square for mv in self.board.legal_moves if mv.from_square == from_sq}
        return [chess.square_name(sq) for sq in sorted(targets)]

    def _find_move(self, from_sq: int, to_sq: int) -> chess.Move | None:
        for promotion in (None, chess.QUEEN):
            move = chess.Move(from_sq, to_sq, promotion=promotion)
            if move in self.board.legal_moves:
                return move
        return None

    def make_move(self, src: str, dst: str) -> None:
        """
        Play a move, promoting to a queen when a pawn reaches the last rank.
        Raises MoveError if the move is not playable.
        """
        from_sq = parse_square(src)
        to_sq = parse_square(dst)

        piece = self.board.piece_at(from_sq)
        if piece is None:
            raise MoveError(f"no piece on {src}")
        if piece.color != self.board.turn:
            raise MoveError("not your turn")

        move = self._find_move(from_sq, to_sq)
        if move is None:
            raise MoveError("illegal move")

        self.moves.append(self.board.san(move))
        self.board.push(move)

    def in_check(self, color: chess.Color) -> bool:
        king = self.board.king(color)
        return king is not None and self.board.is_attacked_by(not color, king)

    def cells(self) -> list[list[dict | None]]:
        grid: list[list[dict | None]] = []
        for rank in range(8):
            row: list[dict | None] = []
            for file in range(8):
                piece = self.board.piece_at(chess.square(file, rank))
                if piece:
                    row.append({"type": PIECE_NAMES[piece.piece_type], "color": COLOR_NAMES[piece.color]})
                else:
                    row.append(None)
            grid.append(row)
        return grid

    def state_payload(self) -> dict:
        """Return the current game state as a JSON-friendly dict."""
        return {
            "cells": self.cells(),
            "sideToMove": COLOR_NAMES[self.board.turn],
            "inCheck": self.in_check(self.board.turn),
            "whiteInCheck": self.in_check(chess.WHITE),
            "blackInCheck": self.in_check(chess.BLACK),
        }
