import pytest

from minichess.game_state import ChessGame, MoveError


def test_legal_move_updates_state():
    game = ChessGame()

    # Starting position: e2e4 is legal
    game.make_move("e2", "e4")
    assert game.moves == ["e4"]

    state = game.state_payload()
    assert state["sideToMove"] == "BLACK"  # after white moves, black to move
    assert state["cells"][3][4] == {"type": "PAWN", "color": "WHITE"}
    assert state["cells"][1][4] is None
    assert state["inCheck"] is False


def test_illegal_move_is_rejected():
    game = ChessGame()

    # e2e5 is illegal (pawn cannot move 3 squares)
    with pytest.raises(MoveError, match="illegal move"):
        game.make_move("e2", "e5")
    # Board should not have any moves played
    assert len(game.board.move_stack) == 0
    assert game.moves == []


def test_moving_out_of_turn_or_from_empty_square():
    game = ChessGame()
    with pytest.raises(MoveError, match="not your turn"):
        game.make_move("e7", "e5")
    with pytest.raises(MoveError, match="no piece on e4"):
        game.make_move("e4", "e5")


@pytest.mark.parametrize("bad", ["e", "e22", "i2", "e9", None])
def test_bad_squares_are_refused(bad):
    with pytest.raises(MoveError):
        ChessGame().make_move(bad, "e4")


def test_legal_targets_from_square():
    game = ChessGame()
    assert game.legal_targets("e2") == ["e3", "e4"]
    assert game.legal_targets("g1") == ["f3", "h3"]
    assert game.legal_targets("e1") == []
    assert game.legal_targets("e7") == []


def test_pawn_promotes_to_queen():
    game = ChessGame()
    for src, dst in [("h2", "h4"), ("g7", "g5"), ("h4", "g5"), ("g8", "f6"),
                     ("g5", "g6"), ("f6", "e4"), ("g6", "g7"), ("e4", "d6")]:
        game.make_move(src, dst)
    assert game.legal_targets("g7") == ["f8", "g8", "h8"]

    game.make_move("g7", "h8")
    assert game.state_payload()["cells"][7][7] == {"type": "QUEEN", "color": "WHITE"}
    assert game.moves[-1] == "gxh8=Q"


def test_check_flags():
    game = ChessGame()
    for src, dst in [("e2", "e4"), ("f7", "f5"), ("d1", "h5")]:
        game.make_move(src, dst)
    state = game.state_payload()
    assert state["sideToMove"] == "BLACK"
    assert state["inCheck"] is True
    assert state["blackInCheck"] is True
    assert state["whiteInCheck"] is False
    assert game.moves == ["e4", "f5", "Qh5+"]


def test_reset_restores_start_position():
    game = ChessGame()
    game.make_move("e2", "e4")
    assert len(game.board.move_stack) == 1

    game.reset()
    assert len(game.board.move_stack) == 0
    assert game.moves == []

    state = game.state_payload()
    assert state["cells"][0][0] == {"type": "ROOK", "color": "WHITE"}
    assert state["sideToMove"] == "WHITE"
