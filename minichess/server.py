from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import logging

from minichess.game_state import ChessGame, MoveError

_log = logging.getLogger(__name__)

app = FastAPI(title="MiniChess arbiter")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Single shared game ----
game = ChessGame()


class MoveRequest(BaseModel):
    # Optional so that a missing field is answered with {"error": ...} instead of a 422
    from_: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


def error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


@app.get("/api/board")
async def get_board() -> dict:
    return game.state_payload()


@app.get("/api/moves", response_model=None)
async def get_legal_moves(from_: str = Query("", alias="from")) -> dict | JSONResponse:
    try:
        moves = game.legal_targets(from_)
    except MoveError as exc:
        return error_response(str(exc))
    return {"from": from_, "moves": moves}


@app.post("/api/move", response_model=None)
async def make_move(request: MoveRequest) -> dict | JSONResponse:
    if not (request.from_ and request.to):
        return error_response("missing 'from' or 'to'")
    try:
        game.make_move(request.from_, request.to)
    except MoveError as exc:
        _log.info("rejected move %s-%s: %s", request.from_, request.to, exc)
        return error_response(str(exc))
    return game.state_payload()


@app.get("/api/move-list")
async def get_move_list() -> list[str]:
    return list(game.moves)


@app.post("/api/reset", status_code=204)
async def reset() -> Response:
    game.reset()
    return Response(status_code=204)


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
