"""Pydantic models: players, board snapshots, and the match message protocol."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError


class Player(BaseModel):
    name: str
    score: int = 0

    def add_score(self) -> None:
        self.score += 1

    def __eq__(self, other: object) -> bool:
        # Identity is the name; the score is running state
        if isinstance(other, Player):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)


class BoardSnapshot(BaseModel):
    """Immutable copy of a board's grid, indexed ``cells[x][y]`` with ``y = 0`` at the bottom."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    n: int
    cells: tuple[tuple[Player | None, ...], ...]

    def at(self, x: int, y: int) -> Player | None:
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.cells[x][y]
        return None

    def names(self) -> list[list[str | None]]:
        return [[tile.name if tile else None for tile in column] for column in self.cells]


# ---------------------------------------------------------------------------
# Caller → Match
# ---------------------------------------------------------------------------

class JoinRequest(BaseModel):
    type: Literal["join"] = "join"
    player: str


class DropTileRequest(BaseModel):
    type: Literal["drop_tile"] = "drop_tile"
    player: str
    column: int


class StateRequest(BaseModel):
    type: Literal["state"] = "state"


MoveRequest = JoinRequest | DropTileRequest | StateRequest


# ---------------------------------------------------------------------------
# Match → Caller
# ---------------------------------------------------------------------------

class PlayerJoinedMsg(BaseModel):
    type: Literal["player_joined"] = "player_joined"
    player: str


class MatchStartedMsg(BaseModel):
    type: Literal["match_started"] = "match_started"
    players: list[str]


class TilePlacedMsg(BaseModel):
    type: Literal["tile_placed"] = "tile_placed"
    x: int
    y: int
    player: str
    next_turn: str | None


class GameOverMsg(BaseModel):
    type: Literal["game_over"] = "game_over"
    winner: str | None
    reason: str  # "connect_n" | "draw"


class StateSyncMsg(BaseModel):
    type: Literal["state_sync"] = "state_sync"
    match_id: str
    width: int
    height: int
    n: int
    board: list[list[str | None]]
    whose_turn: str | None
    scores: dict[str, int]
    game_over: bool


class ErrorMsg(BaseModel):
    type: Literal["error"] = "error"
    message: str


def parse_move_request(data: dict) -> MoveRequest | None:
    """Parse a raw dict into a typed request, or None if invalid."""
    msg_type = data.get("type")
    mapping: dict[str, type[BaseModel]] = {
        "join": JoinRequest,
        "drop_tile": DropTileRequest,
        "state": StateRequest,
    }
    model = mapping.get(msg_type)  # type: ignore[arg-type]
    if model is None:
        return None
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError:
        return None
