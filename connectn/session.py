"""Match management: two players sharing one board behind a lock."""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field

from pydantic import BaseModel

from connectn.game import Board, create
from connectn.ids import IdSequence
from connectn.models import (
    DropTileRequest,
    ErrorMsg,
    GameOverMsg,
    JoinRequest,
    MatchStartedMsg,
    Player,
    PlayerJoinedMsg,
    StateSyncMsg,
    TilePlacedMsg,
    parse_move_request,
)

logger = logging.getLogger(__name__)


@dataclass
class Match:
    match_id: str
    board: Board
    players: list[Player] = field(default_factory=list)
    opener: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def started(self) -> bool:
        return len(self.players) == 2

    def get_player(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None

    def tile_counts(self) -> dict[str, int]:
        counts = {p.name: 0 for p in self.players}
        for x in range(self.board.width):
            for y in range(self.board.height):
                tile = self.board.get_board_at(x, y)
                if tile is not None and tile.name in counts:
                    counts[tile.name] += 1
        return counts

    def expected_turn(self) -> str | None:
        """Name of the player to move next, or None before the opening tile.

        Whoever has fewer tiles moves; on equal counts the opener does.
        """
        if self.opener is None or not self.started:
            return None
        (first, first_count), (second, second_count) = self.tile_counts().items()
        if first_count == second_count:
            return self.opener
        return first if first_count < second_count else second

    def join(self, player: Player) -> list[BaseModel]:
        with self._lock:
            if self.get_player(player.name) is not None:
                return [ErrorMsg(message="Name already taken")]
            if len(self.players) >= 2:
                return [ErrorMsg(message="Match is full")]

            self.players.append(player)
            events: list[BaseModel] = [PlayerJoinedMsg(player=player.name)]
            if self.started:
                logger.info("Match %s started: %s", self.match_id, [p.name for p in self.players])
                events.append(MatchStartedMsg(players=[p.name for p in self.players]))
            return events

    def drop(self, name: str, column: int) -> list[BaseModel]:
        with self._lock:
            if not self.started:
                return [ErrorMsg(message="Match not started yet")]
            player = self.get_player(name)
            if player is None:
                return [ErrorMsg(message="Not in this match")]

            error = self.board.validate_move(player, column, check_turn=False)
            if error is None and self.expected_turn() not in (None, name):
                error = "Not your turn"
            if error:
                return [ErrorMsg(message=error)]

            row = self.board.landing_row(column)
            self.board.place_in_column(player, column, check_turn=False)
            if self.opener is None:
                self.opener = name

            if not self.board.game_ended():
                return [TilePlacedMsg(x=column, y=row, player=name, next_turn=self.expected_turn())]

            events: list[BaseModel] = [TilePlacedMsg(x=column, y=row, player=name, next_turn=None)]
            winner = self.board.award_win()
            if winner:
                events.append(GameOverMsg(winner=winner.name, reason="connect_n"))
            else:
                logger.info("Match %s ended in a draw", self.match_id)
                events.append(GameOverMsg(winner=None, reason="draw"))
            return events

    def state(self) -> StateSyncMsg:
        with self._lock:
            snapshot = self.board.get_board()
            ended = self.board.game_ended()
            return StateSyncMsg(
                match_id=self.match_id,
                width=self.board.width,
                height=self.board.height,
                n=self.board.n,
                board=snapshot.names() if snapshot else [],
                whose_turn=None if ended else self.expected_turn(),
                scores={p.name: p.score for p in self.players},
                game_over=ended,
            )


class MatchManager:
    def __init__(self, ids: IdSequence | None = None):
        self.matches: dict[str, Match] = {}
        self._ids = ids

    def _generate_match_id(self) -> str:
        while True:
            match_id = secrets.token_hex(3)  # 6-char hex
            if match_id not in self.matches:
                return match_id

    def create_match(self, width: int, height: int, n: int) -> Match | None:
        board = create(width, height, n, ids=self._ids)
        if board is None:
            return None
        match = Match(match_id=self._generate_match_id(), board=board)
        self.matches[match.match_id] = match
        logger.info("Match %s created on board %d", match.match_id, board.id)
        return match

    def get(self, match_id: str) -> Match | None:
        return self.matches.get(match_id)

    def remove(self, match_id: str) -> None:
        self.matches.pop(match_id, None)

    def handle(self, match_id: str, data: dict) -> list[BaseModel]:
        match = self.get(match_id)
        if match is None:
            return [ErrorMsg(message="Match not found")]
        msg = parse_move_request(data)
        if msg is None:
            return [ErrorMsg(message="Unknown or invalid message")]

        if isinstance(msg, JoinRequest):
            return match.join(Player(name=msg.player))
        if isinstance(msg, DropTileRequest):
            return match.drop(msg.player, msg.column)
        return [match.state()]


match_manager = MatchManager()
