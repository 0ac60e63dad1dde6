"""Tests for match lifecycle: creation, joining, turns, and game over."""

import logging

from connectn.config import configure_logging
from connectn.ids import IdSequence
from connectn.models import Player
from connectn.session import MatchManager


def make_match(width=6, height=6, n=4):
    manager = MatchManager(ids=IdSequence())
    match = manager.create_match(width, height, n)
    return manager, match


def started_match():
    manager, match = make_match()
    match.join(Player(name="alice"))
    match.join(Player(name="bob"))
    return manager, match


class TestMatchCreation:
    def test_create_match(self):
        manager, match = make_match()
        assert match is not None
        assert len(match.match_id) == 6
        assert match.match_id in manager.matches
        assert manager.get(match.match_id) is match
        assert (match.board.width, match.board.height, match.board.n) == (6, 6, 4)

    def test_invalid_board(self):
        manager = MatchManager(ids=IdSequence())
        assert manager.create_match(4, 6, 4) is None
        assert manager.matches == {}

    def test_create_multiple_matches(self):
        manager = MatchManager(ids=IdSequence())
        first = manager.create_match(6, 6, 4)
        second = manager.create_match(6, 6, 4)
        assert first.match_id != second.match_id
        assert first.board != second.board
        assert len(manager.matches) == 2

    def test_manager_leaves_logging_alone(self):
        logger = logging.getLogger("connectn")
        configure_logging("debug")
        handlers = list(logger.handlers)
        MatchManager(ids=IdSequence())
        assert logger.level == logging.DEBUG
        assert logger.handlers == handlers
        configure_logging("warning")

    def test_remove(self):
        manager, match = make_match()
        manager.remove(match.match_id)
        assert manager.get(match.match_id) is None


class TestJoining:
    def test_join(self):
        _, match = make_match()
        events = match.join(Player(name="alice"))
        assert [e.type for e in events] == ["player_joined"]
        assert match.started is False

        events = match.join(Player(name="bob"))
        assert [e.type for e in events] == ["player_joined", "match_started"]
        assert events[1].players == ["alice", "bob"]
        assert match.started is True

    def test_match_full(self):
        _, match = started_match()
        events = match.join(Player(name="carol"))
        assert events[0].type == "error"
        assert events[0].message == "Match is full"
        assert len(match.players) == 2

    def test_duplicate_name(self):
        _, match = make_match()
        match.join(Player(name="alice"))
        events = match.join(Player(name="alice"))
        assert events[0].message == "Name already taken"


class TestDropping:
    def test_drop_before_start(self):
        _, match = make_match()
        match.join(Player(name="alice"))
        events = match.drop("alice", 0)
        assert events[0].message == "Match not started yet"

    def test_stranger(self):
        _, match = started_match()
        events = match.drop("carol", 0)
        assert events[0].message == "Not in this match"

    def test_drop_reports_landing_cell(self):
        _, match = started_match()
        events = match.drop("alice", 3)
        assert events[0].model_dump() == {
            "type": "tile_placed",
            "x": 3,
            "y": 0,
            "player": "alice",
            "next_turn": "bob",
        }
        events = match.drop("bob", 3)
        assert (events[0].y, events[0].next_turn) == (1, "alice")

    def test_first_mover_waits_for_opponent(self):
        _, match = started_match()
        match.drop("alice", 0)
        events = match.drop("alice", 1)
        assert events[0].message == "Not your turn"
        assert match.board.get_board_at(1, 0) is None

    def test_wrong_turn(self):
        _, match = started_match()
        match.drop("alice", 0)
        match.drop("bob", 1)
        events = match.drop("bob", 1)
        assert events[0].message == "Not your turn"

    def test_either_player_may_open(self):
        _, match = started_match()
        events = match.drop("bob", 0)
        assert events[0].type == "tile_placed"
        assert events[0].next_turn == "alice"

    def test_opener_moves_on_equal_counts(self):
        _, match = started_match()
        match.drop("alice", 3)
        events = match.drop("bob", 0)
        # bob's tile at (0, 0) is read first, but alice opened the match
        assert events[0].next_turn == "alice"
        assert match.expected_turn() == "alice"

        events = match.drop("bob", 1)
        assert events[0].message == "Not your turn"
        assert match.board.get_board_at(1, 0) is None

        events = match.drop("alice", 2)
        assert events[0].type == "tile_placed"
        assert events[0].next_turn == "bob"

    def test_strict_alternation(self):
        _, match = started_match()
        order = ["bob", "alice"] * 3
        for i, name in enumerate(order):
            events = match.drop(name, 5 - i)
            assert events[0].type == "tile_placed"
            assert events[0].next_turn == order[(i + 1) % 2]
            assert match.drop(name, 0)[0].message == "Not your turn"
        assert match.opener == "bob"

    def test_invalid_column(self):
        _, match = started_match()
        events = match.drop("alice", 9)
        assert events[0].message == "Column out of bounds"

    def test_full_game(self):
        _, match = started_match()
        for _ in range(3):
            assert match.drop("alice", 0)[0].type == "tile_placed"
            assert match.drop("bob", 1)[0].type == "tile_placed"
        events = match.drop("alice", 0)
        assert [e.type for e in events] == ["tile_placed", "game_over"]
        assert events[0].next_turn is None
        assert events[1].winner == "alice"
        assert events[1].reason == "connect_n"

        alice, bob = match.players
        assert alice.score == 1
        assert bob.score == 0

        events = match.drop("bob", 1)
        assert events[0].message == "Game is already over"
        assert alice.score == 1


class TestState:
    def test_state_sync(self):
        _, match = started_match()
        match.drop("alice", 2)
        state = match.state()
        assert state.type == "state_sync"
        assert state.board[2][0] == "alice"
        assert state.board[0][0] is None
        assert state.whose_turn == "bob"
        assert state.scores == {"alice": 0, "bob": 0}
        assert state.game_over is False

    def test_state_after_win(self):
        _, match = started_match()
        for _ in range(3):
            match.drop("alice", 0)
            match.drop("bob", 1)
        match.drop("alice", 0)
        state = match.state()
        assert state.game_over is True
        assert state.whose_turn is None
        assert state.scores["alice"] == 1


class TestHandle:
    def test_unknown_match(self):
        manager = MatchManager(ids=IdSequence())
        events = manager.handle("nope", {"type": "state"})
        assert events[0].message == "Match not found"

    def test_invalid_message(self):
        manager, match = make_match()
        events = manager.handle(match.match_id, {"type": "unknown_type"})
        assert events[0].type == "error"
        events = manager.handle(match.match_id, {"type": "drop_tile", "player": "alice"})
        assert events[0].type == "error"

    def test_dispatch(self):
        manager, match = make_match()
        manager.handle(match.match_id, {"type": "join", "player": "alice"})
        events = manager.handle(match.match_id, {"type": "join", "player": "bob"})
        assert events[-1].type == "match_started"

        events = manager.handle(match.match_id, {"type": "drop_tile", "player": "alice", "column": 4})
        assert events[0].type == "tile_placed"

        events = manager.handle(match.match_id, {"type": "state"})
        assert events[0].board[4][0] == "alice"
