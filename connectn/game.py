"""Game logic: board state, gravity moves, turn inference, and win detection."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from connectn import config
from connectn.ids import IdSequence, default_sequence
from connectn.models import BoardSnapshot, Player

logger = logging.getLogger(__name__)

MIN_WIDTH = config.MIN_SIDE
MAX_WIDTH = config.MAX_WIDTH
MIN_HEIGHT = config.MIN_SIDE
MAX_HEIGHT = config.MAX_HEIGHT
MIN_N = 4

EMPTY = "."


def _width_ok(width: int) -> bool:
    return MIN_WIDTH <= width <= MAX_WIDTH


def _height_ok(height: int) -> bool:
    return MIN_HEIGHT <= height <= MAX_HEIGHT


def _n_ok(n: int, width: int, height: int) -> bool:
    return width != 0 and height != 0 and MIN_N <= n < max(width, height)


class Board:
    """A ConnectN grid.

    Cells are addressed ``(x, y)`` with ``x`` the column and ``y = 0`` the
    bottom row; tiles fall to the lowest empty row of their column. There is
    no turn field: whose turn it is gets re-derived from the cells on every
    call, so a board is fully described by its dimensions, N, and contents.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        n: int = 0,
        *,
        ids: IdSequence | None = None,
        title: str | None = None,
    ):
        self._width = width if _width_ok(width) else 0
        self._height = height if _height_ok(height) else 0
        self._n = n if _n_ok(n, self._width, self._height) else 0
        self._id = (ids or default_sequence).next_id()
        self._cells: list[list[Player | None]] = []
        self._awarded: Player | None = None
        self.title = title
        self._reset_grid()

    @classmethod
    def copy_dimensions(cls, other: Board, ids: IdSequence | None = None) -> Board:
        """Return a new, empty board with the same width, height, and N as ``other``."""
        return cls(other.width, other.height, other.n, ids=ids)

    @classmethod
    def from_layout(
        cls,
        rows: list[str],
        players: dict[str, Player],
        n: int,
        ids: IdSequence | None = None,
    ) -> Board | None:
        """Build a board from text rows, top row first.

        Each character is a key of ``players`` or ``"."`` for an empty cell.
        Gravity and turn order are not checked. Returns None when the
        dimensions or N are out of range.
        """
        if not rows or any(len(row) != len(rows[0]) for row in rows):
            raise ValueError("Layout rows must be non-empty and of equal length")
        board = create(len(rows[0]), len(rows), n, ids=ids)
        if board is None:
            return None
        for y, row in enumerate(reversed(rows)):
            for x, char in enumerate(row):
                if char == EMPTY:
                    continue
                if char not in players:
                    raise ValueError(f"Unknown layout symbol: {char!r}")
                board._cells[x][y] = players[char]
        return board

    # -- dimensions ---------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def n(self) -> int:
        return self._n

    @property
    def id(self) -> int:
        return self._id

    def set_width(self, width: int) -> bool:
        if not _width_ok(width) or self.game_started():
            logger.debug("Board %d: width %d rejected", self._id, width)
            return False
        self._width = width
        self._reset_grid()
        self._drop_unreachable_n()
        return True

    def set_height(self, height: int) -> bool:
        if not _height_ok(height) or self.game_started():
            logger.debug("Board %d: height %d rejected", self._id, height)
            return False
        self._height = height
        self._reset_grid()
        self._drop_unreachable_n()
        return True

    def set_n(self, n: int) -> bool:
        if self.game_started() or not _n_ok(n, self._width, self._height):
            logger.debug("Board %d: N=%d rejected", self._id, n)
            return False
        self._n = n
        return True

    def _reset_grid(self) -> None:
        self._cells = [[None] * self._height for _ in range(self._width)]

    def _drop_unreachable_n(self) -> None:
        if max(self._width, self._height) <= self._n:
            logger.debug("Board %d: N=%d no longer fits, unset", self._id, self._n)
            self._n = 0

    # -- moves --------------------------------------------------------------

    def landing_row(self, x: int) -> int | None:
        """Lowest empty row of column ``x``, or None if the column is full or out of bounds."""
        if not 0 <= x < self._width:
            return None
        for y, tile in enumerate(self._cells[x]):
            if tile is None:
                return y
        return None

    def validate_move(
        self, player: Player, x: int, y: int | None = None, *, check_turn: bool = True
    ) -> str | None:
        """Return an error message if the move is invalid, or None if valid.

        Without ``y`` the move is a column drop; with it, ``(x, y)`` must be
        exactly where a dropped tile would land. Callers that order turns
        themselves pass ``check_turn=False`` to skip ``whose_turn``.
        """
        if self.game_ended():
            return "Game is already over"
        turn = self.whose_turn() if check_turn else None
        if turn is not None and player.name != turn:
            return "Not your turn"
        if not 0 <= x < self._width:
            return "Column out of bounds"
        landing = self.landing_row(x)
        if y is None:
            if landing is None:
                return "Column is full"
            return None
        if not 0 <= y < self._height:
            return "Coordinates out of bounds"
        if self._cells[x][y] is not None:
            return "Cell is already occupied"
        if y != landing:
            return "Tile must rest on top of its column"
        return None

    def place_at(self, player: Player, x: int, y: int, *, check_turn: bool = True) -> bool:
        error = self.validate_move(player, x, y, check_turn=check_turn)
        if error:
            logger.debug("Board %d: rejected %s at (%d, %d): %s", self._id, player.name, x, y, error)
            return False
        self._cells[x][y] = player
        return True

    def place_in_column(self, player: Player, x: int, *, check_turn: bool = True) -> bool:
        error = self.validate_move(player, x, check_turn=check_turn)
        if error:
            logger.debug("Board %d: rejected %s in column %d: %s", self._id, player.name, x, error)
            return False
        self._cells[x][self.landing_row(x)] = player  # type: ignore[index]
        return True

    # -- inspection ---------------------------------------------------------

    def get_board_at(self, x: int, y: int) -> Player | None:
        if 0 <= x < self._width and 0 <= y < self._height:
            return self._cells[x][y]
        return None

    def get_board(self) -> BoardSnapshot | None:
        """Snapshot of the grid with copied players, or None until width and height are set."""
        if self._width == 0 or self._height == 0:
            return None
        cells = tuple(
            tuple(tile.model_copy() if tile else None for tile in column)
            for column in self._cells
        )
        return BoardSnapshot(width=self._width, height=self._height, n=self._n, cells=cells)

    def whose_turn(self) -> str | None:
        """Name of the player to move next, or None if anyone may move.

        Occupied cells are read bottom row first, left to right. The first two
        names encountered are counted (any others are ignored) and whoever has
        fewer tiles is next; on a tie the name encountered first wins. Until two
        different names are on the board, anyone may move.
        """
        counts: dict[str, int] = {}
        for y in range(self._height):
            for x in range(self._width):
                tile = self._cells[x][y]
                if tile is None:
                    continue
                if tile.name in counts:
                    counts[tile.name] += 1
                elif len(counts) < 2:
                    counts[tile.name] = 1
        if len(counts) < 2:
            return None
        (first, first_count), (second, second_count) = counts.items()
        return second if first_count > second_count else first

    # -- game state ---------------------------------------------------------

    def game_started(self) -> bool:
        return any(tile is not None for column in self._cells for tile in column)

    def is_full(self) -> bool:
        if self._width == 0 or self._height == 0:
            return False
        return all(tile is not None for column in self._cells for tile in column)

    def game_ended(self) -> bool:
        return self.has_winner() or self.is_full()

    def has_winner(self) -> bool:
        return self.find_winner() is not None

    def find_winner(self) -> Player | None:
        """Owner of the first run of N found, without touching any score."""
        if not self.game_started() or self._n == 0:
            return None
        return (
            self._diagonal_winner(1)
            or self._diagonal_winner(-1)
            or self._run_winner(self._cells)
            or self._run_winner(self._rows())
        )

    def award_win(self) -> Player | None:
        """Return the winner, crediting them one point the first time only."""
        winner = self.find_winner()
        if winner is None:
            return None
        if self._awarded is None:
            winner.add_score()
            self._awarded = winner
            logger.info("Board %d won by %s", self._id, winner.name)
        return self._awarded

    def get_winner(self) -> Player | None:
        return self.award_win()

    def _rows(self) -> Iterator[list[Player | None]]:
        for y in range(self._height):
            yield [self._cells[x][y] for x in range(self._width)]

    def _run_winner(self, lines: Iterable[Iterable[Player | None]]) -> Player | None:
        for line in lines:
            streak = 0
            last: Player | None = None
            for tile in line:
                if tile is None:
                    streak = 0
                    last = None
                    continue
                if tile == last:
                    streak += 1
                else:
                    streak = 1
                    last = tile
                if streak == self._n:
                    return tile
        return None

    def _diagonal_winner(self, dy: int) -> Player | None:
        # dy=1 scans ascending (↗) diagonals, dy=-1 descending (↘) ones
        n = self._n
        if dy > 0:
            anchor_rows = range(self._height - n + 1)
        else:
            anchor_rows = range(n - 1, self._height)
        for row in anchor_rows:
            for column in range(self._width - n + 1):
                anchor = self._cells[column][row]
                if anchor is None:
                    continue
                if all(self._cells[column + k][row + dy * k] == anchor for k in range(1, n)):
                    return anchor
        return None

    # -- identity -----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Board):
            return self._id == other._id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Board(id={self._id}, width={self._width}, height={self._height}, n={self._n})"


def create(width: int, height: int, n: int, ids: IdSequence | None = None) -> Board | None:
    """Return a new empty board, or None if the dimensions or N are out of range."""
    if not _width_ok(width) or not _height_ok(height) or not _n_ok(n, width, height):
        logger.debug("Cannot create %dx%d board with N=%d", width, height, n)
        return None
    return Board(width, height, n, ids=ids)


def create_many(
    count: int, width: int, height: int, n: int, ids: IdSequence | None = None
) -> list[Board] | None:
    if count <= 0:
        return None
    return [Board(width, height, n, ids=ids) for _ in range(count)]


def compare_boards(*boards: Board | None) -> bool:
    """True when every board has the same width, height, N, and cell owners."""
    if any(board is None for board in boards):
        return False
    for first, second in zip(boards, boards[1:]):
        if (first.width, first.height, first.n) != (second.width, second.height, second.n):
            return False
        for first_column, second_column in zip(first._cells, second._cells):
            if first_column != second_column:
                return False
    return True
