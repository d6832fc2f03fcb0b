import logging
import random
from typing import NamedTuple

from grid import Grid, Tile

logger = logging.getLogger(__name__)

GRID_SIZE = 4
START_TILES = 2
WIN_VALUE = 2048
FOUR_PROBABILITY = 0.1

# Direction numbering shared with the front end and the gym action space.
UP, DOWN, LEFT, RIGHT = 0, 1, 2, 3
DIRECTIONS = (UP, DOWN, LEFT, RIGHT)
DIRECTION_NAMES = {UP: "up", DOWN: "down", LEFT: "left", RIGHT: "right"}

# (dx, dy) with y growing downward.
VECTORS = {
    UP: (0, -1),
    DOWN: (0, 1),
    LEFT: (-1, 0),
    RIGHT: (1, 0),
}


class MoveResult(NamedTuple):
    moved: bool
    score: int
    won: bool


def format_board(grid):
    return "\n".join("\t".join(map(str, row)) for row in grid.to_values())


class GameManager:
    """
    Rules for one game: starting tiles, moves, merges, spawns and the
    terminal check. The grid passed to move() is mutated in place; clone it
    first if the pre-move state is still needed.
    """

    def __init__(self, size=GRID_SIZE, start_tiles=START_TILES, win_value=WIN_VALUE, rng=None):
        self.size = size
        self.start_tiles = start_tiles
        self.win_value = win_value
        self.rng = rng if rng is not None else random.Random()
        self._next_id = 1

    # --- tile ids ---

    def new_tile_id(self):
        tile_id = self._next_id
        self._next_id += 1
        return tile_id

    def reserve_tile_id(self, tile_id):
        """Makes sure new_tile_id() never hands out tile_id again."""
        if isinstance(tile_id, int) and not isinstance(tile_id, bool) and tile_id >= self._next_id:
            self._next_id = tile_id + 1

    # --- setup and spawning ---

    def setup(self):
        grid = Grid(self.size)
        for _ in range(self.start_tiles):
            self.add_random_tile(grid)
        return grid

    def add_random_tile(self, grid):
        """Adds a 2 (90%) or a 4 (10%) to a random empty cell. No-op on a full grid."""
        cell = grid.random_empty_cell(self.rng)
        if cell is None:
            return None
        value = 2 if self.rng.random() >= FOUR_PROBABILITY else 4
        tile = Tile(cell, value, self.new_tile_id())
        grid.place_tile(tile)
        return tile

    # --- moving ---

    def prepare_tiles(self, grid):
        for tile in grid.tiles():
            tile.merged_from = None
            tile.save_position()

    def build_traversals(self, grid, vector):
        """Column and row orders; an axis runs backwards when the vector points along it."""
        xs = list(range(grid.size))
        ys = list(range(grid.size))
        if vector[0] == 1:
            xs.reverse()
        if vector[1] == 1:
            ys.reverse()
        return xs, ys

    def find_farthest_position(self, grid, cell, vector):
        """
        Steps from cell along vector while the next cell is empty.
        Returns (farthest empty cell, first blocking cell); the blocking cell
        may be out of bounds.
        """
        dx, dy = vector
        previous = cell
        nxt = (cell[0] + dx, cell[1] + dy)
        while grid.in_bounds(nxt) and grid.cell_tile(nxt) is None:
            previous = nxt
            nxt = (nxt[0] + dx, nxt[1] + dy)
        return previous, nxt

    def move(self, grid, direction: int) -> MoveResult:
        if direction not in VECTORS:
            raise ValueError(f"Unknown direction: {direction!r}")
        vector = VECTORS[direction]
        xs, ys = self.build_traversals(grid, vector)
        moved = False
        score = 0
        won = False

        self.prepare_tiles(grid)

        for x in xs:
            for y in ys:
                tile = grid.cell_tile((x, y))
                if tile is None:
                    continue

                farthest, nxt = self.find_farthest_position(grid, (x, y), vector)
                blocker = grid.cell_tile(nxt)

                # A tile produced by a merge this move cannot merge again.
                if blocker is not None and blocker.value == tile.value and blocker.merged_from is None:
                    merged = Tile(nxt, tile.value * 2, self.new_tile_id())
                    merged.merged_from = (tile, blocker)
                    grid.place_tile(merged)
                    grid.remove_tile(tile)
                    # The source tile is gone; its position only records where it went.
                    tile.update_position(nxt)

                    score += merged.value
                    if merged.value == self.win_value:
                        won = True
                else:
                    grid.move_tile(tile, farthest)

                if tile.position != (x, y):
                    moved = True

        logger.debug("move %s: moved=%s score=%d won=%s",
                     DIRECTION_NAMES[direction], moved, score, won)
        return MoveResult(moved, score, won)

    def peek_move(self, grid, direction: int):
        """Whether the move would change the grid. The grid itself is not touched."""
        return self.move(grid.clone(), direction).moved

    def available_directions(self, grid):
        return [direction for direction in DIRECTIONS if self.peek_move(grid, direction)]

    # --- terminal check ---

    def tile_matches_available(self, grid):
        for x, y, tile in grid.each_cell():
            if tile is None:
                continue
            for dx, dy in VECTORS.values():
                other = grid.cell_tile((x + dx, y + dy))
                if other is not None and other.value == tile.value:
                    return True
        return False

    def moves_available(self, grid):
        return grid.has_empty_cell() or self.tile_matches_available(grid)
