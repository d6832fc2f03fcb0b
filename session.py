import logging

from game import VECTORS, GameManager
from grid import Grid, Tile

logger = logging.getLogger(__name__)


def normalize_tile_id(tile_id):
    """JSON may hand back integral ids as floats (1.0); those must compare as ints."""
    if isinstance(tile_id, bool):
        raise ValueError(f"Invalid tile id: {tile_id!r}")
    if isinstance(tile_id, float) and tile_id.is_integer():
        return int(tile_id)
    return tile_id


class GameSession:
    """
    One player's game: current grid, score, best score and the won / over /
    keep-playing flags, saved through an optional StorageManager after every
    move that changed the board.
    """

    def __init__(self, manager=None, storage=None):
        self.manager = manager if manager is not None else GameManager()
        self.storage = storage
        self.grid = None
        self.score = 0
        self.best_score = 0
        self.won = False
        self.over = False
        self.keep_playing = False

    @property
    def is_terminated(self):
        return self.over or (self.won and not self.keep_playing)

    def tiles(self):
        return self.grid.tiles() if self.grid is not None else []

    # --- lifecycle ---

    def load(self):
        """Restores the saved game, or starts a new one when nothing usable was saved."""
        if self.storage is not None:
            self.best_score = self.storage.get_best_score()
            state = self.storage.get_game_state()
        else:
            state = None

        if state is None:
            self.new_game()
            return

        try:
            self.restore(state)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Saved game could not be restored (%s); starting a new game", e)
            self.new_game()

    def new_game(self):
        self.grid = self.manager.setup()
        self.score = 0
        self.won = False
        self.over = False
        self.keep_playing = False
        logger.info("New game started")

    def restart(self):
        if self.storage is not None:
            self.storage.clear_game_state()
        self.new_game()

    def continue_game(self):
        """Keeps playing after a win. Does nothing before the game is won."""
        if not self.won:
            return False
        self.keep_playing = True
        self.over = False
        self.save()
        return True

    # --- play ---

    def move(self, direction):
        """Applies one move. Returns True when the board changed."""
        if direction not in VECTORS:
            logger.debug("Ignoring unknown direction %r", direction)
            return False
        if self.grid is None or self.is_terminated:
            return False

        result = self.manager.move(self.grid, direction)
        if not result.moved:
            return False

        self.manager.add_random_tile(self.grid)
        self.score += result.score
        self.won = self.won or result.won
        self.over = not self.manager.moves_available(self.grid)
        if self.over:
            logger.info("Game over with score %d", self.score)
        self.save()
        return True

    # --- persistence ---

    def save(self):
        if self.score > self.best_score:
            self.best_score = self.score
            best_improved = True
        else:
            best_improved = False

        if self.storage is None or self.grid is None:
            return
        self.storage.set_game_state(self.to_state())
        if best_improved:
            self.storage.set_best_score(self.best_score)

    def to_state(self):
        return {
            "size": self.grid.size,
            "grid": [
                [
                    {"value": tile.value, "id": tile.id} if tile is not None else None
                    for tile in column
                ]
                for column in self.grid.cells
            ],
            "score": self.score,
            "won": self.won,
            "over": self.over,
            "keepPlaying": self.keep_playing,
        }

    def restore(self, state):
        if not isinstance(state, dict):
            raise ValueError("Saved game is not an object")
        grid = self.restore_grid(state)
        score = state.get("score", 0)
        if not isinstance(score, int) or isinstance(score, bool) or score < 0:
            raise ValueError(f"Invalid score: {score!r}")

        flags = {}
        for key in ("won", "over", "keepPlaying"):
            flags[key] = state.get(key, False)
            if not isinstance(flags[key], bool):
                raise ValueError(f"Invalid {key} flag: {flags[key]!r}")

        self.grid = grid
        self.score = score
        self.won = flags["won"]
        self.over = flags["over"]
        self.keep_playing = flags["keepPlaying"]
        self.best_score = max(self.best_score, score)

    def restore_grid(self, state):
        """Rebuilds a Grid from a saved state document. Raises ValueError on bad data."""
        size = self.manager.size
        if state.get("size", size) != size:
            raise ValueError(f"Saved grid size {state.get('size')} does not match {size}")

        columns = state["grid"]
        if not isinstance(columns, list) or len(columns) != size:
            raise ValueError("Saved grid has the wrong number of columns")

        cells = []
        for x, column in enumerate(columns):
            if not isinstance(column, list) or len(column) != size:
                raise ValueError(f"Saved grid column {x} has the wrong length")
            for y, cell in enumerate(column):
                if cell is None:
                    continue
                if not isinstance(cell, dict):
                    raise ValueError(f"Saved cell ({x}, {y}) is not an object")
                cells.append(((x, y), cell["value"], normalize_tile_id(cell.get("id"))))

        seen_ids = set()
        for _, _, tile_id in cells:
            if tile_id is None:
                continue
            if tile_id in seen_ids:
                raise ValueError(f"Duplicate tile id {tile_id!r}")
            seen_ids.add(tile_id)
            self.manager.reserve_tile_id(tile_id)

        grid = Grid(size)
        for position, value, tile_id in cells:
            if tile_id is None:
                tile_id = self.manager.new_tile_id()
            grid.place_tile(Tile(position, value, tile_id))
        return grid
