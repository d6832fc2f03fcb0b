import copy


def is_tile_value(value):
    return isinstance(value, int) and not isinstance(value, bool) and value >= 2 and value & (value - 1) == 0


class Tile:
    """A single numbered piece on the board.

    Position is (x, y) = (column, row). ``previous_position`` and
    ``merged_from`` only describe the last move and are reset by the engine
    at the start of every move.
    """

    def __init__(self, position, value=2, tile_id=None):
        if not is_tile_value(value):
            raise ValueError(f"Tile value must be a power of two >= 2, got {value!r}")
        self.x, self.y = position
        self.value = value
        self.id = tile_id
        self.previous_position = None
        self.merged_from = None

    @property
    def position(self):
        return (self.x, self.y)

    def save_position(self):
        self.previous_position = (self.x, self.y)

    def update_position(self, position):
        self.x, self.y = position

    def __repr__(self):
        return f"Tile(id={self.id!r}, value={self.value}, position={self.position})"


class Grid:
    def __init__(self, size=4):
        if size < 1:
            raise ValueError(f"Grid size must be positive, got {size}")
        self.size = size
        # cells[x][y]
        self.cells = [[None] * size for _ in range(size)]

    @classmethod
    def from_values(cls, values, id_source=None):
        """
        Builds a grid from a row-major matrix of values (0 = empty).
        id_source is a callable returning a fresh tile id for each tile.
        """
        size = len(values)
        if any(len(row) != size for row in values):
            raise ValueError("Board must be square")
        grid = cls(size)
        for y, row in enumerate(values):
            for x, value in enumerate(row):
                if value:
                    tile_id = id_source() if id_source else None
                    grid.place_tile(Tile((x, y), int(value), tile_id))
        return grid

    def each_cell(self):
        """Yields (x, y, tile_or_None) in row-major order."""
        for y in range(self.size):
            for x in range(self.size):
                yield x, y, self.cells[x][y]

    def empty_cells(self):
        return [(x, y) for x, y, tile in self.each_cell() if tile is None]

    def random_empty_cell(self, rng):
        cells = self.empty_cells()
        if not cells:
            return None
        return rng.choice(cells)

    def has_empty_cell(self):
        return bool(self.empty_cells())

    def in_bounds(self, position):
        x, y = position
        return 0 <= x < self.size and 0 <= y < self.size

    def cell_tile(self, position):
        if self.in_bounds(position):
            x, y = position
            return self.cells[x][y]
        return None

    def place_tile(self, tile):
        self.cells[tile.x][tile.y] = tile

    def remove_tile(self, tile):
        self.cells[tile.x][tile.y] = None

    def move_tile(self, tile, position):
        self.cells[tile.x][tile.y] = None
        tile.update_position(position)
        self.cells[tile.x][tile.y] = tile

    def tiles(self):
        return [tile for _, _, tile in self.each_cell() if tile is not None]

    def max_value(self):
        return max((tile.value for tile in self.tiles()), default=0)

    def to_values(self):
        """Row-major list of lists of tile values, 0 for an empty cell."""
        return [
            [self.cells[x][y].value if self.cells[x][y] else 0 for x in range(self.size)]
            for y in range(self.size)
        ]

    def clone(self):
        # Deep copy: the clone shares no Tile objects with this grid.
        return copy.deepcopy(self)

    def __repr__(self):
        return f"Grid(size={self.size}, values={self.to_values()})"
