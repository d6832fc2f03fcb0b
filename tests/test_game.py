"""
Tests for the move engine, spawning and the terminal check.
"""

import random

import pytest

from game import DIRECTIONS, DOWN, LEFT, RIGHT, UP, WIN_VALUE, GameManager, MoveResult
from grid import Grid


def top_row(row):
    return [list(row)] + [[0] * len(row) for _ in range(len(row) - 1)]


def board_sum(grid):
    return sum(tile.value for tile in grid.tiles())


def assert_coherent(grid):
    for x, y, tile in grid.each_cell():
        if tile is not None:
            assert tile.position == (x, y)


class TestSlidesAndMerges:

    def test_pair_merges_left(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 0, 0]))
        result = manager.move(grid, LEFT)
        assert result == MoveResult(moved=True, score=4, won=False)
        assert grid.to_values()[0] == [4, 0, 0, 0]

    def test_pair_merges_right(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 0, 0]))
        result = manager.move(grid, RIGHT)
        assert result.moved
        assert result.score == 4
        assert grid.to_values()[0] == [0, 0, 0, 4]

    def test_gap_then_pair(self, manager, make_grid):
        """The pair nearest the wall merges; the leftover slides next to it."""
        grid = make_grid(top_row([2, 0, 2, 2]))
        result = manager.move(grid, LEFT)
        assert grid.to_values()[0] == [4, 2, 0, 0]
        assert result.score == 4

    def test_triple_merges_once_left(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 2, 0]))
        result = manager.move(grid, LEFT)
        assert grid.to_values()[0] == [4, 2, 0, 0]
        assert result.score == 4

    def test_triple_merges_once_right(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 2, 0]))
        manager.move(grid, RIGHT)
        assert grid.to_values()[0] == [0, 0, 2, 4]

    def test_four_of_a_kind_makes_two_pairs(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 2, 2]))
        result = manager.move(grid, LEFT)
        assert grid.to_values()[0] == [4, 4, 0, 0]
        assert result.score == 8

    def test_merged_tile_does_not_merge_again(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 4, 0]))
        result = manager.move(grid, LEFT)
        assert grid.to_values()[0] == [4, 4, 0, 0]
        assert result.score == 4

    def test_no_merge_into_larger_tile(self, manager, make_grid):
        grid = make_grid(top_row([4, 2, 2, 0]))
        manager.move(grid, LEFT)
        assert grid.to_values()[0] == [4, 4, 0, 0]

    def test_vertical_moves(self, manager, make_grid):
        rows = [[0, 0, 0, 0],
                [2, 0, 0, 0],
                [0, 0, 0, 0],
                [2, 0, 0, 8]]
        grid = make_grid(rows)
        result = manager.move(grid, UP)
        assert result.score == 4
        assert grid.to_values() == [[4, 0, 0, 8],
                                    [0, 0, 0, 0],
                                    [0, 0, 0, 0],
                                    [0, 0, 0, 0]]

        manager.move(grid, DOWN)
        assert grid.to_values()[3] == [4, 0, 0, 8]

    def test_unknown_direction_raises(self, manager, make_grid):
        grid = make_grid(top_row([2, 0, 0, 0]))
        with pytest.raises(ValueError):
            manager.move(grid, 7)


class TestMoveOutcome:

    def test_no_op_move_leaves_grid_untouched(self, manager, make_grid):
        grid = make_grid(top_row([2, 4, 8, 16]))
        before = [(tile.id, tile.position, tile.value) for tile in grid.tiles()]

        result = manager.move(grid, LEFT)

        assert result == MoveResult(moved=False, score=0, won=False)
        assert [(tile.id, tile.position, tile.value) for tile in grid.tiles()] == before

    def test_slide_without_merge_counts_as_moved(self, manager, make_grid):
        grid = make_grid(top_row([0, 0, 0, 2]))
        result = manager.move(grid, LEFT)
        assert result.moved
        assert result.score == 0

    def test_win_on_2048(self, manager, make_grid):
        grid = make_grid(top_row([1024, 1024, 0, 0]))
        result = manager.move(grid, LEFT)
        assert result.won
        assert result.score == WIN_VALUE
        assert grid.max_value() == WIN_VALUE

    @pytest.mark.parametrize("value", [2, 64, 512, 2048])
    def test_other_merges_do_not_win(self, manager, make_grid, value):
        grid = make_grid(top_row([value, value, 0, 0]))
        result = manager.move(grid, LEFT)
        assert result.moved
        assert not result.won

    def test_custom_win_value(self):
        manager = GameManager(win_value=64, rng=random.Random(0))
        grid = Grid.from_values(top_row([32, 32, 0, 0]), manager.new_tile_id)
        assert manager.move(grid, LEFT).won

    def test_merges_conserve_board_sum(self):
        """A merge swaps two tiles for one of their total; the score counts the new tiles."""
        rng = random.Random(42)
        manager = GameManager(rng=random.Random(7))
        for _ in range(200):
            rows = [[rng.choice([0, 0, 2, 2, 4, 8, 16]) for _ in range(4)] for _ in range(4)]
            for direction in DIRECTIONS:
                grid = Grid.from_values(rows, manager.new_tile_id)
                before = board_sum(grid)
                result = manager.move(grid, direction)
                assert board_sum(grid) == before
                assert result.score >= 0
                merged_total = sum(tile.value for tile in grid.tiles() if tile.merged_from is not None)
                assert result.score == merged_total
                assert_coherent(grid)
                if not result.moved:
                    assert grid.to_values() == rows


class TestProvenance:

    def test_merged_tile_records_sources(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 0, 0]))
        left_tile = grid.cell_tile((0, 0))
        right_tile = grid.cell_tile((1, 0))

        manager.move(grid, LEFT)

        merged = grid.cell_tile((0, 0))
        assert merged is not left_tile
        assert set(merged.merged_from) == {left_tile, right_tile}
        assert merged.id not in (left_tile.id, right_tile.id)
        assert right_tile.previous_position == (1, 0)
        assert right_tile.position == (0, 0)

    def test_previous_position_and_provenance_reset_each_move(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 0, 0]))
        manager.move(grid, LEFT)
        merged = grid.cell_tile((0, 0))
        assert merged.merged_from is not None
        assert merged.previous_position is None

        manager.move(grid, RIGHT)
        assert merged.merged_from is None
        assert merged.previous_position == (0, 0)
        assert merged.position == (3, 0)

    def test_ids_stable_across_slides(self, manager, make_grid):
        grid = make_grid(top_row([0, 0, 0, 8]))
        tile = grid.cell_tile((3, 0))
        manager.move(grid, LEFT)
        assert grid.cell_tile((0, 0)) is tile
        assert tile.id == grid.cell_tile((0, 0)).id


class TestPeek:

    def test_peek_does_not_mutate(self, manager, make_grid):
        grid = make_grid(top_row([2, 2, 0, 0]))
        assert manager.peek_move(grid, LEFT)
        assert grid.to_values()[0] == [2, 2, 0, 0]
        assert all(tile.previous_position is None for tile in grid.tiles())

    def test_available_directions(self, manager, make_grid):
        grid = make_grid(top_row([2, 4, 8, 16]))
        assert manager.available_directions(grid) == [DOWN]


class TestMovesAvailable:

    BLOCKED = [[2, 4, 2, 4],
               [4, 2, 4, 2],
               [2, 4, 2, 4],
               [4, 2, 4, 2]]

    def test_full_board_without_pairs_is_terminal(self, manager, make_grid):
        grid = make_grid(self.BLOCKED)
        assert not manager.tile_matches_available(grid)
        assert not manager.moves_available(grid)
        assert manager.available_directions(grid) == []

    def test_one_empty_cell_unblocks(self, manager, make_grid):
        rows = [list(row) for row in self.BLOCKED]
        rows[2][1] = 0
        assert manager.moves_available(make_grid(rows))

    def test_horizontal_pair_unblocks(self, manager, make_grid):
        rows = [list(row) for row in self.BLOCKED]
        rows[0][0] = 4
        grid = make_grid(rows)
        assert manager.tile_matches_available(grid)
        assert manager.moves_available(grid)

    def test_vertical_pair_unblocks(self, manager, make_grid):
        rows = [list(row) for row in self.BLOCKED]
        rows[3][3] = 4
        assert manager.moves_available(make_grid(rows))


class TestSpawning:

    def test_setup_places_start_tiles(self, manager):
        grid = manager.setup()
        tiles = grid.tiles()
        assert grid.size == 4
        assert len(tiles) == 2
        assert all(tile.value in (2, 4) for tile in tiles)
        assert len({tile.id for tile in tiles}) == 2
        assert_coherent(grid)

    def test_spawn_on_full_grid_is_noop(self, manager, make_grid):
        grid = make_grid(TestMovesAvailable.BLOCKED)
        assert manager.add_random_tile(grid) is None
        assert grid.to_values() == TestMovesAvailable.BLOCKED

    def test_spawn_fills_the_only_empty_cell(self, manager, make_grid):
        rows = [list(row) for row in TestMovesAvailable.BLOCKED]
        rows[1][2] = 0
        grid = make_grid(rows)
        tile = manager.add_random_tile(grid)
        assert tile.position == (2, 1)
        assert grid.cell_tile((2, 1)) is tile
        assert not grid.has_empty_cell()

    def test_spawn_distribution(self):
        manager = GameManager(rng=random.Random(2048))
        trials = 10000
        fours = 0
        for _ in range(trials):
            tile = manager.add_random_tile(Grid(4))
            if tile.value == 4:
                fours += 1
            else:
                assert tile.value == 2
        assert abs(fours / trials - 0.1) < 0.015

    def test_spawn_cells_cover_the_board(self):
        manager = GameManager(rng=random.Random(3))
        seen = {manager.add_random_tile(Grid(4)).position for _ in range(2000)}
        assert len(seen) == 16

    def test_tile_ids_are_unique(self, manager):
        grid = manager.setup()
        ids = {tile.id for tile in grid.tiles()}
        for direction in [LEFT, UP, RIGHT, DOWN] * 10:
            if manager.move(grid, direction).moved:
                tile = manager.add_random_tile(grid)
                assert tile.id not in ids
                ids.add(tile.id)
        assert len({tile.id for tile in grid.tiles()}) == len(grid.tiles())

    def test_reserve_tile_id(self):
        manager = GameManager()
        manager.reserve_tile_id(41)
        assert manager.new_tile_id() == 42
        manager.reserve_tile_id(5)
        manager.reserve_tile_id("legacy")
        assert manager.new_tile_id() == 43
