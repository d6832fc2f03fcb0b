# file: game_env.py

import random

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from game import DIRECTIONS, GRID_SIZE, WIN_VALUE, GameManager, format_board
from grid import Grid


class Game2048Env(gym.Env):
    """
    Gymnasium environment over the 2048 rules engine.

    Args:
        state_mode (str): 'flat' for a (N*N,) vector or '2d' for a (1, N, N) tensor.
        reward_mode (str): 'simple' (score gained) or 'log_score' (log2 of the score gained).
    """
    metadata = {'render_modes': ['human', 'ansi'], 'render_fps': 4}

    def __init__(self, state_mode='flat', reward_mode='simple', size=GRID_SIZE, render_mode=None):
        super().__init__()

        assert state_mode in ['flat', '2d'], "state_mode must be 'flat' or '2d'"
        assert reward_mode in ['simple', 'log_score'], "reward_mode must be 'simple' or 'log_score'"
        assert render_mode is None or render_mode in self.metadata['render_modes']
        self.state_mode = state_mode
        self.reward_mode = reward_mode
        self.render_mode = render_mode
        self.size = size

        self.manager = GameManager(size=size, rng=random.Random())
        self.grid = self.manager.setup()
        self.score = 0
        self.won = False

        # 0:Up, 1:Down, 2:Left, 3:Right
        self.action_space = spaces.Discrete(len(DIRECTIONS))

        if self.state_mode == 'flat':
            self.observation_space = spaces.Box(low=0.0, high=1.0,
                                                shape=(self.size * self.size,),
                                                dtype=np.float32)
        else:  # '2d' (channels, height, width) for CNNs
            self.observation_space = spaces.Box(low=0.0, high=1.0,
                                                shape=(1, self.size, self.size),
                                                dtype=np.float32)

    def _get_obs(self):
        """Board values scaled by log2, 2048 -> 1.0."""
        board = np.array(self.grid.to_values(), dtype=np.float32)
        processed_board = np.zeros_like(board)
        occupied = board > 0
        processed_board[occupied] = np.log2(board[occupied]) / np.log2(WIN_VALUE)
        processed_board = np.clip(processed_board, 0.0, 1.0)

        if self.state_mode == 'flat':
            return processed_board.flatten()
        return np.expand_dims(processed_board, axis=0)

    def action_masks(self):
        mask = np.zeros(len(DIRECTIONS), dtype=np.int8)
        for direction in self.manager.available_directions(self.grid):
            mask[direction] = 1
        return mask

    def _get_info(self, moved=False):
        return {
            "score": self.score,
            "max_tile": self.grid.max_value(),
            "board": self.grid.to_values(),
            "won": self.won,
            "moved": moved,
            "action_mask": self.action_masks(),
        }

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        # Tie the engine's rng to the gym seed so episodes are reproducible.
        rng = random.Random(int(self.np_random.integers(2**31 - 1)))
        self.manager = GameManager(size=self.size, rng=rng)
        self.grid = self.manager.setup()
        self.score = 0
        self.won = False
        return self._get_obs(), self._get_info()

    def step(self, action):
        result = self.manager.move(self.grid, int(action))
        if result.moved:
            self.manager.add_random_tile(self.grid)
            self.score += result.score
            self.won = self.won or result.won

        terminated = not self.manager.moves_available(self.grid)
        reward = self._calculate_reward(result.score, result.moved, terminated)
        truncated = False

        if self.render_mode == 'human':
            self.render()
        return self._get_obs(), reward, terminated, truncated, self._get_info(moved=result.moved)

    def render(self):
        text = f"Score: {self.score}\n{format_board(self.grid)}"
        if self.render_mode == 'ansi':
            return text
        print(text)

    def _calculate_reward(self, score_gained, changed, is_over):
        if not changed and not is_over:
            return -1.0  # small penalty for a move that does nothing

        if self.reward_mode == 'simple':
            return float(score_gained)

        # 'log_score'
        if score_gained > 0:
            return float(np.log2(score_gained))
        return 0.0

    def load_state(self, board_state, score):
        board_array = np.array(board_state, dtype=np.int64)
        if board_array.shape != (self.size, self.size):
            raise ValueError(f"Board must have shape {(self.size, self.size)}, got {board_array.shape}")
        self.grid = Grid.from_values(board_array.tolist(), self.manager.new_tile_id)
        self.score = int(score)
        self.won = self.grid.max_value() >= WIN_VALUE
