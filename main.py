# file: main.py

import argparse
import logging
import random
import sys

import numpy as np
import pygame

from game import DOWN, GRID_SIZE, LEFT, RIGHT, UP, GameManager
from gestures import direction_from_swipe
from session import GameSession
from storage import DEFAULT_SAVE_PATH, JsonFileStore, StorageManager

logger = logging.getLogger(__name__)

# Screen
SCREEN_WIDTH = 400
SCREEN_HEIGHT = 500
CELL_SIZE = SCREEN_WIDTH // GRID_SIZE
GRID_LINE_WIDTH = 6
BACKGROUND_COLOR = (187, 173, 160)
FONT_COLOR = (119, 110, 101)
SCORE_FONT_COLOR = (238, 228, 218)
OVERLAY_COLOR = (238, 228, 218, 200)
ANIMATION_DURATION_MS = 120

# (tile color, text color) per value
TILE_COLORS = {
    0: ((205, 193, 180), FONT_COLOR), 2: ((238, 228, 218), FONT_COLOR),
    4: ((237, 224, 200), FONT_COLOR), 8: ((242, 177, 121), SCORE_FONT_COLOR),
    16: ((245, 149, 99), SCORE_FONT_COLOR), 32: ((246, 124, 95), SCORE_FONT_COLOR),
    64: ((246, 94, 59), SCORE_FONT_COLOR), 128: ((237, 207, 114), SCORE_FONT_COLOR),
    256: ((237, 204, 97), SCORE_FONT_COLOR), 512: ((237, 200, 80), SCORE_FONT_COLOR),
    1024: ((237, 197, 63), SCORE_FONT_COLOR), 2048: ((237, 194, 46), SCORE_FONT_COLOR),
}

KEY_TO_DIRECTION = {
    pygame.K_UP: UP, pygame.K_w: UP,
    pygame.K_DOWN: DOWN, pygame.K_s: DOWN,
    pygame.K_LEFT: LEFT, pygame.K_a: LEFT,
    pygame.K_RIGHT: RIGHT, pygame.K_d: RIGHT,
}


def load_fonts():
    try:
        return {
            'tile': pygame.font.SysFont("arial", 40, bold=True),
            'label': pygame.font.SysFont("arial", 20, bold=True),
            'score': pygame.font.SysFont("arial", 25, bold=True),
            'banner': pygame.font.SysFont("arial", 40, bold=True),
        }
    except pygame.error as e:
        print(f"Could not load Arial ({e}), using the default font.")
        sizes = {'tile': 55, 'label': 30, 'score': 35, 'banner': 60}
        return {name: pygame.font.Font(None, size) for name, size in sizes.items()}


def get_tile_colors(value):
    return TILE_COLORS.get(value, TILE_COLORS[2048])


def cell_to_pixels(position):
    x, y = position
    return x * CELL_SIZE, y * CELL_SIZE


def draw_tile(screen, fonts, value, pixel_pos, scale=1.0):
    color, text_color = get_tile_colors(value)
    size = CELL_SIZE * scale
    offset = (CELL_SIZE - size) / 2
    px, py = pixel_pos
    pygame.draw.rect(screen, color, (px + offset, py + offset, size, size))
    if scale > 0.7:
        text_surface = fonts['tile'].render(str(value), True, text_color)
        text_rect = text_surface.get_rect(center=(px + CELL_SIZE / 2, py + CELL_SIZE / 2))
        screen.blit(text_surface, text_rect)


def draw_tiles(screen, fonts, tiles, progress):
    """
    Draws tiles part way through the last move: sliding tiles go from their
    previous position to their current one, merged tiles show their two
    sources sliding in and then pop, spawned tiles grow from the centre.
    """
    for tile in tiles:
        if tile.merged_from is not None:
            if progress < 1.0:
                for source in tile.merged_from:
                    draw_sliding_tile(screen, fonts, source.value, source.previous_position, tile.position, progress)
            else:
                draw_tile(screen, fonts, tile.value, cell_to_pixels(tile.position))
        elif tile.previous_position is not None:
            draw_sliding_tile(screen, fonts, tile.value, tile.previous_position, tile.position, progress)
        elif progress >= 1.0:
            draw_tile(screen, fonts, tile.value, cell_to_pixels(tile.position))
        else:
            draw_tile(screen, fonts, tile.value, cell_to_pixels(tile.position), scale=progress)


def draw_sliding_tile(screen, fonts, value, start, end, progress):
    x_s, y_s = cell_to_pixels(start)
    x_e, y_e = cell_to_pixels(end)
    x = x_s + (x_e - x_s) * progress
    y = y_s + (y_e - y_s) * progress
    draw_tile(screen, fonts, value, (x, y))


def draw_board(screen, fonts, session, progress):
    screen.fill(BACKGROUND_COLOR)
    for x in range(GRID_SIZE):
        for y in range(GRID_SIZE):
            rect_x, rect_y = cell_to_pixels((x, y))
            pygame.draw.rect(screen, TILE_COLORS[0][0], (rect_x, rect_y, CELL_SIZE, CELL_SIZE))

    draw_tiles(screen, fonts, session.tiles(), progress)

    for i in range(1, GRID_SIZE):
        pygame.draw.line(screen, BACKGROUND_COLOR, (i * CELL_SIZE, 0), (i * CELL_SIZE, SCREEN_WIDTH), GRID_LINE_WIDTH)
        pygame.draw.line(screen, BACKGROUND_COLOR, (0, i * CELL_SIZE), (SCREEN_WIDTH, i * CELL_SIZE), GRID_LINE_WIDTH)

    for label, value, left in (("SCORE", session.score, 20), ("BEST", session.best_score, SCREEN_WIDTH // 2)):
        screen.blit(fonts['label'].render(label, True, FONT_COLOR), (left, SCREEN_WIDTH + 10))
        screen.blit(fonts['score'].render(str(value), True, SCORE_FONT_COLOR), (left, SCREEN_WIDTH + 35))


def draw_banner(screen, fonts, title, hint):
    overlay = pygame.Surface((SCREEN_WIDTH, SCREEN_WIDTH), pygame.SRCALPHA)
    overlay.fill(OVERLAY_COLOR)
    screen.blit(overlay, (0, 0))
    title_text = fonts['banner'].render(title, True, FONT_COLOR)
    hint_text = fonts['label'].render(hint, True, FONT_COLOR)
    screen.blit(title_text, title_text.get_rect(center=(SCREEN_WIDTH / 2, SCREEN_WIDTH / 2 - 30)))
    screen.blit(hint_text, hint_text.get_rect(center=(SCREEN_WIDTH / 2, SCREEN_WIDTH / 2 + 30)))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play 2048 with the keyboard or mouse swipes.")
    parser.add_argument("--save-file", default=str(DEFAULT_SAVE_PATH),
                        help="JSON file holding the best score and the saved game")
    parser.add_argument("--seed", type=int, default=None, help="seed for tile spawns")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    pygame.init()
    pygame.font.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
    pygame.display.set_caption("2048")
    fonts = load_fonts()

    manager = GameManager(rng=random.Random(args.seed))
    session = GameSession(manager, StorageManager(JsonFileStore(args.save_file)))
    session.load()
    print(f"Saving to {args.save_file}. Arrows/WASD or drag to move, R restart, C keep playing, Q quit.")

    clock = pygame.time.Clock()
    running = True
    anim_start = None
    drag_start = None

    while running:
        now = pygame.time.get_ticks()
        animating = anim_start is not None and now - anim_start < ANIMATION_DURATION_MS

        for event in pygame.event.get():
            direction = None
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_q:
                    running = False
                elif event.key == pygame.K_r:
                    session.restart()
                    anim_start = now
                elif event.key == pygame.K_c and session.won and not session.keep_playing:
                    session.continue_game()
                else:
                    direction = KEY_TO_DIRECTION.get(event.key)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                drag_start = event.pos
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and drag_start is not None:
                dx, dy = np.subtract(event.pos, drag_start)
                drag_start = None
                direction = direction_from_swipe(dx, dy)

            # One move at a time: input during a slide is dropped.
            if direction is not None and not animating and session.move(direction):
                anim_start = now
                animating = True

        progress = 1.0 if anim_start is None else min((now - anim_start) / ANIMATION_DURATION_MS, 1.0)
        draw_board(screen, fonts, session, progress)
        if session.over:
            draw_banner(screen, fonts, "Game Over!", "Press R to Restart")
        elif session.won and not session.keep_playing:
            draw_banner(screen, fonts, "You Win!", "C to keep playing, R to restart")

        pygame.display.flip()
        clock.tick(60)

    logger.info("Exiting with score %d (best %d)", session.score, session.best_score)
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
