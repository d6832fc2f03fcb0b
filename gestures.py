from game import DOWN, LEFT, RIGHT, UP

SWIPE_THRESHOLD = 30


def direction_from_swipe(dx, dy, threshold=SWIPE_THRESHOLD):
    """
    Turns a drag displacement into a direction, or None for a drag that is
    too short. Screen y grows downward, so a positive dy is a swipe down.
    """
    abs_dx, abs_dy = abs(dx), abs(dy)
    if max(abs_dx, abs_dy) <= threshold:
        return None
    if abs_dx > abs_dy:
        return RIGHT if dx > 0 else LEFT
    return DOWN if dy > 0 else UP
