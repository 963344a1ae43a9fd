import numpy as np

from pong_core import HEIGHT, WIDTH, EntityState

BG = (25, 25, 30)
DASH = (70, 70, 80)
PADDLE = (230, 247, 255)
BALL = (0, 230, 168)
FLASH = (0, 200, 160)


def render_rgb(state: EntityState, width=WIDTH, height=HEIGHT, scale=1, flash=False):
    # Return an RGB image of the court
    W, H = int(width), int(height)
    img = np.zeros((H, W, 3), dtype=np.uint8)
    img[:] = BG
    if flash:
        # faint tint, same as the 6% overlay the desktop view draws
        img[:] = (np.array(BG) * 0.94 + np.array(FLASH) * 0.06).astype(np.uint8)
    for y in range(10, H, 28):  # center dashed line
        img[y:y+16, W//2-2:W//2+2] = DASH

    for p in (state.left_paddle, state.right_paddle):
        x0, y0 = int(round(p.x)), int(round(p.y))
        img[max(0, y0):min(H, y0 + int(p.height)), max(0, x0):min(W, x0 + int(p.width))] = PADDLE

    b = state.ball
    if -b.r <= b.x <= W + b.r:
        ys, xs = np.ogrid[:H, :W]
        mask = (xs - b.x) ** 2 + (ys - b.y) ** 2 <= b.r ** 2
        img[mask] = BALL

    if scale != 1:
        img = np.repeat(np.repeat(img, scale, axis=0), scale, axis=1)
    return img
