"""
Synthetic sequence generators.

Builds image sequences with a known template location so the tracker can be
exercised without recorded video: a block-shuffled black-and-white image
carrying a plus sign, and a template drifting over a noisy background.
"""

import numpy as np

# ---------------------------------------------------------------------------
# Default constants
# ---------------------------------------------------------------------------
DEFAULT_BLOCK_SIZE = 24
DEFAULT_BLOCKS_PER_SIDE = 4
DEFAULT_ARM_WIDTH = 4
DEFAULT_STEP = 3


def make_plus_image(block=DEFAULT_BLOCK_SIZE, blocks_per_side=DEFAULT_BLOCKS_PER_SIDE,
                    arm=DEFAULT_ARM_WIDTH, seed=None):
    """Random black-and-white image with a plus sign in its top-left block.

    Returns
    -------
    image : ndarray
        ``uint8`` image of side ``block * blocks_per_side`` with values 0/255.
    template : ndarray
        The top-left ``block x block`` tile, which contains the plus sign.
    mask : ndarray
        Boolean ``block x block`` array selecting only the plus sign.
    """
    rng = np.random.default_rng(seed)
    size = block * blocks_per_side
    image = rng.integers(0, 2, size=(size, size), dtype=np.uint8) * 255

    lo = (block - arm) // 2
    hi = lo + arm
    mask = np.zeros((block, block), dtype=bool)
    mask[lo:hi, :] = True
    mask[:, lo:hi] = True

    image[:block, :block][mask] = 0
    template = image[:block, :block].copy()
    return image, template, mask


def shuffle_blocks_sequence(image, block=DEFAULT_BLOCK_SIZE, n_frames=60, seed=None):
    """Sequence made by randomly permuting the ``block x block`` tiles of *image*.

    Returns
    -------
    frames : list[ndarray]
    positions : list[tuple[int, int]]
        Zero-based top-left ``(x, y)`` of the original top-left tile in each
        frame.
    """
    rng = np.random.default_rng(seed)
    h, w = image.shape[:2]
    rows, cols = h // block, w // block
    tiles = [
        image[r * block:(r + 1) * block, c * block:(c + 1) * block]
        for r in range(rows) for c in range(cols)
    ]

    frames = []
    positions = []
    for _ in range(n_frames):
        order = rng.permutation(len(tiles))
        frame = np.empty_like(image[:rows * block, :cols * block])
        for slot, tile_idx in enumerate(order):
            r, c = divmod(slot, cols)
            frame[r * block:(r + 1) * block, c * block:(c + 1) * block] = tiles[tile_idx]
            if tile_idx == 0:
                positions.append((c * block, r * block))
        frames.append(frame)
    return frames, positions


def propose_step(x, y, step, rng):
    """Random step of up to *step* pixels in each axis."""
    dx, dy = rng.integers(-step, step + 1, size=2)
    return x + int(dx), y + int(dy)


def moving_template_sequence(template, frame_shape, n_frames=30, step=DEFAULT_STEP,
                             start=None, seed=None, noise=20):
    """Paste *template* along a bounded random walk over a noisy background.

    Parameters
    ----------
    template : ndarray
        ``uint8`` patch to move.
    frame_shape : tuple
        ``(H, W)`` of the generated frames.
    n_frames : int
        Sequence length.
    step : int
        Maximum displacement per frame along each axis.
    start : tuple or None
        Initial top-left ``(x, y)``; defaults to the frame centre.
    noise : int
        Upper bound of the uniform background noise.

    Returns
    -------
    frames : list[ndarray]
    positions : list[tuple[int, int]]
        Zero-based top-left ``(x, y)`` of the template in each frame.
    """
    rng = np.random.default_rng(seed)
    h, w = frame_shape[:2]
    th, tw = template.shape[:2]
    if start is None:
        x, y = (w - tw) // 2, (h - th) // 2
    else:
        x, y = start

    frames = []
    positions = []
    for k in range(n_frames):
        if k > 0:
            x, y = propose_step(x, y, step, rng)
            x = min(max(x, 0), w - tw)
            y = min(max(y, 0), h - th)
        frame = rng.integers(0, noise + 1, size=(h, w) + template.shape[2:], dtype=np.uint8)
        frame[y:y + th, x:x + tw] = template
        frames.append(frame)
        positions.append((x, y))
    return frames, positions
