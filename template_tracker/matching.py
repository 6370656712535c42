"""
Single-frame template matcher.

Locates a template inside one image with ``cv2.matchTemplate`` using the
squared-difference method (``TM_SQDIFF``), optionally restricted to the
template pixels selected by a boolean mask.  The score returned is the SSD at
the best location scaled to ``[0, 1]`` so that a single threshold works for
any image dtype.
"""

import cv2
import numpy as np

DEFAULT_MATCH_METHOD = cv2.TM_SQDIFF


def _channels(arr):
    return 1 if arr.ndim == 2 else arr.shape[2]


def dtype_peak(dtype):
    """Return the dynamic range used to scale SSD values for *dtype*.

    Integer images use their maximum representable value; boolean and
    floating images are assumed to lie in ``[0, 1]``.
    """
    dtype = np.dtype(dtype)
    if dtype == np.bool_ or np.issubdtype(dtype, np.floating):
        return 1.0
    if np.issubdtype(dtype, np.integer):
        return float(np.iinfo(dtype).max)
    raise ValueError(f"Unsupported image dtype {dtype}")


def _prepare_mask(mask, template):
    """Convert a boolean mask into the float32 form ``cv2.matchTemplate`` wants."""
    th, tw = template.shape[:2]
    mask = np.asarray(mask)
    if mask.shape[:2] != (th, tw):
        raise ValueError(
            f"Mask shape {mask.shape} does not match template shape {(th, tw)}"
        )
    mask_f = mask.astype(np.float32)
    if mask_f.ndim == 3:
        mask_f = mask_f[:, :, 0]
    ch = _channels(template)
    if ch > 1:
        mask_f = np.repeat(mask_f[:, :, np.newaxis], ch, axis=2)
    return mask_f


def match_template(image, template, mask=None):
    """Find the best match of *template* inside *image*.

    Parameters
    ----------
    image : ndarray
        Search image, ``(H, W)`` or ``(H, W, C)``.
    template : ndarray
        Template, ``(Ht, Wt)`` or ``(Ht, Wt, C)`` with ``Ht <= H`` and
        ``Wt <= W``.
    mask : ndarray or None
        Boolean ``(Ht, Wt)`` array; True pixels take part in the match.

    Returns
    -------
    x, y : int
        Top-left corner of the best match in *image* coordinates.
    d : float
        Scaled SSD at ``(x, y)``; 0 is a perfect match.
    """
    image = np.asarray(image)
    template = np.asarray(template)

    if image.ndim not in (2, 3) or template.ndim not in (2, 3):
        raise ValueError("Image and template must be 2D or 3D arrays")
    if _channels(image) != _channels(template):
        raise ValueError(
            f"Channel mismatch: image has {_channels(image)}, "
            f"template has {_channels(template)}"
        )

    h, w = image.shape[:2]
    th, tw = template.shape[:2]
    if th > h or tw > w:
        raise ValueError(
            f"Template {(th, tw)} is larger than the search image {(h, w)}"
        )

    img_f = image.astype(np.float32)
    tmpl_f = template.astype(np.float32)

    if mask is None:
        res = cv2.matchTemplate(img_f, tmpl_f, DEFAULT_MATCH_METHOD)
        included = th * tw
    else:
        mask_f = _prepare_mask(mask, template)
        res = cv2.matchTemplate(img_f, tmpl_f, DEFAULT_MATCH_METHOD, mask=mask_f)
        included = int(np.count_nonzero(mask_f)) // _channels(template)

    min_val, _, min_loc, _ = cv2.minMaxLoc(res)

    peak = dtype_peak(template.dtype)
    denom = max(included, 1) * _channels(template) * peak * peak
    d = max(float(min_val), 0.0) / denom
    return int(min_loc[0]), int(min_loc[1]), d
