"""
Affinity graph Laplacian over the 8-connected pixel grid.

Every pixel p is connected to each in-bounds neighbour q of its 3 x 3
neighbourhood. The edge weight is

    w(p, q) = quantize(exp(-(beta / sigma) * d(p, q)**2))

where d is the infinity-norm (max over channels) colour distance and
quantize snaps the value to a multiple of EPSILON and then adds EPSILON,
so that no weight is ever exactly zero. The Laplacian is L = D - W with D
the diagonal of row sums of W.
"""

import logging
from typing import Tuple

import numpy as np
import scipy.sparse as sp

logger = logging.getLogger(__name__)

# Minimum distinguishable weight granularity.
EPSILON = 1e-6

# (dy, dx), row-major over the 3 x 3 neighbourhood without the centre.
NEIGHBOR_OFFSETS = [(-1, -1), (-1, 0), (-1, 1),
                    (0, -1),           (0, 1),
                    (1, -1),  (1, 0),  (1, 1)]


def quantize_weights(weights: np.ndarray) -> np.ndarray:
    """Snap raw affinities to the EPSILON grid, then floor them at EPSILON.

    Rounding is half away from zero; weights are non-negative so
    floor(x + 0.5) gives that.
    """
    w = np.asarray(weights, dtype=np.float64)
    return np.floor(w / EPSILON + 0.5) * EPSILON + EPSILON


def edge_weights(a: np.ndarray, b: np.ndarray, beta: float, sigma: float) -> np.ndarray:
    """Quantized affinity between colour arrays a and b of shape (..., C)."""
    dist = np.max(np.abs(a - b), axis=-1)
    return quantize_weights(np.exp(-(beta / sigma) * dist * dist))


def _neighbor_triplets(image: np.ndarray, beta: float, sigma: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Directed edge list (p, q, w) for every pixel and each in-bounds offset."""
    H, W = image.shape[:2]
    idx = np.arange(H * W, dtype=np.int64).reshape(H, W)
    rows, cols, vals = [], [], []
    for dy, dx in NEIGHBOR_OFFSETS:
        # p ranges over pixels whose neighbour (p + offset) lies inside the grid
        py = slice(max(0, -dy), H - max(0, dy))
        px = slice(max(0, -dx), W - max(0, dx))
        qy = slice(max(0, dy), H - max(0, -dy))
        qx = slice(max(0, dx), W - max(0, -dx))
        p = idx[py, px]
        if p.size == 0:
            continue
        rows.append(p.ravel())
        cols.append(idx[qy, qx].ravel())
        vals.append(edge_weights(image[py, px], image[qy, qx], beta, sigma).ravel())
    if not rows:
        empty = np.zeros(0, dtype=np.int64)
        return empty, empty, np.zeros(0, dtype=np.float64)
    return np.concatenate(rows), np.concatenate(cols), np.concatenate(vals)


def build_laplacian(image: np.ndarray, beta: float, sigma: float) -> sp.csr_matrix:
    """
    Build the weighted graph Laplacian of an H x W x C image.

    Parameters:
    ----------
    image : np.ndarray
        Float colour image, shape [height, width, channels]
    beta : float
        Edge sharpness, >= 0
    sigma : float
        Colour scale, > 0

    Returns:
    -------
    scipy.sparse.csr_matrix
        N x N Laplacian with N = height * width and pixel index
        i = row * width + col. Off-diagonals hold -w(p, q), the diagonal
        holds the degree of each pixel.
    """
    H, W = image.shape[:2]
    N = H * W
    rows, cols, vals = _neighbor_triplets(image, beta, sigma)

    # Both directions of every edge appear in the triplets, so the
    # assembled matrix is symmetric as built.
    degree = np.bincount(rows, weights=vals, minlength=N)
    diag = np.arange(N, dtype=np.int64)
    L = sp.coo_matrix(
        (np.concatenate([-vals, degree]), (np.concatenate([rows, diag]), np.concatenate([cols, diag]))),
        shape=(N, N),
    ).tocsr()
    logger.debug("laplacian %dx%d grid, %d nodes, %d directed edges, nnz %d", H, W, N, rows.size, L.nnz)
    return L
