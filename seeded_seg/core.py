"""
Core functionality for seeded binary segmentation.

The potential field x solves

    (Is + L @ L) x = b

where L is the colour-affinity Laplacian of the image, Is the diagonal
indicator of seeded pixels and b is +1 on background seeds, -1 on
foreground seeds and 0 elsewhere. Pixels with x > 0 are background.
"""

import logging
from typing import Tuple

import numpy as np
import scipy.sparse as sp

from .errors import ConfigurationError, ShapeError
from .graph import build_laplacian
from .image_io import load_image_rgb
from .solver import solve_spd

logger = logging.getLogger(__name__)

DEFAULT_BETA = 90.0
DEFAULT_SIGMA = 1.0

BACKGROUND_VALUE = 1.0
FOREGROUND_VALUE = -1.0
THRESHOLD = (BACKGROUND_VALUE + FOREGROUND_VALUE) / 2


def assemble_constraints(background: np.ndarray, foreground: np.ndarray) -> Tuple[sp.csr_matrix, np.ndarray]:
    """
    Build the seed indicator matrix Is and the bias vector b.

    A pixel present in both masks is anchored (Is = 1) with bias 0, which
    pulls it towards the threshold rather than towards either label.
    """
    bg = np.asarray(background, dtype=bool).ravel()
    fg = np.asarray(foreground, dtype=bool).ravel()
    Is = sp.diags((bg | fg).astype(np.float64), format="csr")
    b = bg.astype(np.float64) - fg.astype(np.float64)
    return Is, b


def threshold_field(field: np.ndarray, shape: Tuple[int, int], threshold: float = THRESHOLD) -> np.ndarray:
    """Reshape a flat field to `shape`; True where strictly above threshold.

    A value equal to the threshold maps to False.
    """
    return np.asarray(field).reshape(shape) > threshold


class SeededSegmentation:
    """
    Binary segmentation of one image from background and foreground seeds.

    Parameters:
    ----------
    image : np.ndarray
        Colour image, shape [height, width, channels], or a single-channel
        image of shape [height, width]. Converted to float64 and copied;
        values are not rescaled.
    beta : float
        Edge sharpness, must be >= 0
    sigma : float
        Colour scale, must be > 0

    The same instance can segment any number of mask pairs. Nothing is
    cached between calls.
    """

    def __init__(self, image: np.ndarray, beta: float = DEFAULT_BETA, sigma: float = DEFAULT_SIGMA):
        if not beta >= 0:
            raise ConfigurationError(f"Beta must be non-negative, got {beta}")
        if not sigma > 0:
            raise ConfigurationError(f"Sigma must be greater than 0, got {sigma}")

        img = np.asarray(image)
        if img.ndim == 2:
            img = img[:, :, None]
        if img.ndim != 3:
            raise ShapeError(f"Image must be HxW or HxWxC, got shape {img.shape}")
        if img.shape[0] == 0 or img.shape[1] == 0 or img.shape[2] == 0:
            raise ShapeError(f"Image must not be empty, got shape {img.shape}")

        img = np.array(img, dtype=np.float64)
        img.setflags(write=False)
        self._image = img
        self._beta = float(beta)
        self._sigma = float(sigma)

    @property
    def image(self) -> np.ndarray:
        return self._image

    @property
    def beta(self) -> float:
        return self._beta

    @property
    def sigma(self) -> float:
        return self._sigma

    @property
    def shape(self) -> Tuple[int, int]:
        return self._image.shape[:2]

    def laplacian(self) -> sp.csr_matrix:
        return build_laplacian(self._image, self._beta, self._sigma)

    def _check_mask(self, mask: np.ndarray, name: str) -> np.ndarray:
        m = np.asarray(mask)
        if m.shape != self.shape:
            raise ShapeError(f"{name} mask must have shape {self.shape}, got {m.shape}")
        return m.astype(bool)

    def potential_field(self, background: np.ndarray, foreground: np.ndarray) -> np.ndarray:
        """Solve for the continuous field, returned with the image's height x width."""
        bg = self._check_mask(background, "Background")
        fg = self._check_mask(foreground, "Foreground")

        L = self.laplacian()
        Is, b = assemble_constraints(bg, fg)
        A = (Is + L @ L).tocsc()
        x = solve_spd(A, b)
        return x.reshape(self.shape)

    def segment(self, background: np.ndarray, foreground: np.ndarray) -> np.ndarray:
        """
        Segment the image from the two seed masks.

        Parameters:
        ----------
        background : np.ndarray
            Boolean mask of known background pixels, shape [height, width]
        foreground : np.ndarray
            Boolean mask of known foreground pixels, shape [height, width]

        Returns:
        -------
        np.ndarray
            Boolean mask, shape [height, width]. True marks background.

        Raises ShapeError on mask shape mismatch, FactorizationError or
        SolveError when the linear system cannot be solved.
        """
        x = self.potential_field(background, foreground)
        mask = threshold_field(x, self.shape)
        logger.debug("segmented %dx%d, background fraction %.3f", self.shape[0], self.shape[1], mask.mean())
        return mask


def segment_image(image: np.ndarray, background: np.ndarray, foreground: np.ndarray,
                  beta: float = DEFAULT_BETA, sigma: float = DEFAULT_SIGMA) -> np.ndarray:
    """One-shot segmentation, see SeededSegmentation.segment."""
    return SeededSegmentation(image, beta=beta, sigma=sigma).segment(background, foreground)


def process_image_file(image_path: str, background: np.ndarray, foreground: np.ndarray,
                       beta: float = DEFAULT_BETA, sigma: float = DEFAULT_SIGMA) -> np.ndarray:
    """
    Load an image file and segment it from the given seed masks.

    The image is read as RGB and scaled to [0, 1] before segmentation.
    """
    image = load_image_rgb(image_path)
    return segment_image(image, background, foreground, beta=beta, sigma=sigma)
