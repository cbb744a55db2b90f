"""
Seeded binary image segmentation
--------------------------------
Segments a colour image into background and foreground from two seed masks
by solving a sparse linear system over an 8-connected colour-affinity graph.

Example:
    >>> import numpy as np
    >>> from seeded_seg import segment_image
    >>>
    >>> # Load your RGB image as a float array in [0, 1], shape (H, W, 3)
    >>> image = ...  # Your image loading code here
    >>>
    >>> background = np.zeros(image.shape[:2], dtype=bool)
    >>> foreground = np.zeros(image.shape[:2], dtype=bool)
    >>> background[:5, :] = True       # top rows are background
    >>> foreground[30:40, 30:40] = True  # object region
    >>>
    >>> # True where background
    >>> mask = segment_image(image, background, foreground)
"""

from .core import (
    DEFAULT_BETA,
    DEFAULT_SIGMA,
    SeededSegmentation,
    assemble_constraints,
    process_image_file,
    segment_image,
    threshold_field,
)
from .errors import (
    ConfigurationError,
    FactorizationError,
    NumericalError,
    SegmentationError,
    ShapeError,
    SolveError,
)
from .graph import EPSILON, build_laplacian, quantize_weights
from .solver import solve_spd

__version__ = "0.1.0"
__all__ = [
    "SeededSegmentation",
    "segment_image",
    "process_image_file",
    "assemble_constraints",
    "threshold_field",
    "build_laplacian",
    "quantize_weights",
    "solve_spd",
    "EPSILON",
    "DEFAULT_BETA",
    "DEFAULT_SIGMA",
    "SegmentationError",
    "ConfigurationError",
    "ShapeError",
    "NumericalError",
    "FactorizationError",
    "SolveError",
]
