"""
Sparse symmetric positive-definite solve.

SciPy ships no sparse Cholesky, so the system is factorized with SuperLU in
symmetric mode: a symmetric fill-reducing ordering (minimum degree on
A^T + A) and diagonal pivots only. Without row interchanges this is the
LDL^T factorization of A, and A is positive definite exactly when every
pivot on the diagonal of U is positive.
"""

import logging
import time

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from .errors import FactorizationError, SolveError

logger = logging.getLogger(__name__)


def factorize_spd(A) -> spla.SuperLU:
    """Factorize A, raising FactorizationError unless it is numerically SPD."""
    A = sp.csc_matrix(A, dtype=np.float64)
    if A.shape[0] != A.shape[1]:
        raise FactorizationError(f"System matrix must be square, got {A.shape}")
    if not np.all(np.isfinite(A.data)):
        raise FactorizationError("System matrix contains non-finite entries")
    try:
        lu = spla.splu(A,
                       permc_spec="MMD_AT_PLUS_A",
                       diag_pivot_thresh=0.0,
                       options={"SymmetricMode": True})
    except RuntimeError as e:
        raise FactorizationError(f"Decomposition failed: {e}") from e

    pivots = lu.U.diagonal()
    if not np.all(pivots > 0):
        raise FactorizationError(
            f"Decomposition failed: matrix is not positive definite "
            f"(smallest pivot {float(pivots.min()):.3e})")
    return lu


def solve_spd(A, b: np.ndarray) -> np.ndarray:
    """
    Solve A x = b for a sparse symmetric positive-definite A.

    Parameters:
    ----------
    A : scipy.sparse matrix
        N x N system matrix
    b : np.ndarray
        Right-hand side of length N

    Returns:
    -------
    np.ndarray
        Solution x, float64, length N

    Raises FactorizationError when A cannot be factorized and SolveError when
    the triangular solves fail or yield a non-finite solution.
    """
    t0 = time.time()
    lu = factorize_spd(A)
    t1 = time.time()

    b = np.asarray(b, dtype=np.float64)
    try:
        x = lu.solve(b)
    except (ValueError, RuntimeError) as e:
        raise SolveError(f"Solving failed: {e}") from e
    if not np.all(np.isfinite(x)):
        raise SolveError("Solving failed: solution contains non-finite values")

    logger.debug("spd solve n=%d nnz(L+U)=%d factor %.2f ms, solve %.2f ms",
                 A.shape[0], lu.L.nnz + lu.U.nnz, (t1 - t0) * 1000.0, (time.time() - t1) * 1000.0)
    return x
