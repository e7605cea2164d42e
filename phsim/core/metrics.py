import numpy as np


def compute_performance_error(measured: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Compute Performance Error (PE) = (Measured - Target) / Target * 100.

    Entries with a zero target are reported as 0.
    """
    measured = np.asarray(measured, dtype=float)
    target = np.asarray(target, dtype=float)
    pe = np.zeros_like(measured)
    mask = (target != 0)
    pe[mask] = (measured[mask] - target[mask]) / target[mask] * 100.0
    return pe


def compute_mdpe(pe: np.ndarray) -> float:
    return float(np.median(pe))


def compute_mdape(pe: np.ndarray) -> float:
    return float(np.median(np.abs(pe)))


def compute_max_abs_error(measured: np.ndarray, target: np.ndarray) -> float:
    diff = np.abs(np.asarray(measured, dtype=float) - np.asarray(target, dtype=float))
    if diff.size == 0:
        return 0.0
    return float(np.max(diff))


def compute_target_metrics(measured, target) -> dict:
    """
    Deviation of simulated end results from published targets.

    Args:
        measured: Simulated values (e.g. Tre at 480 min per example)
        target: Reference values in the same order

    Returns:
        dict: {MDPE, MDAPE, MaxAbsError}
    """
    m_arr = np.asarray(measured, dtype=float)
    tgt_arr = np.asarray(target, dtype=float)
    mask = ~(np.isnan(m_arr) | np.isnan(tgt_arr))

    if not np.any(mask):
        return {"MDPE": 0.0, "MDAPE": 0.0, "MaxAbsError": 0.0}

    pe = compute_performance_error(m_arr[mask], tgt_arr[mask])
    return {
        "MDPE": compute_mdpe(pe),
        "MDAPE": compute_mdape(pe),
        "MaxAbsError": compute_max_abs_error(m_arr[mask], tgt_arr[mask]),
    }
