"""Estimated one-rep-max (Epley)."""

EPLEY_COEFFICIENT = 0.0333


def estimate_1rm(weight: float, reps: int) -> float:
    """e1RM = weight * (1 + 0.0333 * reps); 0 when either input is not positive."""
    if weight <= 0 or reps <= 0:
        return 0.0
    return weight * (1 + EPLEY_COEFFICIENT * reps)
