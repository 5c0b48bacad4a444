"""Solver settings and per-frame solve results."""

from dataclasses import dataclass

from limbik.constants import DEFAULT_ITERATIONS, DEFAULT_TOLERANCE


@dataclass
class SolverSettings:
    """Tolerance and iteration budget shared by chains without overrides."""
    tolerance: float = DEFAULT_TOLERANCE
    iterations: int = DEFAULT_ITERATIONS

    def __post_init__(self):
        try:
            self.tolerance = float(self.tolerance)
            self.iterations = int(self.iterations)
        except (TypeError, ValueError):
            raise ValueError(
                f"tolerance and iterations must be numbers, got "
                f"{self.tolerance!r} and {self.iterations!r}"
            ) from None
        if self.tolerance <= 0.0:
            raise ValueError(f"tolerance must be > 0, got {self.tolerance}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")

    def override(self, tolerance: float | None = None,
                 iterations: int | None = None) -> "SolverSettings":
        """Return a copy with any non-None values replaced."""
        return SolverSettings(
            tolerance=self.tolerance if tolerance is None else tolerance,
            iterations=self.iterations if iterations is None else iterations,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SolverSettings":
        """Settings from a rig's ``solver`` block; missing or null keys use the defaults."""
        return cls().override(data.get("tolerance"), data.get("iterations"))


@dataclass
class ChainStats:
    """Outcome of solving one chain for one frame.

    ``distance`` is measured right after the position solve.  The pole step
    can swing the tip away from there, so ``final_distance`` is measured on
    the committed pose and ``reached`` is judged on it.
    """
    name: str
    iterations: int = 0          # backward/forward passes actually run
    distance: float = 0.0        # tip-to-target distance after the position solve
    final_distance: float = 0.0  # tip-to-target distance as committed, after the pole
    reached: bool = False        # final_distance <= tolerance
    out_of_reach: bool = False
    pole_applied: bool = False
