"""Configuration of a comparison run."""

import dataclasses

from .backends import BACKENDS, UnknownBackendError
from .equivalence import DEFAULT_TOLERANCE


@dataclasses.dataclass(frozen=True)
class RunConfig:
    """Options of a run.

    :param backends: Ids of the backends to compare, in the order they
                     should be compared. Defaults to every registered
                     backend, the first one is the canonical one.
    :param tolerance: Relative tolerance when comparing floats.
    :param stop_on_mismatch: Stop the run at the first operation
                             whose results differ between backends.
    """

    backends: tuple[str, ...] = tuple(BACKENDS)
    tolerance: float = DEFAULT_TOLERANCE
    stop_on_mismatch: bool = False

    def __post_init__(self) -> None:
        # Accept any iterable of ids, but store a tuple.
        object.__setattr__(self, "backends", tuple(self.backends))
        if not self.backends:
            raise ValueError("At least one backend is required")
        for backend_id in self.backends:
            if backend_id not in BACKENDS:
                raise UnknownBackendError(backend_id)
        if len(set(self.backends)) != len(self.backends):
            raise ValueError(f"Duplicate backends in {self.backends}")
        if not self.tolerance > 0:
            raise ValueError(f"Tolerance must be positive, got {self.tolerance}")
