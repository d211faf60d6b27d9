class StabilityTracker:
    """
    Hysteresis counter telling whether a detection has persisted long enough.

    Each hit raises the counter by one and each miss lowers it by one, both
    clamped to [0, cap]. A miss never resets to zero, so a single bad frame
    does not drop a good lock. Two levels come out of the counter: a lock
    is held while it is above zero, and it is stable once it exceeds
    stable_threshold.
    """

    def __init__(self, cap: int = 12, stable_threshold: int = 8):
        if cap <= 0:
            raise ValueError("cap must be positive")
        if not 0 <= stable_threshold < cap:
            raise ValueError("stable_threshold must be in [0, cap)")

        self.cap = cap
        self.stable_threshold = stable_threshold
        self._counter = 0

    def __str__(self) -> str:
        return f"StabilityTracker({self._counter}/{self.cap}, stable={self.is_stable})"

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def has_lock(self) -> bool:
        return self._counter > 0

    @property
    def is_stable(self) -> bool:
        return self._counter > self.stable_threshold

    def hit(self) -> int:
        self._counter = min(self.cap, self._counter + 1)
        return self._counter

    def miss(self) -> int:
        self._counter = max(0, self._counter - 1)
        return self._counter

    def reset(self):
        self._counter = 0
