# time_controller.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from config import config
from orbital_mechanics import as_utc

MIN_INSTANT = datetime(1, 1, 2, tzinfo=timezone.utc)
MAX_INSTANT = datetime(9999, 12, 30, tzinfo=timezone.utc)


def speed_from_step(step: int) -> float:
    """Speed multiplier for a speed-table index; out-of-range indices are clamped."""
    return config.Time.SPEED_STEPS[clamp_speed_index(step)]


def clamp_speed_index(step: int) -> int:
    return max(0, min(len(config.Time.SPEED_STEPS) - 1, step))


def resolve_time_adjustment(key: str) -> int:
    """Signed jump in simulated seconds for a time-step shortcut, 0 for any other key."""
    return config.Time.TIME_ADJUSTMENT_KEYS.get(key, 0)


def describe_speed(multiplier: float) -> str:
    """Human-readable speed label, e.g. '1x (real time)', '3x', '1,000x'."""
    if abs(multiplier - 1) < 1e-6:
        return "1x (real time)"
    if multiplier >= 10:
        return f"{multiplier:,.0f}x"
    return f"{multiplier:,.2f}".rstrip('0').rstrip('.') + "x"


class SimulationClock:
    """
    Simulated time source feeding the engine.

    Holds the simulated instant (aware UTC datetime), the active speed-table
    index and a pause flag. `tick()` is called once per frame with the elapsed
    wall time and returns the elapsed simulated seconds for that frame.
    """

    def __init__(self, start_instant: Optional[datetime] = None, speed_step: Optional[int] = None):
        self.current_time = as_utc(start_instant) if start_instant is not None else datetime.now(timezone.utc)
        self.speed_step = clamp_speed_index(config.Time.DEFAULT_SPEED_STEP if speed_step is None else speed_step)
        self.is_paused = False

    @property
    def speed(self) -> float:
        return speed_from_step(self.speed_step)

    def tick(self, wall_delta_seconds: float) -> float:
        """Advances the clock by one frame. Returns elapsed simulated seconds (0 while paused)."""
        if self.is_paused:
            return 0.0
        sim_delta_seconds = wall_delta_seconds * self.speed
        self._shift(sim_delta_seconds)
        return sim_delta_seconds

    def adjust(self, seconds: float):
        """Jumps the simulated instant forward (positive) or backward (negative)."""
        self._shift(seconds)
        logging.debug(f"Simulation time adjusted by {seconds} s to {self.current_time.isoformat()}")

    def _shift(self, seconds: float):
        # datetime spans years 1..9999; the fastest speed steps can run off either end.
        try:
            self.current_time += timedelta(seconds=seconds)
        except OverflowError:
            self.current_time = MAX_INSTANT if seconds > 0 else MIN_INSTANT
            logging.warning(f"Simulation time reached the representable limit; clamped to {self.current_time.isoformat()}")

    def snap_to_now(self):
        self.current_time = datetime.now(timezone.utc)

    def set_speed_step(self, step: int):
        self.speed_step = clamp_speed_index(step)
        logging.debug(f"Simulation speed set to {describe_speed(self.speed)}")

    def faster(self):
        self.set_speed_step(self.speed_step + 1)

    def slower(self):
        self.set_speed_step(self.speed_step - 1)

    def play(self):
        self.is_paused = False

    def pause(self):
        self.is_paused = True

    def toggle_pause(self):
        self.is_paused = not self.is_paused

    def handle_key(self, key: str) -> bool:
        """
        Applies a keyboard shortcut: the speed keys step the speed table, the
        time-step keys jump the instant. Returns True if the key was recognised.
        """
        if key == config.Time.SPEED_DOWN_KEY:
            self.slower()
            return True
        if key == config.Time.SPEED_UP_KEY:
            self.faster()
            return True
        adjustment = resolve_time_adjustment(key)
        if adjustment != 0:
            self.adjust(adjustment)
            return True
        return False
