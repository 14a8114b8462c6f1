# drill_emulator/generator.py
#
# Drill Ops Lab – Synthetic Signal Generator
#
# Produces one drill sensor sample per call. A cycle counter advances on
# every sample and drives a slow wear model: temperature, load and vibration
# creep upwards while spindle speed falls off.

import os
import random
from dataclasses import dataclass, field
from typing import Dict, Optional

CYCLES_PER_WEAR_UNIT = 1000

BASE_TEMPERATURE_C = 20.0
TEMPERATURE_SPREAD_C = 60.0
TEMPERATURE_WEAR_GAIN = 10.0

NOMINAL_RPM = 5000
RPM_WEAR_LOSS = 1000

LOAD_SPREAD_A = 30.0
LOAD_WEAR_GAIN = 5.0

VIBRATION_SPREAD = 10.0
VIBRATION_WEAR_GAIN = 2.0

DEPTH_SPREAD_MM = 50.0


@dataclass(frozen=True)
class DrillSample:
    """One synthetic drill reading. The store assigns recorded_at on ingest."""

    temperature: float
    rpm: int
    load: float
    vibration: float
    depth: float

    def to_payload(self) -> Dict:
        """Convert the sample into a JSON-serializable payload."""
        return {
            "temperature": float(self.temperature),
            "rpm": int(self.rpm),
            "load": float(self.load),
            "vibration": float(self.vibration),
            "depth": float(self.depth),
        }


@dataclass
class DrillState:
    """
    Wear state of a single simulated drill.

    Every call to step() counts as one drilling cycle. The degradation
    factor is cycle / 1000, so after 1000 cycles:
      - temperature floor has risen by 10 °C
      - rpm has dropped by 1000
      - load floor has risen by 5 A
      - vibration floor has risen by 2 m/s²

    rpm never goes below rpm_floor, even for very long runs.
    """

    cycle: int = 0
    rpm_floor: int = 0
    rng: random.Random = field(default_factory=random.Random, repr=False)

    @classmethod
    def from_env(cls) -> "DrillState":
        """Initialize from DRILL_RPM_FLOOR / DRILL_SEED / DRILL_START_CYCLE."""
        seed = os.getenv("DRILL_SEED")
        return cls(
            cycle=int(os.getenv("DRILL_START_CYCLE", "0")),
            rpm_floor=int(os.getenv("DRILL_RPM_FLOOR", "0")),
            rng=random.Random(int(seed)) if seed is not None else random.Random(),
        )

    @property
    def degradation_factor(self) -> float:
        return self.cycle / CYCLES_PER_WEAR_UNIT

    def reset(self) -> None:
        """Start a fresh drill: wear goes back to zero."""
        self.cycle = 0

    def expected_rpm(self, cycle: Optional[int] = None) -> int:
        """rpm the wear model gives at *cycle* (defaults to the current one)."""
        if cycle is None:
            cycle = self.cycle
        wear = cycle / CYCLES_PER_WEAR_UNIT
        return max(self.rpm_floor, round(NOMINAL_RPM - wear * RPM_WEAR_LOSS))

    def step(self) -> DrillSample:
        """Advance one cycle and return the resulting sample."""
        self.cycle += 1
        wear = self.degradation_factor
        uniform = self.rng.uniform

        return DrillSample(
            temperature=round(
                BASE_TEMPERATURE_C
                + uniform(0.0, TEMPERATURE_SPREAD_C)
                + wear * TEMPERATURE_WEAR_GAIN,
                2,
            ),
            rpm=self.expected_rpm(),
            load=round(uniform(0.0, LOAD_SPREAD_A) + wear * LOAD_WEAR_GAIN, 2),
            vibration=round(
                uniform(0.0, VIBRATION_SPREAD) + wear * VIBRATION_WEAR_GAIN, 3
            ),
            depth=round(uniform(0.0, DEPTH_SPREAD_MM), 2),
        )
