"""
Parameter space definitions for the optimizers.

Parameters are a uniform mapping from name to numeric value. Axes (grid
search) and ranges (Monte Carlo) are validated when constructed, so a bad
parameter space fails before any simulation runs.
"""
import math
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

Number = Union[int, float]
Parameters = Dict[str, Number]


def _check_number(name: str, label: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Parameter '{name}': {label} must be numeric, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"Parameter '{name}': {label} must be finite, got {value!r}")


@dataclass(frozen=True)
class ParameterAxis:
    """One grid-search axis: an explicit, finite list of candidate values."""
    name: str
    values: Tuple[Number, ...]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Parameter axis name must not be empty")
        # Accept any sequence, store as tuple
        object.__setattr__(self, "values", tuple(self.values))
        if not self.values:
            raise ValueError(f"Parameter axis '{self.name}' has no values")
        for value in self.values:
            _check_number(self.name, "value", value)

    @classmethod
    def from_range(cls, name: str, minimum: Number, maximum: Number, step: Number) -> "ParameterAxis":
        """Expand a min/max/step triple into explicit values (inclusive of max when on the lattice)."""
        _check_number(name, "step", step)
        if step <= 0:
            raise ValueError(f"Parameter '{name}': step must be > 0, got {step}")
        if maximum < minimum:
            raise ValueError(f"Parameter '{name}': max ({maximum}) must be >= min ({minimum})")
        count = int(math.floor((maximum - minimum) / step + 1e-9)) + 1
        return cls(name=name, values=tuple(min(minimum + i * step, maximum) for i in range(count)))


@dataclass(frozen=True)
class ParameterRange:
    """Monte Carlo sampling range. With a step, draws land on min + k * step."""
    minimum: Number
    maximum: Number
    step: Optional[Number] = None

    def __post_init__(self):
        _check_number("range", "min", self.minimum)
        _check_number("range", "max", self.maximum)
        if self.maximum < self.minimum:
            raise ValueError(f"Range max ({self.maximum}) must be >= min ({self.minimum})")
        if self.step is not None:
            _check_number("range", "step", self.step)
            if self.step <= 0:
                raise ValueError(f"Range step must be > 0, got {self.step}")

    @property
    def step_count(self) -> int:
        """Number of lattice points in [min, max] (only meaningful with a step)."""
        if self.step is None:
            return 0
        return int(math.floor((self.maximum - self.minimum) / self.step + 1e-9)) + 1


def build_axes(space: Union[Mapping[str, Sequence[Number]], Sequence[ParameterAxis]]) -> Tuple[ParameterAxis, ...]:
    """Normalize {name: [values]} or a list of ParameterAxis into validated axes."""
    if isinstance(space, Mapping):
        return tuple(ParameterAxis(name=name, values=tuple(values)) for name, values in space.items())
    return tuple(space)


def build_ranges(space: Mapping[str, Union[ParameterRange, Mapping[str, Number]]]) -> Dict[str, ParameterRange]:
    """Normalize {name: {min, max, step?}} into validated ParameterRange objects."""
    ranges: Dict[str, ParameterRange] = {}
    for name, bounds in space.items():
        if isinstance(bounds, ParameterRange):
            ranges[name] = bounds
            continue
        if "min" not in bounds or "max" not in bounds:
            raise ValueError(f"Parameter '{name}': range needs 'min' and 'max', got {dict(bounds)}")
        ranges[name] = ParameterRange(
            minimum=bounds["min"],
            maximum=bounds["max"],
            step=bounds.get("step"),
        )
    return ranges
