"""
beatmap.py - osu!standard 맵 데이터 모델

Plain containers handed to the difficulty calculator. Whoever parses the
map (see osu_parser.py) fills these in; the calculator never mutates them.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Pos = Tuple[float, float]


class NoteKind(enum.Enum):
    CIRCLE = "circle"
    SLIDER = "slider"
    SPINNER = "spinner"


class PathType(enum.Enum):
    LINEAR = "L"
    PERFECT = "P"
    BEZIER = "B"
    CATMULL = "C"

    @classmethod
    def from_char(cls, char: str) -> "PathType":
        for path_type in cls:
            if path_type.value == char:
                return path_type
        return cls.BEZIER


@dataclass(frozen=True)
class RawNote:
    """
    A single hit object as it appears in the map.

    control_points are absolute playfield coordinates with the slider head
    as the first point. repeats is the number of reverse arrows, so a slider
    runs over repeats + 1 spans.
    """
    time: float
    pos: Pos
    kind: NoteKind = NoteKind.CIRCLE
    path_type: PathType = PathType.BEZIER
    control_points: Tuple[Pos, ...] = ()
    repeats: int = 0
    pixel_len: float = 0.0
    end_time: Optional[float] = None

    @property
    def is_circle(self) -> bool:
        return self.kind is NoteKind.CIRCLE

    @property
    def is_slider(self) -> bool:
        return self.kind is NoteKind.SLIDER

    @property
    def is_spinner(self) -> bool:
        return self.kind is NoteKind.SPINNER


@dataclass(frozen=True)
class TimingPoint:
    time: float
    beat_len: float


@dataclass(frozen=True)
class DifficultyPoint:
    time: float
    speed_multiplier: float = 1.0

    @classmethod
    def from_beat_len(cls, time: float, beat_len: float) -> "DifficultyPoint":
        # Inherited points store the slider velocity as -100 / multiplier
        multiplier = -100.0 / beat_len if beat_len < 0 else 1.0
        return cls(time, max(0.1, min(10.0, multiplier)))


@dataclass
class Beatmap:
    version: int = 14
    ar: float = 5.0
    od: float = 5.0
    cs: float = 5.0
    hp: float = 5.0
    slider_mult: float = 1.4
    tick_rate: float = 1.0
    stack_leniency: float = 0.7
    hit_objects: List[RawNote] = field(default_factory=list)
    timing_points: List[TimingPoint] = field(default_factory=list)
    difficulty_points: List[DifficultyPoint] = field(default_factory=list)
    header: dict = field(default_factory=dict)

    @property
    def n_circles(self) -> int:
        return sum(1 for h in self.hit_objects if h.is_circle)

    @property
    def n_sliders(self) -> int:
        return sum(1 for h in self.hit_objects if h.is_slider)

    @property
    def n_spinners(self) -> int:
        return sum(1 for h in self.hit_objects if h.is_spinner)
