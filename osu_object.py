"""
osu_object.py - 노트 전처리 (Geometry Preprocessor)

Turns RawNote records into OsuObject instances: HR position flip, slider
duration / end position / nested ticks, max combo, and the lazy cursor
path used for slider travel distance.
"""

import enum
import math
from bisect import bisect_right

import numpy as np

from constants import (
    BASE_SCORING_DISTANCE,
    FOLLOW_CIRCLE_RADIUS_MULTIPLIER,
    LEGACY_LAST_TICK_OFFSET,
    MAX_SLIDER_LENGTH,
    NORMALIZED_RADIUS,
    PLAYFIELD_HEIGHT,
    SMALL_CIRCLE_RADIUS,
)
from slider_path import SliderPath


class ObjectKind(enum.Enum):
    CIRCLE = 0
    SLIDER = 1
    SPINNER = 2


class OsuObject:
    """
    Normalized hit object. stack_height is written by the stacking pass
    only; positions and times are scaled once afterwards.
    """
    __slots__ = ('time', 'end_time', 'pos', 'end_pos', 'lazy_end_pos',
                 'travel_dist', 'stack_height', 'kind')

    def __init__(self, time, pos, kind=ObjectKind.CIRCLE, end_time=None,
                 end_pos=None, lazy_end_pos=None, travel_dist=0.0):
        self.time = float(time)
        self.end_time = float(end_time) if end_time is not None else self.time
        self.pos = (float(pos[0]), float(pos[1]))
        self.end_pos = end_pos if end_pos is not None else self.pos
        self.lazy_end_pos = lazy_end_pos if lazy_end_pos is not None else self.end_pos
        self.travel_dist = travel_dist
        self.stack_height = 0.0
        self.kind = kind

    def is_circle(self):
        return self.kind is ObjectKind.CIRCLE

    def is_slider(self):
        return self.kind is ObjectKind.SLIDER

    def is_spinner(self):
        return self.kind is ObjectKind.SPINNER

    def apply_stack_offset(self, offset):
        # Same offset on both axes
        self.pos = (self.pos[0] + offset, self.pos[1] + offset)
        self.end_pos = (self.end_pos[0] + offset, self.end_pos[1] + offset)
        self.lazy_end_pos = (self.lazy_end_pos[0] + offset, self.lazy_end_pos[1] + offset)

    def __repr__(self):
        return (f"OsuObject({self.kind.name}, time={self.time:.1f}, pos={self.pos}, "
                f"stack_height={self.stack_height})")


# ----------------------------
# 1. Circle geometry
# ----------------------------
def circle_scale(cs):
    # CS outside 0~10 would give a non-positive radius
    cs = min(max(cs, 0.0), 10.0)
    return (1.0 - 0.7 * (cs - 5.0) / 5.0) / 2.0


def scaling_factor_for(radius):
    scaling_factor = NORMALIZED_RADIUS / radius

    if radius < SMALL_CIRCLE_RADIUS:
        small_circle_bonus = min(SMALL_CIRCLE_RADIUS - radius, 5.0) / 50.0
        scaling_factor *= 1.0 + small_circle_bonus

    return scaling_factor


# ----------------------------
# 2. Timing lookup for sliders
# ----------------------------
class SliderState:
    """Active beat length and slider velocity at a given time."""

    def __init__(self, beatmap):
        self.timing_points = sorted(beatmap.timing_points, key=lambda tp: tp.time)
        self.difficulty_points = sorted(beatmap.difficulty_points, key=lambda dp: dp.time)
        self._timing_times = [tp.time for tp in self.timing_points]
        self._difficulty_times = [dp.time for dp in self.difficulty_points]

    def timing_at(self, time):
        """Returns (beat_len, speed_multiplier)."""
        if self.timing_points:
            idx = bisect_right(self._timing_times, time) - 1
            beat_len = self.timing_points[max(idx, 0)].beat_len
        else:
            beat_len = 1000.0

        speed_multiplier = 1.0
        idx = bisect_right(self._difficulty_times, time) - 1
        if idx >= 0:
            speed_multiplier = self.difficulty_points[idx].speed_multiplier

        return beat_len, speed_multiplier


# ----------------------------
# 3. Slider nested events
# ----------------------------
def slider_nested_events(start_time, span_count, span_duration, length, tick_distance, velocity):
    """
    Ticks, repeats and the legacy last tick of a slider, as
    (kind, time, path_progress) tuples in generation order.
    kind is one of 'tick', 'repeat', 'tail'.
    """
    events = []
    length = min(MAX_SLIDER_LENGTH, length)
    tick_distance = min(max(tick_distance, 0.0), length)
    min_distance_from_end = velocity * 10.0

    for span in range(span_count):
        span_start_time = start_time + span * span_duration
        reversed_span = span % 2 == 1

        ticks = []
        if tick_distance > 0.0:
            d = tick_distance
            while d <= length:
                if d >= length - min_distance_from_end:
                    break

                path_progress = d / length
                time_progress = 1.0 - path_progress if reversed_span else path_progress
                ticks.append(('tick', span_start_time + time_progress * span_duration, path_progress))
                d += tick_distance

        if reversed_span:
            ticks.reverse()
        events.extend(ticks)

        if span < span_count - 1:
            events.append(('repeat', span_start_time + span_duration, float((span + 1) % 2)))

    total_duration = span_count * span_duration
    final_span_start = start_time + (span_count - 1) * span_duration
    final_span_end = max(start_time + total_duration / 2.0,
                         final_span_start + span_duration - LEGACY_LAST_TICK_OFFSET)
    final_progress = (final_span_end - final_span_start) / span_duration if span_duration > 0 else 1.0
    if span_count % 2 == 0:
        final_progress = 1.0 - final_progress
    events.append(('tail', final_span_end, final_progress))

    return events


def _lazy_cursor(head, path, start_time, span_duration, scoring_times, radius):
    """
    Where a lazy cursor ends up when it only moves as far as needed to stay
    inside the follow circle at every scoring time, and how far it moved.
    """
    follow_radius = radius * FOLLOW_CIRCLE_RADIUS_MULTIPLIER
    lazy_end = np.asarray(head, dtype=float)
    travel_dist = 0.0

    for time in scoring_times:
        progress = (time - start_time) / span_duration if span_duration > 0 else 0.0
        if progress % 2.0 >= 1.0:
            progress = 1.0 - progress % 1.0
        else:
            progress %= 1.0

        diff = np.asarray(head, dtype=float) + path.position_at(progress) - lazy_end
        dist = float(np.hypot(*diff))

        if dist > follow_radius:
            diff = diff / dist
            dist -= follow_radius
            lazy_end = lazy_end + diff * dist
            travel_dist += dist

    return (float(lazy_end[0]), float(lazy_end[1])), travel_dist


# ----------------------------
# 4. RawNote -> OsuObject
# ----------------------------
class ObjectParameters:
    """Per-map state shared while converting notes."""

    def __init__(self, beatmap, radius, hr):
        self.beatmap = beatmap
        self.radius = radius
        self.hr = hr
        self.max_combo = 0
        self.slider_state = SliderState(beatmap)


def _flip(pos, hr):
    if hr:
        return (float(pos[0]), PLAYFIELD_HEIGHT - float(pos[1]))
    return (float(pos[0]), float(pos[1]))


def _convert_slider(note, params):
    beatmap = params.beatmap
    head = _flip(note.pos, params.hr)

    points = note.control_points or (note.pos,)
    if tuple(points[0]) != tuple(note.pos):
        points = (note.pos,) + tuple(points)
    relative = [(p[0] - head[0], p[1] - head[1])
                for p in (_flip(p, params.hr) for p in points)]

    if len(relative) < 2 or not (note.pixel_len > 0.0) or not math.isfinite(note.pixel_len):
        return None

    path = SliderPath(note.path_type, relative, note.pixel_len)
    if not path.is_valid:
        return None

    beat_len, speed_multiplier = params.slider_state.timing_at(note.time)
    if not (beat_len > 0.0):
        return None

    span_count = max(int(note.repeats), 0) + 1
    scoring_dist = BASE_SCORING_DISTANCE * beatmap.slider_mult * speed_multiplier
    velocity = scoring_dist / beat_len
    if not (velocity > 0.0):
        return None

    span_duration = path.distance / velocity
    end_time = note.time + span_duration * span_count

    tick_dist_multiplier = 1.0 / speed_multiplier if beatmap.version < 8 else 1.0
    tick_distance = scoring_dist / beatmap.tick_rate * tick_dist_multiplier if beatmap.tick_rate > 0 else 0.0

    events = slider_nested_events(note.time, span_count, span_duration,
                                  path.distance, tick_distance, velocity)

    # Head + ticks + repeats + tail
    params.max_combo += 1 + len(events)

    end_offset = path.position_at(0.0 if span_count % 2 == 0 else 1.0)
    end_pos = (head[0] + float(end_offset[0]), head[1] + float(end_offset[1]))

    scoring_times = sorted(time for _, time, _ in events)
    lazy_end_pos, travel_dist = _lazy_cursor(head, path, note.time, span_duration,
                                             scoring_times, params.radius)

    return OsuObject(note.time, head, ObjectKind.SLIDER, end_time=end_time,
                     end_pos=end_pos, lazy_end_pos=lazy_end_pos, travel_dist=travel_dist)


def convert_note(note, params):
    """
    RawNote -> OsuObject, or None for notes that should be dropped
    (degenerate sliders). Dropped notes give no combo.
    """
    if not math.isfinite(note.time):
        return None

    if note.is_slider:
        return _convert_slider(note, params)

    pos = _flip(note.pos, params.hr)

    if note.is_spinner:
        end_time = note.end_time if note.end_time is not None else note.time
        params.max_combo += 1
        return OsuObject(note.time, pos, ObjectKind.SPINNER, end_time=max(end_time, note.time))

    params.max_combo += 1
    return OsuObject(note.time, pos, ObjectKind.CIRCLE)


def preprocess(beatmap, hr, radius, passed_objects=None):
    """
    Convert the first passed_objects notes (all when None).
    Returns (objects, max_combo).
    """
    take = len(beatmap.hit_objects) if passed_objects is None else passed_objects
    params = ObjectParameters(beatmap, radius, hr)

    objects = []
    for note in beatmap.hit_objects[:take]:
        obj = convert_note(note, params)
        if obj is not None:
            objects.append(obj)

    return objects, params.max_combo
