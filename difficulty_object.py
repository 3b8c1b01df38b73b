"""
difficulty_object.py - 연속된 노트 쌍의 난이도 지표

One DifficultyObject per consecutive pair of (stacked, rate-scaled)
objects: strain time, normalized jump / travel distance and the angle
formed with the object before the previous one.
"""

import math

from constants import MIN_DELTA_TIME


class DifficultyObject:
    __slots__ = ('base', 'prev', 'prev_prev', 'prev_vals', 'delta', 'strain_time',
                 'jump_dist', 'travel_dist', 'angle')

    def __init__(self, base, prev, prev_vals, prev_prev, scaling_factor):
        """
        base: current OsuObject, prev: the one before it.
        prev_vals: (jump_dist, strain_time) of the previous pair, or None.
        prev_prev: the object before prev, or None.
        """
        self.base = base
        self.prev = prev
        self.prev_prev = prev_prev
        self.prev_vals = prev_vals

        self.delta = base.time - prev.time
        # Same-timestamp objects would otherwise divide by zero
        self.strain_time = max(self.delta, MIN_DELTA_TIME)

        self.travel_dist = prev.travel_dist * scaling_factor

        prev_cursor = prev.lazy_end_pos

        if base.is_spinner():
            self.jump_dist = 0.0
        else:
            self.jump_dist = math.hypot(
                base.pos[0] * scaling_factor - prev_cursor[0] * scaling_factor,
                base.pos[1] * scaling_factor - prev_cursor[1] * scaling_factor,
            )

        self.angle = None
        if prev_prev is not None:
            prev_prev_cursor = prev_prev.lazy_end_pos

            v1 = (prev_prev_cursor[0] - prev.pos[0], prev_prev_cursor[1] - prev.pos[1])
            v2 = (base.pos[0] - prev_cursor[0], base.pos[1] - prev_cursor[1])

            dot = v1[0] * v2[0] + v1[1] * v2[1]
            det = v1[0] * v2[1] - v1[1] * v2[0]
            self.angle = abs(math.atan2(det, dot))

    def __repr__(self):
        return (f"DifficultyObject(time={self.base.time:.1f}, strain_time={self.strain_time:.1f}, "
                f"jump_dist={self.jump_dist:.2f}, travel_dist={self.travel_dist:.2f}, angle={self.angle})")
