"""
stacking.py - 스택 계산 (Stack Resolver)

Assigns stack_height to notes that overlap in time and position.
Maps with format version >= 6 use stacking(), older maps old_stacking().
Both work in unscaled time/position and mutate stack_height in place.
"""

import math

from constants import STACK_DISTANCE


def _distance(a, b):
    return math.hypot(a[0] - b[0], a[1] - b[1])


def stacking(hit_objects, stack_threshold):
    """
    Modern algorithm: walk candidates from the last object backwards and
    scan further back for objects that stack onto them.
    """
    if not hit_objects:
        return

    extended_start_idx = 0
    extended_end_idx = len(hit_objects) - 1

    for i in range(extended_end_idx, 0, -1):
        n = i
        obj_i_idx = i

        # Objects that already got a stack were handled by a later candidate
        if abs(hit_objects[obj_i_idx].stack_height) > 0.0 or hit_objects[obj_i_idx].is_spinner():
            continue

        if hit_objects[obj_i_idx].is_circle():
            # Either a stack of circles only, or circles underneath a slider end
            while n > 0:
                n -= 1

                if hit_objects[n].is_spinner():
                    continue
                if hit_objects[obj_i_idx].time - hit_objects[n].end_time > stack_threshold:
                    break

                # Objects before the update range haven't been reset yet
                if n < extended_start_idx:
                    hit_objects[n].stack_height = 0.0
                    extended_start_idx = n

                # Circles under the end of the last slider of a stack move down-right
                if hit_objects[n].is_slider() \
                        and _distance(hit_objects[n].end_pos, hit_objects[obj_i_idx].pos) < STACK_DISTANCE:
                    offset = hit_objects[obj_i_idx].stack_height - hit_objects[n].stack_height + 1.0

                    for j in range(n + 1, i + 1):
                        # hit_objects[n] is read again for every j
                        if _distance(hit_objects[n].end_pos, hit_objects[j].pos) < STACK_DISTANCE:
                            hit_objects[j].stack_height -= offset

                    # The slider keeps stack 0 and is handled by the outer loop later
                    break

                if _distance(hit_objects[n].pos, hit_objects[obj_i_idx].pos) < STACK_DISTANCE:
                    hit_objects[n].stack_height = hit_objects[obj_i_idx].stack_height + 1.0
                    obj_i_idx = n

        elif hit_objects[obj_i_idx].is_slider():
            # First slider of a possible stack: always stack positive from here
            while n > 0:
                n -= 1

                if hit_objects[n].is_spinner():
                    continue
                if hit_objects[obj_i_idx].time - hit_objects[n].time > stack_threshold:
                    break

                if _distance(hit_objects[n].end_pos, hit_objects[obj_i_idx].pos) < STACK_DISTANCE:
                    hit_objects[n].stack_height = hit_objects[obj_i_idx].stack_height + 1.0
                    obj_i_idx = n


def old_stacking(hit_objects, stack_threshold):
    """
    Legacy algorithm (format version < 6): single forward pass, the earlier
    object of a stack collects the height.
    """
    for i in range(len(hit_objects)):
        if hit_objects[i].stack_height != 0.0 and not hit_objects[i].is_slider():
            continue

        start_time = hit_objects[i].end_time
        end_pos = hit_objects[i].end_pos
        slider_stack = 0.0

        for j in range(i + 1, len(hit_objects)):
            if hit_objects[j].time - stack_threshold > start_time:
                break

            if _distance(hit_objects[j].pos, hit_objects[i].pos) < STACK_DISTANCE:
                hit_objects[i].stack_height += 1.0
                start_time = hit_objects[j].end_time
            elif _distance(hit_objects[j].pos, end_pos) < STACK_DISTANCE:
                # Sliders stacking underneath get increasingly negative offsets
                slider_stack += 1.0
                hit_objects[j].stack_height -= slider_stack
                start_time = hit_objects[j].end_time


def resolve_stacks(hit_objects, version, stack_threshold):
    if version >= 6:
        stacking(hit_objects, stack_threshold)
    else:
        old_stacking(hit_objects, stack_threshold)
