"""
skills.py - 스킬별 Strain 누적기 (Aim / Speed / Flashlight)

Each Skill keeps an exponentially decaying strain, updated once per
DifficultyObject, and records the peak strain of every 400ms section.
"""

import enum
import math
from collections import deque
from dataclasses import dataclass

import numpy as np

from constants import (
    AIM_ANGLE_BONUS_BEGIN, AIM_ANGLE_BONUS_FACTOR, AIM_ANGLE_BONUS_SCALE,
    AIM_DECAY_WEIGHT, AIM_DIMINISHING_EXPONENT, AIM_SKILL_MULTIPLIER,
    AIM_STRAIN_DECAY_BASE, AIM_TIMING_THRESHOLD,
    FLASHLIGHT_DECAY_WEIGHT, FLASHLIGHT_HISTORY_LENGTH,
    FLASHLIGHT_SKILL_MULTIPLIER, FLASHLIGHT_STRAIN_DECAY_BASE,
    MIN_SPEED_BONUS, SINGLE_SPACING_THRESHOLD, SPEED_ANGLE_BONUS_BEGIN,
    SPEED_BALANCING_FACTOR, SPEED_DECAY_WEIGHT, SPEED_SKILL_MULTIPLIER,
    SPEED_STRAIN_DECAY_BASE,
)


class SkillType(enum.Enum):
    AIM = "aim"
    SPEED = "speed"
    FLASHLIGHT = "flashlight"


def _apply_diminishing_exp(val):
    return val ** AIM_DIMINISHING_EXPONENT


def _lerp(start, end, amount):
    return start + (end - start) * amount


# ----------------------------
# 1. Per-kind strain formulas
# ----------------------------
def aim_strain_of(current):
    if current.base.is_spinner():
        return 0.0

    result = 0.0

    if current.prev_vals is not None and current.angle is not None \
            and current.angle > AIM_ANGLE_BONUS_BEGIN:
        prev_jump_dist, prev_strain_time = current.prev_vals
        scale = AIM_ANGLE_BONUS_SCALE

        angle_bonus = math.sqrt(
            max(prev_jump_dist - scale, 0.0)
            * math.sin(current.angle - AIM_ANGLE_BONUS_BEGIN) ** 2
            * max(current.jump_dist - scale, 0.0)
        )
        result = AIM_ANGLE_BONUS_FACTOR * _apply_diminishing_exp(max(angle_bonus, 0.0)) \
            / max(AIM_TIMING_THRESHOLD, prev_strain_time)

    jump_dist_exp = _apply_diminishing_exp(current.jump_dist)
    travel_dist_exp = _apply_diminishing_exp(current.travel_dist)
    dist = jump_dist_exp + travel_dist_exp + math.sqrt(travel_dist_exp * jump_dist_exp)

    return max(
        result + dist / max(current.strain_time, AIM_TIMING_THRESHOLD),
        dist / current.strain_time,
    )


def speed_strain_of(current, hit_window):
    if current.base.is_spinner():
        return 0.0

    dist = min(SINGLE_SPACING_THRESHOLD, current.travel_dist + current.jump_dist)
    strain_time = current.strain_time

    great_window_full = hit_window * 2.0
    speed_window_ratio = strain_time / great_window_full

    # Nerf very fast doubles separated by long gaps
    if current.prev_vals is not None:
        _, prev_strain_time = current.prev_vals
        if strain_time < great_window_full and prev_strain_time > strain_time:
            strain_time = _lerp(prev_strain_time, strain_time, speed_window_ratio)

    # Cap the delta time to the great hit window
    strain_time /= min(max((strain_time / great_window_full) / 0.93, 0.92), 1.0)

    speed_bonus = 1.0
    if strain_time < MIN_SPEED_BONUS:
        speed_bonus += ((MIN_SPEED_BONUS - strain_time) / SPEED_BALANCING_FACTOR) ** 2

    angle_bonus = 1.0
    angle = current.angle
    if angle is not None and angle < SPEED_ANGLE_BONUS_BEGIN:
        angle_bonus = 1.0 + math.sin(1.5 * (SPEED_ANGLE_BONUS_BEGIN - angle)) ** 2 / 3.57

        if angle < math.pi / 2.0:
            angle_bonus = 1.28

            if dist < 90.0 and angle < math.pi / 4.0:
                angle_bonus += (1.0 - angle_bonus) * min((90.0 - dist) / 10.0, 1.0)
            elif dist < 90.0:
                angle_bonus += (1.0 - angle_bonus) * min((90.0 - dist) / 10.0, 1.0) \
                    * math.sin((math.pi / 2.0 - angle) / (math.pi / 4.0))

    return (1.0 + (speed_bonus - 1.0) * 0.75) * angle_bonus \
        * (0.95 + speed_bonus * (dist / SINGLE_SPACING_THRESHOLD) ** 3.5) / strain_time


def flashlight_strain_of(current, history, scaling_factor):
    """
    history: previous DifficultyObjects, most recent first.
    """
    if current.base.is_spinner():
        return 0.0

    small_dist_nerf = 1.0
    cumulative_strain_time = 0.0
    result = 0.0

    # Strain time of the object one step newer than the one being measured
    last_strain_time = current.strain_time

    for i, previous in enumerate(history):
        if not previous.base.is_spinner():
            jump_dist = math.hypot(current.base.pos[0] - previous.base.end_pos[0],
                                   current.base.pos[1] - previous.base.end_pos[1])
            cumulative_strain_time += last_strain_time

            # Stacked notes shouldn't count as a jump
            if i == 0:
                small_dist_nerf = min(1.0, jump_dist / 75.0)

            stack_nerf = min(1.0, (previous.jump_dist / scaling_factor) / 25.0)

            result += 0.8 ** i * stack_nerf * scaling_factor * jump_dist / cumulative_strain_time

        last_strain_time = previous.strain_time

    return (small_dist_nerf * result) ** 2


# ----------------------------
# 2. Skill kinds
# ----------------------------
@dataclass(frozen=True)
class SkillKind:
    """
    Closed set of skills: Aim, Speed(hit_window), Flashlight(scaling_factor).
    Build through SkillKind.aim() / .speed() / .flashlight().
    """
    type: SkillType
    hit_window: float = 0.0
    scaling_factor: float = 1.0

    @classmethod
    def aim(cls):
        return cls(SkillType.AIM)

    @classmethod
    def speed(cls, hit_window):
        return cls(SkillType.SPEED, hit_window=hit_window)

    @classmethod
    def flashlight(cls, scaling_factor):
        return cls(SkillType.FLASHLIGHT, scaling_factor=scaling_factor)

    @property
    def skill_multiplier(self):
        return {
            SkillType.AIM: AIM_SKILL_MULTIPLIER,
            SkillType.SPEED: SPEED_SKILL_MULTIPLIER,
            SkillType.FLASHLIGHT: FLASHLIGHT_SKILL_MULTIPLIER,
        }[self.type]

    @property
    def strain_decay_base(self):
        return {
            SkillType.AIM: AIM_STRAIN_DECAY_BASE,
            SkillType.SPEED: SPEED_STRAIN_DECAY_BASE,
            SkillType.FLASHLIGHT: FLASHLIGHT_STRAIN_DECAY_BASE,
        }[self.type]

    @property
    def decay_weight(self):
        return {
            SkillType.AIM: AIM_DECAY_WEIGHT,
            SkillType.SPEED: SPEED_DECAY_WEIGHT,
            SkillType.FLASHLIGHT: FLASHLIGHT_DECAY_WEIGHT,
        }[self.type]

    def strain_value_of(self, current, history=()):
        if self.type is SkillType.AIM:
            return aim_strain_of(current)
        if self.type is SkillType.SPEED:
            return speed_strain_of(current, self.hit_window)
        return flashlight_strain_of(current, history, self.scaling_factor)


# ----------------------------
# 3. Strain accumulator
# ----------------------------
class Skill:
    """
    Strain accumulator. Strains, peaks and the difficulty value are kept in
    single precision (np.float32).
    """

    def __init__(self, kind):
        self.kind = kind
        self.current_strain = np.float32(1.0)
        self.current_section_peak = np.float32(1.0)
        self.strain_peaks = []
        self.prev_time = None
        self.history = deque(maxlen=FLASHLIGHT_HISTORY_LENGTH)

    def strain_decay(self, ms):
        return np.float32(self.kind.strain_decay_base) ** (np.float32(ms) / np.float32(1000.0))

    def process(self, current):
        strain = np.float32(self.kind.strain_value_of(current, self.history))

        self.current_strain *= self.strain_decay(current.delta)
        self.current_strain += strain * np.float32(self.kind.skill_multiplier)
        self.current_section_peak = max(self.current_strain, self.current_section_peak)

        self.prev_time = current.base.time
        self.history.appendleft(current)

    def save_current_peak(self):
        self.strain_peaks.append(self.current_section_peak)

    def start_new_section_from(self, time):
        # The new section's peak starts from the strain decayed up to the boundary
        self.current_section_peak = self.peak_strain(time)

    def peak_strain(self, time):
        if self.prev_time is None:
            return np.float32(0.0)
        return self.current_strain * self.strain_decay(time - self.prev_time)

    def difficulty_value(self):
        """
        Weighted sum of the section peaks, hardest first; each rank is
        weighted decay_weight times less than the one before.
        """
        difficulty = np.float32(0.0)
        weight = np.float32(1.0)
        decay_weight = np.float32(self.kind.decay_weight)

        for peak in np.sort(np.asarray(self.strain_peaks, dtype=np.float32))[::-1]:
            difficulty += peak * weight
            weight *= decay_weight

        return difficulty
