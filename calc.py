"""
calc.py - osu!standard 스타 레이팅 계산 파이프라인

preprocess -> stacking -> difficulty objects -> skills -> star rating.

stars()   : DifficultyAttributes (aim / speed / flashlight ratings, stars)
strains() : combined strain per 400ms section, for difficulty-over-time graphs
"""

import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

import numpy as np

from constants import (
    DIFFICULTY_MULTIPLIER,
    FLASHLIGHT_PERFORMANCE_MULTIPLIER,
    MIN_BASE_PERFORMANCE,
    OBJECT_RADIUS,
    OD0_MS,
    OD_MS_STEP,
    PERFORMANCE_BASE_DIVISOR,
    PERFORMANCE_NORM_EXPONENT,
    SECTION_LEN,
    STACK_OFFSET_MULTIPLIER,
    STAR_RATING_MULTIPLIER,
    STAR_RATING_SCALE,
)
from difficulty_object import DifficultyObject
from mods import as_mods, difficulty_range_ar, hit_window as great_hit_window, map_attributes, raw_ar
from osu_object import circle_scale, preprocess, scaling_factor_for
from skills import Skill, SkillKind
from stacking import resolve_stacks


@dataclass(frozen=True)
class DifficultyAttributes:
    ar: float = 0.0
    hp: float = 0.0
    od: float = 0.0
    aim_strain: float = 0.0
    speed_strain: float = 0.0
    flashlight_rating: float = 0.0
    n_circles: int = 0
    n_sliders: int = 0
    n_spinners: int = 0
    stars: float = 0.0
    max_combo: int = 0


@dataclass(frozen=True)
class Strains:
    section_length: float = SECTION_LEN
    strains: List[float] = field(default_factory=list)


class SkillRun(NamedTuple):
    skills: List[Skill]
    max_combo: int
    n_objects: int


# ----------------------------
# 1. Object preparation
# ----------------------------
def prepare_objects(beatmap, mods, passed_objects=None):
    """
    Preprocess, stack, then move every object by its stack offset and
    scale its time by the clock rate.

    Returns (objects, scaling_factor, max_combo).
    """
    mods = as_mods(mods)
    attributes = map_attributes(beatmap, mods)

    time_preempt = difficulty_range_ar(raw_ar(beatmap, mods))
    scale = circle_scale(attributes.cs)
    radius = OBJECT_RADIUS * scale
    scaling_factor = scaling_factor_for(radius)

    hit_objects, max_combo = preprocess(beatmap, mods.hr(), radius, passed_objects)

    # Stacking runs on unscaled times and positions
    stack_threshold = time_preempt * beatmap.stack_leniency
    resolve_stacks(hit_objects, beatmap.version, stack_threshold)

    scale_factor = scale * STACK_OFFSET_MULTIPLIER
    for h in hit_objects:
        h.apply_stack_offset(h.stack_height * scale_factor)
        h.time /= attributes.clock_rate
        h.end_time /= attributes.clock_rate

    return hit_objects, scaling_factor, max_combo


def create_skills(mods, hit_window, scaling_factor):
    mods = as_mods(mods)
    skills = [Skill(SkillKind.aim()), Skill(SkillKind.speed(hit_window))]
    if mods.fl():
        skills.append(Skill(SkillKind.flashlight(scaling_factor)))
    return skills


# ----------------------------
# 2. Strain accumulation
# ----------------------------
def accumulate_strains(hit_objects, skills, scaling_factor):
    """
    Feed every consecutive pair to the skills, closing a section each time
    an object lies past the current section end. Requires >= 2 objects.
    """
    prev = hit_objects[0]
    prev_prev = None
    prev_vals = None

    # The first object has no strain of its own
    current_section_end = math.ceil(prev.time / SECTION_LEN) * SECTION_LEN

    for idx, curr in enumerate(hit_objects[1:]):
        h = DifficultyObject(curr, prev, prev_vals, prev_prev, scaling_factor)

        while h.base.time > current_section_end:
            for skill in skills:
                # Nothing has been processed before the second object
                if idx > 0:
                    skill.save_current_peak()
                skill.start_new_section_from(current_section_end)

            current_section_end += SECTION_LEN

        for skill in skills:
            skill.process(h)

        prev_prev = prev
        prev_vals = (h.jump_dist, h.strain_time)
        prev = curr

    for skill in skills:
        skill.save_current_peak()


def calculate_skills(beatmap, mods=0, passed_objects=None):
    """
    Run the whole pipeline up to the filled skills.
    Skills are [aim, speed] plus flashlight when FL is active; the list is
    empty when fewer than two playable objects remain.
    """
    mods = as_mods(mods)
    if passed_objects is not None:
        passed_objects = max(int(passed_objects), 0)

    hit_objects, scaling_factor, max_combo = prepare_objects(beatmap, mods, passed_objects)

    if len(hit_objects) < 2:
        return SkillRun([], max_combo, len(hit_objects))

    skills = create_skills(mods, great_hit_window(beatmap, mods), scaling_factor)
    accumulate_strains(hit_objects, skills, scaling_factor)

    return SkillRun(skills, max_combo, len(hit_objects))


# ----------------------------
# 3. Aggregation (single precision)
# ----------------------------
def skill_rating(skill):
    return np.sqrt(np.float32(skill.difficulty_value())) * np.float32(DIFFICULTY_MULTIPLIER)


def base_performance(rating):
    """Aim / speed rating -> base performance, never below 1 / 100000."""
    ratio = max(np.float32(1.0), np.float32(rating) / np.float32(DIFFICULTY_MULTIPLIER))
    base = np.float32(5.0) * ratio - np.float32(4.0)
    return base * base * base / np.float32(PERFORMANCE_BASE_DIVISOR)


def flashlight_base_performance(rating):
    rating = np.float32(rating)
    return rating * rating * np.float32(FLASHLIGHT_PERFORMANCE_MULTIPLIER)


def star_rating(base_aim, base_speed, base_flashlight=0.0):
    p = np.float32(PERFORMANCE_NORM_EXPONENT)
    combined = (np.float32(base_aim) ** p
                + np.float32(base_speed) ** p
                + np.float32(base_flashlight) ** p) ** (np.float32(1.0) / p)

    if not combined > np.float32(MIN_BASE_PERFORMANCE):
        return 0.0

    scale = np.cbrt(np.float32(STAR_RATING_SCALE)) * np.float32(STAR_RATING_MULTIPLIER)
    norm = np.float32(PERFORMANCE_BASE_DIVISOR) / np.exp2(np.float32(1.0) / p)
    return float(scale * (np.cbrt(norm * combined) + np.float32(4.0)))


def stars(beatmap, mods=0, passed_objects: Optional[int] = None) -> DifficultyAttributes:
    """
    Star rating and skill ratings of a map under the given mods.
    passed_objects limits the calculation to the first N notes (fails).
    """
    mods = as_mods(mods)
    attributes = map_attributes(beatmap, mods)
    hit_window = great_hit_window(beatmap, mods)
    od = (OD0_MS - hit_window) / OD_MS_STEP

    run = calculate_skills(beatmap, mods, passed_objects)

    if not run.skills:
        return DifficultyAttributes(ar=attributes.ar, hp=attributes.hp, od=od)

    aim_rating = skill_rating(run.skills[0])
    speed_rating = np.float32(0.0) if mods.rx() else skill_rating(run.skills[1])
    flashlight_rating = skill_rating(run.skills[2]) if len(run.skills) > 2 else np.float32(0.0)

    base_aim = base_performance(aim_rating)
    base_speed = base_performance(speed_rating)
    base_flashlight = flashlight_base_performance(flashlight_rating) if mods.fl() else np.float32(0.0)

    # Counts always describe the whole map, even for a partial play
    return DifficultyAttributes(
        ar=attributes.ar,
        hp=attributes.hp,
        od=od,
        aim_strain=float(aim_rating),
        speed_strain=float(speed_rating),
        flashlight_rating=float(flashlight_rating),
        n_circles=beatmap.n_circles,
        n_sliders=beatmap.n_sliders,
        n_spinners=beatmap.n_spinners,
        stars=star_rating(base_aim, base_speed, base_flashlight),
        max_combo=run.max_combo,
    )


def strains(beatmap, mods=0) -> Strains:
    """
    Same evaluation as stars(), but returns the summed section peaks of
    all active skills instead of reducing them. Suitable for plotting.
    """
    run = calculate_skills(beatmap, mods)

    if not run.skills:
        return Strains()

    combined = [float(sum(peaks)) for peaks in zip(*(skill.strain_peaks for skill in run.skills))]
    return Strains(section_length=SECTION_LEN, strains=combined)
