import numpy as np
import pytest

from beatmap import Beatmap, RawNote
from calc import calculate_skills
from difficulty_object import DifficultyObject
from osu_object import ObjectKind, OsuObject
from skills import Skill, SkillKind, SkillType, flashlight_strain_of, speed_strain_of


def pair(delta, dist=50.0, spinner=False):
    prev = OsuObject(0.0, (0.0, 0.0))
    kind = ObjectKind.SPINNER if spinner else ObjectKind.CIRCLE
    curr = OsuObject(delta, (dist, 0.0), kind)
    return DifficultyObject(curr, prev, None, None, 1.0)


def test_skill_kind_constants():
    aim = SkillKind.aim()
    speed = SkillKind.speed(50.0)
    flashlight = SkillKind.flashlight(1.5)

    assert aim.type is SkillType.AIM
    assert (aim.skill_multiplier, aim.strain_decay_base, aim.decay_weight) == (26.25, 0.15, 0.9)
    assert (speed.skill_multiplier, speed.strain_decay_base, speed.decay_weight) == (1400.0, 0.3, 0.9)
    assert (flashlight.skill_multiplier, flashlight.strain_decay_base, flashlight.decay_weight) == (0.15, 0.15, 1.0)
    assert speed.hit_window == 50.0
    assert flashlight.scaling_factor == 1.5


def test_speed_strain_grows_as_notes_get_closer():
    slow = speed_strain_of(pair(200.0), 50.0)
    fast = speed_strain_of(pair(133.0), 50.0)

    assert fast > slow > 0.0


def test_spinners_give_no_strain():
    h = pair(200.0, spinner=True)

    assert speed_strain_of(h, 50.0) == 0.0
    assert SkillKind.aim().strain_value_of(h) == 0.0
    assert flashlight_strain_of(h, [pair(100.0)], 1.0) == 0.0


def test_flashlight_needs_history():
    h = pair(200.0, dist=100.0)
    assert flashlight_strain_of(h, [], 1.0) == 0.0

    previous = pair(100.0, dist=30.0)
    assert flashlight_strain_of(h, [previous], 1.0) > 0.0


def test_flashlight_divides_by_newer_strain_time():
    # Previous pair spans 400ms, the current one 100ms
    previous = pair(400.0, dist=30.0)
    current = pair(100.0, dist=130.0)

    # jump 100 over the current strain time 100, no nerfs
    assert flashlight_strain_of(current, [previous], 1.0) == pytest.approx(1.0)


def test_flashlight_skips_spinners_but_keeps_their_strain_time():
    spinner = pair(300.0, spinner=True)
    older = pair(200.0, dist=30.0)
    current = pair(100.0, dist=130.0)

    # Only the second term counts, over the spinner pair's strain time
    expected = (0.8 * 100.0 / 300.0) ** 2
    assert flashlight_strain_of(current, [spinner, older], 1.0) == pytest.approx(expected)


def test_accumulator_uses_single_precision():
    skill = Skill(SkillKind.speed(50.0))
    skill.process(pair(150.0))
    skill.save_current_peak()

    assert isinstance(skill.current_strain, np.float32)
    assert isinstance(skill.strain_peaks[0], np.float32)
    assert isinstance(skill.difficulty_value(), np.float32)


def test_strain_decays_between_objects():
    skill = Skill(SkillKind.aim())
    h = pair(1000.0, dist=0.0)
    skill.process(h)

    # No movement: only the decayed initial strain remains
    assert skill.current_strain == pytest.approx(0.15)
    assert skill.current_section_peak == pytest.approx(1.0)
    assert skill.peak_strain(2000.0) == pytest.approx(0.15 * 0.15)
    assert len(skill.history) == 1


def test_peak_strain_before_any_object_is_zero():
    skill = Skill(SkillKind.speed(50.0))
    assert skill.peak_strain(400.0) == 0.0

    skill.start_new_section_from(400.0)
    assert skill.current_section_peak == 0.0


def test_history_is_bounded():
    skill = Skill(SkillKind.flashlight(1.0))
    for i in range(15):
        skill.process(pair(100.0 * (i + 1)))

    assert len(skill.history) == 10


def test_difficulty_value_weights_hardest_first():
    aim = Skill(SkillKind.aim())
    aim.strain_peaks = [1.0, 3.0, 2.0]
    assert aim.difficulty_value() == pytest.approx(3.0 + 2.0 * 0.9 + 1.0 * 0.81)

    flashlight = Skill(SkillKind.flashlight(1.0))
    flashlight.strain_peaks = [1.0, 3.0, 2.0]
    assert flashlight.difficulty_value() == pytest.approx(6.0)

    assert Skill(SkillKind.aim()).difficulty_value() == 0.0


def test_sections_cover_gaps():
    beatmap = Beatmap(hit_objects=[
        RawNote(time=100.0, pos=(100.0, 100.0)),
        RawNote(time=200.0, pos=(200.0, 100.0)),
        RawNote(time=300.0, pos=(300.0, 100.0)),
        RawNote(time=1900.0, pos=(400.0, 100.0)),
    ])
    run = calculate_skills(beatmap)

    assert len(run.skills) == 2
    for skill in run.skills:
        # Sections ending at 400, 800, 1200, 1600 plus the final one
        assert len(skill.strain_peaks) == 5
        # Empty sections only hold the decayed strain
        assert skill.strain_peaks[2] < skill.strain_peaks[0]
