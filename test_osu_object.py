import pytest

from beatmap import Beatmap, NoteKind, PathType, RawNote, TimingPoint, DifficultyPoint
from osu_object import (
    ObjectKind, OsuObject, SliderState, circle_scale, preprocess,
    scaling_factor_for, slider_nested_events,
)

# cs 4 -> scale 0.57
RADIUS = 64.0 * 0.57


def straight_slider(time=1000.0, repeats=0, pixel_len=200.0):
    return RawNote(
        time=time,
        pos=(100.0, 100.0),
        kind=NoteKind.SLIDER,
        path_type=PathType.LINEAR,
        control_points=((100.0, 100.0), (300.0, 100.0)),
        repeats=repeats,
        pixel_len=pixel_len,
    )


def slider_map(*notes):
    return Beatmap(cs=4.0, slider_mult=1.0, tick_rate=1.0,
                   hit_objects=list(notes), timing_points=[TimingPoint(0.0, 500.0)])


def test_circle_scale_and_scaling_factor():
    assert circle_scale(4.0) == pytest.approx(0.57)
    assert circle_scale(5.0) == pytest.approx(0.5)
    # Out of range CS is clamped
    assert circle_scale(12.0) == pytest.approx(circle_scale(10.0))
    assert circle_scale(-3.0) == pytest.approx(circle_scale(0.0))

    assert scaling_factor_for(32.0) == pytest.approx(52.0 / 32.0)
    # Small circle bonus is capped at 5 px
    assert scaling_factor_for(20.0) == pytest.approx(52.0 / 20.0 * 1.1)


def test_slider_state_timing_lookup():
    beatmap = Beatmap(timing_points=[TimingPoint(0.0, 500.0), TimingPoint(2000.0, 300.0)],
                      difficulty_points=[DifficultyPoint(1000.0, 2.0)])
    state = SliderState(beatmap)

    assert state.timing_at(500.0) == (500.0, 1.0)
    assert state.timing_at(1500.0) == (500.0, 2.0)
    assert state.timing_at(2500.0) == (300.0, 2.0)
    # Before the first timing point the first one applies
    assert state.timing_at(-100.0) == (500.0, 1.0)

    assert SliderState(Beatmap()).timing_at(0.0) == (1000.0, 1.0)


def test_nested_events_single_span():
    events = slider_nested_events(1000.0, 1, 1000.0, 200.0, 100.0, 0.2)

    assert [kind for kind, _, _ in events] == ['tick', 'tail']
    assert events[0][1] == pytest.approx(1500.0)
    assert events[1][1] == pytest.approx(1964.0)
    assert events[1][2] == pytest.approx(0.964)


def test_nested_events_with_repeat():
    events = slider_nested_events(1000.0, 2, 1000.0, 200.0, 100.0, 0.2)

    assert [kind for kind, _, _ in events] == ['tick', 'repeat', 'tick', 'tail']
    assert [time for _, time, _ in events] == pytest.approx([1500.0, 2000.0, 2500.0, 2964.0])
    # Tail of an even span count sits near the head
    assert events[-1][2] == pytest.approx(0.036)


def test_circle_and_spinner_combo():
    beatmap = Beatmap(hit_objects=[
        RawNote(time=0.0, pos=(10.0, 20.0)),
        RawNote(time=500.0, pos=(256.0, 192.0), kind=NoteKind.SPINNER, end_time=1500.0),
    ])
    objects, max_combo = preprocess(beatmap, False, RADIUS)

    assert max_combo == 2
    assert objects[0].is_circle()
    assert objects[1].is_spinner()
    assert objects[1].end_time == 1500.0


def test_hard_rock_flips_y():
    beatmap = Beatmap(hit_objects=[RawNote(time=0.0, pos=(100.0, 100.0))])

    objects, _ = preprocess(beatmap, True, RADIUS)
    assert objects[0].pos == (100.0, 284.0)

    objects, _ = preprocess(beatmap, False, RADIUS)
    assert objects[0].pos == (100.0, 100.0)


def test_slider_end_and_combo():
    objects, max_combo = preprocess(slider_map(straight_slider()), False, RADIUS)

    slider = objects[0]
    assert slider.is_slider()
    assert slider.end_time == pytest.approx(2000.0)
    assert slider.end_pos == pytest.approx((300.0, 100.0))
    # head + 1 tick + tail
    assert max_combo == 3


def test_slider_with_repeat_ends_at_head():
    objects, max_combo = preprocess(slider_map(straight_slider(repeats=1)), False, RADIUS)

    slider = objects[0]
    assert slider.end_time == pytest.approx(3000.0)
    assert slider.end_pos == pytest.approx((100.0, 100.0))
    # head + 2 ticks + repeat + tail
    assert max_combo == 5


def test_slider_lazy_travel_distance():
    objects, _ = preprocess(slider_map(straight_slider()), False, RADIUS)
    slider = objects[0]

    follow_radius = RADIUS * 3.0
    expected_travel = 192.8 - follow_radius

    assert slider.travel_dist == pytest.approx(expected_travel, abs=1e-6)
    assert slider.lazy_end_pos[0] == pytest.approx(100.0 + expected_travel, abs=1e-6)
    assert slider.lazy_end_pos[1] == pytest.approx(100.0)


def test_hard_rock_flips_slider_path():
    slider = RawNote(time=0.0, pos=(100.0, 100.0), kind=NoteKind.SLIDER, path_type=PathType.LINEAR,
                     control_points=((100.0, 100.0), (100.0, 300.0)), pixel_len=200.0)
    objects, _ = preprocess(slider_map(slider), True, RADIUS)

    assert objects[0].pos == (100.0, 284.0)
    assert objects[0].end_pos == pytest.approx((100.0, 84.0))


def test_invalid_slider_is_dropped():
    beatmap = slider_map(
        RawNote(time=0.0, pos=(10.0, 10.0)),
        straight_slider(time=500.0, pixel_len=0.0),
    )
    objects, max_combo = preprocess(beatmap, False, RADIUS)

    assert len(objects) == 1
    assert max_combo == 1


def test_passed_objects_limits_notes():
    beatmap = Beatmap(hit_objects=[RawNote(time=float(t), pos=(t / 10.0, 0.0)) for t in range(0, 1000, 100)])
    objects, max_combo = preprocess(beatmap, False, RADIUS, passed_objects=4)

    assert len(objects) == 4
    assert max_combo == 4


def test_stack_offset_moves_all_positions():
    obj = OsuObject(0.0, (100.0, 100.0), ObjectKind.SLIDER, end_time=500.0,
                    end_pos=(200.0, 100.0), lazy_end_pos=(180.0, 100.0))
    obj.apply_stack_offset(-3.2)

    assert obj.pos == pytest.approx((96.8, 96.8))
    assert obj.end_pos == pytest.approx((196.8, 96.8))
    assert obj.lazy_end_pos == pytest.approx((176.8, 96.8))
