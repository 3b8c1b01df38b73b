import json

import run_analysis_basic

MAP_TEXT = """osu file format v14

[General]
Mode: 0

[Metadata]
Title:Batch Song

[Difficulty]
OverallDifficulty:7
ApproachRate:9

[TimingPoints]
0,400,4,2,0,100,1,0

[HitObjects]
100,100,1000,1,0,0:0:0:0:
400,100,1300,1,0,0:0:0:0:
250,300,1600,1,0,0:0:0:0:
100,100,1900,1,0,0:0:0:0:
"""


def write_maps(tmp_path):
    maps_dir = tmp_path / "maps"
    (maps_dir / "sub").mkdir(parents=True)
    (maps_dir / "a.osu").write_text(MAP_TEXT, encoding="utf-8")
    (maps_dir / "sub" / "b.OSU").write_text(MAP_TEXT, encoding="utf-8")
    (maps_dir / "taiko.osu").write_text(MAP_TEXT.replace("Mode: 0", "Mode: 1"), encoding="utf-8")
    (maps_dir / "notes.txt").write_text("not a map", encoding="utf-8")
    return maps_dir


def test_scan_files_finds_osu_only(tmp_path):
    maps_dir = write_maps(tmp_path)
    found = sorted(p.replace("\\", "/").split("/maps/")[1] for p in run_analysis_basic.scan_files([str(maps_dir)]))

    assert found == ["a.osu", "sub/b.OSU", "taiko.osu"]


def test_main_writes_jsonl(tmp_path):
    maps_dir = write_maps(tmp_path)
    output = tmp_path / "out.jsonl"

    count = run_analysis_basic.main([str(maps_dir), "--mods", "HR", "--output", str(output)])

    # The taiko map is skipped
    assert count == 2
    rows = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert len(rows) == 2
    for row in rows:
        assert row['title'] == 'Batch Song'
        assert row['mods'] == '16'
        assert row['stars'] > 0.0
        assert row['n_circles'] == 4
        assert row['peak_strain'] > 0.0


def test_params_file_supplies_defaults(tmp_path):
    maps_dir = write_maps(tmp_path)
    output = tmp_path / "params_out.jsonl"
    params = tmp_path / "params.json"
    params.write_text(json.dumps({"mods": "DT", "passed_objects": 2, "output": str(output)}), encoding="utf-8")

    count = run_analysis_basic.main([str(maps_dir), "--params", str(params)])

    assert count == 2
    row = json.loads(output.read_text(encoding="utf-8").splitlines()[0])
    assert row['mods'] == '64'
    assert row['n_circles'] == 4
    assert row['max_combo'] == 2


def test_missing_params_file_is_ignored(tmp_path):
    assert run_analysis_basic.load_params(str(tmp_path / "missing.json")) == {}
    assert run_analysis_basic.load_params(None) == {}
