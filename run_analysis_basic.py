import os
import json
import time
import argparse
from dataclasses import asdict

import osu_parser
import calc
from mods import Mods


def scan_files(target_dirs):
    """Generator that yields .osu file paths from target directories."""
    for root_dir in target_dirs:
        for root, dirs, files in os.walk(root_dir):
            for file in files:
                if os.path.splitext(file)[1].lower() == '.osu':
                    yield os.path.join(root, file)


def load_params(params_path):
    if not params_path:
        return {}
    try:
        with open(params_path, "r", encoding='utf-8') as f:
            params = json.load(f)
        print(f"Loaded params from {params_path}")
        return params
    except (OSError, json.JSONDecodeError) as e:
        print(f"Could not load {params_path}: {e}")
        return {}


def analyze_file(file_path, mods, passed_objects=None):
    parser = osu_parser.OsuParser(file_path)
    beatmap = parser.parse()

    attributes = calc.stars(beatmap, mods, passed_objects)
    strain_series = calc.strains(beatmap, mods)

    return {
        'file': os.path.basename(file_path),
        'title': parser.header.get('Title', 'Unknown'),
        'version': parser.header.get('Version', ''),
        'mods': str(int(mods)),
        'duration': parser.duration,
        'peak_strain': max(strain_series.strains) if strain_series.strains else 0.0,
        **asdict(attributes),
    }


def run_analysis(target_dirs, mods, output_path, passed_objects=None):
    print("Scanning files...")
    files = list(scan_files(target_dirs))
    print(f"Found {len(files)} files.")

    start_time = time.time()
    count = 0

    with open(output_path, "w", encoding="utf-8") as f_out:
        for i, file_path in enumerate(files):
            try:
                result = analyze_file(file_path, mods, passed_objects)
            except (OSError, ValueError) as e:
                print(f"Skipping {file_path}: {e}")
                continue

            f_out.write(json.dumps(result, ensure_ascii=False) + "\n")
            count += 1

            if i % 100 == 0:
                print(f"Processed {i}/{len(files)}...", flush=True)

    elapsed = time.time() - start_time
    print(f"Done. {count} maps written to {output_path} in {elapsed:.1f}s")
    return count


def main(argv=None):
    ap = argparse.ArgumentParser(description="Batch star rating analysis for osu!standard maps")
    ap.add_argument("dirs", nargs="+", help="Directories to scan for .osu files")
    ap.add_argument("--params", default=None, help="JSON file with mods / passed_objects / output")
    ap.add_argument("--mods", default=None, help="Mod acronyms, e.g. HDDT")
    ap.add_argument("--passed-objects", type=int, default=None)
    ap.add_argument("--output", default=None)
    args = ap.parse_args(argv)

    params = load_params(args.params)

    mods = Mods.from_string(args.mods if args.mods is not None else params.get('mods', ''))
    passed_objects = args.passed_objects if args.passed_objects is not None else params.get('passed_objects')
    output_path = args.output or params.get('output', 'analysis_results.jsonl')

    return run_analysis(args.dirs, mods, output_path, passed_objects)


if __name__ == "__main__":
    main()
