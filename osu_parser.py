from beatmap import Beatmap, DifficultyPoint, NoteKind, PathType, RawNote, TimingPoint


class OsuParser:
    def __init__(self, file_path):
        self.file_path = file_path
        self.header = {}
        self.beatmap = Beatmap()
        self.duration = 0.0

    def parse(self):
        with open(self.file_path, 'r', encoding='utf-8-sig', errors='ignore') as f:
            lines = f.readlines()

        return self.parse_lines(lines)

    def parse_lines(self, lines):
        beatmap = Beatmap()
        self.beatmap = beatmap

        section = None
        ar_found = False

        for line in lines:
            line = line.strip()
            if not line or line.startswith('//'):
                continue

            if line.startswith('osu file format v'):
                try:
                    beatmap.version = int(line[len('osu file format v'):].strip())
                except ValueError:
                    pass
                continue

            if line.startswith('[') and line.endswith(']'):
                section = line[1:-1]
                continue

            if section in ('General', 'Metadata'):
                if ':' in line:
                    key, val = line.split(':', 1)
                    self.header[key.strip()] = val.strip()

                    if key.strip() == 'Mode' and val.strip() not in ('0', ''):
                        raise ValueError(f"Not an osu!standard map (Mode: {val.strip()})")
                    if key.strip() == 'StackLeniency':
                        try:
                            beatmap.stack_leniency = float(val)
                        except ValueError:
                            pass

            elif section == 'Difficulty':
                if ':' in line:
                    key, val = line.split(':', 1)
                    key = key.strip()
                    try:
                        val = float(val.strip())
                    except ValueError:
                        continue

                    if key == 'HPDrainRate':
                        beatmap.hp = val
                    elif key == 'CircleSize':
                        beatmap.cs = val
                    elif key == 'OverallDifficulty':
                        beatmap.od = val
                    elif key == 'ApproachRate':
                        beatmap.ar = val
                        ar_found = True
                    elif key == 'SliderMultiplier':
                        beatmap.slider_mult = val
                    elif key == 'SliderTickRate':
                        beatmap.tick_rate = val

            elif section == 'TimingPoints':
                # time,beatLength,meter,sampleSet,sampleIndex,volume,uninherited,effects
                parts = line.split(',')
                if len(parts) < 2:
                    continue

                try:
                    time_ms = float(parts[0])
                    beat_len = float(parts[1])
                except ValueError:
                    continue

                if len(parts) > 6:
                    uninherited = parts[6].strip() == '1'
                else:
                    uninherited = beat_len > 0

                if uninherited:
                    beatmap.timing_points.append(TimingPoint(time_ms, beat_len))
                else:
                    beatmap.difficulty_points.append(DifficultyPoint.from_beat_len(time_ms, beat_len))

            elif section == 'HitObjects':
                # x,y,time,type,hitSound,objectParams,hitSample
                note = self._parse_hit_object(line)
                if note is not None:
                    beatmap.hit_objects.append(note)

        # Old maps have no AR and use OD instead
        if not ar_found:
            beatmap.ar = beatmap.od

        # Stable sort keeps same-time objects in file order
        beatmap.hit_objects.sort(key=lambda h: h.time)
        beatmap.header = self.header

        if beatmap.hit_objects:
            first_time = beatmap.hit_objects[0].time
            last_time = beatmap.hit_objects[-1].time
            self.duration = (last_time - first_time) / 1000.0

        return beatmap

    def _parse_hit_object(self, line):
        parts = line.split(',')
        if len(parts) < 4:
            return None

        try:
            x = float(parts[0])
            y = float(parts[1])
            time_ms = float(parts[2])
            type_flags = int(parts[3])
        except ValueError:
            return None

        # Bit 0: circle, bit 1: slider, bit 3: spinner
        if type_flags & 2:
            if len(parts) < 8:
                return None
            try:
                curve = parts[5].split('|')
                path_type = PathType.from_char(curve[0].strip())
                control_points = [(x, y)]
                for point in curve[1:]:
                    px, py = point.split(':')
                    control_points.append((float(px), float(py)))

                slides = int(parts[6])
                pixel_len = float(parts[7])
            except ValueError:
                return None

            return RawNote(
                time=time_ms,
                pos=(x, y),
                kind=NoteKind.SLIDER,
                path_type=path_type,
                control_points=tuple(control_points),
                repeats=max(slides - 1, 0),
                pixel_len=pixel_len,
            )

        if type_flags & 8:
            end_time = time_ms
            if len(parts) > 5:
                try:
                    end_time = float(parts[5])
                except ValueError:
                    pass
            return RawNote(time=time_ms, pos=(x, y), kind=NoteKind.SPINNER, end_time=end_time)

        return RawNote(time=time_ms, pos=(x, y), kind=NoteKind.CIRCLE)


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1:
        parser = OsuParser(sys.argv[1])
        beatmap = parser.parse()
        print(f"Parsed {len(beatmap.hit_objects)} objects. Version: v{beatmap.version}")
        print(f"Circles: {beatmap.n_circles}, Sliders: {beatmap.n_sliders}, Spinners: {beatmap.n_spinners}")
        for h in beatmap.hit_objects[:5]:
            print(h)
