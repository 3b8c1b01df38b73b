"""
mods.py - 모드(Modifier) 처리

Game modifiers as bit flags, the shared 0-10 difficulty range curve, and the
map attributes (AR/OD/CS/HP + clock rate) after mods are applied.
"""

import enum
from dataclasses import dataclass

from constants import (
    AR0_MS, AR5_MS, AR10_MS, AR_MS_STEP1, AR_MS_STEP2,
    OD0_MS, OD10_MS, OD_MS_STEP,
    OSU_AR_MAX, OSU_AR_AVG, OSU_AR_MIN,
    OSU_OD_MAX, OSU_OD_AVG, OSU_OD_MIN,
)


class Mods(enum.IntFlag):
    NM = 0
    NF = 1
    EZ = 2
    TD = 4
    HD = 8
    HR = 16
    SD = 32
    DT = 64
    RX = 128
    HT = 256
    NC = 512
    FL = 1024
    SO = 4096
    AP = 8192
    PF = 16384

    def hr(self) -> bool:
        return bool(self & Mods.HR)

    def ez(self) -> bool:
        return bool(self & Mods.EZ)

    def fl(self) -> bool:
        return bool(self & Mods.FL)

    def rx(self) -> bool:
        return bool(self & Mods.RX)

    def clock_rate(self) -> float:
        if self & (Mods.DT | Mods.NC):
            return 1.5
        if self & Mods.HT:
            return 0.75
        return 1.0

    def od_ar_hp_multiplier(self) -> float:
        if self.hr():
            return 1.4
        if self.ez():
            return 0.5
        return 1.0

    @classmethod
    def from_string(cls, text: str) -> "Mods":
        """
        "HDDT", "+hdhr" 같은 약어 문자열을 Mods로 변환.
        Unknown acronyms raise ValueError.
        """
        text = text.strip().upper().lstrip('+')
        if len(text) % 2 != 0:
            raise ValueError(f"Malformed mod string: {text!r}")

        mods = cls.NM
        for i in range(0, len(text), 2):
            acronym = text[i:i + 2]
            if acronym not in cls.__members__:
                raise ValueError(f"Unknown mod: {acronym}")
            mods |= cls[acronym]

        # NC implies DT
        if mods & cls.NC:
            mods |= cls.DT
        return mods


def as_mods(mods) -> Mods:
    if isinstance(mods, Mods):
        return mods
    if isinstance(mods, str):
        return Mods.from_string(mods)
    return Mods(int(mods))


# ----------------------------
# Difficulty range (0~10 -> ms)
# ----------------------------
def difficulty_range(val, max_val, avg_val, min_val):
    """
    Linear interpolation on either side of 5: val=0 -> min_val,
    val=5 -> avg_val, val=10 -> max_val.
    """
    if val > 5.0:
        return avg_val + (max_val - avg_val) * (val - 5.0) / 5.0
    if val < 5.0:
        return avg_val - (avg_val - min_val) * (5.0 - val) / 5.0
    return avg_val


def difficulty_range_ar(ar):
    """Approach rate -> preempt time (ms)."""
    return difficulty_range(ar, OSU_AR_MAX, OSU_AR_AVG, OSU_AR_MIN)


def difficulty_range_od(od):
    """Overall difficulty -> great (300) hit window (ms)."""
    return difficulty_range(od, OSU_OD_MAX, OSU_OD_AVG, OSU_OD_MIN)


@dataclass(frozen=True)
class MapAttributes:
    ar: float
    od: float
    cs: float
    hp: float
    clock_rate: float


def map_attributes(beatmap, mods) -> MapAttributes:
    """
    AR/OD/CS/HP after HR/EZ and the clock rate of DT/HT.
    AR and OD go through milliseconds so the speed change is reflected.
    """
    mods = as_mods(mods)
    clock_rate = mods.clock_rate()
    multiplier = mods.od_ar_hp_multiplier()

    # AR
    ar = beatmap.ar * multiplier
    if ar <= 5.0:
        ar_ms = AR0_MS - AR_MS_STEP1 * ar
    else:
        ar_ms = AR5_MS - AR_MS_STEP2 * (ar - 5.0)
    ar_ms = max(AR10_MS, min(AR0_MS, ar_ms)) / clock_rate
    if ar_ms > AR5_MS:
        ar = (AR0_MS - ar_ms) / AR_MS_STEP1
    else:
        ar = 5.0 + (AR5_MS - ar_ms) / AR_MS_STEP2

    # OD
    od = beatmap.od * multiplier
    od_ms = OD0_MS - OD_MS_STEP * od
    od_ms = max(OD10_MS, min(OD0_MS, od_ms)) / clock_rate
    od = (OD0_MS - od_ms) / OD_MS_STEP

    # CS
    cs = beatmap.cs
    if mods.hr():
        cs *= 1.3
    elif mods.ez():
        cs *= 0.5
    cs = min(cs, 10.0)

    # HP (not affected by the clock rate)
    hp = min(beatmap.hp * multiplier, 10.0)

    return MapAttributes(ar=ar, od=od, cs=cs, hp=hp, clock_rate=clock_rate)


def hit_window(beatmap, mods) -> float:
    """
    Great hit window in ms used by the speed skill.
    The modded OD already includes the clock rate and the window is
    divided by it once more.
    """
    attributes = map_attributes(beatmap, mods)
    return difficulty_range_od(attributes.od) / attributes.clock_rate


def raw_ar(beatmap, mods) -> float:
    """AR with HR/EZ applied but without any clock rate change (stacking space)."""
    mods = as_mods(mods)
    if mods.hr():
        return min(beatmap.ar * 1.4, 10.0)
    if mods.ez():
        return beatmap.ar * 0.5
    return beatmap.ar
