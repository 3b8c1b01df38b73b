"""
constants.py - osu!standard 난이도 계산 상수 모음

Every tuned number used by the star rating pipeline lives here so the
stacking, skill and aggregation modules read from a single place.
"""

import math

# ====================================================================
# Playfield / geometry
# ====================================================================

PLAYFIELD_WIDTH = 512.0
PLAYFIELD_HEIGHT = 384.0

OBJECT_RADIUS = 64.0
NORMALIZED_RADIUS = 52.0

# Small circles get a bonus on the scaling factor below this radius
SMALL_CIRCLE_RADIUS = 30.0

# Stack offset per stack level, multiplied by the circle scale
STACK_OFFSET_MULTIPLIER = -6.4
STACK_DISTANCE = 3.0

# ====================================================================
# Approach rate / overall difficulty ranges (ms)
# ====================================================================

OSU_AR_MAX = 450.0
OSU_AR_AVG = 1200.0
OSU_AR_MIN = 1800.0

OSU_OD_MAX = 20.0
OSU_OD_AVG = 50.0
OSU_OD_MIN = 80.0

# AR <-> ms conversion used when mods change the clock rate
AR0_MS = 1800.0
AR5_MS = 1200.0
AR10_MS = 450.0
AR_MS_STEP1 = (AR0_MS - AR5_MS) / 5.0
AR_MS_STEP2 = (AR5_MS - AR10_MS) / 5.0

OD0_MS = 80.0
OD10_MS = 20.0
OD_MS_STEP = (OD0_MS - OD10_MS) / 10.0

# ====================================================================
# Sliders
# ====================================================================

BASE_SCORING_DISTANCE = 100.0
LEGACY_LAST_TICK_OFFSET = 36.0
MAX_SLIDER_LENGTH = 100000.0
FOLLOW_CIRCLE_RADIUS_MULTIPLIER = 3.0

BEZIER_TOLERANCE = 0.25
CIRCULAR_ARC_TOLERANCE = 0.1
CATMULL_DETAIL = 50

# ====================================================================
# Strain sections / difficulty objects
# ====================================================================

SECTION_LEN = 400.0
MIN_DELTA_TIME = 50.0
DIFFICULTY_MULTIPLIER = 0.0675

# ====================================================================
# Skills
# ====================================================================

AIM_SKILL_MULTIPLIER = 26.25
AIM_STRAIN_DECAY_BASE = 0.15
AIM_DECAY_WEIGHT = 0.9
AIM_ANGLE_BONUS_BEGIN = math.pi / 3.0
AIM_TIMING_THRESHOLD = 107.0
AIM_ANGLE_BONUS_SCALE = 90.0
AIM_ANGLE_BONUS_FACTOR = 1.4
AIM_DIMINISHING_EXPONENT = 0.99

SPEED_SKILL_MULTIPLIER = 1400.0
SPEED_STRAIN_DECAY_BASE = 0.3
SPEED_DECAY_WEIGHT = 0.9
SINGLE_SPACING_THRESHOLD = 125.0
SPEED_ANGLE_BONUS_BEGIN = 5.0 * math.pi / 6.0
MIN_SPEED_BONUS = 75.0
SPEED_BALANCING_FACTOR = 40.0

FLASHLIGHT_SKILL_MULTIPLIER = 0.15
FLASHLIGHT_STRAIN_DECAY_BASE = 0.15
FLASHLIGHT_DECAY_WEIGHT = 1.0
FLASHLIGHT_HISTORY_LENGTH = 10

# ====================================================================
# Aggregation
# ====================================================================

PERFORMANCE_BASE_DIVISOR = 100000.0
PERFORMANCE_NORM_EXPONENT = 1.1
FLASHLIGHT_PERFORMANCE_MULTIPLIER = 25.0
MIN_BASE_PERFORMANCE = 0.00001
STAR_RATING_MULTIPLIER = 0.027
STAR_RATING_SCALE = 1.12
