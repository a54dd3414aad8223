from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from discquiz.engine.types import AgeGroup, Gender, TestMode, TestModeId

# Inclusive numeric ranges used by the "range" overlap policy.
AGE_GROUP_RANGES: Mapping[AgeGroup, Tuple[int, int]] = MappingProxyType(
    {
        AgeGroup.TEENS: (10, 19),
        AgeGroup.TWENTIES: (20, 29),
        AgeGroup.THIRTIES: (30, 39),
        AgeGroup.FORTIES: (40, 49),
        AgeGroup.FIFTIES: (50, 59),
        AgeGroup.SIXTIES: (60, 99),
    }
)

# Single age used by the "representative" overlap policy.
AGE_GROUP_REPRESENTATIVE: Mapping[AgeGroup, int] = MappingProxyType(
    {
        AgeGroup.TEENS: 15,
        AgeGroup.TWENTIES: 25,
        AgeGroup.THIRTIES: 35,
        AgeGroup.FORTIES: 45,
        AgeGroup.FIFTIES: 55,
        AgeGroup.SIXTIES: 65,
    }
)

# Question id partitions; the bank stores female-authored items in the upper block.
FEMALE_ID_RANGE: Tuple[int, int] = (866, 1715)
DEFAULT_ID_RANGE: Tuple[int, int] = (1, 865)
GENDER_ID_RANGES: Mapping[Gender, Tuple[int, int]] = MappingProxyType(
    {
        Gender.F: FEMALE_ID_RANGE,
        Gender.M: DEFAULT_ID_RANGE,
        Gender.O: DEFAULT_ID_RANGE,
    }
)

TEST_MODES: Tuple[TestMode, ...] = (
    TestMode(TestModeId.CORE, 50, "빠르고 핵심적인 진단", "Core Scan", "5m"),
    TestMode(TestModeId.DEEP, 70, "정밀한 심층 분석", "Deep Analysis", "10m", recommended=True),
    TestMode(TestModeId.FULL, 90, "완벽한 종합 프로파일링", "Full Profiling", "15m"),
)
TEST_MODES_BY_ID: Mapping[TestModeId, TestMode] = MappingProxyType({mode.id: mode for mode in TEST_MODES})

HIGH_RATIO_THRESHOLD = 0.6

# Display defaults when a result is rendered without the demographic.
DEFAULT_AGE_GROUP = AgeGroup.TWENTIES
DEFAULT_GENDER = Gender.O

ADVICE_DISPLAY_LIMIT = 3
FAMOUS_PEOPLE_DISPLAY_LIMIT = 10
