# server/agents/evapotranspiration/crop_coefficients.py
"""
Grapevine crop coefficients (Kc) by growth stage
"""
from typing import Any, Dict, List, Optional, Tuple
from datetime import date
import logging

from agents.evapotranspiration.models import GrowthStage, StageInfo, SeasonalRequirement

logger = logging.getLogger(__name__)

DEFAULT_KC = 0.7

GRAPE_KC_VALUES: Dict[GrowthStage, float] = {
    GrowthStage.DORMANT: 0.2,
    GrowthStage.BUDBREAK: 0.3,
    GrowthStage.LEAF_DEVELOPMENT: 0.5,
    GrowthStage.FLOWERING: 0.7,
    GrowthStage.FRUIT_SET: 0.8,
    GrowthStage.VERAISON: 0.8,
    GrowthStage.HARVEST: 0.6,
    GrowthStage.POST_HARVEST: 0.4,
}

STAGE_DESCRIPTIONS: Dict[GrowthStage, str] = {
    GrowthStage.DORMANT: "Dormant season - minimal water needs",
    GrowthStage.BUDBREAK: "Early season - buds swelling and breaking",
    GrowthStage.LEAF_DEVELOPMENT: "Canopy expanding - water demand rising",
    GrowthStage.FLOWERING: "Flowering stage - moderate water needs",
    GrowthStage.FRUIT_SET: "Fruit development - peak water needs",
    GrowthStage.VERAISON: "Ripening stage - controlled water stress improves quality",
    GrowthStage.HARVEST: "Harvest time - controlled irrigation",
    GrowthStage.POST_HARVEST: "Post-harvest recovery and reserve storage",
}

# Typical stage durations over one season (days)
SEASON_STAGE_DAYS: List[Tuple[GrowthStage, int]] = [
    (GrowthStage.DORMANT, 90),
    (GrowthStage.BUDBREAK, 30),
    (GrowthStage.FLOWERING, 30),
    (GrowthStage.FRUIT_SET, 60),
    (GrowthStage.VERAISON, 60),
    (GrowthStage.HARVEST, 30),
    (GrowthStage.POST_HARVEST, 60),
]

# Northern Hemisphere calendar (Maharashtra grape region)
_MONTH_STAGE: Dict[int, GrowthStage] = {
    12: GrowthStage.DORMANT, 1: GrowthStage.DORMANT, 2: GrowthStage.DORMANT,
    3: GrowthStage.BUDBREAK,
    4: GrowthStage.FLOWERING,
    5: GrowthStage.FRUIT_SET, 6: GrowthStage.FRUIT_SET,
    7: GrowthStage.VERAISON, 8: GrowthStage.VERAISON,
    9: GrowthStage.HARVEST, 10: GrowthStage.HARVEST,
    11: GrowthStage.POST_HARVEST,
}

for _table in (GRAPE_KC_VALUES, STAGE_DESCRIPTIONS):
    _missing = set(GrowthStage) - set(_table)
    if _missing:
        raise RuntimeError(f"Growth stage table incomplete: {sorted(s.value for s in _missing)}")


class CropCoefficientResolver:
    """Maps a growth-stage label to the grapevine crop coefficient"""

    def __init__(self, default_kc: float = DEFAULT_KC):
        self.default_kc = default_kc

    def resolve(self, growth_stage: Any) -> float:
        stage = GrowthStage.parse(growth_stage)
        if stage is None:
            logger.warning(f"Unrecognized growth stage {growth_stage!r}, using default Kc {self.default_kc}")
            return self.default_kc
        return GRAPE_KC_VALUES[stage]

    def stage_label(self, growth_stage: Any) -> str:
        """Canonical label when recognised, the caller's label otherwise"""
        stage = GrowthStage.parse(growth_stage)
        return stage.value if stage is not None else str(growth_stage)

    def stages(self) -> List[StageInfo]:
        return [
            StageInfo(stage=stage.value, kc=GRAPE_KC_VALUES[stage], description=STAGE_DESCRIPTIONS[stage])
            for stage in GrowthStage
        ]

    def seasonal_requirements(self, average_et0: float = 4.0) -> List[SeasonalRequirement]:
        """Season water requirement per stage from an average daily ET0"""
        average_et0 = max(0.0, average_et0)
        rows = []
        for stage, days in SEASON_STAGE_DAYS:
            kc = GRAPE_KC_VALUES[stage]
            rows.append(SeasonalRequirement(
                stage=stage.value,
                days=days,
                kc=kc,
                totalETc=round(average_et0 * kc * days, 2),
                description=STAGE_DESCRIPTIONS[stage],
            ))
        return rows


def determine_growth_stage(on_date: Optional[date] = None) -> GrowthStage:
    """Guess the vine stage from the calendar month (Northern Hemisphere)"""
    on_date = on_date or date.today()
    return _MONTH_STAGE[on_date.month]
