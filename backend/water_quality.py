"""
AquaSight - Quality scoring, safety gates and recommendations.
Pure functions of WaterQualityMetrics; no image access here.
"""
from typing import Dict, List, Tuple

from schemas import AnalysisResult, QualityLabel, SafetyStatus, WaterQualityMetrics

# Acceptable range per scored metric. Temperature and conductivity are not scored.
ACCEPTABLE_RANGES: Dict[str, Tuple[float, float]] = {
    "ph": (6.5, 8.5),
    "turbidity": (0.0, 5.0),
    "dissolved_oxygen": (6.0, 8.0),
    "total_dissolved_solids": (0.0, 500.0),
    "chlorine": (0.2, 2.0),
    "hardness": (60.0, 180.0),
}

# (lower bound, label), checked top to bottom
QUALITY_TIERS: Tuple[Tuple[float, QualityLabel], ...] = (
    (0.9, "Excellent"),
    (0.7, "Good"),
    (0.5, "Fair"),
)
LOWEST_QUALITY: QualityLabel = "Poor"

# Drinking water
DRINKABLE_PH = (6.5, 8.5)
DRINKABLE_MAX_TURBIDITY = 1.0
DRINKABLE_MIN_DO = 6.0
DRINKABLE_MAX_TDS = 500.0
DRINKABLE_CHLORINE = (0.2, 4.0)
# Swimming
SWIMMABLE_PH = (6.0, 9.0)
SWIMMABLE_MAX_TURBIDITY = 5.0
SWIMMABLE_MIN_DO = 4.0
# Irrigation
IRRIGATION_PH = (6.0, 8.5)
IRRIGATION_MAX_TDS = 2000.0

# Recommendation triggers
HARDNESS_SOFTENER_THRESHOLD = 180.0
TDS_REVERSE_OSMOSIS_THRESHOLD = 500.0

MSG_PH = "pH level ({ph:.1f}) is outside the safe drinking range (6.5-8.5). Consider pH adjustment treatment."
MSG_TURBIDITY = "High turbidity detected. Filter the water before drinking."
MSG_LOW_CHLORINE = "Chlorine level is low. Disinfect the water (e.g. chlorination or boiling) before drinking."
MSG_SOFTENER = "Water hardness is high. Consider using a water softener."
MSG_REVERSE_OSMOSIS = "Total dissolved solids are high. Consider reverse osmosis treatment."
MSG_ALL_CLEAR = "Water quality parameters are within acceptable ranges. Regular monitoring recommended."


def _in_range(value: float, bounds: Tuple[float, float]) -> bool:
    low, high = bounds
    return low <= value <= high


# --- Quality classifier ---

def score_metric(value: float, low: float, high: float) -> float:
    """1.0 inside [low, high]; otherwise falls off linearly with distance from the midpoint, floored at 0."""
    if low <= value <= high:
        return 1.0
    midpoint = (low + high) / 2
    return max(0.0, 1.0 - abs(value - midpoint) / (high - low))


def compute_quality_score(metrics: WaterQualityMetrics) -> float:
    """Equal-weight mean of the per-metric scores, in [0, 1]."""
    scores = [score_metric(getattr(metrics, name), low, high) for name, (low, high) in ACCEPTABLE_RANGES.items()]
    return sum(scores) / len(scores)


def classify_quality_score(score: float) -> QualityLabel:
    for lower_bound, label in QUALITY_TIERS:
        if score >= lower_bound:
            return label
    return LOWEST_QUALITY


def determine_water_quality(metrics: WaterQualityMetrics) -> QualityLabel:
    return classify_quality_score(compute_quality_score(metrics))


# --- Safety assessor ---

def is_drinkable(metrics: WaterQualityMetrics) -> bool:
    return (
        _in_range(metrics.ph, DRINKABLE_PH)
        and metrics.turbidity <= DRINKABLE_MAX_TURBIDITY
        and metrics.dissolved_oxygen >= DRINKABLE_MIN_DO
        and metrics.total_dissolved_solids <= DRINKABLE_MAX_TDS
        and _in_range(metrics.chlorine, DRINKABLE_CHLORINE)
    )


def is_swimmable(metrics: WaterQualityMetrics) -> bool:
    return (
        _in_range(metrics.ph, SWIMMABLE_PH)
        and metrics.turbidity <= SWIMMABLE_MAX_TURBIDITY
        and metrics.dissolved_oxygen >= SWIMMABLE_MIN_DO
    )


def is_irrigation_safe(metrics: WaterQualityMetrics) -> bool:
    return _in_range(metrics.ph, IRRIGATION_PH) and metrics.total_dissolved_solids <= IRRIGATION_MAX_TDS


def assess_water_safety(metrics: WaterQualityMetrics) -> SafetyStatus:
    return SafetyStatus(
        is_drinkable=is_drinkable(metrics),
        is_swimmable=is_swimmable(metrics),
        is_irrigation_safe=is_irrigation_safe(metrics),
    )


# --- Recommendations ---

def generate_recommendations(metrics: WaterQualityMetrics, safety: SafetyStatus) -> List[str]:
    """
    Advisory messages in fixed order: drinking issues (pH, turbidity, chlorine),
    hardness, dissolved solids. Falls back to a single all-clear message.
    """
    recommendations: List[str] = []

    if not safety.is_drinkable:
        if not _in_range(metrics.ph, DRINKABLE_PH):
            recommendations.append(MSG_PH.format(ph=metrics.ph))
        if metrics.turbidity > DRINKABLE_MAX_TURBIDITY:
            recommendations.append(MSG_TURBIDITY)
        if metrics.chlorine < DRINKABLE_CHLORINE[0]:
            recommendations.append(MSG_LOW_CHLORINE)

    if metrics.hardness > HARDNESS_SOFTENER_THRESHOLD:
        recommendations.append(MSG_SOFTENER)

    if metrics.total_dissolved_solids > TDS_REVERSE_OSMOSIS_THRESHOLD:
        recommendations.append(MSG_REVERSE_OSMOSIS)

    if not recommendations:
        recommendations.append(MSG_ALL_CLEAR)

    return recommendations


def build_analysis_result(metrics: WaterQualityMetrics) -> AnalysisResult:
    """Score, gate and advise on one set of metrics."""
    safety = assess_water_safety(metrics)
    return AnalysisResult(
        overall_quality=determine_water_quality(metrics),
        metrics=metrics,
        safety_status=safety,
        recommendations=generate_recommendations(metrics, safety),
    )
