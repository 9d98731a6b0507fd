"""
Probability/confidence calibration.

Pure functions shared by the multiverse simulator and the calibration
endpoint. No hidden state and no I/O: the same three inputs always produce
the same result.

    probability = clamp(base x (opportunity_w if base > 0.5 else risk_w)
                        x risk_multiplier, 0.01, 0.99)
    confidence  = clamp(data_reliability x forecast_accuracy
                        x confidence_multiplier + confidence_adjustment, 0.3, 0.95)
    spread      = (1 - confidence) x 0.3
    range       = [max(0.01, p - spread), min(0.99, p + spread)]
"""

from foresight.models.modes import Calibration, IndustryBenchmark, Mode

from .errors import ValidationError

PROBABILITY_BOUNDS = (0.01, 0.99)
CONFIDENCE_BOUNDS = (0.3, 0.95)
SPREAD_FACTOR = 0.3


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calibrate(base_probability: float, mode: Mode, industry: IndustryBenchmark) -> Calibration:
    """
    Calibrate a base probability for a mode and industry.

    Args:
        base_probability: Uncalibrated probability in [0, 1]
        mode: Mode supplying weightings, modifiers and confidence adjustment
        industry: Benchmark supplying data reliability and forecast accuracy

    Returns:
        Calibration with probability, confidence and probability range

    Raises:
        ValidationError: If base_probability is outside [0, 1]
    """
    if not 0.0 <= base_probability <= 1.0:
        raise ValidationError(
            f"base_probability must be within [0, 1], got {base_probability}",
            fields=["base_probability"],
        )

    weighting = mode.opportunity_weighting if base_probability > 0.5 else mode.risk_weighting
    probability = clamp(
        base_probability * weighting * mode.industry_modifiers.risk_multiplier,
        *PROBABILITY_BOUNDS,
    )

    confidence = clamp(
        industry.data_reliability
        * industry.forecast_accuracy
        * mode.industry_modifiers.confidence_multiplier
        + mode.confidence_adjustment,
        *CONFIDENCE_BOUNDS,
    )

    spread = (1.0 - confidence) * SPREAD_FACTOR
    low = max(PROBABILITY_BOUNDS[0], probability - spread)
    high = min(PROBABILITY_BOUNDS[1], probability + spread)

    return Calibration(probability=probability, confidence=confidence, range=(low, high))
