"""
Assessment scoring engine.

Turns one snapshot of raw measurements into a predicted bouldering grade:

    ratio_i      = measurement_i / body_weight (or height for flexibility)
    score_i      = clamp((ratio_i - lower_i) / (upper_i - lower_i) * 100, 0, 100)
    composite    = sum(weight_i * score_i / 100)
    grade        = GradeThresholdTable lookup of composite

Scoring is pure: nothing here saves results or reads the clock.
"""

import math
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field

from climbcoach.errors import ConfigurationError, ValidationError
from climbcoach.grades import DEFAULT_GRADE_TABLE, GradeThresholdTable, parse_grade
from climbcoach.schemas import (
    AssessmentResult,
    Confidence,
    MetricName,
    NormalizedMetric,
    RawMeasurement,
)

WEAKNESS_THRESHOLD = 40.0


class MetricCalibration(BaseModel):
    """Linear calibration bounds and composite weight for one metric."""

    model_config = ConfigDict(frozen=True)

    name: MetricName
    lower: float = Field(..., description="Ratio that maps to a score of 0")
    upper: float = Field(..., description="Ratio that maps to a score of 100")
    weight: float = Field(..., gt=0.0, le=1.0)

    def normalize(self, ratio: float) -> float:
        scaled = (ratio - self.lower) / (self.upper - self.lower) * 100.0
        return min(100.0, max(0.0, scaled))


CALIBRATIONS = (
    MetricCalibration(name=MetricName.FINGER_STRENGTH, lower=1.0, upper=2.5, weight=0.45),
    MetricCalibration(name=MetricName.PULL_UPS, lower=0.2, upper=1.0, weight=0.20),
    MetricCalibration(name=MetricName.PUSH_UPS, lower=0.3, upper=1.2, weight=0.10),
    MetricCalibration(name=MetricName.CORE_STRENGTH, lower=0.2, upper=0.8, weight=0.15),
    MetricCalibration(name=MetricName.FLEXIBILITY, lower=0.8, upper=1.5, weight=0.10),
)

if math.fsum(c.weight for c in CALIBRATIONS) != 1.0:
    raise ConfigurationError("Metric weights must sum to 1.0", field="weights")


def interpret_score(score: float) -> str:
    """Human-readable band for a 0-100 metric score."""
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Average"
    if score >= 20:
        return "Below Average"
    return "Needs Work"


_PRIMARY_FOCUS_DRILLS = {
    MetricName.FINGER_STRENGTH: [
        "• Implement fingerboard training 2x/week with 72h separation",
        "• Focus on 10-second max hangs on 20mm edge",
        "• Rest 2-3 minutes between sets",
        "• Start at body weight and progress gradually",
    ],
    MetricName.PULL_UPS: [
        "• Add weighted pull-up training 2x/week",
        "• Focus on slow, controlled movements",
        "• Include assisted pull-up variations",
        "• Target 8-10 reps at RPE 8",
    ],
    MetricName.PUSH_UPS: [
        "• Incorporate push-up variations 3x/week",
        "• Focus on chest-to-ground full range",
        "• Progress to weighted or single-arm variations",
        "• Target 8-10 reps at RPE 8",
    ],
    MetricName.CORE_STRENGTH: [
        "• Add toe-to-bar exercises 3x/week",
        "• Integrate front lever progressions",
        "• Include hanging leg raises",
        "• Maintain 8/10 difficulty level",
    ],
    MetricName.FLEXIBILITY: [
        "• Daily stretching routine focusing on hip mobility",
        "• Include dynamic warm-up before climbing",
        "• Practice side splits and hip flexor stretches",
        "• Hold stretches for 30-60 seconds",
    ],
}

TRAINING_GUIDELINES = [
    "• Max Hangs: 2x/week, 72h separation",
    "• Boulder Projects: 2x/week, 48h separation",
    "• Boulder Flash: 2x/week, 48h separation",
    "• Boulder Aerobic: Up to 4x/week, 24h separation",
    "• General Fitness: 8-10 reps at RPE 8",
]


class AssessmentScorer:
    """
    Scores raw measurements into an AssessmentResult.

    The scorer:
    1. Validates the measurement snapshot (positive body weight and height)
    2. Computes the five performance ratios
    3. Rescales each ratio onto 0-100 using fixed calibration bounds
    4. Combines the scores into the weighted composite
    5. Looks up the predicted grade and compares it with the reported 80% grade
    6. Ranks metrics into strongest, weakest and secondary focus
    """

    def __init__(self, grade_table: GradeThresholdTable = DEFAULT_GRADE_TABLE):
        self.grade_table = grade_table

    def score(self, measurement: Union[RawMeasurement, Dict[str, Any]]) -> AssessmentResult:
        """
        Score one measurement snapshot.

        Args:
            measurement: RawMeasurement or a dict of its fields

        Returns:
            AssessmentResult with metrics, composite score, grade and ranking

        Raises:
            ValidationError: If a field is missing, malformed or out of range
        """
        if not isinstance(measurement, RawMeasurement):
            measurement = RawMeasurement.parse(measurement)
        self._check_positive(measurement)

        metrics = self.normalize(measurement)
        composite = self.composite_score(metrics)
        predicted_grade = self.grade_table.grade_for(composite)
        confidence = self.confidence(predicted_grade, measurement.eighty_percent_grade)

        ranked = sorted(metrics, key=lambda m: m.score, reverse=True)
        weaknesses = [m.name for m in reversed(ranked) if m.score < WEAKNESS_THRESHOLD]

        recommendations = self.recommendations(ranked)
        summary = self.summary(metrics, ranked, composite, predicted_grade, confidence)

        return AssessmentResult(
            measurements=measurement,
            normalized_metrics=metrics,
            composite_score=composite,
            predicted_grade=predicted_grade,
            confidence=confidence,
            strongest_area=ranked[0].name,
            weakest_area=ranked[-1].name,
            secondary_focus=ranked[-2].name,
            weaknesses=weaknesses,
            recommendations=recommendations,
            summary=summary,
        )

    def _check_positive(self, measurement: RawMeasurement) -> None:
        # Guards model_construct() snapshots that skipped field validation.
        if not measurement.body_weight or measurement.body_weight <= 0:
            raise ValidationError("body_weight must be greater than 0", field="body_weight")
        if not measurement.height or measurement.height <= 0:
            raise ValidationError("height must be greater than 0", field="height")

    def ratios(self, m: RawMeasurement) -> Dict[MetricName, float]:
        return {
            MetricName.FINGER_STRENGTH: (m.added_weight + m.body_weight) / m.body_weight,
            MetricName.PULL_UPS: m.max_pull_ups / m.body_weight,
            MetricName.PUSH_UPS: m.max_push_ups / m.body_weight,
            MetricName.CORE_STRENGTH: m.max_toe_to_bar / m.body_weight,
            MetricName.FLEXIBILITY: m.leg_spread_distance / m.height,
        }

    def normalize(self, measurement: RawMeasurement) -> List[NormalizedMetric]:
        ratios = self.ratios(measurement)
        return [
            NormalizedMetric(
                name=c.name,
                raw_ratio=ratios[c.name],
                score=c.normalize(ratios[c.name]),
                weight=c.weight,
            )
            for c in CALIBRATIONS
        ]

    @staticmethod
    def composite_score(metrics: List[NormalizedMetric]) -> float:
        return sum(m.weight * (m.score / 100.0) for m in metrics)

    @staticmethod
    def confidence(predicted_grade: str, reported_grade: str) -> Confidence:
        """High within one grade of the reported 80% grade, medium within two."""
        difference = abs(
            parse_grade(predicted_grade)
            - parse_grade(reported_grade, field="eighty_percent_grade")
        )
        if difference <= 1:
            return Confidence.HIGH
        if difference <= 2:
            return Confidence.MEDIUM
        return Confidence.LOW

    @staticmethod
    def recommendations(ranked: List[NormalizedMetric]) -> List[str]:
        """Training recommendations: weakest first, then secondary, then maintenance."""
        weakest, second_weakest, strongest = ranked[-1], ranked[-2], ranked[0]

        lines = [f"PRIMARY FOCUS - {weakest.name.display_name}:"]
        lines.extend(_PRIMARY_FOCUS_DRILLS[weakest.name])

        lines.append(f"SECONDARY FOCUS - {second_weakest.name.display_name}:")
        lines.append("• Address this area 1-2x/week while prioritizing primary focus")
        lines.append("• Use lighter intensity to avoid overtraining")

        lines.append(f"MAINTENANCE - {strongest.name.display_name}:")
        lines.append("• Continue current volume to maintain strength")
        lines.append("• Focus on quality over quantity")
        lines.append("• Integrate with other training components")

        lines.append("KEY TRAINING GUIDELINES:")
        lines.extend(TRAINING_GUIDELINES)
        return lines

    @staticmethod
    def summary(
        metrics: List[NormalizedMetric],
        ranked: List[NormalizedMetric],
        composite: float,
        predicted_grade: str,
        confidence: Confidence,
    ) -> str:
        def describe(metric: NormalizedMetric) -> str:
            return (
                f"{metric.name.display_name} ({metric.raw_ratio:.2f} - "
                f"{interpret_score(metric.score)})"
            )

        lines = [
            "GRADE PREDICTION:",
            f"Predicted Grade: {predicted_grade}",
            f"Confidence Level: {confidence.value.title()}",
            f"Composite Score: {composite:.3f}",
            "",
            "METRIC ANALYSIS:",
            f"Strongest Area: {describe(ranked[0])}",
            f"Weakest Area: {describe(ranked[-1])}",
            "",
            "DETAILED BREAKDOWN:",
        ]
        for metric in metrics:
            lines.append(
                f"• {metric.name.display_name}: {round(metric.score)}/100 "
                f"(ratio: {metric.raw_ratio:.2f}) - {round(metric.weight * 100)}% weight"
            )
        return "\n".join(lines)
