"""
Product readiness checks.

Inspects a ProductProfile for missing data, material breakdowns and
internal consistency, turns missing fields into user questions and profile
errors into analyst feedback, and checks GIR 3(b) essential-character
analyses.
"""
from __future__ import annotations

from typing import Iterable, Optional

from ..models import (
    EssentialCharacterAnalysis,
    EssentialCharacterCheck,
    MissingProductData,
    ProductProfile,
    ProfileFinding,
    ProfileValidation,
)
from ..tables import ClassificationTables


CRITICAL_FIELDS = ("product_name", "primary_function")
OPTIONAL_FIELDS = ("materials", "essential_character", "industry_details")

READINESS_POINTS = {
    "standardized_name": 20,
    "material_composition": 15,
    "function": 20,
    "state": 10,
    "essential_character": 15,
    "components_breakdown": 10,
    "industry_specific_data": 10,
}

READINESS_TOLERANCE = 20
PERCENT_SUM_RANGE = (90, 110)
MIN_ESSENTIAL_CHARACTER_COMPONENTS = 2


def identify_missing_product_data(profile: ProductProfile) -> MissingProductData:
    """Missing fields, critical ones first, each list in fixed field order."""
    critical = []
    optional = []
    if not profile.standardized_name:
        critical.append("product_name")
    if not profile.function:
        critical.append("primary_function")
    if not profile.material_composition:
        optional.append("materials")
    if not profile.essential_character:
        optional.append("essential_character")
    if not profile.industry_specific_data:
        optional.append("industry_details")
    return MissingProductData(critical=tuple(critical), optional=tuple(optional))


def has_detailed_material_breakdown(profile: ProductProfile) -> bool:
    """
    True when the composition is quantified: a '%' marker in the free-text
    composition, or a material/component carrying a weight or value share.
    """
    if profile.material_composition and "%" in profile.material_composition:
        return True
    return any(
        c.has_percentages
        for c in (*profile.materials, *profile.components_breakdown)
    )


def generate_questions(
    missing_fields: Iterable[str],
    tables: ClassificationTables,
) -> tuple[str, ...]:
    """One question per field; unknown fields get the generic template."""
    return tuple(tables.questions.question_for(f) for f in missing_fields)


def calculate_readiness_score(profile: ProductProfile) -> int:
    score = 0
    for field_name, points in READINESS_POINTS.items():
        if getattr(profile, field_name):
            score += points
    return min(100, score)


def _mentions_essential_character_rule(gir_path: Iterable[str]) -> bool:
    return any("3b" in p or "3(b)" in p for p in gir_path)


def _percent_sum(values: Iterable[Optional[float]]) -> float:
    return sum(v for v in values if v is not None)


def validate_product_profile(profile: ProductProfile) -> ProfileValidation:
    """
    Completeness and consistency of an analyst's profile.

    Errors: missing name or function; a composite without at least two
    components or without essential character; a GIR 3(b) path without a
    component breakdown.
    Warnings: unnamed components; weight or value shares not summing to
    roughly 100%; self-reported readiness far from the computed one.
    """
    errors: list[ProfileFinding] = []
    warnings: list[ProfileFinding] = []

    if not profile.standardized_name:
        errors.append(ProfileFinding("MISSING_NAME", "standardized_name is required"))
    if not profile.function:
        errors.append(ProfileFinding("MISSING_FUNCTION", "function is required"))

    if profile.is_composite:
        if len(profile.components_breakdown) < 2:
            errors.append(ProfileFinding(
                "COMPOSITE_MISSING_COMPONENTS",
                "Product marked as composite but components_breakdown missing or has <2 items",
            ))
        if not profile.essential_character:
            errors.append(ProfileFinding(
                "COMPOSITE_MISSING_EC",
                "Composite product requires essential_character field",
            ))

    if _mentions_essential_character_rule(profile.potential_gir_path):
        if not profile.components_breakdown:
            errors.append(ProfileFinding(
                "GRI3B_MISSING_COMPONENTS",
                "GRI 3(b) path indicated but no components_breakdown",
            ))

    if profile.components_breakdown:
        for index, component in enumerate(profile.components_breakdown):
            if not component.name:
                warnings.append(ProfileFinding(
                    "COMPONENT_MISSING_NAME",
                    f"Component {index + 1} has no name",
                ))

        low, high = PERCENT_SUM_RANGE
        total_weight = _percent_sum(c.weight_percent for c in profile.components_breakdown)
        total_value = _percent_sum(c.value_percent for c in profile.components_breakdown)
        if total_weight > 0 and not low <= total_weight <= high:
            warnings.append(ProfileFinding(
                "WEIGHT_SUM_MISMATCH",
                f"Weight percentages sum to {total_weight:g}%, expected ~100%",
            ))
        if total_value > 0 and not low <= total_value <= high:
            warnings.append(ProfileFinding(
                "VALUE_SUM_MISMATCH",
                f"Value percentages sum to {total_value:g}%, expected ~100%",
            ))

    calculated = calculate_readiness_score(profile)
    if profile.readiness_score and abs(profile.readiness_score - calculated) > READINESS_TOLERANCE:
        warnings.append(ProfileFinding(
            "READINESS_MISMATCH",
            f"Reported readiness {profile.readiness_score}% doesn't match calculated {calculated}%",
        ))

    return ProfileValidation(
        errors=tuple(errors),
        warnings=tuple(warnings),
        calculated_readiness=calculated,
    )


def build_analyze_feedback(
    errors: Iterable[ProfileFinding],
    tables: ClassificationTables,
) -> str:
    """Retry instructions for the analyst, one entry per profile error."""
    feedback = tables.profile_feedback
    return "\n".join(feedback.message_for(e.code, e.message) for e in errors)


# =============================================================================
# Essential Character
# =============================================================================

def validate_essential_character_analysis(
    analysis: Optional[EssentialCharacterAnalysis],
) -> EssentialCharacterCheck:
    """
    Completeness of a GIR 3(b) analysis: at least two components, each
    with a name, bulk and value shares and a functional role; shares
    summing to roughly 100%; the essential component named and justified.
    """
    if analysis is None:
        return EssentialCharacterCheck(
            errors=("Missing essential_character_analysis or components",),
        )
    if len(analysis.components) < MIN_ESSENTIAL_CHARACTER_COMPONENTS:
        return EssentialCharacterCheck(
            errors=("Essential character requires at least 2 components for analysis",),
        )

    errors: list[str] = []
    for index, component in enumerate(analysis.components):
        label = component.name or f"#{index + 1}"
        if not component.name:
            errors.append(f"Component {label} missing name")
        if component.bulk_percent is None:
            errors.append(f'Component "{label}" missing bulk_percent')
        if component.value_percent is None:
            errors.append(f'Component "{label}" missing value_percent')
        if not component.functional_role:
            errors.append(f'Component "{label}" missing functional_role')

    low, high = PERCENT_SUM_RANGE
    total_bulk = _percent_sum(c.bulk_percent for c in analysis.components)
    total_value = _percent_sum(c.value_percent for c in analysis.components)
    if not low <= total_bulk <= high:
        errors.append(f"Bulk percentages sum to {total_bulk:g}%, expected ~100%")
    if not low <= total_value <= high:
        errors.append(f"Value percentages sum to {total_value:g}%, expected ~100%")

    if not analysis.essential_component:
        errors.append("Missing essential_component identification")
    if not analysis.justification:
        errors.append("Missing justification for essential character")

    return EssentialCharacterCheck(
        errors=tuple(errors),
        total_bulk=total_bulk,
        total_value=total_value,
    )
