"""Pension calculation engine: scale resolution, AVS, LPP and third pillar."""

from prevoyance.calculations.avs import (
    AVSCalculator,
    apply_result_to_profile,
    compute_full_rent_fraction,
    parse_disability_fraction,
    summarize_income_history,
)
from prevoyance.calculations.formatting import (
    format_chf,
    monthly_from_annual,
    round_chf,
)
from prevoyance.calculations.lpp import (
    aggregate_lpp,
    calculate_lpp_death,
    calculate_lpp_disability,
    calculate_lpp_retirement,
    early_retirement_options,
)
from prevoyance.calculations.scale import ScaleResolver
from prevoyance.calculations.third_pillar import (
    aggregate_third_pillar,
    project_third_pillar_account,
)

__all__ = [
    "AVSCalculator",
    "ScaleResolver",
    "aggregate_lpp",
    "aggregate_third_pillar",
    "apply_result_to_profile",
    "calculate_lpp_death",
    "calculate_lpp_disability",
    "calculate_lpp_retirement",
    "compute_full_rent_fraction",
    "early_retirement_options",
    "format_chf",
    "monthly_from_annual",
    "parse_disability_fraction",
    "project_third_pillar_account",
    "round_chf",
    "summarize_income_history",
]
