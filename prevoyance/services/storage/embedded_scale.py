"""
Embedded AVS Scale (Echelle 44, 2025)

The full old-age rent per income bracket is the published Echelle 44
table. The other columns are derived from it with the statutory ratios:

    disability 3/4, 1/2, 1/4     75 %, 50 %, 25 % of the full rent
    widow / widower              80 %
    widow 3/4, 1/2, 1/4          tiers of the widow rent
    widow additional rent        30 %
    child / orphan               40 %
    double child rent            60 %
    orphan (60 %)                60 %

Derived amounts are rounded half-up to whole francs.

The top bracket ends at 90 720 CHF. Incomes above it are not covered by
this table (see `PensionSettings.cap_income_above_scale`).
"""

from decimal import ROUND_HALF_UP, Decimal

from prevoyance.models.scale import BenefitScaleRow
from prevoyance.services.storage.interface import ScaleRepository


SCALE_YEAR = 2025

# (income threshold, full monthly old-age rent), CHF
ECHELLE_44_2025: tuple[tuple[int, int], ...] = (
    (15120, 1260),
    (16800, 1285),
    (18480, 1310),
    (20160, 1335),
    (21840, 1360),
    (23520, 1385),
    (25200, 1410),
    (26880, 1435),
    (28560, 1460),
    (30240, 1485),
    (31920, 1510),
    (33600, 1535),
    (35280, 1560),
    (36960, 1585),
    (38640, 1610),
    (40320, 1635),
    (42000, 1660),
    (43680, 1685),
    (45360, 1710),
    (47040, 1735),
    (48720, 1760),
    (50400, 1785),
    (52080, 1810),
    (53760, 1835),
    (55440, 1860),
    (57120, 1885),
    (58800, 1910),
    (60480, 1935),
    (62160, 1960),
    (63840, 1985),
    (65520, 2010),
    (67200, 2035),
    (68880, 2060),
    (70560, 2085),
    (72240, 2110),
    (73920, 2135),
    (75600, 2160),
    (77280, 2185),
    (78960, 2210),
    (80640, 2235),
    (82320, 2260),
    (84000, 2285),
    (85680, 2310),
    (87360, 2335),
    (89040, 2360),
    (90720, 2520),
)


def _pct(amount: Decimal, percent: str) -> Decimal:
    return (amount * Decimal(percent) / Decimal("100")).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )


def build_scale_row(income_threshold: int, old_age_rent_full: int) -> BenefitScaleRow:
    """Derive a full scale row from a bracket's old-age rent."""
    full = Decimal(old_age_rent_full)
    widow = _pct(full, "80")
    return BenefitScaleRow(
        income_threshold=Decimal(income_threshold),
        old_age_rent_full=full,
        disability_rent_3_4=_pct(full, "75"),
        disability_rent_1_2=_pct(full, "50"),
        disability_rent_1_4=_pct(full, "25"),
        widow_rent_full=widow,
        widow_rent_3_4=_pct(widow, "75"),
        widow_rent_1_2=_pct(widow, "50"),
        widow_rent_1_4=_pct(widow, "25"),
        widow_additional_rent=_pct(full, "30"),
        child_rent=_pct(full, "40"),
        double_child_rent=_pct(full, "60"),
        orphan_rent_60pct=_pct(full, "60"),
        scale_year=SCALE_YEAR,
    )


class EmbeddedScaleRepository(ScaleRepository):
    """Serves the built-in Echelle 44 (2025) table."""

    def load_rows(self) -> list[BenefitScaleRow]:
        return [
            build_scale_row(threshold, rent)
            for threshold, rent in ECHELLE_44_2025
        ]
