"""
Benefit Scale Resolver

Finds the AVS scale bracket for an annual income.

Semantics are those of a progressive step table: the bracket is the row
with the smallest `income_threshold` that is >= the income. An income
exactly on a threshold resolves to that bracket, not the next one, and
there is no interpolation between rows.

DESIGN DECISION: The table is loaded once from a ScaleRepository, sorted,
and kept in memory. The scale is small and immutable, so there is nothing
to invalidate. Lookup is a binary search over the sorted thresholds.
"""

from bisect import bisect_left
from decimal import Decimal
from typing import Optional

from prevoyance.calculations.formatting import Number, to_decimal
from prevoyance.config import get_settings
from prevoyance.errors import NotFoundError, ValidationError
from prevoyance.models.scale import BenefitScaleRow
from prevoyance.services.storage.interface import ScaleRepository


class ScaleResolver:
    """
    Resolves incomes to scale rows.

    Income above the top bracket is a hard NotFoundError unless
    `cap_income_above_scale` is enabled, in which case the top row is used.

    Rows tagged with a `scale_year` must all match the expected year
    (PENSION_SCALE_YEAR by default). Untagged rows are accepted.
    """

    def __init__(
        self,
        repository: ScaleRepository,
        cap_income_above_scale: Optional[bool] = None,
        scale_year: Optional[int] = None,
    ):
        settings = get_settings().pension
        rows = sorted(repository.load_rows(), key=lambda row: row.income_threshold)
        if not rows:
            raise ValueError("Scale table is empty")

        thresholds = [row.income_threshold for row in rows]
        for lower, upper in zip(thresholds, thresholds[1:]):
            if lower == upper:
                raise ValueError(f"Duplicate income threshold in scale table: {lower}")

        if scale_year is None:
            scale_year = settings.scale_year
        other_years = sorted(
            {row.scale_year for row in rows if row.scale_year is not None} - {scale_year}
        )
        if other_years:
            raise ValueError(
                f"Scale table is for {', '.join(map(str, other_years))}, expected {scale_year}"
            )

        if cap_income_above_scale is None:
            cap_income_above_scale = settings.cap_income_above_scale

        self._rows: tuple[BenefitScaleRow, ...] = tuple(rows)
        self._thresholds: list[Decimal] = thresholds
        self._cap = cap_income_above_scale
        self._scale_year = scale_year

    @property
    def rows(self) -> tuple[BenefitScaleRow, ...]:
        """Scale rows in ascending threshold order."""
        return self._rows

    @property
    def scale_year(self) -> int:
        return self._scale_year

    @property
    def top_threshold(self) -> Decimal:
        return self._thresholds[-1]

    def resolve_scale_row(self, income: Number) -> BenefitScaleRow:
        """
        Return the bracket for `income`.

        Raises:
            ValidationError: income is not a positive number
            NotFoundError: income exceeds every threshold (and capping is off)
        """
        value = to_decimal(income, "income")
        if value <= 0:
            raise ValidationError(
                f"Income must be greater than zero, got {value}",
                field="income",
                value=income,
            )

        index = bisect_left(self._thresholds, value)
        if index == len(self._rows):
            if self._cap:
                return self._rows[-1]
            raise NotFoundError(
                f"No scale bracket covers income {value} "
                f"(top threshold is {self.top_threshold})",
                field="income",
                value=income,
            )
        return self._rows[index]
