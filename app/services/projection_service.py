import calendar
import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel

from app.models.scenario import ScenarioAssumptions, coerce_number
from app.services.spending_service import SpendingCalculator, growth_factor
from app.services.swr_service import DAYS_PER_YEAR, fi_progress, fi_target, swr_amounts
from app.services.tax_service import PreTaxContributions, TaxService

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60
DEFAULT_PROJECTION_YEARS = 60
COAST_SEARCH_YEARS = 100

# Row fields expressed in currency; deflated when converting to today's dollars
MONEY_FIELDS = (
    "netWorth", "interest", "contributed", "monthlySpend", "annualSpending", "annualSavings",
    "fiTarget", "annualSwr", "monthlySwr", "weeklySwr", "dailySwr",
    "grossIncome", "totalTax", "netIncome", "preTaxContributions",
)


class FutureValue(BaseModel):
    total: float
    totalContributed: float
    totalInterest: float


class ProjectionRow(BaseModel):
    year: int
    month: Optional[int] = None  # None on yearly rows
    age: Optional[int] = None
    yearsFromNow: float
    yearsFromStart: float

    netWorth: float
    interest: float
    contributed: float

    monthlySpend: float
    annualSpending: float
    annualSavings: float

    fiTarget: float
    fiProgress: float
    annualSwr: float
    monthlySwr: float
    weeklySwr: float
    dailySwr: float
    swrCoversSpend: bool
    isFiYear: bool = False
    isCrossover: bool = False
    coastFiYear: Optional[int] = None  # None when currentRate or swr is not positive
    coastFiAge: Optional[int] = None

    # Present only when the scenario has an income profile
    grossIncome: Optional[float] = None
    totalTax: Optional[float] = None
    netIncome: Optional[float] = None
    preTaxContributions: Optional[float] = None
    effectiveTaxRate: Optional[float] = None


class ProjectionResult(BaseModel):
    currentRow: ProjectionRow
    yearlyRows: List[ProjectionRow]
    monthlyRows: List[ProjectionRow]


class ProjectionSummary(BaseModel):
    fiYear: Optional[int] = None
    fiAge: Optional[int] = None
    crossoverYear: Optional[int] = None
    coastFiYear: Optional[int] = None
    currentNetWorth: float
    currentFiProgress: float
    currentMonthlySpend: float
    currentMonthlySwr: float
    currentAnnualSwr: float


class RealTimeNetWorth(BaseModel):
    total: float
    baseAmount: float
    appreciation: float
    contributions: float
    yearsElapsed: float


class GrowthRates(BaseModel):
    perSecond: float
    perMinute: float
    perHour: float
    perDay: float
    perYear: float


def _end_of_year(year: int, tz=None) -> datetime:
    return datetime(year, 12, 31, 23, 59, 59, 999000, tzinfo=tz)


def _end_of_month(year: int, month: int, tz=None) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59, 999000, tzinfo=tz)


def _align(value: datetime, reference: datetime) -> datetime:
    """Makes `value` comparable with `reference` (naive values are UTC)."""
    if reference.tzinfo is None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if reference.tzinfo is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def years_between(start: datetime, end: datetime) -> float:
    return (_align(end, start) - start).total_seconds() / SECONDS_PER_YEAR


class ProjectionService:
    """
    Year-by-year and month-by-month net worth projection for one scenario.

    This service is pure: it does not touch the database, the clock or any
    shared state. Callers read a snapshot (scenario, latest entry, birth year),
    pass plain values in, and get the same rows back for the same inputs.

    Yearly rows:
    1. Each row sits at the last instant of a calendar year, starting with the
       year of `as_of`. Elapsed time is measured from the entry timestamp in
       365.25-day years, so a partial first year counts as a fraction.
    2. Net worth is the entry compounded at `currentRate` plus the future value
       of the yearly contributions (growing with income when an income profile
       is present).
    3. Spending, SWR amounts, FI target and progress are evaluated fresh at
       each row, along with taxes on that year's income.
    4. The first row whose monthly SWR covers spending is the FI year; the first
       row whose growth exceeds contributions is the crossover.

    Monthly rows interpolate net worth linearly in time between the yearly
    values and recompute spending and FI figures at every interpolated point.
    December rows therefore match their yearly row exactly.
    """

    def __init__(self):
        self.tax_service = TaxService()

    @staticmethod
    def calculate_future_value(
        principal: float,
        rate_percent: float,
        years: float,
        yearly_contribution: float = 0.0,
        contribution_growth_percent: float = 0.0,
    ) -> FutureValue:
        """
        Compounds `principal` for `years` and adds end-of-year contributions.

        Full years of contributions use the annuity formula (or an explicit
        growing-annuity sum when contributions grow). A trailing partial year
        adds its pro-rated contribution with half a partial year of growth.
        """
        years = max(0.0, years)
        factor = growth_factor(rate_percent)
        r = factor - 1
        full_years = math.floor(years)
        partial = years - full_years

        compounded = principal * factor ** years

        contribution_factor = growth_factor(contribution_growth_percent)
        if contribution_factor == 1:
            if r != 0 and full_years > 0:
                contribution_value = yearly_contribution * (factor ** full_years - 1) / r
            else:
                contribution_value = yearly_contribution * full_years
            contributed = yearly_contribution * full_years
        else:
            contribution_value = 0.0
            contributed = 0.0
            for k in range(full_years):
                amount = yearly_contribution * contribution_factor ** k
                contribution_value += amount * factor ** (full_years - 1 - k)
                contributed += amount

        if partial > 0:
            last_contribution = yearly_contribution * contribution_factor ** full_years
            contribution_value += partial * last_contribution * factor ** (partial / 2)
            contributed += partial * last_contribution

        total = compounded + contribution_value
        return FutureValue(
            total=total,
            totalContributed=contributed,
            totalInterest=total - principal - contributed,
        )

    @staticmethod
    def find_coast_fi_year(
        net_worth: float, from_year: int, years_from_now: float, assumptions: ScenarioAssumptions
    ) -> Optional[int]:
        """
        First year in which `net_worth`, compounding alone with no further
        contributions, covers the FI target for that future year's spending.
        None when the return rate or swr is not positive, when spending today
        is zero, or when nothing qualifies within the search horizon.
        """
        a = assumptions
        if a.swr <= 0 or a.currentRate <= 0:
            return None

        factor = growth_factor(a.currentRate)
        for offset in range(COAST_SEARCH_YEARS + 1):
            future_net_worth = net_worth * factor ** offset
            spend = SpendingCalculator.unlocked_spending(
                future_net_worth, a.baseMonthlyBudget, a.spendingGrowthRate,
                years_from_now + offset, a.inflationRate,
            )
            if offset == 0 and spend <= 0:
                return None
            target = fi_target(spend, a.swr)
            if target > 0 and future_net_worth >= target:
                return from_year + offset
        return None

    def _coast_fields(
        self, net_worth: float, year: int, years_from_now: float,
        a: ScenarioAssumptions, birth_year: Optional[int],
    ) -> dict:
        coast_year = self.find_coast_fi_year(net_worth, year, years_from_now, a)
        return {
            "coastFiYear": coast_year,
            "coastFiAge": coast_year - birth_year if coast_year and birth_year else None,
        }

    def _contribution_growth(self, a: ScenarioAssumptions) -> float:
        # Contributions only grow with income when there is an income profile
        return a.incomeGrowthRate if a.hasIncomeProfile else 0.0

    def _build_row(
        self,
        a: ScenarioAssumptions,
        *,
        year: int,
        month: Optional[int],
        years_from_now: float,
        years_from_start: float,
        net_worth: float,
        interest: float,
        contributed: float,
        annual_savings: float,
        birth_year: Optional[int],
    ) -> ProjectionRow:
        monthly_spend = SpendingCalculator.unlocked_spending(
            net_worth, a.baseMonthlyBudget, a.spendingGrowthRate, years_from_now, a.inflationRate
        )
        target = fi_target(monthly_spend, a.swr)
        withdrawals = swr_amounts(net_worth, a.swr)

        return ProjectionRow(
            year=year,
            month=month,
            age=year - birth_year if birth_year else None,
            yearsFromNow=years_from_now,
            yearsFromStart=years_from_start,
            netWorth=net_worth,
            interest=interest,
            contributed=contributed,
            monthlySpend=monthly_spend,
            annualSpending=monthly_spend * 12,
            annualSavings=annual_savings,
            fiTarget=target,
            fiProgress=fi_progress(net_worth, target),
            annualSwr=withdrawals.annual,
            monthlySwr=withdrawals.monthly,
            weeklySwr=withdrawals.weekly,
            dailySwr=withdrawals.daily,
            swrCoversSpend=monthly_spend > 0 and withdrawals.monthly >= monthly_spend,
        )

    def _income_fields(self, a: ScenarioAssumptions, years_from_now: int) -> dict:
        if not a.hasIncomeProfile:
            return {}
        gross = a.grossIncome * growth_factor(a.incomeGrowthRate) ** years_from_now
        pre_tax = PreTaxContributions(
            traditional401k=a.preTax401k,
            traditionalIRA=a.preTaxIRA,
            hsa=a.preTaxHSA,
            other=a.preTaxOther,
        )
        taxes = self.tax_service.compute_tax(gross, a.filingStatus, a.stateCode, pre_tax)
        return {
            "grossIncome": taxes.grossIncome,
            "totalTax": taxes.totalTax,
            "netIncome": taxes.netIncome,
            "preTaxContributions": taxes.totalPreTaxContributions,
            "effectiveTaxRate": taxes.effectiveTotalRate,
        }

    def project(
        self,
        scenario: Any,
        current_net_worth: float,
        start_timestamp: datetime,
        horizon_years: int = DEFAULT_PROJECTION_YEARS,
        *,
        as_of: Optional[datetime] = None,
        birth_year: Optional[int] = None,
        horizon_months: Optional[int] = None,
    ) -> ProjectionResult:
        """
        Projects `current_net_worth` (observed at `start_timestamp`) forward.

        Returns the "now" row at `as_of`, `horizon_years + 1` yearly rows, and
        monthly rows (all of them by default, or the first `horizon_months`).
        `as_of` defaults to `start_timestamp`.
        """
        a = ScenarioAssumptions.from_scenario(scenario)
        principal = coerce_number(current_net_worth, 0.0)
        start = start_timestamp
        as_of = _align(as_of, start) if as_of is not None else start
        horizon_years = max(0, int(horizon_years))
        contribution_growth = self._contribution_growth(a)

        def value_at(moment: datetime) -> FutureValue:
            return self.calculate_future_value(
                principal, a.currentRate, years_between(start, moment),
                a.yearlyContribution, contribution_growth,
            )

        def contribution_for(years_from_now: int) -> float:
            return a.yearlyContribution * growth_factor(contribution_growth) ** years_from_now

        # "Now"
        now_value = value_at(as_of)
        current_row = self._build_row(
            a,
            year=as_of.year,
            month=as_of.month,
            years_from_now=0.0,
            years_from_start=max(0.0, years_between(start, as_of)),
            net_worth=now_value.total,
            interest=now_value.totalInterest,
            contributed=now_value.totalContributed,
            annual_savings=contribution_for(0),
            birth_year=birth_year,
        ).model_copy(update={
            **self._income_fields(a, 0),
            **self._coast_fields(now_value.total, as_of.year, 0.0, a, birth_year),
        })

        yearly_rows: List[ProjectionRow] = []
        fi_found = False
        crossover_found = False
        for i in range(horizon_years + 1):
            year = as_of.year + i
            moment = _end_of_year(year, start.tzinfo)
            value = value_at(moment)

            row = self._build_row(
                a,
                year=year,
                month=None,
                years_from_now=float(i),
                years_from_start=max(0.0, years_between(start, moment)),
                net_worth=value.total,
                interest=value.totalInterest,
                contributed=value.totalContributed,
                annual_savings=contribution_for(i),
                birth_year=birth_year,
            )

            updates = self._income_fields(a, i)
            if row.swrCoversSpend and not fi_found:
                updates["isFiYear"] = True
                fi_found = True
            if not crossover_found and row.contributed > 0 and row.interest > row.contributed:
                updates["isCrossover"] = True
                crossover_found = True

            updates.update(self._coast_fields(row.netWorth, year, float(i), a, birth_year))

            yearly_rows.append(row.model_copy(update=updates))

        months_limit = horizon_months if horizon_months is not None else len(yearly_rows) * 12
        monthly_rows = self._monthly_rows(
            a, yearly_rows, start, value_at, months_limit, birth_year
        )

        logger.debug(
            f"Projected {len(yearly_rows)} years / {len(monthly_rows)} months from {principal:.2f}"
        )
        return ProjectionResult(currentRow=current_row, yearlyRows=yearly_rows, monthlyRows=monthly_rows)

    def _monthly_rows(
        self,
        a: ScenarioAssumptions,
        yearly_rows: List[ProjectionRow],
        start: datetime,
        value_at,
        months_limit: int,
        birth_year: Optional[int],
    ) -> List[ProjectionRow]:
        rows: List[ProjectionRow] = []
        if months_limit <= 0 or not yearly_rows:
            return rows

        fi_found = False
        crossover_found = False
        previous: Optional[ProjectionRow] = None

        for i, yearly in enumerate(yearly_rows):
            year_end = _end_of_year(yearly.year, start.tzinfo)
            previous_year_end = _end_of_year(yearly.year - 1, start.tzinfo)

            # Interval start: the previous yearly row, or the entry itself
            if previous is not None:
                interval_start = previous_year_end
                start_values = (previous.netWorth, previous.interest, previous.contributed)
            else:
                interval_start = max(start, previous_year_end)
                opening = value_at(interval_start)
                start_values = (opening.total, opening.totalInterest, opening.totalContributed)
            end_values = (yearly.netWorth, yearly.interest, yearly.contributed)
            span = (year_end - interval_start).total_seconds()

            for month in range(1, 13):
                month_end = _end_of_month(yearly.year, month, start.tzinfo)
                if month_end <= interval_start and month != 12:
                    continue
                fraction = 1.0 if span <= 0 else min(1.0, (month_end - interval_start).total_seconds() / span)
                if fraction >= 1.0:
                    net_worth, interest, contributed = end_values
                else:
                    net_worth, interest, contributed = (
                        s + (e - s) * fraction for s, e in zip(start_values, end_values)
                    )

                row = self._build_row(
                    a,
                    year=yearly.year,
                    month=month,
                    years_from_now=max(0.0, i - 1 + month / 12),
                    years_from_start=max(0.0, years_between(start, month_end)),
                    net_worth=net_worth,
                    interest=interest,
                    contributed=contributed,
                    annual_savings=yearly.annualSavings,
                    birth_year=birth_year,
                )
                updates = {
                    "coastFiYear": yearly.coastFiYear,
                    "coastFiAge": yearly.coastFiAge,
                    "grossIncome": yearly.grossIncome,
                    "totalTax": yearly.totalTax,
                    "netIncome": yearly.netIncome,
                    "preTaxContributions": yearly.preTaxContributions,
                    "effectiveTaxRate": yearly.effectiveTaxRate,
                }
                if row.swrCoversSpend and not fi_found:
                    updates["isFiYear"] = True
                    fi_found = True
                if not crossover_found and row.contributed > 0 and row.interest > row.contributed:
                    updates["isCrossover"] = True
                    crossover_found = True

                rows.append(row.model_copy(update=updates))
                if len(rows) >= months_limit:
                    return rows

            previous = yearly

        return rows

    @staticmethod
    def summarize(result: ProjectionResult) -> ProjectionSummary:
        fi_row = next((r for r in result.yearlyRows if r.isFiYear), None)
        crossover_row = next((r for r in result.yearlyRows if r.isCrossover), None)
        now = result.currentRow
        return ProjectionSummary(
            fiYear=fi_row.year if fi_row else None,
            fiAge=fi_row.age if fi_row else None,
            crossoverYear=crossover_row.year if crossover_row else None,
            coastFiYear=now.coastFiYear,
            currentNetWorth=now.netWorth,
            currentFiProgress=now.fiProgress,
            currentMonthlySpend=now.monthlySpend,
            currentMonthlySwr=now.monthlySwr,
            currentAnnualSwr=now.annualSwr,
        )

    @staticmethod
    def to_real_rows(rows: List[ProjectionRow], inflation_rate: float) -> List[ProjectionRow]:
        """Restates currency fields in today's dollars. Ratios and flags are unchanged."""
        real_rows = []
        for row in rows:
            multiplier = SpendingCalculator.inflation_multiplier(inflation_rate, row.yearsFromNow)
            updates = {}
            for field in MONEY_FIELDS:
                value = getattr(row, field)
                if value is not None:
                    updates[field] = value / multiplier if multiplier > 0 else 0.0
            real_rows.append(row.model_copy(update=updates))
        return real_rows

    @staticmethod
    def calculate_real_time_net_worth(
        entry_amount: float,
        entry_timestamp: datetime,
        scenario: Any,
        as_of: datetime,
        include_contributions: bool = False,
    ) -> RealTimeNetWorth:
        """
        Simple-interest estimate of net worth since the latest entry.
        Used for live "ticking" displays; projections use compounding instead.
        """
        a = ScenarioAssumptions.from_scenario(scenario)
        elapsed = max(0.0, years_between(entry_timestamp, as_of))
        appreciation = entry_amount * (a.currentRate / 100) * elapsed
        contributions = a.yearlyContribution * elapsed if include_contributions else 0.0
        return RealTimeNetWorth(
            total=entry_amount + appreciation + contributions,
            baseAmount=entry_amount,
            appreciation=appreciation,
            contributions=contributions,
            yearsElapsed=elapsed,
        )

    @staticmethod
    def calculate_growth_rates(
        net_worth: float, scenario: Any, include_contributions: bool = False
    ) -> GrowthRates:
        a = ScenarioAssumptions.from_scenario(scenario)
        per_year = net_worth * (a.currentRate / 100)
        if include_contributions:
            per_year += a.yearlyContribution
        per_second = per_year / SECONDS_PER_YEAR
        return GrowthRates(
            perSecond=per_second,
            perMinute=per_second * 60,
            perHour=per_second * 3600,
            perDay=per_year / DAYS_PER_YEAR,
            perYear=per_year,
        )
