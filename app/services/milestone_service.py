from typing import Any, Callable, Dict, List, Optional
from pydantic import BaseModel

from app.models.scenario import ScenarioAssumptions
from app.services.projection_service import ProjectionRow
from app.services.spending_service import growth_factor
from app.services.swr_service import fi_progress, fi_target

RETIREMENT_AGE = 65


class MilestoneDefinition(BaseModel):
    id: str
    type: str  # percentage, runway, coast, lifestyle, special, retirement_income
    metric: str  # which evaluator decides whether a row meets the target
    shortName: str
    name: str
    description: str
    targetValue: float
    color: str


class FiMilestone(BaseModel):
    id: str
    type: str
    shortName: str
    name: str
    description: str
    targetValue: float
    color: str
    year: Optional[int] = None
    month: Optional[int] = None
    age: Optional[int] = None
    yearsFromNow: Optional[float] = None
    isAchieved: bool = False
    netWorthAtMilestone: Optional[float] = None


class MilestoneEvaluation(BaseModel):
    milestones: List[FiMilestone] = []
    currentMilestone: Optional[FiMilestone] = None
    nextMilestone: Optional[FiMilestone] = None
    progressToNext: float = 0.0
    amountToNext: float = 0.0


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def _percentage(pct: int, name: str, color: str) -> MilestoneDefinition:
    return MilestoneDefinition(
        id=f"fi_{pct}", type="percentage", metric="fi_progress",
        shortName=f"{pct}% FI", name=name,
        description=f"Net worth reaches {pct}% of the FI target",
        targetValue=pct, color=color,
    )


def _runway(milestone_id: str, years: float, short_name: str) -> MilestoneDefinition:
    return MilestoneDefinition(
        id=milestone_id, type="runway", metric="runway_years",
        shortName=short_name, name=f"{short_name} Runway",
        description=f"Net worth covers {short_name.lower()} of spending with no growth",
        targetValue=years, color="#06b6d4",
    )


def _coast(pct: int) -> MilestoneDefinition:
    return MilestoneDefinition(
        id=f"coast_{pct}", type="coast", metric="coast_percent",
        shortName=f"{pct}% Coast", name=f"{pct}% Coast FI",
        description=f"Growth alone reaches {pct}% of the FI target by age {RETIREMENT_AGE}",
        targetValue=pct, color="#8b5cf6",
    )


def _lifestyle(milestone_id: str, multiplier: float, short_name: str, description: str) -> MilestoneDefinition:
    return MilestoneDefinition(
        id=milestone_id, type="lifestyle", metric="lifestyle",
        shortName=short_name, name=short_name, description=description,
        targetValue=multiplier, color="#ec4899",
    )


def _income_label(amount: int) -> str:
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:g}m".replace(".", "_")
    return f"{amount // 1000}k"


def _retirement_income(amount: int) -> MilestoneDefinition:
    label = _income_label(amount)
    display = label.replace("_", ".").upper()
    return MilestoneDefinition(
        id=f"retirement_income_{label}", type="retirement_income", metric="retirement_income",
        shortName=f"${display}/yr", name=f"${display} Retirement Income",
        description=f"Stopping contributions today still yields ${amount:,} a year (today's dollars) at {RETIREMENT_AGE}",
        targetValue=amount, color="#84cc16",
    )


RETIREMENT_INCOME_TIERS = [
    10_000, 20_000, 30_000, 40_000, 50_000, 60_000, 75_000, 100_000,
    125_000, 150_000, 200_000, 250_000, 300_000, 400_000, 500_000, 600_000,
    750_000, 1_000_000, 1_250_000, 1_500_000, 1_750_000, 2_000_000,
]

MILESTONE_CATALOG: List[MilestoneDefinition] = [
    _percentage(10, "First Steps", "#94a3b8"),
    _percentage(25, "Quarter Way", "#f59e0b"),
    _percentage(50, "Halfway There", "#f97316"),
    _percentage(75, "Home Stretch", "#3b82f6"),
    _percentage(100, "Financial Independence", "#10b981"),

    _lifestyle("lean_fi", 0.7, "Lean FI", "FI on 70% of the base budget"),
    _lifestyle("barista_fi", 0.85, "Barista FI", "FI on 85% of the base budget, topped up by part-time work"),
    _lifestyle("regular_fi", 1.0, "Regular FI", "FI on the full base budget"),
    _lifestyle("fat_fi", 1.5, "Fat FI", "FI on 150% of the base budget"),

    _runway("runway_6mo", 0.5, "6 Months"),
    _runway("runway_1yr", 1, "1 Year"),
    _runway("runway_2yr", 2, "2 Years"),
    _runway("runway_3yr", 3, "3 Years"),
    _runway("runway_5yr", 5, "5 Years"),
    _runway("runway_10yr", 10, "10 Years"),

    _coast(25),
    _coast(50),
    _coast(75),

    MilestoneDefinition(
        id="crossover", type="special", metric="crossover",
        shortName="Crossover", name="Crossover Point",
        description="Investment growth exceeds total contributions",
        targetValue=1, color="#ef4444",
    ),
    MilestoneDefinition(
        id="coast_fi", type="special", metric="coast_percent",
        shortName="Coast FI", name="Coast FI",
        description=f"Growth alone reaches the full FI target by age {RETIREMENT_AGE}",
        targetValue=100, color="#8b5cf6",
    ),
    MilestoneDefinition(
        id="flamingo_fi", type="special", metric="fi_progress",
        shortName="Flamingo FI", name="Flamingo FI",
        description="Half of the FI target: enough to downshift and let growth finish the job",
        targetValue=50, color="#f472b6",
    ),
] + [_retirement_income(amount) for amount in RETIREMENT_INCOME_TIERS]


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------

def calculate_runway_years(net_worth: float, monthly_spend: float) -> float:
    annual = monthly_spend * 12
    return net_worth / annual if annual > 0 else 0.0


def calculate_dollar_multiplier(years: float, rate_percent: float) -> float:
    return growth_factor(rate_percent) ** max(0.0, years)


def years_to_retirement(age: Optional[int]) -> Optional[int]:
    if age is None:
        return None
    return max(0, RETIREMENT_AGE - age)


def calculate_coast_fi_percent(
    net_worth: float, monthly_spend: float, years: float, rate_percent: float,
    inflation_rate: float, swr_percent: float,
) -> float:
    """Share of the retirement-year FI target that today's net worth grows into."""
    future_net_worth = net_worth * calculate_dollar_multiplier(years, rate_percent)
    future_spend = monthly_spend * calculate_dollar_multiplier(years, inflation_rate)
    return fi_progress(future_net_worth, fi_target(future_spend, swr_percent))


def calculate_projected_retirement_income(
    net_worth: float, years: float, rate_percent: float, inflation_rate: float, swr_percent: float
) -> float:
    """Annual SWR income at retirement, in today's dollars, with no more contributions."""
    nominal = net_worth * calculate_dollar_multiplier(years, rate_percent) * swr_percent / 100
    deflator = calculate_dollar_multiplier(years, inflation_rate)
    return nominal / deflator if deflator > 0 else 0.0


def calculate_net_worth_for_retirement_income(
    annual_income: float, years: float, rate_percent: float, inflation_rate: float, swr_percent: float
) -> float:
    growth = calculate_dollar_multiplier(years, rate_percent)
    if swr_percent <= 0 or growth <= 0:
        return 0.0
    return annual_income * calculate_dollar_multiplier(years, inflation_rate) / (swr_percent / 100) / growth


# ---------------------------------------------------------------------------
# Evaluators: (row, definition, assumptions) -> met?
# ---------------------------------------------------------------------------

Evaluator = Callable[[ProjectionRow, MilestoneDefinition, ScenarioAssumptions], bool]


def _meets_fi_progress(row, definition, a):
    return row.fiTarget > 0 and row.fiProgress >= definition.targetValue


def _meets_runway(row, definition, a):
    return calculate_runway_years(row.netWorth, row.monthlySpend) >= definition.targetValue


def _meets_coast(row, definition, a):
    years = years_to_retirement(row.age)
    if years is None:
        return False
    pct = calculate_coast_fi_percent(
        row.netWorth, row.monthlySpend, years, a.currentRate, a.inflationRate, a.swr
    )
    return pct >= definition.targetValue


def _meets_lifestyle(row, definition, a):
    # Fixed tiers of the base budget in today's dollars, not the scenario's growing budget
    target = fi_target(a.baseMonthlyBudget * definition.targetValue, a.swr)
    return target > 0 and row.netWorth >= target


def _meets_retirement_income(row, definition, a):
    years = years_to_retirement(row.age)
    if years is None:
        return False
    income = calculate_projected_retirement_income(
        row.netWorth, years, a.currentRate, a.inflationRate, a.swr
    )
    return income >= definition.targetValue


def _meets_crossover(row, definition, a):
    return row.contributed > 0 and row.interest > row.contributed


EVALUATORS: Dict[str, Evaluator] = {
    "fi_progress": _meets_fi_progress,
    "runway_years": _meets_runway,
    "coast_percent": _meets_coast,
    "lifestyle": _meets_lifestyle,
    "retirement_income": _meets_retirement_income,
    "crossover": _meets_crossover,
}


class MilestoneService:
    """
    Walks projection rows against MILESTONE_CATALOG.

    A milestone is reached at the first row that meets its target; its
    year, age and net worth come from that row. It counts as achieved when
    that row is the current state (the "now" row when given, otherwise the
    first yearly row). Monthly rows, when supplied, narrow down the month.
    """

    def get_catalog(self) -> List[MilestoneDefinition]:
        return list(MILESTONE_CATALOG)

    def evaluate_milestones(
        self,
        yearly_rows: List[ProjectionRow],
        scenario: Any,
        birth_year: Optional[int] = None,
        *,
        current_row: Optional[ProjectionRow] = None,
        monthly_rows: Optional[List[ProjectionRow]] = None,
    ) -> MilestoneEvaluation:
        if not yearly_rows:
            return MilestoneEvaluation()

        a = ScenarioAssumptions.from_scenario(scenario)
        rows = [self._with_age(r, birth_year) for r in yearly_rows]
        months = [self._with_age(r, birth_year) for r in (monthly_rows or [])]
        current = self._with_age(current_row, birth_year) if current_row is not None else None
        scan = ([current] if current is not None else []) + rows
        present = scan[0]

        milestones = []
        for order, definition in enumerate(MILESTONE_CATALOG):
            meets = EVALUATORS[definition.metric]
            hit = next((row for row in scan if meets(row, definition, a)), None)
            milestone = FiMilestone(**definition.model_dump(exclude={"metric"}))
            if hit is not None:
                milestone.year = hit.year
                milestone.age = hit.age
                milestone.yearsFromNow = hit.yearsFromNow
                milestone.netWorthAtMilestone = hit.netWorth
                milestone.isAchieved = hit is present
                milestone.month = self._month_reached(hit, current, months, definition, a)
            milestones.append((order, milestone))

        milestones.sort(key=lambda pair: (
            not pair[1].isAchieved,
            pair[1].year if pair[1].year is not None else float("inf"),
            pair[0],
        ))
        ordered = [m for _, m in milestones]

        percentage = sorted(
            (m for m in ordered if m.type == "percentage"), key=lambda m: m.targetValue
        )
        achieved = [m for m in percentage if m.isAchieved]
        current_milestone = achieved[-1] if achieved else None
        next_milestone = next((m for m in percentage if not m.isAchieved), None)

        progress_to_next = 100.0
        amount_to_next = 0.0
        if next_milestone:
            floor = current_milestone.targetValue if current_milestone else 0.0
            span = next_milestone.targetValue - floor
            progress_to_next = min(100.0, max(0.0, (present.fiProgress - floor) / span * 100)) if span > 0 else 0.0
            amount_to_next = max(0.0, present.fiTarget * next_milestone.targetValue / 100 - present.netWorth)

        return MilestoneEvaluation(
            milestones=ordered,
            currentMilestone=current_milestone,
            nextMilestone=next_milestone,
            progressToNext=progress_to_next,
            amountToNext=amount_to_next,
        )

    @staticmethod
    def _with_age(row: ProjectionRow, birth_year: Optional[int]) -> ProjectionRow:
        if row.age is None and birth_year:
            return row.model_copy(update={"age": row.year - birth_year})
        return row

    @staticmethod
    def _month_reached(
        hit: ProjectionRow,
        current: Optional[ProjectionRow],
        months: List[ProjectionRow],
        definition: MilestoneDefinition,
        a: ScenarioAssumptions,
    ) -> Optional[int]:
        if hit is current:
            return hit.month
        if not months:
            return None
        meets = EVALUATORS[definition.metric]
        first = next((m for m in months if m.year == hit.year and meets(m, definition, a)), None)
        # Interpolated months can fall just short of the exact year-end figure
        return first.month if first else 12
