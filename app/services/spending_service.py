from typing import Any, List, Optional
from pydantic import BaseModel

from app.models.scenario import ScenarioAssumptions


class LevelThreshold(BaseModel):
    level: int
    name: str
    threshold: float


class LevelStatus(LevelThreshold):
    monthlyBudget: float
    isUnlocked: bool
    isCurrent: bool
    isNext: bool


class LevelInfo(BaseModel):
    currentLevel: LevelStatus
    currentLevelIndex: int
    nextLevel: Optional[LevelStatus] = None
    progressToNext: float
    amountToNext: float
    unlockedAtLevel: float
    unlockedAtNetWorth: float
    baseBudgetInflationAdjusted: float
    netWorthPortion: float
    nextLevelSpendingIncrease: float
    spendingStatus: Optional[str] = None  # within_budget, slightly_over, over_budget
    levelsWithStatus: List[LevelStatus]
    yearsElapsed: float


LEVEL_THRESHOLDS = [
    LevelThreshold(level=level, name=name, threshold=threshold)
    for level, (name, threshold) in enumerate([
        ("Starter", 0),
        ("Saver", 10_000),
        ("Builder", 25_000),
        ("Momentum", 50_000),
        ("Foundation", 75_000),
        ("Traction", 100_000),
        ("Accelerator", 150_000),
        ("Velocity", 200_000),
        ("Milestone", 250_000),
        ("Cruising", 300_000),
        ("Advancing", 350_000),
        ("Thriving", 400_000),
        ("Flourishing", 450_000),
        ("Half Million", 500_000),
        ("Expanding", 550_000),
        ("Growing", 600_000),
        ("Ascending", 650_000),
        ("Rising", 700_000),
        ("Surging", 750_000),
        ("Climbing", 800_000),
        ("Soaring", 850_000),
        ("Elevating", 900_000),
        ("Approaching", 950_000),
        ("Millionaire", 1_000_000),
        ("Established", 1_100_000),
        ("Prospering", 1_200_000),
        ("Abundant", 1_300_000),
        ("Wealthy", 1_400_000),
        ("Accomplished", 1_500_000),
        ("Distinguished", 1_750_000),
        ("Double Million", 2_000_000),
        ("Exceptional", 2_250_000),
        ("Remarkable", 2_500_000),
        ("Outstanding", 2_750_000),
        ("Triple Million", 3_000_000),
        ("Elite", 3_500_000),
        ("Premier", 4_000_000),
        ("Pinnacle", 4_500_000),
        ("Five Million", 5_000_000),
        ("Apex", 6_000_000),
        ("Summit", 7_000_000),
        ("Zenith", 8_000_000),
        ("Crown", 9_000_000),
        ("Decamillionaire", 10_000_000),
        ("Titan", 15_000_000),
        ("Magnate", 20_000_000),
        ("Mogul", 30_000_000),
        ("Tycoon", 50_000_000),
        ("Dynasty", 75_000_000),
        ("Legacy", 100_000_000),
    ], start=1)
]

# Spending above the unlocked budget by up to this factor is "slightly over"
SLIGHTLY_OVER_FACTOR = 1.1


def growth_factor(rate_percent: float) -> float:
    """(1 + rate). A rate at or below -100% is a total loss and floors at 0."""
    return max(0.0, 1 + rate_percent / 100)


class SpendingCalculator:
    """
    Spending budget and inflation helpers.

    The monthly budget has two parts: an inflation-indexed base amount, and a
    share of net worth (`spendingGrowthRate` percent per year, paid monthly).
    Every point is evaluated independently; nothing here depends on the path
    net worth took to get there.
    """

    @staticmethod
    def inflation_multiplier(inflation_rate: float, years: float) -> float:
        if years <= 0:
            return 1.0
        return growth_factor(inflation_rate) ** years

    @staticmethod
    def nominal_to_real(nominal_value: float, inflation_rate: float, years: float) -> float:
        multiplier = SpendingCalculator.inflation_multiplier(inflation_rate, years)
        return nominal_value / multiplier if multiplier > 0 else 0.0

    @staticmethod
    def real_to_nominal(real_value: float, inflation_rate: float, years: float) -> float:
        return real_value * SpendingCalculator.inflation_multiplier(inflation_rate, years)

    @staticmethod
    def unlocked_spending(
        net_worth: float,
        base_monthly_budget: float,
        spending_growth_rate: float,
        years_from_now: float,
        inflation_rate: float,
    ) -> float:
        base = base_monthly_budget * SpendingCalculator.inflation_multiplier(inflation_rate, years_from_now)
        return base + net_worth * (spending_growth_rate / 100) / 12

    @staticmethod
    def compute_monthly_spend(net_worth: float, scenario: Any, years_from_now: float) -> float:
        """
        Allowed monthly spending at a given net worth and point in time.

        baseMonthlyBudget * (1 + inflation)^years + netWorth * spendingGrowthRate / 12
        """
        assumptions = ScenarioAssumptions.from_scenario(scenario)
        return SpendingCalculator.unlocked_spending(
            net_worth,
            assumptions.baseMonthlyBudget,
            assumptions.spendingGrowthRate,
            years_from_now,
            assumptions.inflationRate,
        )

    @staticmethod
    def current_level_index(net_worth: float) -> int:
        for i in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
            if net_worth >= LEVEL_THRESHOLDS[i].threshold:
                return i
        return 0

    @staticmethod
    def calculate_level_info(
        net_worth: float,
        scenario: Any,
        years_elapsed: float = 0.0,
        actual_monthly_spend: Optional[float] = None,
    ) -> LevelInfo:
        """
        Places net worth on the level ladder and reports the spending unlocked there.

        `years_elapsed` (time since tracking began) inflates the base budget.
        Spending status is only reported when an actual monthly spend is given.
        """
        a = ScenarioAssumptions.from_scenario(scenario)

        def unlocked(amount: float) -> float:
            return SpendingCalculator.unlocked_spending(
                amount, a.baseMonthlyBudget, a.spendingGrowthRate, years_elapsed, a.inflationRate
            )

        index = SpendingCalculator.current_level_index(net_worth)
        current = LEVEL_THRESHOLDS[index]
        upcoming = LEVEL_THRESHOLDS[index + 1] if index + 1 < len(LEVEL_THRESHOLDS) else None

        progress_to_next = 100.0
        amount_to_next = 0.0
        if upcoming:
            span = upcoming.threshold - current.threshold
            progress_to_next = min((net_worth - current.threshold) / span * 100, 100.0)
            amount_to_next = upcoming.threshold - net_worth

        unlocked_at_level = unlocked(current.threshold)

        spending_status = None
        if actual_monthly_spend is not None:
            if actual_monthly_spend <= unlocked_at_level:
                spending_status = "within_budget"
            elif actual_monthly_spend <= unlocked_at_level * SLIGHTLY_OVER_FACTOR:
                spending_status = "slightly_over"
            else:
                spending_status = "over_budget"

        levels = [
            LevelStatus(
                **level.model_dump(),
                monthlyBudget=unlocked(level.threshold),
                isUnlocked=i <= index,
                isCurrent=i == index,
                isNext=i == index + 1,
            )
            for i, level in enumerate(LEVEL_THRESHOLDS)
        ]

        return LevelInfo(
            currentLevel=levels[index],
            currentLevelIndex=index,
            nextLevel=levels[index + 1] if upcoming else None,
            progressToNext=progress_to_next,
            amountToNext=amount_to_next,
            unlockedAtLevel=unlocked_at_level,
            unlockedAtNetWorth=unlocked(net_worth),
            baseBudgetInflationAdjusted=a.baseMonthlyBudget * SpendingCalculator.inflation_multiplier(a.inflationRate, years_elapsed),
            netWorthPortion=net_worth * (a.spendingGrowthRate / 100) / 12,
            nextLevelSpendingIncrease=unlocked(upcoming.threshold) - unlocked_at_level if upcoming else 0.0,
            spendingStatus=spending_status,
            levelsWithStatus=levels,
            yearsElapsed=years_elapsed,
        )
