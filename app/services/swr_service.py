from pydantic import BaseModel

# 365.25 days per year, 7 days per week
DAYS_PER_YEAR = 365.25
WEEKS_PER_YEAR = DAYS_PER_YEAR / 7


class SwrAmounts(BaseModel):
    annual: float
    monthly: float
    weekly: float
    daily: float


def swr_amounts(net_worth: float, swr_percent: float) -> SwrAmounts:
    """Safe withdrawal income at a given net worth, broken down by period."""
    annual = net_worth * swr_percent / 100
    return SwrAmounts(
        annual=annual,
        monthly=annual / 12,
        weekly=annual / WEEKS_PER_YEAR,
        daily=annual / DAYS_PER_YEAR,
    )


def fi_target(monthly_spend: float, swr_percent: float) -> float:
    """
    Net worth whose safe withdrawal covers `monthly_spend`.
    Returns 0 ("not computable") when the rate or the spend is not positive.
    """
    if swr_percent <= 0 or monthly_spend <= 0:
        return 0.0
    return (monthly_spend * 12) / (swr_percent / 100)


def fi_progress(net_worth: float, fi_target_value: float) -> float:
    if fi_target_value <= 0:
        return 0.0
    return net_worth / fi_target_value * 100
