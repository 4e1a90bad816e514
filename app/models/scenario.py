import math
from typing import Any, Optional
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from sqlmodel import SQLModel, Field
from uuid6 import uuid7

# Scenario Models

FILING_STATUSES = ("single", "married_jointly", "married_separately", "head_of_household")

FILING_STATUS_ALIASES = {
    "head_household": "head_of_household",
    "married_filing_jointly": "married_jointly",
    "married_filing_separately": "married_separately",
}

SCENARIO_COLORS = [
    "#10b981",  # emerald
    "#f59e0b",  # amber
    "#8b5cf6",  # violet
    "#ef4444",  # red
    "#06b6d4",  # cyan
    "#ec4899",  # pink
    "#84cc16",  # lime
    "#f97316",  # orange
]

# Numeric fields that may not go below zero
NON_NEGATIVE_FIELDS = {
    "swr", "baseMonthlyBudget", "spendingGrowthRate", "grossIncome",
    "preTax401k", "preTaxIRA", "preTaxHSA", "preTaxOther",
}

NUMERIC_FIELDS = (
    "currentRate", "swr", "inflationRate", "baseMonthlyBudget", "spendingGrowthRate",
    "yearlyContribution", "grossIncome", "incomeGrowthRate",
    "preTax401k", "preTaxIRA", "preTaxHSA", "preTaxOther", "effectiveTaxRate",
)


def coerce_number(value: Any, default: Optional[float], non_negative: bool = False) -> Optional[float]:
    """
    Turns loosely typed form input into a usable float.
    None, blanks, unparsable strings and non-finite values fall back to `default`;
    negatives are clamped to 0 for fields that cannot be negative.
    """
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    if non_negative and number < 0:
        return 0.0
    return number


def normalize_filing_status(value: Any) -> str:
    if not isinstance(value, str):
        return "single"
    status = value.strip().lower().replace("-", "_").replace(" ", "_")
    status = FILING_STATUS_ALIASES.get(status, status)
    return status if status in FILING_STATUSES else "single"


def normalize_state_code(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().upper()


class ScenarioBase(SQLModel):
    name: str = Field(default="My Scenario")
    description: Optional[str] = None
    color: str = Field(default=SCENARIO_COLORS[0])
    order: int = Field(default=0, sa_column_kwargs={"name": "sort_order"})
    isSelected: bool = Field(default=True, sa_column_kwargs={"name": "is_selected"})

    # Investment assumptions (percentages)
    currentRate: float = Field(default=7.0, sa_column_kwargs={"name": "current_rate"})
    swr: float = Field(default=4.0)
    inflationRate: float = Field(default=3.0, sa_column_kwargs={"name": "inflation_rate"})

    # Spending policy
    baseMonthlyBudget: float = Field(default=3000.0, sa_column_kwargs={"name": "base_monthly_budget"})
    spendingGrowthRate: float = Field(default=2.0, sa_column_kwargs={"name": "spending_growth_rate"})

    # Contributions. Derived from the income breakdown when grossIncome is set.
    yearlyContribution: float = Field(default=0.0, sa_column_kwargs={"name": "yearly_contribution"})

    # Income / tax profile
    grossIncome: Optional[float] = Field(default=None, sa_column_kwargs={"name": "gross_income"})
    incomeGrowthRate: float = Field(default=3.0, sa_column_kwargs={"name": "income_growth_rate"})
    filingStatus: str = Field(default="single", sa_column_kwargs={"name": "filing_status"})
    stateCode: Optional[str] = Field(default=None, sa_column_kwargs={"name": "state_code"})
    preTax401k: float = Field(default=0.0, sa_column_kwargs={"name": "pre_tax_401k"})
    preTaxIRA: float = Field(default=0.0, sa_column_kwargs={"name": "pre_tax_ira"})
    preTaxHSA: float = Field(default=0.0, sa_column_kwargs={"name": "pre_tax_hsa"})
    preTaxOther: float = Field(default=0.0, sa_column_kwargs={"name": "pre_tax_other"})
    effectiveTaxRate: Optional[float] = Field(default=None, sa_column_kwargs={"name": "effective_tax_rate"})

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v: Any, info: ValidationInfo) -> Any:
        default = cls.model_fields[info.field_name].default
        return coerce_number(v, default, info.field_name in NON_NEGATIVE_FIELDS)

    @field_validator("filingStatus", mode="before")
    @classmethod
    def coerce_filing_status(cls, v: Any) -> str:
        return normalize_filing_status(v)

    @field_validator("stateCode", mode="before")
    @classmethod
    def coerce_state_code(cls, v: Any) -> Optional[str]:
        return normalize_state_code(v)

    @property
    def hasIncomeProfile(self) -> bool:
        return bool(self.grossIncome and self.grossIncome > 0)


class Scenario(ScenarioBase, table=True):
    __tablename__ = "scenarios"
    id: UUID = Field(default_factory=uuid7, primary_key=True)
    userId: UUID = Field(foreign_key="users.id", index=True, sa_column_kwargs={"name": "user_id"})

    createdAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "created_at"})
    updatedAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "updated_at"})


class ScenarioRead(ScenarioBase):
    id: UUID
    userId: UUID
    createdAt: datetime
    updatedAt: datetime


class ScenarioCreate(ScenarioBase):
    # Color and order are assigned by the store when omitted
    color: Optional[str] = None
    order: Optional[int] = None


class ScenarioUpdate(SQLModel):
    """Partial update. Unset fields are left alone; invalid numbers are ignored."""
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    order: Optional[int] = None
    isSelected: Optional[bool] = None
    currentRate: Optional[float] = None
    swr: Optional[float] = None
    inflationRate: Optional[float] = None
    baseMonthlyBudget: Optional[float] = None
    spendingGrowthRate: Optional[float] = None
    yearlyContribution: Optional[float] = None
    grossIncome: Optional[float] = None
    incomeGrowthRate: Optional[float] = None
    filingStatus: Optional[str] = None
    stateCode: Optional[str] = None
    preTax401k: Optional[float] = None
    preTaxIRA: Optional[float] = None
    preTaxHSA: Optional[float] = None
    preTaxOther: Optional[float] = None

    @field_validator(*NUMERIC_FIELDS[:-1], mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v: Any, info: ValidationInfo) -> Any:
        return coerce_number(v, None, info.field_name in NON_NEGATIVE_FIELDS)

    @field_validator("filingStatus", mode="before")
    @classmethod
    def coerce_filing_status(cls, v: Any) -> Optional[str]:
        return None if v is None else normalize_filing_status(v)

    @field_validator("stateCode", mode="before")
    @classmethod
    def coerce_state_code(cls, v: Any) -> Optional[str]:
        return normalize_state_code(v)


class ScenarioAssumptions(BaseModel):
    """
    Fully-resolved, immutable planning inputs handed to the calculation engine.

    Rates stay in percent, exactly as the user entered them. Build one with
    `ScenarioAssumptions.from_scenario(...)`, which accepts a Scenario row,
    any ScenarioBase, a plain dict, or an existing ScenarioAssumptions, and
    applies every default and clamp in one place.
    """
    model_config = ConfigDict(frozen=True)

    currentRate: float = 7.0
    swr: float = 4.0
    inflationRate: float = 3.0
    baseMonthlyBudget: float = 3000.0
    spendingGrowthRate: float = 2.0
    yearlyContribution: float = 0.0
    grossIncome: Optional[float] = None
    incomeGrowthRate: float = 3.0
    filingStatus: str = "single"
    stateCode: Optional[str] = None
    preTax401k: float = 0.0
    preTaxIRA: float = 0.0
    preTaxHSA: float = 0.0
    preTaxOther: float = 0.0

    @field_validator(*[f for f in NUMERIC_FIELDS if f != "effectiveTaxRate"], mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v: Any, info: ValidationInfo) -> Any:
        default = cls.model_fields[info.field_name].default
        return coerce_number(v, default, info.field_name in NON_NEGATIVE_FIELDS)

    @field_validator("filingStatus", mode="before")
    @classmethod
    def coerce_filing_status(cls, v: Any) -> str:
        return normalize_filing_status(v)

    @field_validator("stateCode", mode="before")
    @classmethod
    def coerce_state_code(cls, v: Any) -> Optional[str]:
        return normalize_state_code(v)

    @classmethod
    def from_scenario(cls, scenario: Any) -> "ScenarioAssumptions":
        if isinstance(scenario, cls):
            return scenario
        if scenario is None:
            raise ValueError("A scenario is required to run a projection")
        if isinstance(scenario, dict):
            data = scenario
        elif hasattr(scenario, "currentRate"):
            data = {name: getattr(scenario, name, None) for name in cls.model_fields}
        else:
            raise ValueError(f"Cannot read planning assumptions from {type(scenario).__name__}")
        return cls.model_validate({k: v for k, v in data.items() if k in cls.model_fields})

    @property
    def hasIncomeProfile(self) -> bool:
        return bool(self.grossIncome and self.grossIncome > 0)

    @property
    def totalPreTax(self) -> float:
        return self.preTax401k + self.preTaxIRA + self.preTaxHSA + self.preTaxOther


# Quick-start templates offered when creating a scenario
SCENARIO_TEMPLATES = {
    "conservative": {
        "name": "Conservative",
        "description": "Lower returns, safer withdrawal rate",
        "currentRate": 5.0,
        "swr": 3.5,
        "inflationRate": 3.0,
    },
    "moderate": {
        "name": "Moderate",
        "description": "Balanced assumptions based on historical averages",
        "currentRate": 7.0,
        "swr": 4.0,
        "inflationRate": 3.0,
    },
    "aggressive": {
        "name": "Aggressive",
        "description": "Higher returns, standard 4% rule",
        "currentRate": 9.0,
        "swr": 4.5,
        "inflationRate": 2.5,
    },
    "high_inflation": {
        "name": "High Inflation",
        "description": "Stress test with elevated inflation",
        "currentRate": 7.0,
        "swr": 3.5,
        "inflationRate": 5.0,
    },
}
