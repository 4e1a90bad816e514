from pydantic import BaseModel, field_validator
from typing import Any, Dict, List, Optional, Tuple

from app.models.scenario import coerce_number, normalize_filing_status, normalize_state_code
from app.services.state_tax_data import STATE_TAX_TABLE


class PreTaxContributions(BaseModel):
    traditional401k: float = 0.0
    traditionalIRA: float = 0.0
    hsa: float = 0.0
    other: float = 0.0

    @field_validator("traditional401k", "traditionalIRA", "hsa", "other", mode="before")
    @classmethod
    def clamp_amount(cls, v: Any) -> float:
        return coerce_number(v, 0.0, non_negative=True)

    @property
    def total(self) -> float:
        return self.traditional401k + self.traditionalIRA + self.hsa + self.other


class BracketBreakdown(BaseModel):
    min: float
    max: Optional[float] = None  # None for the open-ended top bracket
    rate: float  # percent
    taxableInBracket: float
    taxFromBracket: float


class FicaBreakdown(BaseModel):
    socialSecurityWages: float = 0.0
    socialSecurityWageCap: float = 0.0
    socialSecurityRate: float = 0.0
    socialSecurityTax: float = 0.0
    wagesAboveSsCap: float = 0.0
    medicareBaseRate: float = 0.0
    medicareBaseTax: float = 0.0
    additionalMedicareThreshold: float = 0.0
    additionalMedicareRate: float = 0.0
    additionalMedicareWages: float = 0.0
    additionalMedicareTax: float = 0.0
    totalMedicareTax: float = 0.0
    totalFicaTax: float = 0.0
    effectiveFicaRate: float = 0.0


class TaxCalculation(BaseModel):
    grossIncome: float
    filingStatus: str
    stateCode: Optional[str] = None
    preTaxContributions: PreTaxContributions
    totalPreTaxContributions: float
    adjustedGrossIncome: float

    federalStandardDeduction: float
    federalTaxableIncome: float
    federalTax: float
    federalBracketBreakdown: List[BracketBreakdown]
    marginalFederalRate: float
    effectiveFederalRate: float

    stateName: Optional[str] = None
    stateTaxType: str = "none"  # none, flat, progressive
    stateStandardDeduction: float = 0.0
    statePersonalExemption: float = 0.0
    stateTaxableIncome: float = 0.0
    stateTax: float = 0.0
    stateBracketBreakdown: List[BracketBreakdown] = []
    marginalStateRate: float = 0.0
    effectiveStateRate: float = 0.0

    fica: FicaBreakdown

    totalTax: float
    effectiveTotalRate: float
    netIncome: float
    monthlyNetIncome: float


class ScenarioIncomeBreakdown(BaseModel):
    taxes: TaxCalculation
    monthlySpending: float
    annualSpending: float
    totalAnnualSavings: float
    monthlySavingsAvailable: float
    savingsRateOfGross: float


class TaxService:
    """
    Federal, state and FICA income tax calculator.

    Tables hold 2024 figures (IRS Rev. Proc. 2023-34, SSA wage base).
    Everything is computed from static data, so results are deterministic
    and safe to recompute on every request. Output rates are percentages.
    """

    STANDARD_DEDUCTION_2024 = {
        "single": 14600,
        "married_jointly": 29200,
        "married_separately": 14600,
        "head_of_household": 21900,
    }

    # Brackets: (Lower Limit, Rate)
    TAX_BRACKETS_2024 = {
        "single": [
            (0, 0.10),
            (11600, 0.12),
            (47150, 0.22),
            (100525, 0.24),
            (191950, 0.32),
            (243725, 0.35),
            (609350, 0.37)
        ],
        "married_jointly": [
            (0, 0.10),
            (23200, 0.12),
            (94300, 0.22),
            (201050, 0.24),
            (383900, 0.32),
            (487450, 0.35),
            (731200, 0.37)
        ],
        "married_separately": [
            (0, 0.10),
            (11600, 0.12),
            (47150, 0.22),
            (100525, 0.24),
            (191950, 0.32),
            (243725, 0.35),
            (365600, 0.37)
        ],
        "head_of_household": [
            (0, 0.10),
            (16550, 0.12),
            (63100, 0.22),
            (100500, 0.24),
            (191950, 0.32),
            (243700, 0.35),
            (609350, 0.37)
        ],
    }

    SOCIAL_SECURITY_WAGE_CAP_2024 = 168600
    SOCIAL_SECURITY_RATE = 0.062
    MEDICARE_BASE_RATE = 0.0145
    ADDITIONAL_MEDICARE_RATE = 0.009
    ADDITIONAL_MEDICARE_THRESHOLD = {
        "single": 200000,
        "married_jointly": 250000,
        "married_separately": 125000,
        "head_of_household": 200000,
    }

    @staticmethod
    def _percent(rate: float) -> float:
        return round(rate * 100, 4)

    def calculate_bracket_tax(
        self, taxable_income: float, brackets: List[Tuple[float, float]]
    ) -> Tuple[float, List[BracketBreakdown], float]:
        """
        Applies progressive brackets to taxable income.
        Returns (total tax, per-bracket breakdown, marginal rate as a decimal).
        """
        tax = 0.0
        marginal_rate = 0.0
        breakdown = []

        for i, (current_min, rate) in enumerate(brackets):
            # Next bracket start is the ceiling of this bracket
            bracket_cap = brackets[i + 1][0] if i < len(brackets) - 1 else None
            ceiling = bracket_cap if bracket_cap is not None else float("inf")

            subject_to_tax = max(0.0, min(taxable_income, ceiling) - current_min)
            bracket_tax = subject_to_tax * rate
            tax += bracket_tax
            if subject_to_tax > 0:
                marginal_rate = rate

            breakdown.append(BracketBreakdown(
                min=current_min,
                max=bracket_cap,
                rate=self._percent(rate),
                taxableInBracket=subject_to_tax,
                taxFromBracket=bracket_tax,
            ))

        return tax, breakdown, marginal_rate

    def calculate_fica(self, gross_income: float, filing_status: str) -> FicaBreakdown:
        wages = max(0.0, gross_income)
        threshold = self.ADDITIONAL_MEDICARE_THRESHOLD[filing_status]

        ss_wages = min(wages, self.SOCIAL_SECURITY_WAGE_CAP_2024)
        ss_tax = ss_wages * self.SOCIAL_SECURITY_RATE
        medicare_base = wages * self.MEDICARE_BASE_RATE
        additional_wages = max(0.0, wages - threshold)
        additional_medicare = additional_wages * self.ADDITIONAL_MEDICARE_RATE
        total_medicare = medicare_base + additional_medicare
        total_fica = ss_tax + total_medicare

        return FicaBreakdown(
            socialSecurityWages=ss_wages,
            socialSecurityWageCap=self.SOCIAL_SECURITY_WAGE_CAP_2024,
            socialSecurityRate=self._percent(self.SOCIAL_SECURITY_RATE),
            socialSecurityTax=ss_tax,
            wagesAboveSsCap=max(0.0, wages - self.SOCIAL_SECURITY_WAGE_CAP_2024),
            medicareBaseRate=self._percent(self.MEDICARE_BASE_RATE),
            medicareBaseTax=medicare_base,
            additionalMedicareThreshold=threshold,
            additionalMedicareRate=self._percent(self.ADDITIONAL_MEDICARE_RATE),
            additionalMedicareWages=additional_wages,
            additionalMedicareTax=additional_medicare,
            totalMedicareTax=total_medicare,
            totalFicaTax=total_fica,
            effectiveFicaRate=total_fica / wages * 100 if wages > 0 else 0.0,
        )

    def compute_tax(
        self,
        gross_income: float,
        filing_status: str = "single",
        state_code: Optional[str] = None,
        pre_tax: Optional[PreTaxContributions] = None,
    ) -> TaxCalculation:
        """
        Full tax breakdown for one year of wage income.

        AGI is gross income less pre-tax contributions. Federal taxable income
        subtracts the standard deduction; state taxable income subtracts the
        state's deduction and personal exemption. FICA is levied on gross wages.
        Zero or negative income produces an all-zero breakdown.
        """
        gross = coerce_number(gross_income, 0.0, non_negative=True)
        status = normalize_filing_status(filing_status)
        code = normalize_state_code(state_code)
        contributions = pre_tax or PreTaxContributions()
        total_pre_tax = contributions.total

        agi = max(0.0, gross - total_pre_tax)

        # Federal
        std_deduction = self.STANDARD_DEDUCTION_2024[status]
        federal_taxable = max(0.0, agi - std_deduction)
        federal_tax, federal_breakdown, federal_marginal = self.calculate_bracket_tax(
            federal_taxable, self.TAX_BRACKETS_2024[status]
        )

        # State
        state = STATE_TAX_TABLE.get(code) if code else None
        state_fields: Dict[str, Any] = {}
        state_tax = 0.0
        if state and state["type"] != "none":
            schedule = "married_jointly" if status == "married_jointly" else "single"
            brackets = state["brackets"].get(schedule, state["brackets"]["single"])
            deduction = state["standard_deduction"][schedule]
            exemption = state["personal_exemption"][schedule]
            state_taxable = max(0.0, agi - deduction - exemption)
            state_tax, state_breakdown, state_marginal = self.calculate_bracket_tax(state_taxable, brackets)
            state_fields = dict(
                stateTaxType=state["type"],
                stateStandardDeduction=deduction,
                statePersonalExemption=exemption,
                stateTaxableIncome=state_taxable,
                stateTax=state_tax,
                stateBracketBreakdown=state_breakdown,
                marginalStateRate=self._percent(state_marginal),
                effectiveStateRate=state_tax / gross * 100 if gross > 0 else 0.0,
            )

        fica = self.calculate_fica(gross, status)

        total_tax = federal_tax + state_tax + fica.totalFicaTax
        net_income = gross - total_pre_tax - total_tax

        return TaxCalculation(
            grossIncome=gross,
            filingStatus=status,
            stateCode=code,
            stateName=state["name"] if state else None,
            preTaxContributions=contributions,
            totalPreTaxContributions=total_pre_tax,
            adjustedGrossIncome=agi,
            federalStandardDeduction=std_deduction,
            federalTaxableIncome=federal_taxable,
            federalTax=federal_tax,
            federalBracketBreakdown=federal_breakdown,
            marginalFederalRate=self._percent(federal_marginal),
            effectiveFederalRate=federal_tax / gross * 100 if gross > 0 else 0.0,
            fica=fica,
            totalTax=total_tax,
            effectiveTotalRate=total_tax / gross * 100 if gross > 0 else 0.0,
            netIncome=net_income,
            monthlyNetIncome=net_income / 12,
            **state_fields,
        )

    def calculate_scenario_income(
        self,
        gross_income: float,
        filing_status: str,
        state_code: Optional[str],
        pre_tax: Optional[PreTaxContributions],
        monthly_spending: float,
    ) -> ScenarioIncomeBreakdown:
        """
        Savings left after tax and spending.
        Pre-tax contributions are savings too, so they count toward the total.
        """
        taxes = self.compute_tax(gross_income, filing_status, state_code, pre_tax)
        monthly = coerce_number(monthly_spending, 0.0)
        annual_spending = monthly * 12
        total_savings = taxes.grossIncome - taxes.totalTax - annual_spending

        return ScenarioIncomeBreakdown(
            taxes=taxes,
            monthlySpending=monthly,
            annualSpending=annual_spending,
            totalAnnualSavings=total_savings,
            monthlySavingsAvailable=total_savings / 12,
            savingsRateOfGross=total_savings / taxes.grossIncome * 100 if taxes.grossIncome > 0 else 0.0,
        )

    def list_states(self) -> List[Dict[str, str]]:
        states = [
            {"code": code, "name": data["name"], "type": data["type"]}
            for code, data in STATE_TAX_TABLE.items()
        ]
        return sorted(states, key=lambda s: s["name"])
