from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api import deps
from app.models.user import User
from app.services.tax_service import (
    PreTaxContributions,
    ScenarioIncomeBreakdown,
    TaxCalculation,
    TaxService,
)

router = APIRouter()

class TaxRequest(BaseModel):
    grossIncome: float
    filingStatus: str = "single"
    stateCode: Optional[str] = None
    preTaxContributions: PreTaxContributions = PreTaxContributions()

class IncomeBreakdownRequest(TaxRequest):
    monthlySpending: float = 0.0

@router.post("/calculate", response_model=TaxCalculation)
async def calculate_tax(
    request: TaxRequest,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return TaxService().compute_tax(
        request.grossIncome, request.filingStatus, request.stateCode, request.preTaxContributions
    )

@router.post("/income-breakdown", response_model=ScenarioIncomeBreakdown)
async def calculate_income_breakdown(
    request: IncomeBreakdownRequest,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return TaxService().calculate_scenario_income(
        request.grossIncome,
        request.filingStatus,
        request.stateCode,
        request.preTaxContributions,
        request.monthlySpending,
    )

@router.get("/states", response_model=List[Dict[str, str]])
async def list_states(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return TaxService().list_states()
