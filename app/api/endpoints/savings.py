from fastapi import APIRouter

from app.schemas.savings import MigrationSavings, PricingTablesResponse, SavingsCalculationRequest
from app.services.pricing_service import (
    MAKE_PRICING,
    USAGE_SCENARIOS,
    ZAPIER_PRICING,
    calculate_savings,
)

router = APIRouter()


@router.get("/pricing", response_model=PricingTablesResponse)
async def get_pricing_tables():
    """Incumbent price tables and the usage scenarios the projections use"""
    return PricingTablesResponse(
        platforms=[ZAPIER_PRICING, MAKE_PRICING],
        scenarios=USAGE_SCENARIOS,
    )


@router.post("/calculate", response_model=MigrationSavings)
async def calculate_migration_savings(request: SavingsCalculationRequest):
    """Savings for an arbitrary node/workflow count, independent of any quote session"""
    return calculate_savings(
        request.total_nodes,
        request.workflow_count,
        request.migration_price,
        request.executions_per_day,
        request.self_host_cost,
    )
