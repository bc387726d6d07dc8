"""Incumbent pricing and migration savings schemas."""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PricingPlan(BaseModel):
    """A single incumbent tier. Tiers are static reference data."""
    name: str
    monthly_price: float = Field(alias="monthlyPrice", serialization_alias="monthlyPrice")
    included_tasks: int = Field(alias="includedTasks", serialization_alias="includedTasks")
    price_per_additional_task: float = Field(
        alias="pricePerAdditionalTask", serialization_alias="pricePerAdditionalTask"
    )

    model_config = {"populate_by_name": True, "frozen": True}


class PlatformPricing(BaseModel):
    name: str
    plans: tuple[PricingPlan, ...]

    model_config = {"frozen": True}


class RecommendedPlans(BaseModel):
    zapier: PricingPlan
    make: PricingPlan


class MigrationSavings(BaseModel):
    zapier_monthly_cost: float = Field(alias="zapierMonthlyCost", serialization_alias="zapierMonthlyCost")
    make_monthly_cost: float = Field(alias="makeMonthlyCost", serialization_alias="makeMonthlyCost")
    n8n_self_hosted_cost: float = Field(alias="n8nSelfHostedCost", serialization_alias="n8nSelfHostedCost")
    monthly_savings_from_zapier: float = Field(
        alias="monthlySavingsFromZapier", serialization_alias="monthlySavingsFromZapier"
    )
    monthly_savings_from_make: float = Field(
        alias="monthlySavingsFromMake", serialization_alias="monthlySavingsFromMake"
    )
    annual_savings_from_zapier: float = Field(
        alias="annualSavingsFromZapier", serialization_alias="annualSavingsFromZapier"
    )
    annual_savings_from_make: float = Field(
        alias="annualSavingsFromMake", serialization_alias="annualSavingsFromMake"
    )
    break_even_months: int = Field(ge=0, alias="breakEvenMonths", serialization_alias="breakEvenMonths")
    estimated_monthly_tasks: int = Field(
        alias="estimatedMonthlyTasks", serialization_alias="estimatedMonthlyTasks"
    )
    recommended_plan: RecommendedPlans = Field(alias="recommendedPlan", serialization_alias="recommendedPlan")

    model_config = {"populate_by_name": True}


# Request ceilings
MAX_TOTAL_NODES = 10_000_000
MAX_WORKFLOW_COUNT = 100_000
MAX_EXECUTIONS_PER_DAY = 86_400  # once per second
MAX_AMOUNT = 1_000_000_000


class SavingsCalculationRequest(BaseModel):
    total_nodes: int = Field(ge=0, le=MAX_TOTAL_NODES, alias="totalNodes", serialization_alias="totalNodes")
    workflow_count: int = Field(
        ge=0, le=MAX_WORKFLOW_COUNT, alias="workflowCount", serialization_alias="workflowCount"
    )
    migration_price: float = Field(
        ge=0, le=MAX_AMOUNT, allow_inf_nan=False, alias="migrationPrice", serialization_alias="migrationPrice"
    )
    executions_per_day: Optional[float] = Field(
        default=None, ge=0, le=MAX_EXECUTIONS_PER_DAY, allow_inf_nan=False,
        alias="executionsPerDay", serialization_alias="executionsPerDay"
    )
    self_host_cost: Optional[float] = Field(
        default=None, ge=0, le=MAX_AMOUNT, allow_inf_nan=False,
        alias="selfHostCost", serialization_alias="selfHostCost"
    )

    model_config = {"populate_by_name": True}


class SavingsScenariosResponse(BaseModel):
    """Savings for each usage scenario plus the headline (average) figure."""
    total_nodes: int = Field(alias="totalNodes", serialization_alias="totalNodes")
    workflow_count: int = Field(alias="workflowCount", serialization_alias="workflowCount")
    migration_price: float = Field(alias="migrationPrice", serialization_alias="migrationPrice")
    scenarios: Dict[str, MigrationSavings]
    headline: MigrationSavings

    model_config = {"populate_by_name": True}


class PricingTablesResponse(BaseModel):
    platforms: List[PlatformPricing]
    scenarios: Dict[str, float]
