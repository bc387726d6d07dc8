"""
Pricing Service

Projects what a customer would keep paying Zapier or Make.com for the
workflows in their quote, and how long the migration takes to pay for
itself. Everything here is a pure function of its arguments and the two
static incumbent price tables below.
"""
from typing import Dict, Optional, Tuple
import math

from app.core.config import settings
from app.schemas.savings import MigrationSavings, PlatformPricing, PricingPlan, RecommendedPlans

# Published incumbent tiers (2024-2025)
ZAPIER_PRICING = PlatformPricing(
    name="Zapier",
    plans=(
        PricingPlan(name="Free", monthly_price=0, included_tasks=100, price_per_additional_task=0.25),
        PricingPlan(name="Professional", monthly_price=19.99, included_tasks=750, price_per_additional_task=0.027),
        PricingPlan(name="Professional Plus", monthly_price=49, included_tasks=2000, price_per_additional_task=0.025),
        PricingPlan(name="Team", monthly_price=69, included_tasks=3000, price_per_additional_task=0.023),
    ),
)

MAKE_PRICING = PlatformPricing(
    name="Make.com",
    plans=(
        PricingPlan(name="Free", monthly_price=0, included_tasks=1000, price_per_additional_task=0.013),
        PricingPlan(name="Core", monthly_price=9, included_tasks=10000, price_per_additional_task=0.0009),
        PricingPlan(name="Pro", monthly_price=16, included_tasks=10000, price_per_additional_task=0.0008),
        PricingPlan(name="Teams", monthly_price=29, included_tasks=10000, price_per_additional_task=0.0007),
    ),
)

# Average tasks consumed by one execution (trigger + actions)
AVG_TASKS_PER_EXECUTION = 2.5
DAYS_PER_MONTH = 30

# Executions per workflow per day
USAGE_SCENARIOS: Dict[str, float] = {
    "conservative": 5,
    "average": 10,
    "active": 20,
}
HEADLINE_SCENARIO = "average"


def estimate_monthly_tasks(workflow_count: int, executions_per_day: float = 10) -> int:
    """Monthly task volume for workflow_count workflows, rounded half up"""
    raw = workflow_count * executions_per_day * DAYS_PER_MONTH * AVG_TASKS_PER_EXECUTION
    return int(math.floor(raw + 0.5))


def plan_monthly_cost(plan: PricingPlan, monthly_tasks: int) -> float:
    overage = max(0, monthly_tasks - plan.included_tasks)
    return plan.monthly_price + overage * plan.price_per_additional_task


def find_cheapest_tier(platform: PlatformPricing, monthly_tasks: int) -> Tuple[PricingPlan, float]:
    """Cheapest tier for the given volume; on a tie the earlier tier wins"""
    best_plan = platform.plans[0]
    best_cost = math.inf

    for plan in platform.plans:
        cost = plan_monthly_cost(plan, monthly_tasks)
        if cost < best_cost:
            best_plan = plan
            best_cost = cost

    return best_plan, best_cost


def calculate_savings(
    total_nodes: int,
    workflow_count: int,
    migration_price: float,
    executions_per_day: Optional[float] = None,
    self_host_cost: Optional[float] = None,
) -> MigrationSavings:
    """
    Compare the cheapest matching Zapier and Make.com tiers against the
    self-hosted n8n cost.

    Args:
        total_nodes: Node count of the quote (informational; pricing is
            driven by task volume)
        workflow_count: Number of workflows being migrated
        migration_price: One-off migration price
        executions_per_day: Executions per workflow per day
        self_host_cost: Monthly cost of running n8n after migration

    Returns:
        MigrationSavings; break_even_months is 0 whenever the average
        monthly saving is not positive
    """
    if executions_per_day is None:
        executions_per_day = settings.DEFAULT_EXECUTIONS_PER_DAY
    if self_host_cost is None:
        self_host_cost = settings.SELF_HOSTED_MONTHLY_COST

    monthly_tasks = estimate_monthly_tasks(workflow_count, executions_per_day)

    zapier_plan, zapier_cost = find_cheapest_tier(ZAPIER_PRICING, monthly_tasks)
    make_plan, make_cost = find_cheapest_tier(MAKE_PRICING, monthly_tasks)

    monthly_from_zapier = zapier_cost - self_host_cost
    monthly_from_make = make_cost - self_host_cost

    avg_monthly_savings = (monthly_from_zapier + monthly_from_make) / 2
    break_even_months = math.ceil(migration_price / avg_monthly_savings) if avg_monthly_savings > 0 else 0

    return MigrationSavings(
        zapier_monthly_cost=zapier_cost,
        make_monthly_cost=make_cost,
        n8n_self_hosted_cost=self_host_cost,
        monthly_savings_from_zapier=monthly_from_zapier,
        monthly_savings_from_make=monthly_from_make,
        annual_savings_from_zapier=monthly_from_zapier * 12,
        annual_savings_from_make=monthly_from_make * 12,
        break_even_months=max(0, break_even_months),
        estimated_monthly_tasks=monthly_tasks,
        recommended_plan=RecommendedPlans(zapier=zapier_plan, make=make_plan),
    )


def calculate_scenarios(
    total_nodes: int,
    workflow_count: int,
    migration_price: float,
    self_host_cost: Optional[float] = None,
) -> Dict[str, MigrationSavings]:
    """Savings under each usage scenario in USAGE_SCENARIOS"""
    return {
        name: calculate_savings(total_nodes, workflow_count, migration_price, executions, self_host_cost)
        for name, executions in USAGE_SCENARIOS.items()
    }
