from fastapi import FastAPI

from . import budget_goals, categories, cron, fixed_transactions, installments, settings, stats, transactions


def register_routers(app: FastAPI, prefix: str = "/api") -> None:
    for module in (
        settings,
        categories,
        transactions,
        fixed_transactions,
        installments,
        budget_goals,
        stats,
        cron,
    ):
        app.include_router(module.router, prefix=prefix)
