"""Example: drive the service layer directly, without Flask.

Controllers are a thin layer; the ledger rules live in the services.
"""

import importlib

from config import get_settings_module

from src.labour_ledger.labour_ledger.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    page = container.query_service.list_by_labourer(1, {"limit": 5})
    print(page.meta())

    result = container.payroll_generator.generate_for_period(
        start_period="2024-01-01",
        end_period="2024-01-31",
        daily_wage=500,
    )
    print(result.message, result.skipped_labourer_ids)


if __name__ == "__main__":
    main()
