from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.labour_ledger.labour_ledger.database.bootstrap import apply_seed_sql
from src.labour_ledger.labour_ledger.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    seed_path = REPO_ROOT / "database" / "seed.sql"
    apply_seed_sql(db_config, seed_path=seed_path)

    print(f"OK: Seeded demo users, projects and labourers -> {DBConfig.from_mapping(db_config).describe()}")


if __name__ == "__main__":
    main()
