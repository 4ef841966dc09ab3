"""
Seed script: crea los planes por defecto (mensuales y anuales).

Ejecutar dentro del contenedor de la API:
    docker compose exec api python scripts/seed_plans.py --assign-free
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import logging

from app.database.database import SessionLocal
from app.main import app  # noqa: F401  registra todos los modelos
from app.modules.plans.seed import seed_plans, assign_free_plan_to_owners

logging.basicConfig(level=logging.INFO)


def main():
    parser = argparse.ArgumentParser(description="Seed default plans")
    parser.add_argument(
        "--assign-free",
        action="store_true",
        help="Asignar el plan Gratuito a los owners sin plan vigente",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        total = seed_plans(db)
        print(f"Plans seeded: {total}")

        if args.assign_free:
            assigned = assign_free_plan_to_owners(db)
            print(f"Free plan assigned to {assigned} owner(s)")
    finally:
        db.close()


if __name__ == "__main__":
    main()
