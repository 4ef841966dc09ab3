#!/usr/bin/env python3
"""
Gestión de migraciones con Alembic.

Uso:
    python migrate.py create "mensaje"   # nueva migración (autogenerate)
    python migrate.py upgrade [rev]      # aplicar hasta head o rev
    python migrate.py downgrade [rev]    # volver una migración o hasta rev
    python migrate.py history
    python migrate.py current
"""
import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from app.core.config import settings

ROOT_DIR = Path(__file__).parent

logger = logging.getLogger("migrate")


def get_alembic_config() -> Config:
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Migraciones de base de datos")
    subparsers = parser.add_subparsers(dest="action", required=True)

    create = subparsers.add_parser("create", help="Crear migración")
    create.add_argument("message")
    upgrade = subparsers.add_parser("upgrade", help="Ejecutar migraciones")
    upgrade.add_argument("revision", nargs="?", default="head")
    downgrade = subparsers.add_parser("downgrade", help="Rollback")
    downgrade.add_argument("revision", nargs="?", default="-1")
    subparsers.add_parser("history", help="Ver historial")
    subparsers.add_parser("current", help="Ver revisión actual")

    args = parser.parse_args()
    alembic_cfg = get_alembic_config()

    if args.action == "create":
        command.revision(alembic_cfg, autogenerate=True, message=args.message)
        logger.info(f"Migración creada: {args.message}")
    elif args.action == "upgrade":
        command.upgrade(alembic_cfg, args.revision)
        logger.info(f"Base de datos en {args.revision}")
    elif args.action == "downgrade":
        command.downgrade(alembic_cfg, args.revision)
        logger.info(f"Rollback a {args.revision} ejecutado")
    elif args.action == "history":
        command.history(alembic_cfg)
    else:
        command.current(alembic_cfg)


if __name__ == "__main__":
    main()
