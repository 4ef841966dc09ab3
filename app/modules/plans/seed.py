"""
Planes por defecto del sistema.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.modules.auth.models import User, UserRole
from app.modules.plans.models import Plan, PlanInterval
from app.modules.plans.service import PlanService

logger = logging.getLogger(__name__)

YEARLY_SAVINGS = "Economia de 17%"

PLANS_DATA = [
    {
        "name": "Gratuito",
        "description": "Para começar a organizar o seu salão",
        "price": Decimal("0.00"),
        "interval": PlanInterval.MONTHLY.value,
        "features": ["Até 1 estabelecimento", "Até 5 serviços", "Até 1 funcionário", "Suporte básico"],
        "max_establishments": 1,
        "max_services": 5,
        "max_employees": 1,
        "is_popular": False,
    },
    {
        "name": "Básico",
        "description": "Ideal para profissionais autônomos",
        "price": Decimal("29.90"),
        "interval": PlanInterval.MONTHLY.value,
        "features": ["Até 1 estabelecimento", "Até 10 serviços", "Até 3 funcionários", "Suporte por email"],
        "max_establishments": 1,
        "max_services": 10,
        "max_employees": 3,
        "is_popular": False,
    },
    {
        "name": "Profissional",
        "description": "Para salões em crescimento",
        "price": Decimal("79.90"),
        "interval": PlanInterval.MONTHLY.value,
        "features": [
            "Até 3 estabelecimentos", "Até 50 serviços", "Até 10 funcionários",
            "Relatórios financeiros", "Suporte prioritário",
        ],
        "max_establishments": 3,
        "max_services": 50,
        "max_employees": 10,
        "is_popular": True,
    },
    {
        "name": "Empresarial",
        "description": "Para redes de salões",
        "price": Decimal("199.90"),
        "interval": PlanInterval.MONTHLY.value,
        "features": [
            "Estabelecimentos ilimitados", "Serviços ilimitados", "Funcionários ilimitados",
            "Relatórios financeiros", "Suporte dedicado",
        ],
        "max_establishments": None,
        "max_services": None,
        "max_employees": None,
        "is_popular": False,
    },
]

YEARLY_PRICES = {
    "Básico": Decimal("299.00"),
    "Profissional": Decimal("799.00"),
    "Empresarial": Decimal("1999.00"),
}


def default_plans() -> list[dict]:
    """Planes mensuales más sus versiones anuales."""
    plans = [dict(plan) for plan in PLANS_DATA]
    for plan in PLANS_DATA:
        yearly_price = YEARLY_PRICES.get(plan["name"])
        if yearly_price is None:
            continue
        plans.append({
            **plan,
            "price": yearly_price,
            "interval": PlanInterval.YEARLY.value,
            "features": plan["features"] + [YEARLY_SAVINGS],
        })
    return plans


def seed_plans(db: Session) -> int:
    """Crea o actualiza los planes por (nombre, intervalo). Devuelve cuántos hay."""
    plans = default_plans()
    try:
        for plan_data in plans:
            existing_plan = db.query(Plan).filter(
                Plan.name == plan_data["name"],
                Plan.interval == plan_data["interval"],
            ).first()

            if existing_plan:
                logger.info(f"Plan {plan_data['name']} ({plan_data['interval']}) ya existe, actualizando...")
                for key, value in plan_data.items():
                    setattr(existing_plan, key, value)
            else:
                logger.info(f"Creando plan {plan_data['name']} ({plan_data['interval']})...")
                db.add(Plan(**plan_data))

        db.commit()
    except Exception as e:
        logger.error(f"Error sembrando planes: {e}")
        db.rollback()
        raise
    return len(plans)


def assign_free_plan_to_owners(db: Session) -> int:
    """Asigna el plan gratuito a los owners sin plan vigente."""
    plan_service = PlanService(db)
    assigned = 0
    for user in db.query(User).filter(User.role == UserRole.OWNER.value).all():
        if plan_service.assign_free_plan(user):
            assigned += 1
    return assigned
