"""
Creación y sincronización automática de comisiones sobre ventas.

Las operaciones no hacen commit: corren dentro de la transacción de la
venta que las dispara.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.modules.commissions.models import Commission, CommissionStatus
from app.modules.sales.models import Sale, SaleStatus
from app.modules.services.models import Service

logger = logging.getLogger(__name__)

DEFAULT_PERCENTAGE = Decimal("10.00")
AUTO_NOTE = "Comissão criada automaticamente."
CENTS = Decimal("0.01")


def calculate_amount(amount, percentage) -> Decimal:
    """amount * percentage / 100 redondeado a centavos."""
    value = Decimal(str(amount)) * Decimal(str(percentage)) / Decimal("100")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class SaleSnapshot:
    """Valores de la venta antes de una actualización."""
    status: str
    user_id: Optional[UUID]
    amount: Decimal
    service_id: Optional[UUID]

    @classmethod
    def of(cls, sale: Sale) -> "SaleSnapshot":
        return cls(
            status=sale.status,
            user_id=sale.user_id,
            amount=Decimal(str(sale.amount)),
            service_id=sale.service_id,
        )


class CommissionManager:

    def __init__(self, db: Session):
        self.db = db

    def _recipient(self, service_id: Optional[UUID], user_id: Optional[UUID]) -> Optional[UUID]:
        """El empleado del servicio tiene prioridad sobre el de la venta."""
        if service_id:
            service = self.db.get(Service, service_id)
            if service and service.user_id:
                return service.user_id
        return user_id

    def _pending(self, sale: Sale, user_id: Optional[UUID] = None):
        query = self.db.query(Commission).filter(
            Commission.sale_id == sale.id,
            Commission.status == CommissionStatus.PENDING.value,
        )
        if user_id:
            query = query.filter(Commission.user_id == user_id)
        return query

    def _set_status(self, sale: Sale, from_status: str, to_status: str, user_id: Optional[UUID] = None) -> int:
        query = self.db.query(Commission).filter(
            Commission.sale_id == sale.id,
            Commission.status == from_status,
        )
        if user_id:
            query = query.filter(Commission.user_id == user_id)
        return query.update({"status": to_status}, synchronize_session="fetch")

    def create_for_sale(self, sale: Sale) -> Optional[Commission]:
        """Crea la comisión por defecto (10%) si hay destinatario y aún no existe."""
        recipient_id = self._recipient(sale.service_id, sale.user_id)
        if not recipient_id:
            return None

        exists = self.db.query(Commission.id).filter(
            Commission.sale_id == sale.id,
            Commission.user_id == recipient_id,
        ).first()
        if exists:
            return None

        commission = Commission(
            sale_id=sale.id,
            user_id=recipient_id,
            percentage=DEFAULT_PERCENTAGE,
            amount=calculate_amount(sale.amount, DEFAULT_PERCENTAGE),
            status=CommissionStatus.PENDING.value,
            notes=AUTO_NOTE,
        )
        self.db.add(commission)
        self.db.flush()
        logger.debug(f"Comisión creada para la venta {sale.id} (usuario {recipient_id})")
        return commission

    def sync_for_sale(self, sale: Sale, previous: SaleSnapshot) -> None:
        """Ajusta las comisiones tras actualizar una venta."""
        if sale.status == SaleStatus.CANCELLED.value:
            self._set_status(sale, CommissionStatus.PENDING.value, CommissionStatus.CANCELLED.value)
            return

        if previous.status == SaleStatus.CANCELLED.value:
            self._set_status(sale, CommissionStatus.CANCELLED.value, CommissionStatus.PENDING.value)

        current_recipient = self._recipient(sale.service_id, sale.user_id)
        old_recipient = self._recipient(previous.service_id, previous.user_id)

        if current_recipient and old_recipient != current_recipient:
            if old_recipient:
                self._set_status(
                    sale, CommissionStatus.PENDING.value, CommissionStatus.CANCELLED.value, user_id=old_recipient
                )
            self.create_for_sale(sale)

        if Decimal(str(sale.amount)) != previous.amount:
            for commission in self._pending(sale).all():
                commission.amount = calculate_amount(sale.amount, commission.percentage)

        if current_recipient:
            self.create_for_sale(sale)

        self.db.flush()
