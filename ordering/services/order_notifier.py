"""Customer push messages for order events."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ordering.db import models
from ordering.services.fcm_service import FCMService
from ordering.utils.choices import SERVICE_PICKUP

logger = logging.getLogger(__name__)

EVENT_ORDER_CREATED = "order_created"
EVENT_ORDER_STATUS_CHANGED = "order_status_changed"

_STATUS_MESSAGES: Dict[str, Tuple[str, str]] = {
    "preparing": ("Estamos preparando tu orden", "Tu orden #{number} está en preparación."),
    "ready": ("¡Tu orden está lista!", "Tu orden #{number} está lista."),
    "out_for_delivery": ("Tu orden va en camino", "Tu orden #{number} salió a domicilio."),
    "delivered": ("Orden entregada", "Tu orden #{number} fue entregada. ¡Buen provecho!"),
    "completed": ("Orden completada", "Gracias por tu compra. Ganaste {points} puntos con la orden #{number}."),
    "cancelled": ("Orden cancelada", "Tu orden #{number} fue cancelada."),
    "refunded": ("Orden reembolsada", "El pago de tu orden #{number} fue reembolsado."),
}


def status_message(order: models.Order) -> Optional[Tuple[str, str]]:
    template = _STATUS_MESSAGES.get(order.status)
    if template is None:
        return None
    title, body = template
    if order.status == "ready" and order.service_type == SERVICE_PICKUP:
        body = "Tu orden #{number} está lista para recoger."
    return title, body.format(number=order.order_number, points=order.points_earned or 0)


class OrderNotifier:
    """Builds and sends order push notifications; failures are logged, never raised."""

    def __init__(self, db: Session, fcm: Optional[FCMService] = None):
        self.db = db
        self.fcm = fcm or FCMService(db)

    def _data(self, order: models.Order, previous_status: Optional[str] = None) -> Dict[str, object]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "previous_status": previous_status,
            "type": EVENT_ORDER_STATUS_CHANGED if previous_status else EVENT_ORDER_CREATED,
        }

    def order_created(self, order: models.Order) -> Dict[str, int]:
        try:
            return self.fcm.send_to_customer(
                order.customer_id,
                "Recibimos tu orden",
                f"Tu orden #{order.order_number} fue recibida y pronto comenzaremos a prepararla.",
                self._data(order),
                event_type=EVENT_ORDER_CREATED,
            )
        except Exception as exc:
            logger.warning("Failed to notify creation of order %s: %s", order.order_number, exc)
            return {"sent": 0, "failed": 0}

    def status_changed(self, order: models.Order, previous_status: Optional[str]) -> Dict[str, int]:
        message = status_message(order)
        if message is None:
            return {"sent": 0, "failed": 0}
        title, body = message
        try:
            return self.fcm.send_to_customer(
                order.customer_id,
                title,
                body,
                self._data(order, previous_status),
                event_type=EVENT_ORDER_STATUS_CHANGED,
            )
        except Exception as exc:
            logger.warning("Failed to notify status %s of order %s: %s", order.status, order.order_number, exc)
            return {"sent": 0, "failed": 0}
