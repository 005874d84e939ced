"""In-app notifications sent to trip participants as the trip moves along."""

import logging
from typing import List, Optional

from sqlmodel import Session

from ..models import Notification, NotificationType, Trip
from ..repositories import DriverRepository, NotificationRepository, UserRepository

logger = logging.getLogger(__name__)

CANCELLED_BY_LABELS = {
    "passenger": "le passager",
    "driver": "le chauffeur",
    "admin": "l'administration",
}


class NotificationService:
    def __init__(self, session: Session):
        self.session = session
        self.notifications = NotificationRepository(session)

    def _driver_user_id(self, trip: Trip) -> Optional[int]:
        if trip.driver_id is None:
            return None
        driver = DriverRepository(self.session).find_by_id(trip.driver_id)
        return driver.user_id if driver else None

    def _driver_name(self, trip: Trip) -> str:
        user_id = self._driver_user_id(trip)
        user = UserRepository(self.session).find_by_id(user_id) if user_id else None
        return (user.name if user else None) or "Votre chauffeur"

    def send(self, user_id: int, type: NotificationType, title: str, message: str,
             trip_id: Optional[int] = None) -> Notification:
        notification = self.notifications.create({
            "user_id": user_id,
            "type": type.value,
            "title": title,
            "message": message,
            "trip_id": trip_id,
        })
        logger.info("Notification %s sent", type.value, extra={"user_id": user_id, "trip_id": trip_id})
        return notification

    def notify_trip_accepted(self, trip: Trip) -> Notification:
        return self.send(
            trip.passenger_id, NotificationType.TRIP_ACCEPTED, "Course acceptée",
            f"{self._driver_name(trip)} a accepté votre course. Il arrive bientôt.", trip.id,
        )

    def notify_trip_started(self, trip: Trip) -> Notification:
        return self.send(
            trip.passenger_id, NotificationType.TRIP_STARTED, "Course démarrée",
            f"{self._driver_name(trip)} a démarré votre course.", trip.id,
        )

    def notify_trip_completed(self, trip: Trip) -> Notification:
        return self.send(
            trip.passenger_id, NotificationType.TRIP_COMPLETED, "Course terminée",
            f"Votre course est terminée. Montant: {trip.price_final} GNF", trip.id,
        )

    def notify_trip_cancelled(self, trip: Trip, cancelled_by_user_id: int, cancelled_by_role: str) -> List[Notification]:
        """Tell every participant except the one who cancelled."""
        label = CANCELLED_BY_LABELS.get(cancelled_by_role, cancelled_by_role)
        recipients = [trip.passenger_id, self._driver_user_id(trip)]
        return [
            self.send(
                user_id, NotificationType.TRIP_CANCELLED, "Course annulée",
                f"La course a été annulée par {label}.", trip.id,
            )
            for user_id in recipients
            if user_id is not None and user_id != cancelled_by_user_id
        ]

    def notify_payment_confirmed(self, trip: Trip, amount: int) -> Notification:
        return self.send(
            trip.passenger_id, NotificationType.PAYMENT_CONFIRMED, "Paiement confirmé",
            f"Votre paiement de {amount} GNF a été confirmé.", trip.id,
        )
