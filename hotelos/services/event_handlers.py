"""
Event handlers
Subscribe to domain events and do the follow-up work outside the
publishing transaction
"""
from typing import Callable
import logging

from hotelos.database import SessionLocal
from hotelos.models.events import EventType
from hotelos.services.event_bus import event_bus, Event

logger = logging.getLogger(__name__)


class EventHandlers:
    """
    Handler collection

    db_session_factory is injectable so tests can point handlers at their
    own database.
    """

    def __init__(self, db_session_factory: Callable = None):
        self._db_session_factory = db_session_factory or SessionLocal
        self._registered = False

    def _get_db(self):
        return self._db_session_factory()

    def handle_checkout_finalized(self, event: Event) -> None:
        """
        One ServiceLog per released room, so housekeeping sees what to turn over.
        """
        from hotelos.models.ontology import Booking, ServiceLog

        data = event.data
        booking_ids = data.get('booking_ids') or []
        if not booking_ids:
            logger.warning("Invalid checkout event: missing booking_ids")
            return

        db = self._get_db()
        try:
            bookings = db.query(Booking).filter(Booking.id.in_(booking_ids)).order_by(Booking.id).all()
            logged_rooms = set()
            for booking in bookings:
                if booking.room_id in logged_rooms:
                    continue
                logged_rooms.add(booking.room_id)
                db.add(ServiceLog(
                    room_id=booking.room_id,
                    booking_id=booking.id,
                    service_type="checkout_cleaning",
                    description=f"Released by checkout, invoice {data.get('invoice_number')}",
                    performed_by=data.get('operator_id'),
                ))
            db.commit()
            logger.info(f"Service logs written for rooms {sorted(logged_rooms)}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to write checkout service logs: {e}", exc_info=True)
        finally:
            db.close()

    def register_handlers(self, event_bus_instance=None) -> None:
        if self._registered:
            return
        bus = event_bus_instance if event_bus_instance is not None else event_bus
        bus.subscribe(EventType.CHECKOUT_FINALIZED, self.handle_checkout_finalized)
        self._registered = True
        logger.info("Event handlers registered")

    def unregister_handlers(self, event_bus_instance=None) -> None:
        bus = event_bus_instance if event_bus_instance is not None else event_bus
        bus.unsubscribe(EventType.CHECKOUT_FINALIZED, self.handle_checkout_finalized)
        self._registered = False


# Shared handler instance
event_handlers = EventHandlers()


def register_event_handlers():
    """Called from the application lifespan"""
    event_handlers.register_handlers()
