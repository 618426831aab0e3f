"""
Guest service
Guest records; total_visits and total_spent are written by checkout only
"""
from typing import List, Optional
from sqlalchemy import or_, desc
from sqlalchemy.orm import Session
from hotelos.models.ontology import Guest
from hotelos.models.schemas import GuestCreate


class GuestService:
    """Guest service"""

    def __init__(self, db: Session):
        self.db = db

    def get_guests(self, search: Optional[str] = None, limit: int = 100) -> List[Guest]:
        query = self.db.query(Guest)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Guest.full_name.like(pattern),
                    Guest.phone.like(pattern),
                    Guest.email.like(pattern),
                )
            )

        return query.order_by(desc(Guest.created_at), desc(Guest.id)).limit(limit).all()

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def create_guest(self, data: GuestCreate) -> Guest:
        guest = Guest(**data.model_dump())
        self.db.add(guest)
        self.db.commit()
        self.db.refresh(guest)
        return guest
