from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from joyeria.app.models.customer import Customer


def get_customer(db: Session, customer_id: UUID) -> Customer | None:
    return db.query(Customer).filter(Customer.id == customer_id).first()


def customer_exists(db: Session, customer_id: UUID) -> bool:
    return (
        db.query(Customer.id).filter(Customer.id == customer_id).first()
        is not None
    )
