from __future__ import annotations
"""Customer records keyed by email, and the email-value link to service tasks."""
from typing import Any, Dict, List, Optional
from flask import current_app
from sqlalchemy import select, update
from app import get_db
from app.models.customer import Customer
from app.models.service_task import ServiceTask
from app.utils.listing import iso


def upsert_customer(email: str, update_values: Dict[str, Any], create_values: Dict[str, Any]) -> Customer:
    """Create-or-update keyed by the unique email; stages changes in the session."""
    session = get_db()
    customer = session.execute(select(Customer).where(Customer.email == email)).scalar_one_or_none()
    if customer is None:
        customer = Customer(email=email, **create_values)
        session.add(customer)
        # flushed so a later lookup in the same unit of work sees it (autoflush is off)
        session.flush()
        return customer
    for key, value in update_values.items():
        setattr(customer, key, value)
    return customer


def repoint_tasks_email(old_email: str, new_email: str) -> int:
    """Move every task snapshot from old_email to new_email; returns rows touched."""
    session = get_db()
    result = session.execute(
        update(ServiceTask).where(ServiceTask.email == old_email).values(email=new_email)
        .execution_options(synchronize_session='fetch')
    )
    current_app.logger.info('Re-pointed %s service tasks from %s to %s', result.rowcount, old_email, new_email)
    return result.rowcount


def customer_json(c: Customer) -> dict:
    return {
        'id': c.id,
        'name': c.name,
        'email': c.email,
        'phone': c.phone,
        'address': c.address,
        'city': c.city,
        'state': c.state,
        'zipCode': c.zip_code,
        'notifications': c.notifications,
        'preferredContact': c.preferred_contact,
        'createdAt': iso(c.created_at),
        'updatedAt': iso(c.updated_at),
    }


def unique_items(tasks: List[ServiceTask], limit: Optional[int] = None) -> List[dict]:
    """Distinct (model, serial) pairs from a customer's service history, newest first.

    The brand is the first word of the free-text model.
    """
    items: List[dict] = []
    seen = set()
    for t in tasks:
        if not t.item_model:
            continue
        key = (t.item_model, t.serial_number or '')
        if key in seen:
            continue
        seen.add(key)
        parts = t.item_model.split(' ')
        items.append({
            'id': t.id,
            'model': t.item_model,
            'brand': parts[0] if parts else '',
            'serialNumber': t.serial_number or '',
            'lastService': iso(t.created_at),
            'status': t.status,
        })
        if limit is not None and len(items) >= limit:
            break
    return items
