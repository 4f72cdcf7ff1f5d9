"""Catalog service: customers, staff and services."""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from salonpos.exceptions import BusinessLogicError, NotFoundError
from salonpos.models import Customer, Staff, Service, Sale
from salonpos.utils.money import to_money

logger = logging.getLogger(__name__)


def _commit(session):
    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def _get_or_404(session, model, obj_id: int, label: str):
    obj = session.query(model).filter(model.id == obj_id).first()
    if not obj:
        raise NotFoundError(f'{label} not found')
    return obj


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or '').strip()
    return value or None


def _ensure_unsold(session, column, obj_id: int, label: str, name: str):
    count = session.query(func.count(Sale.id)).filter(column == obj_id).scalar()
    if count:
        raise BusinessLogicError(
            f'Cannot delete {label} "{name}": it appears in {count} sale rows.'
        )


# =====================================================
# CUSTOMERS
# =====================================================

def list_customers(session, search: Optional[str] = None) -> List[Customer]:
    query = session.query(Customer)
    if search and search.strip():
        term = f'%{search.strip()}%'
        query = query.filter(or_(Customer.name.ilike(term), Customer.contact.ilike(term)))
    return query.order_by(Customer.name).all()


def get_customer(session, customer_id: int) -> Customer:
    return _get_or_404(session, Customer, customer_id, 'Customer')


def create_customer(session, name: str, contact: Optional[str] = None) -> Customer:
    name = _clean(name)
    if not name:
        raise BusinessLogicError('Customer name is required')

    customer = Customer(name=name, contact=_clean(contact))
    session.add(customer)
    _commit(session)
    logger.info(f"Customer created: {customer.id} ({customer.name})")
    return customer


def update_customer(session, customer_id: int, name: str, contact: Optional[str] = None) -> Customer:
    customer = get_customer(session, customer_id)
    name = _clean(name)
    if not name:
        raise BusinessLogicError('Customer name is required')

    customer.name = name
    customer.contact = _clean(contact)
    _commit(session)
    return customer


def delete_customer(session, customer_id: int) -> None:
    """Delete a customer without sales. Customers with history are kept."""
    customer = get_customer(session, customer_id)
    _ensure_unsold(session, Sale.customer_id, customer.id, 'customer', customer.name)
    session.delete(customer)
    _commit(session)
    logger.info(f"Customer deleted: {customer_id}")


# =====================================================
# STAFF
# =====================================================

def list_staff(session) -> List[Staff]:
    return session.query(Staff).order_by(Staff.name).all()


def get_staff(session, staff_id: int) -> Staff:
    return _get_or_404(session, Staff, staff_id, 'Staff member')


def create_staff(session, name: str) -> Staff:
    name = _clean(name)
    if not name:
        raise BusinessLogicError('Staff name is required')

    staff = Staff(name=name)
    session.add(staff)
    _commit(session)
    logger.info(f"Staff created: {staff.id} ({staff.name})")
    return staff


def update_staff(session, staff_id: int, name: str) -> Staff:
    staff = get_staff(session, staff_id)
    name = _clean(name)
    if not name:
        raise BusinessLogicError('Staff name is required')

    staff.name = name
    _commit(session)
    return staff


def delete_staff(session, staff_id: int) -> None:
    staff = get_staff(session, staff_id)
    _ensure_unsold(session, Sale.staff_id, staff.id, 'staff member', staff.name)
    session.delete(staff)
    _commit(session)
    logger.info(f"Staff deleted: {staff_id}")


# =====================================================
# SERVICES
# =====================================================

def list_services(session, search: Optional[str] = None) -> List[Service]:
    query = session.query(Service)
    if search and search.strip():
        query = query.filter(Service.name.ilike(f'%{search.strip()}%'))
    return query.order_by(Service.name).all()


def get_service(session, service_id: int) -> Service:
    return _get_or_404(session, Service, service_id, 'Service')


def _validate_service(session, name: Optional[str], price, exclude_id: Optional[int] = None):
    name = _clean(name)
    if not name:
        raise BusinessLogicError('Service name is required')

    try:
        price = to_money(price)
    except ValueError:
        raise BusinessLogicError('Price must be a number')
    if price <= 0:
        raise BusinessLogicError('Price must be greater than 0')

    query = session.query(Service).filter(func.lower(Service.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Service.id != exclude_id)
    if query.first():
        raise BusinessLogicError(f'A service named "{name}" already exists')

    return name, price


def create_service(session, name: str, price: Decimal) -> Service:
    name, price = _validate_service(session, name, price)
    service = Service(name=name, price=price)
    session.add(service)
    _commit(session)
    logger.info(f"Service created: {service.id} ({service.name}, {service.price})")
    return service


def update_service(session, service_id: int, name: str, price: Decimal) -> Service:
    """Rename or reprice a service. Carts keep the price they copied."""
    service = get_service(session, service_id)
    name, price = _validate_service(session, name, price, exclude_id=service.id)
    service.name = name
    service.price = price
    _commit(session)
    return service


def delete_service(session, service_id: int) -> None:
    service = get_service(session, service_id)
    _ensure_unsold(session, Sale.service_id, service.id, 'service', service.name)
    session.delete(service)
    _commit(session)
    logger.info(f"Service deleted: {service_id}")
