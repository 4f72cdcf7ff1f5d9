"""Customers blueprint - JSON catalog endpoints."""
from typing import Any, Dict

from flask import Blueprint, request, jsonify, current_app, Response

from salonpos.database import get_session
from salonpos.exceptions import BusinessLogicError
from salonpos.forms.catalog_forms import CustomerForm, first_error
from salonpos.models import Customer
from salonpos.services import catalog_service

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


def customer_to_dict(customer: Customer) -> Dict[str, Any]:
    return {
        'id': customer.id,
        'name': customer.name,
        'contact': customer.contact,
    }


def _validated_form() -> CustomerForm:
    form = CustomerForm()
    if not form.validate_on_submit():
        raise BusinessLogicError(first_error(form))
    return form


@customers_bp.route('/', methods=['GET'])
def list_customers() -> Response:
    """List customers, optionally filtered by ?q= (name or contact)."""
    session = get_session()
    customers = catalog_service.list_customers(session, request.args.get('q'))
    return jsonify({'customers': [customer_to_dict(c) for c in customers]})


@customers_bp.route('/<int:customer_id>', methods=['GET'])
def get_customer(customer_id: int) -> Response:
    session = get_session()
    return jsonify(customer_to_dict(catalog_service.get_customer(session, customer_id)))


@customers_bp.route('/', methods=['POST'])
def create_customer():
    session = get_session()
    form = _validated_form()
    customer = catalog_service.create_customer(session, form.name.data, form.contact.data)
    current_app.logger.info(f"Customer {customer.id} created")
    return jsonify(customer_to_dict(customer)), 201


@customers_bp.route('/<int:customer_id>', methods=['PUT', 'POST'])
def update_customer(customer_id: int) -> Response:
    session = get_session()
    form = _validated_form()
    customer = catalog_service.update_customer(session, customer_id, form.name.data, form.contact.data)
    return jsonify(customer_to_dict(customer))


@customers_bp.route('/<int:customer_id>/delete', methods=['POST', 'DELETE'])
def delete_customer(customer_id: int) -> Response:
    session = get_session()
    catalog_service.delete_customer(session, customer_id)
    return jsonify({'status': 'ok', 'message': 'Customer deleted.'})
