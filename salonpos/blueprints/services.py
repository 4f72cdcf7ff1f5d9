"""Services blueprint - JSON service catalog endpoints."""
from typing import Any, Dict

from flask import Blueprint, request, jsonify, current_app, Response

from salonpos.database import get_session
from salonpos.exceptions import BusinessLogicError
from salonpos.forms.catalog_forms import ServiceForm, first_error
from salonpos.models import Service
from salonpos.services import catalog_service

services_bp = Blueprint('services', __name__, url_prefix='/services')


def service_to_dict(service: Service) -> Dict[str, Any]:
    return {
        'id': service.id,
        'name': service.name,
        'price': str(service.price),
    }


def _validated_form() -> ServiceForm:
    form = ServiceForm()
    if not form.validate_on_submit():
        raise BusinessLogicError(first_error(form))
    return form


@services_bp.route('/', methods=['GET'])
def list_services() -> Response:
    session = get_session()
    services = catalog_service.list_services(session, request.args.get('q'))
    return jsonify({'services': [service_to_dict(s) for s in services]})


@services_bp.route('/', methods=['POST'])
def create_service():
    session = get_session()
    form = _validated_form()
    service = catalog_service.create_service(session, form.name.data, form.price.data)
    current_app.logger.info(f"Service {service.id} created at {service.price}")
    return jsonify(service_to_dict(service)), 201


@services_bp.route('/<int:service_id>', methods=['PUT', 'POST'])
def update_service(service_id: int) -> Response:
    session = get_session()
    form = _validated_form()
    service = catalog_service.update_service(session, service_id, form.name.data, form.price.data)
    return jsonify(service_to_dict(service))


@services_bp.route('/<int:service_id>/delete', methods=['POST', 'DELETE'])
def delete_service(service_id: int) -> Response:
    session = get_session()
    catalog_service.delete_service(session, service_id)
    return jsonify({'status': 'ok', 'message': 'Service deleted.'})
