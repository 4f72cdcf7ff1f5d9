"""Staff blueprint - JSON roster endpoints."""
from typing import Any, Dict

from flask import Blueprint, jsonify, Response

from salonpos.database import get_session
from salonpos.exceptions import BusinessLogicError
from salonpos.forms.catalog_forms import StaffForm, first_error
from salonpos.models import Staff
from salonpos.services import catalog_service

staff_bp = Blueprint('staff', __name__, url_prefix='/staff')


def staff_to_dict(staff: Staff) -> Dict[str, Any]:
    return {'id': staff.id, 'name': staff.name}


def _validated_form() -> StaffForm:
    form = StaffForm()
    if not form.validate_on_submit():
        raise BusinessLogicError(first_error(form))
    return form


@staff_bp.route('/', methods=['GET'])
def list_staff() -> Response:
    session = get_session()
    return jsonify({'staff': [staff_to_dict(s) for s in catalog_service.list_staff(session)]})


@staff_bp.route('/', methods=['POST'])
def create_staff():
    session = get_session()
    form = _validated_form()
    staff = catalog_service.create_staff(session, form.name.data)
    return jsonify(staff_to_dict(staff)), 201


@staff_bp.route('/<int:staff_id>', methods=['PUT', 'POST'])
def update_staff(staff_id: int) -> Response:
    session = get_session()
    form = _validated_form()
    return jsonify(staff_to_dict(catalog_service.update_staff(session, staff_id, form.name.data)))


@staff_bp.route('/<int:staff_id>/delete', methods=['POST', 'DELETE'])
def delete_staff(staff_id: int) -> Response:
    session = get_session()
    catalog_service.delete_staff(session, staff_id)
    return jsonify({'status': 'ok', 'message': 'Staff member deleted.'})
