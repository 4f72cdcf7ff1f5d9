"""
Integration tests for deleting a logical sale.
"""

import pytest
from datetime import datetime, timedelta
from werkzeug.security import generate_password_hash

from salonpos.domain import Cart
from salonpos.exceptions import BusinessLogicError, DeletionAuthError, NotFoundError
from salonpos.models import Sale
from salonpos.services import cart_service
from salonpos.services.authorization_service import AuthorizationPolicy
from salonpos.services.sale_delete_service import delete_sale_group
from salonpos.services.sales_service import complete_sale

MORNING = datetime(2026, 3, 10, 10, 0, 0)
NOON = datetime(2026, 3, 10, 12, 0, 0)


def checkout(session, customer, staff, service, quantity, now):
    cart = Cart()
    for _ in range(quantity):
        cart_service.add_service(cart, service.id, service.name, service.price)
    cart_service.assign_staff(cart, service.id, staff.id, staff.name)
    return complete_sale(session, cart, customer.id, now=now)


@pytest.fixture
def policy():
    return AuthorizationPolicy({}, generate_password_hash('secret'), cooldown_seconds=300)


@pytest.fixture
def two_sales(session, customer, other_customer, staff, services):
    first = checkout(session, customer, staff, services['haircut'], 2, MORNING)
    second = checkout(session, other_customer, staff, services['facial'], 1, NOON)
    return first, second


class TestDeleteSaleGroup:

    def test_wrong_passphrase_deletes_nothing(self, session, policy, two_sales):
        first, _ = two_sales

        with pytest.raises(DeletionAuthError):
            delete_sale_group(session, first.unit_ids, policy, 'guess', now=NOON)

        assert session.query(Sale).count() == 3

    def test_deletes_every_row_of_the_group(self, session, policy, two_sales):
        first, second = two_sales

        result = delete_sale_group(session, first.unit_ids, policy, 'secret', now=NOON)

        assert result['success'] is True
        assert result['deleted_ids'] == sorted(first.unit_ids)
        remaining = [row.id for row in session.query(Sale).order_by(Sale.id).all()]
        assert remaining == second.unit_ids

    def test_cooldown_allows_second_delete_without_passphrase(self, session, policy, two_sales):
        first, second = two_sales

        delete_sale_group(session, first.unit_ids, policy, 'secret', now=NOON)
        delete_sale_group(session, second.unit_ids, policy, None, now=NOON + timedelta(minutes=2))

        assert session.query(Sale).count() == 0

    def test_passphrase_required_again_after_cooldown(self, session, policy, two_sales):
        first, second = two_sales

        delete_sale_group(session, first.unit_ids, policy, 'secret', now=NOON)
        with pytest.raises(DeletionAuthError):
            delete_sale_group(session, second.unit_ids, policy, None, now=NOON + timedelta(minutes=6))

        assert session.query(Sale).count() == 1

    def test_rows_from_two_sales_are_refused(self, session, policy, two_sales):
        first, second = two_sales

        with pytest.raises(BusinessLogicError):
            delete_sale_group(session, first.unit_ids + second.unit_ids, policy, 'secret', now=NOON)

        assert session.query(Sale).count() == 3

    def test_unknown_row_is_refused(self, session, policy, two_sales):
        first, _ = two_sales

        with pytest.raises(NotFoundError):
            delete_sale_group(session, first.unit_ids + [9999], policy, 'secret', now=NOON)

        assert session.query(Sale).count() == 3

    def test_part_of_a_sale_is_refused(self, session, policy, two_sales):
        first, _ = two_sales

        with pytest.raises(BusinessLogicError) as exc:
            delete_sale_group(session, first.unit_ids[:1], policy, 'secret', now=NOON)

        assert exc.value.payload['missing_ids'] == first.unit_ids[1:]
        assert session.query(Sale).count() == 3
        assert policy.is_authorized(NOON) is False

    def test_failed_delete_does_not_start_cooldown(self, session, policy, two_sales):
        first, _ = two_sales

        with pytest.raises(NotFoundError):
            delete_sale_group(session, first.unit_ids + [9999], policy, 'secret', now=NOON)

        with pytest.raises(DeletionAuthError):
            delete_sale_group(session, first.unit_ids, policy, None, now=NOON + timedelta(seconds=5))

    def test_delete_inside_cooldown_restarts_it(self, session, policy, two_sales):
        first, second = two_sales

        delete_sale_group(session, first.unit_ids, policy, 'secret', now=NOON)
        delete_sale_group(session, second.unit_ids, policy, None, now=NOON + timedelta(minutes=4))

        # Window now runs from NOON + 4 minutes
        assert policy.is_authorized(NOON + timedelta(minutes=8)) is True
        assert policy.remaining(NOON + timedelta(minutes=8)) == 60

    def test_empty_selection(self, session, policy):
        with pytest.raises(BusinessLogicError):
            delete_sale_group(session, [], policy, 'secret')
