"""In-progress sale: cart lines and discounts."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from salonpos.utils.money import ZERO, HUNDRED, to_money, clamp

PERCENTAGE = 'percentage'
AMOUNT = 'amount'
DISCOUNT_TYPES = (PERCENTAGE, AMOUNT)


@dataclass(frozen=True)
class Discount:
    """
    Percentage or fixed-amount discount. type None means no discount.

    Build through Discount.clamped() so the value is already inside its
    valid range; the pricing engine does not clamp again.
    """
    type: Optional[str] = None
    value: Decimal = ZERO

    @classmethod
    def none(cls) -> 'Discount':
        return cls(None, ZERO)

    @classmethod
    def clamped(cls, discount_type: Optional[str], value, amount_upper: Decimal) -> 'Discount':
        """
        Build a discount with its value clamped into range.

        percentage -> [0, 100], amount -> [0, amount_upper].
        """
        if discount_type is None:
            return cls.none()
        if discount_type not in DISCOUNT_TYPES:
            raise ValueError(f'Unknown discount type: {discount_type}')

        value = to_money(value)
        upper = HUNDRED if discount_type == PERCENTAGE else max(ZERO, to_money(amount_upper))
        return cls(discount_type, clamp(value, ZERO, upper))

    @property
    def is_none(self) -> bool:
        return self.type is None or self.value == 0

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'value': str(self.value)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Discount':
        if not data or not data.get('type'):
            return cls.none()
        return cls(data['type'], to_money(data.get('value')))


def default_overall_discount() -> Discount:
    """Overall discount every new or reset cart starts with."""
    return Discount(PERCENTAGE, ZERO)


@dataclass
class CartLine:
    """One selected service in the in-progress sale."""
    service_id: int
    service_name: str
    unit_price: Decimal
    quantity: int = 1
    staff_id: Optional[int] = None
    staff_name: Optional[str] = None
    discount: Discount = field(default_factory=Discount.none)

    @property
    def line_subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'service_id': self.service_id,
            'service_name': self.service_name,
            'unit_price': str(self.unit_price),
            'quantity': self.quantity,
            'staff_id': self.staff_id,
            'staff_name': self.staff_name,
            'discount': self.discount.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        return cls(
            service_id=int(data['service_id']),
            service_name=data['service_name'],
            unit_price=to_money(data['unit_price']),
            quantity=int(data.get('quantity', 1)),
            staff_id=data.get('staff_id'),
            staff_name=data.get('staff_name'),
            discount=Discount.from_dict(data.get('discount')),
        )


@dataclass
class Cart:
    """Lines in display order plus the cart-wide discount."""
    lines: List[CartLine] = field(default_factory=list)
    overall_discount: Discount = field(default_factory=default_overall_discount)

    def find(self, service_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.service_id == service_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def unit_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lines': [line.to_dict() for line in self.lines],
            'overall_discount': self.overall_discount.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Cart':
        if not data:
            return cls()
        overall = data.get('overall_discount')
        return cls(
            lines=[CartLine.from_dict(line) for line in data.get('lines', [])],
            overall_discount=Discount.from_dict(overall) if overall else default_overall_discount(),
        )
