"""Order aggregate — an immutable snapshot of a checked-out cart.

Items and pricing are copied from the cart at checkout and never change
afterwards, except through the explicit ``recalculate_pricing``. What does
change is the status, its append-only history, payment details and the
refund record.

State Machine:
    PENDING → PROCESSING → COMPLETED → REFUNDED
    PENDING | PROCESSING → CANCELLED
    CANCELLED and REFUNDED are terminal.

Refunds are two-step: the customer requests one on a completed order (the
status does not move), then an admin processes it, which moves the order to
REFUNDED.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderPricingRecalculated,
    OrderProcessing,
    OrderRefunded,
    RefundRequested,
)
from ordering.product.product import DigitalContent
from ordering.shared.errors import InvalidTransition, NoRefundRequested, RefundAlreadyRequested
from ordering.shared.money import ZERO, Amount, clamp_non_negative, to_decimal, to_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class PaymentMethod(Enum):
    WHATSAPP = "Whatsapp"
    TRANSFER = "Transfer"
    CREDIT_CARD = "Credit_Card"
    DEBIT_CARD = "Debit_Card"
    PAYPAL = "Paypal"
    STRIPE = "Stripe"
    COD = "Cod"


class PaymentStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout time.

    Billing addresses usually omit the phone number.
    """

    full_name = String(required=True, max_length=200)
    phone_number = String(max_length=30)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    country = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)


@ordering.value_object(part_of="Order")
class PaymentDetails:
    transaction_id = String(max_length=255)
    payment_intent_id = String(max_length=255)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    paid_at = DateTime()


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Financial summary copied verbatim from the cart at checkout."""

    subtotal = Amount(default=ZERO)
    tax = Amount(default=ZERO)
    shipping = Amount(default=ZERO)
    discount = Amount(default=ZERO)
    total = Amount(default=ZERO)
    currency = String(max_length=3, default="USD")


@ordering.value_object(part_of="Order")
class RefundDetails:
    requested = Boolean(default=False)
    requested_at = DateTime()
    reason = String(max_length=1000)
    amount = Amount()
    processed_at = DateTime()
    processed_by = Identifier()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased product, priced as it was in the cart at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    unit_price = Amount(required=True)
    quantity = Integer(required=True, min_value=1)
    line_discount = Amount(default=ZERO)
    digital_content = ValueObject(DigitalContent)

    @property
    def line_total(self):
        return clamp_non_negative(to_money(to_decimal(self.unit_price) * self.quantity - to_decimal(self.line_discount)))


@ordering.entity(part_of="Order")
class StatusChange:
    """One entry of the order's append-only status history."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    timestamp = DateTime(required=True)
    note = String(max_length=1000)
    updated_by = Identifier()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    status_history = HasMany(StatusChange)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    payment_method = String(required=True, choices=PaymentMethod)
    payment_details = ValueObject(PaymentDetails)
    pricing = ValueObject(OrderPricing)
    coupon_code = String(max_length=50)
    offer_id = Identifier()
    cart_id = Identifier()
    refund = ValueObject(RefundDetails)
    customer_note = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number,
        customer_id,
        items,
        shipping_address,
        billing_address,
        payment_method,
        pricing,
        payment_details=None,
        coupon_code=None,
        offer_id=None,
        cart_id=None,
        customer_note=None,
    ):
        """Create a pending order from a checkout snapshot.

        Args:
            items: OrderItem instances, one per cart line.
            shipping_address: Address the order ships to.
            billing_address: Billing Address; defaults to the shipping address.
            pricing: OrderPricing copied from the cart.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment_method=payment_method,
            payment_details=payment_details or PaymentDetails(),
            pricing=pricing,
            coupon_code=coupon_code,
            offer_id=offer_id,
            cart_id=cart_id,
            refund=RefundDetails(requested=False),
            customer_note=customer_note,
            created_at=now,
            updated_at=now,
        )
        order.add_items(list(items))
        order.add_status_history(
            StatusChange(
                sequence=1,
                status=OrderStatus.PENDING.value,
                timestamp=now,
                note="Order placed",
                updated_by=customer_id,
            )
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "name": item.name,
                            "unit_price": str(item.unit_price),
                            "quantity": item.quantity,
                        }
                        for item in order.items
                    ]
                ),
                subtotal=pricing.subtotal,
                tax=pricing.tax,
                shipping=pricing.shipping,
                discount=pricing.discount,
                total=pricing.total,
                coupon_code=coupon_code,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    @property
    def history(self):
        return sorted(self.status_history, key=lambda entry: entry.sequence)

    def can_transition_to(self, target_status):
        return target_status in _VALID_TRANSITIONS.get(OrderStatus(self.status), set())

    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        if not self.can_transition_to(target_status):
            raise InvalidTransition(self.status, target_status.value)

    def _move_to(self, target_status, updated_by=None, note=None, now=None):
        """Change status and append the matching history entry. Call inside ``atomic_change``."""
        now = now or datetime.now(UTC)
        self.status = target_status.value
        self.add_status_history(
            StatusChange(
                sequence=len(self.status_history) + 1,
                status=target_status.value,
                timestamp=now,
                note=note,
                updated_by=updated_by,
            )
        )
        self.updated_at = now

    def is_owned_by(self, user_id):
        return str(self.customer_id) == str(user_id)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_processing(self, updated_by=None, note=None):
        self._assert_can_transition(OrderStatus.PROCESSING)
        now = datetime.now(UTC)

        with atomic_change(self):
            self._move_to(OrderStatus.PROCESSING, updated_by, note, now)

        self.raise_(OrderProcessing(order_id=str(self.id), updated_by=updated_by, started_at=now))

    def complete(self, updated_by=None, note=None, transaction_id=None):
        """Mark the order completed and stamp the payment as received."""
        self._assert_can_transition(OrderStatus.COMPLETED)
        now = datetime.now(UTC)
        details = self.payment_details or PaymentDetails()

        with atomic_change(self):
            self.payment_details = PaymentDetails(
                transaction_id=transaction_id or details.transaction_id,
                payment_intent_id=details.payment_intent_id,
                status=PaymentStatus.PAID.value,
                paid_at=now,
            )
            self._move_to(OrderStatus.COMPLETED, updated_by, note, now)

        self.raise_(OrderCompleted(order_id=str(self.id), updated_by=updated_by, paid_at=now))

    def cancel(self, cancelled_by=None, reason=None, restocked=True):
        """Cancel a pending or processing order."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        now = datetime.now(UTC)
        note = reason or "Cancelled by user"

        with atomic_change(self):
            self._move_to(OrderStatus.CANCELLED, cancelled_by, note, now)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=note,
                cancelled_by=str(cancelled_by) if cancelled_by else "system",
                restocked=restocked,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    def request_refund(self, reason=None):
        """Record the customer's refund request. The status does not change."""
        current = OrderStatus(self.status)
        if current != OrderStatus.COMPLETED:
            raise InvalidTransition(current.value, OrderStatus.REFUNDED.value)
        if self.refund and self.refund.requested:
            raise RefundAlreadyRequested(str(self.id))

        now = datetime.now(UTC)
        self.refund = RefundDetails(requested=True, requested_at=now, reason=reason)
        self.updated_at = now

        self.raise_(
            RefundRequested(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                reason=reason,
                requested_at=now,
            )
        )

    def process_refund(self, processed_by, amount=None, reason=None):
        """Pay out a requested refund. ``amount`` defaults to the order total."""
        if not (self.refund and self.refund.requested):
            raise NoRefundRequested(str(self.id))
        self._assert_can_transition(OrderStatus.REFUNDED)

        amount = to_money(amount) if amount is not None else to_money(self.pricing.total)
        if amount < ZERO or amount > to_money(self.pricing.total):
            raise ValidationError({"amount": [f"Refund amount must be between 0 and {self.pricing.total}"]})

        now = datetime.now(UTC)
        details = self.payment_details or PaymentDetails()

        with atomic_change(self):
            self.refund = RefundDetails(
                requested=True,
                requested_at=self.refund.requested_at,
                reason=reason or self.refund.reason,
                amount=amount,
                processed_at=now,
                processed_by=processed_by,
            )
            self.payment_details = PaymentDetails(
                transaction_id=details.transaction_id,
                payment_intent_id=details.payment_intent_id,
                status=PaymentStatus.REFUNDED.value,
                paid_at=details.paid_at,
            )
            self._move_to(OrderStatus.REFUNDED, processed_by, reason or "Refund processed", now)

        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                amount=amount,
                processed_by=str(processed_by),
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def recalculate_pricing(self):
        """Recompute subtotal and total from the items, keeping tax, shipping and discount."""
        subtotal = to_money(sum((item.line_total for item in self.items), ZERO))
        pricing = self.pricing
        total = clamp_non_negative(subtotal + pricing.tax + pricing.shipping - pricing.discount)

        self.pricing = OrderPricing(
            subtotal=subtotal,
            tax=pricing.tax,
            shipping=pricing.shipping,
            discount=pricing.discount,
            total=total,
            currency=pricing.currency,
        )
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderPricingRecalculated(
                order_id=str(self.id),
                subtotal=subtotal,
                total=total,
                item_count=len(self.items),
            )
        )
