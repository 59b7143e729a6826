"""Order status transitions — commands, handler and the state machine service.

Every transition is a compare-and-swap: the caller states the status it
expects the order to be in, and the change is applied only if the stored
status still matches. Duplicate webhook deliveries and racing admin actions
therefore change the order at most once.

Payment is special: an order becomes `paid` only through RecordOrderPayment,
which the payment webhook issues after verifying the processor's signature.
"""

from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from settlement.domain import logger, settlement
from settlement.order.order import _VALID_TRANSITIONS, Order, OrderStatus
from settlement.transitions import InvalidTransitionError, TransitionResult, assert_transition_allowed


@settlement.command(part_of="Order")
class TransitionOrder:
    order_id = Identifier(required=True)
    expected_status = String(required=True, choices=OrderStatus)
    target_status = String(required=True, choices=OrderStatus)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=1000)
    carrier = String(max_length=100)
    notes = Text()
    reason = String(max_length=500)
    actor = String(max_length=50, default="admin")


@settlement.command(part_of="Order")
class RecordOrderPayment:
    order_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)
    payment_method = String(max_length=50)
    paid_at = DateTime()


@settlement.command_handler(part_of=Order)
class OrderTransitionHandler:
    @handle(TransitionOrder)
    def transition_order(self, command):
        expected = OrderStatus(command.expected_status)
        target = OrderStatus(command.target_status)
        assert_transition_allowed(_VALID_TRANSITIONS, expected, target)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.status != expected.value:
            return TransitionResult(applied=False, current_status=order.status)

        if target == OrderStatus.SHIPPED:
            order.ship(
                tracking_number=command.tracking_number,
                tracking_url=command.tracking_url,
                carrier=command.carrier,
                notes=command.notes,
            )
        elif target == OrderStatus.DELIVERED:
            order.deliver(notes=command.notes)
        elif target == OrderStatus.CANCELLED:
            order.cancel(reason=command.reason, notes=command.notes, cancelled_by=command.actor)
        else:
            raise InvalidTransitionError(
                f"Orders move to {target.value} only through payment confirmation",
                current_status=order.status,
                target_status=target.value,
            )

        repo.add(order)
        return TransitionResult(applied=True, current_status=order.status)

    @handle(RecordOrderPayment)
    def record_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.status != OrderStatus.PENDING.value:
            return TransitionResult(applied=False, current_status=order.status)

        order.record_payment(
            payment_intent_id=command.payment_intent_id,
            payment_method=command.payment_method,
            paid_at=command.paid_at,
        )
        repo.add(order)
        return TransitionResult(applied=True, current_status=order.status)


class OrderStateMachine:
    """Entry point for order transitions from admin tools and the payment webhook."""

    def transition(self, order_id, expected_status, target_status, **metadata) -> TransitionResult:
        """Move an order from `expected_status` to `target_status`.

        `metadata` may carry tracking_number, tracking_url, carrier, notes,
        reason and actor. Raises InvalidTransitionError for pairs outside the
        transition table and for admin attempts to mark an order paid.
        """
        expected = _status(expected_status)
        target = _status(target_status)
        assert_transition_allowed(_VALID_TRANSITIONS, expected, target)
        if target == OrderStatus.PAID:
            raise InvalidTransitionError(
                "Orders move to paid only through payment confirmation",
                current_status=expected.value,
                target_status=target.value,
            )

        command = TransitionOrder(
            order_id=order_id,
            expected_status=expected.value,
            target_status=target.value,
            **{key: value for key, value in metadata.items() if value is not None},
        )
        result = self._process(command, order_id)
        logger.info(
            "Order transition",
            order_id=str(order_id),
            expected_status=expected.value,
            target_status=target.value,
            applied=result.applied,
            current_status=result.current_status,
        )
        return result

    def record_payment(self, order_id, payment_intent_id, payment_method=None, paid_at=None) -> TransitionResult:
        """Move a pending order to paid with the processor's references."""
        command = RecordOrderPayment(
            order_id=order_id,
            payment_intent_id=payment_intent_id,
            payment_method=payment_method,
            paid_at=paid_at,
        )
        return self._process(command, order_id)

    def _process(self, command, order_id) -> TransitionResult:
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            # Another writer appended to the order stream first
            order = current_domain.repository_for(Order).get(order_id)
            logger.info(
                "Order transition lost a concurrent update",
                order_id=str(order_id),
                current_status=order.status,
            )
            return TransitionResult(applied=False, current_status=order.status)


def _status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidTransitionError(f"Unknown order status {value!r}") from None
