"""Commands, handler and state machine service for ticket orders."""

from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from settlement.domain import logger, settlement
from settlement.ticket.ticket_order import TicketOrder, TicketStatus
from settlement.transitions import TransitionResult


@settlement.command(part_of="TicketOrder")
class PlaceTicketOrder:
    ticket_type_id = Identifier(required=True)
    event_id = Identifier()
    buyer_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


@settlement.command(part_of="TicketOrder")
class ConfirmTicketOrder:
    ticket_order_id = Identifier(required=True)


@settlement.command(part_of="TicketOrder")
class CancelTicketOrder:
    ticket_order_id = Identifier(required=True)
    reason = String(max_length=500)


@settlement.command_handler(part_of=TicketOrder)
class TicketOrderHandler:
    @handle(PlaceTicketOrder)
    def place_ticket_order(self, command):
        ticket_order = TicketOrder.place(
            ticket_type_id=command.ticket_type_id,
            quantity=command.quantity,
            unit_price=command.unit_price,
            event_id=command.event_id,
            buyer_id=command.buyer_id,
        )
        current_domain.repository_for(TicketOrder).add(ticket_order)
        return str(ticket_order.id)

    @handle(ConfirmTicketOrder)
    def confirm_ticket_order(self, command):
        repo = current_domain.repository_for(TicketOrder)
        ticket_order = repo.get(command.ticket_order_id)
        if ticket_order.status != TicketStatus.PENDING.value:
            return TransitionResult(applied=False, current_status=ticket_order.status)

        ticket_order.confirm()
        repo.add(ticket_order)
        return TransitionResult(applied=True, current_status=ticket_order.status)

    @handle(CancelTicketOrder)
    def cancel_ticket_order(self, command):
        repo = current_domain.repository_for(TicketOrder)
        ticket_order = repo.get(command.ticket_order_id)
        if ticket_order.status != TicketStatus.PENDING.value:
            return TransitionResult(applied=False, current_status=ticket_order.status)

        ticket_order.cancel(reason=command.reason)
        repo.add(ticket_order)
        return TransitionResult(applied=True, current_status=ticket_order.status)


class TicketOrderStateMachine:
    """Places ticket orders and moves pending ones to confirmed or cancelled."""

    def place(self, ticket_type_id, quantity, unit_price, event_id=None, buyer_id=None) -> str:
        ticket_order_id = current_domain.process(
            PlaceTicketOrder(
                ticket_type_id=ticket_type_id,
                event_id=event_id,
                buyer_id=buyer_id,
                quantity=quantity,
                unit_price=unit_price,
            ),
            asynchronous=False,
        )
        logger.info("Ticket order placed", ticket_order_id=ticket_order_id, quantity=quantity)
        return ticket_order_id

    def confirm(self, ticket_order_id) -> TransitionResult:
        result = self._process(ConfirmTicketOrder(ticket_order_id=ticket_order_id), ticket_order_id)
        logger.info(
            "Ticket order confirmation",
            ticket_order_id=str(ticket_order_id),
            applied=result.applied,
            current_status=result.current_status,
        )
        return result

    def cancel(self, ticket_order_id, reason=None) -> TransitionResult:
        result = self._process(
            CancelTicketOrder(ticket_order_id=ticket_order_id, reason=reason),
            ticket_order_id,
        )
        logger.info(
            "Ticket order cancellation",
            ticket_order_id=str(ticket_order_id),
            applied=result.applied,
            current_status=result.current_status,
        )
        return result

    def _process(self, command, ticket_order_id) -> TransitionResult:
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            ticket_order = current_domain.repository_for(TicketOrder).get(ticket_order_id)
            return TransitionResult(applied=False, current_status=ticket_order.status)
