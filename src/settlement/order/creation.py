"""Order placement — command and handler.

The checkout flow hands over the order number, customer contact and the raw
line items. The ledger prices every item and freezes its commission split
before the order is written.
"""

import json

from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from settlement.domain import logger, settlement
from settlement.order.ledger import OrderItemLedger
from settlement.order.order import Order


@settlement.command(part_of="Order")
class PlaceOrder:
    order_number = String(required=True, max_length=100)
    customer_name = String(max_length=255)
    customer_email = String(max_length=254)
    customer_phone = String(max_length=50)
    items = Text(required=True)  # JSON: list of {seller_id, unit_price, quantity, ...}


@settlement.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        ledger = OrderItemLedger().create_items(items_data)

        order = Order.place(
            order_number=command.order_number,
            customer={
                "name": command.customer_name,
                "email": command.customer_email,
                "phone": command.customer_phone,
            },
            ledger_items=ledger.items,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(ledger.items),
            total_amount=ledger.total_amount,
            total_commission=ledger.total_commission,
            breakdown=[line.to_dict() for line in ledger.breakdown],
        )
        return str(order.id)
