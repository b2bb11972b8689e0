"""
Realtime payloads for order events.

Values are converted to JSON-ready primitives here so that every
transport (SSE today) can dump them without custom encoders.
"""

from apps.realtime.bus import Event, ORDER_CREATED, ORDER_UPDATED


def _money(value):
    return str(value) if value is not None else None


def _timestamp(value):
    return value.isoformat() if value else None


def order_snapshot(order):
    """Full order as shown on the kitchen display."""
    customer = None
    if order.customer_id:
        customer = {'id': str(order.customer_id), 'name': order.customer.name}

    return {
        'id': str(order.id),
        'order_number': order.order_number,
        'store_id': str(order.store_id),
        'status': order.status,
        'placed_at': _timestamp(order.placed_at),
        'notes': order.notes,
        'total_amount': _money(order.total_amount),
        'customer': customer,
        'items': [
            {
                'id': str(item.id),
                'product_name': item.product_name,
                'quantity': item.quantity,
                'note': item.note,
                'item_status': item.item_status,
                'modifiers': [
                    {
                        'group_name': modifier.group_name,
                        'option_name': modifier.option_name,
                        'price_delta': _money(modifier.price_delta),
                    }
                    for modifier in item.modifiers.all()
                ],
            }
            for item in order.items.all()
        ],
        'payments': [
            {
                'id': str(payment.id),
                'method': payment.method,
                'amount': _money(payment.amount),
            }
            for payment in order.payments.all()
        ],
    }


def order_created_event(order) -> Event:
    return Event(
        type=ORDER_CREATED,
        order_id=str(order.id),
        store_id=str(order.store_id),
        data=order_snapshot(order),
    )


def order_updated_event(order) -> Event:
    return Event(
        type=ORDER_UPDATED,
        order_id=str(order.id),
        store_id=str(order.store_id),
        data={
            'order_id': str(order.id),
            'status': order.status,
            'ready_at': _timestamp(order.ready_at),
            'completed_at': _timestamp(order.completed_at),
        },
    )
