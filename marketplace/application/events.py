from marketplace.domain.models import Order, OrderStatus, Actor

ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status_changed"


def order_created_event(order: Order) -> dict:
    return {
        "order_id": order.id,
        "buyer_id": order.buyer_id,
        "seller_id": order.seller_id,
        "product_id": order.product_id,
        "industry": order.industry,
        "quantity": order.quantity,
        "status": order.status.value,
    }


def status_changed_event(order: Order, previous: OrderStatus, actor: Actor) -> dict:
    return {
        "order_id": order.id,
        "buyer_id": order.buyer_id,
        "seller_id": order.seller_id,
        "industry": order.industry,
        "from_status": previous.value,
        "to_status": order.status.value,
        "actor_id": actor.id,
        "actor_role": actor.role.value,
    }
