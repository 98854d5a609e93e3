"""Allowed status transitions for orders, production days and batches."""

import logging

from .exceptions import InvalidStatusTransition

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS = {
    'pending': {'planned', 'cancelled'},
    'planned': {'in_production', 'cancelled'},
    'in_production': {'completed'},
    'completed': {'delivered'},
    'delivered': set(),
    'cancelled': set(),
}

PRODUCTION_DAY_TRANSITIONS = {
    'draft': {'published'},
    'published': {'closed'},
    'closed': set(),
}

# qa_failed is only entered through kiosk_service.mark_batch_qa_failed
BATCH_TRANSITIONS = {
    'pending': {'in_progress'},
    'in_progress': {'completed', 'qa_failed'},
    'completed': set(),
    'qa_failed': set(),
}

_MACHINES = {
    'Order': ORDER_TRANSITIONS,
    'ProductionDay': PRODUCTION_DAY_TRANSITIONS,
    'ProductionBatch': BATCH_TRANSITIONS,
}


def can_transition(entity: str, current: str, target: str) -> bool:
    return target in _MACHINES[entity].get(current, set())


def ensure_transition(entity: str, current: str, target: str) -> None:
    if not can_transition(entity, current, target):
        logger.warning(f"Rejected {entity} transition {current} -> {target}")
        raise InvalidStatusTransition(entity, current, target)


def transition(obj, target: str) -> str:
    """Move a model instance to ``target`` and return its previous status."""
    entity = type(obj).__name__
    previous = obj.status
    ensure_transition(entity, previous, target)
    obj.status = target
    return previous


def order_is_deletable(order) -> bool:
    return order.status == 'pending'


def order_is_cancellable(order) -> bool:
    return can_transition('Order', order.status, 'cancelled')
