import math
from collections import OrderedDict
from typing import Dict, Iterable, List


def plan_batches(total_units: int, batch_capacity: int) -> List[int]:
    """Split ``total_units`` into full batches plus one remainder batch.

    >>> plan_batches(65, 20)
    [20, 20, 20, 5]
    """
    if total_units <= 0 or batch_capacity <= 0:
        return []

    batches = []
    remaining = total_units
    while remaining > 0:
        size = min(remaining, batch_capacity)
        batches.append(size)
        remaining -= size
    return batches


def batch_count(total_units: int, batch_capacity: int) -> int:
    if total_units <= 0 or batch_capacity <= 0:
        return 0
    return math.ceil(total_units / batch_capacity)


def aggregate_product_demand(order_items: Iterable) -> Dict[int, int]:
    """Sum ordered quantity per product, keeping first-seen product order.

    Accepts ``OrderItem`` rows or ``(product_id, quantity)`` pairs.
    """
    demand: Dict[int, int] = OrderedDict()
    for entry in order_items:
        if isinstance(entry, tuple):
            product_id, quantity = entry
        else:
            product_id, quantity = entry.product_id, entry.quantity
        demand[product_id] = demand.get(product_id, 0) + int(quantity or 0)
    return demand
