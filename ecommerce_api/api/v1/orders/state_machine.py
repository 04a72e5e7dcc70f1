"""
Order state machine for managing order status transitions
"""

from typing import Dict, List, Set
from ecommerce_api.models.order import OrderStatus

class OrderStateMachine:
    """
    Manages admin-driven order status transitions

    pending -> paid only happens through payment confirmation, so `paid`
    is never a valid admin target.
    """

    def __init__(self):
        # Define valid transitions
        self.transitions: Dict[OrderStatus, Set[OrderStatus]] = {
            OrderStatus.PENDING: {
                OrderStatus.CANCELLED
            },
            OrderStatus.PAID: {
                OrderStatus.SHIPPED,
                OrderStatus.CANCELLED
            },
            OrderStatus.SHIPPED: {
                OrderStatus.DELIVERED
            },
            OrderStatus.DELIVERED: set(),  # Terminal state
            OrderStatus.CANCELLED: set()   # Terminal state
        }

    def can_transition(
        self,
        current_status: OrderStatus,
        new_status: OrderStatus
    ) -> bool:
        """
        Check if transition is valid

        Args:
            current_status: Current order status
            new_status: Desired new status

        Returns:
            True if transition is allowed
        """
        if new_status == OrderStatus.PAID:
            return False
        valid_transitions = self.transitions.get(current_status, set())
        return new_status in valid_transitions

    def get_valid_transitions(
        self,
        current_status: OrderStatus
    ) -> List[OrderStatus]:
        """List of valid next statuses, in lifecycle order"""
        valid = self.transitions.get(current_status, set())
        return [status for status in OrderStatus if status in valid]

    def is_terminal_state(self, status: OrderStatus) -> bool:
        return len(self.transitions.get(status, set())) == 0

    def is_cancellable(self, status: OrderStatus) -> bool:
        return OrderStatus.CANCELLED in self.transitions.get(status, set())
