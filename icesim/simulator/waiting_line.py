"""
WaitingLine - FIFO of customers who arrived while every server was busy.
"""

from collections import deque
from typing import Deque, Iterator

from icesim.common.errors import Exhausted


class WaitingLine:
    """First arrived, first served queue of customer ids."""

    def __init__(self):
        self._line: Deque[int] = deque()

    def append(self, customer_id: int) -> None:
        self._line.append(customer_id)

    def pop(self) -> int:
        """
        Remove and return the customer at the head of the line.

        Raises:
            Exhausted: If nobody is waiting
        """
        if not self._line:
            raise Exhausted("Cannot pop from empty WaitingLine")
        return self._line.popleft()

    def is_empty(self) -> bool:
        return not self._line

    def __len__(self) -> int:
        return len(self._line)

    def __iter__(self) -> Iterator[int]:
        return iter(self._line)

    def __contains__(self, customer_id: int) -> bool:
        return customer_id in self._line
