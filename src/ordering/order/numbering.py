"""Sequential, human-facing order numbers.

A single ``OrderNumberSequence`` aggregate (id ``orders``) holds the last
number issued. Placing an order loads it, takes the next number and saves it
in the same unit of work as the new order.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering

SEQUENCE_ID = "orders"
NUMBER_WIDTH = 5


@ordering.aggregate
class OrderNumberSequence:
    sequence_id = Identifier(identifier=True)
    last_number = Integer(default=0, min_value=0)

    def take_next(self) -> str:
        """Advance the sequence and return the new number, zero-padded."""
        self.last_number = (self.last_number or 0) + 1
        return str(self.last_number).zfill(NUMBER_WIDTH)


def next_order_number() -> str:
    repo = current_domain.repository_for(OrderNumberSequence)
    try:
        sequence = repo.get(SEQUENCE_ID)
    except ObjectNotFoundError:
        sequence = OrderNumberSequence(sequence_id=SEQUENCE_ID, last_number=0)
    number = sequence.take_next()
    repo.add(sequence)
    return number
