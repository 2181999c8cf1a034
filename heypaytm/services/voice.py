"""
"Hey Paytm" Voice Command Handler

Turns transcribed phrases from the table page into orders:
    - "Hey Paytm, order 2 butter naan"  -> item added to the table's cart
    - "Hey Paytm, I'm done"             -> cart sent to the kitchen
Speech recognition and synthesis happen in the browser; this handler only
sees the final transcript and returns the text to speak back.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import re
from typing import Optional, Union

from pydantic import ValidationError as SchemaValidationError

from heypaytm.exceptions import SessionStateError
from heypaytm.menu import DEFAULT_MENU, BeverageItem, DishItem
from heypaytm.schemas import LineItem, VoiceResponse
from heypaytm.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class VoiceOrderHandler:
    """
    Keeps a pending cart per table until the customer says they are done.

    Supported Phrases:
        - wake words: "hey paytm" or "order" must appear in the phrase
        - menu item names, with an optional quantity ("2", "two")
        - "done" / "finish" / "complete" to submit the cart
    """

    WAKE_WORDS = ("hey paytm", "order")
    SUBMIT_WORDS = ("done", "finish", "complete")

    # Matches LineItem.quantity
    MAX_QUANTITY = 99

    NUMBER_WORDS = {
        "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
        "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    }

    PROMPT_WAKE = "Please start with 'Hey Paytm' to place an order."
    PROMPT_RETRY = "I didn't catch that. Please try saying 'Hey Paytm, order 2 butter naan' or similar."
    PROMPT_EMPTY = "You haven't ordered anything yet. Please add some items first."
    PROMPT_SUBMITTED = (
        "Perfect! Your order has been sent to the kitchen. "
        "You can track its progress in the Order tab."
    )

    def __init__(
        self,
        session_manager: SessionManager,
        menu: Optional[list[Union[DishItem, BeverageItem]]] = None,
    ):
        self.session_manager = session_manager
        # Longest names first so "garlic naan" wins over a shorter overlapping name
        self.menu = sorted(menu or DEFAULT_MENU, key=lambda item: len(item.name), reverse=True)
        self._carts: dict[int, list[LineItem]] = {}

        logger.info(f"VoiceOrderHandler initialized ({len(self.menu)} menu items)")

    def process(self, table_number: int, transcript: str) -> VoiceResponse:
        """Interpret one phrase for a table and return the reply to speak."""
        command = transcript.lower().strip()
        logger.info(f"Voice command at table {table_number}: {command!r}")

        if not any(word in command for word in self.WAKE_WORDS):
            return self._reply(table_number, self.PROMPT_WAKE)

        menu_item = self._match_item(command)
        if menu_item:
            quantity = self.extract_quantity(command)
            try:
                line = self._add_to_cart(table_number, menu_item, quantity)
            except SchemaValidationError:
                in_cart = sum(i.quantity for i in self.get_cart(table_number) if i.name == menu_item.name)
                logger.info(f"Quantity {quantity} of {menu_item.name} refused at table {table_number}")
                return self._reply(
                    table_number,
                    f"Please order at most {self.MAX_QUANTITY} {menu_item.name} "
                    f"(you have {in_cart} in your order).",
                )
            return self._reply(
                table_number,
                f"Added {quantity} {menu_item.name} to your order. Anything else?",
                added_item=line,
            )

        if any(word in command for word in self.SUBMIT_WORDS):
            return self._submit(table_number)

        return self._reply(table_number, self.PROMPT_RETRY)

    def get_cart(self, table_number: int) -> list[LineItem]:
        return list(self._carts.get(table_number, []))

    def clear_cart(self, table_number: int) -> None:
        self._carts.pop(table_number, None)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @classmethod
    def extract_quantity(cls, command: str) -> int:
        numbers = re.search(r"\d+", command)
        if numbers:
            return max(int(numbers.group()), 1)
        for word in re.findall(r"[a-z]+", command):
            if word in cls.NUMBER_WORDS:
                return cls.NUMBER_WORDS[word]
        return 1

    def _match_item(self, command: str) -> Optional[Union[DishItem, BeverageItem]]:
        return next((item for item in self.menu if item.name.lower() in command), None)

    def _add_to_cart(
        self,
        table_number: int,
        menu_item: Union[DishItem, BeverageItem],
        quantity: int,
    ) -> LineItem:
        """
        Raises:
            SchemaValidationError: Quantity, alone or merged with the
                cart line, outside 1..99
        """
        cart = self._carts.setdefault(table_number, [])
        line = LineItem(name=menu_item.name, quantity=quantity, price=menu_item.price)
        for index, entry in enumerate(cart):
            if entry.name == line.name:
                cart[index] = LineItem(
                    name=entry.name,
                    quantity=entry.quantity + quantity,
                    price=entry.price,
                )
                break
        else:
            cart.append(line)
        return line

    def _submit(self, table_number: int) -> VoiceResponse:
        cart = self._carts.get(table_number)
        if not cart:
            return self._reply(table_number, self.PROMPT_EMPTY)

        try:
            order = self.session_manager.add_order_to_session(table_number, cart)
        except SessionStateError:
            return self._reply(
                table_number,
                "Your bill has already been requested. Please ask our staff to reopen the table.",
            )

        if not order:
            return self._reply(
                table_number,
                f"Table {table_number} has no active session. Please ask our staff to seat you first.",
            )

        self.clear_cart(table_number)
        logger.info(f"Voice order {order.id} submitted for table {table_number}")
        return self._reply(table_number, self.PROMPT_SUBMITTED, submitted_order=order)

    def _reply(self, table_number: int, message: str, **changes) -> VoiceResponse:
        return VoiceResponse(message=message, cart=self.get_cart(table_number), **changes)
