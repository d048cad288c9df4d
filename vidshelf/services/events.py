import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Message(str, Enum):
    KEYWORD_SUBMITTED = "keyword_submitted"
    DATA_LOADED = "data_loaded"
    VIDEO_SAVED = "video_saved"
    VIDEO_REMOVED = "video_removed"
    WATCHED_TOGGLED = "watched_toggled"
    VIDEO_LIST_CLEARED = "video_list_cleared"


class MessageBus:
    """Delivers messages to the handlers subscribed to them, in subscription order.

    Created once by the application and handed to whoever needs it.
    """

    def __init__(self):
        self.listeners: dict[Message, list[Callable[[Any], None]]] = {message: [] for message in Message}

    def subscribe(self, message: Message, handler: Callable[[Any], None]) -> None:
        self.listeners[Message(message)].append(handler)

    def publish(self, message: Message, data: Any = None) -> None:
        try:
            handlers = self.listeners[Message(message)]
        except ValueError:
            raise ValueError(f"Unknown message: {message!r}") from None

        for handler in list(handlers):
            try:
                handler(data)
            except Exception as e:
                # Keep delivering to the remaining handlers
                logger.error(f"Handler {handler!r} failed for {message}: {e}")
