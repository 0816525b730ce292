import logging
from typing import Iterable
from uuid import UUID

from ..models.base import utcnow
from ..repositories.chat_repository import ChatRepository

logger = logging.getLogger(__name__)


class MessageReadStatusService:
    def __init__(self, repository: ChatRepository):
        self.repository = repository

    async def mark_messages_read(self, message_ids: Iterable[UUID], user_id: UUID) -> int:
        """
        Record ``user_id`` as a reader of every listed message in one bulk update.

        Messages the user already read are excluded by the update itself, so
        repeating the call is a no-op. Read receipts are best effort: failures
        are logged and 0 is returned.
        """
        message_ids = list(dict.fromkeys(message_ids))
        if not message_ids:
            return 0

        try:
            modified = await self.repository.add_reader_to_messages(message_ids, user_id, utcnow())
        except Exception:
            logger.error("Read status update failed for user %s", user_id, exc_info=True)
            return 0

        logger.debug("Read status updated: %d messages modified by user %s", modified, user_id)
        return modified
