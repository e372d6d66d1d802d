"""Ticket Repository - Data access for tickets"""
import re
from typing import Any, Dict, List, Optional, Tuple
from pymongo.collection import Collection
from pymongo import DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Ticket
from ..domain.errors import TicketNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class TicketRepository:
    """Repository for ticket operations"""

    COLLECTION_NAME = "tickets"

    def __init__(self):
        self._tickets: Collection = get_collection(self.COLLECTION_NAME)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Ticket:
        doc.pop("_id", None)
        return Ticket.model_validate(doc)

    # =========================================================================
    # Ticket CRUD
    # =========================================================================

    def create_ticket(self, ticket: Ticket) -> Ticket:
        """Create a new ticket"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = ticket.model_dump()
        doc["_id"] = ticket.ticket_id

        self._tickets.insert_one(doc)
        logger.info(f"Created ticket: {ticket.ticket_id}", extra={"ticket_id": ticket.ticket_id})
        return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID"""
        doc = self._tickets.find_one({"ticket_id": ticket_id})
        return self._to_model(doc) if doc else None

    def get_ticket_or_raise(self, ticket_id: str) -> Ticket:
        """Get ticket by ID or raise error"""
        ticket = self.get_ticket(ticket_id)
        if not ticket:
            raise TicketNotFoundError("Ticket not found", details={"ticket_id": ticket_id})
        return ticket

    def update_ticket(self, ticket_id: str, updates: Dict[str, Any]) -> Tuple[Ticket, Ticket]:
        """
        Apply field updates (last write wins).

        Returns:
            (before, after) - the pre-image is read atomically with the write,
            so callers can compute deltas against what was actually replaced.
        """
        now = utc_now()
        before_doc = self._tickets.find_one_and_update(
            {"ticket_id": ticket_id},
            {"$set": {**updates, "updated_at": now}},
            return_document=ReturnDocument.BEFORE
        )
        if before_doc is None:
            raise TicketNotFoundError("Ticket not found", details={"ticket_id": ticket_id})

        before = self._to_model(before_doc)
        after = Ticket.model_validate({**before.model_dump(), **updates, "updated_at": now})

        logger.info(f"Updated ticket: {ticket_id}", extra={"ticket_id": ticket_id})
        return before, after

    def delete_ticket(self, ticket_id: str) -> bool:
        """Hard-delete a ticket. Comments and notifications are left in place."""
        result = self._tickets.delete_one({"ticket_id": ticket_id})
        return result.deleted_count > 0

    # =========================================================================
    # Queries
    # =========================================================================

    def list_tickets(
        self,
        filters: Dict[str, Any],
        visibility: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None
    ) -> List[Ticket]:
        """
        List tickets matching exact-value filters, newest first.

        ``visibility`` is an extra clause from the access policy (e.g. an $or
        on created_by/assignee); it is ANDed with the filters.
        """
        and_conditions = [{key: value} for key, value in filters.items() if value is not None]
        if visibility:
            and_conditions.append(visibility)

        query: Dict[str, Any] = {}
        if len(and_conditions) == 1:
            query = and_conditions[0]
        elif len(and_conditions) > 1:
            query = {"$and": and_conditions}

        cursor = self._tickets.find(query).sort("created_at", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)

        return [self._to_model(doc) for doc in cursor]

    def search_tickets(
        self,
        text: Optional[str],
        visibility: Optional[Dict[str, Any]] = None,
        limit: int = 10
    ) -> List[Ticket]:
        """Case-insensitive substring search in title/description, most recently updated first"""
        and_conditions: List[Dict[str, Any]] = []
        if text:
            pattern = re.escape(text)
            and_conditions.append({"$or": [
                {"title": {"$regex": pattern, "$options": "i"}},
                {"description": {"$regex": pattern, "$options": "i"}}
            ]})
        if visibility:
            and_conditions.append(visibility)

        query: Dict[str, Any] = {"$and": and_conditions} if and_conditions else {}
        cursor = self._tickets.find(query).sort("updated_at", DESCENDING).limit(limit)
        return [self._to_model(doc) for doc in cursor]
