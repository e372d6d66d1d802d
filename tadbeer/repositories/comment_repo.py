"""Comment Repository - Data access for ticket comments"""
from typing import Any, Dict, List, Optional
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from .mongo_client import get_collection
from ..domain.models import Comment
from ..domain.errors import CommentNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class CommentRepository:
    """Repository for ticket comments"""

    COLLECTION_NAME = "comments"

    def __init__(self):
        self._comments: Collection = get_collection(self.COLLECTION_NAME)

    @staticmethod
    def _to_model(doc: Dict[str, Any]) -> Comment:
        doc.pop("_id", None)
        return Comment.model_validate(doc)

    def create_comment(self, comment: Comment) -> Comment:
        """Append a comment to a ticket"""
        doc = comment.model_dump()
        doc["_id"] = comment.comment_id

        self._comments.insert_one(doc)
        logger.info(
            f"Added comment {comment.comment_id} to ticket {comment.ticket_id}",
            extra={"comment_id": comment.comment_id, "ticket_id": comment.ticket_id, "user_id": comment.user_id}
        )
        return comment

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        doc = self._comments.find_one({"comment_id": comment_id})
        return self._to_model(doc) if doc else None

    def get_comment_or_raise(self, comment_id: str) -> Comment:
        comment = self.get_comment(comment_id)
        if not comment or comment.deleted_at is not None:
            raise CommentNotFoundError("Comment not found", details={"comment_id": comment_id})
        return comment

    def list_for_ticket(self, ticket_id: str) -> List[Comment]:
        """Visible comments of a ticket, oldest first"""
        cursor = self._comments.find(
            {"ticket_id": ticket_id, "deleted_at": None}
        ).sort("created_at", ASCENDING)
        return [self._to_model(doc) for doc in cursor]

    def recent_for_ticket(self, ticket_id: str, limit: int = 10) -> List[Comment]:
        """The latest ``limit`` visible comments, returned in chronological order"""
        cursor = self._comments.find(
            {"ticket_id": ticket_id, "deleted_at": None}
        ).sort("created_at", DESCENDING).limit(limit)
        comments = [self._to_model(doc) for doc in cursor]
        comments.reverse()
        return comments

    def soft_delete(self, comment_id: str) -> Comment:
        """Mark a comment as deleted; it stays in storage"""
        now = utc_now()
        result = self._comments.find_one_and_update(
            {"comment_id": comment_id, "deleted_at": None},
            {"$set": {"deleted_at": now, "updated_at": now}},
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            raise CommentNotFoundError("Comment not found", details={"comment_id": comment_id})

        logger.info(f"Soft-deleted comment: {comment_id}", extra={"comment_id": comment_id})
        return self._to_model(result)
