"""
Message service - client conversations and their messages.

A Conversation keeps a denormalized snapshot of its newest message and a
counter of client messages the agent has not read yet. Both are refreshed
by record_last_message(), which add_message() calls right after the
message insert.
"""

from typing import Any, Dict, List, Mapping, Optional
import logging

from app.api.deps import Actor
from app.core.errors import ForbiddenError, NotFoundError
from app.core.logging import with_context
from app.db.models import (
    CONVERSATION_DEFAULTS,
    ConversationStatus,
    Role,
    SenderRole,
    serialize,
    with_defaults,
)
from app.db.store import CONVERSATIONS, MESSAGES, PROPERTIES, Document, DocumentStore, new_id, utcnow
from app.services.query_builder import parse_positive_int
from app.services.validation import ensure_valid, validate_conversation, validate_message

logger = logging.getLogger(__name__)

MESSAGES_PAGE_SIZE = 50


def default_sender(actor: Actor) -> str:
    """Staff write as the agent side; any other account writes as the client."""
    if actor.role in (Role.AGENT.value, Role.ADMIN.value):
        return SenderRole.AGENT.value
    return SenderRole.CLIENT.value


class MessageService:
    """Service class for conversations and messages."""

    def __init__(self, db: DocumentStore):
        self.db = db
        self.conversations = db.collection(CONVERSATIONS)
        self.messages = db.collection(MESSAGES)
        self.properties = db.collection(PROPERTIES)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def list_conversations(self, params: Mapping[str, str], actor: Actor) -> List[Document]:
        """
        Conversations in the actor's scope, most recently active first.

        Args:
            params: optional status filter (default "active")
        """
        filter: Document = {"status": params.get("status") or ConversationStatus.ACTIVE.value}
        if not actor.is_admin:
            filter["agent"] = actor.id
        docs = self.conversations.find(filter, sort=[("updatedAt", -1), ("_id", -1)])
        return [serialize(doc) for doc in docs]

    def get_conversation(self, conversation_id: str, params: Mapping[str, str], actor: Actor) -> Dict[str, Any]:
        """
        One conversation with a page of its messages.

        Page 1 holds the newest messages; each page is returned oldest
        first. Viewing marks the client's messages read and resets the
        unread counter.

        Returns:
            {"conversation": ..., "messages": [...]}
        """
        log = with_context(logger, conversation_id=conversation_id, actor_id=actor.id)
        conversation = self._get_or_404(conversation_id)
        self._check_access(conversation, actor)

        page = parse_positive_int(params.get("page"), 1)
        limit = parse_positive_int(params.get("limit"), MESSAGES_PAGE_SIZE)
        newest_first = self.messages.find(
            {"conversation": conversation_id},
            sort=[("createdAt", -1), ("_id", -1)],
            skip=(page - 1) * limit,
            limit=limit,
        )

        marked = self.messages.update_many(
            {"conversation": conversation_id, "sender": SenderRole.CLIENT.value, "read": False},
            {"$set": {"read": True, "readAt": utcnow()}},
        )
        if marked or conversation.get("unreadCount"):
            conversation = self.conversations.update_one({"_id": conversation_id}, {"$set": {"unreadCount": 0}})
            log.debug(f"Marked {marked} message(s) read")

        return {
            "conversation": serialize(conversation),
            "messages": [serialize(m) for m in reversed(newest_first)],
        }

    def create_conversation(self, data: Dict[str, Any], actor: Actor) -> Document:
        """
        Open a conversation, optionally with a first message.

        The agent defaults to the caller; when a property is referenced its
        title is copied onto the conversation. The conversation and its first
        message are both checked before either is written.
        """
        first_message = data.pop("message", None)
        sender = data.pop("sender", None) or default_sender(actor)

        doc = with_defaults(CONVERSATION_DEFAULTS, data)
        doc["_id"] = new_id()
        doc.setdefault("agent", actor.id)
        self._check_access(doc, actor)
        if doc.get("property"):
            prop = self.properties.get(doc["property"])
            if prop:
                doc["propertyTitle"] = prop.get("title")
        ensure_valid(validate_conversation(doc))

        message_doc = None
        if first_message:
            message_doc = self._message_document(doc["_id"], {"content": first_message, "sender": sender}, actor)
            ensure_valid(validate_message(message_doc))

        conversation = self.conversations.insert_one(doc)
        logger.info(f"Conversation {conversation['_id']} opened for agent {doc['agent']}")

        if message_doc:
            message = self.messages.insert_one(message_doc)
            conversation = self.record_last_message(conversation["_id"], message) or conversation
        return serialize(conversation)

    def archive_conversation(self, conversation_id: str, actor: Actor) -> Document:
        """Conversations are never removed, only archived."""
        conversation = self._get_or_404(conversation_id)
        self._check_access(conversation, actor)
        archived = self.conversations.update_one(
            {"_id": conversation_id},
            {"$set": {"status": ConversationStatus.ARCHIVED.value}},
        )
        logger.info(f"Conversation {conversation_id} archived by {actor.id}")
        return serialize(archived)

    def unread_count(self, actor: Actor) -> int:
        match: Document = {"status": ConversationStatus.ACTIVE.value}
        if not actor.is_admin:
            match["agent"] = actor.id
        rows = self.conversations.aggregate([
            {"$match": match},
            {"$group": {"_id": None, "total": {"$sum": "$unreadCount"}}},
        ])
        return int(rows[0]["total"]) if rows else 0

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def add_message(self, conversation_id: str, data: Dict[str, Any], actor: Actor) -> Document:
        """
        Post a message, then refresh the conversation snapshot.

        Args:
            conversation_id: parent conversation
            data: content, optional sender ("client"/"agent") and attachments
            actor: the authenticated caller

        Returns:
            The stored message
        """
        conversation = self._get_or_404(conversation_id)
        self._check_access(conversation, actor)

        doc = self._message_document(conversation_id, data, actor)
        ensure_valid(validate_message(doc))

        message = self.messages.insert_one(doc)
        self.record_last_message(conversation_id, message)
        return serialize(message)

    def record_last_message(self, conversation_id: str, message: Document) -> Optional[Document]:
        """
        Post-write step for a new message.

        Overwrites the conversation's lastMessage snapshot and, for a client
        message, increments unreadCount by one.

        Returns:
            The updated conversation (None if it vanished meanwhile)
        """
        update: Document = {
            "$set": {
                "lastMessage": {
                    "content": message["content"],
                    "sender": message["sender"],
                    "timestamp": message["createdAt"],
                },
            },
        }
        if message["sender"] == SenderRole.CLIENT.value:
            update["$inc"] = {"unreadCount": 1}

        updated = self.conversations.update_one({"_id": conversation_id}, update)
        if updated is None:
            logger.warning(f"Conversation {conversation_id} missing while recording message {message['_id']}")
        return updated

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, conversation_id: str) -> Document:
        conversation = self.conversations.get(conversation_id)
        if not conversation:
            raise NotFoundError("Conversation not found")
        return conversation

    @staticmethod
    def _message_document(conversation_id: str, data: Mapping[str, Any], actor: Actor) -> Document:
        return {
            "conversation": conversation_id,
            "sender": data.get("sender") or default_sender(actor),
            "senderId": actor.id,
            "content": data.get("content"),
            "attachments": data.get("attachments") or [],
            "read": False,
            "readAt": None,
        }

    @staticmethod
    def _check_access(conversation: Document, actor: Actor) -> None:
        if actor.is_admin or conversation.get("agent") == actor.id:
            return
        logger.warning(f"Actor {actor.id} denied access to conversation {conversation['_id']}")
        raise ForbiddenError("Not authorized to access this conversation")
