"""
Messaging API endpoints.

Conversations between a client and the assigned agent. Deleting a
conversation archives it.
"""

from fastapi import APIRouter, Depends, Request, status
import logging

from app.api.deps import Actor, get_current_actor
from app.core.logging import with_context
from app.db.database import get_db
from app.db.store import DocumentStore
from app.schemas.common import to_document
from app.schemas.message import ConversationCreate, MessageCreate
from app.services.message_service import MessageService

router = APIRouter(prefix="/api/messages", tags=["messages"])

logger = logging.getLogger(__name__)


def get_message_service(db: DocumentStore = Depends(get_db)) -> MessageService:
    return MessageService(db)


@router.get("/conversations")
def list_conversations(
    request: Request,
    actor: Actor = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service),
):
    conversations = service.list_conversations(dict(request.query_params), actor)
    return {"success": True, "count": len(conversations), "data": conversations}


@router.get("/conversations/{conversation_id}")
def get_conversation(
    conversation_id: str,
    request: Request,
    actor: Actor = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service),
):
    """
    A conversation and one page of its messages (?page, ?limit=50).

    Opening the conversation marks the client's messages read.
    """
    return {"success": True, "data": service.get_conversation(conversation_id, dict(request.query_params), actor)}


@router.post("/conversations", status_code=status.HTTP_201_CREATED)
def create_conversation(
    conversation_data: ConversationCreate,
    actor: Actor = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service),
):
    return {"success": True, "data": service.create_conversation(to_document(conversation_data), actor)}


@router.post("/conversations/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
def send_message(
    conversation_id: str,
    message_data: MessageCreate,
    actor: Actor = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service),
):
    """
    Post a message.

    The conversation's lastMessage is replaced and, for client messages,
    its unreadCount goes up by one.
    """
    with_context(logger, conversation_id=conversation_id, actor_id=actor.id).debug("Posting message")
    return {"success": True, "data": service.add_message(conversation_id, to_document(message_data), actor)}


@router.delete("/conversations/{conversation_id}")
def archive_conversation(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: MessageService = Depends(get_message_service),
):
    service.archive_conversation(conversation_id, actor)
    return {"success": True, "message": "Conversation archived"}


@router.get("/unread-count")
def unread_count(actor: Actor = Depends(get_current_actor), service: MessageService = Depends(get_message_service)):
    return {"success": True, "data": {"unreadCount": service.unread_count(actor)}}
