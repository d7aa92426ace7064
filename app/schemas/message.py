"""
Conversation and message schemas.
"""

from typing import List, Optional

from pydantic import Field

from app.schemas.common import ClientInfo, InputModel


class Attachment(InputModel):
    filename: Optional[str] = None
    url: Optional[str] = None
    file_type: Optional[str] = Field(None, alias="type")
    size: Optional[int] = None


class ConversationCreate(InputModel):
    """
    Schema for opening a conversation.

    agent defaults to the caller; message, when given, becomes the first
    message of the conversation.
    """
    client: Optional[ClientInfo] = None
    property_id: Optional[str] = Field(None, alias="property")
    agent: Optional[str] = None
    lead_id: Optional[str] = Field(None, alias="lead")
    message: Optional[str] = None
    sender: Optional[str] = None  # sender role of the first message


class MessageCreate(InputModel):
    """
    Schema for posting a message.

    sender is "client" or "agent" (defaults to "agent" for the
    authenticated caller).
    """
    content: Optional[str] = None
    sender: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
