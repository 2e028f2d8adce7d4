"""Side-effect gateway and its collaborators."""

from chatflow.gateway.channels import (
    BufferedChannel,
    HttpMessagingChannel,
    LoggingChannel,
    SentMessage,
)
from chatflow.gateway.gateway import SideEffectGateway
from chatflow.gateway.http import HttpxClient
from chatflow.gateway.interfaces import (
    ConversationStore,
    HttpClient,
    HttpResponse,
    MessagingChannel,
    TagStore,
)
from chatflow.gateway.memory import InMemoryConversationStore, InMemoryTagStore

__all__ = [
    "BufferedChannel",
    "ConversationStore",
    "HttpClient",
    "HttpMessagingChannel",
    "HttpResponse",
    "HttpxClient",
    "InMemoryConversationStore",
    "InMemoryTagStore",
    "LoggingChannel",
    "MessagingChannel",
    "SentMessage",
    "SideEffectGateway",
    "TagStore",
]
