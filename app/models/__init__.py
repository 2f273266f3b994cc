from app.models.conversation import Conversation
from app.models.message import Message
from app.models.whatsapp_account import WhatsAppAccount

__all__ = [
    "Conversation",
    "Message",
    "WhatsAppAccount",
]
