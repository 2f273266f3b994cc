from app.services.agent_service import AgentService
from app.services.conversation_service import ConversationService
from app.services.message_importer import ImportResult, MessageImporter
from app.services.message_service import MessageService
from app.services.metadata_service import MetadataService
from app.services.whatsapp_account_service import WhatsAppAccountService

__all__ = [
    "AgentService",
    "ConversationService",
    "ImportResult",
    "MessageImporter",
    "MessageService",
    "MetadataService",
    "WhatsAppAccountService",
]
