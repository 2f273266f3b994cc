"""Defaults and reserved values for the automated reply agent."""

from uuid import UUID

# Sender id of every message authored by the agent (never a real user).
AGENT_USER_ID = UUID("00000000-0000-0000-0000-000000000000")

FALLBACK_REPLY = (
    "I apologize, but I'm experiencing technical difficulties right now. "
    "Please try again later."
)

DEFAULT_HISTORY_LIMIT = 10


class DefaultAgentConfig:
    """Default agent configuration; partial configs are merged over these values."""

    MODEL = "gpt-3.5-turbo"
    SYSTEM_PROMPT = (
        "You are a helpful assistant responding to WhatsApp messages. "
        "Be concise, friendly, and helpful."
    )
    TEMPERATURE = 0.7
    MAX_TOKENS = 500
