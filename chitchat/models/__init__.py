# Makes 'models' a package and simplifies imports

from .ai_chat_limit import AIChatLimit
from .base import BaseModel, metadata
from .conversation import Conversation
from .message import Message
from .profile import Profile
from .user import User

__all__ = [
    "BaseModel",
    "metadata",
    "User",
    "Profile",
    "Conversation",
    "Message",
    "AIChatLimit",
]
