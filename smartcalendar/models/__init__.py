from .user import User
from .tag import Tag, event_tags
from .event import Event

__all__ = ["User", "Tag", "event_tags", "Event"]
