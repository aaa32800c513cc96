from .crud_event import event
from .crud_tag import tag
from .crud_user import user

__all__ = ["event", "tag", "user"]
