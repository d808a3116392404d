"""Importing this package registers every model on ``Base.metadata`` (used by seed_dev_data's create_all)."""
from care_chat.infrastructure.db.models.message import MessageModel
from care_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "MessageModel",
    "UserModel",
]
