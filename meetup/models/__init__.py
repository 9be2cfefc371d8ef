"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Member/group/message id sets are JSON lists of UUID strings

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from meetup.models.user import User  # noqa: F401
from meetup.models.location import Location  # noqa: F401
from meetup.models.activity import Activity  # noqa: F401
from meetup.models.gathering import Gathering  # noqa: F401
from meetup.models.group import Group  # noqa: F401
from meetup.models.message import Message  # noqa: F401
from meetup.models.chatroom import Chatroom  # noqa: F401
