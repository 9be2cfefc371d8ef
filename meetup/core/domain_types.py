"""Domain Types — identity types and enums shared across the meetup backend.

Invariants:
    - UserId, GatheringId, GroupId, ... wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
GatheringId = NewType("GatheringId", UUID)
GroupId = NewType("GroupId", UUID)
ActivityId = NewType("ActivityId", UUID)
LocationId = NewType("LocationId", UUID)
ChatroomId = NewType("ChatroomId", UUID)
MessageId = NewType("MessageId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class MembershipAction(str, Enum):
    """What the join workflow does to one linked group."""
    SKIP = "skip"
    ADD_TO_EXISTING = "add_to_existing"
    SPLIT_AND_GROW = "split_and_grow"


class ResourceType(str, Enum):
    """Resource names used in error payloads and log extras."""
    USER = "User"
    GATHERING = "Gathering"
    GROUP = "Group"
    ACTIVITY = "Activity"
    LOCATION = "Location"
    CHATROOM = "Chatroom"
    MESSAGE = "Message"
