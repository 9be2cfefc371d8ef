"""Error hierarchy tests — kind tags, HTTP mapping, rendered messages."""

from uuid import uuid4

import pytest

from meetup.core.domain_types import ResourceType
from meetup.core.errors import (
    AlreadyMemberError, BadValuesError, ContentionError, EmptyMembersError,
    ErrorCategory, ErrorKind, MeetupError, NotAllowedError, NotAMemberError,
    NotFoundError, StoreError, UnauthenticatedError,
)


@pytest.mark.parametrize("error, kind, status", [
    (NotFoundError(ResourceType.GATHERING, uuid4()), ErrorKind.NOT_FOUND, 404),
    (BadValuesError("nope"), ErrorKind.BAD_VALUES, 400),
    (AlreadyMemberError(uuid4(), ResourceType.GATHERING, uuid4()),
     ErrorKind.ALREADY_MEMBER, 409),
    (NotAMemberError(uuid4(), ResourceType.GATHERING, uuid4()),
     ErrorKind.NOT_A_MEMBER, 404),
    (ContentionError(uuid4(), 0.5), ErrorKind.CONTENTION, 409),
    (StoreError("boom", "update_group"), ErrorKind.STORE, 503),
    (NotAllowedError("not yours"), ErrorKind.NOT_ALLOWED, 403),
    (UnauthenticatedError("who"), ErrorKind.UNAUTHENTICATED, 401),
])
def test_kind_and_status(error, kind, status):
    assert isinstance(error, MeetupError)
    assert error.kind is kind
    assert error.http_status == status


def test_not_a_member_is_a_not_found():
    err = NotAMemberError(uuid4(), ResourceType.GROUP, uuid4())
    assert isinstance(err, NotFoundError)
    assert err.category is ErrorCategory.RESOURCE_NOT_FOUND


def test_empty_members_is_bad_values():
    err = EmptyMembersError()
    assert isinstance(err, BadValuesError)
    assert "non-empty" in err.message


def test_only_contention_is_retryable():
    assert ContentionError(uuid4(), 1.0).retryable
    assert not StoreError("x", "op").retryable
    assert not AlreadyMemberError(uuid4(), ResourceType.GATHERING, uuid4()).retryable


def test_contention_carries_retry_hint():
    err = ContentionError(uuid4(), 1.5, attempt=3)
    assert err.context.retry_after_ms == 1500
    assert "after 3 attempt(s)" in err.message


def test_not_found_message_names_resource():
    gid = uuid4()
    err = NotFoundError(ResourceType.GATHERING, gid)
    assert err.message == f"Gathering '{gid}' not found"
    assert str(err) == err.message


def test_already_member_message():
    uid, gid = uuid4(), uuid4()
    err = AlreadyMemberError(uid, ResourceType.GATHERING, gid)
    assert str(uid) in err.message
    assert "already a member" in err.message


def test_to_response_shape():
    gid = uuid4()
    body = ContentionError(gid, 2.0).to_response()["error"]
    assert body["code"] == "CONTENTION"
    assert body["kind"] == "contention"
    assert body["retryable"] is True
    assert body["context"]["gathering_id"] == str(gid)
    assert body["context"]["retry_after_ms"] == 2000


def test_debug_info_not_rendered():
    err = StoreError("Integrity constraint violated", "create_group")
    err.context.debug_info = {"sql": "INSERT secret"}
    assert "secret" not in err.message
    assert "secret" not in str(err.to_response())
