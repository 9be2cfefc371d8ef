"""Group Assignment Engine — join/leave workflows against in-memory repositories.

Invariants:
    - Join on a 2-member group: source untouched, new 3-member group linked to the gathering
    - Join on a 3..7-member group: that group grows by one
    - Join on a full (8) group: no change
    - AlreadyMemberError / NotAMemberError leave every store unwritten
    - Leave touches gathering.members only
    - Concurrent joins on one gathering produce the same state as a serial order
      (no lost member, no lost group link)
    - Group writes, group deletes and link reassignment racing a join are never lost,
      and never fail the join

Design Decisions:
    - Fakes yield at every store call, so unserialized workflows WOULD interleave;
      the concurrency tests fail if the per-gathering lock is removed
"""

import asyncio
from uuid import uuid4

import pytest

from meetup.core.domain_types import GatheringId, UserId
from meetup.core.errors import (
    AlreadyMemberError, ContentionError, NotAMemberError, NotFoundError,
)
from meetup.core.membership_policy import MAX_GROUP_SIZE
from meetup.services.gathering_locks import GatheringLockRegistry
from meetup.services.gathering_service import GatheringService
from meetup.services.group_assignment import GroupAssignmentEngine
from meetup.services.group_service import GroupService
from tests.services.fake_repositories import InMemoryGroupRepository


def _uid() -> UserId:
    return UserId(uuid4())


def _users(n: int) -> list[UserId]:
    return [_uid() for _ in range(n)]


@pytest.fixture
def locks():
    return GatheringLockRegistry()


@pytest.fixture
def engine(gathering_repo, group_repo, locks):
    return GroupAssignmentEngine(
        gathering_repo, group_repo, locks,
        lock_timeout_seconds=1.0, max_attempts=3,
    )


# --- Join: policy outcomes ----------------------------------------------------

async def test_join_splits_two_member_group(engine, gathering_repo, group_repo):
    seed = group_repo.seed(*_users(2))
    gathering = gathering_repo.seed(groups=[seed.id])
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert group_repo.rows[seed.id] == seed.members
    assert len(result.created_groups) == 1
    created = result.created_groups[0]
    assert created.members == seed.members | {user}
    assert group_repo.rows[created.id] == created.members
    stored = gathering_repo.rows[gathering.id]
    assert stored.groups == (seed.id, created.id)
    assert user in stored.members


async def test_join_grows_mid_sized_group(engine, gathering_repo, group_repo):
    group = group_repo.seed(*_users(5))
    gathering = gathering_repo.seed(groups=[group.id])
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert len(group_repo.rows[group.id]) == 6
    assert user in group_repo.rows[group.id]
    assert [g.id for g in result.updated_groups] == [group.id]
    assert result.created_groups == ()
    assert gathering_repo.rows[gathering.id].groups == (group.id,)


async def test_join_skips_full_group(engine, gathering_repo, group_repo):
    full = group_repo.seed(*_users(MAX_GROUP_SIZE))
    gathering = gathering_repo.seed(groups=[full.id])

    result = await engine.join_gathering(gathering.id, _uid())

    assert group_repo.rows[full.id] == full.members
    assert result.mutated_groups == ()
    assert group_repo.writes == []


async def test_join_applies_policy_to_every_linked_group(
    engine, gathering_repo, group_repo,
):
    a = group_repo.seed(*_users(2))
    c = group_repo.seed(*_users(5))
    d = group_repo.seed(*_users(8))
    gathering = gathering_repo.seed(groups=[a.id, c.id, d.id])
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert group_repo.rows[a.id] == a.members
    assert len(group_repo.rows[c.id]) == 6
    assert group_repo.rows[d.id] == d.members
    (created,) = result.created_groups
    assert created.members == a.members | {user}
    assert result.groups == (a.id, c.id, d.id, created.id)
    assert result.members == frozenset({user})


async def test_join_with_no_groups_only_adds_member(engine, gathering_repo):
    gathering = gathering_repo.seed()
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert result.members == frozenset({user})
    assert result.groups == ()


async def test_join_skips_missing_linked_group(engine, gathering_repo, group_repo):
    live = group_repo.seed(*_users(3))
    ghost = uuid4()
    gathering = gathering_repo.seed(groups=[ghost, live.id])

    result = await engine.join_gathering(gathering.id, _uid())

    assert result.missing_groups == (ghost,)
    assert len(group_repo.rows[live.id]) == 4


# --- Join: failures -----------------------------------------------------------

async def test_join_unknown_gathering(engine):
    with pytest.raises(NotFoundError):
        await engine.join_gathering(GatheringId(uuid4()), _uid())


async def test_join_twice_raises_without_writes(engine, gathering_repo, group_repo):
    group = group_repo.seed(*_users(3))
    user = _uid()
    gathering = gathering_repo.seed(members=[user], groups=[group.id])

    with pytest.raises(AlreadyMemberError):
        await engine.join_gathering(gathering.id, user)

    assert gathering_repo.writes == []
    assert group_repo.writes == []
    assert group_repo.rows[group.id] == group.members


async def test_second_join_is_rejected_and_state_unchanged(
    engine, gathering_repo, group_repo,
):
    group = group_repo.seed(*_users(4))
    gathering = gathering_repo.seed(groups=[group.id])
    user = _uid()
    await engine.join_gathering(gathering.id, user)
    snapshot = (dict(group_repo.rows), gathering_repo.rows[gathering.id])

    with pytest.raises(AlreadyMemberError):
        await engine.join_gathering(gathering.id, user)

    assert (dict(group_repo.rows), gathering_repo.rows[gathering.id]) == snapshot


# --- Leave --------------------------------------------------------------------

async def test_leave_removes_member_only(engine, gathering_repo, group_repo):
    group = group_repo.seed(*_users(3))
    gathering = gathering_repo.seed(groups=[group.id])
    user = _uid()
    await engine.join_gathering(gathering.id, user)

    result = await engine.leave_gathering(gathering.id, user)

    assert user not in result.members
    assert user not in gathering_repo.rows[gathering.id].members
    # Group memberships are sticky
    assert user in group_repo.rows[group.id]


async def test_leave_non_member(engine, gathering_repo):
    gathering = gathering_repo.seed(members=[_uid()])

    with pytest.raises(NotAMemberError):
        await engine.leave_gathering(gathering.id, _uid())

    assert gathering_repo.writes == []


async def test_leave_unknown_gathering(engine):
    with pytest.raises(NotFoundError) as exc_info:
        await engine.leave_gathering(GatheringId(uuid4()), _uid())
    assert not isinstance(exc_info.value, NotAMemberError)


async def test_rejoin_after_leave(engine, gathering_repo):
    gathering = gathering_repo.seed()
    user = _uid()
    await engine.join_gathering(gathering.id, user)
    await engine.leave_gathering(gathering.id, user)

    result = await engine.join_gathering(gathering.id, user)

    assert result.members == frozenset({user})


# --- Concurrency --------------------------------------------------------------

async def test_concurrent_joins_lose_no_update(engine, gathering_repo, group_repo):
    seed = group_repo.seed(*_users(2))
    grow = group_repo.seed(*_users(5))
    gathering = gathering_repo.seed(groups=[seed.id, grow.id])
    joiners = _users(3)

    results = await asyncio.gather(
        *(engine.join_gathering(gathering.id, u) for u in joiners),
    )

    stored = gathering_repo.rows[gathering.id]
    assert stored.members == frozenset(joiners)
    assert len(group_repo.rows[grow.id]) == 8
    assert group_repo.rows[seed.id] == seed.members

    created_ids = [g.id for r in results for g in r.created_groups]
    assert len(created_ids) == 3
    assert stored.groups[:2] == (seed.id, grow.id)
    assert set(stored.groups[2:]) == set(created_ids)
    # Same shape as any serial order: later splits grow earlier ones
    assert sorted(len(group_repo.rows[g]) for g in created_ids) == [3, 4, 5]


async def test_concurrent_joins_never_overfill(engine, gathering_repo, group_repo):
    group = group_repo.seed(*_users(6))
    gathering = gathering_repo.seed(groups=[group.id])
    joiners = _users(5)

    await asyncio.gather(
        *(engine.join_gathering(gathering.id, u) for u in joiners),
    )

    assert len(group_repo.rows[group.id]) == MAX_GROUP_SIZE
    assert gathering_repo.rows[gathering.id].members == frozenset(joiners)


async def test_concurrent_join_and_leave(engine, gathering_repo):
    stayer, leaver = _uid(), _uid()
    gathering = gathering_repo.seed(members=[leaver])

    await asyncio.gather(
        engine.join_gathering(gathering.id, stayer),
        engine.leave_gathering(gathering.id, leaver),
    )

    assert gathering_repo.rows[gathering.id].members == frozenset({stayer})


async def test_concurrent_duplicate_join_one_wins(engine, gathering_repo):
    gathering = gathering_repo.seed()
    user = _uid()

    results = await asyncio.gather(
        engine.join_gathering(gathering.id, user),
        engine.join_gathering(gathering.id, user),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], AlreadyMemberError)
    assert gathering_repo.rows[gathering.id].members == frozenset({user})


# --- Contention ---------------------------------------------------------------

async def test_contention_after_bounded_retries(gathering_repo, group_repo, locks):
    gathering = gathering_repo.seed()
    engine = GroupAssignmentEngine(
        gathering_repo, group_repo, locks,
        lock_timeout_seconds=0.01, max_attempts=2,
    )
    held, release = asyncio.Event(), asyncio.Event()

    async def _holder():
        async with locks.hold(gathering.id, 1.0):
            held.set()
            await release.wait()

    holder = asyncio.create_task(_holder())
    await held.wait()
    try:
        with pytest.raises(ContentionError) as exc_info:
            await engine.join_gathering(gathering.id, _uid())
    finally:
        release.set()
        await holder

    assert exc_info.value.context.attempt == 2
    assert exc_info.value.retryable
    assert gathering_repo.writes == []


async def test_waiting_join_proceeds_once_lock_released(
    engine, gathering_repo, locks,
):
    gathering = gathering_repo.seed()
    user = _uid()

    async with locks.hold(gathering.id, 1.0):
        pending = asyncio.create_task(engine.join_gathering(gathering.id, user))
        await asyncio.sleep(0.01)
        assert not pending.done()

    result = await pending
    assert result.members == frozenset({user})


async def test_other_gatherings_not_blocked(gathering_repo, group_repo, locks):
    busy = gathering_repo.seed(name="Busy")
    free = gathering_repo.seed(name="Free")
    engine = GroupAssignmentEngine(
        gathering_repo, group_repo, locks,
        lock_timeout_seconds=0.05, max_attempts=1,
    )

    async with locks.hold(busy.id, 1.0):
        result = await engine.join_gathering(free.id, _uid())

    assert len(result.members) == 1


# --- Other writers during a join ----------------------------------------------

async def _after(yields: int, operation):
    """Start operation once the event loop has switched tasks `yields` times."""
    for _ in range(yields):
        await asyncio.sleep(0)
    return await operation()


class _InterleavedGroupRepository(InMemoryGroupRepository):
    """Applies `before_next_write` once, right before the next group write."""

    def __init__(self):
        super().__init__()
        self.before_next_write = None

    async def update_members(self, group_id, members, expected_version=None):
        if self.before_next_write is not None:
            change, self.before_next_write = self.before_next_write, None
            change(self)
        return await super().update_members(
            group_id, members, expected_version,
        )

    def overwrite(self, group_id, members):
        self.rows[group_id] = frozenset(members)
        self.versions[group_id] += 1

    def drop(self, group_id):
        self.rows.pop(group_id)
        self.versions.pop(group_id)


@pytest.mark.parametrize("delay", range(6))
async def test_assign_groups_during_join_is_kept(
    delay, engine, gathering_repo, group_repo, locks,
):
    seed = group_repo.seed(*_users(2))
    other = group_repo.seed(*_users(3))
    gathering = gathering_repo.seed(groups=[seed.id])
    service = GatheringService(
        gathering_repo, group_repo, locks, lock_timeout_seconds=1.0,
    )
    user = _uid()

    await asyncio.gather(
        engine.join_gathering(gathering.id, user),
        _after(delay, lambda: service.assign_groups(gathering.id, (other.id,))),
    )

    stored = gathering_repo.rows[gathering.id]
    assert user in stored.members
    assert other.id in stored.groups


@pytest.mark.parametrize("delay", range(6))
async def test_add_member_during_join_is_kept(
    delay, engine, gathering_repo, group_repo,
):
    group = group_repo.seed(*_users(4))
    gathering = gathering_repo.seed(groups=[group.id])
    user, outsider = _uid(), _uid()

    await asyncio.gather(
        engine.join_gathering(gathering.id, user),
        _after(delay, lambda: GroupService(group_repo).add_member(
            group.id, outsider,
        )),
    )

    assert {user, outsider} <= group_repo.rows[group.id]
    assert len(group_repo.rows[group.id]) == 6


@pytest.mark.parametrize("delay", range(6))
async def test_group_deleted_during_join(
    delay, engine, gathering_repo, group_repo,
):
    group = group_repo.seed(*_users(3))
    gathering = gathering_repo.seed(groups=[group.id])
    user = _uid()

    result, _ = await asyncio.gather(
        engine.join_gathering(gathering.id, user),
        _after(delay, lambda: GroupService(group_repo).delete(group.id)),
    )

    assert user in gathering_repo.rows[gathering.id].members
    assert result.missing_groups in ((), (group.id,))
    assert group.id not in group_repo.rows


async def test_join_records_group_deleted_before_write(
    gathering_repo, locks,
):
    repo = _InterleavedGroupRepository()
    group = repo.seed(*_users(3))
    gathering = gathering_repo.seed(groups=[group.id])
    repo.before_next_write = lambda r: r.drop(group.id)
    engine = GroupAssignmentEngine(gathering_repo, repo, locks)
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert result.missing_groups == (group.id,)
    assert result.mutated_groups == ()
    stored = gathering_repo.rows[gathering.id]
    assert stored.members == frozenset({user})
    assert stored.groups == (group.id,)


async def test_join_replans_when_group_fills_before_write(
    gathering_repo, locks,
):
    repo = _InterleavedGroupRepository()
    group = repo.seed(*_users(MAX_GROUP_SIZE - 1))
    gathering = gathering_repo.seed(groups=[group.id])
    late = _uid()
    repo.before_next_write = lambda r: r.overwrite(
        group.id, group.members | {late},
    )
    engine = GroupAssignmentEngine(gathering_repo, repo, locks)
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert repo.rows[group.id] == group.members | {late}
    assert result.mutated_groups == ()
    assert user in gathering_repo.rows[gathering.id].members


async def test_join_replans_when_group_shrinks_before_write(
    gathering_repo, locks,
):
    repo = _InterleavedGroupRepository()
    members = _users(3)
    group = repo.seed(*members)
    gathering = gathering_repo.seed(groups=[group.id])
    repo.before_next_write = lambda r: r.overwrite(group.id, members[:2])
    engine = GroupAssignmentEngine(gathering_repo, repo, locks)
    user = _uid()

    result = await engine.join_gathering(gathering.id, user)

    assert repo.rows[group.id] == frozenset(members[:2])
    (created,) = result.created_groups
    assert created.members == frozenset(members[:2]) | {user}
    assert gathering_repo.rows[gathering.id].groups == (group.id, created.id)


async def test_join_gives_up_on_group_that_keeps_changing(
    gathering_repo, locks,
):
    repo = _InterleavedGroupRepository()
    group = repo.seed(*_users(4))
    gathering = gathering_repo.seed(groups=[group.id])

    class _Churn:
        def __call__(self, r):
            r.overwrite(group.id, r.rows[group.id])
            r.before_next_write = self

    repo.before_next_write = _Churn()
    engine = GroupAssignmentEngine(
        gathering_repo, repo, locks, lock_timeout_seconds=0.01, max_attempts=2,
    )

    with pytest.raises(ContentionError) as exc_info:
        await engine.join_gathering(gathering.id, _uid())

    assert exc_info.value.context.group_id == str(group.id)
    assert exc_info.value.context.attempt == 2
    assert repo.rows[group.id] == group.members
    assert [w for w in repo.writes if w[0] == "create"] == []
    assert gathering_repo.writes == []
