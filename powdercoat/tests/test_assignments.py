import pytest
from sqlalchemy.future import select

from powdercoat.core.errors import NotFoundError
from powdercoat.models.team import OrderTeamAssignment
from powdercoat.services.assignments import set_assignments, list_assignment_ids, replace_assignment

pytestmark = pytest.mark.assignments


async def assignment_rows(db, order_id):
    res = await db.execute(
        select(OrderTeamAssignment).where(OrderTeamAssignment.order_id == order_id).order_by(OrderTeamAssignment.id)
    )
    return res.scalars().all()


@pytest.fixture
async def crew(make_member):
    return [
        await make_member("Sam", "Sand Blasting", with_account=False),
        await make_member("Casey", "Coating", with_account=False),
        await make_member("Quinn", "Quality Control", with_account=False),
    ]


async def test_assign_members(db, order, crew):
    ids = [m.id for m in crew[:2]]
    assert await set_assignments(db, order.id, ids) == ids
    assert await list_assignment_ids(db, order.id) == ids


async def test_empty_list_clears_assignments(db, order, crew):
    await set_assignments(db, order.id, [m.id for m in crew])
    assert await set_assignments(db, order.id, []) == []
    assert await list_assignment_ids(db, order.id) == []


async def test_same_set_is_idempotent(db, order, crew):
    ids = [crew[0].id, crew[1].id]
    await set_assignments(db, order.id, ids)
    before = [(r.id, r.team_member_id) for r in await assignment_rows(db, order.id)]

    await set_assignments(db, order.id, list(reversed(ids)))

    after = [(r.id, r.team_member_id) for r in await assignment_rows(db, order.id)]
    assert after == before


async def test_only_difference_is_written(db, order, crew):
    await set_assignments(db, order.id, [crew[0].id, crew[1].id])
    kept = next(r for r in await assignment_rows(db, order.id) if r.team_member_id == crew[1].id)

    await set_assignments(db, order.id, [crew[1].id, crew[2].id])

    rows = await assignment_rows(db, order.id)
    assert sorted(r.team_member_id for r in rows) == sorted([crew[1].id, crew[2].id])
    assert any(r.id == kept.id for r in rows)


async def test_duplicates_are_collapsed(db, order, crew):
    assert await set_assignments(db, order.id, [crew[0].id, crew[0].id]) == [crew[0].id]
    assert len(await assignment_rows(db, order.id)) == 1


async def test_unknown_member_leaves_assignments_untouched(db, order, crew):
    await set_assignments(db, order.id, [crew[0].id])

    with pytest.raises(NotFoundError):
        await set_assignments(db, order.id, [crew[1].id, 9999])

    assert await list_assignment_ids(db, order.id) == [crew[0].id]


async def test_replace_assignment(db, order, crew):
    await set_assignments(db, order.id, [crew[0].id, crew[2].id])
    await replace_assignment(db, order.id, crew[0].id, crew[1].id)

    assert sorted(await list_assignment_ids(db, order.id)) == sorted([crew[1].id, crew[2].id])


async def test_change_is_published(db, order, crew, fake_redis):
    fake_redis.published.clear()
    await set_assignments(db, order.id, [crew[0].id])
    assert fake_redis.published[0][0] == "changes:order_team_assignments"

    fake_redis.published.clear()
    await set_assignments(db, order.id, [crew[0].id])
    assert fake_redis.published == []
