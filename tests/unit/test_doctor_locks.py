import asyncio

from app.services.v1.doctor_locks import DoctorLockRegistry


async def test_same_doctor_commits_run_one_at_a_time():
    locks = DoctorLockRegistry()
    order = []

    async def commit(name):
        async with locks.hold("doc-1"):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(commit("a"), commit("b"))

    assert order in (
        ["a-start", "a-end", "b-start", "b-end"],
        ["b-start", "b-end", "a-start", "a-end"],
    )


async def test_different_doctors_do_not_wait_for_each_other():
    locks = DoctorLockRegistry()
    inside = asyncio.Event()

    async def hold_first():
        async with locks.hold("doc-1"):
            inside.set()
            await asyncio.sleep(0.05)

    task = asyncio.create_task(hold_first())
    await inside.wait()

    assert locks.is_locked("doc-1")
    async with locks.hold("doc-2"):
        assert locks.is_locked("doc-1")
    await task


async def test_locks_are_released_after_use():
    locks = DoctorLockRegistry()
    async with locks.hold("doc-1"):
        assert len(locks) == 1
    assert len(locks) == 0
    assert not locks.is_locked("doc-1")
