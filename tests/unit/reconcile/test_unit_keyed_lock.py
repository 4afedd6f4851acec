# tests/unit/reconcile/test_unit_keyed_lock.py — v1
"""Tests for reconcile/keyed_lock.py."""

from __future__ import annotations

import asyncio

import pytest

from acadimport.reconcile.keyed_lock import KeyedLock


class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_same_key_serialized(self):
        locks = KeyedLock()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("subject:PRF192"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_interleave(self):
        locks = KeyedLock()
        inside = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("a"):
                inside.set()
                await release.wait()

        task = asyncio.create_task(first())
        await inside.wait()
        # Another key is not blocked by "a"
        async with locks.hold("b"):
            assert len(locks) == 2
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_entries_released(self):
        locks = KeyedLock()
        async with locks.hold(("tree", "c1")):
            assert len(locks) == 1
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = KeyedLock()
        with pytest.raises(RuntimeError):
            async with locks.hold("k"):
                raise RuntimeError("boom")
        assert len(locks) == 0
