"""Unit tests for per-aggregate serialisation"""

import asyncio

import pytest

from passportflow.concurrency import AggregateLockRegistry
from passportflow.domain.applications.status import ApplicationStatus
from passportflow.domain.documents.document_type import DocumentType
from passportflow.domain.errors import InvalidTransitionError


class TestAggregateLockRegistry:

    @pytest.mark.asyncio
    async def test_same_key_is_serialised(self):
        registry = AggregateLockRegistry()
        events = []

        async def worker(name):
            async with registry.hold("app-1"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self):
        registry = AggregateLockRegistry()
        inside = asyncio.Event()

        async def holder():
            async with registry.hold("app-1"):
                await inside.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        async with registry.hold("app-2"):
            inside.set()
        await task

    @pytest.mark.asyncio
    async def test_locks_released_after_use(self):
        registry = AggregateLockRegistry()
        async with registry.hold("app-1"):
            assert len(registry) == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_released_when_body_raises(self):
        registry = AggregateLockRegistry()
        with pytest.raises(RuntimeError):
            async with registry.hold("app-1"):
                raise RuntimeError("boom")
        assert len(registry) == 0


class TestConcurrentOperations:

    @pytest.mark.asyncio
    async def test_parallel_uploads_keep_both_slots(
        self, attachment_manager, application_repository, submitted_application, applicant, png_bytes
    ):
        await asyncio.gather(
            attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_FRONT, png_bytes, "image/png", applicant
            ),
            attachment_manager.attach_document(
                submitted_application.id, DocumentType.NIC_BACK, png_bytes, "image/png", applicant
            ),
        )

        stored = application_repository.load(submitted_application.id)
        assert stored.nic_photos.front is not None
        assert stored.nic_photos.back is not None

    @pytest.mark.asyncio
    async def test_competing_transitions_only_one_wins(
        self, transition_engine, application_repository, submitted_application, manager
    ):
        results = await asyncio.gather(
            transition_engine.apply_transition(submitted_application.id, ApplicationStatus.PAYMENT_PENDING, manager),
            transition_engine.apply_transition(submitted_application.id, ApplicationStatus.PAYMENT_PENDING, manager),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidTransitionError)

        stored = application_repository.load(submitted_application.id)
        assert [e.status for e in stored.status_history] == [
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.PAYMENT_PENDING,
        ]
