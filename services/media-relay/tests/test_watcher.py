"""
Job Completion Watcher Tests
"""
import asyncio

import pytest

from config import TranscriptionConfig
from domain import JobState
from exceptions import (
    JobSubmissionRejected,
    ServiceUnavailable,
    TranscriptionFailed,
    WatchTimeout,
)
from fakes import ScriptedTranscriptionService, wait_until
from watcher import JobCompletionWatcher


class TestWatcherPolling:
    """Polling until a terminal state"""

    @pytest.mark.asyncio
    async def test_completes_after_third_poll(self, watcher, transcription_service):
        """Two in-progress polls then completion stops after exactly three polls"""
        transcription_service.script = [
            JobState.IN_PROGRESS,
            JobState.IN_PROGRESS,
            JobState.COMPLETED,
        ]

        job = await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert job.state is JobState.COMPLETED
        assert transcription_service.status_calls == 3
        assert job.transcript.text == "hello world"
        assert transcription_service.fetched == [f"https://transcripts.test/{job.job_name}"]

        await asyncio.sleep(0.02)
        assert transcription_service.status_calls == 3

    @pytest.mark.asyncio
    async def test_failed_job_stops_after_second_poll(self, watcher, transcription_service):
        """A FAILED state is terminal and is never polled past"""
        transcription_service.script = [JobState.IN_PROGRESS, JobState.FAILED]

        with pytest.raises(TranscriptionFailed) as exc_info:
            await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert exc_info.value.terminal_state == "FAILED"
        assert transcription_service.status_calls == 2
        assert transcription_service.fetched == []

        await asyncio.sleep(0.02)
        assert transcription_service.status_calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_job_is_a_failure(self, watcher, transcription_service):
        transcription_service.script = [JobState.CANCELLED]

        with pytest.raises(TranscriptionFailed) as exc_info:
            await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert exc_info.value.terminal_state == "CANCELLED"
        job = watcher.get_job(exc_info.value.job_name)
        assert job.state is JobState.CANCELLED

    @pytest.mark.asyncio
    async def test_transient_status_error_is_retried(self, watcher, transcription_service):
        """ServiceUnavailable on one poll is retried on the next tick"""
        transcription_service.script = [
            ServiceUnavailable("status check"),
            JobState.IN_PROGRESS,
            JobState.COMPLETED,
        ]

        job = await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert job.state is JobState.COMPLETED
        assert transcription_service.status_calls == 3

    @pytest.mark.asyncio
    async def test_times_out_when_job_never_finishes(self):
        service = ScriptedTranscriptionService([JobState.IN_PROGRESS])
        watcher = JobCompletionWatcher(
            service, TranscriptionConfig(poll_interval=0.01, max_wait=0.05)
        )

        with pytest.raises(WatchTimeout) as exc_info:
            await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        job = watcher.get_job(exc_info.value.job_name)
        assert job.state is JobState.IN_PROGRESS
        assert job.error is not None
        assert service.status_calls >= 2

    @pytest.mark.asyncio
    async def test_submission_uses_configured_parameters(self, watcher, transcription_service):
        await watcher.submit("clip.webm", "https://storage.test/media/clip.webm")

        started = transcription_service.started[0]
        assert started["job_name"].startswith("TranscriptionJob_")
        assert started["language_code"] == "en-US"
        assert started["sample_rate"] == 44100
        assert started["media_format"] == "webm"

    @pytest.mark.asyncio
    async def test_rejected_submission_propagates(self, watcher, transcription_service):
        transcription_service.start_error = JobSubmissionRejected("job", "bad media")

        with pytest.raises(JobSubmissionRejected):
            await watcher.run("clip.webm", "not-a-url")

        assert transcription_service.status_calls == 0


class TestBackgroundWatch:
    """Detached watches started for async uploads and the transcribe endpoint"""

    @pytest.mark.asyncio
    async def test_background_job_reaches_completion(self, watcher, transcription_service):
        transcription_service.script = [JobState.IN_PROGRESS, JobState.COMPLETED]

        job = await watcher.start_background("clip.webm", "https://storage.test/media/clip.webm")
        assert job.state is JobState.SUBMITTED

        await wait_until(lambda: job.state is JobState.COMPLETED)
        assert watcher.get_job(job.job_name) is job
        assert job.transcript.text == "hello world"

    @pytest.mark.asyncio
    async def test_background_failure_is_recorded_on_job(self, watcher, transcription_service):
        transcription_service.script = [JobState.FAILED]

        job = await watcher.start_background("clip.webm", "https://storage.test/media/clip.webm")

        await wait_until(lambda: job.error is not None)
        assert job.state is JobState.FAILED

    @pytest.mark.asyncio
    async def test_cancel_stops_polling_without_error(self):
        service = ScriptedTranscriptionService([JobState.IN_PROGRESS])
        watcher = JobCompletionWatcher(
            service, TranscriptionConfig(poll_interval=0.01, max_wait=30)
        )

        job = await watcher.start_background("clip.webm", "https://storage.test/media/clip.webm")
        await wait_until(lambda: service.status_calls >= 2)

        assert watcher.cancel(job.job_name) is True
        await asyncio.sleep(0.05)
        calls = service.status_calls
        await asyncio.sleep(0.05)

        assert service.status_calls == calls
        assert job.state is JobState.IN_PROGRESS
        assert watcher.cancel(job.job_name) is False

    @pytest.mark.asyncio
    async def test_aclose_cancels_every_watch(self):
        service = ScriptedTranscriptionService([JobState.IN_PROGRESS])
        watcher = JobCompletionWatcher(
            service, TranscriptionConfig(poll_interval=0.01, max_wait=30)
        )
        await watcher.start_background("a.webm", "https://storage.test/media/a.webm")
        await watcher.start_background("b.webm", "https://storage.test/media/b.webm")

        await watcher.aclose()
        await asyncio.sleep(0.05)
        calls = service.status_calls
        await asyncio.sleep(0.05)

        assert service.status_calls == calls

    def test_unknown_job_is_none(self, watcher):
        assert watcher.get_job("TranscriptionJob_missing") is None

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded_on_job(self, watcher, transcription_service):
        transcription_service.script = [RuntimeError("malformed status payload")]

        job = await watcher.start_background("clip.webm", "https://storage.test/media/clip.webm")

        await wait_until(lambda: job.error is not None)
        assert "malformed status payload" in job.error
        assert watcher.cancel(job.job_name) is False


class TestJobRetention:
    """Bounded bookkeeping for watched jobs"""

    @pytest.mark.asyncio
    async def test_finished_watch_is_discarded_by_the_service(
        self, watcher, transcription_service
    ):
        job = await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert transcription_service.discarded == [job.job_name]

    @pytest.mark.asyncio
    async def test_failed_watch_is_discarded_by_the_service(
        self, watcher, transcription_service
    ):
        transcription_service.script = [JobState.FAILED]

        with pytest.raises(TranscriptionFailed) as exc_info:
            await watcher.run("clip.webm", "https://storage.test/media/clip.webm")

        assert transcription_service.discarded == [exc_info.value.job_name]

    @pytest.mark.asyncio
    async def test_oldest_finished_jobs_are_evicted(self, transcription_service):
        watcher = JobCompletionWatcher(
            transcription_service,
            TranscriptionConfig(poll_interval=0, max_wait=30, max_tracked_jobs=2),
        )

        first = await watcher.run("a.webm", "https://storage.test/media/a.webm")
        second = await watcher.run("b.webm", "https://storage.test/media/b.webm")
        third = await watcher.run("c.webm", "https://storage.test/media/c.webm")

        assert watcher.get_job(first.job_name) is None
        assert watcher.get_job(second.job_name) is second
        assert watcher.get_job(third.job_name) is third

    @pytest.mark.asyncio
    async def test_running_jobs_are_never_evicted(self, transcription_service):
        transcription_service.script = [JobState.IN_PROGRESS]
        watcher = JobCompletionWatcher(
            transcription_service,
            TranscriptionConfig(poll_interval=0.01, max_wait=30, max_tracked_jobs=1),
        )

        first = await watcher.start_background("a.webm", "https://storage.test/media/a.webm")
        second = await watcher.start_background("b.webm", "https://storage.test/media/b.webm")

        assert watcher.get_job(first.job_name) is first
        assert watcher.get_job(second.job_name) is second
        await watcher.aclose()
