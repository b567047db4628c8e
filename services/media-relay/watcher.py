"""Watcher that drives transcription jobs to a terminal state."""

import asyncio
from collections import OrderedDict

from media_common import setup_logging

from config import TranscriptionConfig
from domain import JobState, TranscriptionJob, generate_job_name
from exceptions import MediaRelayError, ServiceUnavailable, TranscriptionFailed, WatchTimeout
from infrastructure.interfaces import TranscriptionService

logger = setup_logging(__name__)


class JobCompletionWatcher:
    """
    Submits transcription jobs and polls them until they finish.

    Jobs started here are kept in a process-local table so their latest
    state can be reported. The table holds at most ``max_tracked_jobs``
    entries; the oldest finished jobs are evicted first. Polling happens in worker threads
    and the loop sleeps between polls, so many jobs can be watched on one
    event loop.
    """

    def __init__(self, service: TranscriptionService, config: TranscriptionConfig):
        self._service = service
        self._config = config
        self._jobs: OrderedDict[str, TranscriptionJob] = OrderedDict()
        self._tasks: dict[str, asyncio.Task] = {}

    async def submit(self, media_key: str, media_reference: str) -> TranscriptionJob:
        """
        Starts a transcription job for a stored object.

        Raises:
            JobSubmissionRejected: If the service refuses the job.
            ServiceUnavailable: If the service cannot be reached.
        """
        job = TranscriptionJob(
            job_name=generate_job_name(),
            media_key=media_key,
            media_reference=media_reference,
        )
        await asyncio.to_thread(
            self._service.start,
            job.job_name,
            media_reference,
            self._config.language_code,
            self._config.sample_rate,
            self._config.media_format,
        )
        self._jobs[job.job_name] = job
        self._evict()

        logger.info(
            "Transcription job started",
            extra={"job_name": job.job_name, "media_key": media_key},
        )
        return job

    async def wait(self, job: TranscriptionJob, fetch_result: bool = True) -> TranscriptionJob:
        """
        Polls a job until it reaches a terminal state.

        The first poll happens immediately. Status errors reported as
        ServiceUnavailable are retried on the next tick. Cancelling the
        calling task stops polling and leaves the remote job running.

        Args:
            job: The job to watch. Its state is updated in place.
            fetch_result: Download the transcript once the job completes.

        Returns:
            The completed job.

        Raises:
            TranscriptionFailed: If the job ends FAILED or CANCELLED.
            WatchTimeout: If the job is still running after ``max_wait``.
            JobNotFound: If the service does not know the job.
            TranscriptUnreadable: If the finished transcript cannot be parsed.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.max_wait
        polls = 0

        try:
            while True:
                polls += 1
                try:
                    status = await asyncio.to_thread(self._service.get_status, job.job_name)
                except ServiceUnavailable:
                    logger.warning(
                        "Transcription status check failed, retrying",
                        extra={"job_name": job.job_name, "poll": polls},
                    )
                else:
                    if status.state is JobState.COMPLETED:
                        job.state = JobState.COMPLETED
                        if fetch_result and status.transcript_uri:
                            job.transcript = await asyncio.to_thread(
                                self._service.fetch_result, status.transcript_uri
                            )
                        logger.info(
                            "Transcription job completed",
                            extra={"job_name": job.job_name, "polls": polls},
                        )
                        return job

                    if status.state in (JobState.FAILED, JobState.CANCELLED):
                        job.state = status.state
                        job.error = status.error
                        logger.warning(
                            "Transcription job did not complete",
                            extra={
                                "job_name": job.job_name,
                                "state": status.state.value,
                                "polls": polls,
                            },
                        )
                        raise TranscriptionFailed(job.job_name, status.state.value, status.error)

                    job.state = JobState.IN_PROGRESS

                if loop.time() >= deadline:
                    job.error = f"No terminal state after {self._config.max_wait:g}s"
                    logger.warning(
                        "Transcription watch timed out",
                        extra={"job_name": job.job_name, "polls": polls},
                    )
                    raise WatchTimeout(job.job_name, self._config.max_wait)

                await asyncio.sleep(self._config.poll_interval)
        except asyncio.CancelledError:
            if job.error is None:
                job.error = "Watch cancelled before a terminal state"
            logger.info(
                "Stopped watching transcription job",
                extra={"job_name": job.job_name, "polls": polls},
            )
            raise
        finally:
            self._service.discard(job.job_name)

    async def run(self, media_key: str, media_reference: str) -> TranscriptionJob:
        """Submits a job and waits for its terminal outcome."""
        job = await self.submit(media_key, media_reference)
        return await self.wait(job)

    async def start_background(self, media_key: str, media_reference: str) -> TranscriptionJob:
        """Submits a job and watches it in a detached task."""
        job = await self.submit(media_key, media_reference)
        self._tasks[job.job_name] = asyncio.create_task(
            self._watch_detached(job), name=f"watch-{job.job_name}"
        )
        return job

    def get_job(self, job_name: str) -> TranscriptionJob | None:
        return self._jobs.get(job_name)

    def cancel(self, job_name: str) -> bool:
        """Stops watching a detached job. Returns False if it was not being watched."""
        task = self._tasks.pop(job_name, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def aclose(self) -> None:
        """Cancels every detached watch."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _watch_detached(self, job: TranscriptionJob) -> None:
        try:
            await self.wait(job)
        except MediaRelayError as e:
            if job.error is None:
                job.error = str(e)
            logger.warning(
                "Background transcription watch ended with error",
                extra={"job_name": job.job_name, "error": str(e)},
            )
        except Exception as e:
            job.error = f"Unexpected error while watching: {e}"
            logger.exception(
                "Background transcription watch crashed",
                extra={"job_name": job.job_name},
            )
        finally:
            self._tasks.pop(job.job_name, None)

    def _evict(self) -> None:
        overflow = len(self._jobs) - self._config.max_tracked_jobs
        if overflow <= 0:
            return
        finished = [
            name
            for name, job in self._jobs.items()
            if job.state.is_terminal or job.error is not None
        ]
        for name in finished[:overflow]:
            del self._jobs[name]
