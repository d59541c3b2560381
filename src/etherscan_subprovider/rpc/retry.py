"""Re-queue policy for calls refused with Etherscan's forbidden-access marker."""

from etherscan_subprovider.core.errors import RateLimitedError


class RetryConfig:
    """
    Configuration for retry behavior.

    A refused call goes back to the tail of the dispatch queue. There is no
    backoff beyond the queue's own pacing, and by default no retry ceiling:
    an always-refused call is retried forever and never reaches its caller.

    Parameters
    ----------
    retry_failed : bool
        Re-queue rate-limited calls instead of failing them
    max_retries : int | None
        Maximum re-queues per call. None means unbounded.

    """

    def __init__(self, retry_failed: bool = True, max_retries: int | None = None) -> None:
        if max_retries is not None and max_retries < 0:
            msg = "max_retries must be non-negative"
            raise ValueError(msg)
        self.retry_failed = retry_failed
        self.max_retries = max_retries

    def should_retry(self, error: Exception | None, attempt: int) -> bool:
        """
        Decide whether a failed call should be re-queued.

        Parameters
        ----------
        error : Exception | None
            Error the call finished with
        attempt : int
            Number of re-queues already performed for this call

        Returns
        -------
        bool
            True to re-queue, False to deliver the outcome to the caller

        """
        if not self.retry_failed or not isinstance(error, RateLimitedError):
            return False
        return self.max_retries is None or attempt < self.max_retries
