"""Tests for the retry executor."""

import unittest

from jobhunter.retry import backoff_delay, retry_async


class TestBackoffDelay(unittest.TestCase):
    """Verify exponential growth and the jitter bound."""

    def test_doubles_per_attempt(self):
        self.assertEqual(backoff_delay(1, 0.5), 0.5)
        self.assertEqual(backoff_delay(2, 0.5), 1.0)
        self.assertEqual(backoff_delay(3, 0.5), 2.0)

    def test_jitter_within_bound(self):
        for _ in range(50):
            d = backoff_delay(1, 1.0, jitter_s=0.2)
            self.assertGreaterEqual(d, 1.0)
            self.assertLessEqual(d, 1.2)


class TestRetryAsync(unittest.IsolatedAsyncioTestCase):
    """Verify attempts, error filtering and sync/async operations."""

    async def test_succeeds_after_failures(self):
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("flaky")
            return "ok"

        result = await retry_async(op, max_attempts=3, base_delay_s=0, jitter_s=0)
        self.assertEqual(result, "ok")
        self.assertEqual(len(calls), 3)

    async def test_reraises_last_error_when_exhausted(self):
        calls = []

        async def op():
            calls.append(1)
            raise TimeoutError(f"attempt {len(calls)}")

        with self.assertRaises(TimeoutError) as ctx:
            await retry_async(op, max_attempts=2, base_delay_s=0, jitter_s=0)
        self.assertEqual(str(ctx.exception), "attempt 2")
        self.assertEqual(len(calls), 2)

    async def test_unlisted_error_is_not_retried(self):
        calls = []

        def op():
            calls.append(1)
            raise ValueError("bad input")

        with self.assertRaises(ValueError):
            await retry_async(op, max_attempts=5, base_delay_s=0, jitter_s=0, retry_on=(KeyError,))
        self.assertEqual(len(calls), 1)

    async def test_awaits_coroutine_result(self):
        async def op():
            return 42

        self.assertEqual(await retry_async(op, base_delay_s=0, jitter_s=0), 42)

    async def test_rejects_zero_attempts(self):
        with self.assertRaises(ValueError):
            await retry_async(lambda: 1, max_attempts=0)


if __name__ == "__main__":
    unittest.main()
