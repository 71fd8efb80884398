import asyncio
import unittest

from tenacity import AsyncRetrying, wait_none

from omnichat.providers import async_retrying, default_retry_kwargs, resolve_model


class _Transient(Exception):
    pass


class RetryPolicyTests(unittest.TestCase):
    def test_single_attempt_reraises_without_retry(self) -> None:
        calls = []

        async def run():
            async for attempt in async_retrying((_Transient,), max_attempts=1):
                with attempt:
                    calls.append(1)
                    raise _Transient("boom")

        with self.assertRaises(_Transient):
            asyncio.run(run())
        self.assertEqual(1, len(calls))

    def test_configured_attempts_retry_listed_errors(self) -> None:
        calls = []
        kwargs = {**default_retry_kwargs((_Transient,), max_attempts=3), "wait": wait_none()}

        async def run():
            async for attempt in AsyncRetrying(**kwargs):
                with attempt:
                    calls.append(1)
                    if len(calls) < 3:
                        raise _Transient("try again")
            return "done"

        self.assertEqual("done", asyncio.run(run()))
        self.assertEqual(3, len(calls))

    def test_unlisted_errors_are_not_retried(self) -> None:
        calls = []
        kwargs = {**default_retry_kwargs((_Transient,), max_attempts=3), "wait": wait_none()}

        async def run():
            async for attempt in AsyncRetrying(**kwargs):
                with attempt:
                    calls.append(1)
                    raise ValueError("bad request")

        with self.assertRaises(ValueError):
            asyncio.run(run())
        self.assertEqual(1, len(calls))


class ResolveModelTests(unittest.TestCase):
    def test_override_wins(self) -> None:
        self.assertEqual("gpt-4o", resolve_model("gemini-2.5-pro", {"gemini-2.5-pro": "gpt-4o"}, "gpt-4o-mini", "gpt-"))

    def test_native_ids_pass_through(self) -> None:
        self.assertEqual("gpt-4.1", resolve_model("gpt-4.1", {}, "gpt-4o-mini", "gpt-"))
        self.assertEqual("gemini-2.5-pro", resolve_model("gemini-2.5-pro", {}, "unused"))

    def test_foreign_ids_fall_back(self) -> None:
        self.assertEqual("gpt-4o-mini", resolve_model("gemini-2.5-flash", {}, "gpt-4o-mini", "gpt-"))


if __name__ == "__main__":
    unittest.main()
