import unittest

from tail_follow.watch.subscription import Subscription


class TestSubscription(unittest.TestCase):
    def test_requires_callable(self) -> None:
        with self.assertRaises(TypeError):
            Subscription(None)  # type: ignore[arg-type]

    def test_only_one_terminal_notification(self) -> None:
        calls = []
        sub = Subscription(
            lambda line: calls.append(("line", line)),
            on_error=lambda e: calls.append(("error", str(e))),
            on_complete=lambda: calls.append(("complete", None)),
        )
        sub._deliver_line("a")
        self.assertTrue(sub._deliver_error(RuntimeError("boom")))
        self.assertFalse(sub._deliver_complete())
        self.assertFalse(sub._deliver_error(RuntimeError("again")))
        sub._deliver_line("b")
        self.assertEqual(calls, [("line", "a"), ("error", "boom")])

    def test_complete_fires_once(self) -> None:
        done = []
        sub = Subscription(lambda _line: None, on_complete=lambda: done.append(1))
        self.assertTrue(sub._deliver_complete())
        self.assertFalse(sub._deliver_complete())
        self.assertEqual(done, [1])

    def test_callback_errors_do_not_escape(self) -> None:
        def _boom(*_a) -> None:
            raise RuntimeError("observer bug")

        sub = Subscription(lambda _line: None, on_error=_boom)
        with self.assertLogs("tail_follow.watch.subscription", level="ERROR"):
            self.assertTrue(sub._deliver_error(ValueError("x")))

    def test_cancel_without_thread(self) -> None:
        sub = Subscription(lambda _line: None)
        self.assertFalse(sub.cancelled)
        self.assertEqual(sub.cancel(join_timeout_s=0.01), False)
        self.assertTrue(sub.cancelled)
        self.assertTrue(sub._stop_event.is_set())
        self.assertEqual(sub.status(), {})
        self.assertFalse(sub.join(timeout=0.01))


if __name__ == "__main__":
    unittest.main()
