"""
ChangeNotifier unit tests
"""

from unittest.mock import Mock, call, patch

from kubesim.simulator.notifier import ChangeNotifier


class TestChangeNotifier:
    """Test observer registration and dispatch"""

    def test_callbacks_run_in_registration_order(self):
        """Test synchronous in-order dispatch without arguments"""
        parent = Mock()
        notifier = ChangeNotifier()
        notifier.subscribe(parent.first)
        notifier.subscribe(parent.second)
        notifier.notify()
        assert parent.mock_calls == [call.first(), call.second()]

    def test_unsubscribe(self):
        """Test unsubscribe is idempotent"""
        callback = Mock()
        notifier = ChangeNotifier()
        unsubscribe = notifier.subscribe(callback)
        assert len(notifier) == 1
        unsubscribe()
        unsubscribe()
        assert len(notifier) == 0
        notifier.notify()
        callback.assert_not_called()

    def test_raising_callback_is_logged(self):
        """Test a failing callback does not stop the others"""
        notifier = ChangeNotifier()
        after = Mock()
        notifier.subscribe(Mock(side_effect=RuntimeError("broken")))
        notifier.subscribe(after)
        with patch("kubesim.simulator.notifier.logger") as mock_logger:
            notifier.notify()
        after.assert_called_once()
        mock_logger.warning.assert_called_once()

    def test_unsubscribe_during_notify(self):
        """Test callbacks may unsubscribe while being notified"""
        notifier = ChangeNotifier()
        later = Mock()
        holder = {}

        def once():
            holder["unsubscribe"]()

        holder["unsubscribe"] = notifier.subscribe(once)
        notifier.subscribe(later)
        notifier.notify()
        notifier.notify()
        assert later.call_count == 2
        assert len(notifier) == 1
