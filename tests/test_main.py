"""Tests for the process entry point."""

from unittest.mock import patch

from cds_chat import main as main_module


def test_main_runs_console_session(store) -> None:
    with patch("cds_chat.main.asyncio.run", side_effect=lambda coro: coro.close()) as mock_run:
        main_module.main()

    mock_run.assert_called_once()


def test_main_handles_keyboard_interrupt(store) -> None:
    def interrupt(coro):
        coro.close()
        raise KeyboardInterrupt

    with patch("cds_chat.main.asyncio.run", side_effect=interrupt):
        main_module.main()  # must not raise
