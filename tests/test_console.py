"""Tests for console.py module."""
import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from docbot.datatypes.documentation_datatypes import DocumentationMember, MemberKind
from docbot.documentation.documentation_index import DocumentationSnapshot, FuzzyResult
from docbot.ui import console


def _printed(mock_print) -> list[str]:
    return [call.args[0] for call in mock_print.call_args_list]


def _index(**overrides) -> MagicMock:
    index = MagicMock()
    index.provider = SimpleNamespace(name="local_file")
    index.snapshot = DocumentationSnapshot({}, datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc), 2)
    index.is_reloading = False
    index.__len__.return_value = 42
    for key, value in overrides.items():
        setattr(index, key, value)
    return index


def test_console_print_without_style():
    with patch("docbot.ui.console.print_formatted_text") as mock_print:
        console.console_print("Test message")
        mock_print.assert_called_once_with("Test message")


def test_box_title_is_aligned():
    lines = console.box_title("Bot Status")
    assert len({len(line) for line in lines}) == 1
    assert "Bot Status" in lines[1]


def test_command_matches_aliases():
    search = next(cmd for cmd in console.COMMANDS if cmd.name == "search")
    assert search.matches("search")
    assert search.matches("find")
    assert not search.matches("lookup")


def test_console_control_flags():
    control = console.ConsoleControl()
    assert not control.is_shutdown_requested()
    control.request_restart()
    control.stop()
    assert control.is_shutdown_requested()
    assert control.is_restart_requested()


@pytest.mark.asyncio
async def test_close_bot_instance_handles_none_closed_and_failures():
    await console.close_bot_instance(None)
    await console.close_bot_instance(SimpleNamespace(is_closed=lambda: True))

    failing = SimpleNamespace(is_closed=lambda: False, close=AsyncMock(side_effect=RuntimeError("Close failed")))
    await console.close_bot_instance(failing, log_close=True)
    failing.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_shutdown_command_closes_bot():
    control = console.ConsoleControl()
    fake_bot = SimpleNamespace(is_closed=lambda: False, close=AsyncMock())
    control.set_bot(fake_bot)

    with patch("docbot.ui.console.console_print"):
        await console.handle_console_command("quit", control)

    assert control.is_shutdown_requested()
    assert not control.is_restart_requested()
    fake_bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_restart_command_requests_restart():
    control = console.ConsoleControl()
    control.set_bot(SimpleNamespace(is_closed=lambda: False, close=AsyncMock()))

    with patch("docbot.ui.console.console_print"):
        await console.handle_console_command("reboot", control)

    assert control.is_restart_requested()
    assert control.is_shutdown_requested()


@pytest.mark.asyncio
async def test_unknown_and_empty_commands():
    control = console.ConsoleControl()
    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("   ", control)
        await console.handle_console_command("frobnicate", control)

    assert _printed(mock_print) == ["Unknown command 'frobnicate'. Type 'help' for available commands."]


@pytest.mark.asyncio
async def test_status_reports_index_and_bot():
    control = console.ConsoleControl(_index())
    control.set_bot(SimpleNamespace(is_closed=lambda: False, guilds=[1, 2, 3], latency=0.05))

    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("status", control)

    output = "\n".join(_printed(mock_print))
    assert "Provider:   local_file" in output
    assert "Members:    0 from 2 units" in output
    assert "2024-05-01 12:00:00 UTC" in output
    assert "Guilds:     3" in output
    assert "Latency:    50ms" in output


@pytest.mark.asyncio
async def test_reload_command_reports_result():
    index = _index(reload=AsyncMock(side_effect=[True, False]))
    control = console.ConsoleControl(index)

    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("reload", control)
        await console.handle_console_command("refresh", control)

    output = _printed(mock_print)
    assert "Documentation reloaded: 42 members indexed." in output
    assert "Reload failed; the previous documentation is still served. See the log for details." in output


@pytest.mark.asyncio
async def test_reload_without_index():
    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("reload", console.ConsoleControl())

    assert _printed(mock_print) == ["Documentation index is not initialized."]


@pytest.mark.asyncio
async def test_search_command_lists_matches():
    member = DocumentationMember.create("lib.Client", MemberKind.CLASS, display_name="Client")
    index = _index()
    index.find_fuzzy.return_value = FuzzyResult((member,), match_count=1)

    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("find Client", console.ConsoleControl(index))

    index.find_fuzzy.assert_called_once_with("Client")
    assert _printed(mock_print) == [f"  • lib.Client [class] (ID: {member.id})"]


@pytest.mark.asyncio
async def test_search_command_usage_too_many_and_none():
    index = _index()
    control = console.ConsoleControl(index)

    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("search", control)
        index.find_fuzzy.return_value = FuzzyResult(too_many=True, match_count=40)
        await console.handle_console_command("search a", control)
        index.find_fuzzy.return_value = FuzzyResult()
        await console.handle_console_command("search zzz", control)

    assert _printed(mock_print) == [
        "Usage: search <query>",
        "Too many matches (40), please refine your search.",
        "No documentation found.",
    ]


@pytest.mark.asyncio
async def test_handler_errors_are_reported():
    index = _index(reload=AsyncMock(side_effect=RuntimeError("boom")))

    with patch("docbot.ui.console.console_print") as mock_print:
        await console.handle_console_command("reload", console.ConsoleControl(index))

    assert "Error executing command: boom" in _printed(mock_print)


@pytest.mark.asyncio
async def test_run_console_stops_on_eof():
    control = console.ConsoleControl()

    async def fake_prompt():
        raise EOFError()

    fake_session = SimpleNamespace(prompt_async=fake_prompt)
    with patch("docbot.ui.console.PromptSession", return_value=fake_session), \
            patch("docbot.ui.console.patch_stdout"), \
            patch("docbot.ui.console.console_print"):
        await console.run_console(control)

    assert control.is_shutdown_requested()
