"""Unit tests for SectionRunner."""

import asyncio
import time
from unittest.mock import AsyncMock, Mock, patch

import pytest

from stslayer.config import Section
from stslayer.errors import CommandFailedError, ErrorCode
from stslayer.models import Block
from stslayer.section_runner import SectionRunner


class StopLoop(Exception):
    """Raised by mocks to break out of the runner loop."""


def completed(stdout: bytes, returncode: int = 0, stderr: bytes = b"") -> Mock:
    """Finished shell process as returned by create_subprocess_exec."""
    proc = Mock(returncode=returncode, pid=12345)
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


def make_runner(command: str = "true", interval=1, maxsize: int = 0) -> SectionRunner:
    section = Section(name="test", command=command, interval=interval)
    return SectionRunner(section, asyncio.Queue(maxsize=maxsize))


SPAWN = 'stslayer.section_runner.asyncio.create_subprocess_exec'


class TestExecute:
    """Test command execution through the shell."""

    @pytest.mark.asyncio
    async def test_trims_trailing_whitespace(self):
        runner = make_runner("printf '  hello world \\n\\n'")

        assert await runner.execute() == "  hello world"

    @pytest.mark.asyncio
    async def test_uses_shell(self):
        runner = make_runner("echo one | tr a-z A-Z")

        assert await runner.execute() == "ONE"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        runner = make_runner("echo oops >&2; exit 3")

        with pytest.raises(CommandFailedError) as exc_info:
            await runner.execute()

        error = exc_info.value
        assert error.code == ErrorCode.COMMAND_FAILED
        assert error.section == "test"
        assert error.exit_info == "exit status 3"
        assert error.stderr == "oops"
        assert "oops" in error.message

    @pytest.mark.asyncio
    async def test_killed_by_signal(self):
        runner = make_runner("kill -9 $$")

        with pytest.raises(CommandFailedError) as exc_info:
            await runner.execute()

        assert exc_info.value.exit_info == "killed by signal 9"

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_spawn_failure(self, mock_spawn):
        mock_spawn.side_effect = FileNotFoundError("sh")
        runner = make_runner()

        with pytest.raises(CommandFailedError) as exc_info:
            await runner.execute()

        assert exc_info.value.exit_info.startswith("spawn error")

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_undecodable_output_replaced(self, mock_spawn):
        mock_spawn.return_value = completed(b"caf\xe9\n")
        runner = make_runner()

        assert await runner.execute() == "caf\ufffd"

    @pytest.mark.asyncio
    async def test_cancel_kills_running_command(self, tmp_path):
        """Cancelling mid-command stops the shell and its children at once."""
        marker = tmp_path / "finished"
        runner = make_runner(f'sleep 30; touch "{marker}"')
        task = asyncio.create_task(runner.execute())
        await asyncio.sleep(0.2)

        started = time.monotonic()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, timeout=2)

        assert time.monotonic() - started < 1.0
        assert not marker.exists()


class TestRunCycle:
    """Test change detection and publishing."""

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_first_cycle_publishes(self, mock_spawn):
        mock_spawn.return_value = completed(b"5.15.0\n")
        runner = make_runner()

        assert await runner.run_cycle() is True
        assert runner.sender.get_nowait() == Block.for_section("test", "5.15.0")
        assert runner.cache == "5.15.0"

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_unchanged_output_not_published(self, mock_spawn):
        mock_spawn.side_effect = lambda *args, **kwargs: completed(b"same\n")
        runner = make_runner()

        assert await runner.run_cycle() is True
        assert await runner.run_cycle() is False
        assert await runner.run_cycle() is False
        assert runner.sender.qsize() == 1

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_changed_output_published(self, mock_spawn):
        mock_spawn.side_effect = [completed(b"1\n"), completed(b"1\n"), completed(b"2\n")]
        runner = make_runner()

        for _ in range(3):
            await runner.run_cycle()

        published = [runner.sender.get_nowait().full_text for _ in range(runner.sender.qsize())]
        assert published == ["1", "2"]

    @pytest.mark.asyncio
    @patch(SPAWN, new_callable=AsyncMock)
    async def test_failure_publishes_nothing(self, mock_spawn):
        mock_spawn.return_value = completed(b"", returncode=1, stderr=b"boom")
        runner = make_runner()

        with pytest.raises(CommandFailedError):
            await runner.run_cycle()
        assert runner.sender.empty()


class TestRun:
    """Test scheduling."""

    @pytest.mark.asyncio
    async def test_oneshot_runs_once(self):
        runner = make_runner("echo hi", interval="oneshot")
        runner.run_cycle = AsyncMock(return_value=True)

        await asyncio.wait_for(runner.run(), timeout=5)

        runner.run_cycle.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_oneshot_publishes_single_block(self):
        runner = make_runner("echo hi", interval="oneshot")

        await asyncio.wait_for(runner.run(), timeout=5)

        assert runner.sender.qsize() == 1
        assert runner.sender.get_nowait().full_text == "hi"

    @pytest.mark.asyncio
    async def test_periodic_sleeps_remaining_interval(self):
        runner = make_runner(interval=5)
        runner.run_cycle = AsyncMock(return_value=True)

        with patch('stslayer.section_runner.time') as mock_time, \
                patch('stslayer.section_runner.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
            mock_time.monotonic.side_effect = [100.0, 101.5, 110.0, 110.25]
            mock_sleep.side_effect = [None, StopLoop()]

            with pytest.raises(StopLoop):
                await runner.run()

        assert runner.run_cycle.await_count == 2
        assert mock_sleep.await_args_list[0].args == (3.5,)
        assert mock_sleep.await_args_list[1].args == (4.75,)

    @pytest.mark.asyncio
    async def test_sleep_clamped_when_command_overruns(self):
        runner = make_runner(interval=2)
        runner.run_cycle = AsyncMock(return_value=False)

        with patch('stslayer.section_runner.time') as mock_time, \
                patch('stslayer.section_runner.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
            mock_time.monotonic.side_effect = [0.0, 7.0]
            mock_sleep.side_effect = StopLoop()

            with pytest.raises(StopLoop):
                await runner.run()

        assert mock_sleep.await_args.args == (0.0,)

    @pytest.mark.asyncio
    async def test_failure_stops_runner(self):
        runner = make_runner("exit 1", interval=1)

        with pytest.raises(CommandFailedError):
            await asyncio.wait_for(runner.run(), timeout=5)
        assert runner.sender.empty()
