"""Tests for the mongodump / mongorestore runner."""

import asyncio
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from pos_recovery.backup.tools import MongoToolRunner, redact_uri
from pos_recovery.errors import ExternalToolError, ExternalToolTimeout

URI = "mongodb://localhost:27017/tocgame"


def make_process(returncode=0, stderr=b""):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(b"", stderr))
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestCommands:
    """Test command construction."""

    def test_direct_commands(self):
        runner = MongoToolRunner()
        archive = Path("/backups/backup-20240101-000000-000000.gz")

        assert runner.dump_command(URI, archive) == [
            "mongodump", f"--uri={URI}", f"--archive={archive}", "--gzip",
        ]
        assert runner.restore_command(URI, archive) == [
            "mongorestore", f"--uri={URI}", "--drop", f"--archive={archive}", "--gzip",
        ]

    def test_container_commands_stream_archive(self):
        runner = MongoToolRunner(container="pos-mongo", container_runtime="podman")
        archive = Path("/backups/backup-20240101-000000-000000.gz")

        assert runner.dump_command(URI, archive) == [
            "podman", "exec", "-i", "pos-mongo", "mongodump", f"--uri={URI}", "--archive", "--gzip",
        ]
        assert runner.restore_command(URI, archive)[:5] == [
            "podman", "exec", "-i", "pos-mongo", "mongorestore",
        ]
        assert "--drop" in runner.restore_command(URI, archive)

    def test_timeout_refused_in_container_mode(self):
        with pytest.raises(ValueError):
            MongoToolRunner(container="pos-mongo", timeout=60)

    def test_redact_uri(self):
        assert redact_uri("mongodb://pos:hunter2@db:27017/tocgame") == "mongodb://pos:***@db:27017/tocgame"
        assert redact_uri(URI) == URI


class TestExecution:
    """Test subprocess handling."""

    @pytest.mark.asyncio
    async def test_dump_success(self, tmp_path):
        runner = MongoToolRunner()
        archive = tmp_path / "backup-20240101-000000-000000.gz"

        with patch("pos_recovery.backup.tools.asyncio.create_subprocess_exec",
                   AsyncMock(return_value=make_process())) as mock_exec:
            await runner.run_dump(URI, archive)

        args = mock_exec.call_args[0]
        assert args[0] == "mongodump"
        assert f"--archive={archive}" in args

    @pytest.mark.asyncio
    async def test_dump_failure_carries_diagnostics_and_removes_partial(self, tmp_path):
        runner = MongoToolRunner()
        archive = tmp_path / "backup-20240101-000000-000000.gz"
        archive.write_bytes(b"partial")

        process = make_process(returncode=1, stderr=b"Failed: error connecting to db server\n")
        with patch("pos_recovery.backup.tools.asyncio.create_subprocess_exec",
                   AsyncMock(return_value=process)):
            with pytest.raises(ExternalToolError) as exc_info:
                await runner.run_dump(URI, archive)

        assert exc_info.value.tool == "mongodump"
        assert exc_info.value.returncode == 1
        assert "error connecting" in exc_info.value.diagnostics
        assert not archive.exists()

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        runner = MongoToolRunner(restore_bin="/nonexistent/mongorestore")

        with patch("pos_recovery.backup.tools.asyncio.create_subprocess_exec",
                   AsyncMock(side_effect=FileNotFoundError("No such file"))):
            with pytest.raises(ExternalToolError) as exc_info:
                await runner.run_restore(URI, tmp_path / "a.gz")

        assert exc_info.value.returncode is None
        assert "could not start" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_container_restore_streams_stdin(self, tmp_path):
        runner = MongoToolRunner(container="pos-mongo")
        archive = tmp_path / "backup-20240101-000000-000000.gz"
        archive.write_bytes(b"archive bytes")

        with patch("pos_recovery.backup.tools.asyncio.create_subprocess_exec",
                   AsyncMock(return_value=make_process())) as mock_exec:
            await runner.run_restore(URI, archive)

        stdin = mock_exec.call_args[1]["stdin"]
        assert Path(stdin.name) == archive
        assert stdin.closed

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path):
        runner = MongoToolRunner(timeout=0.01)

        async def hang():
            await asyncio.sleep(5)

        process = make_process()
        process.communicate = AsyncMock(side_effect=hang)
        with patch("pos_recovery.backup.tools.asyncio.create_subprocess_exec",
                   AsyncMock(return_value=process)):
            with pytest.raises(ExternalToolTimeout) as exc_info:
                await runner.run_restore(URI, tmp_path / "a.gz")

        process.kill.assert_called_once()
        assert isinstance(exc_info.value, ExternalToolError)
        assert "did not finish within" in str(exc_info.value)
