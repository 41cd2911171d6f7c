"""Global pytest configuration and fixtures."""

import pytest
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pos_recovery._storage import JsonBackupRecordStore
from tests.fakes import FakeToolRunner


@pytest.fixture
def temp_backup_dir():
    """Create temporary backup root."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "backups" / "tocgamedb"


@pytest.fixture
def json_store(temp_backup_dir):
    """JSON record store living beside the archives."""
    return JsonBackupRecordStore(file_path=temp_backup_dir / "records.json")


@pytest.fixture
def tool_runner():
    return FakeToolRunner()
