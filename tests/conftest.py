import json
import os

import pytest

# Keep test runs from writing logs/server.log into the working tree
os.environ.setdefault("LOG_TO_FILE", "0")


@pytest.fixture
def events(tmp_path):
    """Route event records to a temp file; call the fixture value to flush and read them."""
    from codegate import event_log

    event_log.setup(log_dir=str(tmp_path), to_file=True, console=False, force=True)
    path = tmp_path / event_log.LOG_FILE_NAME

    def read():
        event_log.shutdown()
        if not path.exists():
            return []
        return [json.loads(ln) for ln in path.read_text(encoding="utf-8").splitlines() if ln.strip()]

    yield read
    event_log.setup(force=True)
