"""codegate: prompt-to-code gateway in front of Gemini with API key rotation."""
import os
from pathlib import Path
from typing import List, Union

ENV_FILE_VAR = "CODEGATE_ENV_FILE"


def _unquote(val: str) -> str:
    if len(val) >= 2 and val[0] == val[-1] and val[0] in {'"', "'"}:
        return val[1:-1]
    return val


def load_env_file(path: Union[str, Path]) -> List[str]:
    """
    Copy KEY=VALUE pairs from an env file into os.environ.

    Variables already present in the environment are left alone, so a
    GEMINI_API_KEYS exported by the deployment beats the file. Returns the
    names that were actually set. A missing or unreadable file sets nothing.
    """
    env_path = Path(path)
    try:
        lines = env_path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    loaded: List[str] = []
    for line in lines:
        s = line.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        if s.startswith("export "):
            s = s[len("export "):].lstrip()
        key, val = s.split("=", 1)
        key = key.strip()
        if key and key not in os.environ:
            os.environ[key] = _unquote(val.strip())
            loaded.append(key)
    return loaded


# Tests set their own environment; a developer .env must not leak in
if not os.getenv("PYTEST_CURRENT_TEST"):
    load_env_file(os.getenv(ENV_FILE_VAR, ".env"))
