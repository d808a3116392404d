"""Root conftest: point settings at .env.test before care_chat.config is imported."""
from __future__ import annotations

import os
from pathlib import Path

_env_test = Path(__file__).resolve().parent / ".env.test"
if _env_test.exists():
    for line in _env_test.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        # the suite relies on in-process push delivery, so .env.test wins over the shell
        os.environ[key.strip()] = value.strip().strip("'\"")
