from __future__ import annotations

import os
from pathlib import Path


def _parse_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    if line.startswith("export "):
        line = line[len("export "):].strip()

    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip().strip('"').strip("'")
    if not key:
        return None
    return key, value


def load_dotenv_if_exists(base_dir: Path) -> None:
    """Carrega `.env` da raiz sem sobrescrever variáveis já exportadas."""
    env_path = base_dir / ".env"
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        parsed = _parse_line(raw_line)
        if parsed:
            os.environ.setdefault(*parsed)
