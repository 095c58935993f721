"""State handed from the ``setup`` phase to the ``report`` phase.

The two phases run as separate processes (pre- and post-build steps), so
anything the second one needs is written to a JSON file by the first. Every
field is required when loading; a file that is missing one is rejected rather
than filled in with guesses.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path


@dataclass(frozen=True)
class RunContext:
    started_at: float  # epoch seconds
    backend: str  # "s3" | "github-cache" | "local"
    tool_version: str
    cache_key: str
    restored_key: str | None

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> RunContext:
        missing = [f.name for f in fields(cls) if f.name not in data]
        if missing:
            raise ValueError(f"Run context is missing field(s): {', '.join(missing)}")
        started_at = data["started_at"]
        if isinstance(started_at, bool) or not isinstance(started_at, (int, float)):
            raise ValueError(f"Run context field 'started_at' must be a number, got {started_at!r}")
        for name in ("backend", "tool_version", "cache_key"):
            if not isinstance(data[name], str):
                raise ValueError(f"Run context field '{name}' must be a string, got {data[name]!r}")
        restored_key = data["restored_key"]
        if restored_key is not None and not isinstance(restored_key, str):
            raise ValueError(f"Run context field 'restored_key' must be a string or null, got {restored_key!r}")
        return cls(**{f.name: data[f.name] for f in fields(cls)})


def save_run_context(context: RunContext, path: str | Path) -> None:
    Path(path).write_text(context.to_json(), encoding="utf-8")


def load_run_context(path: str | Path) -> RunContext:
    """Load the context written by ``setup``.

    Raises ValueError if the file is absent, unreadable, not JSON, incomplete,
    or holds a field of the wrong type.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ValueError(f"No run context at {p}; was the setup step skipped?")
    except OSError as e:
        raise ValueError(f"Run context at {p} could not be read: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Run context at {p} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Run context at {p} must be a JSON object.")
    return RunContext.from_dict(data)
