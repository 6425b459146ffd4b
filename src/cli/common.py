from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

# Exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNRESOLVED = 2


def _json_dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def _default_progress_enabled(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


@dataclass
class ProgressPrinter:
    """Single-line card progress for TTYs; only final lines elsewhere."""

    stream: Any = field(default_factory=lambda: sys.stderr)
    enabled: bool = field(default_factory=lambda: _default_progress_enabled(sys.stderr))
    _last_len: int = field(default=0, init=False)

    def update(self, label: str, *, final: bool = False) -> None:
        if not self.enabled:
            if final:
                self.stream.write(label + os.linesep)
                self.stream.flush()
            return

        padding = max(0, self._last_len - len(label))
        self.stream.write(f"\r{label}{' ' * padding}")
        if final:
            self.stream.write(os.linesep)
            self._last_len = 0
        else:
            self._last_len = len(label)
        self.stream.flush()

    def card_done(self, done: int, total: int, record) -> None:
        """Progress callback for ``BatchRunner``."""
        key = record.card_key
        self.update(
            f"[{key.language}] {done}/{total} {key.card_number} {record.outcome.value}",
            final=done == total,
        )


def resolve_output_path(path_value: str | Path | None) -> Path | None:
    if path_value is None:
        return None
    return Path(path_value).expanduser().resolve()


def ensure_paths_exist(paths: Iterable[Path | None]) -> None:
    for path in paths:
        if path is None:
            continue
        path.parent.mkdir(parents=True, exist_ok=True)


def write_json_outputs(
    *,
    payload: Any,
    out_path: str | Path | None = None,
    emit_stdout: bool = False,
) -> Path | None:
    """Write a report payload to ``out_path`` and/or stdout."""
    out_resolved = resolve_output_path(out_path)
    ensure_paths_exist([out_resolved])

    if out_resolved is not None:
        out_resolved.write_text(_json_dump(payload), encoding="utf-8")

    if emit_stdout:
        sys.stdout.write(_json_dump(payload))
        sys.stdout.flush()

    return out_resolved


def default_report_path(reports_dir: Path, command: str, set_id: str, started_at) -> Path:
    stamp = started_at.strftime("%Y%m%dT%H%M%S")
    return Path(reports_dir) / f"{command}_{set_id}_{stamp}.json"


def apply_log_overrides(
    *,
    quiet: bool | None = None,
    verbose: bool | None = None,
    json_mode: bool | None = None,
) -> tuple[bool | None, bool | None, bool | None]:
    """Fill unset verbosity flags from the CIP_LOG environment variable."""
    mode = (os.environ.get("CIP_LOG") or "").strip().lower()
    if mode == "quiet":
        quiet = True if quiet is None else quiet
    if mode == "verbose":
        verbose = True if verbose is None else verbose
    if mode == "json":
        json_mode = True if json_mode is None else json_mode
    return quiet, verbose, json_mode


def console_level(quiet: bool | None, verbose: bool | None, default: str) -> str:
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return default


def exit_with_message(message: str, *, code: int = EXIT_OK) -> None:
    stream = sys.stderr if code else sys.stdout
    stream.write(message + os.linesep)
    stream.flush()
    raise SystemExit(code)
