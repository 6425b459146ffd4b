from .common import (
    ProgressPrinter,
    apply_log_overrides,
    ensure_paths_exist,
    exit_with_message,
    resolve_output_path,
    write_json_outputs,
)

from .handlers import (
    build_runner,
    handle_cleanup,
    handle_reconcile,
    handle_show_config,
    handle_validate,
)

__all__ = [
    "ProgressPrinter",
    "apply_log_overrides",
    "ensure_paths_exist",
    "exit_with_message",
    "resolve_output_path",
    "write_json_outputs",
    "build_runner",
    "handle_cleanup",
    "handle_reconcile",
    "handle_show_config",
    "handle_validate",
]
