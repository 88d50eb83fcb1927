"""Opening files in the user's editor."""

import logging
import subprocess

from ..config.settings import EditorConfig
from .errors import EditorLaunchError

logger = logging.getLogger(__name__)

EDITOR_LAUNCH_TIMEOUT_SECONDS = 1.2


def build_editor_command(editor: EditorConfig, path: str, line: int | None = None) -> list[str]:
    """Expand ``{file}`` and ``{line}`` in the editor arguments.

    The file path is appended when no argument mentions ``{file}``.
    """
    command = editor.command.strip()
    if not command:
        raise EditorLaunchError("Editor is not configured. Set GITSTAGE_EDITOR or EDITOR.")

    line_number = line if isinstance(line, int) and line > 0 else 1
    template = list(editor.args) or ["{file}"]
    args = [arg.replace("{file}", path).replace("{line}", str(line_number)) for arg in template]
    if not any("{file}" in arg for arg in template):
        args.append(path)
    return [command, *args]


def open_file_in_editor(
    root: str,
    path: str,
    editor: EditorConfig,
    line: int | None = None,
    timeout: float = EDITOR_LAUNCH_TIMEOUT_SECONDS,
) -> None:
    """Launch the editor and wait briefly for it to fail.

    An editor that is still running after ``timeout`` seconds counts as
    launched successfully.
    """
    argv = build_editor_command(editor, path, line)
    try:
        proc = subprocess.Popen(
            argv,
            cwd=root,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise EditorLaunchError(f"Failed to launch editor {argv[0]}: {e}") from e

    try:
        _, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug("Editor %s still running; treating as launched", argv[0])
        return

    if proc.returncode != 0:
        details = (stderr or "").strip()
        raise EditorLaunchError(details or f"Editor command exited with code {proc.returncode}.")
