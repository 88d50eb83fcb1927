"""Stash-protected git transactions.

Two shapes are supported:

* ``run_with_stashed_changes`` stashes local edits, runs the task, and leaves
  the stash behind on success. The stash is only popped back when the task
  fails, because the caller never got the clean tree it asked for.
* ``run_with_temporary_stash`` stashes local edits for the duration of the
  task and always tries to bring them back, unless the caller asks to keep
  them (for example while a merge is in progress).

A stash push on a clean tree is a no-op, so both helpers compare the top of
the stash list before and after pushing to decide whether a stash exists.
"""

import logging
import time
from collections.abc import Callable

from .errors import GitError, StashRecoveryError
from .models import StashRef
from .process import GitRunner

logger = logging.getLogger(__name__)

STASH_LIST_FORMAT = "--format=%gd%x1f%s"


def read_top_stash(runner: GitRunner) -> StashRef | None:
    """Return the newest stash entry, if any."""
    result = runner.execute(["stash", "list", "-n", "1", STASH_LIST_FORMAT])
    line = result.stdout.strip()
    if not line:
        return None

    ref, _, subject = line.partition("\x1f")
    ref = ref.strip()
    if not ref:
        return None
    return StashRef(ref=ref, subject=subject.strip())


def _matches_marker(subject: str, marker: str) -> bool:
    # git records ``stash push -m <msg>`` as "On <branch>: <msg>".
    return subject == marker or subject.endswith(f": {marker}")


def push_marked_stash(runner: GitRunner, kind: str) -> str | None:
    """Stash everything, untracked files included.

    Returns the new stash ref, or None when there was nothing to stash.
    """
    marker = f"gitstage-{kind}-{time.time_ns()}"
    before = read_top_stash(runner)
    runner.execute(["stash", "push", "-u", "-m", marker])
    after = read_top_stash(runner)

    if after is None or not _matches_marker(after.subject, marker):
        return None
    if before is not None and after.ref == before.ref and before.subject == after.subject:
        return None

    logger.info("Stashed local changes as %s", after.ref)
    return after.ref


def _restore_details(runner: GitRunner, stash_ref: str) -> str | None:
    """Pop ``stash_ref``; return the failure details, or None on success."""
    try:
        result = runner.execute(["stash", "pop", stash_ref], expected_codes=(0, 1))
    except GitError as error:
        # The stash may have been dropped by another process.
        return str(error) or "Unknown error."
    if result.code == 0:
        logger.info("Restored stashed changes from %s", stash_ref)
        return None
    return result.stderr.strip() or result.stdout.strip() or "Unknown error."


def run_with_stashed_changes(task: Callable[[], None], runner: GitRunner) -> None:
    """Run ``task`` on a clean tree and leave the current edits stashed."""
    stash_ref = push_marked_stash(runner, "leave")
    if stash_ref is None:
        task()
        return

    try:
        task()
    except Exception as error:
        details = _restore_details(runner, stash_ref)
        if details is not None:
            raise StashRecoveryError(
                f"{error} Also failed to restore stashed changes automatically: {details}",
                stash_ref=stash_ref,
            ) from error
        raise

    logger.info("Left local changes stashed as %s", stash_ref)


def run_with_temporary_stash(
    task: Callable[[], None],
    runner: GitRunner,
    should_keep_stash_on_error: Callable[[Exception], bool] | None = None,
) -> None:
    """Run ``task`` on a clean tree and put the current edits back afterwards.

    Args:
        task: The operation that needs a clean working tree.
        runner: Git runner bound to the repository.
        should_keep_stash_on_error: Consulted only when ``task`` fails. When it
            returns True the stash is kept and its ref is named in the error so
            it can be restored by hand.
    """
    stash_ref = push_marked_stash(runner, "temp")
    if stash_ref is None:
        task()
        return

    task_error: Exception | None = None
    try:
        task()
    except Exception as error:
        task_error = error

    if task_error is not None and should_keep_stash_on_error is not None:
        if should_keep_stash_on_error(task_error):
            logger.info("Keeping %s stashed for manual recovery", stash_ref)
            raise StashRecoveryError(
                f"{task_error} Local changes were stashed as {stash_ref}; "
                "restore them after resolving or aborting the merge.",
                stash_ref=stash_ref,
            ) from task_error

    details = _restore_details(runner, stash_ref)
    if details is not None:
        if task_error is not None:
            raise StashRecoveryError(
                f"{task_error} Also failed to restore stashed changes: {details}",
                stash_ref=stash_ref,
            ) from task_error
        raise StashRecoveryError(
            f"Task completed but failed to restore stashed changes: {details}",
            stash_ref=stash_ref,
        )

    if task_error is not None:
        raise task_error
