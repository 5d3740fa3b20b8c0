"""
Installer reconciler.

Runs the four stages in order: resolve the requested version, inspect the
install root, plan, execute. Inspection, planning and execution happen under
an exclusive per-root lock so two invocations never interleave on one root.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..core.environment import Environment
from ..core.locking import LockManager
from .executor import ExecutionResult, Executor
from .inspector import InstallState, inspect
from .planner import Flags, Plan, plan as make_plan
from .target import InstallTarget
from .versions import ReleaseIndex, ResolvedVersion, Unresolved, VersionSpec, resolve

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    """Everything one reconciliation decided and did."""

    resolved: Union[ResolvedVersion, Unresolved]
    state: InstallState
    plan: Plan
    result: ExecutionResult


def reconcile(
    spec: VersionSpec,
    target: InstallTarget,
    flags: Flags,
    env: Environment,
    index: ReleaseIndex,
    executor: Optional[Executor] = None,
    lock_manager: Optional[LockManager] = None,
    lock_timeout: float = 60,
) -> Outcome:
    """
    Bring the install root in line with the requested version.

    Args:
        spec: Requested version
        target: Install target
        flags: force/update/check/dry-run flags
        env: Environment snapshot
        index: Release index for latest/stable lookups and downloads
        executor: Executor to use (default: one built from env and index)
        lock_manager: Lock manager (default: locks under the env temp dir)
        lock_timeout: Seconds to wait for the install-root lock

    Returns:
        Outcome with the plan and execution result

    Raises:
        VSetupError: Any fatal error from resolution, planning or execution
    """
    executor = executor or Executor(env, index)
    lock_manager = lock_manager or LockManager(env.temp_dir / "vsetup-locks")

    resolved = resolve(spec, index)

    with lock_manager.install_lock(target.root, timeout=lock_timeout):
        state = inspect(target)
        logger.debug(f"Install state: {state}")

        plan = make_plan(resolved, state, flags)
        logger.debug(f"Plan: {plan}")

        result = executor.execute(
            plan, target, resolved if isinstance(resolved, ResolvedVersion) else None
        )

    return Outcome(resolved=resolved, state=state, plan=plan, result=result)


__all__ = ["Outcome", "reconcile"]
