"""
Installer stages: version resolution, state inspection, planning, execution.
"""

from .versions import (
    Latest,
    Stable,
    Explicit,
    FromFile,
    ResolvedVersion,
    Unresolved,
    ReleaseIndex,
    parse_version_spec,
    resolve,
)
from .target import InstallTarget, LinkPolicy
from .inspector import InstallState, inspect
from .planner import (
    Flags,
    Skip,
    Install,
    Reinstall,
    Update,
    CheckReport,
    DryRunReport,
    plan,
)
from .executor import Executor, ExecutionResult
from .reconciler import Outcome, reconcile

__all__ = [
    "Latest",
    "Stable",
    "Explicit",
    "FromFile",
    "ResolvedVersion",
    "Unresolved",
    "ReleaseIndex",
    "parse_version_spec",
    "resolve",
    "InstallTarget",
    "LinkPolicy",
    "InstallState",
    "inspect",
    "Flags",
    "Skip",
    "Install",
    "Reinstall",
    "Update",
    "CheckReport",
    "DryRunReport",
    "plan",
    "Executor",
    "ExecutionResult",
    "Outcome",
    "reconcile",
]
