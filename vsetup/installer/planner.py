"""
Reconciliation planning.

``plan()`` is a pure function: given the resolved target version, the
observed install state and the user's flags, it picks exactly one action.
Rules are evaluated top to bottom and the first match wins:

1. ``--check``                     -> CheckReport
2. ``--dry-run``                   -> DryRunReport of what rules 3+ would pick
3. version unresolved              -> Skip if installed, else NetworkError
4. not installed                   -> Install
5. same version, ``--force``       -> Reinstall
6. same version, ``--update``      -> Skip (up to date)
7. same version                    -> Skip (already installed)
8. other version, ``--update``     -> Update
9. other version, ``--force``      -> Reinstall
10. other version                  -> Skip with advisory
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from ..core.exceptions import NetworkError
from .inspector import InstallState
from .versions import ResolvedVersion, Unresolved


@dataclass(frozen=True)
class Flags:
    """User-selected reconciliation flags."""

    force: bool = False
    update_only: bool = False
    check_only: bool = False
    dry_run: bool = False


# ============================================================================
# Plans
# ============================================================================


@dataclass(frozen=True)
class Skip:
    reason: str

    def describe(self) -> str:
        return f"skip: {self.reason}"


@dataclass(frozen=True)
class Install:
    version: str

    def describe(self) -> str:
        return f"install {self.version}"


@dataclass(frozen=True)
class Reinstall:
    previous: Optional[str]
    version: str

    def describe(self) -> str:
        if self.previous and self.previous != self.version:
            return f"reinstall {self.version} (replacing {self.previous})"
        return f"reinstall {self.version}"


@dataclass(frozen=True)
class Update:
    previous: Optional[str]
    version: str

    def describe(self) -> str:
        return f"update {self.previous or 'unknown'} -> {self.version}"


@dataclass(frozen=True)
class CheckReport:
    state: InstallState

    def describe(self) -> str:
        if self.state.present:
            return f"check: installed ({self.state.version or 'unknown version'})"
        return "check: not installed"


@dataclass(frozen=True)
class DryRunReport:
    plan: "Plan"

    def describe(self) -> str:
        return f"dry run: would {self.plan.describe()}"


Plan = Union[Skip, Install, Reinstall, Update, CheckReport, DryRunReport]

MUTATING_PLANS = (Install, Reinstall, Update)


def is_mutating(plan: Plan) -> bool:
    """True if executing ``plan`` changes the install directory."""
    return isinstance(plan, MUTATING_PLANS)


def plan(
    resolved: Union[ResolvedVersion, Unresolved],
    state: InstallState,
    flags: Flags,
) -> Plan:
    """
    Decide what to do.

    Args:
        resolved: Target version, or Unresolved if latest/stable lookup failed
        state: Observed install state
        flags: User flags

    Returns:
        The plan to execute

    Raises:
        NetworkError: If the version is unresolved and nothing is installed
    """
    if flags.check_only:
        return CheckReport(state)

    if flags.dry_run:
        return DryRunReport(plan(resolved, state, replace(flags, dry_run=False)))

    if isinstance(resolved, Unresolved):
        if state.present:
            return Skip(
                f"could not resolve {resolved.spec} version; "
                f"keeping installed {state.version or 'version'}"
            )
        raise NetworkError(
            f"Could not resolve {resolved.spec} version and V is not installed: "
            f"{resolved.reason}"
        )

    target = resolved.version

    if not state.present:
        return Install(target)

    if state.version == target:
        if flags.force:
            return Reinstall(state.version, target)
        if flags.update_only:
            return Skip(f"already up to date: {target}")
        return Skip(f"already at requested version {target}. Use --force to reinstall.")

    if flags.update_only:
        return Update(state.version, target)

    if flags.force:
        return Reinstall(state.version, target)

    return Skip(
        f"V {state.version or 'of unknown version'} is installed but {target} was "
        "requested. Use --update or --force to replace it."
    )


__all__ = [
    "Flags",
    "Skip",
    "Install",
    "Reinstall",
    "Update",
    "CheckReport",
    "DryRunReport",
    "Plan",
    "is_mutating",
    "plan",
]
