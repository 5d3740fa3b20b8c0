"""
vsetup CLI argument parser.

This module implements the command-line interface using argparse. Every flag
the shell and PowerShell installers accepted maps onto one option here.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vsetup import __version__
from vsetup.core.environment import Environment
from vsetup.core.exceptions import ConfigError, VSetupError
from vsetup.core.platform import detect_platform, with_arch
from vsetup.installer.planner import (
    CheckReport,
    DryRunReport,
    Flags,
    Skip,
    is_mutating,
)
from vsetup.installer.reconciler import Outcome, reconcile
from vsetup.installer.target import InstallTarget, LinkPolicy
from vsetup.installer.versions import (
    DEFAULT_REPO,
    ReleaseIndex,
    ResolvedVersion,
    download_url,
    parse_version_spec,
)
from vsetup.cli.utils import (
    find_config,
    load_yaml_config,
    safe_print,
    write_github_outputs,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_INSTALLED = 3
EXIT_INTERRUPTED = 130


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit code 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


class CLI:
    """vsetup command-line interface."""

    def __init__(self, env: Optional[Environment] = None):
        """
        Initialize CLI with argument parser.

        Args:
            env: Environment snapshot (captured from the process if None)
        """
        self.env = env
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = _ArgumentParser(
            prog="vsetup",
            description=f"vsetup {__version__} - install the V programming language",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version",
            metavar="VERSION",
            help="Version to install: a release tag, 'latest' or 'stable' [default: latest]",
        )
        parser.add_argument(
            "--version-file",
            type=Path,
            metavar="PATH",
            help="Read the version to install from a file",
        )
        parser.add_argument(
            "--dir",
            type=Path,
            metavar="PATH",
            help="Install root; V is placed in PATH/v [default: home directory]",
        )
        parser.add_argument(
            "--force", action="store_true", help="Reinstall even if already installed"
        )
        parser.add_argument(
            "--update",
            action="store_true",
            help="Replace an installed version that differs from the requested one",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Only report whether V is installed (exit 3 if not)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would happen without changing anything",
        )
        parser.add_argument(
            "--link", action="store_true", help="Link the V binary onto PATH (default)"
        )
        parser.add_argument(
            "--no-link", action="store_true", help="Do not link the V binary onto PATH"
        )
        parser.add_argument(
            "--link-dir",
            type=Path,
            metavar="PATH",
            help="Directory that receives the link [default: ~/.local/bin]",
        )
        parser.add_argument(
            "--from-source",
            action="store_true",
            help="Download the tagged source archive and build it with make",
        )
        parser.add_argument(
            "--arch",
            metavar="ARCH",
            help="Override the detected architecture (x64, arm64, ...)",
        )
        parser.add_argument(
            "--repo",
            metavar="OWNER/NAME",
            help=f"GitHub repository to install from [default: {DEFAULT_REPO}]",
        )
        parser.add_argument(
            "--token",
            metavar="TOKEN",
            help="GitHub API token [default: $GITHUB_TOKEN]",
        )
        parser.add_argument(
            "--github-output",
            action="store_true",
            help="Append bin-path, v-bin-path, version and architecture to $GITHUB_OUTPUT",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Configuration file [default: ./vsetup.yaml]",
        )
        parser.add_argument(
            "--timeout",
            type=int,
            metavar="SECONDS",
            help="Network timeout in seconds [default: 30]",
        )
        parser.add_argument(
            "--lock-timeout",
            type=float,
            metavar="SECONDS",
            help="Seconds to wait for another vsetup run on the same directory [default: 60]",
        )
        parser.add_argument(
            "--quiet", "-q", action="store_true", help="Only print warnings and errors"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success or skip, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        try:
            return self._install(parsed_args)
        except KeyboardInterrupt:
            logger.error("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except VSetupError as e:
            logger.error(f"❌ {e}")
            return EXIT_ERROR

    def _configure_logging(self, args):
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.WARNING
            format_str = "%(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(level=level, format=format_str, force=True)

    def _install(self, args) -> int:
        if args.link and args.no_link:
            raise ConfigError("--link and --no-link cannot be used together.")

        env = self.env or Environment.capture()

        config_file = find_config(args.config, Path.cwd())
        config = load_yaml_config(config_file, required=True) if config_file else {}

        spec = parse_version_spec(
            _pick(args.version, config.get("version"), None), args.version_file
        )
        platform = with_arch(detect_platform(), args.arch)

        root = Path(args.dir or config.get("dir") or env.home).expanduser()
        link_dir = args.link_dir or config.get("link_dir")

        if args.no_link or (not args.link and config.get("link") is False):
            link_policy = LinkPolicy.SKIP
        else:
            link_policy = LinkPolicy.CREATE

        target = InstallTarget(
            root=root.absolute(),
            platform=platform,
            link_policy=link_policy,
            link_dir=Path(link_dir).expanduser() if link_dir else None,
            from_source=args.from_source or bool(config.get("from_source", False)),
        )
        flags = Flags(
            force=args.force,
            update_only=args.update,
            check_only=args.check,
            dry_run=args.dry_run,
        )
        index = ReleaseIndex(
            repo=args.repo or config.get("repo", DEFAULT_REPO),
            token=args.token or env.get("GITHUB_TOKEN"),
            timeout=_pick(args.timeout, config.get("timeout"), 30),
        )

        outcome = reconcile(
            spec,
            target,
            flags,
            env,
            index,
            lock_timeout=_pick(args.lock_timeout, config.get("lock_timeout"), 60),
        )
        exit_code = self._report(outcome, target, index, args)

        if args.github_output and not flags.check_only and not flags.dry_run:
            self._write_outputs(outcome, target, env)

        return exit_code

    def _report(self, outcome: Outcome, target: InstallTarget, index, args) -> int:
        plan = outcome.plan

        if isinstance(plan, CheckReport):
            if plan.state.present:
                if not args.quiet:
                    safe_print(
                        f"✅ V is already installed: {plan.state.version or 'unknown version'}"
                    )
                return EXIT_OK
            if not args.quiet:
                safe_print("❌ V is not installed.")
            return EXIT_NOT_INSTALLED

        if isinstance(plan, DryRunReport):
            logger.info("🔍 Dry run:")
            logger.info(f" - Action: {plan.plan.describe()}")
            logger.info(f" - Target version: {outcome.resolved}")
            logger.info(f" - Install dir: {target.tree_dir}")
            if isinstance(outcome.resolved, ResolvedVersion) and is_mutating(plan.plan):
                url = download_url(
                    outcome.resolved, target.platform, index.repo, target.from_source
                )
                logger.info(f" - Download URL: {url}")
            logger.info(f" - Force install: {args.force}")
            logger.info(f" - Update only: {args.update}")
            logger.info(f" - Link: {target.link_policy.value}")
            return EXIT_OK

        if isinstance(plan, Skip):
            logger.info(f"✅ {plan.reason}")
            return EXIT_OK

        result = outcome.result
        logger.info(
            f"✅ V {result.version} installed successfully in {target.tree_dir}! "
            "Run: v version"
        )
        return EXIT_OK

    def _write_outputs(self, outcome: Outcome, target: InstallTarget, env: Environment):
        output_file = env.get("GITHUB_OUTPUT")
        if not output_file:
            logger.warning("⚠️ --github-output given but GITHUB_OUTPUT is not set")
            return

        version = outcome.result.version or outcome.state.version or ""
        write_github_outputs(
            Path(output_file),
            {
                "bin-path": str(target.tree_dir),
                "v-bin-path": str(target.binary_path),
                "version": version,
                "architecture": target.platform.arch,
            },
        )


def _pick(flag, configured, default):
    """First value that was actually set: CLI flag, then config, then default."""
    if flag is not None:
        return flag
    if configured is not None:
        return configured
    return default


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
