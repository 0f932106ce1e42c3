"""
Version chain CLI tool.

This tool works with a VersionChain defined in an importable module:
- describe: List versions, latest version and fingerprint
- check: Verify compatibility between consecutive versions
- upgrade: Migrate a JSON record to the latest (or a given) version
- inspect: Report whether a JSON record is current

Usage:
    versionchain describe --chain myapp.records:chain
    versionchain check --chain myapp.records:chain
    versionchain upgrade --chain myapp.records:chain --input note.json --target 2
    versionchain inspect --chain myapp.records:chain --input note.json

Invariants:
    - Breaking changes and failed upgrades cause non-zero exit code
    - JSON output is deterministic (sorted keys)

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format stable for CI parsing
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from typing import Any, Optional

import json_log_formatter

from ..chain import UpgradeResult, VersionChain
from ..compat import check_chain
from ..config import Settings, get_settings
from ..errors import UnknownTargetVersionError
from ..issues import is_invalid_version_type, is_missing_version, is_unsupported_version

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings.

    Args:
        settings: versionchain settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def classify_error(error: Optional[Exception]) -> str:
    """Name the kind of migration failure for display."""
    if isinstance(error, UnknownTargetVersionError):
        return "unknown_target_version"
    if is_missing_version(error):
        return "missing_version"
    if is_invalid_version_type(error):
        return "invalid_version_type"
    if is_unsupported_version(error):
        return "unsupported_version"
    return "validation_error"


class ChainCLI:
    """CLI tool for version chains.

    Example:
        >>> cli = ChainCLI()
        >>> cli.describe(chain)["latest_version"]
        2
        >>> cli.check(chain)  # (is_compatible, issues)
        (True, [])
    """

    def describe(self, chain: VersionChain) -> dict[str, Any]:
        """Summarize a chain.

        Args:
            chain: Chain to describe

        Returns:
            Dictionary with versions, latest version and fingerprint
        """
        return {
            "latest_version": chain.latest_version,
            "fingerprint": chain.fingerprint or "unfrozen",
            "versions": [
                {
                    "version": h.version,
                    "schema": h.schema.__name__,
                    "has_upgrade": h.upgrade is not None,
                }
                for h in chain
            ],
        }

    def check(self, chain: VersionChain) -> tuple[bool, list[str]]:
        """Check consecutive versions for breaking changes.

        Returns:
            Tuple of (is_compatible, list_of_issues)
        """
        issues = [str(c) for c in check_chain(chain) if c.is_breaking]
        return len(issues) == 0, issues

    def upgrade(
        self,
        chain: VersionChain,
        data: Any,
        target: Optional[int] = None,
    ) -> UpgradeResult:
        """Migrate a record to the latest or the target version."""
        if target is None:
            return chain.safe_upgrade_to_latest(data)
        return chain.safe_upgrade_to(data, target)

    def inspect(self, chain: VersionChain, data: Any) -> dict[str, Any]:
        """Report how a record relates to the latest version."""
        declared = data.get("v") if isinstance(data, dict) else None
        return {
            "declared_version": declared,
            "latest_version": chain.latest_version,
            "is_latest": chain.is_latest(data),
            "has_latest_structure": chain.has_latest_structure(data),
            "needs_upgrade": chain.needs_upgrade(data),
        }

    def format_failure(self, result: UpgradeResult) -> list[str]:
        """Render a failed upgrade as output lines."""
        lines = [f"Upgrade failed ({classify_error(result.error)}):"]
        errors = getattr(result.error, "errors", None)
        if callable(errors):
            for issue in errors(include_url=False):
                loc = ".".join(str(part) for part in issue["loc"]) or "<root>"
                lines.append(f"  - {loc}: {issue['msg']}")
        else:
            lines.append(f"  - {result.error}")
        return lines


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the version chain tool."""
    parser = argparse.ArgumentParser(description="Versioned record migration tool")
    parser.add_argument(
        "--chain", required=True, help="Chain location as 'module:attribute'"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # describe command
    describe_parser = subparsers.add_parser("describe", help="Show registered versions")
    describe_parser.add_argument(
        "--format", choices=["text", "json"], default="text", help="Output format"
    )

    # check command
    subparsers.add_parser("check", help="Check compatibility between versions")

    # upgrade command
    upgrade_parser = subparsers.add_parser("upgrade", help="Migrate a JSON record")
    upgrade_parser.add_argument("--input", "-i", required=True, help="JSON record file ('-' for stdin)")
    upgrade_parser.add_argument("--target", "-t", type=int, help="Target version (default: latest)")
    upgrade_parser.add_argument("--output", "-o", help="Output file (default: stdout)")

    # inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Inspect a JSON record")
    inspect_parser.add_argument("--input", "-i", required=True, help="JSON record file ('-' for stdin)")

    args = parser.parse_args(argv)
    setup_logging(get_settings())

    chain = _load_chain(args.chain)
    cli = ChainCLI()

    if args.command == "describe":
        summary = cli.describe(chain)
        if args.format == "json":
            print(json.dumps(summary, indent=2, sort_keys=True))
        else:
            print(f"Latest version: {summary['latest_version']}")
            print(f"Fingerprint: {summary['fingerprint']}")
            for entry in summary["versions"]:
                upgrade = "upgrade" if entry["has_upgrade"] else "no upgrade"
                print(f"  v{entry['version']}: {entry['schema']} ({upgrade})")
        sys.exit(0)

    elif args.command == "check":
        is_compatible, issues = cli.check(chain)

        if is_compatible:
            print("Version chain is compatible")
            sys.exit(0)
        else:
            print(f"Version chain check FAILED with {len(issues)} breaking change(s):")
            for issue in issues:
                print(f"  - {issue}")
            sys.exit(1)

    elif args.command == "upgrade":
        data = _read_json(args.input)
        result = cli.upgrade(chain, data, args.target)

        if not result.success:
            for line in cli.format_failure(result):
                print(line)
            sys.exit(1)

        output = json.dumps(result.data.model_dump(mode="json"), indent=2, sort_keys=True)
        if args.output:
            with open(args.output, "w") as f:
                f.write(output)
            print(f"Record written to {args.output}", file=sys.stderr)
        else:
            print(output)
        sys.exit(0)

    elif args.command == "inspect":
        data = _read_json(args.input)
        print(json.dumps(cli.inspect(chain, data), indent=2, sort_keys=True))
        sys.exit(0)


def _load_chain(location: str) -> VersionChain:
    """Load a chain from 'module:attribute' (attribute defaults to 'chain').

    The attribute may also be a zero-argument factory returning a chain.
    """
    module_path, _, attr = location.partition(":")
    module = importlib.import_module(module_path)
    attr = attr or "chain"
    if not hasattr(module, attr):
        raise ValueError(f"Module {module_path} has no attribute '{attr}'")

    chain = getattr(module, attr)
    if callable(chain) and not isinstance(chain, VersionChain):
        chain = chain()
    if not isinstance(chain, VersionChain):
        raise ValueError(f"{location} is not a VersionChain")
    logger.debug(f"Loaded chain {location} with versions {chain.versions}")
    return chain


def _read_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


if __name__ == "__main__":
    main()
