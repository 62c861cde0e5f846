"""Tests for --examples flag on CLI commands.

Parametrized to cover all commands that define examples text.
"""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from writeguard.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    ([], ["writeguard types", "writeguard validate orders"]),
    (["types"], ["writeguard -v types"]),
    (["validate"], ["--op update"]),
    (["insert"], ["--unchecked", "writeguard insert orders"]),
    (["update"], ["writeguard update orders '{\"id\": 1}'"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    """Generate a readable test ID from args."""
    args, _ = item
    return "_".join(args) or "root"


@pytest.mark.parametrize(
    "args,expected_keywords",
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(
    cli_runner: CliRunner, args: list[str], expected_keywords: list[str]
) -> None:
    result = cli_runner.invoke(cli, [*args, "--examples"])
    assert result.exit_code == 0
    assert "Examples for" in result.output
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in examples output for {args}"


class TestExamplesInHelp:
    """Test that --examples appears in --help output for commands that have it."""

    @pytest.mark.parametrize("command", ["types", "validate", "insert", "update"])
    def test_examples_in_help(self, cli_runner: CliRunner, command: str) -> None:
        result = cli_runner.invoke(cli, [command, "--help"])
        assert result.exit_code == 0
        assert "--examples" in result.output


class TestExamplesEagerExit:
    """Test that --examples exits before validation (eager option)."""

    def test_examples_skips_required_args(self, cli_runner: CliRunner) -> None:
        # 'update' requires TYPE_NAME KEY VALUES, but --examples should work without them
        result = cli_runner.invoke(cli, ["update", "--examples"])
        assert result.exit_code == 0
        assert "Examples for" in result.output
