from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table

from .models import ExecutionResult, NotificationData

SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

SUCCESS_SYMBOL = "✓"
ERROR_SYMBOL = "✗"
SKIP_SYMBOL = "⊘"

_RESULT_STYLES = {
    ExecutionResult.SUCCESS: (SUCCESS_COLOR, SUCCESS_SYMBOL),
    ExecutionResult.FAILED: (ERROR_COLOR, ERROR_SYMBOL),
    ExecutionResult.SKIPPED: (WARNING_COLOR, SKIP_SYMBOL),
}


class SummaryTableRenderer:
    """Renders a run snapshot as Rich tables for console output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def _colorize(value: int, *, color: str) -> str:
        if value == 0:
            return f"[{DIM_COLOR}]{value}[/{DIM_COLOR}]"
        return f"[{color}]{value}[/{color}]"

    def build_accounts_table(self, data: NotificationData) -> Table:
        accounts = data.accounts
        color, symbol = _RESULT_STYLES[data.meta.execution_result]
        table = Table(title=f"[{color}]{symbol} Check-in {data.meta.execution_result.value}[/{color}]")
        table.add_column("Accounts", justify="right")
        table.add_column("Succeeded", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Failed #", justify="left")
        table.add_row(
            str(accounts.total),
            self._colorize(accounts.successful, color=SUCCESS_COLOR),
            self._colorize(accounts.skipped, color=WARNING_COLOR),
            self._colorize(accounts.failed, color=ERROR_COLOR),
            ", ".join(f"#{index}" for index in accounts.failed_indexes) or "-",
        )
        return table

    def build_games_table(self, data: NotificationData) -> Optional[Table]:
        if not data.games:
            return None
        table = Table(title="Roles by game")
        table.add_column("Game", justify="left")
        table.add_column("Total", justify="right")
        table.add_column("Checked in", justify="right")
        table.add_column("Already", justify="right")
        table.add_column("Failed", justify="right")
        for game in data.games:
            table.add_row(
                game.game_name,
                str(game.total),
                self._colorize(game.succeeded, color=SUCCESS_COLOR),
                self._colorize(game.already_attended, color=WARNING_COLOR),
                self._colorize(game.failed, color=ERROR_COLOR),
            )
        return table

    def render(self, data: NotificationData) -> None:
        self.console.print(self.build_accounts_table(data))
        games_table = self.build_games_table(data)
        if games_table is not None:
            self.console.print(games_table)
