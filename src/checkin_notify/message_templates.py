"""Built-in templates for the notification channels."""

from __future__ import annotations

from typing import Dict, List

from .models import ExecutionResult, LogEntry, NotificationData
from .templating import FunctionTemplate, StringTemplate

APP_TITLE = "Skland Daily Check-in"

BARK_TITLE = StringTemplate("Skland Auto Check-in")
BROADCAST_TITLE = StringTemplate(f"[{APP_TITLE}]")

_SUBTITLES = {
    ExecutionResult.SKIPPED: "Already checked in",
    ExecutionResult.FAILED: "Failed ❗",
    ExecutionResult.SUCCESS: "Success",
}

# Pre-formatted log lines (account headers or summary rulers) switch the body
# to raw passthrough.
_PREFORMATTED_MARKERS = ("---", "==")


def result_subtitle(data: NotificationData) -> str:
    return _SUBTITLES.get(data.meta.execution_result, _SUBTITLES[ExecutionResult.SUCCESS])


def group_logs_by_account(logs: List[LogEntry]) -> Dict[int, List[LogEntry]]:
    grouped: Dict[int, List[LogEntry]] = {}
    for entry in logs:
        grouped.setdefault(entry.account_number, []).append(entry)
    return grouped


def build_structured_body(data: NotificationData) -> str:
    accounts = data.accounts
    lines: List[str] = [f"## {APP_TITLE}"]

    for account_number, entries in group_logs_by_account(data.logs).items():
        if account_number <= 0:
            continue
        lines.append("")
        lines.append(f"--- Account {account_number}/{accounts.total} ---")
        lines.extend(entry.message for entry in entries)

    lines.append("")
    lines.append("========== Summary ==========")
    lines.append("Accounts:")
    lines.append(f"  • Total: {accounts.total}")
    lines.append(f"  • Succeeded: {accounts.successful}")
    lines.append(f"  • Skipped: {accounts.skipped}")
    if accounts.failed > 0:
        indexes = ", #".join(str(index) for index in accounts.failed_indexes)
        lines.append(f"  • Failed: {accounts.failed} (accounts #{indexes})")

    for game in data.games:
        lines.append("")
        lines.append(f"[{game.game_name}] roles:")
        lines.append(f"  • Total: {game.total}")
        lines.append(f"  • Checked in now: {game.succeeded}")
        lines.append(f"  • Already checked in: {game.already_attended}")
        if game.failed > 0:
            lines.append(f"  • Failed: {game.failed}")

    return "\n\n".join(lines)


def build_full_body(data: NotificationData) -> str:
    """Render the message body.

    Callers that still push pre-formatted text through the legacy collector get
    their log lines back verbatim; everything else is built from the structured
    statistics.
    """
    if any(marker in entry.message for entry in data.logs for marker in _PREFORMATTED_MARKERS):
        return "\n\n".join(entry.message for entry in data.logs)
    return build_structured_body(data)


BARK_SUBTITLE = FunctionTemplate(result_subtitle)
FULL_BODY = FunctionTemplate(build_full_body)
SNAPSHOT_PAYLOAD = FunctionTemplate(lambda data: data.to_dict())
