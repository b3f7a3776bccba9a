"""User-facing failure notification for the ODS export.

A failed export is reported on stderr and, when the process is attached to
a terminal, blocks until the user acknowledges it. A Slack webhook is
notified as well when ``SLACK_WEBHOOK_URL`` is set.
"""

import os
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, TextIO

import requests

from ods_pipeline.logging_config import create_logger

logger = create_logger(__name__)

FAILURE_MESSAGE = (
    "An error occurred while generating the spreadsheet. "
    "Check the log output for details."
)


class AlertSeverity(Enum):
    """Alert severity levels."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    INFO = "INFO"


class AlertManager:
    """Delivers alerts to the console user and, optionally, to Slack.

    Attributes:
        slack_webhook_url: Slack webhook URL
        interactive: Wait for acknowledgement after showing an alert
        stream: Where the alert banner is written
    """

    def __init__(
        self,
        slack_webhook_url: Optional[str] = None,
        interactive: Optional[bool] = None,
        stream: Optional[TextIO] = None,
    ):
        self.slack_webhook_url = slack_webhook_url or os.getenv("SLACK_WEBHOOK_URL")
        self.stream = stream or sys.stderr
        if interactive is None:
            interactive = sys.stdin is not None and sys.stdin.isatty()
        self.interactive = interactive

    def _format_context(self, context: Dict[str, Any]) -> str:
        """Format context dictionary as readable string."""
        return "\n".join(f"{key}: {value}" for key, value in context.items())

    def _show_blocking(self, title: str, message: str, context: str) -> None:
        """Print the alert banner and wait for the user when interactive."""
        border = "=" * 72
        lines = [border, f"  {title}", border, message]
        if context:
            lines.extend(["", context])
        lines.append(border)
        print("\n".join(lines), file=self.stream, flush=True)

        if self.interactive:
            try:
                input("Press Enter to close...")
            except EOFError:
                pass

    def _send_slack_alert(
        self, title: str, message: str, severity: AlertSeverity, context: str
    ) -> bool:
        """Send alert to Slack.

        Returns:
            True if successful, False otherwise
        """
        slack_message = {
            "attachments": [
                {
                    "color": "#FF0000" if severity == AlertSeverity.CRITICAL else "#FFCC00",
                    "title": f"[{severity.value}] {title}",
                    "text": message,
                    "fields": [
                        {
                            "title": "Timestamp",
                            "value": datetime.now(timezone.utc).isoformat(),
                            "short": True,
                        }
                    ],
                    "footer": "ODS Indicator Export",
                }
            ]
        }
        if context:
            slack_message["attachments"][0]["fields"].append(
                {"title": "Context", "value": f"```{context}```", "short": False}
            )

        try:
            response = requests.post(self.slack_webhook_url, json=slack_message, timeout=10)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send Slack alert: {e}")
            return False

        logger.info(f"Sent Slack alert: {title}")
        return True

    def send_alert(
        self,
        title: str,
        message: str,
        severity: AlertSeverity = AlertSeverity.CRITICAL,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, bool]:
        """Send alert across configured channels.

        Returns:
            Dictionary of channel results (success/failure)
        """
        context_str = self._format_context(context) if context else ""
        results = {}

        if self.slack_webhook_url:
            results["slack"] = self._send_slack_alert(title, message, severity, context_str)

        self._show_blocking(title, message, context_str)
        results["console"] = True
        return results


def notify_failure(
    error: BaseException,
    context: Optional[Dict[str, Any]] = None,
    alert_manager: Optional[AlertManager] = None,
) -> Dict[str, bool]:
    """Tell the user that the export failed.

    :param error: Exception that stopped the export
    :param context: Extra details shown below the message
    :param alert_manager: Manager to use (a new one by default)
    """
    manager = alert_manager or AlertManager()
    return manager.send_alert(
        title="ODS export failed",
        message=FAILURE_MESSAGE,
        severity=AlertSeverity.CRITICAL,
        context={"Error": f"{type(error).__name__}: {error}", **(context or {})},
    )
