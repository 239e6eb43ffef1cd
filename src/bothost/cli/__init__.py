"""CLI module for operating bothost.

This module provides command-line tools for managing bots, sampling their
resource usage, inspecting analytics and validating configuration.

Usage:
    bothost --help
    bothost bots create "Echo Bot" --runtime python
    bothost bots start <bot-id>
    bothost analytics overview
"""

from bothost.cli.main import app

__all__ = ["app"]
