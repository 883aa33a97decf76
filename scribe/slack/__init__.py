"""
Slack Integration
=================

Runs the relay as a Slack app:
- Bolt app and Socket Mode connection
- Event routing to per-channel agents
"""

from scribe.slack.app import create_slack_app, create_socket_handler
from scribe.slack.handlers import SlackEventRouter, register_handlers

__all__ = ["create_slack_app", "create_socket_handler", "SlackEventRouter", "register_handlers"]
