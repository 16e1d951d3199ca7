"""
Browser automation MCP server with a resilient retry layer.

Every browser action runs through a named retry strategy. Routine actions
(navigate, click, screenshot, ...) retry briefly and give up quickly; health
actions (health check, page recovery) retry more often with short delays;
critical actions (browser restart) get few attempts and a generous timeout.

Routine failures never trigger recovery on their own. Recovery is explicit:
either the agent calls ensure_healthy / recover_page / restart_browser, or the
escalation supervisor runs a health check (and, if that fails, a restart)
after several consecutive routine calls exhausted their retries.

File tools are confined by a path sandbox: deny rules win over allow rules,
prefix matches respect directory boundaries, and symlinks are resolved before
any rule is checked.
"""

__version__ = "0.1.0"
