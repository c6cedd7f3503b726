"""app_config: apply centrally managed configuration only when it changes.

Each invocation fetches one versioned configuration blob per source
(AWS AppConfig, SSM Parameter Store or a local mock), compares its
version token with the last one applied, and on change renders a
handlebars template, writes it atomically, runs a follow-up command and
records the new version in a SQLite state file.
"""

__version__ = "0.2.0"

from app_config.core.orchestrator import ApplyOrchestrator
from app_config.core.state_store import StateStore
from app_config.cli.app import app as cli_app

__all__ = ["ApplyOrchestrator", "StateStore", "cli_app", "__version__"]
