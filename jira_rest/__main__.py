"""Entry point for running jira_rest as a module.

Usage:
    python -m jira_rest [OPTIONS] COMMAND [ARGS]...

Examples:
    python -m jira_rest --version
    python -m jira_rest check
    python -m jira_rest endpoints
    python -m jira_rest call find_issue PROJ-1 -o fields=summary
"""

from jira_rest.cli import main

if __name__ == "__main__":
    main()
