"""Commands — push, install, update, uninstall, status, and list.

Each command takes an ``NlmContext`` and returns a report. Nothing here
prints; rendering belongs to the CLI.
"""
