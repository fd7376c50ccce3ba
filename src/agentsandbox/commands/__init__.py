"""Built-in CLI sub-commands for agentsandbox.

* :mod:`~agentsandbox.commands.auth` -- log in and inspect credentials.
* :mod:`~agentsandbox.commands.tools` -- list, describe and call tools.
* :mod:`~agentsandbox.commands.config` -- view and modify settings.

Each module exports a :class:`typer.Typer` sub-application mounted on the
root app in :mod:`agentsandbox.app`.
"""
