"""agentsandbox -- tools and OAuth login for the Agent Sandbox code-execution API.

This package exposes a remote sandbox (Python/Bash execution with persistent
sessions, file storage and execution history) as a set of callable *tools*
for an agent host, and provides the OAuth2 PKCE login flow that mints the
credentials those tools use.

Typical workflow::

    agentsandbox auth login                      # mint and store credentials
    agentsandbox tools call sandbox_execute \\
        --params '{"language": "python", "code": "print(1)"}'

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Settings resolution, XDG paths and host context discovery.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
