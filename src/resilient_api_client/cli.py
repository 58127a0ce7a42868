"""CLI for the resilient API client.

Commands:
- request: Send an authenticated request and print the response body
- login: Exchange credentials for a token pair and store it
- logout: End the session and clear stored tokens
- csrf: Fetch and store a CSRF token
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich import print_json
from rich.markup import escape

from .application.api_client import ApiClient
from .config import ClientConfig
from .config_file import load_client_config_file
from .exceptions import StructuredError


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: ClientConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    client: ApiClient


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: ClientConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the api-client entry point.")


class InvalidParamError(typer.BadParameter):
    """Raised when a --param value is not in key=value form."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Expected key=value, got '{value}'.")


class InvalidJsonDataError(typer.BadParameter):
    """Raised when --data is not valid JSON."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"--data must be valid JSON: {reason}")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _parse_params(values: list[str] | None) -> dict[str, str] | None:
    if not values:
        return None
    params: dict[str, str] = {}
    for value in values:
        key, separator, param_value = value.partition("=")
        if not separator or not key.strip():
            raise InvalidParamError(value)
        params[key.strip()] = param_value
    return params


def _parse_data(data: str | None) -> object:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidJsonDataError(str(exc)) from exc


def _print_error(error: StructuredError) -> None:
    rprint(f"[red]✗ {escape(error.message)}[/red]")
    rprint(f"  status: {error.status}")
    rprint(f"  kind: {error.kind.value}")
    if error.code:
        rprint(f"  code: {escape(error.code)}")
    if error.field_errors:
        for field_name, messages in error.field_errors.items():
            rprint(f"  {escape(field_name)}: {escape(', '.join(messages))}")


def _print_body(body: object) -> None:
    if body is None:
        rprint("[dim](empty response)[/dim]")
    elif isinstance(body, dict | list):
        print_json(data=body)
    else:
        rprint(escape(str(body)))


def _run[ResultT](
    state: CliContext, operation: Callable[[ApiClient], Awaitable[ResultT]]
) -> ResultT:
    """Run `operation` against a fresh client, exiting 1 on a structured error."""

    async def _invoke() -> ResultT:
        client = state.build_dependencies().client
        async with client:
            return await operation(client)

    try:
        return asyncio.run(_invoke())
    except StructuredError as error:
        _print_error(error)
        raise typer.Exit(code=1) from error


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Authenticated API client with token refresh and transient-failure retries",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        base_url: Annotated[
            str | None,
            typer.Option("--base-url", help="Override API base URL"),
        ] = None,
        environment: Annotated[
            str | None,
            typer.Option("--environment", "-e", help="development, staging or production"),
        ] = None,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="TOML config file"),
        ] = None,
    ) -> None:
        """Initialise CLI context."""
        config = ClientConfig.from_env()
        if config_path is not None:
            config = config.with_file_overrides(load_client_config_file(config_path))
        config = config.with_overrides(base_url=base_url, environment=environment)
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def request(
        ctx: typer.Context,
        method: Annotated[str, typer.Argument(help="HTTP method, e.g. GET or POST")],
        path: Annotated[str, typer.Argument(help="Path relative to the base URL")],
        data: Annotated[
            str | None,
            typer.Option("--data", "-d", help="JSON request body"),
        ] = None,
        param: Annotated[
            list[str] | None,
            typer.Option("--param", "-p", help="Query parameter as key=value (repeatable)"),
        ] = None,
    ) -> None:
        """Send an authenticated request and print the response body."""
        state = _get_context(ctx)
        body = _parse_data(data)
        params = _parse_params(param)
        result = _run(
            state,
            lambda client: client.request(method, path, body=body, params=params),
        )
        _print_body(result)

    @app.command()
    def login(
        ctx: typer.Context,
        email: Annotated[str, typer.Option("--email", help="Account email")],
        password: Annotated[
            str,
            typer.Option("--password", prompt=True, hide_input=True, help="Account password"),
        ],
    ) -> None:
        """Log in and store the issued tokens."""
        state = _get_context(ctx)
        _run(state, lambda client: client.login(email, password))
        rprint(f"[green]✓ Logged in:[/green] {escape(email)}")

    @app.command()
    def logout(ctx: typer.Context) -> None:
        """Log out and clear stored tokens."""
        state = _get_context(ctx)
        _run(state, lambda client: client.logout())
        rprint("[green]✓ Logged out[/green]")

    @app.command()
    def csrf(ctx: typer.Context) -> None:
        """Fetch and store a CSRF token."""
        state = _get_context(ctx)
        token = _run(state, lambda client: client.fetch_csrf_token())
        rprint(f"[green]✓ CSRF token stored:[/green] {escape(token)}")

    return app
