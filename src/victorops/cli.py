import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from pydantic import ValidationError
from pydantic_core import to_json

from victorops.config import ClientConfig, Settings
from victorops.errors import VictorOpsError
from victorops.services.victorops_client import ApiResult, VictorOpsClient

logger = logging.getLogger(__name__)

app = typer.Typer(help="VictorOps (Splunk On-Call) API client", no_args_is_help=True)
config_app = typer.Typer(help="Configuration commands")
incidents_app = typer.Typer(help="Incident commands")
users_app = typer.Typer(help="User commands")
teams_app = typer.Typer(help="Team commands")
policies_app = typer.Typer(help="Escalation policy commands")
routing_app = typer.Typer(help="Routing key commands")
contacts_app = typer.Typer(help="Contact method commands")

app.add_typer(config_app, name="config")
app.add_typer(incidents_app, name="incidents")
app.add_typer(users_app, name="users")
app.add_typer(teams_app, name="teams")
app.add_typer(policies_app, name="policies")
app.add_typer(routing_app, name="routing-keys")
app.add_typer(contacts_app, name="contacts")

Call = Callable[[VictorOpsClient], Awaitable[ApiResult[Any]]]


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Overrides VICTOROPS_LOG_LEVEL"),
) -> None:
    level = (log_level or _load_settings().log_level).upper()
    if level not in logging.getLevelNamesMapping():
        raise typer.BadParameter(f"unknown log level {level!r}", param_hint="--log-level")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        typer.echo(f"Invalid VICTOROPS_ settings: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _make_client(config: ClientConfig) -> VictorOpsClient:
    return VictorOpsClient.from_config(config)


def _echo(payload: Any) -> None:
    typer.echo(to_json(payload, indent=2, by_alias=True, exclude_none=True).decode())


def _run(call: Call) -> None:
    config = _load_settings().client_config()
    if config is None:
        typer.echo("VICTOROPS_API_ID and VICTOROPS_API_KEY must be set", err=True)
        raise typer.Exit(code=2)

    async def _invoke() -> ApiResult[Any]:
        async with _make_client(config) as client:
            return await call(client)

    try:
        payload, details = asyncio.run(_invoke())
    except VictorOpsError as exc:
        logger.debug("VictorOps call failed", exc_info=True)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    logger.info("VictorOps responded with HTTP %s", details.status_code)
    _echo(payload)


@config_app.command("show")
def config_show() -> None:
    settings = _load_settings()
    typer.echo(f"Target VictorOps: {settings.base_url} (timeout {settings.timeout}s)")
    typer.echo(f"API id: {'set' if settings.api_id else 'missing'}")
    typer.echo(f"API key: {'set' if settings.api_key else 'missing'}")


@incidents_app.command("list")
def incidents_list() -> None:
    _run(lambda client: client.get_incidents())


@incidents_app.command("get")
def incidents_get(incident_id: int) -> None:
    _run(lambda client: client.get_incident(incident_id))


@users_app.command("list")
def users_list(v2: bool = typer.Option(False, "--v2", help="Use the v2 listing endpoint")) -> None:
    if v2:
        _run(lambda client: client.get_all_users_v2())
    else:
        _run(lambda client: client.get_all_users())


@users_app.command("get")
def users_get(username: str) -> None:
    _run(lambda client: client.get_user(username))


@users_app.command("email")
def users_email(email: str) -> None:
    _run(lambda client: client.get_user_by_email(email))


@users_app.command("schedule")
def users_schedule(
    username: str,
    days_forward: int = typer.Option(7, "--days-forward"),
    days_skip: int = typer.Option(0, "--days-skip"),
    step: int = typer.Option(0, "--step"),
) -> None:
    _run(lambda client: client.get_user_on_call_schedule(username, days_forward, days_skip, step))


@teams_app.command("list")
def teams_list() -> None:
    _run(lambda client: client.get_all_teams())


@teams_app.command("get")
def teams_get(team_id: str) -> None:
    _run(lambda client: client.get_team(team_id))


@teams_app.command("members")
def teams_members(team_id: str) -> None:
    _run(lambda client: client.get_team_members(team_id))


@teams_app.command("admins")
def teams_admins(team_id: str) -> None:
    _run(lambda client: client.get_team_admins(team_id))


@teams_app.command("schedule")
def teams_schedule(
    team_slug: str,
    days_forward: int = typer.Option(7, "--days-forward"),
    days_skip: int = typer.Option(0, "--days-skip"),
    step: int = typer.Option(0, "--step"),
) -> None:
    _run(lambda client: client.get_api_team_schedule(team_slug, days_forward, days_skip, step))


@policies_app.command("list")
def policies_list() -> None:
    _run(lambda client: client.get_all_escalation_policies())


@policies_app.command("get")
def policies_get(policy_id: str) -> None:
    _run(lambda client: client.get_escalation_policy(policy_id))


@routing_app.command("list")
def routing_keys_list() -> None:
    _run(lambda client: client.get_all_routing_keys())


@routing_app.command("get")
def routing_keys_get(key_name: str) -> None:
    _run(lambda client: client.get_routing_key(key_name))


@contacts_app.command("list")
def contacts_list(username: str) -> None:
    _run(lambda client: client.get_all_contacts(username))


if __name__ == "__main__":
    app()
