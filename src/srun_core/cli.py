# src/srun_core/cli.py
"""
SRUN 命令行前端

    srun status
    srun login  [-u USERNAME] [-p PASSWORD] [--ip IP] [-c CONFIG]
    srun logout [-u USERNAME] [-p PASSWORD] [--ip IP] [-c CONFIG]

凭据优先级：命令行 > 配置文件 (默认 bit-user.json) > SRUN_* 环境变量 > 交互输入。
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click

from . import __version__
from .config import (
    DEFAULT_CREDENTIALS_FILE,
    SrunConfig,
    create_config_from_dict,
    read_config_file,
    read_env,
    read_json,
)
from .core import SrunClient
from .exceptions import ConfigError, SrunError
from .models import EncodeScheme, OperationResult

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("SrunCLI")

NAME = "srun:"


def _load_raw_config(opts: dict[str, Any]) -> dict[str, Any]:
    """合并环境变量、配置文件与命令行参数 (后者优先)。"""
    raw = read_env()

    config_path: Path | None = opts["config_path"]
    if config_path is not None:
        raw.update(read_config_file(config_path, opts["profile"]))
        logger.debug(f"已加载配置文件: {config_path}")
    elif Path(DEFAULT_CREDENTIALS_FILE).exists():
        # 默认凭据文件损坏时不中断，继续走交互输入
        try:
            raw.update(read_json(Path(DEFAULT_CREDENTIALS_FILE)))
            logger.debug(f"已加载配置文件: {DEFAULT_CREDENTIALS_FILE}")
        except ConfigError as e:
            logger.warning(f"忽略默认凭据文件: {e}")

    overrides = {
        "username": opts["username"],
        "password": opts["password"],
        "ip": opts["client_ip"],
        "base_url": opts["base_url"],
        "scheme": opts["scheme"],
    }
    raw.update({k: v for k, v in overrides.items() if v is not None})
    return raw


def _resolve_config(opts: dict[str, Any], need_credentials: bool) -> SrunConfig:
    raw = _load_raw_config(opts)
    if need_credentials:
        if not raw.get("username"):
            raw["username"] = click.prompt("Please enter your campus id")
        if not raw.get("password"):
            raw["password"] = click.prompt("Please enter your password", hide_input=True)
    return create_config_from_dict(raw, require_credentials=need_credentials)


async def _execute(config: SrunConfig, action: str) -> OperationResult:
    async with SrunClient(config) as client:
        return await getattr(client, action)()


def _run(ctx: click.Context, action: str) -> OperationResult:
    opts = ctx.obj
    try:
        config = _resolve_config(opts, need_credentials=action != "status")
        result = asyncio.run(_execute(config, action))
    except SrunError as e:
        raise click.ClickException(str(e)) from e

    return result


def _echo_verbose(ctx: click.Context, result: OperationResult) -> None:
    if ctx.obj["verbose"]:
        click.echo(json.dumps(result.raw, indent=2, ensure_ascii=False))


def _user_suffix(result: OperationResult) -> str:
    return click.style(f"({result.username or ''})", dim=True)


def _echo_failure(action: str, result: OperationResult) -> None:
    name = click.style(NAME, fg="red")
    msg = click.style(f"({result.error_msg})", dim=True)
    line = f"{name} failed to {action}, {result.error} {msg}"
    # 网关原文之外的已知错误附上中文说明
    if result.description not in (result.error_msg, result.error):
        line += f" {result.description}"
    click.echo(line)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-u", "--username", help="campus network username")
@click.option("-p", "--password", help="campus network password")
@click.option("--ip", "client_ip", help="client IP to authenticate (default: reported by gateway)")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"config file, .toml or .json (default: {DEFAULT_CREDENTIALS_FILE})",
)
@click.option("--profile", default="default", show_default=True, help="TOML profile name")
@click.option("--base-url", help="gateway base URL, e.g. http://10.0.0.55")
@click.option(
    "--scheme",
    type=click.Choice([s.value for s in EncodeScheme]),
    help="password/checksum encoding scheme",
)
@click.option("-v", "--verbose", is_flag=True, help="print the raw gateway response")
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
@click.version_option(__version__, prog_name="srun-core")
@click.pass_context
def cli(ctx: click.Context, log_level: str, **opts: Any) -> None:
    """Log in and out of an SRUN campus network portal."""
    logging.basicConfig(level=getattr(logging, log_level.upper()), format=LOG_FORMAT)
    ctx.obj = opts


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Check the current login state."""
    result = _run(ctx, "status")
    ip = click.style(result.online_ip, underline=True)
    if result.online:
        name = click.style(NAME, fg="green")
        click.echo(f"{name} {ip} {_user_suffix(result)} is online")
    else:
        name = click.style(NAME, fg="blue")
        click.echo(f"{name} {ip} is offline")
    _echo_verbose(ctx, result)


@cli.command()
@click.pass_context
def login(ctx: click.Context) -> None:
    """Log in to the campus network."""
    result = _run(ctx, "login")
    if result.ok:
        name = click.style(NAME, fg="green")
        ip = click.style(result.online_ip, underline=True)
        click.echo(f"{name} {ip} {_user_suffix(result)} logged in")
    else:
        _echo_failure("login", result)
    _echo_verbose(ctx, result)


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Log out of the campus network."""
    result = _run(ctx, "logout")
    if result.ok:
        name = click.style(NAME, fg="green")
        ip = click.style(result.online_ip, underline=True)
        click.echo(f"{name} {ip} logged out")
    else:
        _echo_failure("logout", result)
    _echo_verbose(ctx, result)


def main() -> None:
    cli(prog_name="srun")
