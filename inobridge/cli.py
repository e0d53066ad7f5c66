"""CLI entry point for inobridge."""

import json as jsonmod
import logging

import click

from inobridge.arduino import ArduinoCLI
from inobridge.config import load_config
from inobridge.errors import InobridgeError, ToolFailure
from inobridge.ports import list_serial_ports


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log extraction and command details.")
@click.pass_context
def main(ctx, verbose):
    """Run the embedded arduino-cli without installing it."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)


def _cli(ctx) -> ArduinoCLI:
    if "cli" not in ctx.obj:
        ctx.obj["cli"] = ArduinoCLI(config=load_config())
    return ctx.obj["cli"]


def exit_status(returncode: int) -> int:
    """Map a child exit status to a shell exit code. Signals become 128 + signum."""
    if returncode < 0:
        return 128 - returncode
    return returncode or 1


def _fail(e: InobridgeError):
    click.echo(f"Error: {e.message}", err=True)
    raise SystemExit(e.exit_code or 1)


def _echo_result(result):
    if result.text:
        click.echo(result.text)
    if result.stderr.strip():
        click.echo(result.stderr.rstrip(), err=True)


def _invoke(ctx, method, *args):
    try:
        result = method(_cli(ctx), *args)
    except ToolFailure as e:
        if e.result.text:
            click.echo(e.result.text)
        if e.stderr.strip():
            click.echo(e.stderr.rstrip(), err=True)
        raise SystemExit(exit_status(e.returncode))
    except InobridgeError as e:
        _fail(e)
    _echo_result(result)


@main.command()
@click.pass_context
def path(ctx):
    """Print the path of the extracted arduino-cli binary."""
    try:
        click.echo(_cli(ctx).cli_path)
    except InobridgeError as e:
        _fail(e)


@main.command()
@click.pass_context
def version(ctx):
    """Show the arduino-cli version."""
    _invoke(ctx, ArduinoCLI.version)


@main.command()
@click.option("--all", "list_all", is_flag=True, help="List every known board, not just connected ones.")
@click.pass_context
def boards(ctx, list_all):
    """List connected boards."""
    _invoke(ctx, ArduinoCLI.board_listall if list_all else ArduinoCLI.board_list)


@main.command()
@click.pass_context
def cores(ctx):
    """List installed cores."""
    _invoke(ctx, ArduinoCLI.core_list)


@main.command()
@click.argument("sketch", type=click.Path())
@click.option("--fqbn", required=True, help="Fully qualified board name (e.g. arduino:avr:uno).")
@click.option("--port", type=str, help="Upload to this serial port after compiling.")
@click.pass_context
def build(ctx, sketch, fqbn, port):
    """Compile a sketch, and upload it if --port is given."""
    if port:
        _invoke(ctx, ArduinoCLI.compile_and_upload, sketch, fqbn, port)
    else:
        _invoke(ctx, ArduinoCLI.compile, sketch, fqbn)


@main.command("exec", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
@click.pass_context
def exec_cmd(ctx, args):
    """Pass ARGS straight to arduino-cli."""
    _invoke(ctx, ArduinoCLI.exec, *args)


@main.command("ports")
@click.option("--json", "use_json", is_flag=True, help="Output JSON.")
def ports_cmd(use_json):
    """List available serial ports."""
    ports = list_serial_ports()
    if use_json:
        click.echo(jsonmod.dumps([p.to_dict() for p in ports], indent=2))
        return
    if not ports:
        click.echo("No serial ports found.")
        return
    for p in ports:
        click.echo(f"  {p.device:<25} {p.description}")


@main.command()
def doctor():
    """Check that the embedded arduino-cli can run on this machine."""
    try:
        cli = ArduinoCLI(config=load_config())
    except InobridgeError as e:
        click.echo(f"[!!] Config: {e.message}")
        raise SystemExit(1)

    checks = cli.checks()
    for check in checks:
        click.echo(str(check))

    if any(c.failed for c in checks):
        click.echo("\nSome checks failed. Fix the issues above.")
        raise SystemExit(1)
    click.echo("\nAll checks passed.")
