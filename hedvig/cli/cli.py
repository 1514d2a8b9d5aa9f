#!/usr/bin/env python3

# cli.py - Hedvig Click CLI main library
# Part of the Hedvig access client
#
#    Copyright (C) 2018-2024 Joshua M. Boniface <joshua@boniface.me>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, version 3.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <https://www.gnu.org/licenses/>.
#
###############################################################################

from colorama import Fore
from functools import wraps
from json import dumps as jdumps
from os import environ, makedirs, path
from sys import exit

from hedvig.cli.helpers import (
    DEFAULT_API_PORT,
    DEFAULT_STORE_DATA,
    DEFAULT_STORE_FILENAME,
    MAX_CONTENT_WIDTH,
    VERSION,
    echo,
    get_config,
    get_state,
    get_store,
    update_state,
    update_store,
)
from hedvig.cli.parsers import cli_access_list_parser, cli_connection_list_parser
from hedvig.cli.formatters import (
    cli_access_info_format_pretty,
    cli_access_list_format_pretty,
    cli_connection_list_format_pretty,
)

from hedvig.lib.access import AccessBinding, AccessResource
from hedvig.lib.session import get_session_provider

import click


###############################################################################
# Context and completion handler, globals
###############################################################################


CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"], max_content_width=MAX_CONTENT_WIDTH
)

CLI_CONFIG = dict()


###############################################################################
# Local helper functions
###############################################################################


def finish(success=True, data=None, formatter=None):
    """
    Output data to the terminal and exit based on code (T/F or integer code)
    """

    if data is not None or formatter is not None:
        if formatter is not None and success:
            if formatter.__name__ == "<lambda>":
                # We don't pass CLI_CONFIG into lambdas
                echo(CLI_CONFIG, formatter(data))
            else:
                echo(CLI_CONFIG, formatter(CLI_CONFIG, data))
        else:
            echo(CLI_CONFIG, data)

    # Allow passing raw values if not a bool
    if isinstance(success, bool):
        if success:
            exit(0)
        else:
            exit(1)
    else:
        exit(success)


def version(ctx, param, value):
    """
    Show the version of the CLI client
    """

    if not value or ctx.resilient_parsing:
        return

    echo(CLI_CONFIG, f"Hedvig access CLI client version {VERSION}")
    ctx.exit()


def get_access_resource():
    return AccessResource(CLI_CONFIG, get_session_provider(CLI_CONFIG))


def record_binding(binding):
    """
    Save {binding} to the local state under its ID
    """

    state_data = get_state(CLI_CONFIG["store_path"])
    details = binding.to_dict()
    details.pop("id")
    details["connection"] = CLI_CONFIG.get("connection")
    state_data["bindings"][binding.id] = details
    update_state(CLI_CONFIG["store_path"], state_data)


def forget_binding(binding_id):
    """
    Remove the binding {binding_id} from the local state
    """

    state_data = get_state(CLI_CONFIG["store_path"])
    state_data["bindings"].pop(binding_id, None)
    update_state(CLI_CONFIG["store_path"], state_data)


def load_binding(binding_id):
    """
    Load the binding {binding_id} from the local state or abort
    """

    state_data = get_state(CLI_CONFIG["store_path"])
    details = state_data["bindings"].get(binding_id, None)
    if details is None:
        finish(False, f'No access binding "{binding_id}" found in local state')

    return AccessBinding.from_dict(details, id=binding_id)


###############################################################################
# Click command decorators
###############################################################################


def connection_req(function):
    """
    General Decorator:
    Wraps a Click command which requires a connection to be set and validates that it is present
    """

    @wraps(function)
    def validate_connection(*args, **kwargs):
        if CLI_CONFIG.get("badcfg", None) and CLI_CONFIG.get("connection"):
            echo(
                CLI_CONFIG,
                f"""Invalid connection "{CLI_CONFIG.get('connection')}" specified; set a valid connection and try again.""",
            )
            exit(1)
        elif CLI_CONFIG.get("badcfg", None):
            echo(
                CLI_CONFIG,
                'No connection specified and no local configuration found. Use "hedvig connection" to add a connection.',
            )
            exit(1)

        echo(
            CLI_CONFIG,
            f'''Using connection "{CLI_CONFIG.get('connection')}" - Host: "{CLI_CONFIG.get('api_host')}"  Scheme: "{CLI_CONFIG.get('api_scheme')}"  Prefix: "{CLI_CONFIG.get('api_prefix')}"''',
            stderr=True,
        )
        echo(
            CLI_CONFIG,
            "",
            stderr=True,
        )

        return function(*args, **kwargs)

    return validate_connection


def confirm_opt(message):
    """
    Click Option Decorator with argument:
    Wraps a Click command which requires confirm_flag or unsafe option or asks for confirmation with message
    """

    def confirm_decorator(function):
        @click.option(
            "-y",
            "--yes",
            "confirm_flag",
            is_flag=True,
            default=False,
            help="Pre-confirm any unsafe operations.",
        )
        @wraps(function)
        def confirm_action(*args, **kwargs):
            confirm_flag = kwargs.pop("confirm_flag", False)

            if not confirm_flag and not CLI_CONFIG.get("unsafe", False):
                try:
                    click.confirm(
                        message.format(**kwargs), prompt_suffix="? ", abort=True
                    )
                except click.Abort:
                    echo(CLI_CONFIG, "Aborted.")
                    exit(0)

                click.echo()

            return function(*args, **kwargs)

        return confirm_action

    return confirm_decorator


def format_opt(formats, default_format="pretty"):
    """
    Click Option Decorator with argument:
    Wraps a Click command that can output in multiple formats; {formats} defines a dictionary of
    formatting functions for the command with keys as valid format types.
    e.g. { "json": lambda d: json.dumps(d), "pretty": format_function_pretty, ... }
    Injects a "format_function" argument into the function for this purpose.
    """

    def format_decorator(function):
        @click.option(
            "-f",
            "--format",
            "output_format",
            default=default_format,
            show_default=True,
            type=click.Choice(list(formats.keys())),
            help="Output information in this format.",
        )
        @wraps(function)
        def format_action(*args, **kwargs):
            kwargs["format_function"] = formats[kwargs["output_format"]]

            del kwargs["output_format"]

            return function(*args, **kwargs)

        return format_action

    return format_decorator


###############################################################################
# > hedvig access
###############################################################################
@click.group(
    name="access",
    short_help="Manage Hedvig virtual disk ACL access.",
    context_settings=CONTEXT_SETTINGS,
)
def cli_access():
    """
    Manage the ACL access of hosts to virtual disks on a Hedvig cluster.
    """
    pass


###############################################################################
# > hedvig access grant
###############################################################################
@click.command(
    name="grant",
    short_help="Grant a host access to a virtual disk.",
)
@connection_req
@click.argument("vdisk")
@click.argument("host")
@click.argument("address")
@click.option(
    "-t",
    "--type",
    "access_type",
    required=True,
    help="The access type to grant, as understood by the cluster.",
)
def cli_access_grant(vdisk, host, address, access_type):
    """
    Grant HOST at ADDRESS access to virtual disk VDISK and record the binding locally.
    """

    binding = AccessBinding(vdisk, host, address, access_type)
    retcode, retdata = get_access_resource().grant(binding)

    # A grant that was persisted is recorded even if the read-back failed
    if binding.id is not None:
        record_binding(binding)

    if not retcode:
        finish(False, retdata)
    if retdata is None:
        finish(False, f'Virtual disk "{vdisk}" was not found after granting access')

    finish(True, f'Granted access "{binding.id}"')


###############################################################################
# > hedvig access info
###############################################################################
@click.command(
    name="info",
    short_help="Show ACL information of a virtual disk.",
)
@connection_req
@click.argument("vdisk")
@format_opt(
    {
        "pretty": cli_access_info_format_pretty,
        "raw": lambda d: "\n".join([r["host"] for r in d["result"]])
        if d is not None
        else "",
        "json": lambda d: jdumps(d),
        "json-pretty": lambda d: jdumps(d, indent=2),
    }
)
def cli_access_info(vdisk, format_function):
    """
    Show the hosts and initiators currently accessing virtual disk VDISK.

    \b
    Format options:
        "pretty": Output all details in a nice colourful format.
        "raw": Output host names one per line.
        "json": Output in unformatted JSON.
        "json-pretty": Output in formatted JSON.
    """

    retcode, retdata = get_access_resource().information(vdisk)
    if not retcode:
        finish(False, retdata)
    finish(True, retdata, format_function)


###############################################################################
# > hedvig access refresh
###############################################################################
@click.command(
    name="refresh",
    short_help="Refresh a recorded binding from the cluster.",
)
@connection_req
@click.argument("binding_id")
def cli_access_refresh(binding_id):
    """
    Reconcile the recorded access binding BINDING_ID with the cluster.

    If the cluster no longer knows the virtual disk, the binding is removed from local state.
    """

    binding = load_binding(binding_id)
    old_host = binding.host

    retcode, retdata = get_access_resource().read(binding)
    if not retcode:
        finish(False, retdata)

    if retdata is None:
        forget_binding(binding_id)
        finish(
            True,
            f'Access binding "{binding_id}" no longer exists; removed from local state',
        )

    record_binding(binding)
    if binding.host != old_host:
        finish(
            True,
            f'Refreshed access binding "{binding_id}"; host changed from "{old_host}" to "{binding.host}"',
        )
    finish(True, f'Access binding "{binding_id}" is up to date')


###############################################################################
# > hedvig access update
###############################################################################
@click.command(
    name="update",
    short_help="Change a recorded binding.",
)
@connection_req
@click.argument("binding_id")
@click.option(
    "-V",
    "--vdisk",
    "vdisk",
    default=None,
    help="The new virtual disk.",
)
@click.option(
    "-H",
    "--host",
    "host",
    default=None,
    help="The new host.",
)
@click.option(
    "-a",
    "--address",
    "address",
    default=None,
    help="The new address.",
)
@click.option(
    "-t",
    "--type",
    "access_type",
    default=None,
    help="The new access type.",
)
def cli_access_update(binding_id, vdisk, host, address, access_type):
    """
    Change the recorded access binding BINDING_ID.

    Any change revokes the existing access and grants it again with the new values. If the
    new grant fails, the old access stays revoked.
    """

    old = load_binding(binding_id)
    new = old.copy(vdisk=vdisk, host=host, address=address, type=access_type)

    for field in old.changed_fields(new):
        echo(
            CLI_CONFIG,
            f"{field}: {Fore.RED}{getattr(old, field)}{Fore.RESET} -> {Fore.GREEN}{getattr(new, field)}{Fore.RESET}",
            stderr=True,
        )

    retcode, retdata = get_access_resource().update(old, new)

    # The old binding is gone once revoked, even if the update failed later on
    if new.id is None:
        forget_binding(binding_id)
    elif retcode or old.id is None:
        if new.id != binding_id:
            forget_binding(binding_id)
        record_binding(new)

    if not retcode:
        finish(False, retdata)
    if retdata is None:
        finish(
            True,
            f'Access binding "{binding_id}" no longer exists; removed from local state',
        )

    finish(True, f'Updated access binding "{new.id}"')


###############################################################################
# > hedvig access revoke
###############################################################################
@click.command(
    name="revoke",
    short_help="Revoke a recorded binding.",
)
@connection_req
@click.argument("binding_id")
@confirm_opt("Revoke access binding {binding_id}")
def cli_access_revoke(binding_id):
    """
    Revoke the recorded access binding BINDING_ID and remove it from local state.
    """

    binding = load_binding(binding_id)

    retcode, retdata = get_access_resource().revoke(binding)
    if retcode:
        forget_binding(binding_id)
    finish(retcode, retdata)


###############################################################################
# > hedvig access list
###############################################################################
@click.command(
    name="list",
    short_help="List recorded bindings.",
)
@click.option(
    "-A",
    "--all-connections",
    "all_flag",
    is_flag=True,
    default=False,
    help="List bindings of all connections instead of only the current one.",
)
@format_opt(
    {
        "pretty": cli_access_list_format_pretty,
        "raw": lambda d: "\n".join([b["id"] for b in d]),
        "json": lambda d: jdumps(d),
        "json-pretty": lambda d: jdumps(d, indent=2),
    }
)
def cli_access_list(all_flag, format_function):
    """
    List the access bindings recorded in the local state.

    \b
    Format options:
        "pretty": Output all details in a nice tabular list format.
        "raw": Output binding IDs one per line.
        "json": Output in unformatted JSON.
        "json-pretty": Output in formatted JSON.
    """

    state_data = get_state(CLI_CONFIG["store_path"])
    connection = None if all_flag else CLI_CONFIG.get("connection")
    bindings_data = cli_access_list_parser(state_data, connection)
    finish(True, bindings_data, format_function)


###############################################################################
# > hedvig connection
###############################################################################
@click.group(
    name="connection",
    short_help="Manage Hedvig cluster connections.",
    context_settings=CONTEXT_SETTINGS,
)
def cli_connection():
    """
    Manage the Hedvig clusters this CLI client can connect to.
    """
    pass


###############################################################################
# > hedvig connection add
###############################################################################
@click.command(
    name="add",
    short_help="Add connections to the client database.",
)
@click.argument("name")
@click.option(
    "-d",
    "--description",
    "description",
    required=False,
    default="N/A",
    help="A text description of the connection.",
)
@click.option(
    "-a",
    "--address",
    "address",
    required=True,
    help="The IP address/hostname of the cluster node.",
)
@click.option(
    "-p",
    "--port",
    "port",
    required=False,
    default=DEFAULT_API_PORT,
    show_default=True,
    help="The port of the node REST endpoint.",
)
@click.option(
    "-k",
    "--session-id",
    "session_id",
    required=False,
    default=None,
    help="The session ID to send with management requests.",
)
@click.option(
    "--ssl/--no-ssl",
    "ssl_flag",
    default=False,
    show_default=True,
    help="Use HTTPS for the connection.",
)
def cli_connection_add(
    name,
    description,
    address,
    port,
    session_id,
    ssl_flag,
):
    """
    Add the Hedvig connection NAME to the database of the local CLI client.

    Adding a connection with an existing NAME will replace the existing connection.
    """

    # Set the scheme based on {ssl_flag}
    scheme = "https" if ssl_flag else "http"

    # Get the store data
    connections_config = get_store(CLI_CONFIG["store_path"])

    # Add (or update) the new connection details
    connections_config[name] = {
        "description": description,
        "host": address,
        "port": port,
        "scheme": scheme,
        "session_id": session_id,
    }

    # Update the store data
    update_store(CLI_CONFIG["store_path"], connections_config)

    finish(
        True,
        f"""Added connection "{name}" ({scheme}://{address}:{port}) to client database""",
    )


###############################################################################
# > hedvig connection remove
###############################################################################
@click.command(
    name="remove",
    short_help="Remove connections from the client database.",
)
@click.argument("name")
def cli_connection_remove(
    name,
):
    """
    Remove the Hedvig connection NAME from the database of the local CLI client.
    """

    # Get the store data
    connections_config = get_store(CLI_CONFIG["store_path"])

    # Remove the entry matching the name
    try:
        connections_config.pop(name)
    except KeyError:
        finish(False, f"""No connection found with name "{name}" in local database""")

    # Update the store data
    update_store(CLI_CONFIG["store_path"], connections_config)

    finish(True, f"""Removed connection "{name}" from client database""")


###############################################################################
# > hedvig connection list
###############################################################################
@click.command(
    name="list",
    short_help="List connections in the client database.",
)
@click.option(
    "-k",
    "--show-keys",
    "show_keys_flag",
    is_flag=True,
    default=False,
    help="Show session IDs.",
)
@format_opt(
    {
        "pretty": cli_connection_list_format_pretty,
        "raw": lambda d: "\n".join([c["name"] for c in d]),
        "json": lambda d: jdumps(d),
        "json-pretty": lambda d: jdumps(d, indent=2),
    }
)
def cli_connection_list(
    show_keys_flag,
    format_function,
):
    """
    List all Hedvig connections in the database of the local CLI client.

    \b
    Format options:
        "pretty": Output all details in a nice tabular list format.
        "raw": Output connection names one per line.
        "json": Output in unformatted JSON.
        "json-pretty": Output in formatted JSON.
    """

    connections_config = get_store(CLI_CONFIG["store_path"])
    connections_data = cli_connection_list_parser(connections_config, show_keys_flag)
    finish(True, connections_data, format_function)


###############################################################################
# > hedvig
###############################################################################
@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-c",
    "--connection",
    "_connection",
    envvar="HEDVIG_CONNECTION",
    default=None,
    help="Cluster to connect to.",
)
@click.option(
    "-v",
    "--debug",
    "_debug",
    envvar="HEDVIG_DEBUG",
    is_flag=True,
    default=False,
    help="Additional debug details.",
)
@click.option(
    "-q",
    "--quiet",
    "_quiet",
    envvar="HEDVIG_QUIET",
    is_flag=True,
    default=False,
    help="Suppress information sent to stderr.",
)
@click.option(
    "-s",
    "--silent",
    "_silent",
    envvar="HEDVIG_SILENT",
    is_flag=True,
    default=False,
    help="Suppress information sent to stdout and stderr.",
)
@click.option(
    "-u",
    "--unsafe",
    "_unsafe",
    envvar="HEDVIG_UNSAFE",
    is_flag=True,
    default=False,
    help='Perform unsafe operations without confirmation/"--yes" argument.',
)
@click.option(
    "--colour",
    "--color",
    "_colour",
    envvar="HEDVIG_COLOUR",
    is_flag=True,
    default=False,
    help="Force colourized output.",
)
@click.option(
    "--version",
    is_flag=True,
    callback=version,
    expose_value=False,
    is_eager=True,
    help="Show CLI version and exit.",
)
def cli(
    _connection,
    _debug,
    _quiet,
    _silent,
    _unsafe,
    _colour,
):
    """
    Hedvig virtual disk ACL access management tool

    Environment variables:

      "HEDVIG_CONNECTION": Set the connection to access instead of using --connection/-c

      "HEDVIG_DEBUG": Enable additional debugging details instead of using --debug/-v

      "HEDVIG_QUIET": Suppress stderr output from client instead of using --quiet/-q

      "HEDVIG_SILENT": Suppress stdout and stderr output from client instead of using --silent/-s

      "HEDVIG_UNSAFE": Always suppress confirmations instead of needing --unsafe/-u or --yes/-y

      "HEDVIG_COLOUR": Force colour on the output even if Click determines it is not a console

      "HEDVIG_SESSION_ID": Override the session ID of the selected connection

    If a "-c"/"--connection"/"HEDVIG_CONNECTION" is not specified, the CLI will attempt to read a "local"
    connection from the configuration at "/etc/hedvig/hedvig.conf". If no such configuration is found, the
    command will abort with an error. This applies to all commands except those under "connection".
    """

    global CLI_CONFIG
    CLI_CONFIG["quiet"] = _quiet
    CLI_CONFIG["silent"] = _silent

    cli_client_dir = environ.get("HEDVIG_CLIENT_DIR", None)
    home_dir = environ.get("HOME", None)
    if cli_client_dir:
        store_path = cli_client_dir
    elif home_dir:
        store_path = f"{home_dir}/.config/hedvig"
    else:
        echo(
            CLI_CONFIG,
            "WARNING: No client or home configuration directory found; using /tmp instead",
            stderr=True,
        )
        store_path = "/tmp/hedvig"

    if not path.isdir(store_path):
        makedirs(store_path)

    if not path.isfile(f"{store_path}/{DEFAULT_STORE_FILENAME}"):
        update_store(store_path, {"local": DEFAULT_STORE_DATA})

    store_data = get_store(store_path)

    # If the connection isn't in the store, mark it bad but pass the value
    if _connection is not None and _connection not in store_data.keys():
        CLI_CONFIG = {"badcfg": True, "connection": _connection}
    else:
        CLI_CONFIG = get_config(store_data, _connection)

    CLI_CONFIG["debug"] = _debug
    CLI_CONFIG["unsafe"] = _unsafe
    CLI_CONFIG["colour"] = _colour
    CLI_CONFIG["quiet"] = _quiet
    CLI_CONFIG["silent"] = _silent
    CLI_CONFIG["store_path"] = store_path


###############################################################################
# Click command tree
###############################################################################

cli_access.add_command(cli_access_grant)
cli_access.add_command(cli_access_info)
cli_access.add_command(cli_access_refresh)
cli_access.add_command(cli_access_update)
cli_access.add_command(cli_access_revoke)
cli_access.add_command(cli_access_list)
cli.add_command(cli_access)
cli_connection.add_command(cli_connection_add)
cli_connection.add_command(cli_connection_remove)
cli_connection.add_command(cli_connection_list)
cli.add_command(cli_connection)
