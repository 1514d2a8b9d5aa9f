#!/usr/bin/env python3

# helpers.py - Hedvig Click CLI helper function library
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

from click import echo as click_echo
from json import load as jload
from json import dump as jdump
from os import chmod, environ, path, get_terminal_size
from yaml import load as yload
from yaml import SafeLoader


VERSION = "0.1.0"

DEFAULT_STORE_DATA = {"cfgfile": "/etc/hedvig/hedvig.conf"}
DEFAULT_STORE_FILENAME = "hedvig.json"
DEFAULT_STATE_FILENAME = "state.json"
DEFAULT_API_PREFIX = "/rest/"
DEFAULT_API_PORT = 80

try:
    # Define the content width to be the maximum terminal size
    MAX_CONTENT_WIDTH = get_terminal_size().columns - 1
except OSError:
    # Fall back to 80 columns if "Inappropriate ioctl for device"
    MAX_CONTENT_WIDTH = 80


def echo(config, message, newline=True, stderr=False):
    """
    Output a message with click.echo respecting our configuration
    """

    if config.get("colour", False):
        colour = True
    else:
        colour = None

    if config.get("silent", False):
        pass
    elif config.get("quiet", False) and stderr:
        pass
    else:
        click_echo(message=message, color=colour, nl=newline, err=stderr)


def read_config_from_yaml(cfgfile):
    """
    Read the Hedvig node configuration from the local client configuration file
    """

    try:
        with open(cfgfile) as fh:
            node_config = yload(fh, Loader=SafeLoader)["hedvig"]

        host = node_config["node"]
        port = node_config.get("port", DEFAULT_API_PORT)
        scheme = "https" if node_config.get("ssl", False) else "http"
        session_id = node_config.get("session_id", None)
    except (KeyError, TypeError, AttributeError):
        host = None
        port = None
        scheme = None
        session_id = None

    return cfgfile, host, port, scheme, session_id


def get_config(store_data, connection=None):
    """
    Load CLI configuration from store data
    """

    if store_data is None:
        return {"badcfg": True}

    connection_details = store_data.get(connection, None)

    if not connection_details:
        connection = "local"
        connection_details = DEFAULT_STORE_DATA

    if connection_details.get("cfgfile", None) is not None:
        if path.isfile(connection_details.get("cfgfile", None)):
            description, host, port, scheme, session_id = read_config_from_yaml(
                connection_details.get("cfgfile", None)
            )
            if None in [description, host, port, scheme]:
                return {"badcfg": True}
        else:
            return {"badcfg": True}
    else:
        # This is a static configuration, get the details directly
        description = connection_details["description"]
        host = connection_details["host"]
        port = connection_details["port"]
        scheme = connection_details["scheme"]
        session_id = connection_details.get("session_id", None)

    config = dict()
    config["debug"] = False
    config["connection"] = connection
    config["description"] = description
    config["api_host"] = f"{host}:{port}"
    config["api_scheme"] = scheme
    config["api_prefix"] = DEFAULT_API_PREFIX
    config["session_id"] = environ.get("HEDVIG_SESSION_ID", session_id)
    config["verify_ssl"] = environ.get("HEDVIG_CLIENT_VERIFY_SSL", "True") == "True"

    return config


def get_store(store_path):
    """
    Load store information from the store path
    """

    store_file = f"{store_path}/{DEFAULT_STORE_FILENAME}"

    with open(store_file) as fh:
        try:
            store_data = jload(fh)
        except ValueError:
            store_data = dict()

    if path.exists(DEFAULT_STORE_DATA["cfgfile"]):
        if store_data.get("local", None) != DEFAULT_STORE_DATA:
            store_data.pop("local", None)
        if "local" not in store_data.keys():
            store_data["local"] = DEFAULT_STORE_DATA
            update_store(store_path, store_data)

    return store_data


def write_json_file(json_file, data):
    """
    Write data to json_file, creating it (with sensible permissions) if needed
    """

    if not path.exists(json_file):
        with open(json_file, "w") as fh:
            fh.write("")
        chmod(json_file, int(environ.get("HEDVIG_CLIENT_DB_PERMS", "600"), 8))

    with open(json_file, "w") as fh:
        jdump(data, fh, sort_keys=True, indent=4)


def update_store(store_path, store_data):
    """
    Update store information to the store path
    """

    write_json_file(f"{store_path}/{DEFAULT_STORE_FILENAME}", store_data)


def get_state(store_path):
    """
    Load the locally recorded access bindings from the store path
    """

    state_file = f"{store_path}/{DEFAULT_STATE_FILENAME}"

    if not path.isfile(state_file):
        return {"bindings": dict()}

    with open(state_file) as fh:
        try:
            state_data = jload(fh)
        except ValueError:
            state_data = dict()

    if not isinstance(state_data, dict):
        state_data = dict()
    if not isinstance(state_data.get("bindings", None), dict):
        state_data["bindings"] = dict()

    return state_data


def update_state(store_path, state_data):
    """
    Update the locally recorded access bindings in the store path
    """

    write_json_file(f"{store_path}/{DEFAULT_STATE_FILENAME}", state_data)
