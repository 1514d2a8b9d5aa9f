#!/usr/bin/env python3

# parsers.py - Hedvig Click CLI data parser function library
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

from os import path
from re import sub

from hedvig.cli.helpers import read_config_from_yaml


def mask_session_id(session_id):
    if session_id is None:
        return None
    return sub(r"[A-Za-z0-9]", "x", session_id)


def cli_connection_list_parser(connections_config, show_keys_flag):
    """
    Parse connections_config into formatable data for cli_connection_list
    """

    connections_data = list()

    for connection, details in connections_config.items():
        if details.get("cfgfile", None) is not None:
            if path.isfile(details.get("cfgfile")):
                description, address, port, scheme, session_id = (
                    read_config_from_yaml(details.get("cfgfile"))
                )
            else:
                continue
        else:
            description = details["description"]
            address = details["host"]
            port = details["port"]
            scheme = details["scheme"]
            session_id = details.get("session_id", None)

        if not show_keys_flag:
            session_id = mask_session_id(session_id)

        connections_data.append(
            {
                "name": connection,
                "description": description,
                "address": address,
                "port": port,
                "scheme": scheme,
                "session_id": session_id,
            }
        )

    # Return, ensuring local is always first
    return sorted(
        connections_data, key=lambda x: (x.get("name") != "local", x.get("name"))
    )


def cli_access_list_parser(state_data, connection=None):
    """
    Parse state_data into formatable data for cli_access_list
    """

    bindings_data = list()

    for binding_id, details in state_data.get("bindings", {}).items():
        if connection is not None and details.get("connection") != connection:
            continue
        bindings_data.append(
            {
                "id": binding_id,
                "connection": details.get("connection", "N/A"),
                "vdisk": details.get("vdisk", "N/A"),
                "host": details.get("host", "N/A"),
                "address": details.get("address", "N/A"),
                "type": details.get("type", "N/A"),
            }
        )

    return sorted(bindings_data, key=lambda x: x["id"])
