#!/usr/bin/env python3

# formatters.py - Hedvig Click CLI output formatters library
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


# Define colour values for use in formatters
ansii = {
    "red": "\033[91m",
    "blue": "\033[94m",
    "cyan": "\033[96m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "purple": "\033[95m",
    "bold": "\033[1m",
    "end": "\033[0m",
}


def cli_access_info_format_pretty(CLI_CONFIG, data):
    """
    Pretty format the output of cli_access_info
    """

    if data is None:
        return "Virtual disk not found."

    output = list()
    output.append(
        "{}Request ID:{}  {}".format(ansii["purple"], ansii["end"], data["requestId"])
    )
    output.append(
        "{}Status:{}      {}".format(ansii["purple"], ansii["end"], data["status"])
    )

    if not data["result"]:
        output.append("")
        output.append("No hosts have access to this virtual disk.")
        return "\n".join(output)

    for entry in data["result"]:
        output.append("")
        output.append(
            "{}Host:{}        {}{}{}".format(
                ansii["purple"],
                ansii["end"],
                ansii["bold"],
                entry["host"],
                ansii["end"],
            )
        )
        if not entry["initiator"]:
            output.append("{}Initiators:{}  N/A".format(ansii["purple"], ansii["end"]))
            continue
        output.append("{}Initiators:{}".format(ansii["purple"], ansii["end"]))
        for initiator in entry["initiator"]:
            output.append(
                "  {ip: <16} {name}".format(
                    ip=str(initiator["ip"]), name=str(initiator["name"])
                )
            )

    return "\n".join(output)


def cli_access_list_format_pretty(CLI_CONFIG, data):
    """
    Pretty format the output of cli_access_list
    """

    if not data:
        return "No access bindings found."

    # Set the fields data
    fields = {
        "id": {"header": "ID", "length": len("ID") + 1},
        "connection": {"header": "Connection", "length": len("Connection") + 1},
        "vdisk": {"header": "VDisk", "length": len("VDisk") + 1},
        "host": {"header": "Host", "length": len("Host") + 1},
        "address": {"header": "Address", "length": len("Address") + 1},
        "type": {"header": "Type", "length": len("Type") + 1},
    }

    # Parse each binding and adjust field lengths
    for binding in data:
        for field, length in [(f, fields[f]["length"]) for f in fields]:
            _length = len(str(binding[field]))
            if _length > length:
                length = len(str(binding[field])) + 1

            fields[field]["length"] = length

    # Create the output object and define the line format
    output = list()
    line = "{bold}{bid: <{lbid}} {conn: <{lconn}} {disk: <{ldisk}} {host: <{lhost}} {addr: <{laddr}} {atype: <{latype}}{end}"

    # Add the header line
    output.append(
        line.format(
            bold=ansii["bold"],
            end=ansii["end"],
            bid=fields["id"]["header"],
            lbid=fields["id"]["length"],
            conn=fields["connection"]["header"],
            lconn=fields["connection"]["length"],
            disk=fields["vdisk"]["header"],
            ldisk=fields["vdisk"]["length"],
            host=fields["host"]["header"],
            lhost=fields["host"]["length"],
            addr=fields["address"]["header"],
            laddr=fields["address"]["length"],
            atype=fields["type"]["header"],
            latype=fields["type"]["length"],
        )
    )

    # Add a line per binding
    for binding in data:
        output.append(
            line.format(
                bold="",
                end="",
                bid=binding["id"],
                lbid=fields["id"]["length"],
                conn=binding["connection"],
                lconn=fields["connection"]["length"],
                disk=binding["vdisk"],
                ldisk=fields["vdisk"]["length"],
                host=binding["host"],
                lhost=fields["host"]["length"],
                addr=binding["address"],
                laddr=fields["address"]["length"],
                atype=binding["type"],
                latype=fields["type"]["length"],
            )
        )

    return "\n".join(output)


def cli_connection_list_format_pretty(CLI_CONFIG, data):
    """
    Pretty format the output of cli_connection_list
    """

    # Set the fields data
    fields = {
        "name": {"header": "Name", "length": len("Name") + 1},
        "description": {"header": "Description", "length": len("Description") + 1},
        "address": {"header": "Address", "length": len("Address") + 1},
        "port": {"header": "Port", "length": len("Port") + 1},
        "scheme": {"header": "Scheme", "length": len("Scheme") + 1},
        "session_id": {"header": "Session ID", "length": len("Session ID") + 1},
    }

    # Parse each connection and adjust field lengths
    for connection in data:
        for field, length in [(f, fields[f]["length"]) for f in fields]:
            _length = len(str(connection[field]))
            if _length > length:
                length = len(str(connection[field])) + 1

            fields[field]["length"] = length

    # Create the output object and define the line format
    output = list()
    line = "{bold}{name: <{lname}} {desc: <{ldesc}} {addr: <{laddr}} {port: <{lport}} {schm: <{lschm}} {sess: <{lsess}}{end}"

    # Add the header line
    output.append(
        line.format(
            bold=ansii["bold"],
            end=ansii["end"],
            name=fields["name"]["header"],
            lname=fields["name"]["length"],
            desc=fields["description"]["header"],
            ldesc=fields["description"]["length"],
            addr=fields["address"]["header"],
            laddr=fields["address"]["length"],
            port=fields["port"]["header"],
            lport=fields["port"]["length"],
            schm=fields["scheme"]["header"],
            lschm=fields["scheme"]["length"],
            sess=fields["session_id"]["header"],
            lsess=fields["session_id"]["length"],
        )
    )

    # Add a line per connection
    for connection in data:
        output.append(
            line.format(
                bold="",
                end="",
                name=connection["name"],
                lname=fields["name"]["length"],
                desc=connection["description"],
                ldesc=fields["description"]["length"],
                addr=connection["address"],
                laddr=fields["address"]["length"],
                port=connection["port"],
                lport=fields["port"]["length"],
                schm=connection["scheme"],
                lschm=fields["scheme"]["length"],
                sess=str(connection["session_id"]),
                lsess=fields["session_id"]["length"],
            )
        )

    return "\n".join(output)
