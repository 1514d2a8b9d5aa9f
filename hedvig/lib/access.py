#!/usr/bin/env python3

# access.py - Hedvig CLI client function library, ACL access functions
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

from hedvig.lib.common import APIRequest, call_api, debug, get_error_message


BINDING_FIELDS = ["vdisk", "host", "address", "type"]


def format_identifier(vdisk, host, address):
    return "access-{}-{}-{}".format(vdisk, host, address)


class AccessBinding(object):
    """
    An ACL grant of a virtual disk to a host/address pair

    {id} is None until the grant has been made, and is cleared again when
    the cluster no longer knows the virtual disk.
    """

    def __init__(self, vdisk, host, address, access_type, id=None):
        self.vdisk = vdisk
        self.host = host
        self.address = address
        self.type = access_type
        self.id = id

    @property
    def identifier(self):
        return format_identifier(self.vdisk, self.host, self.address)

    @classmethod
    def from_dict(cls, data, id=None):
        return cls(
            data.get("vdisk"),
            data.get("host"),
            data.get("address"),
            data.get("type"),
            id=data.get("id", id),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "vdisk": self.vdisk,
            "host": self.host,
            "address": self.address,
            "type": self.type,
        }

    def copy(self, **changes):
        data = self.to_dict()
        data.update({k: v for k, v in changes.items() if v is not None})
        return AccessBinding.from_dict(data)

    def missing_fields(self):
        return [f for f in BINDING_FIELDS if not getattr(self, f)]

    def changed_fields(self, other):
        return [f for f in BINDING_FIELDS if getattr(self, f) != getattr(other, f)]

    def __eq__(self, other):
        if not isinstance(other, AccessBinding):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return "AccessBinding({})".format(
            ", ".join([f"{k}={v!r}" for k, v in self.to_dict().items()])
        )


#
# Request builders
#
def persist_request(binding, session_id):
    return APIRequest(
        "PersistACLAccess",
        {
            "virtualDisks": [binding.vdisk],
            "host": binding.host,
            "address": binding.address,
            "type": binding.type,
        },
        session_id,
    )


def information_request(vdisk, session_id):
    return APIRequest("GetACLInformation", {"virtualDisk": vdisk}, session_id)


def remove_request(binding, session_id):
    return APIRequest(
        "RemoveACLAccess",
        {
            "virtualDisk": binding.vdisk,
            "host": binding.host,
            "address": [binding.address],
        },
        session_id,
    )


def parse_information(data):
    """
    Normalize a GetACLInformation response body

    API schema: {"requestId":"{id}","status":"{status}","type":"{type}","result":[{"host":"{host}","initiator":[{"ip":"{ip}","name":"{name}"}]}]}
    """
    if not isinstance(data, dict):
        raise ValueError("Response is not a JSON object")

    result = data.get("result", None)
    if result is None:
        result = list()
    if not isinstance(result, list):
        raise ValueError("Response result is not a list")

    information = {
        "requestId": data.get("requestId", None),
        "status": data.get("status", None),
        "type": data.get("type", None),
        "result": list(),
    }
    for entry in result:
        if not isinstance(entry, dict):
            raise ValueError("Response result entry is not a JSON object")
        initiators = entry.get("initiator", None)
        if initiators is None:
            initiators = list()
        if not isinstance(initiators, list):
            raise ValueError("Response initiator is not a list")
        information["result"].append(
            {
                "host": entry.get("host", None) or "",
                "initiator": [
                    {"ip": i.get("ip", None), "name": i.get("name", None)}
                    for i in initiators
                    if isinstance(i, dict)
                ],
            }
        )

    return information


#
# Primary functions
#
class AccessResource(object):
    """
    Grant, read, update and revoke ACL access bindings on a Hedvig cluster

    Every operation returns (True, data) on success or (False, message) on
    failure. Nothing is retried and nothing is rolled back.
    """

    def __init__(self, config, session_provider):
        self.config = config
        self.session_provider = session_provider

    def _call(self, request):
        return call_api(self.config, request)

    def _persist(self, binding):
        missing = binding.missing_fields()
        if missing:
            return False, "Missing required field(s): {}".format(", ".join(missing))

        retcode, session_id = self.session_provider.get_session(binding)
        if not retcode:
            return False, session_id

        response = self._call(persist_request(binding, session_id))
        if response.status_code >= 400:
            return False, get_error_message(response)

        binding.id = binding.identifier
        return True, binding

    def grant(self, binding):
        """
        Grant {binding} on the cluster, then read it back

        API request: {type:PersistACLAccess, params:{virtualDisks, host, address, type}}
        """
        retcode, retdata = self._persist(binding)
        if not retcode:
            return False, retdata

        return self.read(binding)

    def information(self, vdisk, binding=None):
        """
        Get the ACL information of virtual disk {vdisk}

        Returns (True, None) if the cluster reports the virtual disk as not found.

        API request: {type:GetACLInformation, params:{virtualDisk}}
        """
        retcode, session_id = self.session_provider.get_session(binding)
        if not retcode:
            return False, session_id

        response = self._call(information_request(vdisk, session_id))
        if response.status_code == 404:
            return True, None
        if response.status_code >= 400:
            return False, get_error_message(response)

        try:
            information = parse_information(response.json())
        except ValueError as e:
            return False, "Failed to decode ACL information: {}".format(e)

        return True, information

    def read(self, binding):
        """
        Refresh {binding} from the cluster

        Only the host is refreshed. Returns (True, None) and clears the
        binding ID if the virtual disk no longer exists.
        """
        retcode, retdata = self.information(binding.vdisk, binding)
        if not retcode:
            return False, retdata

        if retdata is None:
            binding.id = None
            return True, None

        if len(retdata["result"]) < 1 or not retdata["result"][0]["host"]:
            return False, "Not enough results to find host in"

        binding.host = retdata["result"][0]["host"]
        return True, binding

    def update(self, old, new):
        """
        Move the grant from {old} to {new} by revoking and regranting it

        If the revoke succeeds but the grant fails, the access stays revoked
        and both bindings are left without an ID.
        """
        if not old.changed_fields(new):
            if new.id is None:
                new.id = old.id
            return self.read(new)

        missing = new.missing_fields()
        if missing:
            return False, "Missing required field(s): {}".format(", ".join(missing))

        debug(self.config, f"Old virtual disk: {old.vdisk}")
        debug(self.config, f"Old host: {old.host}")
        debug(self.config, f"Old address: {old.address}")

        retcode, retdata = self.revoke(old)
        if not retcode:
            return False, retdata
        new.id = None

        retcode, retdata = self._persist(new)
        if not retcode:
            return False, retdata

        return self.read(new)

    def revoke(self, binding):
        """
        Revoke {binding} on the cluster

        The response body is not inspected; only transport errors fail.

        API request: {type:RemoveACLAccess, params:{virtualDisk, host, address}}
        """
        retcode, session_id = self.session_provider.get_session(binding)
        if not retcode:
            return False, session_id

        response = self._call(remove_request(binding, session_id))
        if response.status_code >= 400:
            return False, get_error_message(response)

        binding.id = None
        return (
            True,
            f'Revoked access to virtual disk "{binding.vdisk}" for host "{binding.host}" at {binding.address}',
        )
