"""
Unit tests for AccessResource
"""

import pytest

from requests.exceptions import ConnectionError

from hedvig.lib.access import (
    AccessBinding,
    AccessResource,
    format_identifier,
    parse_information,
)
from hedvig.lib.session import SessionProvider, StaticSessionProvider


class FailingSessionProvider(SessionProvider):
    def get_session(self, binding):
        return False, "Login failed"


@pytest.fixture
def binding():
    return AccessBinding("vd1", "h1", "10.0.0.1", "rw")


@pytest.fixture
def resource(config):
    return AccessResource(config, StaticSessionProvider("sess-1"))


class TestAccessBinding:
    def test_identifier(self, binding):
        assert binding.identifier == "access-vd1-h1-10.0.0.1"
        assert format_identifier("vd1", "h1", "10.0.0.1") == binding.identifier

    def test_changed_fields(self, binding):
        other = binding.copy(host="h2", type="ro")

        assert binding.changed_fields(other) == ["host", "type"]
        assert binding.changed_fields(binding.copy()) == []

    def test_copy_ignores_unset_changes(self, binding):
        assert binding.copy(vdisk=None, host=None) == binding

    def test_missing_fields(self):
        assert AccessBinding("vd1", "", "10.0.0.1", None).missing_fields() == [
            "host",
            "type",
        ]

    def test_dict_round_trip_keeps_id(self, binding):
        binding.id = binding.identifier

        assert AccessBinding.from_dict(binding.to_dict()) == binding


class TestParseInformation:
    def test_minimal_body(self):
        information = parse_information({"result": [{"host": "h1"}]})

        assert information["result"] == [{"host": "h1", "initiator": []}]
        assert information["requestId"] is None

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            parse_information(["h1"])

    def test_rejects_non_list_result(self):
        with pytest.raises(ValueError):
            parse_information({"result": {"host": "h1"}})

    def test_rejects_non_list_initiator(self):
        with pytest.raises(ValueError):
            parse_information({"result": [{"host": "h1", "initiator": 5}]})

    def test_missing_host_decodes_as_empty(self):
        information = parse_information({"result": [{"initiator": None}]})

        assert information["result"] == [{"host": "", "initiator": []}]


class TestGrant:
    def test_grant_sets_identifier_and_reads(self, resource, cluster, binding):
        retcode, retdata = resource.grant(binding)

        assert retcode is True
        assert retdata is binding
        assert binding.id == "access-vd1-h1-10.0.0.1"
        assert binding.host == "h1"
        assert cluster.types == ["PersistACLAccess", "GetACLInformation"]
        assert cluster.calls[0]["request"] == (
            "{type:PersistACLAccess, category:VirtualDiskManagement, "
            "params:{virtualDisks:['vd1'], host:'h1', address:'10.0.0.1', type:'rw'}, "
            "sessionId:'sess-1'}"
        )
        assert cluster.calls[0]["uri"] == "http://node1:80/rest/"

    def test_grant_transport_error_is_returned(self, resource, cluster, binding):
        cluster.respond("PersistACLAccess", body=ConnectionError("unreachable"))

        retcode, retdata = resource.grant(binding)

        assert retcode is False
        assert retdata == "Failed to connect to the API: unreachable"
        assert binding.id is None
        assert cluster.types == ["PersistACLAccess"]

    def test_grant_http_error_is_returned(self, resource, cluster, binding):
        cluster.respond("PersistACLAccess", 500, {"message": "boom"})

        retcode, retdata = resource.grant(binding)

        assert retcode is False
        assert "boom" in retdata
        assert binding.id is None

    def test_grant_does_not_inspect_application_status(self, resource, cluster, binding):
        cluster.respond("PersistACLAccess", 200, {"status": "error"})

        retcode, retdata = resource.grant(binding)

        assert retcode is True
        assert binding.id == binding.identifier

    def test_grant_requires_all_fields(self, resource, cluster):
        retcode, retdata = resource.grant(AccessBinding("vd1", "h1", "", "rw"))

        assert retcode is False
        assert "address" in retdata
        assert cluster.calls == []

    def test_grant_session_failure_sends_nothing(self, config, cluster, binding):
        resource = AccessResource(config, FailingSessionProvider())

        retcode, retdata = resource.grant(binding)

        assert (retcode, retdata) == (False, "Login failed")
        assert cluster.calls == []


class TestRead:
    def test_read_refreshes_host_only(self, resource, cluster, binding):
        cluster.respond(
            "GetACLInformation",
            body={"result": [{"host": "h9", "initiator": [{"ip": "10.9.9.9"}]}]},
        )
        binding.id = binding.identifier

        retcode, retdata = resource.read(binding)

        assert retcode is True
        assert binding.host == "h9"
        assert binding.address == "10.0.0.1"
        assert binding.type == "rw"
        assert binding.id == "access-vd1-h1-10.0.0.1"
        assert cluster.calls[0]["request"] == (
            "{type:GetACLInformation, category:VirtualDiskManagement, "
            "params:{virtualDisk:'vd1'}, sessionId:'sess-1'}"
        )

    def test_read_not_found_clears_identifier(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", 404, "Not Found")
        binding.id = binding.identifier

        retcode, retdata = resource.read(binding)

        assert retcode is True
        assert retdata is None
        assert binding.id is None

    def test_read_empty_result_is_error(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", body={"result": []})
        binding.id = binding.identifier
        before = binding.to_dict()

        retcode, retdata = resource.read(binding)

        assert retcode is False
        assert retdata == "Not enough results to find host in"
        assert binding.to_dict() == before

    def test_read_result_without_host_is_error(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", body={"result": [{"initiator": []}]})
        binding.id = binding.identifier

        retcode, retdata = resource.read(binding)

        assert retcode is False
        assert retdata == "Not enough results to find host in"
        assert binding.host == "h1"

    def test_read_malformed_initiator_is_error(self, resource, cluster, binding):
        cluster.respond(
            "GetACLInformation", body={"result": [{"host": "h1", "initiator": 5}]}
        )

        retcode, retdata = resource.read(binding)

        assert retcode is False
        assert retdata.startswith("Failed to decode ACL information")

    def test_read_server_error_is_returned(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", 503, "unavailable")

        retcode, retdata = resource.read(binding)

        assert retcode is False
        assert retdata == "API returned HTTP 503: unavailable"

    def test_read_undecodable_body_is_error(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", 200, "<html>oops</html>")

        retcode, retdata = resource.read(binding)

        assert retcode is False
        assert retdata.startswith("Failed to decode ACL information")

    def test_grant_then_read_scenario(self, resource, cluster, binding):
        cluster.respond("GetACLInformation", body={"result": [{"host": "h1"}]})

        retcode, _ = resource.grant(binding)
        assert retcode is True
        assert binding.id == "access-vd1-h1-10.0.0.1"

        retcode, _ = resource.read(binding)
        assert retcode is True
        assert binding.host == "h1"


class TestUpdate:
    def test_unchanged_only_reads(self, resource, cluster, binding):
        binding.id = binding.identifier
        new = binding.copy()

        retcode, retdata = resource.update(binding, new)

        assert retcode is True
        assert cluster.types == ["GetACLInformation"]
        assert new.id == binding.id

    def test_changed_host_revokes_old_and_grants_new(self, resource, cluster, binding):
        binding.id = binding.identifier
        new = binding.copy(host="h2")
        cluster.respond("GetACLInformation", body={"result": [{"host": "h2"}]})

        retcode, retdata = resource.update(binding, new)

        assert retcode is True
        assert cluster.types == [
            "RemoveACLAccess",
            "PersistACLAccess",
            "GetACLInformation",
        ]
        assert cluster.calls[0]["request"] == (
            "{type:RemoveACLAccess, category:VirtualDiskManagement, "
            "params:{virtualDisk:'vd1', host:'h1', address:['10.0.0.1']}, "
            "sessionId:'sess-1'}"
        )
        assert "host:'h2'" in cluster.calls[1]["request"]
        assert new.id == "access-vd1-h2-10.0.0.1"
        assert new.host == "h2"
        assert binding.id is None

    def test_changed_type_ignores_old_type(self, resource, cluster, binding):
        new = binding.copy(type="ro")

        retcode, _ = resource.update(binding, new)

        assert retcode is True
        assert "type" not in cluster.calls[0]["request"].split("params:")[1]
        assert "type:'ro'" in cluster.calls[1]["request"]

    def test_failed_grant_leaves_access_revoked(self, resource, cluster, binding):
        binding.id = binding.identifier
        new = binding.copy(address="10.0.0.2")
        cluster.respond("PersistACLAccess", 500, {"message": "denied"})

        retcode, retdata = resource.update(binding, new)

        assert retcode is False
        assert "denied" in retdata
        assert cluster.types == ["RemoveACLAccess", "PersistACLAccess"]
        assert binding.id is None
        assert new.id is None

    def test_failed_revoke_stops_update(self, resource, cluster, binding):
        binding.id = binding.identifier
        new = binding.copy(vdisk="vd2")
        cluster.respond("RemoveACLAccess", body=ConnectionError("reset"))

        retcode, retdata = resource.update(binding, new)

        assert retcode is False
        assert cluster.types == ["RemoveACLAccess"]
        assert binding.id == "access-vd1-h1-10.0.0.1"


class TestRevoke:
    def test_revoke_issues_one_request(self, resource, cluster, binding):
        binding.id = binding.identifier
        cluster.respond("RemoveACLAccess", 200, {"status": "error", "message": "nope"})

        retcode, retdata = resource.revoke(binding)

        assert retcode is True
        assert cluster.types == ["RemoveACLAccess"]
        assert binding.id is None

    def test_revoke_transport_error_is_returned(self, resource, cluster, binding):
        binding.id = binding.identifier
        cluster.respond("RemoveACLAccess", body=ConnectionError("reset"))

        retcode, retdata = resource.revoke(binding)

        assert retcode is False
        assert retdata == "Failed to connect to the API: reset"
        assert binding.id == "access-vd1-h1-10.0.0.1"


def test_static_session_provider_requires_session():
    assert StaticSessionProvider(None).get_session(None) == (
        False,
        "No session ID is configured for this connection",
    )
    assert StaticSessionProvider("abc").get_session(None) == (True, "abc")
