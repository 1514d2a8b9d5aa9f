"""
Unit tests for the management request layer
"""

from unittest.mock import patch

from requests.exceptions import ConnectionError

from hedvig.lib.common import APIRequest, ErrorResponse, call_api, get_error_message
from tests.conftest import make_response


def test_render_list_and_string_params():
    request = APIRequest(
        "PersistACLAccess",
        {
            "virtualDisks": ["vd1"],
            "host": "h1",
            "address": "10.0.0.1",
            "type": "rw",
        },
        "sess-1",
    )

    assert request.render() == (
        "{type:PersistACLAccess, category:VirtualDiskManagement, "
        "params:{virtualDisks:['vd1'], host:'h1', address:'10.0.0.1', type:'rw'}, "
        "sessionId:'sess-1'}"
    )
    assert str(request) == request.render()


def test_render_uses_uniform_separators():
    request = APIRequest(
        "RemoveACLAccess",
        {"virtualDisk": "vd1", "host": "h1", "address": ["10.0.0.1"]},
        "sess-1",
    )

    rendered = request.render()
    assert ": " not in rendered
    assert rendered.endswith("sessionId:'sess-1'}")
    assert (
        APIRequest("GetACLInformation", {"virtualDisk": "vd1"}, "s").render()
        == "{type:GetACLInformation, category:VirtualDiskManagement, params:{virtualDisk:'vd1'}, sessionId:'s'}"
    )


def test_render_custom_category():
    request = APIRequest("Login", {"userName": "admin"}, "", category="UserManagement")

    assert request.render() == (
        "{type:Login, category:UserManagement, params:{userName:'admin'}, sessionId:''}"
    )


def test_render_escapes_quotes_and_backslashes():
    request = APIRequest("GetACLInformation", {"virtualDisk": "it's\\x"}, "s'1")

    rendered = request.render()
    assert "virtualDisk:'it\\'s\\\\x'" in rendered
    assert rendered.endswith("sessionId:'s\\'1'}")


def test_call_api_issues_single_get(config):
    request = APIRequest("GetACLInformation", {"virtualDisk": "vd1"}, "sess-1")

    with patch("hedvig.lib.common.get") as mock_get:
        mock_get.return_value = make_response(200, {"result": []})
        response = call_api(config, request)

    assert response.status_code == 200
    mock_get.assert_called_once()
    args, kwargs = mock_get.call_args
    assert args == ("http://node1:80/rest/",)
    assert kwargs["params"] == {"request": request.render()}
    assert kwargs["headers"]["User-Agent"].startswith("hedvig-client-cli/")


def test_call_api_connection_error_becomes_error_response(config):
    request = APIRequest("GetACLInformation", {"virtualDisk": "vd1"}, "sess-1")

    with patch("hedvig.lib.common.get", side_effect=ConnectionError("refused")):
        response = call_api(config, request)

    assert isinstance(response, ErrorResponse)
    assert response.status_code == 504
    assert get_error_message(response) == "Failed to connect to the API: refused"


def test_call_api_debug_output(config, cluster, capsys):
    config["debug"] = True
    request = APIRequest("GetACLInformation", {"virtualDisk": "vd1"}, "sess-1")

    call_api(config, request)

    err = capsys.readouterr().err
    assert "API endpoint: http://node1:80/rest/" in err
    assert "Response code: 200" in err
    assert "Response body: " in err


def test_call_api_silent_without_debug(config, cluster, capsys):
    request = APIRequest("GetACLInformation", {"virtualDisk": "vd1"}, "sess-1")

    call_api(config, request)

    assert capsys.readouterr().err == ""


def test_error_message_prefers_json_message():
    response = make_response(500, {"message": "internal failure"})

    assert get_error_message(response) == "API returned HTTP 500: internal failure"


def test_error_message_falls_back_to_body():
    response = make_response(502, "Bad Gateway")

    assert get_error_message(response) == "API returned HTTP 502: Bad Gateway"
