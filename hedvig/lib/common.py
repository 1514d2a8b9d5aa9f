#!/usr/bin/env python3

# common.py - Hedvig CLI client function library, Common functions
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

from click import echo
from requests import get, Response
from requests.exceptions import RequestException
from hedvig.cli.helpers import VERSION


DEFAULT_CATEGORY = "VirtualDiskManagement"


def debug(config, message):
    """
    Output a debug message to stderr if debugging is enabled
    """
    if config.get("debug", False):
        echo(message, err=True)


def quote_value(value):
    value = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{value}'"


class APIRequest(object):
    """
    A single management command for the Hedvig REST endpoint

    The cluster expects a relaxed JSON dialect: unquoted keys and
    single-quoted string values. Lists are rendered as lists of quoted
    strings; all other values are rendered as quoted strings.

    Elements are always separated by ", " with no space after a colon, so
    the text is not byte-identical to every command the older Terraform
    provider sent (it used "," for GetACLInformation and "sessionId: "
    for RemoveACLAccess); it relies on the cluster's parser ignoring
    whitespace between tokens.
    """

    def __init__(self, request_type, params, session_id, category=DEFAULT_CATEGORY):
        self.type = request_type
        self.category = category
        self.params = params
        self.session_id = session_id

    def render_params(self):
        rendered = list()
        for key, value in self.params.items():
            if isinstance(value, (list, tuple)):
                value = "[{}]".format(", ".join([quote_value(v) for v in value]))
            else:
                value = quote_value(value)
            rendered.append(f"{key}:{value}")
        return "{{{}}}".format(", ".join(rendered))

    def render(self):
        return "{{type:{}, category:{}, params:{}, sessionId:{}}}".format(
            self.type,
            self.category,
            self.render_params(),
            quote_value(self.session_id),
        )

    def __str__(self):
        return self.render()


class ErrorResponse(Response):
    def __init__(self, json_data, status_code, headers):
        self.json_data = json_data
        self.status_code = status_code
        self.headers = headers

    def json(self):
        return self.json_data

    @property
    def text(self):
        return self.json_data.get("message", "")


def get_error_message(response):
    """
    Extract a useful error message from a failed response
    """
    if isinstance(response, ErrorResponse):
        return response.json().get("message", "")

    try:
        message = response.json().get("message", None)
    except (ValueError, AttributeError):
        message = None

    if not message:
        message = response.text

    return f"API returned HTTP {response.status_code}: {message}"


def call_api(config, request, timeout=(2.05, 60)):
    """
    Issue {request} against the REST endpoint of the configured node

    Connection-level failures never raise; they are returned as an
    ErrorResponse with a 504 status code, like any other failed call.
    """
    # Craft the URI
    uri = "{}://{}{}".format(
        config["api_scheme"], config["api_host"], config["api_prefix"]
    )

    headers = {"User-Agent": f"hedvig-client-cli/{VERSION}"}
    params = {"request": request.render()}

    debug(config, "API endpoint: {}".format(uri))
    debug(config, "API request: {}".format(params["request"]))

    try:
        response = get(
            uri,
            timeout=timeout,
            headers=headers,
            params=params,
            verify=config.get("verify_ssl", True),
        )
        # Force the body to be read now so read errors surface here
        body = response.text
    except RequestException as e:
        message = "Failed to connect to the API: {}".format(e)
        response = ErrorResponse({"message": message}, 504, None)
        body = response.text

    debug(config, "Response code: {}".format(response.status_code))
    debug(config, "Response body: {}".format(body))
    debug(config, "")

    return response
