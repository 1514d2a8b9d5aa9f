#!/usr/bin/env python3

# session.py - Hedvig CLI client function library, Session providers
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


class SessionProvider(object):
    """
    Supplies the session ID sent with every management request

    Implementations return (True, session_id) or (False, message); how the
    session was obtained is up to the implementation.
    """

    def get_session(self, binding):
        raise NotImplementedError


class StaticSessionProvider(SessionProvider):
    """
    Return a fixed, pre-obtained session ID
    """

    def __init__(self, session_id):
        self.session_id = session_id

    def get_session(self, binding):
        if not self.session_id:
            return False, "No session ID is configured for this connection"
        return True, self.session_id


def get_session_provider(config):
    return StaticSessionProvider(config.get("session_id", None))
