#
# apsc: an active/passive sidecar for kubernetes pods
# Copyright (C) 2026  The apsc authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>
#
"""Exception types shared across apsc.

Anything derived from Fatal means the sidecar can not continue and the
process must exit. These are only caught by the top level command handler.
"""


class Fatal(Exception):
    pass


class ConfigError(Fatal):
    """Required configuration is missing or unusable."""


class LockNotInitialized(Fatal):
    """Leader election was started before a lock was generated."""
