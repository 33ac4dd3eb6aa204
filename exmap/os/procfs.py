# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Locate processes and their files in the /proc filesystem.
"""

import os

from exmap import config
from exmap import logging
from exmap.core.exceptions import DirectoryUnavailable


def _root(root):
    return root if root is not None else config.get_config().proc.root


def list_pids(root=None):
    """Candidate process ids, as found in the process directory.

    Only entries starting with a decimal digit are process directories. The
    others ("self", "sys", "meminfo", ...) are system metadata.

    Returns:
        list of pid strings, in directory order.

    Raises:
        DirectoryUnavailable if the directory can't be listed.
    """
    root = _root(root)
    try:
        names = os.listdir(root)
    except OSError as err:
        logging.exception_error("list_pids: can't read {}".format(root), err)
        raise DirectoryUnavailable(err.errno, "can't read process directory", root) from err
    return [name for name in names if "0" <= name[:1] <= "9"]


def maps_path(pid, root=None):
    return os.path.join(_root(root), str(pid), config.get_config().proc.maps)


def cmdline_path(pid, root=None):
    return os.path.join(_root(root), str(pid), config.get_config().proc.cmdline)


def read_cmdline(pid, root=None):
    """Command line of a process, with arguments separated by spaces.

    Returns an empty string if the file can't be read, or if the process has
    no command line (kernel threads, zombies).
    """
    try:
        with open(cmdline_path(pid, root), "rb") as fo:
            raw = fo.read()
    except OSError as err:
        logging.debug("read_cmdline: {}: {}".format(pid, err))
        return ""
    return raw.rstrip(b"\0").replace(b"\0", b" ").decode("utf-8", "replace")


if __name__ == "__main__":
    pids = list_pids()
    print(len(pids), "processes")
    print("self:", read_cmdline(os.getpid()))
