# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""A snapshot of one process address space.
"""

from exmap import config
from exmap import logging
from exmap.os import procfs
from exmap.os.maps import parse_line, VmaParsed, ParseFailure
from exmap.core.exceptions import MappingFileUnavailable, InternalInvariantViolation

NO_CMDLINE = "[nocmdline]"


class Process:
    """One process and its virtual memory areas.

    Attributes:
        pid: str, the process id as named in the process directory.
        vmas: tuple of Vma, in the order of the mapping table.
        cmdline: str
    """

    def __init__(self, pid):
        self.pid = str(pid)
        self._vmas = []
        self._loaded = False
        self.cmdline = NO_CMDLINE

    def __repr__(self):
        return "{}({!r})".format(self.__class__.__name__, self.pid)

    def __str__(self):
        return "{:>7} {:5d} {}".format(self.pid, len(self._vmas), self.cmdline)

    @property
    def vmas(self):
        return tuple(self._vmas)

    @property
    def loaded(self):
        return self._loaded

    def files(self):
        """The distinct file names mapped by this process, in mapping order."""
        seen = {}
        for vma in self._vmas:
            if vma.is_file_backed:
                seen.setdefault(vma.backing, None)
        return list(seen)

    def load(self, root=None, path_column=None, mode=None):
        """Read the mapping table of this process.

        Lines that don't parse are logged and dropped.

        Returns:
            True if the mapping table could be read, False otherwise.

        Raises:
            ConfigValueError for an unknown mode.
        """
        if self._loaded:
            raise InternalInvariantViolation("Process {} loaded twice.".format(self.pid))
        cf = config.get_config()
        if path_column is None:
            path_column = cf.vma.path_column
        if mode is None:
            mode = cf.vma.mode
        config.check_mode(mode)
        try:
            self._read_mapfile(root, path_column, mode)
        except MappingFileUnavailable as err:
            logging.debug("Process.load: {}: {}".format(self.pid, err))
            self._vmas = []
            return False
        self.cmdline = procfs.read_cmdline(self.pid, root) or NO_CMDLINE
        self._loaded = True
        return True

    def _read_mapfile(self, root, path_column, mode):
        mapfile = procfs.maps_path(self.pid, root)
        try:
            with open(mapfile, encoding="utf-8", errors="surrogateescape") as fo:
                for line in fo:
                    match parse_line(line.rstrip("\n"), path_column, mode):
                        case VmaParsed(vma):
                            self._vmas.append(vma)
                        case ParseFailure():
                            pass
        except OSError as err:
            raise MappingFileUnavailable(err.errno, "can't load maps", mapfile) from err


if __name__ == "__main__":
    import os

    proc = Process(os.getpid())
    if proc.load():
        print(proc)
        for vma in proc.vmas:
            print("   ", vma)
        print(proc.files())
