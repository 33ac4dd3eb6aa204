# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The pool of all loadable processes on the system.

Build one with:

    >>> pool = Pool()
    >>> pool.load_procs()
    >>> proc = pool[1]
    >>> for vma in proc.vmas:
    ...     print(vma)

Processes that vanish, or whose mapping table we may not read, are left out.
If the process directory itself can't be read, DirectoryUnavailable is raised.
"""

import types

from exmap import config
from exmap import logging
from exmap.os import procfs
from exmap.process import Process
from exmap.core.exceptions import InternalInvariantViolation


class Pool:
    """Collection of loaded processes, indexed by process id.

    Args:
        root: process directory, default from configuration (proc.root).
        path_column: where the path field of a maps line starts.
        mode: "column" or "tokens", how to find the path field.
    """

    def __init__(self, root=None, path_column=None, mode=None):
        cf = config.get_config()
        self.root = root if root is not None else cf.proc.root
        self.path_column = path_column if path_column is not None else cf.vma.path_column
        self.mode = config.check_mode(mode if mode is not None else cf.vma.mode)
        self._loaded = False
        self._procs = []
        self._pid_to_proc = {}

    def __repr__(self):
        return "{}({!r})".format(self.__class__.__name__, self.root)

    def load_procs(self):
        """Discover and load all processes.

        Returns:
            Number of processes admitted to the pool.

        Raises:
            DirectoryUnavailable if the process directory can't be listed.
            InternalInvariantViolation on a second call.
        """
        if self._loaded:
            raise InternalInvariantViolation("Pool already loaded.")
        self._loaded = True
        for pid in procfs.list_pids(self.root):
            proc = Process(pid)
            if proc.load(self.root, self.path_column, self.mode):
                self._admit(proc)
        logging.info("Pool.load_procs: {} processes from {}".format(len(self._procs), self.root))
        return len(self._procs)

    def _admit(self, proc):
        if proc.pid in self._pid_to_proc:
            raise InternalInvariantViolation("Duplicate process id {}".format(proc.pid))
        self._procs.append(proc)
        self._pid_to_proc[proc.pid] = proc

    @property
    def processes(self):
        return tuple(self._procs)

    @property
    def by_pid(self):
        """Read only mapping of pid string to Process."""
        return types.MappingProxyType(self._pid_to_proc)

    def pids(self):
        return [proc.pid for proc in self._procs]

    def get(self, pid, default=None):
        return self._pid_to_proc.get(str(pid), default)

    def __getitem__(self, pid):
        return self._pid_to_proc[str(pid)]

    def __contains__(self, pid):
        return str(pid) in self._pid_to_proc

    def __iter__(self):
        return iter(self._procs)

    def __len__(self):
        return len(self._procs)


if __name__ == "__main__":
    pool = Pool()
    pool.load_procs()
    for proc in pool:
        print(proc)
