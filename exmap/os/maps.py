# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Parse the lines of a process mapping table, /proc/PID/maps.

Each line describes one virtual memory area (VMA)::

    address           perms offset  dev   inode      pathname
    00400000-00452000 r-xp 00000000 08:02 173521     /usr/bin/dbus-daemon

The pathname field is optional. When the kernel has no file for the area it
is either missing (anonymous memory) or a bracketed label such as [heap] or
[vdso]. Labels are kept verbatim.
"""

import re
import typing

from exmap import logging
from exmap.core.exceptions import MalformedLine, InternalInvariantViolation

ANON_NAME = "[anon]"
HEAP_NAME = "[heap]"
VDSO_NAME = "[vdso]"

# Where the kernel starts the pathname field, for 32 bit wide addresses.
PATH_COLUMN = 49

COLUMN = "column"
TOKENS = "tokens"

_VMA_RE = re.compile(r"^([0-9a-f]+)-([0-9a-f]+)\s+(\S+)\s+([0-9a-f]+)")


class Vma(typing.NamedTuple):
    """A memory mapped area of a process.

    The permissions are:
        r = read
        w = write
        x = execute
        s = shared
        p = private (copy on write)
    """
    address_start: int
    address_end: int
    permissions: str
    offset: int
    backing: str = ANON_NAME

    def __str__(self):
        return "{:08x}-{:08x} {} {:08x} {}".format(
            self.address_start, self.address_end, self.permissions, self.offset, self.backing)

    @property
    def size(self):
        return self.address_end - self.address_start

    @property
    def is_file_backed(self):
        # Names like [vdso], [anon], [stack] etc
        return not (self.backing.startswith("[") and self.backing.endswith("]"))

    @property
    def is_anonymous(self):
        return self.backing == ANON_NAME

    @property
    def is_heap(self):
        return self.backing == HEAP_NAME

    @property
    def is_vdso(self):
        return self.backing == VDSO_NAME

    @classmethod
    def from_line(cls, line, path_column=PATH_COLUMN, mode=COLUMN):
        """Make a Vma from a maps line, or raise MalformedLine."""
        match parse_line(line, path_column, mode):
            case VmaParsed(vma):
                return vma
            case ParseFailure(reason=reason):
                raise reason


class VmaParsed(typing.NamedTuple):
    """Successful parse of a maps line."""
    vma: Vma


class ParseFailure(typing.NamedTuple):
    """A maps line that could not be turned into a Vma."""
    line: str
    reason: MalformedLine


def parse_line(line, path_column=PATH_COLUMN, mode=COLUMN):
    """Parse one line of a maps file, without the line terminator.

    Args:
        line: the text line.
        path_column: where the path field starts, in "column" mode.
        mode: "column" takes the path from a fixed column, like the kernel
              lays it out. "tokens" takes the sixth whitespace delimited field,
              which survives wider device or inode fields.

    Returns:
        VmaParsed with the new Vma, or a ParseFailure. A failure has
        already been logged.

    Raises:
        InternalInvariantViolation if a matched line lost its fields.
    """
    mo = _VMA_RE.match(line)
    if mo is None:
        return _failure(line, "no address range, permissions and offset")
    start_s, end_s, perms, offset_s = mo.groups()
    if not (start_s and end_s and perms and offset_s):
        raise InternalInvariantViolation("can't calculate without parsed data: {!r}".format(line))
    start = int(start_s, 16)
    end = int(end_s, 16)
    if start >= end:
        return _failure(line, "empty or inverted address range")
    if mode == TOKENS:
        backing = _backing_from_tokens(line)
    else:
        backing = _backing_from_column(line, path_column)
    return VmaParsed(Vma(start, end, perms, int(offset_s, 16), backing))


def _backing_from_column(line, path_column):
    if len(line) >= path_column:
        return line[path_column:].lstrip() or ANON_NAME
    return ANON_NAME


def _backing_from_tokens(line):
    parts = line.split(None, 5)
    if len(parts) > 5:
        return parts[5]
    return ANON_NAME


def _failure(line, why):
    logging.warning("Failed to parse vma line {!r}: {}".format(line, why))
    return ParseFailure(line, MalformedLine("{}: {!r}".format(why, line)))


def parse_lines(lines, path_column=PATH_COLUMN, mode=COLUMN):
    """Yield the Vma of each parsable line. Others are logged and dropped."""
    for line in lines:
        match parse_line(line.rstrip("\n"), path_column, mode):
            case VmaParsed(vma):
                yield vma
            case ParseFailure():
                continue


if __name__ == "__main__":
    import os

    with open("/proc/{}/maps".format(os.getpid())) as fo:
        for vma in parse_lines(fo):
            print(vma)

# vim:ts=4:sw=4:softtabstop=4:smarttab:expandtab
