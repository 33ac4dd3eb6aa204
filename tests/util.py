"""Helper functions for unit tests. """

import os

# Layout of the kernel's maps file on a 64 bit host, the path starts here.
WIDE_PATH_COLUMN = 73

DBUS_LINE = ("00400000-00452000 r-xp 00000000 08:02 173521" + " " * 29 +
             "/usr/bin/dbus-daemon")
ANON_LINE = "7f2a1c000000-7f2a1c021000 rw-p 00000000 00:00 0 "


def maps_line(start, end, perms="r--p", offset=0, dev="00:00", inode=0, path=None,
              column=WIDE_PATH_COLUMN):
    """Format a line the way the kernel writes it to /proc/PID/maps."""
    line = "{:08x}-{:08x} {} {:08x} {} {} ".format(start, end, perms, offset, dev, inode)
    if path is None:
        return line
    return line.ljust(column) + path


def make_process(root, pid, lines=None, cmdline=None):
    """Create a fake process directory below root.

    Args:
        lines: maps file lines. None for no maps file.
        cmdline: bytes of the cmdline file. None for no cmdline file.
    """
    procdir = os.path.join(str(root), str(pid))
    os.makedirs(procdir, exist_ok=True)
    if lines is not None:
        with open(os.path.join(procdir, "maps"), "w") as fo:
            for line in lines:
                fo.write(line + "\n")
    if cmdline is not None:
        with open(os.path.join(procdir, "cmdline"), "wb") as fo:
            fo.write(cmdline)
    return procdir
