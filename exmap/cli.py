# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""List processes and their memory areas.

Usage:
    exmap [-hdv] [--tokens] [--root=<dir>] [--config=<file>] [<pid>...]

Options:
    -h --help        This help.
    -d               Debug logging on.
    -v               Also list the memory areas of each process.
    --tokens         Find the path of a memory area by counting fields,
                     instead of using its fixed column.
    --root=<dir>     Use this process directory instead of /proc.
    --config=<file>  Read extra configuration from this file.
"""

import os
import sys

from docopt import docopt

from exmap import config
from exmap import logging
from exmap.pool import Pool
from exmap.core.exceptions import DirectoryUnavailable, InternalInvariantViolation, ConfigError


def main(argv=None):
    """Run the exmap command.

    Returns:
        exit status.
    """
    args = docopt(__doc__, argv=argv)
    initdict = {
        "flags.debug": int(args["-d"]),
        "flags.verbose": int(args["-v"]),
    }
    if args["--root"]:
        initdict["proc.root"] = args["--root"]
    if args["--tokens"]:
        initdict["vma.mode"] = "tokens"
    logger = logging.get_logger("exmap")
    config.reset()
    try:
        cf = config.get_config(initdict=initdict, _filename=args["--config"])
    except ConfigError as err:
        logger.exception_warning("configuration", err)
        _print_exception(err)
        return os.EX_CONFIG
    if cf.flags.debug:
        logger.priority = "DEBUG"

    pool = Pool()
    try:
        pool.load_procs()
    except DirectoryUnavailable as err:
        _print_exception(err)
        return os.EX_OSFILE
    except InternalInvariantViolation as err:
        logger.exception_error("load_procs", err)
        _print_exception(err)
        return os.EX_SOFTWARE

    if args["<pid>"]:
        procs = []
        for pid in args["<pid>"]:
            proc = pool.get(pid)
            if proc is None:
                logger.notice("no such process: %s", pid)
                print("exmap: no such process: {}".format(pid), file=sys.stderr)
            else:
                procs.append(proc)
    else:
        procs = pool.processes
    for proc in procs:
        print(proc)
        if cf.flags.verbose:
            for vma in proc.vmas:
                print("   ", vma)
    return 0


def _print_exception(exc):
    print("Error: {}: {}".format(exc.__class__.__name__, exc), file=sys.stderr)
    while exc.__cause__ is not None:
        exc = exc.__cause__
        print(" Because: {}: {}".format(exc.__class__.__name__, exc), file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
