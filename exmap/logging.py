# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Diagnostic logging for exmap.

Messages go straight to the system's syslog service. Log destination
configuration should be done there, see `man syslogd`.

Parsing a full process table can produce a lot of noise (processes vanish
between discovery and load, kernel threads have no mappings), so the default
priority only lets through notices and worse.

Configurable with the following environment variables:

EXMAP_LOG_FACILITY
    Sets the syslog facility to use, default USER.

EXMAP_LOG_PRIORITY
    Sets the syslog priority to log, default NOTICE.

EXMAP_LOG_STDERR
    Set to include stderr in log output.

When this module is imported it adds a handler to the root logger of the stock
logging module, so records from libraries that use it also end up in syslog.
"""

# This is the stock logging module, not this one.
import logging
import os
import sys
import syslog
import traceback
from typing import Dict, Optional

FACILITY: str = os.environ.get("EXMAP_LOG_FACILITY", "USER").upper()
PRIORITY: str = os.environ.get("EXMAP_LOG_PRIORITY", "NOTICE").upper()
USESTDERR: bool = bool(os.environ.get("EXMAP_LOG_STDERR"))

# Allow use of names, and useful aliases, to select logging level.
PRIORITIES = {
    "DEBUG": syslog.LOG_DEBUG,
    "INFO": syslog.LOG_INFO,
    "NOTICE": syslog.LOG_NOTICE,
    "WARNING": syslog.LOG_WARNING,
    "WARN": syslog.LOG_WARNING,
    "ERR": syslog.LOG_ERR,
    "ERROR": syslog.LOG_ERR,
    "CRIT": syslog.LOG_CRIT,
    "CRITICAL": syslog.LOG_CRIT,
}

PRIORITIES_REV = dict((v, k) for k, v in PRIORITIES.items())


def openlog(ident="exmap", usestderr=USESTDERR, facility=FACILITY):
    """Open the syslog logger.

    Args:
      ident: log identifier, prefixes messages.
      usestderr: also log to stderr stream.
      facility: the logging facility to use. See syslog(1)
    """
    opts = syslog.LOG_PID | (syslog.LOG_PERROR if usestderr else 0)
    if isinstance(facility, str):
        facility = getattr(syslog, "LOG_" + facility.upper())
    syslog.openlog(ident=ident, logoption=opts, facility=facility)


def closelog():
    """Close the syslog."""
    syslog.closelog()


def debug(msg, *args):
    """Send a log message at DEBUG priority."""
    if get_priority() >= syslog.LOG_DEBUG:
        syslog.syslog(syslog.LOG_DEBUG, _encode(msg, args))


def info(msg, *args):
    """Send a log message at INFO priority."""
    if get_priority() >= syslog.LOG_INFO:
        syslog.syslog(syslog.LOG_INFO, _encode(msg, args))


def notice(msg, *args):
    """Send a log message at NOTICE priority."""
    if get_priority() >= syslog.LOG_NOTICE:
        syslog.syslog(syslog.LOG_NOTICE, _encode(msg, args))


def warning(msg, *args):
    """Send a log message at WARNING priority."""
    if get_priority() >= syslog.LOG_WARNING:
        syslog.syslog(syslog.LOG_WARNING, _encode(msg, args))


def error(msg, *args):
    """Send a log message at ERROR priority."""
    if get_priority() >= syslog.LOG_ERR:
        syslog.syslog(syslog.LOG_ERR, _encode(msg, args))


def exception_error(prefix, ex, *args):
    """Log a compact exception at ERROR priority."""
    msg = _encode(prefix, args)
    error(f"{msg}: {_format_exception(ex)}")


def exception_warning(prefix, ex, *args):
    """Log a compact exception at WARNING priority."""
    msg = _encode(prefix, args)
    warning(f"{msg}: {_format_exception(ex)}")


def _format_exception(ex):
    return " | ".join([line.strip() for line in traceback.format_exception_only(ex)])


def _encode(o, args):
    msg = str(o).lstrip("\ufeff")
    if args:
        try:
            msg = msg % args
        except TypeError:
            msg = msg + " had format TypeError: " + str(args)
    # Add UTF8 BOM to message per RFC-5424. str is UTF-8 encoded by syslog module.
    return "\ufeff" + msg.replace("\r\n", " ")


def set_priority(level):
    """Set syslog priority.

    Args:
        level: syslog.LOG_* level, or a name from PRIORITIES.
    """
    if isinstance(level, str):
        level = PRIORITIES[level.upper()]
    syslog.setlogmask(syslog.LOG_UPTO(level))


def get_priority():
    """Get max syslog priority."""
    mask = syslog.setlogmask(0)
    for level in (
            syslog.LOG_DEBUG,
            syslog.LOG_INFO,
            syslog.LOG_NOTICE,
            syslog.LOG_WARNING,
            syslog.LOG_ERR,
            syslog.LOG_CRIT,
            syslog.LOG_ALERT,
            syslog.LOG_EMERG,
    ):
        if syslog.LOG_MASK(level) & mask:
            return level
    return syslog.LOG_DEBUG


class Logger:
    """Simple logger using only syslog.

    Users of this logging object will have ``name`` prefixed to every message.

    Args:
        name: name to prefix to logging messages. The program name will be used
          by default.
        usestderr: Also write log messages to stderr.
        facility: name of facility, such as "USER", "DAEMON" or "LOCAL0".
        priority: name of priority level to emit log messages at, a key of
          PRIORITIES. Default is "NOTICE".
    """

    _LOGGERS: Dict[str, "Logger"] = {}  # cache of all open loggers

    def __init__(
        self,
        name: Optional[str] = None,
        usestderr: Optional[bool] = False,
        facility: Optional[str] = FACILITY,
        priority: Optional[str] = PRIORITY,
    ):
        self.name = name or os.path.basename(sys.argv[0])
        openlog(self.name, usestderr, facility)
        self.priority = priority

    def __repr__(self):
        return "{}({!r})".format(self.__class__.__name__, self.name)

    def close(self):
        """Forget this logger. The syslog is closed with the last one."""
        Logger._LOGGERS.pop(self.name, None)
        if not Logger._LOGGERS:
            closelog()

    def debug(self, msg, *args):
        debug(f"{self.name}: {msg}", *args)

    def info(self, msg, *args):
        info(f"{self.name}: {msg}", *args)

    def notice(self, msg, *args):
        notice(f"{self.name}: {msg}", *args)

    def warning(self, msg, *args):
        warning(f"{self.name}: {msg}", *args)

    def error(self, msg, *args):
        error(f"{self.name}: {msg}", *args)

    def syslog(self, level, msg, *args):
        """Log a message at the given syslog level, if it passes the priority."""
        if get_priority() >= level:
            syslog.syslog(level, _encode(f"{self.name}: {msg}", args))

    def exception_error(self, prefix, exc, *args):
        """Log an exception as error."""
        exception_error(f"{self.name}: {prefix}", exc, *args)

    def exception_warning(self, prefix, exc, *args):
        """Log an exception as warning."""
        exception_warning(f"{self.name}: {prefix}", exc, *args)

    @property
    def priority(self):
        """The current priority level name."""
        return PRIORITIES_REV[get_priority()]

    @priority.setter
    def priority(self, newlevel):
        set_priority(newlevel)


def get_logger(name=None, usestderr=USESTDERR, facility=FACILITY, priority=PRIORITY):
    """Get a :py:class:`Logger` object.

    May return cached logger object. Global logger configuration reflects the
    last one created.
    """
    name = name or os.path.basename(sys.argv[0])
    if name in Logger._LOGGERS:
        return Logger._LOGGERS[name]
    logger = Logger(name=name, usestderr=usestderr, facility=facility, priority=priority)
    Logger._LOGGERS[name] = logger
    return logger


class LogLevel:
    """Context manager to run a block of code at a specific log level.

    Supply the level name as a string.
    """

    def __init__(self, level):
        self._level = PRIORITIES[level.upper()]
        self._oldpriority = 0

    def __enter__(self):
        self._oldpriority = syslog.setlogmask(syslog.LOG_UPTO(self._level))

    def __exit__(self, extype, exvalue, extb):
        syslog.setlogmask(self._oldpriority)


# Stock logging module compatibility. Syslog has a NOTICE level that the
# logging module lacks, it is mapped to WARNING there.
_LOGGING_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "NOTICE": logging.WARNING,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERR": logging.ERROR,
    "ERROR": logging.ERROR,
    "CRIT": logging.CRITICAL,
    "CRITICAL": logging.CRITICAL,
}


def _syslog_level(levelno):
    if levelno >= logging.CRITICAL:
        return syslog.LOG_CRIT
    if levelno >= logging.ERROR:
        return syslog.LOG_ERR
    if levelno >= logging.WARNING:
        return syslog.LOG_WARNING
    if levelno >= logging.INFO:
        return syslog.LOG_INFO
    return syslog.LOG_DEBUG


class SyslogHandler(logging.Handler):
    """Stock logging module handler that delegates to this module, thus syslog."""

    def emit(self, record):
        try:
            level = _syslog_level(record.levelno)
            if get_priority() >= level:
                syslog.syslog(level, _encode(f"{record.name}: {record.getMessage()}", ()))
        except Exception:  # noqa
            self.handleError(record)


openlog()
set_priority(PRIORITY)
logging.root.addHandler(SyslogHandler())
logging.root.setLevel(_LOGGING_LEVELS[PRIORITY])


if __name__ == "__main__":
    logger = get_logger("exmap", usestderr=True)
    logger.warning("a warning")
    logger.notice("a notice")
    logger.debug("You don't see me")
    with LogLevel("DEBUG"):
        logger.debug("Debug with arg: %s", "debug arg")
    try:
        raise MemoryError("bogus error")
    except MemoryError:
        logger.exception_error("Testing exception_error", sys.exception())
    logging.getLogger("thirdparty").error("through the stock logging module")
