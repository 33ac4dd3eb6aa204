# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
pytest configuration and common code lives here.
"""

import pytest

from exmap import config
from exmap import logging

from .util import make_process, maps_line


@pytest.fixture(autouse=True)
def fresh_config(tmp_path, monkeypatch):
    """Every test gets its own configuration, without the user's config file."""
    monkeypatch.setenv("EXMAPDIR", str(tmp_path / "exmapconfig"))
    config.reset()
    yield
    config.reset()


@pytest.fixture
def diagnostics(monkeypatch):
    """Collects the warnings that would go to syslog."""
    messages = []

    def _warning(msg, *args):
        messages.append(msg % args if args else msg)

    monkeypatch.setattr(logging, "warning", _warning)
    return messages


@pytest.fixture
def procroot(tmp_path):
    """A fake process directory with a few processes.

    1     readable, two areas, a command line.
    42    readable, one bad line between two good ones, no command line.
    99    exited, there is no maps file any more.
    self  not a process.
    """
    root = tmp_path / "proc"
    root.mkdir()
    make_process(root, 1, [
        maps_line(0x400000, 0x452000, "r-xp", 0, "08:02", 173521, "/sbin/init"),
        maps_line(0x651000, 0x672000, "rw-p", 0, path="[heap]"),
    ], cmdline=b"/sbin/init\0splash\0")
    make_process(root, 42, [
        maps_line(0x1000, 0x2000, "r--p", 0, "08:02", 7, "/usr/bin/cat"),
        "garbage text",
        maps_line(0x7fff0000, 0x7fff2000, "r-xp", 0, path="[vdso]"),
    ])
    make_process(root, 99)
    (root / "self").mkdir()
    (root / "meminfo").write_text("MemTotal: 1 kB\n")
    return root

# vim:ts=4:sw=4:softtabstop=4:smarttab:expandtab:fileencoding=utf-8
