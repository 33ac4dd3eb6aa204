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
Unit tests for exmap.pool.
"""

import pytest

from exmap import config
from exmap.os import procfs
from exmap.pool import Pool
from exmap.core.exceptions import (DirectoryUnavailable, InternalInvariantViolation,
                                   ConfigValueError)

from .util import make_process, maps_line


@pytest.fixture
def pool(procroot):
    pool = Pool(str(procroot))
    pool.load_procs()
    return pool


class TestPool:

    def test_admits_loadable(self, pool):
        assert len(pool) == 2
        assert sorted(pool.pids()) == ["1", "42"]

    def test_exited_not_admitted(self, pool):
        assert 99 not in pool
        assert "99" not in pool.by_pid
        assert pool.get(99) is None
        with pytest.raises(KeyError):
            pool[99]

    def test_index_matches_enumeration(self, pool):
        assert set(pool.by_pid) == {proc.pid for proc in pool}
        assert len(pool.by_pid) == len(pool.processes)
        for proc in pool.processes:
            assert pool.by_pid[proc.pid] is proc

    def test_lookup_str_or_int(self, pool):
        assert pool[1] is pool["1"]
        assert pool.get("42").pid == "42"
        assert 1 in pool and "1" in pool

    def test_vmas_in_table_order(self, pool):
        proc = pool[42]
        starts = [vma.address_start for vma in proc.vmas]
        assert starts == sorted(starts)
        assert len(starts) == 2

    def test_index_read_only(self, pool):
        with pytest.raises(TypeError):
            pool.by_pid["5"] = None

    def test_discovery_order(self, procroot, monkeypatch):
        monkeypatch.setattr(procfs, "list_pids", lambda root: ["42", "99", "1"])
        pool = Pool(str(procroot))
        assert pool.load_procs() == 2
        assert pool.pids() == ["42", "1"]

    def test_duplicate_pid(self, procroot, monkeypatch):
        monkeypatch.setattr(procfs, "list_pids", lambda root: ["1", "1"])
        pool = Pool(str(procroot))
        with pytest.raises(InternalInvariantViolation):
            pool.load_procs()

    def test_load_twice(self, pool):
        with pytest.raises(InternalInvariantViolation):
            pool.load_procs()

    def test_empty_pool_load_twice(self, tmp_path):
        pool = Pool(str(tmp_path))
        assert pool.load_procs() == 0
        with pytest.raises(InternalInvariantViolation):
            pool.load_procs()

    def test_no_directory(self, tmp_path):
        pool = Pool(str(tmp_path / "nothere"))
        with pytest.raises(DirectoryUnavailable):
            pool.load_procs()
        assert len(pool) == 0

    def test_empty_directory(self, tmp_path):
        pool = Pool(str(tmp_path))
        assert pool.load_procs() == 0
        assert pool.processes == ()


class TestPoolConfig:

    def test_settings_from_config(self, procroot):
        config.get_config(initdict={"proc.root": str(procroot), "vma.mode": "tokens"})
        pool = Pool()
        assert pool.root == str(procroot)
        assert pool.mode == "tokens"
        assert pool.path_column == 49
        pool.load_procs()
        assert pool[1].vmas[1].is_heap

    def test_defaults(self):
        pool = Pool()
        assert pool.root == "/proc"
        assert pool.mode == "column"
        assert pool.path_column == 49

    def test_unknown_mode(self, procroot):
        with pytest.raises(ConfigValueError):
            Pool(str(procroot), mode="guess")

    def test_tokens_mode(self, tmp_path):
        make_process(tmp_path, 10, [
            "7f0000000000-7f0000001000 r-xp 00000000 fd:01 1 /x/libc.so",
            maps_line(0x1000, 0x2000, "rw-p"),
        ])
        pool = Pool(str(tmp_path), mode="tokens")
        pool.load_procs()
        assert [vma.backing for vma in pool[10].vmas] == ["/x/libc.so", "[anon]"]

# vim:ts=4:sw=4:softtabstop=4:smarttab:expandtab
