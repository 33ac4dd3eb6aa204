# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""All common exceptions."""


class ExmapError(Exception):
    """Base class for all exmap errors."""


# Discovery and loading errors
class DirectoryUnavailable(ExmapError, OSError):
    """The process directory could not be enumerated.

    Nothing can be loaded without it, so this is fatal to the whole pass.
    """


class MappingFileUnavailable(ExmapError, OSError):
    """A process mapping table could not be opened or read.

    Usually the process exited after discovery, or we lack the privilege to
    read it. The process is left out of the pool.
    """


class MalformedLine(ExmapError, ValueError):
    """A mapping table line did not have the expected structure."""


class InternalInvariantViolation(ExmapError, AssertionError):
    """Parsed state is inconsistent. This is a bug, not bad input."""


# configuration errors
class ConfigError(ExmapError):
    """Base class for exceptions raised when querying a configuration.
    """


class ConfigValueError(ConfigError):
    """The value in the configuration is illegal."""


if __name__ == '__main__':
    try:
        raise MappingFileUnavailable("just testing")
    except OSError as err:
        print(err)
    else:
        raise AssertionError("Didn't get our exception")

# vim:ts=4:sw=4:softtabstop=4:smarttab:expandtab:fileencoding=utf-8
