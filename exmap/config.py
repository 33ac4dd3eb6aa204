# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
r"""Configuration object and factory function.

Based on the confuse YAML configuration module.

Config files are merged together from various sources. The default values are
embedded here in the file config_default.yaml. Users may override, or set
additional values, by placing a "config.yaml" file in the user configuration
directory, `~/.config/exmap/`. Set the EXMAPDIR environment variable to use a
different directory.

The values that matter to the loader are:

    proc.root         where the process information filesystem is mounted.
    proc.maps         name of the per-process mapping table file.
    proc.cmdline      name of the per-process command line file.
    vma.path_column   column where the path field of a maps line starts.
    vma.mode          "column" or "tokens", how to locate the path field.
"""

from copy import deepcopy

import confuse

from exmap.core.exceptions import ConfigValueError

VMA_MODES = ("column", "tokens")

_CONFIG = None  # singleton instance.


class ConfigDict(dict):
    """Configuration Dictionary.

    Provides both attribute style and normal mapping style syntax to access
    mapping values.

    Also features "reaching into" sub-containers using a dot-delimited syntax
    for the key:

        >>> cf = config.get_config()
        >>> print(cf.vma.path_column)
        49
        >>> cf["vma.path_column"]
        49
    """

    def __init__(self, *args, **kwargs):
        self.__dict__["_depth"] = kwargs.pop("_depth", 0)
        dict.__init__(self, *args, **kwargs)

    def __repr__(self):
        return "{}({})".format(self.__class__.__name__, dict.__repr__(self))

    def __setitem__(self, name, value):
        d, name = self._get_subtree(name)
        return dict.__setitem__(d, name, value)

    def __getitem__(self, name):
        d, name = self._get_subtree(name)
        return dict.__getitem__(d, name)

    def __delitem__(self, name):
        d, name = self._get_subtree(name)
        return dict.__delitem__(d, name)

    def _get_subtree(self, name):
        d = self
        depth = self.__dict__["_depth"]
        parts = name.split(".")
        for part in parts[:-1]:
            depth += 1
            d = d.setdefault(part, self.__class__(_depth=depth))
        return d, parts[-1]

    __setattr__ = __setitem__
    __delattr__ = __delitem__

    def __getattr__(self, name):
        try:
            return self.__getitem__(name)
        except KeyError:
            raise AttributeError("ConfigDict: No attribute or key {!r}".format(name)) from None

    # Deep copies get regular dictionaries, not new ConfigDict
    def __deepcopy__(self, memo):
        new = dict()
        for key, value in self.items():
            new[key] = deepcopy(value, memo)
        return new


def _to_configdict(mapping, depth=0):
    cd = ConfigDict(_depth=depth)
    for key, value in mapping.items():
        if isinstance(value, dict):
            value = _to_configdict(value, depth + 1)
        cd[key] = value
    return cd


def check_mode(mode):
    """Raise ConfigValueError unless mode is a known way of finding the path field."""
    if mode not in VMA_MODES:
        raise ConfigValueError("vma.mode must be one of {}, not {!r}".format(VMA_MODES, mode))
    return mode


def _check(cf):
    check_mode(cf.vma.mode)
    try:
        cf.vma.path_column = int(cf.vma.path_column)
    except (TypeError, ValueError):
        raise ConfigValueError(
            "vma.path_column must be an integer, not {!r}".format(cf.vma.path_column)) from None


def get_config(initdict=None, _filename=None, **kwargs):
    """Get primary configuration.

    Returns a ConfigDict containing configuration parameters. An extra
    dictionary may be merged in with the 'initdict' parameter, its keys may
    use the dotted path syntax. And finally, extra options may also be added
    with keyword parameters. Both take priority over the files.

    There is only one configuration in the program, and this will return it.
    This is the primary interface to obtain it.

    Returns:
        A :class:`ConfigDict` instance.

    Raises:
        ConfigValueError if a loader setting is not usable.
    """
    global _CONFIG
    if _CONFIG is None:
        cf = confuse.Configuration("exmap", "exmap.config")
        if _filename:
            cf.set_file(_filename)
        if isinstance(initdict, dict):
            # Expand dotted keys so confuse merges them into the right subtree.
            cf.set(deepcopy(_to_configdict(initdict)))
        if kwargs:
            cf.set(kwargs)
        newcf = _to_configdict(cf.flatten())
        _check(newcf)
        _CONFIG = newcf
    return _CONFIG


def reset():
    """Drop the singleton so the next get_config call reads the sources again."""
    global _CONFIG
    _CONFIG = None


def show_config(cf, _path=None):
    """Print the configuration as a list of paths and the end value.
    """
    path = _path or []
    keys = sorted(cf.keys())
    for key in keys:
        value = cf[key]
        path.append(key)
        if isinstance(value, dict):
            show_config(value, path)
        else:
            print(".".join(path), "=", repr(value))
        path.pop(-1)


if __name__ == "__main__":
    cf = get_config()
    show_config(cf)
    reset()
    cf = get_config(initdict={"vma.mode": "tokens"})
    assert cf.vma.mode == "tokens"
