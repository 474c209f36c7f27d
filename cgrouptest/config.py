"""
INI configuration shared by every subtest.

Files under ``config_defaults/`` are read first, then the same layout under
``config_custom/``, a custom file replacing only the options it names.  The
``[DEFAULTS]`` section lives in ``defaults.ini`` and seeds every other
section.  A subtest's section is named after its path below ``subtests/``
(``docker_cli/cpu_cgroups``); a sub-subtest appends its class name
(``docker_cli/cpu_cgroups/cgroups_updated``).

Option values are converted on access: integer, then boolean, then float,
else the raw string.
"""

from configparser import ConfigParser
from collections.abc import MutableMapping
import copy
import os.path

from cgrouptest import xceptions


#: Absolute path to directory containing this module
MYDIR = os.path.dirname(os.path.abspath(__file__))

#: Parent directory of directory containing this module
PARENTDIR = os.path.dirname(MYDIR)

#: Directory tree of shipped ini files
CONFIGDEFAULT = os.path.join(PARENTDIR, 'config_defaults')

#: Directory tree of site-local ini files, overriding CONFIGDEFAULT
CONFIGCUSTOMS = os.path.join(PARENTDIR, 'config_custom')

#: Name of file holding special DEFAULTS section and options
DEFAULTSFILE = 'defaults.ini'

#: ConfigParser getters tried in order by ConfigDict
_GETTERS = ('getint', 'getboolean', 'getfloat', 'get')


class ConfigDict(MutableMapping):

    """
    One INI section as a mapping with value conversion

    :param section: Section name
    :param defaults: Optional dict of string option values the section
                     falls back on
    """

    def __init__(self, section, defaults=None):
        self._section = section
        self._scp = ConfigParser(defaults)
        self._scp.add_section(section)

    def _keys(self):
        return set(key.lower() for key in self._scp.options(self._section))

    def __len__(self):
        return len(self._keys())

    def __iter__(self):
        return iter(sorted(self._keys()))

    def __contains__(self, key):
        return str(key).lower() in self._keys()

    def __getitem__(self, key):
        key = key.lower()
        if key not in self:
            raise xceptions.DockerKeyError(key)
        for getter in _GETTERS:
            try:
                return getattr(self._scp, getter)(self._section, key)
            except ValueError:
                pass
        raise xceptions.DockerConfigError(key, self._section,
                                          "Unparsable option")

    def __setitem__(self, key, value):
        self._scp.set(self._section, key, str(value))

    def __delitem__(self, key):
        self._scp.remove_option(self._section, key)

    def get_other(self, option, other=None):
        """Return option's value, or ``other`` when it's missing"""
        try:
            return self[option]
        except xceptions.DockerKeyError:
            return other

    def read(self, filelike):
        """Merge this section's options from an open INI file"""
        filelike.seek(0)
        scp = ConfigParser()
        scp.read_file(filelike)
        if not scp.has_section(self._section):
            return
        for key, value in scp.items(self._section, raw=True):
            self._scp.set(self._section, key, value)


class Config(dict):

    r"""
    Instantiating returns a private deep copy of all parsed sections.

    The parse happens once and is cached on the class; ``clear_cache()``
    forces the next instantiation to re-read the files.

    :param \*args: Same as built-in python ``dict()`` params.
    :param \*\*dargs: Same as built-in python ``dict()`` params.
    :return: Plain ``dict`` of section name to ``dict`` of options
    """

    #: Cached ``[DEFAULTS]`` options, string values
    defaults_ = None

    #: Cached section name -> converted options
    configs_ = None

    def __new__(cls, *args, **dargs):
        sections = copy.deepcopy(dict.__new__(cls).copy())
        sections.update(dict(*args, **dargs))
        return sections

    @classmethod
    def clear_cache(cls):
        """Drop parsed results, the next ``Config()`` reads files again"""
        cls.defaults_ = None
        cls.configs_ = None

    @property
    def defaults(self):
        """``[DEFAULTS]`` options as strings, custom file applied"""
        cls = self.__class__
        if cls.defaults_ is None:
            section = ConfigDict('DEFAULTS')
            for topdir in (CONFIGDEFAULT, CONFIGCUSTOMS):
                path = os.path.join(topdir, DEFAULTSFILE)
                if topdir == CONFIGCUSTOMS and not os.path.isfile(path):
                    continue
                with open(path) as defaults_file:
                    section.read(defaults_file)
            # ConfigParser defaults must be strings
            cls.defaults_ = dict((key, str(val))
                                 for key, val in section.items())
        return cls.defaults_

    @staticmethod
    def load_config_dir(dirpath, filenames, configs_dict, defaults_dict):
        """
        Merge every section of the ini files in dirpath into configs_dict

        :param dirpath: Directory holding the files
        :param filenames: Names of files in dirpath, non-ini ones ignored
        :param configs_dict: Section name -> options dict, updated in place
        :param defaults_dict: String options seeding new sections
        """
        for filename in sorted(filenames):
            if (filename == DEFAULTSFILE or filename.startswith('.') or
                    not filename.endswith('.ini')):
                continue
            with open(os.path.join(dirpath, filename)) as ini_file:
                scp = ConfigParser()
                scp.read_file(ini_file)
                for section in scp.sections():
                    if section == 'DEFAULTS':
                        continue
                    # A section seen before keeps options this file omits
                    base = configs_dict.get(section, defaults_dict)
                    merged = ConfigDict(section, dict((key, str(val))
                                                      for key, val
                                                      in base.items()))
                    merged.read(ini_file)
                    configs_dict[section] = dict(merged.items())

    @property
    def configs(self):
        """All sections, defaults tree first then customs"""
        cls = self.__class__
        if cls.configs_ is None:
            defaults = self.defaults
            configs_ = {'DEFAULTS': dict(ConfigDict('DEFAULTS',
                                                    defaults).items())}
            for topdir in (CONFIGDEFAULT, CONFIGCUSTOMS):
                for dirpath, _, filenames in sorted(os.walk(topdir,
                                                            followlinks=True)):
                    self.load_config_dir(dirpath, filenames,
                                         configs_, defaults)
            cls.configs_ = configs_
        return cls.configs_

    def copy(self):
        """Plain dict of plain dicts, one per section"""
        return dict((name, dict(options))
                    for name, options in self.configs.items())


def get_as_list(value, sep=",", omit_empty=True):
    """
    Split a config value into a list of stripped items

    :param value: Value to split, converted with ``str()`` first
    :param sep: Item separator
    :param omit_empty: Leave out items that are blank
    """
    items = [item.strip() for item in str(value).split(sep)]
    if omit_empty:
        return [item for item in items if item]
    return items


def none_if_empty(dict_like, key_name=None):
    """
    Replace blank string values in dict_like with None

    :param dict_like: Mapping to modify in place
    :param key_name: Only look at this key (need not exist), else all keys
    """
    if key_name is None:
        keys = list(dict_like.keys())
    else:
        keys = [key_name]
    for key in keys:
        value = dict_like.get(key, "")
        if isinstance(value, str) and not value.strip():
            dict_like[key] = None
