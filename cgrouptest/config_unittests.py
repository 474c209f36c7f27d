#!/usr/bin/env python3

import io
import os
import os.path
import shutil
import tempfile
import unittest

from cgrouptest import config
from cgrouptest.xceptions import DockerKeyError


DEFAULTS_INI = """[DEFAULTS]
tEsTOPTioNi = 2
TesToPTIONf = 3.14
testoptionS = foobarbaz
"""

SECTION_INI = """[TestSection]
TestOptionB = no
TesTopTIONs = baz!
testoptionx = True
"""


class ConfigTestBase(unittest.TestCase):

    def setUp(self):
        self.config = config
        self.saved = (config.CONFIGDEFAULT, config.CONFIGCUSTOMS)
        config.CONFIGDEFAULT = tempfile.mkdtemp(self.__class__.__name__)
        config.CONFIGCUSTOMS = tempfile.mkdtemp(self.__class__.__name__)
        config.Config.clear_cache()

    def tearDown(self):
        shutil.rmtree(config.CONFIGDEFAULT, ignore_errors=True)
        shutil.rmtree(config.CONFIGCUSTOMS, ignore_errors=True)
        self.assertFalse(os.path.isdir(config.CONFIGDEFAULT))
        self.assertFalse(os.path.isdir(config.CONFIGCUSTOMS))
        config.CONFIGDEFAULT, config.CONFIGCUSTOMS = self.saved
        config.Config.clear_cache()

    @staticmethod
    def write_ini(dirpath, filename, content):
        fullpath = os.path.join(dirpath, filename)
        if not os.path.isdir(os.path.dirname(fullpath)):
            os.makedirs(os.path.dirname(fullpath))
        with open(fullpath, 'w') as ini:
            ini.write(content)
        return fullpath


class TestConfigDict(ConfigTestBase):

    def setUp(self):
        super(TestConfigDict, self).setUp()
        self.testfile = io.StringIO("[TestSection]\n"
                                    "TEStoptionb = yes\n"
                                    "TestOPTiOni = 2\n"
                                    "TestoPtionF = 3.14\n"
                                    "TeSToptionS = foobarbaz\n")

    def test_config_dict_pruned(self):
        foobar = self.config.ConfigDict('NotExist')
        foobar.read(self.testfile)
        self.assertEqual(len(foobar), 0)

    def test_config_dict_read(self):
        foobar = self.config.ConfigDict('TestSection')
        foobar.read(self.testfile)
        self.assertEqual(len(foobar), 4)

    def test_config_dict_convert(self):
        foobar = self.config.ConfigDict('TestSection')
        foobar.read(self.testfile)
        self.assertEqual(foobar['testoptions'], "foobarbaz")
        self.assertAlmostEqual(foobar['testoptionf'], 3.14)
        self.assertEqual(foobar['testoptioni'], 2)
        self.assertEqual(foobar['testoptionb'], True)

    def test_basic_functionality(self):
        foobar = self.config.ConfigDict('TestSection')
        self.assertRaises(DockerKeyError, foobar.__getitem__, 'aaa')
        foobar['aaa'] = 'AAA'
        self.assertEqual(foobar['aaa'], "AAA")
        self.assertEqual(foobar.get_other('bbb', 'BBB'), 'BBB')
        del foobar['aaa']
        self.assertNotIn('aaa', foobar)

    def test_defaults(self):
        foobar = self.config.ConfigDict('TestSection', {'empty': '',
                                                        'dash': '-D'})
        self.assertEqual(foobar['empty'], '')
        self.assertEqual(foobar['dash'], '-D')


class TestConfig(ConfigTestBase):

    def setUp(self):
        super(TestConfig, self).setUp()
        self.write_ini(self.config.CONFIGDEFAULT, self.config.DEFAULTSFILE,
                       DEFAULTS_INI)
        self.write_ini(self.config.CONFIGDEFAULT, 'test.ini', SECTION_INI)

    def test_config_defaults(self):
        foobar = self.config.Config()
        self.assertEqual(len(foobar), 2)
        testsection = foobar['TestSection']
        self.assertEqual(len(testsection), 5)
        self.assertEqual(testsection['testoptioni'], 2)
        self.assertEqual(testsection['testoptionb'], False)
        self.assertAlmostEqual(testsection['testoptionf'], 3.14)
        self.assertEqual(testsection['testoptions'], "baz!")
        self.assertEqual(testsection['testoptionx'], True)

    def test_cached_copy(self):
        foo = self.config.Config()
        bar = self.config.Config()
        self.assertNotEqual(id(foo), id(bar))
        foo['TestSection']['testoptioni'] = 42
        self.assertEqual(bar['TestSection']['testoptioni'], 2)
        self.assertEqual(self.config.Config()['TestSection']['testoptioni'],
                         2)

    def test_subdirectory_sections(self):
        self.write_ini(self.config.CONFIGDEFAULT,
                       os.path.join('subtests', 'docker_cli', 'foo.ini'),
                       "[docker_cli/foo]\ntestoptioni = 5\n\n"
                       "[docker_cli/foo/bar]\ntestoptionx = false\n")
        config = self.config.Config()
        self.assertEqual(len(config), 4)
        self.assertEqual(config['docker_cli/foo']['testoptioni'], 5)
        self.assertEqual(config['docker_cli/foo']['testoptions'],
                         "foobarbaz")  # default
        self.assertEqual(config['docker_cli/foo/bar']['testoptionx'], False)
        self.assertEqual(config['docker_cli/foo/bar']['testoptioni'], 2)

    def test_custom_overrides(self):
        self.write_ini(self.config.CONFIGCUSTOMS, 'custom.ini',
                       "[TestSection]\ntestoptions = custom\n")
        testsection = self.config.Config()['TestSection']
        self.assertEqual(testsection['testoptions'], "custom")
        # Options not mentioned in custom file survive
        self.assertEqual(testsection['testoptionb'], False)

    def test_custom_defaults(self):
        self.write_ini(self.config.CONFIGCUSTOMS, self.config.DEFAULTSFILE,
                       "[DEFAULTS]\ntestoptioni = 7\n")
        config = self.config.Config()
        self.assertEqual(config['DEFAULTS']['testoptioni'], 7)
        self.assertEqual(config['TestSection']['testoptioni'], 7)
        self.assertAlmostEqual(config['DEFAULTS']['testoptionf'], 3.14)

    def test_ignored_files(self):
        self.write_ini(self.config.CONFIGDEFAULT, 'README',
                       "[Ignored]\nfoo = bar\n")
        self.write_ini(self.config.CONFIGDEFAULT, '.hidden.ini',
                       "[Hidden]\nfoo = bar\n")
        self.assertEqual(sorted(self.config.Config().keys()),
                         ['DEFAULTS', 'TestSection'])


class TestUtilities(unittest.TestCase):

    def test_get_as_list(self):
        self.assertEqual(config.get_as_list("a, b,,c "), ['a', 'b', 'c'])
        self.assertEqual(config.get_as_list("a,,b", omit_empty=False),
                         ['a', '', 'b'])
        self.assertEqual(config.get_as_list(""), [])
        self.assertEqual(config.get_as_list("a:b", sep=":"), ['a', 'b'])

    def test_nfe_all(self):
        test_dict = {'foo': 0, 'bar': None, 'baz': "      "}
        config.none_if_empty(test_dict)
        self.assertEqual(test_dict, {'foo': 0, 'bar': None, 'baz': None})

    def test_nfe_one(self):
        test_dict = {'foo': 0, 'bar': None, 'baz': "      "}
        config.none_if_empty(test_dict, 'bar')
        self.assertEqual(test_dict, {'foo': 0, 'bar': None, 'baz': "      "})

    def test_nfe_another(self):
        test_dict = {'foo': 0, 'bar': None, 'baz': "      "}
        config.none_if_empty(test_dict, 'baz')
        self.assertEqual(test_dict, {'foo': 0, 'bar': None, 'baz': None})


class TestRealDefaults(unittest.TestCase):

    def setUp(self):
        config.Config.clear_cache()

    def tearDown(self):
        config.Config.clear_cache()

    def test_cpu_cgroups_section(self):
        configs = config.Config()
        defaults = configs['DEFAULTS']
        self.assertEqual(defaults['cgroup_root'], '/sys/fs/cgroup')
        self.assertEqual(defaults['cgroup_default_parent'], 'docker')
        self.assertEqual(defaults['remove_after_test'], True)
        section = configs['docker_cli/cpu_cgroups']
        self.assertEqual(config.get_as_list(section['subsubtests']),
                         ['cgroups_deleted', 'cgroups_updated'])
        updated = configs['docker_cli/cpu_cgroups/cgroups_updated']
        self.assertAlmostEqual(updated['update_cpus'], 2.5)
        self.assertEqual(updated['update_cpu_shares'], 738)


if __name__ == '__main__':
    unittest.main()
