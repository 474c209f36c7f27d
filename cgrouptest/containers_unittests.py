#!/usr/bin/env python3

import shlex
import unittest

from mock import patch

from cgrouptest import containers
from cgrouptest.subtestbase import SubBase
from cgrouptest.utils import CmdResult
from cgrouptest.xceptions import CmdError, DockerTestError


class FakeSubtest(SubBase):

    def __init__(self, **config):
        super(FakeSubtest, self).__init__()
        self.config = {'docker_path': '/usr/bin/docker',
                       'docker_options': '-D',
                       'docker_timeout': 60.0,
                       'preserve_cnames': ''}
        self.config.update(config)


class FakeRun(object):

    """Records commands, answers ``ps`` and ``rm`` against ``names``"""

    def __init__(self, names):
        self.names = list(names)
        self.commands = []

    def __call__(self, command, timeout=None, verbose=True,
                 ignore_status=False):
        self.commands.append(command)
        args = shlex.split(command)
        if 'ps' in args:
            return CmdResult(command, "\n".join(self.names) + "\n", "", 0)
        if 'rm' in args:
            name = args[-1]
            if name not in self.names:
                result = CmdResult(command, "", "No such container", 1)
                raise CmdError(command, result)
            self.names.remove(name)
            return CmdResult(command, name + "\n", "", 0)
        raise ValueError("Unexpected command %s" % command)


class ContainersTestBase(unittest.TestCase):

    names = ('foo', 'bar', 'FakeSubtest-abcd')

    def setUp(self):
        self.fake_run = FakeRun(self.names)
        patcher = patch('cgrouptest.utils.run', self.fake_run)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.subtest = FakeSubtest()
        self.dc = containers.DockerContainers(self.subtest)


class DockerContainersTest(ContainersTestBase):

    def test_not_subbase(self):
        self.assertRaises(DockerTestError, containers.DockerContainers,
                          object())

    def test_timeout(self):
        self.assertEqual(self.dc.timeout, 60.0)
        self.assertEqual(containers.DockerContainers(self.subtest,
                                                     timeout=3).timeout, 3.0)

    def test_list_names(self):
        self.assertEqual(self.dc.list_container_names(),
                         ['foo', 'bar', 'FakeSubtest-abcd'])
        self.assertEqual(self.fake_run.commands[-1],
                         '/usr/bin/docker -D ps --all --no-trunc '
                         '--format "{{.Names}}"')

    def test_exists(self):
        self.assertTrue(self.dc.exists('foo'))
        self.assertFalse(self.dc.exists('baz'))

    def test_unique_name(self):
        name = self.dc.get_unique_name()
        self.assertTrue(name.startswith('FakeSubtest-'))
        self.assertNotIn(name, self.names)
        name = self.dc.get_unique_name('pre', 'post', 8)
        self.assertTrue(name.startswith('FakeSubtest-pre-'))
        self.assertTrue(name.endswith('-post'))
        self.assertEqual(len(name), len('FakeSubtest-pre--post') + 8)

    def test_remove_by_name(self):
        self.assertTrue(self.dc.remove_by_name('foo'))
        self.assertEqual(self.fake_run.commands[-1],
                         '/usr/bin/docker -D rm --force foo')
        self.assertFalse(self.dc.exists('foo'))

    def test_remove_missing(self):
        self.assertFalse(self.dc.remove_by_name('baz'))

    def test_remove_no_args(self):
        self.dc.remove_args = ''
        self.assertTrue(self.dc.remove_by_name('bar'))
        self.assertEqual(self.fake_run.commands[-1],
                         '/usr/bin/docker -D rm bar')


class CleanAllTest(ContainersTestBase):

    def test_string(self):
        self.assertRaises(TypeError, self.dc.clean_all, 'foo')

    def test_clean(self):
        self.dc.clean_all(['foo', 'baz'])
        self.assertEqual(self.fake_run.names, ['bar', 'FakeSubtest-abcd'])
        removes = [cmd for cmd in self.fake_run.commands if ' rm ' in cmd]
        self.assertEqual(removes,
                         ['/usr/bin/docker -D rm --force --volumes foo'])

    def test_preserve(self):
        self.subtest.config['preserve_cnames'] = 'foo, bar'
        self.dc.clean_all(['foo', 'bar', 'FakeSubtest-abcd'])
        self.assertEqual(self.fake_run.names, ['foo', 'bar'])


if __name__ == '__main__':
    unittest.main()
