#!/usr/bin/env python3

import os
import os.path
import shutil
import tempfile
import unittest

from mock import Mock, patch

from cgrouptest import cgroups
from cgrouptest.subtestbase import SubBase
from cgrouptest.utils import CmdResult
from cgrouptest.xceptions import (CgroupIdLookupError, DockerIOError,
                                  DockerValueError)


LONG_ID = "4f1e" * 16


class FakeSubtest(SubBase):

    def __init__(self, **config):
        super(FakeSubtest, self).__init__()
        self.config = {'docker_path': '/usr/bin/docker',
                       'docker_options': '',
                       'docker_timeout': 60.0,
                       'cgroup_root': '/sys/fs/cgroup',
                       'cgroup_default_parent': 'docker'}
        self.config.update(config)


def inspect_results(long_id=LONG_ID, parent='', id_status=0,
                    parent_status=0):
    """Return side_effect for CgroupLocator.inspect"""
    def side_effect(name, fmt):
        if fmt == '{{.Id}}':
            return CmdResult('inspect', long_id + "\n",
                             "no such object" if id_status else "",
                             id_status)
        return CmdResult('inspect', parent + "\n",
                         "parse error" if parent_status else "",
                         parent_status)
    return side_effect


class TestCgroupPath(unittest.TestCase):

    def test_join(self):
        self.assertEqual(cgroups.cgroup_path('/sys/fs/cgroup', 'cpu',
                                             'docker', LONG_ID),
                         '/sys/fs/cgroup/cpu/docker/' + LONG_ID)
        self.assertEqual(cgroups.cgroup_path('/sys/fs/cgroup', 'cpuset',
                                             'docker', 'abc'),
                         '/sys/fs/cgroup/cpuset/docker/abc')

    def test_deterministic(self):
        args = ('/cg', 'cpu', 'mygroup', LONG_ID)
        self.assertEqual(cgroups.cgroup_path(*args),
                         cgroups.cgroup_path(*args))

    def test_nested_parent(self):
        self.assertEqual(cgroups.cgroup_path('/cg', 'cpu', '/a/b/', 'x'),
                         '/cg/cpu/a/b/x')

    def test_unknown_controller(self):
        self.assertRaises(DockerValueError, cgroups.cgroup_path,
                          '/cg', 'memory', 'docker', LONG_ID)

    def test_empty_segments(self):
        self.assertRaises(DockerValueError, cgroups.cgroup_path,
                          '/cg', 'cpu', '', LONG_ID)
        self.assertRaises(DockerValueError, cgroups.cgroup_path,
                          '/cg', 'cpu', 'docker', '')


class TestCpuValues(unittest.TestCase):

    def test_cfs_quota(self):
        self.assertEqual(cgroups.cfs_quota(2.5), 250000)
        self.assertEqual(cgroups.cfs_quota('1'), 100000)
        self.assertEqual(cgroups.cfs_quota(0.5, 50000), 25000)

    def test_cpuset_default(self):
        self.assertEqual(cgroups.expected_cpuset('1', arch='x86_64'), '1')
        self.assertEqual(cgroups.expected_cpuset(1, arch='s390x'), '1')

    def test_cpuset_ppc64le(self):
        self.assertEqual(cgroups.expected_cpuset('1', arch='ppc64le'), '8')

    def test_cpuset_table(self):
        table = {'aarch64': '2'}
        self.assertEqual(cgroups.expected_cpuset('1', 'aarch64', table), '2')
        self.assertEqual(cgroups.expected_cpuset('1', 'ppc64le', table), '1')

    def test_cpuset_host(self):
        with patch.object(cgroups, 'host_arch', Mock(return_value='ppc64le')):
            self.assertEqual(cgroups.expected_cpuset('1'), '8')


class TestControlFiles(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(self.__class__.__name__)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_read_value(self):
        with open(os.path.join(self.tmpdir, 'cpu.shares'), 'w') as shares:
            shares.write("738\n")
        self.assertEqual(cgroups.read_value(self.tmpdir, 'cpu.shares'),
                         '738')

    def test_read_missing(self):
        self.assertRaises(DockerIOError, cgroups.read_value,
                          self.tmpdir, 'cpu.shares')

    def test_add_process(self):
        cgroups.add_process(1234, self.tmpdir)
        self.assertEqual(cgroups.read_value(self.tmpdir, cgroups.PROCS),
                         '1234')

    def test_add_process_missing_dir(self):
        self.assertRaises(DockerIOError, cgroups.add_process, 1234,
                          os.path.join(self.tmpdir, 'gone'))


class TestCgroupLocator(unittest.TestCase):

    def setUp(self):
        self.subtest = FakeSubtest()
        self.locator = cgroups.CgroupLocator(self.subtest)

    def test_config(self):
        locator = cgroups.CgroupLocator(FakeSubtest(cgroup_root='/tmp/cg',
                                                    cgroup_default_parent=''))
        self.assertEqual(locator.cgroup_root, '/tmp/cg')
        self.assertEqual(locator.default_parent, 'docker')

    def test_default_parent(self):
        self.locator.inspect = Mock(side_effect=inspect_results())
        self.assertEqual(self.locator.resolve_path('foo', 'cpu'),
                         '/sys/fs/cgroup/cpu/docker/' + LONG_ID)

    def test_parent_override(self):
        self.locator.inspect = Mock(side_effect=inspect_results(
            parent='mygroup'))
        self.assertEqual(self.locator.resolve_path('foo', 'cpuset'),
                         '/sys/fs/cgroup/cpuset/mygroup/' + LONG_ID)

    def test_parent_lookup_fails(self):
        self.locator.inspect = Mock(side_effect=inspect_results(
            parent='ignored', parent_status=1))
        self.assertEqual(self.locator.parent_group('foo'), 'docker')
        self.assertEqual(self.locator.resolve_path('foo', 'cpu'),
                         '/sys/fs/cgroup/cpu/docker/' + LONG_ID)

    def test_id_lookup_fails(self):
        self.locator.inspect = Mock(side_effect=inspect_results(id_status=1))
        self.assertRaises(CgroupIdLookupError,
                          self.locator.resolve_path, 'foo', 'cpu')

    def test_id_empty(self):
        self.locator.inspect = Mock(side_effect=inspect_results(long_id=''))
        try:
            self.locator.container_id('foo')
        except CgroupIdLookupError as xcept:
            self.assertEqual(xcept.name, 'foo')
            self.assertIn('Could not get container ID for foo', str(xcept))
        else:
            self.fail("Empty ID accepted")

    def test_resolve_paths(self):
        self.locator.inspect = Mock(side_effect=inspect_results(
            parent='/p/q'))
        self.assertEqual(self.locator.resolve_paths('foo'),
                         {'cpu': '/sys/fs/cgroup/cpu/p/q/' + LONG_ID,
                          'cpuset': '/sys/fs/cgroup/cpuset/p/q/' + LONG_ID})

    def test_inspect_command(self):
        with patch('cgrouptest.utils.run') as run:
            run.return_value = CmdResult('x', LONG_ID, '', 0)
            self.assertEqual(self.locator.container_id('foo'), LONG_ID)
        command = run.call_args[0][0]
        self.assertEqual(command,
                         "/usr/bin/docker inspect --format {{.Id}} foo")
        self.assertTrue(run.call_args[1]['ignore_status'])


if __name__ == '__main__':
    unittest.main()
