#!/usr/bin/env python3

import unittest

from mock import patch

from cgrouptest import dockercmd
from cgrouptest.subtestbase import SubBase
from cgrouptest.utils import CmdResult
from cgrouptest.xceptions import DockerTestError


class FakeSubtest(SubBase):

    def __init__(self):
        super(FakeSubtest, self).__init__()
        self.config = {'docker_path': '/foo/bar',
                       'docker_options': '--not_exist',
                       'docker_timeout': 60.0}


class DockerCmdTestBase(unittest.TestCase):

    def setUp(self):
        self.fake_subtest = FakeSubtest()
        patcher = patch('cgrouptest.utils.run')
        self.run = patcher.start()
        self.addCleanup(patcher.stop)
        self.run.side_effect = lambda command, **dargs: CmdResult(
            command, 'stdout', 'stderr', 3, 1.5)


class DockerCmdTest(DockerCmdTestBase):

    def test_no_subcmd(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, '')
        self.assertEqual(docker_command.command, '/foo/bar --not_exist')

    def test_subcmd(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'fake_subcmd')
        self.assertEqual(docker_command.command,
                         '/foo/bar --not_exist fake_subcmd')

    def test_subargs(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'fake_subcmd',
                                             ['1', None, ' ', 'two', 3])
        self.assertEqual(docker_command.subargs, ['1', 'two', '3'])
        self.assertEqual(docker_command.command,
                         '/foo/bar --not_exist fake_subcmd 1 two 3')

    def test_string_subargs(self):
        self.assertRaises(DockerTestError, dockercmd.DockerCmd,
                          self.fake_subtest, 'fake_subcmd', 'one two')

    def test_not_subbase(self):
        self.assertRaises(DockerTestError, dockercmd.DockerCmd,
                          object(), 'fake_subcmd')

    def test_timeout(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'foo')
        self.assertEqual(docker_command.timeout, 60.0)
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'foo',
                                             timeout=5)
        self.assertEqual(docker_command.timeout, 5.0)

    def test_before_execute(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'foo')
        self.assertEqual(docker_command.cmdresult, None)
        self.assertRaises(DockerTestError, getattr, docker_command, 'stdout')
        self.assertEqual(str(docker_command),
                         "Command: /foo/bar --not_exist foo")

    def test_execute(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'fake_subcmd',
                                             ['arg'])
        cmdresult = docker_command.execute()
        self.assertEqual(cmdresult.command,
                         '/foo/bar --not_exist fake_subcmd arg')
        self.assertEqual(docker_command.stdout, 'stdout')
        self.assertTrue(self.run.call_args[1]['ignore_status'])
        self.assertEqual(self.run.call_args[1]['timeout'], 60.0)
        self.assertIn('Exit code: 3', str(docker_command))
        self.assertIn('Duration: 1.5', str(docker_command))

    def test_result_copied(self):
        docker_command = dockercmd.DockerCmd(self.fake_subtest, 'foo')
        cmdresult = docker_command.execute()
        cmdresult.stdout = 'changed'
        self.assertEqual(docker_command.stdout, 'stdout')


if __name__ == '__main__':
    unittest.main()
