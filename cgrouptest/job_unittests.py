#!/usr/bin/env python3

import os
import os.path
import shutil
import tempfile
import unittest

from mock import Mock

from cgrouptest import config, job
from cgrouptest.xceptions import (CmdError, DockerIOError, DockerOutputError,
                                  DockerTestError, DockerTestFail,
                                  DockerTestNAError)


PASSING = """
from cgrouptest.subtest import Subtest


class passing(Subtest):

    iterations = 3

    def initialize(self):
        super(passing, self).initialize()
        self.stuff['runs'] = []

    def run_once(self):
        super(passing, self).run_once()
        self.stuff['runs'].append(self.iteration)
"""

FAILING = """
from cgrouptest.subtest import Subtest
from cgrouptest.xceptions import DockerTestFail


class failing(Subtest):

    def postprocess(self):
        super(failing, self).postprocess()
        raise DockerTestFail("values differ")
"""


class StatusTest(unittest.TestCase):

    def test_status_of(self):
        self.assertEqual(job.status_of(DockerTestNAError("na")), job.TEST_NA)
        self.assertEqual(job.status_of(DockerTestFail("fail")), job.FAIL)
        self.assertEqual(job.status_of(DockerTestError("error")), job.ERROR)
        self.assertEqual(job.status_of(CmdError("docker ps")), job.ERROR)
        self.assertEqual(job.status_of(ValueError("bug")), job.ERROR)
        self.assertEqual(job.status_of(DockerIOError("cpu.shares")), job.ERROR)
        self.assertEqual(job.status_of(DockerOutputError("panic")), job.ERROR)

    def test_result(self):
        result = job.SubtestResult('docker_cli/cpu_cgroups', job.GOOD)
        self.assertFalse(result.failed)
        self.assertIn('docker_cli/cpu_cgroups', str(result))
        for status in (job.FAIL, job.ERROR):
            self.assertTrue(job.SubtestResult('x', status, 'why').failed)
        result = job.SubtestResult('x', job.TEST_NA, 'not root')
        self.assertFalse(result.failed)
        self.assertTrue(str(result).endswith('x: not root'))


class FakeStages(object):

    iterations = 2
    iteration = None

    def __init__(self, fail_stage=None, exception=DockerTestFail):
        self.fail_stage = fail_stage
        self.exception = exception
        self.called = []
        self.loginfo = Mock()
        self.logtraceback = Mock()

    def stage(self, name):
        self.called.append(name)
        if name == self.fail_stage:
            raise self.exception(name)

    def initialize(self):
        self.stage('initialize')

    def run_once(self):
        self.stage('run_once')

    def postprocess_iteration(self):
        self.stage('postprocess_iteration')

    def postprocess(self):
        self.stage('postprocess')

    def cleanup(self):
        self.stage('cleanup')


class RunStagesTest(unittest.TestCase):

    def test_order(self):
        fake = FakeStages()
        self.assertEqual(job.run_stages(fake), (job.GOOD, ''))
        self.assertEqual(fake.called, ['initialize',
                                       'run_once', 'postprocess_iteration',
                                       'run_once', 'postprocess_iteration',
                                       'postprocess', 'cleanup'])
        self.assertEqual(fake.iteration, 2)

    def test_cleanup_after_failure(self):
        fake = FakeStages('run_once')
        status, reason = job.run_stages(fake)
        self.assertEqual(status, job.FAIL)
        self.assertEqual(reason, 'run_once')
        self.assertEqual(fake.called, ['initialize', 'run_once', 'cleanup'])
        self.assertTrue(fake.logtraceback.called)

    def test_not_applicable(self):
        fake = FakeStages('initialize', DockerTestNAError)
        self.assertEqual(job.run_stages(fake)[0], job.TEST_NA)
        self.assertEqual(fake.called, ['initialize', 'cleanup'])
        self.assertTrue(fake.loginfo.called)

    def test_cleanup_failure(self):
        fake = FakeStages('cleanup', DockerTestError)
        status, reason = job.run_stages(fake)
        self.assertEqual(status, job.ERROR)
        self.assertEqual(reason, 'cleanup: cleanup')

    def test_cleanup_failure_keeps_fail(self):
        fake = FakeStages('postprocess')
        fake.cleanup = Mock(side_effect=DockerTestError("also broken"))
        self.assertEqual(job.run_stages(fake), (job.FAIL, 'postprocess'))


class LoadSubtestTest(unittest.TestCase):

    def setUp(self):
        config.Config.clear_cache()
        self.tmpdir = tempfile.mkdtemp(self.__class__.__name__)
        self.subtestdir = os.path.join(self.tmpdir, 'subtests')
        for name, content in (('passing', PASSING), ('failing', FAILING)):
            bindir = os.path.join(self.subtestdir, 'fake', name)
            os.makedirs(bindir)
            with open(os.path.join(bindir, '%s.py' % name), 'w') as module:
                module.write(content)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_load(self):
        cls, bindir = job.load_subtest('fake/passing/', self.subtestdir)
        self.assertEqual(cls.__name__, 'passing')
        self.assertEqual(bindir, os.path.join(self.subtestdir,
                                              'fake', 'passing'))

    def test_load_missing(self):
        self.assertRaises(ImportError, job.load_subtest, 'fake/nothere',
                          self.subtestdir)

    def test_iterations(self):
        cls, bindir = job.load_subtest('fake/passing', self.subtestdir)
        subtest = cls(bindir, self.tmpdir)
        self.assertEqual(job.run_stages(subtest), (job.GOOD, ''))
        self.assertEqual(subtest.stuff['runs'], [1, 2, 3])

    def test_run_subtest(self):
        result = job.run_subtest('fake/failing', self.subtestdir, self.tmpdir)
        self.assertEqual(result.status, job.FAIL)
        self.assertEqual(result.reason, 'values differ')
        result = job.run_subtest('fake/nothere', self.subtestdir)
        self.assertEqual(result.status, job.ERROR)

    def test_main(self):
        import run_subtests
        self.assertEqual(run_subtests.main(['--subtestdir', self.subtestdir,
                                            'fake/passing']), 0)
        self.assertEqual(run_subtests.main(['--subtestdir', self.subtestdir,
                                            'fake/passing',
                                            'fake/failing']), 1)


class LayoutTest(unittest.TestCase):

    def test_trees_beside_package(self):
        topdir = os.path.dirname(os.path.dirname(os.path.abspath(job.__file__)))
        self.assertEqual(job.SUBTESTDIR, os.path.join(topdir, 'subtests'))
        self.assertTrue(os.path.isfile(os.path.join(
            job.SUBTESTDIR, 'docker_cli', 'cpu_cgroups', 'cpu_cgroups.py')))
        self.assertTrue(os.path.isfile(os.path.join(config.CONFIGDEFAULT,
                                                    config.DEFAULTSFILE)))


if __name__ == '__main__':
    unittest.main()
