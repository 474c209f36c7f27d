#!/usr/bin/env python3

import os.path
import shutil
import tempfile
import unittest

from cgrouptest import config, job, subtest
from cgrouptest.subtestbase import SubBase
from cgrouptest.xceptions import (DockerSubSubtestNAError, DockerTestError,
                                  DockerTestFail, DockerTestNAError)


#: Names of sub-subtests whose cleanup() ran, in order
CLEANED = []


class good(subtest.SubSubtest):

    def cleanup(self):
        super(good, self).cleanup()
        CLEANED.append(self.__class__.__name__)


class failing(good):

    def run_once(self):
        super(failing, self).run_once()
        raise DockerTestFail("failing on purpose")


class skipping(good):

    def initialize(self):
        raise DockerTestNAError("not applicable here")


class broken_cleanup(good):

    def cleanup(self):
        super(broken_cleanup, self).cleanup()
        raise ValueError("cleanup broke")


class disabled(good):

    def __init__(self, parent_subtest):
        raise DockerSubSubtestNAError(self.__class__.__name__)


class caller(subtest.SubSubtestCaller):
    pass


class SubBaseTest(unittest.TestCase):

    def test_failif(self):
        SubBase.failif(False, "not raised")
        self.assertRaises(DockerTestFail, SubBase.failif, True)
        self.assertRaises(DockerTestFail, SubBase.failif, 1, "raised")

    def test_failif_ne(self):
        SubBase.failif_ne('a', 'a')
        try:
            SubBase.failif_ne(1, 2, "numbers")
        except DockerTestFail as xcept:
            self.assertEqual(str(xcept), "numbers: expected 2; got 1")
        try:
            SubBase.failif_ne('800', '738', "shares")
        except DockerTestFail as xcept:
            self.assertEqual(str(xcept), "shares: expected '738'; got '800'")

    def test_failif_not_in(self):
        SubBase.failif_not_in('bar', 'foobarbaz')
        self.assertRaises(DockerTestFail, SubBase.failif_not_in,
                          'qux', 'foobarbaz', 'stdout')

    def test_step_msgs_copied(self):
        first, second = SubBase(), SubBase()
        first.step_log_msgs['run_once'] = 'changed'
        self.assertEqual(second.step_log_msgs['run_once'], 'run_once()')


class ConfigSectionTest(unittest.TestCase):

    def test_section(self):
        self.assertEqual(subtest.make_config_section(
            '/opt/tests/subtests/docker_cli/cpu_cgroups'),
            'docker_cli/cpu_cgroups')

    def test_innermost_base(self):
        self.assertEqual(subtest.make_config_section(
            '/subtests/x/subtests/a/b/'), 'a/b')

    def test_not_below_base(self):
        self.assertRaises(DockerTestError, subtest.make_config_section,
                          '/opt/tests/docker_cli/cpu_cgroups')

    def test_make_config(self):
        all_configs = {'DEFAULTS': {'a': 1, 'b': 2},
                       'x/y/z': {'a': 1, 'b': 3, 'c': 4}}
        parent_config = {'a': 10, 'b': 20, 'd': 5}
        self.assertEqual(subtest.SubSubtest.make_config(all_configs,
                                                        parent_config,
                                                        'x/y/z'),
                         {'a': 10, 'b': 3, 'c': 4, 'd': 5})
        # Parent left untouched
        self.assertEqual(parent_config, {'a': 10, 'b': 20, 'd': 5})


class SubSubtestCallerTest(unittest.TestCase):

    def setUp(self):
        del CLEANED[:]
        config.Config.clear_cache()
        self.tmpdir = tempfile.mkdtemp(self.__class__.__name__)
        self.bindir = os.path.join(self.tmpdir, 'subtests', 'fake', 'caller')

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def run_caller(self, subsubtests):
        test = caller(self.bindir, self.tmpdir)
        test.config['subsubtests'] = subsubtests
        return test, job.run_stages(test)

    def test_config_section(self):
        test = caller(self.bindir, self.tmpdir)
        self.assertEqual(test.config_section, 'fake/caller')
        self.assertEqual(test.config['config_section'], 'fake/caller')
        self.assertEqual(test.iterations, 1)
        sub = good(test)
        self.assertEqual(sub.config_section, 'fake/caller/good')
        self.assertEqual(sub.config, test.config)
        self.assertTrue(sub.tmpdir.startswith(self.tmpdir))

    def test_all_good(self):
        test, (status, _) = self.run_caller('good')
        self.assertEqual(status, job.GOOD)
        self.assertEqual(test.final_subsubtests, set(['good']))
        self.assertEqual(CLEANED, ['good'])

    def test_failure_continues(self):
        test, (status, reason) = self.run_caller('failing,good')
        self.assertEqual(status, job.FAIL)
        self.assertIn('failing', reason)
        self.assertEqual(test.final_subsubtests, set(['good']))
        self.assertEqual(CLEANED, ['failing', 'good'])

    def test_skipped(self):
        test, (status, _) = self.run_caller('skipping,good')
        self.assertEqual(status, job.GOOD)
        self.assertEqual(test.skipped_subsubtests, set(['skipping']))
        self.assertEqual(CLEANED, ['skipping', 'good'])

    def test_all_skipped(self):
        _, (status, _) = self.run_caller('skipping')
        self.assertEqual(status, job.TEST_NA)

    def test_missing_config(self):
        _, (status, _) = self.run_caller('')
        self.assertEqual(status, job.TEST_NA)

    def test_unknown(self):
        test, (status, _) = self.run_caller('does_not_exist')
        self.assertEqual(status, job.ERROR)
        self.assertEqual(test.start_subsubtests, {})

    def test_disabled(self):
        test, (status, _) = self.run_caller('disabled,good')
        self.assertEqual(status, job.GOOD)
        self.assertNotIn('disabled', test.start_subsubtests)
        self.assertEqual(CLEANED, ['good'])

    def test_cleanup_failure(self):
        _, (status, reason) = self.run_caller('broken_cleanup,good')
        self.assertEqual(status, job.ERROR)
        self.assertIn('broken_cleanup', reason)
        # Cleanup failures stop the sub-subtests after it
        self.assertEqual(CLEANED, ['broken_cleanup'])


if __name__ == '__main__':
    unittest.main()
