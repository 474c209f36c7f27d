#!/usr/bin/env python3

import unittest

from cgrouptest import output
from cgrouptest.utils import CmdResult
from cgrouptest.xceptions import DockerExecError, DockerOutputError


class OutputTestBase(unittest.TestCase):

    def setUp(self):
        self.good_cmdresult = CmdResult('/bin/true', exit_status=0)
        self.bad_cmdresult = CmdResult('/bin/false', exit_status=1)


class BaseInterfaceTest(OutputTestBase):

    def test_no_checks_good(self):
        self.assertTrue(output.OutputGoodBase(self.good_cmdresult))
        self.assertTrue(output.OutputGoodBase(self.bad_cmdresult))

    def test_checks_called(self):

        class Checked(output.OutputGoodBase):
            seen = []

            def foo_check(self, output):
                self.seen.append(output)
                return True

        Checked(CmdResult('x', ' out ', 'err\n', 0))
        self.assertEqual(Checked.seen, ['out', 'err'])

    def test_skip(self):

        class Failing(output.OutputGoodBase):

            @staticmethod
            def bad_check(output):
                return False

        self.assertRaises(DockerOutputError, Failing, self.good_cmdresult)
        self.assertFalse(Failing(self.good_cmdresult, ignore_error=True))
        self.assertTrue(Failing(self.good_cmdresult, skip='bad_check'))


class OutputGoodTest(OutputTestBase):

    def test_all_good(self):
        result = CmdResult('docker run', 'abcdef\n', '', 0)
        good = output.OutputGood(result)
        self.assertTrue(good)
        self.assertTrue(str(good).startswith('All Good'))

    def test_crash(self):
        result = CmdResult('docker run', '',
                           'panic: runtime error: nil pointer', 2)
        good = output.OutputGood(result, ignore_error=True)
        self.assertFalse(good)
        self.assertIn('crash_check_stderr', str(good))

    def test_usage(self):
        result = CmdResult('docker run', '', 'Usage: docker run [OPTIONS]', 1)
        self.assertRaises(DockerOutputError, output.OutputGood, result)

    def test_error(self):
        result = CmdResult('docker rm', '', 'Error: No such container', 1)
        self.assertFalse(output.OutputGood(result, ignore_error=True))

    def test_fatal(self):
        result = CmdResult('docker ps', 'FATA[0000] cannot connect', '', 1)
        self.assertFalse(output.OutputGood(result, ignore_error=True))


class OutputNotBadTest(OutputTestBase):

    def test_error_ignored(self):
        result = CmdResult('docker rm', '', 'Error: No such container', 1)
        self.assertTrue(output.OutputNotBad(result))

    def test_usage_ignored(self):
        result = CmdResult('docker run', '', 'Usage: docker run [OPTIONS]', 1)
        self.assertTrue(output.OutputNotBad(result))

    def test_crash_not_ignored(self):
        result = CmdResult('docker run', '',
                           'panic: runtime error: nil pointer', 2)
        self.assertRaises(DockerOutputError, output.OutputNotBad, result)


class MustPassTest(OutputTestBase):

    def test_pass(self):
        self.assertEqual(output.mustpass(self.good_cmdresult),
                         self.good_cmdresult)

    def test_fail(self):
        self.assertRaises(DockerExecError, output.mustpass,
                          self.bad_cmdresult)

    def test_failmsg(self):
        try:
            output.mustpass(self.bad_cmdresult, "docker update failed")
        except DockerExecError as xcept:
            self.assertIn('docker update failed', str(xcept))
        else:
            self.fail("Non-zero exit passed")

    def test_panic_before_exit_code(self):
        result = CmdResult('docker update', '',
                           'panic: runtime error: index out of range', 2)
        self.assertRaises(DockerOutputError, output.mustpass, result)


if __name__ == '__main__':
    unittest.main()
