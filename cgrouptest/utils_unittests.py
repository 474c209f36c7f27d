#!/usr/bin/env python3

import unittest

from cgrouptest import utils
from cgrouptest.xceptions import CmdError


class RunTest(unittest.TestCase):

    def test_stdout(self):
        result = utils.run("echo 'hello world'")
        self.assertEqual(result.stdout, "hello world\n")
        self.assertEqual(result.exit_status, 0)
        self.assertEqual(result.command, "echo 'hello world'")

    def test_nonzero(self):
        self.assertRaises(CmdError, utils.run, "false")
        result = utils.run("false", ignore_status=True)
        self.assertEqual(result.exit_status, 1)

    def test_error_details(self):
        try:
            utils.run("sh -c 'echo oops >&2; exit 3'")
        except CmdError as xcept:
            self.assertEqual(xcept.result_obj.exit_status, 3)
            self.assertEqual(xcept.result_obj.stderr, "oops\n")
            self.assertIn("rc=3", str(xcept))
        else:
            self.fail("Non-zero exit not raised")

    def test_missing_command(self):
        self.assertRaises(CmdError, utils.run, "/does/not/exist")
        result = utils.run("/does/not/exist", ignore_status=True)
        self.assertEqual(result.exit_status, 127)

    def test_timeout(self):
        self.assertRaises(CmdError, utils.run, "sleep 10", timeout=0.2,
                          ignore_status=True)


class CmdResultTest(unittest.TestCase):

    def test_eq(self):
        first = utils.CmdResult('ls', 'a', '', 0, 1.0)
        self.assertEqual(first, utils.CmdResult('ls', 'a', '', 0, 1.0))
        self.assertNotEqual(first, utils.CmdResult('ls', 'b', '', 0, 1.0))

    def test_repr(self):
        self.assertIn('Exit status: 2', repr(utils.CmdResult('ls', '', '', 2)))


class UniqueNameTest(unittest.TestCase):

    def test_random_string(self):
        self.assertEqual(len(utils.generate_random_string(12)), 12)
        self.assertTrue(utils.generate_random_string(30).isalnum())

    def test_unique_name(self):
        taken = []

        def check(name):
            taken.append(name)
            return len(taken) > 2

        name = utils.get_unique_name(check, 'pre', 'post', 6)
        self.assertEqual(len(taken), 3)
        self.assertEqual(name, taken[-1])
        self.assertTrue(name.startswith('pre-'))
        self.assertTrue(name.endswith('-post'))
        self.assertEqual(len(name), len('pre--post') + 6)


if __name__ == '__main__':
    unittest.main()
