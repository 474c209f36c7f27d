#!/usr/bin/env python3

import os
import os.path
import shutil
import tempfile
import unittest

from mock import patch

from cgrouptest import environment


class EnvironmentTest(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(self.__class__.__name__)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_is_root(self):
        with patch('os.geteuid', return_value=0):
            self.assertTrue(environment.is_root())
        with patch('os.geteuid', return_value=1000):
            self.assertFalse(environment.is_root())

    def test_controller_mounted(self):
        os.mkdir(os.path.join(self.tmpdir, 'cpu'))
        self.assertTrue(environment.controller_mounted(self.tmpdir, 'cpu'))
        self.assertFalse(environment.controller_mounted(self.tmpdir,
                                                        'cpuset'))


if __name__ == '__main__':
    unittest.main()
