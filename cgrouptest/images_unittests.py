#!/usr/bin/env python3

import unittest

from cgrouptest.images import DockerImage


class FullNameTest(unittest.TestCase):

    def test_components(self):
        fnfc = DockerImage.full_name_from_component
        self.assertEqual(fnfc('busybox'), 'busybox')
        self.assertEqual(fnfc('busybox', 'latest'), 'busybox:latest')
        self.assertEqual(fnfc('busybox', 'latest', 'reg:5000', 'me'),
                         'reg:5000/me/busybox:latest')

    def test_defaults(self):
        config = {'docker_repo_name': 'busybox',
                  'docker_repo_tag': 'latest',
                  'docker_registry_host': '',
                  'docker_registry_user': ' '}
        self.assertEqual(DockerImage.full_name_from_defaults(config),
                         'busybox:latest')
        # Caller's config left alone
        self.assertEqual(config['docker_registry_user'], ' ')

    def test_too_short(self):
        self.assertRaises(ValueError, DockerImage.full_name_from_defaults,
                          {'docker_repo_name': 'bb'})


if __name__ == '__main__':
    unittest.main()
