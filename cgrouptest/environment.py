"""
Low-level/standalone host-environment checking utilities

:Note: This module must _NOT_ depend on anything else in cgrouptest!
"""

import os
import os.path


def is_root():
    """
    Return True if the effective user may write cgroup control files
    """
    return os.geteuid() == 0


def controller_mounted(cgroup_root, controller):
    """
    Return True if a cgroup v1 ``controller`` hierarchy is mounted

    On a unified (v2) hierarchy the per-controller directories are absent.

    :param cgroup_root: Mount point of the cgroup hierarchy
    :param controller: Controller name, e.g. ``cpuset``
    """
    return os.path.isdir(os.path.join(cgroup_root, controller))
