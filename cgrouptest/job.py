"""
Load subtests by name and run them through their stages.

A subtest named ``docker_cli/cpu_cgroups`` lives in the module
``<subtests dir>/docker_cli/cpu_cgroups/cpu_cgroups.py`` and is the class
named ``cpu_cgroups`` within it.  Stages run in this order, ``cleanup``
always last whatever happened before it:

#. ``initialize()``
#. ``run_once()`` and ``postprocess_iteration()`` for each iteration
#. ``postprocess()``
#. ``cleanup()``
"""

import importlib.util
import logging
import os.path
import sys
import tempfile

from cgrouptest.config import PARENTDIR
from cgrouptest.xceptions import TestFail, TestNAError

#: Default directory holding subtest modules
SUBTESTDIR = os.path.join(PARENTDIR, 'subtests')

GOOD = 'GOOD'
FAIL = 'FAIL'
ERROR = 'ERROR'
TEST_NA = 'TEST_NA'


class SubtestResult(object):  # pylint: disable=R0903

    """
    Final status of one subtest run

    :param name: Subtest name, e.g. ``docker_cli/cpu_cgroups``
    :param status: One of GOOD, FAIL, ERROR, TEST_NA
    :param reason: Exception text for anything but GOOD
    """

    def __init__(self, name, status, reason=''):
        self.name = name
        self.status = status
        self.reason = reason

    def __str__(self):
        if self.reason:
            return "%-8s %s: %s" % (self.status, self.name, self.reason)
        return "%-8s %s" % (self.status, self.name)

    @property
    def failed(self):
        """True for FAIL and ERROR results"""
        return self.status in (FAIL, ERROR)


def status_of(exception):
    """
    Map an exception raised from a stage onto a result status
    """
    if isinstance(exception, TestNAError):
        return TEST_NA
    if isinstance(exception, TestFail):
        return FAIL
    return ERROR


def load_subtest(name, subtestdir=SUBTESTDIR):
    """
    Import subtest module for ``name``, return (class, bindir)

    :raises ImportError: if module or class can't be found
    """
    name = name.strip('/')
    leaf = name.split('/')[-1]
    bindir = os.path.join(subtestdir, *name.split('/'))
    path = os.path.join(bindir, '%s.py' % leaf)
    if not os.path.isfile(path):
        raise ImportError("No subtest module %s" % path)
    modname = name.replace('/', '.')
    spec = importlib.util.spec_from_file_location(modname, path)
    mod = importlib.util.module_from_spec(spec)
    sys.modules[modname] = mod
    spec.loader.exec_module(mod)
    cls = getattr(mod, leaf, None)
    if cls is None:
        raise ImportError("Module %s has no class %s" % (path, leaf))
    return cls, bindir


def run_stages(subtest):
    """
    Run every stage of an instantiated subtest, ``cleanup()`` always last

    :return: (status, reason) tuple
    """
    status, reason = GOOD, ''
    try:
        subtest.initialize()
        for iteration in range(1, subtest.iterations + 1):
            subtest.iteration = iteration
            subtest.run_once()
            subtest.postprocess_iteration()
        subtest.postprocess()
    # Every stage failure becomes a status, cleanup must still happen
    except Exception as detail:  # pylint: disable=W0703
        status, reason = status_of(detail), str(detail)
        if status == TEST_NA:
            subtest.loginfo("Not applicable: %s", detail)
        else:
            subtest.logtraceback(subtest.__class__.__name__,
                                 sys.exc_info(), "run", detail)
    try:
        subtest.cleanup()
    except Exception as detail:  # pylint: disable=W0703
        subtest.logtraceback(subtest.__class__.__name__,
                             sys.exc_info(), "cleanup", detail)
        if status in (GOOD, TEST_NA):
            status, reason = ERROR, "cleanup: %s" % detail
    return status, reason


def run_subtest(name, subtestdir=SUBTESTDIR, tmpdir=None):
    """
    Load, instantiate and run subtest ``name``

    :return: ``SubtestResult`` instance
    """
    try:
        cls, bindir = load_subtest(name, subtestdir)
        if tmpdir is None:
            tmpdir = tempfile.mkdtemp(prefix=cls.__name__ + '_')
        subtest = cls(bindir, tmpdir)
    except Exception as detail:  # pylint: disable=W0703
        logging.error("Loading subtest %s failed: %s", name, detail)
        return SubtestResult(name, ERROR, str(detail))
    status, reason = run_stages(subtest)
    return SubtestResult(name, status, reason)
