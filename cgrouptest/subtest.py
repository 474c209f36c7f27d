"""
Subtest classes the job runner drives through their stages

A ``Subtest`` loads the config. section named after its directory below
``subtests/``.  A ``SubSubtestCaller`` runs a list of ``SubSubtest``
classes, named by its ``subsubtests`` option, one after another, each
with its own config. section and ``sub_stuff`` scratch dictionary.
"""

import copy
import importlib.util
import os.path
import sys
import tempfile

from cgrouptest import config
from cgrouptest import subtestbase
from cgrouptest.xceptions import DockerSubSubtestNAError
from cgrouptest.xceptions import DockerTestError
from cgrouptest.xceptions import DockerTestFail
from cgrouptest.xceptions import DockerTestNAError
from cgrouptest.xceptions import TestError
from cgrouptest.xceptions import TestNAError

#: Name of directories which hold subtest modules, config sections are
#: formed from the path below one of these.
SUBTEST_BASES = ('subtests',)


def make_config_section(bindir, bases=SUBTEST_BASES):
    """
    Return config section name for a subtest living in bindir

    :param bindir: Directory holding the subtest module
    :param bases: Names of directories subtests are found under
    :raises DockerTestError: if bindir is not below one of bases
    :return: String like ``docker_cli/cpu_cgroups``
    """
    parts = os.path.normpath(os.path.abspath(bindir)).split(os.sep)
    # Innermost base wins
    for index in reversed(range(len(parts))):
        if parts[index] in bases:
            return "/".join(parts[index + 1:])
    raise DockerTestError("Subtest directory %s is not below any of %s"
                          % (bindir, bases))


class Subtest(subtestbase.SubBase):

    """
    Top-level test, one module per directory below ``subtests/``

    :param bindir: Directory containing the subtest module
    :param tmpdir: Scratch directory, a new one is made if None
    """

    #: Iteration ``run_once()`` is on, set by the job runner
    iteration = None

    #: How many times ``run_once()`` runs, ``iterations`` option overrides
    iterations = 1

    #: Directory containing the subtest module
    bindir = None

    #: Scratch dictionary for subclasses, never touched by ``cgrouptest``
    stuff = None

    def __init__(self, bindir, tmpdir=None):
        super(Subtest, self).__init__()
        self.bindir = bindir
        if tmpdir is None:
            tmpdir = tempfile.mkdtemp(prefix=self.__class__.__name__ + '_')
        self.tmpdir = tmpdir
        if self.config_section is None:
            self.config_section = make_config_section(bindir)
        all_configs = config.Config()
        if self.config_section in all_configs:
            self.config = all_configs[self.config_section]
        else:
            # No section of its own, run on DEFAULTS
            self.config = all_configs['DEFAULTS']
            self.config['config_section'] = self.config_section
        self.iterations = int(self.config.get('iterations', self.iterations))
        self.stuff = {}

    def initialize(self):
        super(Subtest, self).initialize()
        self.step_log_msgs['postprocess_iteration'] = (
            "postprocess_iteration() #%s of #%s"
            % (self.iteration, self.iterations))

    def postprocess_iteration(self):
        """
        Called after every ``run_once()``
        """
        self.log_step_msg('postprocess_iteration')


class SubSubtest(subtestbase.SubBase):

    """
    One scenario run by a ``SubSubtestCaller``

    Config. comes from section ``<parent section>/<class name>`` when it
    exists, otherwise it is a copy of the parent's.

    :param parent_subtest: The caller instance
    """

    #: The caller instance, set in ``__init__``
    parent_subtest = None

    #: Scratch dictionary for subclasses, never touched by ``cgrouptest``
    sub_stuff = None

    #: Number of additional space/tab characters to prefix when logging
    n_tabs = 2

    def __init__(self, parent_subtest):
        super(SubSubtest, self).__init__()
        self.parent_subtest = parent_subtest
        self.config_section = self.make_name(parent_subtest.config_section)
        all_configs = config.Config()
        if self.config_section in all_configs:
            self.config = self.make_config(all_configs,
                                           parent_subtest.config,
                                           self.config_section)
        else:
            self.config = copy.deepcopy(parent_subtest.config)
        self.logdebug("Configuration for %s: %s", self.config_section,
                      self.config)
        self.sub_stuff = {}
        self.tmpdir = tempfile.mkdtemp(prefix=self.__class__.__name__ + '_',
                                       suffix='tmpdir',
                                       dir=parent_subtest.tmpdir)

    @classmethod
    def make_name(cls, parent_name):
        """
        Return config section name for this class below parent_name
        """
        return "%s/%s" % (parent_name, cls.__name__)

    @classmethod
    def make_config(cls, all_configs, parent_config, name):
        """
        Return parent_config overlaid with section ``name``

        Options in section ``name`` still equal to their ``[DEFAULTS]``
        value were inherited, not set, so the parent's value stays.
        """
        defaults = all_configs['DEFAULTS']
        merged = copy.deepcopy(parent_config)
        for key, val in all_configs.get(name, {}).items():
            if key in defaults and val == defaults[key]:
                merged[key] = parent_config.get(key, val)
            else:
                merged[key] = val
        return merged


class SubSubtestCaller(Subtest):

    r"""
    Subtest running each ``SubSubtest`` named in the ``subsubtests`` option

    Every sub-subtest goes through ``initialize``, ``run_once`` and
    ``postprocess``, stopping at the first exception, then ``cleanup``
    always.  A failing or skipped sub-subtest does not stop the ones after
    it; only a ``cleanup`` failure does.  ``postprocess`` of the caller
    fails when any sub-subtest failed.
    """

    #: Sub-subtest names from the ``subsubtests`` option, in order
    subsubtest_names = None

    #: Name -> instance of every sub-subtest that loaded
    start_subsubtests = None

    #: Names of sub-subtests that passed every stage
    final_subsubtests = None

    #: Names of sub-subtests that declared themselves not applicable
    skipped_subsubtests = None

    #: ``exc_info`` and ``error_source`` of the last failing stage
    exception_info = None

    def __init__(self, *args, **dargs):
        super(SubSubtestCaller, self).__init__(*args, **dargs)
        self.subsubtest_names = []
        self.start_subsubtests = {}
        self.final_subsubtests = set()
        self.skipped_subsubtests = set()
        self.exception_info = {}

    def initialize(self):
        """
        Parse the ``subsubtests`` CSV option into ``subsubtest_names``
        """
        super(SubSubtestCaller, self).initialize()
        if not self.config.get('subsubtests'):
            raise DockerTestNAError("Missing|empty 'subsubtests' in config.")
        self.subsubtest_names = config.get_as_list(self.config['subsubtests'])
        self.step_log_msgs['run_once'] = "Running sub-subtests..."
        self.step_log_msgs['postprocess'] = ("Postprocess sub-subtest "
                                             "results...")

    def try_all_stages(self, name, subsubtest):
        """
        Run every stage but ``cleanup``, recording pass, skip or failure
        """
        try:
            self.call_subsubtest_method(subsubtest.initialize)
            self.call_subsubtest_method(subsubtest.run_once)
            self.call_subsubtest_method(subsubtest.postprocess)
            self.final_subsubtests.add(name)
        except TestNAError as detail:
            self.loginfo("Skipping %s: %s", name, detail)
            self.skipped_subsubtests.add(name)
        # Recorded as failed by omission, reported from postprocess()
        except Exception as detail:  # pylint: disable=W0703
            self.logtraceback(name,
                              self.exception_info["exc_info"],
                              self.exception_info["error_source"],
                              detail)

    def run_all_stages(self, name, subsubtest):
        """
        Run all stages of subsubtest, its ``cleanup()`` last

        :raises DockerTestError: when ``cleanup()`` fails
        """
        if subsubtest is None:
            return  # already logged by new_subsubtest()
        self.start_subsubtests[name] = subsubtest
        try:
            self.try_all_stages(name, subsubtest)
        finally:
            try:
                subsubtest.cleanup()
            except Exception as detail:  # pylint: disable=W0703
                self.logtraceback(name, sys.exc_info(), "cleanup", detail)
                raise DockerTestError("Sub-subtest %s cleanup"
                                      " failures: %s" % (name, detail))

    def run_once(self):
        """
        Load and run each sub-subtest in ``subsubtest_names`` order
        """
        super(SubSubtestCaller, self).run_once()
        for name in self.subsubtest_names:
            self.run_all_stages(name, self.new_subsubtest(name))
        if not self.start_subsubtests:
            raise TestError("No sub-subtests configured to run "
                            "for subtest %s" % self.config_section)

    def postprocess(self):
        """
        :raises DockerTestFail: if any sub-subtest failed
        :raises DockerTestNAError: if every sub-subtest was skipped
        """
        super(SubSubtestCaller, self).postprocess()
        started = set(self.start_subsubtests)
        failed = started - self.final_subsubtests - self.skipped_subsubtests
        if failed:
            raise DockerTestFail('Sub-subtest failures: %s' % sorted(failed))
        if self.skipped_subsubtests == started:
            raise DockerTestNAError('All sub-subtests skipped: %s'
                                    % sorted(started))

    def call_subsubtest_method(self, method):
        """
        Call ``method``, remembering where an exception came from
        """
        try:
            method()
        except Exception:  # pylint: disable=W0703
            self.exception_info["error_source"] = method.__name__
            self.exception_info["exc_info"] = sys.exc_info()
            raise

    def import_if_not_loaded(self, name):
        """
        Return module ``name`` from ``bindir``, importing it once; None if
        there's no such file
        """
        modname = "%s.%s" % (self.config_section.replace('/', '.'), name)
        if modname in sys.modules:
            return sys.modules[modname]
        path = os.path.join(self.bindir, '%s.py' % name)
        if not os.path.isfile(path):
            return None
        spec = importlib.util.spec_from_file_location(modname, path)
        mod = importlib.util.module_from_spec(spec)
        sys.modules[modname] = mod
        spec.loader.exec_module(mod)
        return mod

    def new_subsubtest(self, name):
        """
        Return an instance of sub-subtest class ``name``, or None

        The class is looked up in this subtest's own module first, then in
        a module file ``<name>.py`` beside it.
        """
        cls = getattr(sys.modules.get(self.__class__.__module__), name, None)
        if cls is None:
            cls = getattr(self.import_if_not_loaded(name), name, None)
        if not isinstance(cls, type) or not issubclass(cls, SubSubtest):
            self.logerror("Sub-subtest class %s not found in %s",
                          name, self.bindir)
            return None
        self.logdebug("Instantiating sub-subtest: %s",
                      cls.make_name(self.config_section))
        try:
            return cls(self)
        except DockerSubSubtestNAError as xcpt:
            self.logwarning(str(xcpt))
        return None
