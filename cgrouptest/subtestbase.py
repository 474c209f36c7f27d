"""
Adapt/extend a common base for the sub-framework's subtests/sub-subtests

Provides the stage methods every test runs through, logging helpers
prefixed with the test's name, and the simple assertion helpers used
throughout subtests.
"""

import logging
import traceback

from cgrouptest.xceptions import DockerTestFail


class SubBase(object):

    """
    Methods/attributes common to Subtest & SubSubtest classes

    :note: This class is indirectly referenced by the control-file
           so it cannot contain anything cgrouptest-implementation
           specific.
    """

    #: Configuration section for subclass, auto-generated by ``__init__``.
    config_section = None

    #: Configuration dictionary (read-only for instances)
    config = None

    #: Unique temporary directory for this instance (automatically cleaned up)
    #: **warning**: DO NOT ASSUME DIRECTORY WILL BE EMPTY!!!
    tmpdir = None

    #: Number of additional space/tab characters to prefix when logging
    n_spaces = 16  # date/timestamp length

    #: Number of additional space/tab characters to prefix when logging
    n_tabs = 1     # one-level

    step_log_msgs = {
        "initialize": "initialize()",
        "run_once": "run_once()",
        "postprocess": "postprocess()",
        "cleanup": "cleanup()"
    }

    def __init__(self, *args, **dargs):
        super(SubBase, self).__init__(*args, **dargs)
        self.step_log_msgs = self.step_log_msgs.copy()

    def initialize(self):
        """
        Called every time the test is run.
        """
        self.log_step_msg('initialize')

    def run_once(self):
        """
        Called once only to exercise subject of sub-subtest
        """
        self.log_step_msg('run_once')

    def postprocess(self):
        """
        Called to process results of subject
        """
        self.log_step_msg('postprocess')

    def cleanup(self):
        """
        Always called, before any exceptions thrown are re-raised.
        """
        self.log_step_msg('cleanup')

    def log_step_msg(self, stepname):
        """
        Send message stored in ``step_log_msgs`` key ``stepname`` to logingo
        """
        msg = self.step_log_msgs.get(stepname)
        if msg:
            self.loginfo(msg)

    @staticmethod
    def failif(condition, reason=None):
        """
        Convenience method for subtests to avoid importing ``TestFail``
        exception

        :param condition: Boolean condition, fail test if True.
        :param reason: Helpful text describing why the test failed
        :raise DockerTestFail: If condition evaluates ``True``
        """
        if reason is None:
            reason = "Failed test condition"
        if bool(condition):
            raise DockerTestFail(reason)

    @staticmethod
    def failif_ne(actual, expected, reason=None):
        """
        Convenience method for subtests to compare two values and
        fail if they differ. Failure message will include the expected
        and actual values for ease of debugging.

        :param actual: value being tested
        :param expected: value to which we compare.
        :param reason: Helpful text describing why the test failed
        :raise DockerTestFail: If actual != expected
        """
        if actual == expected:
            return
        if reason is None:
            reason = "Failed test condition"
        # By default, quote each value. This is especially helpful when
        # actual or expected is the empty string or a string with spaces.
        # But if both are numeric types the quotes distract, so remove them.
        arg = "'{}'"
        if all(isinstance(x, (int, float)) for x in [actual, expected]):
            arg = "{}"
        spec = "{}: expected " + arg + "; got " + arg
        raise DockerTestFail(spec.format(reason, expected, actual))

    @staticmethod
    def failif_not_in(needle, haystack, description=None):
        """
        Convenience method for subtests to test for an expected substring
        being contained in a larger string, e.g. to look for XYZ in a
        command's stdout/stderr.

        :param needle: the string you're looking for
        :param haystack: the actual string, e.g stdout results from a command
        :param description: description of haystack, e.g. 'stdout from foo'
        :raise DockerTestFail: if needle is not found in haystack
        """
        if description is None:
            description = 'string'
        if needle in haystack:
            return
        raise DockerTestFail("Expected string '%s' not in %s '%s'"
                             % (needle, description, haystack))

    @classmethod
    def _log_prefix(cls):
        return "%s%s: " % ("\t" * cls.n_tabs, cls.__name__)

    def logdebug(self, message, *args):
        r"""
        Log a DEBUG level message to the controlling terminal **only**

        :param message: Same as ``logging.debug()``
        :param \*args: Same as ``logging.debug()``
        """
        logging.debug(self._log_prefix() + str(message), *args)

    def loginfo(self, message, *args):
        r"""
        Log a INFO level message to the controlling terminal **only**

        :param message: Same as ``logging.info()``
        :param \*args: Same as ``logging.info()``
        """
        logging.info(self._log_prefix() + str(message), *args)

    def logwarning(self, message, *args):
        r"""
        Log a WARNING level message to the controlling terminal **only**

        :param message: Same as ``logging.warning()``
        :param \*args: Same as ``logging.warning()``
        """
        logging.warning(self._log_prefix() + str(message), *args)

    def logerror(self, message, *args):
        r"""
        Log a ERROR level message to the controlling terminal **only**

        :param message: Same as ``logging.error()``
        :param \*args: Same as ``logging.error()``
        """
        logging.error(self._log_prefix() + str(message), *args)

    def logtraceback(self, name, exc_info, error_source, detail):
        r"""
        Log error to error, traceback to debug, of controlling terminal
        **only**
        """
        error_head = ("%s failed to %s\n%s\n%s" % (name, error_source,
                                                   detail.__class__.__name__,
                                                   detail))
        error_tb = traceback.format_exception(exc_info[0],
                                              exc_info[1],
                                              exc_info[2])
        error_tb = "".join(error_tb).strip() + "\n"
        self.logerror(error_head)
        self.logdebug(error_tb)
