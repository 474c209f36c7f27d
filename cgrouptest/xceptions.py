"""
Exception subclasses specific to cgroup subtests
"""

# The exception names don't need docstrings
# pylint: disable=C0111

# Some code runs deep, many ancestors actually needed
# pylint: disable=R0901

from configparser import InterpolationError


# Stage-level roots, the job runner maps these onto result status


class AutotestError(Exception):

    """Root of most test errors coming from the sub-framework"""
    pass


class TestFail(AutotestError):
    pass


class TestError(AutotestError):
    pass


class TestNAError(AutotestError):
    pass


class CmdError(TestError):

    """
    Command failed to complete

    :param command: Full command-line string
    :param result_obj: A ``utils.CmdResult`` instance or None
    :param additional_text: Optional reason
    """

    def __init__(self, command, result_obj=None, additional_text=None):
        super(CmdError, self).__init__(command, result_obj, additional_text)
        self.command = command
        self.result_obj = result_obj
        self.additional_text = additional_text

    def __str__(self):
        msg = "Command <%s> failed" % self.command
        if self.result_obj is not None:
            msg += ", rc=%s" % self.result_obj.exit_status
        if self.additional_text:
            msg += ", %s" % self.additional_text
        return msg


class DockerExecError(TestFail):

    """Errors occurring from execution of docker commands"""
    pass


class DockerTestNAError(TestNAError):

    """Test skip from execution of subtest/subsubtest"""
    pass


class DockerTestError(TestError):

    """Code Error in execution of subtest/subsubtest"""
    pass


class DockerTestFail(TestFail):

    """Test failure in execution of subtest/subsubtest"""
    pass

# Basic exception subclasses (help distinguish if internal raise or not)


class DockerValueError(ValueError, AutotestError):
    pass


class DockerKeyError(KeyError, AutotestError):
    pass


class DockerIOError(IOError, AutotestError):
    pass


class DockerConfigError(InterpolationError, AutotestError):
    pass

# Specific exception subclasses (defined behavior)


class DockerOutputError(DockerValueError):

    def __init__(self, reason):
        super(DockerOutputError, self).__init__("")
        self.reason = reason

    def __str__(self):
        return str(self.reason)


class DockerSubSubtestNAError(DockerTestNAError):

    def __init__(self, child_name):
        super(DockerSubSubtestNAError, self).__init__("")
        self.child_name = child_name

    def __str__(self):
        return ("Sub-subtest %s is not applicable or was disabled"
                % self.child_name)


class CgroupLookupError(DockerTestError):

    """Container metadata needed to locate a cgroup could not be read"""

    #: Human-readable name of the metadata item looked up
    what = "metadata"

    def __init__(self, name, stderr=None):
        super(CgroupLookupError, self).__init__("")
        self.name = name
        self.stderr = stderr

    def __str__(self):
        msg = "Could not get container %s for %s" % (self.what, self.name)
        if self.stderr:
            msg += ": %s" % self.stderr.strip()
        return msg


class CgroupIdLookupError(CgroupLookupError):
    what = "ID"


class CgroupParentLookupError(CgroupLookupError):
    what = "cgroup parent"


class CgroupPathFail(DockerTestFail):

    def __init__(self, path, expect_exists):
        super(CgroupPathFail, self).__init__("")
        self.path = path
        self.expect_exists = expect_exists

    def __str__(self):
        if self.expect_exists:
            return "Expected cgroup directory missing: %s" % self.path
        return "Cgroup directory still exists: %s" % self.path


class CgroupValueFail(DockerTestFail):

    def __init__(self, path, expected, actual):
        super(CgroupValueFail, self).__init__("")
        self.path = path
        self.expected = expected
        self.actual = actual

    def __str__(self):
        return ("Cgroup file %s contains %r, expected %r"
                % (self.path, self.actual, self.expected))
