"""
Screen docker command output for crashes, usage dumps and fatal errors.

``OutputGood`` runs each of its ``*_check`` methods over the stripped
stdout and stderr of a ``CmdResult``, every check returning True when the
output looks healthy.
"""

import re

from cgrouptest.xceptions import DockerExecError, DockerOutputError

#: Go runtime panic line
PANIC_RE = re.compile(r'\s*panic:\s*.+error.*')

#: CLI printing its usage text, i.e. bad arguments
USAGE_RE = re.compile(r'\s*usage:\s+docker\s+.*', re.IGNORECASE)

#: Old-style fatal log prefix
FATAL_RE = re.compile(r'FATA\[\d+')


class OutputGoodBase(object):

    """
    True when every ``*_check`` method passes on both output streams

    :param cmdresult: ``cgrouptest.utils.CmdResult`` instance
    :param ignore_error: When False, raise ``DockerOutputError`` on any
                         failed check
    :param skip: Check name or iterable of names to leave out
    """

    def __init__(self, cmdresult, ignore_error=False, skip=None):
        self.cmdresult = cmdresult
        if isinstance(skip, str):
            skip = [skip]
        skip = set(skip or [])
        checks = sorted(name for name in dir(self)
                        if name.endswith('_check') and name not in skip)
        #: "<check>_<stream>" -> bool
        self.results = {}
        #: "<check>_<stream>" -> offending output, failed checks only
        self.details = {}
        for check in checks:
            for stream in ('stdout', 'stderr'):
                text = getattr(cmdresult, stream).strip()
                key = "%s_%s" % (check, stream)
                self.results[key] = bool(getattr(self, check)(text))
                if not self.results[key]:
                    self.details[key] = text
        if not ignore_error and not self:
            raise DockerOutputError(str(self))

    def __bool__(self):
        return all(self.results.values())

    def __str__(self):
        passed = sorted(key for key, ok in self.results.items() if ok)
        if self:
            return "All Good: %s" % passed
        failed = sorted(key for key, ok in self.results.items() if not ok)
        details = ';'.join(' (%s, %s)' % (key, self.details[key])
                           for key in failed)
        return ("Good: %s; Not Good: %s; Details:%s\n%s"
                % (passed, failed, details, self.cmdresult))


class OutputGood(OutputGoodBase):

    """
    Standard checks applied to docker CLI output
    """

    @staticmethod
    def crash_check(output):
        """False if a Go panic shows up"""
        return not any(PANIC_RE.search(line.strip())
                       for line in output.splitlines())

    @staticmethod
    def usage_check(output):
        """False if the CLI printed its usage text"""
        return not any(USAGE_RE.search(line.strip())
                       for line in output.splitlines())

    @staticmethod
    def error_check(output):
        """False if the first line mentions an error"""
        lines = output.splitlines()
        return not lines or 'error' not in lines[0].lower()

    @staticmethod
    def fata_check(output):
        """False if a ``FATA[nnnn]`` log line shows up"""
        return FATAL_RE.search(output) is None


class OutputNotBad(OutputGood):

    """
    OutputGood minus the error and usage checks, for commands expected to
    fail in an ordinary way
    """

    def __init__(self, cmdresult, ignore_error=False, skip=None):
        if isinstance(skip, str):
            skip = [skip]
        skip = ['error_check', 'usage_check'] + list(skip or [])
        super(OutputNotBad, self).__init__(cmdresult, ignore_error, skip)


def mustpass(cmdresult, failmsg=None):
    """
    Return cmdresult if the command exited zero with sane output

    :param cmdresult: ``CmdResult`` of a command that has to succeed
    :param failmsg: Extra text for the failure message
    :raises DockerOutputError: if the output shows a crash, checked before
                               the exit code; a ``ValueError``, so a stage
                               raising it ends as ERROR, not FAIL
    :raises DockerExecError: on non-zero exit, a ``TestFail``
    """
    OutputNotBad(cmdresult)
    if cmdresult.exit_status != 0:
        details = str(cmdresult)
        if failmsg is not None:
            details = "%s\n%s" % (failmsg, details)
        raise DockerExecError("Unexpected non-zero exit code, details: %s"
                              % details)
    return cmdresult
