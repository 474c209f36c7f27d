"""
Run docker CLI subcommands on behalf of a subtest

The docker executable, its global options and the command timeout all come
from the calling subtest's configuration (``docker_path``,
``docker_options`` and ``docker_timeout``).
"""

import copy

from cgrouptest import utils
from cgrouptest.subtestbase import SubBase
from cgrouptest.xceptions import DockerTestError


class DockerCmd(object):

    """
    One docker subcommand invocation, result kept after ``execute()``

    :param subtest: A subtest.SubBase or subclass instance
    :param subcmd: Subcommand name, e.g. ``inspect``
    :param subargs: (optional) Iterable of arguments following ``subcmd``,
                    None and blank items are dropped
    :param timeout: Seconds before the command is killed, None to use
                    the ``docker_timeout`` config. option
    :param verbose: Log the command line before running it
    :raises DockerTestError: on incorrect usage
    """

    def __init__(self, subtest, subcmd, subargs=None, timeout=None,
                 verbose=True):
        if not isinstance(subtest, SubBase):
            raise DockerTestError("%s is not a SubBase instance."
                                  % subtest.__class__.__name__)
        if isinstance(subargs, (str, bytes)):
            raise DockerTestError("subargs must be an iterable of strings,"
                                  " not %r" % (subargs,))
        self.subtest = subtest
        self.subcmd = str(subcmd).strip()
        self.subargs = [str(arg).strip() for arg in (subargs or [])
                        if arg is not None and str(arg).strip()]
        if timeout is None:
            timeout = subtest.config['docker_timeout']
        self.timeout = float(timeout)
        self.verbose = verbose
        self._cmdresult = None

    def __str__(self):
        if self._cmdresult is None:
            return "Command: %s" % self.command
        return ("Command: %s\n"
                "Timeout: %s\n"
                "Duration: %s\n"
                "Exit code: %s\n"
                "Standard Out: \"\"\"%s\"\"\"\n"
                "Standard Error: \"\"\"%s\"\"\"\n"
                % (self._cmdresult.command, self.timeout,
                   self._cmdresult.duration, self._cmdresult.exit_status,
                   self._cmdresult.stdout, self._cmdresult.stderr))

    @property
    def command(self):
        """Full command line: executable, global options, subcmd, args"""
        config = self.subtest.config
        head = [str(part).strip() for part in (config['docker_path'],
                                               config['docker_options'],
                                               self.subcmd)]
        return " ".join([part for part in head if part] + self.subargs)

    @property
    def cmdresult(self):
        """Copy of the ``CmdResult`` from the last ``execute()``, or None"""
        return copy.copy(self._cmdresult)

    @property
    def stdout(self):
        """Standard output of the last ``execute()``"""
        if self._cmdresult is None:
            raise DockerTestError("stdout of %s requested before execute()"
                                  % self.command)
        return self._cmdresult.stdout

    def execute(self):
        """
        Run the command, a non-zero exit is recorded but not raised

        :return: A ``CmdResult`` copy
        """
        if self.verbose:
            self.subtest.logdebug("Executing %s", self.command)
        self._cmdresult = utils.run(self.command, timeout=self.timeout,
                                    verbose=False, ignore_status=True)
        return self.cmdresult
