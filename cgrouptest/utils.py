"""
Process execution and naming helpers used by the docker command classes

Commands are given as a single string, split the way a POSIX shell would
split it, and executed without a shell.
"""

import logging
import random
import shlex
import string
import subprocess
import time

from cgrouptest.xceptions import CmdError


class CmdResult(object):

    """
    Outcome of a finished command

    :param command: Command-line string that was executed
    :param stdout: Decoded standard output
    :param stderr: Decoded standard error
    :param exit_status: Integer exit code, None if never finished
    :param duration: Seconds elapsed
    """

    def __init__(self, command="", stdout="", stderr="",
                 exit_status=None, duration=0):
        self.command = command
        self.stdout = stdout
        self.stderr = stderr
        self.exit_status = exit_status
        self.duration = duration

    def __eq__(self, other):
        return all(getattr(self, name) == getattr(other, name, None)
                   for name in ('command', 'stdout', 'stderr',
                                'exit_status', 'duration'))

    def __repr__(self):
        return ("* Command: %s\n"
                "Exit status: %s\n"
                "Duration: %s\n"
                "stdout:\n%s\n"
                "stderr:\n%s\n" % (self.command, self.exit_status,
                                   self.duration, self.stdout.rstrip(),
                                   self.stderr.rstrip()))


def run(command, timeout=None, verbose=True, ignore_status=False):
    """
    Run command to completion, returning a ``CmdResult``

    :param command: Command-line string
    :param timeout: Seconds to wait before killing the command, None forever
    :param verbose: Log the command at debug level before running
    :param ignore_status: When False, raise ``CmdError`` on non-zero exit
    :raises CmdError: on timeout, or non-zero exit unless ignore_status
    :return: ``CmdResult`` instance
    """
    if verbose:
        logging.debug("Running '%s'", command)
    start = time.time()
    try:
        proc = subprocess.run(shlex.split(command),
                              stdout=subprocess.PIPE,
                              stderr=subprocess.PIPE,
                              timeout=timeout,
                              close_fds=True)
    except subprocess.TimeoutExpired as xcept:
        result = CmdResult(command=command,
                           stdout=(xcept.stdout or b'').decode(errors='replace'),
                           stderr=(xcept.stderr or b'').decode(errors='replace'),
                           duration=time.time() - start)
        raise CmdError(command, result,
                       "Command did not complete within %s seconds" % timeout)
    except OSError as xcept:
        result = CmdResult(command=command, stderr=str(xcept),
                           exit_status=127, duration=time.time() - start)
        if not ignore_status:
            raise CmdError(command, result, str(xcept))
        return result
    result = CmdResult(command=command,
                       stdout=proc.stdout.decode(errors='replace'),
                       stderr=proc.stderr.decode(errors='replace'),
                       exit_status=proc.returncode,
                       duration=time.time() - start)
    if result.exit_status != 0 and not ignore_status:
        raise CmdError(command, result, "Command returned non-zero exit status")
    return result


def generate_random_string(length):
    """
    Return a random string of lower-case letters and digits

    :param length: Number of characters
    """
    chars = string.ascii_lowercase + string.digits
    return "".join(random.choice(chars) for _ in range(length))


def get_unique_name(check, prefix="", suffix="", length=4):
    """
    Return a name not rejected by ``check``

    :param check: Callable returning True when a name is available
    :param prefix: Name prefix string
    :param suffix: Name suffix string
    :param length: Length of random part
    """
    if prefix:
        prefix = "%s-" % prefix
    if suffix:
        suffix = "-%s" % suffix
    while True:
        name = "%s%s%s" % (prefix, generate_random_string(length), suffix)
        if check(name):
            return name
