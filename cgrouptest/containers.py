"""
Container bookkeeping by name: listing, naming, removal.

A test reserves a name with ``get_unique_name()`` before ``docker run``
and gives it back with ``remove_by_name()`` or ``clean_all()``.  Nothing
about a container is cached, every question goes to ``docker ps``.
"""

from cgrouptest import utils
from cgrouptest.config import get_as_list
from cgrouptest.subtestbase import SubBase
from cgrouptest.xceptions import CmdError, DockerTestError


class DockerContainers(object):

    """
    Name-based container helpers for one subtest

    :param subtest: A subtest.SubBase subclass instance, supplies the
                    docker config. options and logging
    :param timeout: Seconds allowed per command, None to use the
                    ``docker_timeout`` config. option
    :param verbose: Log every command line at debug level
    """

    #: Seconds allowed per docker command
    timeout = 60.0

    #: Log every command line at debug level
    verbose = False

    #: Options given to ``docker rm`` by ``remove_by_name()``
    remove_args = "--force"

    def __init__(self, subtest, timeout=None, verbose=False):
        if not isinstance(subtest, SubBase):
            raise DockerTestError("%s is not a SubBase instance."
                                  % subtest.__class__.__name__)
        self.subtest = subtest
        if timeout is None:
            timeout = subtest.config['docker_timeout']
        self.timeout = float(timeout)
        self.verbose = bool(verbose)

    def docker_cmd(self, cmd, timeout=None):
        """
        Run ``docker <options> cmd``, non-zero exit raises

        :param cmd: Subcommand and arguments as one string
        :param timeout: Seconds allowed, None for ``self.timeout``
        :raises CmdError: on non-zero exit or timeout
        :return: ``cgrouptest.utils.CmdResult`` instance
        """
        config = self.subtest.config
        parts = [str(config['docker_path']), str(config['docker_options']),
                 cmd]
        return utils.run(" ".join(part for part in parts if part.strip()),
                         timeout=self.timeout if timeout is None else timeout,
                         verbose=self.verbose)

    def list_container_names(self):
        """
        Return names of every container, running or not
        """
        cmdresult = self.docker_cmd('ps --all --no-trunc '
                                    '--format "{{.Names}}"')
        return [line.strip() for line in cmdresult.stdout.splitlines()
                if line.strip()]

    def exists(self, container_name):
        """
        True if ``docker ps --all`` lists container_name
        """
        return str(container_name) in self.list_container_names()

    def get_unique_name(self, prefix="", suffix="", length=4):
        """
        Return a container name nobody uses yet

        Names start with the subtest's class name, then prefix when given,
        then ``length`` random characters, then suffix when given.
        """
        if length < 2:
            raise DockerTestError("Random part of name too short: %s"
                                  % length)
        head = self.subtest.__class__.__name__
        if prefix:
            head = "%s-%s" % (head, prefix)
        in_use = set(self.list_container_names())
        return utils.get_unique_name(lambda name: name not in in_use,
                                     head, suffix, length)

    def remove_by_name(self, name):
        """
        ``docker rm`` container name, True when that succeeded
        """
        cmd = " ".join(part for part in ('rm', self.remove_args, name)
                       if part)
        try:
            self.docker_cmd(cmd, self.timeout)
        except CmdError as detail:
            self.subtest.logdebug("Removing %s failed: %s", name, detail)
            return False
        return True

    def clean_all(self, containers):
        """
        Force-remove the listed containers that still exist

        Names in the ``preserve_cnames`` CSV option are left alone.  A
        failed removal is logged, not raised.

        :param containers: Iterable of container names, not a string
        """
        if isinstance(containers, str):
            raise TypeError("clean_all() needs an iterable of names, "
                            "not the string %r" % containers)
        preserve = set(get_as_list(self.subtest.config.get('preserve_cnames',
                                                           '')))
        present = set(self.list_container_names())
        for name in (name.strip() for name in containers):
            if name in preserve or name not in present:
                continue
            self.subtest.logdebug("Cleaning %s", name)
            try:
                self.docker_cmd("rm --force --volumes %s" % name,
                                self.timeout)
            except CmdError as detail:
                self.subtest.logwarning("Cleaning %s failed: %s",
                                        name, detail)
