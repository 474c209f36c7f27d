"""
Locate and read the cgroup (v1) directories a container runtime creates.

A container's cgroup for one controller lives at::

    <cgroup_root>/<controller>/<parent>/<long id>

where ``parent`` is the container's ``--cgroup-parent`` when one was given,
otherwise the runtime's default group (``docker``).  Paths are never
cached, they are recomputed from ``docker inspect`` output on every call.
"""

import os
import os.path
import platform

from cgrouptest.dockercmd import DockerCmd
from cgrouptest.xceptions import (CgroupIdLookupError,
                                  CgroupParentLookupError,
                                  DockerIOError,
                                  DockerValueError)

#: Default mount point of the cgroup v1 hierarchy
CGROUP_ROOT = '/sys/fs/cgroup'

#: Group the runtime nests containers under when no parent was requested
DEFAULT_PARENT = 'docker'

CPU = 'cpu'
CPUSET = 'cpuset'

#: Controllers whose container directories are located/verified
CONTROLLERS = (CPU, CPUSET)

CPU_SHARES = 'cpu.shares'
CPU_QUOTA = 'cpu.cfs_quota_us'
CPU_PERIOD = 'cpu.cfs_period_us'
CPUSET_CPUS = 'cpuset.cpus'
PROCS = 'cgroup.procs'

#: Default CFS period in microseconds
CFS_PERIOD = 100000

#: Host architecture -> cpuset value expected after pinning to the second
#: CPU.  Architectures not listed use the caller's default.
CPUSET_BY_ARCH = {
    'ppc64le': '8',
}


def cgroup_path(cgroup_root, controller, parent, long_id):
    """
    Return the directory of container ``long_id`` for ``controller``

    :param cgroup_root: Mount point of the cgroup hierarchy
    :param controller: One of ``CONTROLLERS``
    :param parent: Parent group name, may contain '/'
    :param long_id: Runtime-assigned container ID
    :raises DockerValueError: on unknown controller or empty segments
    """
    if controller not in CONTROLLERS:
        raise DockerValueError("Unknown cgroup controller %r, expected one"
                               " of %s" % (controller, CONTROLLERS))
    if not parent or not long_id:
        raise DockerValueError("Empty cgroup parent (%r) or container ID (%r)"
                               % (parent, long_id))
    # Absolute --cgroup-parent values must still land below the controller
    return os.path.join(cgroup_root, controller, parent.strip('/'), long_id)


def cfs_quota(cpus, period=CFS_PERIOD):
    """
    Return CFS quota microseconds granting ``cpus`` CPUs per ``period``

    :param cpus: Possibly fractional number of CPUs, e.g. 2.5
    :param period: CFS period in microseconds
    """
    return int(round(float(cpus) * int(period)))


def host_arch():
    """Return the architecture name of the running kernel, e.g. x86_64"""
    return platform.machine()


def expected_cpuset(default, arch=None, table=None):
    """
    Return the ``cpuset.cpus`` value to expect on ``arch``

    :param default: Value for architectures missing from ``table``
    :param arch: Architecture name, host architecture if None
    :param table: Mapping of arch to value, ``CPUSET_BY_ARCH`` if None
    """
    if arch is None:
        arch = host_arch()
    if table is None:
        table = CPUSET_BY_ARCH
    return str(table.get(arch, default))


def add_process(pid, path):
    """
    Attach process ``pid`` to the cgroup directory ``path``

    :raises DockerIOError: when cgroup.procs can't be written
    """
    procs = os.path.join(path, PROCS)
    try:
        with open(procs, 'w') as procs_file:
            procs_file.write(str(pid))
    except (IOError, OSError) as xcept:
        raise DockerIOError("Failed adding pid %s to %s: %s"
                            % (pid, procs, xcept))


def read_value(path, filename):
    """
    Return whitespace-stripped content of control file ``filename``

    :param path: Cgroup directory
    :param filename: Control file name, e.g. ``cpu.shares``
    :raises DockerIOError: when the file can't be read
    """
    fullpath = os.path.join(path, filename)
    try:
        with open(fullpath, 'r') as control_file:
            return control_file.read().strip("\n\t ")
    except (IOError, OSError) as xcept:
        raise DockerIOError("Failed reading %s: %s" % (fullpath, xcept))


class CgroupLocator(object):

    """
    Resolve cgroup directories for containers through ``docker inspect``

    :param subtest: A subtest.SubBase subclass instance, supplies
                    ``cgroup_root``/``cgroup_default_parent`` and
                    docker options through its config
    """

    def __init__(self, subtest):
        self.subtest = subtest
        self.cgroup_root = subtest.config.get('cgroup_root') or CGROUP_ROOT
        self.default_parent = (subtest.config.get('cgroup_default_parent') or
                               DEFAULT_PARENT)

    def inspect(self, name, fmt):
        """
        Return CmdResult from ``docker inspect --format fmt name``
        """
        return DockerCmd(self.subtest, 'inspect',
                         ['--format', fmt, name]).execute()

    def container_id(self, name):
        """
        Return long ID of container ``name``

        :raises CgroupIdLookupError: on inspect failure or empty ID
        """
        cmdresult = self.inspect(name, '{{.Id}}')
        long_id = cmdresult.stdout.strip("\n\t ")
        if cmdresult.exit_status != 0 or not long_id:
            raise CgroupIdLookupError(name, cmdresult.stderr)
        return long_id

    def cgroup_parent(self, name):
        """
        Return cgroup parent requested for container ``name``, maybe empty

        :raises CgroupParentLookupError: on inspect failure
        """
        cmdresult = self.inspect(name, '{{.HostConfig.CgroupParent}}')
        if cmdresult.exit_status != 0:
            raise CgroupParentLookupError(name, cmdresult.stderr)
        return cmdresult.stdout.strip("\n\t ")

    def parent_group(self, name):
        """
        Return parent group segment for container ``name``

        The requested cgroup parent wins when it could be read and is
        non-empty, otherwise the default group is used.
        """
        try:
            parent = self.cgroup_parent(name)
        except CgroupParentLookupError as xcept:
            self.subtest.logdebug("Using default cgroup parent %s: %s",
                                  self.default_parent, xcept)
            return self.default_parent
        if parent:
            return parent
        return self.default_parent

    def resolve_path(self, name, controller):
        """
        Return cgroup directory of container ``name`` for ``controller``

        :raises CgroupIdLookupError: when the container ID is unavailable
        """
        parent = self.parent_group(name)
        long_id = self.container_id(name)
        return cgroup_path(self.cgroup_root, controller, parent, long_id)

    def resolve_paths(self, name, controllers=CONTROLLERS):
        """
        Return dict of controller to cgroup directory for container ``name``
        """
        return dict((controller, self.resolve_path(name, controller))
                    for controller in controllers)
