r"""
Summary
----------

Tests that the CPU and cpuset cgroups of a container follow its
lifecycle: they exist after ``docker run``, hold new limits after
``docker update``, and are gone after ``docker rm``.

Operational Summary
----------------------

#. Start container with ``--cpus``, ``--cpu-shares`` and ``--cpuset-cpus``
#. Locate its cgroup directories from ``docker inspect`` ID and cgroup parent
#. cgroups_deleted: attach this process to both cgroups, remove the
   container, verify both directories disappeared
#. cgroups_updated: ``docker update`` the limits, verify
   ``cpu.cfs_quota_us``, ``cpu.cfs_period_us``, ``cpu.shares`` and
   ``cpuset.cpus`` hold the new values

Prerequisites
------------------------------------------
*  Docker daemon is running and accessible by it's unix socket.
*  cgroup v1 ``cpu`` and ``cpuset`` hierarchies mounted under
   ``cgroup_root`` (standard /sys location)
*  cgroups_deleted needs root, it is skipped otherwise
"""

import os
import os.path

from cgrouptest import cgroups
from cgrouptest.config import get_as_list
from cgrouptest.containers import DockerContainers
from cgrouptest.dockercmd import DockerCmd
from cgrouptest.environment import controller_mounted, is_root
from cgrouptest.images import DockerImage
from cgrouptest.output import OutputGood, mustpass
from cgrouptest.subtest import SubSubtest, SubSubtestCaller
from cgrouptest.xceptions import (CgroupPathFail, CgroupValueFail,
                                  DockerTestError, DockerTestFail,
                                  DockerTestNAError)


class cpu_cgroups(SubSubtestCaller):
    pass


class cpu_cgroups_base(SubSubtest):

    def initialize(self):
        super(cpu_cgroups_base, self).initialize()
        locator = self.sub_stuff['locator'] = cgroups.CgroupLocator(self)
        for controller in cgroups.CONTROLLERS:
            if not controller_mounted(locator.cgroup_root, controller):
                raise DockerTestNAError("cgroup v1 %s controller not mounted"
                                        " under %s" % (controller,
                                                       locator.cgroup_root))
        dc = self.sub_stuff['dc'] = DockerContainers(self)
        name = self.sub_stuff['name'] = dc.get_unique_name()
        self.sub_stuff['run_args'] = self.run_args(name)

    def run_args(self, name):
        """
        Return ``docker run`` arguments starting container ``name``
        """
        subargs = get_as_list(self.config['run_options_csv'])
        cgroup_parent = str(self.config['cgroup_parent']).strip()
        if cgroup_parent:
            subargs.append('--cgroup-parent=%s' % cgroup_parent)
        subargs += ['--detach', '--tty', '--name', name,
                    DockerImage.full_name_from_defaults(self.config),
                    self.config['container_command']]
        return subargs

    def start_container(self):
        dkrcmd = DockerCmd(self, 'run', self.sub_stuff['run_args'])
        mustpass(dkrcmd.execute())
        # Detached run prints the long ID
        self.sub_stuff['run_id'] = dkrcmd.stdout.strip()

    def resolve_paths(self):
        """
        Store and return dict of controller to container cgroup directory
        """
        locator = self.sub_stuff['locator']
        name = self.sub_stuff['name']
        self.failif_ne(locator.container_id(name), self.sub_stuff['run_id'],
                       "Container ID from inspect")
        paths = locator.resolve_paths(name)
        for controller, path in sorted(paths.items()):
            self.logdebug("%s cgroup: %s", controller, path)
        self.sub_stuff['paths'] = paths
        return paths

    def cleanup(self):
        super(cpu_cgroups_base, self).cleanup()
        name = self.sub_stuff.get('name')
        if name is None or not self.config['remove_after_test']:
            return
        if name in get_as_list(self.config['preserve_cnames']):
            return
        dc = self.sub_stuff['dc']
        dc.clean_all([name])
        if dc.exists(name):
            raise DockerTestError("Container %s still exists after cleanup"
                                  % name)


class cgroups_deleted(cpu_cgroups_base):

    """
    Container cgroups holding an extra process vanish on ``docker rm``
    """

    def initialize(self):
        if not is_root():
            raise DockerTestNAError("only root user can modify cgroups")
        super(cgroups_deleted, self).initialize()

    def run_once(self):
        super(cgroups_deleted, self).run_once()
        self.start_container()
        paths = self.resolve_paths()
        for controller in cgroups.CONTROLLERS:
            if not os.path.isdir(paths[controller]):
                raise CgroupPathFail(paths[controller], expect_exists=True)
        mypid = os.getpid()
        for controller in cgroups.CONTROLLERS:
            self.logdebug("Adding pid %s to %s", mypid, paths[controller])
            cgroups.add_process(mypid, paths[controller])
            procs = cgroups.read_value(paths[controller], cgroups.PROCS)
            self.failif_not_in(str(mypid), procs.split(),
                               "%s of %s" % (cgroups.PROCS, controller))
        dc = self.sub_stuff['dc']
        self.sub_stuff['removed'] = dc.remove_by_name(self.sub_stuff['name'])

    def postprocess(self):
        super(cgroups_deleted, self).postprocess()
        self.failif(not self.sub_stuff['removed'],
                    "Removing container %s failed" % self.sub_stuff['name'])
        for controller in cgroups.CONTROLLERS:
            path = self.sub_stuff['paths'][controller]
            if os.path.isdir(path):
                raise CgroupPathFail(path, expect_exists=False)


class cgroups_updated(cpu_cgroups_base):

    """
    ``docker update`` CPU limits reach the container's cgroup files
    """

    def initialize(self):
        super(cgroups_updated, self).initialize()
        period = int(self.config['cfs_period'])
        cpus = self.config['update_cpus']
        shares = str(self.config['update_cpu_shares'])
        cpuset = cgroups.expected_cpuset(self.config['update_cpuset_cpus'])
        self.sub_stuff['expected'] = {
            cgroups.CPU_QUOTA: str(cgroups.cfs_quota(cpus, period)),
            cgroups.CPU_PERIOD: str(period),
            cgroups.CPU_SHARES: shares,
            cgroups.CPUSET_CPUS: cpuset}
        self.sub_stuff['update_args'] = ['--cpus=%s' % cpus,
                                         '--cpu-shares', shares,
                                         '--cpuset-cpus', cpuset,
                                         self.sub_stuff['name']]

    @staticmethod
    def controller_of(filename):
        """Return controller owning control file ``filename``"""
        return filename.split('.', 1)[0]

    def run_once(self):
        super(cgroups_updated, self).run_once()
        self.start_container()
        dkrcmd = DockerCmd(self, 'update', self.sub_stuff['update_args'])
        mustpass(dkrcmd.execute())
        OutputGood(dkrcmd.cmdresult)
        self.logdebug(str(dkrcmd))
        paths = self.resolve_paths()
        actual = self.sub_stuff['actual'] = {}
        for filename in self.sub_stuff['expected']:
            path = paths[self.controller_of(filename)]
            actual[filename] = cgroups.read_value(path, filename)
        dc = self.sub_stuff['dc']
        if not dc.remove_by_name(self.sub_stuff['name']):
            self.logwarning("Removing %s failed, leaving it to cleanup()",
                            self.sub_stuff['name'])

    def postprocess(self):
        super(cgroups_updated, self).postprocess()
        paths = self.sub_stuff['paths']
        mismatches = []
        for filename, expected in sorted(self.sub_stuff['expected'].items()):
            actual = self.sub_stuff['actual'][filename]
            path = os.path.join(paths[self.controller_of(filename)], filename)
            if actual == expected:
                self.logdebug("%s: %s", path, actual)
                continue
            mismatch = CgroupValueFail(path, expected, actual)
            self.logerror(str(mismatch))
            mismatches.append(mismatch)
        if len(mismatches) == 1:
            raise mismatches[0]
        if mismatches:
            raise DockerTestFail("; ".join(str(mismatch)
                                           for mismatch in mismatches))
