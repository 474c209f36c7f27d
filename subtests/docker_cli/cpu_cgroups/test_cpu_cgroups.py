import os
import os.path
import shlex
import shutil
import tempfile
from unittest import TestCase

from mock import patch

from cgrouptest import cgroups, config, job, utils
from cgrouptest.xceptions import CmdError, CgroupPathFail, CgroupValueFail
import cpu_cgroups


MYDIR = os.path.dirname(os.path.abspath(__file__))

#: Options taking their value as the next argument
VALUE_OPTIONS = ('--cpus', '--cpu-shares', '--cpuset-cpus', '--name',
                 '--format', '--cgroup-parent')


def parse_args(args):
    """Return (options dict, positional list) from docker-style args"""
    options = {}
    positional = []
    args = list(args)
    while args:
        arg = args.pop(0)
        if arg.startswith('--') and '=' in arg:
            key, value = arg.split('=', 1)
            options[key] = value
        elif arg in VALUE_OPTIONS:
            options[arg] = args.pop(0)
        elif arg.startswith('-'):
            options[arg] = True
        else:
            positional.append(arg)
    return options, positional


class FakeDocker(object):

    """
    Just enough of the docker CLI, keeping cgroup files below cgroup_root
    """

    SUBCOMMANDS = ('ps', 'run', 'update', 'inspect', 'rm')

    def __init__(self, cgroup_root, leave_cgroups=False,
                 ignore_shares=False, parent_fails=False):
        self.cgroup_root = cgroup_root
        self.leave_cgroups = leave_cgroups
        self.ignore_shares = ignore_shares
        self.parent_fails = parent_fails
        self.containers = {}
        self.commands = []
        self.next_id = 1

    def run(self, command, timeout=None, verbose=True, ignore_status=False):
        del timeout, verbose
        self.commands.append(command)
        tokens = shlex.split(command)
        index = [i for i, token in enumerate(tokens)
                 if token in self.SUBCOMMANDS][0]
        method = getattr(self, 'do_%s' % tokens[index])
        stdout, stderr, exit_status = method(tokens[index + 1:])
        result = utils.CmdResult(command, stdout, stderr, exit_status, 0.1)
        if exit_status != 0 and not ignore_status:
            raise CmdError(command, result)
        return result

    def dirs(self, name):
        cntr = self.containers[name]
        return dict((controller,
                     os.path.join(self.cgroup_root, controller,
                                  cntr['parent'] or 'docker', cntr['id']))
                    for controller in cgroups.CONTROLLERS)

    def write_limits(self, name, options):
        dirs = self.dirs(name)
        values = {}
        if '--cpus' in options:
            values[cgroups.CPU_QUOTA] = cgroups.cfs_quota(options['--cpus'])
            values[cgroups.CPU_PERIOD] = cgroups.CFS_PERIOD
        if '--cpu-shares' in options:
            values[cgroups.CPU_SHARES] = options['--cpu-shares']
        if '--cpuset-cpus' in options:
            values[cgroups.CPUSET_CPUS] = options['--cpuset-cpus']
        for filename, value in values.items():
            path = os.path.join(dirs[filename.split('.')[0]], filename)
            with open(path, 'w') as control_file:
                control_file.write("%s\n" % value)

    def do_ps(self, args):
        del args
        return "\n".join(sorted(self.containers)) + "\n", "", 0

    def do_run(self, args):
        options, _ = parse_args(args)
        name = options['--name']
        self.containers[name] = {'id': "%064x" % self.next_id,
                                 'parent': options.get('--cgroup-parent', '')}
        self.next_id += 1
        for controller, path in self.dirs(name).items():
            os.makedirs(path)
            open(os.path.join(path, cgroups.PROCS), 'w').close()
        with open(os.path.join(self.dirs(name)['cpu'],
                               cgroups.CPU_SHARES), 'w') as shares:
            shares.write("1024\n")
        self.write_limits(name, options)
        return self.containers[name]['id'] + "\n", "", 0

    def do_update(self, args):
        options, positional = parse_args(args)
        name = positional[-1]
        if name not in self.containers:
            return "", "Error: No such container: %s" % name, 1
        if self.ignore_shares:
            del options['--cpu-shares']
        self.write_limits(name, options)
        return name + "\n", "", 0

    def do_inspect(self, args):
        options, positional = parse_args(args)
        name = positional[-1]
        if name not in self.containers:
            return "", "Error: No such object: %s" % name, 1
        fmt = options['--format']
        if fmt == '{{.Id}}':
            return self.containers[name]['id'] + "\n", "", 0
        if fmt == '{{.HostConfig.CgroupParent}}':
            if self.parent_fails:
                return "", "template parsing error", 1
            return self.containers[name]['parent'] + "\n", "", 0
        return "", "unknown format %s" % fmt, 1

    def do_rm(self, args):
        _, positional = parse_args(args)
        name = positional[-1]
        if name not in self.containers:
            return "", "Error: No such container: %s" % name, 1
        if not self.leave_cgroups:
            for path in self.dirs(name).values():
                shutil.rmtree(path)
        del self.containers[name]
        return name + "\n", "", 0


class RunFails(FakeDocker):

    def do_run(self, args):
        del args
        return "", "docker: Error response from daemon", 125


class UpdateFails(FakeDocker):

    def do_update(self, args):
        del args
        return "", "Error response from daemon: Cannot update container", 1


class OtherRunId(FakeDocker):

    def do_run(self, args):
        _, stderr, exit_status = super(OtherRunId, self).do_run(args)
        return "%064x\n" % 0xdead, stderr, exit_status


class CpusetGone(FakeDocker):

    """Loses cpuset.cpus of the container it updates"""

    def do_update(self, args):
        result = super(CpusetGone, self).do_update(args)
        name = parse_args(args)[1][-1]
        os.unlink(os.path.join(self.dirs(name)['cpuset'],
                               cgroups.CPUSET_CPUS))
        return result


class CpuCgroupsTestBase(TestCase):

    subsubtests = 'cgroups_deleted,cgroups_updated'

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix=self.__class__.__name__)
        self.cgroup_root = os.path.join(self.tmpdir, 'cgroup')
        for controller in cgroups.CONTROLLERS:
            os.makedirs(os.path.join(self.cgroup_root, controller))
        config.Config.clear_cache()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)
        config.Config.clear_cache()

    def make_subtest(self, **options):
        subtest = cpu_cgroups.cpu_cgroups(MYDIR, self.tmpdir)
        subtest.config['cgroup_root'] = self.cgroup_root
        subtest.config['subsubtests'] = self.subsubtests
        subtest.config.update(options)
        return subtest

    def run_subtest(self, fake, **options):
        subtest = self.make_subtest(**options)
        with patch('cgrouptest.utils.run', fake.run):
            with patch.object(cpu_cgroups, 'is_root', lambda: True):
                status, reason = job.run_stages(subtest)
        return subtest, status, reason


class TestConfig(CpuCgroupsTestBase):

    def test_section(self):
        subtest = cpu_cgroups.cpu_cgroups(MYDIR, self.tmpdir)
        self.assertEqual(subtest.config_section, 'docker_cli/cpu_cgroups')
        self.assertEqual(config.get_as_list(subtest.config['subsubtests']),
                         ['cgroups_deleted', 'cgroups_updated'])

    def test_run_args(self):
        subtest = self.make_subtest(cgroup_parent='mygroup')
        subsub = cpu_cgroups.cgroups_updated(subtest)
        args = subsub.run_args('foo')
        self.assertEqual(args[:3], ['--cpus=1', '--cpu-shares=800',
                                    '--cpuset-cpus=0'])
        self.assertIn('--cgroup-parent=mygroup', args)
        self.assertEqual(args[-4:], ['--name', 'foo', 'busybox:latest', 'sh'])


class TestDeleted(CpuCgroupsTestBase):

    subsubtests = 'cgroups_deleted'

    def test_deleted(self):
        fake = FakeDocker(self.cgroup_root)
        subtest, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.GOOD, reason)
        self.assertEqual(subtest.final_subsubtests, set(['cgroups_deleted']))
        self.assertEqual(fake.containers, {})
        self.assertTrue(any(' rm ' in cmd for cmd in fake.commands))

    def test_pid_written(self):
        fake = FakeDocker(self.cgroup_root, leave_cgroups=True)
        subtest = self.make_subtest()
        with patch('cgrouptest.utils.run', fake.run):
            with patch.object(cpu_cgroups, 'is_root', lambda: True):
                subtest.initialize()
                subsub = subtest.new_subsubtest('cgroups_deleted')
                subsub.initialize()
                subsub.run_once()
                for path in subsub.sub_stuff['paths'].values():
                    self.assertEqual(cgroups.read_value(path, cgroups.PROCS),
                                     str(os.getpid()))
                self.assertRaises(CgroupPathFail, subsub.postprocess)
                subsub.cleanup()

    def test_leftover_cgroups(self):
        fake = FakeDocker(self.cgroup_root, leave_cgroups=True)
        subtest, status, _ = self.run_subtest(fake)
        self.assertEqual(status, job.FAIL)
        self.assertEqual(subtest.final_subsubtests, set())
        self.assertEqual(fake.containers, {})

    def test_not_root(self):
        fake = FakeDocker(self.cgroup_root)
        subtest = self.make_subtest()
        with patch('cgrouptest.utils.run', fake.run):
            with patch.object(cpu_cgroups, 'is_root', lambda: False):
                status, _ = job.run_stages(subtest)
        self.assertEqual(status, job.TEST_NA)
        self.assertEqual(fake.commands, [])

    def test_custom_parent(self):
        fake = FakeDocker(self.cgroup_root)
        subtest, status, reason = self.run_subtest(fake,
                                                   cgroup_parent='custom')
        self.assertEqual(status, job.GOOD, reason)
        self.assertTrue(os.path.isdir(os.path.join(self.cgroup_root, 'cpu',
                                                   'custom')))


class TestUpdated(CpuCgroupsTestBase):

    subsubtests = 'cgroups_updated'

    def test_updated(self):
        fake = FakeDocker(self.cgroup_root)
        with patch('cgrouptest.cgroups.host_arch', lambda: 'x86_64'):
            subtest, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.GOOD, reason)
        self.assertEqual(fake.containers, {})
        update = [cmd for cmd in fake.commands if ' update ' in cmd][0]
        self.assertTrue(update.endswith('--cpus=2.5 --cpu-shares 738 '
                                        '--cpuset-cpus 1 %s'
                                        % shlex.split(update)[-1]))

    def test_expected_values(self):
        fake = FakeDocker(self.cgroup_root)
        subtest = self.make_subtest()
        with patch('cgrouptest.utils.run', fake.run):
            with patch('cgrouptest.cgroups.host_arch', lambda: 'x86_64'):
                subtest.initialize()
                subsub = subtest.new_subsubtest('cgroups_updated')
                subsub.initialize()
                subsub.run_once()
                subsub.postprocess()
                subsub.cleanup()
        self.assertEqual(subsub.sub_stuff['actual'],
                         {'cpu.cfs_quota_us': '250000',
                          'cpu.cfs_period_us': '100000',
                          'cpu.shares': '738',
                          'cpuset.cpus': '1'})

    def test_ppc64le(self):
        fake = FakeDocker(self.cgroup_root)
        with patch('cgrouptest.cgroups.host_arch', lambda: 'ppc64le'):
            _, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.GOOD, reason)
        update = [cmd for cmd in fake.commands if ' update ' in cmd][0]
        self.assertIn('--cpuset-cpus 8', update)

    def test_shares_not_applied(self):
        fake = FakeDocker(self.cgroup_root, ignore_shares=True)
        subtest = self.make_subtest()
        with patch('cgrouptest.utils.run', fake.run):
            subtest.initialize()
            subsub = subtest.new_subsubtest('cgroups_updated')
            subsub.initialize()
            subsub.run_once()
            try:
                subsub.postprocess()
            except CgroupValueFail as xcept:
                self.assertEqual(xcept.expected, '738')
                self.assertEqual(xcept.actual, '800')
                self.assertTrue(xcept.path.endswith('cpu.shares'))
            else:
                self.fail("Mismatched cpu.shares went unnoticed")
            finally:
                subsub.cleanup()

    def test_parent_lookup_fails(self):
        fake = FakeDocker(self.cgroup_root, parent_fails=True)
        _, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.GOOD, reason)


class TestBoth(CpuCgroupsTestBase):

    def test_one_failure_does_not_stop_other(self):
        fake = FakeDocker(self.cgroup_root, leave_cgroups=True)
        subtest, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.FAIL)
        self.assertIn('cgroups_deleted', reason)
        self.assertEqual(subtest.final_subsubtests, set(['cgroups_updated']))
        self.assertEqual(fake.containers, {})


class TestUpdatedErrors(CpuCgroupsTestBase):

    subsubtests = 'cgroups_updated'

    def assert_failed(self, fake):
        subtest, status, reason = self.run_subtest(fake)
        self.assertEqual(status, job.FAIL)
        self.assertIn('cgroups_updated', reason)
        self.assertEqual(subtest.final_subsubtests, set())
        self.assertEqual(fake.containers, {})
        return subtest

    def test_run_fails(self):
        fake = RunFails(self.cgroup_root)
        self.assert_failed(fake)
        self.assertFalse(any(' update ' in cmd for cmd in fake.commands))

    def test_update_fails(self):
        fake = UpdateFails(self.cgroup_root)
        self.assert_failed(fake)
        self.assertTrue(any(' rm --force --volumes ' in cmd
                            for cmd in fake.commands))

    def test_control_file_unreadable(self):
        fake = CpusetGone(self.cgroup_root)
        subtest = self.assert_failed(fake)
        subsub = subtest.start_subsubtests['cgroups_updated']
        self.assertNotIn(cgroups.CPUSET_CPUS, subsub.sub_stuff['actual'])
        self.assertTrue(any(' rm ' in cmd for cmd in fake.commands))

    def test_inspect_id_differs(self):
        fake = OtherRunId(self.cgroup_root)
        subtest = self.assert_failed(fake)
        subsub = subtest.start_subsubtests['cgroups_updated']
        self.assertNotIn('paths', subsub.sub_stuff)
