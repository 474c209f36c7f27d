#!/usr/bin/env python3

r"""
**Standalone** Run one or more subtests by name, reporting each status.

Subtest names are paths below the ``subtests`` directory, for example
``docker_cli/cpu_cgroups``.  Exit status is non-zero when any subtest
ends with FAIL or ERROR; TEST_NA (not applicable here) is not a failure.
"""

import argparse
import logging
import sys

from cgrouptest import job


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument('subtests', nargs='+', metavar='SUBTEST',
                        help="Subtest name, e.g. docker_cli/cpu_cgroups")
    parser.add_argument('--subtestdir', default=job.SUBTESTDIR,
                        help="Directory holding subtests (%(default)s)")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Log debugging messages")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)-5s| %(message)s",
                        datefmt="%H:%M:%S")
    results = [job.run_subtest(name, args.subtestdir)
               for name in args.subtests]
    for result in results:
        print(result)
    if any(result.failed for result in results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
